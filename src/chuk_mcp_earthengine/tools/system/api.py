"""
System tool: credential checks, expression evaluation, setup guidance,
asset loading, server info and health.
"""

import logging

from ...constants import (
    ALL_TOOL_NAMES,
    AUTH_CHECK_TYPES,
    DATASET_CATALOG,
    SETUP_STEPS,
    SYSTEM_OPERATIONS,
    ErrorMessages,
    ServerConfig,
    SuccessMessages,
)
from ...models.responses import (
    AuthResponse,
    ErrorResponse,
    ExecuteResponse,
    HealthResponse,
    ImageResultResponse,
    SetupResponse,
    SystemInfoResponse,
    format_response,
)

logger = logging.getLogger(__name__)


def register_system_tools(mcp, manager):
    """Register the earth_engine_system tool with the MCP server."""

    @mcp.tool()
    async def earth_engine_system(
        operation: str,
        check_type: str = "status",
        code: str | None = None,
        dataset_id: str | None = None,
        start_date: str | None = None,
        end_date: str | None = None,
        region: str | None = None,
        output_mode: str = "json",
    ) -> str:
        """System & Advanced - auth, execute, setup, load, info, health operations

        Args:
            operation: auth, execute, setup, load, info or health
            check_type: Auth check type: status, projects or permissions
            code: Serialized Earth Engine expression (execute)
            dataset_id: Asset to load into the cache (load)
            start_date: Collection start date YYYY-MM-DD (load)
            end_date: Collection end date YYYY-MM-DD (load)
            region: Region to clip the loaded asset to (load)
            output_mode: "json" for structured data, "text" for human-readable summary

        Returns:
            Operation result, or an error
        """
        try:
            if operation == "auth":
                check_type = check_type or "status"
                if check_type not in AUTH_CHECK_TYPES:
                    raise ValueError(
                        ErrorMessages.INVALID_CHECK_TYPE.format(check_type, ", ".join(AUTH_CHECK_TYPES))
                    )
                data = await manager.auth_check(check_type)
                client = manager.client
                if data["initialized"]:
                    message = SuccessMessages.AUTH.format(client.project_id)
                else:
                    message = data["details"].get("error", ErrorMessages.EE_NOT_INITIALIZED)
                response = AuthResponse(
                    check_type=check_type,
                    project_id=client.project_id,
                    service_account=client.service_account,
                    message=message,
                    **data,
                )

            elif operation == "execute":
                result = await manager.execute(code)
                response = ExecuteResponse(result=result, message=SuccessMessages.EXECUTE)

            elif operation == "setup":
                response = SetupResponse(
                    configured=manager.setup_status(),
                    steps=list(SETUP_STEPS),
                    message=SuccessMessages.SETUP,
                )

            elif operation == "load":
                data = await manager.load(dataset_id, start_date, end_date, region)
                response = ImageResultResponse(
                    operation=operation,
                    message=SuccessMessages.LOAD.format(dataset_id, data["key"]),
                    **data,
                )

            elif operation == "info":
                response = SystemInfoResponse(
                    server=ServerConfig.MCP_SERVER_NAME,
                    version=ServerConfig.MCP_SERVER_VERSION,
                    protocol_version=ServerConfig.PROTOCOL_VERSION,
                    tools=list(ALL_TOOL_NAMES),
                    datasets=len(DATASET_CATALOG),
                    composites=manager.cache.keys(),
                    message=SuccessMessages.SYSTEM_INFO.format(
                        ServerConfig.MCP_SERVER_NAME, ServerConfig.MCP_SERVER_VERSION
                    ),
                )

            elif operation == "health":
                data = await manager.health()
                backend = "redis" if data["store"]["connected"] else "memory"
                status = "healthy" if data["earth_engine"] else "degraded"
                response = HealthResponse(
                    status=status,
                    message=SuccessMessages.HEALTH.format(status.title(), backend),
                    **data,
                )

            else:
                raise ValueError(
                    ErrorMessages.UNKNOWN_OPERATION.format(operation, ", ".join(SYSTEM_OPERATIONS))
                )
            return format_response(response, output_mode)

        except Exception as e:
            logger.error(f"earth_engine_system failed: {e}")
            return format_response(ErrorResponse(error=str(e)), output_mode)
