"""
JSON-RPC 2.0 dispatcher for the MCP methods served over HTTP.

Handles initialize, tools/list, tools/call, prompts/list and resources/list.
Tool results are returned as a single text content item holding the
pretty-printed JSON result.
"""

import json
import logging
from typing import Any

from ..constants import TOOL_DEFINITIONS, ErrorMessages, JsonRpcError, ServerConfig
from .registry import ToolRegistry

logger = logging.getLogger(__name__)

JSONRPC_VERSION = "2.0"


def rpc_result(request_id: Any, result: Any) -> dict:
    return {"jsonrpc": JSONRPC_VERSION, "id": request_id, "result": result}


def rpc_error(request_id: Any, code: int, message: str) -> dict:
    return {"jsonrpc": JSONRPC_VERSION, "id": request_id, "error": {"code": code, "message": message}}


def is_tool_error(result: Any) -> bool:
    """A bare {"error": ...} payload is a failed tool call."""
    return isinstance(result, dict) and set(result) == {"error"}


class JsonRpcDispatcher:
    """Routes JSON-RPC requests to the tool registry."""

    def __init__(self, registry: ToolRegistry):
        self.registry = registry

    async def handle_raw(self, body: bytes | str) -> dict | None:
        """Decode a request body and dispatch it.

        Returns:
            Response envelope, or None for notifications
        """
        try:
            message = json.loads(body)
        except (TypeError, ValueError) as e:
            logger.warning(f"Unparseable JSON-RPC body: {e}")
            return rpc_error(None, JsonRpcError.PARSE_ERROR, ErrorMessages.PARSE_ERROR)
        return await self.handle(message)

    async def handle(self, message: Any) -> dict | None:
        """Dispatch one decoded JSON-RPC message."""
        if not isinstance(message, dict) or not isinstance(message.get("method"), str):
            request_id = message.get("id") if isinstance(message, dict) else None
            return rpc_error(request_id, JsonRpcError.INVALID_REQUEST, ErrorMessages.INVALID_REQUEST)

        method = message["method"]
        params = message.get("params")

        # Notifications carry no id and get no response
        if "id" not in message:
            logger.debug(f"Notification: {method}")
            return None
        request_id = message["id"]

        if params is None:
            params = {}
        elif not isinstance(params, dict):
            return rpc_error(
                request_id, JsonRpcError.INVALID_PARAMS, ErrorMessages.INVALID_PARAMS.format("params")
            )

        if method == "initialize":
            return rpc_result(request_id, self.initialize_result())
        if method == "tools/list":
            return rpc_result(request_id, {"tools": TOOL_DEFINITIONS})
        if method == "prompts/list":
            return rpc_result(request_id, {"prompts": []})
        if method == "resources/list":
            return rpc_result(request_id, {"resources": []})
        if method == "tools/call":
            return await self.call_tool(request_id, params)

        return rpc_error(
            request_id, JsonRpcError.METHOD_NOT_FOUND, ErrorMessages.UNKNOWN_METHOD.format(method)
        )

    @staticmethod
    def initialize_result() -> dict:
        return {
            "protocolVersion": ServerConfig.PROTOCOL_VERSION,
            "capabilities": {"tools": {}, "prompts": {}, "resources": {}},
            "serverInfo": {
                "name": ServerConfig.MCP_SERVER_NAME,
                "version": ServerConfig.MCP_SERVER_VERSION,
            },
        }

    async def call_tool(self, request_id: Any, params: dict) -> dict:
        name = params.get("name")
        arguments = params.get("arguments")
        if arguments is None:
            arguments = {}
        elif not isinstance(arguments, dict):
            return rpc_error(
                request_id, JsonRpcError.INVALID_PARAMS, ErrorMessages.INVALID_PARAMS.format("arguments")
            )

        canonical = self.registry.resolve(name) if isinstance(name, str) else None
        if canonical is None:
            return rpc_error(
                request_id, JsonRpcError.METHOD_NOT_FOUND, ErrorMessages.UNKNOWN_TOOL.format(name)
            )

        try:
            result = await self.registry.call(canonical, arguments)
        except TypeError as e:
            return rpc_error(
                request_id,
                JsonRpcError.INVALID_PARAMS,
                ErrorMessages.INVALID_ARGUMENTS.format(canonical, e),
            )
        except Exception as e:
            logger.error(f"tools/call {canonical} failed: {e}")
            return rpc_error(request_id, JsonRpcError.INTERNAL_ERROR, str(e))

        if is_tool_error(result):
            return rpc_error(request_id, JsonRpcError.INTERNAL_ERROR, result["error"])

        return rpc_result(
            request_id,
            {"content": [{"type": "text", "text": json.dumps(result, indent=2)}]},
        )
