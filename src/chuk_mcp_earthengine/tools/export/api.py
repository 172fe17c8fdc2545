"""
Export tool: batch exports, thumbnails, tile services, task status and
direct downloads.
"""

import logging

from ...constants import (
    DEFAULT_EXPORT_SCALE,
    DEFAULT_THUMB_DIMENSIONS,
    EXPORT_OPERATIONS,
    ErrorMessages,
    SuccessMessages,
)
from ...core.composite_cache import CompositeNotFoundError
from ...models.responses import (
    DownloadResponse,
    ErrorResponse,
    ExportTaskResponse,
    NotFoundResponse,
    TaskStatusResponse,
    ThumbnailResponse,
    TileServiceResponse,
    format_response,
)

logger = logging.getLogger(__name__)


def register_export_tools(mcp, manager):
    """Register the earth_engine_export tool with the MCP server."""

    @mcp.tool()
    async def earth_engine_export(
        operation: str,
        input: str | None = None,
        dataset_id: str | None = None,
        region: str | None = None,
        destination: str = "auto",
        scale: float = DEFAULT_EXPORT_SCALE,
        task_id: str | None = None,
        dimensions: int = DEFAULT_THUMB_DIMENSIONS,
        output_mode: str = "json",
    ) -> str:
        """Export & Visualization - export, thumbnail, tiles, status, download operations

        Args:
            operation: export, thumbnail, tiles, status or download
            input: Key of a stored result, or a dataset id
            dataset_id: Dataset ID, used when input is not given
            region: Export region (name or "west,south,east,north")
            destination: gcs, drive or auto (gcs when a bucket is configured)
            scale: Export scale in metres (default 10)
            task_id: Earth Engine task id (status)
            dimensions: Thumbnail size in pixels (default 512)
            output_mode: "json" for structured data, "text" for human-readable summary

        Returns:
            Task details, URLs, or an error
        """
        try:
            if operation == "export":
                data = await manager.start_export(input, dataset_id, region, destination, scale)
                response = ExportTaskResponse(
                    **data,
                    message=SuccessMessages.EXPORT.format(data["task_id"], data["destination"]),
                )
            elif operation == "thumbnail":
                data = await manager.thumbnail(input, dataset_id, region, dimensions)
                response = ThumbnailResponse(
                    **data, message=SuccessMessages.THUMBNAIL.format(data["key"])
                )
            elif operation == "tiles":
                data = await manager.tiles(input, dataset_id)
                response = TileServiceResponse(
                    **data, message=SuccessMessages.TILES.format(data["key"])
                )
            elif operation == "status":
                data = await manager.task_status(task_id)
                response = TaskStatusResponse(
                    **data, message=SuccessMessages.TASK_STATUS.format(task_id, data["state"])
                )
            elif operation == "download":
                data = await manager.download_url(input, dataset_id, region, scale)
                response = DownloadResponse(
                    **data, message=SuccessMessages.DOWNLOAD.format(data["key"])
                )
            else:
                raise ValueError(
                    ErrorMessages.UNKNOWN_OPERATION.format(operation, ", ".join(EXPORT_OPERATIONS))
                )
            return format_response(response, output_mode)

        except CompositeNotFoundError as e:
            return format_response(NotFoundResponse.from_error(e), output_mode)
        except Exception as e:
            logger.error(f"earth_engine_export failed: {e}")
            return format_response(ErrorResponse(error=str(e)), output_mode)
