"""
Interactive map tool: create, list and delete map sessions.
"""

import logging
from typing import Any

from ...constants import MAP_OPERATIONS, ErrorMessages, SuccessMessages
from ...core.composite_cache import CompositeNotFoundError
from ...models.responses import (
    ErrorResponse,
    MapCreateResponse,
    MapDeleteResponse,
    MapListResponse,
    NotFoundResponse,
    format_response,
)

logger = logging.getLogger(__name__)


def register_map_tools(mcp, maps):
    """Register the earth_engine_map tool with the MCP server."""

    @mcp.tool()
    async def earth_engine_map(
        operation: str,
        input: str | None = None,
        region: str | None = None,
        layers: list[dict[str, Any]] | None = None,
        bands: list[str] | None = None,
        vis_params: dict[str, Any] | None = None,
        center: list[float] | None = None,
        zoom: int | None = None,
        basemap: str | None = None,
        dataset_type: str | None = None,
        map_id: str | None = None,
        output_mode: str = "json",
    ) -> str:
        """Interactive Map Viewer - create, list, delete interactive web maps for large regions

        Args:
            operation: create, list or delete
            input: Key of a stored result or a dataset id to display
            region: Region name used to center the map
            layers: Layers, each with a name and one of input/data/image/dataset/compositeKey
                or a ready tileUrl, plus optional bands, visParams, min, max, palette, gamma
            bands: Bands to display when a layer does not name its own
            vis_params: Visualization defaults applied to every layer
            center: [longitude, latitude]
            zoom: Initial zoom level
            basemap: satellite, terrain, roadmap or dark
            dataset_type: sentinel2-sr, landsat8, landsat9 or modis
            map_id: Map id (delete)
            output_mode: "json" for structured data, "text" for human-readable summary

        Returns:
            Map URL and layers, the list of maps, a deletion result, or an error
        """
        try:
            if operation == "create":
                data = await maps.create(
                    input=input,
                    region=region,
                    layers=layers,
                    bands=bands,
                    vis_params=vis_params,
                    center=center,
                    zoom=zoom,
                    basemap=basemap,
                    dataset_type=dataset_type,
                )
                response = MapCreateResponse(message=SuccessMessages.MAP_CREATED, **data)
            elif operation == "list":
                response = MapListResponse(**(await maps.list()))
            elif operation == "delete":
                response = MapDeleteResponse(**(await maps.delete(map_id)))
            else:
                raise ValueError(
                    ErrorMessages.UNKNOWN_OPERATION.format(operation, ", ".join(MAP_OPERATIONS))
                )
            return format_response(response, output_mode)

        except CompositeNotFoundError as e:
            return format_response(NotFoundResponse.from_error(e), output_mode)
        except Exception as e:
            logger.error(f"earth_engine_map failed: {e}")
            return format_response(ErrorResponse(error=str(e)), output_mode)
