"""
Data discovery tool: catalog search, collection filtering, geometry lookup,
asset info and boundary datasets.
"""

import logging

from ...constants import (
    DATA_OPERATIONS,
    DEFAULT_CLOUD_COVER,
    DEFAULT_DATASET,
    DEFAULT_END_DATE,
    DEFAULT_SEARCH_LIMIT,
    DEFAULT_START_DATE,
    ErrorMessages,
    SuccessMessages,
)
from ...models.responses import (
    AssetInfoResponse,
    BoundariesResponse,
    BoundaryDataset,
    CollectionFilterResponse,
    DatasetInfo,
    DatasetSearchResponse,
    ErrorResponse,
    GeometryResponse,
    format_response,
)

logger = logging.getLogger(__name__)


def register_data_tools(mcp, manager):
    """Register the earth_engine_data tool with the MCP server."""

    @mcp.tool()
    async def earth_engine_data(
        operation: str,
        query: str | None = None,
        dataset_id: str | None = None,
        start_date: str | None = None,
        end_date: str | None = None,
        region: str | None = None,
        place_name: str | None = None,
        limit: int = DEFAULT_SEARCH_LIMIT,
        cloud_cover_max: float = DEFAULT_CLOUD_COVER,
        output_mode: str = "json",
    ) -> str:
        """Data Discovery & Access - search, filter, geometry, info, boundaries operations

        Args:
            operation: search, filter, geometry, info or boundaries
            query: Search query (for search operation)
            dataset_id: Dataset ID (filter and info)
            start_date: Start date YYYY-MM-DD (filter)
            end_date: End date YYYY-MM-DD (filter)
            region: Region name, US state or county, or "west,south,east,north"
            place_name: Place name for geometry lookup
            limit: Maximum results (default 10)
            cloud_cover_max: Cloud cover ceiling for optical collections (filter)
            output_mode: "json" for structured data, "text" for human-readable summary

        Returns:
            Operation result, or an error
        """
        try:
            if operation == "search":
                query = query or ""
                matches = manager.search_datasets(query, limit)
                return format_response(
                    DatasetSearchResponse(
                        query=query,
                        count=len(matches),
                        datasets=[DatasetInfo(**m) for m in matches],
                        message=SuccessMessages.SEARCH.format(len(matches), query),
                    ),
                    output_mode,
                )

            if operation == "filter":
                dataset_id = dataset_id or DEFAULT_DATASET
                start_date = start_date or DEFAULT_START_DATE
                end_date = end_date or DEFAULT_END_DATE
                data = await manager.filter_collection(
                    dataset_id, start_date, end_date, region, limit, cloud_cover_max
                )
                return format_response(
                    CollectionFilterResponse(
                        **data,
                        message=SuccessMessages.FILTER.format(
                            data["image_count"], dataset_id, start_date, end_date
                        ),
                    ),
                    output_mode,
                )

            if operation == "geometry":
                name = place_name or region
                if not name:
                    raise ValueError(ErrorMessages.MISSING_PARAMETER.format("placeName", operation))
                data = await manager.get_geometry(name)
                return format_response(
                    GeometryResponse(
                        **data, message=SuccessMessages.GEOMETRY.format(name, data["area_km2"])
                    ),
                    output_mode,
                )

            if operation == "info":
                if not dataset_id:
                    raise ValueError(ErrorMessages.MISSING_PARAMETER.format("datasetId", operation))
                data = await manager.get_asset_info(dataset_id)
                return format_response(
                    AssetInfoResponse(
                        **data,
                        message=SuccessMessages.INFO.format(
                            dataset_id, data["asset_type"], len(data["bands"])
                        ),
                    ),
                    output_mode,
                )

            if operation == "boundaries":
                datasets = [BoundaryDataset(**d) for d in manager.list_boundaries()]
                return format_response(
                    BoundariesResponse(
                        datasets=datasets,
                        message=SuccessMessages.BOUNDARIES.format(len(datasets)),
                    ),
                    output_mode,
                )

            raise ValueError(
                ErrorMessages.UNKNOWN_OPERATION.format(operation, ", ".join(DATA_OPERATIONS))
            )

        except Exception as e:
            logger.error(f"earth_engine_data failed: {e}")
            return format_response(ErrorResponse(error=str(e)), output_mode)
