"""
Processing tool: composites, spectral indices, clipping, masking,
regional statistics, terrain and resampling.

Every operation except analyze stores its result image and returns the
new key for later tools to refer to.
"""

import logging

from ...constants import (
    DEFAULT_CLOUD_COVER,
    DEFAULT_PROCESS_SCALE,
    PROCESS_OPERATIONS,
    ErrorMessages,
    SuccessMessages,
)
from ...core.composite_cache import CompositeNotFoundError
from ...models.responses import (
    ErrorResponse,
    ImageResultResponse,
    NotFoundResponse,
    StatisticsResponse,
    format_response,
)

logger = logging.getLogger(__name__)


def register_process_tools(mcp, manager):
    """Register the earth_engine_process tool with the MCP server."""

    @mcp.tool()
    async def earth_engine_process(
        operation: str,
        input: str | None = None,
        dataset_id: str | None = None,
        region: str | None = None,
        index_type: str | None = None,
        mask_type: str | None = None,
        scale: float = DEFAULT_PROCESS_SCALE,
        start_date: str | None = None,
        end_date: str | None = None,
        cloud_cover_max: float = DEFAULT_CLOUD_COVER,
        bands: list[str] | None = None,
        output_mode: str = "json",
    ) -> str:
        """Processing & Analysis - clip, mask, index, analyze, composite, terrain, resample operations

        Args:
            operation: clip, mask, index, analyze, composite, terrain or resample
            input: Key of a stored result, or a dataset id
            dataset_id: Dataset ID, used when input is not given
            region: Region for processing (name or "west,south,east,north")
            index_type: NDVI, NDWI, NDBI, EVI, SAVI, MNDWI, NBR or custom
            mask_type: clouds, water, quality or shadow
            scale: Processing scale in metres (default 30)
            start_date: Composite start date YYYY-MM-DD
            end_date: Composite end date YYYY-MM-DD
            cloud_cover_max: Scene cloud cover ceiling for composites (default 20)
            bands: Two bands for a custom normalized difference index
            output_mode: "json" for structured data, "text" for human-readable summary

        Returns:
            Stored result key and details, statistics, or an error
        """
        try:
            if operation == "composite":
                data = await manager.create_composite(
                    dataset_id=dataset_id or input,
                    start_date=start_date,
                    end_date=end_date,
                    region=region,
                    cloud_cover=cloud_cover_max,
                )
                message = SuccessMessages.COMPOSITE.format(data["key"], data["dataset_id"])

            elif operation == "index":
                if not index_type:
                    raise ValueError(ErrorMessages.MISSING_PARAMETER.format("indexType", operation))
                data = await manager.compute_index(index_type, input, dataset_id, region, bands)
                message = SuccessMessages.INDEX.format(index_type, data["key"])

            elif operation == "clip":
                data = await manager.clip(input, region, dataset_id)
                message = SuccessMessages.CLIP.format(data["source"], region, data["key"])

            elif operation == "mask":
                if not mask_type:
                    raise ValueError(ErrorMessages.MISSING_PARAMETER.format("maskType", operation))
                data = await manager.apply_mask(mask_type, input, dataset_id, region)
                message = SuccessMessages.MASK.format(mask_type, data["source"], data["key"])

            elif operation == "analyze":
                data = await manager.analyze(input, dataset_id, region, scale)
                return format_response(
                    StatisticsResponse(
                        **data, message=SuccessMessages.ANALYZE.format(data["key"], scale)
                    ),
                    output_mode,
                )

            elif operation == "terrain":
                data = await manager.terrain(region)
                message = SuccessMessages.TERRAIN.format(", ".join(data["bands"]), data["key"])

            elif operation == "resample":
                data = await manager.resample(input, dataset_id, scale)
                message = SuccessMessages.RESAMPLE.format(data["source"], scale, data["key"])

            else:
                raise ValueError(
                    ErrorMessages.UNKNOWN_OPERATION.format(operation, ", ".join(PROCESS_OPERATIONS))
                )

            return format_response(
                ImageResultResponse(operation=operation, message=message, **data), output_mode
            )

        except CompositeNotFoundError as e:
            return format_response(NotFoundResponse.from_error(e), output_mode)
        except Exception as e:
            logger.error(f"earth_engine_process failed: {e}")
            return format_response(ErrorResponse(error=str(e)), output_mode)
