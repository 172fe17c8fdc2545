"""
Geospatial model tools: crop classification, flood risk assessment and
deforestation detection.
"""

import logging

from ...constants import (
    DEFAULT_CLASSIFIER,
    DEFAULT_CLOUD_COVER,
    DEFAULT_FLOOD_SCALE,
    DEFAULT_FLOOD_TYPE,
    DEFAULT_FOREST_SCALE,
    DEFAULT_NUMBER_OF_TREES,
    DEFAULT_PROCESS_SCALE,
    SuccessMessages,
)
from ...models.responses import (
    CropClassificationResponse,
    DeforestationResponse,
    ErrorResponse,
    FloodRiskResponse,
    format_response,
)

logger = logging.getLogger(__name__)


def _crop_message(data: dict) -> str:
    operation = data["operation"]
    if operation == "train":
        return SuccessMessages.CROP_TRAIN.format(data["classifier"], data["region"])
    if operation == "evaluate":
        return SuccessMessages.CROP_EVALUATE.format(
            data.get("accuracy") or 0.0, data.get("kappa") or 0.0, data["region"]
        )
    if operation == "export":
        return SuccessMessages.CROP_EXPORT.format(data.get("task_id"), data["region"])
    return SuccessMessages.CROP_CLASSIFY.format(
        data["region"], data["classifier"], data.get("class_count") or 0
    )


def register_model_tools(mcp, models):
    """Register the crop, flood and deforestation tools with the MCP server."""

    @mcp.tool()
    async def crop_classification(
        operation: str,
        region: str,
        start_date: str | None = None,
        end_date: str | None = None,
        classifier: str = DEFAULT_CLASSIFIER,
        number_of_trees: int = DEFAULT_NUMBER_OF_TREES,
        include_indices: bool = True,
        create_map: bool = False,
        scale: float = DEFAULT_PROCESS_SCALE,
        cloud_cover_max: float = DEFAULT_CLOUD_COVER,
        output_mode: str = "json",
    ) -> str:
        """Machine learning crop and land cover classification using satellite imagery. Supports Iowa, California, Texas, Kansas, Nebraska, Illinois.

        Args:
            operation: classify, train, evaluate or export
            region: US state name or "west,south,east,north"
            start_date: Imagery start date YYYY-MM-DD (default 6 months ago)
            end_date: Imagery end date YYYY-MM-DD (default today)
            classifier: randomForest, svm, cart or naiveBayes
            number_of_trees: Trees for randomForest (10-500, default 50)
            include_indices: Add NDVI, EVI, SAVI and NDWI as features
            create_map: Also create an interactive map of the result
            scale: Sampling scale in metres (default 30)
            cloud_cover_max: Scene cloud cover ceiling (0-100, default 20)
            output_mode: "json" for structured data, "text" for human-readable summary

        Returns:
            Classification key and accuracy metrics, or an error
        """
        try:
            data = await models.crop_classification(
                operation,
                region,
                start_date=start_date,
                end_date=end_date,
                classifier=classifier,
                number_of_trees=number_of_trees,
                include_indices=include_indices,
                create_map=create_map,
                scale=scale,
                cloud_cover_max=cloud_cover_max,
            )
            return format_response(
                CropClassificationResponse(**data, message=_crop_message(data)), output_mode
            )

        except Exception as e:
            logger.error(f"crop_classification failed: {e}")
            return format_response(ErrorResponse(error=str(e)), output_mode)

    @mcp.tool()
    async def flood_risk_assessment(
        region: str | None = None,
        start_date: str | None = None,
        end_date: str | None = None,
        flood_type: str = DEFAULT_FLOOD_TYPE,
        analyze_water_change: bool = True,
        scale: float = DEFAULT_FLOOD_SCALE,
        output_mode: str = "json",
    ) -> str:
        """Analyze flood risk factors including terrain, precipitation, water indices, and urban development. Supports urban, coastal, riverine, and snowmelt flood analysis.

        Args:
            region: Area to analyze, e.g. Houston, Miami, New Orleans (default Houston)
            start_date: Analysis start date YYYY-MM-DD (default 6 months ago)
            end_date: Analysis end date YYYY-MM-DD (default today)
            flood_type: urban, coastal, riverine or snowmelt (default urban)
            analyze_water_change: Compare NDWI between the two halves of the period
            scale: Analysis scale in metres (default 100)
            output_mode: "json" for structured data, "text" for human-readable summary

        Returns:
            Risk score, level and factor breakdown, or an error
        """
        try:
            data = await models.flood_risk(
                region=region,
                start_date=start_date,
                end_date=end_date,
                flood_type=flood_type,
                analyze_water_change=analyze_water_change,
                scale=scale,
            )
            return format_response(
                FloodRiskResponse(
                    **data,
                    message=SuccessMessages.FLOOD.format(
                        data["region"], data["risk_level"], data["risk_score"]
                    ),
                ),
                output_mode,
            )

        except Exception as e:
            logger.error(f"flood_risk_assessment failed: {e}")
            return format_response(ErrorResponse(error=str(e)), output_mode)

    @mcp.tool()
    async def deforestation_detection(
        region: str | None = None,
        baseline_start: str | None = None,
        baseline_end: str | None = None,
        current_start: str | None = None,
        current_end: str | None = None,
        scale: float = DEFAULT_FOREST_SCALE,
        dataset: str | None = None,
        output_mode: str = "json",
    ) -> str:
        """Monitor forest loss and degradation by comparing baseline and current forest cover. Calculates deforestation percentage, estimates carbon loss, and generates alerts.

        Args:
            region: Forest area, e.g. Amazon, Congo Basin, Borneo (default Amazon)
            baseline_start: Baseline start YYYY-MM-DD (default 6 months ago)
            baseline_end: Baseline end YYYY-MM-DD (default 3 months ago)
            current_start: Current period start YYYY-MM-DD (default 1 month ago)
            current_end: Current period end YYYY-MM-DD (default today)
            scale: Analysis scale in metres (default 30)
            dataset: Imagery collection (default COPERNICUS/S2_SR_HARMONIZED)
            output_mode: "json" for structured data, "text" for human-readable summary

        Returns:
            Forest areas, loss, carbon estimate and alert level, or an error
        """
        try:
            data = await models.deforestation(
                region=region,
                baseline_start=baseline_start,
                baseline_end=baseline_end,
                current_start=current_start,
                current_end=current_end,
                scale=scale,
                dataset=dataset,
            )
            return format_response(
                DeforestationResponse(
                    **data,
                    message=SuccessMessages.DEFORESTATION.format(
                        data["region"], data["loss_percent"], data["alert_level"]
                    ),
                ),
                output_mode,
            )

        except Exception as e:
            logger.error(f"deforestation_detection failed: {e}")
            return format_response(ErrorResponse(error=str(e)), output_mode)
