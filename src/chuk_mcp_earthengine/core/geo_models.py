"""
Geospatial models: crop classification, flood risk and deforestation.

Each model composes Earth Engine imagery into factor images, reduces them
over the region in a single getInfo() round trip, and turns the numbers
into scores here so the scoring rules run without Earth Engine.
"""

import logging
from datetime import date, timedelta
from typing import Any

import ee

from ..constants import (
    ALERT_LEVELS,
    BASELINE_WINDOW_DAYS,
    CARBON_TONNES_PER_HA,
    CLASSIFIERS,
    CO2_PER_CARBON,
    CROP_BANDS,
    CROP_INDEX_BANDS,
    CROP_LABEL_BAND,
    CROP_LABEL_DATASET,
    CROP_OPERATIONS,
    CROP_PALETTE,
    CROP_SAMPLE_POINTS,
    CROP_STATES,
    CROP_TRAIN_FRACTION,
    CURRENT_WINDOW_DAYS,
    DEFAULT_CLASSIFIER,
    DEFAULT_CLOUD_COVER,
    DEFAULT_DATASET,
    DEFAULT_FLOOD_REGION,
    DEFAULT_FLOOD_SCALE,
    DEFAULT_FLOOD_TYPE,
    DEFAULT_FOREST_REGION,
    DEFAULT_FOREST_SCALE,
    DEFAULT_NUMBER_OF_TREES,
    DEFAULT_PROCESS_SCALE,
    FLOOD_DAILY_PRECIP_REF_MM,
    FLOOD_ELEVATION_REF_M,
    FLOOD_PALETTE,
    FLOOD_SLOPE_REF_DEG,
    FLOOD_TYPES,
    FLOOD_WATER_REF_PERCENT,
    FLOOD_WEIGHTS,
    FOREST_NDVI_THRESHOLD,
    LANDSAT_CLOUD_PROPERTY,
    LOSS_NDVI_THRESHOLD,
    LOSS_PALETTE,
    MAX_PIXELS,
    MAX_TREES,
    MIN_TREES,
    MODEL_WINDOW_DAYS,
    PRECIPITATION_DATASET,
    RISK_LEVELS,
    S2_CLOUD_PROPERTY,
    SPECTRAL_INDICES,
    SRTM_DATASET,
    URBAN_CLASS,
    URBAN_DATASET,
    WATER_OCCURRENCE_DATASET,
    EntryKind,
    ErrorMessages,
)
from .ee_manager import EarthEngineManager, mask_and_scale_s2, validate_date_range
from .map_service import MapService
from .regions import parse_bbox, resolve_region
from .visualization import DatasetFamily, resolve_family

logger = logging.getLogger(__name__)


def days_ago(days: int) -> str:
    return (date.today() - timedelta(days=days)).isoformat()


def _clamp(value: float) -> float:
    return max(0.0, min(1.0, value))


def flood_factor_scores(stats: dict, days: int) -> dict[str, float]:
    """Normalize regional means to 0-1 scores where 1 means more flood-prone.

    Missing statistics (no pixels) score 0.
    """
    elevation = stats.get("elevation")
    slope = stats.get("slope")
    precipitation = stats.get("precipitation")
    water = stats.get("water")
    urban = stats.get("urban")
    return {
        "elevation": 0.0 if elevation is None else _clamp(1 - elevation / FLOOD_ELEVATION_REF_M),
        "slope": 0.0 if slope is None else _clamp(1 - slope / FLOOD_SLOPE_REF_DEG),
        "precipitation": 0.0
        if precipitation is None
        else _clamp(precipitation / max(days, 1) / FLOOD_DAILY_PRECIP_REF_MM),
        "water": 0.0 if water is None else _clamp(water / FLOOD_WATER_REF_PERCENT),
        "urban": 0.0 if urban is None else _clamp(urban),
    }


def weighted_risk(scores: dict[str, float], flood_type: str) -> float:
    weights = FLOOD_WEIGHTS[flood_type]
    return round(_clamp(sum(weights[name] * scores[name] for name in weights)), 4)


def risk_level(score: float) -> str:
    for threshold, level in RISK_LEVELS:
        if score >= threshold:
            return level
    return "low"


def alert_level(loss_percent: float) -> str:
    for threshold, level in ALERT_LEVELS:
        if loss_percent >= threshold:
            return level
    return "low"


def forest_change(baseline_ha: float, current_ha: float) -> dict[str, float]:
    """Net forest loss, its share of the baseline, and the carbon it held."""
    baseline_ha = max(baseline_ha or 0.0, 0.0)
    current_ha = max(current_ha or 0.0, 0.0)
    loss_ha = max(baseline_ha - current_ha, 0.0)
    loss_percent = loss_ha / baseline_ha * 100 if baseline_ha > 0 else 0.0
    carbon = loss_ha * CARBON_TONNES_PER_HA
    return {
        "baseline_forest_ha": round(baseline_ha, 2),
        "current_forest_ha": round(current_ha, 2),
        "loss_ha": round(loss_ha, 2),
        "loss_percent": round(loss_percent, 2),
        "carbon_loss_tonnes": round(carbon, 1),
        "co2_tonnes": round(carbon * CO2_PER_CARBON, 1),
    }


def crop_region(region: str | None) -> str:
    """Canonical state name, or the bbox string unchanged.

    Raises:
        ValueError: For anything else
    """
    if not region:
        raise ValueError(ErrorMessages.MISSING_PARAMETER.format("region", "crop_classification"))
    if parse_bbox(region) is not None:
        return region
    for state in CROP_STATES:
        if state.lower() == region.strip().lower():
            return state
    raise ValueError(ErrorMessages.UNSUPPORTED_CROP_REGION.format(region, ", ".join(CROP_STATES)))


def build_classifier(name: str, number_of_trees: int):
    if name == "randomForest":
        return ee.Classifier.smileRandomForest(number_of_trees)
    if name == "svm":
        return ee.Classifier.libsvm()
    if name == "cart":
        return ee.Classifier.smileCart()
    return ee.Classifier.smileNaiveBayes()


def index_band(image: Any, index_type: str, landsat: bool = False):
    """One spectral index from SPECTRAL_INDICES, renamed to its name."""
    spec = SPECTRAL_INDICES[index_type]
    mapping = spec["landsat"] if landsat else spec["bands"]
    if "expression" in spec:
        result = image.expression(
            spec["expression"], {name: image.select(band) for name, band in mapping.items()}
        )
    else:
        result = image.normalizedDifference(mapping)
    return result.rename(index_type)


class GeoModels:
    """Model runs behind the crop, flood and deforestation tools."""

    def __init__(self, manager: EarthEngineManager, maps: MapService) -> None:
        self.manager = manager
        self.client = manager.client
        self.maps = maps

    def _optical(self, dataset_id: str, start: str, end: str, geometry: Any, cloud_cover: float):
        """Cloud-filtered median of an optical collection over a region."""
        family = resolve_family(dataset_id=dataset_id)
        collection = ee.ImageCollection(dataset_id).filterDate(start, end).filterBounds(geometry)
        if family in (DatasetFamily.LANDSAT8, DatasetFamily.LANDSAT9):
            collection = collection.filter(ee.Filter.lt(LANDSAT_CLOUD_PROPERTY, cloud_cover))
        else:
            collection = collection.filter(ee.Filter.lt(S2_CLOUD_PROPERTY, cloud_cover)).map(
                mask_and_scale_s2
            )
        return collection.median().clip(geometry), family

    # ------------------------------------------------------------------
    # Crop classification
    # ------------------------------------------------------------------

    async def crop_classification(
        self,
        operation: str,
        region: str | None,
        start_date: str | None = None,
        end_date: str | None = None,
        classifier: str = DEFAULT_CLASSIFIER,
        number_of_trees: int = DEFAULT_NUMBER_OF_TREES,
        include_indices: bool = True,
        create_map: bool = False,
        scale: float = DEFAULT_PROCESS_SCALE,
        cloud_cover_max: float = DEFAULT_CLOUD_COVER,
    ) -> dict:
        """Train on USDA CDL labels and classify Sentinel-2 imagery.

        train stores the classifier; evaluate reports validation accuracy;
        classify stores the class image (plus accuracy); export also starts
        a GeoTIFF export of it.
        """
        if operation not in CROP_OPERATIONS:
            raise ValueError(
                ErrorMessages.UNKNOWN_OPERATION.format(operation, ", ".join(CROP_OPERATIONS))
            )
        region = crop_region(region)
        classifier = classifier or DEFAULT_CLASSIFIER
        if classifier not in CLASSIFIERS:
            raise ValueError(ErrorMessages.INVALID_CLASSIFIER.format(classifier, ", ".join(CLASSIFIERS)))
        number_of_trees = int(number_of_trees or DEFAULT_NUMBER_OF_TREES)
        if not MIN_TREES <= number_of_trees <= MAX_TREES:
            raise ValueError(ErrorMessages.INVALID_TREES.format(MIN_TREES, MAX_TREES, number_of_trees))
        scale = scale or DEFAULT_PROCESS_SCALE
        if scale <= 0:
            raise ValueError(ErrorMessages.INVALID_SCALE.format(scale))
        if not 0 <= cloud_cover_max <= 100:
            raise ValueError(ErrorMessages.INVALID_CLOUD_COVER.format(cloud_cover_max))
        end_date = end_date or date.today().isoformat()
        start_date = start_date or days_ago(MODEL_WINDOW_DAYS)
        validate_date_range(start_date, end_date)

        geometry, _ = await resolve_region(self.client, region)
        image, _ = self._optical(DEFAULT_DATASET, start_date, end_date, geometry, cloud_cover_max)
        image = image.select(CROP_BANDS)
        feature_bands = list(CROP_BANDS)
        if include_indices:
            for index_type in CROP_INDEX_BANDS:
                image = image.addBands(index_band(image, index_type))
            feature_bands += CROP_INDEX_BANDS

        # CDL for a year is published the following year
        label_year = int(end_date[:4]) - 1
        labels = (
            ee.ImageCollection(CROP_LABEL_DATASET)
            .filterDate(f"{label_year}-01-01", f"{label_year}-12-31")
            .first()
            .select(CROP_LABEL_BAND)
        )
        samples = (
            image.addBands(labels)
            .stratifiedSample(
                numPoints=CROP_SAMPLE_POINTS,
                classBand=CROP_LABEL_BAND,
                region=geometry,
                scale=scale,
                seed=0,
                geometries=False,
            )
            .randomColumn("random", 0)
        )
        training = samples.filter(ee.Filter.lt("random", CROP_TRAIN_FRACTION))
        validation = samples.filter(ee.Filter.gte("random", CROP_TRAIN_FRACTION))
        trained = build_classifier(classifier, number_of_trees).train(
            training, CROP_LABEL_BAND, feature_bands
        )

        result: dict[str, Any] = {
            "operation": operation,
            "region": region,
            "classifier": classifier,
            "start_date": start_date,
            "end_date": end_date,
            "feature_bands": feature_bands,
        }

        if operation == "train":
            result["class_count"] = await self.client.get_info(
                training.aggregate_count_distinct(CROP_LABEL_BAND)
            )
            result["key"] = self.manager.store_result(
                "crop_model",
                trained,
                kind=EntryKind.MODEL,
                dataset_id=DEFAULT_DATASET,
                region=region,
                start=start_date,
                end=end_date,
                bands=feature_bands,
            )
            return result

        matrix = validation.classify(trained).errorMatrix(CROP_LABEL_BAND, "classification")
        metrics = await self.client.get_info(
            ee.Dictionary(
                {
                    "accuracy": matrix.accuracy(),
                    "kappa": matrix.kappa(),
                    "matrix": matrix.array(),
                    "classes": training.aggregate_count_distinct(CROP_LABEL_BAND),
                }
            )
        )
        result["accuracy"] = metrics.get("accuracy")
        result["kappa"] = metrics.get("kappa")
        result["confusion_matrix"] = metrics.get("matrix")
        result["class_count"] = metrics.get("classes")
        if operation == "evaluate":
            return result

        classified = image.classify(trained).clip(geometry)
        key = self.manager.store_result(
            "crop_classification",
            classified,
            kind=EntryKind.CLASSIFICATION,
            dataset_id=CROP_LABEL_DATASET,
            region=region,
            start=start_date,
            end=end_date,
            bands=["classification"],
            vis_params={"bands": ["classification"], "min": 0, "max": 254, "palette": CROP_PALETTE},
        )
        result["key"] = key

        if operation == "export":
            export = await self.manager.start_export(input=key, region=region, scale=scale)
            result["task_id"] = export["task_id"]
        if create_map:
            created = await self.maps.create(input=key, region=region)
            result["map_url"] = created["url"]
        return result

    # ------------------------------------------------------------------
    # Flood risk
    # ------------------------------------------------------------------

    async def flood_risk(
        self,
        region: str | None = None,
        start_date: str | None = None,
        end_date: str | None = None,
        flood_type: str = DEFAULT_FLOOD_TYPE,
        analyze_water_change: bool = True,
        scale: float = DEFAULT_FLOOD_SCALE,
    ) -> dict:
        """Weighted flood risk from terrain, rainfall, surface water and built-up area."""
        region = region or DEFAULT_FLOOD_REGION
        flood_type = flood_type or DEFAULT_FLOOD_TYPE
        if flood_type not in FLOOD_TYPES:
            raise ValueError(ErrorMessages.INVALID_FLOOD_TYPE.format(flood_type, ", ".join(FLOOD_TYPES)))
        scale = scale or DEFAULT_FLOOD_SCALE
        if scale <= 0:
            raise ValueError(ErrorMessages.INVALID_SCALE.format(scale))
        end_date = end_date or date.today().isoformat()
        start_date = start_date or days_ago(MODEL_WINDOW_DAYS)
        validate_date_range(start_date, end_date)
        days = (date.fromisoformat(end_date) - date.fromisoformat(start_date)).days

        geometry, _ = await resolve_region(self.client, region)
        elevation = ee.Image(SRTM_DATASET).select("elevation")
        slope = ee.Terrain.slope(elevation)
        precipitation = (
            ee.ImageCollection(PRECIPITATION_DATASET)
            .filterDate(start_date, end_date)
            .select("precipitation")
            .sum()
        )
        water = ee.Image(WATER_OCCURRENCE_DATASET).select("occurrence").unmask(0)
        urban = ee.ImageCollection(URBAN_DATASET).first().select("Map").eq(URBAN_CLASS)
        factors = (
            elevation.rename("elevation")
            .addBands(slope.rename("slope"))
            .addBands(precipitation.rename("precipitation"))
            .addBands(water.rename("water"))
            .addBands(urban.rename("urban"))
        )

        reductions: dict[str, Any] = {
            "factors": factors.reduceRegion(
                reducer=ee.Reducer.mean(),
                geometry=geometry,
                scale=scale,
                bestEffort=True,
                maxPixels=MAX_PIXELS,
            )
        }
        if analyze_water_change:
            midpoint = (date.fromisoformat(start_date) + timedelta(days=days // 2)).isoformat()
            early, _ = self._optical(DEFAULT_DATASET, start_date, midpoint, geometry, DEFAULT_CLOUD_COVER)
            late, _ = self._optical(DEFAULT_DATASET, midpoint, end_date, geometry, DEFAULT_CLOUD_COVER)
            ndwi = index_band(early, "NDWI").rename("early").addBands(
                index_band(late, "NDWI").rename("late")
            )
            reductions["ndwi"] = ndwi.reduceRegion(
                reducer=ee.Reducer.mean(),
                geometry=geometry,
                scale=scale,
                bestEffort=True,
                maxPixels=MAX_PIXELS,
            )
        values = await self.client.get_info(ee.Dictionary(reductions))
        stats = values.get("factors") or {}

        scores = flood_factor_scores(stats, days)
        score = weighted_risk(scores, flood_type)
        weights = FLOOD_WEIGHTS[flood_type]
        risk_image = (
            elevation.multiply(-1 / FLOOD_ELEVATION_REF_M).add(1).clamp(0, 1).multiply(weights["elevation"])
            .add(slope.multiply(-1 / FLOOD_SLOPE_REF_DEG).add(1).clamp(0, 1).multiply(weights["slope"]))
            .add(
                precipitation.divide(max(days, 1) * FLOOD_DAILY_PRECIP_REF_MM)
                .clamp(0, 1)
                .multiply(weights["precipitation"])
            )
            .add(water.divide(FLOOD_WATER_REF_PERCENT).clamp(0, 1).multiply(weights["water"]))
            .add(urban.multiply(weights["urban"]))
            .rename("flood_risk")
            .clip(geometry)
        )
        key = self.manager.store_result(
            "flood_risk",
            risk_image,
            kind=EntryKind.MODEL,
            region=region,
            start=start_date,
            end=end_date,
            bands=["flood_risk"],
            vis_params={"bands": ["flood_risk"], "min": 0, "max": 1, "palette": FLOOD_PALETTE},
        )

        water_change = None
        if analyze_water_change:
            ndwi_stats = values.get("ndwi") or {}
            early_mean, late_mean = ndwi_stats.get("early"), ndwi_stats.get("late")
            change = None
            if early_mean is not None and late_mean is not None:
                change = round(late_mean - early_mean, 4)
            water_change = {"ndwi_start": early_mean, "ndwi_end": late_mean, "change": change}

        logger.info(f"Flood risk for {region} ({flood_type}): {score:.2f}")
        return {
            "region": region,
            "flood_type": flood_type,
            "start_date": start_date,
            "end_date": end_date,
            "risk_score": score,
            "risk_level": risk_level(score),
            "factors": scores,
            "statistics": stats,
            "water_change": water_change,
            "key": key,
        }

    # ------------------------------------------------------------------
    # Deforestation
    # ------------------------------------------------------------------

    async def deforestation(
        self,
        region: str | None = None,
        baseline_start: str | None = None,
        baseline_end: str | None = None,
        current_start: str | None = None,
        current_end: str | None = None,
        scale: float = DEFAULT_FOREST_SCALE,
        dataset: str | None = None,
    ) -> dict:
        """Forest cover (NDVI above threshold) in a baseline and a current period."""
        region = region or DEFAULT_FOREST_REGION
        dataset = dataset or DEFAULT_DATASET
        scale = scale or DEFAULT_FOREST_SCALE
        if scale <= 0:
            raise ValueError(ErrorMessages.INVALID_SCALE.format(scale))
        baseline_start = baseline_start or days_ago(BASELINE_WINDOW_DAYS[0])
        baseline_end = baseline_end or days_ago(BASELINE_WINDOW_DAYS[1])
        current_start = current_start or days_ago(CURRENT_WINDOW_DAYS[0])
        current_end = current_end or days_ago(CURRENT_WINDOW_DAYS[1])
        validate_date_range(baseline_start, baseline_end)
        validate_date_range(current_start, current_end)

        geometry, _ = await resolve_region(self.client, region)
        baseline, family = self._optical(dataset, baseline_start, baseline_end, geometry, DEFAULT_CLOUD_COVER)
        current, _ = self._optical(dataset, current_start, current_end, geometry, DEFAULT_CLOUD_COVER)
        landsat = family in (DatasetFamily.LANDSAT8, DatasetFamily.LANDSAT9)
        ndvi_baseline = index_band(baseline, "NDVI", landsat)
        ndvi_current = index_band(current, "NDVI", landsat)

        forest_baseline = ndvi_baseline.gt(FOREST_NDVI_THRESHOLD)
        forest_current = ndvi_current.gt(FOREST_NDVI_THRESHOLD)
        loss = forest_baseline.And(ndvi_current.lt(LOSS_NDVI_THRESHOLD)).rename("forest_loss")

        hectares = ee.Image.pixelArea().divide(10000)
        areas = (
            forest_baseline.multiply(hectares).rename("baseline")
            .addBands(forest_current.multiply(hectares).rename("current"))
        )
        sums = await self.client.get_info(
            areas.reduceRegion(
                reducer=ee.Reducer.sum(),
                geometry=geometry,
                scale=scale,
                bestEffort=True,
                maxPixels=MAX_PIXELS,
            )
        )
        change = forest_change(sums.get("baseline") or 0.0, sums.get("current") or 0.0)

        key = self.manager.store_result(
            "forest_loss",
            loss.selfMask().clip(geometry),
            kind=EntryKind.MODEL,
            dataset_id=dataset,
            region=region,
            start=current_start,
            end=current_end,
            bands=["forest_loss"],
            vis_params={"bands": ["forest_loss"], "min": 0, "max": 1, "palette": LOSS_PALETTE},
        )
        level = alert_level(change["loss_percent"])
        logger.info(f"Forest loss in {region}: {change['loss_percent']:.2f}% ({level})")
        return {
            "region": region,
            "dataset": dataset,
            "baseline_period": [baseline_start, baseline_end],
            "current_period": [current_start, current_end],
            **change,
            "alert_level": level,
            "key": key,
        }
