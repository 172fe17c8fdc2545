"""Tests for the crop, flood and deforestation models."""

from unittest.mock import AsyncMock

import pytest

from chuk_mcp_earthengine.constants import FLOOD_PALETTE, FLOOD_TYPES, FLOOD_WEIGHTS
from chuk_mcp_earthengine.core.geo_models import (
    alert_level,
    crop_region,
    flood_factor_scores,
    forest_change,
    risk_level,
    weighted_risk,
)

BBOX = "-95.8,29.5,-95.0,30.1"


class TestScoring:
    def test_factor_scores(self):
        stats = {"elevation": 20, "slope": 1, "precipitation": 600, "water": 10, "urban": 0.4}
        scores = flood_factor_scores(stats, 182)
        assert scores["elevation"] == pytest.approx(0.9)
        assert scores["slope"] == pytest.approx(0.9)
        assert scores["precipitation"] == pytest.approx(600 / 182 / 10)
        assert scores["water"] == pytest.approx(0.2)
        assert scores["urban"] == pytest.approx(0.4)

    def test_scores_are_clamped(self):
        stats = {"elevation": -30, "slope": 45, "precipitation": 100000, "water": 90, "urban": 1}
        scores = flood_factor_scores(stats, 30)
        assert scores == {"elevation": 1.0, "slope": 0.0, "precipitation": 1.0, "water": 1.0, "urban": 1.0}

    def test_missing_stats_score_zero(self):
        assert set(flood_factor_scores({}, 10).values()) == {0.0}

    def test_weights_sum_to_one(self):
        for flood_type in FLOOD_TYPES:
            assert sum(FLOOD_WEIGHTS[flood_type].values()) == pytest.approx(1.0)

    def test_weighted_risk(self):
        scores = {"elevation": 0.9, "slope": 0.9, "precipitation": 600 / 182 / 10, "water": 0.2, "urban": 0.4}
        assert weighted_risk(scores, "urban") == 0.5374

    @pytest.mark.parametrize(
        "score,level",
        [(0.75, "very high"), (0.7, "very high"), (0.5, "high"), (0.31, "moderate"), (0.1, "low")],
    )
    def test_risk_level(self, score, level):
        assert risk_level(score) == level

    @pytest.mark.parametrize(
        "percent,level", [(12, "critical"), (10, "critical"), (6, "high"), (1, "moderate"), (0.5, "low")]
    )
    def test_alert_level(self, percent, level):
        assert alert_level(percent) == level

    def test_forest_change(self):
        change = forest_change(1000, 900)
        assert change["loss_ha"] == 100.0
        assert change["loss_percent"] == 10.0
        assert change["carbon_loss_tonnes"] == 15000.0
        assert change["co2_tonnes"] == 55050.0

    def test_forest_gain_is_not_loss(self):
        change = forest_change(900, 1000)
        assert change["loss_ha"] == 0.0
        assert change["loss_percent"] == 0.0

    def test_no_baseline_forest(self):
        assert forest_change(0, 0)["loss_percent"] == 0.0


class TestCropRegion:
    def test_state_is_canonicalized(self):
        assert crop_region(" iowa ") == "Iowa"

    def test_bbox_passes_through(self):
        assert crop_region(BBOX) == BBOX

    def test_unsupported(self):
        with pytest.raises(ValueError, match="Unsupported region 'Ohio'"):
            crop_region("Ohio")

    def test_missing(self):
        with pytest.raises(ValueError, match="region"):
            crop_region(None)


class TestCropClassification:
    async def test_validation(self, models):
        with pytest.raises(ValueError, match="Unknown operation"):
            await models.crop_classification("predict", "Iowa")
        with pytest.raises(ValueError, match="Invalid classifier"):
            await models.crop_classification("classify", "Iowa", classifier="xgboost")
        with pytest.raises(ValueError, match="numberOfTrees"):
            await models.crop_classification("classify", "Iowa", number_of_trees=5)
        with pytest.raises(ValueError, match="cloudCoverMax"):
            await models.crop_classification("classify", "Iowa", cloud_cover_max=150)
        with pytest.raises(ValueError, match="must be before"):
            await models.crop_classification(
                "classify", "Iowa", start_date="2024-07-01", end_date="2024-01-01"
            )

    async def test_evaluate(self, models, mock_client, mock_ee):
        mock_client.get_info = AsyncMock(
            return_value={"accuracy": 0.82, "kappa": 0.7, "matrix": [[3, 1], [0, 4]], "classes": 2}
        )
        result = await models.crop_classification(
            "evaluate", BBOX, start_date="2024-01-01", end_date="2024-07-01"
        )
        assert result["accuracy"] == 0.82
        assert result["confusion_matrix"] == [[3, 1], [0, 4]]
        assert result["class_count"] == 2
        assert "key" not in result
        assert result["feature_bands"][-4:] == ["NDVI", "EVI", "SAVI", "NDWI"]
        mock_ee.Classifier.smileRandomForest.assert_called_once_with(50)

    async def test_train_stores_model(self, models, manager, mock_client, mock_ee):
        mock_client.get_info = AsyncMock(return_value=5)
        result = await models.crop_classification(
            "train",
            BBOX,
            start_date="2024-01-01",
            end_date="2024-07-01",
            classifier="cart",
            include_indices=False,
        )
        assert result["class_count"] == 5
        assert result["key"].startswith("crop_model_")
        assert manager.cache.get_metadata(result["key"]).kind == "model"
        mock_ee.Classifier.smileCart.assert_called_once_with()

    async def test_classify_stores_classification(self, models, manager, mock_client, mock_ee):
        mock_client.get_info = AsyncMock(return_value={"accuracy": 0.9, "kappa": 0.8, "classes": 3})
        result = await models.crop_classification(
            "classify", BBOX, start_date="2024-01-01", end_date="2024-07-01"
        )
        entry = manager.cache.get_metadata(result["key"])
        assert entry.kind == "classification"
        assert entry.bands == ["classification"]


class TestFloodRisk:
    async def test_run(self, models, manager, mock_client, mock_ee):
        mock_client.get_info = AsyncMock(
            return_value={
                "factors": {
                    "elevation": 20,
                    "slope": 1,
                    "precipitation": 600,
                    "water": 10,
                    "urban": 0.4,
                },
                "ndwi": {"early": 0.1, "late": 0.25},
            }
        )
        result = await models.flood_risk(
            region=BBOX, start_date="2024-01-01", end_date="2024-07-01"
        )
        assert result["risk_score"] == 0.5374
        assert result["risk_level"] == "high"
        assert result["flood_type"] == "urban"
        assert result["water_change"] == {"ndwi_start": 0.1, "ndwi_end": 0.25, "change": 0.15}
        mock_client.get_info.assert_awaited_once()

        entry = manager.cache.get_metadata(result["key"])
        assert entry.vis_params["palette"] == FLOOD_PALETTE
        assert entry.date_range.start == "2024-01-01"

    async def test_without_water_change(self, models, mock_client, mock_ee):
        mock_client.get_info = AsyncMock(return_value={"factors": {}})
        result = await models.flood_risk(
            region=BBOX,
            start_date="2024-01-01",
            end_date="2024-07-01",
            flood_type="coastal",
            analyze_water_change=False,
        )
        assert result["water_change"] is None
        assert result["risk_score"] == 0.0
        assert result["risk_level"] == "low"

    async def test_invalid_type(self, models):
        with pytest.raises(ValueError, match="Invalid flood type"):
            await models.flood_risk(flood_type="tsunami")

    async def test_invalid_scale(self, models):
        with pytest.raises(ValueError, match="scale must be > 0"):
            await models.flood_risk(scale=-5)


class TestDeforestation:
    async def test_run(self, models, manager, mock_client, mock_ee):
        mock_client.get_info = AsyncMock(return_value={"baseline": 1000, "current": 900})
        result = await models.deforestation(
            region="-62,-4,-60,-2",
            baseline_start="2024-01-01",
            baseline_end="2024-04-01",
            current_start="2024-06-01",
            current_end="2024-07-01",
        )
        assert result["loss_ha"] == 100.0
        assert result["loss_percent"] == 10.0
        assert result["alert_level"] == "critical"
        assert result["carbon_loss_tonnes"] == 15000.0
        assert result["co2_tonnes"] == 55050.0
        assert result["baseline_period"] == ["2024-01-01", "2024-04-01"]
        assert manager.cache.get_metadata(result["key"]).bands == ["forest_loss"]

    async def test_empty_region(self, models, mock_client, mock_ee):
        mock_client.get_info = AsyncMock(return_value={})
        result = await models.deforestation(
            region="-62,-4,-60,-2",
            baseline_start="2024-01-01",
            baseline_end="2024-04-01",
            current_start="2024-06-01",
            current_end="2024-07-01",
        )
        assert result["loss_percent"] == 0.0
        assert result["alert_level"] == "low"

    async def test_bad_period(self, models):
        with pytest.raises(ValueError, match="must be before"):
            await models.deforestation(current_start="2024-07-01", current_end="2024-06-01")
