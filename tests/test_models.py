"""
Tests for chuk-mcp-earthengine response and store models.

Covers:
- Valid creation
- extra="forbid" rejects unknown fields
- to_text() output contains expected strings
- format_response() in json/text modes
"""

import json

import pytest
from pydantic import ValidationError

from chuk_mcp_earthengine.core.composite_cache import CompositeNotFoundError
from chuk_mcp_earthengine.models.responses import (
    DatasetInfo,
    DatasetSearchResponse,
    DeforestationResponse,
    ErrorResponse,
    FloodRiskResponse,
    GeometryResponse,
    ImageResultResponse,
    MapCreateResponse,
    MapDeleteResponse,
    NotFoundResponse,
    StatisticsResponse,
    format_response,
)
from chuk_mcp_earthengine.models.store import CompositeEntry, DateRange, MapMetadata, MapSession

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _make_dataset_info(**overrides) -> DatasetInfo:
    defaults = dict(
        id="COPERNICUS/S2_SR_HARMONIZED",
        name="Sentinel-2 MSI Surface Reflectance (Harmonized)",
        type="ImageCollection",
        resolution_m=10,
        temporal="2017-present",
        bands=["B2", "B3", "B4", "B8"],
        llm_guidance="Default optical dataset.",
    )
    defaults.update(overrides)
    return DatasetInfo(**defaults)


def _make_flood(**overrides) -> FloodRiskResponse:
    defaults = dict(
        region="Houston",
        flood_type="urban",
        start_date="2024-01-01",
        end_date="2024-07-01",
        risk_score=0.5374,
        risk_level="high",
        factors={"elevation": 0.9, "urban": 0.4},
        statistics={"elevation": 20},
        key="flood_risk_1",
        message="Flood risk for Houston: high (0.54)",
    )
    defaults.update(overrides)
    return FloodRiskResponse(**defaults)


# ---------------------------------------------------------------------------
# format_response
# ---------------------------------------------------------------------------


class TestFormatResponse:
    def test_json(self):
        out = format_response(ErrorResponse(error="boom"))
        assert json.loads(out) == {"error": "boom"}

    def test_text(self):
        assert format_response(ErrorResponse(error="boom"), "text") == "Error: boom"

    def test_unknown_mode_is_json(self):
        assert json.loads(format_response(ErrorResponse(error="x"), "yaml")) == {"error": "x"}


# ---------------------------------------------------------------------------
# Error responses
# ---------------------------------------------------------------------------


class TestNotFound:
    def test_from_error(self):
        response = NotFoundResponse.from_error(
            CompositeNotFoundError("composite_9", ["composite_1", "ndvi_2"])
        )
        assert response.success is False
        assert response.key == "composite_9"
        assert response.message == "Key 'composite_9' not found. 2 key(s) available"
        assert "Available: composite_1, ndvi_2" in response.to_text()

    def test_no_keys_text(self):
        response = NotFoundResponse.from_error(CompositeNotFoundError("composite_9", []))
        assert "No keys available" in response.to_text()


# ---------------------------------------------------------------------------
# Tool responses
# ---------------------------------------------------------------------------


class TestDataResponses:
    def test_search_text(self):
        response = DatasetSearchResponse(
            query="sentinel", count=1, datasets=[_make_dataset_info()], message="1 match"
        )
        text = response.to_text()
        assert "COPERNICUS/S2_SR_HARMONIZED" in text
        assert "10m" in text

    def test_extra_forbidden(self):
        with pytest.raises(ValidationError):
            _make_dataset_info(color="red")

    def test_negative_count_rejected(self):
        with pytest.raises(ValidationError):
            DatasetSearchResponse(query="", count=-1, datasets=[], message="")

    def test_geometry_text(self):
        response = GeometryResponse(
            place_name="Iowa",
            source="TIGER/2016/States",
            bbox=[-96.6, 40.4, -90.1, 43.5],
            centroid=[-93.5, 42.0],
            area_km2=145746.0,
            message="Iowa",
        )
        assert "Centroid: (-93.5000, 42.0000)" in response.to_text()


class TestProcessResponses:
    def test_image_result_defaults(self):
        response = ImageResultResponse(
            operation="clip", key="clipped_1", source="composite_1", message="Clipped"
        )
        data = json.loads(format_response(response))
        assert data["success"] is True
        assert data["bands"] == []
        assert data["details"] == {}

    def test_statistics_text_sorted(self):
        response = StatisticsResponse(
            key="ndvi_1",
            scale=30,
            statistics={"NDVI_min": -0.1, "NDVI_max": 0.9},
            message="Statistics",
        )
        lines = response.to_text().splitlines()
        assert lines[1].strip().startswith("NDVI_max")


class TestMapResponses:
    def test_create_text_lists_skipped(self):
        response = MapCreateResponse(
            map_id="map_1",
            url="http://localhost:3000/map/map_1",
            tile_url="https://tiles/{z}/{x}/{y}",
            layers=[{"name": "Default", "tile_url": "https://tiles/{z}/{x}/{y}"}],
            skipped_layers=["Missing"],
            message="Interactive map created successfully",
            region="Iowa",
            center=[-93.1, 41.9],
            zoom=7,
            basemap="satellite",
            instructions="Open the URL",
            features=["Zoom"],
        )
        text = response.to_text()
        assert "Map: http://localhost:3000/map/map_1" in text
        assert "Skipped: Missing" in text

    def test_delete_error_text(self):
        response = MapDeleteResponse(success=False, error="Map not found", message="Could not delete")
        assert response.to_text() == "Could not delete (Map not found)"


class TestModelResponses:
    def test_flood_score_bounds(self):
        with pytest.raises(ValidationError):
            _make_flood(risk_score=1.5)

    def test_flood_text(self):
        assert "elevation: 0.90" in _make_flood().to_text()

    def test_deforestation_rejects_negative_loss(self):
        with pytest.raises(ValidationError):
            DeforestationResponse(
                region="Amazon",
                dataset="COPERNICUS/S2_SR_HARMONIZED",
                baseline_period=["2024-01-01", "2024-04-01"],
                current_period=["2024-06-01", "2024-07-01"],
                baseline_forest_ha=100,
                current_forest_ha=120,
                loss_ha=-20,
                loss_percent=0,
                carbon_loss_tonnes=0,
                co2_tonnes=0,
                alert_level="low",
                key="forest_loss_1",
                message="",
            )


# ---------------------------------------------------------------------------
# Store records
# ---------------------------------------------------------------------------


class TestStoreModels:
    def test_composite_entry_defaults(self):
        entry = CompositeEntry(key="composite_1", created="2024-06-01T00:00:00+00:00")
        assert entry.kind == "composite"
        assert entry.bands == []
        assert entry.date_range is None

    def test_invalid_kind(self):
        with pytest.raises(ValidationError):
            CompositeEntry(key="x", kind="raster", created="2024-06-01T00:00:00+00:00")

    def test_entry_round_trips_through_json(self):
        entry = CompositeEntry(
            key="composite_1",
            dataset_id="COPERNICUS/S2_SR_HARMONIZED",
            date_range=DateRange(start="2024-06-01", end="2024-08-31"),
            created="2024-06-01T00:00:00+00:00",
        )
        assert CompositeEntry.model_validate_json(entry.model_dump_json()) == entry

    def test_map_session_requires_metadata(self):
        with pytest.raises(ValidationError):
            MapSession(
                id="map_1",
                region="Iowa",
                tile_url="https://tiles/{z}/{x}/{y}",
                layers=[],
                created="2024-06-01T00:00:00+00:00",
            )

    def test_map_metadata(self):
        metadata = MapMetadata(center=[-93.1, 41.9], zoom=7, basemap="dark")
        assert metadata.model_dump() == {"center": [-93.1, 41.9], "zoom": 7, "basemap": "dark"}
