"""Tests for chuk_mcp_earthengine.tools.data.api.

Covers every earth_engine_data operation in JSON and text modes, plus
error handling.
"""

import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from chuk_mcp_earthengine.constants import DEFAULT_DATASET, DEFAULT_END_DATE, DEFAULT_START_DATE
from chuk_mcp_earthengine.tools.data.api import register_data_tools

SEARCH_RESULT = [
    {
        "id": "COPERNICUS/S2_SR_HARMONIZED",
        "name": "Sentinel-2 MSI Surface Reflectance (Harmonized)",
        "type": "ImageCollection",
        "resolution_m": 10,
        "temporal": "2017-present",
        "bands": ["B2", "B3", "B4", "B8"],
        "llm_guidance": "Default optical dataset.",
    }
]


# ── Fixtures ───────────────────────────────────────────────────────


@pytest.fixture
def data_tool(mock_manager):
    tools = {}
    mcp = MagicMock()

    def capture_tool(**kwargs):
        def decorator(fn):
            tools[fn.__name__] = fn
            return fn

        return decorator

    mcp.tool = capture_tool
    register_data_tools(mcp, mock_manager)
    return tools["earth_engine_data"]


# ── Tests ──────────────────────────────────────────────────────────


class TestSearch:
    async def test_json(self, data_tool, mock_manager):
        mock_manager.search_datasets.return_value = SEARCH_RESULT
        result = json.loads(await data_tool(operation="search", query="sentinel"))
        assert result["operation"] == "search"
        assert result["count"] == 1
        assert result["datasets"][0]["id"] == "COPERNICUS/S2_SR_HARMONIZED"
        assert "sentinel" in result["message"]
        mock_manager.search_datasets.assert_called_once_with("sentinel", 10)

    async def test_text(self, data_tool, mock_manager):
        mock_manager.search_datasets.return_value = SEARCH_RESULT
        text = await data_tool(operation="search", query="sentinel", output_mode="text")
        assert "COPERNICUS/S2_SR_HARMONIZED" in text
        assert "10m" in text

    async def test_missing_query_searches_everything(self, data_tool, mock_manager):
        mock_manager.search_datasets.return_value = []
        result = json.loads(await data_tool(operation="search"))
        assert result["query"] == ""
        assert result["count"] == 0


class TestFilter:
    async def test_defaults(self, data_tool, mock_manager):
        mock_manager.filter_collection = AsyncMock(
            return_value={
                "dataset_id": DEFAULT_DATASET,
                "start_date": DEFAULT_START_DATE,
                "end_date": DEFAULT_END_DATE,
                "region": None,
                "image_count": 3,
                "image_ids": ["a", "b", "c"],
                "composite_key": "filtered_1",
            }
        )
        result = json.loads(await data_tool(operation="filter"))
        assert result["image_count"] == 3
        assert result["composite_key"] == "filtered_1"
        mock_manager.filter_collection.assert_awaited_once_with(
            DEFAULT_DATASET, DEFAULT_START_DATE, DEFAULT_END_DATE, None, 10, 20.0
        )

    async def test_bad_dates_become_error(self, data_tool, mock_manager):
        mock_manager.filter_collection = AsyncMock(
            side_effect=ValueError("Start date 2024-07-01 must be before end date 2024-06-01")
        )
        result = json.loads(
            await data_tool(operation="filter", start_date="2024-07-01", end_date="2024-06-01")
        )
        assert "must be before" in result["error"]


class TestGeometry:
    async def test_place_name(self, data_tool, mock_manager):
        mock_manager.get_geometry = AsyncMock(
            return_value={
                "place_name": "Iowa",
                "source": "TIGER/2016/States",
                "bbox": [-96.6, 40.4, -90.1, 43.5],
                "centroid": [-93.5, 42.0],
                "area_km2": 145746.0,
            }
        )
        result = json.loads(await data_tool(operation="geometry", place_name="Iowa"))
        assert result["source"] == "TIGER/2016/States"
        assert result["area_km2"] == 145746.0

    async def test_region_used_as_place(self, data_tool, mock_manager):
        mock_manager.get_geometry = AsyncMock(
            return_value={
                "place_name": "Iowa",
                "source": "TIGER/2016/States",
                "bbox": [-96.6, 40.4, -90.1, 43.5],
                "centroid": [-93.5, 42.0],
                "area_km2": 1.0,
            }
        )
        text = await data_tool(operation="geometry", region="Iowa", output_mode="text")
        assert "Centroid" in text
        mock_manager.get_geometry.assert_awaited_once_with("Iowa")

    async def test_missing_place(self, data_tool):
        result = json.loads(await data_tool(operation="geometry"))
        assert "placeName" in result["error"]


class TestInfo:
    async def test_info(self, data_tool, mock_manager):
        mock_manager.get_asset_info = AsyncMock(
            return_value={
                "dataset_id": "USGS/SRTMGL1_003",
                "asset_type": "IMAGE",
                "bands": ["elevation"],
                "properties": {},
                "catalog": None,
            }
        )
        result = json.loads(await data_tool(operation="info", dataset_id="USGS/SRTMGL1_003"))
        assert result["asset_type"] == "IMAGE"
        assert result["bands"] == ["elevation"]

    async def test_requires_dataset(self, data_tool):
        result = json.loads(await data_tool(operation="info"))
        assert "datasetId" in result["error"]


class TestBoundaries:
    async def test_boundaries(self, data_tool, mock_manager):
        mock_manager.list_boundaries.return_value = [
            {"id": "TIGER/2016/States", "name": "US States", "name_property": "NAME"}
        ]
        result = json.loads(await data_tool(operation="boundaries"))
        assert result["datasets"][0]["name_property"] == "NAME"


class TestErrors:
    async def test_unknown_operation(self, data_tool):
        result = json.loads(await data_tool(operation="teleport"))
        assert "Unknown operation: teleport" in result["error"]

    async def test_unknown_operation_text(self, data_tool):
        text = await data_tool(operation="teleport", output_mode="text")
        assert text.startswith("Error:")

    async def test_manager_failure(self, data_tool, mock_manager):
        mock_manager.get_asset_info = AsyncMock(side_effect=RuntimeError("EE quota exceeded"))
        result = json.loads(await data_tool(operation="info", dataset_id="X/Y"))
        assert result == {"error": "EE quota exceeded"}
