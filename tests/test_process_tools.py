"""Tests for chuk_mcp_earthengine.tools.process.api."""

import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from chuk_mcp_earthengine.core.composite_cache import CompositeNotFoundError
from chuk_mcp_earthengine.tools.process.api import register_process_tools


def image_result(key, source="composite_1", bands=None, **details):
    return {
        "key": key,
        "source": source,
        "dataset_id": "COPERNICUS/S2_SR_HARMONIZED",
        "region": "Iowa",
        "bands": bands or ["B4", "B3", "B2"],
        "details": details,
    }


# ── Fixtures ───────────────────────────────────────────────────────


@pytest.fixture
def process_tool(mock_manager):
    tools = {}
    mcp = MagicMock()

    def capture_tool(**kwargs):
        def decorator(fn):
            tools[fn.__name__] = fn
            return fn

        return decorator

    mcp.tool = capture_tool
    register_process_tools(mcp, mock_manager)
    return tools["earth_engine_process"]


# ── Tests ──────────────────────────────────────────────────────────


class TestComposite:
    async def test_composite(self, process_tool, mock_manager):
        mock_manager.create_composite = AsyncMock(
            return_value=image_result("composite_1", source="COPERNICUS/S2_SR_HARMONIZED", images=9)
        )
        result = json.loads(
            await process_tool(operation="composite", region="Iowa", start_date="2024-06-01")
        )
        assert result["success"] is True
        assert result["operation"] == "composite"
        assert result["key"] == "composite_1"
        assert result["details"]["images"] == 9
        kwargs = mock_manager.create_composite.call_args.kwargs
        assert kwargs["region"] == "Iowa"
        assert kwargs["cloud_cover"] == 20.0

    async def test_input_used_as_dataset(self, process_tool, mock_manager):
        mock_manager.create_composite = AsyncMock(return_value=image_result("composite_2"))
        await process_tool(operation="composite", input="LANDSAT/LC08/C02/T1_L2")
        kwargs = mock_manager.create_composite.call_args.kwargs
        assert kwargs["dataset_id"] == "LANDSAT/LC08/C02/T1_L2"


class TestIndex:
    async def test_index(self, process_tool, mock_manager):
        mock_manager.compute_index = AsyncMock(return_value=image_result("ndvi_1", bands=["NDVI"]))
        result = json.loads(
            await process_tool(operation="index", input="composite_1", index_type="NDVI")
        )
        assert result["key"] == "ndvi_1"
        assert result["bands"] == ["NDVI"]
        assert "NDVI" in result["message"]

    async def test_index_type_required(self, process_tool):
        result = json.loads(await process_tool(operation="index", input="composite_1"))
        assert "indexType" in result["error"]

    async def test_text(self, process_tool, mock_manager):
        mock_manager.compute_index = AsyncMock(return_value=image_result("ndvi_1", bands=["NDVI"]))
        text = await process_tool(
            operation="index", input="composite_1", index_type="NDVI", output_mode="text"
        )
        assert "Key: ndvi_1" in text


class TestOtherOperations:
    async def test_clip(self, process_tool, mock_manager):
        mock_manager.clip = AsyncMock(return_value=image_result("clipped_1"))
        result = json.loads(await process_tool(operation="clip", input="composite_1", region="Iowa"))
        assert result["key"] == "clipped_1"
        mock_manager.clip.assert_awaited_once_with("composite_1", "Iowa", None)

    async def test_mask_requires_type(self, process_tool):
        result = json.loads(await process_tool(operation="mask", input="composite_1"))
        assert "maskType" in result["error"]

    async def test_mask(self, process_tool, mock_manager):
        mock_manager.apply_mask = AsyncMock(return_value=image_result("masked_1", mask="water"))
        result = json.loads(
            await process_tool(operation="mask", input="composite_1", mask_type="water")
        )
        assert result["details"]["mask"] == "water"

    async def test_analyze(self, process_tool, mock_manager):
        mock_manager.analyze = AsyncMock(
            return_value={
                "key": "ndvi_1",
                "region": "Iowa",
                "scale": 30,
                "statistics": {"NDVI_mean": 0.61},
            }
        )
        result = json.loads(await process_tool(operation="analyze", input="ndvi_1", region="Iowa"))
        assert result["operation"] == "analyze"
        assert result["statistics"]["NDVI_mean"] == 0.61
        assert "success" not in result

    async def test_terrain(self, process_tool, mock_manager):
        mock_manager.terrain = AsyncMock(
            return_value=image_result(
                "terrain_1", source="USGS/SRTMGL1_003", bands=["elevation", "slope"]
            )
        )
        result = json.loads(await process_tool(operation="terrain", region="Iowa"))
        assert "elevation, slope" in result["message"]

    async def test_resample(self, process_tool, mock_manager):
        mock_manager.resample = AsyncMock(return_value=image_result("resampled_1", scale=60))
        result = json.loads(
            await process_tool(operation="resample", input="composite_1", scale=60)
        )
        assert result["key"] == "resampled_1"
        mock_manager.resample.assert_awaited_once_with("composite_1", None, 60)


class TestErrors:
    async def test_unknown_key_is_not_found(self, process_tool, mock_manager):
        mock_manager.clip = AsyncMock(
            side_effect=CompositeNotFoundError("composite_9", ["composite_1"])
        )
        result = json.loads(await process_tool(operation="clip", input="composite_9", region="Iowa"))
        assert result["success"] is False
        assert result["key"] == "composite_9"
        assert result["available_keys"] == ["composite_1"]
        assert "composite_9" in result["error"]

    async def test_lost_handle(self, process_tool, mock_manager):
        mock_manager.analyze = AsyncMock(
            side_effect=CompositeNotFoundError("composite_1", [], handle_lost=True)
        )
        result = json.loads(await process_tool(operation="analyze", input="composite_1"))
        assert "after a restart" in result["error"]

    async def test_unknown_operation(self, process_tool):
        result = json.loads(await process_tool(operation="melt"))
        assert "Unknown operation: melt" in result["error"]

    async def test_manager_failure(self, process_tool, mock_manager):
        mock_manager.terrain = AsyncMock(side_effect=RuntimeError("Computation timed out"))
        result = json.loads(await process_tool(operation="terrain"))
        assert result == {"error": "Computation timed out"}
