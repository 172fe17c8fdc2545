"""Tests for the FastAPI HTTP transport."""

import json
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from chuk_mcp_earthengine.constants import JsonRpcError, ServerConfig
from chuk_mcp_earthengine.core.session_store import SessionStore
from chuk_mcp_earthengine.models.store import MapLayer, MapMetadata, MapSession
from chuk_mcp_earthengine.transport.http_app import create_app, sse_event, sse_stream
from chuk_mcp_earthengine.transport.registry import ToolRegistry

SESSION = MapSession(
    id="map_1700000000000_0a1b2c3d",
    input="composite_1",
    region="Iowa",
    tile_url="https://tiles/{z}/{x}/{y}",
    layers=[MapLayer(name="Default", tile_url="https://tiles/{z}/{x}/{y}")],
    created="2024-06-01T00:00:00+00:00",
    metadata=MapMetadata(center=[-93.0977, 41.878], zoom=7, basemap="satellite"),
)


# ── Fixtures ───────────────────────────────────────────────────────


@pytest.fixture
def registry():
    registry = ToolRegistry()

    @registry.tool()
    async def earth_engine_data(
        operation: str, dataset_id: str | None = None, output_mode: str = "json"
    ) -> str:
        if operation == "boom":
            raise RuntimeError("boom")
        return json.dumps({"operation": operation, "dataset_id": dataset_id})

    return registry


@pytest.fixture
def http_manager():
    manager = MagicMock()
    manager.store = SessionStore()
    manager.health = AsyncMock(
        return_value={"earth_engine": True, "project_id": "test-project", "store": {"connected": False}}
    )
    return manager


@pytest.fixture
def maps_mock():
    maps = MagicMock()
    maps.get = AsyncMock(side_effect=lambda map_id: SESSION if map_id == SESSION.id else None)
    return maps


@pytest.fixture
def client(registry, http_manager, maps_mock):
    app = create_app(registry, http_manager, maps_mock)
    with TestClient(app) as client:
        yield client


# ── JSON-RPC ───────────────────────────────────────────────────────


class TestRpc:
    @pytest.mark.parametrize("path", ["/mcp", "/api/mcp/sse-stream"])
    def test_initialize(self, client, path):
        response = client.post(path, json={"jsonrpc": "2.0", "id": 1, "method": "initialize"})
        assert response.status_code == 200
        assert response.json()["result"]["serverInfo"]["name"] == ServerConfig.MCP_SERVER_NAME

    def test_tools_call(self, client):
        response = client.post(
            "/mcp",
            json={
                "jsonrpc": "2.0",
                "id": 2,
                "method": "tools/call",
                "params": {"name": "earth_engine_data", "arguments": {"operation": "info"}},
            },
        )
        text = response.json()["result"]["content"][0]["text"]
        assert json.loads(text)["operation"] == "info"

    def test_notification_accepted(self, client):
        response = client.post("/mcp", json={"jsonrpc": "2.0", "method": "notifications/initialized"})
        assert response.status_code == 202
        assert response.content == b""

    def test_list_params_keep_the_envelope(self, client):
        response = client.post(
            "/mcp", json={"jsonrpc": "2.0", "id": 7, "method": "tools/call", "params": ["x"]}
        )
        assert response.status_code == 200
        assert response.json()["id"] == 7
        assert response.json()["error"]["code"] == JsonRpcError.INVALID_PARAMS

    def test_parse_error(self, client):
        response = client.post(
            "/mcp", content=b"{oops", headers={"Content-Type": "application/json"}
        )
        assert response.json()["error"]["code"] == JsonRpcError.PARSE_ERROR


# ── Consolidated route ─────────────────────────────────────────────


class TestConsolidated:
    def test_call(self, client):
        response = client.post(
            "/api/mcp/consolidated",
            json={"tool": "earth_engine_data", "arguments": {"operation": "info", "datasetId": "X/Y"}},
        )
        assert response.status_code == 200
        assert response.json() == {"operation": "info", "dataset_id": "X/Y"}

    def test_invalid_tool(self, client):
        response = client.post("/api/mcp/consolidated", json={"tool": "rm_rf", "arguments": {}})
        assert response.status_code == 400
        assert response.json()["error"]["message"].startswith("Invalid tool: rm_rf")

    def test_unregistered_tool(self, client):
        response = client.post("/api/mcp/consolidated", json={"tool": "earth_engine_map"})
        assert response.status_code == 400

    def test_missing_argument(self, client):
        response = client.post(
            "/api/mcp/consolidated", json={"tool": "earth_engine_data", "arguments": {}}
        )
        assert response.status_code == 400
        assert "operation" in response.json()["error"]["message"]

    def test_arguments_must_be_object(self, client):
        response = client.post(
            "/api/mcp/consolidated", json={"tool": "earth_engine_data", "arguments": ["info"]}
        )
        assert response.status_code == 400
        assert "arguments must be an object" in response.json()["error"]["message"]

    def test_tool_exception(self, client):
        response = client.post(
            "/api/mcp/consolidated",
            json={"tool": "earth_engine_data", "arguments": {"operation": "boom"}},
        )
        assert response.status_code == 500
        assert response.json() == {"error": {"message": "boom"}}

    def test_bad_json(self, client):
        response = client.post(
            "/api/mcp/consolidated", content=b"nope", headers={"Content-Type": "application/json"}
        )
        assert response.status_code == 400


# ── Health and maps ────────────────────────────────────────────────


class TestHealthAndMaps:
    def test_health(self, client):
        data = client.get("/api/health").json()
        assert data["status"] == "healthy"
        assert data["tools"] == ["earth_engine_data"]
        assert data["project_id"] == "test-project"

    def test_health_degraded(self, client, http_manager):
        http_manager.health.return_value = {"earth_engine": False, "store": {"connected": False}}
        assert client.get("/api/health").json()["status"] == "degraded"

    def test_map_found(self, client):
        data = client.get(f"/api/map/{SESSION.id}").json()
        assert data["region"] == "Iowa"
        assert data["metadata"]["zoom"] == 7
        assert data["layers"][0]["name"] == "Default"

    def test_map_missing(self, client):
        response = client.get("/api/map/map_missing")
        assert response.status_code == 404
        assert response.json() == {"error": "Map not found"}


# ── SSE ────────────────────────────────────────────────────────────


class TestSse:
    def test_event_format(self):
        assert sse_event("ping", {}) == "event: ping\ndata: {}\n\n"

    async def test_stream_connects_then_pings(self):
        stream = sse_stream(0)
        first = await stream.__anext__()
        second = await stream.__anext__()
        await stream.aclose()
        assert first == 'event: connected\ndata: {"status": "connected"}\n\n'
        assert second == "event: ping\ndata: {}\n\n"
