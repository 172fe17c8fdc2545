"""Tests for the tool registry and the JSON-RPC dispatcher."""

import inspect
import json
from unittest.mock import MagicMock

import pytest

from chuk_mcp_earthengine.constants import (
    ALL_TOOL_NAMES,
    TOOL_DEFINITIONS,
    JsonRpcError,
    ServerConfig,
)
from chuk_mcp_earthengine.transport.jsonrpc import JsonRpcDispatcher, is_tool_error
from chuk_mcp_earthengine.transport.registry import ToolRegistry, camel_case, snake_case

# ── Fixtures ───────────────────────────────────────────────────────


@pytest.fixture
def registry():
    registry = ToolRegistry()

    @registry.tool()
    async def earth_engine_data(
        operation: str, dataset_id: str | None = None, output_mode: str = "json"
    ) -> str:
        if operation == "fail":
            return json.dumps({"error": "Unknown operation: fail"})
        if operation == "boom":
            raise RuntimeError("boom")
        return json.dumps({"operation": operation, "dataset_id": dataset_id, "mode": output_mode})

    @registry.tool()
    async def flood_risk_assessment(region: str | None = None, output_mode: str = "json") -> str:
        return json.dumps({"region": region})

    return registry


@pytest.fixture
def dispatcher(registry):
    return JsonRpcDispatcher(registry)


def request(method, params=None, request_id=1):
    message = {"jsonrpc": "2.0", "id": request_id, "method": method}
    if params is not None:
        message["params"] = params
    return message


# ── Registry ───────────────────────────────────────────────────────


class TestRegistry:
    def test_snake_case(self):
        assert snake_case("datasetId") == "dataset_id"
        assert snake_case("cloudCoverMax") == "cloud_cover_max"
        assert snake_case("operation") == "operation"

    def test_names(self, registry):
        assert registry.names() == ["earth_engine_data", "flood_risk_assessment"]

    def test_resolve_alias(self, registry):
        assert registry.resolve("flood_risk_analysis") == "flood_risk_assessment"
        assert registry.resolve("earth_engine_data") == "earth_engine_data"
        assert registry.resolve("nope") is None

    def test_bind_camel_case(self, registry):
        bound = registry.bind_arguments(
            "earth_engine_data", {"operation": "info", "datasetId": "USGS/SRTMGL1_003"}
        )
        assert bound == {"operation": "info", "dataset_id": "USGS/SRTMGL1_003"}

    def test_bind_drops_unknown_and_output_mode(self, registry):
        bound = registry.bind_arguments(
            "earth_engine_data", {"operation": "info", "colour": "red", "outputMode": "text"}
        )
        assert bound == {"operation": "info"}

    def test_bind_missing_required(self, registry):
        with pytest.raises(TypeError, match="operation"):
            registry.bind_arguments("earth_engine_data", {})

    async def test_call_forces_json(self, registry):
        result = await registry.call("earth_engine_data", {"operation": "search"})
        assert result == {"operation": "search", "dataset_id": None, "mode": "json"}

    async def test_call_unknown(self, registry):
        with pytest.raises(KeyError):
            await registry.call("nope")

    def test_bind_rejects_non_object(self, registry):
        with pytest.raises(TypeError, match="arguments must be an object"):
            registry.bind_arguments("earth_engine_data", ["info"])


# ── Publishing on the MCP server ───────────────────────────────────


@pytest.fixture
def published(registry):
    mcp = MagicMock()
    names = registry.publish(mcp)
    handlers = {call.args[0].name: call.args[0] for call in mcp.add_tool.call_args_list}
    return names, handlers


def wire_schema(name):
    return next(d for d in TOOL_DEFINITIONS if d["name"] == name)


class TestPublish:
    def test_camel_case(self):
        assert camel_case("dataset_id") == "datasetId"
        assert camel_case("cloud_cover_max") == "cloudCoverMax"
        assert camel_case("operation") == "operation"

    def test_tools_and_aliases_published(self, published):
        names, handlers = published
        assert names == ["earth_engine_data", "flood_risk_assessment", "flood_risk_analysis"]
        assert set(handlers) == set(names)

    def test_schemas_are_the_wire_definitions(self, published):
        _, handlers = published
        for name in ("earth_engine_data", "flood_risk_assessment"):
            tool = handlers[name].to_mcp_format()
            definition = wire_schema(name)
            assert tool["inputSchema"] == definition["inputSchema"]
            assert tool["description"] == definition["description"]

    def test_alias_shares_target_schema(self, published):
        _, handlers = published
        alias = handlers["flood_risk_analysis"].to_mcp_format()
        assert alias["inputSchema"] == wire_schema("flood_risk_assessment")["inputSchema"]

    def test_wire_signature_names(self, registry):
        schema = wire_schema("earth_engine_data")["inputSchema"]
        params = registry.wire_signature("earth_engine_data", schema).parameters
        assert list(params)[: len(schema["properties"])] == list(schema["properties"])
        assert params["operation"].default is inspect.Parameter.empty
        assert params["datasetId"].default is None
        assert "output_mode" not in params
        assert "outputMode" not in params

    async def test_published_tool_takes_wire_arguments(self, published):
        _, handlers = published
        result = await handlers["earth_engine_data"].execute(
            {"operation": "info", "datasetId": "USGS/SRTMGL1_003"}
        )
        assert json.loads(result) == {
            "operation": "info",
            "dataset_id": "USGS/SRTMGL1_003",
            "mode": "json",
        }

    async def test_published_alias_calls_target(self, published):
        _, handlers = published
        result = await handlers["flood_risk_analysis"].execute({"region": "Miami"})
        assert json.loads(result) == {"region": "Miami"}


# ── Dispatcher ─────────────────────────────────────────────────────


class TestEnvelope:
    async def test_parse_error(self, dispatcher):
        response = await dispatcher.handle_raw(b"{not json")
        assert response["id"] is None
        assert response["error"]["code"] == JsonRpcError.PARSE_ERROR

    async def test_invalid_request(self, dispatcher):
        response = await dispatcher.handle_raw(json.dumps({"id": 4, "params": {}}))
        assert response["id"] == 4
        assert response["error"]["code"] == JsonRpcError.INVALID_REQUEST

    async def test_non_object(self, dispatcher):
        response = await dispatcher.handle([1, 2])
        assert response["error"]["code"] == JsonRpcError.INVALID_REQUEST

    async def test_notification_has_no_response(self, dispatcher):
        assert await dispatcher.handle({"jsonrpc": "2.0", "method": "notifications/initialized"}) is None

    async def test_unknown_method(self, dispatcher):
        response = await dispatcher.handle(request("sampling/createMessage"))
        assert response["error"]["code"] == JsonRpcError.METHOD_NOT_FOUND
        assert "sampling/createMessage" in response["error"]["message"]


class TestMethods:
    async def test_initialize(self, dispatcher):
        response = await dispatcher.handle(request("initialize", {"protocolVersion": "2024-11-05"}))
        assert response["jsonrpc"] == "2.0"
        assert response["id"] == 1
        result = response["result"]
        assert result["protocolVersion"] == ServerConfig.PROTOCOL_VERSION
        assert result["serverInfo"]["name"] == ServerConfig.MCP_SERVER_NAME
        assert set(result["capabilities"]) == {"tools", "prompts", "resources"}

    async def test_tools_list(self, dispatcher):
        response = await dispatcher.handle(request("tools/list", request_id="abc"))
        assert response["id"] == "abc"
        names = [t["name"] for t in response["result"]["tools"]]
        assert names == ALL_TOOL_NAMES
        assert all("inputSchema" in t for t in response["result"]["tools"])

    async def test_prompts_and_resources_empty(self, dispatcher):
        assert (await dispatcher.handle(request("prompts/list")))["result"] == {"prompts": []}
        assert (await dispatcher.handle(request("resources/list")))["result"] == {"resources": []}


class TestToolsCall:
    async def test_success(self, dispatcher):
        response = await dispatcher.handle(
            request(
                "tools/call",
                {"name": "earth_engine_data", "arguments": {"operation": "info", "datasetId": "X/Y"}},
            )
        )
        content = response["result"]["content"]
        assert content[0]["type"] == "text"
        assert json.loads(content[0]["text"])["dataset_id"] == "X/Y"

    async def test_alias(self, dispatcher):
        response = await dispatcher.handle(
            request("tools/call", {"name": "flood_risk_analysis", "arguments": {"region": "Miami"}})
        )
        assert json.loads(response["result"]["content"][0]["text"]) == {"region": "Miami"}

    async def test_unknown_tool(self, dispatcher):
        response = await dispatcher.handle(request("tools/call", {"name": "earth_engine_magic"}))
        assert response["error"]["code"] == JsonRpcError.METHOD_NOT_FOUND
        assert response["error"]["message"] == "Tool not found: earth_engine_magic"

    async def test_missing_name(self, dispatcher):
        response = await dispatcher.handle(request("tools/call", {}))
        assert response["error"]["code"] == JsonRpcError.METHOD_NOT_FOUND

    async def test_params_must_be_object(self, dispatcher):
        response = await dispatcher.handle(request("tools/call", ["earth_engine_data"], request_id=7))
        assert response["id"] == 7
        assert response["error"]["code"] == JsonRpcError.INVALID_PARAMS
        assert response["error"]["message"] == "Invalid params: params must be an object"

    async def test_arguments_must_be_object(self, dispatcher):
        response = await dispatcher.handle(
            request("tools/call", {"name": "earth_engine_data", "arguments": "operation=info"})
        )
        assert response["error"]["code"] == JsonRpcError.INVALID_PARAMS
        assert response["error"]["message"] == "Invalid params: arguments must be an object"

    async def test_null_arguments_treated_as_empty(self, dispatcher):
        response = await dispatcher.handle(
            request("tools/call", {"name": "flood_risk_assessment", "arguments": None})
        )
        assert json.loads(response["result"]["content"][0]["text"]) == {"region": None}

    async def test_missing_argument(self, dispatcher):
        response = await dispatcher.handle(request("tools/call", {"name": "earth_engine_data"}))
        assert response["error"]["code"] == JsonRpcError.INVALID_PARAMS

    async def test_tool_error_becomes_rpc_error(self, dispatcher):
        response = await dispatcher.handle(
            request("tools/call", {"name": "earth_engine_data", "arguments": {"operation": "fail"}})
        )
        assert response["error"]["code"] == JsonRpcError.INTERNAL_ERROR
        assert response["error"]["message"] == "Unknown operation: fail"

    async def test_tool_exception(self, dispatcher):
        response = await dispatcher.handle(
            request("tools/call", {"name": "earth_engine_data", "arguments": {"operation": "boom"}})
        )
        assert response["error"]["code"] == JsonRpcError.INTERNAL_ERROR
        assert response["error"]["message"] == "boom"

    def test_is_tool_error(self):
        assert is_tool_error({"error": "x"})
        assert not is_tool_error({"error": "x", "success": False})
        assert not is_tool_error([])
