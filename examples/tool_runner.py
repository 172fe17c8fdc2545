"""
Shared helper for running chuk-mcp-earthengine MCP tools directly from Python.

Provides a ToolRunner class that wires the Earth Engine client, session
store and tool modules together without an MCP transport. Demo scripts
use this to call tools as plain async functions.

Usage:
    from tool_runner import ToolRunner

    async def main():
        runner = ToolRunner()
        result = await runner.run("earth_engine_data", operation="search", query="sentinel")
        print(result)
"""

from __future__ import annotations

import json
from typing import Any

from chuk_mcp_earthengine.core.composite_cache import CompositeCache
from chuk_mcp_earthengine.core.ee_client import EarthEngineClient
from chuk_mcp_earthengine.core.ee_manager import EarthEngineManager
from chuk_mcp_earthengine.core.geo_models import GeoModels
from chuk_mcp_earthengine.core.map_service import MapService
from chuk_mcp_earthengine.core.session_store import SessionStore
from chuk_mcp_earthengine.tools.data import register_data_tools
from chuk_mcp_earthengine.tools.export import register_export_tools
from chuk_mcp_earthengine.tools.map import register_map_tools
from chuk_mcp_earthengine.tools.models import register_model_tools
from chuk_mcp_earthengine.tools.process import register_process_tools
from chuk_mcp_earthengine.tools.system import register_system_tools
from chuk_mcp_earthengine.transport.registry import ToolRegistry


class ToolRunner:
    """
    Run chuk-mcp-earthengine MCP tools directly from Python.

    All 8 tools are registered and callable via run(tool_name, **kwargs).
    Returns parsed JSON by default. Use run_text() for human-readable
    output. The session store uses REDIS_URL when set, memory otherwise.
    """

    def __init__(self) -> None:
        self.registry = ToolRegistry()
        self.store = SessionStore.from_env()
        self.manager = EarthEngineManager(EarthEngineClient(), CompositeCache(self.store))
        self.maps = MapService(self.manager)
        self.models = GeoModels(self.manager, self.maps)
        register_data_tools(self.registry, self.manager)
        register_process_tools(self.registry, self.manager)
        register_export_tools(self.registry, self.manager)
        register_system_tools(self.registry, self.manager)
        register_map_tools(self.registry, self.maps)
        register_model_tools(self.registry, self.models)

    @property
    def tool_names(self) -> list[str]:
        return self.registry.names()

    async def run(self, tool_name: str, **kwargs: Any) -> dict[str, Any]:
        """Call a tool by name and return parsed JSON."""
        fn = self.registry.get_tool(tool_name)
        raw = await fn(**kwargs)
        return json.loads(raw)

    async def run_text(self, tool_name: str, **kwargs: Any) -> str:
        """Call a tool by name with output_mode='text' and return plaintext."""
        fn = self.registry.get_tool(tool_name)
        return await fn(output_mode="text", **kwargs)

    async def close(self) -> None:
        await self.store.close()
