#!/usr/bin/env python3
"""
Async Earth Engine MCP Server using chuk-mcp-server

Dataset discovery, processing, export, interactive maps and geospatial
models on Google Earth Engine. Results and map sessions are cached in a
Redis-backed session store that falls back to memory.

Tools are registered on a ToolRegistry that the HTTP transport dispatches
to, then published on the chuk-mcp-server instance under the wire schemas
(camelCase arguments, tool aliases) for the stdio transport.
"""

import logging

from chuk_mcp_server import ChukMCPServer

from .constants import ServerConfig
from .core.composite_cache import CompositeCache
from .core.ee_client import EarthEngineClient
from .core.ee_manager import EarthEngineManager
from .core.geo_models import GeoModels
from .core.map_service import MapService
from .core.session_store import SessionStore
from .tools.data import register_data_tools
from .tools.export import register_export_tools
from .tools.map import register_map_tools
from .tools.models import register_model_tools
from .tools.process import register_process_tools
from .tools.system import register_system_tools
from .transport.http_app import create_app
from .transport.registry import ToolRegistry

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Create the MCP server instance and the HTTP tool registry
mcp = ChukMCPServer(ServerConfig.NAME)
registry = ToolRegistry()

# Session store, facade and Earth Engine backends
store = SessionStore.from_env()
cache = CompositeCache(store)
client = EarthEngineClient()
manager = EarthEngineManager(client, cache)
maps = MapService(manager)
models = GeoModels(manager, maps)

# Register all tool modules
register_data_tools(registry, manager)
register_process_tools(registry, manager)
register_export_tools(registry, manager)
register_system_tools(registry, manager)
register_map_tools(registry, maps)
register_model_tools(registry, models)

# Expose them over stdio with the wire schemas
registry.publish(mcp)


def create_http_app():
    """FastAPI application serving the registered tools over HTTP."""
    return create_app(registry, manager, maps)


# Run the server
if __name__ == "__main__":
    logger.info("Starting Earth Engine MCP Server...")
    logger.info(f"Session store: {'redis' if store.redis_url else 'memory'}")
    mcp.run(stdio=True)
