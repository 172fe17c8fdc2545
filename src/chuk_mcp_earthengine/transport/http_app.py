"""
HTTP transport: JSON-RPC over POST, Server-Sent Events over GET, plus the
consolidated tool route, health and map session lookup.
"""

import asyncio
import json
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response, StreamingResponse

from ..constants import (
    SSE_PING_INTERVAL_S,
    TOOL_ALIASES,
    ErrorMessages,
    ServerConfig,
    ToolName,
)
from .jsonrpc import JsonRpcDispatcher
from .registry import ToolRegistry

logger = logging.getLogger(__name__)

CORE_TOOLS = [
    ToolName.DATA,
    ToolName.PROCESS,
    ToolName.EXPORT,
    ToolName.SYSTEM,
    ToolName.MAP,
    ToolName.CROP,
]
MODEL_TOOLS = [ToolName.FLOOD, ToolName.DEFORESTATION, *TOOL_ALIASES]

SSE_HEADERS = {
    "Cache-Control": "no-cache, no-transform",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


def sse_event(event: str, data: dict) -> str:
    return f"event: {event}\ndata: {json.dumps(data)}\n\n"


async def sse_stream(ping_interval: float = SSE_PING_INTERVAL_S) -> AsyncIterator[str]:
    """Connected event, then a ping at a fixed interval until the client leaves."""
    yield sse_event("connected", {"status": "connected"})
    while True:
        await asyncio.sleep(ping_interval)
        yield sse_event("ping", {})


def create_app(registry: ToolRegistry, manager, maps) -> FastAPI:
    """Build the FastAPI application around a populated tool registry.

    Args:
        registry: Registry holding every MCP tool
        manager: EarthEngineManager (health and the session store)
        maps: MapService (map session lookup)
    """
    dispatcher = JsonRpcDispatcher(registry)
    store = manager.store

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await store.connect()
        try:
            yield
        finally:
            await store.close()

    app = FastAPI(
        title=ServerConfig.MCP_SERVER_NAME,
        description=ServerConfig.DESCRIPTION,
        version=ServerConfig.VERSION,
        lifespan=lifespan,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )

    async def rpc(request: Request) -> Response:
        response = await dispatcher.handle_raw(await request.body())
        if response is None:
            return Response(status_code=202)
        return JSONResponse(content=response)

    async def sse(request: Request) -> StreamingResponse:
        logger.info(f"SSE client connected from {request.client.host if request.client else '?'}")
        return StreamingResponse(sse_stream(), media_type="text/event-stream", headers=SSE_HEADERS)

    app.add_api_route("/mcp", rpc, methods=["POST"])
    app.add_api_route("/api/mcp/sse-stream", rpc, methods=["POST"])
    app.add_api_route("/sse", sse, methods=["GET"])
    app.add_api_route("/api/mcp/sse-stream", sse, methods=["GET"])

    @app.post("/api/mcp/consolidated")
    async def consolidated(request: Request):
        """Call a tool by name with {"tool": ..., "arguments": {...}}."""
        try:
            body = await request.json()
        except ValueError:
            return JSONResponse(status_code=400, content={"error": {"message": ErrorMessages.PARSE_ERROR}})

        tool = body.get("tool") if isinstance(body, dict) else None
        if tool not in CORE_TOOLS + MODEL_TOOLS or registry.resolve(tool) is None:
            message = ErrorMessages.INVALID_TOOL.format(tool, ", ".join(CORE_TOOLS), ", ".join(MODEL_TOOLS))
            return JSONResponse(status_code=400, content={"error": {"message": message}})

        try:
            result = await registry.call(tool, body.get("arguments") or {})
        except TypeError as e:
            return JSONResponse(status_code=400, content={"error": {"message": str(e)}})
        except Exception as e:
            logger.error(f"Consolidated call {tool} failed: {e}")
            return JSONResponse(status_code=500, content={"error": {"message": str(e)}})
        return JSONResponse(content=result)

    @app.get("/api/health")
    async def health():
        data = await manager.health()
        status = "healthy" if data["earth_engine"] else "degraded"
        return {
            "status": status,
            "server": ServerConfig.MCP_SERVER_NAME,
            "version": ServerConfig.MCP_SERVER_VERSION,
            "tools": registry.names(),
            **data,
        }

    @app.get("/api/map/{map_id}")
    async def get_map(map_id: str):
        session = await maps.get(map_id)
        if session is None:
            return JSONResponse(status_code=404, content={"error": ErrorMessages.MAP_NOT_FOUND})
        return session.model_dump()

    return app
