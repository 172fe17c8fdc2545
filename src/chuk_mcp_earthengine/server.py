#!/usr/bin/env python3
"""
Earth Engine MCP Server - Entry Point

This module provides the async MCP server for Google Earth Engine
discovery, processing, export, maps and geospatial models.
Supports both stdio (for Claude Desktop) and HTTP (JSON-RPC and SSE) transports.
"""

import logging
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

from .constants import DEFAULT_HTTP_PORT, HTTP_MAX_DURATION_S, EnvVar

# Load environment variables from .env file
env_path = Path(__file__).parent.parent.parent / ".env"
if env_path.exists():
    load_dotenv(env_path)

logger = logging.getLogger(__name__)


# Import mcp instance and all registered tools from async server
from .async_server import create_http_app, mcp  # noqa: E402


def _run_http(host: str, port: int) -> None:
    import uvicorn

    print(f"Earth Engine MCP Server starting in HTTP mode on {host}:{port}", file=sys.stderr)
    uvicorn.run(
        create_http_app(),
        host=host,
        port=port,
        timeout_keep_alive=HTTP_MAX_DURATION_S,
    )


def main() -> None:
    """Main entry point for the MCP server."""
    import argparse

    parser = argparse.ArgumentParser(description="Earth Engine MCP Server")
    parser.add_argument(
        "mode",
        nargs="?",
        choices=["stdio", "http"],
        default=None,
        help="Transport mode (stdio for Claude Desktop, http for API)",
    )
    parser.add_argument(
        "--host", default="localhost", help="Host for HTTP mode (default: localhost)"
    )
    parser.add_argument(
        "--port",
        type=int,
        default=DEFAULT_HTTP_PORT,
        help=f"Port for HTTP mode (default: {DEFAULT_HTTP_PORT})",
    )

    args = parser.parse_args()

    if args.mode == "stdio":
        print("Earth Engine MCP Server starting in STDIO mode", file=sys.stderr)
        mcp.run(stdio=True)
    elif args.mode == "http":
        _run_http(args.host, args.port)
    else:
        if os.environ.get(EnvVar.MCP_STDIO) or (not sys.stdin.isatty()):
            print("Earth Engine MCP Server starting in STDIO mode (auto-detected)", file=sys.stderr)
            mcp.run(stdio=True)
        else:
            _run_http(args.host, args.port)


if __name__ == "__main__":
    main()
