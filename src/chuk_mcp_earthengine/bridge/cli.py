"""
Bridge CLI: print MCP client configs, run the stdio bridge, test a server.

    chuk-mcp-earthengine-bridge init --client claude --mode local
    chuk-mcp-earthengine-bridge config --format stdio --url https://my-host
    chuk-mcp-earthengine-bridge start --url http://localhost:3000
    chuk-mcp-earthengine-bridge test
"""

import argparse
import asyncio
import json
import os
import sys
from pathlib import Path

import httpx

from ..constants import (
    BRIDGE_CLIENTS,
    BRIDGE_COMMAND,
    BRIDGE_HEALTH_PATH,
    BRIDGE_SERVER_KEY,
    BRIDGE_TIMEOUT_S,
    DEFAULT_BRIDGE_SERVER,
    LOCAL_BRIDGE_SERVER,
    EnvVar,
)
from .stdio import StdioBridge, configure_logging, server_base

CLIENT_NAMES = {
    "claude": "Claude Desktop",
    "cursor": "Cursor",
    "vscode": "VS Code MCP",
}

# Config file location relative to the platform's app-data directory
CLIENT_CONFIG_FILES = {
    "claude": ("Claude", "claude_desktop_config.json"),
    "cursor": ("Cursor", "mcp_config.json"),
    "vscode": ("Code", "User", "mcp_config.json"),
}

EXAMPLE_QUERIES = [
    "Show vegetation health in California",
    "Create a water map of the Nile",
    "Analyze urban growth in Tokyo",
]


def app_data_dir(platform: str | None = None) -> Path | None:
    platform = platform or sys.platform
    if platform == "win32":
        appdata = os.environ.get("APPDATA")
        return Path(appdata) if appdata else None
    if platform == "darwin":
        return Path.home() / "Library" / "Application Support"
    if platform.startswith("linux"):
        return Path.home() / ".config"
    return None


def config_path(client: str, platform: str | None = None) -> str:
    """Where a client keeps its MCP config on this platform."""
    base = app_data_dir(platform)
    if base is None or client not in CLIENT_CONFIG_FILES:
        return "Check your MCP client documentation for config location"
    return str(base.joinpath(*CLIENT_CONFIG_FILES[client]))


def resolve_server_url(mode: str = "cloud", url: str | None = None) -> str:
    if url:
        return server_base(url)
    if mode == "local":
        return LOCAL_BRIDGE_SERVER
    return DEFAULT_BRIDGE_SERVER


def stdio_config(server_url: str) -> dict:
    """Client config that launches the local stdio bridge."""
    return {
        "mcpServers": {
            BRIDGE_SERVER_KEY: {
                "command": BRIDGE_COMMAND,
                "args": ["start"],
                "env": {EnvVar.BRIDGE_URL: server_url},
            }
        }
    }


def sse_config(server_url: str) -> dict:
    """Client config for a direct SSE connection."""
    return {"mcpServers": {BRIDGE_SERVER_KEY: {"url": f"{server_url}/sse", "transport": "sse"}}}


def _dump(config: dict) -> str:
    return json.dumps(config, indent=2)


def cmd_init(args) -> int:
    client = args.client or "all"
    server_url = resolve_server_url(args.mode, args.url if args.mode == "custom" else None)

    print("Configuration for your MCP client:\n")
    clients = BRIDGE_CLIENTS if client == "all" else [client]
    for name in clients:
        print(f"{CLIENT_NAMES[name]} configuration")
        print(f"Config file: {config_path(name)}")
        print("Add this to your config file:")
        print(_dump(stdio_config(server_url)))
        print()

    if client == "all":
        print("Generic MCP client configuration")
        print("Option 1 - stdio bridge:")
        print(_dump(stdio_config(server_url)))
        print("Option 2 - direct SSE connection (if supported):")
        print(_dump(sse_config(server_url)))
        print()

    print("Next steps:")
    print("  1. Copy the configuration above")
    print("  2. Add it to your MCP client config file")
    print("  3. Restart your MCP client")
    print("  4. Start using Earth Engine features!")
    print("\nExample queries:")
    for query in EXAMPLE_QUERIES:
        print(f'  - "{query}"')
    return 0


def cmd_config(args) -> int:
    mode = "local" if args.local else "cloud"
    server_url = resolve_server_url(mode, args.url)
    config = stdio_config(server_url) if args.format == "stdio" else sse_config(server_url)
    print(_dump(config))
    return 0


def cmd_start(args) -> int:
    bridge = StdioBridge(url=args.url, debug=args.debug or None)
    configure_logging(bridge.debug)
    print(f"Starting Earth Engine MCP bridge to {bridge.base_url}", file=sys.stderr)
    try:
        asyncio.run(bridge.run())
    except KeyboardInterrupt:
        print("Shutting down...", file=sys.stderr)
    return 0


def check_health(url: str, timeout: float = BRIDGE_TIMEOUT_S) -> dict:
    """GET the server health route.

    Raises:
        httpx.HTTPError: If the server cannot be reached or answers with an error
    """
    response = httpx.get(f"{server_base(url)}{BRIDGE_HEALTH_PATH}", timeout=timeout)
    response.raise_for_status()
    return response.json()


def cmd_test(args) -> int:
    url = resolve_server_url(url=args.url)
    try:
        data = check_health(url)
    except (httpx.HTTPError, ValueError) as e:
        print(f"Cannot connect to {url}: {e}", file=sys.stderr)
        print("Please check if the server is running.", file=sys.stderr)
        return 1

    if data.get("status") not in ("ok", "healthy", "degraded"):
        print("Server health check failed", file=sys.stderr)
        return 1

    print(f"Connected to {url}")
    print(f"Status: {data['status']}")
    print(f"Version: {data.get('version', 'unknown')}")
    print(f"Tools available: {len(data.get('tools') or []) or 'unknown'}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=BRIDGE_COMMAND,
        description="Connect any MCP client to an Earth Engine MCP server",
    )
    sub = parser.add_subparsers(dest="command")

    init = sub.add_parser("init", help="Print setup for your MCP client")
    init.add_argument("-c", "--client", choices=[*BRIDGE_CLIENTS, "all"], default=None)
    init.add_argument("-m", "--mode", choices=["cloud", "local", "custom"], default="cloud")
    init.add_argument("--url", help="Custom server URL (with --mode custom)")
    init.set_defaults(func=cmd_init)

    config = sub.add_parser("config", help="Generate MCP client configuration")
    config.add_argument("-f", "--format", choices=["json", "stdio"], default="json")
    config.add_argument("--cloud", action="store_true", help="Use the cloud server (default)")
    config.add_argument("--local", action="store_true", help="Use a local server")
    config.add_argument("--url", help="Custom server URL")
    config.set_defaults(func=cmd_config)

    start = sub.add_parser("start", help="Start the stdio bridge")
    start.add_argument("--url", default=None, help=f"Server URL (default: ${EnvVar.BRIDGE_URL} or cloud)")
    start.add_argument("--debug", action="store_true", help="Enable debug logging")
    start.set_defaults(func=cmd_start)

    test = sub.add_parser("test", help="Test connection to a server")
    test.add_argument("--url", default=DEFAULT_BRIDGE_SERVER, help="Server URL")
    test.set_defaults(func=cmd_test)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not getattr(args, "func", None):
        parser.print_help()
        return 0
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
