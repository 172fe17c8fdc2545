"""HTTP and JSON-RPC transport for chuk-mcp-earthengine."""

from .http_app import create_app
from .jsonrpc import JsonRpcDispatcher
from .registry import ToolRegistry

__all__ = ["JsonRpcDispatcher", "ToolRegistry", "create_app"]
