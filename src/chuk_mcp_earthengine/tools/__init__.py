"""MCP tool registration for chuk-mcp-earthengine."""
