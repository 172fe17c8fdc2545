"""
chuk-mcp-earthengine: Google Earth Engine Analysis, Visualization & Export MCP Server

Proxies MCP tool calls to Google Earth Engine for dataset discovery,
compositing, spectral indices, exports, interactive maps and geospatial
models. Earth Engine results and map sessions are cached in Redis, with an
in-memory fallback when Redis is unavailable.
"""
