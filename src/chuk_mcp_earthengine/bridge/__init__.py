"""Stdio bridge and client-config CLI for remote Earth Engine MCP servers."""

from .stdio import StdioBridge

__all__ = ["StdioBridge"]
