"""
Stdio bridge: relays MCP JSON-RPC messages from a local client to a remote
Earth Engine MCP server over HTTP.

One JSON-RPC message per stdin line; each response is written to stdout as
one line. Logging goes to stderr so stdout stays a clean protocol stream.
"""

import asyncio
import json
import logging
import os
import sys
from typing import Any, TextIO

import httpx

from ..constants import (
    BRIDGE_RPC_PATH,
    BRIDGE_TIMEOUT_S,
    DEFAULT_BRIDGE_SERVER,
    EnvVar,
    JsonRpcError,
)

logger = logging.getLogger(__name__)


def server_base(url: str) -> str:
    """Normalize a server URL; a trailing /sse from client configs is dropped."""
    url = url.rstrip("/")
    if url.endswith("/sse"):
        url = url[: -len("/sse")]
    return url


def debug_enabled() -> bool:
    return os.environ.get(EnvVar.BRIDGE_DEBUG, "").lower() == "true"


def transport_error(request_id: Any, message: str) -> dict:
    return {
        "jsonrpc": "2.0",
        "id": request_id,
        "error": {"code": JsonRpcError.INTERNAL_ERROR, "message": message},
    }


class StdioBridge:
    """Forwards stdin JSON-RPC lines to {url}/api/mcp/sse-stream."""

    def __init__(
        self,
        url: str | None = None,
        debug: bool | None = None,
        timeout: float = BRIDGE_TIMEOUT_S,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = server_base(url or os.environ.get(EnvVar.BRIDGE_URL) or DEFAULT_BRIDGE_SERVER)
        self.debug = debug_enabled() if debug is None else debug
        self.timeout = timeout
        self.transport = transport

    @property
    def rpc_url(self) -> str:
        return f"{self.base_url}{BRIDGE_RPC_PATH}"

    async def forward(self, client: httpx.AsyncClient, line: str) -> dict | None:
        """Forward one message. Returns the response, or None for notifications."""
        request_id = None
        try:
            message = json.loads(line)
        except ValueError as e:
            logger.error(f"Unparseable message from client: {e}")
            return {
                "jsonrpc": "2.0",
                "id": None,
                "error": {"code": JsonRpcError.PARSE_ERROR, "message": str(e)},
            }

        if isinstance(message, dict):
            request_id = message.get("id")
            logger.debug(f"-> {message.get('method')} (id={request_id})")

        try:
            response = await client.post(self.rpc_url, json=message)
            if response.status_code == 202 or not response.content:
                return None
            response.raise_for_status()
            return response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Bridge request failed: {e}")
            if isinstance(message, dict) and "id" not in message:
                return None
            return transport_error(request_id, f"Bridge error: {e}")

    async def run(self, stdin: TextIO | None = None, stdout: TextIO | None = None) -> None:
        """Relay messages until stdin closes."""
        stdin = stdin or sys.stdin
        stdout = stdout or sys.stdout
        logger.info(f"Bridge connecting to {self.rpc_url}")

        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            while True:
                line = await asyncio.to_thread(stdin.readline)
                if not line:
                    break
                line = line.strip()
                if not line:
                    continue
                response = await self.forward(client, line)
                if response is not None:
                    stdout.write(json.dumps(response) + "\n")
                    stdout.flush()

        logger.info("Bridge stdin closed, shutting down")


def configure_logging(debug: bool) -> None:
    logging.basicConfig(
        stream=sys.stderr,
        level=logging.DEBUG if debug else logging.WARNING,
        format="[Bridge] %(levelname)s %(message)s",
    )
