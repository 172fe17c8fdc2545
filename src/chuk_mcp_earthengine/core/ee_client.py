"""
Earth Engine client: credentials, initialization, and blocking-call bridge.

Every call into the SDK that talks to Google (getInfo, getMapId, thumbnail
and download URLs, task control) is synchronous, so it is run through
asyncio.to_thread(). Initialization is attempted lazily on the first
remote call and retried on every later call until it succeeds.
"""

import asyncio
import json
import logging
import os
from collections.abc import Callable
from pathlib import Path
from typing import Any

import ee

from ..constants import EE_LEGACY_MAPS, EE_TILE_BASE, EnvVar, ErrorMessages

logger = logging.getLogger(__name__)

REQUIRED_KEY_FIELDS = ("client_email", "private_key")


class EarthEngineAuthError(RuntimeError):
    """Credentials are missing or were rejected."""


def load_service_account() -> dict:
    """Read the service account blob from the environment.

    GOOGLE_APPLICATION_CREDENTIALS_JSON (inline JSON) takes precedence over
    GOOGLE_APPLICATION_CREDENTIALS (path to a key file).

    Raises:
        EarthEngineAuthError: If neither is set or the blob is unusable
    """
    inline = os.environ.get(EnvVar.GOOGLE_APPLICATION_CREDENTIALS_JSON)
    path = os.environ.get(EnvVar.GOOGLE_APPLICATION_CREDENTIALS)

    if inline:
        try:
            info = json.loads(inline)
        except json.JSONDecodeError as e:
            raise EarthEngineAuthError(ErrorMessages.INVALID_CREDENTIALS_JSON) from e
    elif path:
        try:
            info = json.loads(Path(path).read_text())
        except (OSError, json.JSONDecodeError) as e:
            raise EarthEngineAuthError(ErrorMessages.CREDENTIALS_FILE.format(e)) from e
    else:
        raise EarthEngineAuthError(ErrorMessages.NO_CREDENTIALS)

    if not isinstance(info, dict):
        raise EarthEngineAuthError(ErrorMessages.INVALID_CREDENTIALS_JSON)
    missing = [f for f in REQUIRED_KEY_FIELDS if not info.get(f)]
    if missing:
        raise EarthEngineAuthError(ErrorMessages.CREDENTIALS_MISSING_FIELDS.format(", ".join(missing)))
    return info


def tile_url_for(map_id: str) -> str:
    """XYZ tile URL template for an Earth Engine map id."""
    if map_id.startswith("projects/"):
        return f"{EE_TILE_BASE}/{map_id}/tiles/{{z}}/{{x}}/{{y}}"
    return f"{EE_TILE_BASE}/{EE_LEGACY_MAPS}/{map_id}/tiles/{{z}}/{{x}}/{{y}}"


class EarthEngineClient:
    """Owns Earth Engine initialization for the process."""

    def __init__(self, credentials_info: dict | None = None) -> None:
        self._credentials_info = credentials_info
        self.initialized = False
        self.last_error: str | None = None
        self.project_id: str | None = None
        self.service_account: str | None = None

    def initialize(self) -> None:
        """Load credentials and call ee.Initialize (blocking).

        Raises:
            EarthEngineAuthError: On missing or rejected credentials
        """
        if self.initialized:
            return
        try:
            info = self._credentials_info or load_service_account()
            self.service_account = info["client_email"]
            self.project_id = os.environ.get(EnvVar.GCP_PROJECT_ID) or info.get("project_id")
            credentials = ee.ServiceAccountCredentials(
                self.service_account, key_data=json.dumps(info)
            )
            ee.Initialize(credentials, project=self.project_id)
        except EarthEngineAuthError as e:
            self.last_error = str(e)
            raise
        except Exception as e:
            self.last_error = str(e)
            raise EarthEngineAuthError(f"Earth Engine initialization failed: {e}") from e

        self.initialized = True
        self.last_error = None
        logger.info(
            f"Earth Engine initialized (project: {self.project_id}, "
            f"account: {self.service_account})"
        )

    async def ensure(self) -> None:
        if not self.initialized:
            await asyncio.to_thread(self.initialize)

    async def run(self, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        """Run a blocking SDK call in a worker thread."""
        await self.ensure()
        return await asyncio.to_thread(fn, *args, **kwargs)

    async def get_info(self, obj: Any) -> Any:
        return await self.run(obj.getInfo)

    async def get_map(self, image: Any, vis_params: dict | None = None) -> tuple[str, str]:
        """Create a tile service. Returns (map_id, tile_url)."""
        result = await self.run(image.getMapId, vis_params or {})
        map_id = result["mapid"]
        return map_id, tile_url_for(map_id)

    async def get_thumb_url(self, image: Any, params: dict) -> str:
        return await self.run(image.getThumbURL, params)

    async def get_download_url(self, image: Any, params: dict) -> str:
        return await self.run(image.getDownloadURL, params)
