"""Shared test fixtures for chuk-mcp-earthengine."""

import fnmatch
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from chuk_mcp_earthengine.core.composite_cache import CompositeCache
from chuk_mcp_earthengine.core.ee_manager import EarthEngineManager
from chuk_mcp_earthengine.core.geo_models import GeoModels
from chuk_mcp_earthengine.core.map_service import MapService
from chuk_mcp_earthengine.core.session_store import SessionStore

TILE_URL = "https://earthengine.googleapis.com/v1/projects/p/maps/abc/tiles/{z}/{x}/{y}"


class FakeRedis:
    """In-process stand-in for a redis.asyncio client."""

    def __init__(self):
        self.data: dict[str, str] = {}
        self.ttls: dict[str, int] = {}
        self.fail = False
        self.closed = False

    def _check(self):
        if self.fail:
            raise ConnectionError("redis down")

    async def ping(self):
        self._check()
        return True

    async def setex(self, key, ttl, value):
        self._check()
        self.data[key] = value
        self.ttls[key] = ttl

    async def get(self, key):
        self._check()
        return self.data.get(key)

    async def delete(self, key):
        self._check()
        self.ttls.pop(key, None)
        return 1 if self.data.pop(key, None) is not None else 0

    async def scan_iter(self, match="*"):
        self._check()
        for key in list(self.data):
            if fnmatch.fnmatch(key, match):
                yield key

    async def aclose(self):
        self.closed = True


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def memory_store():
    """Store with no Redis configured."""
    return SessionStore()


@pytest.fixture
def redis_store(fake_redis):
    """Store with a live (fake) Redis client."""
    return SessionStore(redis_url="redis://fake:6379/0", client=fake_redis)


@pytest.fixture
def cache(memory_store):
    return CompositeCache(memory_store)


@pytest.fixture
def mock_client():
    """EarthEngineClient with every remote call mocked."""
    client = MagicMock()
    client.initialized = True
    client.project_id = "test-project"
    client.service_account = "sa@test-project.iam.gserviceaccount.com"
    client.last_error = None
    client.ensure = AsyncMock(return_value=None)
    client.run = AsyncMock(return_value=None)
    client.get_info = AsyncMock(return_value={})
    client.get_map = AsyncMock(return_value=("abc", TILE_URL))
    client.get_thumb_url = AsyncMock(return_value="https://thumb.example/png")
    client.get_download_url = AsyncMock(return_value="https://download.example/tif")
    return client


@pytest.fixture
def mock_ee():
    """Patch the ee module wherever core code builds Earth Engine objects."""
    ee = MagicMock(name="ee")
    with (
        patch("chuk_mcp_earthengine.core.ee_manager.ee", ee),
        patch("chuk_mcp_earthengine.core.regions.ee", ee),
        patch("chuk_mcp_earthengine.core.geo_models.ee", ee),
    ):
        yield ee


@pytest.fixture
def manager(mock_client, cache):
    return EarthEngineManager(mock_client, cache, export_bucket=None)


@pytest.fixture
def maps(manager):
    return MapService(manager)


@pytest.fixture
def models(manager, maps):
    return GeoModels(manager, maps)


@pytest.fixture
def mock_manager():
    """EarthEngineManager stand-in for tool-level tests."""
    manager = MagicMock()
    manager.client.project_id = "test-project"
    manager.client.service_account = "sa@test-project.iam.gserviceaccount.com"
    manager.cache.keys = MagicMock(return_value=["composite_1"])
    return manager
