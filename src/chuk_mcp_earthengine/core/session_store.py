"""
Session store: in-memory map in front of a durable Redis tier.

Writes land in memory synchronously and are pushed to Redis as background
tasks. Reads never wait on Redis: a memory miss schedules a backfill and
reports the key as missing. ``flush()`` awaits every outstanding durable
task, which closes the consistency window on demand.

The Redis connection is made by connect(), or on first durable use when
nothing called it. When Redis is unconfigured or unreachable the store
runs memory-only. Memory entries expire by TTL in both modes; Redis expires
its own copies.

Every put, delete or sweep of a key bumps its generation. A backfill only
lands when the key's generation is unchanged since the read was scheduled,
so a pending read cannot resurrect a deleted or rewritten key.
"""

import asyncio
import json
import logging
import os
import time
from collections.abc import Coroutine
from typing import Any

import redis.asyncio as aioredis
from redis.asyncio.retry import Retry
from redis.backoff import ExponentialBackoff
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import RedisError
from redis.exceptions import TimeoutError as RedisTimeoutError
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from ..constants import (
    DEFAULT_TTL_SECONDS,
    REDIS_BACKOFF_BASE_S,
    REDIS_BACKOFF_CAP_S,
    REDIS_CONNECT_TIMEOUT_S,
    REDIS_RETRY_ATTEMPTS,
    EnvVar,
    StoreKind,
)

logger = logging.getLogger(__name__)

KINDS = (StoreKind.COMPOSITE, StoreKind.MAP)


_retry_connect = retry(
    stop=stop_after_attempt(REDIS_RETRY_ATTEMPTS),
    wait=wait_exponential(multiplier=REDIS_BACKOFF_BASE_S, max=REDIS_BACKOFF_CAP_S),
    retry=retry_if_exception_type((RedisError, OSError)),
    reraise=True,
)


@_retry_connect
async def _ping(client: Any) -> None:
    await client.ping()


class SessionStore:
    """TTL key-value store for composite metadata and map sessions."""

    def __init__(
        self,
        redis_url: str | None = None,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        client: Any | None = None,
    ) -> None:
        self.redis_url = redis_url
        self.ttl_seconds = ttl_seconds

        # An injected client is assumed to be live
        self._client = client
        self._memory: dict[str, dict[str, Any]] = {kind: {} for kind in KINDS}
        self._written_at: dict[str, dict[str, float]] = {kind: {} for kind in KINDS}
        self._generation: dict[str, dict[str, int]] = {kind: {} for kind in KINDS}
        self._pending: set[asyncio.Task] = set()
        self._connect_attempted = False
        self._connect_lock = asyncio.Lock()

    @classmethod
    def from_env(cls) -> "SessionStore":
        """Build a store from REDIS_URL and REDIS_TTL."""
        ttl = os.environ.get(EnvVar.REDIS_TTL)
        try:
            ttl_seconds = int(ttl) if ttl else DEFAULT_TTL_SECONDS
        except ValueError:
            logger.warning(f"Ignoring invalid {EnvVar.REDIS_TTL}={ttl!r}")
            ttl_seconds = DEFAULT_TTL_SECONDS
        return cls(redis_url=os.environ.get(EnvVar.REDIS_URL) or None, ttl_seconds=ttl_seconds)

    @property
    def connected(self) -> bool:
        return self._client is not None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def connect(self) -> bool:
        """Connect to Redis if a URL is configured. Never raises."""
        if self._client is not None:
            return True
        if not self.redis_url:
            logger.warning(f"{EnvVar.REDIS_URL} not set, session store is memory-only")
            return False
        self._connect_attempted = True

        client = aioredis.from_url(
            self.redis_url,
            decode_responses=True,
            socket_connect_timeout=REDIS_CONNECT_TIMEOUT_S,
            retry=Retry(
                ExponentialBackoff(cap=REDIS_BACKOFF_CAP_S, base=REDIS_BACKOFF_BASE_S),
                REDIS_RETRY_ATTEMPTS,
            ),
            retry_on_error=[RedisConnectionError, RedisTimeoutError],
        )
        try:
            await _ping(client)
        except Exception as e:
            logger.warning(f"Redis unavailable ({e}), session store is memory-only")
            try:
                await client.aclose()
            except Exception as close_error:
                logger.debug(f"Ignoring error while closing Redis client: {close_error}")
            return False

        self._client = client
        logger.info("Session store connected to Redis")
        return True

    async def close(self) -> None:
        """Wait for pending writes, then drop the Redis connection."""
        await self.flush()
        if self._client is not None:
            client, self._client = self._client, None
            try:
                await client.aclose()
            except Exception as e:
                logger.warning(f"Error closing Redis client: {e}")

    # ------------------------------------------------------------------
    # Reads and writes
    # ------------------------------------------------------------------

    def put(self, kind: str, key: str, value: Any) -> asyncio.Task | None:
        """Write to memory now and to Redis in the background.

        Returns the background task, or None when there is nothing to await.
        """
        self._check_kind(kind)
        self._memory[kind][key] = value
        self._written_at[kind][key] = time.time()
        self._bump(kind, key)
        if not self._durable_possible():
            return None
        return self._schedule(self._write_durable(kind, key, value))

    def get(self, kind: str, key: str) -> Any | None:
        """Read from memory. A miss schedules a Redis backfill and returns None."""
        self._check_kind(kind)
        value = self._memory[kind].get(key)
        if value is None and self._durable_possible():
            self._schedule(self._backfill(kind, key, self._generation[kind].get(key, 0)))
        return value

    def holds(self, kind: str, key: str) -> bool:
        """Whether memory holds a key. Never touches Redis."""
        self._check_kind(kind)
        return key in self._memory[kind]

    async def fetch(self, kind: str, key: str) -> Any | None:
        """Read from memory, falling back to an awaited Redis read."""
        self._check_kind(kind)
        value = self._memory[kind].get(key)
        if value is not None:
            return value
        return await self._backfill(kind, key, self._generation[kind].get(key, 0))

    async def list_keys(self, kind: str) -> set[str]:
        """Keys from Redis and memory."""
        self._check_kind(kind)
        keys = set(self._memory[kind])
        client = await self._ensure_client()
        if client is not None:
            prefix = f"{kind}:"
            try:
                async for redis_key in client.scan_iter(match=f"{prefix}*"):
                    keys.add(redis_key[len(prefix) :])
            except Exception as e:
                logger.error(f"Failed to list {kind} keys from Redis: {e}")
        return keys

    async def list_values(self, kind: str) -> list[Any]:
        """Every value from Redis plus memory values Redis does not have.

        Memory wins where both tiers hold the same key.
        """
        self._check_kind(kind)
        merged: dict[str, Any] = {}
        client = await self._ensure_client()
        if client is not None:
            prefix = f"{kind}:"
            try:
                async for redis_key in client.scan_iter(match=f"{prefix}*"):
                    raw = await client.get(redis_key)
                    if raw is not None:
                        merged[redis_key[len(prefix) :]] = json.loads(raw)
            except Exception as e:
                logger.error(f"Failed to list {kind} values from Redis: {e}")
        merged.update(self._memory[kind])
        return list(merged.values())

    def delete(self, kind: str, key: str) -> bool:
        """Remove from memory and, in the background, from Redis."""
        self._check_kind(kind)
        existed = self._memory[kind].pop(key, None) is not None
        self._written_at[kind].pop(key, None)
        self._bump(kind, key)
        if self._durable_possible():
            self._schedule(self._delete_durable(kind, key))
        return existed

    def sweep(self) -> int:
        """Drop memory entries older than the TTL.

        Runs with or without Redis; Redis expires its own keys.
        """
        cutoff = time.time() - self.ttl_seconds
        removed = 0
        for kind in KINDS:
            stamps = self._written_at[kind]
            for key in [k for k, t in stamps.items() if t < cutoff]:
                stamps.pop(key, None)
                self._memory[kind].pop(key, None)
                self._bump(kind, key)
                removed += 1
        if removed:
            logger.info(f"Swept {removed} expired session store entries")
        return removed

    async def flush(self) -> None:
        """Await every pending durable write, delete and backfill."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def stats(self) -> dict:
        durable: dict[str, int] = {}
        client = await self._ensure_client()
        if client is not None:
            for kind in KINDS:
                count = 0
                try:
                    async for _ in client.scan_iter(match=f"{kind}:*"):
                        count += 1
                except Exception as e:
                    logger.error(f"Failed to count {kind} keys in Redis: {e}")
                durable[kind] = count
        return {
            "connected": self._client is not None,
            "ttl_seconds": self.ttl_seconds,
            "durable": durable,
            "memory": {kind: len(self._memory[kind]) for kind in KINDS},
            "pending": len(self._pending),
        }

    # ------------------------------------------------------------------
    # Background tasks
    # ------------------------------------------------------------------

    def _durable_possible(self) -> bool:
        return self._client is not None or (bool(self.redis_url) and not self._connect_attempted)

    async def _ensure_client(self) -> Any | None:
        """The Redis client, connecting on first use when a URL is configured."""
        if self._client is None and self.redis_url and not self._connect_attempted:
            async with self._connect_lock:
                if not self._connect_attempted:
                    await self.connect()
        return self._client

    def _schedule(self, coro: Coroutine) -> asyncio.Task | None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # Called from sync code with no loop; the durable tier is skipped
            coro.close()
            return None
        task = loop.create_task(coro)
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def _write_durable(self, kind: str, key: str, value: Any) -> None:
        client = await self._ensure_client()
        if client is None:
            return
        try:
            await client.setex(
                self._redis_key(kind, key), self.ttl_seconds, json.dumps(value)
            )
        except Exception as e:
            logger.error(f"Failed to persist {kind}:{key} to Redis: {e}")

    async def _delete_durable(self, kind: str, key: str) -> None:
        client = await self._ensure_client()
        if client is None:
            return
        try:
            await client.delete(self._redis_key(kind, key))
        except Exception as e:
            logger.error(f"Failed to delete {kind}:{key} from Redis: {e}")

    def _bump(self, kind: str, key: str) -> None:
        self._generation[kind][key] = self._generation[kind].get(key, 0) + 1

    async def _backfill(self, kind: str, key: str, generation: int) -> Any | None:
        client = await self._ensure_client()
        if client is None:
            return None
        try:
            raw = await client.get(self._redis_key(kind, key))
            if raw is None:
                return None
            value = json.loads(raw)
        except Exception as e:
            logger.error(f"Failed to read {kind}:{key} from Redis: {e}")
            return None
        # Written, deleted or swept since the read was scheduled
        if self._generation[kind].get(key, 0) != generation:
            return self._memory[kind].get(key)
        if key not in self._memory[kind]:
            self._memory[kind][key] = value
            self._written_at[kind][key] = time.time()
        return self._memory[kind][key]

    @staticmethod
    def _redis_key(kind: str, key: str) -> str:
        return f"{kind}:{key}"

    @staticmethod
    def _check_kind(kind: str) -> None:
        if kind not in KINDS:
            raise ValueError(f"Unknown store kind '{kind}'. Available: {', '.join(KINDS)}")
