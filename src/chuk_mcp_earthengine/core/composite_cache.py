"""
Synchronous cache of Earth Engine objects and map sessions.

Sits in front of the SessionStore for callers that cannot await. Earth
Engine handles exist only here; the store receives their metadata. After
a restart an entry can come back from Redis while its handle cannot, and
such keys are reported as lost rather than rebuilt.
"""

import logging
from datetime import datetime, timezone
from typing import Any

from ..constants import ErrorMessages, StoreKind
from ..models.store import CompositeEntry, MapSession
from .session_store import SessionStore

logger = logging.getLogger(__name__)


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class CompositeNotFoundError(LookupError):
    """A referenced composite key has no live handle in this process."""

    def __init__(self, key: str, available_keys: list[str], handle_lost: bool = False) -> None:
        self.key = key
        self.available_keys = available_keys
        self.handle_lost = handle_lost
        template = ErrorMessages.HANDLE_LOST if handle_lost else ErrorMessages.KEY_NOT_FOUND
        super().__init__(template.format(key))


class CompositeCache:
    """Facade over the session store that also owns Earth Engine handles."""

    def __init__(self, store: SessionStore) -> None:
        self.store = store
        self._handles: dict[str, Any] = {}
        self._entries: dict[str, CompositeEntry] = {}
        self._maps: dict[str, MapSession] = {}

    # ------------------------------------------------------------------
    # Composites
    # ------------------------------------------------------------------

    def add(self, key: str, handle: Any, metadata: dict | None = None) -> CompositeEntry:
        """Cache a handle and persist its metadata in the background."""
        fields = dict(metadata or {})
        fields.setdefault("created", utc_now_iso())
        fields.setdefault("ee_type", type(handle).__name__)
        entry = CompositeEntry(key=key, **fields)

        self.sweep()
        self._handles[key] = handle
        self._entries[key] = entry
        self.store.put(StoreKind.COMPOSITE, key, entry.model_dump())
        logger.info(f"Cached {entry.kind} '{key}'")
        return entry

    def get(self, key: str) -> Any | None:
        """Return the live handle for a key, or None."""
        handle = self._handles.get(key)
        if handle is not None:
            return handle
        if self.get_metadata(key) is not None:
            logger.warning(
                f"Composite '{key}' has metadata but its Earth Engine object "
                "cannot be rebuilt in this process"
            )
        return None

    def get_metadata(self, key: str) -> CompositeEntry | None:
        """Entry from facade memory, then store memory (which may backfill)."""
        entry = self._entries.get(key)
        if entry is not None:
            return entry
        raw = self.store.get(StoreKind.COMPOSITE, key)
        if raw is None:
            return None
        entry = CompositeEntry.model_validate(raw)
        self._entries[key] = entry
        return entry

    def require(self, key: str) -> tuple[Any, CompositeEntry | None]:
        """Handle and entry for a key, or CompositeNotFoundError."""
        handle = self.get(key)
        if handle is not None:
            return handle, self._entries.get(key)
        raise CompositeNotFoundError(
            key, self.keys(), handle_lost=self.get_metadata(key) is not None
        )

    def keys(self) -> list[str]:
        """Keys with a live handle in this process."""
        return sorted(self._handles)

    async def all_keys(self) -> list[str]:
        """Every composite key known locally or in Redis."""
        keys = await self.store.list_keys(StoreKind.COMPOSITE)
        return sorted(keys | set(self._handles))

    def sweep(self) -> int:
        """Expire entries here in step with the store's memory tier."""
        removed = self.store.sweep()
        if removed:
            for key in [k for k in self._entries if not self.store.holds(StoreKind.COMPOSITE, k)]:
                self._entries.pop(key, None)
                self._handles.pop(key, None)
            for map_id in [m for m in self._maps if not self.store.holds(StoreKind.MAP, m)]:
                self._maps.pop(map_id, None)
        return removed

    # ------------------------------------------------------------------
    # Map sessions
    # ------------------------------------------------------------------

    def add_map_session(self, session: MapSession) -> None:
        self.sweep()
        self._maps[session.id] = session
        self.store.put(StoreKind.MAP, session.id, session.model_dump())

    def get_map_session(self, map_id: str) -> MapSession | None:
        session = self._maps.get(map_id)
        if session is not None:
            return session
        raw = self.store.get(StoreKind.MAP, map_id)
        if raw is None:
            return None
        session = MapSession.model_validate(raw)
        self._maps[map_id] = session
        return session

    async def fetch_map_session(self, map_id: str) -> MapSession | None:
        """Like get_map_session, but waits for Redis on a miss."""
        session = self._maps.get(map_id)
        if session is not None:
            return session
        raw = await self.store.fetch(StoreKind.MAP, map_id)
        if raw is None:
            return None
        session = MapSession.model_validate(raw)
        self._maps[map_id] = session
        return session

    async def list_map_sessions(self) -> list[MapSession]:
        """All sessions, oldest first. Local sessions override durable ones."""
        sessions: dict[str, MapSession] = {}
        for raw in await self.store.list_values(StoreKind.MAP):
            try:
                session = MapSession.model_validate(raw)
            except ValueError as e:
                logger.warning(f"Skipping unreadable map session: {e}")
                continue
            sessions[session.id] = session
        sessions.update(self._maps)
        return sorted(sessions.values(), key=lambda s: s.created)

    def delete_map_session(self, map_id: str) -> bool:
        """Remove a session from every tier. True if one was held locally."""
        in_facade = self._maps.pop(map_id, None) is not None
        in_store = self.store.delete(StoreKind.MAP, map_id)
        return in_facade or in_store
