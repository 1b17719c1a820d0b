"""In-memory persistent store (async only)."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import MutableMapping, Sequence
from typing import Generic, TypeVar

from swrcache.config import DEFAULT_SYNC_KEY, CacheConfig
from swrcache.duration import now_ms
from swrcache.errors import StoreNotInitializedError
from swrcache.resource import EntityCodec
from swrcache.stores.base import (
    decode_record,
    encode_record,
    entity_key,
    is_sync_stale,
    parse_sync_record,
    sync_record,
)
from swrcache.types import Timestamp

T = TypeVar("T")
ID = TypeVar("ID")

logger = logging.getLogger(__name__)


class AsyncMemoryStore(Generic[T, ID]):
    """Async in-memory store holding JSON-encoded records.

    Records are kept encoded so decoding behaves exactly like a durable
    backend. Pass a shared `records` mapping to let a new store instance see
    what a disposed one wrote.
    """

    def __init__(
        self,
        codec: EntityCodec[T, ID],
        *,
        sync_key: str = DEFAULT_SYNC_KEY,
        name: str = "memory",
        records: MutableMapping[str, str] | None = None,
    ) -> None:
        self._codec = codec
        self.sync_key = sync_key
        self.name = name
        self._records: MutableMapping[str, str] = {} if records is None else records
        self._lock = asyncio.Lock()
        self._open = False
        self._disposed = False

    @property
    def is_initialized(self) -> bool:
        return self._open

    def _ensure_initialized(self) -> None:
        if not self._open:
            raise StoreNotInitializedError(
                f"AsyncMemoryStore[{self.name}] not initialized. Call initialize() first."
            )

    def _decode(self, key: str, data: str) -> T | None:
        try:
            return self._codec.deserialize(decode_record(data))
        except Exception as e:
            logger.warning(
                "AsyncMemoryStore[%s]: failed to parse item %s: %s", self.name, key, e
            )
            return None

    async def initialize(self) -> None:
        """Open the store (no-op if already open)."""
        if self._disposed:
            raise StoreNotInitializedError(
                f"AsyncMemoryStore[{self.name}] has been disposed"
            )
        self._open = True

    async def get_all(self) -> list[T]:
        """Get all stored entities."""
        self._ensure_initialized()
        async with self._lock:
            snapshot = list(self._records.items())
        items: list[T] = []
        for key, data in snapshot:
            if key == self.sync_key:
                continue
            item = self._decode(key, data)
            if item is not None:
                items.append(item)
        return items

    async def get_by_id(self, id: ID) -> T | None:
        """Get a single entity by identifier."""
        self._ensure_initialized()
        key = str(id)
        if key == self.sync_key:
            return None
        async with self._lock:
            data = self._records.get(key)
        if data is None:
            return None
        return self._decode(key, data)

    async def save_all(self, items: Sequence[T]) -> None:
        """Replace the collection and update the sync time."""
        self._ensure_initialized()
        encoded: dict[str, str] = {}
        for item in items:
            key = entity_key(self._codec.identify(item), self.sync_key)
            encoded[key] = encode_record(self._codec.serialize(item))
        encoded[self.sync_key] = sync_record(now_ms())
        async with self._lock:
            self._records.clear()
            self._records.update(encoded)

    async def save(self, item: T) -> None:
        """Store a single entity."""
        self._ensure_initialized()
        key = entity_key(self._codec.identify(item), self.sync_key)
        data = encode_record(self._codec.serialize(item))
        async with self._lock:
            self._records[key] = data

    async def delete(self, id: ID) -> None:
        """Delete a single entity."""
        self._ensure_initialized()
        key = entity_key(id, self.sync_key)
        async with self._lock:
            self._records.pop(key, None)

    async def clear(self) -> None:
        """Clear all entities and metadata."""
        self._ensure_initialized()
        async with self._lock:
            self._records.clear()

    async def last_sync_time(self) -> Timestamp | None:
        """Get the last sync timestamp."""
        if not self._open:
            return None
        async with self._lock:
            return parse_sync_record(self._records.get(self.sync_key))

    async def has_data(self) -> bool:
        """Whether any entity is stored."""
        self._ensure_initialized()
        async with self._lock:
            return any(key != self.sync_key for key in self._records)

    async def is_stale_with(
        self, config: CacheConfig, now: Timestamp | None = None
    ) -> bool:
        """Whether the last sync is older than config.ttl (or never happened)."""
        return is_sync_stale(await self.last_sync_time(), config.ttl_ms, now)

    async def dispose(self) -> None:
        """Close the store. Records stay in the backing mapping."""
        self._open = False
        self._disposed = True
