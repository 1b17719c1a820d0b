"""Redis persistent store."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any, Generic, TypeVar

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


def _field_name(field: bytes | str) -> str:
    if isinstance(field, bytes):
        return field.decode("utf-8")
    return field


class AsyncRedisStore(Generic[T, ID]):
    """Async Redis store keeping one collection in a single hash.

    Layout: hash `{prefix}:{namespace}`, one field per entity id plus the
    sync metadata field.
    """

    def __init__(
        self,
        client: Any,  # redis.asyncio.Redis
        codec: EntityCodec[T, ID],
        *,
        namespace: str,
        prefix: str = "swrcache",
        sync_key: str = DEFAULT_SYNC_KEY,
    ) -> None:
        if not namespace:
            raise ValueError("namespace must not be empty")
        self._client = client
        self._codec = codec
        self._key = f"{prefix}:{namespace}"
        self.sync_key = sync_key
        self._open = False

    @property
    def is_initialized(self) -> bool:
        return self._open

    @property
    def key(self) -> str:
        """Redis key of the collection hash."""
        return self._key

    def _ensure_initialized(self) -> None:
        if not self._open:
            raise StoreNotInitializedError(
                f"AsyncRedisStore[{self._key}] not initialized. Call initialize() first."
            )

    def _decode(self, field: str, data: bytes | str) -> T | None:
        try:
            return self._codec.deserialize(decode_record(data))
        except Exception as e:
            logger.warning(
                "AsyncRedisStore[%s]: failed to parse item %s: %s", self._key, field, e
            )
            return None

    async def initialize(self) -> None:
        """Check the connection (no-op if already open)."""
        if self._open:
            return
        await self._client.ping()
        self._open = True

    async def get_all(self) -> list[T]:
        """Get all stored entities."""
        self._ensure_initialized()
        data = await self._client.hgetall(self._key)
        items: list[T] = []
        for raw_field, value in data.items():
            field = _field_name(raw_field)
            if field == self.sync_key:
                continue
            item = self._decode(field, value)
            if item is not None:
                items.append(item)
        return items

    async def get_by_id(self, id: ID) -> T | None:
        """Get a single entity by identifier."""
        self._ensure_initialized()
        field = str(id)
        if field == self.sync_key:
            return None
        data = await self._client.hget(self._key, field)
        if data is None:
            return None
        return self._decode(field, data)

    async def save_all(self, items: Sequence[T]) -> None:
        """Replace the collection and update the sync time in one transaction."""
        self._ensure_initialized()
        mapping: dict[str, str] = {}
        for item in items:
            field = entity_key(self._codec.identify(item), self.sync_key)
            mapping[field] = encode_record(self._codec.serialize(item))
        mapping[self.sync_key] = sync_record(now_ms())

        async with self._client.pipeline(transaction=True) as pipe:
            pipe.delete(self._key)
            pipe.hset(self._key, mapping=mapping)
            await pipe.execute()

    async def save(self, item: T) -> None:
        """Store a single entity."""
        self._ensure_initialized()
        field = entity_key(self._codec.identify(item), self.sync_key)
        await self._client.hset(
            self._key, field, encode_record(self._codec.serialize(item))
        )

    async def delete(self, id: ID) -> None:
        """Delete a single entity."""
        self._ensure_initialized()
        await self._client.hdel(self._key, entity_key(id, self.sync_key))

    async def clear(self) -> None:
        """Delete the collection hash, metadata included."""
        self._ensure_initialized()
        await self._client.delete(self._key)

    async def last_sync_time(self) -> Timestamp | None:
        """Get the last sync timestamp."""
        if not self._open:
            return None
        return parse_sync_record(await self._client.hget(self._key, self.sync_key))

    async def has_data(self) -> bool:
        """Whether any entity is stored."""
        self._ensure_initialized()
        count = await self._client.hlen(self._key)
        if count == 0:
            return False
        if count > 1:
            return True
        return not await self._client.hexists(self._key, self.sync_key)

    async def is_stale_with(
        self, config: CacheConfig, now: Timestamp | None = None
    ) -> bool:
        """Whether the last sync is older than config.ttl (or never happened)."""
        return is_sync_stale(await self.last_sync_time(), config.ttl_ms, now)

    async def dispose(self) -> None:
        """Close the Redis connection."""
        self._open = False
        await self._client.aclose()
