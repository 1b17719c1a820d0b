"""Persistent store protocol and shared record helpers."""

from __future__ import annotations

import json
from collections.abc import Sequence
from typing import Any, Protocol, TypeVar, runtime_checkable

from swrcache.config import CacheConfig
from swrcache.duration import now_ms
from swrcache.errors import InvalidIdentifierError
from swrcache.resource import Record
from swrcache.types import Timestamp

T = TypeVar("T")
ID = TypeVar("ID")


@runtime_checkable
class AsyncPersistentStore(Protocol[T, ID]):
    """Async durable storage for one entity collection.

    Entities live under str(identify(item)); one reserved key (sync_key)
    holds {"timestamp": <unix ms>} written by every save_all().
    """

    sync_key: str

    @property
    def is_initialized(self) -> bool:
        """Whether initialize() completed and dispose() has not run."""
        ...

    async def initialize(self) -> None:
        """Open the store. Safe to call more than once."""
        ...

    async def get_all(self) -> list[T]:
        """All entities, skipping the metadata slot and undecodable records."""
        ...

    async def get_by_id(self, id: ID) -> T | None:
        """A single entity, or None when missing or undecodable."""
        ...

    async def save_all(self, items: Sequence[T]) -> None:
        """Replace the whole collection and stamp the sync time."""
        ...

    async def save(self, item: T) -> None:
        """Insert or overwrite a single entity."""
        ...

    async def delete(self, id: ID) -> None:
        """Delete a single entity."""
        ...

    async def clear(self) -> None:
        """Delete every entity and the sync metadata."""
        ...

    async def last_sync_time(self) -> Timestamp | None:
        """Timestamp of the last save_all(), if any."""
        ...

    async def has_data(self) -> bool:
        """Whether any entity is stored."""
        ...

    async def is_stale_with(
        self, config: CacheConfig, now: Timestamp | None = None
    ) -> bool:
        """Whether the last sync is older than config.ttl (or never happened)."""
        ...

    async def dispose(self) -> None:
        """Release resources. The store is unusable afterwards."""
        ...


def entity_key(id: Any, sync_key: str) -> str:
    """Storage key for an identifier, rejecting the reserved sync key."""
    key = str(id)
    if key == sync_key:
        raise InvalidIdentifierError(
            f"Identifier {key!r} collides with the sync metadata key"
        )
    return key


def is_sync_stale(
    last_sync: Timestamp | None, ttl_ms: int, now: Timestamp | None = None
) -> bool:
    """TTL check for a last-sync timestamp."""
    if last_sync is None:
        return True
    current = now_ms() if now is None else now
    return current - last_sync > ttl_ms


def encode_record(record: Record) -> str:
    """Serialize a record to JSON."""
    return json.dumps(record, separators=(",", ":"), default=str)


def decode_record(data: bytes | str) -> Record:
    """Deserialize JSON to a record."""
    if isinstance(data, bytes):
        data = data.decode("utf-8")
    obj = json.loads(data)
    if not isinstance(obj, dict):
        raise TypeError(f"Expected a JSON object, got {type(obj).__name__}")
    return obj


def sync_record(timestamp: Timestamp) -> str:
    """Encoded metadata value for a sync timestamp."""
    return encode_record({"timestamp": timestamp})


def parse_sync_record(data: bytes | str | None) -> Timestamp | None:
    """Extract the timestamp from encoded sync metadata."""
    if data is None:
        return None
    try:
        timestamp = decode_record(data).get("timestamp")
    except (TypeError, ValueError):
        return None
    if isinstance(timestamp, int) and not isinstance(timestamp, bool):
        return timestamp
    return None
