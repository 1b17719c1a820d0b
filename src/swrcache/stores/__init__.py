"""Persistent stores for swrcache (async only)."""

from contextlib import suppress

from swrcache.stores.base import AsyncPersistentStore
from swrcache.stores.memory import AsyncMemoryStore

# Optional stores - only available when dependencies are installed
with suppress(ImportError):
    from swrcache.stores.redis import AsyncRedisStore

__all__ = [
    "AsyncMemoryStore",
    "AsyncPersistentStore",
    "AsyncRedisStore",
]
