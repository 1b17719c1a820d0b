"""swrcache - Stale-while-revalidate caching for async Python clients."""

from contextlib import suppress

from swrcache.channel import StateChannel, Subscription
from swrcache.config import DEFAULT_SYNC_KEY, CacheConfig

# Duration parsing
from swrcache.duration import parse_duration

# Errors
from swrcache.errors import (
    CacheError,
    ChannelClosedError,
    DisposedError,
    InvalidIdentifierError,
    RemoteFetchError,
    StoreNotInitializedError,
)

# Orchestrator API
from swrcache.orchestrator import CacheOrchestrator
from swrcache.resource import (
    BaseResource,
    EntityCodec,
    FunctionResource,
    Resource,
    create_resource,
)
from swrcache.state import CacheState, project_first

# Stores (async only)
from swrcache.stores import AsyncMemoryStore, AsyncPersistentStore

# Core types
from swrcache.types import CacheEvent, CacheSource, Duration, Timestamp

# Optional imports - only available when dependencies are installed
with suppress(ImportError):
    from swrcache.stores import AsyncRedisStore

with suppress(ImportError):
    from swrcache.remote import AsyncHttpFetcher

__version__ = "0.1.0"

__all__ = [
    "DEFAULT_SYNC_KEY",
    "AsyncHttpFetcher",
    "AsyncMemoryStore",
    "AsyncPersistentStore",
    "AsyncRedisStore",
    "BaseResource",
    "CacheConfig",
    "CacheError",
    "CacheEvent",
    "CacheOrchestrator",
    "CacheSource",
    "CacheState",
    "ChannelClosedError",
    "DisposedError",
    "Duration",
    "EntityCodec",
    "FunctionResource",
    "InvalidIdentifierError",
    "RemoteFetchError",
    "Resource",
    "StateChannel",
    "StoreNotInitializedError",
    "Subscription",
    "Timestamp",
    "create_resource",
    "parse_duration",
    "project_first",
]
