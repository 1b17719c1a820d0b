"""Remote resource capabilities consumed by the orchestrator.

A resource bundles everything an orchestrator needs to know about one entity
collection:

- fetch_remote(): load the authoritative list from the remote source
- serialize(), deserialize(), identify(): per-entity codec for the store
- transform_for_cache(), transform_for_display(): optional filtering hooks
- on_fetch_error(): optional error reporting hook
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from typing import Any, Generic, Protocol, TypeVar, runtime_checkable

T = TypeVar("T")
ID = TypeVar("ID")

Record = dict[str, Any]

logger = logging.getLogger(__name__)


@runtime_checkable
class EntityCodec(Protocol[T, ID]):
    """Per-entity encoding used by persistent stores."""

    def serialize(self, item: T) -> Record:
        """Encode an entity to a JSON-compatible record."""
        ...

    def deserialize(self, record: Record) -> T:
        """Decode a record produced by serialize()."""
        ...

    def identify(self, item: T) -> ID:
        """Return the unique identifier of an entity."""
        ...


@runtime_checkable
class Resource(EntityCodec[T, ID], Protocol[T, ID]):
    """Full capability set an orchestrator is generic over."""

    async def fetch_remote(self) -> Sequence[T]:
        """Fetch the authoritative collection. Raises on transport failure."""
        ...

    def transform_for_cache(self, items: list[T]) -> list[T]:
        """Filter or modify items before they are persisted."""
        ...

    def transform_for_display(self, items: list[T]) -> list[T]:
        """Filter or modify items before they are emitted."""
        ...

    def on_fetch_error(self, error: BaseException) -> None:
        """Report a failed fetch. The traceback is on error.__traceback__."""
        ...


class BaseResource(Generic[T, ID]):
    """Convenience base with identity transforms and a logging error hook.

    Subclasses implement fetch_remote, serialize, deserialize and identify.
    """

    name = "resource"

    async def fetch_remote(self) -> Sequence[T]:
        raise NotImplementedError

    def serialize(self, item: T) -> Record:
        raise NotImplementedError

    def deserialize(self, record: Record) -> T:
        raise NotImplementedError

    def identify(self, item: T) -> ID:
        raise NotImplementedError

    def transform_for_cache(self, items: list[T]) -> list[T]:
        return items

    def transform_for_display(self, items: list[T]) -> list[T]:
        return items

    def on_fetch_error(self, error: BaseException) -> None:
        logger.error(
            "%s: fetch error: %s",
            self.name,
            error,
            exc_info=(type(error), error, error.__traceback__),
        )


@dataclass(frozen=True, slots=True)
class FunctionResource(Generic[T, ID]):
    """A resource assembled from plain callables."""

    fetch: Callable[[], Awaitable[Sequence[T]]]
    to_record: Callable[[T], Record]
    from_record: Callable[[Record], T]
    get_id: Callable[[T], ID]
    cache_transform: Callable[[list[T]], list[T]] | None = None
    display_transform: Callable[[list[T]], list[T]] | None = None
    error_hook: Callable[[BaseException], None] | None = None
    name: str = "resource"

    async def fetch_remote(self) -> Sequence[T]:
        return await self.fetch()

    def serialize(self, item: T) -> Record:
        return self.to_record(item)

    def deserialize(self, record: Record) -> T:
        return self.from_record(record)

    def identify(self, item: T) -> ID:
        return self.get_id(item)

    def transform_for_cache(self, items: list[T]) -> list[T]:
        if self.cache_transform is None:
            return items
        return self.cache_transform(items)

    def transform_for_display(self, items: list[T]) -> list[T]:
        if self.display_transform is None:
            return items
        return self.display_transform(items)

    def on_fetch_error(self, error: BaseException) -> None:
        if self.error_hook is not None:
            self.error_hook(error)
            return
        logger.error(
            "%s: fetch error: %s",
            self.name,
            error,
            exc_info=(type(error), error, error.__traceback__),
        )


def create_resource(
    *,
    fetch: Callable[[], Awaitable[Sequence[T]]],
    serialize: Callable[[T], Record],
    deserialize: Callable[[Record], T],
    identify: Callable[[T], ID],
    transform_for_cache: Callable[[list[T]], list[T]] | None = None,
    transform_for_display: Callable[[list[T]], list[T]] | None = None,
    on_fetch_error: Callable[[BaseException], None] | None = None,
    name: str = "resource",
) -> FunctionResource[T, ID]:
    """Build a resource from callables.

    Args:
        fetch: Async callable returning the remote collection
        serialize: Entity to JSON-compatible record
        deserialize: Record back to entity
        identify: Entity to unique identifier
        transform_for_cache: Filter applied before persisting (default: identity)
        transform_for_display: Filter applied before emitting (default: identity)
        on_fetch_error: Error hook (default: log at ERROR)
        name: Label used in log messages

    Returns:
        A FunctionResource satisfying the Resource protocol
    """
    if not callable(fetch):
        raise TypeError(f"fetch must be callable, got {type(fetch)}")

    return FunctionResource(
        fetch=fetch,
        to_record=serialize,
        from_record=deserialize,
        get_id=identify,
        cache_transform=transform_for_cache,
        display_transform=transform_for_display,
        error_hook=on_fetch_error,
        name=name,
    )


__all__ = [
    "BaseResource",
    "EntityCodec",
    "FunctionResource",
    "Record",
    "Resource",
    "create_resource",
]
