"""Immutable cache state snapshots emitted by an orchestrator."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Generic, TypeVar

from swrcache.config import DEFAULT_CONFIG, CacheConfig
from swrcache.duration import now_ms
from swrcache.types import CacheSource, Timestamp

T = TypeVar("T")
U = TypeVar("U")

_UNSET: Any = object()


def describe_error(error: BaseException) -> str:
    """Human readable description of an exception."""
    return str(error) or type(error).__name__


@dataclass(frozen=True, slots=True)
class CacheState(Generic[T]):
    """Snapshot of cached data plus loading, provenance and error metadata.

    Error and data may coexist: a failed refresh keeps the stale data visible
    next to the error.
    """

    data: T | None = None
    last_updated: Timestamp | None = None
    is_loading: bool = False
    source: CacheSource = CacheSource.NONE
    error: BaseException | None = None
    error_message: str | None = None

    def __post_init__(self) -> None:
        if self.source is CacheSource.NONE and self.data is not None:
            raise ValueError("CacheState with source NONE cannot carry data")

    @classmethod
    def loading(cls) -> CacheState[T]:
        """Initial state: loading, no data, no source."""
        return cls(is_loading=True)

    @property
    def has_data(self) -> bool:
        return self.data is not None

    @property
    def has_error(self) -> bool:
        return self.error is not None or self.error_message is not None

    @property
    def is_from_cache(self) -> bool:
        return self.source is CacheSource.CACHE

    @property
    def is_from_network(self) -> bool:
        return self.source is CacheSource.NETWORK

    @property
    def is_stale(self) -> bool:
        """Staleness against the default TTL (5 minutes)."""
        return self.is_stale_with(DEFAULT_CONFIG)

    def is_stale_with(self, config: CacheConfig, now: Timestamp | None = None) -> bool:
        """Whether the data is older than config.ttl (or has no timestamp)."""
        if self.last_updated is None:
            return True
        current = now_ms() if now is None else now
        return current - self.last_updated > config.ttl_ms

    def copy_with(
        self,
        *,
        data: T | None = _UNSET,
        last_updated: Timestamp | None = _UNSET,
        is_loading: bool = _UNSET,
        source: CacheSource = _UNSET,
        error: BaseException | None = _UNSET,
        error_message: str | None = _UNSET,
        clear_error: bool = False,
    ) -> CacheState[T]:
        """Copy with the given fields replaced.

        clear_error drops both error and error_message regardless of the
        other arguments.
        """
        changes: dict[str, Any] = {
            "data": data,
            "last_updated": last_updated,
            "is_loading": is_loading,
            "source": source,
            "error": error,
            "error_message": error_message,
        }
        if clear_error:
            changes["error"] = None
            changes["error_message"] = None
        return replace(self, **{k: v for k, v in changes.items() if v is not _UNSET})

    def with_cache_data(self, data: T, sync_time: Timestamp | None) -> CacheState[T]:
        """Data hydrated from the store; the network leg is still pending."""
        return self.copy_with(
            data=data,
            last_updated=sync_time,
            source=CacheSource.CACHE,
            is_loading=True,
            clear_error=True,
        )

    def with_network_data(self, data: T) -> CacheState[T]:
        """Fresh data from the remote source."""
        return self.copy_with(
            data=data,
            last_updated=now_ms(),
            source=CacheSource.NETWORK,
            is_loading=False,
            clear_error=True,
        )

    def with_error(
        self, error: BaseException, message: str | None = None
    ) -> CacheState[T]:
        """Record a failure, keeping whatever data is already present."""
        return self.copy_with(
            is_loading=False,
            error=error,
            error_message=message if message is not None else describe_error(error),
        )

    def __repr__(self) -> str:
        return (
            f"CacheState(has_data={self.has_data}, is_loading={self.is_loading}, "
            f"source={self.source.value}, last_updated={self.last_updated}, "
            f"has_error={self.has_error})"
        )


def project_first(state: CacheState[list[U]]) -> CacheState[U | None]:
    """Narrow a list state to its first element (None when empty)."""
    first = state.data[0] if state.data else None
    return CacheState(
        data=first,
        last_updated=state.last_updated,
        is_loading=state.is_loading,
        source=state.source,
        error=state.error,
        error_message=state.error_message,
    )
