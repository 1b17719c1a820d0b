"""Stale-while-revalidate orchestration over a resource and a persistent store.

Emission order for one initialize() cycle:
1. persisted data (with_cache_data), when the store has any
2. fresh data from the remote (with_network_data), or an error state

All work runs on one asyncio loop. Flags are flipped before the first await
of a routine and `disposed` is re-checked after every await, so no locks are
needed.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import AsyncGenerator, Callable
from types import TracebackType
from typing import Any, Generic, TypeVar

from swrcache.channel import StateChannel, Subscription, map_subscription
from swrcache.config import DEFAULT_CONFIG, CacheConfig
from swrcache.duration import now_ms
from swrcache.errors import DisposedError
from swrcache.resource import Resource
from swrcache.state import CacheState, describe_error, project_first
from swrcache.stores.base import AsyncPersistentStore
from swrcache.types import CacheEvent

T = TypeVar("T")
ID = TypeVar("ID")

logger = logging.getLogger(__name__)


class CacheOrchestrator(Generic[T, ID]):
    """Drives hydrate -> fetch -> persist -> emit for one entity collection.

    Usage:
        orchestrator = CacheOrchestrator(resource, AsyncMemoryStore(resource))
        async with orchestrator:
            async for state in orchestrator.stream():
                render(state)
    """

    def __init__(
        self,
        resource: Resource[T, ID],
        store: AsyncPersistentStore[T, ID],
        *,
        config: CacheConfig = DEFAULT_CONFIG,
        namespace: str | None = None,
        on_event: Callable[[CacheEvent], None] | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if store.sync_key != config.sync_key:
            raise ValueError(
                f"Store sync_key {store.sync_key!r} does not match "
                f"config sync_key {config.sync_key!r}"
            )
        self._resource = resource
        self._store = store
        self._config = config
        self._namespace = namespace or getattr(resource, "name", "resource")
        self._on_event = on_event
        self._clock = clock

        self._channel: StateChannel[CacheState[list[T]]] = StateChannel(
            CacheState.loading()
        )
        self._last_refresh_attempt: float | None = None
        self._initialized = False
        self._disposed = False
        self._background_tasks: set[asyncio.Task[None]] = set()

        if config.auto_initialize:
            self._schedule_initialize()

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    @property
    def config(self) -> CacheConfig:
        return self._config

    @property
    def namespace(self) -> str:
        return self._namespace

    @property
    def current_state(self) -> CacheState[list[T]]:
        """Synchronous snapshot of the latest emitted state."""
        return self._channel.value

    @property
    def is_loading(self) -> bool:
        return self._channel.value.is_loading

    @property
    def has_data(self) -> bool:
        return self._channel.value.has_data

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    @property
    def is_disposed(self) -> bool:
        return self._disposed

    @property
    def subscriber_count(self) -> int:
        """Open stream subscriptions."""
        return self._channel.subscriber_count

    @property
    def last_refresh_attempt(self) -> float | None:
        """Clock reading of the last fetch attempt, successful or not."""
        return self._last_refresh_attempt

    def stream(self) -> Subscription[CacheState[list[T]]]:
        """Subscribe to state changes, starting with the current state.

        The subscription ends when the orchestrator is disposed. Use
        `async with orchestrator.stream() as states:` to release it early.
        """
        return self._channel.subscribe()

    def single_item_stream(self) -> AsyncGenerator[CacheState[T | None], None]:
        """Like stream(), projected onto the first item of the collection.

        aclose() on the returned generator releases the subscription.
        """
        return map_subscription(self._channel.subscribe(), project_first)

    def add_listener(self, callback: Callable[[CacheState[list[T]]], None]) -> None:
        """Call `callback` with the current state and every later one."""
        self._channel.add_listener(callback)

    def remove_listener(
        self, callback: Callable[[CacheState[list[T]]], None]
    ) -> None:
        """Remove a listener registered with add_listener."""
        self._channel.remove_listener(callback)

    async def initialize(self) -> None:
        """Hydrate from the store, then fetch from the remote.

        Idempotent. Failures end up as error states, never as exceptions.
        Usually not needed when config.auto_initialize is set.
        """
        self._ensure_not_disposed()
        if self._initialized:
            return
        await self._initialize()

    async def refresh(self) -> None:
        """Fetch from the remote, showing the loading state. Never throttled."""
        self._ensure_not_disposed()
        await self._fetch_remote(silent=False)

    async def silent_refresh(self) -> None:
        """Fetch in the background without flipping the loading flag.

        Skipped when the last attempt is younger than config.refresh_throttle
        or when a fetch is already in flight.
        """
        self._ensure_not_disposed()

        if self._last_refresh_attempt is not None:
            elapsed_ms = (self._clock() - self._last_refresh_attempt) * 1000
            if elapsed_ms < self._config.throttle_ms:
                logger.debug(
                    "CacheOrchestrator[%s]: throttled, last refresh was %.1fs ago",
                    self._namespace,
                    elapsed_ms / 1000,
                )
                self._event("refresh.throttled", elapsed_ms=int(elapsed_ms))
                return

        if self._channel.value.is_loading:
            self._event("refresh.skipped", reason="loading")
            return

        await self._fetch_remote(silent=True)

    async def invalidate(self) -> None:
        """Clear the store and run a full cold-start cycle."""
        self._ensure_not_disposed()
        await self._store.initialize()
        await self._store.clear()
        if self._disposed:
            return
        self._event("invalidated")
        self._initialized = False
        self._emit(CacheState.loading())
        await self._initialize()

    async def get_by_id(self, id: ID, *, fetch_if_missing: bool = False) -> T | None:
        """Read one entity from the store, optionally fetching when missing.

        The fetch is silent, bypasses the throttle and is skipped when
        another fetch is already running.
        """
        self._ensure_not_disposed()
        await self._store.initialize()

        cached = await self._store.get_by_id(id)
        if cached is not None or self._disposed:
            return cached

        if fetch_if_missing and not self._channel.value.is_loading:
            await self._fetch_remote(silent=True)
            if self._disposed:
                return None
            return await self._store.get_by_id(id)

        return None

    async def dispose(self) -> None:
        """Close the channel and the store. Safe to call more than once."""
        if self._disposed:
            return
        self._disposed = True

        self._channel.close()
        await self._store.dispose()
        self._event("disposed")

    async def __aenter__(self) -> CacheOrchestrator[T, ID]:
        if self._config.auto_initialize:
            await self.initialize()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.dispose()

    # -------------------------------------------------------------------------
    # Internal helpers
    # -------------------------------------------------------------------------

    def _schedule_initialize(self) -> None:
        """Start initialization on the running loop, if there is one."""
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No loop yet: initialize() or `async with` takes over.
            return
        task = loop.create_task(self._initialize())
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)

    async def _initialize(self) -> None:
        if self._initialized:
            return
        self._initialized = True
        self._event("initialize.started")

        try:
            await self._store.initialize()
            if self._disposed:
                return

            cached_items = await self._store.get_all()
            last_sync = await self._store.last_sync_time()
            if self._disposed:
                return

            if cached_items:
                display = self._resource.transform_for_display(list(cached_items))
                self._emit(self._channel.value.with_cache_data(display, last_sync))
                self._event(
                    "cache.hydrated", count=len(cached_items), last_sync=last_sync
                )

            await self._fetch_remote(silent=bool(cached_items))
        except Exception as e:
            if self._disposed:
                return
            logger.debug(
                "CacheOrchestrator[%s]: initialization error: %s", self._namespace, e
            )
            self._emit(
                self._channel.value.with_error(
                    e, f"Initialization failed: {describe_error(e)}"
                )
            )
            self._report_error(e)

    async def _fetch_remote(self, *, silent: bool) -> None:
        if self._disposed:
            return
        self._last_refresh_attempt = self._clock()
        self._event("fetch.started", silent=silent)

        try:
            if not silent:
                self._emit(
                    self._channel.value.copy_with(is_loading=True, clear_error=True)
                )

            items = list(await self._resource.fetch_remote())
            if self._disposed:
                return

            cache_data = self._resource.transform_for_cache(items)
            display_data = self._resource.transform_for_display(items)

            await self._store.save_all(cache_data)
            if self._disposed:
                return

            self._emit(self._channel.value.with_network_data(display_data))
            self._event("fetch.succeeded", count=len(items), cached=len(cache_data))
        except Exception as e:
            if self._disposed:
                return
            self._emit(
                self._channel.value.with_error(
                    e, f"Network request failed: {describe_error(e)}"
                )
            )
            self._event("fetch.failed", error=describe_error(e))
            self._report_error(e)

    def _emit(self, state: CacheState[list[T]]) -> None:
        if self._disposed:
            return
        self._channel.add(state)

    def _report_error(self, error: Exception) -> None:
        try:
            self._resource.on_fetch_error(error)
        except Exception:
            logger.exception(
                "CacheOrchestrator[%s]: on_fetch_error hook failed", self._namespace
            )

    def _event(self, name: str, **detail: Any) -> None:
        event = CacheEvent(
            name=name, namespace=self._namespace, timestamp=now_ms(), detail=detail
        )
        if self._on_event is None:
            logger.debug("CacheOrchestrator[%s]: %s %s", self._namespace, name, detail)
            return
        try:
            self._on_event(event)
        except Exception:
            logger.exception(
                "CacheOrchestrator[%s]: event callback failed for %s",
                self._namespace,
                name,
            )

    def _ensure_not_disposed(self) -> None:
        if self._disposed:
            raise DisposedError(self._namespace)


__all__ = ["CacheOrchestrator"]
