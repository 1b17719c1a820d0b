"""Single-producer broadcast channel that replays its latest value."""

from __future__ import annotations

import asyncio
import logging
import weakref
from collections.abc import AsyncGenerator, Callable
from types import TracebackType
from typing import Any, Generic, TypeVar

from swrcache.errors import ChannelClosedError

T = TypeVar("T")

logger = logging.getLogger(__name__)

_CLOSED: Any = object()


class Subscription(Generic[T]):
    """Async iterator over channel values.

    The current value is queued when the subscription is created, so a
    subscriber never misses the latest state. Iteration ends once the channel
    closes and every value emitted before that has been delivered.

    The channel only holds a weak reference: a subscription dropped by its
    consumer stops receiving values once collected. Use `async with` or
    close() to release it deterministically.
    """

    __slots__ = ("_channel", "_queue", "_done", "__weakref__")

    def __init__(self, channel: StateChannel[T]) -> None:
        self._channel = channel
        self._queue: asyncio.Queue[Any] = asyncio.Queue()
        self._done = False

    def __aiter__(self) -> Subscription[T]:
        return self

    async def __anext__(self) -> T:
        if self._done:
            raise StopAsyncIteration
        item = await self._queue.get()
        if item is _CLOSED:
            self._done = True
            raise StopAsyncIteration
        return item

    async def __aenter__(self) -> Subscription[T]:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def _push(self, value: Any) -> None:
        self._queue.put_nowait(value)

    @property
    def pending(self) -> int:
        """Number of values queued but not yet consumed."""
        return self._queue.qsize()

    def close(self) -> None:
        """Stop receiving values; anything already queued is discarded."""
        self._channel._unsubscribe(self)
        self._done = True
        while not self._queue.empty():
            self._queue.get_nowait()

    async def aclose(self) -> None:
        """Async alias of close()."""
        self.close()


class StateChannel(Generic[T]):
    """Broadcast of the latest value to subscribers and listeners."""

    def __init__(self, seed: T) -> None:
        self._value = seed
        self._closed = False
        self._subscriptions: weakref.WeakSet[Subscription[T]] = weakref.WeakSet()
        self._listeners: list[Callable[[T], None]] = []

    @property
    def value(self) -> T:
        return self._value

    @property
    def is_closed(self) -> bool:
        return self._closed

    @property
    def subscriber_count(self) -> int:
        """Live subscriptions still registered for new values."""
        return len(self._subscriptions)

    def add(self, value: T) -> None:
        """Publish a new value to every subscriber and listener."""
        if self._closed:
            raise ChannelClosedError("Cannot emit on a closed channel")
        self._value = value
        for subscription in list(self._subscriptions):
            subscription._push(value)
        for listener in list(self._listeners):
            self._notify(listener, value)

    def subscribe(self) -> Subscription[T]:
        """Subscribe to future values, starting with the current one."""
        subscription: Subscription[T] = Subscription(self)
        subscription._push(self._value)
        if self._closed:
            subscription._push(_CLOSED)
        else:
            self._subscriptions.add(subscription)
        return subscription

    def add_listener(self, callback: Callable[[T], None]) -> None:
        """Register a synchronous callback; it is called with the current value."""
        self._notify(callback, self._value)
        if not self._closed:
            self._listeners.append(callback)

    def remove_listener(self, callback: Callable[[T], None]) -> None:
        """Remove a listener registered with add_listener."""
        if callback in self._listeners:
            self._listeners.remove(callback)

    def close(self) -> None:
        """Close the channel. Subscribers drain what is queued, then stop."""
        if self._closed:
            return
        self._closed = True
        for subscription in list(self._subscriptions):
            subscription._push(_CLOSED)
        self._subscriptions.clear()
        self._listeners.clear()

    def _notify(self, listener: Callable[[T], None], value: T) -> None:
        try:
            listener(value)
        except Exception:
            logger.exception("State listener %r failed", listener)

    def _unsubscribe(self, subscription: Subscription[T]) -> None:
        self._subscriptions.discard(subscription)


async def map_subscription(
    subscription: Subscription[T], fn: Callable[[T], Any]
) -> AsyncGenerator[Any, None]:
    """Apply fn to every value of a subscription.

    Closing the returned generator releases the subscription.
    """
    try:
        async for value in subscription:
            yield fn(value)
    finally:
        subscription.close()
