"""Live catalog subscriptions.

A ``Subscription`` wraps one store listener. It is either active or
cancelled; cancelling is terminal, idempotent and releases the listener
exactly once. ``SubscriptionStream`` exposes the same deliveries as an
async iterator for consumers living on an event loop.
"""

import asyncio
import threading
from collections.abc import Callable
from enum import Enum
from typing import Any, Generic, TypeVar

import structlog

from storefront.infrastructure.store import Unsubscribe

logger = structlog.get_logger()

T = TypeVar("T")

_CLOSED: Any = object()


class SubscriptionState(str, Enum):
    """Lifecycle states of a subscription."""

    ACTIVE = "active"
    CANCELLED = "cancelled"


class Subscription(Generic[T]):
    """Handle for a live listener.

    Deliveries stop as soon as ``cancel()`` returns, even if the store
    reports a change late. Usable as a context manager to guarantee
    release.

    Example usage:
        with service.subscribe_to_product("p1", render) as subscription:
            ...
    """

    def __init__(self, target: str) -> None:
        """Initialize an active subscription.

        Args:
            target: Description of what is watched, for logging.
        """
        self.target = target
        self._state = SubscriptionState.ACTIVE
        self._unsubscribe: Unsubscribe | None = None
        self._lock = threading.Lock()

    @property
    def state(self) -> SubscriptionState:
        return self._state

    @property
    def active(self) -> bool:
        return self._state is SubscriptionState.ACTIVE

    def bind(self, unsubscribe: Unsubscribe) -> None:
        """Attach the store's release function.

        If the subscription was cancelled while the store was still
        registering it, the listener is released right away.
        """
        with self._lock:
            if self._state is SubscriptionState.ACTIVE:
                self._unsubscribe = unsubscribe
                return
        unsubscribe()

    def deliver(self, callback: Callable[[T], None], value: T) -> None:
        """Invoke the consumer callback unless cancelled.

        A failing callback is logged and the subscription keeps listening.
        """
        if self._state is not SubscriptionState.ACTIVE:
            return
        try:
            callback(value)
        except Exception:
            logger.exception("Subscription callback failed", target=self.target)

    def cancel(self) -> None:
        """Stop deliveries and release the store listener."""
        with self._lock:
            if self._state is SubscriptionState.CANCELLED:
                return
            self._state = SubscriptionState.CANCELLED
            unsubscribe, self._unsubscribe = self._unsubscribe, None
        if unsubscribe is not None:
            unsubscribe()
        logger.debug("Subscription cancelled", target=self.target)

    def __enter__(self) -> "Subscription[T]":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.cancel()

    def __repr__(self) -> str:
        return f"<Subscription(target={self.target}, state={self._state.value})>"


class SubscriptionStream(Generic[T]):
    """Async iterator over subscription deliveries.

    Emits the current value on open, then one item per change. Values
    may be pushed from any thread; they are handed to the owning event
    loop. Closing the stream cancels the subscription.

    Example usage:
        async with service.stream_product("p1") as stream:
            async for product in stream:
                ...
    """

    def __init__(self) -> None:
        """Initialize stream bound to the running event loop."""
        self._loop = asyncio.get_running_loop()
        self._queue: asyncio.Queue[Any] = asyncio.Queue()
        self._subscription: Subscription[T] | None = None
        self._closed = False

    def attach(self, subscription: Subscription[T]) -> None:
        self._subscription = subscription

    def push(self, value: T) -> None:
        """Queue a delivery; safe to call from other threads."""
        if self._closed or self._loop.is_closed():
            return
        self._loop.call_soon_threadsafe(self._queue.put_nowait, value)

    def close(self) -> None:
        """Cancel the subscription and end iteration."""
        if self._closed:
            return
        self._closed = True
        if self._subscription is not None:
            self._subscription.cancel()
        if not self._loop.is_closed():
            self._loop.call_soon_threadsafe(self._queue.put_nowait, _CLOSED)

    def __aiter__(self) -> "SubscriptionStream[T]":
        return self

    async def __anext__(self) -> T:
        if self._closed and self._queue.empty():
            raise StopAsyncIteration
        value = await self._queue.get()
        if value is _CLOSED:
            raise StopAsyncIteration
        return value

    async def __aenter__(self) -> "SubscriptionStream[T]":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        self.close()
