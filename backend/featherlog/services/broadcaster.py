"""
In-process publish/subscribe hub for newly ingested log events.

One Broadcaster is created per application (see `featherlog.main`) and
handed to the ingestion and stream routes through a dependency. It keeps
nothing on disk and replays nothing: a subscription sees exactly the
events published while it is open.

Delivery model:
  • publish() is synchronous and never awaits — it only does
    `put_nowait` into each subscriber's bounded queue, so a slow viewer
    can never stall the ingest request that published.
  • A subscriber whose queue is full is closed and dropped. Its stream
    ends and the client is expected to reconnect and re-fetch history,
    which bounds memory for stalled or dead connections.
  • Events from one publisher reach each subscriber in publish order.

All calls happen on the event loop thread, and publish() iterates over a
snapshot of the subscriber set, so subscribe/close during a publish is
safe.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Wakes a waiting consumer when its subscription is closed.
_CLOSED = object()


class Subscription(Generic[T]):
    """
    One viewer's handle on the broadcast.

    Iterate with `async for event in subscription` or call `get()`;
    call `close()` (any number of times) to stop receiving. Closing one
    subscription never affects another.
    """

    def __init__(self, broadcaster: Broadcaster[T], maxsize: int) -> None:
        self._broadcaster = broadcaster
        self._queue: asyncio.Queue[Any] = asyncio.Queue(maxsize=maxsize)
        self._closed = False
        self.overflowed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def _deliver(self, event: T) -> bool:
        """Queue one event without blocking. Returns False if dropped."""
        if self._closed:
            return False
        try:
            self._queue.put_nowait(event)
        except asyncio.QueueFull:
            logger.warning(
                "Subscriber queue full (%d events) — dropping subscriber",
                self._queue.maxsize,
            )
            self.overflowed = True
            self.close()
            return False
        return True

    async def get(self) -> T | None:
        """
        Wait for the next event.

        Returns None once the subscription is closed. Events already
        queued when close() is called are discarded.
        """
        if self._closed:
            return None
        item = await self._queue.get()
        if item is _CLOSED or self._closed:
            return None
        return item

    def close(self) -> None:
        """Unsubscribe. Idempotent."""
        if self._closed:
            return
        self._closed = True
        self._broadcaster._discard(self)

        # Drop pending events, then wake any consumer blocked in get().
        while not self._queue.empty():
            self._queue.get_nowait()
        self._queue.put_nowait(_CLOSED)

    def __aiter__(self) -> Subscription[T]:
        return self

    async def __anext__(self) -> T:
        event = await self.get()
        if event is None:
            raise StopAsyncIteration
        return event

    async def __aenter__(self) -> Subscription[T]:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        self.close()


class Broadcaster(Generic[T]):
    """Fan out published events to every open Subscription."""

    def __init__(self, queue_size: int = 1000) -> None:
        if queue_size < 1:
            raise ValueError("queue_size must be at least 1")
        self._queue_size = queue_size
        self._subscribers: set[Subscription[T]] = set()

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def subscribe(self) -> Subscription[T]:
        """Open a new subscription; it receives events published from now on."""
        subscription = Subscription(self, self._queue_size)
        self._subscribers.add(subscription)
        logger.debug("Subscriber added. Total subscribers: %d", len(self._subscribers))
        return subscription

    def _discard(self, subscription: Subscription[T]) -> None:
        if subscription in self._subscribers:
            self._subscribers.discard(subscription)
            logger.debug(
                "Subscriber removed. Total subscribers: %d", len(self._subscribers)
            )

    def publish(self, event: T) -> int:
        """
        Deliver `event` to every current subscriber.

        Never blocks and never raises because of a subscriber; returns
        the number of subscriptions the event was queued to.
        """
        delivered = 0
        for subscription in tuple(self._subscribers):
            try:
                if subscription._deliver(event):
                    delivered += 1
            except Exception:
                logger.exception("Failed to deliver event to subscriber")
                subscription.close()
        return delivered

    def close_all(self) -> None:
        """Close every subscription (used on application shutdown)."""
        for subscription in tuple(self._subscribers):
            subscription.close()
