"""
Server-sent event fan-out for the live dashboard.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, AsyncIterator, Dict, List, Set

from salesboard.utils.clock import isoformat_utc

logger = logging.getLogger(__name__)


class SubscriptionClosedError(Exception):
    """Raised when delivering to a subscription that has been closed."""


class FeedSubscription:
    """One connected client: a bounded queue of encoded frames."""

    def __init__(self, max_pending: int) -> None:
        self._queue: asyncio.Queue[str] = asyncio.Queue(maxsize=max_pending)
        self.closed = False

    def deliver(self, frame: str) -> None:
        if self.closed:
            raise SubscriptionClosedError("subscription is closed")
        self._queue.put_nowait(frame)

    async def receive(self) -> str:
        return await self._queue.get()

    def close(self) -> None:
        self.closed = True

    @property
    def pending(self) -> int:
        return self._queue.qsize()


class LiveFeedBroadcaster:
    """
    Keep the set of open event streams and push frames to all of them.

    Nothing is buffered for clients that connect later. A client whose queue is
    full (it stopped reading) is dropped on the next publish.
    """

    def __init__(self, *, max_pending: int = 100) -> None:
        self._max_pending = max_pending
        self._subscribers: Set[FeedSubscription] = set()

    @staticmethod
    def encode(event: Dict[str, Any]) -> str:
        payload = json.dumps(event, ensure_ascii=False, separators=(",", ":"))
        return f"data: {payload}\n\n"

    def subscribe(self) -> FeedSubscription:
        subscription = FeedSubscription(self._max_pending)
        self._subscribers.add(subscription)
        logger.info("Live feed client connected (%d active)", len(self._subscribers))
        return subscription

    def unsubscribe(self, subscription: FeedSubscription) -> None:
        subscription.close()
        if subscription in self._subscribers:
            self._subscribers.discard(subscription)
            logger.info(
                "Live feed client disconnected (%d active)", len(self._subscribers)
            )

    def publish(self, event: Dict[str, Any]) -> int:
        """Send ``event`` to every active client and return how many got it."""
        frame = self.encode(event)
        failed: List[FeedSubscription] = []
        delivered = 0
        for subscription in list(self._subscribers):
            try:
                subscription.deliver(frame)
            except (asyncio.QueueFull, SubscriptionClosedError):
                failed.append(subscription)
            else:
                delivered += 1

        for subscription in failed:
            logger.warning("Dropping live feed client that is not keeping up")
            self.unsubscribe(subscription)
        return delivered

    async def stream(self) -> AsyncIterator[str]:
        """Subscribe and yield frames until the consumer goes away."""
        subscription = self.subscribe()
        try:
            yield self.encode({"type": "connected", "at": isoformat_utc()})
            while not subscription.closed:
                yield await subscription.receive()
        finally:
            self.unsubscribe(subscription)

    def __len__(self) -> int:
        return len(self._subscribers)


__all__ = [
    "FeedSubscription",
    "LiveFeedBroadcaster",
    "SubscriptionClosedError",
]
