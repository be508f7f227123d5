"""BroadcastHub - in-process fan-out of domain events to connected observers.

Invariants:
    - publish() delivers to every observer subscribed at call time, and only those
    - No backlog or replay: an observer sees events published after it subscribed
    - Per-observer delivery order == publish() call order
    - publish() never blocks and never raises because of a slow or closed observer
    - An observer holds at most max_pending undelivered events; on overflow the
      oldest is dropped

Design Decisions:
    - One bounded asyncio.Queue per observer; publish is put_nowait
    - The hub is an explicit handle held on app.state, not a module global
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

logger = logging.getLogger(__name__)

DEFAULT_MAX_PENDING = 256


class Subscription:
    """Async iterator over events for one observer."""

    def __init__(self, max_pending: int = DEFAULT_MAX_PENDING) -> None:
        self._queue: asyncio.Queue[dict] = asyncio.Queue(maxsize=max_pending)
        self.dropped = 0

    def _deliver(self, message: dict) -> None:
        if self._queue.full():
            self._queue.get_nowait()
            self.dropped += 1
        self._queue.put_nowait(message)

    def pending(self) -> int:
        return self._queue.qsize()

    async def next(self) -> dict:
        return await self._queue.get()

    def __aiter__(self) -> "Subscription":
        return self

    async def __anext__(self) -> dict:
        return await self._queue.get()


class BroadcastHub:
    """Publishes {"event", "data"} messages to current subscribers."""

    def __init__(self, max_pending: int = DEFAULT_MAX_PENDING) -> None:
        self.max_pending = max_pending
        self._subscribers: list[Subscription] = []

    @property
    def observer_count(self) -> int:
        return len(self._subscribers)

    def publish(self, event: str, payload: dict) -> None:
        message = {"event": event, "data": payload}
        for sub in list(self._subscribers):
            sub._deliver(message)
        logger.info(
            "Event published",
            extra={"event": event, "observers": len(self._subscribers)},
        )

    @asynccontextmanager
    async def subscribe(self) -> AsyncIterator[Subscription]:
        sub = Subscription(self.max_pending)
        self._subscribers.append(sub)
        try:
            yield sub
        finally:
            self._subscribers.remove(sub)
