from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from concurrent.futures import Future
from datetime import datetime, timezone

logger = logging.getLogger(__name__)


def _log_delivery_failure(future: Future[None]) -> None:
    if future.cancelled():
        return
    exc = future.exception()
    if exc is not None:
        logger.warning("Dropped log event: %r", exc)


class LogStream:
    def __init__(self) -> None:
        self._subscribers: set[asyncio.Queue[dict[str, str]]] = set()
        self._lock = asyncio.Lock()

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    async def subscribe(self) -> AsyncIterator[dict[str, str]]:
        queue: asyncio.Queue[dict[str, str]] = asyncio.Queue()
        async with self._lock:
            self._subscribers.add(queue)
        try:
            while True:
                yield await queue.get()
        finally:
            async with self._lock:
                self._subscribers.discard(queue)

    async def publish(self, message: str, level: str = "info") -> None:
        event = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": level,
            "message": message,
        }
        async with self._lock:
            subscribers = list(self._subscribers)
        for queue in subscribers:
            queue.put_nowait(event)

    def publish_threadsafe(
        self, loop: asyncio.AbstractEventLoop, message: str, level: str = "info"
    ) -> Future[None]:
        # Called from probe worker threads; delivery happens on ``loop``.
        future = asyncio.run_coroutine_threadsafe(self.publish(message, level), loop)
        future.add_done_callback(_log_delivery_failure)
        return future
