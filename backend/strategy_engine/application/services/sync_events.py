"""Sync event broker — in-process broadcaster for mutation and conversion outcomes."""

import asyncio
import json
import logging
from collections.abc import AsyncGenerator
from typing import Any

logger = logging.getLogger(__name__)

# Per-subscriber buffer; a subscriber that falls this far behind is dropped.
MAX_QUEUE_SIZE = 256


class SyncEventBroker:
    """Fans out sync events to SSE subscribers.

    Each subscriber gets its own asyncio.Queue. ``publish`` is synchronous
    so the mutation dispatcher can report local changes without awaiting;
    subscribers consume formatted SSE strings via an async generator.
    """

    def __init__(self) -> None:
        self._queues: list[asyncio.Queue[str | None]] = []

    async def subscribe(self) -> AsyncGenerator[str, None]:
        """Subscribe to SSE events. Unsubscribes when the consumer goes away."""
        queue: asyncio.Queue[str | None] = asyncio.Queue(maxsize=MAX_QUEUE_SIZE)
        self._queues.append(queue)
        try:
            while True:
                event = await queue.get()
                if event is None:
                    break
                yield event
        finally:
            if queue in self._queues:
                self._queues.remove(queue)

    def publish(self, event_type: str, data: dict[str, Any]) -> None:
        """Push an event to every subscriber without blocking."""
        sse_message = f"event: {event_type}\ndata: {json.dumps(data, default=str)}\n\n"
        dead_queues: list[asyncio.Queue[str | None]] = []

        for queue in self._queues:
            try:
                queue.put_nowait(sse_message)
            except asyncio.QueueFull:
                dead_queues.append(queue)
                logger.warning("SSE subscriber queue full — disconnecting")

        for q in dead_queues:
            self._queues.remove(q)
            self._close(q)

    async def broadcast(self, event_type: str, data: dict[str, Any]) -> None:
        self.publish(event_type, data)

    async def shutdown(self) -> None:
        """Disconnect all subscribers."""
        for queue in self._queues:
            self._close(queue)
        self._queues.clear()

    @property
    def subscriber_count(self) -> int:
        return len(self._queues)

    @staticmethod
    def _close(queue: asyncio.Queue[str | None]) -> None:
        # Make room for the sentinel on a full queue.
        while queue.full():
            queue.get_nowait()
        queue.put_nowait(None)
