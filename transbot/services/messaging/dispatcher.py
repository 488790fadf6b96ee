"""Concurrent fire-and-forget dispatch of webhook event batches.

The webhook route acknowledges first, then hands the batch to
EventDispatcher.schedule(). Each event runs as its own task; one event's
failure never cancels another's. The batch is joined only to log the
failures. Replies to events in the same batch are not ordered.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Sequence

import structlog

from transbot.schemas.webhook import WebhookEvent

logger = structlog.get_logger(__name__)

EventHandler = Callable[[WebhookEvent], Awaitable[None]]


class EventDispatcher:
    """Runs an event handler for every event of a batch, concurrently."""

    def __init__(self, handler: EventHandler) -> None:
        self._handler = handler
        # Strong references so the event loop does not collect running batches.
        self._tasks: set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def schedule(self, events: Sequence[WebhookEvent]) -> asyncio.Task | None:
        """Start processing a batch in the background and return immediately."""
        if not events:
            return None
        task = asyncio.create_task(self.dispatch(events))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def dispatch(self, events: Sequence[WebhookEvent]) -> int:
        """Handle every event concurrently; return the number that failed."""
        results = await asyncio.gather(
            *(self._handler(event) for event in events),
            return_exceptions=True,
        )
        failures = 0
        for event, result in zip(events, results):
            if isinstance(result, BaseException):
                failures += 1
                logger.error(
                    "event_dispatch_failed",
                    event_type=event.type,
                    event_id=event.webhook_event_id,
                    error=str(result),
                    error_type=type(result).__name__,
                )
        logger.debug(
            "event_batch_complete", events=len(events), failures=failures
        )
        return failures

    async def drain(self) -> None:
        """Wait for in-flight batches (used at shutdown)."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
