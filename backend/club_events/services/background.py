"""Fire-and-forget dispatch for side notifications.

The primary operation never waits on, or reports, the outcome of a
dispatched notification; failures end up in the log only. Pending tasks are
tracked so shutdown can drain them.
"""
import asyncio
import logging
from typing import Awaitable

logger = logging.getLogger(__name__)


class BackgroundNotifier:
    def __init__(self):
        self._tasks: set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def dispatch(self, coro: Awaitable[object], description: str) -> asyncio.Task:
        """Schedule ``coro`` on the running loop and return immediately."""
        task = asyncio.ensure_future(coro)
        self._tasks.add(task)

        def _finished(done: asyncio.Task) -> None:
            self._tasks.discard(done)
            if done.cancelled():
                logger.warning("Background notification cancelled: %s", description)
                return
            exc = done.exception()
            if exc is not None:
                logger.error("Background notification failed: %s: %s", description, exc, exc_info=exc)
            else:
                logger.debug("Background notification finished: %s", description)

        task.add_done_callback(_finished)
        return task

    async def drain(self) -> None:
        """Wait for every dispatched notification, including ones scheduled meanwhile."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
