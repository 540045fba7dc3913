# src/cache/inflight.py — v1
"""Coalescing registry for in-progress fetches.

The first caller for a locator starts one asyncio.Task; later callers
await the same task. The task removes itself from the registry when it
finishes, whatever the outcome.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)


class InFlightRegistry:
    """At most one running fetch task per remote locator."""

    def __init__(self) -> None:
        self._tasks: dict[str, asyncio.Task[str]] = {}

    def __contains__(self, locator: str) -> bool:
        return locator in self._tasks

    def __len__(self) -> int:
        return len(self._tasks)

    def get(self, locator: str) -> asyncio.Task[str] | None:
        return self._tasks.get(locator)

    def start(
        self, locator: str, factory: Callable[[], Awaitable[str]]
    ) -> asyncio.Task[str]:
        """Return the running task for locator, creating it if needed.

        ``factory`` is only invoked when no task is registered yet.
        """
        task = self._tasks.get(locator)
        if task is not None:
            logger.debug("Coalescing fetch for %s", locator)
            return task

        task = asyncio.ensure_future(factory())
        self._tasks[locator] = task
        task.add_done_callback(lambda t: self._discard(locator, t))
        return task

    async def run(self, locator: str, factory: Callable[[], Awaitable[str]]) -> str:
        """Start or join the fetch for locator and await its outcome.

        Cancelling the awaiting caller does not cancel the shared task.
        """
        task = self.start(locator, factory)
        return await asyncio.shield(task)

    def _discard(self, locator: str, task: asyncio.Task[str]) -> None:
        if self._tasks.get(locator) is task:
            del self._tasks[locator]
        # mark the exception retrieved; every waiter may have gone away
        if not task.cancelled():
            task.exception()
