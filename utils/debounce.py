"""Cancellable delayed execution for debouncing rapid changes."""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

logger = logging.getLogger(__name__)


class DelayedTask:
    """Runs a coroutine after a delay, restarting the delay on each schedule.

    Scheduling again before the delay elapses cancels the pending run
    outright, so only the last callback of a burst runs. Once the delay has
    elapsed the callback is no longer cancellable through ``schedule``.

    Example:
        >>> debounce = DelayedTask(0.5)
        >>> debounce.schedule(lambda: session.search(filters))
    """

    def __init__(self, delay: float) -> None:
        self.delay = max(0.0, delay)
        self._task: Optional[asyncio.Task] = None

    @property
    def pending(self) -> bool:
        """True while a scheduled callback is still waiting for its delay."""
        return self._task is not None and not self._task.done()

    def schedule(self, callback: Callable[[], Awaitable[None]]) -> asyncio.Task:
        """Cancel any pending run and schedule ``callback`` after the delay."""
        self.cancel()
        self._task = asyncio.get_running_loop().create_task(self._run(callback))
        return self._task

    def cancel(self) -> bool:
        """Cancel the pending run. Returns True if one was cancelled."""
        if not self.pending:
            return False
        self._task.cancel()
        self._task = None
        return True

    async def _run(self, callback: Callable[[], Awaitable[None]]) -> None:
        await asyncio.sleep(self.delay)
        # Detach before running; a later schedule must not cancel this run
        self._task = None
        await callback()
