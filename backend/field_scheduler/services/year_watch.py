"""Year-boundary watch.

Data files are partitioned by calendar year and the store binds its year at
startup. When the local year moves on, the watch waits for any in-flight
change (by taking the change lock, which it never gives back) and then asks
the host to shut down; the supervisor restarts the process against the new
year's files, so one file never mixes two years.
If the shutdown has not finished after the grace period the process is
forced down.
"""
import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional, Union

from field_scheduler.services.state import AppState
from field_scheduler.util.exit import exit_after_grace
from field_scheduler.util.timeutil import local_year

logger = logging.getLogger(__name__)

RolloverCallback = Callable[[], Union[None, Awaitable[None]]]
ForceExit = Callable[[int, float], Any]


class YearWatch:
    def __init__(
        self,
        state: AppState,
        on_rollover: RolloverCallback,
        interval: float = 1.0,
        current_year: Optional[Callable[[], int]] = None,
        grace: float = 1.0,
        force_exit: ForceExit = exit_after_grace,
    ) -> None:
        self._state = state
        self._on_rollover = on_rollover
        self._interval = interval
        self._current_year = current_year or (lambda: local_year(state.settings.TIME_ZONE))
        self._grace = grace
        self._force_exit = force_exit
        self._task: Optional[asyncio.Task] = None
        self.triggered = False

    def start(self) -> None:
        if self._task is None:
            self._task = asyncio.create_task(self._run(), name="year-watch")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None

    async def check(self) -> bool:
        """Run one check; returns True if a rollover was handled."""
        if self.triggered or self._current_year() == self._state.year:
            return False

        self.triggered = True
        logger.warning("Year has changed from %s. Shutting down to ensure data integrity.", self._state.year)
        # Drain: the lock is granted only after every queued change has committed.
        await self._state.lock.acquire()
        result = self._on_rollover()
        if asyncio.iscoroutine(result):
            await result
        # Requests queued behind the watch would hold a graceful shutdown open.
        self._force_exit(0, self._grace)
        return True

    async def _run(self) -> None:
        while not self.triggered:
            await asyncio.sleep(self._interval)
            await self.check()
