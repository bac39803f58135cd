"""Single-slot asyncio mutex with FIFO hand-off.

``acquire()`` returns a release callable instead of being used as a context
manager: the commit path may deliberately skip the release (strict fault
policy), which an ``async with`` block cannot express.

Not re-entrant. A holder that calls ``acquire()`` again waits for itself.
"""
import asyncio
from collections import deque
from typing import Callable

Release = Callable[[], None]


class Lock:
    def __init__(self) -> None:
        self._locked = False
        self._waiters: deque[asyncio.Future] = deque()

    @property
    def locked(self) -> bool:
        return self._locked

    @property
    def waiting(self) -> int:
        return sum(1 for fut in self._waiters if not fut.done())

    async def acquire(self) -> Release:
        """Wait for the lock and return the function that releases it."""
        if not self._locked:
            self._locked = True
            return self._grant()

        fut = asyncio.get_running_loop().create_future()
        self._waiters.append(fut)
        try:
            await fut
        except asyncio.CancelledError:
            if fut.done() and not fut.cancelled():
                # Ownership was handed over before the cancel landed.
                self._hand_off()
            raise
        return self._grant()

    def _grant(self) -> Release:
        released = False

        def release() -> None:
            nonlocal released
            if released:
                return
            released = True
            self._hand_off()

        return release

    def _hand_off(self) -> None:
        # The lock stays held while ownership moves to the next live waiter.
        while self._waiters:
            fut = self._waiters.popleft()
            if not fut.done():
                fut.set_result(None)
                return
        self._locked = False
