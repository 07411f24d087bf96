"""'Thinking' timer: whole seconds the agent has been computing.

The counter runs only while loading and no confirmation is pending. A
human deciding is not agent compute time, so the clock stops (and resets)
while a question is open.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable

from termchat.logging import get_logger

log = get_logger("session.timer")


class BusyTimer:
    """Seconds counter driven by (loading, confirmation_pending).

    Args:
        interval: Seconds per tick; tests use a short interval.
        on_tick: Called with the new count after each tick.
    """

    def __init__(
        self,
        interval: float = 1.0,
        on_tick: Callable[[int], None] | None = None,
    ) -> None:
        self._interval = interval
        self._on_tick = on_tick
        self._seconds = 0
        self._task: asyncio.Task[None] | None = None

    @property
    def seconds(self) -> int:
        return self._seconds

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def update(self, loading: bool, confirmation_pending: bool) -> None:
        """Start on entering the busy state, stop and reset on leaving it."""
        busy = loading and not confirmation_pending
        if busy and not self.running:
            self._seconds = 0
            self._task = asyncio.get_running_loop().create_task(self._run())
            log.debug("Busy timer started")
        elif not busy:
            self.stop()

    def stop(self) -> None:
        """Cancel the tick task and reset the counter to zero."""
        if self._task is not None:
            self._task.cancel()
            self._task = None
            log.debug("Busy timer stopped")
        self._seconds = 0

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            self._seconds += 1
            if self._on_tick is not None:
                self._on_tick(self._seconds)
