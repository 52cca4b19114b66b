"""Cancellable fixed-interval task running on the asyncio event loop.

State machine::

    IDLE --start()--> RUNNING --callback returns False--> COMPLETED
      |                  |
      +----cancel()------+-----------------------------> CANCELLED

The next interval starts only after the previous callback has settled, so
ticks of one ScheduledTask never overlap. The state is re-checked after
every sleep: once cancelled, the callback is not invoked again.
"""

from __future__ import annotations

import asyncio
import contextlib
import enum
import logging
from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)

TickCallback = Callable[[], Awaitable[bool]]


class ScheduleState(str, enum.Enum):
    IDLE = "IDLE"
    RUNNING = "RUNNING"
    CANCELLED = "CANCELLED"
    COMPLETED = "COMPLETED"


class ScheduledTask:
    """Runs `callback` every `interval` seconds until it returns False or is cancelled."""

    def __init__(self, name: str, callback: TickCallback, interval: float) -> None:
        if interval < 0:
            raise ValueError("interval must be >= 0")
        self.name = name
        self.interval = interval
        self.ticks = 0
        self._callback = callback
        self._state = ScheduleState.IDLE
        self._task: asyncio.Task[None] | None = None

    @property
    def state(self) -> ScheduleState:
        return self._state

    @property
    def active(self) -> bool:
        return self._state is ScheduleState.RUNNING

    def start(self) -> None:
        if self._state is not ScheduleState.IDLE:
            raise RuntimeError(f"ScheduledTask {self.name} already {self._state.value}")
        self._state = ScheduleState.RUNNING
        self._task = asyncio.get_running_loop().create_task(self._run(), name=self.name)

    def cancel(self) -> bool:
        """Stop future ticks. Returns False if the task had already finished."""
        if self._state in (ScheduleState.CANCELLED, ScheduleState.COMPLETED):
            return False
        self._state = ScheduleState.CANCELLED
        task = self._task
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()
        return True

    async def wait(self) -> None:
        """Wait for the loop to exit (completion or cancellation)."""
        if self._task is None:
            return
        with contextlib.suppress(asyncio.CancelledError):
            await self._task

    async def _run(self) -> None:
        try:
            while self._state is ScheduleState.RUNNING:
                await asyncio.sleep(self.interval)
                if self._state is not ScheduleState.RUNNING:
                    break
                self.ticks += 1
                try:
                    keep_going = await self._callback()
                except asyncio.CancelledError:
                    raise
                except Exception:
                    logger.exception("%s: tick %d raised", self.name, self.ticks)
                    continue
                if not keep_going:
                    if self._state is ScheduleState.RUNNING:
                        self._state = ScheduleState.COMPLETED
                    break
        except asyncio.CancelledError:
            self._state = ScheduleState.CANCELLED
            raise
