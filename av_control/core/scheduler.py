"""
Timer scheduling for the event-driven controllers.

All deferred work in the engine goes through a ``Scheduler``: hold timers,
indicator timeouts and the fallback layer poll. Production code runs on the
asyncio event loop through ``AsyncioScheduler``; tests substitute a simulated
clock with the same interface.
"""

from __future__ import annotations

import asyncio
from typing import Callable, Optional, Protocol

from .logging_utils import get_module_logger

logger = get_module_logger("Scheduler")

TimerCallback = Callable[[], None]


class TimerHandle(Protocol):
    """A pending one-shot callback. ``cancel()`` is always safe to call."""

    def cancel(self) -> None:
        ...

    def cancelled(self) -> bool:
        ...


class Scheduler(Protocol):
    """Something that can run a callback after a delay on the owning thread."""

    def now(self) -> float:
        ...

    def call_later(self, delay: float, callback: TimerCallback) -> TimerHandle:
        ...


class AsyncioScheduler:
    """Scheduler backed by an asyncio event loop."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def now(self) -> float:
        return self.loop.time()

    def call_later(self, delay: float, callback: TimerCallback) -> asyncio.TimerHandle:
        return self.loop.call_later(max(0.0, delay), callback)


class RepeatingTimer:
    """Cancellable periodic callback built on a ``Scheduler``.

    The next tick is armed before the callback runs, so a callback that
    raises does not stop the timer; the error is logged instead.
    """

    def __init__(
        self,
        scheduler: Scheduler,
        interval: float,
        callback: TimerCallback,
        *,
        name: str = "repeating",
    ) -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        self._scheduler = scheduler
        self._interval = interval
        self._callback = callback
        self._name = name
        self._handle: Optional[TimerHandle] = None

    @property
    def running(self) -> bool:
        return self._handle is not None

    @property
    def interval(self) -> float:
        return self._interval

    def start(self) -> None:
        if self._handle is not None:
            return
        logger.debug("Starting %s timer every %.3fs", self._name, self._interval)
        self._arm()

    def stop(self) -> None:
        if self._handle is None:
            return
        self._handle.cancel()
        self._handle = None
        logger.debug("Stopped %s timer", self._name)

    def _arm(self) -> None:
        self._handle = self._scheduler.call_later(self._interval, self._tick)

    def _tick(self) -> None:
        if self._handle is None:
            return
        self._arm()
        try:
            self._callback()
        except Exception:
            logger.exception("%s timer callback failed", self._name)


__all__ = [
    "AsyncioScheduler",
    "RepeatingTimer",
    "Scheduler",
    "TimerCallback",
    "TimerHandle",
]
