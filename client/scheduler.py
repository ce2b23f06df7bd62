"""
Timer scheduling.

Components never touch the event loop clock directly: they receive a
Scheduler, so the same code runs against the asyncio loop in production
and against a virtual clock in tests.
"""

import asyncio
import heapq
import itertools
from abc import ABC, abstractmethod
from typing import Any, Callable


class Scheduler(ABC):
    """Clock plus one-shot timers."""

    @abstractmethod
    def now(self) -> float:
        """Monotonic time in seconds."""

    @abstractmethod
    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any):
        """Run callback(*args) after delay seconds. Returns a cancellable handle."""

    @abstractmethod
    async def sleep(self, delay: float) -> None:
        """Suspend the calling task for delay seconds."""


class LoopScheduler(Scheduler):
    """Scheduler backed by the running asyncio loop."""

    def now(self) -> float:
        return asyncio.get_running_loop().time()

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any):
        return asyncio.get_running_loop().call_later(delay, callback, *args)

    async def sleep(self, delay: float) -> None:
        await asyncio.sleep(delay)


class VirtualTimer:
    """Handle returned by VirtualScheduler.call_later()."""

    def __init__(self, when: float, callback: Callable[..., Any], args: tuple) -> None:
        self.when = when
        self._callback = callback
        self._args = args
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    def cancelled(self) -> bool:
        return self._cancelled

    def _run(self) -> None:
        self._callback(*self._args)


def _resolve(future: asyncio.Future) -> None:
    if not future.done():
        future.set_result(None)


class VirtualScheduler(Scheduler):
    """
    Deterministic scheduler for tests.

    Timers sit in a heap ordered by expiry and only fire when advance()
    moves the clock past them. A timer fires when its deadline is <= the
    new time, in deadline order, ties broken by scheduling order.
    """

    def __init__(self, start: float = 0.0) -> None:
        self._now = start
        self._queue: list[tuple[float, int, VirtualTimer]] = []
        self._seq = itertools.count()

    def now(self) -> float:
        return self._now

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> VirtualTimer:
        timer = VirtualTimer(self._now + max(delay, 0.0), callback, args)
        heapq.heappush(self._queue, (timer.when, next(self._seq), timer))
        return timer

    async def sleep(self, delay: float) -> None:
        future = asyncio.get_running_loop().create_future()
        timer = self.call_later(delay, _resolve, future)
        try:
            await future
        finally:
            timer.cancel()

    def advance(self, seconds: float) -> int:
        """Move the clock forward, firing due timers. Returns how many fired."""
        target = self._now + seconds
        fired = 0
        while self._queue and self._queue[0][0] <= target:
            when, _, timer = heapq.heappop(self._queue)
            self._now = when
            if timer.cancelled():
                continue
            timer._run()
            fired += 1
        self._now = target
        return fired

    def pending(self) -> int:
        """Number of live (not cancelled) timers."""
        return sum(1 for _, _, timer in self._queue if not timer.cancelled())
