"""Cooperative single-thread scheduler.

Callbacks run on the thread that calls ``run()``; nothing executes in
parallel. ``VirtualClock`` swaps wall time for a counter so accelerated runs
and tests never wait.
"""
from __future__ import annotations
import heapq
import itertools
import logging
import time
from typing import Callable, List, Optional, Tuple

logger = logging.getLogger(__name__)

class Handle:
    """A pending callback; cancelling it is idempotent."""
    __slots__ = ("due", "callback", "cancelled")

    def __init__(self, due: float, callback: Callable[[], None]):
        self.due = due
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True

class VirtualClock:
    """Manually advanced clock (seconds). ``sleep`` moves time forward instantly."""

    def __init__(self, start: float = 0.0):
        self.now = float(start)

    def time(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        if seconds > 0:
            self.now += seconds

    def advance(self, seconds: float) -> None:
        self.sleep(seconds)

class Scheduler:
    """Timer queue driven by ``run()``."""

    def __init__(
        self,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self._clock = clock
        self._sleep = sleep
        self._queue: List[Tuple[float, int, Handle]] = []
        self._seq = itertools.count()

    @classmethod
    def virtual(cls, start: float = 0.0) -> "Scheduler":
        vc = VirtualClock(start)
        return cls(clock=vc.time, sleep=vc.sleep)

    def time(self) -> float:
        return self._clock()

    def call_later(self, delay_s: float, callback: Callable[[], None]) -> Handle:
        handle = Handle(self._clock() + max(0.0, float(delay_s)), callback)
        heapq.heappush(self._queue, (handle.due, next(self._seq), handle))
        return handle

    def cancel(self, handle: Optional[Handle]) -> None:
        if handle is not None:
            handle.cancel()

    def pending(self) -> int:
        return sum(1 for _, _, h in self._queue if not h.cancelled)

    def run_once(self) -> bool:
        """Wait for and run the next live callback. Returns False when idle."""
        while self._queue:
            due, _, handle = heapq.heappop(self._queue)
            if handle.cancelled:
                continue
            wait = due - self._clock()
            if wait > 0:
                self._sleep(wait)
            handle.callback()
            return True
        return False

    def run(self, max_callbacks: Optional[int] = None) -> int:
        """Run callbacks until the queue drains; returns how many ran."""
        n = 0
        while max_callbacks is None or n < max_callbacks:
            if not self.run_once():
                break
            n += 1
        logger.debug("Scheduler ran %d callbacks", n)
        return n
