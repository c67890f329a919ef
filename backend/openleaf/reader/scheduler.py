"""Timer events for the reader without threads.

Callbacks are queued with a deadline and fired by :meth:`Scheduler.run_due`,
which the UI calls on every refresh. Tests pass a :class:`ManualClock` and
advance it explicitly.
"""

import heapq
import itertools
import logging
import time
from typing import Callable

logger = logging.getLogger(__name__)


class ManualClock:
    def __init__(self, start: float = 0.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class Scheduler:
    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._queue: list[tuple[float, int, Callable[[], None]]] = []
        self._counter = itertools.count()

    def call_later(self, delay: float, callback: Callable[[], None]) -> None:
        heapq.heappush(self._queue, (self._clock() + delay, next(self._counter), callback))

    @property
    def pending(self) -> int:
        return len(self._queue)

    def next_deadline(self) -> float | None:
        return self._queue[0][0] if self._queue else None

    def run_due(self, now: float | None = None) -> int:
        now = self._clock() if now is None else now
        fired = 0
        while self._queue and self._queue[0][0] <= now:
            _, _, callback = heapq.heappop(self._queue)
            callback()
            fired += 1
        return fired
