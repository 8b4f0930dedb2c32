"""
Cooperative Scheduler for HandyMath

Time-driven work (the 100ms debounce tick, the feedback dwell timer) is
queued here instead of on wall-clock threads. The owner calls
`run_pending(now)` from its loop; tests pass synthetic timestamps.

All callbacks run on the thread that calls `run_pending`. Callbacks receive
the `now` they were fired with as their first argument.
"""

import heapq
import itertools
import math
import time
from typing import Callable, List, Optional


# float slack so that e.g. a task due at 3 * 0.1 still fires at now=0.3
TIME_EPSILON = 1e-9


class ScheduledTask:
    """Handle for a one-shot or periodic callback. Cancel with `cancel()`."""

    def __init__(self, callback: Callable, due: float, interval: Optional[float] = None, args=()):
        self.callback = callback
        self.start = due
        self.due = due
        self.interval = interval
        self.args = tuple(args)
        self.runs = 0
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def periodic(self) -> bool:
        return self.interval is not None

    def cancel(self):
        self._cancelled = True

    def _advance(self, now: float):
        # due times are start + k * interval so they never drift
        self.runs += 1
        self.due = self.start + self.runs * self.interval
        if self.due <= now + TIME_EPSILON:
            # fell behind: skip the missed slots
            self.runs = int(math.floor((now - self.start) / self.interval)) + 1
            self.due = self.start + self.runs * self.interval


class Scheduler:
    """Min-heap of ScheduledTasks keyed by due time."""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self.clock = clock
        self._heap: List = []
        self._seq = itertools.count()

    def now(self) -> float:
        return self.clock()

    def __len__(self):
        return sum(1 for _, _, task in self._heap if not task.cancelled)

    def _push(self, task: ScheduledTask) -> ScheduledTask:
        heapq.heappush(self._heap, (task.due, next(self._seq), task))
        return task

    def call_at(self, when: float, callback: Callable, *args) -> ScheduledTask:
        return self._push(ScheduledTask(callback, when, args=args))

    def call_later(self, delay: float, callback: Callable, *args, now: Optional[float] = None) -> ScheduledTask:
        base = self.now() if now is None else now
        return self.call_at(base + max(0.0, float(delay)), callback, *args)

    def call_every(self, interval: float, callback: Callable, *args,
                   now: Optional[float] = None, start_immediately: bool = False) -> ScheduledTask:
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")
        base = self.now() if now is None else now
        first = base if start_immediately else base + interval
        return self._push(ScheduledTask(callback, first, interval=float(interval), args=args))

    def run_pending(self, now: Optional[float] = None) -> int:
        """
        Fire every task due at or before `now`.

        Returns:
            Number of callbacks invoked.
        """
        if now is None:
            now = self.now()
        fired = 0
        while self._heap and self._heap[0][0] <= now + TIME_EPSILON:
            _, _, task = heapq.heappop(self._heap)
            if task.cancelled:
                continue

            if task.periodic:
                task._advance(now)
                self._push(task)

            fired += 1
            task.callback(now, *task.args)
        return fired

    def next_due(self) -> Optional[float]:
        """Due time of the earliest live task, or None."""
        while self._heap and self._heap[0][2].cancelled:
            heapq.heappop(self._heap)
        return self._heap[0][0] if self._heap else None

    def cancel_all(self):
        for _, _, task in self._heap:
            task.cancel()
        self._heap.clear()
