"""
Stability Debouncer for HandyMath

Turns the noisy per-tick finger count into a single committed answer. The
same non-zero count has to be observed continuously for `lock_duration`
seconds; any change restarts the clock and a count of 0 cancels it.

Phases:
    IDLE          nothing being tracked (no hand, or 0 fingers held)
    TRACKING_NEW  the count just changed, clock restarted
    ACCUMULATING  same non-zero count, progress < 1
    LOCKED        lock emitted; latched until reset()
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from handy_math.utils.math_utils import clamp01


TICK_INTERVAL_S = 0.1
LOCK_DURATION_S = 2.0


class StabilityPhase(Enum):
    IDLE = 'idle'
    TRACKING_NEW = 'tracking_new'
    ACCUMULATING = 'accumulating'
    LOCKED = 'locked'


@dataclass
class StabilityState:
    last_observed_count: int = 0
    stable_since: Optional[float] = None
    progress: float = 0.0
    locked: bool = False


@dataclass(frozen=True)
class LockEvent:
    """The player held `count` fingers long enough for it to count as an answer."""
    count: int
    locked_at: float


class StabilityDebouncer:
    """
    Debounce/commit state machine for finger counts.

    Call `tick(count, now)` at a fixed cadence (100ms by default). `now` is any
    monotonic timestamp in seconds, so tests can feed synthetic time.
    """

    def __init__(self, lock_duration: float = LOCK_DURATION_S):
        if lock_duration <= 0:
            raise ValueError(f"lock_duration must be positive, got {lock_duration}")
        self.lock_duration = float(lock_duration)
        self._state = StabilityState()
        self._phase = StabilityPhase.IDLE

    @property
    def state(self) -> StabilityState:
        return self._state

    @property
    def phase(self) -> StabilityPhase:
        return self._phase

    @property
    def progress(self) -> float:
        return self._state.progress

    @property
    def last_observed_count(self) -> int:
        return self._state.last_observed_count

    def reset(self):
        """Forget everything, including a latched lock."""
        self._state = StabilityState()
        self._phase = StabilityPhase.IDLE

    def tick(self, count: int, now: float) -> Optional[LockEvent]:
        state = self._state
        if state.locked:
            return None

        if count != state.last_observed_count:
            state.last_observed_count = count
            state.stable_since = now
            state.progress = 0.0
            self._phase = StabilityPhase.TRACKING_NEW
            return None

        if count > 0 and state.stable_since is not None:
            elapsed = now - state.stable_since
            state.progress = clamp01(elapsed / self.lock_duration)
            # tolerate float error from summed 0.1s ticks
            if elapsed + 1e-9 >= self.lock_duration:
                state.locked = True
                state.progress = 1.0
                self._phase = StabilityPhase.LOCKED
                return LockEvent(count=count, locked_at=now)
            self._phase = StabilityPhase.ACCUMULATING
            return None

        # 0 fingers (or no hand) always cancels an in-progress lock
        state.progress = 0.0
        state.stable_since = None
        self._phase = StabilityPhase.IDLE
        return None
