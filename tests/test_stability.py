import unittest
import sys
import os

# Add path to source
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from handy_math.detectors.stability import (
    LOCK_DURATION_S,
    TICK_INTERVAL_S,
    LockEvent,
    StabilityDebouncer,
    StabilityPhase,
)


def tick_times(start, seconds, interval=TICK_INTERVAL_S):
    steps = int(round(seconds / interval))
    return [round(start + i * interval, 6) for i in range(steps + 1)]


class TestStabilityDebouncer(unittest.TestCase):
    def setUp(self):
        self.debouncer = StabilityDebouncer()

    def feed(self, count, times):
        return [e for e in (self.debouncer.tick(count, t) for t in times) if e is not None]

    def test_defaults(self):
        self.assertEqual(LOCK_DURATION_S, 2.0)
        self.assertEqual(TICK_INTERVAL_S, 0.1)
        self.assertEqual(self.debouncer.phase, StabilityPhase.IDLE)
        self.assertEqual(self.debouncer.progress, 0.0)

    def test_steady_count_locks_exactly_once(self):
        events = self.feed(3, tick_times(0.0, 5.0))

        self.assertEqual(len(events), 1)
        self.assertEqual(events[0].count, 3)
        self.assertAlmostEqual(events[0].locked_at, 2.0)
        self.assertEqual(self.debouncer.phase, StabilityPhase.LOCKED)
        self.assertEqual(self.debouncer.progress, 1.0)

    def test_no_lock_before_duration(self):
        events = self.feed(4, tick_times(0.0, 1.9))
        self.assertEqual(events, [])
        self.assertEqual(self.debouncer.phase, StabilityPhase.ACCUMULATING)
        self.assertAlmostEqual(self.debouncer.progress, 0.95)

    def test_progress_halfway(self):
        self.feed(2, tick_times(10.0, 1.0))
        self.assertAlmostEqual(self.debouncer.progress, 0.5)

    def test_change_resets_progress(self):
        self.feed(2, tick_times(0.0, 1.5))
        self.assertGreater(self.debouncer.progress, 0.0)

        self.assertIsNone(self.debouncer.tick(3, 1.6))
        self.assertEqual(self.debouncer.progress, 0.0)
        self.assertEqual(self.debouncer.phase, StabilityPhase.TRACKING_NEW)
        self.assertEqual(self.debouncer.state.stable_since, 1.6)

        # needs a full lock duration from the change
        self.assertEqual(self.feed(3, tick_times(1.7, 1.8)), [])
        events = self.feed(3, [3.6])
        self.assertEqual(events, [LockEvent(count=3, locked_at=3.6)])

    def test_flicker_never_locks(self):
        times = tick_times(0.0, 10.0)
        events = [self.debouncer.tick(1 + (i // 5) % 2, t) for i, t in enumerate(times)]
        self.assertTrue(all(e is None for e in events))

    def test_zero_never_locks(self):
        self.assertEqual(self.feed(0, tick_times(0.0, 6.0)), [])
        self.assertEqual(self.debouncer.progress, 0.0)
        self.assertIsNone(self.debouncer.state.stable_since)
        self.assertEqual(self.debouncer.phase, StabilityPhase.IDLE)

    def test_zero_cancels_accumulation(self):
        self.feed(5, tick_times(0.0, 1.8))
        self.debouncer.tick(0, 1.9)
        self.debouncer.tick(0, 2.0)
        self.assertEqual(self.debouncer.progress, 0.0)
        self.assertEqual(self.debouncer.phase, StabilityPhase.IDLE)

        # coming back to the same count starts from scratch
        self.assertEqual(self.feed(5, tick_times(2.1, 1.9)), [])

    def test_latched_until_reset(self):
        self.feed(2, tick_times(0.0, 2.0))
        self.assertTrue(self.debouncer.state.locked)
        self.assertEqual(self.feed(2, tick_times(2.1, 5.0)), [])
        self.assertEqual(self.feed(4, tick_times(7.2, 5.0)), [])

        self.debouncer.reset()
        self.assertFalse(self.debouncer.state.locked)
        self.assertEqual(self.debouncer.last_observed_count, 0)
        events = self.feed(4, tick_times(20.0, 2.0))
        self.assertEqual(len(events), 1)

    def test_custom_duration(self):
        debouncer = StabilityDebouncer(lock_duration=0.5)
        events = [debouncer.tick(1, t) for t in tick_times(0.0, 0.5)]
        self.assertEqual(events[-1], LockEvent(count=1, locked_at=0.5))

    def test_invalid_duration(self):
        with self.assertRaises(ValueError):
            StabilityDebouncer(lock_duration=0)
        with self.assertRaises(ValueError):
            StabilityDebouncer(lock_duration=-1.0)


if __name__ == '__main__':
    unittest.main()
