import unittest
from unittest.mock import MagicMock
import queue
import sys
import os

# Add path to source
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
sys.path.append(os.path.dirname(os.path.abspath(__file__)))

from handy_math.app.game_engine import GameEngine, put_latest
from handy_math.app.questions import Question
from handy_math.app.round_controller import GamePhase, GameSnapshot, RoundController
from handy_math.detectors.hand_frame import HandFrame
from handy_math.utils.scheduler import Scheduler
from handy_math.utils.sound_player import NullSoundPlayer
from hand_builders import hand_with_count


class TestPutLatest(unittest.TestCase):
    def test_drops_oldest_when_full(self):
        q = queue.Queue(maxsize=2)
        for item in (1, 2, 3):
            put_latest(q, item)
        self.assertEqual([q.get_nowait(), q.get_nowait()], [2, 3])


class TestGameEngine(unittest.TestCase):
    def setUp(self):
        self.now = 0.0
        self.scheduler = Scheduler(clock=lambda: self.now)
        self.sound = NullSoundPlayer()
        self.controller = RoundController(
            self.scheduler,
            sound_player=self.sound,
            question_factory=lambda: Question(left=1, operator='+', right=2, answer=3),
        )
        self.status_queue = queue.Queue()
        self.engine = GameEngine(self.controller, status_queue=self.status_queue)
        self.engine.start(now=0.0)

    def advance(self, seconds):
        for _ in range(int(round(seconds / 0.1))):
            self.now = round(self.now + 0.1, 6)
            self.engine.step(self.now)

    def test_commands_start_the_game(self):
        self.assertEqual(self.controller.phase, GamePhase.NOT_STARTED)
        self.engine.submit_command('start')
        self.engine.step(0.0)
        self.assertEqual(self.controller.phase, GamePhase.AWAITING_ANSWER)

    def test_unknown_command(self):
        with self.assertRaises(ValueError):
            self.engine.submit_command('jump')

    def test_newest_frame_wins(self):
        self.engine.submit_command('start')
        for n in (1, 4, 2):
            self.engine.submit_frame(hand_with_count(n))
        self.advance(0.1)

        self.assertEqual(self.engine.last_count.count, 2)
        self.assertEqual(self.controller.snapshot().live_count, 2)
        self.assertTrue(self.frame_queue_empty())

    def frame_queue_empty(self):
        return self.engine.frame_queue.empty()

    def test_count_stands_without_new_frames(self):
        self.engine.submit_command('start')
        self.engine.submit_frame(hand_with_count(3))
        self.advance(2.1)

        self.assertEqual(self.controller.phase, GamePhase.SHOWING_FEEDBACK)
        self.assertEqual(self.controller.session.score, 1)
        self.assertEqual(self.sound.played, ['correct'])

    def test_lost_hand_cancels_hold(self):
        self.engine.submit_command('start')
        self.engine.submit_frame(hand_with_count(3))
        self.advance(1.5)
        self.engine.submit_frame(HandFrame.empty(self.now))
        self.advance(0.1)

        snap = self.controller.snapshot()
        self.assertFalse(snap.hand_detected)
        self.assertEqual(snap.live_count, 0)
        self.assertEqual(snap.progress, 0.0)

        self.engine.submit_frame(hand_with_count(3))
        self.advance(2.0)
        self.assertEqual(self.controller.phase, GamePhase.AWAITING_ANSWER)

    def test_frames_ignored_until_started(self):
        self.engine.submit_frame(hand_with_count(3))
        self.advance(3.0)
        self.assertEqual(self.controller.phase, GamePhase.NOT_STARTED)
        self.assertTrue(self.controller.snapshot().hand_detected)

    def test_snapshots_published(self):
        self.engine.submit_command('start')
        self.advance(0.1)

        snapshots = []
        while not self.status_queue.empty():
            snapshots.append(self.status_queue.get_nowait())
        self.assertGreaterEqual(len(snapshots), 2)
        self.assertTrue(all(isinstance(s, GameSnapshot) for s in snapshots))
        self.assertEqual(snapshots[-1].problem_text, "1 + 2 = ?")

    def test_restart_command(self):
        self.engine.submit_command('start')
        self.engine.submit_frame(hand_with_count(3))
        self.advance(2.1)
        self.assertEqual(self.controller.session.score, 1)

        self.engine.submit_command('restart')
        self.advance(0.1)
        self.assertEqual(self.controller.session.score, 0)
        self.assertEqual(self.controller.phase, GamePhase.AWAITING_ANSWER)

    def test_quit_command_stops_engine(self):
        listener = MagicMock()
        self.engine.on_quit(listener)
        self.engine.submit_command('quit')

        self.assertEqual(self.engine.step(0.1), 0)
        self.assertFalse(self.engine.running)
        listener.assert_called_once_with()

        self.engine.stop()
        listener.assert_called_once_with()

    def test_run_returns_after_stop(self):
        self.engine.stop()
        self.engine.run()
        self.assertEqual(len(self.scheduler), 0)


class TestAutoStart(unittest.TestCase):
    def test_auto_start(self):
        scheduler = Scheduler(clock=lambda: 0.0)
        controller = RoundController(scheduler)
        engine = GameEngine(controller, auto_start=True)
        engine.step(0.0)
        self.assertEqual(controller.phase, GamePhase.AWAITING_ANSWER)

    def test_invalid_tick(self):
        with self.assertRaises(ValueError):
            GameEngine(RoundController(Scheduler()), tick_interval=0)


if __name__ == '__main__':
    unittest.main()
