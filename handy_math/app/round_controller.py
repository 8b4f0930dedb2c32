"""
Round Controller for HandyMath

The game state machine. One session is ten rounds; each round shows a
question, waits for the StabilityDebouncer to lock an answer, grades it,
holds the feedback on screen for a fixed dwell time and then moves on.

    NOT_STARTED -> AWAITING_ANSWER -> SHOWING_FEEDBACK -> AWAITING_ANSWER ...
                                                       -> COMPLETE

All methods must be called from the single thread that owns the game
(see GameEngine). Observers get an immutable GameSnapshot after every change.
"""

import itertools
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional

from handy_math.app.questions import Question, generate_question
from handy_math.detectors.stability import LockEvent, StabilityDebouncer
from handy_math.utils.scheduler import ScheduledTask, Scheduler
from handy_math.utils.sound_player import NullSoundPlayer, SoundPlayer


logger = logging.getLogger(__name__)

TOTAL_ROUNDS = 10
FEEDBACK_DURATION_S = 2.0


class GamePhase(Enum):
    NOT_STARTED = 'not_started'
    AWAITING_ANSWER = 'awaiting_answer'
    SHOWING_FEEDBACK = 'showing_feedback'
    COMPLETE = 'complete'


@dataclass
class Round:
    index: int
    round_id: int
    question: Question
    submitted_answer: Optional[int] = None
    is_answer_locked: bool = False
    is_correct: bool = False

    @property
    def operands(self):
        return self.question.operands

    @property
    def operator(self) -> str:
        return self.question.operator

    @property
    def expected_answer(self) -> int:
        return self.question.answer


@dataclass
class GameSession:
    score: int = 0
    round_index: int = 0
    is_complete: bool = False
    total_rounds: int = TOTAL_ROUNDS


@dataclass(frozen=True)
class Feedback:
    correct: bool
    submitted: int
    expected: int

    @property
    def message(self) -> str:
        if self.correct:
            return "Correct!"
        return f"Wrong! It was {self.expected}"


@dataclass(frozen=True)
class GameSnapshot:
    """What the presentation layer needs to draw one screen."""
    phase: GamePhase
    round_number: int  # 1-based
    total_rounds: int
    score: int
    problem_text: str = ""
    live_count: int = 0
    hand_detected: bool = False
    progress: float = 0.0
    locked_answer: Optional[int] = None
    feedback: Optional[Feedback] = None
    paused: bool = False

    @property
    def round_label(self) -> str:
        return f"{self.round_number} out of {self.total_rounds}"

    @property
    def final_score_label(self) -> str:
        return f"Final Score: {self.score}/{self.total_rounds}"


class RoundController:
    """
    Orchestrates the rounds of one game.

    Args:
        scheduler: where the feedback dwell timer is queued
        sound_player: receives play("correct") / play("incorrect")
        debouncer: stability state machine; one instance per controller
        question_factory: zero-arg callable returning a Question
        total_rounds: questions per game
        feedback_duration: seconds the feedback stays up before advancing
    """

    def __init__(
        self,
        scheduler: Scheduler,
        sound_player: Optional[SoundPlayer] = None,
        debouncer: Optional[StabilityDebouncer] = None,
        question_factory: Optional[Callable[[], Question]] = None,
        total_rounds: int = TOTAL_ROUNDS,
        feedback_duration: float = FEEDBACK_DURATION_S,
    ):
        if total_rounds < 1:
            raise ValueError(f"total_rounds must be at least 1, got {total_rounds}")
        if feedback_duration < 0:
            raise ValueError(f"feedback_duration must not be negative, got {feedback_duration}")

        self.scheduler = scheduler
        self.sound_player = sound_player if sound_player is not None else NullSoundPlayer()
        self.debouncer = debouncer if debouncer is not None else StabilityDebouncer()
        self.question_factory = question_factory or generate_question
        self.total_rounds = int(total_rounds)
        self.feedback_duration = float(feedback_duration)

        self.phase = GamePhase.NOT_STARTED
        self.session = GameSession(total_rounds=self.total_rounds)
        self.current_round: Optional[Round] = None
        self.paused = False

        self._round_ids = itertools.count(1)
        self._feedback_task: Optional[ScheduledTask] = None
        self._last_feedback: Optional[Feedback] = None
        self._live_count = 0
        self._hand_detected = False
        self._listeners: List[Callable[[GameSnapshot], None]] = []

    # Observers

    def subscribe(self, listener: Callable[[GameSnapshot], None]) -> Callable[[], None]:
        """Register a snapshot listener. Returns a function that unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)
        return unsubscribe

    def _notify(self):
        if not self._listeners:
            return
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception("⚠ Snapshot listener failed")

    def snapshot(self) -> GameSnapshot:
        rnd = self.current_round
        return GameSnapshot(
            phase=self.phase,
            round_number=self.session.round_index + 1,
            total_rounds=self.total_rounds,
            score=self.session.score,
            problem_text=rnd.question.display_text if rnd else "",
            live_count=self._live_count,
            hand_detected=self._hand_detected,
            progress=self.debouncer.progress,
            locked_answer=rnd.submitted_answer if rnd and rnd.is_answer_locked else None,
            feedback=self._last_feedback if self.phase == GamePhase.SHOWING_FEEDBACK else None,
            paused=self.paused,
        )

    # Lifecycle

    def start(self):
        """Begin a fresh game at round 0 with score 0."""
        self._cancel_feedback_timer()
        self.session = GameSession(total_rounds=self.total_rounds)
        self._last_feedback = None
        self._begin_round(0)
        logger.info("▶ Game started (%d rounds)", self.total_rounds)
        self._notify()

    def restart(self):
        """Reset to the initial state of a new game. Always succeeds."""
        logger.info("🔄 Restart requested")
        self.start()

    def set_paused(self, paused: bool):
        paused = bool(paused)
        if paused == self.paused:
            return
        self.paused = paused
        # stale stable_since would lock instantly on resume
        self.debouncer.reset()
        logger.info("⏸ Game paused" if paused else "▶ Game resumed")
        self._notify()

    def _begin_round(self, index: int):
        self.session.round_index = index
        self.current_round = Round(
            index=index,
            round_id=next(self._round_ids),
            question=self.question_factory(),
        )
        self.debouncer.reset()
        self.phase = GamePhase.AWAITING_ANSWER
        logger.info("Round %d/%d: %s (answer %d)", index + 1, self.total_rounds,
                    self.current_round.question.display_text, self.current_round.expected_answer)

    # Input

    def on_tick(self, count: int, now: float, hand_detected: Optional[bool] = None):
        """
        Feed the finger count seen at this tick.

        Only AWAITING_ANSWER forwards it to the debouncer; other phases just
        refresh the live count shown to the player.
        """
        self._live_count = int(count)
        self._hand_detected = bool(count) if hand_detected is None else bool(hand_detected)

        if self.phase == GamePhase.AWAITING_ANSWER and not self.paused:
            event = self.debouncer.tick(self._live_count, now)
            if event is not None:
                self.handle_lock(event, self.current_round.round_id, now)
        self._notify()

    def handle_lock(self, event: LockEvent, round_id: int, now: float) -> bool:
        """
        Grade a locked answer for round `round_id`.

        Locks for another round or outside AWAITING_ANSWER are dropped.

        Returns:
            True if the lock was accepted.
        """
        rnd = self.current_round
        if self.phase != GamePhase.AWAITING_ANSWER or rnd is None or rnd.round_id != round_id:
            logger.debug("Discarding stale lock %s for round %s", event, round_id)
            return False

        rnd.submitted_answer = event.count
        rnd.is_answer_locked = True
        rnd.is_correct = event.count == rnd.expected_answer
        self._last_feedback = Feedback(rnd.is_correct, event.count, rnd.expected_answer)

        if rnd.is_correct:
            self.session.score += 1
        logger.info("%s Round %d: answered %d, expected %d (score %d)",
                    "✓" if rnd.is_correct else "✗", rnd.index + 1, event.count,
                    rnd.expected_answer, self.session.score)

        self._play_sound('correct' if rnd.is_correct else 'incorrect')

        self.phase = GamePhase.SHOWING_FEEDBACK
        self._feedback_task = self.scheduler.call_later(
            self.feedback_duration, self._finish_feedback, rnd.round_id, now=now
        )
        return True

    def _play_sound(self, name: str):
        try:
            self.sound_player.play(name)
        except Exception as e:
            logger.warning("⚠ Sound '%s' failed: %s", name, e)

    def _cancel_feedback_timer(self):
        if self._feedback_task is not None:
            self._feedback_task.cancel()
            self._feedback_task = None

    def _finish_feedback(self, now: float, round_id: int):
        rnd = self.current_round
        if self.phase != GamePhase.SHOWING_FEEDBACK or rnd is None or rnd.round_id != round_id:
            return
        self._feedback_task = None
        self._last_feedback = None

        if self.session.round_index < self.total_rounds - 1:
            self._begin_round(self.session.round_index + 1)
        else:
            self.debouncer.reset()
            self.phase = GamePhase.COMPLETE
            self.session.is_complete = True
            logger.info("🏁 Game complete: %d/%d", self.session.score, self.total_rounds)
        self._notify()
