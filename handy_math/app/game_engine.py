"""
Game Engine for HandyMath

Owns the game thread. Everything that mutates game state (debouncer, round,
session) runs here, driven by the Scheduler:

    camera thread --HandFrame--> frame queue --+
    GUI thread ----command-----> command queue -+--> step(now) --> RoundController
                                                                 --> status queue (GUI)

Every `tick_interval` the newest queued HandFrame is classified and fed to the
controller; older frames are superseded. When no frame arrived since the
last tick the previous count stands.
"""

import logging
import queue
import threading
from typing import Callable, List, Optional

from handy_math.app.round_controller import GameSnapshot, RoundController
from handy_math.detectors.finger_counter import FingerCount, INVALID_COUNT, count_extended_fingers
from handy_math.detectors.hand_frame import HandFrame
from handy_math.detectors.stability import TICK_INTERVAL_S
from handy_math.utils.scheduler import Scheduler


logger = logging.getLogger(__name__)

COMMAND_START = 'start'
COMMAND_RESTART = 'restart'
COMMAND_QUIT = 'quit'
COMMANDS = (COMMAND_START, COMMAND_RESTART, COMMAND_QUIT)

# status_queue sentinel that closes the GUI
SHUTDOWN = ('shutdown', 'shutdown')


def put_latest(q: queue.Queue, item):
    """Put into a bounded queue, dropping the oldest item when it is full."""
    while True:
        try:
            q.put_nowait(item)
            return
        except queue.Full:
            try:
                q.get_nowait()
            except queue.Empty:
                pass


class GameEngine:
    """
    Drives a RoundController from queued hand frames and GUI commands.

    Args:
        controller: the round state machine (its scheduler is reused)
        tick_interval: seconds between finger-count samples
        status_queue: optional queue that receives every GameSnapshot
        max_pending_frames: size of the hand-frame queue
        auto_start: start the first game as soon as the engine starts
    """

    def __init__(
        self,
        controller: RoundController,
        tick_interval: float = TICK_INTERVAL_S,
        status_queue: Optional[queue.Queue] = None,
        max_pending_frames: int = 2,
        auto_start: bool = False,
    ):
        if tick_interval <= 0:
            raise ValueError(f"tick_interval must be positive, got {tick_interval}")

        self.controller = controller
        self.scheduler: Scheduler = controller.scheduler
        self.tick_interval = float(tick_interval)
        self.status_queue = status_queue
        self.auto_start = auto_start

        self.frame_queue: queue.Queue = queue.Queue(maxsize=max_pending_frames)
        self.command_queue: queue.Queue = queue.Queue()

        self.last_count: FingerCount = INVALID_COUNT
        self.last_frame: Optional[HandFrame] = None
        self.running = False
        self._started = False
        self._tick_task = None
        self._stop_event = threading.Event()
        self._quit_listeners: List[Callable[[], None]] = []

        if status_queue is not None:
            controller.subscribe(self._publish)

    # Producers (any thread)

    def submit_frame(self, frame: HandFrame):
        put_latest(self.frame_queue, frame)

    def submit_command(self, command: str):
        if command not in COMMANDS:
            raise ValueError(f"Unknown command: {command!r}")
        self.command_queue.put(command)

    def on_quit(self, listener: Callable[[], None]):
        self._quit_listeners.append(listener)

    # Game thread

    def start(self, now: Optional[float] = None):
        """Arm the periodic tick. Called once from the game thread."""
        if self._started:
            return
        now = self.scheduler.now() if now is None else now
        self._tick_task = self.scheduler.call_every(self.tick_interval, self._tick, now=now)
        self._started = True
        self.running = not self._stop_event.is_set()
        if self.auto_start:
            self.controller.start()

    def step(self, now: Optional[float] = None) -> int:
        """
        Process pending commands, then fire due scheduler tasks.

        Returns:
            Number of scheduler callbacks fired.
        """
        now = self.scheduler.now() if now is None else now
        if not self._started:
            self.start(now)
        self._drain_commands()
        if not self.running:
            return 0
        return self.scheduler.run_pending(now)

    def _drain_commands(self):
        while True:
            try:
                command = self.command_queue.get_nowait()
            except queue.Empty:
                return
            logger.debug("Command: %s", command)
            if command == COMMAND_START:
                self.controller.start()
            elif command == COMMAND_RESTART:
                self.controller.restart()
            elif command == COMMAND_QUIT:
                self.stop()
                return

    def _latest_frame(self) -> Optional[HandFrame]:
        latest = None
        while True:
            try:
                latest = self.frame_queue.get_nowait()
            except queue.Empty:
                return latest

    def _tick(self, now: float):
        frame = self._latest_frame()
        if frame is not None:
            self.last_frame = frame
            self.last_count = count_extended_fingers(frame)
        count = self.last_count
        self.controller.on_tick(count.count, now, hand_detected=count.valid)

    def _publish(self, snapshot: GameSnapshot):
        if self.status_queue.maxsize:
            put_latest(self.status_queue, snapshot)
        else:
            self.status_queue.put(snapshot)

    def run(self):
        """Blocking loop for the game thread. Returns after stop()."""
        self.start()
        logger.info("✓ Game engine running (tick %.0f ms)", self.tick_interval * 1000)
        try:
            while self.running:
                self.step()
                next_due = self.scheduler.next_due()
                delay = self.tick_interval if next_due is None else next_due - self.scheduler.now()
                self._stop_event.wait(min(max(delay, 0.001), self.tick_interval))
        finally:
            self.scheduler.cancel_all()
            logger.info("✓ Game engine stopped")

    def stop(self):
        if self._stop_event.is_set():
            return
        self.running = False
        self._stop_event.set()
        for listener in list(self._quit_listeners):
            try:
                listener()
            except Exception:
                logger.exception("⚠ Quit listener failed")
