#!/usr/bin/env python3
"""
HandyMath - Finger Counting Arithmetic Game
Main Application

Shows a small addition or subtraction problem; the player answers by
holding up that many fingers in front of the webcam for two seconds.
Ten rounds per game.

Threads:
    main          PyQt6 game window (or the game loop itself with --headless)
    game-engine   scheduler, debouncer, round controller
    landmark-*    camera capture + MediaPipe
"""

import argparse
import logging
import math
import os
import queue
import sys
import threading
from typing import Callable, Optional

from handy_math.app.game_engine import SHUTDOWN, GameEngine
from handy_math.app.round_controller import FEEDBACK_DURATION_S, TOTAL_ROUNDS, RoundController
from handy_math.config.config_manager import Config, config
from handy_math.detectors.stability import LOCK_DURATION_S, TICK_INTERVAL_S, StabilityDebouncer
from handy_math.utils.scheduler import Scheduler
from handy_math.utils.sound_player import create_sound_player


logger = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s [%(levelname)s] %(name)s: %(message)s'
CONFIG_POLL_INTERVAL_S = 0.5


class HandyMathApplication:
    """Wires camera, game engine, sound and GUI queues together."""

    def __init__(self, config=config, camera_idx: int = 0, sound_enabled: Optional[bool] = None,
                 status_queue: Optional[queue.Queue] = None, frame_queue: Optional[queue.Queue] = None,
                 auto_start: bool = False, source_factory: Optional[Callable] = None):
        """
        Initialize HandyMath application.

        Args:
            config: Config instance
            camera_idx: Camera device index
            sound_enabled: override for sound.enabled (None = use config)
            status_queue: receives GameSnapshots for the GUI
            frame_queue: receives preview frames for the GUI
            auto_start: begin the first game without waiting for the Start button
            source_factory: builds the landmark source; defaults to the camera
        """
        print("\n" + "=" * 60)
        print("HandyMath - Finger Counting Arithmetic Game")
        print("=" * 60 + "\n")

        self.config = config
        self.config_path = config.config_path
        try:
            self.last_config_mtime = os.path.getmtime(self.config_path)
        except OSError:
            self.last_config_mtime = 0

        self.status_queue = status_queue
        self.frame_queue = frame_queue

        self.sound = create_sound_player(config, enabled=sound_enabled)
        self.scheduler = Scheduler()
        self.debouncer = StabilityDebouncer(
            config.get('stability', 'lock_duration_seconds', default=LOCK_DURATION_S)
        )
        self.controller = RoundController(
            self.scheduler,
            sound_player=self.sound,
            debouncer=self.debouncer,
            total_rounds=config.get('game', 'total_rounds', default=TOTAL_ROUNDS),
            feedback_duration=config.get('game', 'feedback_duration_seconds', default=FEEDBACK_DURATION_S),
        )
        self.engine = GameEngine(
            self.controller,
            tick_interval=config.get('stability', 'tick_interval_seconds', default=TICK_INTERVAL_S),
            status_queue=status_queue,
            auto_start=auto_start,
        )
        logger.info("✓ Game engine initialized")

        factory = source_factory or self._create_source
        self.source = factory(config, self.engine.submit_frame, camera_idx, frame_queue)
        # camera loss ends the game
        self.source.on_exit = self.engine.stop
        logger.info("✓ Landmark source initialized")

        self.paused = False
        if self.config.get('app_control', 'restart', default=False):
            # left over from an earlier run; there is no game to restart yet
            logger.info("Clearing stale restart flag")
            self._clear_flag('restart')
        self.scheduler.call_every(CONFIG_POLL_INTERVAL_S, self.check_config)
        self.apply_controls()

        print("\n✓ HandyMath ready!\n")

    @staticmethod
    def _create_source(config, on_frame, camera_idx, frame_queue):
        from handy_math.app.landmark_source import LandmarkSource
        return LandmarkSource(config, on_frame, camera_idx=camera_idx, frame_queue=frame_queue)

    @property
    def command_queue(self) -> queue.Queue:
        return self.engine.command_queue

    # Hot reload (runs on the game-engine thread)

    def check_config(self, now: float = 0.0):
        try:
            current_mtime = os.path.getmtime(self.config_path)
        except OSError as e:
            logger.warning("⚠ Error checking config update: %s", e)
            return
        if current_mtime == self.last_config_mtime:
            return

        logger.info("🔄 Config change detected, reloading...")
        self.last_config_mtime = current_mtime
        self.config.reload()
        self.apply_timing()
        self.apply_controls()

    def apply_timing(self):
        """Push reloaded timing values into the running game."""
        lock_duration = self._read_duration('stability', 'lock_duration_seconds',
                                            self.debouncer.lock_duration)
        if lock_duration > 0:
            self.debouncer.lock_duration = lock_duration
        else:
            logger.warning("⚠ stability.lock_duration_seconds must be positive, keeping %.2f",
                           self.debouncer.lock_duration)

        self.controller.feedback_duration = self._read_duration(
            'game', 'feedback_duration_seconds', self.controller.feedback_duration)

    def _read_duration(self, section: str, key: str, current: float) -> float:
        """A non-negative float from the config, or `current` when the value is unusable."""
        value = self.config.get(section, key, default=current)
        try:
            duration = float(value)
        except (TypeError, ValueError):
            logger.warning("⚠ Invalid %s.%s %r, keeping %.2f", section, key, value, current)
            return current
        if duration < 0 or not math.isfinite(duration):
            logger.warning("⚠ Invalid %s.%s %r, keeping %.2f", section, key, value, current)
            return current
        return duration

    def apply_controls(self):
        """React to the app_control flags (see scripts/app_control.py)."""
        config_pause = bool(self.config.get('app_control', 'pause', default=False))
        config_exit = bool(self.config.get('app_control', 'exit', default=False))
        config_restart = bool(self.config.get('app_control', 'restart', default=False))

        if config_pause != self.paused:
            self.paused = config_pause
            self.controller.set_paused(config_pause)
            if self.source is not None:
                self.source.paused = config_pause
            print(f"{'⏸ PAUSED (via config)' if self.paused else '▶ RESUMED (via config)'}")

        if config_restart:
            print("🔄 Restart signal received via config")
            self.controller.restart()
            self._clear_flag('restart')

        if config_exit:
            print("\n🛑 Exit signal received via config")
            # cleared so the next launch does not exit straight away
            self._clear_flag('exit')
            self.engine.stop()

    def _clear_flag(self, name: str):
        self.config.set('app_control', name, value=False)
        self.config.save()
        try:
            self.last_config_mtime = os.path.getmtime(self.config_path)
        except OSError:
            pass

    # Lifecycle

    def run(self):
        """Main application loop. Blocks until the game engine stops."""
        self.print_controls()
        try:
            self.source.start()
            self.engine.run()
        finally:
            self.cleanup()

    def stop(self):
        self.engine.stop()

    def cleanup(self):
        """Clean up resources."""
        print("\n🧹 Cleaning up...")

        if self.status_queue is not None:
            try:
                self.status_queue.put(SHUTDOWN, timeout=0.5)
            except queue.Full:
                logger.warning("⚠ Could not send shutdown signal")

        try:
            self.source.stop()
        except Exception as e:
            logger.warning("⚠ Error stopping landmark source: %s", e)

        self.sound.close()
        print("✓ HandyMath stopped\n")

    def print_controls(self):
        """Print control instructions."""
        print("\n" + "=" * 60)
        print("HOW TO PLAY")
        print("=" * 60)
        print("  Solve the problem, then hold up that many fingers.")
        print("  Keep them still for 2 seconds to lock in your answer.")
        print("  A closed fist (0 fingers) never counts as an answer.")
        print("\n  KEYBOARD")
        print("  Space/Enter - Start / Play Again")
        print("  R           - Restart")
        print("  Q / Esc     - Quit")
        print("\n  REMOTE")
        print("  handy-math-control --pause true|false")
        print("  handy-math-control --restart")
        print("  handy-math-control --exit true")
        print("=" * 60 + "\n")


def main(argv=None):
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="HandyMath - answer arithmetic problems with your fingers"
    )
    parser.add_argument(
        '--camera', type=int, default=None,
        help='Camera device index (default: camera.index from config)'
    )
    parser.add_argument(
        '--config', type=str, default=None,
        help='Path to config.json (default: bundled config)'
    )
    parser.add_argument(
        '--headless', action='store_true',
        help='Run without the game window; the game starts immediately'
    )
    parser.add_argument(
        '--no-sound', action='store_true',
        help='Disable sound effects'
    )
    parser.add_argument(
        '--log-level', type=str, default='INFO',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        help='Logging verbosity (default: INFO)'
    )

    args = parser.parse_args(argv)

    logging.basicConfig(level=getattr(logging, args.log_level), format=LOG_FORMAT)

    # Load custom config if specified
    if args.config:
        Config(args.config)

    camera_idx = args.camera if args.camera is not None else config.get('camera', 'index', default=0)
    sound_enabled = False if args.no_sound else None

    status_queue = None
    frame_queue = None
    if not args.headless:
        status_queue = queue.Queue(maxsize=32)
        if config.get('display', 'show_camera', default=True):
            frame_queue = queue.Queue(maxsize=2)

    print(f"📺 Display mode: {'headless' if args.headless else 'window'}")

    try:
        app = HandyMathApplication(
            config=config,
            camera_idx=camera_idx,
            sound_enabled=sound_enabled,
            status_queue=status_queue,
            frame_queue=frame_queue,
            auto_start=args.headless,
        )

        if args.headless:
            app.run()
        else:
            # game in a worker thread, GUI in main thread (required for PyQt on some platforms)
            app_thread = threading.Thread(target=app.run, name='game-engine', daemon=True)
            app_thread.start()

            from handy_math.gui.game_window import run_gui
            run_gui(config, status_queue, frame_queue, app.command_queue)

            app.stop()
            app_thread.join(timeout=2.0)

    except KeyboardInterrupt:
        print("\n⚠ Interrupted by user")
    except Exception:
        logger.exception("❌ Error")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
