"""
Game Window GUI for HandyMath

PyQt6 front end. Runs in the main thread; the game and the camera run on
worker threads and talk to it only through queues:

    status_queue  GameSnapshot objects (or the shutdown sentinel)
    frame_queue   BGR preview frames (numpy arrays)
    command_queue 'start' / 'restart' / 'quit' back to the game engine

A QTimer drains the queues every 30ms and re-emits the data as Qt signals.
"""

import sys
import queue
import logging
from typing import Optional

from PyQt6.QtWidgets import QApplication, QWidget, QPushButton
from PyQt6.QtCore import Qt, QTimer, pyqtSignal, QObject, QRectF
from PyQt6.QtGui import QColor, QPainter, QBrush, QFont, QPixmap, QImage, QPen

from handy_math.app.game_engine import COMMAND_QUIT, COMMAND_RESTART, COMMAND_START, SHUTDOWN
from handy_math.app.round_controller import GamePhase, GameSnapshot


logger = logging.getLogger(__name__)

TITLE_TEXT = "Finger Math Challenge"
SUBTITLE_TEXT = "Use your fingers to solve math problems!"
START_TEXT = "Start!"
PLAY_AGAIN_TEXT = "Play Again"


class GameSignals(QObject):
    """Qt signals for thread-safe game updates."""
    update_game = pyqtSignal(object)     # GameSnapshot
    update_frame = pyqtSignal(object)    # frame (numpy array)


def _qcolor(config, name: str, default) -> QColor:
    rgb = config.get('display', 'colors', name, default=default)
    return QColor(*[int(c) for c in rgb])


class GameWindow(QWidget):
    """Camera preview with the game drawn on top."""

    def __init__(self, config, command_queue: Optional[queue.Queue] = None):
        super().__init__()
        self.config = config
        self.command_queue = command_queue
        self.snapshot: Optional[GameSnapshot] = None
        self.background: Optional[QPixmap] = None
        self.show_camera = config.get('display', 'show_camera', default=True)

        self.correct_color = _qcolor(config, 'correct', (60, 200, 90))
        self.wrong_color = _qcolor(config, 'wrong', (230, 60, 60))
        self.progress_color = _qcolor(config, 'progress', (255, 200, 0))
        self.initUI()

    def initUI(self):
        self.setWindowTitle("HandyMath")
        width = self.config.get('display', 'window_width', default=1024)
        height = self.config.get('display', 'window_height', default=720)
        self.resize(width, height)
        self.setStyleSheet("background-color: black;")

        self.action_button = QPushButton(START_TEXT, self)
        self.action_button.setFont(QFont("Arial", 22, QFont.Weight.Bold))
        self.action_button.setStyleSheet(
            "QPushButton { background-color: #2d8cf0; color: white; border-radius: 14px; padding: 10px 28px; }"
            "QPushButton:hover { background-color: #4aa0ff; }"
        )
        self.action_button.clicked.connect(self.on_action_clicked)
        self._layout_button()

    # Inbound (signals)

    def update_game(self, snapshot: GameSnapshot):
        self.snapshot = snapshot
        phase = snapshot.phase
        if phase == GamePhase.NOT_STARTED:
            self.action_button.setText(START_TEXT)
            self.action_button.show()
        elif phase == GamePhase.COMPLETE:
            self.action_button.setText(PLAY_AGAIN_TEXT)
            self.action_button.show()
        else:
            self.action_button.hide()
        self._layout_button()
        self.update()

    def update_frame(self, frame):
        if frame is None or not self.show_camera:
            return
        height, width, channel = frame.shape
        bytes_per_line = 3 * width
        q_img = QImage(frame.data, width, height, bytes_per_line, QImage.Format.Format_RGB888).rgbSwapped()
        self.background = QPixmap.fromImage(q_img)
        self.update()

    # Outbound (commands)

    def send_command(self, command: str):
        if self.command_queue is None:
            return
        self.command_queue.put(command)

    def on_action_clicked(self):
        if self.snapshot is not None and self.snapshot.phase == GamePhase.COMPLETE:
            self.send_command(COMMAND_RESTART)
        else:
            self.send_command(COMMAND_START)

    def keyPressEvent(self, event):
        key = event.key()
        if key in (Qt.Key.Key_Q, Qt.Key.Key_Escape):
            self.send_command(COMMAND_QUIT)
        elif key == Qt.Key.Key_R:
            self.send_command(COMMAND_RESTART)
        elif key in (Qt.Key.Key_Space, Qt.Key.Key_Return, Qt.Key.Key_Enter):
            if self.action_button.isVisible():
                self.on_action_clicked()
        super().keyPressEvent(event)

    def closeEvent(self, event):
        self.send_command(COMMAND_QUIT)
        super().closeEvent(event)

    # Painting

    def resizeEvent(self, event):
        self._layout_button()
        super().resizeEvent(event)

    def _layout_button(self):
        self.action_button.adjustSize()
        bw = self.action_button.width()
        self.action_button.move((self.width() - bw) // 2, int(self.height() * 0.68))

    def paintEvent(self, event):
        painter = QPainter(self)
        painter.setRenderHint(QPainter.RenderHint.Antialiasing)
        painter.setRenderHint(QPainter.RenderHint.SmoothPixmapTransform)

        if self.background is not None:
            scaled = self.background.scaled(
                self.width(), self.height(),
                Qt.AspectRatioMode.KeepAspectRatioByExpanding,
                Qt.TransformationMode.SmoothTransformation
            )
            painter.drawPixmap((self.width() - scaled.width()) // 2,
                               (self.height() - scaled.height()) // 2, scaled)
            # dim the camera so text stays readable
            painter.fillRect(self.rect(), QColor(0, 0, 0, 110))

        snap = self.snapshot
        if snap is None or snap.phase == GamePhase.NOT_STARTED:
            self._paint_start(painter)
        elif snap.phase == GamePhase.COMPLETE:
            self._paint_complete(painter, snap)
        else:
            self._paint_round(painter, snap)
        painter.end()

    def _text(self, painter: QPainter, rect: QRectF, text: str, size: int,
              color=QColor(255, 255, 255), bold: bool = True):
        painter.setPen(color)
        painter.setFont(QFont("Arial", size, QFont.Weight.Bold if bold else QFont.Weight.Normal))
        painter.drawText(rect, Qt.AlignmentFlag.AlignCenter, text)

    def _band(self, top: float, height: float) -> QRectF:
        return QRectF(0, self.height() * top, self.width(), self.height() * height)

    def _paint_start(self, painter: QPainter):
        self._text(painter, self._band(0.22, 0.14), TITLE_TEXT, 40)
        self._text(painter, self._band(0.38, 0.10), SUBTITLE_TEXT, 20, bold=False)

    def _paint_complete(self, painter: QPainter, snap: GameSnapshot):
        self._text(painter, self._band(0.25, 0.14), "Game Over", 40)
        self._text(painter, self._band(0.42, 0.12), snap.final_score_label, 32, self.progress_color)

    def _paint_round(self, painter: QPainter, snap: GameSnapshot):
        # header: round counter and score
        margin = 24
        header = QRectF(margin, margin, self.width() - 2 * margin, 40)
        painter.setPen(QColor(255, 255, 255))
        painter.setFont(QFont("Arial", 18, QFont.Weight.Bold))
        painter.drawText(header, Qt.AlignmentFlag.AlignLeft | Qt.AlignmentFlag.AlignVCenter, snap.round_label)
        painter.drawText(header, Qt.AlignmentFlag.AlignRight | Qt.AlignmentFlag.AlignVCenter,
                         f"Score: {snap.score}")

        self._text(painter, self._band(0.14, 0.16), snap.problem_text, 56)

        if snap.feedback is not None:
            color = self.correct_color if snap.feedback.correct else self.wrong_color
            self._text(painter, self._band(0.72, 0.12), snap.feedback.message, 34, color)
        elif snap.paused:
            self._text(painter, self._band(0.72, 0.10), "Paused", 26, self.progress_color)
        elif not snap.hand_detected:
            self._text(painter, self._band(0.72, 0.10), "No hand detected", 22, bold=False)

        self._paint_lock_ring(painter, snap)

    def _paint_lock_ring(self, painter: QPainter, snap: GameSnapshot):
        """Live finger count inside a ring that fills while the answer locks in."""
        size = min(self.width(), self.height()) * 0.28
        rect = QRectF((self.width() - size) / 2, self.height() * 0.36, size, size)

        painter.setPen(Qt.PenStyle.NoPen)
        painter.setBrush(QBrush(QColor(0, 0, 0, 150)))
        painter.drawEllipse(rect)

        track = QPen(QColor(255, 255, 255, 60), 10)
        painter.setPen(track)
        painter.setBrush(Qt.BrushStyle.NoBrush)
        painter.drawEllipse(rect.adjusted(6, 6, -6, -6))

        progress = 1.0 if snap.locked_answer is not None else snap.progress
        if progress > 0:
            arc = QPen(self.progress_color, 10)
            arc.setCapStyle(Qt.PenCapStyle.RoundCap)
            painter.setPen(arc)
            # Qt angles are 1/16th degree, counter-clockwise from 3 o'clock
            painter.drawArc(rect.adjusted(6, 6, -6, -6), 90 * 16, int(-progress * 360 * 16))

        shown = snap.locked_answer if snap.locked_answer is not None else snap.live_count
        self._text(painter, rect, str(shown), int(size * 0.3))


def run_gui(config, status_queue: queue.Queue, frame_queue: Optional[queue.Queue] = None,
            command_queue: Optional[queue.Queue] = None) -> int:
    """
    Run the game window until the shutdown sentinel arrives on status_queue.

    Args:
        config: Config instance
        status_queue: GameSnapshot updates from the game engine
        frame_queue: Optional queue for receiving camera frames
        command_queue: Optional queue for sending commands to the game engine
    """
    app = QApplication.instance() or QApplication(sys.argv)

    window = GameWindow(config, command_queue)
    window.show()

    signals = GameSignals()
    signals.update_game.connect(window.update_game)
    signals.update_frame.connect(window.update_frame)

    timer = QTimer()

    def check_queues():
        latest = None
        try:
            while True:
                data = status_queue.get_nowait()
                if data == SHUTDOWN:
                    logger.info("🛑 Shutdown signal received, closing GUI...")
                    timer.stop()
                    app.quit()
                    return
                if isinstance(data, GameSnapshot):
                    latest = data
        except queue.Empty:
            pass
        if latest is not None:
            signals.update_game.emit(latest)

        if frame_queue:
            frame = None
            try:
                while True:
                    frame = frame_queue.get_nowait()
            except queue.Empty:
                if frame is not None:
                    signals.update_frame.emit(frame)

    timer.timeout.connect(check_queues)
    timer.start(30)  # Check every 30ms (~33 FPS)

    exit_code = app.exec()
    logger.info("📺 GUI closed with exit code: %s", exit_code)
    return exit_code
