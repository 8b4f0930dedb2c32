"""
Landmark Source for HandyMath

Camera capture and MediaPipe hand tracking. Runs on its own thread, turns
each camera frame into a HandFrame and hands it to the game engine. Also
renders the preview (with the detection overlay) for the GUI.

MediaPipe is tried in order: Tasks API on GPU, Tasks API on CPU, legacy
`mp.solutions.hands`.
"""

import logging
import queue
import threading
import time
import urllib.request
from pathlib import Path
from typing import Callable, Optional

import cv2
import mediapipe as mp
import numpy as np

from handy_math.detectors.finger_counter import count_extended_fingers
from handy_math.detectors.hand_frame import (
    DEFAULT_CONFIDENCE_THRESHOLD,
    HandFrame,
    hand_frame_from_landmarks,
)
from handy_math.utils.visual_feedback import VisualFeedback

# MediaPipe Tasks API for GPU support
from mediapipe.tasks.python import vision as mp_vision
from mediapipe.tasks.python.core.base_options import BaseOptions


logger = logging.getLogger(__name__)

# Model URL and local path
HAND_LANDMARKER_MODEL_URL = 'https://storage.googleapis.com/mediapipe-models/hand_landmarker/hand_landmarker/float16/1/hand_landmarker.task'
HAND_LANDMARKER_MODEL_PATH = Path(__file__).parent.parent / 'models' / 'hand_landmarker.task'


def ensure_model_downloaded() -> Optional[str]:
    """Download the hand landmarker model if not present."""
    model_path = HAND_LANDMARKER_MODEL_PATH
    model_path.parent.mkdir(parents=True, exist_ok=True)

    if not model_path.exists():
        logger.info("📥 Downloading hand landmarker model...")
        try:
            urllib.request.urlretrieve(HAND_LANDMARKER_MODEL_URL, str(model_path))
            logger.info("✓ Model downloaded to %s", model_path)
        except OSError as e:
            logger.warning("⚠ Failed to download model: %s", e)
            return None

    return str(model_path)


class HandTracker:
    """
    One-hand MediaPipe wrapper with GPU -> CPU -> legacy fallback.

    `detect(frame_rgb)` returns the landmarks of the best hand, or None.
    """

    def __init__(self, detection_conf: float = 0.7, tracking_conf: float = 0.5, use_gpu: bool = True):
        self.use_gpu = False
        self.use_tasks_api = False
        self.hand_landmarker = None
        self.hands = None

        delegates = [BaseOptions.Delegate.GPU, BaseOptions.Delegate.CPU] if use_gpu else [BaseOptions.Delegate.CPU]
        model_path = ensure_model_downloaded()
        if model_path:
            for delegate in delegates:
                try:
                    options = mp_vision.HandLandmarkerOptions(
                        base_options=BaseOptions(
                            model_asset_path=model_path,
                            delegate=delegate
                        ),
                        running_mode=mp_vision.RunningMode.IMAGE,
                        num_hands=1,
                        min_hand_detection_confidence=detection_conf,
                        min_tracking_confidence=tracking_conf
                    )
                    self.hand_landmarker = mp_vision.HandLandmarker.create_from_options(options)
                    self.use_tasks_api = True
                    self.use_gpu = delegate == BaseOptions.Delegate.GPU
                    logger.info("✓ MediaPipe HandLandmarker initialized with %s",
                                "GPU" if self.use_gpu else "CPU")
                    break
                except Exception as e:
                    logger.warning("⚠ HandLandmarker init with %s failed: %s", delegate, e)

        # Final fallback to legacy API
        if not self.use_tasks_api:
            self.hands = mp.solutions.hands.Hands(
                min_detection_confidence=detection_conf,
                min_tracking_confidence=tracking_conf,
                max_num_hands=1
            )
            logger.info("✓ MediaPipe Hands (legacy) initialized")

    def detect(self, frame_rgb: np.ndarray):
        if self.use_tasks_api:
            mp_image = mp.Image(image_format=mp.ImageFormat.SRGB, data=frame_rgb)
            results = self.hand_landmarker.detect(mp_image)
            if results.hand_landmarks:
                return results.hand_landmarks[0]
            return None

        results = self.hands.process(frame_rgb)
        if results.multi_hand_landmarks:
            return results.multi_hand_landmarks[0]
        return None

    def close(self):
        if self.hand_landmarker:
            try:
                self.hand_landmarker.close()
            except Exception as e:
                logger.warning("⚠ Error closing hand landmarker: %s", e)
        if self.hands:
            try:
                self.hands.close()
            except Exception as e:
                logger.warning("⚠ Error closing hands: %s", e)


class LandmarkSource:
    """
    Camera -> HandFrame producer.

    Args:
        config: Config instance
        on_frame: receives each HandFrame (typically GameEngine.submit_frame)
        camera_idx: camera device index
        frame_queue: optional bounded queue for preview frames (BGR, window-sized)
        clock: timestamp source for HandFrame.detected_at
    """

    def __init__(self, config, on_frame: Callable[[HandFrame], None], camera_idx: int = 0,
                 frame_queue: Optional[queue.Queue] = None, clock: Callable[[], float] = time.monotonic):
        self.config = config
        self.on_frame = on_frame
        self.frame_queue = frame_queue
        self.clock = clock
        self.paused = False

        camera_width = config.get('camera', 'width', default=640)
        camera_height = config.get('camera', 'height', default=480)
        camera_fps = config.get('camera', 'fps', default=30)

        self.cap = cv2.VideoCapture(camera_idx)
        if not self.cap.isOpened():
            raise RuntimeError(f"❌ Could not open camera {camera_idx}")

        self.cap.set(cv2.CAP_PROP_FRAME_WIDTH, camera_width)
        self.cap.set(cv2.CAP_PROP_FRAME_HEIGHT, camera_height)
        self.cap.set(cv2.CAP_PROP_FPS, camera_fps)

        actual_width = int(self.cap.get(cv2.CAP_PROP_FRAME_WIDTH))
        actual_height = int(self.cap.get(cv2.CAP_PROP_FRAME_HEIGHT))
        actual_fps = self.cap.get(cv2.CAP_PROP_FPS)
        logger.info("✓ Camera initialized: %dx%d @ %.1f FPS", actual_width, actual_height, actual_fps)

        self.tracker = HandTracker(
            detection_conf=config.get('detection', 'min_detection_confidence', default=0.7),
            tracking_conf=config.get('detection', 'min_tracking_confidence', default=0.5),
            use_gpu=config.get('detection', 'use_gpu', default=True),
        )
        self.visual = VisualFeedback(config)

        self.running = False
        self.on_exit: Optional[Callable[[], None]] = None
        self._thread: Optional[threading.Thread] = None

    def start(self):
        self.running = True
        self._thread = threading.Thread(target=self.run, name='landmark-source', daemon=True)
        self._thread.start()

    def stop(self, timeout: float = 1.0):
        self.running = False
        if self._thread and self._thread is not threading.current_thread():
            self._thread.join(timeout)

    def run(self):
        """Capture loop. Ends on stop() or when the camera stops delivering frames."""
        self.running = True
        try:
            while self.running:
                ret, frame_bgr = self.cap.read()
                if not ret:
                    logger.error("❌ Failed to read frame")
                    break
                self.process_frame(frame_bgr)
                time.sleep(0.001)
        finally:
            self.running = False
            self.cleanup()
            if self.on_exit is not None:
                self.on_exit()

    def process_frame(self, frame_bgr: np.ndarray) -> HandFrame:
        detected_at = self.clock()
        if self.config.get('camera', 'flip_horizontal', default=True):
            frame_bgr = cv2.flip(frame_bgr, 1)

        frame_rgb = cv2.cvtColor(frame_bgr, cv2.COLOR_BGR2RGB)
        landmarks = self.tracker.detect(frame_rgb)
        threshold = self.config.get('detection', 'joint_confidence_threshold',
                                    default=DEFAULT_CONFIDENCE_THRESHOLD)
        hand = hand_frame_from_landmarks(landmarks, frame_bgr.shape, detected_at,
                                         confidence_threshold=threshold)
        self.on_frame(hand)

        if self.frame_queue is not None:
            self.visual.render(frame_bgr, hand, count_extended_fingers(hand), paused=self.paused)
            self._push_preview(frame_bgr)
        return hand

    def _push_preview(self, frame_bgr: np.ndarray):
        window_width = self.config.get('display', 'window_width', default=1024)
        window_height = self.config.get('display', 'window_height', default=720)
        display_frame = cv2.resize(frame_bgr, (window_width, window_height), interpolation=cv2.INTER_LINEAR)
        # Keep queue size small by removing old frames if full
        if self.frame_queue.full():
            try:
                self.frame_queue.get_nowait()
            except queue.Empty:
                pass
        try:
            self.frame_queue.put_nowait(display_frame)
        except queue.Full:
            pass

    def cleanup(self):
        if self.cap:
            try:
                self.cap.release()
            except Exception as e:
                logger.warning("⚠ Error releasing camera: %s", e)
        self.tracker.close()
