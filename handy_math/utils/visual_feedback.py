"""
Visual Feedback Overlay for HandyMath

Draws what the detector sees on top of the camera preview: the confident
joints, a highlight on the tips of extended fingers and a one-line hand
status ("No hand detected" / "N finger(s) up").
"""

import cv2
import numpy as np
from typing import Optional, Tuple
from dataclasses import dataclass

from handy_math.detectors.finger_counter import FingerCount, INVALID_COUNT, TIP_JOINTS
from handy_math.detectors.hand_frame import HandFrame


@dataclass
class UIColors:
    """Overlay palette (BGR, as cv2 draws)."""
    joint = (0, 255, 0)           # Green
    extended_tip = (0, 200, 255)  # Amber
    folded_tip = (120, 120, 140)  # Grey
    text_primary = (255, 255, 255)
    text_shadow = (0, 0, 0)
    background = (30, 20, 20)     # Dark blue-grey
    warning = (0, 165, 255)       # Orange


def rgb_to_bgr(color) -> Tuple[int, int, int]:
    r, g, b = (int(c) for c in color)
    return (b, g, r)


class VisualFeedback:
    """
    Renders hand-detection overlays onto BGR frames in place.
    """

    def __init__(self, config=None):
        self.colors = UIColors()

        if config:
            self.enabled = config.get('display', 'show_hand_points', default=True)
            joint_rgb = config.get('display', 'colors', 'joint', default=None)
            if joint_rgb:
                self.colors.joint = rgb_to_bgr(joint_rgb)
        else:
            self.enabled = True

        self.joint_radius = 4
        self.tip_radius = 9
        self.font = cv2.FONT_HERSHEY_SIMPLEX
        self.font_scale = 0.7

    def draw_hand(self, frame: np.ndarray, hand: Optional[HandFrame], count: FingerCount = INVALID_COUNT):
        """Draw joint dots and fingertip state for one hand."""
        if not self.enabled or hand is None or not hand.has_hand:
            return

        for (x, y) in hand.points():
            cv2.circle(frame, (int(x), int(y)), self.joint_radius, self.colors.joint, -1, cv2.LINE_AA)

        if not count.valid:
            return
        for finger, tip_name in TIP_JOINTS.items():
            tip = hand.get(tip_name)
            if tip is None:
                continue
            extended = count.fingers_extended.get(finger, False)
            color = self.colors.extended_tip if extended else self.colors.folded_tip
            cv2.circle(frame, (int(tip.x), int(tip.y)), self.tip_radius, color, 2, cv2.LINE_AA)

    def draw_status(self, frame: np.ndarray, count: FingerCount, paused: bool = False):
        """Hand status banner along the bottom edge."""
        h, w = frame.shape[:2]
        text = count.label
        if paused:
            text = f"PAUSED - {text}"

        (tw, th), baseline = cv2.getTextSize(text, self.font, self.font_scale, 2)
        x = max(10, (w - tw) // 2)
        y = h - 20

        overlay = frame.copy()
        cv2.rectangle(overlay, (x - 10, y - th - 10), (x + tw + 10, y + baseline + 6),
                      self.colors.background, -1)
        cv2.addWeighted(overlay, 0.6, frame, 0.4, 0, frame)

        color = self.colors.text_primary if count.valid else self.colors.warning
        cv2.putText(frame, text, (x + 1, y + 1), self.font, self.font_scale,
                    self.colors.text_shadow, 2, cv2.LINE_AA)
        cv2.putText(frame, text, (x, y), self.font, self.font_scale, color, 2, cv2.LINE_AA)

    def render(self, frame: np.ndarray, hand: Optional[HandFrame], count: FingerCount,
               paused: bool = False) -> np.ndarray:
        self.draw_hand(frame, hand, count)
        self.draw_status(frame, count, paused=paused)
        return frame
