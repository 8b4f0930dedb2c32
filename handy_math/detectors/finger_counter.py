"""
Finger Extension Classifier for HandyMath

Counts extended fingers (0..5) in a single HandFrame using tip-vs-base
geometry. Pure functions only; no state survives between frames.

Rules:
- index, middle, ring, pinky: extended when the tip is above its MCP base
  in screen space (smaller y). "Up" is camera-relative, the camera is assumed
  frontal and upright.
- thumb: extension is lateral. Laterality is guessed by comparing the thumb
  tip with the pinky tip on the x axis. This is a heuristic, not real
  handedness detection, and it can misfire when the pinky is occluded.

A frame missing any of the 5 tips or 5 bases is reported as 0 / invalid,
the same answer as a closed fist.
"""

from dataclasses import dataclass, field
from typing import Dict

from handy_math.detectors.hand_frame import HandFrame


FINGER_NAMES = ('thumb', 'index', 'middle', 'ring', 'pinky')

TIP_JOINTS = {
    'thumb': 'THUMB_TIP',
    'index': 'INDEX_TIP',
    'middle': 'MIDDLE_TIP',
    'ring': 'RING_TIP',
    'pinky': 'PINKY_TIP',
}

# thumb has no MCP in the finger sense; THUMB_MCP is its base knuckle
BASE_JOINTS = {
    'thumb': 'THUMB_MCP',
    'index': 'INDEX_MCP',
    'middle': 'MIDDLE_MCP',
    'ring': 'RING_MCP',
    'pinky': 'PINKY_MCP',
}

MAX_FINGERS = len(FINGER_NAMES)


@dataclass(frozen=True)
class FingerCount:
    """Classifier verdict for one frame."""
    count: int
    valid: bool
    fingers_extended: Dict[str, bool] = field(default_factory=dict)

    @property
    def label(self) -> str:
        if not self.valid:
            return "No hand detected"
        return f"{self.count} finger(s) up"


INVALID_COUNT = FingerCount(count=0, valid=False)


def has_required_joints(frame: HandFrame) -> bool:
    """True when all five tips and all five bases are present."""
    required = list(TIP_JOINTS.values()) + list(BASE_JOINTS.values())
    return all(frame.get(name) is not None for name in required)


def is_right_hand_orientation(frame: HandFrame) -> bool:
    """Thumb tip to the right of the pinky tip on screen."""
    return frame.get('THUMB_TIP').x > frame.get('PINKY_TIP').x


def is_finger_extended(frame: HandFrame, finger_name: str) -> bool:
    if finger_name not in TIP_JOINTS:
        return False
    tip = frame.get(TIP_JOINTS[finger_name])
    base = frame.get(BASE_JOINTS[finger_name])
    if tip is None or base is None:
        return False

    if finger_name == 'thumb':
        if frame.get('PINKY_TIP') is None:
            return False
        if is_right_hand_orientation(frame):
            return tip.x > base.x
        return tip.x < base.x

    return tip.y < base.y


def count_extended_fingers(frame: HandFrame) -> FingerCount:
    """
    Classify a HandFrame into a FingerCount.

    Total over every frame, including empty ones: never raises.
    """
    if frame is None or not has_required_joints(frame):
        return INVALID_COUNT

    extended = {name: is_finger_extended(frame, name) for name in FINGER_NAMES}
    return FingerCount(count=sum(extended.values()), valid=True, fingers_extended=extended)
