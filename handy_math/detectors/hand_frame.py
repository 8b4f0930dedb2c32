"""
Hand Frame Model for HandyMath

A HandFrame is everything the game knows about the player's hand in a single
camera frame: a set of named joints in screen pixels, each with a confidence.
Frames are independent; nothing is smoothed or carried over between them.
"""

import numpy as np
from dataclasses import dataclass, field
from typing import Dict, Iterable, Optional, Tuple

from handy_math.utils.math_utils import landmarks_to_array, normalized_to_pixels


# MediaPipe Hand Landmark indices
LANDMARK_NAMES = {
    'WRIST': 0,
    'THUMB_CMC': 1, 'THUMB_MCP': 2, 'THUMB_IP': 3, 'THUMB_TIP': 4,
    'INDEX_MCP': 5, 'INDEX_PIP': 6, 'INDEX_DIP': 7, 'INDEX_TIP': 8,
    'MIDDLE_MCP': 9, 'MIDDLE_PIP': 10, 'MIDDLE_DIP': 11, 'MIDDLE_TIP': 12,
    'RING_MCP': 13, 'RING_PIP': 14, 'RING_DIP': 15, 'RING_TIP': 16,
    'PINKY_MCP': 17, 'PINKY_PIP': 18, 'PINKY_DIP': 19, 'PINKY_TIP': 20,
}

JOINT_ORDER = tuple(sorted(LANDMARK_NAMES, key=LANDMARK_NAMES.get))

DEFAULT_CONFIDENCE_THRESHOLD = 0.6


@dataclass
class JointSample:
    """One named joint in screen pixels (y grows downwards)."""
    name: str
    x: float
    y: float
    confidence: float = 1.0


@dataclass
class HandFrame:
    """
    All confident joints of one hand for one camera frame.

    An empty `joints` dict means no hand (or nothing confident enough).
    """
    detected_at: float
    joints: Dict[str, JointSample] = field(default_factory=dict)

    @classmethod
    def empty(cls, detected_at: float) -> 'HandFrame':
        return cls(detected_at=detected_at)

    @classmethod
    def from_samples(
        cls,
        detected_at: float,
        samples: Iterable[Tuple[str, float, float, float]],
        confidence_threshold: float = DEFAULT_CONFIDENCE_THRESHOLD,
    ) -> 'HandFrame':
        """
        Build a frame from raw (joint_name, x, y, confidence) tuples.

        Joints below `confidence_threshold` and names outside the 21-joint
        set are dropped.
        """
        joints = {}
        for name, x, y, confidence in samples:
            if name not in LANDMARK_NAMES:
                continue
            if float(confidence) < confidence_threshold:
                continue
            joints[name] = JointSample(name, float(x), float(y), float(confidence))
        return cls(detected_at=detected_at, joints=joints)

    @property
    def has_hand(self) -> bool:
        return bool(self.joints)

    def get(self, name: str) -> Optional[JointSample]:
        return self.joints.get(name)

    def points(self) -> np.ndarray:
        """Joint positions as an (N, 2) int array, in landmark index order."""
        pts = [(j.x, j.y) for j in sorted(self.joints.values(), key=lambda j: LANDMARK_NAMES[j.name])]
        return np.array(pts, dtype=int).reshape((-1, 2))


def _landmark_confidence(landmark, fallback: float) -> float:
    # Hand landmark models leave presence/visibility at 0 or None. The handedness
    # score is a left/right probability, not a detection confidence, so it is not used here.
    for attr in ('presence', 'visibility'):
        value = getattr(landmark, attr, None)
        if value:
            return float(value)
    return float(fallback)


def hand_frame_from_landmarks(
    landmarks,
    frame_shape: Tuple[int, int, int],
    detected_at: float,
    fallback_confidence: float = 1.0,
    confidence_threshold: float = DEFAULT_CONFIDENCE_THRESHOLD,
) -> HandFrame:
    """
    Convert one MediaPipe hand (21 normalized landmarks) into a HandFrame.

    Args:
        landmarks: sequence of landmark objects with .x/.y (0..1); either the
                   Tasks API list or the legacy `.landmark` container
        frame_shape: frame.shape of the image the landmarks refer to
        detected_at: capture timestamp (seconds)
        fallback_confidence: confidence for joints that carry no presence/visibility
                             (the detector already passed min_hand_detection_confidence)
        confidence_threshold: minimum confidence for a joint to be kept
    """
    if landmarks is None:
        return HandFrame.empty(detected_at)
    points = getattr(landmarks, 'landmark', landmarks)
    points = list(points)
    if not points:
        return HandFrame.empty(detected_at)

    pixels = normalized_to_pixels(landmarks_to_array(points), frame_shape)
    samples = []
    for name, lm, (px, py) in zip(JOINT_ORDER, points, pixels):
        samples.append((name, px, py, _landmark_confidence(lm, fallback_confidence)))
    return HandFrame.from_samples(detected_at, samples, confidence_threshold)
