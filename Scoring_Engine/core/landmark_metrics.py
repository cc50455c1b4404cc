"""
Landmark Metrics Module

Per-frame posture metrics from pose landmarks:
- alignment: horizontal offset between shoulder and hip midpoints (spine verticality)
- symmetry: vertical offset between the two shoulders (levelness)
- stability: horizontal offset of the nose from the shoulder midpoint (head centering)

Each metric is 100 minus a scaled offset, floored at 0. The composite score is
a fixed weighted blend. Frames missing any required landmark yield None.
"""

import logging
import math
from dataclasses import dataclass
from typing import Dict, Optional, Sequence

import numpy as np

from .landmarks import (
    PoseLandmark, NOSE, LEFT_SHOULDER, RIGHT_SHOULDER, LEFT_HIP, RIGHT_HIP,
    required_landmarks,
)
from .policy_thresholds import METRIC_SCALES, MetricScales

logger = logging.getLogger(__name__)

REQUIRED_INDICES = (NOSE, LEFT_SHOULDER, RIGHT_SHOULDER, LEFT_HIP, RIGHT_HIP)


@dataclass
class PostureMetrics:
    """Posture metrics for one frame, each in [0, 100]."""
    alignment: float
    symmetry: float
    stability: float
    score: float

    def to_dict(self) -> Dict[str, float]:
        return {
            'alignment': self.alignment,
            'symmetry': self.symmetry,
            'stability': self.stability,
            'score': self.score,
        }


# -----------------------------------------------------------------------------
# Angles
# -----------------------------------------------------------------------------

def calculate_angle(a: PoseLandmark, b: PoseLandmark, c: PoseLandmark) -> float:
    """Planar angle at vertex b between rays b->a and b->c, in [0, 180] degrees."""
    radians = np.arctan2(c.y - b.y, c.x - b.x) - np.arctan2(a.y - b.y, a.x - b.x)
    angle = abs(float(np.degrees(radians)))
    if not math.isfinite(angle):
        return 0.0
    if angle > 180.0:
        angle = 360.0 - angle
    return float(np.clip(angle, 0.0, 180.0))


def calculate_angle_3d(a: PoseLandmark, b: PoseLandmark, c: PoseLandmark) -> float:
    """Angle at b between 3D vectors b->a and b->c; 0 for zero-length rays."""
    ab = np.array([a.x - b.x, a.y - b.y, a.z - b.z], dtype=float)
    cb = np.array([c.x - b.x, c.y - b.y, c.z - b.z], dtype=float)
    mag_ab, mag_cb = np.linalg.norm(ab), np.linalg.norm(cb)
    if mag_ab == 0 or mag_cb == 0 or not np.isfinite(mag_ab * mag_cb):
        return 0.0
    cosine = np.clip(np.dot(ab, cb) / (mag_ab * mag_cb), -1.0, 1.0)
    return float(np.degrees(np.arccos(cosine)))


# -----------------------------------------------------------------------------
# Metrics
# -----------------------------------------------------------------------------

def _sub_score(offset: float, scale: float) -> float:
    """100 - |offset| * scale in [0, 100]; a non-finite offset scores 0."""
    if not math.isfinite(offset):
        return 0.0
    return float(np.clip(100.0 - abs(offset) * scale, 0.0, 100.0))


def analyze_posture(landmarks: Sequence[Optional[PoseLandmark]],
                    scales: MetricScales = METRIC_SCALES) -> Optional[PostureMetrics]:
    """
    Score one frame. Requires nose (0), shoulders (11, 12) and hips (23, 24);
    returns None when any is missing so the caller can skip the frame.
    """
    found = required_landmarks(landmarks, *REQUIRED_INDICES)
    if found is None:
        logger.debug("Skipping frame: required landmarks missing")
        return None
    nose, left_shoulder, right_shoulder, left_hip, right_hip = found

    shoulder_mid_x = (left_shoulder.x + right_shoulder.x) / 2
    hip_mid_x = (left_hip.x + right_hip.x) / 2

    alignment = _sub_score(shoulder_mid_x - hip_mid_x, scales.ALIGNMENT_SCALE)
    symmetry = _sub_score(left_shoulder.y - right_shoulder.y, scales.SYMMETRY_SCALE)
    stability = _sub_score(nose.x - shoulder_mid_x, scales.STABILITY_SCALE)

    score = (alignment * scales.ALIGNMENT_WEIGHT
             + symmetry * scales.SYMMETRY_WEIGHT
             + stability * scales.STABILITY_WEIGHT)

    return PostureMetrics(
        alignment=round(alignment, 2),
        symmetry=round(symmetry, 2),
        stability=round(stability, 2),
        score=round(float(np.clip(score, 0.0, 100.0)), 2),
    )
