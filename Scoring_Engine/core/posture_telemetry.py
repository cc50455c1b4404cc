"""
Posture Telemetry

Front-view geometry feeding the alert manager: neck angle between the
shoulder->ear and shoulder->hip vectors, trunk lean from vertical, shoulder
line tilt, and the vertical ear-shoulder gap relative to shoulder width.
"""

import math
from dataclasses import dataclass
from typing import Dict, Optional, Sequence

import numpy as np

from .alert_manager import PostureSample
from .landmarks import (
    PoseLandmark, LEFT_EAR, RIGHT_EAR, LEFT_SHOULDER, RIGHT_SHOULDER, LEFT_HIP, RIGHT_HIP,
    midpoint, required_landmarks,
)

REQUIRED_INDICES = (LEFT_EAR, RIGHT_EAR, LEFT_SHOULDER, RIGHT_SHOULDER, LEFT_HIP, RIGHT_HIP)

# Upright ear-shoulder gap is roughly half the shoulder width.
UPRIGHT_EAR_SHOULDER_RATIO = 0.48
_EPS = 0.00001


@dataclass
class PostureTelemetry:
    neck_angle: float
    trunk_angle: float
    shoulder_tilt: float
    ear_shoulder_ratio: float

    def to_dict(self) -> Dict[str, float]:
        return {
            'neck_angle': round(self.neck_angle, 2),
            'trunk_angle': round(self.trunk_angle, 2),
            'shoulder_tilt': round(self.shoulder_tilt, 2),
            'ear_shoulder_ratio': round(self.ear_shoulder_ratio, 3),
        }


def _angle_between(ax: float, ay: float, bx: float, by: float) -> float:
    mag_a, mag_b = np.hypot(ax, ay), np.hypot(bx, by)
    if mag_a == 0 or mag_b == 0:
        return 180.0
    cosine = np.clip((ax * bx + ay * by) / (mag_a * mag_b), -1.0, 1.0)
    return float(np.degrees(np.arccos(cosine)))


def build_posture_telemetry(landmarks: Sequence[Optional[PoseLandmark]]) -> Optional[PostureTelemetry]:
    """Telemetry for one frame, or None if ears, shoulders or hips are missing or non-finite."""
    found = required_landmarks(landmarks, *REQUIRED_INDICES)
    if found is None or not all(lm.is_finite for lm in found):
        return None
    left_ear, right_ear, left_shoulder, right_shoulder, left_hip, right_hip = found

    shoulder_center = midpoint(left_shoulder, right_shoulder)
    hip_center = midpoint(left_hip, right_hip)
    ear_center = midpoint(left_ear, right_ear)

    torso_x, torso_y = hip_center.x - shoulder_center.x, hip_center.y - shoulder_center.y
    neck_x, neck_y = ear_center.x - shoulder_center.x, ear_center.y - shoulder_center.y

    neck_angle = _angle_between(neck_x, neck_y, torso_x, torso_y)
    trunk_angle = float(np.degrees(np.arctan2(abs(torso_x), abs(torso_y) or _EPS)))
    shoulder_tilt = float(np.degrees(np.arctan2(
        abs(left_shoulder.y - right_shoulder.y),
        abs(left_shoulder.x - right_shoulder.x) or _EPS
    )))

    shoulder_width = float(np.hypot(right_shoulder.x - left_shoulder.x, right_shoulder.y - left_shoulder.y))
    ear_shoulder_ratio = (shoulder_center.y - ear_center.y) / max(shoulder_width, 0.001)

    return PostureTelemetry(
        neck_angle=neck_angle,
        trunk_angle=trunk_angle,
        shoulder_tilt=shoulder_tilt,
        ear_shoulder_ratio=ear_shoulder_ratio,
    )


def telemetry_to_sample(telemetry: PostureTelemetry, ts: float) -> PostureSample:
    """Deviation magnitudes; 0 means upright for every signal."""
    raise_shortfall = max(0.0, UPRIGHT_EAR_SHOULDER_RATIO - telemetry.ear_shoulder_ratio) * 100
    return PostureSample(
        ts=ts,
        forward_head=max(0.0, 180.0 - telemetry.neck_angle),
        slouch=telemetry.trunk_angle,
        shoulder_raise=raise_shortfall if math.isfinite(raise_shortfall) else 0.0,
        tilt=telemetry.shoulder_tilt,
    )


def build_posture_sample(landmarks: Sequence[Optional[PoseLandmark]], ts: float) -> Optional[PostureSample]:
    telemetry = build_posture_telemetry(landmarks)
    if telemetry is None:
        return None
    return telemetry_to_sample(telemetry, ts)
