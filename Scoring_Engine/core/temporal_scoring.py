"""
Temporal Posture Scorer

Frame-to-frame scoring that carries a snapshot of the previous frame. Adds
torso lean and neck tilt to alignment, hip levelness to symmetry, shoulder
velocity and lean jitter to stability, and an accumulating fatigue estimate.
Body-relative distances are normalized by the mean shoulder/hip width so the
score does not depend on how far the user sits from the camera.
"""

import logging
import math
from dataclasses import dataclass, asdict
from typing import Any, Dict, Optional, Sequence

import numpy as np

from .landmarks import (
    PoseLandmark, NOSE, LEFT_EAR, RIGHT_EAR, LEFT_SHOULDER, RIGHT_SHOULDER,
    LEFT_HIP, RIGHT_HIP, midpoint, required_landmarks,
)

logger = logging.getLogger(__name__)

REQUIRED_INDICES = (NOSE, LEFT_EAR, RIGHT_EAR, LEFT_SHOULDER, RIGHT_SHOULDER, LEFT_HIP, RIGHT_HIP)


def _clamp(value: float, low: float, high: float) -> float:
    if math.isnan(value):
        return low
    return float(np.clip(value, low, high))


def _distance_3d(a: PoseLandmark, b: PoseLandmark) -> float:
    return float(np.linalg.norm([a.x - b.x, a.y - b.y, a.z - b.z]))


# -----------------------------------------------------------------------------
# Data Classes
# -----------------------------------------------------------------------------

@dataclass
class ScoringSnapshot:
    """State carried from one frame to the next."""
    timestamp: float
    shoulder_mid: PoseLandmark
    hip_mid: PoseLandmark
    nose: PoseLandmark
    torso_lean_deg: float
    neck_tilt_deg: float
    shoulder_tilt_deg: float
    hip_tilt_deg: float
    velocity: float
    bad_frames: float
    fatigue_accumulator: float


@dataclass
class TemporalScore:
    """Temporal scoring output, every score in [0, 100]."""
    alignment: float
    symmetry: float
    stability: float
    fatigue: float
    score: float
    snapshot: ScoringSnapshot

    def to_dict(self) -> Dict[str, Any]:
        return {
            'alignment': round(self.alignment, 2),
            'symmetry': round(self.symmetry, 2),
            'stability': round(self.stability, 2),
            'fatigue': round(self.fatigue, 2),
            'score': round(self.score, 2),
            'snapshot': asdict(self.snapshot),
        }


# -----------------------------------------------------------------------------
# Scorer
# -----------------------------------------------------------------------------

class TemporalPostureScorer:
    """Stateful scorer; one instance per session, reset() between sessions."""
    TORSO_PENALTY = 3.2
    NECK_PENALTY = 3.8
    FORWARD_HEAD_PENALTY = 120.0
    TILT_TOLERANCE = 0.2
    JITTER_VELOCITY = 0.8
    LEAN_DELTA_PENALTY = 4.0
    MIN_DT_SECONDS = 0.016
    MIN_BODY_SCALE = 0.01
    MAX_BAD_FRAMES = 200.0
    MAX_FATIGUE_ACCUMULATOR = 400.0

    def __init__(self):
        self._previous: Optional[ScoringSnapshot] = None

    @property
    def previous(self) -> Optional[ScoringSnapshot]:
        return self._previous

    def score(self, landmarks: Sequence[Optional[PoseLandmark]], timestamp: float) -> Optional[TemporalScore]:
        """Score a frame against the previous snapshot; None if landmarks are missing."""
        found = required_landmarks(landmarks, *REQUIRED_INDICES)
        if found is None:
            return None
        nose, left_ear, right_ear, left_shoulder, right_shoulder, left_hip, right_hip = found
        if not all(lm.is_finite for lm in found):
            logger.debug("Skipping frame: non-finite landmark coordinates")
            return None
        previous = self._previous

        shoulder_mid = midpoint(left_shoulder, right_shoulder)
        hip_mid = midpoint(left_hip, right_hip)
        ear_mid = midpoint(left_ear, right_ear)

        torso_lean = float(np.degrees(np.arctan2(hip_mid.x - shoulder_mid.x, hip_mid.y - shoulder_mid.y)))
        # Measured from the downward vertical: an upright neck reads ~180 deg and takes the full neck penalty.
        neck_tilt = float(np.degrees(np.arctan2(ear_mid.x - shoulder_mid.x, ear_mid.y - shoulder_mid.y)))
        shoulder_tilt = float(np.degrees(np.arctan2(right_shoulder.y - left_shoulder.y,
                                                    right_shoulder.x - left_shoulder.x)))
        hip_tilt = float(np.degrees(np.arctan2(right_hip.y - left_hip.y, right_hip.x - left_hip.x)))

        shoulder_width = _distance_3d(left_shoulder, right_shoulder)
        hip_width = _distance_3d(left_hip, right_hip)
        body_scale = max((shoulder_width + hip_width) / 2, self.MIN_BODY_SCALE)

        if previous is not None:
            dt = max((timestamp - previous.timestamp) / 1000, self.MIN_DT_SECONDS)
            velocity = _distance_3d(shoulder_mid, previous.shoulder_mid) / dt
        else:
            velocity = 0.0

        # Alignment
        torso_penalty = _clamp(abs(torso_lean) * self.TORSO_PENALTY, 0, 100)
        neck_penalty = _clamp(abs(neck_tilt) * self.NECK_PENALTY, 0, 100)
        forward_head_penalty = _clamp(((nose.z - shoulder_mid.z) / body_scale) * self.FORWARD_HEAD_PENALTY, 0, 100)
        alignment = _clamp(100 - torso_penalty * 0.42 - neck_penalty * 0.38 - forward_head_penalty * 0.2, 0, 100)

        # Symmetry
        shoulder_diff = (left_shoulder.y - right_shoulder.y) / body_scale
        hip_diff = (left_hip.y - right_hip.y) / body_scale
        shoulder_penalty = _clamp(abs(shoulder_diff) / self.TILT_TOLERANCE * 100, 0, 100)
        hip_penalty = _clamp(abs(hip_diff) / self.TILT_TOLERANCE * 100, 0, 100)
        symmetry = _clamp(100 - shoulder_penalty * 0.55 - hip_penalty * 0.45, 0, 100)

        # Stability
        jitter_penalty = _clamp(velocity / self.JITTER_VELOCITY * 100, 0, 100)
        lean_delta_penalty = (
            _clamp(abs(torso_lean - previous.torso_lean_deg) * self.LEAN_DELTA_PENALTY, 0, 100)
            if previous is not None else 0.0
        )
        stability = _clamp(100 - jitter_penalty * 0.65 - lean_delta_penalty * 0.35, 0, 100)

        # Fatigue
        is_bad_frame = alignment < 65 or symmetry < 65 or stability < 60
        prev_bad = previous.bad_frames if previous is not None else 0.0
        bad_frames = _clamp(prev_bad + (1 if is_bad_frame else -0.5), 0, self.MAX_BAD_FRAMES)

        prev_acc = previous.fatigue_accumulator if previous is not None else 0.0
        fatigue_accumulator = _clamp(
            prev_acc + (1.6 if is_bad_frame else -0.6) + (0.8 if forward_head_penalty > 25 else 0),
            0, self.MAX_FATIGUE_ACCUMULATOR
        )
        fatigue = _clamp(fatigue_accumulator / self.MAX_FATIGUE_ACCUMULATOR * 100 + (100 - stability) * 0.25, 0, 100)

        score = _clamp(alignment * 0.38 + symmetry * 0.24 + stability * 0.26 + (100 - fatigue) * 0.12, 0, 100)

        snapshot = ScoringSnapshot(
            timestamp=timestamp,
            shoulder_mid=shoulder_mid,
            hip_mid=hip_mid,
            nose=nose,
            torso_lean_deg=torso_lean,
            neck_tilt_deg=neck_tilt,
            shoulder_tilt_deg=shoulder_tilt,
            hip_tilt_deg=hip_tilt,
            velocity=velocity,
            bad_frames=bad_frames,
            fatigue_accumulator=fatigue_accumulator,
        )
        self._previous = snapshot

        return TemporalScore(
            alignment=alignment,
            symmetry=symmetry,
            stability=stability,
            fatigue=fatigue,
            score=score,
            snapshot=snapshot,
        )

    def reset(self):
        """Forget the previous frame."""
        self._previous = None
