"""
Pose Landmark Types

Normalized body keypoints as produced by the MediaPipe Pose Landmarker
(33 points, x/y in [0, 1] image space, z relative depth, optional visibility).
The scoring engine only ever indexes landmarks positionally.
"""

import math
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence


# -----------------------------------------------------------------------------
# Landmark indices (MediaPipe Pose Landmarker)
# -----------------------------------------------------------------------------

NOSE = 0
LEFT_EAR = 7
RIGHT_EAR = 8
LEFT_SHOULDER = 11
RIGHT_SHOULDER = 12
LEFT_HIP = 23
RIGHT_HIP = 24

NUM_LANDMARKS = 33


@dataclass
class PoseLandmark:
    """Single normalized keypoint with optional detection confidence."""
    x: float
    y: float
    z: float = 0.0
    visibility: Optional[float] = None

    def is_visible(self, threshold: float = 0.5) -> bool:
        """Missing visibility counts as visible."""
        return self.visibility is None or self.visibility > threshold

    @property
    def is_finite(self) -> bool:
        return all(math.isfinite(v) for v in (self.x, self.y, self.z))

    def to_tuple(self) -> tuple:
        return (self.x, self.y, self.z, 1.0 if self.visibility is None else self.visibility)


def _as_float(value: Any, default: Optional[float] = None) -> Optional[float]:
    if value is None:
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def to_pose_landmark(raw: Any) -> Optional[PoseLandmark]:
    """
    Coerce one raw landmark into a PoseLandmark.

    Accepts PoseLandmark, dicts with x/y/z/visibility keys, (x, y[, z[, vis]])
    sequences, or any object exposing x/y/z attributes (MediaPipe
    NormalizedLandmark). Returns None when x or y cannot be read.
    """
    if raw is None:
        return None
    if isinstance(raw, PoseLandmark):
        return raw

    if isinstance(raw, dict):
        x, y = _as_float(raw.get('x')), _as_float(raw.get('y'))
        z = _as_float(raw.get('z'), 0.0)
        visibility = _as_float(raw.get('visibility'))
    elif isinstance(raw, (tuple, list)):
        if len(raw) < 2:
            return None
        x, y = _as_float(raw[0]), _as_float(raw[1])
        z = _as_float(raw[2], 0.0) if len(raw) > 2 else 0.0
        visibility = _as_float(raw[3]) if len(raw) > 3 else None
    elif hasattr(raw, 'x') and hasattr(raw, 'y'):
        x, y = _as_float(raw.x), _as_float(raw.y)
        z = _as_float(getattr(raw, 'z', 0.0), 0.0)
        visibility = _as_float(getattr(raw, 'visibility', None))
    else:
        return None

    if x is None or y is None:
        return None
    return PoseLandmark(x=x, y=y, z=z, visibility=visibility)


def to_pose_landmarks(raw_sequence: Optional[Sequence[Any]]) -> List[Optional[PoseLandmark]]:
    """Coerce a landmark sequence, keeping positions; bad entries become None."""
    if not raw_sequence:
        return []
    return [to_pose_landmark(raw) for raw in raw_sequence]


def landmark_at(landmarks: Sequence[Optional[PoseLandmark]], index: int) -> Optional[PoseLandmark]:
    """Positional lookup that never raises."""
    if landmarks is None or index < 0 or index >= len(landmarks):
        return None
    return landmarks[index]


def required_landmarks(landmarks: Sequence[Optional[PoseLandmark]], *indices: int) -> Optional[List[PoseLandmark]]:
    """All requested landmarks in order, or None if any is missing."""
    found = [landmark_at(landmarks, idx) for idx in indices]
    if any(lm is None for lm in found):
        return None
    return found


def midpoint(a: PoseLandmark, b: PoseLandmark) -> PoseLandmark:
    return PoseLandmark(
        x=(a.x + b.x) / 2,
        y=(a.y + b.y) / 2,
        z=(a.z + b.z) / 2,
        visibility=min(1.0 if a.visibility is None else a.visibility,
                       1.0 if b.visibility is None else b.visibility),
    )
