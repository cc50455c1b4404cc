"""
Posture Coaching Module

Per-frame coaching text from posture telemetry and the composite score.
Rules are checked in a fixed order and the first match wins:

    head forward > 20 deg   -> "Head forward posture"
    shoulder tilt > 10 deg  -> "Shoulders uneven"
    spine lean > 15 deg     -> "Slouch detected"
    score > 85              -> "Great posture" (good)
    score >= 60             -> "Minor correction needed" (warning)
    otherwise               -> "Poor posture" (bad)

A deviation rule is "bad" when the score is below 60, otherwise "warning".
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List

from .posture_telemetry import PostureTelemetry


# -----------------------------------------------------------------------------
# Enums & Data Classes
# -----------------------------------------------------------------------------

class CoachingSeverity(Enum):
    GOOD = "good"
    WARNING = "warning"
    BAD = "bad"


@dataclass
class CoachingMetrics:
    """Inputs to the coaching rules, angles in degrees."""
    head_forward_angle: float
    shoulder_tilt: float
    spine_angle: float
    score: float


@dataclass
class PostureFeedback:
    """Coaching message for one frame."""
    message: str
    severity: CoachingSeverity
    suggestion: str

    @property
    def needs_correction(self) -> bool:
        return self.severity is not CoachingSeverity.GOOD

    def to_dict(self) -> Dict[str, Any]:
        return {
            'message': self.message,
            'severity': self.severity.value,
            'suggestion': self.suggestion,
        }


HEAD_FORWARD_LIMIT = 20.0
SHOULDER_TILT_LIMIT = 10.0
SPINE_ANGLE_LIMIT = 15.0
GOOD_SCORE_ABOVE = 85.0
FAIR_SCORE_FROM = 60.0


# -----------------------------------------------------------------------------
# Rules
# -----------------------------------------------------------------------------

def coaching_metrics_from_telemetry(telemetry: PostureTelemetry, score: float) -> CoachingMetrics:
    return CoachingMetrics(
        head_forward_angle=max(0.0, 180.0 - telemetry.neck_angle),
        shoulder_tilt=telemetry.shoulder_tilt,
        spine_angle=telemetry.trunk_angle,
        score=score,
    )


def _deviation_severity(score: float) -> CoachingSeverity:
    return CoachingSeverity.BAD if score < FAIR_SCORE_FROM else CoachingSeverity.WARNING


def generate_posture_feedback(metrics: CoachingMetrics) -> PostureFeedback:
    """First matching coaching rule for the frame."""
    if metrics.head_forward_angle > HEAD_FORWARD_LIMIT:
        return PostureFeedback("Head forward posture", _deviation_severity(metrics.score), "Straighten your neck")

    if metrics.shoulder_tilt > SHOULDER_TILT_LIMIT:
        return PostureFeedback("Shoulders uneven", _deviation_severity(metrics.score), "Relax shoulders evenly")

    if metrics.spine_angle > SPINE_ANGLE_LIMIT:
        return PostureFeedback("Slouch detected", _deviation_severity(metrics.score), "Sit upright")

    if metrics.score > GOOD_SCORE_ABOVE:
        return PostureFeedback("Great posture", CoachingSeverity.GOOD, "Keep this alignment")

    if metrics.score >= FAIR_SCORE_FROM:
        return PostureFeedback("Minor correction needed", CoachingSeverity.WARNING, "Sit upright")

    return PostureFeedback("Poor posture", CoachingSeverity.BAD, "Straighten your neck and spine")


def get_correction_tips(metrics: CoachingMetrics) -> List[str]:
    """Ordered, de-duplicated tips for every deviation present."""
    tips: List[str] = []
    if metrics.head_forward_angle > HEAD_FORWARD_LIMIT:
        tips.extend(["Pull chin back", "Raise monitor height"])
    if metrics.spine_angle > SPINE_ANGLE_LIMIT:
        tips.extend(["Lean back 8°", "Support lower back"])
    if metrics.shoulder_tilt > SHOULDER_TILT_LIMIT:
        tips.extend(["Level shoulders", "Center keyboard"])

    if not tips:
        if metrics.score > GOOD_SCORE_ABOVE:
            return ["Hold this posture", "Keep shoulders relaxed"]
        return ["Micro-adjust posture", "Reset spine alignment"]

    return list(dict.fromkeys(tips))
