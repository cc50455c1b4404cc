"""
Risk Classifier Module

Maps a composite posture score onto a discrete, ordinal risk scale. Two named
scales exist and are never merged:

- STANDARD (risk card): LOW / MODERATE / HIGH / SEVERE on score alone.
- EXTENDED (live worker): adds fatigue gates and a CRITICAL tier.

Both are pure and stateless; all temporal smoothing lives in the fatigue and
alert components.
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

import numpy as np

from .policy_thresholds import RISK_CUT_POINTS, RiskCutPoints


# -----------------------------------------------------------------------------
# Enums & Data Classes
# -----------------------------------------------------------------------------

class RiskScale(Enum):
    """Named classifier variants."""
    STANDARD = "standard"
    EXTENDED = "extended"


class RiskLevel(Enum):
    """Ordinal risk levels, LOW < MODERATE < HIGH < SEVERE < CRITICAL."""
    LOW = "LOW"
    MODERATE = "MODERATE"
    HIGH = "HIGH"
    SEVERE = "SEVERE"
    CRITICAL = "CRITICAL"

    @property
    def severity(self) -> int:
        return RISK_SEVERITY[self]

    @property
    def weight(self) -> float:
        """Numeric weight used when a single peak-risk number is stored."""
        return RISK_WEIGHTS[self]

    @property
    def label(self) -> str:
        return RISK_LABELS[self]

    @property
    def color(self) -> str:
        return RISK_COLORS[self]

    @property
    def detail(self) -> str:
        return RISK_DETAILS[self]

    def __lt__(self, other: "RiskLevel") -> bool:
        if not isinstance(other, RiskLevel):
            return NotImplemented
        return self.severity < other.severity

    def __le__(self, other: "RiskLevel") -> bool:
        if not isinstance(other, RiskLevel):
            return NotImplemented
        return self.severity <= other.severity

    def __gt__(self, other: "RiskLevel") -> bool:
        if not isinstance(other, RiskLevel):
            return NotImplemented
        return self.severity > other.severity

    def __ge__(self, other: "RiskLevel") -> bool:
        if not isinstance(other, RiskLevel):
            return NotImplemented
        return self.severity >= other.severity


RISK_SEVERITY = {
    RiskLevel.LOW: 0,
    RiskLevel.MODERATE: 1,
    RiskLevel.HIGH: 2,
    RiskLevel.SEVERE: 3,
    RiskLevel.CRITICAL: 4,
}

RISK_WEIGHTS = {
    RiskLevel.LOW: 0.2,
    RiskLevel.MODERATE: 0.5,
    RiskLevel.HIGH: 0.9,
    RiskLevel.SEVERE: 0.95,
    RiskLevel.CRITICAL: 1.0,
}

RISK_LABELS = {
    RiskLevel.LOW: "Low risk",
    RiskLevel.MODERATE: "Moderate risk",
    RiskLevel.HIGH: "High risk",
    RiskLevel.SEVERE: "Severe risk",
    RiskLevel.CRITICAL: "Critical risk",
}

RISK_COLORS = {
    RiskLevel.LOW: "#34d399",
    RiskLevel.MODERATE: "#facc15",
    RiskLevel.HIGH: "#fb923c",
    RiskLevel.SEVERE: "#f43f5e",
    RiskLevel.CRITICAL: "#be123c",
}

RISK_DETAILS = {
    RiskLevel.LOW: "Low risk: posture and fatigue are in a healthy range.",
    RiskLevel.MODERATE: "Moderate risk: minor strain indicators are present.",
    RiskLevel.HIGH: "High risk: posture quality is dropping and corrective action is recommended.",
    RiskLevel.SEVERE: "Severe risk: prolonged strain is likely without immediate correction.",
    RiskLevel.CRITICAL: "Critical risk: immediate rest and posture reset are strongly advised.",
}

# Stored values seen from older clients; MEDIUM predates MODERATE.
RISK_ALIASES = {
    "LOW": RiskLevel.LOW,
    "MEDIUM": RiskLevel.MODERATE,
    "MODERATE": RiskLevel.MODERATE,
    "HIGH": RiskLevel.HIGH,
    "SEVERE": RiskLevel.SEVERE,
    "CRITICAL": RiskLevel.CRITICAL,
}


@dataclass
class RiskClassification:
    """Risk card classification."""
    level: RiskLevel
    label: str
    color: str

    @property
    def needs_correction(self) -> bool:
        return self.level >= RiskLevel.HIGH

    def to_dict(self) -> Dict[str, Any]:
        return {
            'risk_level': self.level.value,
            'label': self.label,
            'color': self.color,
            'severity_score': self.level.severity,
        }


# -----------------------------------------------------------------------------
# Classifiers
# -----------------------------------------------------------------------------

def clamp_score(value: float) -> float:
    """Clamp into [0, 100]; non-finite or non-numeric input becomes 0."""
    try:
        value = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(value):
        return 0.0
    return float(np.clip(value, 0.0, 100.0))


def _clamp_fatigue(value: float) -> float:
    """Clamp into [0, 100]; unknown fatigue is treated as the worst case."""
    try:
        value = float(value)
    except (TypeError, ValueError):
        return 100.0
    if not math.isfinite(value):
        return 100.0
    return float(np.clip(value, 0.0, 100.0))


def classify_posture_risk(avg_score: float, fatigue_time: float = 0.0, slouch_events: int = 0,
                          head_forward_events: int = 0,
                          cut_points: RiskCutPoints = RISK_CUT_POINTS) -> RiskClassification:
    """
    Standard 4-level scale on the average composite score.

    fatigue_time and the event counts are accepted for the risk card contract
    but do not move the cut points.
    """
    score = clamp_score(avg_score)

    if score > cut_points.LOW_ABOVE:
        level = RiskLevel.LOW
    elif score >= cut_points.MODERATE_FROM:
        level = RiskLevel.MODERATE
    elif score >= cut_points.HIGH_FROM:
        level = RiskLevel.HIGH
    else:
        level = RiskLevel.SEVERE

    return RiskClassification(level=level, label=level.label, color=level.color)


def classify_risk(score: float, fatigue: float, cut_points: RiskCutPoints = RISK_CUT_POINTS) -> RiskLevel:
    """Extended 5-level scale on score and fatigue (0-100)."""
    score = clamp_score(score)
    fatigue = _clamp_fatigue(fatigue)

    if score > cut_points.EXT_LOW_ABOVE and fatigue < cut_points.EXT_LOW_MAX_FATIGUE:
        return RiskLevel.LOW
    if score > cut_points.EXT_MODERATE_ABOVE and fatigue < cut_points.EXT_MODERATE_MAX_FATIGUE:
        return RiskLevel.MODERATE
    if score > cut_points.EXT_HIGH_ABOVE:
        return RiskLevel.HIGH
    if score > cut_points.EXT_SEVERE_ABOVE:
        return RiskLevel.SEVERE
    return RiskLevel.CRITICAL


def classify(score: float, scale: RiskScale = RiskScale.STANDARD, fatigue: float = 0.0) -> RiskLevel:
    """Dispatch to the named scale."""
    if scale is RiskScale.EXTENDED:
        return classify_risk(score, fatigue)
    return classify_posture_risk(score).level


def calculate_adjusted_score(score: float, fatigue: float,
                             cut_points: RiskCutPoints = RISK_CUT_POINTS) -> float:
    """Score minus a fatigue penalty, clamped to [0, 100]."""
    adjusted = clamp_score(score) - _clamp_fatigue(fatigue) * cut_points.FATIGUE_PENALTY
    return float(np.clip(adjusted, 0.0, 100.0))


def parse_risk_level(value: Any) -> Optional[RiskLevel]:
    """Resolve a stored risk value (enum, name or alias) to a RiskLevel; None if unknown."""
    if isinstance(value, RiskLevel):
        return value
    if isinstance(value, str):
        return RISK_ALIASES.get(value.strip().upper())
    return None


def risk_weight(value: Any) -> float:
    """Numeric weight for a stored risk value; numbers pass through, unknown is 0."""
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        return float(value) if math.isfinite(value) else 0.0
    level = parse_risk_level(value)
    return level.weight if level is not None else 0.0
