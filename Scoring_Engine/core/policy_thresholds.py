"""
Policy Thresholds & Tunable Constants

Cut points, windows and debounce timings used throughout the scoring engine.
None of these are derived from a model: they are policy values tuned for a
~30 FPS webcam stream and can be replaced per deployment by passing a custom
instance to the component that consumes it.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping


@dataclass(frozen=True)
class MetricScales:
    """
    Per-frame metric penalty scales (normalized image coordinates).

    Small normalized drift should degrade the score quickly, hence the large
    multipliers.
    """
    ALIGNMENT_SCALE: float = 500.0   # |shoulderMidX - hipMidX|
    SYMMETRY_SCALE: float = 600.0    # |leftShoulderY - rightShoulderY|
    STABILITY_SCALE: float = 800.0   # |noseX - shoulderMidX|

    ALIGNMENT_WEIGHT: float = 0.4
    SYMMETRY_WEIGHT: float = 0.3
    STABILITY_WEIGHT: float = 0.3


@dataclass(frozen=True)
class RiskCutPoints:
    """
    Composite score cut points.

    STANDARD scale (risk card): > LOW_ABOVE is LOW, >= MODERATE_FROM is
    MODERATE, >= HIGH_FROM is HIGH, else SEVERE.
    EXTENDED scale (worker): adds fatigue gates and a CRITICAL tier.
    """
    LOW_ABOVE: float = 85.0
    MODERATE_FROM: float = 70.0
    HIGH_FROM: float = 50.0

    EXT_LOW_ABOVE: float = 85.0
    EXT_LOW_MAX_FATIGUE: float = 30.0
    EXT_MODERATE_ABOVE: float = 70.0
    EXT_MODERATE_MAX_FATIGUE: float = 50.0
    EXT_HIGH_ABOVE: float = 50.0
    EXT_SEVERE_ABOVE: float = 30.0

    FATIGUE_PENALTY: float = 0.35


@dataclass(frozen=True)
class FatigueWindows:
    """
    Nested fatigue windows (milliseconds) and their average-score ceilings.

    A level is reached only when its window has real sample coverage of the
    full window length and the window average is below the ceiling.
    """
    LOW_WINDOW_MS: int = 2 * 60 * 1000
    MEDIUM_WINDOW_MS: int = 3 * 60 * 1000
    HIGH_WINDOW_MS: int = 5 * 60 * 1000

    LOW_MAX_AVG: float = 60.0
    MEDIUM_MAX_AVG: float = 50.0
    HIGH_MAX_AVG: float = 40.0

    @property
    def retention_ms(self) -> int:
        return max(self.LOW_WINDOW_MS, self.MEDIUM_WINDOW_MS, self.HIGH_WINDOW_MS)


def _default_alert_thresholds() -> Mapping[str, float]:
    return MappingProxyType({
        'forward_head': 15.0,    # degrees of neck flexion away from a straight 180
        'slouch': 12.0,          # trunk lean from vertical, degrees
        'shoulder_raise': 10.0,  # ear-shoulder gap shortfall, percent of shoulder width
        'tilt': 8.0,             # shoulder line angle, degrees
    })


@dataclass(frozen=True)
class AlertPolicy:
    """
    Posture alert debounce timings.

    Samples are averaged over WINDOW_MS, a crossing must persist for
    PERSIST_MS before it fires, and a fired type is silent for COOLDOWN_MS.
    """
    WINDOW_MS: int = 1500
    PERSIST_MS: int = 3000
    COOLDOWN_MS: int = 5 * 60 * 1000
    thresholds: Mapping[str, float] = field(default_factory=_default_alert_thresholds)


@dataclass(frozen=True)
class BreakPolicy:
    """Break reminder timings."""
    TIME_RULE_SECONDS: int = 45 * 60
    REMINDER_COOLDOWN_MS: int = 15 * 60 * 1000
    SNOOZE_MS: int = 5 * 60 * 1000
    EVALUATION_INTERVAL_MS: int = 10 * 1000

    TREND_WINDOW_MS: int = 2 * 60 * 1000
    TREND_MIN_SAMPLES: int = 4
    TREND_DELTA: float = 8.0
    HISTORY_MS: int = 5 * 60 * 1000


# Aggregate all thresholds
POLICY_THRESHOLDS = {
    'metrics': MetricScales(),
    'risk': RiskCutPoints(),
    'fatigue': FatigueWindows(),
    'alerts': AlertPolicy(),
    'breaks': BreakPolicy(),
}

METRIC_SCALES: MetricScales = POLICY_THRESHOLDS['metrics']
RISK_CUT_POINTS: RiskCutPoints = POLICY_THRESHOLDS['risk']
FATIGUE_WINDOWS: FatigueWindows = POLICY_THRESHOLDS['fatigue']
ALERT_POLICY: AlertPolicy = POLICY_THRESHOLDS['alerts']
BREAK_POLICY: BreakPolicy = POLICY_THRESHOLDS['breaks']
