"""
Posture Alert Manager

Turns four continuous deviation signals into rate-limited alert events.
Each signal is averaged over a short rolling window, must stay above its
threshold for a persistence period before it fires, and is then silenced for
a cooldown period. At most one alert fires per evaluation, in the fixed order
forward_head, slouch, shoulder_raise, tilt.
"""

import logging
import math
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional

from .policy_thresholds import ALERT_POLICY, AlertPolicy
from ..utils.rolling_window import TimestampedWindow

logger = logging.getLogger(__name__)


class AlertType(Enum):
    """Alert types in evaluation priority order."""
    FORWARD_HEAD = "forward_head"
    SLOUCH = "slouch"
    SHOULDER_RAISE = "shoulder_raise"
    TILT = "tilt"


ALERT_ORDER = (AlertType.FORWARD_HEAD, AlertType.SLOUCH, AlertType.SHOULDER_RAISE, AlertType.TILT)

ALERT_MESSAGES = {
    AlertType.FORWARD_HEAD: "Head too forward",
    AlertType.SLOUCH: "Straighten your back",
    AlertType.SHOULDER_RAISE: "Relax your shoulders",
    AlertType.TILT: "Level shoulders",
}


def _finite_or_zero(value: float) -> float:
    try:
        value = float(value)
    except (TypeError, ValueError):
        return 0.0
    return value if math.isfinite(value) else 0.0


@dataclass
class PostureSample:
    """Deviation magnitudes for one frame."""
    ts: float
    forward_head: float = 0.0
    slouch: float = 0.0
    shoulder_raise: float = 0.0
    tilt: float = 0.0

    def __post_init__(self):
        self.forward_head = _finite_or_zero(self.forward_head)
        self.slouch = _finite_or_zero(self.slouch)
        self.shoulder_raise = _finite_or_zero(self.shoulder_raise)
        self.tilt = _finite_or_zero(self.tilt)

    def value(self, alert_type: AlertType) -> float:
        return getattr(self, alert_type.value)


@dataclass
class PostureAlert:
    """A fired alert."""
    type: AlertType
    message: str
    at: float

    def to_dict(self) -> Dict[str, Any]:
        return {'type': self.type.value, 'message': self.message, 'at': self.at}


class PostureAlertManager:
    """Persistence-confirmed, cooldown-limited alerting; one instance per session."""

    def __init__(self, policy: AlertPolicy = ALERT_POLICY):
        self.policy = policy
        self._thresholds = MappingProxyType(dict(policy.thresholds))
        self._samples: TimestampedWindow[PostureSample] = TimestampedWindow(policy.WINDOW_MS)
        self._first_detected: Dict[AlertType, float] = {}
        self._last_alert: Dict[AlertType, float] = {}

    def push_sample(self, sample: PostureSample) -> bool:
        """Add a sample and drop those older than the averaging window; False if out of order."""
        accepted = self._samples.add(sample, sample.ts)
        if not accepted:
            logger.debug("Dropped out-of-order posture sample at %s", sample.ts)
        return accepted

    def average(self, alert_type: AlertType) -> float:
        return self._samples.mean(lambda s: s.value(alert_type))

    @property
    def thresholds(self) -> Mapping[Any, float]:
        """Read-only per-session copy of the policy thresholds."""
        return self._thresholds

    def _threshold(self, alert_type: AlertType, thresholds: Optional[Mapping[Any, float]]) -> float:
        table = thresholds if thresholds is not None else self._thresholds
        if alert_type in table:
            return table[alert_type]
        return table.get(alert_type.value, math.inf)

    def evaluate(self, now: float, thresholds: Optional[Mapping[Any, float]] = None) -> Optional[AlertType]:
        """Return the first alert type that fires at now, or None."""
        for alert_type in ALERT_ORDER:
            crossed = self.average(alert_type) >= self._threshold(alert_type, thresholds)
            if not crossed:
                self._first_detected.pop(alert_type, None)
                continue

            first = self._first_detected.get(alert_type)
            if first is None:
                self._first_detected[alert_type] = now
                continue
            if now - first < self.policy.PERSIST_MS:
                continue

            last = self._last_alert.get(alert_type)
            if last is not None and now - last < self.policy.COOLDOWN_MS:
                continue

            self._last_alert[alert_type] = now
            self._first_detected[alert_type] = now
            logger.debug("Posture alert fired: %s at %s", alert_type.value, now)
            return alert_type
        return None

    def evaluate_alert(self, now: float, thresholds: Optional[Mapping[Any, float]] = None) -> Optional[PostureAlert]:
        """evaluate() wrapped into an alert event with its message."""
        alert_type = self.evaluate(now, thresholds)
        if alert_type is None:
            return None
        return PostureAlert(type=alert_type, message=ALERT_MESSAGES[alert_type], at=now)

    def get_last_alert_timestamps(self) -> Dict[str, float]:
        return {alert_type.value: ts for alert_type, ts in self._last_alert.items()}

    @property
    def sample_count(self) -> int:
        return self._samples.count

    def reset(self):
        """Clear samples and timers."""
        self._samples.reset()
        self._first_detected.clear()
        self._last_alert.clear()
