"""
Fatigue Detector Module

Posture fatigue from sustained low composite scores. Three nested windows are
checked most-severe first:

    5 min window, full coverage, average < 40  -> high   (break_alert)
    3 min window, full coverage, average < 50  -> medium (warning)
    2 min window, full coverage, average < 60  -> low    (suggestion)
    otherwise                                  -> none

Coverage is now minus the oldest sample inside the window, so fatigue cannot
be declared before enough real samples exist (e.g. right after session start).
"""

import logging
import math
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple

import numpy as np

from .policy_thresholds import FATIGUE_WINDOWS, FatigueWindows
from ..utils.rolling_window import TimestampedWindow

logger = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# Enums & Data Classes
# -----------------------------------------------------------------------------

class FatigueLevel(Enum):
    """Fatigue level classification."""
    NONE = "none"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class FatigueAction(Enum):
    """What the caller should surface for a fatigue level."""
    NONE = "none"
    SUGGESTION = "suggestion"
    WARNING = "warning"
    BREAK_ALERT = "break_alert"


FATIGUED_MESSAGE = "You look fatigued"
STABLE_MESSAGE = "Posture energy stable"


@dataclass(frozen=True)
class FatigueSample:
    score: float
    at: float


@dataclass
class FatigueState:
    """Fatigue state derived from the current sample set."""
    fatigue_level: FatigueLevel
    duration: int
    avg_score: float
    action: FatigueAction
    message: str

    @property
    def needs_break(self) -> bool:
        return self.fatigue_level in [FatigueLevel.MEDIUM, FatigueLevel.HIGH]

    @property
    def severity_score(self) -> int:
        return {FatigueLevel.NONE: 0, FatigueLevel.LOW: 1,
                FatigueLevel.MEDIUM: 2, FatigueLevel.HIGH: 3}.get(self.fatigue_level, 0)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'fatigue_level': self.fatigue_level.value,
            'duration': self.duration,
            'avg_score': self.avg_score,
            'action': self.action.value,
            'message': self.message,
            'needs_break': self.needs_break,
            'severity_score': self.severity_score,
        }


def default_fatigue_state() -> FatigueState:
    return FatigueState(FatigueLevel.NONE, 0, 0.0, FatigueAction.NONE, STABLE_MESSAGE)


# -----------------------------------------------------------------------------
# Pure functions
# -----------------------------------------------------------------------------

def _clamp_score(value: float) -> float:
    try:
        value = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(value):
        return 0.0
    return float(np.clip(value, 0.0, 100.0))


def _score_window(samples: Sequence[FatigueSample], now: float, window_ms: float) -> Tuple[float, float]:
    """(average score, coverage ms) of samples at or after now - window_ms."""
    start = now - window_ms
    in_window = [s for s in samples if s.at >= start]
    if not in_window:
        return 0.0, 0.0
    avg = float(np.mean([s.score for s in in_window]))
    return avg, now - in_window[0].at


def add_fatigue_sample(samples: Sequence[FatigueSample], score: float, now: Optional[float] = None,
                       windows: FatigueWindows = FATIGUE_WINDOWS) -> List[FatigueSample]:
    """Return a new sample list with the clamped score appended and stale samples pruned."""
    if now is None:
        now = time.time() * 1000
    cutoff = now - windows.retention_ms
    updated = [s for s in samples if s.at >= cutoff]
    updated.append(FatigueSample(score=_clamp_score(score), at=now))
    return updated


def calculate_fatigue_state(samples: Sequence[FatigueSample], now: Optional[float] = None,
                            windows: FatigueWindows = FATIGUE_WINDOWS) -> FatigueState:
    """Derive the fatigue state from (now, samples); does not mutate samples."""
    if now is None:
        now = time.time() * 1000

    low_avg, low_cov = _score_window(samples, now, windows.LOW_WINDOW_MS)
    medium_avg, medium_cov = _score_window(samples, now, windows.MEDIUM_WINDOW_MS)
    high_avg, high_cov = _score_window(samples, now, windows.HIGH_WINDOW_MS)

    if high_cov >= windows.HIGH_WINDOW_MS and high_avg < windows.HIGH_MAX_AVG:
        return FatigueState(FatigueLevel.HIGH, windows.HIGH_WINDOW_MS // 1000, round(high_avg, 1),
                            FatigueAction.BREAK_ALERT, FATIGUED_MESSAGE)

    if medium_cov >= windows.MEDIUM_WINDOW_MS and medium_avg < windows.MEDIUM_MAX_AVG:
        return FatigueState(FatigueLevel.MEDIUM, windows.MEDIUM_WINDOW_MS // 1000, round(medium_avg, 1),
                            FatigueAction.WARNING, FATIGUED_MESSAGE)

    if low_cov >= windows.LOW_WINDOW_MS and low_avg < windows.LOW_MAX_AVG:
        return FatigueState(FatigueLevel.LOW, windows.LOW_WINDOW_MS // 1000, round(low_avg, 1),
                            FatigueAction.SUGGESTION, FATIGUED_MESSAGE)

    return FatigueState(FatigueLevel.NONE, 0, round(low_avg, 1), FatigueAction.NONE, STABLE_MESSAGE)


# -----------------------------------------------------------------------------
# Detector
# -----------------------------------------------------------------------------

class FatigueDetector:
    """Per-session sample buffer around the fatigue windows. 5 min retention by default."""

    def __init__(self, windows: FatigueWindows = FATIGUE_WINDOWS):
        self.windows = windows
        self._window: TimestampedWindow[FatigueSample] = TimestampedWindow(windows.retention_ms)

    def add_sample(self, score: float, timestamp: float) -> bool:
        """Append a score sample; out-of-order timestamps are dropped (returns False)."""
        sample = FatigueSample(score=_clamp_score(score), at=timestamp)
        accepted = self._window.add(sample, timestamp)
        if not accepted:
            logger.debug("Dropped out-of-order fatigue sample at %s", timestamp)
        return accepted

    def analyze(self, now: Optional[float] = None) -> FatigueState:
        if now is None:
            now = self._window.latest_timestamp
            if now is None:
                return default_fatigue_state()
        return calculate_fatigue_state(self.samples, now, self.windows)

    @property
    def samples(self) -> List[FatigueSample]:
        return self._window.items()

    @property
    def sample_count(self) -> int:
        return self._window.count

    def reset(self):
        """Clear all history."""
        self._window.reset()
