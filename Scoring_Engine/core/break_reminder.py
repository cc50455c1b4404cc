"""
Break Reminder Module

Decides when to suggest a break. Rules, first match wins:

1. snoozed            -> nothing
2. fatigue high       -> urgent "walk briefly" (ignores the reminder cooldown)
3. within cooldown    -> nothing
4. 45 min elapsed     -> "stand up"
5. declining scores   -> "stretch"
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Sequence

from .fatigue_detector import FatigueLevel, FatigueSample
from .policy_thresholds import BREAK_POLICY, BreakPolicy

logger = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# Enums & Data Classes
# -----------------------------------------------------------------------------

class ScoreTrend(Enum):
    DECLINING = "declining"
    STABLE = "stable"
    IMPROVING = "improving"


class BreakTriggerReason(Enum):
    TIME = "time"
    FATIGUE_HIGH = "fatigue_high"
    DECLINING_SCORE = "declining_score"


class BreakUrgency(Enum):
    NORMAL = "normal"
    URGENT = "urgent"


@dataclass
class BreakState:
    """Mutable reminder state; last_reminder_at is None until the first reminder."""
    last_reminder_at: Optional[float] = None
    snoozed_until: float = 0.0


@dataclass
class BreakEvaluationInput:
    elapsed_seconds: float
    fatigue_level: FatigueLevel
    score_trend: ScoreTrend
    now: float


@dataclass
class BreakRecommendation:
    reason: BreakTriggerReason
    message: str
    suggestion: str
    urgency: BreakUrgency

    def to_dict(self) -> Dict[str, Any]:
        return {
            'reason': self.reason.value,
            'message': self.message,
            'suggestion': self.suggestion,
            'urgency': self.urgency.value,
        }


# -----------------------------------------------------------------------------
# Evaluation
# -----------------------------------------------------------------------------

def create_break_state() -> BreakState:
    return BreakState()


def get_break_evaluation_interval_ms(policy: BreakPolicy = BREAK_POLICY) -> int:
    return policy.EVALUATION_INTERVAL_MS


def should_trigger_break_reminder(evaluation: BreakEvaluationInput, state: BreakState,
                                  policy: BreakPolicy = BREAK_POLICY) -> Optional[BreakRecommendation]:
    """Return a recommendation or None. Does not mutate state."""
    now = evaluation.now
    if now < state.snoozed_until:
        return None

    if evaluation.fatigue_level is FatigueLevel.HIGH:
        return BreakRecommendation(
            reason=BreakTriggerReason.FATIGUE_HIGH,
            message="Walk briefly",
            suggestion="Urgent break recommended due to high fatigue.",
            urgency=BreakUrgency.URGENT,
        )

    cooldown_active = (
        state.last_reminder_at is not None
        and now - state.last_reminder_at < policy.REMINDER_COOLDOWN_MS
    )
    if cooldown_active:
        return None

    if evaluation.elapsed_seconds >= policy.TIME_RULE_SECONDS:
        return BreakRecommendation(
            reason=BreakTriggerReason.TIME,
            message="Time to stand up",
            suggestion="Stand and reset posture.",
            urgency=BreakUrgency.NORMAL,
        )

    if evaluation.score_trend is ScoreTrend.DECLINING:
        return BreakRecommendation(
            reason=BreakTriggerReason.DECLINING_SCORE,
            message="Take a 2-minute stretch",
            suggestion="Score trend is declining. Do a quick micro break.",
            urgency=BreakUrgency.NORMAL,
        )

    return None


def apply_reminder_triggered(state: BreakState, now: float):
    state.last_reminder_at = now


def apply_snooze(state: BreakState, now: float, policy: BreakPolicy = BREAK_POLICY):
    state.snoozed_until = now + policy.SNOOZE_MS
    logger.debug("Break reminders snoozed until %s", state.snoozed_until)


def resolve_score_trend(history: Sequence[FatigueSample], now: float,
                        policy: BreakPolicy = BREAK_POLICY) -> ScoreTrend:
    """Compare the oldest and latest score in the trend window; STABLE on too few samples."""
    cutoff = now - policy.TREND_WINDOW_MS
    recent = [s for s in history if s.at >= cutoff]
    if len(recent) < policy.TREND_MIN_SAMPLES:
        return ScoreTrend.STABLE

    oldest, latest = recent[0].score, recent[-1].score
    if latest <= oldest - policy.TREND_DELTA:
        return ScoreTrend.DECLINING
    if latest >= oldest + policy.TREND_DELTA:
        return ScoreTrend.IMPROVING
    return ScoreTrend.STABLE
