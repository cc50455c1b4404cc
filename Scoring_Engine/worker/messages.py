"""Worker message and result types."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from ..core.alert_manager import PostureAlert
from ..core.break_reminder import BreakRecommendation
from ..core.exceptions import InvalidMessageError
from ..core.fatigue_detector import FatigueState
from ..core.landmarks import PoseLandmark, to_pose_landmarks
from ..core.posture_coaching import PostureFeedback
from ..core.risk_classifier import RiskLevel


class ScoringMode(Enum):
    """FRAME: per-frame metrics, standard 4-level risk. TEMPORAL: snapshot scorer, extended 5-level risk."""
    FRAME = "frame"
    TEMPORAL = "temporal"


@dataclass
class ScoreMessage:
    """One frame of landmarks; raw landmarks are coerced to PoseLandmark on creation."""
    landmarks: List[Optional[PoseLandmark]]
    timestamp: float

    def __post_init__(self):
        self.landmarks = to_pose_landmarks(self.landmarks)


@dataclass
class ResetMessage:
    """Clears all accumulated session state."""
    reason: str = "reset"


@dataclass
class SnoozeMessage:
    """Silence break reminders from now (None: last frame time)."""
    now: Optional[float] = None


@dataclass
class SetModeMessage:
    """Switch the scoring variant for subsequent frames."""
    mode: ScoringMode


WorkerMessage = Union[ScoreMessage, ResetMessage, SnoozeMessage, SetModeMessage]
CONTROL_MESSAGES = (ResetMessage, SnoozeMessage, SetModeMessage)


@dataclass
class FrameResult:
    """Per-frame output sent back to the caller."""
    timestamp: float
    alignment: float
    symmetry: float
    stability: float
    score: float
    risk_level: RiskLevel
    fatigue_state: Optional[FatigueState] = None
    alert: Optional[PostureAlert] = None
    break_recommendation: Optional[BreakRecommendation] = None
    fatigue: Optional[float] = None
    feedback: Optional[PostureFeedback] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'type': 'result',
            'timestamp': self.timestamp,
            'alignment': self.alignment,
            'symmetry': self.symmetry,
            'stability': self.stability,
            'score': self.score,
            'riskLevel': self.risk_level.value,
            'fatigue': self.fatigue,
            'fatigueState': self.fatigue_state.to_dict() if self.fatigue_state else None,
            'alert': self.alert.to_dict() if self.alert else None,
            'breakRecommendation': self.break_recommendation.to_dict() if self.break_recommendation else None,
            'feedback': self.feedback.to_dict() if self.feedback else None,
        }


def _optional_float(payload: Dict[str, Any], key: str) -> Optional[float]:
    value = payload.get(key)
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise InvalidMessageError(f"Invalid {key}: {value!r}") from e


def parse_message(payload: Any) -> WorkerMessage:
    """
    Accept a message object or a wire dict:
    {"type": "score", "landmarks": [...], "timestamp": ...}, {"type": "reset"},
    {"type": "snooze", "now": ...} or {"type": "set_mode", "mode": "frame" | "temporal"}.
    """
    if isinstance(payload, (ScoreMessage,) + CONTROL_MESSAGES):
        return payload
    if not isinstance(payload, dict):
        raise InvalidMessageError(f"Unsupported message payload: {type(payload).__name__}")

    message_type = payload.get('type')
    if message_type == 'reset':
        return ResetMessage()
    if message_type == 'snooze':
        return SnoozeMessage(now=_optional_float(payload, 'now'))
    if message_type == 'set_mode':
        try:
            return SetModeMessage(mode=ScoringMode(payload.get('mode')))
        except ValueError as e:
            raise InvalidMessageError(f"Unknown scoring mode: {payload.get('mode')!r}") from e
    if message_type == 'score':
        if 'landmarks' not in payload or 'timestamp' not in payload:
            raise InvalidMessageError("Score message needs landmarks and timestamp")
        timestamp = _optional_float(payload, 'timestamp')
        if timestamp is None:
            raise InvalidMessageError("Score message needs a timestamp")
        return ScoreMessage(landmarks=payload['landmarks'] or [], timestamp=timestamp)
    raise InvalidMessageError(f"Unknown message type: {message_type!r}")
