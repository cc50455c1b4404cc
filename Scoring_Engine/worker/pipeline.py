"""
Frame Pipeline

Per-session processing of one landmark frame:

    landmarks -> metrics -> risk level
              -> fatigue detector (every scored frame)
              -> posture telemetry -> alert manager, coaching feedback
              -> break reminder (every evaluation interval)

All state lives on the instance; create one pipeline per session and call
reset() to start over. Snooze and mode changes arrive as messages so they
stay ordered with frames and resets. Frames must arrive in non-decreasing timestamp order;
older frames are dropped and counted.
"""

import logging
import math
from typing import Any, Optional, Sequence

from ..core.alert_manager import PostureAlertManager
from ..core.break_reminder import (
    BreakEvaluationInput, BreakRecommendation, apply_reminder_triggered, apply_snooze,
    create_break_state, resolve_score_trend, should_trigger_break_reminder,
)
from ..core.exceptions import InvalidMessageError
from ..core.fatigue_detector import FatigueDetector, FatigueLevel, FatigueSample
from ..core.landmark_metrics import analyze_posture
from ..core.landmarks import PoseLandmark
from ..core.policy_thresholds import (
    ALERT_POLICY, BREAK_POLICY, FATIGUE_WINDOWS, AlertPolicy, BreakPolicy, FatigueWindows,
)
from ..core.posture_coaching import PostureFeedback, coaching_metrics_from_telemetry, generate_posture_feedback
from ..core.posture_telemetry import PostureTelemetry, build_posture_telemetry, telemetry_to_sample
from ..core.risk_classifier import classify_posture_risk, classify_risk
from ..core.temporal_scoring import TemporalPostureScorer
from ..utils.rolling_window import TimestampedWindow
from .messages import (
    FrameResult, ResetMessage, ScoreMessage, ScoringMode, SetModeMessage, SnoozeMessage, parse_message,
)

logger = logging.getLogger(__name__)


class FramePipeline:
    """Stateful per-session frame processor."""

    def __init__(
        self,
        mode: ScoringMode = ScoringMode.FRAME,
        hold_last_score: bool = False,
        evaluate_breaks: bool = True,
        fatigue_windows: FatigueWindows = FATIGUE_WINDOWS,
        alert_policy: AlertPolicy = ALERT_POLICY,
        break_policy: BreakPolicy = BREAK_POLICY,
        session_id: str = "N/A",
    ):
        """
        Args:
            mode: Scoring variant (see ScoringMode)
            hold_last_score: Feed the last known score to fatigue tracking on
                frames with insufficient landmarks
            evaluate_breaks: Run the break reminder evaluator
            fatigue_windows: Fatigue window policy
            alert_policy: Alert debounce policy and thresholds
            break_policy: Break reminder policy
            session_id: Label used in log lines and errors
        """
        self.mode = mode
        self.hold_last_score = hold_last_score
        self.evaluate_breaks = evaluate_breaks
        self.break_policy = break_policy
        self.session_id = session_id

        self.fatigue_detector = FatigueDetector(fatigue_windows)
        self.alert_manager = PostureAlertManager(alert_policy)
        self.temporal_scorer = TemporalPostureScorer()
        self.break_state = create_break_state()
        self._score_history: TimestampedWindow[FatigueSample] = TimestampedWindow(break_policy.HISTORY_MS)

        self._session_started_at: Optional[float] = None
        self._last_timestamp: Optional[float] = None
        self._last_score: Optional[float] = None
        self._last_break_eval_at: Optional[float] = None

        self.processed_frames = 0
        self.skipped_frames = 0
        self.dropped_frames = 0

    # -------------------------------------------------------------------------
    # Messages
    # -------------------------------------------------------------------------

    def process(self, message: Any) -> Optional[FrameResult]:
        """Handle a score or control message; None for control messages and skipped frames."""
        message = parse_message(message)
        if isinstance(message, ResetMessage):
            self.reset()
            return None
        if isinstance(message, SnoozeMessage):
            self.snooze_breaks(message.now)
            return None
        if isinstance(message, SetModeMessage):
            self.set_mode(message.mode)
            return None
        if isinstance(message, ScoreMessage):
            return self.process_frame(message.landmarks, message.timestamp)
        raise InvalidMessageError(f"Unhandled message {message!r}", self.session_id)

    def process_frame(self, landmarks: Sequence[Optional[PoseLandmark]], timestamp: float) -> Optional[FrameResult]:
        if not math.isfinite(timestamp):
            logger.warning("[%s] Dropping frame with non-finite timestamp", self.session_id)
            self.dropped_frames += 1
            return None
        if self._last_timestamp is not None and timestamp < self._last_timestamp:
            logger.warning("[%s] Dropping out-of-order frame: %s < %s",
                           self.session_id, timestamp, self._last_timestamp)
            self.dropped_frames += 1
            return None

        self._last_timestamp = timestamp
        if self._session_started_at is None:
            self._session_started_at = timestamp

        result = self._score(landmarks, timestamp)
        if result is None:
            self.skipped_frames += 1
            if self.hold_last_score and self._last_score is not None:
                self._track_score(self._last_score, timestamp)
            return None

        self.processed_frames += 1
        self._last_score = result.score
        result.fatigue_state = self._track_score(result.score, timestamp)
        telemetry = build_posture_telemetry(landmarks)
        if telemetry is not None:
            result.alert = self._evaluate_alerts(telemetry, timestamp)
            result.feedback = self._coach(telemetry, result.score)
        if self.evaluate_breaks:
            result.break_recommendation = self._evaluate_breaks(
                result.fatigue_state.fatigue_level, timestamp
            )
        return result

    # -------------------------------------------------------------------------
    # Stages
    # -------------------------------------------------------------------------

    def _score(self, landmarks: Sequence[Optional[PoseLandmark]], timestamp: float) -> Optional[FrameResult]:
        if self.mode is ScoringMode.TEMPORAL:
            temporal = self.temporal_scorer.score(landmarks, timestamp)
            if temporal is None:
                return None
            return FrameResult(
                timestamp=timestamp,
                alignment=round(temporal.alignment, 2),
                symmetry=round(temporal.symmetry, 2),
                stability=round(temporal.stability, 2),
                score=round(temporal.score, 2),
                risk_level=classify_risk(temporal.score, temporal.fatigue),
                fatigue=round(temporal.fatigue, 2),
            )

        metrics = analyze_posture(landmarks)
        if metrics is None:
            return None
        return FrameResult(
            timestamp=timestamp,
            alignment=metrics.alignment,
            symmetry=metrics.symmetry,
            stability=metrics.stability,
            score=metrics.score,
            risk_level=classify_posture_risk(metrics.score).level,
        )

    def _track_score(self, score: float, timestamp: float):
        self.fatigue_detector.add_sample(score, timestamp)
        self._score_history.add(FatigueSample(score=score, at=timestamp), timestamp)
        return self.fatigue_detector.analyze(timestamp)

    def _evaluate_alerts(self, telemetry: PostureTelemetry, timestamp: float):
        self.alert_manager.push_sample(telemetry_to_sample(telemetry, timestamp))
        return self.alert_manager.evaluate_alert(timestamp)

    @staticmethod
    def _coach(telemetry: PostureTelemetry, score: float) -> PostureFeedback:
        return generate_posture_feedback(coaching_metrics_from_telemetry(telemetry, score))

    def _evaluate_breaks(self, fatigue_level: FatigueLevel, timestamp: float) -> Optional[BreakRecommendation]:
        if (self._last_break_eval_at is not None
                and timestamp - self._last_break_eval_at < self.break_policy.EVALUATION_INTERVAL_MS):
            return None
        self._last_break_eval_at = timestamp

        evaluation = BreakEvaluationInput(
            elapsed_seconds=max(0.0, (timestamp - self._session_started_at) / 1000),
            fatigue_level=fatigue_level,
            score_trend=resolve_score_trend(self._score_history.items(), timestamp, self.break_policy),
            now=timestamp,
        )
        recommendation = should_trigger_break_reminder(evaluation, self.break_state, self.break_policy)
        if recommendation is not None:
            apply_reminder_triggered(self.break_state, timestamp)
            logger.info("[%s] Break reminder: %s", self.session_id, recommendation.reason.value)
        return recommendation

    # -------------------------------------------------------------------------
    # Session control
    # -------------------------------------------------------------------------

    def snooze_breaks(self, now: Optional[float] = None):
        """Silence break reminders from now (default: last frame time)."""
        if now is None:
            now = self._last_timestamp if self._last_timestamp is not None else 0.0
        apply_snooze(self.break_state, now, self.break_policy)

    def set_mode(self, mode: ScoringMode):
        """Switch scoring variant; the temporal snapshot is dropped on change."""
        mode = ScoringMode(mode)
        if mode is self.mode:
            return
        self.mode = mode
        self.temporal_scorer.reset()
        logger.info("[%s] Scoring mode: %s", self.session_id, mode.value)

    @property
    def last_score(self) -> Optional[float]:
        return self._last_score

    def reset(self):
        """Clear all session state. Safe to call repeatedly."""
        self.fatigue_detector.reset()
        self.alert_manager.reset()
        self.temporal_scorer.reset()
        self.break_state = create_break_state()
        self._score_history.reset()
        self._session_started_at = None
        self._last_timestamp = None
        self._last_score = None
        self._last_break_eval_at = None
        self.processed_frames = 0
        self.skipped_frames = 0
        self.dropped_frames = 0
        logger.info("[%s] Session state reset", self.session_id)
