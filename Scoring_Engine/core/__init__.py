"""Core scoring algorithms."""
from .landmarks import PoseLandmark, to_pose_landmark, to_pose_landmarks
from .landmark_metrics import PostureMetrics, analyze_posture, calculate_angle, calculate_angle_3d
from .temporal_scoring import TemporalPostureScorer, TemporalScore, ScoringSnapshot
from .risk_classifier import (RiskLevel, RiskScale, RiskClassification, classify, classify_posture_risk,
                              classify_risk, calculate_adjusted_score, parse_risk_level, risk_weight)
from .fatigue_detector import (FatigueDetector, FatigueLevel, FatigueAction, FatigueSample, FatigueState,
                               add_fatigue_sample, calculate_fatigue_state)
from .alert_manager import PostureAlertManager, PostureSample, PostureAlert, AlertType
from .posture_telemetry import PostureTelemetry, build_posture_telemetry, build_posture_sample
from .break_reminder import (BreakState, BreakEvaluationInput, BreakRecommendation, ScoreTrend,
                             should_trigger_break_reminder, apply_reminder_triggered, apply_snooze,
                             create_break_state, resolve_score_trend)
from .posture_coaching import (CoachingSeverity, CoachingMetrics, PostureFeedback, generate_posture_feedback,
                               get_correction_tips)
