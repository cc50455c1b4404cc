"""
Scoring Engine
Real-time posture scoring, risk classification, fatigue tracking, alerting
and break reminders over a stream of pose landmark frames.
"""

from .core.landmark_metrics import analyze_posture, calculate_angle, PostureMetrics
from .core.risk_classifier import RiskLevel, classify_posture_risk, classify_risk
from .core.fatigue_detector import FatigueDetector, FatigueLevel, FatigueState
from .core.alert_manager import PostureAlertManager, AlertType
from .core.break_reminder import should_trigger_break_reminder, BreakState
from .worker.messages import ScoringMode
from .worker.pipeline import FramePipeline
from .worker.scoring_worker import ScoringWorker, BackpressurePolicy

# Pose detector needs the vision extra (import when needed)
# from .detectors.pose_detector import PoseDetector
