"""Frame processing host."""
from .messages import ScoreMessage, ResetMessage, SnoozeMessage, SetModeMessage, FrameResult, ScoringMode, parse_message
from .pipeline import FramePipeline
from .scoring_worker import ScoringWorker, BackpressurePolicy
