"""Custom exceptions for the scoring engine."""


class ScoringEngineError(Exception):
    """Base exception for scoring engine failures."""

    def __init__(self, message: str, session_id: str = "N/A"):
        self.message = message
        self.session_id = session_id
        super().__init__(f"[Session: {session_id}] {message}")


class WorkerNotRunningError(ScoringEngineError):
    """Raised when a frame is submitted to a threaded worker that is not running."""
    pass


class InvalidMessageError(ScoringEngineError):
    """Raised when the worker receives something that is neither a score nor a reset message."""
    pass
