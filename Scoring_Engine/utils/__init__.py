"""Utility modules for windowed buffers and logging."""
from .rolling_window import TimestampedWindow
from .logging_config import setup_logging
