"""Landmark detection (requires the vision extra)."""
from .pose_detector import PoseDetector
