"""
Pose Detector Module
MediaPipe Pose Landmarker wrapper that turns camera frames into worker
ScoreMessages. Uses the MediaPipe Tasks API (0.10+). Only landmark
coordinates leave this module; frames are never stored.
"""

import logging
import ssl
import urllib.request
from pathlib import Path
from typing import Optional

import certifi
import cv2
import numpy as np

# MediaPipe Tasks API
import mediapipe as mp
from mediapipe.tasks import python as mp_python
from mediapipe.tasks.python import vision

from ..core.landmarks import to_pose_landmarks
from ..worker.messages import ScoreMessage

logger = logging.getLogger(__name__)


class PoseDetector:
    """MediaPipe Pose Landmarker - extracts all 33 landmarks per frame."""

    MODEL_URL = "https://storage.googleapis.com/mediapipe-models/pose_landmarker/pose_landmarker_lite/float16/latest/pose_landmarker_lite.task"
    MODEL_PATH = Path(__file__).parent.parent.parent / "models" / "pose_landmarker_lite.task"

    def __init__(self, min_detection_confidence: float = 0.5,
                 min_tracking_confidence: float = 0.5, model_path: Optional[Path] = None):
        """
        Args:
            min_detection_confidence: Minimum confidence for detection
            min_tracking_confidence: Minimum confidence for tracking
            model_path: Local .task model file (downloaded if missing)
        """
        self.model_path = Path(model_path) if model_path else self.MODEL_PATH
        self._ensure_model()

        options = vision.PoseLandmarkerOptions(
            base_options=mp_python.BaseOptions(model_asset_path=str(self.model_path)),
            running_mode=vision.RunningMode.VIDEO,
            num_poses=1,
            min_pose_detection_confidence=min_detection_confidence,
            min_tracking_confidence=min_tracking_confidence,
            output_segmentation_masks=False,
        )

        self.landmarker = vision.PoseLandmarker.create_from_options(options)
        self._detection_count = 0
        self._last_timestamp_ms = 0

    def _ensure_model(self):
        """Download the model if not present."""
        if self.model_path.exists():
            return

        logger.info("Downloading pose model to %s", self.model_path)
        self.model_path.parent.mkdir(parents=True, exist_ok=True)
        ssl_context = ssl.create_default_context(cafile=certifi.where())
        try:
            with urllib.request.urlopen(self.MODEL_URL, context=ssl_context) as response:
                with open(self.model_path, 'wb') as f:
                    f.write(response.read())
        except OSError as e:
            raise RuntimeError(f"Failed to download model: {e}\n"
                               f"Please manually download from:\n{self.MODEL_URL}\n"
                               f"And save to: {self.model_path}") from e
        logger.info("Model saved to %s", self.model_path)

    def _next_timestamp_ms(self, timestamp: float) -> int:
        # MediaPipe VIDEO mode rejects non-increasing timestamps
        timestamp_ms = int(timestamp)
        if timestamp_ms <= self._last_timestamp_ms:
            timestamp_ms = self._last_timestamp_ms + 1
        self._last_timestamp_ms = timestamp_ms
        return timestamp_ms

    def detect(self, frame: np.ndarray, timestamp: float) -> Optional[ScoreMessage]:
        """Process a BGR frame; None when no pose is found."""
        rgb_frame = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
        mp_image = mp.Image(image_format=mp.ImageFormat.SRGB, data=rgb_frame)

        timestamp_ms = self._next_timestamp_ms(timestamp)
        result = self.landmarker.detect_for_video(mp_image, timestamp_ms)

        if not result.pose_landmarks:
            return None

        self._detection_count += 1
        return ScoreMessage(landmarks=to_pose_landmarks(result.pose_landmarks[0]), timestamp=timestamp_ms)

    @property
    def detection_count(self) -> int:
        return self._detection_count

    def close(self):
        """Release resources."""
        if hasattr(self, 'landmarker'):
            self.landmarker.close()

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()
