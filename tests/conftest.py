import sys
import os

# Add project root to sys.path so tests can import Scoring_Engine without installing
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest
from hypothesis import settings

from Scoring_Engine.core.landmarks import PoseLandmark, NUM_LANDMARKS

# CI profile: more examples for thorough testing
settings.register_profile("ci", max_examples=200)
# Dev profile: fewer examples for faster iteration
settings.register_profile("dev", max_examples=100)
# Default to dev profile
settings.load_profile("dev")


UPRIGHT_POINTS = {
    0: (0.5, 0.2),     # nose
    7: (0.55, 0.22),   # left ear
    8: (0.45, 0.22),   # right ear
    11: (0.6, 0.4),    # left shoulder
    12: (0.4, 0.4),    # right shoulder
    23: (0.58, 0.8),   # left hip
    24: (0.42, 0.8),   # right hip
}


def build_landmarks(overrides=None, missing=()):
    """33-point upright frame; overrides maps index -> (x, y[, z]), missing indices become None."""
    points = dict(UPRIGHT_POINTS)
    points.update(overrides or {})
    landmarks = []
    for idx in range(NUM_LANDMARKS):
        if idx in missing:
            landmarks.append(None)
            continue
        x, y, *rest = points.get(idx, (0.5, 0.5))
        landmarks.append(PoseLandmark(x=x, y=y, z=rest[0] if rest else 0.0, visibility=0.99))
    return landmarks


@pytest.fixture
def make_landmarks():
    return build_landmarks


@pytest.fixture
def upright_landmarks():
    return build_landmarks()
