"""Posture telemetry unit tests"""

import pytest

from Scoring_Engine.core.posture_telemetry import (
    build_posture_sample, build_posture_telemetry, telemetry_to_sample, PostureTelemetry,
)


class TestTelemetry:
    """Front-view geometry"""

    def test_upright_frame(self, upright_landmarks):
        telemetry = build_posture_telemetry(upright_landmarks)
        assert telemetry.neck_angle == pytest.approx(180.0)
        assert telemetry.trunk_angle == pytest.approx(0.0)
        assert telemetry.shoulder_tilt == pytest.approx(0.0)
        assert telemetry.ear_shoulder_ratio == pytest.approx(0.9)

    def test_upright_frame_has_no_deviation(self, upright_landmarks):
        sample = build_posture_sample(upright_landmarks, ts=1000)
        assert sample.ts == 1000
        assert sample.forward_head == pytest.approx(0.0, abs=1e-6)
        assert sample.slouch == pytest.approx(0.0)
        assert sample.shoulder_raise == 0.0
        assert sample.tilt == pytest.approx(0.0)

    def test_head_shifted_forward(self, make_landmarks):
        sample = build_posture_sample(make_landmarks({7: (0.65, 0.22), 8: (0.55, 0.22)}), ts=0)
        assert sample.forward_head > 15.0

    def test_trunk_lean(self, make_landmarks):
        telemetry = build_posture_telemetry(make_landmarks({23: (0.73, 0.8), 24: (0.57, 0.8)}))
        # hip centre 0.15 to the side over a 0.4 torso
        assert telemetry.trunk_angle == pytest.approx(20.56, abs=0.01)

    def test_tilted_shoulders(self, make_landmarks):
        telemetry = build_posture_telemetry(make_landmarks({11: (0.6, 0.5), 12: (0.4, 0.3)}))
        assert telemetry.shoulder_tilt == pytest.approx(45.0)

    def test_raised_shoulders(self, make_landmarks):
        # ears close to the shoulder line
        sample = build_posture_sample(make_landmarks({7: (0.55, 0.36), 8: (0.45, 0.36)}), ts=0)
        assert sample.shoulder_raise == pytest.approx(28.0)

    @pytest.mark.parametrize("missing", [7, 8, 11, 12, 23, 24])
    def test_missing_landmark(self, make_landmarks, missing):
        assert build_posture_telemetry(make_landmarks(missing=(missing,))) is None
        assert build_posture_sample(make_landmarks(missing=(missing,)), ts=0) is None

    def test_non_finite_landmark(self, make_landmarks):
        assert build_posture_telemetry(make_landmarks({11: (float('inf'), 0.4)})) is None

    def test_to_sample_floors_negative_deviations(self):
        sample = telemetry_to_sample(PostureTelemetry(190.0, 3.0, 2.0, 0.9), ts=5)
        assert sample.forward_head == 0.0
        assert sample.shoulder_raise == 0.0
        assert sample.slouch == 3.0
        assert sample.tilt == 2.0
