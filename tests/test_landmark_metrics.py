"""Landmark metric calculator unit tests"""

import math

import pytest
from hypothesis import given, strategies as st

from Scoring_Engine.core.landmarks import PoseLandmark, to_pose_landmark, to_pose_landmarks, midpoint
from Scoring_Engine.core.landmark_metrics import analyze_posture, calculate_angle, calculate_angle_3d
from conftest import build_landmarks


coord = st.floats(min_value=0.0, max_value=1.0, allow_nan=False)


def _lm(x, y, z=0.0):
    return PoseLandmark(x=x, y=y, z=z)


class TestAnalyzePosture:
    """Per-frame alignment / symmetry / stability scoring"""

    def test_upright_frame_scores_100(self, upright_landmarks):
        metrics = analyze_posture(upright_landmarks)
        assert metrics.alignment == 100.0
        assert metrics.symmetry == 100.0
        assert metrics.stability == 100.0
        assert metrics.score == 100.0

    def test_shoulders_offset_from_hips_halves_alignment(self, make_landmarks):
        # shoulder midpoint x 0.6, hip midpoint x 0.5, nose above shoulders
        landmarks = make_landmarks({0: (0.6, 0.2), 11: (0.7, 0.4), 12: (0.5, 0.4), 23: (0.6, 0.8), 24: (0.4, 0.8)})
        metrics = analyze_posture(landmarks)
        assert metrics.alignment == pytest.approx(50.0)
        assert metrics.symmetry == pytest.approx(100.0)
        assert metrics.stability == pytest.approx(100.0)
        assert metrics.score == pytest.approx(80.0)

    def test_uneven_shoulders_reduce_symmetry(self, make_landmarks):
        metrics = analyze_posture(make_landmarks({11: (0.6, 0.45)}))
        # 0.05 * 600 = 30 point penalty
        assert metrics.symmetry == pytest.approx(70.0)

    def test_large_offsets_floor_at_zero(self, make_landmarks):
        metrics = analyze_posture(make_landmarks({0: (0.95, 0.2), 11: (0.9, 0.1), 12: (0.7, 0.9)}))
        assert metrics.stability == 0.0
        assert metrics.symmetry == 0.0
        assert metrics.score >= 0.0

    @pytest.mark.parametrize("missing", [0, 11, 12, 23, 24])
    def test_missing_required_landmark_returns_none(self, make_landmarks, missing):
        assert analyze_posture(make_landmarks(missing=(missing,))) is None

    def test_short_landmark_list_returns_none(self, upright_landmarks):
        assert analyze_posture(upright_landmarks[:20]) is None

    def test_empty_input_returns_none(self):
        assert analyze_posture([]) is None

    def test_non_finite_coordinate_scores_zero(self, make_landmarks):
        metrics = analyze_posture(make_landmarks({0: (float('nan'), 0.2)}))
        assert metrics.stability == 0.0
        assert math.isfinite(metrics.score)

    def test_to_dict(self, upright_landmarks):
        assert analyze_posture(upright_landmarks).to_dict() == {
            'alignment': 100.0, 'symmetry': 100.0, 'stability': 100.0, 'score': 100.0,
        }

    @given(nose_x=coord, ls_x=coord, ls_y=coord, rs_x=coord, rs_y=coord, lh_x=coord, rh_x=coord)
    def test_scores_bounded_and_weighted(self, nose_x, ls_x, ls_y, rs_x, rs_y, lh_x, rh_x):
        landmarks = build_landmarks({
            0: (nose_x, 0.2), 11: (ls_x, ls_y), 12: (rs_x, rs_y), 23: (lh_x, 0.8), 24: (rh_x, 0.8),
        })
        metrics = analyze_posture(landmarks)
        for value in (metrics.alignment, metrics.symmetry, metrics.stability, metrics.score):
            assert 0.0 <= value <= 100.0
        expected = 0.4 * metrics.alignment + 0.3 * metrics.symmetry + 0.3 * metrics.stability
        assert abs(metrics.score - expected) <= 0.011


class TestCalculateAngle:
    """Joint angle helpers"""

    def test_right_angle(self):
        assert calculate_angle(_lm(1, 0), _lm(0, 0), _lm(0, 1)) == pytest.approx(90.0)

    def test_straight_line(self):
        assert calculate_angle(_lm(-1, 0), _lm(0, 0), _lm(1, 0)) == pytest.approx(180.0)

    def test_reflex_angle_is_folded(self):
        # rays at +170 and -170 degrees: raw difference 340, interior angle 20
        angle = calculate_angle(_lm(-1, 0.17633), _lm(0, 0), _lm(-1, -0.17633))
        assert angle == pytest.approx(20.0, abs=0.01)

    def test_nan_input_returns_zero(self):
        assert calculate_angle(_lm(float('nan'), 0), _lm(0, 0), _lm(0, 1)) == 0.0

    @given(ax=coord, ay=coord, bx=coord, by=coord, cx=coord, cy=coord)
    def test_angle_range(self, ax, ay, bx, by, cx, cy):
        angle = calculate_angle(_lm(ax, ay), _lm(bx, by), _lm(cx, cy))
        assert 0.0 <= angle <= 180.0

    def test_3d_right_angle(self):
        assert calculate_angle_3d(_lm(1, 0, 0), _lm(0, 0, 0), _lm(0, 0, 1)) == pytest.approx(90.0)

    def test_3d_zero_length_ray(self):
        assert calculate_angle_3d(_lm(0, 0, 0), _lm(0, 0, 0), _lm(0, 0, 1)) == 0.0


class TestLandmarkCoercion:
    """Raw landmark input handling"""

    def test_dict_input(self):
        lm = to_pose_landmark({'x': 0.1, 'y': 0.2, 'z': -0.1, 'visibility': 0.9})
        assert lm == PoseLandmark(0.1, 0.2, -0.1, 0.9)

    def test_tuple_input(self):
        assert to_pose_landmark((0.1, 0.2)) == PoseLandmark(0.1, 0.2, 0.0, None)

    def test_attribute_object(self):
        class Raw:
            x, y, z, visibility = 0.3, 0.4, 0.0, 0.5
        assert to_pose_landmark(Raw()) == PoseLandmark(0.3, 0.4, 0.0, 0.5)

    def test_unreadable_entries_become_none_in_place(self):
        landmarks = to_pose_landmarks([{'x': 0.1, 'y': 0.1}, {'x': 'bad'}, None, (0.5,)])
        assert landmarks[0] is not None
        assert landmarks[1:] == [None, None, None]

    def test_visibility(self):
        assert PoseLandmark(0, 0).is_visible()
        assert not PoseLandmark(0, 0, visibility=0.2).is_visible()

    def test_midpoint_uses_lower_visibility(self):
        mid = midpoint(PoseLandmark(0, 0, visibility=0.9), PoseLandmark(1, 1, visibility=0.4))
        assert (mid.x, mid.y, mid.visibility) == (0.5, 0.5, 0.4)
