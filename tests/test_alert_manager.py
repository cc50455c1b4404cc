"""PostureAlertManager unit tests"""

import pytest

from Scoring_Engine.core.alert_manager import AlertType, PostureAlertManager, PostureSample
from Scoring_Engine.core.policy_thresholds import ALERT_POLICY, AlertPolicy


@pytest.fixture
def manager():
    return PostureAlertManager()


def _run(manager, start, end, step=100, **values):
    """Push one sample per step and evaluate after each; returns the fired (time, type) pairs."""
    fired = []
    for ts in range(start, end + 1, step):
        manager.push_sample(PostureSample(ts=ts, **values))
        alert_type = manager.evaluate(ts)
        if alert_type is not None:
            fired.append((ts, alert_type))
    return fired


class TestPersistence:
    """Deviation must hold for the persistence period"""

    def test_single_spike_never_fires(self, manager):
        manager.push_sample(PostureSample(ts=0, forward_head=100.0))
        assert manager.evaluate(0) is None
        assert _run(manager, 100, 10_000) == []

    def test_fires_after_persistence(self, manager):
        fired = _run(manager, 0, 3000, forward_head=30.0)
        assert fired == [(3000, AlertType.FORWARD_HEAD)]

    def test_not_before_persistence(self, manager):
        assert _run(manager, 0, 2900, forward_head=30.0) == []

    def test_dip_restarts_persistence(self, manager):
        _run(manager, 0, 1000, tilt=20.0)
        _run(manager, 2100, 4000, tilt=0.0)
        fired = _run(manager, 4100, 8000, tilt=20.0)
        assert fired
        assert fired[0][0] >= 7000

    def test_below_threshold_never_fires(self, manager):
        assert _run(manager, 0, 10_000, forward_head=14.0, slouch=11.0, shoulder_raise=9.0, tilt=7.0) == []


class TestCooldown:
    """Each type fires at most once per cooldown"""

    def test_one_alert_within_cooldown(self, manager):
        fired = _run(manager, 0, 200_000, step=500, slouch=20.0)
        assert fired == [(3000, AlertType.SLOUCH)]

    def test_fires_again_after_cooldown(self):
        manager = PostureAlertManager(AlertPolicy(COOLDOWN_MS=10_000))
        fired = _run(manager, 0, 14_000, slouch=20.0)
        assert [ts for ts, _ in fired] == [3000, 13_000]

    def test_last_alert_timestamps(self, manager):
        _run(manager, 0, 3000, forward_head=30.0)
        assert manager.get_last_alert_timestamps() == {'forward_head': 3000}


class TestPriority:
    """Fixed evaluation order and one alert per evaluation"""

    def test_forward_head_before_slouch(self, manager):
        fired = _run(manager, 0, 3100, forward_head=30.0, slouch=30.0)
        assert fired == [(3000, AlertType.FORWARD_HEAD), (3100, AlertType.SLOUCH)]

    def test_all_types_fire_in_order(self, manager):
        fired = _run(manager, 0, 4000, forward_head=30.0, slouch=30.0, shoulder_raise=30.0, tilt=30.0)
        assert [t for _, t in fired] == [
            AlertType.FORWARD_HEAD, AlertType.SLOUCH, AlertType.SHOULDER_RAISE, AlertType.TILT,
        ]


class TestSamplesAndReset:
    """Window maintenance, thresholds override and reset"""

    def test_window_average(self, manager):
        manager.push_sample(PostureSample(ts=0, tilt=10.0))
        manager.push_sample(PostureSample(ts=1000, tilt=20.0))
        assert manager.average(AlertType.TILT) == pytest.approx(15.0)
        manager.push_sample(PostureSample(ts=2000, tilt=30.0))
        # ts=0 is outside the 1.5 s window
        assert manager.average(AlertType.TILT) == pytest.approx(25.0)

    def test_out_of_order_sample_rejected(self, manager):
        assert manager.push_sample(PostureSample(ts=1000))
        assert not manager.push_sample(PostureSample(ts=500))
        assert manager.sample_count == 1

    def test_non_finite_values_become_zero(self):
        sample = PostureSample(ts=0, forward_head=float('nan'), tilt=float('inf'))
        assert sample.forward_head == 0.0
        assert sample.tilt == 0.0

    def test_threshold_override(self, manager):
        fired = _run(manager, 0, 3000, tilt=5.0)
        assert fired == []
        manager.reset()
        for ts in range(0, 3001, 100):
            manager.push_sample(PostureSample(ts=ts, tilt=5.0))
            alert_type = manager.evaluate(ts, thresholds={AlertType.TILT: 4.0})
        assert alert_type is AlertType.TILT

    def test_evaluate_alert_message(self, manager):
        for ts in range(0, 3001, 100):
            manager.push_sample(PostureSample(ts=ts, shoulder_raise=20.0))
            alert = manager.evaluate_alert(ts)
        assert alert.message == "Relax your shoulders"
        assert alert.to_dict() == {'type': 'shoulder_raise', 'message': "Relax your shoulders", 'at': 3000}

    def test_reset_clears_timers(self, manager):
        _run(manager, 0, 3000, forward_head=30.0)
        manager.reset()
        assert manager.sample_count == 0
        assert manager.get_last_alert_timestamps() == {}
        fired = _run(manager, 10_000, 13_000, forward_head=30.0)
        assert fired == [(13_000, AlertType.FORWARD_HEAD)]


class TestThresholdIsolation:
    """Threshold tables cannot leak between sessions"""

    def test_shared_policy_is_read_only(self):
        with pytest.raises(TypeError):
            ALERT_POLICY.thresholds['tilt'] = 1.0
        assert ALERT_POLICY.thresholds['tilt'] == 8.0

    def test_manager_thresholds_are_read_only(self, manager):
        with pytest.raises(TypeError):
            manager.thresholds['forward_head'] = 1.0

    def test_caller_dict_copied_on_construction(self):
        table = {'forward_head': 15.0, 'slouch': 12.0, 'shoulder_raise': 10.0, 'tilt': 8.0}
        manager = PostureAlertManager(AlertPolicy(thresholds=table))
        table['tilt'] = 1.0
        assert manager.thresholds['tilt'] == 8.0
        assert _run(manager, 0, 3000, tilt=5.0) == []
