"""Break reminder evaluator unit tests"""

import pytest

from Scoring_Engine.core.break_reminder import (
    BreakEvaluationInput, BreakTriggerReason, BreakUrgency, ScoreTrend,
    apply_reminder_triggered, apply_snooze, create_break_state,
    get_break_evaluation_interval_ms, resolve_score_trend, should_trigger_break_reminder,
)
from Scoring_Engine.core.fatigue_detector import FatigueLevel, FatigueSample

NOW = 10_000_000.0


@pytest.fixture
def state():
    return create_break_state()


def _input(elapsed=0.0, fatigue=FatigueLevel.NONE, trend=ScoreTrend.STABLE, now=NOW):
    return BreakEvaluationInput(elapsed_seconds=elapsed, fatigue_level=fatigue, score_trend=trend, now=now)


class TestRules:
    """Rule order: snooze, fatigue, cooldown, time, trend"""

    def test_nothing_to_report(self, state):
        assert should_trigger_break_reminder(_input(), state) is None

    def test_high_fatigue_is_urgent(self, state):
        rec = should_trigger_break_reminder(_input(fatigue=FatigueLevel.HIGH), state)
        assert rec.reason is BreakTriggerReason.FATIGUE_HIGH
        assert rec.urgency is BreakUrgency.URGENT
        assert rec.message == "Walk briefly"

    def test_medium_fatigue_alone_does_not_trigger(self, state):
        assert should_trigger_break_reminder(_input(fatigue=FatigueLevel.MEDIUM), state) is None

    def test_time_rule(self, state):
        rec = should_trigger_break_reminder(_input(elapsed=45 * 60), state)
        assert rec.reason is BreakTriggerReason.TIME
        assert rec.message == "Time to stand up"
        assert rec.urgency is BreakUrgency.NORMAL

    def test_time_rule_not_before_45_minutes(self, state):
        assert should_trigger_break_reminder(_input(elapsed=45 * 60 - 1), state) is None

    def test_declining_trend(self, state):
        rec = should_trigger_break_reminder(_input(trend=ScoreTrend.DECLINING), state)
        assert rec.reason is BreakTriggerReason.DECLINING_SCORE
        assert rec.message == "Take a 2-minute stretch"

    def test_time_beats_declining(self, state):
        rec = should_trigger_break_reminder(_input(elapsed=50 * 60, trend=ScoreTrend.DECLINING), state)
        assert rec.reason is BreakTriggerReason.TIME

    def test_evaluation_does_not_mutate_state(self, state):
        should_trigger_break_reminder(_input(fatigue=FatigueLevel.HIGH), state)
        assert state.last_reminder_at is None

    def test_to_dict(self, state):
        rec = should_trigger_break_reminder(_input(trend=ScoreTrend.DECLINING), state)
        assert rec.to_dict()['reason'] == 'declining_score'


class TestCooldownAndSnooze:
    """Reminder cooldown and user snooze"""

    def test_cooldown_blocks_time_rule(self, state):
        apply_reminder_triggered(state, NOW - 60_000)
        assert should_trigger_break_reminder(_input(elapsed=60 * 60), state) is None

    def test_cooldown_expires(self, state):
        apply_reminder_triggered(state, NOW - 15 * 60 * 1000)
        rec = should_trigger_break_reminder(_input(elapsed=60 * 60), state)
        assert rec.reason is BreakTriggerReason.TIME

    def test_fatigue_bypasses_cooldown(self, state):
        apply_reminder_triggered(state, NOW - 1000)
        rec = should_trigger_break_reminder(_input(fatigue=FatigueLevel.HIGH), state)
        assert rec.reason is BreakTriggerReason.FATIGUE_HIGH

    def test_snooze_silences_everything(self, state):
        apply_snooze(state, NOW)
        evaluation = _input(elapsed=60 * 60, fatigue=FatigueLevel.HIGH, trend=ScoreTrend.DECLINING, now=NOW + 1000)
        assert should_trigger_break_reminder(evaluation, state) is None

    def test_snooze_expires_after_five_minutes(self, state):
        apply_snooze(state, NOW)
        rec = should_trigger_break_reminder(_input(fatigue=FatigueLevel.HIGH, now=NOW + 5 * 60 * 1000), state)
        assert rec.reason is BreakTriggerReason.FATIGUE_HIGH

    def test_reminders_work_at_small_clock_values(self, state):
        # first reminder is not blocked by a cooldown from time zero
        rec = should_trigger_break_reminder(_input(elapsed=45 * 60, now=1000.0), state)
        assert rec.reason is BreakTriggerReason.TIME

    def test_evaluation_interval(self):
        assert get_break_evaluation_interval_ms() == 10_000


class TestScoreTrend:
    """Score trend over the last two minutes"""

    def _history(self, scores, start=NOW - 100_000, step=20_000):
        return [FatigueSample(score=s, at=start + i * step) for i, s in enumerate(scores)]

    def test_too_few_samples_is_stable(self):
        assert resolve_score_trend(self._history([90, 70, 50]), NOW) is ScoreTrend.STABLE

    def test_declining(self):
        assert resolve_score_trend(self._history([80, 78, 75, 70]), NOW) is ScoreTrend.DECLINING

    def test_improving(self):
        assert resolve_score_trend(self._history([60, 62, 65, 70]), NOW) is ScoreTrend.IMPROVING

    def test_small_change_is_stable(self):
        assert resolve_score_trend(self._history([80, 79, 78, 73]), NOW) is ScoreTrend.STABLE

    def test_samples_outside_window_ignored(self):
        old = [FatigueSample(score=95.0, at=NOW - 10 * 60 * 1000)]
        history = old + self._history([70, 70, 71, 70])
        assert resolve_score_trend(history, NOW) is ScoreTrend.STABLE
