"""
Tests for the progress aggregator.

Covers:
- Goal progress per mode, clamping and half-up rounding
- Combined mode weighting and its fallbacks
- Degenerate ratios (target <= 0) logged, never raised
- Aspiration balance: empty vs zero, recent window, XP and trend
- Easy/hard classification
"""

from __future__ import annotations

from datetime import date, timedelta

import pytest
from structlog.testing import capture_logs

from src.config.engine import EngineConfig
from src.lib.exceptions import DEGENERATE_RATIO
from src.models.goal import Goal, GoalMetric, ProgressType
from src.models.habit import Habit
from src.models.recurrence import RecurrenceRule
from src.models.step import DailyStep
from src.services.progress import (
    AspirationBalance,
    Trend,
    aspiration_balance,
    classify_aspirations,
    classify_trend,
    goal_progress,
    goal_progress_map,
    metric_ratio,
    step_ratio,
)

TODAY = date(2026, 3, 11)


def _steps(goal_id: str, total: int, completed: int) -> list[DailyStep]:
    return [
        DailyStep(id=f"{goal_id}-s{i}", date=TODAY, goal_id=goal_id, completed=i < completed)
        for i in range(total)
    ]


# =============================================================================
# Goal progress
# =============================================================================


class TestGoalProgressModes:
    """Test each progress mode."""

    @pytest.mark.parametrize("value,expected", [(42, 42), (150, 100), (-10, 0), (99.5, 100)])
    def test_percentage_clamped(self, value: float, expected: int) -> None:
        goal = Goal(id="g", progress_type=ProgressType.PERCENTAGE, progress_percentage=value)
        assert goal_progress(goal) == expected

    @pytest.mark.parametrize("mode", [ProgressType.COUNT, ProgressType.AMOUNT])
    def test_count_and_amount(self, mode: ProgressType) -> None:
        goal = Goal(id="g", progress_type=mode, progress_current=150, progress_target=100)
        assert goal_progress(goal) == 100
        half = Goal(id="g", progress_type=mode, progress_current=25, progress_target=50)
        assert goal_progress(half) == 50

    @pytest.mark.parametrize(
        "current,target,expected",
        [(14.5, 100, 15), (0.145, 1, 15), (29, 200, 15), (14.4, 100, 14)],
    )
    def test_amount_half_up_at_exact_half(
        self, current: float, target: float, expected: int
    ) -> None:
        goal = Goal(
            id="g",
            progress_type=ProgressType.AMOUNT,
            progress_current=current,
            progress_target=target,
        )
        assert goal_progress(goal) == expected

    def test_count_degenerate_target(self) -> None:
        goal = Goal(id="g", progress_type=ProgressType.COUNT, progress_current=5, progress_target=0)
        with capture_logs() as logs:
            assert goal_progress(goal) == 0
        assert logs[0]["event"] == "progress_degenerate_ratio"
        assert logs[0]["signal"] == DEGENERATE_RATIO

    def test_steps_mode(self) -> None:
        goal = Goal(id="g", progress_type=ProgressType.STEPS)
        assert goal_progress(goal, _steps("g", 4, 3)) == 75
        assert goal_progress(goal, []) == 0

    def test_steps_of_other_goals_ignored(self) -> None:
        goal = Goal(id="g", progress_type=ProgressType.STEPS)
        assert goal_progress(goal, _steps("g", 2, 1) + _steps("other", 5, 5)) == 50

    def test_half_up_rounding(self) -> None:
        """12.5 rounds up, not to even."""
        goal = Goal(id="g", progress_type=ProgressType.STEPS)
        assert goal_progress(goal, _steps("g", 8, 1)) == 13


class TestCombinedProgress:
    """Combined mode: 50% step ratio + 50% average metric ratio."""

    def test_weighted_average(self) -> None:
        goal = Goal(id="g", progress_type=ProgressType.COMBINED)
        metrics = [GoalMetric(id="m", goal_id="g", current_value=80, target_value=100)]
        assert goal_progress(goal, _steps("g", 5, 2), metrics) == 60

    def test_metrics_are_averaged(self) -> None:
        goal = Goal(id="g")
        metrics = [
            GoalMetric(id="m1", goal_id="g", current_value=100, target_value=100),
            GoalMetric(id="m2", goal_id="g", current_value=0, target_value=100),
        ]
        assert goal_progress(goal, _steps("g", 2, 2), metrics) == 75

    def test_metrics_only(self) -> None:
        goal = Goal(id="g")
        metrics = [GoalMetric(id="m", goal_id="g", current_value=80, target_value=100)]
        assert goal_progress(goal, [], metrics) == 80

    def test_steps_only(self) -> None:
        assert goal_progress(Goal(id="g"), _steps("g", 5, 2)) == 40

    def test_neither(self) -> None:
        assert goal_progress(Goal(id="g")) == 0

    def test_overshooting_metric_clamped(self) -> None:
        goal = Goal(id="g")
        metrics = [GoalMetric(id="m", goal_id="g", current_value=150, target_value=100)]
        assert goal_progress(goal, _steps("g", 1, 1), metrics) == 100

    def test_degenerate_metric_counts_as_zero(self) -> None:
        goal = Goal(id="g")
        metrics = [
            GoalMetric(id="m1", goal_id="g", current_value=10, target_value=0),
            GoalMetric(id="m2", goal_id="g", current_value=100, target_value=100),
        ]
        with capture_logs() as logs:
            assert goal_progress(goal, [], metrics) == 50
        assert [e["metric_id"] for e in logs if e["event"] == "progress_degenerate_ratio"] == ["m1"]


class TestRatios:
    def test_step_ratio_none_without_steps(self) -> None:
        assert step_ratio([]) is None
        assert step_ratio(_steps("g", 4, 1)) == 0.25

    def test_metric_ratio_none_without_metrics(self) -> None:
        assert metric_ratio([]) is None

    def test_goal_progress_map(self) -> None:
        goals = [Goal(id="a", progress_type=ProgressType.STEPS), Goal(id="b")]
        steps = _steps("a", 2, 1) + _steps("b", 4, 4)
        assert goal_progress_map(goals, steps) == {"a": 50, "b": 100}


# =============================================================================
# Aspiration balance
# =============================================================================


class TestAspirationBalance:
    """Test the aspiration balance read model."""

    def test_empty_when_nothing_linked(self) -> None:
        balance = aspiration_balance("asp", [], [], [], today=TODAY)
        assert balance.is_empty
        assert balance.completion_rate_recent is None
        assert balance.completion_rate_all_time is None
        assert balance.trend == Trend.NEUTRAL

    def test_zero_performance_is_not_empty(self) -> None:
        goals = [Goal(id="g", aspiration_id="asp")]
        steps = _steps("g", 2, 0)
        balance = aspiration_balance("asp", goals, [], steps, today=TODAY)
        assert not balance.is_empty
        assert balance.completion_rate_recent == 0.0
        assert balance.total_planned_steps == 2

    def test_steps_linked_directly(self) -> None:
        steps = [DailyStep(id="s", date=TODAY, aspiration_id="asp", completed=True, xp_reward=5)]
        balance = aspiration_balance("asp", [], [], steps, today=TODAY)
        assert balance.total_completed_steps == 1
        assert balance.total_xp == 5

    def test_unrelated_items_ignored(self) -> None:
        goals = [Goal(id="g", aspiration_id="other")]
        habits = [Habit(id="h", rule=RecurrenceRule.daily(), aspiration_id="other")]
        balance = aspiration_balance("asp", goals, habits, _steps("g", 3, 3), today=TODAY)
        assert balance.is_empty

    def test_recent_window(self) -> None:
        goals = [Goal(id="g", aspiration_id="asp")]
        steps = [
            DailyStep(id="old", date=date(2025, 6, 1), goal_id="g", completed=True),
            DailyStep(id="new", date=date(2026, 3, 1), goal_id="g"),
        ]
        balance = aspiration_balance("asp", goals, [], steps, today=TODAY)
        assert balance.total_planned_steps == 2
        assert balance.recent_planned_steps == 1
        assert balance.total_completed_steps == 1
        assert balance.recent_completed_steps == 0
        assert balance.total_xp == 1
        assert balance.recent_xp == 0
        assert balance.trend == Trend.NEGATIVE

    def test_window_override(self) -> None:
        goals = [Goal(id="g", aspiration_id="asp")]
        steps = [DailyStep(id="s", date=TODAY - timedelta(days=20), goal_id="g")]
        assert aspiration_balance("asp", goals, [], steps, today=TODAY).recent_planned_steps == 1
        narrow = aspiration_balance("asp", goals, [], steps, today=TODAY, window_days=7)
        assert narrow.recent_planned_steps == 0
        assert narrow.window_days == 7

    def test_habit_planned_from_due_days(self) -> None:
        start = date(2026, 3, 2)
        habit = Habit(
            id="h",
            rule=RecurrenceRule.daily(),
            aspiration_id="asp",
            start_date=start,
            xp_reward=2,
            completions={start + timedelta(days=i): True for i in range(10)},
        )
        balance = aspiration_balance("asp", [], [habit], [], today=TODAY)
        assert balance.total_planned_habits == 10
        assert balance.total_completed_habits == 10
        assert balance.total_xp == 20
        assert balance.completion_rate_recent == 100.0
        assert balance.trend == Trend.NEUTRAL

    def test_habit_planned_minimum_of_one(self) -> None:
        habit = Habit(
            id="h",
            rule=RecurrenceRule.weekly(["monday"]),
            aspiration_id="asp",
            start_date=date(2026, 3, 10),
        )
        balance = aspiration_balance("asp", [], [habit], [], today=TODAY)
        assert balance.total_planned_habits == 1
        assert balance.recent_planned_habits == 1

    def test_habit_planned_at_least_completions(self) -> None:
        habit = Habit(
            id="h",
            rule=RecurrenceRule.weekly(["monday"]),
            aspiration_id="asp",
            start_date=date(2026, 3, 9),
            completions={date(2026, 3, 9): True, date(2026, 3, 10): True, date(2026, 3, 11): True},
        )
        balance = aspiration_balance("asp", [], [habit], [], today=TODAY)
        assert balance.total_planned_habits == 3
        assert balance.completion_rate_all_time == 100.0

    def test_to_dict(self) -> None:
        balance = aspiration_balance("asp", [], [], [], today=TODAY)
        data = balance.to_dict()
        assert data["aspiration_id"] == "asp"
        assert data["is_empty"] is True
        assert data["trend"] == "neutral"
        assert data["window_days"] == 90


class TestClassifyTrend:
    def test_positive(self) -> None:
        assert classify_trend(100, 91, 200, 90, 0.05) == Trend.POSITIVE

    def test_negative(self) -> None:
        assert classify_trend(100, 0, 200, 90, 0.05) == Trend.NEGATIVE

    def test_neutral_when_rates_match(self) -> None:
        assert classify_trend(91, 91, 91, 90, 0.05) == Trend.NEUTRAL

    def test_neutral_without_xp(self) -> None:
        assert classify_trend(0, 0, 200, 90, 0.05) == Trend.NEUTRAL

    def test_margin(self) -> None:
        """Recent rate 4% above history stays neutral with a 5% margin."""
        assert classify_trend(200, 104, 200, 99, 0.05) == Trend.NEUTRAL
        assert classify_trend(200, 104, 200, 99, 0.01) == Trend.POSITIVE


# =============================================================================
# Insights
# =============================================================================


def _balance(aspiration_id: str, planned: int, completed: int) -> AspirationBalance:
    return AspirationBalance(
        aspiration_id=aspiration_id,
        window_days=90,
        total_planned_steps=planned,
        recent_planned_steps=planned,
        total_completed_steps=completed,
        recent_completed_steps=completed,
    )


class TestClassifyAspirations:
    def test_thresholds(self) -> None:
        balances = [
            _balance("easy", 100, 85),
            _balance("edge-easy", 10, 8),
            _balance("middle", 100, 50),
            _balance("edge-hard", 10, 3),
            _balance("hard", 100, 20),
            _balance("zero", 5, 0),
            AspirationBalance(aspiration_id="empty", window_days=90),
        ]
        insights = classify_aspirations(balances)
        assert insights.easy == ("easy", "edge-easy")
        assert insights.hard == ("hard", "zero")

    def test_custom_thresholds(self) -> None:
        config = EngineConfig(easy_threshold=50, hard_threshold=40)
        insights = classify_aspirations([_balance("a", 100, 50), _balance("b", 100, 39)], config)
        assert insights.easy == ("a",)
        assert insights.hard == ("b",)
