"""
Progress Aggregator for the planning engine.

Rolls partial progress from steps, habits and numeric metrics up into:
- one 0-100 progress percentage per goal (goal_progress)
- an aspiration balance with recent/lifetime counts, XP and a trend
  classification (aspiration_balance)
- easy / hard display groups over a set of balances (classify_aspirations)

Empty vs zero:
    An aspiration with no linked goals or habits has an *empty* balance
    (no data). That is different from linked items that are all at 0%
    (zero performance); callers render the two differently.

Degenerate ratios (target <= 0) are treated as 0% progress and logged
at debug level; they never raise.
"""

from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, timedelta
from enum import StrEnum
from typing import Any

import structlog

from src.config.engine import EngineConfig, get_engine_config
from src.lib.exceptions import DEGENERATE_RATIO
from src.models.goal import Goal, GoalMetric, ProgressType
from src.models.habit import Habit
from src.models.step import DailyStep
from src.services.recurrence import count_due_days, habit_start_date

logger = structlog.get_logger(__name__)

# Share of the step ratio in combined mode (the metric average gets the rest)
COMBINED_STEP_WEIGHT = 0.5


# Float products such as 100 * (14.5 / 100) land just below the .5 boundary.
_ROUNDING_DIGITS = 9


def _round_half_up(value: float) -> int:
    return int(math.floor(round(value, _ROUNDING_DIGITS) + 0.5))


def _clamp_percentage(value: float) -> int:
    return max(0, min(100, _round_half_up(value)))


# =============================================================================
# Goal progress
# =============================================================================


def step_ratio(steps: Iterable[DailyStep]) -> float | None:
    """Completed/total over steps; None when there are no steps."""
    total = 0
    completed = 0
    for step in steps:
        total += 1
        completed += int(step.completed)
    if total == 0:
        return None
    return completed / total


def metric_ratio(metrics: Iterable[GoalMetric], *, goal_id: str | None = None) -> float | None:
    """Arithmetic mean of clamped metric ratios; None when there are no metrics."""
    ratios: list[float] = []
    for metric in metrics:
        if metric.is_degenerate:
            logger.debug(
                "progress_degenerate_ratio",
                signal=DEGENERATE_RATIO,
                goal_id=goal_id,
                metric_id=metric.id,
                target_value=metric.target_value,
            )
        ratios.append(metric.ratio)
    if not ratios:
        return None
    return sum(ratios) / len(ratios)


def _value_percentage(goal: Goal) -> float:
    current = goal.progress_current or 0
    target = goal.progress_target or 0
    if target <= 0:
        logger.debug(
            "progress_degenerate_ratio",
            signal=DEGENERATE_RATIO,
            goal_id=goal.id,
            target_value=target,
        )
        return 0.0
    return current * 100 / target


def goal_progress(
    goal: Goal,
    steps: Iterable[DailyStep] = (),
    metrics: Iterable[GoalMetric] = (),
) -> int:
    """
    Progress percentage for a goal.

    Only steps and metrics whose goal_id matches the goal are considered,
    so callers may pass whole collections.

    Modes:
        percentage:    progress_percentage clamped to 0-100
        steps:         round(100 * completed / total), 0 without steps
        count/amount:  round(100 * current / target) clamped, 0 for target <= 0
        combined:      round(50 * step_ratio + 50 * avg_metric_ratio);
                       pure step ratio without metrics, pure metric
                       average without steps, 0 with neither

    Args:
        goal: The goal
        steps: Step snapshot
        metrics: Goal metric snapshot

    Returns:
        Integer percentage in [0, 100]
    """
    mode = goal.progress_type

    if mode == ProgressType.PERCENTAGE:
        return _clamp_percentage(goal.progress_percentage)

    if mode in (ProgressType.COUNT, ProgressType.AMOUNT):
        return _clamp_percentage(_value_percentage(goal))

    goal_steps = [s for s in steps if s.goal_id == goal.id]
    steps_done = step_ratio(goal_steps)

    if mode == ProgressType.STEPS:
        return _clamp_percentage(100 * (steps_done or 0.0))

    goal_metrics = [m for m in metrics if m.goal_id == goal.id]
    metrics_avg = metric_ratio(goal_metrics, goal_id=goal.id)

    if metrics_avg is None and steps_done is None:
        return 0
    if metrics_avg is None:
        return _clamp_percentage(100 * steps_done)
    if steps_done is None:
        return _clamp_percentage(100 * metrics_avg)
    return _clamp_percentage(
        100 * COMBINED_STEP_WEIGHT * steps_done
        + 100 * (1 - COMBINED_STEP_WEIGHT) * metrics_avg
    )


def goal_progress_map(
    goals: Iterable[Goal],
    steps: Iterable[DailyStep] = (),
    metrics: Iterable[GoalMetric] = (),
) -> dict[str, int]:
    """goal_progress for every goal, keyed by goal id."""
    step_list = list(steps)
    metric_list = list(metrics)
    return {goal.id: goal_progress(goal, step_list, metric_list) for goal in goals}


# =============================================================================
# Aspiration balance
# =============================================================================


class Trend(StrEnum):
    POSITIVE = "positive"
    NEUTRAL = "neutral"
    NEGATIVE = "negative"


@dataclass(frozen=True)
class AspirationBalance:
    """
    Aggregated read model over the goals and habits linked to one aspiration.

    Recent counts cover [today - window_days, today].
    """

    aspiration_id: str
    window_days: int
    total_xp: int = 0
    recent_xp: int = 0
    total_planned_steps: int = 0
    recent_planned_steps: int = 0
    total_completed_steps: int = 0
    recent_completed_steps: int = 0
    total_planned_habits: int = 0
    recent_planned_habits: int = 0
    total_completed_habits: int = 0
    recent_completed_habits: int = 0
    trend: Trend = Trend.NEUTRAL

    @property
    def is_empty(self) -> bool:
        """No linked data at all (not the same as zero performance)."""
        return self.total_planned_steps == 0 and self.total_planned_habits == 0

    @property
    def recent_planned(self) -> int:
        return self.recent_planned_steps + self.recent_planned_habits

    @property
    def recent_completed(self) -> int:
        return self.recent_completed_steps + self.recent_completed_habits

    @property
    def total_planned(self) -> int:
        return self.total_planned_steps + self.total_planned_habits

    @property
    def total_completed(self) -> int:
        return self.total_completed_steps + self.total_completed_habits

    @property
    def completion_rate_recent(self) -> float | None:
        """Recent completion percentage; None means "no signal"."""
        if self.recent_planned == 0:
            return None
        return self.recent_completed / self.recent_planned * 100

    @property
    def completion_rate_all_time(self) -> float | None:
        if self.total_planned == 0:
            return None
        return self.total_completed / self.total_planned * 100

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "aspiration_id": self.aspiration_id,
            "window_days": self.window_days,
            "is_empty": self.is_empty,
            "total_xp": self.total_xp,
            "recent_xp": self.recent_xp,
            "total_planned_steps": self.total_planned_steps,
            "recent_planned_steps": self.recent_planned_steps,
            "total_completed_steps": self.total_completed_steps,
            "recent_completed_steps": self.recent_completed_steps,
            "total_planned_habits": self.total_planned_habits,
            "recent_planned_habits": self.recent_planned_habits,
            "total_completed_habits": self.total_completed_habits,
            "recent_completed_habits": self.recent_completed_habits,
            "completion_rate_all_time": self.completion_rate_all_time,
            "completion_rate_recent": self.completion_rate_recent,
            "trend": self.trend.value,
        }


@dataclass
class _Tally:
    planned: int = 0
    recent_planned: int = 0
    completed: int = 0
    recent_completed: int = 0
    xp: int = 0
    recent_xp: int = 0


def _tally_steps(steps: list[DailyStep], window_start: date, today: date) -> _Tally:
    tally = _Tally()
    for step in steps:
        recent = window_start <= step.date <= today
        tally.planned += 1
        tally.recent_planned += int(recent)
        if step.completed:
            tally.completed += 1
            tally.xp += step.xp_reward
            if recent:
                tally.recent_completed += 1
                tally.recent_xp += step.xp_reward
    return tally


def _tally_habits(habits: list[Habit], window_start: date, today: date) -> _Tally:
    tally = _Tally()
    for habit in habits:
        done = [d for d in habit.completed_dates if d <= today]
        recent_done = [d for d in done if d >= window_start]

        start = habit_start_date(habit) or today
        due = count_due_days(habit.rule, habit.always_show, start, today, item_id=habit.id)
        recent_due = count_due_days(
            habit.rule,
            habit.always_show,
            max(start, window_start),
            today,
            item_id=habit.id,
        )

        # At least one planned occurrence per habit, never fewer than completions
        tally.planned += max(due, len(done), 1)
        tally.recent_planned += max(recent_due, len(recent_done), 1)
        tally.completed += len(done)
        tally.recent_completed += len(recent_done)
        tally.xp += len(done) * habit.xp_reward
        tally.recent_xp += len(recent_done) * habit.xp_reward
    return tally


def _first_activity(steps: list[DailyStep], habits: list[Habit], today: date) -> date | None:
    dates = [s.date for s in steps if s.date <= today]
    dates.extend(d for d in (habit_start_date(h) for h in habits) if d is not None and d <= today)
    return min(dates) if dates else None


def classify_trend(
    total_xp: int,
    recent_xp: int,
    lifetime_days: int,
    window_days: int,
    margin: float,
) -> Trend:
    """
    Compare the recent XP rate with the lifetime average rate.

    Rates are XP per day. Positive when the recent rate exceeds the
    historical rate by more than `margin` (relative), negative when it
    falls short by more than `margin`, neutral otherwise or without data.
    """
    if total_xp <= 0 or lifetime_days <= 0:
        return Trend.NEUTRAL
    historical_rate = total_xp / lifetime_days
    recent_rate = recent_xp / max(1, min(window_days + 1, lifetime_days))
    if recent_rate > historical_rate * (1 + margin):
        return Trend.POSITIVE
    if recent_rate < historical_rate * (1 - margin):
        return Trend.NEGATIVE
    return Trend.NEUTRAL


def aspiration_balance(
    aspiration_id: str,
    goals: Iterable[Goal],
    habits: Iterable[Habit],
    steps: Iterable[DailyStep],
    *,
    today: date,
    window_days: int | None = None,
    config: EngineConfig | None = None,
) -> AspirationBalance:
    """
    Build the balance for one aspiration.

    Steps count when their goal is linked to the aspiration or when the
    step itself carries the aspiration id. Habits count when linked directly.
    Planned habit occurrences are the due days from the habit's start date.

    Args:
        aspiration_id: Aspiration to aggregate
        goals: Goal snapshot
        habits: Habit snapshot
        steps: Step snapshot
        today: Injected current date
        window_days: Recent window (defaults to config.balance_window_days)
        config: Engine configuration (defaults to the process-wide config)

    Returns:
        AspirationBalance (is_empty when nothing is linked)
    """
    config = config or get_engine_config()
    window = window_days if window_days is not None else config.balance_window_days
    window_start = today - timedelta(days=window)

    goal_ids = {g.id for g in goals if g.aspiration_id == aspiration_id}
    linked_steps = [
        s for s in steps if s.goal_id in goal_ids or s.aspiration_id == aspiration_id
    ]
    linked_habits = [h for h in habits if h.aspiration_id == aspiration_id]

    if not linked_steps and not linked_habits:
        return AspirationBalance(aspiration_id=aspiration_id, window_days=window)

    step_tally = _tally_steps(linked_steps, window_start, today)
    habit_tally = _tally_habits(linked_habits, window_start, today)

    total_xp = step_tally.xp + habit_tally.xp
    recent_xp = step_tally.recent_xp + habit_tally.recent_xp
    first = _first_activity(linked_steps, linked_habits, today)
    lifetime_days = (today - first).days + 1 if first else 0

    return AspirationBalance(
        aspiration_id=aspiration_id,
        window_days=window,
        total_xp=total_xp,
        recent_xp=recent_xp,
        total_planned_steps=step_tally.planned,
        recent_planned_steps=step_tally.recent_planned,
        total_completed_steps=step_tally.completed,
        recent_completed_steps=step_tally.recent_completed,
        total_planned_habits=habit_tally.planned,
        recent_planned_habits=habit_tally.recent_planned,
        total_completed_habits=habit_tally.completed,
        recent_completed_habits=habit_tally.recent_completed,
        trend=classify_trend(total_xp, recent_xp, lifetime_days, window, config.trend_margin),
    )


# =============================================================================
# Insights
# =============================================================================


@dataclass(frozen=True)
class AspirationInsights:
    """Display grouping of aspirations by recent completion rate."""

    easy: tuple[str, ...] = ()
    hard: tuple[str, ...] = ()


def classify_aspirations(
    balances: Iterable[AspirationBalance],
    config: EngineConfig | None = None,
) -> AspirationInsights:
    """
    Group aspirations into easy (rate >= easy_threshold) and hard
    (rate < hard_threshold). Balances without a recent signal are skipped.
    Pure read-side filter; nothing is written back.
    """
    config = config or get_engine_config()
    easy: list[str] = []
    hard: list[str] = []
    for balance in balances:
        rate = balance.completion_rate_recent
        if rate is None:
            continue
        if rate >= config.easy_threshold:
            easy.append(balance.aspiration_id)
        elif rate < config.hard_threshold:
            hard.append(balance.aspiration_id)
    return AspirationInsights(easy=tuple(easy), hard=tuple(hard))


__all__ = [
    "COMBINED_STEP_WEIGHT",
    "step_ratio",
    "metric_ratio",
    "goal_progress",
    "goal_progress_map",
    "Trend",
    "AspirationBalance",
    "classify_trend",
    "aspiration_balance",
    "AspirationInsights",
    "classify_aspirations",
]
