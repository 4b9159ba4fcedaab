"""
Recurrence Rule Evaluator for the planning engine.

Decides whether a recurring item is due on a calendar date. The evaluation
order is fixed and the first match wins:

1. always_show flag         -> due
2. daily                    -> due every day
3. weekly / custom          -> due iff the weekday is selected (empty set: never)
4. monthly                  -> due on the target day of month; when the target
                               day does not exist in the month (31st in
                               February) the rule fires on the month's last day.
                               Ordinal weekday patterns ("last_friday") also fire.
5. always_show kind         -> due
6. unknown / unset kind     -> treated as daily (fail open) and logged as a
                               data-quality signal

Also provides occurrence search (next / upcoming), due-day counting used by
the progress aggregator, habit start dates and streaks.

All functions are pure: the reference date is always passed in.
"""

from __future__ import annotations

from collections.abc import Collection, Iterable
from datetime import date, timedelta

import structlog

from src.config.engine import get_engine_config
from src.core.calendar import DateLike, date_range, days_in_month, to_local_date, weekday_of
from src.lib.exceptions import UNKNOWN_RECURRENCE_KIND
from src.models.habit import Habit
from src.models.recurrence import RecurrenceKind, RecurrenceRule

logger = structlog.get_logger(__name__)


# =============================================================================
# Evaluation
# =============================================================================


def _evaluate(rule: RecurrenceRule, always_show: bool, day: date) -> bool | None:
    """Evaluate a rule without side effects; None means the kind is unknown."""
    if always_show:
        return True

    kind = rule.kind
    if kind == RecurrenceKind.DAILY:
        return True
    if kind in (RecurrenceKind.WEEKLY, RecurrenceKind.CUSTOM):
        return weekday_of(day) in rule.selected_days
    if kind == RecurrenceKind.MONTHLY:
        return _monthly_due(rule, day)
    if kind == RecurrenceKind.ALWAYS_SHOW:
        return True
    return None


def _monthly_due(rule: RecurrenceRule, day: date) -> bool:
    last_day = days_in_month(day.year, day.month)
    if any(day.day == min(target, last_day) for target in rule.target_days):
        return True
    return any(pattern.matches(day) for pattern in rule.monthly_weekdays)


def _warn_unknown(rule: RecurrenceRule, item_id: str | None) -> None:
    logger.warning(
        "recurrence_unknown_kind",
        signal=UNKNOWN_RECURRENCE_KIND,
        item_id=item_id,
        raw_kind=rule.raw_kind,
        policy="treated_as_daily",
    )


def is_due(
    rule: RecurrenceRule,
    always_show: bool,
    reference_date: DateLike,
    *,
    item_id: str | None = None,
) -> bool:
    """
    Decide whether an item with `rule` is due on `reference_date`.

    Args:
        rule: The item's recurrence rule
        always_show: Item-level override forcing due=True
        reference_date: Calendar date to evaluate (time of day is ignored)
        item_id: Optional id included in data-quality log events

    Returns:
        True if the item is due that day

    Raises:
        InvalidDate: If reference_date is not a valid calendar date
    """
    day = to_local_date(reference_date)
    result = _evaluate(rule, always_show, day)
    if result is None:
        _warn_unknown(rule, item_id)
        return True
    return result


def is_habit_due(habit: Habit, reference_date: DateLike) -> bool:
    return is_due(habit.rule, habit.always_show, reference_date, item_id=habit.id)


def _iter_due(
    rule: RecurrenceRule,
    always_show: bool,
    days: Iterable[date],
    item_id: str | None,
) -> Iterable[date]:
    """Yield the due days among `days`, logging an unknown kind only once."""
    warned = False
    for day in days:
        result = _evaluate(rule, always_show, day)
        if result is None:
            if not warned:
                _warn_unknown(rule, item_id)
                warned = True
            result = True
        if result:
            yield day


# =============================================================================
# Occurrence search
# =============================================================================


def upcoming_occurrences(
    rule: RecurrenceRule,
    always_show: bool,
    start: DateLike,
    max_occurrences: int = 5,
    *,
    completed_dates: Collection[date] = (),
    horizon_days: int | None = None,
    item_id: str | None = None,
) -> list[date]:
    """
    Due dates from `start` onwards that are not yet completed.

    Args:
        rule: Recurrence rule
        always_show: Item-level override
        start: First date to consider (inclusive)
        max_occurrences: Maximum number of dates to return
        completed_dates: Dates to skip because they are already done
        horizon_days: Days to search (defaults to the configured horizon)
        item_id: Optional id for data-quality log events

    Returns:
        Up to max_occurrences dates in ascending order
    """
    if max_occurrences <= 0:
        return []
    horizon = horizon_days if horizon_days is not None else get_engine_config().occurrence_horizon_days
    first = to_local_date(start)
    window = date_range(first, first + timedelta(days=horizon - 1))

    occurrences: list[date] = []
    for day in _iter_due(rule, always_show, window, item_id):
        if day in completed_dates:
            continue
        occurrences.append(day)
        if len(occurrences) >= max_occurrences:
            break
    return occurrences


def next_occurrence(
    rule: RecurrenceRule,
    always_show: bool,
    start: DateLike,
    *,
    completed_dates: Collection[date] = (),
    horizon_days: int | None = None,
    item_id: str | None = None,
) -> date | None:
    """First due, not-completed date from `start` onwards (None within the horizon)."""
    found = upcoming_occurrences(
        rule,
        always_show,
        start,
        1,
        completed_dates=completed_dates,
        horizon_days=horizon_days,
        item_id=item_id,
    )
    return found[0] if found else None


def count_due_days(
    rule: RecurrenceRule,
    always_show: bool,
    start: DateLike,
    end: DateLike,
    *,
    item_id: str | None = None,
) -> int:
    """Number of due days in [start, end] inclusive (0 when end < start)."""
    return sum(1 for _ in _iter_due(rule, always_show, date_range(start, end), item_id))


def due_habits(habits: Iterable[Habit], reference_date: DateLike) -> list[Habit]:
    """Habits due on `reference_date`, in input order."""
    day = to_local_date(reference_date)
    return [habit for habit in habits if is_habit_due(habit, day)]


# =============================================================================
# Habit statistics
# =============================================================================


def habit_start_date(habit: Habit) -> date | None:
    """
    Start date for habit statistics.

    An explicit start_date wins. Otherwise the earlier of the creation date
    and the first completed date is used.
    """
    if habit.start_date is not None:
        return habit.start_date
    candidates = [d for d in (habit.created_at, habit.rule.anchor_date) if d is not None]
    completed = habit.completed_dates
    if completed:
        candidates.append(completed[0])
    return min(candidates) if candidates else None


def habit_streak(habit: Habit, today: DateLike) -> int:
    """
    Consecutive completed due days ending at today.

    A due day that is not completed breaks the streak, except today itself
    (the user still has time). Days on which the habit is not due are skipped.
    """
    current = to_local_date(today)
    start = habit_start_date(habit)
    if start is None or start > current:
        return 0

    streak = 0
    due_days = _iter_due(
        habit.rule,
        habit.always_show,
        _days_backwards(current, start),
        habit.id,
    )
    for day in due_days:
        if habit.is_completed_on(day):
            streak += 1
        elif day != current:
            break
    return streak


def _days_backwards(end: date, start: date) -> Iterable[date]:
    day = end
    while day >= start:
        yield day
        day -= timedelta(days=1)


__all__ = [
    "is_due",
    "is_habit_due",
    "upcoming_occurrences",
    "next_occurrence",
    "count_due_days",
    "due_habits",
    "habit_start_date",
    "habit_streak",
]
