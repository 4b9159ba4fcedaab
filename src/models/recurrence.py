"""
RecurrenceRule Model for the planning engine.

Describes when a recurring item (habit or automation) is active. The rule
is a tagged variant over RecurrenceKind; evaluation lives in one function,
src/services/recurrence.py::is_due.

Rule kinds:
- daily: due every day
- weekly / custom: due on the weekdays in selected_days
- monthly: due on day_of_month (or the anchor date's day), and/or on
  ordinal weekdays such as "first_monday" or "last_friday"
- always_show: always due

Unknown or unset kinds coming from stored data are represented by
kind=None. They are never rejected here; the evaluator treats them as
daily and logs a data-quality signal.

Validation happens at construction time and raises InvalidRule.
"""

from __future__ import annotations

import calendar
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date
from enum import StrEnum

from src.core.calendar import Weekday
from src.lib.exceptions import InvalidDate, InvalidRule


class RecurrenceKind(StrEnum):
    """Recurrence rule kinds."""

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    CUSTOM = "custom"
    ALWAYS_SHOW = "always_show"

    @classmethod
    def parse(cls, value: str | RecurrenceKind | None) -> RecurrenceKind | None:
        """Parse a stored kind, returning None for unknown or unset values."""
        if isinstance(value, RecurrenceKind):
            return value
        if not value:
            return None
        key = str(value).strip().lower().replace("-", "_")
        if key == "alwaysshow":
            key = "always_show"
        try:
            return cls(key)
        except ValueError:
            return None


class Ordinal(StrEnum):
    """Occurrence of a weekday within a month."""

    FIRST = "first"
    SECOND = "second"
    THIRD = "third"
    FOURTH = "fourth"
    LAST = "last"


_ORDINAL_INDEX: dict[Ordinal, int] = {
    Ordinal.FIRST: 0,
    Ordinal.SECOND: 1,
    Ordinal.THIRD: 2,
    Ordinal.FOURTH: 3,
}


@dataclass(frozen=True)
class MonthlyWeekday:
    """An ordinal weekday pattern such as "first_monday" or "last_friday"."""

    ordinal: Ordinal
    weekday: Weekday

    @classmethod
    def parse(cls, value: str) -> MonthlyWeekday:
        """
        Parse "<ordinal>_<weekday>".

        Raises:
            InvalidRule: If either part is not recognized
        """
        ordinal_raw, _, weekday_raw = value.strip().lower().partition("_")
        try:
            return cls(ordinal=Ordinal(ordinal_raw), weekday=Weekday.parse(weekday_raw))
        except (ValueError, InvalidDate) as e:
            raise InvalidRule(f"Invalid monthly weekday pattern: {value!r}") from e

    def matches(self, day: date) -> bool:
        """Whether `day` is this occurrence of the weekday in its month."""
        if day.weekday() != self.weekday.number:
            return False
        if self.ordinal == Ordinal.LAST:
            last_day = calendar.monthrange(day.year, day.month)[1]
            return day.day + 7 > last_day
        return (day.day - 1) // 7 == _ORDINAL_INDEX[self.ordinal]

    def __str__(self) -> str:
        return f"{self.ordinal.value}_{self.weekday.value}"


@dataclass(frozen=True)
class RecurrenceRule:
    """
    When a recurring item is active.

    Attributes:
        kind: Rule kind (None = unknown/unset kind from stored data)
        selected_days: Weekdays for weekly/custom rules
        day_of_month: Day 1-31 for monthly rules (falls back to anchor_date.day)
        days_of_month: Additional days 1-31 for monthly rules firing on several
            days of the month
        anchor_date: Creation date, fallback reference for monthly rules
        monthly_weekdays: Ordinal weekday patterns for monthly rules
        raw_kind: Original stored kind when it could not be parsed
        allow_empty: Accept weekly/custom rules without selected days
            (used for items that are force-shown via always_show)
    """

    kind: RecurrenceKind | None
    selected_days: frozenset[Weekday] = frozenset()
    day_of_month: int | None = None
    days_of_month: frozenset[int] = frozenset()
    anchor_date: date | None = None
    monthly_weekdays: frozenset[MonthlyWeekday] = frozenset()
    raw_kind: str | None = None
    allow_empty: bool = field(default=False, compare=False, repr=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "selected_days", frozenset(self.selected_days))
        object.__setattr__(self, "monthly_weekdays", frozenset(self.monthly_weekdays))
        object.__setattr__(self, "days_of_month", frozenset(self.days_of_month))

        if self.day_of_month is not None:
            _check_day_of_month(self.day_of_month)
        for day in self.days_of_month:
            _check_day_of_month(day)

        if self.kind in (RecurrenceKind.WEEKLY, RecurrenceKind.CUSTOM):
            if not self.selected_days and not self.allow_empty:
                raise InvalidRule(f"{self.kind.value} rule requires at least one selected day")

        if self.kind == RecurrenceKind.MONTHLY:
            if (
                self.day_of_month is None
                and not self.days_of_month
                and self.anchor_date is None
                and not self.monthly_weekdays
            ):
                raise InvalidRule(
                    "monthly rule requires day_of_month, anchor_date or a weekday pattern"
                )

    # =========================================================================
    # Constructors
    # =========================================================================

    @classmethod
    def daily(cls, anchor_date: date | None = None) -> RecurrenceRule:
        return cls(kind=RecurrenceKind.DAILY, anchor_date=anchor_date)

    @classmethod
    def weekly(
        cls,
        days: Iterable[Weekday | str | int],
        *,
        anchor_date: date | None = None,
        allow_empty: bool = False,
    ) -> RecurrenceRule:
        return cls(
            kind=RecurrenceKind.WEEKLY,
            selected_days=_parse_days(days),
            anchor_date=anchor_date,
            allow_empty=allow_empty,
        )

    @classmethod
    def custom(
        cls,
        days: Iterable[Weekday | str | int],
        *,
        anchor_date: date | None = None,
        allow_empty: bool = False,
    ) -> RecurrenceRule:
        return cls(
            kind=RecurrenceKind.CUSTOM,
            selected_days=_parse_days(days),
            anchor_date=anchor_date,
            allow_empty=allow_empty,
        )

    @classmethod
    def monthly(
        cls,
        day_of_month: int | None = None,
        *,
        days: Iterable[int] = (),
        anchor_date: date | None = None,
        weekdays: Iterable[MonthlyWeekday | str] = (),
    ) -> RecurrenceRule:
        return cls(
            kind=RecurrenceKind.MONTHLY,
            day_of_month=day_of_month,
            days_of_month=frozenset(days),
            anchor_date=anchor_date,
            monthly_weekdays=frozenset(
                w if isinstance(w, MonthlyWeekday) else MonthlyWeekday.parse(w)
                for w in weekdays
            ),
        )

    @classmethod
    def always(cls) -> RecurrenceRule:
        return cls(kind=RecurrenceKind.ALWAYS_SHOW)

    @classmethod
    def unknown(cls, raw_kind: str | None, anchor_date: date | None = None) -> RecurrenceRule:
        """Rule for an unrecognized stored kind (evaluated as daily, logged)."""
        return cls(kind=None, raw_kind=raw_kind, anchor_date=anchor_date)

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def target_day(self) -> int | None:
        """Day of month a monthly rule fires on (before month-length overflow)."""
        if self.day_of_month is not None:
            return self.day_of_month
        if self.anchor_date is not None:
            return self.anchor_date.day
        return None

    @property
    def target_days(self) -> frozenset[int]:
        """All days of month a monthly rule fires on (before overflow)."""
        days = set(self.days_of_month)
        if self.day_of_month is not None:
            days.add(self.day_of_month)
        if not days and self.anchor_date is not None:
            days.add(self.anchor_date.day)
        return frozenset(days)

    @property
    def is_known(self) -> bool:
        return self.kind is not None

    def to_dict(self) -> dict[str, object]:
        """Serialize to the stored row shape."""
        return {
            "frequency": self.kind.value if self.kind else self.raw_kind,
            "selected_days": sorted(d.value for d in self.selected_days),
            "day_of_month": self.day_of_month,
            "days_of_month": sorted(self.days_of_month),
            "anchor_date": self.anchor_date.isoformat() if self.anchor_date else None,
            "monthly_weekdays": sorted(str(w) for w in self.monthly_weekdays),
        }


def _check_day_of_month(day: object) -> None:
    if isinstance(day, bool) or not isinstance(day, int):
        raise InvalidRule(f"day_of_month must be an integer, got {day!r}")
    if not 1 <= day <= 31:
        raise InvalidRule(f"day_of_month must be within 1-31, got {day}")


def _parse_days(days: Iterable[Weekday | str | int]) -> frozenset[Weekday]:
    try:
        return frozenset(Weekday.parse(d) for d in days)
    except InvalidDate as e:
        raise InvalidRule(str(e)) from e


__all__ = ["RecurrenceKind", "Ordinal", "MonthlyWeekday", "RecurrenceRule"]
