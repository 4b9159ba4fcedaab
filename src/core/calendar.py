"""
Calendar/Date Utilities for the planning engine.

All date comparisons operate on local calendar dates with the time of day
stripped. Two timestamps on the same local day compare equal regardless of
their time component.

Every other component builds on these helpers; none of them read the wall
clock (see src/core/clock.py for the injected "today").
"""

from __future__ import annotations

import calendar
from collections.abc import Iterator
from datetime import date, datetime, timedelta
from enum import StrEnum
from zoneinfo import ZoneInfo

from src.config.engine import get_engine_config
from src.lib.exceptions import InvalidDate

DateLike = date | datetime | str


class Weekday(StrEnum):
    """Day of the week, Monday first (matches date.weekday())."""

    MONDAY = "monday"
    TUESDAY = "tuesday"
    WEDNESDAY = "wednesday"
    THURSDAY = "thursday"
    FRIDAY = "friday"
    SATURDAY = "saturday"
    SUNDAY = "sunday"

    @property
    def number(self) -> int:
        """0 for Monday through 6 for Sunday."""
        return _WEEKDAYS.index(self)

    @classmethod
    def parse(cls, value: str | int | Weekday) -> Weekday:
        """
        Parse a weekday from a name, a three-letter abbreviation or an index.

        Args:
            value: "monday", "Mon", 0 (Monday) .. 6 (Sunday)

        Returns:
            Weekday member

        Raises:
            InvalidDate: If the value is not a recognizable weekday
        """
        if isinstance(value, Weekday):
            return value
        if isinstance(value, int) and not isinstance(value, bool):
            if 0 <= value <= 6:
                return _WEEKDAYS[value]
            raise InvalidDate(f"Weekday index out of range: {value}")
        if isinstance(value, str):
            key = value.strip().lower()
            for day in _WEEKDAYS:
                if key == day.value or key == day.value[:3]:
                    return day
        raise InvalidDate(f"Unknown weekday: {value!r}")


_WEEKDAYS: list[Weekday] = list(Weekday)


# =============================================================================
# Normalization
# =============================================================================


def to_local_date(value: DateLike, tz: str | ZoneInfo | None = None) -> date:
    """
    Normalize a date-like value to a local calendar date (local midnight).

    Aware datetimes are converted to `tz` (default: the configured engine
    timezone) before the time is stripped; naive datetimes are assumed to
    already be local.

    Args:
        value: date, datetime, or ISO string ("2026-02-28", "2026-02-28T13:45:00")
        tz: Timezone used for aware datetimes (name or ZoneInfo); None means
            the configured engine timezone

    Returns:
        The local calendar date

    Raises:
        InvalidDate: If the value is malformed or not a real calendar date
    """
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            if tz is None:
                tz = get_engine_config().timezone
            value = value.astimezone(_zone(tz))
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        raw = value.strip()
        if not raw:
            raise InvalidDate("Empty date string")
        try:
            if len(raw) == 10:
                return date.fromisoformat(raw)
            return to_local_date(datetime.fromisoformat(raw.replace("Z", "+00:00")), tz)
        except ValueError as e:
            raise InvalidDate(f"Invalid calendar date: {value!r}") from e
    raise InvalidDate(f"Unsupported date value: {value!r}")


def make_date(year: int, month: int, day: int) -> date:
    """Build a calendar date, raising InvalidDate instead of ValueError."""
    try:
        return date(year, month, day)
    except (TypeError, ValueError) as e:
        raise InvalidDate(f"Invalid calendar date: {year}-{month}-{day}") from e


def _zone(tz: str | ZoneInfo) -> ZoneInfo:
    if isinstance(tz, ZoneInfo):
        return tz
    try:
        return ZoneInfo(tz)
    except (KeyError, ValueError) as e:
        raise InvalidDate(f"Unknown timezone: {tz!r}") from e


# =============================================================================
# Arithmetic
# =============================================================================


def days_between(a: DateLike, b: DateLike) -> int:
    """Signed number of whole days from a to b (b - a)."""
    return (to_local_date(b) - to_local_date(a)).days


def weekday_of(value: DateLike) -> Weekday:
    return _WEEKDAYS[to_local_date(value).weekday()]


def day_of_month(value: DateLike) -> int:
    return to_local_date(value).day


def days_in_month(year: int, month: int) -> int:
    if not 1 <= month <= 12:
        raise InvalidDate(f"Month out of range: {month}")
    return calendar.monthrange(year, month)[1]


def is_same_day(a: DateLike, b: DateLike) -> bool:
    return to_local_date(a) == to_local_date(b)


def is_last_day_of_month(value: DateLike) -> bool:
    d = to_local_date(value)
    return d.day == days_in_month(d.year, d.month)


def add_days(value: DateLike, days: int) -> date:
    return to_local_date(value) + timedelta(days=days)


def date_range(start: DateLike, end: DateLike) -> Iterator[date]:
    """Iterate calendar dates from start to end inclusive (empty if end < start)."""
    current = to_local_date(start)
    last = to_local_date(end)
    while current <= last:
        yield current
        current += timedelta(days=1)


__all__ = [
    "DateLike",
    "Weekday",
    "to_local_date",
    "make_date",
    "days_between",
    "weekday_of",
    "day_of_month",
    "days_in_month",
    "is_same_day",
    "is_last_day_of_month",
    "add_days",
    "date_range",
]
