"""
Core utilities for the planning engine.

Exports:
    - Weekday, to_local_date and the calendar arithmetic helpers
    - Clock, FixedClock, SystemClock: the injected source of "today"
"""

from .calendar import (
    DateLike,
    Weekday,
    add_days,
    date_range,
    day_of_month,
    days_between,
    days_in_month,
    is_last_day_of_month,
    is_same_day,
    make_date,
    to_local_date,
    weekday_of,
)
from .clock import Clock, FixedClock, SystemClock

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
    "Clock",
    "FixedClock",
    "SystemClock",
]
