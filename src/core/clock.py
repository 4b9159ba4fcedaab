"""
Injected clock for the planning engine.

"Today" is always supplied by the caller. Pure engine functions take a
`today: date` argument; the facade (src/services/engine.py) obtains it from
a Clock so that tests pin a FixedClock and deployments use a SystemClock in
the user's timezone.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Protocol, runtime_checkable
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from src.core.calendar import DateLike, to_local_date
from src.lib.exceptions import ConfigurationError


@runtime_checkable
class Clock(Protocol):
    """Supplies the current local calendar date."""

    def today(self) -> date: ...


@dataclass(frozen=True)
class FixedClock:
    """Clock pinned to one calendar date."""

    current: date

    def __init__(self, current: DateLike) -> None:
        object.__setattr__(self, "current", to_local_date(current))

    def today(self) -> date:
        return self.current


@dataclass(frozen=True)
class SystemClock:
    """Wall clock in a user's timezone (the only place "now" is read)."""

    tz_name: str

    def __post_init__(self) -> None:
        try:
            ZoneInfo(self.tz_name)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ConfigurationError(f"Unknown timezone: {self.tz_name!r}") from e

    def today(self) -> date:
        return datetime.now(tz=ZoneInfo(self.tz_name)).date()


__all__ = ["Clock", "FixedClock", "SystemClock"]
