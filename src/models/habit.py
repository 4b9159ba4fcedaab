"""
Habit Model for the planning engine.

A habit is a recurrence-bearing item with per-date completions. Habits are
never merged with one another; a toggle produces a new Habit value.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from datetime import date
from types import MappingProxyType

from src.models.recurrence import RecurrenceRule


@dataclass(frozen=True)
class Habit:
    """
    Habit snapshot.

    Attributes:
        id: Opaque unique identifier
        rule: Recurrence rule
        always_show: Forces the habit to be due regardless of its rule
        completions: Completion state per local calendar date (read-only,
            excluded from the hash)
        xp_reward: XP granted per completed date
        aspiration_id: Linked aspiration (optional)
        goal_id: Linked goal (optional)
        start_date: Explicit start date for statistics (optional)
        created_at: Creation date (optional)
        name: Display name
    """

    id: str
    rule: RecurrenceRule
    always_show: bool = False
    completions: Mapping[date, bool] = field(default_factory=dict, hash=False)
    xp_reward: int = 1
    aspiration_id: str | None = None
    goal_id: str | None = None
    start_date: date | None = None
    created_at: date | None = None
    name: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "completions", MappingProxyType(dict(self.completions)))

    def is_completed_on(self, day: date) -> bool:
        return self.completions.get(day) is True

    @property
    def completed_dates(self) -> list[date]:
        """Completed dates in ascending order."""
        return sorted(d for d, done in self.completions.items() if done is True)

    def with_completion(self, day: date, completed: bool = True) -> Habit:
        """Return a copy with the completion for `day` set."""
        completions = dict(self.completions)
        completions[day] = completed
        return replace(self, completions=completions)


__all__ = ["Habit"]
