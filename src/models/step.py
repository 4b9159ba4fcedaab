"""
DailyStep Model for the planning engine.

A step is a one-off or goal-linked unit of work dated to one calendar day.

Invariant: a step dated strictly before today that is not completed is
overdue. Overdue steps are surfaced as plan candidates until they are
completed, rescheduled, or deleted; they never silently disappear.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date


@dataclass(frozen=True)
class DailyStep:
    """
    DailyStep snapshot.

    Attributes:
        id: Opaque unique identifier
        date: Calendar date the step is scheduled for
        goal_id: Linked goal (None for standalone steps)
        completed: Completion flag
        is_important: Eisenhower importance flag
        is_urgent: Eisenhower urgency flag
        xp_reward: XP granted on completion
        aspiration_id: Directly linked aspiration (optional)
        completed_at: Date the step was completed (optional)
        recurring: Generated from a repeating step template
        title: Display title
    """

    id: str
    date: date
    goal_id: str | None = None
    completed: bool = False
    is_important: bool = False
    is_urgent: bool = False
    xp_reward: int = 1
    aspiration_id: str | None = None
    completed_at: date | None = None
    recurring: bool = False
    title: str = ""

    @property
    def priority_score(self) -> int:
        """Importance + urgency score used for candidate ranking."""
        return 2 * int(self.is_important) + int(self.is_urgent)

    def is_overdue(self, today: date) -> bool:
        return not self.completed and self.date < today

    def days_overdue(self, today: date) -> int:
        """Whole days past the step's date (0 when not overdue)."""
        if not self.is_overdue(today):
            return 0
        return (today - self.date).days

    def mark_completed(self, on: date | None = None) -> DailyStep:
        """Return a completed copy of this step."""
        return replace(self, completed=True, completed_at=on or self.completed_at)

    def reschedule(self, new_date: date) -> DailyStep:
        return replace(self, date=new_date)


def display_order(steps: list[DailyStep]) -> list[DailyStep]:
    """Incomplete first, then date ascending, important first, urgent first."""
    return sorted(
        steps,
        key=lambda s: (s.completed, s.date, not s.is_important, not s.is_urgent, s.id),
    )


__all__ = ["DailyStep", "display_order"]
