"""
Goal, GoalMetric and Aspiration Models for the planning engine.

Goal progress types:
- percentage: manually entered progress_percentage
- count / amount: progress_current against progress_target
- steps: ratio of completed linked steps
- combined: 50% step ratio + 50% average metric ratio

Goal status:
- active: Currently being worked on
- completed: Goal achieved
- paused: Temporarily on hold
- cancelled: No longer relevant
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class ProgressType(StrEnum):
    """How a goal's progress percentage is derived."""

    PERCENTAGE = "percentage"
    COUNT = "count"
    AMOUNT = "amount"
    STEPS = "steps"
    COMBINED = "combined"


class GoalStatus(StrEnum):
    ACTIVE = "active"
    COMPLETED = "completed"
    PAUSED = "paused"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class Goal:
    """
    Goal snapshot.

    Attributes:
        id: Opaque unique identifier
        progress_type: Progress derivation mode
        progress_percentage: Manual progress (percentage mode)
        progress_current: Current count/amount (count/amount modes)
        progress_target: Target count/amount (count/amount modes)
        aspiration_id: Linked aspiration (optional)
        status: Lifecycle status
        title: Display title
    """

    id: str
    progress_type: ProgressType = ProgressType.COMBINED
    progress_percentage: float = 0
    progress_current: float | None = None
    progress_target: float | None = None
    aspiration_id: str | None = None
    status: GoalStatus = GoalStatus.ACTIVE
    title: str = ""


@dataclass(frozen=True)
class GoalMetric:
    """Numeric tracker attached to a goal."""

    id: str
    goal_id: str
    current_value: float
    target_value: float
    unit: str = ""

    @property
    def is_degenerate(self) -> bool:
        """Target of zero or less cannot produce a ratio."""
        return self.target_value <= 0

    @property
    def ratio(self) -> float:
        """current/target clamped to [0, 1]; 0 for a degenerate target."""
        if self.is_degenerate:
            return 0.0
        return max(0.0, min(1.0, self.current_value / self.target_value))


@dataclass(frozen=True)
class Aspiration:
    """Top-level grouping of goals and habits."""

    id: str
    title: str = ""


__all__ = ["ProgressType", "GoalStatus", "Goal", "GoalMetric", "Aspiration"]
