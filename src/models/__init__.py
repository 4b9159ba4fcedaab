"""
Models package for the planning engine.

This package exports the snapshot records the engine computes over.
All records are frozen dataclasses; operations return new values.

Usage:
    from src.models import Habit, DailyStep, DailyPlan, Goal, GoalMetric
    from src.models import Automation, RecurrenceRule, RecurrenceKind
"""

from src.models.automation import ACCRUAL_KINDS, Automation
from src.models.daily_plan import DailyPlan, DailyPlanBook, PlanState
from src.models.goal import Aspiration, Goal, GoalMetric, GoalStatus, ProgressType
from src.models.habit import Habit
from src.models.recurrence import MonthlyWeekday, Ordinal, RecurrenceKind, RecurrenceRule
from src.models.step import DailyStep, display_order

__all__ = [
    # Recurrence
    "RecurrenceKind",
    "RecurrenceRule",
    "MonthlyWeekday",
    "Ordinal",
    # Items
    "Habit",
    "DailyStep",
    "display_order",
    "Automation",
    "ACCRUAL_KINDS",
    # Plans
    "DailyPlan",
    "DailyPlanBook",
    "PlanState",
    # Goals
    "Goal",
    "GoalMetric",
    "GoalStatus",
    "ProgressType",
    "Aspiration",
]
