"""
Services for the planning engine.

This package contains the pure computations over a user's snapshot.

Services:
    - Recurrence: is an item due on a date, occurrence search, streaks
    - DailyPlan: plan mutations, completion retirement, candidate set
    - Progress: goal progress, aspiration balances, easy/hard insights
    - Automation: accrual due-ness and application
    - Snapshot: validated read boundary (pydantic records)
    - PlanningEngine: facade wiring a Clock and a Snapshot together
"""

from .automation import (
    AccrualResult,
    accrual_ratio,
    apply_accrual,
    is_accrual_due,
    run_due_accruals,
)
from .daily_plan import (
    Candidate,
    CandidateReason,
    FieldUpdate,
    PlanMutation,
    PlanProgress,
    RetireResult,
    add_to_plan,
    carry_over_overdue,
    complete_and_retire,
    plan_delta,
    plan_progress,
    remaining_ids,
    remove_from_plan,
    reorder,
)
from .engine import PlanChange, PlanningEngine
from .progress import (
    AspirationBalance,
    AspirationInsights,
    Trend,
    aspiration_balance,
    classify_aspirations,
    goal_progress,
    goal_progress_map,
)
from .recurrence import (
    count_due_days,
    due_habits,
    habit_start_date,
    habit_streak,
    is_due,
    is_habit_due,
    next_occurrence,
    upcoming_occurrences,
)
from .snapshot import RejectedRecord, Snapshot, load_snapshot

__all__ = [
    # Recurrence
    "is_due",
    "is_habit_due",
    "due_habits",
    "next_occurrence",
    "upcoming_occurrences",
    "count_due_days",
    "habit_start_date",
    "habit_streak",
    # Daily plan
    "add_to_plan",
    "remove_from_plan",
    "reorder",
    "complete_and_retire",
    "RetireResult",
    "remaining_ids",
    "plan_progress",
    "PlanProgress",
    "plan_delta",
    "PlanMutation",
    "FieldUpdate",
    "carry_over_overdue",
    "Candidate",
    "CandidateReason",
    # Progress
    "goal_progress",
    "goal_progress_map",
    "aspiration_balance",
    "AspirationBalance",
    "classify_aspirations",
    "AspirationInsights",
    "Trend",
    # Automation
    "is_accrual_due",
    "apply_accrual",
    "accrual_ratio",
    "run_due_accruals",
    "AccrualResult",
    # Boundary
    "load_snapshot",
    "Snapshot",
    "RejectedRecord",
    "PlanningEngine",
    "PlanChange",
]
