"""
Daily Plan Scheduler for the planning engine.

Maintains the ordered set of item ids a user has committed to for a date,
and computes the candidate set they choose from.

Candidates vs committed plan:
    carry_over_overdue() only *proposes* items (due habits, overdue steps,
    steps dated today). Nothing enters planned_ids unless the caller
    explicitly calls add_to_plan(). The scheduler never plans on the
    user's behalf.

State machine per (user, date):
    EMPTY --add--> POPULATED --add/remove/reorder--> POPULATED
    POPULATED --remove last id--> EMPTY (the record is kept)
    Once the plan's date is in the past the plan is read-only for
    planning (PlanLockedError) but stays readable for history.

Every operation returns a new DailyPlan; caller-owned values are never
mutated. add_to_plan followed by remove_from_plan for the same id is an
exact inverse, so a caller retrying a failed write cannot corrupt a plan.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace
from datetime import date
from enum import StrEnum
from types import MappingProxyType
from typing import Any

import structlog

from src.lib.exceptions import InvalidPlanOrder, PlanLockedError, StateError
from src.models.daily_plan import DailyPlan
from src.models.habit import Habit
from src.models.step import DailyStep
from src.services.recurrence import is_habit_due

logger = structlog.get_logger(__name__)


# =============================================================================
# Deltas for the write accessor
# =============================================================================


@dataclass(frozen=True)
class PlanMutation:
    """Plan write: the full ordered id list for one date."""

    date: date
    planned_ids: tuple[str, ...]

    def to_dict(self) -> dict[str, Any]:
        return {"date": self.date.isoformat(), "planned_ids": list(self.planned_ids)}


@dataclass(frozen=True)
class FieldUpdate:
    """Field update for one entity, keyed by id."""

    entity: str
    entity_id: str
    fields: Mapping[str, Any] = field(default_factory=dict, hash=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "fields", MappingProxyType(dict(self.fields)))

    def to_dict(self) -> dict[str, Any]:
        return {"entity": self.entity, "id": self.entity_id, "fields": dict(self.fields)}


def plan_delta(plan: DailyPlan) -> PlanMutation:
    return PlanMutation(date=plan.date, planned_ids=plan.planned_ids)


# =============================================================================
# Plan mutations
# =============================================================================


def _ensure_open(plan: DailyPlan, today: date) -> None:
    if plan.is_locked(today):
        raise PlanLockedError(f"Plan for {plan.date.isoformat()} is read-only")


def add_to_plan(plan: DailyPlan, item_id: str, *, today: date) -> DailyPlan:
    """
    Commit an item to the plan (idempotent).

    Args:
        plan: Current plan
        item_id: Id of the step or habit to add
        today: Injected current date

    Returns:
        The plan with item_id appended (unchanged if already present)

    Raises:
        PlanLockedError: If the plan's date is in the past
    """
    _ensure_open(plan, today)
    if item_id in plan.planned_ids:
        return plan
    return replace(plan, planned_ids=(*plan.planned_ids, item_id))


def remove_from_plan(plan: DailyPlan, item_id: str, *, today: date) -> DailyPlan:
    """
    Remove an item from the plan (absent ids are a no-op).

    Raises:
        PlanLockedError: If the plan's date is in the past
    """
    _ensure_open(plan, today)
    if item_id not in plan.planned_ids:
        return plan
    return DailyPlan(
        date=plan.date,
        planned_ids=tuple(i for i in plan.planned_ids if i != item_id),
        completed_ids=plan.completed_ids - {item_id},
    )


def reorder(plan: DailyPlan, ordered_ids: Iterable[str], *, today: date) -> DailyPlan:
    """
    Replace the display order of the plan.

    Raises:
        InvalidPlanOrder: If ordered_ids is not a permutation of planned_ids
        PlanLockedError: If the plan's date is in the past
    """
    _ensure_open(plan, today)
    new_order = tuple(ordered_ids)
    if len(new_order) != len(plan.planned_ids) or set(new_order) != set(plan.planned_ids):
        raise InvalidPlanOrder(
            f"Reorder for {plan.date.isoformat()} must contain exactly the planned ids"
        )
    return replace(plan, planned_ids=new_order)


@dataclass(frozen=True)
class RetireResult:
    """Outcome of complete_and_retire: new plan, updated item and write deltas."""

    plan: DailyPlan
    step: DailyStep | None = None
    habit: Habit | None = None
    updates: tuple[FieldUpdate, ...] = ()


def complete_and_retire(
    plan: DailyPlan,
    item_id: str,
    steps: Iterable[DailyStep] = (),
    habits: Iterable[Habit] = (),
) -> RetireResult:
    """
    Mark a planned item completed and retire it from remaining work.

    The id stays in planned_ids so the day's progress does not regress.
    Steps are marked completed; habits get a completion for the plan's date.

    Args:
        plan: Plan the item is committed to
        item_id: Id of the planned step or habit
        steps: Step snapshot to look the item up in
        habits: Habit snapshot to look the item up in

    Returns:
        RetireResult with the new plan, the updated item and field updates

    Raises:
        StateError: If the id is not planned or no such item exists
    """
    if item_id not in plan.planned_ids:
        raise StateError(f"Item {item_id!r} is not planned for {plan.date.isoformat()}")

    new_plan = replace(plan, completed_ids=plan.completed_ids | {item_id})

    step = next((s for s in steps if s.id == item_id), None)
    if step is not None:
        completed = step if step.completed else step.mark_completed(plan.date)
        update = FieldUpdate(
            entity="daily_step",
            entity_id=item_id,
            fields={
                "completed": True,
                "completed_at": (completed.completed_at or plan.date).isoformat(),
            },
        )
        return RetireResult(plan=new_plan, step=completed, updates=(update,))

    habit = next((h for h in habits if h.id == item_id), None)
    if habit is not None:
        updated = habit.with_completion(plan.date, True)
        update = FieldUpdate(
            entity="habit_completion",
            entity_id=item_id,
            fields={"date": plan.date.isoformat(), "completed": True},
        )
        return RetireResult(plan=new_plan, habit=updated, updates=(update,))

    raise StateError(f"No step or habit with id {item_id!r} in the snapshot")


# =============================================================================
# Read views
# =============================================================================


def _completed_item_ids(
    plan: DailyPlan,
    steps: Iterable[DailyStep],
    habits: Iterable[Habit],
) -> set[str]:
    done = set(plan.completed_ids)
    done.update(s.id for s in steps if s.completed and s.id in plan.planned_ids)
    done.update(h.id for h in habits if h.id in plan.planned_ids and h.is_completed_on(plan.date))
    return done


def remaining_ids(
    plan: DailyPlan,
    steps: Iterable[DailyStep] = (),
    habits: Iterable[Habit] = (),
) -> tuple[str, ...]:
    """Planned ids that still need work, in plan order."""
    done = _completed_item_ids(plan, steps, habits)
    return tuple(i for i in plan.planned_ids if i not in done)


@dataclass(frozen=True)
class PlanProgress:
    planned: int
    completed: int

    @property
    def remaining(self) -> int:
        return self.planned - self.completed

    @property
    def ratio(self) -> float:
        return self.completed / self.planned if self.planned else 0.0

    @property
    def percentage(self) -> int:
        return int(self.ratio * 100 + 0.5)


def plan_progress(
    plan: DailyPlan,
    steps: Iterable[DailyStep] = (),
    habits: Iterable[Habit] = (),
) -> PlanProgress:
    """Completed vs planned for the day; retired items keep counting."""
    done = _completed_item_ids(plan, steps, habits)
    return PlanProgress(planned=len(plan.planned_ids), completed=len(done))


# =============================================================================
# Candidate set
# =============================================================================


class CandidateReason(StrEnum):
    OVERDUE = "overdue"
    DUE_HABIT = "due_habit"
    SCHEDULED_TODAY = "scheduled_today"


@dataclass(frozen=True)
class Candidate:
    """An item eligible for today's plan (not yet committed)."""

    item_id: str
    reason: CandidateReason
    date: date
    days_overdue: int = 0
    priority_score: int = 0

    @property
    def is_overdue(self) -> bool:
        return self.reason == CandidateReason.OVERDUE


def _rank_key(candidate: Candidate) -> tuple[int, int, int, date, str]:
    return (
        0 if candidate.is_overdue else 1,
        -candidate.days_overdue,
        -candidate.priority_score,
        candidate.date,
        candidate.item_id,
    )


def carry_over_overdue(
    today: date,
    steps: Iterable[DailyStep],
    habits: Iterable[Habit] = (),
) -> list[Candidate]:
    """
    Build the ranked candidate set for today's plan.

    Candidates = habits due today
               + overdue, incomplete, non-recurring steps
               + incomplete steps dated today

    Ranking (display only): overdue first, most overdue first; then
    2*important + urgent descending; then date ascending.

    Args:
        today: Injected current date
        steps: Step snapshot
        habits: Habit snapshot

    Returns:
        Candidates in display order (never written to any plan)
    """
    candidates: dict[str, Candidate] = {}

    for step in steps:
        if step.completed or step.id in candidates:
            continue
        if step.is_overdue(today):
            if step.recurring:
                continue
            candidates[step.id] = Candidate(
                item_id=step.id,
                reason=CandidateReason.OVERDUE,
                date=step.date,
                days_overdue=step.days_overdue(today),
                priority_score=step.priority_score,
            )
        elif step.date == today:
            candidates[step.id] = Candidate(
                item_id=step.id,
                reason=CandidateReason.SCHEDULED_TODAY,
                date=step.date,
                priority_score=step.priority_score,
            )

    for habit in habits:
        if habit.id in candidates:
            continue
        if is_habit_due(habit, today):
            candidates[habit.id] = Candidate(
                item_id=habit.id,
                reason=CandidateReason.DUE_HABIT,
                date=today,
            )

    ranked = sorted(candidates.values(), key=_rank_key)
    logger.debug(
        "plan_candidates_built",
        today=today.isoformat(),
        candidates=len(ranked),
        overdue=sum(1 for c in ranked if c.is_overdue),
    )
    return ranked


__all__ = [
    "PlanMutation",
    "FieldUpdate",
    "plan_delta",
    "add_to_plan",
    "remove_from_plan",
    "reorder",
    "RetireResult",
    "complete_and_retire",
    "remaining_ids",
    "PlanProgress",
    "plan_progress",
    "CandidateReason",
    "Candidate",
    "carry_over_overdue",
]
