"""
DailyPlan Model for the planning engine.

The set of item ids a user has committed to for one calendar date.

Lifecycle:
- Created lazily the first time a user plans for a date (EMPTY state)
- Mutated by add/remove/reorder (POPULATED, or back to EMPTY when the
  last id is removed; the record itself is never deleted)
- Read-only for planning once its date is in the past, but still
  readable for history and progress

Completed ids stay in planned_ids so the day's progress never regresses
when an item is finished; they are excluded from "remaining work" views.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from datetime import date
from enum import StrEnum
from types import MappingProxyType
from typing import Any


class PlanState(StrEnum):
    EMPTY = "EMPTY"
    POPULATED = "POPULATED"


@dataclass(frozen=True)
class DailyPlan:
    """
    DailyPlan snapshot.

    Attributes:
        date: The date this plan is for
        planned_ids: Committed item ids in display order (unique)
        completed_ids: Planned ids retired as completed on this date
    """

    date: date
    planned_ids: tuple[str, ...] = ()
    completed_ids: frozenset[str] = frozenset()

    def __post_init__(self) -> None:
        object.__setattr__(self, "planned_ids", tuple(dict.fromkeys(self.planned_ids)))
        object.__setattr__(
            self,
            "completed_ids",
            frozenset(self.completed_ids) & frozenset(self.planned_ids),
        )

    @property
    def state(self) -> PlanState:
        return PlanState.POPULATED if self.planned_ids else PlanState.EMPTY

    def __contains__(self, item_id: object) -> bool:
        return item_id in self.planned_ids

    def __len__(self) -> int:
        return len(self.planned_ids)

    def __iter__(self) -> Iterator[str]:
        return iter(self.planned_ids)

    def is_locked(self, today: date) -> bool:
        """Past plans are read-only for planning purposes."""
        return self.date < today

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date.isoformat(),
            "planned_ids": list(self.planned_ids),
            "completed_ids": sorted(self.completed_ids),
        }


@dataclass(frozen=True)
class DailyPlanBook:
    """Immutable collection of one user's plans, one per date."""

    plans: Mapping[date, DailyPlan] = field(default_factory=dict, hash=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "plans", MappingProxyType(dict(self.plans)))

    def plan_for(self, day: date) -> DailyPlan:
        """The plan for `day`, or a lazily created EMPTY plan."""
        plan = self.plans.get(day)
        return plan if plan is not None else DailyPlan(date=day)

    def with_plan(self, plan: DailyPlan) -> DailyPlanBook:
        plans = dict(self.plans)
        plans[plan.date] = plan
        return DailyPlanBook(plans=plans)

    def __len__(self) -> int:
        return len(self.plans)


__all__ = ["PlanState", "DailyPlan", "DailyPlanBook"]
