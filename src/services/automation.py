"""
Automation Accrual Engine for the planning engine.

Periodic numeric trackers (recurring savings contributions, mileage
logs, ...) accrue update_value into current_value once per due date.

This module does not run on a timer. An external scheduler invokes
run_due_accruals() (or is_accrual_due() + apply_accrual()) once per day
per automation and persists the returned automations.

Overshoot policy:
    current' = current + update, clamped to target + |update|. A single
    increment is never truncated, so 98000 + 5000 against a 100000
    target yields 103000 and reports an overshoot of 3000. The clamp
    only stops an automation already past its target from drifting
    further than one increment beyond it.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, replace
from typing import Any

import structlog

from src.core.calendar import DateLike, to_local_date
from src.lib.exceptions import DEGENERATE_RATIO, PlanningEngineException
from src.models.automation import Automation
from src.services.recurrence import is_due

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class AccrualResult:
    """
    Outcome of one accrual.

    Attributes:
        automation: Automation with the new current_value
        previous_value: current_value before the accrual
        overshoot: Amount by which current_value exceeds target_value (>= 0)
        completed: Whether current_value reached target_value
    """

    automation: Automation
    previous_value: float
    overshoot: float = 0
    completed: bool = False

    @property
    def applied(self) -> float:
        """Delta actually applied after clamping."""
        return self.automation.current_value - self.previous_value

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.automation.id,
            "current_value": self.automation.current_value,
            "previous_value": self.previous_value,
            "applied": self.applied,
            "overshoot": self.overshoot,
            "completed": self.completed,
        }


def is_accrual_due(automation: Automation, reference_date: DateLike) -> bool:
    """
    Whether the automation should accrue on `reference_date`.

    Inactive automations and automations without a rule are never due.
    """
    if not automation.is_active or automation.rule is None:
        return False
    return is_due(automation.rule, False, reference_date, item_id=automation.id)


def apply_accrual(automation: Automation) -> AccrualResult:
    """
    Apply update_value to current_value once.

    Args:
        automation: The automation to accrue

    Returns:
        AccrualResult with the new automation and the reported overshoot
    """
    previous = automation.current_value
    target = automation.target_value
    new_value = previous + automation.update_value

    if target <= 0:
        logger.debug(
            "automation_degenerate_target",
            signal=DEGENERATE_RATIO,
            automation_id=automation.id,
            target_value=target,
        )
        return AccrualResult(
            automation=replace(automation, current_value=new_value),
            previous_value=previous,
        )

    ceiling = target + abs(automation.update_value)
    if new_value > ceiling:
        new_value = max(previous, ceiling)

    return AccrualResult(
        automation=replace(automation, current_value=new_value),
        previous_value=previous,
        overshoot=max(0, new_value - target),
        completed=new_value >= target,
    )


def accrual_ratio(automation: Automation) -> float:
    """current/target clamped to [0, 1]; 0 for a target of zero or less."""
    if automation.target_value <= 0:
        return 0.0
    return max(0.0, min(1.0, automation.current_value / automation.target_value))


def run_due_accruals(
    automations: Iterable[Automation],
    reference_date: DateLike,
) -> list[AccrualResult]:
    """
    Apply every automation due on `reference_date` exactly once.

    A failing item is logged and skipped; the rest of the batch still runs.

    Args:
        automations: Automation snapshot
        reference_date: Injected current date

    Returns:
        AccrualResult for every automation that accrued, in input order
    """
    day = to_local_date(reference_date)
    results: list[AccrualResult] = []
    for automation in automations:
        try:
            if not is_accrual_due(automation, day):
                continue
            result = apply_accrual(automation)
        except PlanningEngineException as e:
            logger.warning(
                "engine_item_skipped",
                item_id=automation.id,
                operation="run_due_accruals",
                error=str(e),
                error_type=type(e).__name__,
            )
            continue
        logger.info(
            "automation_accrual_applied",
            automation_id=automation.id,
            date=day.isoformat(),
            applied=result.applied,
            current_value=result.automation.current_value,
            overshoot=result.overshoot,
            completed=result.completed,
        )
        results.append(result)
    return results


__all__ = [
    "AccrualResult",
    "is_accrual_due",
    "apply_accrual",
    "accrual_ratio",
    "run_due_accruals",
]
