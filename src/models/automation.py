"""
Automation Model for the planning engine.

An automation is a scheduled numeric accrual: on every due date the
external scheduler asks the accrual engine to apply update_value to
current_value once.

Invariants:
- An inactive automation is never evaluated for due-ness.
- current_value only changes through apply_accrual, never implicitly.
- The rule is restricted to daily, weekly or monthly; rule=None means
  "no repetition" (never due).
"""

from __future__ import annotations

from dataclasses import dataclass

from src.lib.exceptions import InvalidRule
from src.models.recurrence import RecurrenceKind, RecurrenceRule

ACCRUAL_KINDS: frozenset[RecurrenceKind] = frozenset(
    {RecurrenceKind.DAILY, RecurrenceKind.WEEKLY, RecurrenceKind.MONTHLY}
)


@dataclass(frozen=True)
class Automation:
    """
    Automation snapshot.

    Attributes:
        id: Opaque unique identifier
        target_value: Value the accrual works towards
        current_value: Running value
        update_value: Signed delta applied per occurrence
        rule: Accrual schedule (None = no repetition)
        is_active: Inactive automations are never due
        target_id: Metric or step the automation feeds (optional)
        name: Display name
    """

    id: str
    target_value: float
    current_value: float = 0
    update_value: float = 0
    rule: RecurrenceRule | None = None
    is_active: bool = True
    target_id: str | None = None
    name: str = ""

    def __post_init__(self) -> None:
        if self.rule is not None and self.rule.kind not in ACCRUAL_KINDS:
            kind = self.rule.kind.value if self.rule.kind else self.rule.raw_kind
            raise InvalidRule(f"Automation rule must be daily, weekly or monthly, got {kind!r}")


__all__ = ["ACCRUAL_KINDS", "Automation"]
