"""
Snapshot boundary for the planning engine.

The surrounding system (REST handler, CLI, test harness) hands the engine
plain records as read from storage. load_snapshot() validates them with
pydantic, converts them into the frozen domain dataclasses and returns a
Snapshot. Nothing here performs I/O.

Record shapes follow the stored rows:
- habits: frequency, selected_days, always_show, habit_completions
  ({"2026-02-28": true}), xp_reward, aspiration_id, start_date, created_at
- steps: date, goal_id, completed, is_important, is_urgent, xp_reward
- automations: update_frequency (daily/weekly/monthly/null),
  update_day_of_week (0 = Sunday .. 6 = Saturday), update_day_of_month

Monthly habits keep their day of month and ordinal weekday patterns
("first_monday", "last_friday") in selected_days.

Validation failures raise InvalidDate / InvalidRule / ValidationError.
With strict=False a bad record is logged, collected in Snapshot.rejected
and skipped instead.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date
from typing import Annotated, Any, ClassVar

import structlog
from pydantic import BaseModel, BeforeValidator, Field, ValidationInfo
from pydantic import ValidationError as PydanticValidationError

from src.config.engine import get_engine_config
from src.core.calendar import Weekday, to_local_date
from src.lib.exceptions import (
    InvalidDate,
    InvalidRule,
    PlanningEngineException,
    ValidationError,
)
from src.models.automation import Automation
from src.models.daily_plan import DailyPlan, DailyPlanBook
from src.models.goal import Aspiration, Goal, GoalMetric, GoalStatus, ProgressType
from src.models.habit import Habit
from src.models.recurrence import RecurrenceKind, RecurrenceRule
from src.models.step import DailyStep

logger = structlog.get_logger(__name__)


def _coerce_date(value: Any, info: ValidationInfo) -> Any:
    """Normalize date, datetime and ISO strings to a local calendar date."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    tz = (info.context or {}).get("tz")
    try:
        return to_local_date(value, tz)
    except InvalidDate as e:
        raise ValueError(str(e)) from e


LocalDate = Annotated[date, BeforeValidator(_coerce_date)]
OptionalLocalDate = Annotated[date | None, BeforeValidator(_coerce_date)]


# =============================================================================
# Records
# =============================================================================


class HabitRecord(BaseModel):
    """Stored habit row."""

    DATE_FIELDS: ClassVar[frozenset[str]] = frozenset({"start_date", "created_at"})

    id: str
    name: str = ""
    frequency: str | None = None
    selected_days: list[str | int] = Field(default_factory=list)
    day_of_month: int | None = None
    always_show: bool = False
    habit_completions: dict[date, bool | None] = Field(default_factory=dict)
    xp_reward: int = Field(1, ge=0)
    aspiration_id: str | None = None
    goal_id: str | None = None
    start_date: OptionalLocalDate = None
    created_at: OptionalLocalDate = None

    def to_rule(self) -> RecurrenceRule:
        anchor = self.start_date or self.created_at
        kind = RecurrenceKind.parse(self.frequency)
        if kind is None:
            return RecurrenceRule.unknown(self.frequency, anchor_date=anchor)
        if kind == RecurrenceKind.DAILY:
            return RecurrenceRule.daily(anchor_date=anchor)
        if kind == RecurrenceKind.ALWAYS_SHOW:
            return RecurrenceRule.always()
        if kind in (RecurrenceKind.WEEKLY, RecurrenceKind.CUSTOM):
            build = RecurrenceRule.weekly if kind == RecurrenceKind.WEEKLY else RecurrenceRule.custom
            return build(self.selected_days, anchor_date=anchor, allow_empty=self.always_show)
        return self._monthly_rule(anchor)

    def _monthly_rule(self, anchor: date | None) -> RecurrenceRule:
        days: set[int] = set()
        patterns: list[str] = []
        for raw in self.selected_days:
            if isinstance(raw, int) or raw.strip().isdigit():
                days.add(int(raw))
            else:
                patterns.append(raw)
        if self.day_of_month is not None:
            days.add(self.day_of_month)
        single = days.pop() if len(days) == 1 else None
        return RecurrenceRule.monthly(
            single,
            days=days,
            anchor_date=anchor,
            weekdays=patterns,
        )

    def to_domain(self) -> Habit:
        return Habit(
            id=self.id,
            name=self.name,
            rule=self.to_rule(),
            always_show=self.always_show,
            completions={
                d: done for d, done in self.habit_completions.items() if done is not None
            },
            xp_reward=self.xp_reward,
            aspiration_id=self.aspiration_id,
            goal_id=self.goal_id,
            start_date=self.start_date,
            created_at=self.created_at,
        )


class StepRecord(BaseModel):
    """Stored daily step row."""

    DATE_FIELDS: ClassVar[frozenset[str]] = frozenset({"date", "completed_at"})

    id: str
    day: LocalDate = Field(alias="date")
    title: str = ""
    goal_id: str | None = None
    aspiration_id: str | None = None
    completed: bool = False
    completed_at: OptionalLocalDate = None
    is_important: bool = False
    is_urgent: bool = False
    xp_reward: int = Field(1, ge=0)
    recurring: bool = False

    def to_domain(self) -> DailyStep:
        return DailyStep(
            id=self.id,
            date=self.day,
            title=self.title,
            goal_id=self.goal_id,
            aspiration_id=self.aspiration_id,
            completed=self.completed,
            completed_at=self.completed_at,
            is_important=self.is_important,
            is_urgent=self.is_urgent,
            xp_reward=self.xp_reward,
            recurring=self.recurring,
        )


class GoalRecord(BaseModel):
    """Stored goal row."""

    DATE_FIELDS: ClassVar[frozenset[str]] = frozenset()

    id: str
    title: str = ""
    progress_type: ProgressType = ProgressType.COMBINED
    progress_percentage: float = 0
    progress_current: float | None = None
    progress_target: float | None = None
    aspiration_id: str | None = None
    status: GoalStatus = GoalStatus.ACTIVE

    def to_domain(self) -> Goal:
        return Goal(**self.model_dump())


class MetricRecord(BaseModel):
    """Stored goal metric row."""

    DATE_FIELDS: ClassVar[frozenset[str]] = frozenset()

    id: str
    goal_id: str
    current_value: float = 0
    target_value: float
    unit: str = ""

    def to_domain(self) -> GoalMetric:
        return GoalMetric(**self.model_dump())


class AutomationRecord(BaseModel):
    """Stored automation row."""

    DATE_FIELDS: ClassVar[frozenset[str]] = frozenset({"created_at"})

    id: str
    name: str = ""
    target_value: float
    current_value: float = 0
    update_value: float = 0
    update_frequency: str | None = None
    update_day_of_week: int | None = Field(None, ge=0, le=6)
    update_day_of_month: int | None = None
    is_active: bool = True
    target_id: str | None = None
    created_at: OptionalLocalDate = None

    def to_rule(self) -> RecurrenceRule | None:
        if self.update_frequency is None:
            return None
        kind = RecurrenceKind.parse(self.update_frequency)
        if kind == RecurrenceKind.DAILY:
            return RecurrenceRule.daily(anchor_date=self.created_at)
        if kind == RecurrenceKind.WEEKLY:
            if self.update_day_of_week is None:
                raise InvalidRule(f"Automation {self.id!r}: weekly rule requires update_day_of_week")
            # Stored 0 = Sunday; Weekday numbers start at Monday
            return RecurrenceRule.weekly(
                [Weekday.parse((self.update_day_of_week - 1) % 7)],
                anchor_date=self.created_at,
            )
        if kind == RecurrenceKind.MONTHLY:
            return RecurrenceRule.monthly(self.update_day_of_month, anchor_date=self.created_at)
        raise InvalidRule(
            f"Automation {self.id!r}: update_frequency must be daily, weekly or monthly, "
            f"got {self.update_frequency!r}"
        )

    def to_domain(self) -> Automation:
        return Automation(
            id=self.id,
            name=self.name,
            target_value=self.target_value,
            current_value=self.current_value,
            update_value=self.update_value,
            rule=self.to_rule(),
            is_active=self.is_active,
            target_id=self.target_id,
        )


class AspirationRecord(BaseModel):
    """Stored aspiration row."""

    DATE_FIELDS: ClassVar[frozenset[str]] = frozenset()

    id: str
    title: str = ""

    def to_domain(self) -> Aspiration:
        return Aspiration(id=self.id, title=self.title)


class PlanRecord(BaseModel):
    """Stored daily plan row."""

    DATE_FIELDS: ClassVar[frozenset[str]] = frozenset({"date"})

    day: LocalDate = Field(alias="date")
    planned_ids: list[str] = Field(default_factory=list)
    completed_ids: list[str] = Field(default_factory=list)

    def to_domain(self) -> DailyPlan:
        return DailyPlan(
            date=self.day,
            planned_ids=tuple(self.planned_ids),
            completed_ids=frozenset(self.completed_ids),
        )


_COLLECTIONS: dict[str, type[BaseModel]] = {
    "aspirations": AspirationRecord,
    "goals": GoalRecord,
    "metrics": MetricRecord,
    "habits": HabitRecord,
    "steps": StepRecord,
    "automations": AutomationRecord,
    "plans": PlanRecord,
}


# =============================================================================
# Snapshot
# =============================================================================


@dataclass(frozen=True)
class RejectedRecord:
    """A record skipped by a non-strict load."""

    collection: str
    record_id: str | None
    error_type: str
    message: str


@dataclass(frozen=True)
class Snapshot:
    """Point-in-time collections the engine computes over."""

    goals: tuple[Goal, ...] = ()
    habits: tuple[Habit, ...] = ()
    steps: tuple[DailyStep, ...] = ()
    metrics: tuple[GoalMetric, ...] = ()
    automations: tuple[Automation, ...] = ()
    aspirations: tuple[Aspiration, ...] = ()
    plans: DailyPlanBook = field(default_factory=DailyPlanBook)
    rejected: tuple[RejectedRecord, ...] = ()


def _convert_pydantic_error(
    error: PydanticValidationError,
    model: type[BaseModel],
    collection: str,
) -> ValidationError:
    """Map a pydantic failure onto the engine's exception taxonomy."""
    date_fields: frozenset[str] = getattr(model, "DATE_FIELDS", frozenset())
    for detail in error.errors():
        loc = detail.get("loc", ())
        field_name = loc[0] if loc else None
        if field_name in date_fields or (field_name == "habit_completions" and "[key]" in loc):
            return InvalidDate(f"{collection}: {field_name}: {detail.get('msg')}")
    first = error.errors()[0] if error.errors() else {}
    where = ".".join(str(part) for part in first.get("loc", ()))
    return ValidationError(f"{collection}: {where}: {first.get('msg', str(error))}")


def _load_record(collection: str, raw: Any, tz: str) -> Any:
    model = _COLLECTIONS[collection]
    try:
        record = model.model_validate(raw, context={"tz": tz})
    except PydanticValidationError as e:
        raise _convert_pydantic_error(e, model, collection) from e
    return record.to_domain()


def load_snapshot(
    payload: Mapping[str, Any],
    *,
    strict: bool = True,
    tz: str | None = None,
) -> Snapshot:
    """
    Validate raw records and build a Snapshot.

    Args:
        payload: Mapping of collection name ("goals", "habits", "steps",
            "metrics", "automations", "aspirations", "plans") to a list of
            records; missing collections are empty
        strict: Raise on the first bad record (True) or skip and collect it
        tz: Timezone for aware timestamps (defaults to the configured one)

    Returns:
        Snapshot with frozen domain records

    Raises:
        InvalidDate: Malformed calendar input (strict mode)
        InvalidRule: Recurrence rule that cannot be constructed (strict mode)
        ValidationError: Any other malformed record (strict mode)
    """
    tz = tz or get_engine_config().timezone
    loaded: dict[str, list[Any]] = {name: [] for name in _COLLECTIONS}
    rejected: list[RejectedRecord] = []

    for collection in _COLLECTIONS:
        raw_records = payload.get(collection) or []
        for raw in raw_records:
            try:
                loaded[collection].append(_load_record(collection, raw, tz))
            except PlanningEngineException as e:
                if strict:
                    raise
                record_id = raw.get("id") if isinstance(raw, Mapping) else None
                logger.warning(
                    "snapshot_record_rejected",
                    collection=collection,
                    record_id=record_id,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                rejected.append(
                    RejectedRecord(
                        collection=collection,
                        record_id=None if record_id is None else str(record_id),
                        error_type=type(e).__name__,
                        message=str(e),
                    )
                )

    plans = DailyPlanBook(plans={plan.date: plan for plan in loaded["plans"]})
    return Snapshot(
        goals=tuple(loaded["goals"]),
        habits=tuple(loaded["habits"]),
        steps=tuple(loaded["steps"]),
        metrics=tuple(loaded["metrics"]),
        automations=tuple(loaded["automations"]),
        aspirations=tuple(loaded["aspirations"]),
        plans=plans,
        rejected=tuple(rejected),
    )


__all__ = [
    "HabitRecord",
    "StepRecord",
    "GoalRecord",
    "MetricRecord",
    "AutomationRecord",
    "AspirationRecord",
    "PlanRecord",
    "RejectedRecord",
    "Snapshot",
    "load_snapshot",
]
