"""
Planning Engine facade.

Wires an injected Clock and a Snapshot into the pure recurrence, plan,
progress and accrual functions. Transport layers (REST handler, CLI,
test harness) use this class; the functions it delegates to stay usable
on their own.

Per-item recovery:
    Read views (due habits, progress, balances, accruals) evaluate items
    independently. An engine error for one item is logged as
    engine_item_skipped and the rest of the view is still returned.
    Plan mutations are different: their errors propagate so the caller's
    write is blocked.

The facade keeps the latest snapshot it produced. Plan mutations return
the write delta and replace the held snapshot with one containing the new
plan; the caller's original Snapshot is never modified.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass, replace
from datetime import date
from typing import TypeVar

import structlog

from src.config.engine import EngineConfig, get_engine_config
from src.core.calendar import DateLike, to_local_date
from src.core.clock import Clock
from src.lib.exceptions import PlanningEngineException, StateError
from src.models.automation import Automation
from src.models.daily_plan import DailyPlan
from src.models.habit import Habit
from src.services import daily_plan as plan_ops
from src.services.automation import AccrualResult, is_accrual_due, run_due_accruals
from src.services.daily_plan import Candidate, FieldUpdate, PlanMutation, PlanProgress
from src.services.progress import (
    AspirationBalance,
    AspirationInsights,
    aspiration_balance,
    classify_aspirations,
    goal_progress,
)
from src.services.recurrence import habit_streak, is_habit_due, next_occurrence
from src.services.snapshot import Snapshot

logger = structlog.get_logger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class PlanChange:
    """Result of a plan mutation: the new plan plus the write deltas."""

    plan: DailyPlan
    mutation: PlanMutation
    updates: tuple[FieldUpdate, ...] = ()


class PlanningEngine:
    """
    Facade over the planning engine for one user's snapshot.

    Usage:
        engine = PlanningEngine(load_snapshot(payload), SystemClock("Europe/Prague"))
        candidates = engine.candidates()
        change = engine.add_to_plan(candidates[0].item_id)
    """

    def __init__(
        self,
        snapshot: Snapshot,
        clock: Clock,
        config: EngineConfig | None = None,
    ) -> None:
        self._snapshot = snapshot
        self._clock = clock
        self._config = config or get_engine_config()

    @property
    def snapshot(self) -> Snapshot:
        return self._snapshot

    @property
    def config(self) -> EngineConfig:
        return self._config

    def today(self) -> date:
        return self._clock.today()

    def _day(self, day: DateLike | None) -> date:
        return self.today() if day is None else to_local_date(day, self._config.timezone)

    def _each(
        self,
        operation: str,
        items: Iterable[T],
        item_id: Callable[[T], str],
        compute: Callable[[T], object],
    ) -> list[tuple[T, object]]:
        """Run compute per item, logging and skipping items that raise engine errors."""
        results: list[tuple[T, object]] = []
        for item in items:
            try:
                results.append((item, compute(item)))
            except PlanningEngineException as e:
                logger.warning(
                    "engine_item_skipped",
                    item_id=item_id(item),
                    operation=operation,
                    error=str(e),
                    error_type=type(e).__name__,
                )
        return results

    # =========================================================================
    # Recurrence views
    # =========================================================================

    def due_habits(self, day: DateLike | None = None) -> list[Habit]:
        """Habits due on `day` (default: today), in snapshot order."""
        target = self._day(day)
        evaluated = self._each(
            "due_habits",
            self._snapshot.habits,
            lambda h: h.id,
            lambda h: is_habit_due(h, target),
        )
        return [habit for habit, due in evaluated if due]

    def next_habit_occurrence(self, habit_id: str, start: DateLike | None = None) -> date | None:
        """Next due date of a habit not yet completed, searching from `start`."""
        habit = self._habit(habit_id)
        return next_occurrence(
            habit.rule,
            habit.always_show,
            self._day(start),
            completed_dates=set(habit.completed_dates),
            horizon_days=self._config.occurrence_horizon_days,
            item_id=habit.id,
        )

    def habit_streaks(self) -> dict[str, int]:
        today = self.today()
        evaluated = self._each(
            "habit_streaks",
            self._snapshot.habits,
            lambda h: h.id,
            lambda h: habit_streak(h, today),
        )
        return {habit.id: streak for habit, streak in evaluated}

    def _habit(self, habit_id: str) -> Habit:
        for habit in self._snapshot.habits:
            if habit.id == habit_id:
                return habit
        raise StateError(f"No habit with id {habit_id!r} in the snapshot")

    # =========================================================================
    # Plans
    # =========================================================================

    def plan_for(self, day: DateLike | None = None) -> DailyPlan:
        return self._snapshot.plans.plan_for(self._day(day))

    def candidates(self) -> list[Candidate]:
        """Ranked candidates for today's plan (never committed automatically)."""
        return plan_ops.carry_over_overdue(
            self.today(),
            self._snapshot.steps,
            self.due_habits(),
        )

    def _commit(self, plan: DailyPlan, updates: tuple[FieldUpdate, ...] = ()) -> PlanChange:
        self._snapshot = replace(self._snapshot, plans=self._snapshot.plans.with_plan(plan))
        return PlanChange(plan=plan, mutation=plan_ops.plan_delta(plan), updates=updates)

    def add_to_plan(self, item_id: str, day: DateLike | None = None) -> PlanChange:
        plan = plan_ops.add_to_plan(self.plan_for(day), item_id, today=self.today())
        return self._commit(plan)

    def remove_from_plan(self, item_id: str, day: DateLike | None = None) -> PlanChange:
        plan = plan_ops.remove_from_plan(self.plan_for(day), item_id, today=self.today())
        return self._commit(plan)

    def reorder(self, ordered_ids: Iterable[str], day: DateLike | None = None) -> PlanChange:
        plan = plan_ops.reorder(self.plan_for(day), ordered_ids, today=self.today())
        return self._commit(plan)

    def complete(self, item_id: str, day: DateLike | None = None) -> PlanChange:
        """Complete a planned item and apply the updated step/habit to the held snapshot."""
        result = plan_ops.complete_and_retire(
            self.plan_for(day),
            item_id,
            self._snapshot.steps,
            self._snapshot.habits,
        )
        if result.step is not None:
            steps = tuple(result.step if s.id == item_id else s for s in self._snapshot.steps)
            self._snapshot = replace(self._snapshot, steps=steps)
        if result.habit is not None:
            habits = tuple(result.habit if h.id == item_id else h for h in self._snapshot.habits)
            self._snapshot = replace(self._snapshot, habits=habits)
        return self._commit(result.plan, result.updates)

    def remaining(self, day: DateLike | None = None) -> tuple[str, ...]:
        snapshot = self._snapshot
        return plan_ops.remaining_ids(self.plan_for(day), snapshot.steps, snapshot.habits)

    def progress_for(self, day: DateLike | None = None) -> PlanProgress:
        snapshot = self._snapshot
        return plan_ops.plan_progress(self.plan_for(day), snapshot.steps, snapshot.habits)

    # =========================================================================
    # Progress
    # =========================================================================

    def goal_progress(self) -> dict[str, int]:
        steps = self._snapshot.steps
        metrics = self._snapshot.metrics
        evaluated = self._each(
            "goal_progress",
            self._snapshot.goals,
            lambda g: g.id,
            lambda g: goal_progress(g, steps, metrics),
        )
        return {goal.id: progress for goal, progress in evaluated}

    def balances(self, window_days: int | None = None) -> dict[str, AspirationBalance]:
        today = self.today()
        evaluated = self._each(
            "aspiration_balance",
            self._snapshot.aspirations,
            lambda a: a.id,
            lambda a: aspiration_balance(
                a.id,
                self._snapshot.goals,
                self._snapshot.habits,
                self._snapshot.steps,
                today=today,
                window_days=window_days,
                config=self._config,
            ),
        )
        return {aspiration.id: balance for aspiration, balance in evaluated}

    def insights(self) -> AspirationInsights:
        return classify_aspirations(self.balances().values(), self._config)

    # =========================================================================
    # Automations
    # =========================================================================

    def due_automations(self, day: DateLike | None = None) -> list[Automation]:
        target = self._day(day)
        evaluated = self._each(
            "due_automations",
            self._snapshot.automations,
            lambda a: a.id,
            lambda a: is_accrual_due(a, target),
        )
        return [automation for automation, due in evaluated if due]

    def run_accruals(self, day: DateLike | None = None) -> list[AccrualResult]:
        """Apply today's accruals and hold the updated automations in the snapshot."""
        results = run_due_accruals(self._snapshot.automations, self._day(day))
        updated = {r.automation.id: r.automation for r in results}
        automations = tuple(updated.get(a.id, a) for a in self._snapshot.automations)
        self._snapshot = replace(self._snapshot, automations=automations)
        return results


__all__ = ["PlanChange", "PlanningEngine"]
