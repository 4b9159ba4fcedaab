"""
Shared test fixtures for the planning engine.

This module provides common fixtures used across all test modules:
- Environment setup (timezone, thresholds)
- A fresh EngineConfig per test
- A FixedClock pinned to a known date
- Sample habits, steps, goals and a raw snapshot payload

Usage:
    All fixtures are automatically available to any test in the tests/ directory.
    pytest discovers conftest.py files and makes their fixtures available
    to all tests in the same directory and below.
"""

from __future__ import annotations

import os
from datetime import date

import pytest

# ---------------------------------------------------------------------------
# 1. Environment setup -- must run before any application imports
#    so that the lazily loaded EngineConfig sees deterministic values.
# ---------------------------------------------------------------------------

os.environ.setdefault("PLANNER_TIMEZONE", "Europe/Prague")
os.environ.setdefault("PLANNER_BALANCE_WINDOW_DAYS", "90")
os.environ.setdefault("LOG_LEVEL", "DEBUG")

# ---------------------------------------------------------------------------
# Application imports (after env vars are set)
# ---------------------------------------------------------------------------

from src.config.engine import EngineConfig, set_engine_config  # noqa: E402
from src.core.clock import FixedClock  # noqa: E402
from src.models.goal import Goal, GoalMetric, ProgressType  # noqa: E402
from src.models.habit import Habit  # noqa: E402
from src.models.recurrence import RecurrenceRule  # noqa: E402
from src.models.step import DailyStep  # noqa: E402

# Wednesday
TODAY = date(2026, 3, 11)


# ---------------------------------------------------------------------------
# 2. engine_config -- default thresholds, installed process-wide per test
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def engine_config():
    """
    Install a default ``EngineConfig`` for every test and reset it afterwards.

    Tests that need other thresholds build their own config and pass it
    explicitly, or call ``set_engine_config`` themselves.
    """
    config = EngineConfig()
    set_engine_config(config)
    yield config
    set_engine_config(None)


# ---------------------------------------------------------------------------
# 3. clock -- FixedClock pinned to TODAY
# ---------------------------------------------------------------------------

@pytest.fixture()
def today() -> date:
    return TODAY


@pytest.fixture()
def clock() -> FixedClock:
    return FixedClock(TODAY)


# ---------------------------------------------------------------------------
# 4. Sample domain records
# ---------------------------------------------------------------------------

@pytest.fixture()
def daily_habit() -> Habit:
    return Habit(id="h-daily", rule=RecurrenceRule.daily(), aspiration_id="asp-health")


@pytest.fixture()
def mwf_habit() -> Habit:
    """Custom rule on Monday, Wednesday and Friday."""
    return Habit(
        id="h-mwf",
        rule=RecurrenceRule.custom(["monday", "wednesday", "friday"]),
        aspiration_id="asp-health",
    )


@pytest.fixture()
def sample_steps() -> list[DailyStep]:
    return [
        DailyStep(id="s-overdue", date=date(2026, 3, 9), goal_id="g-run", is_important=True),
        DailyStep(id="s-today", date=TODAY, goal_id="g-run", is_urgent=True),
        DailyStep(id="s-done", date=date(2026, 3, 10), goal_id="g-run", completed=True),
        DailyStep(id="s-future", date=date(2026, 3, 20), goal_id="g-run"),
    ]


@pytest.fixture()
def sample_goal() -> Goal:
    return Goal(id="g-run", progress_type=ProgressType.COMBINED, aspiration_id="asp-health")


@pytest.fixture()
def sample_metrics() -> list[GoalMetric]:
    return [GoalMetric(id="m-km", goal_id="g-run", current_value=80, target_value=100, unit="km")]


# ---------------------------------------------------------------------------
# 5. raw_payload -- stored rows as the read accessor returns them
# ---------------------------------------------------------------------------

@pytest.fixture()
def raw_payload() -> dict:
    """
    Provide a raw snapshot payload in the stored row shape.

    Example usage in a test::

        def test_load(raw_payload):
            snapshot = load_snapshot(raw_payload)
            assert len(snapshot.habits) == 3
    """
    return {
        "aspirations": [{"id": "asp-health", "title": "Health"}],
        "goals": [
            {
                "id": "g-run",
                "title": "Run a marathon",
                "progress_type": "combined",
                "aspiration_id": "asp-health",
            }
        ],
        "metrics": [
            {"id": "m-km", "goal_id": "g-run", "current_value": 80, "target_value": 100}
        ],
        "habits": [
            {
                "id": "h-daily",
                "name": "Stretch",
                "frequency": "daily",
                "aspiration_id": "asp-health",
                "created_at": "2026-03-01T08:30:00Z",
                "habit_completions": {"2026-03-09": True, "2026-03-10": True},
            },
            {
                "id": "h-mwf",
                "name": "Gym",
                "frequency": "custom",
                "selected_days": ["monday", "wednesday", "friday"],
                "aspiration_id": "asp-health",
            },
            {
                "id": "h-monthly",
                "name": "Review budget",
                "frequency": "monthly",
                "selected_days": ["31", "last_friday"],
            },
        ],
        "steps": [
            {"id": "s-overdue", "date": "2026-03-09", "goal_id": "g-run", "is_important": True},
            {"id": "s-today", "date": "2026-03-11", "goal_id": "g-run"},
            {"id": "s-done", "date": "2026-03-10", "goal_id": "g-run", "completed": True},
        ],
        "automations": [
            {
                "id": "a-savings",
                "name": "Savings",
                "target_value": 100000,
                "current_value": 98000,
                "update_value": 5000,
                "update_frequency": "weekly",
                "update_day_of_week": 3,
            }
        ],
        "plans": [{"date": "2026-03-10", "planned_ids": ["s-done"], "completed_ids": ["s-done"]}],
    }
