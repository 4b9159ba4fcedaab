"""
Custom exception hierarchy for the planning engine.

Provides structured exception types for the engine boundary:
- Configuration loading
- Boundary validation (dates, recurrence rules, plan ordering)
- Plan state transitions

All exceptions inherit from PlanningEngineException, enabling
catch-all for engine errors while keeping the ability to catch
specific error types.

Construction-time errors (InvalidDate, InvalidRule) must block the
caller's mutation. Evaluation-time anomalies (unknown recurrence kinds,
degenerate ratios) are never raised; they are recovered with a documented
default and logged as data-quality signals.
"""

from __future__ import annotations


class PlanningEngineException(Exception):
    """Base exception for all planning engine errors."""


class ConfigurationError(PlanningEngineException):
    """Invalid environment variables or engine configuration values."""


class ValidationError(PlanningEngineException):
    """Input validation, parsing, or type conversion failures."""


class InvalidDate(ValidationError):
    """Malformed or out-of-range calendar input."""


class InvalidRule(ValidationError):
    """Recurrence rule that cannot be constructed (e.g. day_of_month outside 1-31)."""


class InvalidPlanOrder(ValidationError):
    """Reorder request that is not a permutation of the planned ids."""


class StateError(PlanningEngineException):
    """Invalid state transitions, missing required state."""


class PlanLockedError(StateError):
    """Planning mutation attempted on a plan whose date is in the past."""


# Data-quality signal names. These are logged, never raised.
UNKNOWN_RECURRENCE_KIND = "UnknownRecurrenceKind"
DEGENERATE_RATIO = "DegenerateRatio"


__all__ = [
    "PlanningEngineException",
    "ConfigurationError",
    "ValidationError",
    "InvalidDate",
    "InvalidRule",
    "InvalidPlanOrder",
    "StateError",
    "PlanLockedError",
    "UNKNOWN_RECURRENCE_KIND",
    "DEGENERATE_RATIO",
]
