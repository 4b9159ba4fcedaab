"""
Lib package for the planning engine.

Contains shared utilities:
- exceptions.py: Exception hierarchy rooted at PlanningEngineException
- errors.py: Error codes and response builder for transport layers
- logging.py: structlog configuration
"""

from src.lib.errors import (
    CONFIGURATION_ERROR,
    INTERNAL_ERROR,
    INVALID_DATE,
    INVALID_PLAN_ORDER,
    INVALID_RULE,
    PLAN_LOCKED,
    STATE_ERROR,
    VALIDATION_ERROR,
    build_error_response,
    error_code_for,
    error_response_for,
    get_error_message,
)
from src.lib.exceptions import (
    DEGENERATE_RATIO,
    UNKNOWN_RECURRENCE_KIND,
    ConfigurationError,
    InvalidDate,
    InvalidPlanOrder,
    InvalidRule,
    PlanLockedError,
    PlanningEngineException,
    StateError,
    ValidationError,
)

__all__ = [
    # Exceptions
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
    # Error codes
    "INVALID_DATE",
    "INVALID_RULE",
    "INVALID_PLAN_ORDER",
    "PLAN_LOCKED",
    "VALIDATION_ERROR",
    "STATE_ERROR",
    "CONFIGURATION_ERROR",
    "INTERNAL_ERROR",
    "get_error_message",
    "build_error_response",
    "error_code_for",
    "error_response_for",
]
