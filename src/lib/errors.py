"""
Centralized Error Response Builder for the planning engine.

Provides consistent error codes and messages so that whatever transport
wraps the engine (REST handler, CLI, test harness) can surface
construction-time failures as explicit, structured failures.

Error codes are constants that map to default message strings.
The builder returns structured error dicts:
{ "code": "...", "message": "...", "details": {...} }
"""

from __future__ import annotations

from typing import Any

from src.lib.exceptions import (
    ConfigurationError,
    InvalidDate,
    InvalidPlanOrder,
    InvalidRule,
    PlanLockedError,
    PlanningEngineException,
    StateError,
    ValidationError,
)

# =============================================================================
# Error Code Constants
# =============================================================================

INVALID_DATE = "INVALID_DATE"
INVALID_RULE = "INVALID_RULE"
INVALID_PLAN_ORDER = "INVALID_PLAN_ORDER"
PLAN_LOCKED = "PLAN_LOCKED"
VALIDATION_ERROR = "VALIDATION_ERROR"
STATE_ERROR = "STATE_ERROR"
CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
INTERNAL_ERROR = "INTERNAL_ERROR"

# =============================================================================
# Message Registry
# =============================================================================

_ERROR_MESSAGES: dict[str, str] = {
    INVALID_DATE: "The calendar date is malformed or out of range.",
    INVALID_RULE: "The recurrence rule is invalid.",
    INVALID_PLAN_ORDER: "The new order must contain exactly the planned items.",
    PLAN_LOCKED: "Plans for past dates can no longer be changed.",
    VALIDATION_ERROR: "Invalid input. Please check your request.",
    STATE_ERROR: "The requested change is not allowed in the current state.",
    CONFIGURATION_ERROR: "The engine configuration is invalid.",
    INTERNAL_ERROR: "An internal error occurred. Please try again.",
}

# Most specific class first
_EXCEPTION_CODES: list[tuple[type[PlanningEngineException], str]] = [
    (InvalidDate, INVALID_DATE),
    (InvalidRule, INVALID_RULE),
    (InvalidPlanOrder, INVALID_PLAN_ORDER),
    (PlanLockedError, PLAN_LOCKED),
    (ValidationError, VALIDATION_ERROR),
    (StateError, STATE_ERROR),
    (ConfigurationError, CONFIGURATION_ERROR),
]


# =============================================================================
# Error Response Builder
# =============================================================================


def get_error_message(code: str) -> str:
    """
    Get the default message for a given error code.

    Falls back to a generic message if the error code is unknown.

    Args:
        code: Error code constant (e.g. INVALID_DATE, PLAN_LOCKED)

    Returns:
        Message string
    """
    return _ERROR_MESSAGES.get(code, "An error occurred.")


def build_error_response(
    code: str,
    message: str | None = None,
    details: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """
    Build a structured error response dict.

    If no message is provided, the default message for the error code
    is used automatically.

    Args:
        code: Error code constant (e.g. INVALID_RULE)
        message: Optional override message
        details: Optional additional error details

    Returns:
        Structured error dict: {"code": str, "message": str, "details": dict | None}
    """
    resolved_message = message if message is not None else get_error_message(code)
    error: dict[str, Any] = {
        "code": code,
        "message": resolved_message,
    }
    if details is not None:
        error["details"] = details
    return error


def error_code_for(exc: BaseException) -> str:
    """Map an exception to its error code (INTERNAL_ERROR for foreign exceptions)."""
    for exc_type, code in _EXCEPTION_CODES:
        if isinstance(exc, exc_type):
            return code
    return INTERNAL_ERROR


def error_response_for(
    exc: BaseException,
    details: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """
    Build a structured error response from an exception.

    Engine exceptions carry their own message; anything else is reported
    with the generic internal-error message so internals do not leak.

    Args:
        exc: The exception raised by an engine operation
        details: Optional additional error details

    Returns:
        Structured error dict
    """
    code = error_code_for(exc)
    message = str(exc) if isinstance(exc, PlanningEngineException) and str(exc) else None
    return build_error_response(code, message=message, details=details)


__all__ = [
    # Error code constants
    "INVALID_DATE",
    "INVALID_RULE",
    "INVALID_PLAN_ORDER",
    "PLAN_LOCKED",
    "VALIDATION_ERROR",
    "STATE_ERROR",
    "CONFIGURATION_ERROR",
    "INTERNAL_ERROR",
    # Functions
    "get_error_message",
    "build_error_response",
    "error_code_for",
    "error_response_for",
]
