"""
Tests for the custom exception hierarchy.

Verifies:
- All exceptions are subclasses of PlanningEngineException
- Boundary validation errors share ValidationError
- PlanLockedError is a StateError
- Exception messages work correctly
"""

from __future__ import annotations

import pytest

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

# All concrete exception classes (excluding the base)
EXCEPTION_CLASSES = [
    ConfigurationError,
    ValidationError,
    InvalidDate,
    InvalidRule,
    InvalidPlanOrder,
    StateError,
    PlanLockedError,
]


class TestExceptionHierarchy:
    """Test the exception class hierarchy."""

    def test_base_is_subclass_of_exception(self) -> None:
        assert issubclass(PlanningEngineException, Exception)

    @pytest.mark.parametrize("exc_class", EXCEPTION_CLASSES)
    def test_all_are_subclass_of_base(self, exc_class: type[PlanningEngineException]) -> None:
        """Every custom exception must be a subclass of PlanningEngineException."""
        assert issubclass(exc_class, PlanningEngineException)

    @pytest.mark.parametrize("exc_class", [InvalidDate, InvalidRule, InvalidPlanOrder])
    def test_boundary_errors_are_validation_errors(
        self, exc_class: type[PlanningEngineException]
    ) -> None:
        assert issubclass(exc_class, ValidationError)

    def test_plan_locked_is_state_error(self) -> None:
        assert issubclass(PlanLockedError, StateError)
        assert not issubclass(PlanLockedError, ValidationError)

    def test_validation_error_does_not_shadow_builtin(self) -> None:
        assert not issubclass(ValidationError, ValueError)


class TestExceptionMessages:
    """Test that exception messages are preserved correctly."""

    @pytest.mark.parametrize("exc_class", EXCEPTION_CLASSES)
    def test_message_preserved(self, exc_class: type[PlanningEngineException]) -> None:
        msg = f"Test error for {exc_class.__name__}"
        assert str(exc_class(msg)) == msg

    @pytest.mark.parametrize("exc_class", EXCEPTION_CLASSES)
    def test_empty_message(self, exc_class: type[PlanningEngineException]) -> None:
        assert str(exc_class()) == ""


class TestExceptionCatching:
    """Test that exceptions can be caught at various hierarchy levels."""

    def test_catch_by_base_type(self) -> None:
        with pytest.raises(PlanningEngineException):
            raise InvalidRule("day_of_month must be within 1-31")

    def test_catch_specific_does_not_catch_sibling(self) -> None:
        with pytest.raises(InvalidDate):
            try:
                raise InvalidDate("2026-02-30")
            except InvalidRule:
                pytest.fail("InvalidRule handler caught InvalidDate")


class TestExceptionDocstrings:
    @pytest.mark.parametrize("exc_class", [PlanningEngineException, *EXCEPTION_CLASSES])
    def test_has_docstring(self, exc_class: type[PlanningEngineException]) -> None:
        assert exc_class.__doc__ is not None
        assert len(exc_class.__doc__.strip()) > 0


class TestSignalNames:
    def test_signal_names(self) -> None:
        assert UNKNOWN_RECURRENCE_KIND == "UnknownRecurrenceKind"
        assert DEGENERATE_RATIO == "DegenerateRatio"
