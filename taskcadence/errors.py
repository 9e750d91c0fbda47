# File: errors.py
"""Exceptions raised (or reported) by the recurrence engine."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import Any


class ErrorKind(StrEnum):
    """Tag identifying the category of a RecurrenceError."""

    INVALID_RULE = "invalid_rule"
    UNSUPPORTED_TYPE = "unsupported_type"
    CLOCK_INPUT = "clock_input"


class RecurrenceError(Exception):
    """Base class for recurrence engine errors.

    Attributes:
        kind: ErrorKind tag, so callers can branch without isinstance chains
    """

    kind: ErrorKind

    def __init__(self, message: str) -> None:
        """Initialize RecurrenceError."""
        self.message = message
        super().__init__(message)


class InvalidRuleError(RecurrenceError):
    """Raised when a rule cannot be normalized into a valid value.

    Attributes:
        field: Name of the offending rule field
        value: The value that could not be corrected
    """

    kind = ErrorKind.INVALID_RULE

    def __init__(self, field: str, value: Any, reason: str) -> None:
        """Initialize InvalidRuleError.

        Args:
            field: Name of the offending rule field
            value: The value that could not be corrected
            reason: Human-readable explanation
        """
        self.field = field
        self.value = value
        super().__init__(f"Invalid recurrence {field}={value!r}: {reason}")


class UnsupportedTypeError(RecurrenceError):
    """Reported (not raised) when the generator meets an unknown rule type."""

    kind = ErrorKind.UNSUPPORTED_TYPE

    def __init__(self, rule_type: str) -> None:
        """Initialize UnsupportedTypeError."""
        self.rule_type = rule_type
        super().__init__(f"Unsupported recurrence type: {rule_type!r}")


class ClockInputError(RecurrenceError):
    """Raised when a reference instant passed by the caller is unusable."""

    kind = ErrorKind.CLOCK_INPUT

    def __init__(self, value: datetime | Any, reason: str) -> None:
        """Initialize ClockInputError."""
        self.value = value
        super().__init__(f"Invalid reference time {value!r}: {reason}")
