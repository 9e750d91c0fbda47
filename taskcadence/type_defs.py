# File: type_defs.py
"""Type definitions for taskcadence.

Closed enumerations for the two rule discriminators, plus the TypedDict that
describes the persisted rule shape stored on the owning task record.
"""

from __future__ import annotations

from enum import StrEnum
from typing import NotRequired, TypedDict


class RecurrenceType(StrEnum):
    """Cadence of a recurrence rule."""

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"
    CUSTOM = "custom"


class EndType(StrEnum):
    """How a recurring series terminates."""

    NEVER = "never"
    DATE = "date"
    COUNT = "count"


class RecurrenceData(TypedDict):
    """Persisted rule as stored on a task.

    Optional keys are omitted when absent, never stored as null.
    """

    type: str
    interval: int
    daysOfWeek: NotRequired[list[int]]
    dayOfMonth: int
    endType: str
    endDate: NotRequired[str]  # ISO 8601 datetime
    endCount: NotRequired[int]


class CompletionData(TypedDict):
    """Persisted completion of one occurrence of a recurring task."""

    taskId: str
    date: str  # civil date, YYYY-MM-DD
    isCompleted: bool
    completedAt: NotRequired[str]  # ISO 8601 datetime
