"""taskcadence - recurrence engine for recurring tasks.

Immutable recurrence rules, timezone-correct occurrence generation, series
termination and localized rule descriptions.
"""

from .engines import (
    OccurrenceGenerator,
    SeriesTerminator,
    describe,
    next_due,
    next_occurrence,
    take_occurrences,
)
from .errors import (
    ClockInputError,
    ErrorKind,
    InvalidRuleError,
    RecurrenceError,
    UnsupportedTypeError,
)
from .helpers.completion_helpers import CompletionLedger, OccurrenceCompletion
from .helpers.instance_helpers import (
    RecurringInstance,
    RecurringTask,
    instances_for_date,
    instances_for_date_range,
)
from .rule import RecurrenceRule, normalize, validate
from .type_defs import EndType, RecurrenceType
from .utils.dt_utils import to_civil, to_instant

__all__ = [
    "ClockInputError",
    "CompletionLedger",
    "EndType",
    "ErrorKind",
    "InvalidRuleError",
    "OccurrenceCompletion",
    "OccurrenceGenerator",
    "RecurrenceError",
    "RecurrenceRule",
    "RecurrenceType",
    "RecurringInstance",
    "RecurringTask",
    "SeriesTerminator",
    "UnsupportedTypeError",
    "describe",
    "instances_for_date",
    "instances_for_date_range",
    "next_due",
    "next_occurrence",
    "normalize",
    "take_occurrences",
    "to_civil",
    "to_instant",
    "validate",
]
