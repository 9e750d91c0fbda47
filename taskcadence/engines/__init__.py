"""Engine modules for taskcadence.

Contains specialized computation engines:
- schedule_engine: occurrence generation, series termination, RRULE export
- description_engine: localized rule descriptions
"""

# Use relative imports within package to avoid mypy module resolution issues
from .description_engine import describe
from .schedule_engine import (
    OccurrenceGenerator,
    SeriesTerminator,
    next_due,
    next_occurrence,
    take_occurrences,
)

__all__ = [
    "OccurrenceGenerator",
    "SeriesTerminator",
    "describe",
    "next_due",
    "next_occurrence",
    "take_occurrences",
]
