# File: helpers/instance_helpers.py
"""Identifiers and expansion of materialized occurrences of recurring tasks.

A recurring task is stored once. Each occurrence shown to the user gets a
derived id "<task_id>_recurring_<epoch millis>" and a civil date key
("YYYY-MM-DD") used to record per-occurrence completion
(see completion_helpers).

instances_for_date / instances_for_date_range expand stored recurring tasks
into the occurrences a day (or calendar range) view should show.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import UTC, date, datetime, timedelta
from typing import TYPE_CHECKING
from zoneinfo import ZoneInfo

from .. import const
from ..engines.schedule_engine import OccurrenceGenerator
from ..rule import RecurrenceRule
from ..utils.dt_utils import as_local, require_aware, to_instant

if TYPE_CHECKING:
    from .completion_helpers import CompletionLedger

_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)


@dataclass(frozen=True, slots=True)
class RecurringTask:
    """A stored task with a recurrence rule.

    Attributes:
        task_id: Id of the stored task
        rule: The task's recurrence rule
        anchor: The task's due date, first occurrence of the series
    """

    task_id: str
    rule: RecurrenceRule
    anchor: datetime


@dataclass(frozen=True, slots=True)
class RecurringInstance:
    """One materialized occurrence of a recurring task."""

    instance_id: str
    task_id: str
    occurrence: datetime
    date_key: str
    is_completed: bool = False


def generate_recurring_instance_id(task_id: str, occurrence: datetime) -> str:
    """Build the id of one occurrence of a recurring task.

    Args:
        task_id: Id of the stored (original) task
        occurrence: Occurrence instant (aware datetime)

    Returns:
        Instance id, e.g. "3f2c..._recurring_1735689600000"
    """
    instant = require_aware(occurrence, "occurrence")
    millis = (instant - _EPOCH) // timedelta(milliseconds=1)
    return f"{task_id}{const.RECURRING_INSTANCE_SEPARATOR}{millis}"


def is_recurring_instance(task_id: str) -> bool:
    """Check whether an id refers to a materialized occurrence."""
    return const.RECURRING_INSTANCE_SEPARATOR in task_id


def extract_original_task_id(task_id: str) -> str:
    """Strip the occurrence suffix, returning the stored task's id."""
    return task_id.split(const.RECURRING_INSTANCE_SEPARATOR, 1)[0]


def parse_recurring_instance_id(task_id: str) -> tuple[str, datetime] | None:
    """Split an instance id into (original task id, occurrence instant).

    Returns:
        The parts, or None if the id is not a well-formed instance id.
    """
    original, sep, millis = task_id.rpartition(const.RECURRING_INSTANCE_SEPARATOR)
    if not sep or not original:
        return None
    try:
        return original, _EPOCH + timedelta(milliseconds=int(millis))
    except (ValueError, OverflowError):
        const.LOGGER.debug("Malformed recurring instance id: %s", task_id)
        return None


def instance_date_key(
    occurrence: date | datetime, tz: ZoneInfo | str | None = None
) -> str:
    """Return the civil date key ("YYYY-MM-DD") of an occurrence.

    Datetimes are converted to the civil zone first; dates are used as-is.
    """
    if isinstance(occurrence, date) and not isinstance(occurrence, datetime):
        return occurrence.isoformat()
    return as_local(require_aware(occurrence, "occurrence"), tz).date().isoformat()


def instances_for_date(
    tasks: Iterable[RecurringTask],
    civil_date: date,
    completions: CompletionLedger | None = None,
    tz: ZoneInfo | str | None = None,
) -> list[RecurringInstance]:
    """Expand recurring tasks into their occurrences on one civil date.

    Args:
        tasks: Stored recurring tasks
        civil_date: Day to expand, in the civil timezone
        completions: Ledger used to flag completed occurrences
        tz: Civil timezone override

    Returns:
        One instance per task with an occurrence that day, in task order.
    """
    instances: list[RecurringInstance] = []
    for task in tasks:
        occurrence = OccurrenceGenerator(task.rule, task.anchor, tz).occurrence_on(
            civil_date
        )
        if occurrence is not None:
            instances.append(_build_instance(task, occurrence, completions, tz))
    return instances


def instances_for_date_range(
    tasks: Iterable[RecurringTask],
    start_date: date,
    end_date: date,
    completions: CompletionLedger | None = None,
    tz: ZoneInfo | str | None = None,
    limit: int = const.DEFAULT_OCCURRENCE_LIMIT,
) -> dict[str, list[RecurringInstance]]:
    """Expand recurring tasks over an inclusive range of civil dates.

    Args:
        tasks: Stored recurring tasks
        start_date: First civil date of the range
        end_date: Last civil date of the range (inclusive)
        completions: Ledger used to flag completed occurrences
        tz: Civil timezone override
        limit: Maximum occurrences expanded per task

    Returns:
        Date key -> instances on that day. Every date in the range has a key,
        empty days map to [].
    """
    days = max(0, (end_date - start_date).days + 1)
    result: dict[str, list[RecurringInstance]] = {
        (start_date + timedelta(days=offset)).isoformat(): [] for offset in range(days)
    }
    if not days:
        return result

    range_start = to_instant(start_date, 0, 0, tz)
    range_end = to_instant(end_date + timedelta(days=1), 0, 0, tz) - timedelta(
        microseconds=1
    )
    for task in tasks:
        generator = OccurrenceGenerator(task.rule, task.anchor, tz)
        for occurrence in generator.occurrences_between(range_start, range_end, limit):
            instance = _build_instance(task, occurrence, completions, tz)
            result[instance.date_key].append(instance)
    return result


def _build_instance(
    task: RecurringTask,
    occurrence: datetime,
    completions: CompletionLedger | None,
    tz: ZoneInfo | str | None,
) -> RecurringInstance:
    date_key = instance_date_key(occurrence, tz)
    return RecurringInstance(
        instance_id=generate_recurring_instance_id(task.task_id, occurrence),
        task_id=task.task_id,
        occurrence=occurrence,
        date_key=date_key,
        is_completed=(
            completions is not None
            and completions.is_completed(task.task_id, date.fromisoformat(date_key))
        ),
    )
