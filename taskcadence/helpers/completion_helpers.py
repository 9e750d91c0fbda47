# File: helpers/completion_helpers.py
"""Per-occurrence completion tracking for recurring tasks.

A recurring task is stored once, so completing "today's" occurrence cannot
flip the task's own flag. Completions are kept in a ledger keyed by
(task id, civil date key). The ledger is immutable: every operation returns
a new ledger, and the caller persists it with to_list() / from_list().

Clock values (completed_at) are always passed in by the caller.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any
from zoneinfo import ZoneInfo

import voluptuous as vol

from .. import const
from ..type_defs import CompletionData
from ..utils.dt_utils import dt_parse
from .instance_helpers import instance_date_key

COMPLETION_SCHEMA = vol.Schema(
    {
        vol.Required(const.DATA_COMPLETION_TASK_ID): vol.All(str, vol.Length(min=1)),
        vol.Required(const.DATA_COMPLETION_DATE): vol.Coerce(date.fromisoformat),
        vol.Optional(const.DATA_COMPLETION_IS_COMPLETED, default=True): bool,
        vol.Optional(const.DATA_COMPLETION_COMPLETED_AT): vol.Any(None, str, datetime),
    },
    extra=vol.REMOVE_EXTRA,
)


@dataclass(frozen=True, slots=True)
class OccurrenceCompletion:
    """Completion state of one occurrence.

    Attributes:
        task_id: Id of the stored (original) recurring task
        date_key: Civil date of the occurrence, "YYYY-MM-DD"
        is_completed: False for rows that record an explicit "not done"
            (as synced from another device)
        completed_at: When the occurrence was completed, if known (UTC)
    """

    task_id: str
    date_key: str
    is_completed: bool = True
    completed_at: datetime | None = None

    @property
    def key(self) -> tuple[str, str]:
        """Ledger key: (task id, date key)."""
        return self.task_id, self.date_key

    def to_dict(self) -> CompletionData:
        """Return the persisted shape."""
        data: dict[str, Any] = {
            const.DATA_COMPLETION_TASK_ID: self.task_id,
            const.DATA_COMPLETION_DATE: self.date_key,
            const.DATA_COMPLETION_IS_COMPLETED: self.is_completed,
        }
        if self.completed_at is not None:
            data[const.DATA_COMPLETION_COMPLETED_AT] = self.completed_at.isoformat()
        return data  # type: ignore[return-value]

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> OccurrenceCompletion:
        """Load one completion.

        Raises:
            vol.Invalid: the row is malformed
        """
        clean = COMPLETION_SCHEMA(dict(data))
        return cls(
            task_id=clean[const.DATA_COMPLETION_TASK_ID],
            date_key=clean[const.DATA_COMPLETION_DATE].isoformat(),
            is_completed=clean[const.DATA_COMPLETION_IS_COMPLETED],
            completed_at=dt_parse(clean.get(const.DATA_COMPLETION_COMPLETED_AT)),
        )


@dataclass(frozen=True, slots=True)
class CompletionLedger:
    """Immutable set of occurrence completions, at most one per key."""

    entries: tuple[OccurrenceCompletion, ...] = ()

    def __iter__(self) -> Iterator[OccurrenceCompletion]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    # =========================================================================
    # Queries
    # =========================================================================

    def get(
        self,
        task_id: str,
        occurrence: date | datetime,
        tz: ZoneInfo | str | None = None,
    ) -> OccurrenceCompletion | None:
        """Return the recorded completion of an occurrence, if any."""
        key = (task_id, instance_date_key(occurrence, tz))
        for entry in self.entries:
            if entry.key == key:
                return entry
        return None

    def is_completed(
        self,
        task_id: str,
        occurrence: date | datetime,
        tz: ZoneInfo | str | None = None,
    ) -> bool:
        """Check whether an occurrence has been completed.

        Args:
            task_id: Id of the stored recurring task
            occurrence: Occurrence instant (aware) or its civil date
            tz: Civil timezone override for datetime occurrences

        Returns:
            True if a completed entry exists for that task and civil date.
        """
        entry = self.get(task_id, occurrence, tz)
        return entry is not None and entry.is_completed

    def for_task(self, task_id: str) -> tuple[OccurrenceCompletion, ...]:
        """Return every entry of one task, oldest occurrence first."""
        return tuple(
            sorted(
                (entry for entry in self.entries if entry.task_id == task_id),
                key=lambda entry: entry.date_key,
            )
        )

    # =========================================================================
    # Updates (each returns a new ledger)
    # =========================================================================

    def mark(
        self,
        task_id: str,
        occurrence: date | datetime,
        is_completed: bool = True,
        *,
        completed_at: datetime | None = None,
        tz: ZoneInfo | str | None = None,
    ) -> CompletionLedger:
        """Mark an occurrence complete, or clear it with is_completed=False.

        Marking an already completed occurrence replaces its entry.

        Args:
            task_id: Id of the stored recurring task
            occurrence: Occurrence instant (aware) or its civil date
            is_completed: False removes the occurrence's entry
            completed_at: Completion time supplied by the caller
            tz: Civil timezone override for datetime occurrences
        """
        date_key = instance_date_key(occurrence, tz)
        remaining = tuple(e for e in self.entries if e.key != (task_id, date_key))
        if not is_completed:
            return CompletionLedger(remaining)
        entry = OccurrenceCompletion(
            task_id=task_id,
            date_key=date_key,
            completed_at=dt_parse(completed_at) if completed_at else None,
        )
        return CompletionLedger((*remaining, entry))

    def unmark(
        self,
        task_id: str,
        occurrence: date | datetime,
        tz: ZoneInfo | str | None = None,
    ) -> CompletionLedger:
        """Remove the completion of an occurrence."""
        return self.mark(task_id, occurrence, is_completed=False, tz=tz)

    def merge(self, incoming: Iterable[OccurrenceCompletion]) -> CompletionLedger:
        """Combine with entries from another source (e.g. a server sync).

        Incoming entries win over local entries with the same key, including
        incoming rows whose is_completed is False.
        """
        merged: dict[tuple[str, str], OccurrenceCompletion] = {
            entry.key: entry for entry in self.entries
        }
        for entry in incoming:
            merged[entry.key] = entry
        return CompletionLedger(tuple(merged.values()))

    def clear_task(self, task_id: str) -> CompletionLedger:
        """Drop every entry of one task (e.g. when the task is deleted)."""
        return CompletionLedger(
            tuple(entry for entry in self.entries if entry.task_id != task_id)
        )

    # =========================================================================
    # Persistence
    # =========================================================================

    def to_list(self) -> list[CompletionData]:
        """Return the persisted shape."""
        return [entry.to_dict() for entry in self.entries]

    @classmethod
    def from_list(cls, rows: Iterable[Mapping[str, Any]] | None) -> CompletionLedger:
        """Load a ledger, skipping malformed rows.

        Later rows win when two rows share a key.
        """
        entries: list[OccurrenceCompletion] = []
        for row in rows or ():
            try:
                entries.append(OccurrenceCompletion.from_dict(row))
            except (vol.Invalid, TypeError, ValueError) as err:
                const.LOGGER.warning("Skipping malformed completion row %r: %s", row, err)
        return cls().merge(entries)
