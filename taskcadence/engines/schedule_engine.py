"""Schedule Engine for taskcadence.

Occurrence generation for recurrence rules:
- `dateutil.rrule` for day and week stepping (DAILY, WEEKLY with weekday sets)
- `dateutil.relativedelta` for month/year arithmetic with clamping
  (day 31 in April = April 30, Feb 29 in 2025 = Feb 28)
- civil-date stepping with wall-clock reconstruction through dt_utils, so an
  occurrence keeps the anchor's local time across DST changes

Series model: the anchor is occurrence index 0. Every later occurrence is a
rule match strictly after the anchor, in increasing order. SeriesTerminator
decides where the series ends.

IMPORTANT: nothing here reads the runtime clock. Callers pass "now".
"""

from __future__ import annotations

from collections.abc import Iterator
from datetime import date, datetime, time, timedelta
from itertools import islice
from typing import ClassVar
from zoneinfo import ZoneInfo

from dateutil.relativedelta import relativedelta
from dateutil.rrule import DAILY, FR, MO, SA, SU, TH, TU, WE, WEEKLY, rrule

from .. import const
from ..errors import ClockInputError, UnsupportedTypeError
from ..rule import RecurrenceRule, normalize
from ..type_defs import EndType, RecurrenceType
from ..utils.dt_utils import (
    as_local,
    civil_weekday,
    require_aware,
    start_of_civil_week,
    to_instant,
)

_ONE_MICROSECOND = timedelta(microseconds=1)

# rrule weekday constants indexed 0 = Sunday ... 6 = Saturday
_RRULE_WEEKDAYS = (SU, MO, TU, WE, TH, FR, SA)


def _midnight(civil_date: date) -> datetime:
    """Naive wall-clock midnight of a civil date, used as rrule dtstart."""
    return datetime.combine(civil_date, time())


class SeriesTerminator:
    """Decides whether a candidate occurrence still belongs to its series.

    All methods are static - no instance state.
    """

    @staticmethod
    def is_in_series(
        rule: RecurrenceRule,
        anchor: datetime,
        candidate: datetime,
        occurrence_index: int,
    ) -> bool:
        """Check a candidate against the rule's end condition.

        Args:
            rule: The recurrence rule
            anchor: First occurrence of the series (index 0)
            candidate: Candidate occurrence instant
            occurrence_index: 0-based position of candidate in the series

        Returns:
            True if the candidate is part of the series.
        """
        if rule.end_type == EndType.DATE:
            return rule.end_date is not None and candidate <= rule.end_date
        if rule.end_type == EndType.COUNT:
            return rule.end_count is not None and occurrence_index < rule.end_count
        return True


class OccurrenceGenerator:
    """Computes occurrences of a recurrence rule relative to an anchor.

    Handles all rule types:
    - DAILY / CUSTOM: every `interval` days
    - WEEKLY: every `interval` weeks, optionally on a weekday set
    - MONTHLY: `day_of_month` every `interval` months, clamped to month length
    - YEARLY: anchor month/day every `interval` years, Feb 29 clamped

    A rule with an unrecognized type does not raise: `next` returns None,
    `take` returns [], and `error` holds an UnsupportedTypeError.
    """

    # Days between occurrences for fixed-length cadences
    FIXED_STEP_DAYS: ClassVar[dict[RecurrenceType, int]] = {
        RecurrenceType.DAILY: 1,
        RecurrenceType.CUSTOM: 1,
        RecurrenceType.WEEKLY: const.DAYS_PER_WEEK,
    }

    # Mapping from fixed-length cadences to rrule frequencies
    FREQUENCY_TO_RRULE: ClassVar[dict[RecurrenceType, int]] = {
        RecurrenceType.DAILY: DAILY,
        RecurrenceType.CUSTOM: DAILY,
        RecurrenceType.WEEKLY: WEEKLY,
    }

    def __init__(
        self,
        rule: RecurrenceRule,
        anchor: datetime,
        tz: ZoneInfo | str | None = None,
    ) -> None:
        """Initialize the generator.

        Args:
            rule: Recurrence rule, normalized here before use
            anchor: First occurrence (aware datetime), usually the task due date
            tz: Civil timezone override. Uses the default civil zone if omitted.

        Raises:
            ClockInputError: anchor is not a timezone-aware datetime
            InvalidRuleError: a rule field cannot be normalized
        """
        rule = normalize(rule)
        self._rule = rule
        self._tz = tz
        self._anchor = require_aware(anchor, "anchor")
        self.error: UnsupportedTypeError | None = None

        if not rule.is_supported:
            self.error = UnsupportedTypeError(str(rule.type))
            const.LOGGER.warning(
                "OccurrenceGenerator: Unsupported recurrence type %r, "
                "treating as non-recurring",
                rule.type,
            )

        local_anchor = as_local(self._anchor, tz)
        self._anchor_date = local_anchor.date()
        self._hour = local_anchor.hour
        self._minute = local_anchor.minute
        self._sub_minute = timedelta(
            seconds=local_anchor.second, microseconds=local_anchor.microsecond
        )

    @property
    def anchor(self) -> datetime:
        """First occurrence of the series (UTC)."""
        return self._anchor

    @property
    def rule(self) -> RecurrenceRule:
        """The rule this generator evaluates."""
        return self._rule

    # =========================================================================
    # Public API
    # =========================================================================

    def next(self, after: datetime) -> datetime | None:
        """Return the first in-series occurrence strictly after `after`.

        Args:
            after: Reference instant (aware datetime)

        Returns:
            Next occurrence as UTC datetime, or None when the series is
            exhausted or the rule type is unsupported.

        Raises:
            ClockInputError: after is not a timezone-aware datetime
        """
        return next(self.iter_from(after), None)

    def take(self, after: datetime, max_count: int) -> list[datetime]:
        """Return up to `max_count` consecutive occurrences after `after`.

        The result is strictly increasing and stops early when the series
        ends. max_count is the hard ceiling even for never-ending rules.

        Raises:
            ClockInputError: after is not a timezone-aware datetime
        """
        iterator = self.iter_from(after)
        if max_count <= 0:
            return []
        return list(islice(iterator, max_count))

    def iter_from(self, after: datetime) -> Iterator[datetime]:
        """Lazily yield in-series occurrences strictly after `after`.

        The reference instant is validated eagerly, before iteration starts.

        Raises:
            ClockInputError: after is not a timezone-aware datetime
        """
        after_utc = require_aware(after)
        return self._iter_occurrences(after_utc)

    def occurrences_between(
        self,
        start: datetime,
        end: datetime,
        limit: int = const.DEFAULT_OCCURRENCE_LIMIT,
    ) -> list[datetime]:
        """Return occurrences within [start, end], both bounds inclusive.

        Args:
            start: Range start (aware datetime)
            end: Range end (aware datetime)
            limit: Maximum occurrences to return (safety limit)

        Returns:
            List of occurrence datetimes (UTC).
        """
        end_utc = require_aware(end, "end")
        occurrences: list[datetime] = []
        for occurrence in self.iter_from(require_aware(start, "start") - _ONE_MICROSECOND):
            if occurrence > end_utc or len(occurrences) >= limit:
                break
            occurrences.append(occurrence)
        return occurrences

    def occurrence_on(self, civil_date: date) -> datetime | None:
        """Return the occurrence falling on a civil date, if any.

        Args:
            civil_date: Calendar date in the civil timezone

        Returns:
            Occurrence instant (UTC), or None if the series skips that day.
        """
        day_start = to_instant(civil_date, 0, 0, self._tz)
        next_day_start = to_instant(civil_date + timedelta(days=1), 0, 0, self._tz)
        occurrence = self.next(day_start - _ONE_MICROSECOND)
        if occurrence is not None and occurrence < next_day_start:
            return occurrence
        return None

    def occurs_on(self, civil_date: date) -> bool:
        """Check whether any occurrence falls on a civil date."""
        return self.occurrence_on(civil_date) is not None

    def to_rrule_string(self) -> str:
        """Generate an RFC 5545 RRULE string for iCal export.

        Month-length clamping is expressed with BYSETPOS=-1 over the candidate
        days, so "day 31" yields the last day of shorter months.

        The anchor is the DTSTART of the exported event. When it is not itself
        a match of the rule (weekday outside the set, other day of month),
        expanders differ on whether COUNT includes it, so a count series is
        bounded with UNTIL at its last occurrence instead.

        Returns:
            RRULE string (e.g. "FREQ=WEEKLY;INTERVAL=1;WKST=SU;BYDAY=MO,WE,FR")
            or empty string if the rule type is unsupported.
        """
        rule = self._rule
        if self.error is not None:
            return ""

        parts: list[str] = []
        if rule.type == RecurrenceType.WEEKLY:
            parts += ["FREQ=WEEKLY", f"INTERVAL={rule.interval}", "WKST=SU"]
            if rule.days_of_week:
                codes = ",".join(str(_RRULE_WEEKDAYS[d]) for d in rule.days_of_week)
                parts.append(f"BYDAY={codes}")
        elif rule.type == RecurrenceType.MONTHLY:
            parts += ["FREQ=MONTHLY", f"INTERVAL={rule.interval}"]
            parts += self._clamped_monthday_parts(rule.day_of_month)
        elif rule.type == RecurrenceType.YEARLY:
            parts += ["FREQ=YEARLY", f"INTERVAL={rule.interval}"]
            if (self._anchor_date.month, self._anchor_date.day) == (2, 29):
                parts.append("BYMONTH=2")
                parts += self._clamped_monthday_parts(29)
        else:
            parts += ["FREQ=DAILY", f"INTERVAL={rule.interval}"]

        until = rule.end_date if rule.end_type == EndType.DATE else None
        if rule.end_type == EndType.COUNT and rule.end_count is not None:
            if self._anchor_matches_rule():
                parts.append(f"COUNT={rule.end_count}")
            else:
                until = self.take(self._anchor - _ONE_MICROSECOND, rule.end_count)[-1]
        if until is not None:
            parts.append(f"UNTIL={until.strftime(const.RRULE_UNTIL_FORMAT)}")

        return ";".join(parts)

    # =========================================================================
    # Private: iteration
    # =========================================================================

    def _iter_occurrences(self, after_utc: datetime) -> Iterator[datetime]:
        if self.error is not None:
            return

        rule = self._rule
        if self._anchor > after_utc:
            if not SeriesTerminator.is_in_series(rule, self._anchor, self._anchor, 0):
                return
            yield self._anchor

        from_date = as_local(after_utc, self._tz).date()
        skipped = 0
        for index, civil_date in self._iter_matches(from_date):
            candidate = self._instant_for(civil_date)
            if candidate <= after_utc:
                skipped += 1
                if skipped >= const.MAX_DATE_CALCULATION_ITERATIONS:
                    const.LOGGER.warning(
                        "OccurrenceGenerator: Max iterations reached for %s", rule.type
                    )
                    return
                continue
            if not SeriesTerminator.is_in_series(rule, self._anchor, candidate, index):
                return
            yield candidate

    def _instant_for(self, civil_date: date) -> datetime:
        """Build the occurrence instant at the anchor's wall-clock time."""
        return (
            to_instant(civil_date, self._hour, self._minute, self._tz) + self._sub_minute
        )

    def _iter_matches(self, from_date: date) -> Iterator[tuple[int, date]]:
        """Yield (index, civil date) of matches strictly after the anchor.

        Starts at or shortly before the first match on or after from_date,
        so callers never walk the series from the anchor.
        """
        rule_type = self._rule.type
        if rule_type == RecurrenceType.WEEKLY and self._rule.days_of_week:
            return self._iter_weekday_set(from_date)
        if rule_type == RecurrenceType.MONTHLY:
            return self._iter_monthly(from_date)
        if rule_type == RecurrenceType.YEARLY:
            return self._iter_yearly(from_date)
        return self._iter_fixed_step(from_date, RecurrenceType(rule_type))

    def _iter_fixed_step(
        self, from_date: date, rule_type: RecurrenceType
    ) -> Iterator[tuple[int, date]]:
        interval = self._rule.interval
        step = self.FIXED_STEP_DAYS[rule_type] * interval
        elapsed = (from_date - self._anchor_date).days
        first = max(1, -(-elapsed // step))

        # rrule restarts at the fast-forwarded match, keeping the anchor's phase
        matches = rrule(
            self.FREQUENCY_TO_RRULE[rule_type],  # type: ignore[arg-type]
            interval=interval,
            dtstart=_midnight(self._anchor_date + timedelta(days=first * step)),
        )
        for offset, match in enumerate(matches):
            yield first + offset, match.date()

    def _iter_weekday_set(self, from_date: date) -> Iterator[tuple[int, date]]:
        days = self._rule.days_of_week
        interval = self._rule.interval
        anchor_week = start_of_civil_week(self._anchor_date)
        anchor_weekday = civil_weekday(self._anchor_date)
        first_week_size = sum(1 for d in days if d > anchor_weekday)

        weeks_elapsed = (
            start_of_civil_week(from_date) - anchor_week
        ).days // const.DAYS_PER_WEEK
        k = max(0, weeks_elapsed // interval)
        index = 1 if k == 0 else 1 + first_week_size + (k - 1) * len(days)

        # Weeks start on Sunday; dtstart is the Sunday of eligible week k
        matches = rrule(
            WEEKLY,
            interval=interval,
            wkst=SU,
            byweekday=[_RRULE_WEEKDAYS[d] for d in days],
            dtstart=_midnight(anchor_week + timedelta(weeks=k * interval)),
        )
        for match in matches:
            match_date = match.date()
            if match_date <= self._anchor_date:
                continue
            yield index, match_date
            index += 1

    def _iter_monthly(self, from_date: date) -> Iterator[tuple[int, date]]:
        interval = self._rule.interval
        # Same-month match counts only if it lands after the anchor day
        first_k = 0 if self._monthly_date(0) > self._anchor_date else 1
        months_elapsed = (from_date.year - self._anchor_date.year) * const.MONTHS_PER_YEAR + (
            from_date.month - self._anchor_date.month
        )
        k = max(first_k, months_elapsed // interval)
        while True:
            yield k - first_k + 1, self._monthly_date(k)
            k += 1

    def _monthly_date(self, k: int) -> date:
        # Absolute day= is clamped by relativedelta to the target month's length
        return self._anchor_date + relativedelta(
            months=k * self._rule.interval, day=self._rule.day_of_month
        )

    def _iter_yearly(self, from_date: date) -> Iterator[tuple[int, date]]:
        interval = self._rule.interval
        k = max(1, (from_date.year - self._anchor_date.year) // interval)
        while True:
            # Always computed from the anchor so Feb 29 comes back in leap years
            yield k, self._anchor_date + relativedelta(years=k * interval)
            k += 1

    def _anchor_matches_rule(self) -> bool:
        """Whether the anchor date is itself a match of the rule pattern."""
        rule = self._rule
        if rule.type == RecurrenceType.WEEKLY and rule.days_of_week:
            return civil_weekday(self._anchor_date) in rule.days_of_week
        if rule.type == RecurrenceType.MONTHLY:
            return self._monthly_date(0) == self._anchor_date
        return True

    @staticmethod
    def _clamped_monthday_parts(day_of_month: int) -> list[str]:
        if day_of_month <= 28:
            return [f"BYMONTHDAY={day_of_month}"]
        days = ",".join(str(d) for d in range(28, day_of_month + 1))
        return [f"BYMONTHDAY={days}", "BYSETPOS=-1"]


# =============================================================================
# Module-level convenience functions
# =============================================================================


def next_occurrence(
    rule: RecurrenceRule,
    anchor: datetime,
    after: datetime,
    tz: ZoneInfo | str | None = None,
) -> datetime | None:
    """Return the next occurrence of `rule` strictly after `after`.

    Returns None for an exhausted series or an unsupported rule type.
    """
    return OccurrenceGenerator(rule, anchor, tz).next(after)


def take_occurrences(
    rule: RecurrenceRule,
    anchor: datetime,
    after: datetime,
    max_count: int,
    tz: ZoneInfo | str | None = None,
) -> list[datetime]:
    """Return up to `max_count` occurrences of `rule` strictly after `after`."""
    return OccurrenceGenerator(rule, anchor, tz).take(after, max_count)


def next_due(
    rule: RecurrenceRule,
    due_date: datetime,
    now: datetime,
    tz: ZoneInfo | str | None = None,
) -> datetime | None:
    """Calculate the next due instant of a recurring task.

    Scheduling entry point: `now` is injected by the caller and must not be
    earlier than the task's current due date (a task that is not due yet has
    nothing to reschedule).

    Args:
        rule: The task's recurrence rule
        due_date: Current due date, the series anchor
        now: Current time supplied by the caller
        tz: Civil timezone override

    Returns:
        Next due datetime (UTC), or None if the series has ended or the rule
        type is unsupported.

    Raises:
        ClockInputError: now is not an aware datetime, or precedes due_date
    """
    now_utc = require_aware(now, "now")
    anchor_utc = require_aware(due_date, "due_date")
    if now_utc < anchor_utc:
        raise ClockInputError(now, "now is earlier than the series anchor")

    generator = OccurrenceGenerator(rule, anchor_utc, tz)
    result = generator.next(now_utc)
    if result is None and generator.error is None:
        const.LOGGER.debug("next_due: series ended for rule %s", rule)
    return result
