# File: rule.py
"""Recurrence rule value type, validation and persisted shape.

A RecurrenceRule is immutable. Editors never mutate a rule in place: every
change goes through RecurrenceRule.evolve(), which returns a new, validated
value. The owning task stores the rule through to_dict() / from_dict().
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
import dataclasses
from dataclasses import dataclass
from datetime import datetime
from typing import Any

import voluptuous as vol

from . import const
from .errors import InvalidRuleError
from .type_defs import EndType, RecurrenceData, RecurrenceType
from .utils.dt_utils import dt_parse


def _whole_number(value: Any) -> int:
    """Convert to int, rejecting booleans and fractional values.

    Raises:
        ValueError: value is not a whole number
    """
    if isinstance(value, bool):
        raise ValueError("expected a whole number, got a boolean")
    if isinstance(value, float) and not value.is_integer():
        raise ValueError(f"expected a whole number, got {value!r}")
    try:
        return int(value)
    except TypeError as err:
        raise ValueError(f"expected a whole number, got {value!r}") from err


# Structural check for persisted rules. Value ranges are not enforced here:
# out-of-range values are clamped by normalization instead of rejected.
RECURRENCE_SCHEMA = vol.Schema(
    {
        vol.Required(const.DATA_RULE_TYPE): vol.Coerce(str),
        vol.Optional(
            const.DATA_RULE_INTERVAL, default=const.DEFAULT_INTERVAL
        ): vol.Any(None, _whole_number),
        vol.Optional(const.DATA_RULE_DAYS_OF_WEEK, default=list): vol.Any(
            None, [_whole_number]
        ),
        vol.Optional(
            const.DATA_RULE_DAY_OF_MONTH, default=const.DEFAULT_DAY_OF_MONTH
        ): vol.Any(None, _whole_number),
        vol.Optional(const.DATA_RULE_END_TYPE, default=EndType.NEVER.value): vol.Any(
            None, vol.Coerce(str)
        ),
        vol.Optional(const.DATA_RULE_END_DATE): vol.Any(None, str, datetime),
        vol.Optional(const.DATA_RULE_END_COUNT): vol.Any(None, _whole_number),
    },
    extra=vol.REMOVE_EXTRA,
)


@dataclass(frozen=True, slots=True)
class RecurrenceRule:
    """Declarative description of a repeating schedule.

    Attributes:
        type: Cadence (RecurrenceType). Rules loaded from storage may carry an
            unrecognized raw string, which the generator reports as unsupported.
        interval: Number of type-units between occurrences (>= 1)
        days_of_week: Weekdays for weekly rules, 0 = Sunday ... 6 = Saturday.
            Empty means "same weekday as the anchor".
        day_of_month: Day for monthly rules (1-31), clamped to the month length
            when occurrences are generated
        end_type: Termination kind (EndType)
        end_date: Last instant allowed in the series (end_type = date)
        end_count: Total occurrences including the first (end_type = count)
    """

    type: RecurrenceType | str = RecurrenceType.DAILY
    interval: int = const.DEFAULT_INTERVAL
    days_of_week: tuple[int, ...] = ()
    day_of_month: int = const.DEFAULT_DAY_OF_MONTH
    end_type: EndType | str = EndType.NEVER
    end_date: datetime | None = None
    end_count: int | None = None

    @property
    def is_supported(self) -> bool:
        """Whether the rule type is one the generator knows."""
        return isinstance(self.type, RecurrenceType)

    def evolve(self, **changes: Any) -> RecurrenceRule:
        """Return a new validated rule with the given fields replaced.

        Raises:
            InvalidRuleError: the resulting rule cannot be normalized
        """
        return validate(dataclasses.replace(self, **changes))

    def to_dict(self) -> RecurrenceData:
        """Return the persisted shape, omitting absent optional fields."""
        data: dict[str, Any] = {
            const.DATA_RULE_TYPE: str(self.type),
            const.DATA_RULE_INTERVAL: self.interval,
        }
        if self.days_of_week:
            data[const.DATA_RULE_DAYS_OF_WEEK] = list(self.days_of_week)
        data[const.DATA_RULE_DAY_OF_MONTH] = self.day_of_month
        data[const.DATA_RULE_END_TYPE] = str(self.end_type)
        if self.end_date is not None:
            data[const.DATA_RULE_END_DATE] = self.end_date.isoformat()
        if self.end_count is not None:
            data[const.DATA_RULE_END_COUNT] = self.end_count
        return data  # type: ignore[return-value]

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> RecurrenceRule:
        """Load a rule from its persisted shape.

        Loading is lenient about the rule type so a rule written by a newer
        client still loads; everything else is normalized as in validate().

        Raises:
            InvalidRuleError: the data is structurally malformed, or cannot be
                normalized
        """
        try:
            clean = RECURRENCE_SCHEMA(dict(data))
        except vol.Invalid as err:
            field = str(err.path[0]) if err.path else "rule"
            raise InvalidRuleError(field, data.get(field), err.error_message) from err

        end_date_raw = clean.get(const.DATA_RULE_END_DATE)
        end_date = dt_parse(end_date_raw) if end_date_raw else None
        if end_date_raw and end_date is None:
            const.LOGGER.debug("Discarding unparseable endDate %r", end_date_raw)

        rule = cls(
            type=clean[const.DATA_RULE_TYPE],
            interval=clean[const.DATA_RULE_INTERVAL],
            days_of_week=tuple(clean[const.DATA_RULE_DAYS_OF_WEEK] or ()),
            day_of_month=clean[const.DATA_RULE_DAY_OF_MONTH],
            end_type=clean[const.DATA_RULE_END_TYPE],
            end_date=end_date,
            end_count=clean.get(const.DATA_RULE_END_COUNT),
        )
        return normalize(rule)


def validate(rule: RecurrenceRule) -> RecurrenceRule:
    """Validate and normalize a rule at the edit boundary.

    - interval < 1 is clamped to 1
    - day_of_month is clamped to [1, 31]
    - out-of-range and duplicate weekdays are dropped (result is sorted)
    - an end_type without its matching end_date/end_count falls back to never
    - fields of the inactive end kind are cleared

    Normalizing an already valid rule returns an equal rule.

    Args:
        rule: Rule to check

    Returns:
        Normalized rule

    Raises:
        InvalidRuleError: unknown type, or end_type = count with end_count < 1
    """
    return _normalize(rule, allow_unknown_type=False)


def normalize(rule: RecurrenceRule) -> RecurrenceRule:
    """Normalize a rule like validate(), keeping an unrecognized type.

    The generator applies this to every rule it is given, validated or not.

    Raises:
        InvalidRuleError: a field cannot be corrected
    """
    return _normalize(rule, allow_unknown_type=True)


def _normalize(rule: RecurrenceRule, allow_unknown_type: bool) -> RecurrenceRule:
    rule_type = _coerce_type(rule.type, allow_unknown_type)
    end_type = _coerce_end_type(rule.end_type)
    end_date = rule.end_date
    end_count = rule.end_count

    if end_type is EndType.DATE:
        end_date = dt_parse(end_date) if end_date is not None else None
        if end_date is None:
            const.LOGGER.debug("end_type=date without end_date, using never")
            end_type = EndType.NEVER
    elif end_type is EndType.COUNT:
        if end_count is None:
            const.LOGGER.debug("end_type=count without end_count, using never")
            end_type = EndType.NEVER
        else:
            end_count = _as_int(end_count, const.DATA_RULE_END_COUNT)
            if end_count < const.MIN_END_COUNT:
                raise InvalidRuleError(
                    const.DATA_RULE_END_COUNT, end_count, "must be at least 1"
                )

    if end_type is not EndType.DATE:
        end_date = None
    if end_type is not EndType.COUNT:
        end_count = None

    return RecurrenceRule(
        type=rule_type,
        interval=_normalize_interval(rule.interval),
        days_of_week=_normalize_days(rule.days_of_week),
        day_of_month=_normalize_day_of_month(rule.day_of_month),
        end_type=end_type,
        end_date=end_date,
        end_count=end_count,
    )


def _coerce_type(value: RecurrenceType | str, allow_unknown: bool) -> RecurrenceType | str:
    try:
        return RecurrenceType(value)
    except ValueError:
        if allow_unknown:
            const.LOGGER.debug("Keeping unrecognized recurrence type %r", value)
            return str(value)
        raise InvalidRuleError(
            const.DATA_RULE_TYPE, value, "unknown recurrence type"
        ) from None


def _coerce_end_type(value: EndType | str | None) -> EndType:
    try:
        return EndType(value)
    except ValueError:
        const.LOGGER.debug("Unknown end_type %r, using never", value)
        return EndType.NEVER


def _as_int(value: Any, field: str) -> int:
    try:
        return _whole_number(value)
    except ValueError as err:
        raise InvalidRuleError(field, value, "must be a whole number") from err


def _normalize_interval(value: int | None) -> int:
    if value is None:
        return const.DEFAULT_INTERVAL
    return max(const.DEFAULT_INTERVAL, _as_int(value, const.DATA_RULE_INTERVAL))


def _normalize_day_of_month(value: int | None) -> int:
    if value is None:
        return const.DEFAULT_DAY_OF_MONTH
    day = _as_int(value, const.DATA_RULE_DAY_OF_MONTH)
    return min(const.MAX_DAY_OF_MONTH, max(const.MIN_DAY_OF_MONTH, day))


def _normalize_days(values: Iterable[int] | None) -> tuple[int, ...]:
    if not values:
        return ()
    days = {
        d
        for d in values
        if isinstance(d, int)
        and not isinstance(d, bool)
        and const.SUNDAY <= d <= const.SATURDAY
    }
    return tuple(sorted(days))
