# File: utils/dt_utils.py
"""Date and time utilities for taskcadence.

Pure functions translating between absolute instants (aware UTC datetimes)
and civil wall-clock values in the application's civil timezone.

DST policy for wall-clock construction (see to_instant):
    - Non-existent local times (spring-forward gap) are shifted forward by
      the length of the gap, e.g. 02:30 on a 02:00 -> 03:00 night is 03:30.
    - Ambiguous local times (fall-back overlap) resolve to the earlier
      instant, i.e. the first time the wall clock shows that value.

Functions:
    - set_default_timezone / get_default_timezone: civil zone configuration
    - as_utc / as_local: timezone conversion
    - start_of_local_day: midnight of a datetime's civil day
    - to_instant / to_civil: civil date + hour/minute <-> instant
    - civil_weekday / start_of_civil_week: Sunday-based weekday helpers
    - require_aware: reject reference instants that are not aware datetimes
    - dt_parse: normalize ISO strings, dates and datetimes
    - dt_format_short: short localized date for descriptions
"""

from __future__ import annotations

from datetime import UTC, date, datetime, time, timedelta
import logging
from typing import Any
from zoneinfo import ZoneInfo

from dateutil import tz as dateutil_tz

from .. import const
from ..errors import ClockInputError

# Module-level logger
_LOGGER = logging.getLogger(__name__)

# Default timezone - can be overridden by caller
DEFAULT_TIME_ZONE: ZoneInfo = ZoneInfo(const.DEFAULT_TIME_ZONE_NAME)


# ==============================================================================
# Timezone Configuration
# ==============================================================================


def set_default_timezone(tz: ZoneInfo | str) -> None:
    """Set the civil timezone used when no explicit zone is passed.

    Args:
        tz: ZoneInfo object or IANA zone name (e.g. "America/Sao_Paulo")
    """
    global DEFAULT_TIME_ZONE  # noqa: PLW0603
    DEFAULT_TIME_ZONE = ZoneInfo(tz) if isinstance(tz, str) else tz


def get_default_timezone() -> ZoneInfo:
    """Get the current civil timezone.

    Returns:
        The configured default timezone (ZoneInfo object)
    """
    return DEFAULT_TIME_ZONE


def _zone(tz: ZoneInfo | str | None) -> ZoneInfo:
    if tz is None:
        return DEFAULT_TIME_ZONE
    if isinstance(tz, str):
        return ZoneInfo(tz)
    return tz


# ==============================================================================
# Timezone Conversion
# ==============================================================================


def as_utc(dt_obj: datetime) -> datetime:
    """Convert a datetime to UTC timezone.

    Naive datetimes are interpreted as civil wall-clock time, using the same
    DST policy as to_instant.

    Args:
        dt_obj: Datetime object

    Returns:
        Datetime in UTC timezone
    """
    if dt_obj.tzinfo is None:
        return to_instant(
            dt_obj.date(), dt_obj.hour, dt_obj.minute
        ) + timedelta(seconds=dt_obj.second, microseconds=dt_obj.microsecond)
    return dt_obj.astimezone(UTC)


def as_local(dt_obj: datetime, tz: ZoneInfo | str | None = None) -> datetime:
    """Convert a datetime to the civil timezone.

    Args:
        dt_obj: Datetime object (naive values are assumed to be UTC)
        tz: Optional timezone override. Uses DEFAULT_TIME_ZONE if not provided.

    Returns:
        Datetime in the civil timezone
    """
    if dt_obj.tzinfo is None:
        dt_obj = dt_obj.replace(tzinfo=UTC)
    return dt_obj.astimezone(_zone(tz))


def start_of_local_day(dt_obj: datetime, tz: ZoneInfo | str | None = None) -> datetime:
    """Get the first instant of a datetime's civil day.

    Goes through to_instant so a day starting inside a DST gap (midnight
    transitions, as Brazil used to have) still resolves to a real instant.

    Args:
        dt_obj: Datetime object (can be in any timezone)
        tz: Optional timezone override. Uses DEFAULT_TIME_ZONE if not provided.

    Returns:
        Start of the civil day as a UTC datetime
    """
    return to_instant(as_local(dt_obj, tz).date(), 0, 0, tz)


# ==============================================================================
# Civil <-> Instant
# ==============================================================================


def to_instant(
    civil_date: date,
    hour: int,
    minute: int,
    tz: ZoneInfo | str | None = None,
) -> datetime:
    """Build the absolute instant for a civil date and wall-clock time.

    Args:
        civil_date: Calendar date in the civil timezone
        hour: Wall-clock hour (0-23)
        minute: Wall-clock minute (0-59)
        tz: Optional timezone override. Uses DEFAULT_TIME_ZONE if not provided.

    Returns:
        Aware UTC datetime

    Raises:
        ValueError: hour or minute out of range
    """
    zone = _zone(tz)
    # fold=0 selects the earlier of two ambiguous instants
    local = datetime.combine(civil_date, time(hour, minute), tzinfo=zone)
    if not dateutil_tz.datetime_exists(local):
        shifted = dateutil_tz.resolve_imaginary(local)
        _LOGGER.debug(
            "Wall time %s does not exist in %s, shifted to %s", local, zone, shifted
        )
        local = shifted
    return local.astimezone(UTC)


def to_civil(
    instant: datetime, tz: ZoneInfo | str | None = None
) -> tuple[date, int, int]:
    """Split an instant into civil date, hour and minute.

    Args:
        instant: Aware datetime
        tz: Optional timezone override. Uses DEFAULT_TIME_ZONE if not provided.

    Returns:
        (civil_date, hour, minute) in the civil timezone
    """
    local = as_local(instant, tz)
    return local.date(), local.hour, local.minute


def civil_weekday(civil_date: date) -> int:
    """Return the weekday of a date with 0 = Sunday ... 6 = Saturday."""
    return (civil_date.weekday() + 1) % const.DAYS_PER_WEEK


def start_of_civil_week(civil_date: date) -> date:
    """Return the Sunday that starts the week containing civil_date."""
    return civil_date - timedelta(days=civil_weekday(civil_date))


def require_aware(value: Any, name: str = "after") -> datetime:
    """Validate a caller-supplied reference instant.

    Args:
        value: Candidate reference instant
        name: Parameter name used in the error message

    Returns:
        The value converted to UTC

    Raises:
        ClockInputError: value is not a timezone-aware datetime
    """
    if not isinstance(value, datetime):
        raise ClockInputError(value, f"{name} must be a datetime")
    if value.tzinfo is None or value.utcoffset() is None:
        raise ClockInputError(value, f"{name} must be timezone-aware")
    try:
        return value.astimezone(UTC)
    except OverflowError as err:
        raise ClockInputError(value, f"{name} is out of range") from err


# ==============================================================================
# Parsing and Formatting
# ==============================================================================


def dt_parse(
    dt_input: str | date | datetime | None,
    default_tzinfo: ZoneInfo | str | None = None,
) -> datetime | None:
    """Normalize string, date or datetime input to an aware UTC datetime.

    Naive values are interpreted as wall-clock time in default_tzinfo (the
    civil zone when omitted). Bare dates become civil midnight.

    Args:
        dt_input: ISO 8601 string, date or datetime, or None
        default_tzinfo: Timezone for naive inputs

    Returns:
        UTC datetime, or None if the input could not be parsed

    Example:
        >>> dt_parse("2025-04-15T09:30:00")
        datetime.datetime(2025, 4, 15, 12, 30, tzinfo=datetime.timezone.utc)
    """
    if not dt_input:
        return None

    result: datetime
    if isinstance(dt_input, str):
        try:
            result = datetime.fromisoformat(dt_input)
        except ValueError:
            _LOGGER.debug("dt_parse: could not parse %r", dt_input)
            return None
    elif isinstance(dt_input, datetime):
        result = dt_input
    elif isinstance(dt_input, date):
        return to_instant(dt_input, 0, 0, default_tzinfo)
    else:
        return None

    if result.tzinfo is None:
        instant = to_instant(result.date(), result.hour, result.minute, default_tzinfo)
        return instant + timedelta(
            seconds=result.second, microseconds=result.microsecond
        )
    return result.astimezone(UTC)


def dt_format_short(
    dt_obj: datetime | None,
    language: str = const.DEFAULT_LOCALE,
    include_time: bool = False,
    tz: ZoneInfo | str | None = None,
) -> str:
    """Format a datetime as a short civil date.

    - "31/12/2025" / "31/12/2025 18:30" (Portuguese)
    - "Dec 31, 2025" / "Dec 31, 2025 6:30 PM" (English)

    Args:
        dt_obj: Datetime to format (any timezone)
        language: Locale code
        include_time: Whether to append the wall-clock time
        tz: Optional timezone override

    Returns:
        Formatted string, or "" if dt_obj is None.
    """
    if dt_obj is None:
        return ""

    local_dt = as_local(dt_obj, tz)
    if language.lower().startswith("en"):
        text = f"{local_dt:%b} {local_dt.day}, {local_dt.year}"
        if include_time:
            text += " " + local_dt.strftime("%I:%M %p").lstrip("0")
        return text

    text = local_dt.strftime("%d/%m/%Y")
    if include_time:
        text += local_dt.strftime(" %H:%M")
    return text
