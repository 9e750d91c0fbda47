"""Test helpers for taskcadence tests.

    from tests.helpers import SAO_PAULO, NEW_YORK, make_local_dt, local_dates
"""

from collections.abc import Iterable
from datetime import date, datetime
from zoneinfo import ZoneInfo

from taskcadence import const

SAO_PAULO = ZoneInfo(const.DEFAULT_TIME_ZONE_NAME)
NEW_YORK = ZoneInfo("America/New_York")
UTC = ZoneInfo("UTC")


def make_local_dt(
    year: int,
    month: int,
    day: int,
    hour: int = 9,
    minute: int = 0,
    tz: ZoneInfo = SAO_PAULO,
) -> datetime:
    """Create an aware datetime in a civil timezone (Sao Paulo by default)."""
    return datetime(year, month, day, hour, minute, tzinfo=tz)


def local_dates(occurrences: Iterable[datetime], tz: ZoneInfo = SAO_PAULO) -> list[date]:
    """Return the civil dates of a list of occurrences."""
    return [occurrence.astimezone(tz).date() for occurrence in occurrences]
