"""Shared fixtures for taskcadence tests."""

from collections.abc import Iterator
from zoneinfo import ZoneInfo

import pytest

from taskcadence.utils import dt_utils
from tests.helpers import NEW_YORK, SAO_PAULO


@pytest.fixture(autouse=True)
def restore_default_timezone() -> Iterator[None]:
    """Reset the civil timezone after tests that change it."""
    original = dt_utils.get_default_timezone()
    yield
    dt_utils.set_default_timezone(original)


@pytest.fixture
def sao_paulo() -> ZoneInfo:
    """Return the default civil timezone."""
    return SAO_PAULO


@pytest.fixture
def new_york() -> ZoneInfo:
    """Return a timezone that still observes DST."""
    return NEW_YORK
