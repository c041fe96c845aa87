"""Shared fixtures for Pointwise tests."""

from datetime import UTC, datetime
from zoneinfo import ZoneInfo

import pytest

# Wednesday 2025-01-15 12:00 UTC (07:00 in America/New_York)
REFERENCE_NOW = datetime(2025, 1, 15, 12, 0, 0, tzinfo=UTC)


@pytest.fixture
def now() -> datetime:
    """Return the fixed reference instant most tests run against."""
    return REFERENCE_NOW


@pytest.fixture
def utc_tz() -> ZoneInfo:
    """Return UTC timezone."""
    return ZoneInfo("UTC")


@pytest.fixture
def local_tz() -> ZoneInfo:
    """Return a local timezone with DST (America/New_York)."""
    return ZoneInfo("America/New_York")
