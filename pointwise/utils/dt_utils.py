# File: utils/dt_utils.py
"""Date and time utilities for Pointwise.

Pure Python date/time functions. Every day-boundary and wall-clock computation
takes an explicit timezone (IANA name or tzinfo); nothing here reads the
server's local zone.

⚠️ UTILS PURITY: NO imports from the engines or const.py allowed.
   Uses standard library: datetime, zoneinfo, plus dateutil.

Functions:
    - get_time_zone: Resolve an IANA zone name (raises InvalidTimeZoneError)
    - dt_now_utc: Get the current datetime in UTC
    - as_utc / as_local: Timezone conversion
    - start_of_day: Start of the calendar day in a zone
    - start_of_local_date: Start of a given local calendar date
    - to_date_key: YYYY-MM-DD for the calendar day in a zone
    - get_date_time_parts: Wall-clock components in a zone
    - add_days: Start of day N calendar days later (DST-safe)
    - add_months: Same wall-clock time N months later (clamped)
    - merge_date_and_time: Wall-clock HH:MM on a day in a zone
    - parse_time_of_day: Parse "HH:MM" strings
    - dt_parse_date / dt_parse: Normalize date inputs
    - iso_instant: Canonical millisecond ISO string in UTC
    - js_weekday: Weekday index with Sunday = 0
"""

from __future__ import annotations

from datetime import UTC, date, datetime, time, timedelta, tzinfo
import logging
import re
from typing import TYPE_CHECKING
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

# Third-party date utilities
from dateutil.relativedelta import relativedelta

if TYPE_CHECKING:
    from ..type_defs import DateTimeParts

# Module-level logger
_LOGGER = logging.getLogger(__name__)

# ==============================================================================
# Constants (local copies to avoid importing const.py)
# ==============================================================================

DEFAULT_TIME_ZONE: ZoneInfo = ZoneInfo("UTC")

# "H:MM" or "HH:MM" (seconds tolerated and ignored)
_TIME_OF_DAY_PATTERN = re.compile(r"^(\d{1,2}):(\d{2})(?::\d{2})?$")


class InvalidTimeZoneError(ValueError):
    """Raised when a timezone name cannot be resolved.

    Attributes:
        time_zone: The offending value as supplied by the caller
    """

    def __init__(self, time_zone: object) -> None:
        """Initialize InvalidTimeZoneError."""
        self.time_zone = time_zone
        super().__init__(f"Invalid time zone: {time_zone!r}")


# ==============================================================================
# Timezone Resolution
# ==============================================================================


def get_time_zone(time_zone: str | tzinfo | None) -> tzinfo:
    """Resolve a timezone argument to a tzinfo.

    Args:
        time_zone: IANA zone name ("America/New_York"), a tzinfo instance,
            or None for the module default (UTC).

    Returns:
        tzinfo for the requested zone.

    Raises:
        InvalidTimeZoneError: If the name is empty, malformed or unknown.
    """
    if time_zone is None:
        return DEFAULT_TIME_ZONE
    if isinstance(time_zone, tzinfo):
        return time_zone
    if not isinstance(time_zone, str) or not time_zone.strip():
        raise InvalidTimeZoneError(time_zone)
    try:
        return ZoneInfo(time_zone)
    except (ZoneInfoNotFoundError, ValueError) as err:
        raise InvalidTimeZoneError(time_zone) from err


# ==============================================================================
# Current Date/Time Functions
# ==============================================================================


def dt_now_utc() -> datetime:
    """Return the current datetime in UTC (timezone-aware)."""
    return datetime.now(UTC)


# ==============================================================================
# Timezone Conversion
# ==============================================================================


def as_utc(dt_obj: datetime) -> datetime:
    """Convert a datetime to UTC.

    Naive datetimes are treated as UTC instants, which is how instants are
    stored.
    """
    if dt_obj.tzinfo is None:
        dt_obj = dt_obj.replace(tzinfo=UTC)
    return dt_obj.astimezone(UTC)


def as_local(dt_obj: datetime, time_zone: str | tzinfo | None = None) -> datetime:
    """Convert a datetime to the wall clock of a zone.

    Args:
        dt_obj: Datetime object (naive values are assumed UTC)
        time_zone: Target zone (defaults to UTC)

    Returns:
        Datetime expressed in the target zone
    """
    return as_utc(dt_obj).astimezone(get_time_zone(time_zone))


def _local_midnight(day: date, tz_info: tzinfo) -> datetime:
    """Return 00:00 local on a calendar date as a UTC instant.

    zoneinfo resolves the offset for that specific date, so the result is
    correct on DST transition days.
    """
    return datetime.combine(day, time.min, tzinfo=tz_info).astimezone(UTC)


def start_of_local_date(
    day: date, time_zone: str | tzinfo | None = None
) -> datetime:
    """Return 00:00 local time on a calendar date in a zone, as a UTC instant."""
    return _local_midnight(day, get_time_zone(time_zone))


def start_of_day(dt_obj: datetime, time_zone: str | tzinfo | None = None) -> datetime:
    """Get the start of the calendar day an instant falls on in a zone.

    Args:
        dt_obj: Any instant
        time_zone: Zone whose calendar decides the day

    Returns:
        UTC instant of 00:00:00.000 local time on that day
    """
    tz_info = get_time_zone(time_zone)
    return _local_midnight(as_local(dt_obj, tz_info).date(), tz_info)


def to_date_key(dt_obj: datetime, time_zone: str | tzinfo | None = None) -> str:
    """Return the YYYY-MM-DD key of the calendar day in a zone.

    Two instants share a key iff they fall on the same local calendar day.
    Keys sort lexically in chronological order.
    """
    return as_local(dt_obj, time_zone).date().isoformat()


def js_weekday(dt_obj: datetime, time_zone: str | tzinfo | None = None) -> int:
    """Return the weekday index in a zone with Sunday = 0 .. Saturday = 6."""
    return (as_local(dt_obj, time_zone).weekday() + 1) % 7


def get_date_time_parts(
    dt_obj: datetime, time_zone: str | tzinfo | None = None
) -> DateTimeParts:
    """Return the wall-clock components of an instant in a zone.

    Returns:
        DateTimeParts-shaped dict: year, month, day, hour, minute, second and
        weekday (0 = Sunday).

    Example:
        >>> get_date_time_parts(datetime(2025, 1, 15, 14, 30, tzinfo=UTC), "America/New_York")
        {'year': 2025, 'month': 1, 'day': 15, 'hour': 9, 'minute': 30, 'second': 0, 'weekday': 3}
    """
    local_dt = as_local(dt_obj, time_zone)
    return {
        "year": local_dt.year,
        "month": local_dt.month,
        "day": local_dt.day,
        "hour": local_dt.hour,
        "minute": local_dt.minute,
        "second": local_dt.second,
        "weekday": (local_dt.weekday() + 1) % 7,
    }


# ==============================================================================
# Date Arithmetic
# ==============================================================================


def add_days(
    dt_obj: datetime, amount: int, time_zone: str | tzinfo | None = None
) -> datetime:
    """Return the start of the day `amount` calendar days after dt_obj's day.

    The step is taken on the local calendar and the zone offset is recomputed
    at the target date, so a DST change inside the window does not shift the
    result off local midnight.

    Args:
        dt_obj: Any instant
        amount: Number of calendar days (negative moves backwards)
        time_zone: Zone whose calendar is used

    Returns:
        UTC instant of local midnight on the target day
    """
    tz_info = get_time_zone(time_zone)
    local_day = as_local(dt_obj, tz_info).date()
    return _local_midnight(local_day + timedelta(days=amount), tz_info)


def add_months(
    dt_obj: datetime, amount: int, time_zone: str | tzinfo | None = None
) -> datetime:
    """Move an instant by whole months on the local calendar.

    Uses relativedelta so the day is clamped to the target month's length
    (Jan 31 + 1 month = Feb 28). The local wall-clock time is preserved.
    """
    tz_info = get_time_zone(time_zone)
    local_dt = as_local(dt_obj, tz_info).replace(tzinfo=None)
    shifted = local_dt + relativedelta(months=amount)
    return shifted.replace(tzinfo=tz_info).astimezone(UTC)


# ==============================================================================
# Time-of-Day Handling
# ==============================================================================


def parse_time_of_day(value: str | None) -> tuple[int, int] | None:
    """Parse an "HH:MM" string into (hour, minute).

    Args:
        value: Time string such as "09:00" or "9:00"

    Returns:
        (hour, minute) tuple, or None if the value is malformed or out of range.
    """
    if not value or not isinstance(value, str):
        return None

    match = _TIME_OF_DAY_PATTERN.match(value.strip())
    if not match:
        return None

    hour, minute = int(match.group(1)), int(match.group(2))
    if not (0 <= hour <= 23 and 0 <= minute <= 59):
        return None
    return hour, minute


def merge_date_and_time(
    day: datetime, time_str: str | None, time_zone: str | tzinfo | None = None
) -> datetime:
    """Combine a day with a wall-clock time in a zone.

    Args:
        day: Any instant on the desired local calendar day
        time_str: "HH:MM" wall-clock time
        time_zone: Zone for both the calendar day and the wall clock

    Returns:
        UTC instant of that local time. An unparseable time yields the day's
        start unchanged. A time skipped by a spring-forward change is moved
        forward by the length of the gap (02:30 becomes 03:30 on a one-hour
        change).

    Example:
        merge_date_and_time(2025-01-15T05:00Z, "09:00", "America/New_York")
        → 2025-01-15T14:00Z
    """
    tz_info = get_time_zone(time_zone)
    local_day = as_local(day, tz_info).date()

    parsed = parse_time_of_day(time_str)
    if parsed is None:
        _LOGGER.debug("merge_date_and_time: Ignoring invalid time %r", time_str)
        return _local_midnight(local_day, tz_info)

    hour, minute = parsed
    wall_clock = datetime.combine(local_day, time(hour, minute), tzinfo=tz_info)
    result = wall_clock.astimezone(UTC)

    # fold=0 resolves a skipped time with the pre-transition offset, which
    # lands after the gap; such times do not survive a round trip
    if result.astimezone(tz_info).replace(tzinfo=None) != wall_clock.replace(
        tzinfo=None
    ):
        _LOGGER.debug(
            "merge_date_and_time: %s on %s falls in a DST gap in %s",
            time_str,
            local_day,
            tz_info,
        )
    return result


# ==============================================================================
# Date/Time Parsing and Formatting
# ==============================================================================


def dt_parse_date(date_str: str | None) -> date | None:
    """Safely parse an ISO date string (YYYY-MM-DD) into a `datetime.date`.

    Returns:
        datetime.date or None if parsing fails.
    """
    if not date_str or not isinstance(date_str, str):
        return None
    try:
        return date.fromisoformat(date_str.strip()[:10])
    except ValueError:
        return None


def dt_parse(
    dt_input: str | date | datetime | None,
    time_zone: str | tzinfo | None = None,
) -> datetime | None:
    """Normalize string/date/datetime input to an aware UTC datetime.

    Args:
        dt_input: ISO string ("2025-01-15", "2025-01-15T09:00:00Z", ...),
            date or datetime
        time_zone: Zone used for naive values and bare dates (defaults to UTC)

    Returns:
        Aware UTC datetime, or None if the input could not be parsed.

    Example:
        >>> dt_parse("2025-01-15")
        datetime.datetime(2025, 1, 15, 0, 0, tzinfo=datetime.timezone.utc)
    """
    if not dt_input:
        return None

    tz_info = get_time_zone(time_zone)
    result: datetime | None = None

    if isinstance(dt_input, str):
        try:
            result = datetime.fromisoformat(dt_input.strip())
        except ValueError:
            parsed_date = dt_parse_date(dt_input)
            if parsed_date is None:
                return None
            result = datetime.combine(parsed_date, time.min)
    elif isinstance(dt_input, datetime):
        result = dt_input
    elif isinstance(dt_input, date):
        result = datetime.combine(dt_input, time.min)
    else:
        return None

    if result.tzinfo is None:
        result = result.replace(tzinfo=tz_info)
    return result.astimezone(UTC)


def iso_instant(dt_obj: datetime) -> str:
    """Format an instant as a canonical UTC string with milliseconds.

    Example:
        datetime(2025, 1, 15, 9, 0, tzinfo=UTC) → "2025-01-15T09:00:00.000Z"
    """
    return as_utc(dt_obj).isoformat(timespec="milliseconds").replace("+00:00", "Z")
