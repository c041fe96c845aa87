"""Past-date and past-time filters shared by the recurrence strategies.

These predicates are the only place that decides whether an occurrence has
already elapsed. "Now" is always read on the wall clock of the requested zone,
never the server's local zone. Every function takes an optional `now`; None
falls back to the real clock.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..utils.dt_utils import (
    dt_now_utc,
    get_date_time_parts,
    parse_time_of_day,
    to_date_key,
)

if TYPE_CHECKING:
    from collections.abc import Iterable
    from datetime import datetime, tzinfo


def is_time_in_future(
    time_str: str,
    day_key: str,
    today_key: str,
    time_zone: str | tzinfo,
    now: datetime | None = None,
) -> bool:
    """Check whether a time of day on a given day has not yet elapsed.

    Any day other than today counts as future. For today, the occurrence is
    kept when its minute is at or after the current wall-clock minute, so an
    occurrence exactly at the current minute is still pending.

    Args:
        time_str: "HH:MM" time of the occurrence
        day_key: YYYY-MM-DD of the occurrence's day in time_zone
        today_key: YYYY-MM-DD of today in time_zone
        time_zone: Zone for the wall-clock comparison
        now: Reference instant (defaults to the real clock)

    Returns:
        True if the occurrence is still pending.
    """
    if day_key != today_key:
        return True

    parsed = parse_time_of_day(time_str)
    if parsed is None:
        return False

    now_parts = get_date_time_parts(now or dt_now_utc(), time_zone)
    now_minutes = now_parts["hour"] * 60 + now_parts["minute"]
    occurrence_minutes = parsed[0] * 60 + parsed[1]
    return occurrence_minutes >= now_minutes


def is_date_in_future(
    date: datetime, time_zone: str | tzinfo, now: datetime | None = None
) -> bool:
    """Check whether a date's calendar day is today or later in a zone."""
    today_key = to_date_key(now or dt_now_utc(), time_zone)
    return to_date_key(date, time_zone) >= today_key


def filter_past_dates(
    dates: Iterable[datetime], time_zone: str | tzinfo, now: datetime | None = None
) -> list[datetime]:
    """Drop dates whose calendar day is before today in a zone."""
    today_key = to_date_key(now or dt_now_utc(), time_zone)
    return [date for date in dates if to_date_key(date, time_zone) >= today_key]
