"""Recurrence strategies for Pointwise.

One strategy per recurrence type, all implementing the same flat interface:

- generate_occurrences(): expand a rule into ascending future instants
- find_next_occurrence(): pick the next instant a reconciliation job should
  make sure exists

Strategies are stateless; a single instance can be shared between threads.
All day-boundary math runs on the calendar of the requested zone, and "now"
is threaded through explicitly (None means the real clock).

Weekly and monthly matching runs on dateutil.rrule over local calendar days.
Day-of-month overflow: a monthly rule for day 29/30/31 skips months that do
not contain that day (no clamping, no rollover into the next month), which is
how rrule treats bymonthday.
"""

from __future__ import annotations

from datetime import datetime, time, timedelta
from typing import TYPE_CHECKING, Protocol

from dateutil.relativedelta import relativedelta
from dateutil.rrule import FR, MO, MONTHLY, SA, SU, TH, TU, WE, WEEKLY, rrule

from .. import const
from ..utils.dt_utils import (
    add_days,
    as_local,
    dt_now_utc,
    get_time_zone,
    js_weekday,
    merge_date_and_time,
    parse_time_of_day,
    start_of_day,
    start_of_local_date,
    to_date_key,
)
from .recurrence_filters import is_time_in_future

if TYPE_CHECKING:
    from collections.abc import Iterator
    from datetime import date, tzinfo

    from dateutil.rrule import weekday

    from ..type_defs import NextOccurrenceInput, RecurrenceConfig

# Indexed by Sunday-based weekday (0 = Sunday)
_RRULE_WEEKDAYS = (SU, MO, TU, WE, TH, FR, SA)


class RecurrenceStrategy(Protocol):
    """Capability interface shared by the daily, weekly and monthly strategies."""

    def generate_occurrences(
        self,
        config: RecurrenceConfig,
        start_date: datetime,
        time_zone: str | tzinfo,
        max_occurrences: int,
        now: datetime | None = None,
    ) -> list[datetime]:
        """Return up to max_occurrences future occurrences in ascending order."""

    def find_next_occurrence(
        self, params: NextOccurrenceInput, now: datetime | None = None
    ) -> datetime | None:
        """Return the next occurrence a buffer job should target, or None."""


# =============================================================================
# Shared helpers
# =============================================================================


def _valid_times(times_of_day: list[str] | None) -> list[str]:
    """Return usable HH:MM times, deduplicated and in chronological order."""
    by_minute: dict[tuple[int, int], str] = {}
    for value in times_of_day or []:
        parsed = parse_time_of_day(value)
        if parsed is None:
            const.LOGGER.warning("Recurrence: Ignoring invalid time of day %r", value)
            continue
        by_minute.setdefault(parsed, value)
    return [by_minute[key] for key in sorted(by_minute)]


def _first_time(times_of_day: list[str] | None) -> str | None:
    """Return the first valid time in configured order."""
    for value in times_of_day or []:
        if parse_time_of_day(value) is not None:
            return value
    return None


def _valid_values(values: list[int] | None, low: int, high: int) -> list[int]:
    """Keep integers in [low, high], deduplicated and sorted."""
    result = set()
    for value in values or []:
        if isinstance(value, int) and low <= value <= high:
            result.add(value)
        else:
            const.LOGGER.warning(
                "Recurrence: Ignoring out-of-range value %r (expected %d-%d)",
                value,
                low,
                high,
            )
    return sorted(result)


def _occurrences_for_day(
    day_start: datetime,
    times: list[str],
    time_zone: str | tzinfo,
    today_key: str,
    now: datetime,
    remaining: int,
) -> list[datetime]:
    """Expand one matching, non-past day into its occurrences.

    With no times configured the day yields a single occurrence at its start
    (an all-day task), which counts as pending for the whole of today.

    Instants are sorted and deduplicated before the remaining budget is
    applied: on a spring-forward day a time inside the gap is pushed past the
    transition and can land after, or on, a later configured time.
    """
    if remaining <= 0:
        return []
    if not times:
        return [day_start]

    day_key = to_date_key(day_start, time_zone)
    instants = {
        merge_date_and_time(day_start, time_str, time_zone)
        for time_str in times
        if is_time_in_future(time_str, day_key, today_key, time_zone, now)
    }
    return sorted(instants)[:remaining]


def _day_or_first_time(
    day_start: datetime, times_of_day: list[str] | None, time_zone: str | tzinfo
) -> datetime:
    """Combine a day with the first configured time, or return its start."""
    first_time = _first_time(times_of_day)
    if first_time is None:
        return day_start
    return merge_date_and_time(day_start, first_time, time_zone)


def _local_days(
    freq: int,
    first: date,
    last: date,
    byweekday: list[weekday] | None = None,
    bymonthday: list[int] | None = None,
) -> Iterator[date]:
    """Yield the calendar days an rrule matches between first and last.

    The rule runs on naive local midnights, so weekday and day-of-month
    matching happen on the user's wall-clock calendar. rrule skips months that
    lack a requested bymonthday.
    """
    if last < first:
        return
    rule = rrule(
        freq,  # type: ignore[arg-type]
        dtstart=datetime.combine(first, time.min),
        until=datetime.combine(last, time.min),
        byweekday=byweekday,
        bymonthday=bymonthday,
    )
    for occurrence in rule:
        yield occurrence.date()


def _rrule_weekdays(days_of_week: set[int]) -> list[weekday]:
    """Map Sunday-based weekday indexes to rrule weekday constants."""
    return [_RRULE_WEEKDAYS[day] for day in sorted(days_of_week)]


# =============================================================================
# Daily
# =============================================================================


class DailyRecurrenceStrategy:
    """Every calendar day, at each configured time (or once at day start)."""

    def generate_occurrences(
        self,
        config: RecurrenceConfig,
        start_date: datetime,
        time_zone: str | tzinfo,
        max_occurrences: int,
        now: datetime | None = None,
    ) -> list[datetime]:
        """Generate daily occurrences starting at the anchor's day.

        Days before today are skipped outright; the loop starts at the later
        of the anchor day and today.
        """
        tz_info = get_time_zone(time_zone)
        now = now or dt_now_utc()
        times = _valid_times(config.get("times_of_day"))
        today_key = to_date_key(now, tz_info)

        current = start_of_day(start_date, tz_info)
        if to_date_key(current, tz_info) < today_key:
            current = start_of_day(now, tz_info)

        occurrences: list[datetime] = []
        # Every day after today yields at least one occurrence, so this ends.
        while len(occurrences) < max_occurrences:
            occurrences.extend(
                _occurrences_for_day(
                    current,
                    times,
                    tz_info,
                    today_key,
                    now,
                    max_occurrences - len(occurrences),
                )
            )
            current = add_days(current, 1, tz_info)

        return occurrences

    def find_next_occurrence(
        self, params: NextOccurrenceInput, now: datetime | None = None
    ) -> datetime | None:
        """Return the rolling buffer target for a daily rule.

        Daily rules are not walked occurrence by occurrence. The target is the
        last day of the buffer horizon (today plus DAILY_BUFFER_DAYS - 1) at
        the first configured time; the anchor and last_task_date are ignored.
        """
        tz_info = get_time_zone(params["time_zone"])
        now = now or dt_now_utc()
        buffer_day = add_days(now, const.DAILY_BUFFER_DAYS - 1, tz_info)
        return _day_or_first_time(buffer_day, params.get("times_of_day"), tz_info)


# =============================================================================
# Weekly
# =============================================================================


class WeeklyRecurrenceStrategy:
    """Selected weekdays (0 = Sunday), defaulting to the anchor's weekday."""

    def generate_occurrences(
        self,
        config: RecurrenceConfig,
        start_date: datetime,
        time_zone: str | tzinfo,
        max_occurrences: int,
        now: datetime | None = None,
    ) -> list[datetime]:
        """Generate weekly occurrences with a WEEKLY rrule from the anchor day.

        Weeks that end before today are fast-forwarded, keeping the 7-day
        block alignment to the anchor. At most MAX_LOOP_ITERATIONS weeks are
        searched.
        """
        tz_info = get_time_zone(time_zone)
        now = now or dt_now_utc()
        times = _valid_times(config.get("times_of_day"))
        base_local = as_local(start_date, tz_info).date()
        today_local = as_local(now, tz_info).date()
        today_key = today_local.isoformat()
        day_set = set(
            _valid_values(
                config.get("days_of_week"), const.WEEKDAY_SUNDAY, const.WEEKDAY_SATURDAY
            )
            or [js_weekday(start_date, tz_info)]
        )

        weeks_behind = max(0, (today_local - base_local).days // const.DAYS_IN_WEEK)
        first_block = base_local + timedelta(weeks=weeks_behind)
        last_day = first_block + timedelta(weeks=const.MAX_LOOP_ITERATIONS, days=-1)

        occurrences: list[datetime] = []
        for day in _local_days(
            WEEKLY,
            max(first_block, today_local),
            last_day,
            byweekday=_rrule_weekdays(day_set),
        ):
            if len(occurrences) >= max_occurrences:
                return occurrences
            occurrences.extend(
                _occurrences_for_day(
                    start_of_local_date(day, tz_info),
                    times,
                    tz_info,
                    today_key,
                    now,
                    max_occurrences - len(occurrences),
                )
            )

        if len(occurrences) < max_occurrences:
            const.LOGGER.warning(
                "WeeklyRecurrenceStrategy: Iteration cap reached with %d of %d "
                "occurrences",
                len(occurrences),
                max_occurrences,
            )
        return occurrences

    def find_next_occurrence(
        self, params: NextOccurrenceInput, now: datetime | None = None
    ) -> datetime | None:
        """Search forward for up to WEEKLY_MAX_WEEKS_TO_SEARCH weeks.

        The search starts at the anchor's day, or the day after last_task_date
        when one is supplied, and returns the first matching weekday that is
        today or later, at the first configured time.
        """
        tz_info = get_time_zone(params["time_zone"])
        now = now or dt_now_utc()
        base_local = as_local(params["base_date"], tz_info).date()
        today_local = as_local(now, tz_info).date()
        day_set = set(
            _valid_values(
                params.get("days_of_week"), const.WEEKDAY_SUNDAY, const.WEEKDAY_SATURDAY
            )
            or [js_weekday(params["base_date"], tz_info)]
        )

        last_task_date = params.get("last_task_date")
        start_local = (
            as_local(last_task_date, tz_info).date() + timedelta(days=1)
            if last_task_date
            else base_local
        )
        search_end = start_local + timedelta(
            weeks=const.WEEKLY_MAX_WEEKS_TO_SEARCH, days=-1
        )

        for day in _local_days(
            WEEKLY,
            max(start_local, today_local),
            search_end,
            byweekday=_rrule_weekdays(day_set),
        ):
            return _day_or_first_time(
                start_of_local_date(day, tz_info), params.get("times_of_day"), tz_info
            )

        return None


# =============================================================================
# Monthly
# =============================================================================


class MonthlyRecurrenceStrategy:
    """Selected days of month, defaulting to the anchor's day of month."""

    def generate_occurrences(
        self,
        config: RecurrenceConfig,
        start_date: datetime,
        time_zone: str | tzinfo,
        max_occurrences: int,
        now: datetime | None = None,
    ) -> list[datetime]:
        """Generate monthly occurrences with a MONTHLY rrule.

        Candidates before today or before the anchor are skipped, and months
        before the current one are not visited. At most MAX_LOOP_ITERATIONS
        months are searched.
        """
        tz_info = get_time_zone(time_zone)
        now = now or dt_now_utc()
        times = _valid_times(config.get("times_of_day"))
        base_local = as_local(start_date, tz_info).date()
        today_local = as_local(now, tz_info).date()
        today_key = today_local.isoformat()
        month_days = _valid_values(
            config.get("month_days"), const.MONTH_DAY_MIN, const.MONTH_DAY_MAX
        ) or [base_local.day]

        first_month = max(base_local.replace(day=1), today_local.replace(day=1))
        last_day = first_month + relativedelta(
            months=const.MAX_LOOP_ITERATIONS, days=-1
        )

        occurrences: list[datetime] = []
        for day in _local_days(
            MONTHLY, max(base_local, today_local), last_day, bymonthday=month_days
        ):
            if len(occurrences) >= max_occurrences:
                return occurrences
            occurrences.extend(
                _occurrences_for_day(
                    start_of_local_date(day, tz_info),
                    times,
                    tz_info,
                    today_key,
                    now,
                    max_occurrences - len(occurrences),
                )
            )

        if len(occurrences) < max_occurrences:
            const.LOGGER.warning(
                "MonthlyRecurrenceStrategy: Iteration cap reached with %d of %d "
                "occurrences",
                len(occurrences),
                max_occurrences,
            )
        return occurrences

    def find_next_occurrence(
        self, params: NextOccurrenceInput, now: datetime | None = None
    ) -> datetime | None:
        """Search forward for up to MONTHLY_MAX_MONTHS_TO_SEARCH months.

        Without last_task_date the first candidate on or after the anchor is
        eligible; with it, only candidates strictly after that day are. In
        both cases candidates before today are skipped.
        """
        tz_info = get_time_zone(params["time_zone"])
        now = now or dt_now_utc()
        base_local = as_local(params["base_date"], tz_info).date()
        today_local = as_local(now, tz_info).date()
        month_days = _valid_values(
            params.get("month_days"), const.MONTH_DAY_MIN, const.MONTH_DAY_MAX
        ) or [base_local.day]

        last_task_date = params.get("last_task_date")
        if last_task_date:
            last_local = as_local(last_task_date, tz_info).date()
            floor_local = last_local
            first_eligible = last_local + timedelta(days=1)
        else:
            floor_local = first_eligible = base_local
        search_end = floor_local.replace(day=1) + relativedelta(
            months=const.MONTHLY_MAX_MONTHS_TO_SEARCH, days=-1
        )

        for day in _local_days(
            MONTHLY,
            max(first_eligible, today_local),
            search_end,
            bymonthday=month_days,
        ):
            return _day_or_first_time(
                start_of_local_date(day, tz_info), params.get("times_of_day"), tz_info
            )

        return None
