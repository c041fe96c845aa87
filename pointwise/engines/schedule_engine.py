"""Schedule Engine for Pointwise.

Orchestrates the recurrence strategies:
- `to_recurrence_type` / `get_strategy` resolve a rule type string
- `RecurrenceEngine` wraps one normalized rule
- `generate_occurrences` / `find_next_occurrence` are the public entry points
- `calculate_buffer_dates` plans which days a reconciliation job should fill

Unknown recurrence types are not an error here: generation returns [] and
find-next returns None. Callers that need hard failures validate first with
helpers.validation_helpers.

IMPORTANT: This module must stay free of I/O. Persistence and the "does an
instance already exist" checks belong to the caller.
"""

from __future__ import annotations

from datetime import timedelta
from typing import TYPE_CHECKING, ClassVar

from .. import const
from ..utils.dt_utils import (
    add_days,
    add_months,
    dt_now_utc,
    get_time_zone,
    start_of_day,
    to_date_key,
)
from .recurrence_strategies import (
    DailyRecurrenceStrategy,
    MonthlyRecurrenceStrategy,
    WeeklyRecurrenceStrategy,
)

if TYPE_CHECKING:
    from datetime import datetime, tzinfo

    from ..type_defs import (
        NextOccurrenceInput,
        OccurrenceGenerationInput,
        RecurrenceConfig,
    )
    from .recurrence_strategies import RecurrenceStrategy


def to_recurrence_type(value: str | None) -> str | None:
    """Convert a recurrence value ("daily") to its strategy type ("DAILY").

    Returns:
        One of RECURRENCE_TYPES, or None for "none" and unrecognized values.
    """
    if not value or not isinstance(value, str) or value == const.RECURRENCE_NONE:
        return None
    upper = value.upper()
    return upper if upper in const.RECURRENCE_TYPES else None


class RecurrenceEngine:
    """Expands a single recurrence rule.

    Holds a normalized RecurrenceConfig and the strategy for its type. An
    engine built from an unrecognized type is inert: it generates nothing and
    has no next occurrence.
    """

    STRATEGIES: ClassVar[dict[str, RecurrenceStrategy]] = {
        const.RECURRENCE_TYPE_DAILY: DailyRecurrenceStrategy(),
        const.RECURRENCE_TYPE_WEEKLY: WeeklyRecurrenceStrategy(),
        const.RECURRENCE_TYPE_MONTHLY: MonthlyRecurrenceStrategy(),
    }

    def __init__(self, config: RecurrenceConfig) -> None:
        """Initialize the engine with a rule.

        Args:
            config: RecurrenceConfig; type may be lowercase or uppercase.
                Empty day lists are normalized to None so each strategy
                applies its anchor-based default.
        """
        recurrence_type = to_recurrence_type(config.get("type"))
        self._config: RecurrenceConfig = {
            "type": recurrence_type or "",
            "times_of_day": list(config.get("times_of_day") or []),
            "days_of_week": list(config.get("days_of_week") or []) or None,
            "month_days": list(config.get("month_days") or []) or None,
        }
        self._strategy = (
            self.STRATEGIES.get(recurrence_type) if recurrence_type else None
        )

    @property
    def recurrence_type(self) -> str | None:
        """Return the resolved RECURRENCE_TYPE_* value, or None."""
        return self._config["type"] or None

    @property
    def config(self) -> RecurrenceConfig:
        """Return the normalized rule."""
        return self._config

    def generate_occurrences(
        self,
        start_date: datetime,
        time_zone: str | tzinfo,
        max_occurrences: int | None = None,
        now: datetime | None = None,
    ) -> list[datetime]:
        """Generate future occurrences of the rule.

        Args:
            start_date: Anchor of the rule (not necessarily today).
            time_zone: IANA zone used for every day boundary.
            max_occurrences: Cap on returned entries (default DEFAULT_OCCURRENCES).
            now: Reference instant (defaults to the real clock).

        Returns:
            Strictly ascending UTC instants, never more than max_occurrences.

        Raises:
            InvalidTimeZoneError: If time_zone cannot be resolved.
        """
        if self._strategy is None:
            const.LOGGER.debug(
                "RecurrenceEngine: No strategy for type %r, no occurrences",
                self._config["type"],
            )
            return []

        limit = (
            const.DEFAULT_OCCURRENCES if max_occurrences is None else max_occurrences
        )
        if limit <= 0:
            return []

        return self._strategy.generate_occurrences(
            self._config, start_date, time_zone, limit, now or dt_now_utc()
        )

    def find_next_occurrence(
        self,
        base_date: datetime,
        time_zone: str | tzinfo,
        last_task_date: datetime | None = None,
        now: datetime | None = None,
    ) -> datetime | None:
        """Find the next occurrence the buffer should reach.

        Args:
            base_date: Anchor of the rule.
            time_zone: IANA zone used for every day boundary.
            last_task_date: Start of the last materialized instance, if any.
            now: Reference instant (defaults to the real clock).

        Returns:
            UTC instant, or None when nothing matches in the search window.
        """
        if self._strategy is None:
            return None

        params: NextOccurrenceInput = {
            "recurrence_type": self._config["type"],
            "base_date": base_date,
            "times_of_day": self._config["times_of_day"],
            "time_zone": time_zone,
            "days_of_week": self._config.get("days_of_week"),
            "month_days": self._config.get("month_days"),
            "last_task_date": last_task_date,
        }
        return self._strategy.find_next_occurrence(params, now or dt_now_utc())


def get_strategy(recurrence: str | None) -> RecurrenceStrategy | None:
    """Return the strategy for a recurrence value, or None if unrecognized."""
    recurrence_type = to_recurrence_type(recurrence)
    if recurrence_type is None:
        return None
    return RecurrenceEngine.STRATEGIES.get(recurrence_type)


def generate_occurrences(
    params: OccurrenceGenerationInput, now: datetime | None = None
) -> list[datetime]:
    """Generate occurrences for a recurring task.

    Args:
        params: OccurrenceGenerationInput with the lowercase recurrence value,
            anchor, day lists, times, zone and optional max_occurrences.
        now: Reference instant (defaults to the real clock).

    Returns:
        Ascending UTC instants; [] for "none" or unrecognized types.
    """
    engine = RecurrenceEngine(
        {
            "type": params.get("recurrence", const.RECURRENCE_NONE),
            "times_of_day": params.get("times_of_day") or [],
            "days_of_week": params.get("recurrence_days") or None,
            "month_days": params.get("recurrence_month_days") or None,
        }
    )
    return engine.generate_occurrences(
        params["start_date"],
        params["time_zone"],
        params.get("max_occurrences"),
        now,
    )


def find_next_occurrence(
    params: NextOccurrenceInput, now: datetime | None = None
) -> datetime | None:
    """Find the next occurrence for a recurring task.

    Returns:
        UTC instant, or None for unrecognized types or an empty search window.
    """
    engine = RecurrenceEngine(
        {
            "type": params.get("recurrence_type", const.RECURRENCE_NONE),
            "times_of_day": params.get("times_of_day") or [],
            "days_of_week": params.get("days_of_week") or None,
            "month_days": params.get("month_days") or None,
        }
    )
    return engine.find_next_occurrence(
        params["base_date"],
        params["time_zone"],
        params.get("last_task_date"),
        now,
    )


# =============================================================================
# Buffer planning
# =============================================================================


def calculate_buffer_dates(
    params: NextOccurrenceInput, now: datetime | None = None
) -> list[datetime]:
    """Plan which days need instances to keep a rule's buffer full.

    Buffer horizons:
    - Daily: every day after the last instance through today + 29 days
    - Weekly: up to 12 occurrences after the last instance, within 11 weeks
    - Monthly: up to 12 occurrences after the last instance, within 11 months
    Without a last instance, only the next occurrence's day is returned.

    Args:
        params: NextOccurrenceInput; last_task_date is the start of the most
            recent materialized instance.
        now: Reference instant (defaults to the real clock).

    Returns:
        Ascending, distinct UTC day starts (local midnight in time_zone). The
        caller creates one instance per configured time on each day that has
        none yet.
    """
    now = now or dt_now_utc()
    tz_info = get_time_zone(params["time_zone"])
    recurrence_type = to_recurrence_type(params.get("recurrence_type"))

    next_occurrence = find_next_occurrence(params, now)
    if next_occurrence is None:
        const.LOGGER.debug(
            "calculate_buffer_dates: No next occurrence for type %r",
            params.get("recurrence_type"),
        )
        return []

    last_task_date = params.get("last_task_date")
    if last_task_date is None:
        return [start_of_day(next_occurrence, tz_info)]

    if recurrence_type == const.RECURRENCE_TYPE_DAILY:
        buffer_key = to_date_key(
            add_days(now, const.DAILY_BUFFER_DAYS - 1, tz_info), tz_info
        )
        dates: list[datetime] = []
        current = add_days(last_task_date, 1, tz_info)
        while to_date_key(current, tz_info) <= buffer_key:
            dates.append(current)
            current = add_days(current, 1, tz_info)
        return dates

    if recurrence_type == const.RECURRENCE_TYPE_WEEKLY:
        buffer_date = now + timedelta(weeks=const.WEEKLY_MAX_WEEKS_TO_SEARCH - 1)
        max_occurrences = const.DEFAULT_MAX_OCCURRENCES_WEEKLY
    else:
        buffer_date = add_months(now, const.MONTHLY_MAX_MONTHS_TO_SEARCH - 1, tz_info)
        max_occurrences = const.DEFAULT_MAX_OCCURRENCES_MONTHLY

    engine = RecurrenceEngine(
        {
            "type": recurrence_type or "",
            "times_of_day": params.get("times_of_day") or [],
            "days_of_week": params.get("days_of_week") or None,
            "month_days": params.get("month_days") or None,
        }
    )
    occurrences = engine.generate_occurrences(
        add_days(last_task_date, 1, tz_info), tz_info, max_occurrences, now
    )

    buffer_key = to_date_key(buffer_date, tz_info)
    dates = []
    for occurrence in occurrences:
        if to_date_key(occurrence, tz_info) > buffer_key:
            break
        day_start = start_of_day(occurrence, tz_info)
        if not dates or dates[-1] != day_start:
            dates.append(day_start)
    return dates
