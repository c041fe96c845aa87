"""Unit tests for schedule_engine.py.

Covers:
- Type resolution and strategy dispatch
- RecurrenceEngine config normalization
- generate_occurrences / find_next_occurrence entry points, including
  unrecognized types, caps, ordering and past filtering
- calculate_buffer_dates for daily, weekly and monthly rules
"""

from datetime import datetime, timedelta
from typing import Any

from freezegun import freeze_time
import pytest

from pointwise import const
from pointwise.engines.recurrence_strategies import (
    DailyRecurrenceStrategy,
    MonthlyRecurrenceStrategy,
    WeeklyRecurrenceStrategy,
)
from pointwise.engines.schedule_engine import (
    RecurrenceEngine,
    calculate_buffer_dates,
    find_next_occurrence,
    generate_occurrences,
    get_strategy,
    to_recurrence_type,
)
from pointwise.type_defs import NextOccurrenceInput, OccurrenceGenerationInput
from pointwise.utils.dt_utils import InvalidTimeZoneError, js_weekday, to_date_key
from tests.helpers import make_utc_dt


def make_generation_input(
    recurrence: str, start_date: datetime, **overrides: Any
) -> OccurrenceGenerationInput:
    """Create generate_occurrences input with empty day and time lists."""
    params: OccurrenceGenerationInput = {
        "recurrence": recurrence,
        "start_date": start_date,
        "recurrence_days": [],
        "recurrence_month_days": [],
        "times_of_day": [],
        "time_zone": "UTC",
    }
    params.update(overrides)  # type: ignore[typeddict-item]
    return params


def make_buffer_input(recurrence_type: str, **overrides: Any) -> NextOccurrenceInput:
    """Create find_next_occurrence / calculate_buffer_dates input."""
    params: NextOccurrenceInput = {
        "recurrence_type": recurrence_type,
        "base_date": make_utc_dt(2025, 1, 1),
        "times_of_day": [],
        "time_zone": "UTC",
    }
    params.update(overrides)  # type: ignore[typeddict-item]
    return params


# =============================================================================
# Type Resolution
# =============================================================================


class TestTypeResolution:
    """Test to_recurrence_type and get_strategy."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("daily", const.RECURRENCE_TYPE_DAILY),
            ("weekly", const.RECURRENCE_TYPE_WEEKLY),
            ("monthly", const.RECURRENCE_TYPE_MONTHLY),
            ("MONTHLY", const.RECURRENCE_TYPE_MONTHLY),
            ("none", None),
            ("fortnightly", None),
            ("", None),
            (None, None),
        ],
    )
    def test_to_recurrence_type(self, value: str | None, expected: str | None) -> None:
        """Lowercase values map to uppercase types; anything else is None."""
        assert to_recurrence_type(value) == expected

    def test_get_strategy(self) -> None:
        """Each recognized value maps to its strategy."""
        assert isinstance(get_strategy("daily"), DailyRecurrenceStrategy)
        assert isinstance(get_strategy("weekly"), WeeklyRecurrenceStrategy)
        assert isinstance(get_strategy("monthly"), MonthlyRecurrenceStrategy)
        assert get_strategy("fortnightly") is None
        assert get_strategy("none") is None


# =============================================================================
# RecurrenceEngine
# =============================================================================


class TestRecurrenceEngine:
    """Test the single-rule facade."""

    def test_normalizes_config(self) -> None:
        """Type is resolved and empty day lists become None."""
        engine = RecurrenceEngine(
            {"type": "weekly", "times_of_day": ["09:00"], "days_of_week": []}
        )

        assert engine.recurrence_type == const.RECURRENCE_TYPE_WEEKLY
        assert engine.config["days_of_week"] is None
        assert engine.config["month_days"] is None
        assert engine.config["times_of_day"] == ["09:00"]

    def test_unknown_type_is_inert(self, now: datetime) -> None:
        """An unrecognized type generates nothing and has no next occurrence."""
        engine = RecurrenceEngine({"type": "fortnightly", "times_of_day": []})

        assert engine.recurrence_type is None
        anchor = make_utc_dt(2025, 1, 16)
        assert engine.generate_occurrences(anchor, "UTC", 5, now) == []
        assert engine.find_next_occurrence(anchor, "UTC", now=now) is None

    def test_non_positive_max_returns_empty(self, now: datetime) -> None:
        """max_occurrences of zero or less yields nothing."""
        engine = RecurrenceEngine({"type": "daily", "times_of_day": []})
        anchor = make_utc_dt(2025, 1, 16)
        assert engine.generate_occurrences(anchor, "UTC", 0, now) == []
        assert engine.generate_occurrences(anchor, "UTC", -3, now) == []

    def test_invalid_zone_raises(self, now: datetime) -> None:
        """Invalid zone names propagate as InvalidTimeZoneError."""
        engine = RecurrenceEngine({"type": "daily", "times_of_day": ["09:00"]})
        with pytest.raises(InvalidTimeZoneError):
            engine.generate_occurrences(make_utc_dt(2025, 1, 16), "Not/AZone", 5, now)


# =============================================================================
# generate_occurrences
# =============================================================================


class TestGenerateOccurrences:
    """Test the module-level generation entry point."""

    def test_daily_scenario(self, now: datetime) -> None:
        """Daily 09:00 from tomorrow: 5 entries exactly 24h apart."""
        params = make_generation_input(
            "daily", make_utc_dt(2025, 1, 16), times_of_day=["09:00"], max_occurrences=5
        )
        result = generate_occurrences(params, now)

        assert len(result) == 5
        assert all(occ.hour == 9 and occ.minute == 0 for occ in result)
        assert all(b - a == timedelta(hours=24) for a, b in zip(result, result[1:]))

    def test_weekly_scenario(self, now: datetime) -> None:
        """Mon/Wed/Fri from next Monday: only those days, Monday first."""
        params = make_generation_input(
            "weekly",
            make_utc_dt(2025, 1, 20),
            recurrence_days=[1, 3, 5],
            max_occurrences=6,
        )
        result = generate_occurrences(params, now)

        assert len(result) == 6
        assert js_weekday(result[0], "UTC") == 1
        assert all(js_weekday(occ, "UTC") in (1, 3, 5) for occ in result)

    def test_monthly_day_31_skips_30_day_months(self, now: datetime) -> None:
        """Day 31 is skipped in months without one."""
        params = make_generation_input(
            "monthly",
            make_utc_dt(2025, 4, 1),
            recurrence_month_days=[31],
            max_occurrences=2,
        )
        assert generate_occurrences(params, now) == [
            make_utc_dt(2025, 5, 31),
            make_utc_dt(2025, 7, 31),
        ]

    @pytest.mark.parametrize("recurrence", ["fortnightly", "none", "yearly"])
    def test_unrecognized_types(self, now: datetime, recurrence: str) -> None:
        """Unrecognized or 'none' types return [] and None."""
        params = make_generation_input(recurrence, make_utc_dt(2025, 1, 16))
        assert generate_occurrences(params, now) == []
        assert (
            find_next_occurrence(
                make_buffer_input(recurrence, times_of_day=["09:00"]), now
            )
            is None
        )

    def test_default_max_occurrences(self, now: datetime) -> None:
        """Without max_occurrences, 30 entries are generated."""
        params = make_generation_input("daily", make_utc_dt(2025, 1, 16))
        assert len(generate_occurrences(params, now)) == const.DEFAULT_OCCURRENCES

    @pytest.mark.parametrize(
        "overrides",
        [
            {"recurrence": "daily", "times_of_day": ["18:00", "06:00", "12:00"]},
            {"recurrence": "weekly", "recurrence_days": [0, 2, 4, 6]},
            {"recurrence": "weekly", "times_of_day": ["23:30", "00:15"]},
            {"recurrence": "monthly", "recurrence_month_days": [31, 1, 15, 29]},
            {
                "recurrence": "monthly",
                "recurrence_month_days": [15],
                "times_of_day": ["11:00", "13:00"],
            },
        ],
    )
    @pytest.mark.parametrize("time_zone", ["UTC", "America/New_York", "Asia/Tokyo"])
    def test_strictly_ascending_and_never_past(
        self, now: datetime, overrides: dict[str, Any], time_zone: str
    ) -> None:
        """Output is strictly increasing, capped and free of elapsed entries."""
        fields = {key: value for key, value in overrides.items() if key != "recurrence"}
        params = make_generation_input(
            overrides["recurrence"],
            make_utc_dt(2024, 12, 1),
            time_zone=time_zone,
            max_occurrences=25,
            **fields,
        )
        result = generate_occurrences(params, now)
        today_key = to_date_key(now, time_zone)

        assert 0 < len(result) <= 25
        assert all(a < b for a, b in zip(result, result[1:]))
        assert all(to_date_key(occ, time_zone) >= today_key for occ in result)
        if params["times_of_day"]:
            current_minute = now.replace(second=0, microsecond=0)
            assert all(occ >= current_minute for occ in result)

    @freeze_time("2025-01-15 12:00:00")
    def test_defaults_to_real_clock(self) -> None:
        """Without an explicit now the frozen clock decides what is past."""
        params = make_generation_input(
            "daily", make_utc_dt(2025, 1, 15), times_of_day=["09:00"], max_occurrences=1
        )
        assert generate_occurrences(params) == [make_utc_dt(2025, 1, 16, 9)]


# =============================================================================
# find_next_occurrence
# =============================================================================


class TestFindNextOccurrence:
    """Test the module-level next-occurrence entry point."""

    def test_accepts_lowercase_and_uppercase(self, now: datetime) -> None:
        """Both the stored value and the strategy type are accepted."""
        lower = make_buffer_input("weekly", days_of_week=[1], times_of_day=["09:00"])
        upper = make_buffer_input("WEEKLY", days_of_week=[1], times_of_day=["09:00"])

        assert find_next_occurrence(lower, now) == make_utc_dt(2025, 1, 20, 9)
        assert find_next_occurrence(upper, now) == make_utc_dt(2025, 1, 20, 9)

    def test_daily_buffer_target(self, now: datetime) -> None:
        """Daily rules return the rolling buffer target."""
        params = make_buffer_input("daily", times_of_day=["07:30"])
        assert find_next_occurrence(params, now) == make_utc_dt(2025, 2, 13, 7, 30)


# =============================================================================
# calculate_buffer_dates
# =============================================================================


class TestCalculateBufferDates:
    """Test buffer planning for the reconciliation job."""

    def test_without_last_task_returns_next_day(self, now: datetime) -> None:
        """With nothing materialized, only the next occurrence's day is planned."""
        params = make_buffer_input("weekly", days_of_week=[1], times_of_day=["09:00"])
        assert calculate_buffer_dates(params, now) == [make_utc_dt(2025, 1, 20)]

    def test_daily_fills_through_horizon(self, now: datetime) -> None:
        """Every day after the last task through today + 29 days."""
        params = make_buffer_input(
            "daily",
            times_of_day=["09:00"],
            last_task_date=make_utc_dt(2025, 2, 10, 9),
        )
        assert calculate_buffer_dates(params, now) == [
            make_utc_dt(2025, 2, 11),
            make_utc_dt(2025, 2, 12),
            make_utc_dt(2025, 2, 13),
        ]

    def test_daily_buffer_already_full(self, now: datetime) -> None:
        """Nothing to plan once the last task reaches the horizon."""
        params = make_buffer_input(
            "daily", last_task_date=make_utc_dt(2025, 2, 13, 9)
        )
        assert calculate_buffer_dates(params, now) == []

    def test_daily_in_zone(self, now: datetime) -> None:
        """Day starts are local midnights."""
        params = make_buffer_input(
            "daily",
            time_zone="America/New_York",
            last_task_date=make_utc_dt(2025, 2, 12, 14),
        )
        assert calculate_buffer_dates(params, now) == [make_utc_dt(2025, 2, 13, 5)]

    def test_weekly_bounded_by_eleven_weeks(self, now: datetime) -> None:
        """Mondays after the last task, up to today + 11 weeks."""
        params = make_buffer_input(
            "weekly",
            days_of_week=[1],
            times_of_day=["09:00"],
            last_task_date=make_utc_dt(2025, 1, 20, 9),
        )
        result = calculate_buffer_dates(params, now)

        assert len(result) == 10
        assert result[0] == make_utc_dt(2025, 1, 27)
        assert result[-1] == make_utc_dt(2025, 3, 31)
        assert all(js_weekday(day, "UTC") == 1 for day in result)

    def test_weekly_multiple_times_one_entry_per_day(self, now: datetime) -> None:
        """Several times on a day still plan the day once."""
        params = make_buffer_input(
            "weekly",
            days_of_week=[1],
            times_of_day=["09:00", "17:00"],
            last_task_date=make_utc_dt(2025, 1, 20, 17),
        )
        result = calculate_buffer_dates(params, now)

        assert len(result) == len(set(result))
        assert result[:2] == [make_utc_dt(2025, 1, 27), make_utc_dt(2025, 2, 3)]

    def test_monthly_bounded_by_eleven_months(self, now: datetime) -> None:
        """Month days after the last task, up to today + 11 months."""
        params = make_buffer_input(
            "monthly",
            month_days=[15],
            last_task_date=make_utc_dt(2025, 1, 15),
        )
        result = calculate_buffer_dates(params, now)

        assert result == [make_utc_dt(2025, month, 15) for month in range(2, 13)]

    def test_unknown_type(self, now: datetime) -> None:
        """Unrecognized types plan nothing."""
        params = make_buffer_input(
            "fortnightly", last_task_date=make_utc_dt(2025, 1, 15)
        )
        assert calculate_buffer_dates(params, now) == []
