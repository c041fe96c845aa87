# File: helpers/validation_helpers.py
"""Voluptuous schemas for recurrence input.

The engines are permissive: an unknown type yields no occurrences and a bad
time string is skipped. Callers that want hard failures (task create/update
handlers, preference saves) validate here first.

Schemas:
    - RECURRENCE_PATTERN_SCHEMA: pattern stored on a template task
    - RECURRENCE_RULE_SCHEMA: input to schedule_engine.generate_occurrences()

Validators (usable inside schemas or standalone):
    - validate_time_of_day
    - validate_time_zone
    - validate_date_string
"""

from __future__ import annotations

from typing import Any

import voluptuous as vol

from .. import const
from ..utils.dt_utils import (
    InvalidTimeZoneError,
    dt_parse_date,
    get_time_zone,
    parse_time_of_day,
)

# ----------------------------------------------------------------------------------
# FIELD VALIDATORS
# ----------------------------------------------------------------------------------


def validate_time_of_day(value: Any) -> str:
    """Validate an "HH:MM" time string.

    Raises:
        vol.Invalid: If the value is not a valid 24-hour time
    """
    if not isinstance(value, str) or parse_time_of_day(value) is None:
        raise vol.Invalid(f"Invalid time of day: {value!r}. Expected 'HH:MM'.")
    return value


def validate_time_zone(value: Any) -> str:
    """Validate an IANA timezone name.

    Raises:
        vol.Invalid: If zoneinfo cannot resolve the name
    """
    if not isinstance(value, str):
        raise vol.Invalid(f"Invalid time zone: {value!r}")
    try:
        get_time_zone(value)
    except InvalidTimeZoneError as err:
        raise vol.Invalid(str(err)) from err
    return value


def validate_date_string(value: Any) -> str:
    """Validate an ISO date string (YYYY-MM-DD, time part tolerated).

    Raises:
        vol.Invalid: If the date cannot be parsed
    """
    if dt_parse_date(value) is None:
        raise vol.Invalid(f"Invalid date: {value!r}. Expected 'YYYY-MM-DD'.")
    return value


WEEKDAY_INDEX = vol.All(
    int, vol.Range(min=const.WEEKDAY_SUNDAY, max=const.WEEKDAY_SATURDAY)
)
MONTH_DAY = vol.All(int, vol.Range(min=const.MONTH_DAY_MIN, max=const.MONTH_DAY_MAX))

# ----------------------------------------------------------------------------------
# RECURRENCE PATTERN SCHEMA
# ----------------------------------------------------------------------------------

RECURRENCE_PATTERN_SCHEMA = vol.Schema(
    {
        vol.Required(const.DATA_PATTERN_TYPE): vol.In(
            [
                const.RECURRENCE_DAILY,
                const.RECURRENCE_WEEKLY,
                const.RECURRENCE_MONTHLY,
            ]
        ),
        vol.Optional(const.DATA_PATTERN_INTERVAL, default=1): vol.All(
            int, vol.Range(min=1)
        ),
        vol.Optional(const.DATA_PATTERN_DAYS_OF_WEEK, default=None): vol.Any(
            None, [WEEKDAY_INDEX]
        ),
        vol.Optional(const.DATA_PATTERN_DAYS_OF_MONTH, default=None): vol.Any(
            None, [MONTH_DAY]
        ),
        vol.Optional(const.DATA_PATTERN_TIMES_OF_DAY, default=list): [
            validate_time_of_day
        ],
        vol.Required(const.DATA_PATTERN_START_DATE): validate_date_string,
        vol.Optional(const.DATA_PATTERN_END_DATE, default=None): vol.Any(
            None, validate_date_string
        ),
        vol.Optional(const.DATA_PATTERN_MAX_OCCURRENCES): vol.All(
            int, vol.Range(min=1)
        ),
    }
)

# ----------------------------------------------------------------------------------
# OCCURRENCE GENERATION INPUT SCHEMA
# ----------------------------------------------------------------------------------

RECURRENCE_RULE_SCHEMA = vol.Schema(
    {
        vol.Required("recurrence"): vol.In(const.RECURRENCE_VALUES),
        vol.Required("start_date"): object,
        vol.Optional("recurrence_days", default=list): [WEEKDAY_INDEX],
        vol.Optional("recurrence_month_days", default=list): [MONTH_DAY],
        vol.Optional("times_of_day", default=list): [validate_time_of_day],
        vol.Required("time_zone"): validate_time_zone,
        vol.Optional("max_occurrences", default=None): vol.Any(
            None, vol.All(int, vol.Range(min=1))
        ),
    }
)


def validate_recurrence_pattern(pattern: dict[str, Any]) -> dict[str, Any]:
    """Validate a recurrence pattern and fill its defaults.

    Returns:
        The normalized pattern.

    Raises:
        vol.MultipleInvalid: If any field is invalid.
    """
    return RECURRENCE_PATTERN_SCHEMA(pattern)


def validate_occurrence_input(params: dict[str, Any]) -> dict[str, Any]:
    """Validate generate_occurrences() input and fill its defaults.

    Raises:
        vol.MultipleInvalid: If any field is invalid.
    """
    return RECURRENCE_RULE_SCHEMA(params)


def get_pattern_errors(pattern: dict[str, Any]) -> dict[str, str]:
    """Return a field -> message map for an invalid pattern (empty when valid)."""
    try:
        RECURRENCE_PATTERN_SCHEMA(pattern)
    except vol.MultipleInvalid as err:
        return {
            str(error.path[0]) if error.path else "base": error.msg
            for error in err.errors
        }
    return {}
