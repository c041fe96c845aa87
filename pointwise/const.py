# File: const.py
"""Constants for the Pointwise recurrence core.

This file centralizes recurrence type values, search windows, safety limits,
and the task/pattern data keys shared by the schedule and instance engines.
"""

import logging

# ------------------------------------------------------------------------------------------------
# General
# ------------------------------------------------------------------------------------------------
# Logger
LOGGER = logging.getLogger(__package__)

# ------------------------------------------------------------------------------------------------
# Recurrence Types
# ------------------------------------------------------------------------------------------------
# Lowercase values as stored on templates and sent by clients
RECURRENCE_NONE = "none"
RECURRENCE_DAILY = "daily"
RECURRENCE_WEEKLY = "weekly"
RECURRENCE_MONTHLY = "monthly"

RECURRENCE_VALUES = [
    RECURRENCE_NONE,
    RECURRENCE_DAILY,
    RECURRENCE_WEEKLY,
    RECURRENCE_MONTHLY,
]

# Uppercase types used by the strategies
RECURRENCE_TYPE_DAILY = "DAILY"
RECURRENCE_TYPE_WEEKLY = "WEEKLY"
RECURRENCE_TYPE_MONTHLY = "MONTHLY"

RECURRENCE_TYPES = [
    RECURRENCE_TYPE_DAILY,
    RECURRENCE_TYPE_WEEKLY,
    RECURRENCE_TYPE_MONTHLY,
]

# ------------------------------------------------------------------------------------------------
# Generation Windows and Safety Limits
# ------------------------------------------------------------------------------------------------
DAYS_IN_WEEK = 7

# Occurrences generated when the caller does not pass max_occurrences
DEFAULT_OCCURRENCES = 30

# Daily rules keep a rolling buffer of this many calendar days (today included)
DAILY_BUFFER_DAYS = 30

# find_next_occurrence search windows
WEEKLY_MAX_WEEKS_TO_SEARCH = 12
MONTHLY_MAX_MONTHS_TO_SEARCH = 12

# Per-type max occurrences stored on new recurrence patterns
DEFAULT_MAX_OCCURRENCES_DAILY = 30
DEFAULT_MAX_OCCURRENCES_WEEKLY = 12
DEFAULT_MAX_OCCURRENCES_MONTHLY = 12

# Hard cap on week/month/day loops
MAX_LOOP_ITERATIONS = 1000

# Weekday indices (0 = Sunday .. 6 = Saturday)
WEEKDAY_SUNDAY = 0
WEEKDAY_SATURDAY = 6

MONTH_DAY_MIN = 1
MONTH_DAY_MAX = 31

# ------------------------------------------------------------------------------------------------
# Recurrence Pattern Keys (serialized on template tasks)
# ------------------------------------------------------------------------------------------------
DATA_PATTERN_TYPE = "type"
DATA_PATTERN_INTERVAL = "interval"
DATA_PATTERN_DAYS_OF_WEEK = "days_of_week"
DATA_PATTERN_DAYS_OF_MONTH = "days_of_month"
DATA_PATTERN_TIMES_OF_DAY = "times_of_day"
DATA_PATTERN_START_DATE = "start_date"
DATA_PATTERN_END_DATE = "end_date"
DATA_PATTERN_MAX_OCCURRENCES = "max_occurrences"

# ------------------------------------------------------------------------------------------------
# Task Keys
# ------------------------------------------------------------------------------------------------
DATA_TASK_ID = "id"
DATA_TASK_TITLE = "title"
DATA_TASK_CONTEXT = "context"
DATA_TASK_CATEGORY = "category"
DATA_TASK_XP = "xp"
DATA_TASK_STATUS = "status"
DATA_TASK_COMPLETED = "completed"
DATA_TASK_START_DATE = "start_date"
DATA_TASK_START_TIME = "start_time"
DATA_TASK_DUE_DATE = "due_date"
DATA_TASK_DUE_TIME = "due_time"
DATA_TASK_COMPLETED_AT = "completed_at"
DATA_TASK_ASSIGNED_USER_IDS = "assigned_user_ids"
DATA_TASK_ACCEPTED_USER_IDS = "accepted_user_ids"
DATA_TASK_RECURRENCE_PATTERN = "recurrence_pattern"
DATA_TASK_IS_RECURRING_INSTANCE = "is_recurring_instance"
DATA_TASK_SOURCE_RECURRING_TASK_ID = "source_recurring_task_id"
DATA_TASK_RECURRENCE_INSTANCE_KEY = "recurrence_instance_key"
DATA_TASK_IS_EDITED_INSTANCE = "is_edited_instance"
DATA_TASK_EDITED_INSTANCE_KEYS = "edited_instance_keys"

# Date range keys
DATA_RANGE_START = "start"
DATA_RANGE_END = "end"

# Task status
TASK_STATUS_PENDING = "pending"

# Separator between template id and instance key in synthesized instance ids
INSTANCE_ID_SEPARATOR = "::"
