"""Type definitions for Pointwise recurrence data structures.

TypedDict is used for structures whose keys are fixed at design time
(recurrence configs, generation inputs, task records). Callers own the actual
storage format; these definitions document the shape the engines read and
write.

NOTE: TypedDict is STATIC ANALYSIS ONLY. The engines still use .get() with
defaults for every optional field because templates arrive from storage and
clients without runtime enforcement.

IMPORTANT: This file must NOT import from the engines. Only typing machinery
and the standard library are allowed here.
"""

from datetime import datetime
from typing import Any, NotRequired, TypedDict

# =============================================================================
# Type Aliases (for readability)
# =============================================================================

TaskId = str  # opaque id assigned by the task store
InstanceKey = str  # ISO 8601 UTC instant "2025-01-15T09:00:00.000Z"
ISODate = str  # ISO 8601 date string (no time) "2025-01-15"
TimeOfDay = str  # "HH:MM" 24-hour wall-clock time


# =============================================================================
# Date/Time Structures
# =============================================================================


class DateTimeParts(TypedDict):
    """Wall-clock components of an instant in a given timezone."""

    year: int
    month: int
    day: int
    hour: int
    minute: int
    second: int
    weekday: int  # 0 = Sunday .. 6 = Saturday


class DateRange(TypedDict):
    """Inclusive window used when materializing instances."""

    start: datetime
    end: datetime


# =============================================================================
# Recurrence Structures
# =============================================================================


class RecurrenceConfig(TypedDict):
    """Normalized rule handed to a recurrence strategy.

    days_of_week / month_days are None when the rule leaves them empty; each
    strategy then falls back to the anchor date's weekday or day of month.
    """

    type: str  # RECURRENCE_TYPE_* constant (uppercase)
    times_of_day: list[TimeOfDay]
    days_of_week: NotRequired[list[int] | None]  # 0 = Sunday .. 6 = Saturday
    month_days: NotRequired[list[int] | None]  # 1 .. 31


class OccurrenceGenerationInput(TypedDict):
    """Input for schedule_engine.generate_occurrences()."""

    recurrence: str  # RECURRENCE_* value (lowercase)
    start_date: datetime
    recurrence_days: list[int]
    recurrence_month_days: list[int]
    times_of_day: list[TimeOfDay]
    time_zone: str
    max_occurrences: NotRequired[int | None]


class NextOccurrenceInput(TypedDict):
    """Input for schedule_engine.find_next_occurrence()."""

    recurrence_type: str  # lowercase value or uppercase type
    base_date: datetime
    times_of_day: list[TimeOfDay]
    time_zone: str
    days_of_week: NotRequired[list[int] | None]
    month_days: NotRequired[list[int] | None]
    last_task_date: NotRequired[datetime | None]


class RecurrencePattern(TypedDict, total=False):
    """Serialized recurrence rule stored on a template task.

    All fields but type and start_date are optional (total=False).
    """

    type: str  # RECURRENCE_DAILY / WEEKLY / MONTHLY
    interval: int
    days_of_week: list[int] | None
    days_of_month: list[int] | None
    times_of_day: list[TimeOfDay]
    start_date: ISODate
    end_date: ISODate | None
    max_occurrences: int


# =============================================================================
# Task Structures
# =============================================================================


class TaskData(TypedDict, total=False):
    """Task record as seen by the instance engine.

    Templates carry recurrence_pattern and edited_instance_keys; instances carry
    source_recurring_task_id and recurrence_instance_key. Regular one-time
    tasks carry neither.
    """

    id: TaskId
    title: str
    context: str | None
    category: str | None
    xp: int
    status: str
    completed: bool
    start_date: ISODate | datetime | None
    start_time: TimeOfDay | None
    due_date: ISODate | datetime | None
    due_time: TimeOfDay | None
    completed_at: str | None
    assigned_user_ids: list[str]
    accepted_user_ids: list[str]

    recurrence_pattern: RecurrencePattern | None
    edited_instance_keys: list[InstanceKey]

    is_recurring_instance: bool
    source_recurring_task_id: TaskId | None
    recurrence_instance_key: InstanceKey | None
    is_edited_instance: bool


# Field maps returned by the template conversion helpers
TaskFieldUpdates = dict[str, Any]
