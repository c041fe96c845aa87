"""Pointwise recurrence core.

Expands recurrence rules (daily, weekly, monthly) into occurrence instants in
a user's timezone and materializes recurring task templates into instance
records. Pure computation: storage and scheduling are left to the caller.
"""

from .engines import (
    RecurrenceEngine,
    build_recurrence_pattern,
    calculate_buffer_dates,
    clear_recurrence_fields,
    find_next_occurrence,
    generate_instance_id,
    generate_instance_key,
    generate_occurrences,
    generate_recurring_instances,
    merge_templates_with_instances,
    set_recurrence_template_fields,
)
from .utils.dt_utils import InvalidTimeZoneError

__all__ = [
    "InvalidTimeZoneError",
    "RecurrenceEngine",
    "build_recurrence_pattern",
    "calculate_buffer_dates",
    "clear_recurrence_fields",
    "find_next_occurrence",
    "generate_instance_id",
    "generate_instance_key",
    "generate_occurrences",
    "generate_recurring_instances",
    "merge_templates_with_instances",
    "set_recurrence_template_fields",
]
