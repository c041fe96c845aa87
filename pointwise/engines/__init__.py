"""Engine modules for Pointwise.

Contains the recurrence computation engines:
- recurrence_filters: Past-date and past-time predicates
- recurrence_strategies: Daily, weekly and monthly expansion
- schedule_engine: Strategy dispatch, next-occurrence search, buffer planning
- instance_engine: Template to instance materialization
"""

# Use relative imports within package to avoid mypy module resolution issues
from .instance_engine import (
    build_recurrence_pattern,
    clear_recurrence_fields,
    generate_instance_id,
    generate_instance_key,
    generate_recurring_instances,
    merge_templates_with_instances,
    set_recurrence_template_fields,
)
from .recurrence_filters import filter_past_dates, is_date_in_future, is_time_in_future
from .recurrence_strategies import (
    DailyRecurrenceStrategy,
    MonthlyRecurrenceStrategy,
    RecurrenceStrategy,
    WeeklyRecurrenceStrategy,
)
from .schedule_engine import (
    RecurrenceEngine,
    calculate_buffer_dates,
    find_next_occurrence,
    generate_occurrences,
    get_strategy,
    to_recurrence_type,
)

__all__ = [
    "DailyRecurrenceStrategy",
    "MonthlyRecurrenceStrategy",
    "RecurrenceEngine",
    "RecurrenceStrategy",
    "WeeklyRecurrenceStrategy",
    "build_recurrence_pattern",
    "calculate_buffer_dates",
    "clear_recurrence_fields",
    "filter_past_dates",
    "find_next_occurrence",
    "generate_instance_id",
    "generate_instance_key",
    "generate_occurrences",
    "generate_recurring_instances",
    "get_strategy",
    "is_date_in_future",
    "is_time_in_future",
    "merge_templates_with_instances",
    "set_recurrence_template_fields",
    "to_recurrence_type",
]
