"""Instance Engine - materializes recurring task templates into instances.

A template is a task carrying a recurrence_pattern; an instance is a concrete
task tagged with source_recurring_task_id and recurrence_instance_key. This
engine expands a template over a date window and merges the result with the
instances the caller already has stored:

- keys in the template's edited_instance_keys are skipped (the edited record
  already exists and is not looked up here)
- an existing instance with the same key is reused verbatim
- anything else is synthesized from the template fields
- existing instances not produced in this pass are appended unchanged

ARCHITECTURE: Pure logic, no storage. The caller persists any synthesized
instances it receives back. Malformed templates yield [] instead of raising.
"""

from __future__ import annotations

from datetime import UTC, datetime, time, timedelta
from typing import TYPE_CHECKING, Any

from .. import const
from ..utils.dt_utils import (
    as_local,
    as_utc,
    dt_parse,
    get_date_time_parts,
    iso_instant,
    parse_time_of_day,
)
from .schedule_engine import generate_occurrences, to_recurrence_type

if TYPE_CHECKING:
    from collections.abc import Iterable
    from datetime import date

    from ..type_defs import (
        DateRange,
        RecurrencePattern,
        TaskData,
        TaskFieldUpdates,
    )


# =============================================================================
# Instance keys
# =============================================================================


def generate_instance_key(date: datetime, time_str: str | None) -> str:
    """Build the deterministic key for one occurrence.

    The occurrence's UTC calendar date is combined with the time of day as a
    UTC wall-clock time (midnight when time_str is None) and rendered as an
    ISO 8601 instant with milliseconds.

    Examples:
        generate_instance_key(2025-01-15T09:00:00Z, "09:00") → "2025-01-15T09:00:00.000Z"
        generate_instance_key(2025-01-15T00:00:00Z, None) → "2025-01-15T00:00:00.000Z"
    """
    return iso_instant(_instance_instant(date, time_str))


def generate_instance_id(template_id: str, instance_key: str) -> str:
    """Build the id of a synthesized instance from its template and key."""
    return f"{template_id}{const.INSTANCE_ID_SEPARATOR}{instance_key}"


def _instance_instant(date: datetime, time_str: str | None) -> datetime:
    """Return the UTC instant an instance key is derived from."""
    utc_day = as_utc(date).date()
    parsed = parse_time_of_day(time_str) if time_str else None
    if parsed is None:
        return datetime.combine(utc_day, time.min, tzinfo=UTC)
    return datetime.combine(utc_day, time(parsed[0], parsed[1]), tzinfo=UTC)


def _occurrence_time(occurrence: datetime, time_zone: str) -> str:
    """Return the HH:MM wall-clock time of an occurrence in the user's zone."""
    parts = get_date_time_parts(occurrence, time_zone)
    return f"{parts['hour']:02d}:{parts['minute']:02d}"


# =============================================================================
# Materialization
# =============================================================================


def _compute_due_date(template: TaskData, instance_day: date) -> str | None:
    """Return the instance due date (YYYY-MM-DD) keeping the template's span.

    The whole-day offset between the template's start and due dates is applied
    to the instance's local calendar day. Without a start date the template
    due date is used as is.
    """
    template_due = dt_parse(template.get(const.DATA_TASK_DUE_DATE))
    if template_due is None:
        return None

    template_start = dt_parse(template.get(const.DATA_TASK_START_DATE))
    if template_start is None:
        return template_due.date().isoformat()

    days_diff = (template_due - template_start) // timedelta(days=1)
    return (instance_day + timedelta(days=days_diff)).isoformat()


def _build_instance(
    template: TaskData, instance_key: str, instance_day: date, time_str: str | None
) -> TaskData:
    """Synthesize a new instance record from a template."""
    due_date = _compute_due_date(template, instance_day)
    due_time = template.get(const.DATA_TASK_DUE_TIME) if due_date else None

    return {
        const.DATA_TASK_ID: generate_instance_id(
            template[const.DATA_TASK_ID], instance_key
        ),
        const.DATA_TASK_TITLE: template.get(const.DATA_TASK_TITLE, ""),
        const.DATA_TASK_CONTEXT: template.get(const.DATA_TASK_CONTEXT),
        const.DATA_TASK_CATEGORY: template.get(const.DATA_TASK_CATEGORY),
        const.DATA_TASK_XP: template.get(const.DATA_TASK_XP, 0),
        const.DATA_TASK_STATUS: template.get(const.DATA_TASK_STATUS)
        or const.TASK_STATUS_PENDING,
        const.DATA_TASK_COMPLETED: False,
        const.DATA_TASK_START_DATE: instance_day.isoformat(),
        const.DATA_TASK_START_TIME: time_str or None,
        const.DATA_TASK_DUE_DATE: due_date,
        const.DATA_TASK_DUE_TIME: due_time or None,
        const.DATA_TASK_COMPLETED_AT: None,
        # Assignment (preserve from template)
        const.DATA_TASK_ASSIGNED_USER_IDS: list(
            template.get(const.DATA_TASK_ASSIGNED_USER_IDS) or []
        ),
        const.DATA_TASK_ACCEPTED_USER_IDS: list(
            template.get(const.DATA_TASK_ACCEPTED_USER_IDS) or []
        ),
        # Recurring instance tracking
        const.DATA_TASK_IS_RECURRING_INSTANCE: True,
        const.DATA_TASK_SOURCE_RECURRING_TASK_ID: template[const.DATA_TASK_ID],
        const.DATA_TASK_RECURRENCE_INSTANCE_KEY: instance_key,
        const.DATA_TASK_IS_EDITED_INSTANCE: False,
    }


def generate_recurring_instances(
    template: TaskData,
    date_range: DateRange,
    time_zone: str,
    existing_instances: Iterable[TaskData] | None = None,
    now: datetime | None = None,
) -> list[TaskData]:
    """Generate task instances from a recurring task template.

    Args:
        template: Template task (is_recurring_instance False, with a
            recurrence_pattern).
        date_range: Inclusive {"start", "end"} window of occurrences to keep.
        time_zone: User's IANA zone for all day-boundary computations.
        existing_instances: Stored instances of this template.
        now: Reference instant (defaults to the real clock).

    Returns:
        Generated and reused instances for the window, followed by every other
        existing instance. [] when the template has no usable pattern or is
        itself an instance.

    Raises:
        InvalidTimeZoneError: If time_zone cannot be resolved.
    """
    existing = list(existing_instances or [])
    template_id = template.get(const.DATA_TASK_ID)
    pattern = template.get(const.DATA_TASK_RECURRENCE_PATTERN)

    if not pattern or not isinstance(pattern, dict):
        const.LOGGER.debug("Template %s has no recurrence pattern", template_id)
        return []
    if template.get(const.DATA_TASK_IS_RECURRING_INSTANCE):
        const.LOGGER.debug("Task %s is an instance, not a template", template_id)
        return []
    if template_id is None:
        const.LOGGER.debug("Template without id cannot be materialized")
        return []

    recurrence = pattern.get(const.DATA_PATTERN_TYPE)
    if to_recurrence_type(recurrence) is None:
        const.LOGGER.debug(
            "Template %s has unrecognized recurrence type %r", template_id, recurrence
        )
        return []

    start_date = dt_parse(pattern.get(const.DATA_PATTERN_START_DATE), time_zone)
    if start_date is None:
        const.LOGGER.debug("Template %s has no valid pattern start date", template_id)
        return []

    times_of_day = list(pattern.get(const.DATA_PATTERN_TIMES_OF_DAY) or [])
    occurrences = generate_occurrences(
        {
            "recurrence": recurrence,
            "start_date": start_date,
            "recurrence_days": list(pattern.get(const.DATA_PATTERN_DAYS_OF_WEEK) or []),
            "recurrence_month_days": list(
                pattern.get(const.DATA_PATTERN_DAYS_OF_MONTH) or []
            ),
            "times_of_day": times_of_day,
            "time_zone": time_zone,
            "max_occurrences": pattern.get(const.DATA_PATTERN_MAX_OCCURRENCES)
            or const.DEFAULT_OCCURRENCES,
        },
        now,
    )

    range_start = as_utc(date_range[const.DATA_RANGE_START])
    range_end = as_utc(date_range[const.DATA_RANGE_END])
    in_range = [occ for occ in occurrences if range_start <= occ <= range_end]

    edited_keys = set(template.get(const.DATA_TASK_EDITED_INSTANCE_KEYS) or [])
    existing_by_key = {
        instance[const.DATA_TASK_RECURRENCE_INSTANCE_KEY]: instance
        for instance in existing
        if instance.get(const.DATA_TASK_RECURRENCE_INSTANCE_KEY)
    }

    has_times = any(parse_time_of_day(value) for value in times_of_day)
    generated: list[TaskData] = []

    # Each occurrence already carries its wall-clock time; one instance each.
    for occurrence in in_range:
        time_str = _occurrence_time(occurrence, time_zone) if has_times else None
        instance_key = generate_instance_key(occurrence, time_str)
        if instance_key in edited_keys:
            continue

        if instance_key in existing_by_key:
            generated.append(existing_by_key[instance_key])
            continue

        generated.append(
            _build_instance(
                template,
                instance_key,
                as_local(occurrence, time_zone).date(),
                time_str,
            )
        )

    generated_ids = {instance.get(const.DATA_TASK_ID) for instance in generated}
    result = list(generated)
    for instance in existing:
        if instance.get(const.DATA_TASK_ID) not in generated_ids:
            result.append(instance)

    const.LOGGER.debug(
        "Template %s: %d occurrences in range, %d instances (%d existing)",
        template_id,
        len(in_range),
        len(result),
        len(existing),
    )
    return result


def merge_templates_with_instances(
    tasks: Iterable[TaskData],
    date_range: DateRange,
    time_zone: str,
    now: datetime | None = None,
) -> list[TaskData]:
    """Replace templates in a mixed task list with their instances.

    Regular tasks come first, followed by each template's instances in
    template order. Instances whose template is not in the list are dropped.
    """
    templates: list[TaskData] = []
    instances: list[TaskData] = []
    regular_tasks: list[TaskData] = []

    for task in tasks:
        if task.get(const.DATA_TASK_IS_RECURRING_INSTANCE):
            instances.append(task)
        elif task.get(const.DATA_TASK_RECURRENCE_PATTERN):
            templates.append(task)
        else:
            regular_tasks.append(task)

    all_instances: list[TaskData] = []
    for template in templates:
        template_instances = [
            instance
            for instance in instances
            if instance.get(const.DATA_TASK_SOURCE_RECURRING_TASK_ID)
            == template.get(const.DATA_TASK_ID)
        ]
        all_instances.extend(
            generate_recurring_instances(
                template, date_range, time_zone, template_instances, now
            )
        )

    return regular_tasks + all_instances


# =============================================================================
# Template field helpers
# =============================================================================


def build_recurrence_pattern(
    recurrence: str,
    start_date: datetime,
    days_of_week: list[int] | None = None,
    days_of_month: list[int] | None = None,
    times_of_day: list[str] | None = None,
    end_date: datetime | None = None,
    max_occurrences: int | None = None,
) -> RecurrencePattern:
    """Build a serializable recurrence pattern with per-type defaults.

    Day lists only survive for the type they belong to. max_occurrences
    defaults to 30 for daily rules and 12 for weekly and monthly rules.
    """
    default_max = {
        const.RECURRENCE_DAILY: const.DEFAULT_MAX_OCCURRENCES_DAILY,
        const.RECURRENCE_WEEKLY: const.DEFAULT_MAX_OCCURRENCES_WEEKLY,
        const.RECURRENCE_MONTHLY: const.DEFAULT_MAX_OCCURRENCES_MONTHLY,
    }.get(recurrence, const.DEFAULT_OCCURRENCES)

    return {
        const.DATA_PATTERN_TYPE: recurrence,
        const.DATA_PATTERN_INTERVAL: 1,
        const.DATA_PATTERN_DAYS_OF_WEEK: days_of_week
        if recurrence == const.RECURRENCE_WEEKLY
        else None,
        const.DATA_PATTERN_DAYS_OF_MONTH: days_of_month
        if recurrence == const.RECURRENCE_MONTHLY
        else None,
        const.DATA_PATTERN_TIMES_OF_DAY: list(times_of_day or []),
        const.DATA_PATTERN_START_DATE: as_utc(start_date).date().isoformat(),
        const.DATA_PATTERN_END_DATE: as_utc(end_date).date().isoformat()
        if end_date
        else None,
        const.DATA_PATTERN_MAX_OCCURRENCES: max_occurrences or default_max,
    }


def clear_recurrence_fields() -> TaskFieldUpdates:
    """Return the field updates that turn a task into a one-time task."""
    return {
        const.DATA_TASK_RECURRENCE_PATTERN: None,
        const.DATA_TASK_IS_RECURRING_INSTANCE: False,
        const.DATA_TASK_SOURCE_RECURRING_TASK_ID: None,
        const.DATA_TASK_RECURRENCE_INSTANCE_KEY: None,
        const.DATA_TASK_IS_EDITED_INSTANCE: False,
        const.DATA_TASK_EDITED_INSTANCE_KEYS: [],
    }


def set_recurrence_template_fields(pattern: RecurrencePattern) -> TaskFieldUpdates:
    """Return the field updates that turn a task into a recurring template."""
    fields: dict[str, Any] = clear_recurrence_fields()
    fields[const.DATA_TASK_RECURRENCE_PATTERN] = dict(pattern)
    return fields
