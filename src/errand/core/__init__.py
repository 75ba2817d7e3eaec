"""Functional core - pure scheduling and ordering logic with no I/O."""

from .tasks import Task, Priority, TransitoryData, CorruptTaskError
from .dates import (
    UrgencySetting,
    HideUntilSetting,
    InvalidSettingError,
    compute_due_date,
    compute_hide_until,
    has_time_component,
    is_overdue,
    shift_due_date_preserving_hide_offset,
)
from .recurrence import Frequency, Weekday, RecurrenceRule, next_due_date, advance_task
from .sorting import (
    SortMode,
    Order,
    score,
    sort_tasks,
    order_for_sort_type,
    order_for_sort_type_recursive,
    order_select_for_sort_type_recursive,
    precompute_sort_columns,
)

__all__ = [
    # Tasks
    "Task",
    "Priority",
    "TransitoryData",
    "CorruptTaskError",
    # Dates
    "UrgencySetting",
    "HideUntilSetting",
    "InvalidSettingError",
    "compute_due_date",
    "compute_hide_until",
    "has_time_component",
    "is_overdue",
    "shift_due_date_preserving_hide_offset",
    # Recurrence
    "Frequency",
    "Weekday",
    "RecurrenceRule",
    "next_due_date",
    "advance_task",
    # Sorting
    "SortMode",
    "Order",
    "score",
    "sort_tasks",
    "order_for_sort_type",
    "order_for_sort_type_recursive",
    "order_select_for_sort_type_recursive",
    "precompute_sort_columns",
]
