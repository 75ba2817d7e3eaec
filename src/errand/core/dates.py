"""
Due date and hide-until normalization - no I/O dependencies.

Stored timestamps are epoch milliseconds. A non-zero timestamp whose seconds
field is 0 means "date only"; a seconds field of 1 means a time of day was set.
All wall-clock arithmetic happens in ``tz`` (None = the process local zone).
"""

import time
from datetime import datetime, tzinfo
from enum import IntEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .tasks import Task

ONE_SECOND = 1000
ONE_MINUTE = 60 * ONE_SECOND
ONE_HOUR = 60 * ONE_MINUTE
ONE_DAY = 24 * ONE_HOUR
ONE_WEEK = 7 * ONE_DAY

# Moves a date-only due date (stored at noon) to 23:59:00 of the same day
DATE_ONLY_SORT_OFFSET = 43140000


class InvalidSettingError(ValueError):
    """Raised for an urgency or hide-until setting outside the known set."""

    pass


class UrgencySetting(IntEnum):
    """How a due date is chosen."""

    NONE = 0
    TODAY = 1
    TOMORROW = 2
    DAY_AFTER_TOMORROW = 3
    NEXT_WEEK = 4
    IN_TWO_WEEKS = 5
    SPECIFIC_DAY = 7
    SPECIFIC_DAY_TIME = 8


class HideUntilSetting(IntEnum):
    """How a hide-until date is chosen."""

    NONE = 0
    WHEN_DUE = 1
    DAY_BEFORE_DUE = 2
    WEEK_BEFORE_DUE = 3
    SPECIFIC_DAY = 4
    SPECIFIC_DAY_TIME = 5
    WHEN_DUE_WITH_TIME = 6


def now_millis() -> int:
    """Current time in milliseconds, truncated to the second."""
    return int(time.time()) * ONE_SECOND


def has_time_component(timestamp: int) -> bool:
    """Whether a due/hide timestamp carries a time of day."""
    return timestamp > 0 and timestamp % ONE_MINUTE != 0


def to_datetime(timestamp: int, tz: tzinfo | None = None) -> datetime:
    """Wall-clock datetime for a timestamp, milliseconds dropped."""
    return datetime.fromtimestamp(timestamp // ONE_SECOND, tz)


def to_millis(dt: datetime) -> int:
    return int(dt.timestamp()) * ONE_SECOND


def start_of_day(timestamp: int, tz: tzinfo | None = None) -> int:
    """Local midnight of the day containing timestamp."""
    dt = to_datetime(timestamp, tz).replace(hour=0, minute=0, second=0)
    return to_millis(dt)


def adjusted_due_date(due_date: int) -> int:
    """
    Date-only due dates sort at the end of their day.

    Matches the SQL ADJUSTED_DUE_DATE for canonical timestamps only. SQL tests
    the seconds field, so a value with stray milliseconds and zero seconds is
    timed here but date-only there.
    """
    if has_time_component(due_date):
        return due_date
    return due_date + DATE_ONLY_SORT_OFFSET


def compute_due_date(
    setting: int,
    custom_date: int = 0,
    now: int | None = None,
    tz: tzinfo | None = None,
) -> int:
    """
    Create a canonical due date.

    Date-only results land at noon with seconds 0. SPECIFIC_DAY_TIME keeps the
    caller's hour and minute and sets seconds to 1.

    Args:
        setting: an UrgencySetting value
        custom_date: timestamp used by SPECIFIC_DAY and SPECIFIC_DAY_TIME
        now: reference time for the relative settings (defaults to now)
        tz: zone for wall-clock adjustments

    Raises:
        InvalidSettingError: setting is not an UrgencySetting
    """
    now = now if now is not None else now_millis()

    match setting:
        case UrgencySetting.NONE:
            base = 0
        case UrgencySetting.TODAY:
            base = now
        case UrgencySetting.TOMORROW:
            base = now + ONE_DAY
        case UrgencySetting.DAY_AFTER_TOMORROW:
            base = now + 2 * ONE_DAY
        case UrgencySetting.NEXT_WEEK:
            base = now + ONE_WEEK
        case UrgencySetting.IN_TWO_WEEKS:
            base = now + 2 * ONE_WEEK
        case UrgencySetting.SPECIFIC_DAY | UrgencySetting.SPECIFIC_DAY_TIME:
            base = custom_date
        case _:
            raise InvalidSettingError(f"Unknown urgency setting {setting!r}")

    if base <= 0:
        return base

    dt = to_datetime(base, tz)
    if setting != UrgencySetting.SPECIFIC_DAY_TIME:
        dt = dt.replace(hour=12, minute=0, second=0)
    else:
        dt = dt.replace(second=1)
    return to_millis(dt)


def compute_hide_until(
    setting: int,
    custom_date: int = 0,
    due_date: int = 0,
    tz: tzinfo | None = None,
) -> int:
    """
    Create a canonical hide-until date.

    Date-only results land at midnight with seconds 0. SPECIFIC_DAY_TIME and
    WHEN_DUE_WITH_TIME keep hour and minute and set seconds to 1.

    Raises:
        InvalidSettingError: setting is not a HideUntilSetting
    """
    match setting:
        case HideUntilSetting.NONE:
            return 0
        case HideUntilSetting.WHEN_DUE | HideUntilSetting.WHEN_DUE_WITH_TIME:
            base = due_date
        case HideUntilSetting.DAY_BEFORE_DUE:
            base = due_date - ONE_DAY
        case HideUntilSetting.WEEK_BEFORE_DUE:
            base = due_date - ONE_WEEK
        case HideUntilSetting.SPECIFIC_DAY | HideUntilSetting.SPECIFIC_DAY_TIME:
            base = custom_date
        case _:
            raise InvalidSettingError(f"Unknown hide-until setting {setting!r}")

    if base <= 0:
        return base

    dt = to_datetime(base, tz)
    if setting not in (HideUntilSetting.SPECIFIC_DAY_TIME, HideUntilSetting.WHEN_DUE_WITH_TIME):
        dt = dt.replace(hour=0, minute=0, second=0)
    else:
        dt = dt.replace(second=1)
    return to_millis(dt)


def is_overdue(task: "Task", now: int | None = None, tz: tzinfo | None = None) -> bool:
    """
    Past due and not completed.

    Timed tasks compare against now; date-only tasks against today's midnight,
    so something due today is not overdue until tomorrow.
    """
    now = now if now is not None else now_millis()
    compare_to = now if has_time_component(task.due_date) else start_of_day(now, tz)
    return task.due_date < compare_to and not task.is_completed()


def shift_due_date_preserving_hide_offset(task: "Task", new_due_date: int) -> None:
    """Set a new due date, moving hide_until by the same amount."""
    if task.due_date > 0 and task.hide_until > 0:
        task.hide_until = task.hide_until + new_due_date - task.due_date if new_due_date > 0 else 0
    task.due_date = new_due_date
