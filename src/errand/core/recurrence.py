"""Recurrence advancement - next due date of a repeating task. No I/O dependencies."""

import calendar
import logging
from dataclasses import dataclass, field
from datetime import tzinfo
from enum import Enum, IntEnum
from typing import Iterable

from .dates import (
    ONE_DAY,
    ONE_HOUR,
    ONE_MINUTE,
    ONE_WEEK,
    UrgencySetting,
    compute_due_date,
    to_datetime,
    to_millis,
)
from .tasks import Task

logger = logging.getLogger(__name__)


class Frequency(Enum):
    """RFC5545 FREQ values supported for task repeats."""

    MINUTELY = "MINUTELY"
    HOURLY = "HOURLY"
    DAILY = "DAILY"
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"
    YEARLY = "YEARLY"


class Weekday(IntEnum):
    """BYDAY tokens in week-cycle order, Sunday first."""

    SU = 0
    MO = 1
    TU = 2
    WE = 3
    TH = 4
    FR = 5
    SA = 6


@dataclass(frozen=True)
class RecurrenceRule:
    """A recurrence rule already parsed from its RRULE text."""

    frequency: Frequency
    interval: int = 1
    by_weekday: frozenset[Weekday] = field(default_factory=frozenset)

    def __post_init__(self):
        if self.interval < 1:
            raise ValueError(f"Recurrence interval must be positive, got {self.interval}")

    @classmethod
    def from_parts(cls, frequency: str, interval: int = 1, by_day: Iterable[str] = ()) -> "RecurrenceRule":
        """
        Build a rule from FREQ/INTERVAL/BYDAY token values.

        Raises ValueError for an unknown frequency or weekday token.
        """
        try:
            weekdays = frozenset(Weekday[d.strip().upper()] for d in by_day if d.strip())
        except KeyError as e:
            raise ValueError(f"Unknown weekday {e.args[0]!r}") from None
        return cls(
            frequency=Frequency(frequency.strip().upper()),
            interval=interval,
            by_weekday=weekdays,
        )


def weekday_of(timestamp: int, tz: tzinfo | None = None) -> Weekday:
    """Weekday of a timestamp in the given zone."""
    # datetime.weekday() is Monday=0; Weekday is Sunday=0
    return Weekday((to_datetime(timestamp, tz).weekday() + 1) % 7)


def days_until_next_weekday(start: Weekday, weekdays: Iterable[Weekday]) -> int:
    """
    Days from start to the next listed weekday, 1..7.

    Never 0: the start day itself only matches after a full week.
    """
    weekdays = set(weekdays)
    for days in range(1, 8):
        if Weekday((start + days) % 7) in weekdays:
            return days
    return 7


def _advance_weekly_by_day(
    anchor: int, rule: RecurrenceRule, from_completion: bool, tz: tzinfo | None
) -> int:
    days_to_add = days_until_next_weekday(weekday_of(anchor, tz), rule.by_weekday)
    result = anchor
    # Interval only skips whole weeks when repeating from completion
    if from_completion:
        result += ONE_WEEK * (rule.interval - 1)
    return result + ONE_DAY * days_to_add


def _advance_months(anchor: int, months: int, tz: tzinfo | None) -> int:
    """
    Step forward one calendar month at a time.

    A day-of-month the target month lacks spills into the next month
    (Jan 31 -> Mar 3 in a common year), and later steps continue from there.
    """
    dt = to_datetime(anchor, tz)
    year, month, day = dt.year, dt.month, dt.day
    for _ in range(months):
        if month == 12:
            year += 1
            month = 1
        else:
            month += 1
        days_in_month = calendar.monthrange(year, month)[1]
        if day > days_in_month:
            day -= days_in_month
            month += 1
    return to_millis(dt.replace(year=year, month=month, day=day))


def _advance_years(anchor: int, years: int, tz: tzinfo | None) -> int:
    """Same month and day, `years` later. Feb 29 clamps to Feb 28."""
    dt = to_datetime(anchor, tz)
    year = dt.year + years
    day = min(dt.day, calendar.monthrange(year, dt.month)[1])
    return to_millis(dt.replace(year=year, day=day))


def next_due_date(
    rule: RecurrenceRule,
    due_date: int,
    completion_date: int,
    from_completion: bool,
    tz: tzinfo | None = None,
) -> int:
    """
    Compute the next due date of a repeating task.

    The anchor is the completion date when repeating from completion, else the
    current due date. The result always carries a time (seconds = 1). Checking
    it against repeat_until is left to the caller.
    """
    anchor = completion_date if from_completion else due_date
    interval = rule.interval

    match rule.frequency:
        case Frequency.MINUTELY:
            raw = anchor + interval * ONE_MINUTE
        case Frequency.HOURLY:
            raw = anchor + interval * ONE_HOUR
        case Frequency.DAILY:
            raw = anchor + interval * ONE_DAY
        case Frequency.WEEKLY if not rule.by_weekday:
            raw = anchor + interval * ONE_WEEK
        case Frequency.WEEKLY:
            raw = _advance_weekly_by_day(anchor, rule, from_completion, tz)
        case Frequency.MONTHLY:
            raw = _advance_months(anchor, interval, tz)
        case Frequency.YEARLY:
            raw = _advance_years(anchor, interval, tz)
        case _:
            logger.warning(f"Unexpected recurrence frequency {rule.frequency!r}, keeping {anchor}")
            return anchor

    logger.debug(f"Advanced {rule.frequency.value} x{interval} from {anchor} to {raw}")
    return compute_due_date(UrgencySetting.SPECIFIC_DAY_TIME, raw, tz=tz)


def advance_task(
    task: Task,
    rule: RecurrenceRule,
    completion_date: int,
    tz: tzinfo | None = None,
) -> int:
    """
    Next due date for task, anchored as its recurrence text says.

    A task without a due date always repeats from its completion.
    """
    from_completion = task.repeat_after_completion() or not task.has_due_date()
    return next_due_date(rule, task.due_date, completion_date, from_completion, tz)
