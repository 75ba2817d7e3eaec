"""
Task ordering for the six list sort modes - no I/O dependencies.

Each mode exists in three equivalent forms: a per-task score used to sort in
Python, an SQL ORDER BY expression for a query builder, and named precomputed
columns for recursive (subtask) queries that cannot re-evaluate expressions
per row. The numbers are identical in all three for canonical timestamps
(see adjusted_due_date).
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Iterable

from .dates import DATE_ONLY_SORT_OFFSET, adjusted_due_date, now_millis
from .tasks import Task

# Two days per priority step in smart sort
SMART_PRIORITY_SPREAD = 172800000

NOW_SQL = "(strftime('%s','now')*1000)"
ADJUSTED_DUE_DATE = (
    f"(CASE WHEN (dueDate / 1000) % 60 > 0 THEN dueDate ELSE (dueDate + {DATE_ONLY_SORT_OFFSET}) END)"
)


class SortMode(IntEnum):
    """List sort modes, as stored in preferences."""

    AUTO = 0
    ALPHA = 1
    DUE = 2
    IMPORTANCE = 3
    MODIFIED = 4
    CREATED = 5

    @classmethod
    def coerce(cls, value: Any) -> "SortMode":
        """Mode for a stored value or name. Anything unknown is AUTO."""
        if isinstance(value, str):
            name = value.strip().upper()
            if name == "SMART":
                return cls.AUTO
            if name in cls.__members__:
                return cls[name]
            if not name.isdigit():
                return cls.AUTO
            value = int(name)
        try:
            return cls(value)
        except ValueError:
            return cls.AUTO


DESCENDING_MODES = frozenset({SortMode.MODIFIED, SortMode.CREATED})

SORT_COLUMNS = {
    SortMode.ALPHA: "sort_title",
    SortMode.DUE: "sort_duedate",
    SortMode.IMPORTANCE: "sort_importance",
    SortMode.MODIFIED: "sort_modified",
    SortMode.CREATED: "sort_created",
    SortMode.AUTO: "sort_smart",
}


@dataclass
class Order:
    """An SQL ordering term with optional secondary terms."""

    expression: str
    ascending: bool = True
    secondary: list["Order"] = field(default_factory=list)

    @classmethod
    def asc(cls, expression: str) -> "Order":
        return cls(expression, True)

    @classmethod
    def desc(cls, expression: str) -> "Order":
        return cls(expression, False)

    def add_secondary(self, order: "Order") -> None:
        self.secondary.append(order)

    def reverse(self) -> "Order":
        """Flip the primary direction only. Secondary terms keep theirs."""
        return Order(self.expression, not self.ascending, list(self.secondary))

    def __str__(self) -> str:
        terms = [f"{self.expression} {'ASC' if self.ascending else 'DESC'}"]
        terms.extend(str(s) for s in self.secondary)
        return ", ".join(terms)


ORDER_TITLE = Order.asc("UPPER(title)")


# ============== Per-task scores ==============


def _due_score(due_date: int, now: int) -> int:
    """Undated tasks get now*2, which is later than any real due date."""
    return now * 2 if due_date == 0 else adjusted_due_date(due_date)


def score(task: Task, mode: Any = SortMode.AUTO, now: int | None = None) -> int | str:
    """
    Primary sort key of a task for a mode.

    Numeric for every mode except ALPHA, which returns the upper-cased title.
    Lower priority values (HIGH=0) score earlier.
    """
    now = now if now is not None else now_millis()
    match SortMode.coerce(mode):
        case SortMode.ALPHA:
            return task.title.upper()
        case SortMode.DUE:
            return _due_score(task.due_date, now) + task.priority
        case SortMode.IMPORTANCE:
            return task.priority * now + (now if task.due_date == 0 else task.due_date)
        case SortMode.MODIFIED:
            return task.modified
        case SortMode.CREATED:
            return task.created
        case _:
            return _due_score(task.due_date, now) + SMART_PRIORITY_SPREAD * task.priority


def sort_tasks(
    tasks: Iterable[Task],
    mode: Any = SortMode.AUTO,
    reverse: bool = False,
    now: int | None = None,
) -> list[Task]:
    """
    Order tasks for display.

    Ties on the primary key break on title, ascending and case-insensitive,
    even when reverse is set. ALPHA has no tie-break.
    """
    mode = SortMode.coerce(mode)
    now = now if now is not None else now_millis()

    ordered = list(tasks)
    # Stable sorts: tie-break first, then primary
    if mode != SortMode.ALPHA:
        ordered.sort(key=lambda t: t.title.upper())
    descending = mode in DESCENDING_MODES
    ordered.sort(key=lambda t: score(t, mode, now), reverse=descending != reverse)
    return ordered


# ============== SQL ordering ==============


def order_for_sort_type(mode: Any = SortMode.AUTO, reverse: bool = False) -> Order:
    """ORDER BY terms computing the per-task scores in SQL."""
    mode = SortMode.coerce(mode)
    match mode:
        case SortMode.ALPHA:
            order = Order.asc(ORDER_TITLE.expression)
        case SortMode.DUE:
            order = Order.asc(
                f"(CASE WHEN (dueDate=0) THEN {NOW_SQL}*2 ELSE {ADJUSTED_DUE_DATE} END)+importance"
            )
        case SortMode.IMPORTANCE:
            order = Order.asc(
                f"importance*{NOW_SQL}+(CASE WHEN (dueDate=0) THEN {NOW_SQL} ELSE dueDate END)"
            )
        case SortMode.MODIFIED:
            order = Order.desc("modified")
        case SortMode.CREATED:
            order = Order.desc("created")
        case _:
            order = Order.asc(
                f"(CASE WHEN (dueDate=0) THEN {NOW_SQL}*2 ELSE ({ADJUSTED_DUE_DATE}) END) "
                f"+ {SMART_PRIORITY_SPREAD} * importance"
            )
    if mode != SortMode.ALPHA:
        order.add_secondary(ORDER_TITLE)
    return order.reverse() if reverse else order


def adjust_query_for_sort(sql: str | None, mode: Any = SortMode.AUTO, reverse: bool = False) -> str:
    """Append an ORDER BY clause unless the query already has one."""
    sql = sql or ""
    if "ORDER BY" not in sql.upper():
        sql += f" ORDER BY {order_for_sort_type(mode, reverse)}"
    return sql


# ============== Precomputed columns ==============


def order_select_for_sort_type_recursive(mode: Any = SortMode.AUTO) -> str:
    """SELECT term computing the mode's sort column on the tasks table."""
    mode = SortMode.coerce(mode)
    adjusted = ADJUSTED_DUE_DATE.replace("dueDate", "tasks.dueDate")
    match mode:
        case SortMode.ALPHA:
            # Fills the WITH clause template; sort_title is selected separately
            return "''"
        case SortMode.DUE:
            return (
                f"(CASE WHEN (tasks.dueDate=0) THEN {NOW_SQL}*2 ELSE {adjusted} END)"
                f"+tasks.importance AS sort_duedate"
            )
        case SortMode.IMPORTANCE:
            return (
                f"tasks.importance*{NOW_SQL}+(CASE WHEN (tasks.dueDate=0) THEN {NOW_SQL} "
                f"ELSE tasks.dueDate END) AS sort_importance"
            )
        case SortMode.MODIFIED:
            return "tasks.modified AS sort_modified"
        case SortMode.CREATED:
            return "tasks.created AS sort_created"
        case _:
            return (
                f"(CASE WHEN (tasks.dueDate=0) THEN {NOW_SQL}*2 ELSE ({adjusted}) END) "
                f"+ {SMART_PRIORITY_SPREAD} * tasks.importance AS sort_smart"
            )


def order_for_sort_type_recursive(mode: Any = SortMode.AUTO, reverse: bool = False) -> Order:
    """ORDER BY terms over the precomputed sort columns."""
    mode = SortMode.coerce(mode)
    column = SORT_COLUMNS[mode]
    order = Order.desc(column) if mode in DESCENDING_MODES else Order.asc(column)
    if mode != SortMode.ALPHA:
        order.add_secondary(Order.asc("sort_title"))
    return order.reverse() if reverse else order


def precompute_sort_columns(task: Task, now: int | None = None) -> dict[str, int | str]:
    """All six sort columns for one task, from a single `now`."""
    now = now if now is not None else now_millis()
    return {column: score(task, mode, now) for mode, column in SORT_COLUMNS.items()}


def sort_rows(
    rows: Iterable[dict[str, Any]],
    mode: Any = SortMode.AUTO,
    reverse: bool = False,
) -> list[dict[str, Any]]:
    """Order rows carrying precomputed sort columns, as the recursive query does."""
    order = order_for_sort_type_recursive(mode, reverse)
    ordered = list(rows)
    for term in reversed([order, *order.secondary]):
        ordered.sort(key=lambda r: r[term.expression], reverse=not term.ascending)
    return ordered
