"""Errand CLI - task scheduling and ordering."""

import json
import logging
import sys
from datetime import datetime, tzinfo

import click

from .adapters import JsonTaskSource, MemoryTaskStore, RRuleTextParser
from .config import load_config
from .core.dates import (
    HideUntilSetting,
    InvalidSettingError,
    UrgencySetting,
    compute_due_date,
    compute_hide_until,
    has_time_component,
    is_overdue,
    now_millis,
    to_datetime,
)
from .core.recurrence import Frequency, RecurrenceRule, next_due_date
from .core.sorting import (
    SortMode,
    adjust_query_for_sort,
    order_for_sort_type_recursive,
    order_select_for_sort_type_recursive,
)
from .core.tasks import CorruptTaskError, Priority, Task
from .workflows import TaskNotFoundError, complete_task, list_tasks

MODE_CHOICE = click.Choice([m.name for m in SortMode], case_sensitive=False)


def parse_timestamp(value: str | None, tz: tzinfo | None) -> int:
    """Epoch milliseconds from an integer or an ISO date/datetime string."""
    if not value:
        return 0
    if value.lstrip("-").isdigit():
        return int(value)
    try:
        dt = datetime.fromisoformat(value)
    except ValueError:
        raise click.BadParameter(f"Not a timestamp or ISO date: {value}") from None
    if dt.tzinfo is None and tz is not None:
        dt = dt.replace(tzinfo=tz)
    return int(dt.timestamp() * 1000)


def format_timestamp(timestamp: int, tz: tzinfo | None) -> str:
    """Date, plus time of day when the timestamp carries one."""
    if timestamp <= 0:
        return "none"
    dt = to_datetime(timestamp, tz)
    return dt.strftime("%Y-%m-%d %H:%M") if has_time_component(timestamp) else dt.strftime("%Y-%m-%d")


def _echo_timestamp(timestamp: int, tz: tzinfo | None, as_json: bool) -> None:
    if as_json:
        click.echo(
            json.dumps(
                {
                    "timestamp": timestamp,
                    "has_time": has_time_component(timestamp),
                    "display": format_timestamp(timestamp, tz),
                }
            )
        )
    else:
        click.echo(f"{timestamp}  {format_timestamp(timestamp, tz)}")


def _load_tasks(path: str) -> list[Task]:
    try:
        return JsonTaskSource(path).load()
    except (CorruptTaskError, json.JSONDecodeError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


@click.group()
@click.version_option()
@click.option("--debug", is_flag=True, help="Enable debug logging")
def main(debug: bool):
    """Errand - task scheduling and ordering."""
    if debug:
        logging.basicConfig(
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            level=logging.DEBUG,
        )


@main.command()
@click.argument("setting", type=click.Choice([s.name for s in UrgencySetting], case_sensitive=False))
@click.option("--date", "-d", "custom_date", default=None, help="Date for SPECIFIC_DAY[_TIME]")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def due(setting: str, custom_date: str | None, as_json: bool):
    """Compute a due date from an urgency setting."""
    tz = load_config().tzinfo()
    try:
        result = compute_due_date(UrgencySetting[setting.upper()], parse_timestamp(custom_date, tz), tz=tz)
    except InvalidSettingError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    _echo_timestamp(result, tz, as_json)


@main.command()
@click.argument("setting", type=click.Choice([s.name for s in HideUntilSetting], case_sensitive=False))
@click.option("--due", "due_date", default=None, help="Task due date")
@click.option("--date", "-d", "custom_date", default=None, help="Date for SPECIFIC_DAY[_TIME]")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def hide(setting: str, due_date: str | None, custom_date: str | None, as_json: bool):
    """Compute a hide-until date from a hide setting."""
    tz = load_config().tzinfo()
    result = compute_hide_until(
        HideUntilSetting[setting.upper()],
        parse_timestamp(custom_date, tz),
        parse_timestamp(due_date, tz),
        tz=tz,
    )
    _echo_timestamp(result, tz, as_json)


@main.command("next")
@click.argument("frequency", type=click.Choice([f.value for f in Frequency], case_sensitive=False))
@click.option("--interval", "-i", default=1, type=click.IntRange(min=1), help="Repeat every N units")
@click.option("--byday", default="", help="Weekdays for WEEKLY, e.g. MO,WE")
@click.option("--due", "due_date", default=None, help="Current due date")
@click.option("--completed", "completed", default=None, help="Completion time (defaults to now)")
@click.option("--from-completion", is_flag=True, help="Repeat from completion instead of due date")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def next_(
    frequency: str,
    interval: int,
    byday: str,
    due_date: str | None,
    completed: str | None,
    from_completion: bool,
    as_json: bool,
):
    """Compute the next due date of a repeating task."""
    tz = load_config().tzinfo()
    try:
        rule = RecurrenceRule.from_parts(frequency, interval, byday.split(","))
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    completion = parse_timestamp(completed, tz) or now_millis()
    result = next_due_date(rule, parse_timestamp(due_date, tz), completion, from_completion, tz)
    _echo_timestamp(result, tz, as_json)


@main.command("list")
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@click.option("--mode", "-m", type=MODE_CHOICE, default=None, help="Sort mode (defaults to config)")
@click.option("--reverse/--no-reverse", default=None, help="Reverse the primary sort")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def list_(path: str, mode: str | None, reverse: bool | None, as_json: bool):
    """List tasks from a JSON export in sort order."""
    config = load_config()
    if mode is not None:
        config.sort_mode = SortMode[mode.upper()]
    if reverse is not None:
        config.reverse_sort = reverse
    tz = config.tzinfo()

    ordered = list_tasks(_load_tasks(path), config)

    if as_json:
        click.echo(json.dumps([t.to_dict() for t in ordered], indent=2))
        return

    if not ordered:
        click.echo("No tasks.")
        return

    for task in ordered:
        overdue = " OVERDUE" if task.has_due_date() and is_overdue(task, tz=tz) else ""
        click.echo(f"[{Priority(task.priority).name}] {task.title} (due {format_timestamp(task.due_date, tz)}){overdue}")


@main.command()
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@click.argument("task_id", type=int)
@click.option("--at", "completed_at", default=None, help="Completion time (defaults to now)")
def complete(path: str, task_id: int, completed_at: str | None):
    """Complete a task from a JSON export and print its updated row."""
    tz = load_config().tzinfo()
    store = MemoryTaskStore(_load_tasks(path))
    completion = parse_timestamp(completed_at, tz) or None
    try:
        task = complete_task(store, RRuleTextParser(), task_id, completion, tz)
    except (TaskNotFoundError, ValueError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    click.echo(json.dumps(task.to_dict(), indent=2))


@main.command()
@click.option("--mode", "-m", type=MODE_CHOICE, default=None, help="Sort mode (defaults to config)")
@click.option("--reverse/--no-reverse", default=None, help="Reverse the primary sort")
@click.option("--recursive", is_flag=True, help="Order over precomputed sort columns")
@click.option("--query", default="SELECT * FROM tasks", help="Query to append ORDER BY to")
def order(mode: str | None, reverse: bool | None, recursive: bool, query: str):
    """Print the SQL ordering for a sort mode."""
    config = load_config()
    sort_mode = SortMode[mode.upper()] if mode else config.sort_mode
    reverse = config.reverse_sort if reverse is None else reverse

    if recursive:
        click.echo(f"SELECT {order_select_for_sort_type_recursive(sort_mode)}")
        click.echo(f"ORDER BY {order_for_sort_type_recursive(sort_mode, reverse)}")
    else:
        click.echo(adjust_query_for_sort(query, sort_mode, reverse).strip())
