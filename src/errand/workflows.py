"""Shared workflow layer between the CLI and the storage/event collaborators.

Each function wires ports to the functional core: load, compute, store.
"""

import logging
from datetime import tzinfo
from typing import Iterable

from .config import Config
from .core.dates import ONE_MINUTE, now_millis, shift_due_date_preserving_hide_offset
from .core.recurrence import advance_task
from .core.sorting import sort_tasks
from .core.tasks import Task, TransitoryData
from .ports import RecurrenceParser, TaskRepository

logger = logging.getLogger(__name__)

# Completed tasks stay listed this long when temporarily showing completed
RECENTLY_COMPLETED_WINDOW = ONE_MINUTE


class TaskNotFoundError(LookupError):
    """Raised when a task id is not in the repository."""

    pass


def complete_task(
    repo: TaskRepository,
    parser: RecurrenceParser,
    task_id: int,
    completion_date: int | None = None,
    tz: tzinfo | None = None,
    transitory: TransitoryData | None = None,
) -> Task:
    """
    Handle a "task completed" event.

    Non-repeating tasks are marked completed. Repeating tasks stay open with
    due and hide-until dates moved to the next occurrence, unless that
    occurrence falls after repeat_until, in which case they complete.
    Undated repeating tasks are scheduled from the completion date.

    transitory travels with the task to repo.save, so a caller that set
    suppress_sync keeps the change out of the sync queue.
    """
    task = repo.fetch(task_id)
    if task is None:
        raise TaskNotFoundError(f"No task with id {task_id}")

    completion_date = completion_date if completion_date is not None else now_millis()
    task.modified = completion_date

    if not task.is_recurring():
        task.completed = completion_date
        return repo.save(task, transitory)

    rule = parser.parse(task.sanitized_recurrence())
    new_due_date = advance_task(task, rule, completion_date, tz)

    if task.repeat_until > 0 and new_due_date > task.repeat_until:
        logger.info(f"Task {task.id} passed its repeat limit, completing")
        task.completed = completion_date
        return repo.save(task, transitory)

    logger.info(f"Task {task.id} repeats: due {task.due_date} -> {new_due_date}")
    shift_due_date_preserving_hide_offset(task, new_due_date)
    task.completed = 0
    return repo.save(task, transitory)


def _completed_visible(task: Task, config: Config, now: int) -> bool:
    if not task.is_completed() or config.show_completed:
        return True
    return config.temporarily_show_completed and task.completed > now - RECENTLY_COMPLETED_WINDOW


def visible_tasks(tasks: Iterable[Task], config: Config, now: int | None = None) -> list[Task]:
    """
    Drop deleted tasks, and completed or hidden ones unless preferences show them.

    show_completed wins over temporarily_show_completed, which only keeps
    tasks completed within the last minute.
    """
    now = now if now is not None else now_millis()
    return [
        t
        for t in tasks
        if not t.is_deleted()
        and _completed_visible(t, config, now)
        and (config.show_hidden or not t.is_hidden(now))
    ]


def list_tasks(tasks: Iterable[Task], config: Config, now: int | None = None) -> list[Task]:
    """Visible tasks in the configured sort order."""
    now = now if now is not None else now_millis()
    return sort_tasks(
        visible_tasks(tasks, config, now),
        mode=config.sort_mode,
        reverse=config.reverse_sort,
        now=now,
    )
