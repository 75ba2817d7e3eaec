"""In-memory task store adapter."""

import itertools
import logging
from dataclasses import replace

from errand.core.tasks import NO_ID, SUPPRESS_SYNC, Task, TransitoryData

logger = logging.getLogger(__name__)


class MemoryTaskStore:
    """
    Dict-backed task storage.

    Implements TaskRepository protocol. Holds copies, so callers never share
    a Task instance with the store. Ids saved without SUPPRESS_SYNC collect in
    `outstanding` until a sync drains them.
    """

    def __init__(self, tasks: list[Task] | None = None):
        self._tasks: dict[int, Task] = {}
        self._ids = itertools.count(1)
        self.outstanding: set[int] = set()
        for task in tasks or []:
            self.save(task)
        self.outstanding.clear()

    def fetch(self, task_id: int) -> Task | None:
        """Fetch one task. Returns None if not found."""
        task = self._tasks.get(task_id)
        return replace(task) if task else None

    def fetch_all(self) -> list[Task]:
        """Fetch all tasks in id order."""
        return [replace(t) for _, t in sorted(self._tasks.items())]

    def save(self, task: Task, transitory: TransitoryData | None = None) -> Task:
        """Store a copy of task, assigning the next free id if it is new."""
        if task.id == NO_ID:
            task.id = next(self._ids)
            while task.id in self._tasks:
                task.id = next(self._ids)
            logger.debug(f"Created task {task.id}")
        self._tasks[task.id] = replace(task)

        if transitory is not None and transitory.check(SUPPRESS_SYNC):
            logger.debug(f"Sync suppressed for task {task.id}")
        else:
            self.outstanding.add(task.id)
        return task

    def drain_outstanding(self) -> list[int]:
        """Ids waiting for sync, clearing the queue."""
        ids = sorted(self.outstanding)
        self.outstanding.clear()
        return ids
