"""Task repository interface."""

from typing import Protocol

from errand.core.tasks import Task, TransitoryData


class TaskRepository(Protocol):
    """Interface for loading and storing tasks in any backend."""

    def fetch(self, task_id: int) -> Task | None:
        """Fetch one task. Returns None if not found."""
        ...

    def fetch_all(self) -> list[Task]:
        """Fetch all tasks."""
        ...

    def save(self, task: Task, transitory: TransitoryData | None = None) -> Task:
        """
        Store a task, assigning an id if it is new.

        A saved task is queued for sync unless transitory suppresses it.
        """
        ...
