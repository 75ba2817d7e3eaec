"""Ports - interfaces/protocols for external dependencies."""

from .task_repo import TaskRepository
from .recurrence_parser import RecurrenceParser

__all__ = [
    "TaskRepository",
    "RecurrenceParser",
]
