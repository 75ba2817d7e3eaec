"""Recurrence rule parser interface."""

from typing import Protocol

from errand.core.recurrence import RecurrenceRule


class RecurrenceParser(Protocol):
    """Interface for turning stored RRULE text into a RecurrenceRule."""

    def parse(self, recurrence: str) -> RecurrenceRule:
        """Parse rule text with any FROM= marker already removed."""
        ...
