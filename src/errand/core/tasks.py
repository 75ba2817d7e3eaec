"""Pure task domain logic - no I/O dependencies."""

import re
import threading
from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Callable

from .dates import has_time_component, now_millis

NO_ID = 0
NO_UUID = "0"

# Notification flags
NOTIFY_AT_DEADLINE = 1 << 1
NOTIFY_AFTER_DEADLINE = 1 << 2
NOTIFY_MODE_NONSTOP = 1 << 3
NOTIFY_MODE_FIVE = 1 << 4

# Transitory keys
SUPPRESS_SYNC = "suppress_sync"
SUPPRESS_REFRESH = "suppress_refresh"
TAGS = "tags"

FROM_COMPLETION = "FROM=COMPLETION"

_FROM_PATTERN = re.compile(r";?FROM=[^;]*")


class CorruptTaskError(ValueError):
    """Raised when a stored task holds a value outside its domain."""

    pass


class Priority(IntEnum):
    """Task importance. Lower value = more urgent."""

    HIGH = 0
    MEDIUM = 1
    LOW = 2
    NONE = 3


@dataclass
class Task:
    """A task as stored. Timestamps are epoch milliseconds, 0 = unset."""

    id: int = NO_ID
    title: str = ""
    priority: int = Priority.NONE
    due_date: int = 0
    hide_until: int = 0
    created: int = 0
    modified: int = 0
    completed: int = 0
    deleted: int = 0
    recurrence: str = ""
    repeat_until: int = 0
    notification_flags: int = 0
    notes: str = ""
    remote_id: str = NO_UUID
    parent: int = 0

    @property
    def is_new(self) -> bool:
        return self.id == NO_ID

    @property
    def is_saved(self) -> bool:
        return self.id != NO_ID

    def is_completed(self) -> bool:
        return self.completed > 0

    def is_deleted(self) -> bool:
        return self.deleted > 0

    def is_hidden(self, now: int | None = None) -> bool:
        """Hidden while hide_until lies in the future."""
        now = now if now is not None else now_millis()
        return self.hide_until > now

    def has_due_date(self) -> bool:
        return self.due_date > 0

    def has_hide_until_date(self) -> bool:
        return self.hide_until > 0

    def has_due_time(self) -> bool:
        """Whether the due date carries a time of day, not just a date."""
        return self.has_due_date() and has_time_component(self.due_date)

    def is_recurring(self) -> bool:
        return bool(self.recurrence)

    def repeat_after_completion(self) -> bool:
        """Recurrence is anchored on completion instead of the due date."""
        return FROM_COMPLETION in self.recurrence

    def recurrence_without_from(self) -> str:
        return _FROM_PATTERN.sub("", self.recurrence)

    def sanitized_recurrence(self) -> str:
        return self.recurrence_without_from().replace("BYDAY=;", "")

    def set_recurrence(self, rule_text: str, after_completion: bool) -> None:
        self.recurrence = rule_text + (f";{FROM_COMPLETION}" if after_completion else "")

    def is_notify_at_deadline(self) -> bool:
        return self._is_flag_set(NOTIFY_AT_DEADLINE)

    def is_notify_after_deadline(self) -> bool:
        return self._is_flag_set(NOTIFY_AFTER_DEADLINE)

    def is_notify_mode_nonstop(self) -> bool:
        return self._is_flag_set(NOTIFY_MODE_NONSTOP)

    def is_notify_mode_five(self) -> bool:
        return self._is_flag_set(NOTIFY_MODE_FIVE)

    def _is_flag_set(self, flag: int) -> bool:
        return (self.notification_flags & flag) > 0

    def insignificant_change(self, other: "Task | None") -> bool:
        """True when no persisted field differs from other."""
        if other is self:
            return True
        if other is None:
            return False
        return self.to_dict() == other.to_dict()

    @classmethod
    def from_dict(cls, data: dict) -> "Task":
        """
        Create Task from a stored row (camelCase column names).

        Raises CorruptTaskError if importance is outside HIGH..NONE.
        """
        raw_priority = data.get("importance", Priority.NONE)
        try:
            priority = Priority(raw_priority)
        except ValueError:
            raise CorruptTaskError(
                f"Task {data.get('_id', NO_ID)} has invalid importance {raw_priority!r}"
            ) from None
        return cls(
            id=data.get("_id", NO_ID) or NO_ID,
            title=data.get("title", "") or "",
            priority=int(priority),
            due_date=data.get("dueDate", 0) or 0,
            hide_until=data.get("hideUntil", 0) or 0,
            created=data.get("created", 0) or 0,
            modified=data.get("modified", 0) or 0,
            completed=data.get("completed", 0) or 0,
            deleted=data.get("deleted", 0) or 0,
            recurrence=data.get("recurrence", "") or "",
            repeat_until=data.get("repeatUntil", 0) or 0,
            notification_flags=data.get("notificationFlags", 0) or 0,
            notes=data.get("notes", "") or "",
            remote_id=data.get("remoteId") or NO_UUID,
            parent=data.get("parent", 0) or 0,
        )

    def to_dict(self) -> dict:
        """Serialize persisted fields using stored column names."""
        return {
            "_id": self.id,
            "title": self.title,
            "importance": int(self.priority),
            "dueDate": self.due_date,
            "hideUntil": self.hide_until,
            "created": self.created,
            "modified": self.modified,
            "completed": self.completed,
            "deleted": self.deleted,
            "recurrence": self.recurrence,
            "repeatUntil": self.repeat_until,
            "notificationFlags": self.notification_flags,
            "notes": self.notes,
            "remoteId": self.remote_id,
            "parent": self.parent,
        }


class TransitoryData:
    """
    In-process flags travelling alongside a Task.

    Never persisted or serialized. The backing dict is created on first write,
    and every access holds this instance's lock.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._data: dict[str, Any] | None = None

    def put(self, key: str, value: Any) -> None:
        with self._lock:
            if self._data is None:
                self._data = {}
            self._data[key] = value

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            if self._data is None:
                return default
            return self._data.get(key, default)

    def update(self, key: str, fn: Callable[[Any], Any], default: Any = None) -> Any:
        """Replace the value under key with fn(current) in one locked step."""
        with self._lock:
            if self._data is None:
                self._data = {}
            value = fn(self._data.get(key, default))
            self._data[key] = value
            return value

    def has(self, key: str) -> bool:
        with self._lock:
            return self._data is not None and key in self._data

    def check(self, flag: str) -> bool:
        """Flag is set to something other than None."""
        return self.get(flag) is not None

    def suppress_sync(self) -> None:
        self.put(SUPPRESS_SYNC, True)

    def suppress_refresh(self) -> None:
        self.put(SUPPRESS_REFRESH, True)

    @property
    def tags(self) -> list[str]:
        return list(self.get(TAGS) or [])

    def set_tags(self, tags: list[str]) -> None:
        self.put(TAGS, list(tags))

    def add_tag(self, tag: str) -> None:
        self.update(TAGS, lambda tags: [*(tags or []), tag])

    def __bool__(self) -> bool:
        with self._lock:
            return bool(self._data)
