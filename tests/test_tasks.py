"""Tests for core task logic."""

import threading

import pytest

from errand.core.tasks import (
    NO_ID,
    NOTIFY_AFTER_DEADLINE,
    NOTIFY_AT_DEADLINE,
    NOTIFY_MODE_FIVE,
    SUPPRESS_SYNC,
    CorruptTaskError,
    Priority,
    Task,
    TransitoryData,
)


@pytest.fixture
def row():
    """A stored task row."""
    return {
        "_id": 7,
        "title": "Water plants",
        "importance": 1,
        "dueDate": 1704283201000,
        "hideUntil": 1704240000000,
        "created": 1704000000000,
        "modified": 1704100000000,
        "completed": 0,
        "deleted": 0,
        "recurrence": "FREQ=DAILY;INTERVAL=2",
        "repeatUntil": 0,
        "notificationFlags": 6,
        "notes": "",
        "remoteId": "0",
        "parent": 0,
    }


class TestTask:
    def test_defaults(self):
        task = Task()
        assert task.id == NO_ID
        assert task.is_new is True
        assert task.is_saved is False
        assert task.priority == Priority.NONE
        assert task.has_due_date() is False
        assert task.is_recurring() is False

    def test_priority_scale_is_inverted(self):
        assert Priority.HIGH < Priority.MEDIUM < Priority.LOW < Priority.NONE
        assert [p.value for p in Priority] == [0, 1, 2, 3]

    def test_completed_and_deleted(self):
        task = Task(completed=1, deleted=1)
        assert task.is_completed() is True
        assert task.is_deleted() is True

    def test_is_hidden(self):
        task = Task(hide_until=2000)
        assert task.is_hidden(now=1000) is True
        assert task.is_hidden(now=2000) is False
        assert Task().is_hidden(now=1000) is False

    def test_has_due_time(self):
        assert Task(due_date=1704283201000).has_due_time() is True
        assert Task(due_date=1704283200000).has_due_time() is False
        assert Task(due_date=0).has_due_time() is False

    def test_repeat_after_completion(self):
        assert Task(recurrence="FREQ=DAILY;FROM=COMPLETION").repeat_after_completion() is True
        assert Task(recurrence="FREQ=DAILY").repeat_after_completion() is False

    def test_recurrence_without_from(self):
        task = Task(recurrence="FREQ=DAILY;INTERVAL=1;FROM=COMPLETION")
        assert task.recurrence_without_from() == "FREQ=DAILY;INTERVAL=1"

    def test_sanitized_recurrence_drops_empty_byday(self):
        task = Task(recurrence="FREQ=WEEKLY;BYDAY=;INTERVAL=1;FROM=COMPLETION")
        assert task.sanitized_recurrence() == "FREQ=WEEKLY;INTERVAL=1"

    def test_set_recurrence(self):
        task = Task()
        task.set_recurrence("FREQ=DAILY", after_completion=True)
        assert task.recurrence == "FREQ=DAILY;FROM=COMPLETION"
        task.set_recurrence("FREQ=DAILY", after_completion=False)
        assert task.recurrence == "FREQ=DAILY"

    def test_notification_flags(self):
        task = Task(notification_flags=NOTIFY_AT_DEADLINE | NOTIFY_MODE_FIVE)
        assert task.is_notify_at_deadline() is True
        assert task.is_notify_mode_five() is True
        assert task.is_notify_after_deadline() is False
        assert task.is_notify_mode_nonstop() is False


class TestTaskRows:
    def test_from_dict(self, row):
        task = Task.from_dict(row)

        assert task.id == 7
        assert task.title == "Water plants"
        assert task.priority == Priority.MEDIUM
        assert task.due_date == 1704283201000
        assert task.hide_until == 1704240000000
        assert task.recurrence == "FREQ=DAILY;INTERVAL=2"
        assert task.notification_flags & NOTIFY_AFTER_DEADLINE

    def test_from_dict_defaults(self):
        task = Task.from_dict({"title": "Minimal"})

        assert task.id == NO_ID
        assert task.priority == Priority.NONE
        assert task.due_date == 0
        assert task.remote_id == "0"

    def test_from_dict_null_columns(self):
        task = Task.from_dict({"title": None, "dueDate": None, "recurrence": None})
        assert task.title == ""
        assert task.due_date == 0
        assert task.recurrence == ""

    @pytest.mark.parametrize("importance", [-1, 4, 99])
    def test_from_dict_rejects_invalid_priority(self, row, importance):
        row["importance"] = importance
        with pytest.raises(CorruptTaskError, match="invalid importance"):
            Task.from_dict(row)

    def test_to_dict_round_trips_stored_row(self, row):
        assert Task.from_dict(row).to_dict() == row

    def test_insignificant_change(self, row):
        task = Task.from_dict(row)
        same = Task.from_dict(row)
        assert task.insignificant_change(same) is True
        assert task.insignificant_change(task) is True
        assert task.insignificant_change(None) is False

        same.title = "Something else"
        assert task.insignificant_change(same) is False


class TestTransitoryData:
    def test_empty_until_written(self):
        data = TransitoryData()
        assert not data
        assert data.get("anything") is None
        assert data.has("anything") is False

    def test_put_and_get(self):
        data = TransitoryData()
        data.put("key", "value")
        assert data
        assert data.get("key") == "value"
        assert data.has("key") is True

    def test_check_ignores_none(self):
        data = TransitoryData()
        data.put("flag", None)
        assert data.has("flag") is True
        assert data.check("flag") is False

    def test_suppress_sync(self):
        data = TransitoryData()
        data.suppress_sync()
        assert data.check(SUPPRESS_SYNC) is True

    def test_tags(self):
        data = TransitoryData()
        assert data.tags == []

        tags = ["home", "errands"]
        data.set_tags(tags)
        tags.append("mutated")
        assert data.tags == ["home", "errands"]

    def test_not_part_of_task_state(self, row):
        task = Task.from_dict(row)
        assert "transitory" not in str(task.to_dict()).lower()

    def test_concurrent_writers(self):
        data = TransitoryData()

        def writer(prefix: str):
            for i in range(200):
                data.put(f"{prefix}-{i}", i)

        threads = [threading.Thread(target=writer, args=(f"t{n}",)) for n in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert all(data.get(f"t{n}-{i}") == i for n in range(8) for i in range(200))

    def test_update_applies_to_current_value(self):
        data = TransitoryData()
        assert data.update("count", lambda n: n + 1, default=0) == 1
        assert data.update("count", lambda n: n + 1, default=0) == 2
        assert data.get("count") == 2

    def test_concurrent_tag_appends_keep_every_tag(self):
        data = TransitoryData()

        def tagger(prefix: str):
            for i in range(200):
                data.add_tag(f"{prefix}-{i}")

        threads = [threading.Thread(target=tagger, args=(f"t{n}",)) for n in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert sorted(data.tags) == sorted(f"t{n}-{i}" for n in range(8) for i in range(200))
