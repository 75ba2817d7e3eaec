"""JSON task export adapter - read-only."""

import json
from pathlib import Path

from errand.core.tasks import CorruptTaskError, Task


class JsonTaskSource:
    """
    Loads tasks from a JSON export: a list of rows keyed by column name.

    Read-only; nothing is ever written back.
    """

    def __init__(self, path: Path | str):
        self.path = Path(path).expanduser()

    def load(self) -> list[Task]:
        """Read every task row. Raises CorruptTaskError on invalid rows."""
        data = json.loads(self.path.read_text())
        if isinstance(data, dict):
            data = data.get("tasks", [])
        if not isinstance(data, list):
            raise CorruptTaskError(f"Expected a list of task rows in {self.path}")

        tasks = []
        for index, row in enumerate(data):
            if not isinstance(row, dict):
                raise CorruptTaskError(f"Row {index} in {self.path} is not an object: {row!r}")
            tasks.append(Task.from_dict(row))
        return tasks
