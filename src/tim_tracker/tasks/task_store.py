# src/tim_tracker/tasks/task_store.py

from __future__ import annotations

import logging
import os
import re
from pathlib import Path

from .task_list import TaskList
from .task_models import Deadline, Event, Task, TaskError, Todo, parse_date_time

logger = logging.getLogger(__name__)

_FIELD_SPLIT = re.compile(r"\s*\|\s*")
_RANGE_SPLIT = re.compile(r"\s+to\s+")


class TaskStoreError(Exception):
    """Raised when the task file exists but cannot be read."""


class TaskStore:
    """
    Plain-text task file, one task per line:

        T | 0 | read book
        D | 1 | return book | 2019-12-02T18:00:00
        E | 0 | project meeting | 2019-12-02T14:00:00 to 2019-12-02T16:00:00

    Malformed lines are skipped (with a warning) instead of failing the whole load.
    """

    def __init__(self, path: str | Path = "data/tim.txt") -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    # ---- line codec ----

    @staticmethod
    def _line_to_task(line: str) -> Task:
        fields = _FIELD_SPLIT.split(line.strip())
        if len(fields) < 3:
            raise TaskError("too few fields")

        type_code, done_flag, description = fields[0], fields[1], fields[2]
        if not description:
            raise TaskError("empty description")

        task: Task
        if type_code == "T":
            task = Todo(description)
        elif type_code == "D":
            if len(fields) < 4:
                raise TaskError("missing deadline date")
            task = Deadline(description, parse_date_time(fields[3]))
        elif type_code == "E":
            if len(fields) < 4:
                raise TaskError("missing event time range")
            parts = _RANGE_SPLIT.split(fields[3], maxsplit=1)
            if len(parts) != 2:
                raise TaskError("invalid event time range")
            task = Event(description, parse_date_time(parts[0]), parse_date_time(parts[1]))
        else:
            raise TaskError(f"unknown task type {type_code!r}")

        task.done = done_flag == "1"
        return task

    # ---- public API ----

    def load(self) -> TaskList:
        """Read the task file; a missing file gives an empty list."""
        if not self._path.exists():
            logger.info("TaskStore: no task file at %s, starting empty", self._path)
            return TaskList()

        try:
            lines = self._path.read_text("utf-8").splitlines()
        except OSError as e:
            raise TaskStoreError(f"Cannot read tasks from {self._path}: {e}") from e

        tasks: list[Task] = []
        for lineno, line in enumerate(lines, start=1):
            if not line.strip():
                continue
            try:
                task = self._line_to_task(line)
            except TaskError as e:
                logger.warning("Skipping malformed task line %s:%d (%s): %r", self._path, lineno, e, line)
                continue
            tasks.append(task)

        logger.info("TaskStore loaded %d tasks from %s", len(tasks), self._path)
        return TaskList(tasks)

    def save(self, tasks: TaskList) -> bool:
        """Write all tasks; failures are logged and reported as False."""
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp = self._path.with_suffix(self._path.suffix + ".tmp")
            tmp.write_text("".join(f"{t.to_storage()}\n" for t in tasks.snapshot()), "utf-8")
            os.replace(tmp, self._path)
        except OSError:
            logger.exception("Failed to save tasks to %s", self._path)
            return False
        logger.debug("TaskStore saved %d tasks to %s", len(tasks), self._path)
        return True
