# src/tim_tracker/tasks/task_list.py

from __future__ import annotations

import threading
from collections.abc import Iterable, Iterator

from .task_models import Task, TaskError


class TaskList:
    """
    Ordered, thread-safe list of tasks.

    Positions are 0-based here; commands translate from the 1-based numbers users see.
    The reminder scanner reads it by position (len + []) from its own thread.
    """

    def __init__(self, tasks: Iterable[Task] | None = None) -> None:
        self._tasks: list[Task] = list(tasks or [])
        self._lock = threading.RLock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._tasks)

    def __getitem__(self, index: int) -> Task:
        with self._lock:
            return self._tasks[index]

    def __iter__(self) -> Iterator[Task]:
        return iter(self.snapshot())

    def snapshot(self) -> list[Task]:
        with self._lock:
            return list(self._tasks)

    def add(self, task: Task) -> int:
        """Append and return the new 0-based position."""
        if task is None:
            raise TaskError("Task must not be None.")
        with self._lock:
            self._tasks.append(task)
            return len(self._tasks) - 1

    def remove(self, index: int) -> Task:
        with self._lock:
            self._check_index(index)
            return self._tasks.pop(index)

    def set_done(self, index: int, done: bool) -> Task:
        with self._lock:
            self._check_index(index)
            task = self._tasks[index]
            task.done = done
            return task

    def find(self, keyword: str) -> list[tuple[int, Task]]:
        """(position, task) pairs whose display string contains keyword."""
        needle = (keyword or "").strip()
        if not needle:
            return []
        return [(i, t) for i, t in enumerate(self.snapshot()) if needle in str(t)]

    def _check_index(self, index: int) -> None:
        if not self._tasks:
            raise TaskError("The task list is empty.")
        if not 0 <= index < len(self._tasks):
            raise TaskError(f"Task number {index + 1} is out of range (1-{len(self._tasks)}).")
