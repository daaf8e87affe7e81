# src/tim_tracker/core/state.py

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from ..reminders.reminder_models import ReminderEvent
from ..tasks.task_list import TaskList
from ..tasks.task_store import TaskStore

if TYPE_CHECKING:
    from ..reminders.reminder_scanner import ReminderScanner


@dataclass
class AppState:
    # Store Settings on the state for easy access in other modules later.
    settings: Any

    tasks: TaskList
    task_store: TaskStore
    scanner: ReminderScanner | None = None

    # Reminders delivered but not yet dismissed, oldest first.
    # Written by the scanner thread, read by the console thread.
    pending_reminders: list[ReminderEvent] = field(default_factory=list)
    lock: threading.Lock = field(default_factory=threading.Lock)

    def save_tasks(self) -> bool:
        return self.task_store.save(self.tasks)

    def push_reminder(self, event: ReminderEvent) -> int:
        """Queue a delivered reminder; returns its 1-based number in the inbox."""
        with self.lock:
            self.pending_reminders = [e for e in self.pending_reminders if e.key != event.key]
            self.pending_reminders.append(event)
            return len(self.pending_reminders)

    def list_reminders(self) -> list[ReminderEvent]:
        with self.lock:
            return list(self.pending_reminders)

    def take_reminder(self, number: int | None = None) -> ReminderEvent | None:
        """Remove and return reminder `number` (1-based), or the latest when None."""
        with self.lock:
            if not self.pending_reminders:
                return None
            if number is None:
                return self.pending_reminders.pop()
            if not 1 <= number <= len(self.pending_reminders):
                return None
            return self.pending_reminders.pop(number - 1)
