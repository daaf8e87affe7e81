# src/tim_tracker/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the reminder core.

The scanner depends on Protocols instead of concrete task classes or UI code.
This keeps the task list and the presentation layer swappable and makes testing easier.
"""

from datetime import datetime
from typing import TYPE_CHECKING, Any, Callable, Protocol, runtime_checkable

if TYPE_CHECKING:
    from ..reminders.reminder_models import ReminderEvent, ReminderKind


@runtime_checkable
class Triggerable(Protocol):
    """
    A task that may expose a primary trigger instant.

    Returns None for kinds that do not apply (e.g. a deadline asked for EVENT_START).
    """

    def trigger_time(self, kind: ReminderKind) -> datetime | None: ...


class TaskCollection(Protocol):
    """Read-by-position access plus a size. A plain list satisfies it."""

    def __len__(self) -> int: ...
    def __getitem__(self, index: int) -> Any: ...


class ReminderListener(Protocol):
    """
    Presentation-side port: receives fired reminders.

    Called synchronously on the scanner thread, so it must return quickly
    (hop to a UI thread yourself if needed).
    """

    def on_reminder(self, event: ReminderEvent) -> None: ...


ReminderCallback = Callable[["ReminderEvent"], None]
