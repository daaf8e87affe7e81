# src/tim_tracker/tasks/task_models.py

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime

from ..reminders.reminder_models import ReminderKind

DISPLAY_FORMAT = "%b %d %Y %H:%M"
INPUT_DATE_FORMAT = "%Y-%m-%d"
INPUT_DATE_TIME_FORMAT = "%Y-%m-%d %H%M"


class TaskError(ValueError):
    """User-facing problem with task input (bad date, bad index, missing field)."""


def parse_date_time(raw: str) -> datetime:
    """
    Strict date parsing for user input and the task file.

    Accepts, in order: "yyyy-mm-dd HHMM", "yyyy-mm-dd" (start of day), ISO local date-time.
    """
    text = (raw or "").strip()
    if not text:
        raise TaskError("Date is empty.")

    for fmt in (INPUT_DATE_TIME_FORMAT, INPUT_DATE_FORMAT):
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            pass

    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        raise TaskError(
            f"Unrecognised date {text!r}. Use yyyy-mm-dd or yyyy-mm-dd HHMM (e.g. 2019-10-15 1800)."
        ) from None
    # Timestamps are calendar-local; drop any offset after converting to local time.
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


def format_date_time(moment: datetime | date) -> str:
    return moment.strftime(DISPLAY_FORMAT)


@dataclass(slots=True)
class Task:
    description: str
    done: bool = field(default=False, kw_only=True)

    type_code = "?"

    def status_icon(self) -> str:
        return "X" if self.done else " "

    def _label(self) -> str:
        return f"[{self.type_code}][{self.status_icon()}] {self.description}"

    def trigger_time(self, kind: ReminderKind) -> datetime | None:
        """Primary trigger instant for `kind`, or None when this task has none."""
        return None

    def to_storage(self) -> str:
        return f"{self.type_code} | {int(self.done)} | {self.description}"

    def __str__(self) -> str:
        return self._label()


@dataclass(slots=True)
class Todo(Task):
    type_code = "T"


@dataclass(slots=True)
class Deadline(Task):
    due: datetime

    type_code = "D"

    def trigger_time(self, kind: ReminderKind) -> datetime | None:
        return self.due if kind is ReminderKind.DEADLINE_DUE else None

    def to_storage(self) -> str:
        return f"{self.type_code} | {int(self.done)} | {self.description} | {self.due.isoformat()}"

    def __str__(self) -> str:
        return f"{self._label()} (by: {format_date_time(self.due)})"


@dataclass(slots=True)
class Event(Task):
    start: datetime
    end: datetime

    type_code = "E"

    def trigger_time(self, kind: ReminderKind) -> datetime | None:
        return self.start if kind is ReminderKind.EVENT_START else None

    def to_storage(self) -> str:
        return (
            f"{self.type_code} | {int(self.done)} | {self.description} | "
            f"{self.start.isoformat()} to {self.end.isoformat()}"
        )

    def __str__(self) -> str:
        if self.start == self.end:
            return f"{self._label()} (on: {format_date_time(self.start)})"
        return f"{self._label()} (from: {format_date_time(self.start)} to: {format_date_time(self.end)})"
