# src/tim_tracker/reminders/reminder_models.py

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum

ReminderKey = str
# Opaque dedup token: "<KIND>#<task index>#<trigger epoch millis>".

KEY_SEPARATOR = "#"
_KEY_RE = re.compile(r"^([A-Z_]+)#(\d+)#(-?\d+)$")


class ReminderKind(StrEnum):
    """Which field of a task supplies the trigger instant."""

    DEADLINE_DUE = "DEADLINE_DUE"
    EVENT_START = "EVENT_START"


def to_epoch_millis(moment: datetime) -> int:
    # Naive datetimes are calendar-local; .timestamp() resolves them in the system zone.
    return int(round(moment.timestamp() * 1000))


def derive_key(kind: ReminderKind, index: int, trigger: datetime) -> ReminderKey:
    """
    Build the dedup key for one (kind, position, trigger instant) occurrence.

    Editing the trigger time yields a new key, so an edited task is eligible again.
    """
    return KEY_SEPARATOR.join((kind.value, str(int(index)), str(to_epoch_millis(trigger))))


def parse_key(raw: str) -> tuple[ReminderKind, int, int] | None:
    """Split a stored key into (kind, index, epoch millis); None if it is not a valid key."""
    m = _KEY_RE.match((raw or "").strip())
    if not m:
        return None
    try:
        kind = ReminderKind(m.group(1))
    except ValueError:
        return None
    return kind, int(m.group(2)), int(m.group(3))


@dataclass(slots=True, frozen=True)
class ReminderEvent:
    """
    One fireable occurrence, handed to the listener.

    Built by the scanner at the moment of firing and never mutated afterwards.
    task_label is the task's display string at that moment.
    """

    task_index: int
    task_label: str
    trigger_time: datetime
    kind: ReminderKind
    key: ReminderKey

    def __str__(self) -> str:
        t = self.trigger_time
        return f"{self.kind.value}: {self.task_label} @ {t:%b} {t.day} {t:%Y %H:%M}"
