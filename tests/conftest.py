# tests/conftest.py

from __future__ import annotations

from datetime import datetime, timedelta
from pathlib import Path
from types import SimpleNamespace

import pytest

from tim_tracker.core.state import AppState
from tim_tracker.reminders.key_store import ReminderKeyStore
from tim_tracker.reminders.reminder_scanner import ReminderScanner
from tim_tracker.tasks.task_store import TaskStore

from .fakes import FakeClock, RecordingListener

T0 = datetime(2024, 5, 14, 12, 0, 0)


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and bootstrap.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    data_dir = tmp_path / "data"
    return SimpleNamespace(
        app_name="tim",
        log_level="DEBUG",
        data_dir=data_dir,
        tasks_path=data_dir / "tim.txt",
        reminder_keys_path=data_dir / "dismissed_reminders.txt",
        reminders_enabled=True,
        reminder_scan_period=timedelta(seconds=20),
        reminder_startup_grace=timedelta(hours=24),
        reminder_default_snooze=timedelta(minutes=10),
    )


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock(T0)


@pytest.fixture()
def listener() -> RecordingListener:
    return RecordingListener()


@pytest.fixture()
def state(settings: SimpleNamespace, clock: FakeClock, listener: RecordingListener) -> AppState:
    """
    AppState with a real task file and key file under tmp_path,
    and a scanner driven by the fake clock (never started as a thread).
    """
    task_store = TaskStore(settings.tasks_path)
    st = AppState(settings=settings, tasks=task_store.load(), task_store=task_store)
    st.scanner = ReminderScanner(
        st.tasks,
        listener,
        key_store=ReminderKeyStore(settings.reminder_keys_path),
        clock=clock,
    )
    return st
