# src/tim_tracker/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- loads the task list from disk,
- wires the reminder scanner to the console listener.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from ..config import get_settings
from ..core.ports import ReminderListener
from ..core.state import AppState
from ..reminders.key_store import ReminderKeyStore
from ..reminders.reminder_scanner import ReminderScanner
from ..tasks.task_store import TaskStore

logger = logging.getLogger(__name__)

ListenerFactory = Callable[[AppState], ReminderListener]


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.tasks_path.parent.mkdir(parents=True, exist_ok=True)
    settings.reminder_keys_path.parent.mkdir(parents=True, exist_ok=True)


def create_initial_state(*, settings=None, listener_factory: ListenerFactory | None = None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    listener_factory builds the reminder listener once the state exists
    (defaults to the console listener).
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    task_store = TaskStore(settings.tasks_path)
    state = AppState(
        settings=settings,
        tasks=task_store.load(),
        task_store=task_store,
    )

    if not settings.reminders_enabled:
        logger.info("Reminders disabled in settings.")
        return state

    if listener_factory is None:
        from ..connectors.console_connector import ConsoleReminderListener

        listener_factory = ConsoleReminderListener

    state.scanner = ReminderScanner(
        state.tasks,
        listener_factory(state),
        key_store=ReminderKeyStore(settings.reminder_keys_path),
        scan_period=settings.reminder_scan_period,
        startup_grace=settings.reminder_startup_grace,
        default_snooze=settings.reminder_default_snooze,
    )
    return state


def shutdown_state(state: AppState) -> None:
    """Best-effort shutdown (no exceptions should escape)."""
    scanner = state.scanner
    if scanner is not None:
        try:
            scanner.stop()
        except Exception:
            logger.exception("Failed to stop reminder scanner.")

    if not state.save_tasks():
        logger.error("Tasks could not be saved on shutdown.")
