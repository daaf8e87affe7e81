# src/tim_tracker/connectors/console_connector.py

from __future__ import annotations

import logging
import sys
import threading
from datetime import datetime
from typing import TextIO

from ..cli.commands import registry as command_registry
from ..core.state import AppState
from ..reminders.reminder_models import ReminderEvent

logger = logging.getLogger(__name__)

PROMPT = ">>> You: "


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


class ConsoleReminderListener:
    """
    Reminder listener for the console.

    Runs on the scanner thread: it only queues the event on AppState and prints
    one line, then returns.
    """

    def __init__(self, state: AppState, stream: TextIO | None = None, prompt: str = PROMPT) -> None:
        self._state = state
        self._stream = stream
        self._prompt = prompt
        self._write_lock = threading.Lock()

    def on_reminder(self, event: ReminderEvent) -> None:
        number = self._state.push_reminder(event)
        stream = self._stream or sys.stdout
        with self._write_lock:
            stream.write(
                f"\n[{_ts_local()}] [REMINDER #{number}] {event}\n"
                f"  (/dismiss {number} or /snooze {number} <minutes>)\n{self._prompt}"
            )
            stream.flush()


def run_console_loop(state: AppState) -> None:
    logger.info("Console connector started.")
    app_name = str(getattr(getattr(state, "settings", None), "app_name", "tim"))
    print(f"[{_ts_local()}] Hello! I'm {app_name}. Use /help for commands. Use /exit to quit.\n")

    while True:
        try:
            user_input = input(PROMPT).strip()
        except EOFError:
            logger.info("Console EOF received, exiting.")
            break
        except KeyboardInterrupt:
            logger.info("Console KeyboardInterrupt, exiting.")
            print()
            break

        if not user_input:
            continue

        if user_input.lower() in ("/exit", "/quit", "/bye", "bye"):
            logger.info("Console exit command received.")
            print(f"[{_ts_local()}] Bye. Hope to see you again soon!")
            break

        try:
            response = command_registry.handle(state, user_input)
        except Exception:
            logger.exception("Command handler crashed.")
            response = "Internal error while handling a command."

        if response is None:
            response = "I don't know what that means. Use /help to list available commands."
        print(f"[{_ts_local()}] {response}")

    logger.info("Console connector finished.")
