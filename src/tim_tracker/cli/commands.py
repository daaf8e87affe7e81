# src/tim_tracker/cli/commands.py

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from datetime import timedelta

from ..core.state import AppState
from ..tasks.task_models import Deadline, Event, TaskError, Todo, parse_date_time

CommandHandler = Callable[[AppState, str], str]

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Simple slash-command registry used by the console connector (/help, /todo, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    def handle(self, state: AppState, line: str) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        name, _, rest = line[1:].strip().partition(" ")
        if not name:
            return "Empty command. Use /help to list available commands."

        handler = self._handlers.get(name.lower())
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            return handler(state, rest.strip())
        except TaskError as e:
            return f"OOPS!!! {e}"

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


def _task_number(arg: str) -> int:
    """1-based task number from user input -> 0-based position."""
    try:
        return int(arg.strip()) - 1
    except ValueError:
        raise TaskError(f"Expected a task number, got {arg.strip()!r}.") from None


def _require(text: str, what: str) -> str:
    if not text.strip():
        raise TaskError(f"The {what} cannot be empty.")
    return text.strip()


def _added(state: AppState, task) -> str:
    index = state.tasks.add(task)
    logger.debug("Task added index=%d type=%s", index, task.type_code)
    state.save_tasks()
    return f"Got it. I've added this task:\n  {task}\nNow you have {len(state.tasks)} tasks in the list."


def cmd_help(state: AppState, arg: str) -> str:
    return registry.build_help()


def cmd_list(state: AppState, arg: str) -> str:
    tasks = state.tasks.snapshot()
    if not tasks:
        return "Your task list is empty."
    lines = ["Here are the tasks in your list:"]
    lines.extend(f"{i}. {t}" for i, t in enumerate(tasks, start=1))
    return "\n".join(lines)


def cmd_todo(state: AppState, arg: str) -> str:
    return _added(state, Todo(_require(arg, "description of a todo")))


def cmd_deadline(state: AppState, arg: str) -> str:
    """
    /deadline <description> /by <date>
    """
    parts = re.split(r"\s*/by\s+", arg, maxsplit=1)
    if len(parts) != 2:
        raise TaskError("Usage: /deadline <description> /by <yyyy-mm-dd [HHMM]>")
    description = _require(parts[0], "description of a deadline")
    return _added(state, Deadline(description, parse_date_time(parts[1])))


def cmd_event(state: AppState, arg: str) -> str:
    """
    /event <description> /from <date> /to <date>
    """
    m = re.match(r"^(?P<desc>.*?)\s*/from\s+(?P<start>.+?)\s+/to\s+(?P<end>.+)$", arg)
    if not m:
        raise TaskError("Usage: /event <description> /from <yyyy-mm-dd [HHMM]> /to <yyyy-mm-dd [HHMM]>")
    description = _require(m.group("desc"), "description of an event")
    start = parse_date_time(m.group("start"))
    end = parse_date_time(m.group("end"))
    if end < start:
        raise TaskError("An event cannot end before it starts.")
    return _added(state, Event(description, start, end))


def cmd_mark(state: AppState, arg: str) -> str:
    task = state.tasks.set_done(_task_number(arg), True)
    state.save_tasks()
    return f"Nice! I've marked this task as done:\n  {task}"


def cmd_unmark(state: AppState, arg: str) -> str:
    task = state.tasks.set_done(_task_number(arg), False)
    state.save_tasks()
    return f"OK, I've marked this task as not done yet:\n  {task}"


def cmd_delete(state: AppState, arg: str) -> str:
    task = state.tasks.remove(_task_number(arg))
    state.save_tasks()
    return f"Noted. I've removed this task:\n  {task}\nNow you have {len(state.tasks)} tasks in the list."


def cmd_find(state: AppState, arg: str) -> str:
    keyword = _require(arg, "search keyword")
    matches = state.tasks.find(keyword)
    if not matches:
        return f"No matching tasks found for keyword: {keyword}"
    lines = ["Here are the matching tasks in your list:"]
    lines.extend(f"{i + 1}. {t}" for i, t in matches)
    return "\n".join(lines)


def cmd_reminders(state: AppState, arg: str) -> str:
    pending = state.list_reminders()
    if not pending:
        return "No pending reminders."
    lines = ["Pending reminders:"]
    lines.extend(f"{i}. {e}" for i, e in enumerate(pending, start=1))
    return "\n".join(lines)


def cmd_dismiss(state: AppState, arg: str) -> str:
    """
    /dismiss      -> dismiss the latest reminder
    /dismiss <n>  -> dismiss reminder n from /reminders
    """
    number = int(arg) if arg.isdigit() else None
    if arg and number is None:
        return "Usage: /dismiss [n]"
    event = state.take_reminder(number)
    if event is None:
        return "No such reminder."
    if state.scanner is not None:
        state.scanner.dismiss(event)
    return f"Dismissed: {event}"


def cmd_snooze(state: AppState, arg: str) -> str:
    """
    /snooze            -> snooze the latest reminder for the default time
    /snooze <min>      -> snooze the latest reminder for <min> minutes
    /snooze <n> <min>  -> snooze reminder n from /reminders for <min> minutes
    """
    args = arg.split()
    if len(args) > 2 or not all(a.isdigit() for a in args):
        return "Usage: /snooze [n] [minutes]"

    number: int | None = None
    duration: timedelta | None = None
    if len(args) == 1:
        duration = timedelta(minutes=int(args[0]))
    elif len(args) == 2:
        number, duration = int(args[0]), timedelta(minutes=int(args[1]))

    if duration is not None and duration <= timedelta(0):
        return "Snooze time must be at least one minute."
    if state.scanner is None:
        return "Reminders are disabled."

    event = state.take_reminder(number)
    if event is None:
        return "No such reminder."

    state.scanner.snooze(event, duration)
    until = state.scanner.snoozed_until(event.key)
    when = until.strftime("%H:%M") if until is not None else "later"
    return f"Snoozed until {when}: {event}"


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("list", cmd_list, help_text="List all tasks.", aliases=["ls"])
registry.register("todo", cmd_todo, help_text="Add a todo: /todo <description>.")
registry.register(
    "deadline", cmd_deadline, help_text="Add a deadline: /deadline <description> /by <date>."
)
registry.register(
    "event", cmd_event, help_text="Add an event: /event <description> /from <date> /to <date>."
)
registry.register("mark", cmd_mark, help_text="Mark task n as done: /mark <n>.")
registry.register("unmark", cmd_unmark, help_text="Mark task n as not done: /unmark <n>.")
registry.register("delete", cmd_delete, help_text="Delete task n: /delete <n>.", aliases=["rm"])
registry.register("find", cmd_find, help_text="Find tasks containing a keyword: /find <keyword>.")
registry.register("reminders", cmd_reminders, help_text="Show reminders that fired and are not dismissed.")
registry.register("dismiss", cmd_dismiss, help_text="Dismiss a reminder: /dismiss [n].")
registry.register(
    "snooze", cmd_snooze, help_text="Snooze a reminder: /snooze [minutes] | /snooze <n> <minutes>."
)
