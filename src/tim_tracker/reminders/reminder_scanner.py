# src/tim_tracker/reminders/reminder_scanner.py

from __future__ import annotations

"""
Reminder scanner.

A small polling loop on a background thread that:
- walks the task collection by position,
- asks each task for its trigger instants (deadline due / event start),
- fires every trigger that came due exactly once through an injected listener,
- remembers fired/dismissed keys (optionally on disk) so a restart does not re-fire them.

Rendering belongs to the listener, not the scanner.
"""

import logging
import threading
from collections.abc import Callable
from datetime import datetime, timedelta

from ..core.ports import ReminderCallback, ReminderListener, TaskCollection, Triggerable
from .key_store import ReminderKeyStore
from .reminder_models import ReminderEvent, ReminderKey, ReminderKind, derive_key

logger = logging.getLogger(__name__)

SCAN_PERIOD = timedelta(seconds=20)
STARTUP_GRACE = timedelta(hours=24)
DEFAULT_SNOOZE = timedelta(minutes=10)

THREAD_NAME = "ReminderScanner"

Clock = Callable[[], datetime]


def _as_callback(listener: ReminderListener | ReminderCallback) -> ReminderCallback:
    on_reminder = getattr(listener, "on_reminder", None)
    if callable(on_reminder):
        return on_reminder
    if callable(listener):
        return listener
    raise ValueError("listener must be callable or expose on_reminder(event)")


class ReminderScanner:
    """
    Periodically scans tasks and fires one-time reminders for
    - deadlines, at the due time
    - events, at the start time

    Delivery policy per key ("<KIND>#<index>#<epoch-millis>"):
    - fire once when trigger <= now and trigger > previous scan - startup_grace
    - dismiss() makes the key terminal
    - snooze() suppresses the key for a while, then lets it fire once more

    The listener runs on the scanner thread. dismiss()/snooze() may be called
    from any thread.
    """

    def __init__(
        self,
        tasks: TaskCollection,
        listener: ReminderListener | ReminderCallback,
        *,
        key_store: ReminderKeyStore | None = None,
        scan_period: timedelta = SCAN_PERIOD,
        startup_grace: timedelta = STARTUP_GRACE,
        default_snooze: timedelta = DEFAULT_SNOOZE,
        clock: Clock | None = None,
        join_timeout: float = 5.0,
    ) -> None:
        if tasks is None:
            raise ValueError("tasks is required")
        if listener is None:
            raise ValueError("listener is required")

        self._tasks = tasks
        self._notify = _as_callback(listener)
        self._keys = key_store if key_store is not None else ReminderKeyStore()
        self._scan_period = max(scan_period, timedelta(milliseconds=10))
        self._startup_grace = startup_grace
        self._default_snooze = default_snooze
        self._clock: Clock = clock or datetime.now
        self._join_timeout = float(join_timeout)

        self._state_lock = threading.Lock()
        self._snoozed: dict[ReminderKey, datetime] = {}
        self._dismissed: set[ReminderKey] = set()
        self._watermark = self._clock()

        self._thread: threading.Thread | None = None
        self._stop_event = threading.Event()

        self._keys.load()
        logger.info(
            "ReminderScanner ready keys=%d period=%ss grace=%s",
            len(self._keys),
            self._scan_period.total_seconds(),
            self._startup_grace,
        )

    # ---- lifecycle ----

    @property
    def running(self) -> bool:
        t = self._thread
        return t is not None and t.is_alive() and not self._stop_event.is_set()

    @property
    def watermark(self) -> datetime:
        with self._state_lock:
            return self._watermark

    def start(self) -> None:
        """Start periodic scanning (first scan immediately). No-op if already running."""
        with self._state_lock:
            if self._thread is not None and self._thread.is_alive() and not self._stop_event.is_set():
                return
            self._stop_event = threading.Event()
            self._thread = threading.Thread(
                target=self._run,
                args=(self._stop_event,),
                name=THREAD_NAME,
                daemon=True,
            )
            self._thread.start()
        logger.info("Reminder scanning started")

    def stop(self) -> None:
        """
        Stop scheduling new scans and flush the key store.

        An in-flight scan is allowed to finish. Safe to call repeatedly.
        """
        with self._state_lock:
            thread = self._thread
            self._thread = None
            self._stop_event.set()

        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=self._join_timeout)
            if thread.is_alive():
                logger.warning("Reminder scan still running after %.1fs stop timeout", self._join_timeout)

        self._keys.save()
        if thread is not None:
            logger.info("Reminder scanning stopped")

    def _run(self, stop_event: threading.Event) -> None:
        # Fixed delay: the wait starts after a scan finishes, so scans never overlap.
        wait_s = self._scan_period.total_seconds()
        while not stop_event.is_set():
            self._safe_scan_once()
            if stop_event.wait(wait_s):
                break

    def _safe_scan_once(self) -> None:
        try:
            self.scan_once()
        except Exception:
            logger.exception("Reminder scan failed")

    # ---- scanning ----

    def scan_once(self) -> int:
        """
        Scan every task once and fire what came due.

        Returns the number of reminders delivered.
        """
        with self._state_lock:
            previous_watermark = self._watermark
        now = self._clock()

        fired = 0
        for index in range(len(self._tasks)):
            try:
                task = self._tasks[index]
            except (IndexError, KeyError):
                # Removed concurrently; the next scan sees the new layout.
                continue
            if not isinstance(task, Triggerable):
                continue

            for kind in ReminderKind:
                try:
                    trigger = task.trigger_time(kind)
                    if trigger is None:
                        continue
                    if self._maybe_fire(task, index, kind, trigger, previous_watermark, now):
                        fired += 1
                except Exception:
                    logger.exception("Reminder check failed index=%s kind=%s", index, kind.value)

        with self._state_lock:
            self._watermark = now
        if fired:
            logger.debug("Reminder scan fired=%d", fired)
        return fired

    def _maybe_fire(
        self,
        task: object,
        index: int,
        kind: ReminderKind,
        trigger: datetime,
        previous_watermark: datetime,
        now: datetime,
    ) -> bool:
        key = derive_key(kind, index, trigger)
        if trigger > now:
            return False

        with self._state_lock:
            until = self._snoozed.get(key)
            if until is not None and until > now:
                return False
            # An elapsed snooze re-arms the key even if the trigger is older than the grace window.
            if until is None and trigger <= previous_watermark - self._startup_grace:
                return False
            # First writer wins; this is the only dedup decision.
            if not self._keys.add(key):
                return False
            self._snoozed.pop(key, None)

        event = ReminderEvent(
            task_index=index,
            task_label=str(task),
            trigger_time=trigger,
            kind=kind,
            key=key,
        )
        logger.info("Firing reminder %s", key)
        try:
            self._notify(event)
        except Exception:
            logger.exception("Reminder listener failed key=%s", key)
        finally:
            self._keys.save()
        return True

    # ---- control from the presentation layer ----

    def dismiss(self, event: ReminderEvent | None) -> None:
        """Never fire this reminder again. None is a no-op."""
        if event is None:
            return
        key = event.key
        with self._state_lock:
            self._keys.add(key)
            self._dismissed.add(key)
            self._snoozed.pop(key, None)
        self._keys.save()
        logger.info("Reminder dismissed %s", key)

    def snooze(self, event: ReminderEvent | None, duration: timedelta | None = None) -> None:
        """
        Suppress the reminder for `duration` (default_snooze if None), then fire it once more.

        No-op for None events, non-positive durations and dismissed reminders.
        """
        if event is None:
            return
        if duration is None:
            duration = self._default_snooze
        if duration <= timedelta(0):
            return

        key = event.key
        until = self._clock() + duration
        with self._state_lock:
            if key in self._dismissed:
                return
            self._snoozed[key] = until
            self._keys.discard(key)
        self._keys.save()
        logger.info("Reminder snoozed %s until %s", key, until.isoformat(timespec="seconds"))

    def snoozed_until(self, key: ReminderKey) -> datetime | None:
        with self._state_lock:
            return self._snoozed.get(key)
