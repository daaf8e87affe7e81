# tests/test_reminder_scanner.py

from __future__ import annotations

import threading
from datetime import datetime, timedelta
from pathlib import Path

import pytest

from tim_tracker.reminders.key_store import ReminderKeyStore
from tim_tracker.reminders.reminder_models import ReminderKind, derive_key
from tim_tracker.reminders.reminder_scanner import ReminderScanner
from tim_tracker.tasks.task_list import TaskList
from tim_tracker.tasks.task_models import Deadline, Event, Todo

from .conftest import T0
from .fakes import BrokenTask, FakeClock, FlakyTasks, RecordingListener, ShrinkingTasks


def _scanner(tasks, listener, clock, **kwargs) -> ReminderScanner:
    return ReminderScanner(tasks, listener, clock=clock, **kwargs)


def test_rejects_missing_dependencies(listener: RecordingListener) -> None:
    with pytest.raises(ValueError):
        ReminderScanner(None, listener)  # type: ignore[arg-type]
    with pytest.raises(ValueError):
        ReminderScanner([], None)  # type: ignore[arg-type]


def test_fires_past_deadline_but_not_future_event(clock: FakeClock, listener: RecordingListener) -> None:
    tasks = TaskList(
        [
            Deadline("submit report", T0 - timedelta(seconds=1)),
            Event("team party", T0 + timedelta(hours=1), T0 + timedelta(hours=2)),
        ]
    )
    scanner = _scanner(tasks, listener, clock)

    assert scanner.scan_once() == 1

    assert len(listener.events) == 1
    event = listener.events[0]
    assert event.kind is ReminderKind.DEADLINE_DUE
    assert event.task_index == 0
    assert event.trigger_time == T0 - timedelta(seconds=1)
    assert event.key == derive_key(ReminderKind.DEADLINE_DUE, 0, T0 - timedelta(seconds=1))
    assert event.task_label == str(tasks[0])


def test_fires_at_most_once_across_scans(clock: FakeClock, listener: RecordingListener) -> None:
    tasks = [Deadline("submit report", T0 - timedelta(minutes=5))]
    scanner = _scanner(tasks, listener, clock)

    for _ in range(5):
        scanner.scan_once()
        clock.advance(seconds=20)

    assert len(listener.events) == 1


def test_future_event_fires_once_it_comes_due(clock: FakeClock, listener: RecordingListener) -> None:
    start = T0 + timedelta(minutes=1)
    tasks = [Event("standup", start, start + timedelta(minutes=15))]
    scanner = _scanner(tasks, listener, clock)

    scanner.scan_once()
    assert listener.events == []

    clock.advance(minutes=1)  # trigger == now counts as due
    scanner.scan_once()
    clock.advance(seconds=20)
    scanner.scan_once()

    assert [e.kind for e in listener.events] == [ReminderKind.EVENT_START]


def test_trigger_older_than_grace_window_is_never_fired(clock: FakeClock, listener: RecordingListener) -> None:
    tasks = [
        Deadline("ancient", T0 - timedelta(hours=25)),
        Deadline("recent", T0 - timedelta(hours=23)),
    ]
    scanner = _scanner(tasks, listener, clock)

    scanner.scan_once()
    clock.advance(minutes=1)
    scanner.scan_once()

    assert [e.task_index for e in listener.events] == [1]


def test_custom_grace_window(clock: FakeClock, listener: RecordingListener) -> None:
    tasks = [Deadline("an hour ago", T0 - timedelta(hours=1))]
    scanner = _scanner(tasks, listener, clock, startup_grace=timedelta(minutes=30))

    scanner.scan_once()

    assert listener.events == []


def test_watermark_advances_every_scan(clock: FakeClock, listener: RecordingListener) -> None:
    scanner = _scanner([Todo("nothing to fire")], listener, clock)
    assert scanner.watermark == T0

    clock.advance(seconds=20)
    scanner.scan_once()

    assert scanner.watermark == T0 + timedelta(seconds=20)


def test_dismissed_reminder_does_not_fire_again(clock: FakeClock, listener: RecordingListener) -> None:
    tasks = [Deadline("submit report", T0 - timedelta(seconds=1))]
    scanner = _scanner(tasks, listener, clock)
    scanner.scan_once()
    scanner.dismiss(listener.events[0])

    clock.advance(seconds=30)
    scanner.scan_once()

    assert len(listener.events) == 1


def test_dismiss_none_is_noop(clock: FakeClock, listener: RecordingListener) -> None:
    scanner = _scanner([], listener, clock)
    scanner.dismiss(None)
    scanner.snooze(None)


def test_snooze_suppresses_then_refires_once(clock: FakeClock, listener: RecordingListener) -> None:
    tasks = [Deadline("submit report", T0 - timedelta(seconds=1))]
    scanner = _scanner(tasks, listener, clock)
    scanner.scan_once()
    assert len(listener.events) == 1

    clock.set(T0 + timedelta(seconds=5))
    scanner.snooze(listener.events[0], timedelta(minutes=10))

    clock.set(T0 + timedelta(minutes=1))
    scanner.scan_once()
    assert len(listener.events) == 1

    clock.set(T0 + timedelta(minutes=11))
    scanner.scan_once()
    assert len(listener.events) == 2
    assert listener.events[1].key == listener.events[0].key

    clock.set(T0 + timedelta(minutes=12))
    scanner.scan_once()
    assert len(listener.events) == 2
    assert scanner.snoozed_until(listener.events[0].key) is None


def test_snooze_uses_default_duration(clock: FakeClock, listener: RecordingListener) -> None:
    tasks = [Deadline("submit report", T0 - timedelta(seconds=1))]
    scanner = _scanner(tasks, listener, clock, default_snooze=timedelta(minutes=3))
    scanner.scan_once()
    event = listener.events[0]

    scanner.snooze(event)

    assert scanner.snoozed_until(event.key) == T0 + timedelta(minutes=3)


@pytest.mark.parametrize("duration", [timedelta(0), timedelta(minutes=-5)])
def test_non_positive_snooze_is_ignored(
    clock: FakeClock, listener: RecordingListener, duration: timedelta
) -> None:
    tasks = [Deadline("submit report", T0 - timedelta(seconds=1))]
    scanner = _scanner(tasks, listener, clock)
    scanner.scan_once()
    event = listener.events[0]

    scanner.snooze(event, duration)
    clock.advance(minutes=30)
    scanner.scan_once()

    assert scanner.snoozed_until(event.key) is None
    assert len(listener.events) == 1


def test_dismiss_is_terminal_even_if_snoozed_later(clock: FakeClock, listener: RecordingListener) -> None:
    tasks = [Deadline("submit report", T0 - timedelta(seconds=1))]
    scanner = _scanner(tasks, listener, clock)
    scanner.scan_once()
    event = listener.events[0]

    scanner.dismiss(event)
    scanner.snooze(event, timedelta(minutes=1))
    clock.advance(minutes=5)
    scanner.scan_once()

    assert len(listener.events) == 1
    assert scanner.snoozed_until(event.key) is None


def test_dismiss_clears_pending_snooze(clock: FakeClock, listener: RecordingListener) -> None:
    tasks = [Deadline("submit report", T0 - timedelta(seconds=1))]
    scanner = _scanner(tasks, listener, clock)
    scanner.scan_once()
    event = listener.events[0]

    scanner.snooze(event, timedelta(minutes=1))
    scanner.dismiss(event)
    clock.advance(minutes=5)
    scanner.scan_once()

    assert len(listener.events) == 1


def test_elapsed_snooze_refires_beyond_grace_window(clock: FakeClock, listener: RecordingListener) -> None:
    tasks = [Deadline("submit report", T0 - timedelta(seconds=1))]
    scanner = _scanner(tasks, listener, clock, startup_grace=timedelta(minutes=30))
    scanner.scan_once()

    scanner.snooze(listener.events[0], timedelta(hours=2))
    clock.advance(hours=1)
    scanner.scan_once()  # still snoozed; moves the watermark past the grace window
    assert len(listener.events) == 1

    clock.advance(hours=1, seconds=1)
    scanner.scan_once()

    assert len(listener.events) == 2


def test_edited_trigger_is_a_new_reminder(clock: FakeClock, listener: RecordingListener) -> None:
    deadline = Deadline("submit report", T0 - timedelta(minutes=10))
    scanner = _scanner([deadline], listener, clock)
    scanner.scan_once()

    deadline.due = T0 - timedelta(minutes=5)
    clock.advance(seconds=20)
    scanner.scan_once()

    assert len(listener.events) == 2
    assert listener.events[0].key != listener.events[1].key


def test_dismissal_survives_restart(tmp_path: Path, clock: FakeClock) -> None:
    keys_path = tmp_path / "data" / "dismissed_reminders.txt"
    tasks = [Deadline("submit report", T0 - timedelta(seconds=1))]

    first = RecordingListener()
    scanner = _scanner(tasks, first, clock, key_store=ReminderKeyStore(keys_path))
    scanner.scan_once()
    scanner.dismiss(first.events[0])
    scanner.stop()
    assert keys_path.exists()

    second = RecordingListener()
    restarted = _scanner(tasks, second, clock, key_store=ReminderKeyStore(keys_path))
    clock.advance(minutes=1)
    restarted.scan_once()

    assert second.events == []


def test_fired_key_is_persisted_before_restart(tmp_path: Path, clock: FakeClock) -> None:
    keys_path = tmp_path / "keys.txt"
    tasks = [Event("flight", T0 - timedelta(minutes=2), T0 + timedelta(hours=3))]

    first = RecordingListener()
    _scanner(tasks, first, clock, key_store=ReminderKeyStore(keys_path)).scan_once()
    assert len(first.events) == 1

    # No stop(): simulate a crash right after firing.
    second = RecordingListener()
    _scanner(tasks, second, clock, key_store=ReminderKeyStore(keys_path)).scan_once()

    assert second.events == []


def test_failing_listener_does_not_cause_duplicates(clock: FakeClock) -> None:
    tasks = [
        Deadline("first", T0 - timedelta(minutes=2)),
        Deadline("second", T0 - timedelta(minutes=1)),
    ]
    listener = RecordingListener(fail=True)
    scanner = _scanner(tasks, listener, clock)

    scanner.scan_once()
    clock.advance(seconds=20)
    scanner.scan_once()

    assert [e.task_index for e in listener.events] == [0, 1]


def test_broken_item_does_not_stop_the_scan(clock: FakeClock, listener: RecordingListener) -> None:
    tasks = [BrokenTask(), Todo("plain todo"), object(), Deadline("still fires", T0 - timedelta(seconds=1))]
    scanner = _scanner(tasks, listener, clock)

    scanner.scan_once()

    assert [e.task_index for e in listener.events] == [3]


def test_positions_removed_mid_scan_are_skipped(clock: FakeClock, listener: RecordingListener) -> None:
    tasks = ShrinkingTasks([Deadline("survivor", T0 - timedelta(seconds=1))], reported_len=3)
    scanner = _scanner(tasks, listener, clock)

    scanner.scan_once()

    assert len(listener.events) == 1
    assert scanner.watermark == T0


def test_plain_callable_listener(clock: FakeClock) -> None:
    seen = []
    scanner = ReminderScanner([Deadline("x", T0 - timedelta(seconds=1))], seen.append, clock=clock)

    scanner.scan_once()

    assert len(seen) == 1


def test_concurrent_scans_deliver_once(clock: FakeClock, listener: RecordingListener) -> None:
    tasks = TaskList([Deadline(f"task {i}", T0 - timedelta(minutes=i + 1)) for i in range(20)])
    scanner = _scanner(tasks, listener, clock)
    barrier = threading.Barrier(8)

    def worker() -> None:
        barrier.wait()
        scanner.scan_once()

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=5.0)

    keys = [e.key for e in listener.events]
    assert len(keys) == 20
    assert len(set(keys)) == 20


def test_background_thread_start_stop(tmp_path: Path) -> None:
    keys_path = tmp_path / "keys.txt"
    listener = RecordingListener()
    tasks = TaskList([Deadline("due already", datetime.now() - timedelta(seconds=1))])
    scanner = ReminderScanner(
        tasks,
        listener,
        key_store=ReminderKeyStore(keys_path),
        scan_period=timedelta(milliseconds=20),
    )

    scanner.start()
    scanner.start()
    try:
        assert listener.delivered.wait(timeout=5.0)
        assert scanner.running
    finally:
        scanner.stop()
    scanner.stop()

    assert not scanner.running
    assert len(listener.events) == 1
    assert keys_path.read_text("utf-8").strip() == listener.events[0].key

    tasks.add(Deadline("added after stop", datetime.now() - timedelta(seconds=1)))
    scanner.scan_once()  # manual scans still work; the timer is what stopped
    assert len(listener.events) == 2


def test_worker_survives_a_failed_scan() -> None:
    listener = RecordingListener()
    tasks = FlakyTasks([Deadline("due already", datetime.now() - timedelta(seconds=1))])
    scanner = ReminderScanner(tasks, listener, scan_period=timedelta(milliseconds=20))

    scanner.start()
    try:
        assert listener.delivered.wait(timeout=5.0)
        assert scanner.running
    finally:
        scanner.stop()

    assert tasks.len_calls >= 2
    assert len(listener.events) == 1
