"""
Reminder subsystem.

Components:
- reminder_models.py: value types (ReminderKind, ReminderEvent, key derivation)
- key_store.py: thread-safe fired/dismissed key set, optionally file backed
- reminder_scanner.py: background scanner that fires due reminders exactly once
"""
