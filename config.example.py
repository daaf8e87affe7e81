# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).
This file exists to make the repo self-documenting even without opening .env.example.
"""

ENV_VARS = {
    # App / logging
    "TIM_APP_NAME": "App display name (default: tim).",
    "TIM_LOG_LEVEL": "Console logging level (default: INFO).",
    # Paths (gitignored)
    "TIM_DATA_DIR": "Local data directory (default: data).",
    "TIM_TASKS_PATH": "Task file path (default: <data_dir>/tim.txt).",
    "TIM_REMINDER_KEYS_PATH": (
        "Fired/dismissed reminder keys, one per line (default: <data_dir>/dismissed_reminders.txt)."
    ),
    # Reminders
    "TIM_REMINDERS_ENABLED": "Run the background reminder scanner (true/false, default: true).",
    "TIM_REMINDER_SCAN_SECONDS": "Delay between reminder scans in seconds (default: 20).",
    "TIM_REMINDER_GRACE_HOURS": "How far back overdue reminders still fire after a restart (default: 24).",
    "TIM_REMINDER_SNOOZE_MINUTES": "Default snooze duration in minutes (default: 10).",
}
