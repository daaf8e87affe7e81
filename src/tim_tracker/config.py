# src/tim_tracker/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app (normal "settings layer").
- Values are read once at startup; nothing here changes at runtime.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path

ENV_PREFIX = "TIM"


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _load_dotenv_if_available() -> None:
    """Load .env locally if python-dotenv is installed. Safe no-op otherwise."""
    try:
        from dotenv import load_dotenv  # type: ignore
    except Exception:
        return
    load_dotenv(override=False)


_load_dotenv_if_available()


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str

    # ---- Local data paths ----
    data_dir: Path
    tasks_path: Path
    reminder_keys_path: Path

    # ---- Reminders ----
    reminders_enabled: bool
    reminder_scan_seconds: int
    reminder_grace_hours: int
    reminder_snooze_minutes: int

    @property
    def reminder_scan_period(self) -> timedelta:
        return timedelta(seconds=max(1, self.reminder_scan_seconds))

    @property
    def reminder_startup_grace(self) -> timedelta:
        return timedelta(hours=max(0, self.reminder_grace_hours))

    @property
    def reminder_default_snooze(self) -> timedelta:
        return timedelta(minutes=max(1, self.reminder_snooze_minutes))

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "tim").strip() or "tim"
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        data_dir = _env_path(_k("DATA_DIR"), Path("data"))
        tasks_path = _env_path(_k("TASKS_PATH"), data_dir / "tim.txt")
        reminder_keys_path = _env_path(_k("REMINDER_KEYS_PATH"), data_dir / "dismissed_reminders.txt")

        return Settings(
            app_name=app_name,
            log_level=log_level,
            data_dir=data_dir,
            tasks_path=tasks_path,
            reminder_keys_path=reminder_keys_path,
            reminders_enabled=_env_bool(_k("REMINDERS_ENABLED"), True),
            reminder_scan_seconds=_env_int(_k("REMINDER_SCAN_SECONDS"), 20),
            reminder_grace_hours=_env_int(_k("REMINDER_GRACE_HOURS"), 24),
            reminder_snooze_minutes=_env_int(_k("REMINDER_SNOOZE_MINUTES"), 10),
        )


SETTINGS = Settings.from_env()


def get_settings() -> Settings:
    return SETTINGS
