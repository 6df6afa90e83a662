# src/hive_reminders/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app.
- No secrets required at import time.
- Engine constants (cadence bounds, platform floor, storage slots) live here too,
  so every component reads them from one place.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Final

from dotenv import load_dotenv

ENV_PREFIX = "HIVE"

# ---- Engine constants (not env-tunable) ----

CADENCE_FLOOR_MINUTES: Final = 15
CADENCE_CEILING_MINUTES: Final = 240
DEFAULT_CADENCE_MINUTES: Final = 15
CADENCE_CHOICES_MINUTES: Final = (15, 30, 60)

# OS background-fetch facilities refuse anything shorter than this.
PLATFORM_MIN_INTERVAL_SECONDS: Final = 900

BACKGROUND_TRIGGER_NAME: Final = "task-reminder-background"

SETTINGS_SLOT: Final = "notificationSettings"
HANDLES_SLOT: Final = "taskReminderIds"
FALLBACK_SLOT: Final = "taskReminderFallbackId"

DEEP_LINK: Final = "hive://(tabs)"


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


load_dotenv(override=False)


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
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

    # ---- Local data paths (ignored by git) ----
    data_dir: Path
    state_db_path: Path
    tasks_db_path: Path

    # ---- Device runtime ----
    dispatch_interval_seconds: float
    notifications_granted: bool
    background_restricted: bool

    # ---- Delivery connectors ----
    console_enabled: bool
    matrix_enabled: bool
    matrix_homeserver: str
    matrix_user_id: str
    matrix_password: str
    matrix_room_id: str
    matrix_store_path: Path

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "hive").strip() or "hive"
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/hive"))
        state_db_path = _env_path(_k("STATE_DB_PATH"), data_dir / "state.sqlite3")
        tasks_db_path = _env_path(_k("TASKS_DB_PATH"), data_dir / "tasks.sqlite3")

        dispatch_interval_seconds = _env_float(_k("DISPATCH_INTERVAL_SECONDS"), 15.0)
        notifications_granted = _env_bool(_k("NOTIFICATIONS_GRANTED"), True)
        background_restricted = _env_bool(_k("BACKGROUND_RESTRICTED"), False)

        console_enabled = _env_bool(_k("CONSOLE_ENABLED"), True)
        matrix_enabled = _env_bool(_k("MATRIX_ENABLED"), False)
        matrix_homeserver = _env(_k("MATRIX_HOMESERVER")).strip()
        matrix_user_id = _env(_k("MATRIX_USER_ID")).strip()
        matrix_password = _env(_k("MATRIX_PASSWORD")).strip()
        matrix_room_id = _env(_k("MATRIX_ROOM_ID")).strip()
        matrix_store_path = _env_path(_k("MATRIX_STORE_PATH"), data_dir / "matrix_store")

        return Settings(
            app_name=app_name,
            log_level=log_level,
            data_dir=data_dir,
            state_db_path=state_db_path,
            tasks_db_path=tasks_db_path,
            dispatch_interval_seconds=dispatch_interval_seconds,
            notifications_granted=notifications_granted,
            background_restricted=background_restricted,
            console_enabled=console_enabled,
            matrix_enabled=matrix_enabled,
            matrix_homeserver=matrix_homeserver,
            matrix_user_id=matrix_user_id,
            matrix_password=matrix_password,
            matrix_room_id=matrix_room_id,
            matrix_store_path=matrix_store_path,
        )


SETTINGS = Settings.from_env()


def get_settings() -> Settings:
    return SETTINGS
