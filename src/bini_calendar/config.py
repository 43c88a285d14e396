# src/bini_calendar/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app.
- No secrets required at import time.
- No remote backend configured => the local SQLite store is used.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

ENV_PREFIX = "BINI"


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


# Real environment variables win over .env.
load_dotenv(override=False)


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _first_env(*names: str, default: str | None = None) -> str | None:
    for n in names:
        v = os.getenv(n)
        if v is not None and v.strip() != "":
            return v
    return default


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


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

    # ---- Remote backend (Supabase / PostgREST) ----
    supabase_url: str
    supabase_key: Optional[str]
    supabase_access_token: Optional[str]
    supabase_table: str
    user_id: str
    http_timeout_seconds: float

    # ---- Local data paths (ignored by git) ----
    data_dir: Path
    tasks_db_path: Path

    # ---- Calendar tuning ----
    max_visible_tasks: int
    swipe_velocity_threshold: float
    swipe_translation_threshold: float

    @property
    def remote_enabled(self) -> bool:
        return bool(self.supabase_url.strip()) and bool((self.supabase_key or "").strip())

    @staticmethod
    def from_env() -> "Settings":
        app_name = _first_env(_k("APP_NAME"), default="bini") or "bini"
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        supabase_url = (_first_env(_k("SUPABASE_URL"), "SUPABASE_URL", default="") or "").strip()
        supabase_key = _first_env(_k("SUPABASE_KEY"), "SUPABASE_ANON_KEY", default=None)
        supabase_access_token = _first_env(_k("SUPABASE_ACCESS_TOKEN"), default=None)
        supabase_table = _env(_k("SUPABASE_TABLE"), "tasks").strip() or "tasks"
        user_id = _env(_k("USER_ID"), "").strip()
        http_timeout_seconds = _env_float(_k("HTTP_TIMEOUT_SECONDS"), 10.0)

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/bini"))
        tasks_db_path = _env_path(_k("TASKS_DB_PATH"), data_dir / "tasks.sqlite3")

        max_visible_tasks = max(0, _env_int(_k("MAX_VISIBLE_TASKS"), 3))
        swipe_velocity_threshold = _env_float(_k("SWIPE_VELOCITY_THRESHOLD"), 500.0)
        swipe_translation_threshold = _env_float(_k("SWIPE_TRANSLATION_THRESHOLD"), 100.0)

        return Settings(
            app_name=app_name,
            log_level=log_level,
            supabase_url=supabase_url,
            supabase_key=supabase_key,
            supabase_access_token=supabase_access_token,
            supabase_table=supabase_table,
            user_id=user_id,
            http_timeout_seconds=http_timeout_seconds,
            data_dir=data_dir,
            tasks_db_path=tasks_db_path,
            max_visible_tasks=max_visible_tasks,
            swipe_velocity_threshold=swipe_velocity_threshold,
            swipe_translation_threshold=swipe_translation_threshold,
        )


SETTINGS = Settings.from_env()


def get_settings() -> Settings:
    return SETTINGS
