# tests/test_config.py

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from bini_calendar.config import Settings
from bini_calendar.logging_setup import _ConsoleNoiseFilter

_VARS = (
    "BINI_SUPABASE_URL",
    "SUPABASE_URL",
    "BINI_SUPABASE_KEY",
    "SUPABASE_ANON_KEY",
    "BINI_DATA_DIR",
    "BINI_TASKS_DB_PATH",
    "BINI_MAX_VISIBLE_TASKS",
    "BINI_SWIPE_VELOCITY_THRESHOLD",
)


@pytest.fixture()
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    for name in _VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_defaults_use_local_store(clean_env) -> None:
    s = Settings.from_env()
    assert not s.remote_enabled
    assert s.max_visible_tasks == 3
    assert s.swipe_velocity_threshold == 500.0
    assert s.swipe_translation_threshold == 100.0
    assert s.tasks_db_path == Path(".local/bini") / "tasks.sqlite3"


def test_overrides_and_bad_numbers(clean_env) -> None:
    clean_env.setenv("BINI_SUPABASE_URL", "https://demo.supabase.co")
    clean_env.setenv("SUPABASE_ANON_KEY", "anon")
    clean_env.setenv("BINI_DATA_DIR", "/tmp/bini-data")
    clean_env.setenv("BINI_MAX_VISIBLE_TASKS", "-4")
    clean_env.setenv("BINI_SWIPE_VELOCITY_THRESHOLD", "fast")

    s = Settings.from_env()
    assert s.remote_enabled
    assert s.supabase_key == "anon"
    assert s.tasks_db_path == Path("/tmp/bini-data/tasks.sqlite3")
    assert s.max_visible_tasks == 0
    assert s.swipe_velocity_threshold == 500.0


def _record(name: str, level: int) -> logging.LogRecord:
    return logging.LogRecord(name, level, __file__, 1, "msg", None, None)


def test_console_filter_keeps_app_logs_and_mutes_chatter() -> None:
    f = _ConsoleNoiseFilter()
    assert f.filter(_record("bini_calendar.calendar.controller", logging.DEBUG))
    assert not f.filter(_record("httpx", logging.INFO))
    assert f.filter(_record("httpx", logging.WARNING))
    assert not f.filter(_record("asyncio", logging.WARNING))
    assert f.filter(_record("asyncio", logging.ERROR))


def test_setup_logging_installs_console_and_file_handlers(tmp_path: Path) -> None:
    from bini_calendar.logging_setup import setup_logging

    root = logging.getLogger()
    saved_handlers, saved_level = list(root.handlers), root.level
    try:
        log_file = setup_logging(log_dir=tmp_path / "logs", console_level=logging.WARNING)
        assert log_file == tmp_path / "logs" / "bini.log"
        assert len(root.handlers) == 2

        logging.getLogger("bini_calendar.test").debug("written to file")
        for h in root.handlers:
            h.flush()
        assert "written to file" in log_file.read_text(encoding="utf-8")
    finally:
        for h in list(root.handlers):
            root.removeHandler(h)
            h.close()
        for h in saved_handlers:
            root.addHandler(h)
        root.setLevel(saved_level)
        logging.captureWarnings(False)
