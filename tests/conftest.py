# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from bini_calendar.cli.bootstrap import create_initial_state
from bini_calendar.core.state import AppState


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with bootstrap and the calendar layer.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated from the environment.
    """
    return SimpleNamespace(
        app_name="bini-test",
        log_level="DEBUG",
        data_dir=tmp_path,
        tasks_db_path=tmp_path / "tasks.sqlite3",
        remote_enabled=False,
        max_visible_tasks=3,
        swipe_velocity_threshold=500.0,
        swipe_translation_threshold=100.0,
    )


@pytest.fixture()
def state(settings: SimpleNamespace) -> AppState:
    """
    AppState wired the way the CLI wires it.

    NOTE: the real SQLite TaskStore is used because its JSON-as-text rows are
    part of what we want to test.
    """
    return create_initial_state(settings=settings)
