# src/bini_calendar/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- picks the task backend (remote Supabase client, or the local SQLite store),
- wires the calendar controller into AppState.
"""

from __future__ import annotations

import logging

from ..calendar.controller import CalendarController
from ..calendar.swipe import SwipeThresholds
from ..config import get_settings
from ..core.ports import TaskBackend
from ..core.state import AppState
from ..tasks.remote_store import SupabaseTaskClient
from ..tasks.task_store import TaskStore

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.tasks_db_path.parent.mkdir(parents=True, exist_ok=True)


def create_backend(settings) -> TaskBackend:
    if getattr(settings, "remote_enabled", False):
        try:
            client = SupabaseTaskClient.from_settings(settings)
            logger.info("Using remote task backend %s", settings.supabase_url)
            return client
        except ValueError:
            logger.exception("Remote backend misconfigured; falling back to local store.")
    return TaskStore(settings.tasks_db_path)


def create_initial_state(*, settings=None, backend: TaskBackend | None = None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    if backend is None:
        backend = create_backend(settings)

    calendar = CalendarController(
        backend,
        backend,
        thresholds=SwipeThresholds(
            velocity=float(settings.swipe_velocity_threshold),
            translation=float(settings.swipe_translation_threshold),
        ),
        max_visible=int(settings.max_visible_tasks),
    )
    return AppState(settings=settings, backend=backend, calendar=calendar)
