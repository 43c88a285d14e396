# src/bini_calendar/tasks/task_api.py

from __future__ import annotations

import logging
from dataclasses import replace

from ..core.state import AppState
from .task_models import CanonicalTask
from .task_normalizer import coerce_date_iso, coerce_time

logger = logging.getLogger(__name__)


async def add_task(
    state: AppState,
    *,
    date_iso: str,
    title: str,
    start_time: str | None = None,
    emoji: str | None = None,
    duration_minutes: int | None = None,
    is_shared: bool = False,
) -> str:
    """
    Create a task through the backend and refresh the focused month.
    Returns the new task id.
    """
    day = coerce_date_iso(date_iso)
    if day is None:
        raise ValueError(f"not a calendar date: {date_iso!r}")
    if not title or not title.strip():
        raise ValueError("title is required")
    when = coerce_time(start_time) if start_time else None
    if start_time and when is None:
        raise ValueError(f"not a HH:MM time: {start_time!r}")

    record = {
        "title": title.strip(),
        "date": day,
        "start_time": when,
        "duration": duration_minutes,
        "emoji": emoji,
        "is_shared": is_shared,
        "is_completed": False,
        "priority": "normal",
        "steps": [],
        "alerts": [],
        "reoccurrence": {"frequency": "none", "interval": 1, "daysOfWeek": []},
    }
    stored = await state.backend.add_task(record)
    task_id = str(stored.get("id"))
    logger.info("Created task id=%s date=%s", task_id, day)
    await state.calendar.refresh()
    return task_id


async def toggle_task(state: AppState, task_id: str) -> CanonicalTask | None:
    task = await state.calendar.toggle_completion(task_id)
    if task is not None:
        logger.info("Task id=%s completed=%s", task.id, task.is_completed)
    return task


async def set_step_completed(
    state: AppState, task_id: str, step_id: str, completed: bool = True
) -> CanonicalTask | None:
    """Flip one step and write the whole step list back."""
    task = state.calendar.task(task_id)
    if task is None:
        raise KeyError(task_id)
    if not any(s.id == step_id for s in task.steps):
        raise KeyError(step_id)
    steps = [replace(s, completed=completed) if s.id == step_id else s for s in task.steps]
    return await state.calendar.replace_steps(task_id, steps)


def tasks_for_day(state: AppState, date_iso: str) -> tuple[CanonicalTask, ...]:
    return tuple(state.calendar.index.get(date_iso, ()))
