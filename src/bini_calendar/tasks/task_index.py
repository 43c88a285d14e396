# src/bini_calendar/tasks/task_index.py

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from datetime import date, timedelta
from typing import Any

from .task_models import CanonicalTask
from .task_normalizer import coerce_date_iso, normalize

logger = logging.getLogger(__name__)

TaskIndex = dict[str, tuple[CanonicalTask, ...]]

# Sorts after every valid "HH:MM".
UNSCHEDULED_SORT_KEY = "99:99"

RELATIVE_DAY_KEYS = {"today": 0, "tomorrow": 1, "yesterday": -1}


def start_time_sort_key(task: CanonicalTask) -> str:
    return task.start_time if task.start_time is not None else UNSCHEDULED_SORT_KEY


def build_index(tasks: Iterable[CanonicalTask]) -> TaskIndex:
    """
    Group tasks by exact date_iso; each bucket ordered by start_time,
    unscheduled last. Dates without tasks are absent, not empty.

    The sort is stable, so tasks sharing a start time keep their input order.
    """
    buckets: dict[str, list[CanonicalTask]] = {}
    for task in tasks:
        buckets.setdefault(task.date_iso, []).append(task)
    return {
        day: tuple(sorted(bucket, key=start_time_sort_key)) for day, bucket in buckets.items()
    }


def resolve_group_key(key: str, today: date | None = None) -> str | None:
    """Map a timeline group key ("today", "tomorrow", "2024-01-15") to a date label."""
    offset = RELATIVE_DAY_KEYS.get(key.strip().lower()) if isinstance(key, str) else None
    if offset is not None:
        base = today or date.today()
        return (base + timedelta(days=offset)).isoformat()
    return coerce_date_iso(key)


def build_index_from_groups(
    groups: Mapping[str, Iterable[Any]],
    *,
    today: date | None = None,
) -> tuple[TaskIndex, int]:
    """
    Build the index from a pre-grouped {date-key: [records]} structure.

    Items may be raw records or CanonicalTask. A record's own date stays
    authoritative; the group key only fills in records that carry none.
    Returns (index, dropped_count).
    """
    tasks: list[CanonicalTask] = []
    dropped = 0
    for key, items in groups.items():
        fallback = resolve_group_key(key, today)
        for item in items or ():
            task = normalize(item, fallback_date=fallback)
            if task is None:
                dropped += 1
                continue
            tasks.append(task)
    if dropped:
        logger.debug("Grouped input: %d record(s) without a usable date", dropped)
    return build_index(tasks), dropped
