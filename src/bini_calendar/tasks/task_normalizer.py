# src/bini_calendar/tasks/task_normalizer.py

from __future__ import annotations

"""
Task normalizer.

Backend rows arrive in several shapes:
- current column names (start_time, details, steps, reoccurrence, ...)
- legacy aliases written by older code paths (time, subtitle, subtasks, recurrence, ...)
- camelCase keys from client-side records (startTime, isCompleted, ...)
- sub-objects stored either natively or as JSON text

All of that knowledge lives here. normalize() turns one raw record into a
CanonicalTask, or None when the record has no usable calendar date.
Malformed optional fields fall back to defaults and never abort the record.
"""

import json
import logging
import math
import re
import uuid
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import date, datetime, time
from typing import Any

from .task_models import (
    DEFAULT_CATEGORY,
    DEFAULT_EMOJI,
    DEFAULT_TITLE,
    WEEKDAY_TOKENS,
    CanonicalTask,
    Frequency,
    Priority,
    Recurrence,
    Step,
)

logger = logging.getLogger(__name__)

# Concept -> source keys, highest priority first.
FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    "id": ("id",),
    "title": ("title",),
    "emoji": ("emoji",),
    "date": ("date", "dateISO", "date_iso", "when"),
    "start_time": ("start_time", "startTime", "time", "when_time"),
    "duration": ("duration", "durationMinutes", "duration_minutes", "durationMin"),
    "end_time": ("end_time", "endTime"),
    "details": ("details", "subtitle", "description"),
    "steps": ("steps", "subtasks"),
    "recurrence": ("reoccurrence", "recurrence"),
    "frequency": ("frequency",),
    "alerts": ("alerts",),
    "assigned_to": ("assigned_to", "assignedTo"),
    "is_completed": ("is_completed", "isCompleted", "completed"),
    "is_shared": ("is_shared", "isShared", "shared"),
    "priority": ("priority",),
    "category": ("category",),
    "created_by": ("created_by", "createdBy"),
    "group_id": ("group_id", "groupId"),
}

UNSCHEDULED_SENTINEL = "TODO"

_DATE_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})(?:[T ].*)?$")
_TIME_RE = re.compile(r"^(\d{1,2}):(\d{2})(?::\d{2}(?:\.\d+)?)?$")
_TRUTHY = {"1", "true", "yes", "y", "on", "t"}
_MINUTES_PER_DAY = 24 * 60


@dataclass(slots=True)
class NormalizeResult:
    tasks: list[CanonicalTask] = field(default_factory=list)
    dropped: int = 0


# ---- field lookup ----


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _flatten_when(raw: Mapping[str, Any]) -> Mapping[str, Any]:
    """Form payloads carry {"when": {"date": ..., "time": ...}}."""
    when = raw.get("when")
    if not isinstance(when, Mapping):
        return raw
    flat = dict(raw)
    flat["when"] = when.get("date")
    flat["when_time"] = when.get("time")
    return flat


def _pick(raw: Mapping[str, Any], concept: str) -> Any:
    for key in FIELD_ALIASES[concept]:
        if key in raw and not _is_blank(raw[key]):
            return raw[key]
    return None


def _decode_json(value: Any) -> Any:
    """Decode JSON text; structured values pass through. Bad JSON -> None."""
    if isinstance(value, (bytes, bytearray)):
        value = value.decode("utf-8", errors="replace")
    if not isinstance(value, str):
        return value
    text = value.strip()
    if not text:
        return None
    try:
        decoded = json.loads(text)
        # Double-encoded text ("\"[...]\"") shows up in rows written twice.
        if isinstance(decoded, str) and decoded.strip()[:1] in ("[", "{"):
            decoded = json.loads(decoded)
        return decoded
    except (ValueError, TypeError, RecursionError):
        logger.debug("Ignoring undecodable JSON field: %.80r", text)
        return None


def _pick_json(raw: Mapping[str, Any], concept: str, expected: type | tuple[type, ...]) -> Any:
    """First alias whose (decoded) value has the expected shape."""
    for key in FIELD_ALIASES[concept]:
        if key not in raw or _is_blank(raw[key]):
            continue
        decoded = _decode_json(raw[key])
        if isinstance(decoded, expected):
            return decoded
    return None


# ---- scalar coercion ----


def coerce_date_iso(value: Any) -> str | None:
    """Calendar-date label "YYYY-MM-DD", or None. No timezone conversion."""
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if not isinstance(value, str):
        return None
    m = _DATE_RE.match(value.strip())
    if not m:
        return None
    year, month, day = (int(g) for g in m.groups())
    try:
        return date(year, month, day).isoformat()
    except ValueError:
        return None


def coerce_time(value: Any) -> str | None:
    """"HH:MM" or None (unscheduled)."""
    if isinstance(value, datetime):
        value = value.time()
    if isinstance(value, time):
        return f"{value.hour:02d}:{value.minute:02d}"
    if not isinstance(value, str):
        return None
    text = value.strip()
    if not text or text.upper() == UNSCHEDULED_SENTINEL:
        return None
    m = _TIME_RE.match(text)
    if not m:
        return None
    hours, minutes = int(m.group(1)), int(m.group(2))
    if hours > 23 or minutes > 59:
        return None
    return f"{hours:02d}:{minutes:02d}"


def _coerce_bool(value: Any, default: bool = False) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        return value.strip().lower() in _TRUTHY
    return default


def _coerce_minutes(value: Any) -> int | None:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            return None
    if isinstance(value, float) and not math.isfinite(value):
        return None
    if isinstance(value, (int, float)):
        if value < 0:
            return None
        return int(value)
    return None


def _coerce_positive_int(value: Any, default: int = 1) -> int:
    minutes = _coerce_minutes(value)
    if minutes is None or minutes < 1:
        return default
    return minutes


def _minutes_between(start: str | None, end: str | None) -> int | None:
    if start is None or end is None:
        return None
    sh, sm = (int(p) for p in start.split(":"))
    eh, em = (int(p) for p in end.split(":"))
    span = ((eh * 60 + em) - (sh * 60 + sm)) % _MINUTES_PER_DAY
    return span or None


def _clean_str(value: Any) -> str | None:
    if value is None or isinstance(value, (dict, list)):
        return None
    text = str(value).strip()
    return text or None


# ---- structured fields ----


def _coerce_steps(value: Any) -> tuple[Step, ...]:
    if not isinstance(value, (list, tuple)):
        return ()
    out: list[Step] = []
    for i, item in enumerate(value, start=1):
        if isinstance(item, Step):
            out.append(item)
            continue
        if isinstance(item, str):
            if item.strip():
                out.append(Step(id=f"step-{i}", title=item.strip()))
            continue
        if not isinstance(item, Mapping):
            continue
        title = _clean_str(item.get("title")) or _clean_str(item.get("text"))
        if not title:
            continue
        step_id = _clean_str(item.get("id")) or f"step-{i}"
        completed = _coerce_bool(
            item.get("completed") if "completed" in item else item.get("isCompleted")
        )
        out.append(Step(id=step_id, title=title, completed=completed))
    return tuple(out)


def _weekday_token(value: Any) -> str | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return WEEKDAY_TOKENS[value] if 0 <= value <= 6 else None
    if isinstance(value, str):
        token = value.strip().lower()[:3]
        return token if token in WEEKDAY_TOKENS else None
    return None


def _coerce_weekdays(value: Any) -> frozenset[str]:
    if isinstance(value, str):
        value = value.split(",")
    if not isinstance(value, (list, tuple, set, frozenset)):
        return frozenset()
    return frozenset(t for t in (_weekday_token(v) for v in value) if t)


def _coerce_recurrence(value: Any, flat_frequency: Any) -> Recurrence:
    if isinstance(value, Recurrence):
        return value
    if isinstance(value, Mapping):
        days = value.get("daysOfWeek")
        if days is None:
            days = value.get("days_of_week")
        return Recurrence(
            frequency=Frequency.from_raw(value.get("frequency")),
            interval=_coerce_positive_int(value.get("interval")),
            days_of_week=_coerce_weekdays(days),
        )
    if flat_frequency is not None:
        return Recurrence(frequency=Frequency.from_raw(flat_frequency))
    return Recurrence()


def _coerce_str_set(value: Any) -> frozenset[str]:
    if not isinstance(value, (list, tuple, set, frozenset)):
        return frozenset()
    return frozenset(s for s in (_clean_str(v) for v in value) if s)


def _coerce_str_tuple(value: Any) -> tuple[str, ...]:
    if not isinstance(value, (list, tuple)):
        return ()
    seen: dict[str, None] = {}
    for v in value:
        s = _clean_str(v)
        if s:
            seen.setdefault(s, None)
    return tuple(seen)


def _synthetic_id(raw: Mapping[str, Any]) -> str:
    try:
        payload = json.dumps(
            {str(k): v for k, v in raw.items()}, sort_keys=True, default=str, ensure_ascii=False
        )
    except (TypeError, ValueError, RecursionError):
        # Nested non-string keys or cycles: fall back to a repr digest.
        payload = repr(sorted(map(repr, raw.items())))
    return f"local-{uuid.uuid5(uuid.NAMESPACE_URL, payload)}"


# ---- public API ----


def normalize(raw: Any, *, fallback_date: str | None = None) -> CanonicalTask | None:
    """
    Convert one raw backend record into a CanonicalTask.

    Returns None when no valid calendar date can be found (the record cannot be
    placed on the grid). fallback_date is used only when the record itself has
    no date field at all (pre-grouped input).
    """
    if isinstance(raw, CanonicalTask):
        return raw
    if not isinstance(raw, Mapping):
        return None

    rec = _flatten_when(raw)

    date_value = _pick(rec, "date")
    if date_value is None:
        date_value = fallback_date
    date_iso = coerce_date_iso(date_value)
    if date_iso is None:
        return None

    start_time = coerce_time(_pick(rec, "start_time"))
    duration = _coerce_minutes(_pick(rec, "duration"))
    if duration is None:
        duration = _minutes_between(start_time, coerce_time(_pick(rec, "end_time")))

    steps = _coerce_steps(_pick_json(rec, "steps", (list, tuple)))
    recurrence = _coerce_recurrence(
        _pick_json(rec, "recurrence", (dict, Recurrence)),
        _pick(rec, "frequency"),
    )
    alerts = _coerce_str_set(_pick_json(rec, "alerts", (list, tuple, set, frozenset)))
    assigned_to = _coerce_str_tuple(_pick_json(rec, "assigned_to", (list, tuple)))

    return CanonicalTask(
        id=_clean_str(_pick(rec, "id")) or _synthetic_id(raw),
        title=_clean_str(_pick(rec, "title")) or DEFAULT_TITLE,
        date_iso=date_iso,
        emoji=_clean_str(_pick(rec, "emoji")) or DEFAULT_EMOJI,
        start_time=start_time,
        duration_minutes=duration,
        is_completed=_coerce_bool(_pick(rec, "is_completed")),
        is_shared=_coerce_bool(_pick(rec, "is_shared")),
        priority=Priority.from_raw(_pick(rec, "priority")),
        steps=steps,
        recurrence=recurrence,
        alerts=alerts,
        details=_clean_str(_pick(rec, "details")),
        category=_clean_str(_pick(rec, "category")) or DEFAULT_CATEGORY,
        assigned_to=assigned_to,
        created_by=_clean_str(_pick(rec, "created_by")),
        group_id=_clean_str(_pick(rec, "group_id")),
    )


def normalize_many(records: Iterable[Any]) -> NormalizeResult:
    """Normalize a batch; undatable records are counted, never raised."""
    result = NormalizeResult()
    for raw in records:
        task = normalize(raw)
        if task is None:
            result.dropped += 1
            continue
        result.tasks.append(task)
    return result


def steps_to_raw(steps: Iterable[Step]) -> list[dict[str, Any]]:
    return [{"id": s.id, "title": s.title, "completed": s.completed} for s in steps]


def recurrence_to_raw(rec: Recurrence) -> dict[str, Any]:
    return {
        "frequency": rec.frequency.value,
        "interval": rec.interval,
        "daysOfWeek": [d for d in WEEKDAY_TOKENS if d in rec.days_of_week],
    }


def to_raw(task: CanonicalTask, *, legacy: bool = False) -> dict[str, Any]:
    """
    Re-express a canonical task as a backend row.

    legacy=False writes current column names with JSON-as-text sub-fields
    (what the database stores); legacy=True writes the older alias names with
    native structures. normalize() maps both back to an equal task.
    """
    if legacy:
        return {
            "id": task.id,
            "title": task.title,
            "emoji": task.emoji,
            "dateISO": task.date_iso,
            "time": task.start_time or UNSCHEDULED_SENTINEL,
            "durationMinutes": task.duration_minutes,
            "endTime": task.end_time,
            "isCompleted": task.is_completed,
            "isShared": task.is_shared,
            "priority": "medium" if task.priority is Priority.NORMAL else task.priority.value,
            "subtitle": task.details,
            "subtasks": steps_to_raw(task.steps),
            "recurrence": recurrence_to_raw(task.recurrence),
            "alerts": sorted(task.alerts),
            "assignedTo": list(task.assigned_to),
            "category": task.category,
            "createdBy": task.created_by,
            "groupId": task.group_id,
        }
    return {
        "id": task.id,
        "title": task.title,
        "emoji": task.emoji,
        "date": task.date_iso,
        "start_time": task.start_time,
        "duration": task.duration_minutes,
        "end_time": task.end_time,
        "is_completed": task.is_completed,
        "is_shared": task.is_shared,
        "priority": task.priority.value,
        "details": task.details,
        "steps": json.dumps(steps_to_raw(task.steps), ensure_ascii=False),
        "reoccurrence": json.dumps(recurrence_to_raw(task.recurrence), ensure_ascii=False),
        "alerts": json.dumps(sorted(task.alerts), ensure_ascii=False),
        "assigned_to": json.dumps(list(task.assigned_to), ensure_ascii=False),
        "category": task.category,
        "created_by": task.created_by,
        "group_id": task.group_id,
    }
