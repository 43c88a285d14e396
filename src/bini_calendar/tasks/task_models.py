# src/bini_calendar/tasks/task_models.py

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum

DEFAULT_TITLE = "Untitled Task"
DEFAULT_EMOJI = "✨"
DEFAULT_CATEGORY = "Personal"

WEEKDAY_TOKENS = ("sun", "mon", "tue", "wed", "thu", "fri", "sat")


class Priority(StrEnum):
    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"

    @classmethod
    def from_raw(cls, raw: object) -> Priority:
        if not isinstance(raw, str) or not raw.strip():
            return cls.NORMAL
        value = raw.strip().lower()
        # Older rows were written with "medium".
        if value == "medium":
            return cls.NORMAL
        try:
            return cls(value)
        except ValueError:
            return cls.NORMAL


class Frequency(StrEnum):
    NONE = "none"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"

    @classmethod
    def from_raw(cls, raw: object) -> Frequency:
        if not isinstance(raw, str) or not raw.strip():
            return cls.NONE
        value = raw.strip().lower()
        if value == "once":
            return cls.NONE
        try:
            return cls(value)
        except ValueError:
            return cls.NONE


@dataclass(frozen=True, slots=True)
class Step:
    id: str
    title: str
    completed: bool = False


@dataclass(frozen=True, slots=True)
class Recurrence:
    frequency: Frequency = Frequency.NONE
    interval: int = 1
    days_of_week: frozenset[str] = field(default_factory=frozenset)


@dataclass(frozen=True, slots=True)
class CanonicalTask:
    """
    The single normalized task shape every calendar component works with.

    Instances are never mutated; a changed task is a new record that goes
    through normalization and indexing again.
    """

    id: str
    title: str
    date_iso: str
    emoji: str = DEFAULT_EMOJI
    start_time: str | None = None  # "HH:MM"; None = unscheduled
    duration_minutes: int | None = None
    is_completed: bool = False
    is_shared: bool = False
    priority: Priority = Priority.NORMAL
    steps: tuple[Step, ...] = ()
    recurrence: Recurrence = field(default_factory=Recurrence)
    alerts: frozenset[str] = field(default_factory=frozenset)

    details: str | None = None
    category: str = DEFAULT_CATEGORY
    assigned_to: tuple[str, ...] = ()
    created_by: str | None = None
    group_id: str | None = None

    @property
    def is_scheduled(self) -> bool:
        return self.start_time is not None

    @property
    def end_time(self) -> str | None:
        """start_time + duration, wrapping past midnight."""
        if self.start_time is None or self.duration_minutes is None:
            return None
        hours, minutes = (int(p) for p in self.start_time.split(":"))
        total = (hours * 60 + minutes + self.duration_minutes) % (24 * 60)
        return f"{total // 60:02d}:{total % 60:02d}"
