# src/bini_calendar/calendar/projector.py

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from enum import StrEnum

from ..tasks.task_models import CanonicalTask
from .grid import DayCell

DEFAULT_MAX_VISIBLE = 3


class TaskMarker(StrEnum):
    COMPLETED = "completed"
    SHARED = "shared"
    PERSONAL = "personal"


@dataclass(frozen=True, slots=True)
class DaySummary:
    visible: tuple[CanonicalTask, ...]
    overflow_count: int

    @property
    def overflow_label(self) -> str:
        return f"+{self.overflow_count}" if self.overflow_count > 0 else ""

    @property
    def glyph(self) -> str:
        return self.visible[0].emoji if self.visible else ""

    @property
    def markers(self) -> tuple[TaskMarker, ...]:
        return tuple(marker_for(t) for t in self.visible)


@dataclass(frozen=True, slots=True)
class DayStats:
    total: int
    shared: int
    completed: int


def project(cell: DayCell, index: Mapping[str, Sequence[CanonicalTask]]) -> DayCell:
    """Attach the index bucket for the cell's date; a missing key means no tasks."""
    return cell.with_tasks(tuple(index.get(cell.date_iso, ())))


def project_grid(
    cells: Sequence[DayCell], index: Mapping[str, Sequence[CanonicalTask]]
) -> list[DayCell]:
    return [project(c, index) for c in cells]


def summarize(tasks: Sequence[CanonicalTask], max_visible: int = DEFAULT_MAX_VISIBLE) -> DaySummary:
    """First max_visible tasks in index order, plus how many were cut."""
    if max_visible < 0:
        raise ValueError(f"max_visible must be >= 0, got {max_visible}")
    visible = tuple(tasks[:max_visible])
    return DaySummary(visible=visible, overflow_count=max(0, len(tasks) - max_visible))


def marker_for(task: CanonicalTask) -> TaskMarker:
    if task.is_completed:
        return TaskMarker.COMPLETED
    if task.is_shared:
        return TaskMarker.SHARED
    return TaskMarker.PERSONAL


def day_stats(tasks: Sequence[CanonicalTask]) -> DayStats:
    return DayStats(
        total=len(tasks),
        shared=sum(1 for t in tasks if t.is_shared),
        completed=sum(1 for t in tasks if t.is_completed),
    )
