# src/bini_calendar/connectors/render.py

from __future__ import annotations

from collections.abc import Sequence

from ..calendar.controller import MonthView
from ..calendar.grid import WEEKDAY_INITIALS, DayCell, grid_weeks
from ..calendar.projector import TaskMarker, day_stats
from ..tasks.task_models import CanonicalTask

CELL_WIDTH = 10

_MARKER_CHARS = {
    TaskMarker.COMPLETED: "x",
    TaskMarker.SHARED: "s",
    TaskMarker.PERSONAL: "o",
}


def _cell_text(view: MonthView, cell: DayCell) -> str:
    if cell.is_today:
        day = f"[{cell.day_of_month:>2}]"
    elif cell.in_focused_month:
        day = f" {cell.day_of_month:>2} "
    else:
        day = f"({cell.day_of_month:>2})"
    summary = view.summary(cell)
    marks = "".join(_MARKER_CHARS[m] for m in summary.markers)
    return f"{day}{marks:<3}{summary.overflow_label:<3}"[:CELL_WIDTH]


def render_month(view: MonthView) -> str:
    """
    Plain-text month grid.

    [15] today, (30) adjacent month; per task: x done, s shared, o personal; +N overflow.
    """
    width = CELL_WIDTH * len(WEEKDAY_INITIALS)
    lines = [view.label.center(width)]
    lines.append("".join(f" {d:<{CELL_WIDTH - 1}}" for d in WEEKDAY_INITIALS))
    for week in grid_weeks(list(view.cells)):
        lines.append("".join(f"{_cell_text(view, c):<{CELL_WIDTH}}" for c in week).rstrip())
    if not view.data_available:
        lines.append("(no task data available)")
    return "\n".join(lines)


def render_day(date_iso: str, tasks: Sequence[CanonicalTask]) -> str:
    stats = day_stats(tasks)
    lines = [
        f"{date_iso}: {stats.total} task(s), {stats.shared} shared, {stats.completed} completed"
    ]
    for t in tasks:
        when = t.start_time or "--:--"
        if t.end_time:
            when = f"{when}-{t.end_time}"
        flags = []
        if t.is_completed:
            flags.append("done")
        if t.is_shared:
            flags.append("shared")
        if t.priority.value != "normal":
            flags.append(t.priority.value)
        if t.steps:
            flags.append(f"{sum(1 for s in t.steps if s.completed)}/{len(t.steps)} steps")
        flag_text = f" [{', '.join(flags)}]" if flags else ""
        lines.append(f"  {when} {t.emoji} {t.title}{flag_text}  id={t.id}")
        for s in t.steps:
            lines.append(f"      {'[x]' if s.completed else '[ ]'} {s.title}  step={s.id}")
    return "\n".join(lines)
