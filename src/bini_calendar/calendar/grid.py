# src/bini_calendar/calendar/grid.py

from __future__ import annotations

"""
Month grid construction.

A grid is always 42 cells (6 weeks x 7 days), Sunday first:
trailing days of the previous month, every day of the focused month,
then leading days of the next month. Month indexes are zero-based (0 = January).
"""

from dataclasses import dataclass, replace
from datetime import date

from ..tasks.task_models import CanonicalTask

GRID_SIZE = 42
DAYS_PER_WEEK = 7

MONTH_NAMES = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)
WEEKDAY_INITIALS = ("S", "M", "T", "W", "T", "F", "S")

_DAYS_IN_MONTH = (31, 28, 31, 30, 31, 30, 31, 31, 30, 31, 30, 31)

# Per-month offsets for Sakamoto's day-of-week formula.
_WEEKDAY_OFFSETS = (0, 3, 2, 5, 0, 3, 5, 1, 4, 6, 2, 4)


@dataclass(frozen=True, slots=True)
class DayCell:
    day_of_month: int
    date_iso: str
    in_focused_month: bool
    is_today: bool = False
    tasks: tuple[CanonicalTask, ...] = ()

    def with_tasks(self, tasks: tuple[CanonicalTask, ...]) -> DayCell:
        return replace(self, tasks=tasks)


def check_month(month: int) -> None:
    if isinstance(month, bool) or not isinstance(month, int):
        raise ValueError(f"month must be an int in 0..11, got {month!r}")
    if not 0 <= month <= 11:
        raise ValueError(f"month must be in 0..11, got {month}")


def is_leap_year(year: int) -> bool:
    return year % 4 == 0 and (year % 100 != 0 or year % 400 == 0)


def days_in_month(year: int, month: int) -> int:
    check_month(month)
    if month == 1 and is_leap_year(year):
        return 29
    return _DAYS_IN_MONTH[month]


def first_weekday(year: int, month: int) -> int:
    """
    Weekday of day 1: 0 = Sunday .. 6 = Saturday.

    Proleptic Gregorian for any integer year (year 0 = 1 BC), so it works
    outside the 1..9999 range of datetime.date.
    """
    check_month(month)
    y = year - 1 if month < 2 else year
    return (y + y // 4 - y // 100 + y // 400 + _WEEKDAY_OFFSETS[month] + 1) % DAYS_PER_WEEK


def previous_month(year: int, month: int) -> tuple[int, int]:
    check_month(month)
    return (year - 1, 11) if month == 0 else (year, month - 1)


def next_month(year: int, month: int) -> tuple[int, int]:
    check_month(month)
    return (year + 1, 0) if month == 11 else (year, month + 1)


def _iso(year: int, month: int, day: int) -> str:
    return f"{year:04d}-{month + 1:02d}-{day:02d}"


def build_grid(year: int, month: int, *, today: date | None = None) -> list[DayCell]:
    """
    42 task-less cells for (year, month).

    Raises ValueError for a month outside 0..11; callers pass cursor values only.
    """
    check_month(month)
    today_iso = today.isoformat() if today is not None else None

    cells: list[DayCell] = []

    def emit(y: int, m: int, day: int, focused: bool) -> None:
        iso = _iso(y, m, day)
        cells.append(
            DayCell(
                day_of_month=day,
                date_iso=iso,
                in_focused_month=focused,
                is_today=iso == today_iso,
            )
        )

    lead_in = first_weekday(year, month)
    prev_y, prev_m = previous_month(year, month)
    prev_last = days_in_month(prev_y, prev_m)
    for day in range(prev_last - lead_in + 1, prev_last + 1):
        emit(prev_y, prev_m, day, False)

    for day in range(1, days_in_month(year, month) + 1):
        emit(year, month, day, True)

    next_y, next_m = next_month(year, month)
    for day in range(1, GRID_SIZE - len(cells) + 1):
        emit(next_y, next_m, day, False)

    return cells


def grid_weeks(cells: list[DayCell]) -> list[list[DayCell]]:
    """Split a grid into rows of seven."""
    return [cells[i : i + DAYS_PER_WEEK] for i in range(0, len(cells), DAYS_PER_WEEK)]
