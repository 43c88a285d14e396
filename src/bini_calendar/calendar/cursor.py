# src/bini_calendar/calendar/cursor.py

from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from .grid import MONTH_NAMES, check_month


@dataclass(frozen=True, slots=True, order=True)
class MonthCursor:
    """
    The focused (year, month). Month is zero-based.

    Immutable: advance()/retreat() return a new cursor and wrap at year
    boundaries, so callers never construct an out-of-range month themselves.
    """

    year: int
    month: int

    def __post_init__(self) -> None:
        check_month(self.month)

    @classmethod
    def from_date(cls, d: date) -> MonthCursor:
        return cls(year=d.year, month=d.month - 1)

    @classmethod
    def from_ordinal(cls, ordinal: int) -> MonthCursor:
        year, month = divmod(ordinal, 12)
        return cls(year=year, month=month)

    @property
    def ordinal(self) -> int:
        """year * 12 + month; advance/retreat are +1/-1 on this value."""
        return self.year * 12 + self.month

    @property
    def label(self) -> str:
        return f"{MONTH_NAMES[self.month]} {self.year}"


def current_cursor(today: date | None = None) -> MonthCursor:
    return MonthCursor.from_date(today or date.today())


def advance(cursor: MonthCursor) -> MonthCursor:
    if cursor.month == 11:
        return MonthCursor(year=cursor.year + 1, month=0)
    return MonthCursor(year=cursor.year, month=cursor.month + 1)


def retreat(cursor: MonthCursor) -> MonthCursor:
    if cursor.month == 0:
        return MonthCursor(year=cursor.year - 1, month=11)
    return MonthCursor(year=cursor.year, month=cursor.month - 1)
