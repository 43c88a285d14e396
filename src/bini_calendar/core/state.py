# src/bini_calendar/core/state.py

from __future__ import annotations

from dataclasses import dataclass

from ..calendar.controller import CalendarController
from .ports import TaskBackend


@dataclass
class AppState:
    # Store Settings on the state for easy access in other modules.
    settings: object

    backend: TaskBackend
    calendar: CalendarController

    # Last date echoed by a day tap; the console uses it as the default for /day.
    selected_date: str | None = None
