# src/bini_calendar/calendar/controller.py

from __future__ import annotations

"""
Calendar controller: the layer that drives the pure calendar functions.

- keeps the focused MonthCursor,
- fetches raw records for the grid span and normalizes/indexes them,
- discards stale fetch results (generation tokens, last write wins),
- renders the 42-cell grid with tasks attached,
- turns swipes into cursor moves and echoes day taps,
- routes mutations to the backend and re-normalizes what comes back.
"""

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import date
from typing import Any

from ..core.ports import RawTask, TaskMutator, TaskSource
from ..tasks.task_index import TaskIndex, build_index
from ..tasks.task_models import CanonicalTask, Step
from ..tasks.task_normalizer import coerce_date_iso, normalize, normalize_many, steps_to_raw
from .cursor import MonthCursor, advance, current_cursor, retreat
from .grid import DayCell, build_grid
from .projector import DEFAULT_MAX_VISIBLE, DaySummary, project_grid, summarize
from .swipe import DEFAULT_THRESHOLDS, SwipeDirection, SwipeThresholds, decide

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class MonthView:
    """One render: the focused month label plus its 42 cells with tasks."""

    cursor: MonthCursor
    cells: tuple[DayCell, ...]
    data_available: bool
    max_visible: int = DEFAULT_MAX_VISIBLE

    @property
    def label(self) -> str:
        return self.cursor.label

    def cell_for(self, date_iso: str) -> DayCell | None:
        for cell in self.cells:
            if cell.date_iso == date_iso:
                return cell
        return None

    def summary(self, cell: DayCell) -> DaySummary:
        return summarize(cell.tasks, self.max_visible)


class CalendarController:
    def __init__(
        self,
        source: TaskSource,
        mutator: TaskMutator | None = None,
        *,
        cursor: MonthCursor | None = None,
        thresholds: SwipeThresholds = DEFAULT_THRESHOLDS,
        max_visible: int = DEFAULT_MAX_VISIBLE,
        today: Callable[[], date] = date.today,
    ) -> None:
        self._source = source
        self._mutator = mutator
        self._today = today
        self._cursor = cursor or current_cursor(today())
        self._thresholds = thresholds
        self._max_visible = max_visible

        self._tasks: dict[str, CanonicalTask] = {}
        self._index: TaskIndex = {}
        self._data_available = False

        self._generation = 0
        self._applied_generation = 0
        self.dropped_records = 0

    # ---- read-only views ----

    @property
    def cursor(self) -> MonthCursor:
        return self._cursor

    @property
    def index(self) -> TaskIndex:
        return self._index

    @property
    def data_available(self) -> bool:
        return self._data_available

    def task(self, task_id: str) -> CanonicalTask | None:
        return self._tasks.get(task_id)

    def window(self) -> tuple[str, str]:
        """First and last date covered by the focused grid."""
        cells = build_grid(self._cursor.year, self._cursor.month)
        return cells[0].date_iso, cells[-1].date_iso

    # ---- data ----

    async def refresh(self) -> bool:
        """
        Fetch and index the records for the focused grid.

        Returns False when the result was discarded because a newer refresh
        already applied its own. A failed fetch still applies: the grid keeps
        rendering, just without tasks.
        """
        self._generation += 1
        generation = self._generation
        start, end = self.window()

        records: Sequence[RawTask] | None
        try:
            records = await self._source.fetch_tasks(start_date=start, end_date=end)
        except Exception:
            logger.warning("Task fetch failed for %s..%s; no data this cycle.", start, end, exc_info=True)
            records = None

        if generation < self._applied_generation:
            logger.debug(
                "Discarding stale fetch generation=%d (applied=%d)", generation, self._applied_generation
            )
            return False
        self._applied_generation = generation

        if records is None:
            self._set_tasks([], available=False)
            return True

        result = normalize_many(records)
        if result.dropped:
            self.dropped_records += result.dropped
            logger.info("Dropped %d task record(s) without a usable date.", result.dropped)
        self._set_tasks(result.tasks, available=True)
        logger.debug("Indexed %d task(s) on %d day(s)", len(result.tasks), len(self._index))
        return True

    def _set_tasks(self, tasks: Sequence[CanonicalTask], *, available: bool) -> None:
        by_id: dict[str, CanonicalTask] = {}
        for task in tasks:
            by_id[task.id] = task
        self._tasks = by_id
        self._index = build_index(by_id.values())
        self._data_available = available

    def _accept(self, raw: RawTask) -> CanonicalTask | None:
        task = normalize(raw)
        if task is None:
            logger.warning("Backend returned a task without a usable date: id=%s", raw.get("id"))
            return None
        tasks = dict(self._tasks)
        tasks[task.id] = task
        self._set_tasks(list(tasks.values()), available=self._data_available)
        return task

    # ---- navigation ----

    def go_next(self) -> MonthCursor:
        self._cursor = advance(self._cursor)
        return self._cursor

    def go_previous(self) -> MonthCursor:
        self._cursor = retreat(self._cursor)
        return self._cursor

    def go_today(self) -> MonthCursor:
        self._cursor = current_cursor(self._today())
        return self._cursor

    def go_to(self, cursor: MonthCursor) -> MonthCursor:
        self._cursor = cursor
        return self._cursor

    def on_swipe(self, velocity: float, translation: float) -> SwipeDirection:
        """Apply one finished horizontal swipe; vertical motion is the caller's to filter."""
        direction = decide(velocity, translation, self._thresholds)
        if direction is SwipeDirection.PREVIOUS:
            self.go_previous()
        elif direction is SwipeDirection.NEXT:
            self.go_next()
        return direction

    def on_day_tapped(self, target: DayCell | int | str) -> str:
        """
        Echo the tapped day's date. Adjacent-month cells are tappable too.

        Accepts a cell, a grid position (0..41) or a date label.
        """
        if isinstance(target, DayCell):
            return target.date_iso
        if isinstance(target, int) and not isinstance(target, bool):
            cells = build_grid(self._cursor.year, self._cursor.month)
            if not 0 <= target < len(cells):
                raise IndexError(f"grid position out of range: {target}")
            return cells[target].date_iso
        date_iso = coerce_date_iso(target)
        if date_iso is None:
            raise ValueError(f"not a calendar date: {target!r}")
        return date_iso

    # ---- render ----

    def render(self) -> MonthView:
        cells = build_grid(self._cursor.year, self._cursor.month, today=self._today())
        return MonthView(
            cursor=self._cursor,
            cells=tuple(project_grid(cells, self._index)),
            data_available=self._data_available,
            max_visible=self._max_visible,
        )

    # ---- mutations ----

    def _require_mutator(self) -> TaskMutator:
        if self._mutator is None:
            raise RuntimeError("No task mutator configured.")
        return self._mutator

    async def toggle_completion(self, task_id: str) -> CanonicalTask | None:
        raw = await self._require_mutator().toggle_completion(task_id)
        return self._accept(raw)

    async def replace_steps(
        self, task_id: str, steps: Sequence[Step | dict[str, Any]]
    ) -> CanonicalTask | None:
        payload = [steps_to_raw([s])[0] if isinstance(s, Step) else dict(s) for s in steps]
        raw = await self._require_mutator().replace_steps(task_id, payload)
        return self._accept(raw)

    async def delete_task(self, task_id: str) -> None:
        await self._require_mutator().delete_task(task_id)
        if task_id in self._tasks:
            tasks = {k: v for k, v in self._tasks.items() if k != task_id}
            self._set_tasks(list(tasks.values()), available=self._data_available)
