# tests/fakes.py

from __future__ import annotations

import asyncio
from copy import deepcopy
from dataclasses import dataclass, field
from typing import Any

from bini_calendar.core.ports import RawTask, TaskSourceError


@dataclass(slots=True)
class FetchCall:
    start_date: str
    end_date: str


class FakeTaskSource:
    """
    Deterministic TaskSource.

    - Captures the requested windows for assertions
    - Returns a copy of `records`, or raises when `fail` is set
    """

    def __init__(self, records: list[RawTask] | None = None, *, fail: bool = False) -> None:
        self.records = records or []
        self.fail = fail
        self.calls: list[FetchCall] = []

    async def fetch_tasks(self, *, start_date: str, end_date: str) -> list[RawTask]:
        self.calls.append(FetchCall(start_date, end_date))
        if self.fail:
            raise TaskSourceError("backend unreachable")
        return deepcopy(self.records)


class GatedTaskSource:
    """Each fetch blocks until its gate is opened; used to finish fetches out of order."""

    def __init__(self, results: list[list[RawTask]]) -> None:
        self._results = list(results)
        self.gates: list[asyncio.Event] = [asyncio.Event() for _ in results]
        self.started = 0

    async def fetch_tasks(self, *, start_date: str, end_date: str) -> list[RawTask]:
        i = self.started
        self.started += 1
        await self.gates[i].wait()
        return deepcopy(self._results[i])


@dataclass
class FakeMutator:
    """In-memory TaskMutator keyed by id; returns backend-shaped rows."""

    rows: dict[str, RawTask] = field(default_factory=dict)
    deleted: list[str] = field(default_factory=list)

    async def toggle_completion(self, task_id: str) -> RawTask:
        row = self._row(task_id)
        row["is_completed"] = not bool(row.get("is_completed"))
        return deepcopy(row)

    async def replace_steps(self, task_id: str, steps: list[dict[str, Any]]) -> RawTask:
        import json

        row = self._row(task_id)
        row["steps"] = json.dumps(steps)
        return deepcopy(row)

    async def delete_task(self, task_id: str) -> None:
        self._row(task_id)
        self.rows.pop(task_id)
        self.deleted.append(task_id)

    def _row(self, task_id: str) -> RawTask:
        if task_id not in self.rows:
            raise TaskSourceError(f"Task not found: {task_id}")
        return self.rows[task_id]
