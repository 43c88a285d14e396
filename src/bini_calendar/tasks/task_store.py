# src/bini_calendar/tasks/task_store.py

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
import sqlite3
import time
import uuid
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from ..core.ports import RawTask, TaskSourceError

logger = logging.getLogger(__name__)

# Sub-fields the backend keeps as JSON text rather than native structures.
JSON_TEXT_COLUMNS = ("steps", "subtasks", "reoccurrence", "recurrence", "alerts", "assigned_to")

_COLUMNS: dict[str, str] = {
    "title": "TEXT NOT NULL DEFAULT ''",
    "emoji": "TEXT",
    "date": "TEXT",
    "start_time": "TEXT",
    "time": "TEXT",
    "end_time": "TEXT",
    "duration": "INTEGER",
    "details": "TEXT",
    "subtitle": "TEXT",
    "steps": "TEXT",
    "subtasks": "TEXT",
    "reoccurrence": "TEXT",
    "alerts": "TEXT",
    "assigned_to": "TEXT",
    "is_completed": "INTEGER NOT NULL DEFAULT 0",
    "is_shared": "INTEGER NOT NULL DEFAULT 0",
    "category": "TEXT",
    "priority": "TEXT",
    "created_by": "TEXT",
    "group_id": "TEXT",
    "created_at": "REAL NOT NULL DEFAULT 0",
    "updated_at": "REAL NOT NULL DEFAULT 0",
}


def encode_json_columns(record: Mapping[str, Any]) -> dict[str, Any]:
    """Store structured sub-fields the way the backend does: as JSON text."""
    out = dict(record)
    for key in JSON_TEXT_COLUMNS:
        value = out.get(key)
        if value is not None and not isinstance(value, str):
            try:
                out[key] = json.dumps(value, ensure_ascii=False)
            except (TypeError, ValueError):
                logger.exception("Failed to JSON-encode %s; storing NULL.", key)
                out[key] = None
    return out


class TaskStore:
    """
    Local SQLite task store used when no remote backend is configured.

    Rows keep the backend's column layout, including the legacy columns
    (time, subtitle, subtasks) and JSON-as-text sub-fields, so everything read
    from here goes through the same normalizer as remote rows.

    Thread-safety:
    - each method opens its own SQLite connection
    - async port methods run the sync ones in a worker thread
    """

    def __init__(self, db_path: str | Path = "tasks.sqlite3") -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()
        try:
            total = self.count_tasks()
        except sqlite3.Error:
            total = -1
        logger.info("TaskStore ready db=%s total=%s", self._db_path, total)

    # ---- low-level helpers ----

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), timeout=30.0)
        conn.row_factory = sqlite3.Row
        with contextlib.suppress(sqlite3.Error):
            conn.execute("PRAGMA journal_mode=WAL")
        return conn

    def _ensure_schema(self) -> None:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS tasks (
                    id TEXT PRIMARY KEY,
                    title TEXT NOT NULL DEFAULT '',
                    date TEXT
                )
                """
            )

            # Migrations (safe): add missing columns.
            cur.execute("PRAGMA table_info(tasks)")
            cols = {row["name"] for row in cur.fetchall()}
            for name, decl in _COLUMNS.items():
                if name in cols:
                    continue
                cur.execute(f"ALTER TABLE tasks ADD COLUMN {name} {decl}")
                logger.debug("TaskStore migration: added column %s", name)

            cur.execute("CREATE INDEX IF NOT EXISTS idx_tasks_date ON tasks(date)")
            conn.commit()
        finally:
            conn.close()

    @staticmethod
    def _row_to_raw(row: sqlite3.Row) -> RawTask:
        return {k: row[k] for k in row.keys()}

    def _get_row(self, conn: sqlite3.Connection, task_id: str) -> sqlite3.Row:
        row = conn.execute("SELECT * FROM tasks WHERE id = ?", (task_id,)).fetchone()
        if row is None:
            raise TaskSourceError(f"Task not found: {task_id}")
        return row

    # ---- sync API ----

    def count_tasks(self) -> int:
        conn = self._get_conn()
        try:
            (n,) = conn.execute("SELECT COUNT(*) FROM tasks").fetchone()
            return int(n)
        finally:
            conn.close()

    def insert(self, record: Mapping[str, Any]) -> RawTask:
        """Insert a raw record (known columns only). Returns the stored row."""
        row = encode_json_columns(record)
        task_id = str(row.get("id") or uuid.uuid4().hex)
        now = time.time()
        values: dict[str, Any] = {"id": task_id, "created_at": now, "updated_at": now}
        for key in _COLUMNS:
            if key in row and key not in ("created_at", "updated_at"):
                value = row[key]
                values[key] = int(value) if isinstance(value, bool) else value

        names = ", ".join(values)
        marks = ", ".join("?" for _ in values)
        conn = self._get_conn()
        try:
            conn.execute(f"INSERT INTO tasks ({names}) VALUES ({marks})", tuple(values.values()))
            conn.commit()
            stored = self._row_to_raw(self._get_row(conn, task_id))
        except sqlite3.IntegrityError as e:
            raise TaskSourceError(f"Task already exists: {task_id}") from e
        finally:
            conn.close()
        logger.info("Task added id=%s date=%s", task_id, stored.get("date"))
        return stored

    def list_between(self, start_date: str, end_date: str) -> list[RawTask]:
        conn = self._get_conn()
        try:
            cur = conn.execute(
                """
                SELECT * FROM tasks
                WHERE date >= ? AND date <= ?
                ORDER BY date ASC, created_at ASC
                """,
                (start_date, end_date),
            )
            return [self._row_to_raw(r) for r in cur.fetchall()]
        finally:
            conn.close()

    def update_fields(self, task_id: str, fields: Mapping[str, Any]) -> RawTask:
        unknown = set(fields) - set(_COLUMNS)
        if unknown:
            raise ValueError(f"Unknown task columns: {sorted(unknown)}")
        values = encode_json_columns(fields)
        values["updated_at"] = time.time()
        assignments = ", ".join(f"{k} = ?" for k in values)
        conn = self._get_conn()
        try:
            self._get_row(conn, task_id)
            conn.execute(
                f"UPDATE tasks SET {assignments} WHERE id = ?",
                (*[int(v) if isinstance(v, bool) else v for v in values.values()], task_id),
            )
            conn.commit()
            return self._row_to_raw(self._get_row(conn, task_id))
        finally:
            conn.close()

    def toggle(self, task_id: str) -> RawTask:
        conn = self._get_conn()
        try:
            current = bool(self._get_row(conn, task_id)["is_completed"])
        finally:
            conn.close()
        return self.update_fields(task_id, {"is_completed": not current})

    def delete(self, task_id: str) -> None:
        conn = self._get_conn()
        try:
            conn.execute("DELETE FROM tasks WHERE id = ?", (task_id,))
            conn.commit()
        finally:
            conn.close()

    # ---- async port API ----

    async def fetch_tasks(self, *, start_date: str, end_date: str) -> list[RawTask]:
        try:
            return await asyncio.to_thread(self.list_between, start_date, end_date)
        except sqlite3.Error as e:
            raise TaskSourceError(f"Local task store failed: {e}") from e

    async def add_task(self, record: RawTask) -> RawTask:
        return await asyncio.to_thread(self.insert, record)

    async def toggle_completion(self, task_id: str) -> RawTask:
        return await asyncio.to_thread(self.toggle, task_id)

    async def replace_steps(self, task_id: str, steps: list[dict[str, Any]]) -> RawTask:
        # Writing the current column also clears the legacy one so readers agree.
        return await asyncio.to_thread(
            self.update_fields, task_id, {"steps": list(steps), "subtasks": None}
        )

    async def delete_task(self, task_id: str) -> None:
        await asyncio.to_thread(self.delete, task_id)

    async def aclose(self) -> None:
        """Compatibility hook for shutdown (no persistent connections to close)."""
        return
