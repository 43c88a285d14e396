# src/bini_calendar/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the calendar core.

The controller depends on Protocols instead of concrete stores.
This keeps the remote backend / local SQLite store swappable and makes testing easier.

Records crossing these ports are raw backend rows: flat dicts whose sub-fields may
still be JSON-encoded text. Only the normalizer turns them into CanonicalTask.
"""

from typing import Any, Awaitable, Protocol

RawTask = dict[str, Any]


class TaskSourceError(RuntimeError):
    """The data collaborator failed (network, auth, storage, malformed payload)."""


class TaskSource(Protocol):
    """Inbound collaborator: all records whose date falls within [start_date, end_date]."""

    def fetch_tasks(self, *, start_date: str, end_date: str) -> Awaitable[list[RawTask]]: ...


class TaskMutator(Protocol):
    """
    Outbound collaborator keyed by task id.

    Each operation returns the updated raw record as stored by the backend;
    the caller re-normalizes it instead of patching its own copy.
    """

    def toggle_completion(self, task_id: str) -> Awaitable[RawTask]: ...

    def replace_steps(self, task_id: str, steps: list[dict[str, Any]]) -> Awaitable[RawTask]: ...

    def delete_task(self, task_id: str) -> Awaitable[None]: ...


class TaskBackend(TaskSource, TaskMutator, Protocol):
    """Both directions plus creation; what bootstrap wires into AppState."""

    def add_task(self, record: RawTask) -> Awaitable[RawTask]: ...

    def aclose(self) -> Awaitable[None]: ...
