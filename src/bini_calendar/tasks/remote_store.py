# src/bini_calendar/tasks/remote_store.py

from __future__ import annotations

"""
Remote task backend: Supabase REST (PostgREST) over httpx.

Only a thin transport. Rows are returned raw (JSON-as-text sub-fields and all);
normalization happens in the calendar layer.
"""

import json
import logging
from typing import Any

import httpx

from ..core.ports import RawTask, TaskSourceError
from .task_store import encode_json_columns

logger = logging.getLogger(__name__)


def _safe_error_message(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        payload = None

    if isinstance(payload, dict):
        for key in ("message", "error_description", "error", "hint"):
            value = payload.get(key)
            if isinstance(value, str) and value.strip():
                return " ".join(value.split())[:200]

    raw_text = response.text.strip()
    if raw_text:
        return " ".join(raw_text.split())[:200]
    return "Request failed without an error payload"


class SupabaseTaskClient:
    """TaskSource + TaskMutator backed by the `tasks` table of a Supabase project."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        *,
        access_token: str | None = None,
        table: str = "tasks",
        user_id: str = "",
        timeout: float = 10.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        if not base_url.strip():
            raise ValueError("base_url is required")
        if not api_key.strip():
            raise ValueError("api_key is required")
        self._url = f"{base_url.rstrip('/')}/rest/v1/{table}"
        self._headers = {
            "apikey": api_key,
            "Authorization": f"Bearer {access_token or api_key}",
            "Accept": "application/json",
        }
        self._user_id = user_id
        self._owns_http_client = http_client is None
        self._http_client = http_client or httpx.AsyncClient(timeout=timeout)

    @classmethod
    def from_settings(cls, settings: Any, http_client: httpx.AsyncClient | None = None) -> SupabaseTaskClient:
        return cls(
            settings.supabase_url,
            settings.supabase_key or "",
            access_token=getattr(settings, "supabase_access_token", None),
            table=getattr(settings, "supabase_table", "tasks"),
            user_id=getattr(settings, "user_id", ""),
            timeout=float(getattr(settings, "http_timeout_seconds", 10.0)),
            http_client=http_client,
        )

    async def aclose(self) -> None:
        if self._owns_http_client:
            await self._http_client.aclose()

    async def _request(
        self,
        method: str,
        *,
        params: list[tuple[str, str]] | None = None,
        json_body: Any = None,
        returning: bool = True,
    ) -> Any:
        headers = dict(self._headers)
        if json_body is not None:
            headers["Content-Type"] = "application/json"
        if returning and method in ("POST", "PATCH"):
            headers["Prefer"] = "return=representation"
        try:
            response = await self._http_client.request(
                method, self._url, params=params, json=json_body, headers=headers
            )
        except httpx.HTTPError as exc:
            raise TaskSourceError(f"Task backend request failed: {exc}") from exc

        if response.status_code < 200 or response.status_code >= 300:
            raise TaskSourceError(
                f"Task backend error ({response.status_code}): {_safe_error_message(response)}"
            )
        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise TaskSourceError("Task backend returned invalid JSON") from exc

    async def _single(self, method: str, task_id: str, json_body: Any = None) -> RawTask:
        rows = await self._request(method, params=[("id", f"eq.{task_id}")], json_body=json_body)
        if not isinstance(rows, list) or not rows or not isinstance(rows[0], dict):
            raise TaskSourceError(f"Task not found: {task_id}")
        return rows[0]

    # ---- TaskSource ----

    async def fetch_tasks(self, *, start_date: str, end_date: str) -> list[RawTask]:
        params = [
            ("select", "*"),
            ("date", f"gte.{start_date}"),
            ("date", f"lte.{end_date}"),
            ("order", "date.asc"),
        ]
        if self._user_id:
            # assigned_to is JSON text holding an array of ids.
            members = json.dumps([self._user_id])
            params.append(("or", f"(created_by.eq.{self._user_id},assigned_to.cs.{members})"))

        rows = await self._request("GET", params=params)
        if rows is None:
            return []
        if not isinstance(rows, list):
            raise TaskSourceError("Task backend returned an unexpected payload shape")
        logger.debug("Fetched %d task rows for %s..%s", len(rows), start_date, end_date)
        return [r for r in rows if isinstance(r, dict)]

    # ---- TaskMutator ----

    async def add_task(self, record: RawTask) -> RawTask:
        body = encode_json_columns(record)
        if self._user_id:
            body.setdefault("created_by", self._user_id)
            body.setdefault("assigned_to", json.dumps([self._user_id]))
        rows = await self._request("POST", json_body=body)
        if not isinstance(rows, list) or not rows:
            raise TaskSourceError("Task backend did not return the created row")
        return rows[0]

    async def toggle_completion(self, task_id: str) -> RawTask:
        current = await self._request(
            "GET", params=[("select", "id,is_completed"), ("id", f"eq.{task_id}")]
        )
        if not isinstance(current, list) or not current:
            raise TaskSourceError(f"Task not found: {task_id}")
        new_state = not bool(current[0].get("is_completed"))
        return await self._single("PATCH", task_id, {"is_completed": new_state})

    async def replace_steps(self, task_id: str, steps: list[dict[str, Any]]) -> RawTask:
        return await self._single("PATCH", task_id, encode_json_columns({"steps": list(steps)}))

    async def delete_task(self, task_id: str) -> None:
        await self._request("DELETE", params=[("id", f"eq.{task_id}")], returning=False)
