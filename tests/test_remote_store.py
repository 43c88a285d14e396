# tests/test_remote_store.py

from __future__ import annotations

import json
from types import SimpleNamespace

import httpx
import pytest

from bini_calendar.core.ports import TaskSourceError
from bini_calendar.tasks.remote_store import SupabaseTaskClient


def _client(handler, **kwargs) -> SupabaseTaskClient:
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return SupabaseTaskClient("https://demo.supabase.co/", "anon-key", http_client=http, **kwargs)


@pytest.mark.asyncio
async def test_fetch_queries_the_date_window() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=[{"id": "a", "date": "2024-01-02"}, "junk"])

    client = _client(handler, access_token="user-jwt", user_id="u1")
    rows = await client.fetch_tasks(start_date="2023-12-31", end_date="2024-02-10")

    assert rows == [{"id": "a", "date": "2024-01-02"}]
    req = seen[0]
    assert req.method == "GET"
    assert req.url.path == "/rest/v1/tasks"
    assert req.url.params.get_list("date") == ["gte.2023-12-31", "lte.2024-02-10"]
    assert req.url.params["order"] == "date.asc"
    assert "created_by.eq.u1" in req.url.params["or"]
    assert req.headers["apikey"] == "anon-key"
    assert req.headers["Authorization"] == "Bearer user-jwt"


@pytest.mark.asyncio
async def test_http_errors_become_source_errors() -> None:
    def denied(request: httpx.Request) -> httpx.Response:
        return httpx.Response(401, json={"message": "JWT expired"})

    with pytest.raises(TaskSourceError, match="JWT expired"):
        await _client(denied).fetch_tasks(start_date="2024-01-01", end_date="2024-01-31")


@pytest.mark.asyncio
async def test_transport_failure_becomes_source_error() -> None:
    def offline(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("no route", request=request)

    with pytest.raises(TaskSourceError):
        await _client(offline).fetch_tasks(start_date="2024-01-01", end_date="2024-01-31")


@pytest.mark.asyncio
async def test_invalid_json_becomes_source_error() -> None:
    def garbled(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=b"<html>", headers={"content-type": "text/html"})

    with pytest.raises(TaskSourceError):
        await _client(garbled).fetch_tasks(start_date="2024-01-01", end_date="2024-01-31")


@pytest.mark.asyncio
async def test_toggle_reads_then_patches() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        if request.method == "GET":
            return httpx.Response(200, json=[{"id": "t1", "is_completed": False}])
        body = json.loads(request.content)
        return httpx.Response(200, json=[{"id": "t1", "date": "2024-01-01", **body}])

    row = await _client(handler).toggle_completion("t1")

    assert [r.method for r in seen] == ["GET", "PATCH"]
    assert seen[1].url.params["id"] == "eq.t1"
    assert seen[1].headers["Prefer"] == "return=representation"
    assert row["is_completed"] is True


@pytest.mark.asyncio
async def test_add_encodes_json_text_and_owner() -> None:
    bodies: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(json.loads(request.content))
        return httpx.Response(201, json=[{"id": "new", **bodies[-1]}])

    row = await _client(handler, user_id="u1").add_task({"date": "2024-01-01", "steps": [{"title": "a"}]})

    assert row["id"] == "new"
    assert bodies[0]["steps"] == json.dumps([{"title": "a"}])
    assert bodies[0]["created_by"] == "u1"


@pytest.mark.asyncio
async def test_missing_task_on_patch() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=[])

    with pytest.raises(TaskSourceError, match="not found"):
        await _client(handler).replace_steps("ghost", [])


@pytest.mark.asyncio
async def test_delete_accepts_no_content() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.method == "DELETE"
        return httpx.Response(204)

    await _client(handler).delete_task("t1")


def test_client_requires_url_and_key() -> None:
    with pytest.raises(ValueError):
        SupabaseTaskClient("", "key")
    with pytest.raises(ValueError):
        SupabaseTaskClient("https://demo.supabase.co", " ")


@pytest.mark.asyncio
async def test_from_settings_uses_configured_table() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=[])

    settings = SimpleNamespace(
        supabase_url="https://demo.supabase.co",
        supabase_key="anon",
        supabase_access_token=None,
        supabase_table="calendar_tasks",
        user_id="",
        http_timeout_seconds=5,
    )
    client = SupabaseTaskClient.from_settings(
        settings, http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler))
    )

    assert await client.fetch_tasks(start_date="2024-01-01", end_date="2024-01-31") == []
    assert seen[0].url.path == "/rest/v1/calendar_tasks"
    assert "or" not in seen[0].url.params
    assert seen[0].headers["Authorization"] == "Bearer anon"
