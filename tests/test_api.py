# tests/test_api.py

from __future__ import annotations

import httpx
import pytest
from httpx import ASGITransport

from taskdesk.api.app import create_app
from taskdesk.cli.bootstrap import build_app
from taskdesk.core.state import AppState

from .fakes import BrokenTaskRepo


def _client(app) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=ASGITransport(app=app), base_url="http://test")


@pytest.mark.asyncio
async def test_root_and_health(state: AppState) -> None:
    async with _client(build_app(state)) as client:
        root = await client.get("/")
        health = await client.get("/health")

    assert root.status_code == 200
    assert root.json() == {"status": "running", "database": "SQLite", "message": "Task Manager API"}
    assert health.json() == {"status": "ok"}


@pytest.mark.asyncio
async def test_create_get_list_roundtrip(state: AppState) -> None:
    async with _client(build_app(state)) as client:
        resp = await client.post(
            "/tasks",
            json={"title": "  Pay rent ", "priority": "High", "category": "Home", "due_date": "2024-02-05"},
        )
        assert resp.status_code == 201
        created = resp.json()
        assert created["title"] == "Pay rent"
        assert created["completed"] is False
        assert created["completed_at"] is None
        assert created["created_at"]

        got = await client.get(f"/tasks/{created['id']}")
        assert got.status_code == 200
        assert got.json() == created

        listed = await client.get("/tasks", params={"q": "PAY", "sort": "bogus", "page": "x"})
        assert listed.status_code == 200
        assert [t["id"] for t in listed.json()] == [created["id"]]


@pytest.mark.asyncio
async def test_create_validation_is_400(state: AppState) -> None:
    async with _client(build_app(state)) as client:
        missing = await client.post("/tasks", json={"description": "no title"})
        blank = await client.post("/tasks", json={"title": "   "})
        listed = await client.get("/tasks")

    assert missing.status_code == 400
    assert blank.status_code == 400
    assert blank.json() == {"error": "Task title is required"}
    assert listed.json() == []


@pytest.mark.asyncio
async def test_put_and_patch(state: AppState) -> None:
    async with _client(build_app(state)) as client:
        task = (await client.post("/tasks", json={"title": "Draft", "category": "Work", "position": 2})).json()

        put = await client.put(f"/tasks/{task['id']}", json={"title": "Final", "completed": True})
        assert put.status_code == 200
        body = put.json()
        assert body["completed"] is True and body["completed_at"] is not None
        assert body["category"] == "" and body["position"] == 0

        patch = await client.patch(f"/tasks/{task['id']}", json={"position": 7})
        assert patch.status_code == 200
        assert patch.json()["position"] == 7
        assert patch.json()["title"] == "Final"
        assert patch.json()["completed"] is True

        toggle = await client.patch(f"/tasks/{task['id']}", json={"completed": False})
        assert toggle.json()["completed"] is False
        assert toggle.json()["completed_at"] is None

        empty = await client.patch(f"/tasks/{task['id']}", json={})
        assert empty.status_code == 400
        assert empty.json() == {"error": "No fields to update"}


@pytest.mark.asyncio
async def test_not_found_is_404_and_distinct_from_validation(state: AppState) -> None:
    async with _client(build_app(state)) as client:
        get = await client.get("/tasks/999")
        put = await client.put("/tasks/999", json={"title": "x"})
        patch = await client.patch("/tasks/999", json={"title": "x"})
        delete = await client.delete("/tasks/999")
        bad_put = await client.put("/tasks/999", json={"title": ""})

    for resp in (get, put, patch, delete):
        assert resp.status_code == 404
        assert resp.json() == {"error": "Task not found"}
    # Input is validated before the lookup.
    assert bad_put.status_code == 400


@pytest.mark.asyncio
async def test_delete(state: AppState) -> None:
    async with _client(build_app(state)) as client:
        task = (await client.post("/tasks", json={"title": "Gone soon"})).json()

        first = await client.delete(f"/tasks/{task['id']}")
        second = await client.delete(f"/tasks/{task['id']}")
        after = await client.get(f"/tasks/{task['id']}")

    assert first.status_code == 200
    assert first.json() == {"success": True, "message": "Task deleted"}
    assert second.status_code == 404
    assert after.status_code == 404


@pytest.mark.asyncio
async def test_list_filters_and_paging(state: AppState) -> None:
    async with _client(build_app(state)) as client:
        for i in range(25):
            await client.post("/tasks", json={"title": f"t{i}", "position": i, "category": "Work"})

        page3 = await client.get("/tasks", params={"page": 3, "limit": 10})
        work_done = await client.get("/tasks", params={"completed": "1", "category": "Work"})

    assert [t["position"] for t in page3.json()] == [20, 21, 22, 23, 24]
    assert work_done.json() == []


@pytest.mark.asyncio
async def test_storage_failure_is_opaque_500() -> None:
    app = create_app(BrokenTaskRepo())
    async with _client(app) as client:
        listed = await client.get("/tasks")
        created = await client.post("/tasks", json={"title": "x"})

    assert listed.status_code == 500
    assert listed.json() == {"error": "Database error"}
    assert created.status_code == 500


@pytest.mark.asyncio
async def test_cors_preflight(state: AppState) -> None:
    async with _client(build_app(state)) as client:
        resp = await client.options(
            "/tasks",
            headers={
                "Origin": "http://localhost:3000",
                "Access-Control-Request-Method": "PATCH",
                "Access-Control-Request-Headers": "Content-Type",
            },
        )

    assert resp.status_code == 200
    assert resp.headers["access-control-allow-origin"] == "http://localhost:3000"


@pytest.mark.asyncio
async def test_out_of_range_integers_map_to_client_errors(state: AppState) -> None:
    huge = "99999999999999999999"
    async with _client(build_app(state)) as client:
        await client.post("/tasks", json={"title": "present"})

        far_page = await client.get("/tasks", params={"page": huge})
        bad_position = await client.post("/tasks", json={"title": "x", "position": 10**20})
        far_id = await client.get(f"/tasks/{huge}")

    assert far_page.status_code == 200
    assert far_page.json() == []
    assert bad_position.status_code == 400
    assert far_id.status_code == 404
