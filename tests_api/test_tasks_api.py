import datetime as dt

import pytest
from httpx import AsyncClient

from core.storage.task_store import TaskStore


def _future(days: int = 1) -> str:
    return (dt.datetime.now(dt.timezone.utc) + dt.timedelta(days=days)).isoformat()


async def _post(client: AsyncClient, title: str, **extra):
    body = {"title": title, "due_date": _future(), **extra}
    return await client.post("/tasks", json=body)


@pytest.mark.asyncio
async def test_tasks_crud_flow(client: AsyncClient):
    # create
    r = await _post(client, "t1", description="first")
    assert r.status_code == 201, r.text
    created = r.json()
    assert created["status"] == "pending"
    assert created["description"] == "first"
    assert created["id"] > 0
    assert r.headers["Location"] == "/tasks/t1"

    # duplicate
    r = await _post(client, "t1")
    assert r.status_code == 409
    assert r.json()["detail"] == "Task with this title already exists"
    assert r.json()["code"] == "conflict"

    # read back
    r = await client.get("/tasks/t1")
    assert r.status_code == 200
    assert r.json() == created

    # partial update
    r = await client.put("/tasks/t1", json={"status": "completed"})
    assert r.status_code == 200, r.text
    updated = r.json()
    assert updated["status"] == "completed"
    assert updated["description"] == "first"
    assert updated["title"] == "t1"
    assert updated["created_at"] == created["created_at"]
    assert dt.datetime.fromisoformat(updated["updated_at"]) >= dt.datetime.fromisoformat(created["updated_at"])

    # list filtered
    r = await client.get("/tasks", params={"status": "completed"})
    assert r.status_code == 200
    body = r.json()
    assert body["total"] == 1
    assert [t["title"] for t in body["tasks"]] == ["t1"]

    # delete
    r = await client.delete("/tasks/t1")
    assert r.status_code == 200
    assert r.json() == {"message": "Task deleted successfully"}

    r = await client.get("/tasks/t1")
    assert r.status_code == 404
    assert r.json()["detail"] == "Task not found"


@pytest.mark.asyncio
async def test_create_validation_errors(client: AsyncClient):
    r = await client.post("/tasks", json={"title": "has space", "due_date": "2000-01-01T00:00:00Z"})
    assert r.status_code == 400
    body = r.json()
    assert body["code"] == "validation_error"
    rules = {(e["field"], e["rule"]) for e in body["errors"]}
    assert rules == {("title", "nospaces"), ("due_date", "future")}


@pytest.mark.asyncio
async def test_create_missing_fields(client: AsyncClient):
    r = await client.post("/tasks", json={})
    assert r.status_code == 400
    rules = {(e["field"], e["rule"]) for e in r.json()["errors"]}
    assert ("title", "required") in rules
    assert ("due_date", "required") in rules


@pytest.mark.asyncio
async def test_create_unknown_status(client: AsyncClient):
    r = await _post(client, "s1", status="archived")
    assert r.status_code == 400
    assert r.json()["errors"][0]["rule"] == "oneof"


@pytest.mark.asyncio
async def test_malformed_json_is_bad_request(client: AsyncClient):
    r = await client.post(
        "/tasks", content=b"{not json", headers={"Content-Type": "application/json"}
    )
    assert r.status_code == 400
    assert r.json()["detail"] == "Invalid body"


@pytest.mark.asyncio
async def test_wrong_types_are_bad_request(client: AsyncClient):
    r = await client.post("/tasks", json={"title": 123, "due_date": "soon"})
    assert r.status_code == 400
    assert r.json()["code"] == "bad_request"


@pytest.mark.asyncio
async def test_update_rename_conflict_and_not_found(client: AsyncClient):
    assert (await _post(client, "a1")).status_code == 201
    assert (await _post(client, "a2")).status_code == 201

    r = await client.put("/tasks/a2", json={"title": "a1"})
    assert r.status_code == 409
    assert r.json()["detail"] == "new title already exists"

    r = await client.put("/tasks/ghost", json={"status": "completed"})
    assert r.status_code == 404

    r = await client.put("/tasks/a2", json={"title": "a3"})
    assert r.status_code == 200
    assert (await client.get("/tasks/a3")).status_code == 200
    assert (await client.get("/tasks/a2")).status_code == 404


@pytest.mark.asyncio
async def test_update_null_is_ignored_and_empty_applied(client: AsyncClient):
    assert (await _post(client, "n1", description="keep")).status_code == 201
    r = await client.put("/tasks/n1", json={"description": None})
    assert r.json()["description"] == "keep"
    r = await client.put("/tasks/n1", json={"description": ""})
    assert r.json()["description"] == ""


@pytest.mark.asyncio
async def test_update_empty_title_rejected(client: AsyncClient):
    assert (await _post(client, "u1")).status_code == 201
    r = await client.put("/tasks/u1", json={"title": ""})
    assert r.status_code == 400
    assert r.json()["errors"][0]["rule"] == "min"


@pytest.mark.asyncio
async def test_empty_title_in_path(client: AsyncClient):
    r = await client.get("/tasks/")
    assert r.status_code == 400
    assert r.json()["detail"] == "Task title cannot be empty"


@pytest.mark.asyncio
async def test_delete_missing(client: AsyncClient):
    r = await client.delete("/tasks/nothing")
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_list_search_due_date_and_bad_filters(client: AsyncClient):
    tomorrow = dt.datetime.now(dt.timezone.utc) + dt.timedelta(days=1)
    await client.post("/tasks", json={"title": "Report-Q1", "due_date": tomorrow.isoformat()})
    await client.post("/tasks", json={"title": "report-q2", "due_date": _future(20)})
    await client.post("/tasks", json={"title": "other", "due_date": tomorrow.isoformat()})

    r = await client.get("/tasks", params={"search": "REPORT"})
    assert r.json()["total"] == 2

    r = await client.get("/tasks", params={"due_date": tomorrow.strftime("%Y-%m-%d")})
    assert {t["title"] for t in r.json()["tasks"]} == {"Report-Q1", "other"}

    r = await client.get("/tasks", params={"search": "report", "due_date": tomorrow.strftime("%Y-%m-%d")})
    assert [t["title"] for t in r.json()["tasks"]] == ["Report-Q1"]

    r = await client.get("/tasks", params={"due_date": "01/02/2030"})
    assert r.status_code == 400

    r = await client.get("/tasks", params={"status": "done"})
    assert r.status_code == 400


@pytest.mark.asyncio
async def test_writes_land_in_overridden_sessionmaker(client: AsyncClient, test_sessionmaker):
    assert (await _post(client, "wired", description="via api")).status_code == 201
    task = await TaskStore(test_sessionmaker).find_by_title("wired")
    assert task.description == "via api"
