"""HTTP API tests: routing, auth, problem+json errors and end-to-end flows."""

import uuid
from datetime import UTC, datetime, timedelta
from urllib.parse import parse_qs, urlparse

import pytest
from httpx import AsyncClient
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.task import Task
from tests.helpers import TEST_PASSWORD, auth_headers, create_user


def _token_from(text: str) -> str:
    url = next(part for part in text.split() if part.startswith("http"))
    return parse_qs(urlparse(url).query)["token"][0]


@pytest.fixture
async def users(db: AsyncSession):
    created = [await create_user(db, name) for name in ("olga", "alice", "bob")]
    await db.commit()
    return created


@pytest.mark.asyncio
async def test_register_verify_login(client: AsyncClient, mailer):
    resp = await client.post(
        "/api/v1/auth/register",
        json={
            "username": "dana",
            "email": "dana@example.com",
            "password": "s3cret-pass",
            "password_confirm": "s3cret-pass",
        },
    )
    assert resp.status_code == 201
    assert resp.json()["enabled"] is False

    login = {"email": "dana@example.com", "password": "s3cret-pass"}
    assert (await client.post("/api/v1/auth/login", json=login)).status_code == 403

    token = _token_from(mailer.to("dana@example.com")[0].text)
    assert (await client.get("/api/v1/auth/verify", params={"token": token})).status_code == 200

    resp = await client.post("/api/v1/auth/login", json=login)
    assert resp.status_code == 200
    access = resp.json()["access_token"]

    me = await client.get("/api/v1/users/me", headers={"Authorization": f"Bearer {access}"})
    assert me.status_code == 200
    assert me.json()["username"] == "dana"


@pytest.mark.asyncio
async def test_register_password_mismatch_is_422(client: AsyncClient):
    resp = await client.post(
        "/api/v1/auth/register",
        json={
            "username": "dana",
            "email": "dana@example.com",
            "password": "s3cret-pass",
            "password_confirm": "other-pass",
        },
    )
    assert resp.status_code == 422
    assert resp.headers["content-type"].startswith("application/problem+json")


@pytest.mark.asyncio
async def test_missing_or_bad_token_is_401(client: AsyncClient):
    assert (await client.get("/api/v1/teams/")).status_code == 401
    resp = await client.get("/api/v1/teams/", headers={"Authorization": "Bearer nope"})
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_unverified_user_is_403(client: AsyncClient, db: AsyncSession):
    pending = await create_user(db, "pending", enabled=False)
    await db.commit()

    resp = await client.get("/api/v1/users/me", headers=auth_headers(pending))
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_forgot_and_reset_password(client: AsyncClient, users, mailer):
    _, alice, _ = users
    resp = await client.post("/api/v1/auth/forgot-password", json={"email": alice.email})
    assert resp.status_code == 202

    token = _token_from(mailer.to(alice.email)[0].text)
    resp = await client.post(
        "/api/v1/auth/reset-password",
        json={"token": token, "password": "brand-new-pass", "password_confirm": "brand-new-pass"},
    )
    assert resp.status_code == 200

    old = {"email": alice.email, "password": TEST_PASSWORD}
    new = {"email": alice.email, "password": "brand-new-pass"}
    assert (await client.post("/api/v1/auth/login", json=old)).status_code == 401
    assert (await client.post("/api/v1/auth/login", json=new)).status_code == 200


@pytest.mark.asyncio
async def test_team_invitation_round_trip(client: AsyncClient, users, mailer):
    olga, alice, _ = users
    resp = await client.post(
        "/api/v1/teams/", json={"name": "Platform"}, headers=auth_headers(olga)
    )
    assert resp.status_code == 201
    team_id = resp.json()["id"]

    resp = await client.post(
        f"/api/v1/teams/{team_id}/invite",
        json={"email": alice.email, "role": "MEMBER"},
        headers=auth_headers(olga),
    )
    assert resp.status_code == 201
    assert resp.json()["accepted_invite"] is False

    token = _token_from(mailer.to(alice.email)[0].text)
    resp = await client.get("/api/v1/teams/accept-invite", params={"token": token})
    assert resp.status_code == 200

    resp = await client.get(f"/api/v1/teams/{team_id}/members", headers=auth_headers(alice))
    assert resp.status_code == 200
    assert [(m["username"], m["role"]) for m in resp.json()] == [
        ("olga", "OWNER"),
        ("alice", "MEMBER"),
    ]

    resp = await client.get("/api/v1/teams/accept-invite", params={"token": token})
    assert resp.status_code == 404
    assert resp.json()["title"] == "Resource not found"


@pytest.mark.asyncio
async def test_member_invite_is_forbidden(client: AsyncClient, users, mailer):
    olga, alice, bob = users
    team_id = (
        await client.post("/api/v1/teams/", json={"name": "Platform"}, headers=auth_headers(olga))
    ).json()["id"]
    link = (
        await client.post(f"/api/v1/teams/{team_id}/invite-link", headers=auth_headers(olga))
    ).json()["invite_link"]
    token = parse_qs(urlparse(link).query)["token"][0]
    resp = await client.post(
        "/api/v1/teams/join", params={"token": token}, headers=auth_headers(alice)
    )
    assert resp.status_code == 200

    resp = await client.post(
        f"/api/v1/teams/{team_id}/invite",
        json={"email": bob.email, "role": "MEMBER"},
        headers=auth_headers(alice),
    )
    assert resp.status_code == 403
    assert resp.headers["content-type"].startswith("application/problem+json")
    assert resp.json()["status"] == 403
    assert mailer.to(bob.email) == []

    resp = await client.post(
        "/api/v1/teams/join", params={"token": token}, headers=auth_headers(alice)
    )
    assert resp.status_code == 409


@pytest.mark.asyncio
async def test_invite_as_owner_is_400(client: AsyncClient, users):
    olga, alice, _ = users
    team_id = (
        await client.post("/api/v1/teams/", json={"name": "Platform"}, headers=auth_headers(olga))
    ).json()["id"]

    resp = await client.post(
        f"/api/v1/teams/{team_id}/invite",
        json={"email": alice.email, "role": "OWNER"},
        headers=auth_headers(olga),
    )
    assert resp.status_code == 400
    assert resp.json()["title"] == "Invalid Parameter Value"


@pytest.mark.asyncio
async def test_task_lifecycle(client: AsyncClient, users):
    olga, alice, _ = users
    h = auth_headers(olga)
    project_id = (
        await client.post("/api/v1/projects/", json={"title": "Roadmap"}, headers=h)
    ).json()["id"]
    link = (await client.post(f"/api/v1/projects/{project_id}/invite-link", headers=h)).json()
    token = parse_qs(urlparse(link["invite_link"]).query)["token"][0]
    await client.post("/api/v1/projects/join", params={"token": token}, headers=auth_headers(alice))

    resp = await client.post(
        f"/api/v1/projects/{project_id}/tasks/", json={"title": "Ship v1"}, headers=h
    )
    assert resp.status_code == 201
    task = resp.json()
    assert task["status"] == "TO_DO"
    assert [(a["username"], a["role"]) for a in task["assignments"]] == [("olga", "OWNER")]
    tasks_url = f"/api/v1/projects/{project_id}/tasks/{task['id']}"

    resp = await client.post(
        f"{tasks_url}/assign", json=[{"user_id": str(alice.id), "task_role": "OWNER"}], headers=h
    )
    assert resp.status_code == 400

    resp = await client.post(
        f"{tasks_url}/assign", json=[{"user_id": str(alice.id)}], headers=h
    )
    assert resp.status_code == 200

    resp = await client.patch(
        f"{tasks_url}/status", json={"new_status": "OVERDUE"}, headers=auth_headers(alice)
    )
    assert resp.status_code == 409

    resp = await client.patch(
        f"{tasks_url}/status",
        json={"new_status": "DONE", "completion_comment": "done"},
        headers=auth_headers(alice),
    )
    assert resp.status_code == 200
    assert resp.json()["status"] == "DONE"
    assert resp.json()["completion_comment"] == "done"
    assert resp.json()["completed_at"] is not None

    resp = await client.patch(f"{tasks_url}/status", json={"new_status": "IN_PROGRESS"}, headers=h)
    assert resp.status_code == 409
    assert resp.json()["title"] == "Resource cannot be modified"

    mine = await client.get("/api/v1/tasks/me", headers=auth_headers(alice))
    assert [t["id"] for t in mine.json()] == [task["id"]]


@pytest.mark.asyncio
async def test_overdue_reported_on_read(client: AsyncClient, db: AsyncSession, users):
    olga = users[0]
    h = auth_headers(olga)
    project_id = (
        await client.post("/api/v1/projects/", json={"title": "Late"}, headers=h)
    ).json()["id"]
    tasks_url = f"/api/v1/projects/{project_id}/tasks/"
    behind = (await client.post(tasks_url, json={"title": "Behind"}, headers=h)).json()
    await client.post(tasks_url, json={"title": "Open"}, headers=h)
    # Due dates cannot be set in the past through the API, so age one in place.
    await db.execute(
        update(Task)
        .where(Task.id == uuid.UUID(behind["id"]))
        .values(due_date=datetime.now(UTC) - timedelta(days=1))
    )
    await db.commit()

    resp = await client.get(f"{tasks_url}{behind['id']}", headers=h)
    assert resp.json()["status"] == "OVERDUE"

    resp = await client.get(tasks_url, headers=h)
    assert [t["status"] for t in resp.json()] == ["OVERDUE", "TO_DO"]

    resp = await client.get(tasks_url, params={"status": "OVERDUE"}, headers=h)
    assert [t["title"] for t in resp.json()] == ["Behind"]
    resp = await client.get(tasks_url, params={"status": "TO_DO"}, headers=h)
    assert [t["title"] for t in resp.json()] == ["Open"]


@pytest.mark.asyncio
async def test_due_date_rules(client: AsyncClient, users):
    h = auth_headers(users[0])
    project_id = (
        await client.post("/api/v1/projects/", json={"title": "Dates"}, headers=h)
    ).json()["id"]
    tasks_url = f"/api/v1/projects/{project_id}/tasks/"
    yesterday = (datetime.now(UTC) - timedelta(days=1)).isoformat()
    next_week = (datetime.now(UTC) + timedelta(days=7)).isoformat()

    resp = await client.post(tasks_url, json={"title": "Late", "due_date": yesterday}, headers=h)
    assert resp.status_code == 422
    assert resp.headers["content-type"].startswith("application/problem+json")

    resp = await client.post(tasks_url, json={"title": "Later", "due_date": next_week}, headers=h)
    assert resp.status_code == 201
    task_url = f"{tasks_url}{resp.json()['id']}"

    resp = await client.patch(task_url, json={"due_date": yesterday}, headers=h)
    assert resp.status_code == 422

    resp = await client.patch(task_url, json={"title": "Renamed"}, headers=h)
    assert resp.json()["due_date"] is not None

    resp = await client.patch(task_url, json={"due_date": None}, headers=h)
    assert resp.status_code == 200
    assert resp.json()["due_date"] is None
    assert resp.json()["title"] == "Renamed"


@pytest.mark.asyncio
async def test_assigning_non_member_is_400(client: AsyncClient, users):
    olga, _, bob = users
    h = auth_headers(olga)
    project_id = (
        await client.post("/api/v1/projects/", json={"title": "Closed"}, headers=h)
    ).json()["id"]
    task_id = (
        await client.post(f"/api/v1/projects/{project_id}/tasks/", json={"title": "t"}, headers=h)
    ).json()["id"]

    resp = await client.post(
        f"/api/v1/projects/{project_id}/tasks/{task_id}/assign",
        json=[{"user_id": str(bob.id)}],
        headers=h,
    )
    assert resp.status_code == 400
    assert resp.json()["title"] == "Invalid Parameter Value"


@pytest.mark.asyncio
async def test_list_query_params(client: AsyncClient, users):
    h = auth_headers(users[0])
    for name in ("Platform", "Payments", "Search"):
        await client.post("/api/v1/teams/", json={"name": name}, headers=h)

    resp = await client.get("/api/v1/teams/", params={"name": "pa"}, headers=h)
    assert sorted(t["name"] for t in resp.json()) == ["Payments"]

    resp = await client.get("/api/v1/teams/", params={"limit": 2}, headers=h)
    first_page = [t["name"] for t in resp.json()]
    assert len(first_page) == 2
    resp = await client.get("/api/v1/teams/", params={"limit": 2, "offset": 2}, headers=h)
    second_page = [t["name"] for t in resp.json()]
    assert sorted(first_page + second_page) == ["Payments", "Platform", "Search"]

    assert (await client.get("/api/v1/teams/", params={"limit": 0}, headers=h)).status_code == 422
    resp = await client.get("/api/v1/teams/", params={"limit": 201}, headers=h)
    assert resp.status_code == 422
    resp = await client.get("/api/v1/tasks/me", params={"status": "LATE"}, headers=h)
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_leave_task_and_delete_account(client: AsyncClient, users):
    olga, _, _ = users
    h = auth_headers(olga)
    project_id = (
        await client.post("/api/v1/projects/", json={"title": "Short"}, headers=h)
    ).json()["id"]
    task_id = (
        await client.post(f"/api/v1/projects/{project_id}/tasks/", json={"title": "t"}, headers=h)
    ).json()["id"]

    assert (await client.delete(f"/api/v1/tasks/{task_id}/leave", headers=h)).status_code == 204
    resp = await client.get(f"/api/v1/projects/{project_id}/tasks/{task_id}", headers=h)
    assert resp.status_code == 404

    assert (await client.delete("/api/v1/users/me", headers=h)).status_code == 204
    assert (await client.get("/api/v1/users/me", headers=h)).status_code == 401
