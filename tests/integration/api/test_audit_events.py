import pytest
from httpx import AsyncClient

from src.domain.entities import AccountRole


def bearer(body):
    return {"Authorization": f"Bearer {body['token']['access']}"}


@pytest.mark.asyncio
async def test_administrator_reads_session_audit_trail(client: AsyncClient, create_account, login):
    member = await create_account()
    await create_account(email="admin@example.com", role=AccountRole.administrator)
    member_body = await login()
    admin_body = await login(email="admin@example.com", role="administrator")

    r1 = member_body["token"]["refresh"]
    await client.post("/auth/member/refresh", json={"refresh_token": r1})
    await client.post("/auth/member/refresh", json={"refresh_token": r1})

    response = await client.get(
        "/audit/events", params={"account_id": str(member.id)}, headers=bearer(admin_body)
    )

    assert response.status_code == 200
    events = response.json()["events"]
    # Newest first
    assert [e["event_type"] for e in events] == ["hash_mismatch", "rotation_success", "login"]
    assert all(e["session_id"] == member_body["session_id"] for e in events)
    assert all(e["timestamp"].endswith("Z") for e in events)
    assert response.json()["next_cursor"] is None


@pytest.mark.asyncio
async def test_filter_and_paginate(client: AsyncClient, create_account, login):
    await create_account(email="admin@example.com", role=AccountRole.administrator)
    bodies = [await login(email="admin@example.com", role="administrator") for _ in range(3)]

    first = await client.get(
        "/audit/events",
        params={"event_type": "login", "limit": 2},
        headers=bearer(bodies[-1]),
    )
    assert first.status_code == 200
    assert len(first.json()["events"]) == 2
    cursor = first.json()["next_cursor"]
    assert cursor is not None

    second = await client.get(
        "/audit/events",
        params={"event_type": "login", "limit": 2, "cursor": cursor},
        headers=bearer(bodies[-1]),
    )
    assert len(second.json()["events"]) == 1
    assert second.json()["next_cursor"] is None


@pytest.mark.asyncio
@pytest.mark.parametrize("role", ["moderator", "member"])
async def test_non_administrator_is_refused(client: AsyncClient, create_account, login, role):
    await create_account(email=f"{role}@example.com", role=AccountRole(role))
    body = await login(email=f"{role}@example.com", role=role)

    response = await client.get("/audit/events", headers=bearer(body))

    assert response.status_code == 403
    assert response.json()["error"]["code"] == "INSUFFICIENT_ROLE"


@pytest.mark.asyncio
async def test_tampered_cursor_is_refused(client: AsyncClient, create_account, login):
    await create_account(email="admin@example.com", role=AccountRole.administrator)
    body = await login(email="admin@example.com", role="administrator")

    response = await client.get(
        "/audit/events", params={"cursor": "not-a-cursor"}, headers=bearer(body)
    )

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "INVALID_CURSOR"
