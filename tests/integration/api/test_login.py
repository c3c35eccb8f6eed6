from uuid import UUID

import pytest
from httpx import AsyncClient
from sqlmodel import select

from src.domain.entities import (
    Account,
    AccountRole,
    AccountStatus,
    AuditEvent,
    AuditEventType,
    Session,
)

PASSWORD = "SecurePass123!"


@pytest.mark.asyncio
@pytest.mark.parametrize("role", ["administrator", "moderator", "member"])
async def test_login_issues_session_backed_tokens(
    client: AsyncClient, db_session, create_account, hasher, role
):
    """Every role logs in through its own endpoint and gets an identical response shape"""
    account = await create_account(email=f"{role}@example.com", role=AccountRole(role))

    response = await client.post(
        f"/auth/{role}/login",
        json={"email": f"{role}@example.com", "password": PASSWORD},
        headers={"User-Agent": "integration-tests"},
    )

    assert response.status_code == 200
    assert response.headers["cache-control"] == "no-store"
    body = response.json()
    assert body["id"] == str(account.id)
    assert body["role"] == role
    assert set(body["token"]) == {"access", "refresh", "expired_at", "refreshable_until"}
    assert body["token"]["expired_at"].endswith("Z")
    assert body["token"]["refreshable_until"].endswith("Z")

    session = await db_session.get(Session, UUID(body["session_id"]))
    assert session.account_id == account.id
    assert session.user_agent == "integration-tests"
    assert session.revoked_at is None
    # The plaintext refresh token is never stored
    assert session.refresh_token_hash != body["token"]["refresh"]
    assert hasher.verify(body["token"]["refresh"], session.refresh_token_hash)

    stored = await db_session.get(Account, account.id, populate_existing=True)
    assert stored.last_login_at is not None

    result = await db_session.exec(
        select(AuditEvent).where(AuditEvent.event_type == AuditEventType.login)
    )
    [event] = result.all()
    assert event.session_id == session.id


@pytest.mark.asyncio
async def test_login_wrong_password(client: AsyncClient, create_account):
    await create_account()

    response = await client.post(
        "/auth/member/login",
        json={"email": "member@example.com", "password": "WrongPass123!"},
    )

    assert response.status_code == 401
    assert response.json()["error"]["code"] == "INVALID_CREDENTIALS"


@pytest.mark.asyncio
async def test_login_unknown_email(client: AsyncClient):
    response = await client.post(
        "/auth/member/login",
        json={"email": "nobody@example.com", "password": PASSWORD},
    )

    assert response.status_code == 401
    assert response.json()["error"]["code"] == "INVALID_CREDENTIALS"


@pytest.mark.asyncio
async def test_login_through_another_roles_endpoint(client: AsyncClient, create_account):
    await create_account(role=AccountRole.member)

    response = await client.post(
        "/auth/administrator/login",
        json={"email": "member@example.com", "password": PASSWORD},
    )

    assert response.status_code == 401
    assert response.json()["error"]["code"] == "INVALID_CREDENTIALS"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "status", [AccountStatus.banned, AccountStatus.locked, AccountStatus.deactivated]
)
async def test_login_refused_for_unavailable_account(
    client: AsyncClient, db_session, create_account, status
):
    account = await create_account(status=status)

    response = await client.post(
        "/auth/member/login",
        json={"email": "member@example.com", "password": PASSWORD},
    )

    assert response.status_code == 403
    assert response.json()["error"]["code"] == "ACCOUNT_UNAVAILABLE"

    result = await db_session.exec(select(Session))
    assert result.all() == []

    result = await db_session.exec(
        select(AuditEvent).where(AuditEvent.event_type == AuditEventType.account_unavailable)
    )
    [event] = result.all()
    assert event.account_id == account.id
    assert event.session_id is None
    assert event.detail == {"operation": "login", "account_state": status.value}


@pytest.mark.asyncio
async def test_login_unknown_role(client: AsyncClient):
    response = await client.post(
        "/auth/superuser/login",
        json={"email": "member@example.com", "password": PASSWORD},
    )

    assert response.status_code == 422
