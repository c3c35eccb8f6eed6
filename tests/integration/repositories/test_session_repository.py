from datetime import timedelta

import pytest

from src.adapter.repositories.session_repository import SessionRepository
from src.domain.base import utcnow
from src.domain.entities import Session


@pytest.fixture
def stored_session(db_session, create_account):
    async def _create(**overrides):
        account = await create_account()
        values = dict(
            account_id=account.id,
            refresh_token_hash="digest-1",
            expires_at=utcnow() + timedelta(days=1),
        )
        values.update(overrides)
        session = Session(**values)
        db_session.add(session)
        await db_session.commit()
        return session

    return _create


@pytest.mark.asyncio
async def test_rotate_has_exactly_one_winner(db_session, stored_session):
    session = await stored_session()
    repository = SessionRepository(db_session)
    now = utcnow()

    first = await repository.rotate(
        session.id, "digest-1", "digest-2", now + timedelta(days=14), now
    )
    second = await repository.rotate(
        session.id, "digest-1", "digest-3", now + timedelta(days=14), now
    )
    await db_session.commit()

    assert first is True
    assert second is False
    stored = await repository.get_by_id(session.id)
    assert stored.refresh_token_hash == "digest-2"
    assert stored.last_active_at == now


@pytest.mark.asyncio
async def test_rotate_loses_to_a_rotation_committed_elsewhere(
    session_factory, db_session, stored_session
):
    """Two requests read the same digest; the one that writes second must fail"""
    session = await stored_session()
    now = utcnow()

    async with session_factory() as slow:
        slow_repository = SessionRepository(slow)
        seen = await slow_repository.get_by_id(session.id)
        expected_hash = seen.refresh_token_hash
        await slow.rollback()

        async with session_factory() as fast:
            assert await SessionRepository(fast).rotate(
                session.id, expected_hash, "digest-fast", now + timedelta(days=1), now
            )
            await fast.commit()

        assert not await slow_repository.rotate(
            session.id, expected_hash, "digest-slow", now + timedelta(days=1), now
        )
        await slow.commit()

    stored = await SessionRepository(db_session).get_by_id(session.id)
    assert stored.refresh_token_hash == "digest-fast"


@pytest.mark.asyncio
async def test_revoked_session_does_not_rotate(db_session, stored_session):
    session = await stored_session(revoked_at=utcnow())
    now = utcnow()

    rotated = await SessionRepository(db_session).rotate(
        session.id, "digest-1", "digest-2", now + timedelta(days=1), now
    )

    assert rotated is False


@pytest.mark.asyncio
async def test_revoke_reports_only_newly_revoked(db_session, stored_session):
    session = await stored_session()
    repository = SessionRepository(db_session)
    now = utcnow()

    first = await repository.revoke_by_ids([session.id], now)
    second = await repository.revoke_by_ids([session.id], now + timedelta(minutes=1))
    await db_session.commit()

    assert first == [session.id]
    assert second == []
    stored = await repository.get_by_id(session.id)
    assert stored.revoked_at == now


@pytest.mark.asyncio
async def test_list_by_account_filters_terminal_sessions(db_session, create_account):
    account = await create_account()
    now = utcnow()
    active = Session(
        account_id=account.id,
        refresh_token_hash="a",
        expires_at=now + timedelta(days=1),
        last_active_at=now - timedelta(minutes=5),
    )
    expired = Session(
        account_id=account.id,
        refresh_token_hash="b",
        expires_at=now,
        last_active_at=now - timedelta(minutes=1),
    )
    revoked = Session(
        account_id=account.id,
        refresh_token_hash="c",
        expires_at=now + timedelta(days=1),
        revoked_at=now,
        last_active_at=now - timedelta(minutes=10),
    )
    db_session.add_all([active, expired, revoked])
    await db_session.commit()
    repository = SessionRepository(db_session)

    live = await repository.list_by_account(account.id, now)
    everything = await repository.list_by_account(account.id, now, include_terminal=True)
    recent = await repository.get_recent_by_account(account.id, limit=2)

    assert [s.id for s in live] == [active.id]
    assert [s.id for s in everything] == [expired.id, active.id, revoked.id]
    assert [s.id for s in recent] == [expired.id, active.id]


@pytest.mark.asyncio
async def test_revoke_all_keeps_one(db_session, create_account):
    account = await create_account()
    now = utcnow()
    kept, other = (
        Session(account_id=account.id, refresh_token_hash=h, expires_at=now + timedelta(days=1))
        for h in ("a", "b")
    )
    db_session.add_all([kept, other])
    await db_session.commit()

    revoked = await SessionRepository(db_session).revoke_all_by_account(
        account.id, now, keep_session_id=kept.id
    )

    assert revoked == [other.id]
