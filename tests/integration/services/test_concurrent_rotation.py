import asyncio

import pytest
from sqlmodel import select

from src.adapter.services.token_codec import JoseTokenCodec
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.app.services.session_rotation_engine import (
    INVALID_REFRESH_TOKEN,
    SessionRotationEngine,
)
from src.domain.entities import AuditEvent, AuditEventType, Session


@pytest.fixture
def token_codec():
    return JoseTokenCodec("integration-secret", issuer="integration-tests")


@pytest.fixture
def engine_on(token_codec, hasher):
    """Build an engine bound to its own database session"""

    def _engine(db_session):
        return SessionRotationEngine(SqlAlchemyUnitOfWork(db_session), token_codec, hasher)

    return _engine


@pytest.mark.asyncio
@pytest.mark.parametrize("attempt", range(3))
async def test_same_refresh_token_rotates_once_under_concurrency(
    session_factory, db_session, create_account, engine_on, hasher, attempt
):
    account = await create_account()
    async with session_factory() as own:
        login = await engine_on(own).login(account.id)
    assert login.is_ok()
    r1 = login.value.token.refresh

    async with session_factory() as first, session_factory() as second:
        results = await asyncio.gather(
            engine_on(first).refresh(r1),
            engine_on(second).refresh(r1),
        )

    winners = [result for result in results if result.is_ok()]
    losers = [result for result in results if result.is_err()]
    assert len(winners) == 1
    assert [loser.error for loser in losers] == [INVALID_REFRESH_TOKEN]

    # The stored digest belongs to the winner's token
    result = await db_session.exec(
        select(Session).execution_options(populate_existing=True)
    )
    [stored] = result.all()
    assert hasher.verify(winners[0].value.token.refresh, stored.refresh_token_hash)
    assert not hasher.verify(r1, stored.refresh_token_hash)

    result = await db_session.exec(select(AuditEvent))
    event_types = sorted(event.event_type.value for event in result.all())
    assert event_types == ["hash_mismatch", "login", "rotation_success"]

    # The winner's token keeps the chain going
    async with session_factory() as later:
        assert (await engine_on(later).refresh(winners[0].value.token.refresh)).is_ok()
