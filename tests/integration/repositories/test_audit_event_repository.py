from datetime import timedelta
from uuid import uuid4

import pytest

from src.adapter.repositories.audit_event_repository import AuditEventRepository
from src.domain.base import utcnow
from src.domain.entities import AuditEvent, AuditEventType


@pytest.fixture
def stored_events(db_session):
    async def _create(*created_ats):
        events = [
            AuditEvent(
                account_id=uuid4(),
                event_type=AuditEventType.login,
                created_at=created_at,
            )
            for created_at in created_ats
        ]
        db_session.add_all(events)
        await db_session.commit()
        return events

    return _create


@pytest.mark.asyncio
async def test_pages_do_not_skip_events_sharing_a_timestamp(db_session, stored_events):
    now = utcnow()
    events = await stored_events(
        now, now, now, now - timedelta(seconds=1), now - timedelta(seconds=1)
    )
    repository = AuditEventRepository(db_session)

    seen, cursor = [], None
    for _ in range(len(events)):
        page, cursor = await repository.list_paginated(limit=2, cursor=cursor)
        seen.extend(page)
        if cursor is None:
            break

    assert cursor is None
    assert len(seen) == len(events)
    assert {event.id for event in seen} == {event.id for event in events}
    # Newest first, id descending within a timestamp
    keys = [(event.created_at, event.id.hex) for event in seen]
    assert keys == sorted(keys, reverse=True)


@pytest.mark.asyncio
@pytest.mark.parametrize("cursor", ["not base64!", "bm8tc2VwYXJhdG9y", "MjAyNC0wMS0wMXxub3QtYS11dWlk"])
async def test_undecodable_cursor_is_refused(db_session, stored_events, cursor):
    await stored_events(utcnow())

    with pytest.raises(ValueError):
        await AuditEventRepository(db_session).list_paginated(cursor=cursor)
