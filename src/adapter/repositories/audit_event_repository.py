import base64
from datetime import datetime
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy import and_, or_
from sqlmodel import col, select
from sqlmodel.ext.asyncio.session import AsyncSession

from src.app.repositories.audit_event_repository import IAuditEventRepository
from src.domain.entities import AuditEvent, AuditEventType


class AuditEventRepository(IAuditEventRepository):
    """AuditEvent repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, audit_event: AuditEvent) -> AuditEvent:
        """Create a new audit event (immutable)"""
        self.session.add(audit_event)
        await self.session.flush()
        await self.session.refresh(audit_event)
        return audit_event

    async def list_paginated(
        self,
        account_id: Optional[UUID] = None,
        session_id: Optional[UUID] = None,
        event_type: Optional[AuditEventType] = None,
        limit: int = 50,
        cursor: Optional[str] = None,
    ) -> Tuple[List[AuditEvent], Optional[str]]:
        """
        Get audit events with cursor-based pagination.

        Cursor format: base64 of "<created_at ISO timestamp>|<event id>", the
        last event of the previous page. Events sharing that timestamp are
        ordered by id so none is skipped across a page boundary.

        Raises:
            ValueError: If the cursor cannot be decoded
        """
        stmt = select(AuditEvent)
        if account_id is not None:
            stmt = stmt.where(AuditEvent.account_id == account_id)
        if session_id is not None:
            stmt = stmt.where(AuditEvent.session_id == session_id)
        if event_type is not None:
            stmt = stmt.where(AuditEvent.event_type == event_type)

        if cursor:
            cursor_timestamp, cursor_id = self._decode_cursor(cursor)
            stmt = stmt.where(
                or_(
                    col(AuditEvent.created_at) < cursor_timestamp,
                    and_(
                        col(AuditEvent.created_at) == cursor_timestamp,
                        col(AuditEvent.id) < cursor_id,
                    ),
                )
            )

        # Newest first, one extra row tells whether another page exists
        stmt = stmt.order_by(
            col(AuditEvent.created_at).desc(), col(AuditEvent.id).desc()
        ).limit(limit + 1)

        result = await self.session.exec(stmt)
        events = list(result.all())

        has_more = len(events) > limit
        if has_more:
            events = events[:limit]

        next_cursor = None
        if has_more and events:
            next_cursor = self._encode_cursor(events[-1])

        return events, next_cursor

    @staticmethod
    def _encode_cursor(event: AuditEvent) -> str:
        raw = f"{event.created_at.isoformat()}|{event.id}"
        return base64.urlsafe_b64encode(raw.encode("utf-8")).decode("utf-8")

    @staticmethod
    def _decode_cursor(cursor: str) -> Tuple[datetime, UUID]:
        try:
            raw = base64.urlsafe_b64decode(cursor.encode("utf-8")).decode("utf-8")
            timestamp, event_id = raw.split("|", 1)
            return datetime.fromisoformat(timestamp), UUID(event_id)
        except (ValueError, TypeError) as e:
            raise ValueError(f"Invalid audit cursor: {cursor!r}") from e
