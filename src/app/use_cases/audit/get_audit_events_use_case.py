"""
Get Audit Events Use Case

Retrieves session audit events with filters and pagination.
"""

from typing import Any, Dict, Optional
from uuid import UUID

from libs.result import Error, Result, Return
from src.app.services.unit_of_work import UnitOfWork
from src.domain.base import to_iso8601
from src.domain.entities import AccountRole, AuditEventType

INVALID_CURSOR = Error("INVALID_CURSOR", "Pagination cursor is not valid")


class GetAuditEventsUseCase:
    """
    Use case for retrieving audit events.

    Business Rules:
    - Caller must have role=administrator
    - Optional filters: account, session, event type
    - Results ordered by newest first
    - Supports cursor-based pagination
    - A cursor that was not issued by a previous page is rejected
    """

    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    async def execute(
        self,
        role: str,
        account_id: Optional[UUID] = None,
        session_id: Optional[UUID] = None,
        event_type: Optional[AuditEventType] = None,
        limit: int = 50,
        cursor: Optional[str] = None,
    ) -> Result[Dict[str, Any]]:
        """
        Execute get audit events use case.

        Args:
            role: Role from JWT (must be administrator)
            account_id: Only events for this account
            session_id: Only events for this session
            event_type: Only events of this type
            limit: Maximum number of events to return
            cursor: Pagination cursor (optional)

        Returns:
            Result with events list and next_cursor, or Error
        """
        if role != AccountRole.administrator.value:
            return Return.err(
                Error("INSUFFICIENT_ROLE", "You do not have permission to view audit events")
            )

        async with self.uow:
            try:
                events, next_cursor = await self.uow.audit_events.list_paginated(
                    account_id=account_id,
                    session_id=session_id,
                    event_type=event_type,
                    limit=limit,
                    cursor=cursor,
                )
            except ValueError:
                return Return.err(INVALID_CURSOR)

            events_list = [
                {
                    "id": str(event.id),
                    "event_type": event.event_type.value,
                    "account_id": str(event.account_id) if event.account_id else None,
                    "session_id": str(event.session_id) if event.session_id else None,
                    "timestamp": to_iso8601(event.created_at),
                    "detail": event.detail or {},
                }
                for event in events
            ]

            return Return.ok({"events": events_list, "next_cursor": next_cursor})
