"""
Audit Sink

Best-effort writer for security events. A failed write is logged locally and
never reaches the caller, so an audit outage cannot block authentication.
"""

import logging
from typing import Optional
from uuid import UUID

from src.app.services.unit_of_work import UnitOfWork
from src.domain.entities import AuditEvent, AuditEventType

logger = logging.getLogger(__name__)

SENSITIVE_KEYS = frozenset(
    {"password", "refresh_token", "access_token", "token", "refresh_token_hash"}
)


class AuditSink:
    """Writes one AuditEvent per call and commits it on its own"""

    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    async def record(
        self,
        event_type: AuditEventType,
        account_id: Optional[UUID] = None,
        session_id: Optional[UUID] = None,
        detail: Optional[dict] = None,
    ) -> Optional[AuditEvent]:
        """
        Append an audit event.

        Must be called after the caller's own transaction is committed (or when
        there is nothing to commit): it commits the unit of work itself.

        Returns:
            The stored event, or None if the write failed
        """
        audit = AuditEvent(
            account_id=account_id,
            session_id=session_id,
            event_type=event_type,
            detail=self._scrub(detail),
        )
        try:
            await self.uow.audit_events.create(audit)
            await self.uow.commit()
        except Exception:
            logger.exception(
                "Failed to write audit event %s (account=%s, session=%s)",
                event_type.value,
                account_id,
                session_id,
            )
            await self._discard()
            return None
        return audit

    async def _discard(self):
        try:
            await self.uow.rollback()
        except Exception:
            logger.exception("Rollback after failed audit write also failed")

    @staticmethod
    def _scrub(detail: Optional[dict]) -> Optional[dict]:
        if detail is None:
            return None
        return {k: v for k, v in detail.items() if k not in SENSITIVE_KEYS}
