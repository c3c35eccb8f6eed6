from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy import and_, update
from sqlmodel import col, select
from sqlmodel.ext.asyncio.session import AsyncSession

from src.app.repositories.session_repository import ISessionRepository
from src.domain.entities import Session


class SessionRepository(ISessionRepository):
    """Session repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, session_id: UUID) -> Optional[Session]:
        """Get session by ID"""
        # populate_existing: a concurrent rotation must be visible to the digest check
        stmt = (
            select(Session)
            .where(Session.id == session_id)
            .execution_options(populate_existing=True)
        )
        result = await self.session.exec(stmt)
        return result.one_or_none()

    async def get_by_ids(self, session_ids: List[UUID]) -> List[Session]:
        """Get the sessions that exist among the given IDs"""
        if not session_ids:
            return []
        stmt = (
            select(Session)
            .where(col(Session.id).in_(session_ids))
            .execution_options(populate_existing=True)
        )
        result = await self.session.exec(stmt)
        return list(result.all())

    async def create(self, session_obj: Session) -> Session:
        """Create a new session"""
        self.session.add(session_obj)
        await self.session.flush()
        await self.session.refresh(session_obj)
        return session_obj

    async def list_by_account(
        self, account_id: UUID, now: datetime, include_terminal: bool = False
    ) -> List[Session]:
        """List sessions for an account, most recently active first"""
        stmt = select(Session).where(Session.account_id == account_id)
        if not include_terminal:
            stmt = stmt.where(col(Session.revoked_at).is_(None), Session.expires_at > now)
        stmt = stmt.order_by(col(Session.last_active_at).desc()).execution_options(
            populate_existing=True
        )
        result = await self.session.exec(stmt)
        return list(result.all())

    async def get_recent_by_account(self, account_id: UUID, limit: int) -> List[Session]:
        """
        Candidates for the digest scan used by tokens without a session reference.

        Terminal sessions are included so a matching revoked/expired session is
        reported as such instead of as unknown.
        """
        stmt = (
            select(Session)
            .where(Session.account_id == account_id)
            .order_by(col(Session.last_active_at).desc())
            .limit(limit)
            .execution_options(populate_existing=True)
        )
        result = await self.session.exec(stmt)
        return list(result.all())

    async def rotate(
        self,
        session_id: UUID,
        expected_hash: str,
        new_hash: str,
        expires_at: datetime,
        now: datetime,
    ) -> bool:
        """Compare-and-swap the refresh token digest"""
        stmt = (
            update(Session)
            .where(
                Session.id == session_id,
                Session.refresh_token_hash == expected_hash,
                col(Session.revoked_at).is_(None),
            )
            .values(
                refresh_token_hash=new_hash,
                expires_at=expires_at,
                last_active_at=now,
                updated_at=now,
            )
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount == 1

    async def revoke_by_ids(self, session_ids: List[UUID], now: datetime) -> List[UUID]:
        """Revoke not-yet-revoked sessions among the IDs"""
        if not session_ids:
            return []
        return await self._revoke(col(Session.id).in_(session_ids), now)

    async def revoke_all_by_account(
        self, account_id: UUID, now: datetime, keep_session_id: Optional[UUID] = None
    ) -> List[UUID]:
        """Revoke every not-yet-revoked session of an account"""
        criteria = Session.account_id == account_id
        if keep_session_id is not None:
            criteria = and_(criteria, Session.id != keep_session_id)
        return await self._revoke(criteria, now)

    async def _revoke(self, criteria, now: datetime) -> List[UUID]:
        # RETURNING keeps "newly revoked" exact when two revocations overlap
        stmt = (
            update(Session)
            .where(criteria, col(Session.revoked_at).is_(None))
            .values(revoked_at=now, updated_at=now)
            .returning(Session.id)
        )
        result = await self.session.execute(stmt)
        revoked_ids = list(result.scalars().all())
        await self.session.flush()
        return revoked_ids
