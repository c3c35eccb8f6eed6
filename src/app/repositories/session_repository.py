from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from src.domain.entities import Session


class ISessionRepository(ABC):
    """Session repository interface - application layer"""

    @abstractmethod
    async def get_by_id(self, session_id: UUID) -> Optional[Session]:
        """Get session by ID, always re-reading the stored row"""
        pass

    @abstractmethod
    async def get_by_ids(self, session_ids: List[UUID]) -> List[Session]:
        """Get the sessions that exist among the given IDs"""
        pass

    @abstractmethod
    async def create(self, session: Session) -> Session:
        """Create a new session"""
        pass

    @abstractmethod
    async def list_by_account(
        self, account_id: UUID, now: datetime, include_terminal: bool = False
    ) -> List[Session]:
        """
        List sessions for an account, most recently active first.

        Revoked and expired sessions are only returned when include_terminal is set.
        """
        pass

    @abstractmethod
    async def get_recent_by_account(self, account_id: UUID, limit: int) -> List[Session]:
        """Get at most `limit` sessions for an account, most recently active first"""
        pass

    @abstractmethod
    async def rotate(
        self,
        session_id: UUID,
        expected_hash: str,
        new_hash: str,
        expires_at: datetime,
        now: datetime,
    ) -> bool:
        """
        Replace the refresh token digest if it still equals expected_hash.

        Single conditional UPDATE; returns False when another rotation or a
        revocation got there first.
        """
        pass

    @abstractmethod
    async def revoke_by_ids(self, session_ids: List[UUID], now: datetime) -> List[UUID]:
        """Revoke not-yet-revoked sessions among the IDs. Returns IDs newly revoked."""
        pass

    @abstractmethod
    async def revoke_all_by_account(
        self, account_id: UUID, now: datetime, keep_session_id: Optional[UUID] = None
    ) -> List[UUID]:
        """
        Revoke every not-yet-revoked session of an account, optionally sparing one.

        Returns IDs newly revoked.
        """
        pass
