"""
Revoke Sessions Use Case

Handles session revocation for security and session management.
"""

from typing import List, Optional
from uuid import UUID

from libs.result import Error, Result, Return
from src.app.services.dtos import SessionView
from src.app.services.session_rotation_engine import SessionRotationEngine
from src.domain.entities import AccountRole


class RevokeSessionsUseCase:
    """
    Use case for revoking sessions.

    Business Rules:
    - Accounts can revoke their own sessions
    - Administrators can revoke any account's sessions
    - Revocation is idempotent: unknown or already revoked sessions are skipped
    - A non-administrator's foreign session IDs are treated as unknown
    - Revocation is audit-logged per session
    - Three revocation modes: specific, all (optionally keeping one), current (logout)
    """

    def __init__(self, engine: SessionRotationEngine):
        self.engine = engine

    async def revoke_specific_sessions(
        self,
        session_ids: List[UUID],
        requesting_account_id: UUID,
        requesting_role: str,
    ) -> Result[List[SessionView]]:
        """
        Revoke sessions by ID.

        Args:
            session_ids: Sessions to revoke
            requesting_account_id: Account requesting the revocation
            requesting_role: Role of requesting account

        Returns:
            Result with the targeted sessions after revocation
        """
        is_admin = requesting_role == AccountRole.administrator.value
        return await self.engine.revoke_sessions(
            session_ids,
            actor_id=requesting_account_id,
            owner_id=None if is_admin else requesting_account_id,
        )

    async def revoke_all_sessions(
        self,
        target_account_id: UUID,
        requesting_account_id: UUID,
        requesting_role: str,
        keep_session_id: Optional[UUID] = None,
    ) -> Result[List[SessionView]]:
        """
        Revoke all sessions for an account.

        Args:
            target_account_id: Account whose sessions will be revoked
            requesting_account_id: Account requesting the revocation
            requesting_role: Role of requesting account
            keep_session_id: Session left active (logout other devices)

        Returns:
            Result with the account's sessions after revocation, or Error
        """
        is_self = target_account_id == requesting_account_id
        is_admin = requesting_role == AccountRole.administrator.value

        if not is_self and not is_admin:
            return Return.err(
                Error("FORBIDDEN", "Only administrators can revoke other accounts' sessions")
            )

        return await self.engine.revoke_all_for_account(
            target_account_id,
            actor_id=requesting_account_id,
            keep_session_id=keep_session_id,
        )

    async def revoke_current_session(
        self, session_id: Optional[UUID], requesting_account_id: UUID
    ) -> Result[List[SessionView]]:
        """
        Revoke the session the caller's access token belongs to (logout).

        Returns:
            Result with the revoked session, or SESSION_NOT_FOUND
        """
        if session_id is None:
            return Return.err(Error("SESSION_NOT_FOUND", "Access token has no session"))

        result = await self.engine.revoke_sessions(
            [session_id],
            actor_id=requesting_account_id,
            owner_id=requesting_account_id,
        )
        if result.is_ok() and not result.value:
            return Return.err(Error("SESSION_NOT_FOUND", "Session not found"))
        return result
