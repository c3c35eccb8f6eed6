"""
List Sessions Use Case

Lists an account's sessions for self-service or administrator review.
"""

from typing import List
from uuid import UUID

from libs.result import Error, Result, Return
from src.app.services.dtos import SessionView
from src.app.services.session_rotation_engine import SessionRotationEngine
from src.domain.entities import AccountRole


class ListSessionsUseCase:
    """
    Use case for listing sessions.

    Business Rules:
    - Accounts may list their own sessions
    - Administrators may list any account's sessions
    - Active-only by default; terminal sessions on request, flagged by status
    """

    def __init__(self, engine: SessionRotationEngine):
        self.engine = engine

    async def execute(
        self,
        account_id: UUID,
        requesting_account_id: UUID,
        requesting_role: str,
        include_terminal: bool = False,
    ) -> Result[List[SessionView]]:
        is_self = account_id == requesting_account_id
        is_admin = requesting_role == AccountRole.administrator.value

        if not is_self and not is_admin:
            return Return.err(
                Error("FORBIDDEN", "Only administrators can list other accounts' sessions")
            )

        return await self.engine.list_sessions(account_id, include_terminal=include_terminal)
