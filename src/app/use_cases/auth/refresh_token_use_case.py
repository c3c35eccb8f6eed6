"""
Refresh Token Use Case

Rotates a refresh token presented at a role's refresh endpoint.
"""

from typing import Optional
from uuid import UUID

from libs.result import Result
from src.app.services.dtos import AuthorizedResponse
from src.app.services.session_rotation_engine import SessionRotationEngine
from src.domain.entities import AccountRole


class RefreshTokenUseCase:
    """
    Use case for refreshing a token pair.

    Business Rules:
    - Refresh token rotation: old token invalidated, new token issued
    - Token role must match the endpoint role
    - All token/session failures answer INVALID_REFRESH_TOKEN
    - A deleted or non-active account answers ACCOUNT_UNAVAILABLE
    """

    def __init__(self, engine: SessionRotationEngine):
        self.engine = engine

    async def execute(
        self,
        refresh_token: str,
        role: AccountRole,
        session_id: Optional[UUID] = None,
    ) -> Result[AuthorizedResponse]:
        """
        Execute refresh token use case.

        Args:
            refresh_token: The refresh token to verify and rotate
            role: Role of the refresh endpoint called
            session_id: Session reference for tokens issued without one

        Returns:
            Result with AuthorizedResponse containing new tokens, or Error
        """
        return await self.engine.refresh(refresh_token, session_ref=session_id, role=role)
