from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, Field

from src.api.error import raise_for_error
from src.app.services.dtos import SessionListResponse
from src.app.services.session_rotation_engine import SessionRotationEngine
from src.app.services.token_codec import TokenClaims
from src.app.use_cases.sessions import ListSessionsUseCase, RevokeSessionsUseCase
from src.depends import get_current_account, get_rotation_engine

router = APIRouter(prefix="/sessions", tags=["Sessions"])


@router.get("", status_code=status.HTTP_200_OK, response_model=SessionListResponse)
async def list_sessions(
    account_id: Optional[UUID] = Query(None, description="Defaults to the caller"),
    include_terminal: bool = Query(False, description="Include revoked/expired sessions"),
    current_account: TokenClaims = Depends(get_current_account),
    engine: SessionRotationEngine = Depends(get_rotation_engine),
):
    """
    List Sessions

    Returns the account's sessions, most recently active first. Terminal
    sessions are filtered out unless include_terminal is set; each entry is
    flagged with its status (active, revoked, expired).

    Authorization:
    - Accounts can list their own sessions
    - Administrators can list any account's sessions

    Raises:
        - 401 Unauthorized: Invalid access token
        - 403 Forbidden: Insufficient permissions
        - 500 Internal Server Error: Server error
    """
    use_case = ListSessionsUseCase(engine)
    result = await use_case.execute(
        account_id or current_account.subject,
        current_account.subject,
        current_account.role.value,
        include_terminal=include_terminal,
    )

    if result.is_err():
        raise_for_error(result.error)

    return {"sessions": result.value}


class RevokeSessionsRequest(BaseModel):
    """Request to revoke sessions by ID"""

    session_ids: List[UUID] = Field(..., min_length=1, description="Sessions to revoke")


@router.post(
    "/revoke",
    status_code=status.HTTP_200_OK,
    response_model=SessionListResponse,
)
async def revoke_sessions(
    request: RevokeSessionsRequest,
    current_account: TokenClaims = Depends(get_current_account),
    engine: SessionRotationEngine = Depends(get_rotation_engine),
):
    """
    Revoke Sessions

    Revokes the given sessions. Safe to retry: unknown or already revoked
    sessions are skipped without error.

    Authorization:
    - Accounts can revoke their own sessions (other IDs are ignored)
    - Administrators can revoke any session

    Raises:
        - 401 Unauthorized: Invalid access token
        - 500 Internal Server Error: Server error
    """
    use_case = RevokeSessionsUseCase(engine)
    result = await use_case.revoke_specific_sessions(
        request.session_ids,
        current_account.subject,
        current_account.role.value,
    )

    if result.is_err():
        raise_for_error(result.error)

    return {"sessions": result.value}


class RevokeAllSessionsRequest(BaseModel):
    """Request to revoke all sessions for an account"""

    account_id: Optional[UUID] = Field(None, description="Defaults to the caller")
    keep_current: bool = Field(
        False, description="Keep the session of the calling access token active"
    )


@router.post(
    "/revoke-all",
    status_code=status.HTTP_200_OK,
    response_model=SessionListResponse,
)
async def revoke_all_sessions(
    request: RevokeAllSessionsRequest,
    current_account: TokenClaims = Depends(get_current_account),
    engine: SessionRotationEngine = Depends(get_rotation_engine),
):
    """
    Revoke All Sessions

    Revokes every session of an account. Useful for:
    - Security incidents (account compromise)
    - Administrator-initiated logout
    - Logging out other devices (keep_current)

    Authorization:
    - Accounts can revoke their own sessions
    - Administrators can revoke any account's sessions

    Raises:
        - 401 Unauthorized: Invalid access token
        - 403 Forbidden: Insufficient permissions
        - 500 Internal Server Error: Server error
    """
    keep_session_id = current_account.session_ref if request.keep_current else None

    use_case = RevokeSessionsUseCase(engine)
    result = await use_case.revoke_all_sessions(
        request.account_id or current_account.subject,
        current_account.subject,
        current_account.role.value,
        keep_session_id=keep_session_id,
    )

    if result.is_err():
        raise_for_error(result.error)

    return {"sessions": result.value}
