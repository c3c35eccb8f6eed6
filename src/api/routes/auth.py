from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Request, status
from pydantic import BaseModel, EmailStr, Field

from libs.result import Error
from src.api.error import ClientError, raise_for_error
from src.app.services.dtos import AuthorizedResponse, SessionListResponse
from src.app.services.secret_hasher import ISecretHasher
from src.app.services.session_rotation_engine import SessionRotationEngine
from src.app.services.token_codec import TokenClaims
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.auth import LoginUseCase, RefreshTokenUseCase
from src.app.use_cases.sessions import RevokeSessionsUseCase
from src.depends import (
    get_current_account,
    get_rotation_engine,
    get_secret_hasher,
    get_unit_of_work,
)
from src.domain.entities import AccountRole

router = APIRouter(prefix="/auth", tags=["Authentication"])


class LoginRequest(BaseModel):
    """
    Login HTTP request payload

    Validates incoming login request.
    """

    email: EmailStr = Field(..., description="Account email address")
    password: str = Field(..., min_length=1, description="Account password")


@router.post(
    "/{role}/login", status_code=status.HTTP_200_OK, response_model=AuthorizedResponse
)
async def login(
    role: AccountRole,
    request: LoginRequest,
    http_request: Request,
    uow: UnitOfWork = Depends(get_unit_of_work),
    engine: SessionRotationEngine = Depends(get_rotation_engine),
    hasher: ISecretHasher = Depends(get_secret_hasher),
):
    """
    Login

    Authenticates an account through its role's endpoint and opens a session.
    Returns an access token and a refresh token bound to the new session.

    Raises:
        - 401 Unauthorized: Invalid credentials (or wrong role endpoint)
        - 403 Forbidden: Account banned, locked, deactivated, pending or deleted
        - 500 Internal Server Error: Server error
    """
    use_case = LoginUseCase(uow, engine, hasher)
    result = await use_case.execute(
        request.email,
        request.password,
        role,
        ip_address=http_request.client.host if http_request.client else None,
        user_agent=http_request.headers.get("user-agent"),
    )

    if result.is_err():
        raise_for_error(result.error)

    return result.value


class RefreshRequest(BaseModel):
    """
    Refresh token HTTP request payload

    session_id is only needed for refresh tokens issued without a session claim.
    """

    refresh_token: str = Field(..., min_length=1, description="Refresh token")
    session_id: Optional[UUID] = Field(None, description="Session the token belongs to")


@router.post(
    "/{role}/refresh", status_code=status.HTTP_200_OK, response_model=AuthorizedResponse
)
async def refresh(
    role: AccountRole,
    request: RefreshRequest,
    engine: SessionRotationEngine = Depends(get_rotation_engine),
):
    """
    Refresh Token Pair

    Rotates the refresh token: the presented token stops working and a new
    access/refresh pair is issued for the same session.

    Raises:
        - 401 Unauthorized: Malformed, expired, revoked, replayed or unknown token
        - 403 Forbidden: Owning account no longer allowed to sign in
        - 500 Internal Server Error: Server error
    """
    use_case = RefreshTokenUseCase(engine)
    result = await use_case.execute(request.refresh_token, role, session_id=request.session_id)

    if result.is_err():
        raise_for_error(result.error)

    return result.value


@router.post(
    "/{role}/logout", status_code=status.HTTP_200_OK, response_model=SessionListResponse
)
async def logout(
    role: AccountRole,
    current_account: TokenClaims = Depends(get_current_account),
    engine: SessionRotationEngine = Depends(get_rotation_engine),
):
    """
    Logout

    Revokes the session the access token was issued for.

    Raises:
        - 401 Unauthorized: Invalid access token or token of another role
        - 404 Not Found: Session not found
        - 500 Internal Server Error: Server error
    """
    if current_account.role != role:
        raise ClientError(
            Error("UNAUTHENTICATED", "Invalid or expired token"),
            status_code=status.HTTP_401_UNAUTHORIZED,
        )

    use_case = RevokeSessionsUseCase(engine)
    result = await use_case.revoke_current_session(
        current_account.session_ref, current_account.subject
    )

    if result.is_err():
        raise_for_error(result.error)

    return {"sessions": result.value}
