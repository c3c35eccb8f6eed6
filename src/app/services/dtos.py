"""
Session Rotation DTOs (Data Transfer Objects)

Responses shared by the engine, the use cases and the HTTP layer.
Session views never carry the refresh token digest.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel

from src.domain.base import to_iso8601
from src.domain.entities import Session


class AuthorizationToken(BaseModel):
    """Token pair with ISO-8601 UTC expiry instants"""

    access: str
    refresh: str
    expired_at: str
    refreshable_until: str


class AuthorizedResponse(BaseModel):
    """Response for login and refresh, identical for every role"""

    id: str
    role: str
    session_id: str
    token: AuthorizationToken


class SessionView(BaseModel):
    """A session flagged with its status at the time of the request"""

    id: str
    account_id: str
    status: str
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    created_at: str
    updated_at: str
    last_active_at: str
    expires_at: str
    revoked_at: Optional[str] = None

    @classmethod
    def from_session(cls, session: Session, now: datetime) -> "SessionView":
        return cls(
            id=str(session.id),
            account_id=str(session.account_id),
            status=session.status_at(now).value,
            ip_address=session.ip_address,
            user_agent=session.user_agent,
            created_at=to_iso8601(session.created_at),
            updated_at=to_iso8601(session.updated_at),
            last_active_at=to_iso8601(session.last_active_at),
            expires_at=to_iso8601(session.expires_at),
            revoked_at=to_iso8601(session.revoked_at),
        )


class SessionListResponse(BaseModel):
    """Response for session listing and revocation use cases"""

    sessions: List[SessionView]
