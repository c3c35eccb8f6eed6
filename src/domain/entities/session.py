"""
Session Entity

Binds an account to the digest of its current refresh token.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import Column, DateTime, Field, Index, SQLModel

from src.domain.base import utcnow
from .enums import SessionStatus


class Session(SQLModel, table=True):
    """
    Session entity - one authenticated device/login.

    Business Rules:
    - Refresh tokens are stored only as a bcrypt digest
    - The digest is replaced on every rotation; the previous token stops working
    - revoked_at or expires_at <= now is terminal, whatever token is presented
    - Expiry is enforced lazily at next use, there is no sweeper
    """

    __tablename__ = "sessions"

    id: UUID = Field(default_factory=uuid4, primary_key=True)

    account_id: UUID = Field(foreign_key="accounts.id", nullable=False, index=True)

    refresh_token_hash: str = Field(max_length=60)  # Bcrypt output
    expires_at: datetime = Field(sa_column=Column(DateTime, nullable=False))
    revoked_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime))

    # Device bookkeeping captured at login
    ip_address: Optional[str] = Field(default=None, max_length=64)
    user_agent: Optional[str] = Field(default=None, max_length=512)

    # Timestamps
    created_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime))
    updated_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime))
    last_active_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime))

    __table_args__ = (
        Index("idx_session_expires_at", "expires_at"),
        Index("idx_session_account_activity", "account_id", "last_active_at"),
        Index("idx_session_revoked_at", "revoked_at"),
    )

    def is_expired(self, now: datetime) -> bool:
        # Inclusive boundary: a session expiring exactly at now is already dead
        return self.expires_at <= now

    def status_at(self, now: datetime) -> SessionStatus:
        if self.revoked_at is not None:
            return SessionStatus.revoked
        if self.is_expired(now):
            return SessionStatus.expired
        return SessionStatus.active

    def is_usable(self, now: datetime) -> bool:
        return self.status_at(now) == SessionStatus.active
