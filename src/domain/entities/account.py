"""
Account Entity

Credential store record consulted by the session rotation engine.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import Column, DateTime, Field, Index, SQLModel

from src.domain.base import utcnow
from .enums import AccountRole, AccountStatus


class Account(SQLModel, table=True):
    """
    Account entity - a person able to authenticate under exactly one role.

    Business Rules:
    - Email must be unique across all accounts
    - Password stored as bcrypt hash
    - Soft delete: deleted_at marks deletion, the row is kept
    - Deleted or non-active accounts never receive new tokens
    """

    __tablename__ = "accounts"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    email: str = Field(unique=True, index=True, max_length=255)
    password_hash: str = Field(max_length=60)  # Bcrypt output is 60 chars

    role: AccountRole = Field(default=AccountRole.member)
    status: AccountStatus = Field(default=AccountStatus.active)

    deleted_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime))

    # Timestamps
    created_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime))
    last_login_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime))

    __table_args__ = (Index("idx_account_role_status", "role", "status"),)

    @property
    def is_available(self) -> bool:
        """True when the account may be issued tokens"""
        return self.deleted_at is None and self.status == AccountStatus.active
