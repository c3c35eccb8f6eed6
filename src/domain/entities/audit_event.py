"""
AuditEvent Entity

Append-only log of security-relevant session events.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import Column, DateTime, Field, Index, JSON, SQLModel

from src.domain.base import utcnow
from .enums import AuditEventType


class AuditEvent(SQLModel, table=True):
    """
    AuditEvent entity - immutable log of login, rotation and rejection events.

    Business Rules:
    - Immutable (never updated or deleted by the service)
    - account_id/session_id are nullable: unknown before a session resolves
    - detail never carries plaintext tokens or passwords
    """

    __tablename__ = "audit_events"

    id: UUID = Field(default_factory=uuid4, primary_key=True)

    account_id: Optional[UUID] = Field(default=None, index=True)
    session_id: Optional[UUID] = Field(default=None, index=True)

    event_type: AuditEventType
    detail: Optional[dict] = Field(default=None, sa_column=Column(JSON))

    created_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime))

    __table_args__ = (
        Index("idx_audit_created_at", "created_at"),
        Index("idx_audit_account_event", "account_id", "event_type"),
    )
