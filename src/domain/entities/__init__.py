"""
Session Rotation Domain Entities

All domain entities organized by model.
Each entity in its own file for better maintainability.
"""

# Export all enums
from .enums import (
    AccountRole,
    AccountStatus,
    AuditEventType,
    SessionStatus,
)

# Export all entities
from .account import Account
from .session import Session
from .audit_event import AuditEvent

__all__ = [
    # Enums
    "AccountRole",
    "AccountStatus",
    "AuditEventType",
    "SessionStatus",
    # Entities
    "Account",
    "Session",
    "AuditEvent",
]
