"""
Session Rotation Domain Enums

All enumeration types used across domain entities.
"""

from enum import Enum


class AccountRole(str, Enum):
    """Role discriminator carried in every token"""

    administrator = "administrator"
    moderator = "moderator"
    member = "member"


class AccountStatus(str, Enum):
    """Account status; only active accounts may hold live sessions"""

    active = "active"
    banned = "banned"
    locked = "locked"
    deactivated = "deactivated"
    pending = "pending"


class SessionStatus(str, Enum):
    """Derived state of a session at a given instant"""

    active = "active"
    revoked = "revoked"
    expired = "expired"


class AuditEventType(str, Enum):
    """Security-relevant events written to the audit sink"""

    login = "login"
    rotation_success = "rotation_success"
    hash_mismatch = "hash_mismatch"
    invalid_token = "invalid_token"
    session_not_found = "session_not_found"
    session_inactive = "session_inactive"
    account_unavailable = "account_unavailable"
    revoked = "revoked"
