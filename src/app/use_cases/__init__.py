"""
Use Cases - Backward Compatibility Shim

All use cases have been organized into domain folders:
- auth/: Login and refresh
- sessions/: Session listing and revocation
- audit/: Audit logs

Import from subdirectories for better organization.
"""

from .auth import (
    LoginUseCase,
    RefreshTokenUseCase,
)
from .sessions import (
    ListSessionsUseCase,
    RevokeSessionsUseCase,
)
from .audit import (
    GetAuditEventsUseCase,
)

__all__ = [
    # Auth
    "LoginUseCase",
    "RefreshTokenUseCase",
    # Sessions
    "ListSessionsUseCase",
    "RevokeSessionsUseCase",
    # Audit
    "GetAuditEventsUseCase",
]
