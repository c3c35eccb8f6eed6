"""
Token Codec Port

Signs and verifies access and refresh tokens carrying a minimal claim set.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from enum import Enum
from typing import Optional
from uuid import UUID

from pydantic import BaseModel

from libs.result import Result
from src.domain.entities import AccountRole


class TokenType(str, Enum):
    access = "access"
    refresh = "refresh"


class VerifyErrorCode:
    """Error codes returned by ITokenCodec.verify"""

    EXPIRED = "EXPIRED"
    BAD_SIGNATURE = "BAD_SIGNATURE"
    BAD_ISSUER = "BAD_ISSUER"
    MALFORMED = "MALFORMED"


class ClaimSet(BaseModel):
    """Claims the caller chooses when signing"""

    subject: UUID
    role: AccountRole
    token_type: TokenType
    session_ref: Optional[UUID] = None


class TokenClaims(ClaimSet):
    """Claims recovered from a verified token"""

    token_id: str
    issued_at: datetime
    expires_at: datetime


class SignedToken(BaseModel):
    token: str
    expires_at: datetime


class ITokenCodec(ABC):
    """Token codec interface - application layer"""

    @abstractmethod
    def sign(self, claims: ClaimSet, ttl: timedelta, now: datetime) -> SignedToken:
        """Sign claims into a token valid for ttl from now"""
        pass

    @abstractmethod
    def verify(self, token: str) -> Result[TokenClaims]:
        """Verify signature, issuer and expiry; Error codes come from VerifyErrorCode"""
        pass
