import calendar
import secrets
from datetime import UTC, datetime, timedelta

from jose import ExpiredSignatureError, JWTError, jwt
from jose.exceptions import JWTClaimsError
from pydantic import ValidationError

from libs.result import Error, Result, Return
from src.app.services.token_codec import (
    ClaimSet,
    ITokenCodec,
    SignedToken,
    TokenClaims,
    VerifyErrorCode,
)

REQUIRED_CLAIMS = {
    "require_exp": True,
    "require_iat": True,
    "require_sub": True,
    "require_iss": True,
    "require_jti": True,
}


def _timestamp(value: datetime) -> int:
    # Naive datetimes are UTC throughout the service
    return calendar.timegm(value.utctimetuple())


def _from_timestamp(value: int) -> datetime:
    return datetime.fromtimestamp(value, UTC).replace(tzinfo=None)


class JoseTokenCodec(ITokenCodec):
    """
    HS256 JWT codec backed by python-jose.

    Claims: sub (account id), role, type (access|refresh), sid (session id,
    absent on legacy tokens), jti, iss, iat, exp.
    """

    def __init__(self, secret: str, algorithm: str = "HS256", issuer: str = "session-rotation-service"):
        self.secret = secret
        self.algorithm = algorithm
        self.issuer = issuer

    def sign(self, claims: ClaimSet, ttl: timedelta, now: datetime) -> SignedToken:
        expires_at = now + ttl
        payload = {
            "sub": str(claims.subject),
            "role": claims.role.value,
            "type": claims.token_type.value,
            # jti keeps two tokens minted in the same second distinct
            "jti": secrets.token_urlsafe(16),
            "iss": self.issuer,
            "iat": _timestamp(now),
            "exp": _timestamp(expires_at),
        }
        if claims.session_ref is not None:
            payload["sid"] = str(claims.session_ref)
        token = jwt.encode(payload, self.secret, algorithm=self.algorithm)
        return SignedToken(token=token, expires_at=expires_at)

    def verify(self, token: str) -> Result[TokenClaims]:
        try:
            jwt.get_unverified_header(token)
        except JWTError:
            return Return.err(Error(VerifyErrorCode.MALFORMED, "Token is not a JWT"))

        try:
            payload = jwt.decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
                issuer=self.issuer,
                options=REQUIRED_CLAIMS,
            )
        except ExpiredSignatureError:
            return Return.err(Error(VerifyErrorCode.EXPIRED, "Token has expired"))
        except JWTClaimsError as exc:
            if "issuer" in str(exc).lower():
                return Return.err(Error(VerifyErrorCode.BAD_ISSUER, "Token issuer is invalid"))
            return Return.err(Error(VerifyErrorCode.MALFORMED, "Token claims are invalid"))
        except JWTError:
            return Return.err(Error(VerifyErrorCode.BAD_SIGNATURE, "Token signature is invalid"))

        try:
            claims = TokenClaims(
                subject=payload["sub"],
                role=payload["role"],
                token_type=payload["type"],
                session_ref=payload.get("sid"),
                token_id=payload["jti"],
                issued_at=_from_timestamp(payload["iat"]),
                expires_at=_from_timestamp(payload["exp"]),
            )
        except (KeyError, TypeError, ValidationError):
            return Return.err(Error(VerifyErrorCode.MALFORMED, "Token claims are invalid"))

        return Return.ok(claims)
