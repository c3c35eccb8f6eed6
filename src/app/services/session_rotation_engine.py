"""
Session Rotation Engine

Issues, rotates and revokes session-backed refresh tokens with replay detection.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Callable, List, Optional, Tuple
from uuid import UUID, uuid4

from libs.result import Error, Result, Return
from src.app.services.audit_sink import AuditSink
from src.app.services.dtos import AuthorizationToken, AuthorizedResponse, SessionView
from src.app.services.secret_hasher import ISecretHasher
from src.app.services.token_codec import (
    ClaimSet,
    ITokenCodec,
    SignedToken,
    TokenClaims,
    TokenType,
)
from src.app.services.unit_of_work import UnitOfWork
from src.domain.base import to_iso8601, utcnow
from src.domain.entities import Account, AccountRole, AuditEventType, Session

logger = logging.getLogger(__name__)

# One message for every refresh rejection so near-miss tokens are indistinguishable
INVALID_REFRESH_TOKEN = Error("INVALID_REFRESH_TOKEN", "Invalid refresh token")
ACCOUNT_UNAVAILABLE = Error("ACCOUNT_UNAVAILABLE", "Account is not allowed to sign in")


class ResolvedBy(str, Enum):
    reference = "reference"
    scan = "scan"


@dataclass(frozen=True)
class RotationPolicy:
    access_token_ttl: timedelta = timedelta(minutes=30)
    refresh_token_ttl: timedelta = timedelta(days=14)
    scan_limit: int = 20
    revoke_on_replay: bool = False

    @classmethod
    def from_config(cls, config) -> "RotationPolicy":
        return cls(
            access_token_ttl=timedelta(minutes=config.ACCESS_TOKEN_TTL_MINUTES),
            refresh_token_ttl=timedelta(days=config.REFRESH_TOKEN_TTL_DAYS),
            scan_limit=config.SESSION_SCAN_LIMIT,
            revoke_on_replay=config.REVOKE_ON_REPLAY,
        )


class SessionRotationEngine:
    """
    Core of login, refresh and revoke for every role.

    Business Rules:
    - Every new refresh token embeds its session id (sid) for O(1) lookup
    - Tokens without a usable sid fall back to a bounded scan of the claimed
      account's sessions, never of the whole table
    - Revoked/expired sessions are rejected before any digest comparison
    - A valid signature with a stale digest is the replay signal
    - Rotation is a compare-and-swap on the previous digest: one winner per token
    - Every rejection writes exactly one audit event; audit failures never surface
    """

    def __init__(
        self,
        uow: UnitOfWork,
        token_codec: ITokenCodec,
        hasher: ISecretHasher,
        policy: Optional[RotationPolicy] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.uow = uow
        self.token_codec = token_codec
        self.hasher = hasher
        self.policy = policy or RotationPolicy()
        self.clock = clock
        self.audit = AuditSink(uow)

    async def login(
        self,
        account_id: UUID,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> Result[AuthorizedResponse]:
        """
        Open a new session for an already authenticated account.

        Args:
            account_id: Account whose credentials were verified by the caller
            ip_address: Client address recorded on the session
            user_agent: Client user agent recorded on the session

        Returns:
            Result with AuthorizedResponse, or ACCOUNT_UNAVAILABLE
        """
        now = self.clock()
        async with self.uow:
            account = await self.uow.accounts.get_by_id(account_id)
            if account is None or not account.is_available:
                logger.warning("Login refused for unavailable account %s", account_id)
                await self.audit.record(
                    AuditEventType.account_unavailable,
                    account_id=account_id,
                    detail={"operation": "login", **self._account_state(account)},
                )
                return Return.err(ACCOUNT_UNAVAILABLE)

            session_id = uuid4()
            refresh = self._sign(account, session_id, TokenType.refresh, now)
            access = self._sign(account, session_id, TokenType.access, now)

            session = Session(
                id=session_id,
                account_id=account.id,
                refresh_token_hash=self.hasher.hash(refresh.token),
                expires_at=refresh.expires_at,
                ip_address=ip_address,
                user_agent=user_agent,
                created_at=now,
                updated_at=now,
                last_active_at=now,
            )
            await self.uow.sessions.create(session)

            account.last_login_at = now
            await self.uow.accounts.update(account)

            await self.uow.commit()

            response = self._authorized(account, session_id, access, refresh)

            await self.audit.record(
                AuditEventType.login,
                account_id=account_id,
                session_id=session_id,
                detail={"role": response.role, "ip_address": ip_address},
            )
            logger.info("Session %s opened for account %s", session_id, account_id)
            return Return.ok(response)

    async def refresh(
        self,
        refresh_token: str,
        session_ref: Optional[UUID] = None,
        role: Optional[AccountRole] = None,
    ) -> Result[AuthorizedResponse]:
        """
        Rotate a refresh token into a new token pair.

        Args:
            refresh_token: Plaintext refresh token presented by the client
            session_ref: Session id supplied alongside tokens that carry no sid
            role: Role of the endpoint called; a token for another role is invalid

        Returns:
            Result with AuthorizedResponse, INVALID_REFRESH_TOKEN or ACCOUNT_UNAVAILABLE
        """
        now = self.clock()
        async with self.uow:
            # 1. Signature, expiry, issuer and claim shape
            verified = self.token_codec.verify(refresh_token)
            if verified.is_err():
                return await self._reject(
                    AuditEventType.invalid_token,
                    detail={"reason": verified.error.code},
                )
            claims = verified.value
            if claims.token_type != TokenType.refresh:
                return await self._reject(
                    AuditEventType.invalid_token,
                    detail={"reason": "WRONG_TOKEN_TYPE"},
                )
            if role is not None and claims.role != role:
                return await self._reject(
                    AuditEventType.invalid_token,
                    detail={"reason": "ROLE_MISMATCH", "expected_role": role.value},
                )

            # 2. Resolve the session
            session, resolved_by = await self._resolve_session(
                claims, refresh_token, session_ref
            )
            if session is None:
                reference = claims.session_ref or session_ref
                return await self._reject(
                    AuditEventType.session_not_found,
                    account_id=claims.subject,
                    detail={"session_ref": str(reference) if reference else None},
                )

            # 3. Terminal sessions never rotate, whatever the digest says
            if not session.is_usable(now):
                return await self._reject(
                    AuditEventType.session_inactive,
                    account_id=session.account_id,
                    session_id=session.id,
                    detail={"reason": session.status_at(now).value},
                )

            # 4. Replay detection; the scan path already matched the digest
            if resolved_by == ResolvedBy.reference and not self.hasher.verify(
                refresh_token, session.refresh_token_hash
            ):
                revoked = await self._revoke_replayed(session, now)
                return await self._reject(
                    AuditEventType.hash_mismatch,
                    account_id=session.account_id,
                    session_id=session.id,
                    detail={"reason": "stale_or_replayed", "session_revoked": revoked},
                )

            # 5. The owning account must still be allowed in
            account = await self.uow.accounts.get_by_id(session.account_id)
            if account is None or not account.is_available:
                return await self._reject(
                    AuditEventType.account_unavailable,
                    account_id=session.account_id,
                    session_id=session.id,
                    detail={"operation": "refresh", **self._account_state(account)},
                    error=ACCOUNT_UNAVAILABLE,
                )

            # 6. Rotate
            # Plain values: a rollback below expires the ORM instances
            account_id, session_id = account.id, session.id
            previous_hash = session.refresh_token_hash
            refresh = self._sign(account, session_id, TokenType.refresh, now)
            access = self._sign(account, session_id, TokenType.access, now)
            rotated = await self.uow.sessions.rotate(
                session_id,
                expected_hash=previous_hash,
                new_hash=self.hasher.hash(refresh.token),
                expires_at=refresh.expires_at,
                now=now,
            )
            if not rotated:
                # Lost the race to a concurrent refresh or revoke of the same session
                await self.uow.rollback()
                return await self._reject(
                    AuditEventType.hash_mismatch,
                    account_id=account_id,
                    session_id=session_id,
                    detail={"reason": "concurrent_rotation"},
                )
            await self.uow.commit()

            response = self._authorized(account, session_id, access, refresh)

            await self.audit.record(
                AuditEventType.rotation_success,
                account_id=account_id,
                session_id=session_id,
                detail={"resolved_by": resolved_by.value},
            )
            logger.info("Session %s rotated (resolved by %s)", session_id, resolved_by.value)

            return Return.ok(response)

    async def list_sessions(
        self, account_id: UUID, include_terminal: bool = False
    ) -> Result[List[SessionView]]:
        """
        List an account's sessions, most recently active first.

        Args:
            account_id: Owner of the sessions
            include_terminal: Also return revoked/expired sessions, flagged by status
        """
        now = self.clock()
        async with self.uow:
            sessions = await self.uow.sessions.list_by_account(
                account_id, now, include_terminal=include_terminal
            )
            return Return.ok([SessionView.from_session(s, now) for s in sessions])

    async def revoke_sessions(
        self,
        session_ids: List[UUID],
        actor_id: Optional[UUID] = None,
        owner_id: Optional[UUID] = None,
    ) -> Result[List[SessionView]]:
        """
        Revoke sessions by ID. Idempotent: unknown or already revoked IDs are skipped.

        Args:
            session_ids: Sessions to revoke
            actor_id: Account performing the revocation, recorded in the audit trail
            owner_id: When set, sessions owned by any other account are treated as unknown

        Returns:
            Result with the targeted sessions in their post-revocation state
        """
        now = self.clock()
        async with self.uow:
            target_ids = await self._owned_ids(session_ids, owner_id)
            revoked_ids = await self.uow.sessions.revoke_by_ids(target_ids, now)
            await self.uow.commit()

            sessions = await self.uow.sessions.get_by_ids(target_ids)
            order = {session_id: index for index, session_id in enumerate(target_ids)}
            sessions.sort(key=lambda s: order[s.id])
            views = [SessionView.from_session(s, now) for s in sessions]

            await self._audit_revocations(sessions, revoked_ids, actor_id, "explicit")
            return Return.ok(views)

    async def revoke_all_for_account(
        self,
        account_id: UUID,
        actor_id: Optional[UUID] = None,
        keep_session_id: Optional[UUID] = None,
    ) -> Result[List[SessionView]]:
        """
        Revoke every session of an account, optionally keeping the caller's own.

        Returns:
            Result with all of the account's sessions after revocation
        """
        now = self.clock()
        async with self.uow:
            revoked_ids = await self.uow.sessions.revoke_all_by_account(
                account_id, now, keep_session_id=keep_session_id
            )
            await self.uow.commit()

            sessions = await self.uow.sessions.list_by_account(
                account_id, now, include_terminal=True
            )
            views = [SessionView.from_session(s, now) for s in sessions]

            await self._audit_revocations(sessions, revoked_ids, actor_id, "account")
            return Return.ok(views)

    async def _resolve_session(
        self, claims: TokenClaims, refresh_token: str, session_ref: Optional[UUID]
    ) -> Tuple[Optional[Session], Optional[ResolvedBy]]:
        # The signed sid wins over a caller-supplied reference
        reference = claims.session_ref or session_ref
        if reference is not None:
            session = await self.uow.sessions.get_by_id(reference)
            if session is not None and session.account_id == claims.subject:
                return session, ResolvedBy.reference
            logger.info(
                "Session reference %s is stale for account %s, scanning",
                reference,
                claims.subject,
            )

        # Compatibility path for tokens issued without a sid claim
        candidates = await self.uow.sessions.get_recent_by_account(
            claims.subject, self.policy.scan_limit
        )
        for candidate in candidates:
            if self.hasher.verify(refresh_token, candidate.refresh_token_hash):
                return candidate, ResolvedBy.scan
        return None, None

    async def _revoke_replayed(self, session: Session, now: datetime) -> bool:
        if not self.policy.revoke_on_replay:
            return False
        revoked_ids = await self.uow.sessions.revoke_by_ids([session.id], now)
        await self.uow.commit()
        logger.warning("Session %s revoked after refresh token replay", session.id)
        return bool(revoked_ids)

    async def _reject(
        self,
        event_type: AuditEventType,
        account_id: Optional[UUID] = None,
        session_id: Optional[UUID] = None,
        detail: Optional[dict] = None,
        error: Error = INVALID_REFRESH_TOKEN,
    ) -> Result:
        logger.warning(
            "Refresh rejected: %s (account=%s, session=%s)",
            event_type.value,
            account_id,
            session_id,
        )
        await self.audit.record(
            event_type, account_id=account_id, session_id=session_id, detail=detail
        )
        return Return.err(error)

    async def _owned_ids(
        self, session_ids: List[UUID], owner_id: Optional[UUID]
    ) -> List[UUID]:
        unique_ids = list(dict.fromkeys(session_ids))
        if owner_id is None:
            return unique_ids
        sessions = await self.uow.sessions.get_by_ids(unique_ids)
        owned = {s.id for s in sessions if s.account_id == owner_id}
        return [session_id for session_id in unique_ids if session_id in owned]

    async def _audit_revocations(
        self,
        sessions: List[Session],
        revoked_ids: List[UUID],
        actor_id: Optional[UUID],
        scope: str,
    ):
        owners = {s.id: s.account_id for s in sessions}
        for session_id in revoked_ids:
            await self.audit.record(
                AuditEventType.revoked,
                account_id=owners.get(session_id),
                session_id=session_id,
                detail={
                    "scope": scope,
                    "actor_id": str(actor_id) if actor_id else None,
                },
            )

    def _sign(
        self, account: Account, session_id: UUID, token_type: TokenType, now: datetime
    ) -> SignedToken:
        ttl = (
            self.policy.refresh_token_ttl
            if token_type == TokenType.refresh
            else self.policy.access_token_ttl
        )
        claims = ClaimSet(
            subject=account.id,
            role=account.role,
            token_type=token_type,
            session_ref=session_id,
        )
        return self.token_codec.sign(claims, ttl, now)

    @staticmethod
    def _authorized(
        account: Account, session_id: UUID, access: SignedToken, refresh: SignedToken
    ) -> AuthorizedResponse:
        return AuthorizedResponse(
            id=str(account.id),
            role=account.role.value,
            session_id=str(session_id),
            token=AuthorizationToken(
                access=access.token,
                refresh=refresh.token,
                expired_at=to_iso8601(access.expires_at),
                refreshable_until=to_iso8601(refresh.expires_at),
            ),
        )

    @staticmethod
    def _account_state(account: Optional[Account]) -> dict:
        if account is None:
            return {"account_state": "missing"}
        if account.deleted_at is not None:
            return {"account_state": "deleted"}
        return {"account_state": account.status.value}
