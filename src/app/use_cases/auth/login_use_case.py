"""
Login Use Case

Checks credentials for a role and opens a new session.
"""

from typing import Optional

from libs.result import Error, Result, Return
from src.app.services.dtos import AuthorizedResponse
from src.app.services.secret_hasher import ISecretHasher
from src.app.services.session_rotation_engine import SessionRotationEngine
from src.app.services.unit_of_work import UnitOfWork
from src.domain.entities import AccountRole

INVALID_CREDENTIALS = Error("INVALID_CREDENTIALS", "Invalid email or password")


class LoginUseCase:
    """
    Use case for login under a given role.

    Business Rules:
    - Constant-time password comparison to prevent timing attacks
    - An account only signs in through its own role's endpoint
    - Unknown email, wrong password and wrong role fail identically
    - Deleted or non-active accounts are left to the engine, which audits the refusal
    """

    def __init__(
        self, uow: UnitOfWork, engine: SessionRotationEngine, hasher: ISecretHasher
    ):
        self.uow = uow
        self.engine = engine
        self.hasher = hasher

    async def execute(
        self,
        email: str,
        password: str,
        role: AccountRole,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> Result[AuthorizedResponse]:
        """
        Execute login use case.

        Args:
            email: Account email
            password: Plain text password
            role: Role of the login endpoint called
            ip_address: Client address, recorded on the session
            user_agent: Client user agent, recorded on the session

        Returns:
            Result with AuthorizedResponse, or Error
        """
        async with self.uow:
            account = await self.uow.accounts.get_by_email(email)

            if account is None:
                # Hash anyway so unknown emails take as long as wrong passwords
                self.hasher.hash(password)
                return Return.err(INVALID_CREDENTIALS)

            if not self.hasher.verify(password, account.password_hash):
                return Return.err(INVALID_CREDENTIALS)

            if account.role != role:
                return Return.err(INVALID_CREDENTIALS)

            account_id = account.id

        return await self.engine.login(account_id, ip_address=ip_address, user_agent=user_agent)
