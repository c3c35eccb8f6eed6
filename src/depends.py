from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession
from config import ApplicationConfig
from src.adapter.services.secret_hasher import BcryptSecretHasher
from src.adapter.services.token_codec import JoseTokenCodec
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.app.services.secret_hasher import ISecretHasher
from src.app.services.session_rotation_engine import RotationPolicy, SessionRotationEngine
from src.app.services.token_codec import ITokenCodec, TokenClaims, TokenType
from src.app.services.unit_of_work import UnitOfWork

engine = create_async_engine(ApplicationConfig.DB_URI, echo=False, future=True)

AsyncSessionLocal = sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
)

security = HTTPBearer()


async def get_unit_of_work():
    async with AsyncSessionLocal() as session:
        yield SqlAlchemyUnitOfWork(session)


def get_token_codec() -> ITokenCodec:
    return JoseTokenCodec(
        ApplicationConfig.JWT_SECRET,
        algorithm=ApplicationConfig.JWT_ALGORITHM,
        issuer=ApplicationConfig.JWT_ISSUER,
    )


def get_secret_hasher() -> ISecretHasher:
    return BcryptSecretHasher(rounds=ApplicationConfig.BCRYPT_ROUNDS)


def get_rotation_policy() -> RotationPolicy:
    return RotationPolicy.from_config(ApplicationConfig)


def get_rotation_engine(
    uow: UnitOfWork = Depends(get_unit_of_work),
    token_codec: ITokenCodec = Depends(get_token_codec),
    hasher: ISecretHasher = Depends(get_secret_hasher),
    policy: RotationPolicy = Depends(get_rotation_policy),
) -> SessionRotationEngine:
    return SessionRotationEngine(uow, token_codec, hasher, policy=policy)


async def get_current_account(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    token_codec: ITokenCodec = Depends(get_token_codec),
) -> TokenClaims:
    """
    Dependency to extract and verify the access token from Authorization header.

    Args:
        credentials: Bearer token from Authorization header

    Returns:
        Verified claims: subject (account id), role, session_ref

    Raises:
        HTTPException: 401 if token is invalid, expired or not an access token
    """
    result = token_codec.verify(credentials.credentials)

    if result.is_err() or result.value.token_type != TokenType.access:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )

    return result.value
