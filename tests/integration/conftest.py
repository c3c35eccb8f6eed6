import pytest
import pytest_asyncio
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession
from src.depends import get_secret_hasher, get_unit_of_work
from src.adapter.services.secret_hasher import BcryptSecretHasher
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.domain.entities import Account, AccountRole, AccountStatus

PASSWORD = "SecurePass123!"


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine("sqlite+aiosqlite:///./test.db")
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def hasher():
    return BcryptSecretHasher(rounds=4)


@pytest.fixture
def create_account(db_session, hasher):
    """Insert an account straight into the credential store"""

    async def _create(
        email="member@example.com",
        role=AccountRole.member,
        status=AccountStatus.active,
        password=PASSWORD,
    ):
        account = Account(
            email=email,
            password_hash=hasher.hash(password),
            role=role,
            status=status,
        )
        db_session.add(account)
        await db_session.commit()
        # Detached copy stays readable after requests roll the shared session back
        db_session.expunge(account)
        return account

    return _create


@pytest_asyncio.fixture
async def client(db_session, hasher):
    from httpx import ASGITransport
    from src.api.app import create_app
    from config import ApplicationConfig

    app = create_app(ApplicationConfig)

    async def override_get_unit_of_work():
        yield SqlAlchemyUnitOfWork(db_session)

    app.dependency_overrides[get_unit_of_work] = override_get_unit_of_work
    app.dependency_overrides[get_secret_hasher] = lambda: hasher

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def login(client):
    """Log in through the role's endpoint and return the response body"""

    async def _login(email="member@example.com", role="member", password=PASSWORD):
        response = await client.post(
            f"/auth/{role}/login", json={"email": email, "password": password}
        )
        assert response.status_code == 200, response.text
        return response.json()

    return _login

