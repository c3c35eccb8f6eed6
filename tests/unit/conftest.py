import pytest
from unittest.mock import AsyncMock, MagicMock

from src.adapter.services.secret_hasher import BcryptSecretHasher
from src.adapter.services.token_codec import JoseTokenCodec


@pytest.fixture
def mock_uow():
    uow = MagicMock()
    uow.__aenter__ = AsyncMock(return_value=uow)
    uow.__aexit__ = AsyncMock(return_value=False)  # Must return False to not suppress exceptions
    uow.commit = AsyncMock()
    uow.rollback = AsyncMock()
    uow.audit_events.create = AsyncMock()
    return uow


@pytest.fixture
def hasher():
    # Minimum bcrypt cost keeps the suite fast
    return BcryptSecretHasher(rounds=4)


@pytest.fixture
def token_codec():
    return JoseTokenCodec("unit-test-secret", issuer="unit-tests")
