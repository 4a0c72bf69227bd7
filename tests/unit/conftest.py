import pytest
from unittest.mock import AsyncMock, MagicMock

from src.app.services.password_hasher import PasswordHasher
from src.app.services.token_service import TokenService
from tests.utils.clock import FrozenClock

TEST_SECRET = "test-secret-do-not-use-in-production"


@pytest.fixture
def mock_uow():
    uow = MagicMock()
    uow.__aenter__ = AsyncMock(return_value=uow)
    uow.__aexit__ = AsyncMock(return_value=False)  # Must return False to not suppress exceptions
    uow.commit = AsyncMock()
    uow.rollback = AsyncMock()

    uow.users = MagicMock()
    uow.users.get_by_email = AsyncMock()
    uow.users.get_by_id = AsyncMock()
    uow.users.get_many_by_ids = AsyncMock(return_value=[])
    uow.users.create = AsyncMock()
    uow.users.update = AsyncMock()

    uow.refresh_tokens = MagicMock()
    uow.refresh_tokens.create = AsyncMock()
    uow.refresh_tokens.get_by_token_id = AsyncMock()
    uow.refresh_tokens.revoke = AsyncMock(return_value=True)
    uow.refresh_tokens.revoke_all_by_user_id = AsyncMock(return_value=0)

    uow.presence_sessions = MagicMock()
    return uow


@pytest.fixture
def clock():
    return FrozenClock()


@pytest.fixture
def token_service(clock):
    return TokenService(secret=TEST_SECRET, clock=clock)


@pytest.fixture(scope="session")
def hasher():
    # Minimum cost keeps the suite fast
    return PasswordHasher(rounds=4)
