from contextlib import asynccontextmanager

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession
from config import ApplicationConfig
from tests.fixtures.json_loader import FixtureData
from src.depends import get_unit_of_work
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork


class IntegrationConfig(ApplicationConfig):
    JWT_SECRET = "integration-test-secret"
    BCRYPT_ROUNDS = 4
    DB_AUTO_CREATE = False
    PRESENCE_SWEEP_ENABLED = False
    REVOKE_TOKENS_ON_PASSWORD_CHANGE = False


@pytest.fixture
def test_data():
    return FixtureData()


@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
def uow_factory(session_factory):
    @asynccontextmanager
    async def open_unit_of_work():
        async with session_factory() as session:
            async with SqlAlchemyUnitOfWork(session) as uow:
                yield uow

    return open_unit_of_work


@pytest.fixture
def app_config():
    return IntegrationConfig


@pytest.fixture
def app(app_config, session_factory, uow_factory):
    from src.api.app import create_app

    app = create_app(app_config, uow_factory=uow_factory)

    async def override_get_unit_of_work():
        async with session_factory() as session:
            yield SqlAlchemyUnitOfWork(session)

    app.dependency_overrides[get_unit_of_work] = override_get_unit_of_work
    return app


@pytest_asyncio.fixture
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
