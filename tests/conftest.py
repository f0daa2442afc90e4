from __future__ import annotations

# ruff: noqa: E402
import os
from collections.abc import AsyncIterator

import pytest
import pytest_asyncio
from asgi_lifespan import LifespanManager
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine

TEST_DATABASE_URL = "sqlite+aiosqlite:///./test.db"

os.environ.setdefault("DEVFLOW_DATABASE_URL", TEST_DATABASE_URL)
os.environ.setdefault("DEVFLOW_JWT_SECRET", "test-secret-change-me!")
os.environ.setdefault("DEVFLOW_SKIP_MIGRATIONS", "1")

from devflow_api.app import create_app
from devflow_api.config.settings import Settings, get_settings
from devflow_api.db import Base
from devflow_api.db.session import configure_engine_factory, get_session

get_settings.cache_clear()


@pytest_asyncio.fixture(scope="session", loop_scope="session")
async def engine() -> AsyncIterator[AsyncEngine]:
    def _engine_factory(_settings: Settings) -> AsyncEngine:
        return create_async_engine(
            TEST_DATABASE_URL,
            connect_args={"check_same_thread": False, "timeout": 15},
        )

    configure_engine_factory(_engine_factory)

    engine = _engine_factory(
        Settings(
            database_url=TEST_DATABASE_URL,
            jwt_secret=os.environ["DEVFLOW_JWT_SECRET"],
        )
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture(scope="session")
def settings() -> Settings:
    return Settings(
        database_url=TEST_DATABASE_URL,
        jwt_secret=os.environ["DEVFLOW_JWT_SECRET"],
        environment="test",
        log_level="INFO",
    )


@pytest.fixture(scope="session")
def session_maker(engine: AsyncEngine):
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest_asyncio.fixture(autouse=True, loop_scope="session")
async def prepare_database(engine: AsyncEngine) -> AsyncIterator[None]:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    yield


@pytest.fixture()
def app(settings: Settings, session_maker):
    application = create_app(settings)

    async def _get_session_override():
        async with session_maker() as session:
            yield session

    application.dependency_overrides[get_session] = _get_session_override
    return application


@pytest_asyncio.fixture(loop_scope="session")
async def client(app) -> AsyncIterator[AsyncClient]:
    transport = ASGITransport(app=app)
    async with (
        LifespanManager(app),
        AsyncClient(transport=transport, base_url="http://test") as async_client,
    ):
        yield async_client


@pytest_asyncio.fixture(loop_scope="session")
async def unreachable_session_maker(tmp_path):
    """Sessions bound to a SQLite file whose directory does not exist."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'missing' / 'devflow.db'}")
    yield async_sessionmaker(engine, expire_on_commit=False)
    await engine.dispose()
