"""Process-wide async engine and the per-request session dependency."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any, Callable

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from devflow_api.config.settings import Settings, get_settings

EngineFactory = Callable[[Settings], AsyncEngine]

# Seconds a SQLite writer waits on a locked database before failing.
SQLITE_BUSY_TIMEOUT = 15

_engine: AsyncEngine | None = None
_sessionmaker: async_sessionmaker[AsyncSession] | None = None
_engine_factory: EngineFactory | None = None


def configure_engine_factory(factory: EngineFactory) -> None:
    """Swap the engine factory and drop any engine built by the previous one."""

    global _engine_factory, _engine, _sessionmaker
    _engine_factory = factory
    _engine = None
    _sessionmaker = None


def build_engine(settings: Settings) -> AsyncEngine:
    url = make_url(settings.database_url)
    options: dict[str, Any] = {"echo": settings.db_echo, "pool_pre_ping": True}
    if url.get_backend_name() == "sqlite":
        options["connect_args"] = {"timeout": SQLITE_BUSY_TIMEOUT}
    else:
        options["pool_size"] = settings.db_pool_size
        options["max_overflow"] = settings.db_max_overflow
        options["pool_timeout"] = settings.db_pool_timeout_seconds
        if url.get_driver_name() == "asyncpg":
            options["connect_args"] = {"command_timeout": settings.db_command_timeout_seconds}
    return create_async_engine(url, **options)


def get_sessionmaker(settings: Settings | None = None) -> async_sessionmaker[AsyncSession]:
    """Return the shared sessionmaker, building the engine on first use.

    Building is synchronous, so every caller on the event loop sees the same
    engine.
    """

    global _engine, _sessionmaker
    if _sessionmaker is None:
        factory = _engine_factory or build_engine
        _engine = factory(settings or get_settings())
        _sessionmaker = async_sessionmaker(_engine, expire_on_commit=False)
    return _sessionmaker


@asynccontextmanager
async def session_scope(
    session_factory: async_sessionmaker[AsyncSession] | None = None,
) -> AsyncIterator[AsyncSession]:
    """Yield a session and roll back whatever transaction it leaves open."""

    factory = session_factory or get_sessionmaker()
    async with factory() as session:
        try:
            yield session
        finally:
            if session.in_transaction():
                await session.rollback()


async def get_session() -> AsyncIterator[AsyncSession]:
    """FastAPI dependency: one session per request."""

    async with session_scope() as session:
        yield session


@asynccontextmanager
async def lifespan_context() -> AsyncIterator[None]:
    """Dispose the shared engine when the application shuts down."""

    global _engine, _sessionmaker
    try:
        yield
    finally:
        if _engine is not None:
            await _engine.dispose()
        _engine = None
        _sessionmaker = None


__all__ = [
    "build_engine",
    "configure_engine_factory",
    "get_session",
    "get_sessionmaker",
    "lifespan_context",
    "session_scope",
]
