"""Pytest configuration and fixtures for spindle.

HTTP tests use spindle.main:app. Repository and service tests run against a
fresh in-memory SQLite database per test (aiosqlite), with foreign keys on
and SAVEPOINT support enabled so nested transactions behave as on Postgres.
"""

from collections.abc import AsyncIterator

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from spindle.application.dtos.site import SiteResult
from spindle.core.config import Settings
from spindle.infrastructure.persistence import models  # noqa: F401 (register tables)
from spindle.infrastructure.persistence.database import Base
from spindle.infrastructure.persistence.repositories.site_repo import SiteRepository
from spindle.main import app


@pytest.fixture
async def client() -> AsyncIterator[AsyncClient]:
    """Async HTTP client against the FastAPI app (ASGI)."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def settings() -> Settings:
    """Engine settings independent of the environment."""
    return Settings(
        database_url="",
        site_url="https://example.com",
        site_name="Example",
        import_batch_size=50,
        import_max_errors=100,
    )


@pytest.fixture
async def db_engine() -> AsyncIterator[AsyncEngine]:
    """In-memory SQLite engine with the schema created from the ORM models."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record) -> None:
        # pysqlite's implicit BEGIN breaks SAVEPOINT; emit BEGIN ourselves.
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn) -> None:
        conn.exec_driver_sql("BEGIN")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def db_session(db_engine: AsyncEngine) -> AsyncIterator[AsyncSession]:
    """Database session for repository/integration tests. Rolls back after test."""
    factory = async_sessionmaker(
        bind=db_engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
    )
    async with factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
async def site_a(db_session: AsyncSession) -> SiteResult:
    return await SiteRepository(db_session).create_site(
        "Site A", subdomain="site-a", settings={"siteUrl": "https://a.example.com"}
    )


@pytest.fixture
async def site_b(db_session: AsyncSession) -> SiteResult:
    return await SiteRepository(db_session).create_site("Site B", subdomain="site-b")
