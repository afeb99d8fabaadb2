"""Shared fixtures for the database, gateway and HTTP API tests.

Each test gets its own SQLite file built through the application's own
engine factory, so foreign keys are enforced as they are in production.
JSONB columns degrade to plain JSON on SQLite.
"""

from __future__ import annotations

from pathlib import Path
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from sitebook.config import DatabaseConfig, SitebookConfig
from sitebook.database.connection import get_engine, get_session_factory
from sitebook.database.gateway import ProjectGateway
from sitebook.database.models.base import Base
from sitebook.web.app import create_app


@pytest.fixture(scope="session")
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def database_config(tmp_path: Path) -> DatabaseConfig:
    return DatabaseConfig(url=f"sqlite+aiosqlite:///{tmp_path / 'sitebook-test.db'}")


@pytest_asyncio.fixture
async def engine(database_config: DatabaseConfig) -> AsyncGenerator[AsyncEngine, None]:
    db_engine = get_engine(database_config)
    async with db_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield db_engine
    await db_engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return get_session_factory(engine)


@pytest_asyncio.fixture
async def db_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """A session whose work is rolled back when the test ends."""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def gateway(session_factory: async_sessionmaker[AsyncSession]) -> ProjectGateway:
    return ProjectGateway(session_factory, system_actor_name="System")


@pytest.fixture
def app(session_factory: async_sessionmaker[AsyncSession]) -> FastAPI:
    """The API with its session factory pointed at the test database."""
    application = create_app(SitebookConfig())
    application.state.session_factory = session_factory
    return application


@pytest_asyncio.fixture
async def async_client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
