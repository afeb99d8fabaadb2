"""Engines and sessions for the Sitebook database.

Two backends are supported:

* PostgreSQL through asyncpg, pooled according to ``pool_size`` and
  ``max_overflow``. This is what ``sitebook serve`` runs against.
* SQLite through aiosqlite for a single-user install and for tests. Every
  checkout opens a fresh connection (CLI commands each run their own event
  loop, so pooled aiosqlite connections would outlive it) and foreign keys
  are switched on, since SQLite leaves them off by default.

    >>> engine = get_engine(DatabaseConfig(url="sqlite+aiosqlite:///sitebook.db"))
    >>> sessions = get_session_factory(engine)
    >>> async with sessions() as session, session.begin():
    ...     await create_project(session, name="Smith Kitchen")
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from sitebook.config import DatabaseConfig


def _enable_sqlite_foreign_keys(dbapi_connection: Any, connection_record: Any) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _engine_options(config: DatabaseConfig) -> dict[str, Any]:
    if config.is_sqlite:
        return {"echo": config.echo, "poolclass": NullPool}
    return {
        "echo": config.echo,
        "pool_size": config.pool_size,
        "max_overflow": config.max_overflow,
        "pool_pre_ping": True,
    }


def get_engine(config: DatabaseConfig) -> AsyncEngine:
    """Build the async engine for ``config.url``.

    Args:
        config: Database section of SitebookConfig.

    Returns:
        An AsyncEngine; the caller owns it and must ``dispose()`` it.
    """
    engine = create_async_engine(config.url, **_engine_options(config))
    if config.is_sqlite:
        event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
    return engine


def get_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    # Rows stay readable after commit; async sessions cannot lazy-load
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)
