"""Alembic environment for the Sitebook schema.

The database URL comes from SitebookConfig (TOML plus SITEBOOK_* environment
variables). Two ``-x`` arguments override it for one run:

    alembic -x config=./sitebook.toml upgrade head
    alembic -x url=sqlite+aiosqlite:///sitebook.db upgrade head

SQLite targets render migrations in batch mode because SQLite cannot alter
columns in place.
"""

from __future__ import annotations

import asyncio
from logging.config import fileConfig
from pathlib import Path

from alembic import context
from sqlalchemy.engine import Connection

from sitebook.config import DatabaseConfig, load_config
from sitebook.database.connection import get_engine
from sitebook.database.models import Base

alembic_config = context.config

if alembic_config.config_file_name is not None:
    fileConfig(alembic_config.config_file_name)

target_metadata = Base.metadata


def resolve_database_config() -> DatabaseConfig:
    """Database settings for this run, honouring ``-x`` overrides."""
    x_args = context.get_x_argument(as_dictionary=True)
    config_path = x_args.get("config")
    database = load_config(Path(config_path) if config_path else None).database
    if x_args.get("url"):
        database = database.model_copy(update={"url": x_args["url"]})
    return database


def _configure(**kwargs) -> None:
    url = kwargs.get("url") or str(kwargs["connection"].engine.url)
    context.configure(
        target_metadata=target_metadata,
        compare_type=True,
        render_as_batch=url.startswith("sqlite"),
        **kwargs,
    )


def run_migrations_offline(database: DatabaseConfig) -> None:
    """Emit the migration SQL to stdout without connecting."""
    _configure(
        url=database.url,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


def do_run_migrations(connection: Connection) -> None:
    _configure(connection=connection)

    with context.begin_transaction():
        context.run_migrations()


async def run_migrations_online(database: DatabaseConfig) -> None:
    """Apply pending migrations through the application's async engine."""
    engine = get_engine(database)
    try:
        async with engine.connect() as connection:
            await connection.run_sync(do_run_migrations)
    finally:
        await engine.dispose()


database_config = resolve_database_config()

if context.is_offline_mode():
    run_migrations_offline(database_config)
else:
    asyncio.run(run_migrations_online(database_config))
