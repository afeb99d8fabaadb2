"""``sitebook`` command line.

    sitebook project create "Smith Kitchen" --client "Pat Smith"
    sitebook project transition <project-id> estimating
    sitebook framing calc --width 36 --height 48 --save
    sitebook measure parse "3' 4-1/2\\""
    sitebook init-db
    sitebook serve --port 8080

The root callback loads configuration and logging once; sub-commands reach
the loaded settings and database through ``get_app_context()``.
"""

from __future__ import annotations

import asyncio
from functools import cached_property
from pathlib import Path
from typing import TYPE_CHECKING, Annotated, Optional

import typer
from rich.console import Console

from sitebook import __version__
from sitebook.cli import framing as framing_cli
from sitebook.cli import measure as measure_cli
from sitebook.cli import project as project_cli
from sitebook.config import SitebookConfig, load_config
from sitebook.database.connection import get_engine, get_session_factory
from sitebook.logging import get_logger, setup_logging

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

app = typer.Typer(
    name="sitebook",
    help="Renovation project phases and on-site framing math",
    no_args_is_help=True,
)
app.add_typer(project_cli.app, name="project", help="Projects and their phase lifecycle")
app.add_typer(framing_cli.app, name="framing", help="Rough-opening cut lists")
app.add_typer(measure_cli.app, name="measure", help="Feet, inches and fractions")

console = Console()
logger = get_logger(__name__)


class AppContext:
    """Settings and database handles for one CLI invocation.

    The engine is only built on first use, so calculator commands run
    without a reachable database or an installed driver.
    """

    def __init__(self, config: SitebookConfig) -> None:
        self.config = config

    @cached_property
    def engine(self) -> AsyncEngine:
        return get_engine(self.config.database)

    @cached_property
    def session_factory(self) -> async_sessionmaker[AsyncSession]:
        return get_session_factory(self.engine)


_app_context: AppContext | None = None


def get_app_context() -> AppContext:
    if _app_context is None:
        raise RuntimeError("sitebook CLI context used before the root callback ran")
    return _app_context


def initialize_context(config: SitebookConfig) -> AppContext:
    global _app_context
    _app_context = AppContext(config)
    return _app_context


@app.command("init-db")
def init_db() -> None:
    """Create any missing tables in the configured database.

    Meant for SQLite installs; PostgreSQL deployments use ``alembic upgrade head``.
    """
    from sitebook.database.models import Base

    ctx = get_app_context()

    async def _create() -> None:
        try:
            async with ctx.engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        finally:
            await ctx.engine.dispose()

    try:
        asyncio.run(_create())
    except Exception as e:
        console.print(f"[red]Could not create tables:[/red] {e}")
        raise typer.Exit(code=1)

    logger.info("schema_created", tables=sorted(Base.metadata.tables))
    console.print(f"[green]Tables ready[/green] in {ctx.config.database.url}")


@app.command()
def serve(
    host: Annotated[
        Optional[str], typer.Option("--host", "-h", help="Bind address [config: web.host]")
    ] = None,
    port: Annotated[
        Optional[int], typer.Option("--port", "-p", help="Bind port [config: web.port]")
    ] = None,
) -> None:
    """Run the REST API under uvicorn."""
    import uvicorn

    from sitebook.web.app import create_app

    config = get_app_context().config
    bind_host = host or config.web.host
    bind_port = port or config.web.port

    console.print(
        f"[bold cyan]Sitebook {__version__}[/bold cyan] listening on "
        f"http://{bind_host}:{bind_port}"
    )
    uvicorn.run(
        create_app(config),
        host=bind_host,
        port=bind_port,
        log_level=config.logging.level.lower(),
    )


@app.callback()
def main_callback(
    config_path: Annotated[
        Optional[Path],
        typer.Option(
            "--config",
            "-c",
            help="TOML settings file [default: ./sitebook.toml, then ~/.config/sitebook/config.toml]",
            exists=True,
            dir_okay=False,
            readable=True,
        ),
    ] = None,
    verbose: Annotated[
        bool, typer.Option("--verbose", "-v", help="Log at DEBUG level")
    ] = False,
) -> None:
    try:
        config = load_config(config_path)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[red]Error loading configuration:[/red] {e}")
        raise typer.Exit(code=1) from None

    if verbose:
        config.logging = config.logging.model_copy(update={"level": "DEBUG"})
    setup_logging(config.logging)
    initialize_context(config)


if __name__ == "__main__":
    app()
