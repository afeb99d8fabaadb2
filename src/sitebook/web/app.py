"""FastAPI application for the Sitebook REST API.

``create_app`` wires three routers (health probes, projects with their
transitions and activity log, field calculators) behind CORS and request
logging. The database engine is opened by the lifespan, unless a session
factory is already on ``app.state``, as tests arrange with an in-memory
SQLite database.

    $ uvicorn --factory sitebook.web.app:create_app
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from sitebook import __version__
from sitebook.config import SitebookConfig
from sitebook.database.connection import get_engine, get_session_factory
from sitebook.logging import get_logger
from sitebook.web.middleware import RequestLoggingMiddleware
from sitebook.web.routes.calculators import create_calculators_router
from sitebook.web.routes.health import create_health_router
from sitebook.web.routes.projects import create_projects_router

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

logger = get_logger(__name__)

ROUTER_FACTORIES = (
    create_health_router,
    create_projects_router,
    create_calculators_router,
)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Own the database engine for the lifetime of the server."""
    config: SitebookConfig = app.state.config
    if app.state.session_factory is not None:
        logger.info("database_provided_externally")
        yield
        return

    engine = get_engine(config.database)
    app.state.session_factory = get_session_factory(engine)
    logger.info(
        "database_engine_opened",
        backend=engine.dialect.name,
        pool_size=None if config.database.is_sqlite else config.database.pool_size,
    )
    try:
        yield
    finally:
        app.state.session_factory = None
        await engine.dispose()
        logger.info("database_engine_disposed")


def create_app(config: SitebookConfig | None = None) -> FastAPI:
    """Build the API application.

    Args:
        config: Settings to serve with; ``load_config``-free defaults plus
            environment when omitted.

    Returns:
        The FastAPI app, with ``state.config`` set and ``state.session_factory``
        left for the lifespan (or a test) to fill.
    """
    config = config or SitebookConfig()

    app = FastAPI(
        title="Sitebook",
        version=__version__,
        description="Renovation project phases, activity log and framing calculators",
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.session_factory = None

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.web.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestLoggingMiddleware)

    for factory in ROUTER_FACTORIES:
        app.include_router(factory())

    logger.debug("app_created", routes=len(app.routes), cors_origins=config.web.cors_origins)
    return app
