"""Liveness and readiness probes.

``/health/`` answers as long as the process serves requests and reports the
running version. ``/health/ready`` round-trips the database and reports the
ping latency; a failed ping still answers 200 with ``status: unhealthy`` so
probes can tell a slow database from a dead process.
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING, Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from sitebook import __version__
from sitebook.logging import get_logger
from sitebook.web.dependencies import get_session_factory

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

logger = get_logger(__name__)


class HealthResponse(BaseModel):
    status: str
    version: str


class ReadinessResponse(BaseModel):
    """Readiness probe result.

    Attributes:
        status: "ok" or "unhealthy"
        database: "connected" or "disconnected"
        latency_ms: Ping round-trip time, absent when the ping failed
    """

    status: str
    database: str
    latency_ms: float | None = None


def create_health_router() -> APIRouter:
    router = APIRouter(prefix="/health", tags=["health"])

    @router.get("/", response_model=HealthResponse)
    async def health() -> dict[str, Any]:
        return {"status": "ok", "version": __version__}

    @router.get("/ready", response_model=ReadinessResponse)
    async def readiness(
        session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
            get_session_factory
        ),
    ) -> dict[str, Any]:
        started = time.perf_counter()
        try:
            async with session_factory() as session:
                await session.execute(text("SELECT 1"))
        except (SQLAlchemyError, OSError) as exc:
            logger.warning("database_ping_failed", error=str(exc))
            return {"status": "unhealthy", "database": "disconnected", "latency_ms": None}

        latency_ms = round((time.perf_counter() - started) * 1000, 2)
        logger.debug("database_ping_ok", latency_ms=latency_ms)
        return {"status": "ok", "database": "connected", "latency_ms": latency_ms}

    return router
