"""FastAPI dependencies shared by the route modules."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import Request

from sitebook.config import SitebookConfig
from sitebook.database.gateway import ProjectGateway

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker


def get_session_factory(request: Request) -> async_sessionmaker[AsyncSession]:
    """Dependency that retrieves session factory from app state.

    Args:
        request: FastAPI request object

    Returns:
        Session factory from app.state
    """
    return request.app.state.session_factory  # type: ignore[return-value]


def get_config(request: Request) -> SitebookConfig:
    return request.app.state.config  # type: ignore[return-value]


def get_gateway(request: Request) -> ProjectGateway:
    """Dependency building the persistence gateway for the orchestrator."""
    config = get_config(request)
    return ProjectGateway(
        get_session_factory(request),
        system_actor_name=config.phases.system_actor_name,
    )
