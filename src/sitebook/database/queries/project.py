"""Project rows.

Deleting a project only stamps ``deleted_at``; its activity log and loops
keep pointing at a row that still exists. Every read here skips deleted
projects.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any
from uuid import UUID

import structlog
from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession

from sitebook.database.models.project import Project
from sitebook.orchestrator.phase_registry import ProjectPhase

logger = structlog.get_logger(__name__)

# Writable columns; free-form intake answers go under intake_data
UPDATABLE_COLUMNS = frozenset({
    "name",
    "phase",
    "client_name",
    "client_email",
    "client_phone",
    "address",
    "estimate_low",
    "estimate_high",
    "contract_value",
    "spent",
    "progress",
    "build_tier",
    "estimate_line_items",
    "intake_data",
    "dashboard",
})


def _live_projects() -> Select[tuple[Project]]:
    return select(Project).where(Project.deleted_at.is_(None))


def _reject_unknown(fields: dict[str, Any]) -> None:
    unknown = fields.keys() - UPDATABLE_COLUMNS
    if unknown:
        raise ValueError(f"Unknown project fields: {sorted(unknown)}")


async def create_project(
    session: AsyncSession,
    name: str,
    phase: ProjectPhase = ProjectPhase.intake,
    **fields: Any,
) -> Project:
    """Insert a project, by default as a new lead.

    Raises:
        ValueError: A keyword is not a writable column.
    """
    _reject_unknown(fields)
    fields.setdefault("intake_data", {})

    project = Project(name=name, phase=phase, **fields)
    session.add(project)
    await session.flush()

    logger.info("project_created", project_id=str(project.id), phase=project.phase)
    return project


async def get_project(session: AsyncSession, project_id: UUID) -> Project | None:
    result = await session.execute(_live_projects().where(Project.id == project_id))
    return result.scalar_one_or_none()


async def list_projects(
    session: AsyncSession,
    phase_filter: ProjectPhase | None = None,
) -> list[Project]:
    """Projects newest first, optionally only those in ``phase_filter``."""
    stmt = _live_projects()
    if phase_filter is not None:
        stmt = stmt.where(Project.phase == phase_filter)

    result = await session.execute(stmt.order_by(Project.created_at.desc(), Project.id))
    return list(result.scalars())


async def update_project(session: AsyncSession, project_id: UUID, **updates: Any) -> Project:
    """Write ``updates`` onto a live project.

    The phase column is written like any other; whether a phase change is
    allowed is decided before this is called.

    Raises:
        ValueError: Unknown column, or no live project with that ID.
    """
    _reject_unknown(updates)

    project = await get_project(session, project_id)
    if project is None:
        raise ValueError(f"Project {project_id} not found")

    for column, value in updates.items():
        setattr(project, column, value)
    await session.flush()

    logger.info("project_updated", project_id=str(project_id), columns=sorted(updates))
    return project


async def delete_project(session: AsyncSession, project_id: UUID) -> bool:
    """Soft-delete; False when there was no live project to delete."""
    project = await get_project(session, project_id)
    if project is None:
        return False

    project.deleted_at = datetime.now(timezone.utc)
    await session.flush()

    logger.info("project_deleted", project_id=str(project_id))
    return True
