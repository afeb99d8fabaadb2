"""Activity log query functions.

The log is append-only, so only create and read functions exist.
"""

from __future__ import annotations

from typing import Any
from uuid import UUID

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from sitebook.database.models.activity import ActivityEntry

logger = structlog.get_logger(__name__)


async def create_activity_entry(
    session: AsyncSession,
    project_id: UUID,
    event_type: str,
    event_data: dict[str, Any] | None,
    actor_name: str,
) -> ActivityEntry:
    """Append one entry to a project's activity log.

    Args:
        session: Active async database session.
        project_id: Project the event belongs to.
        event_type: Dotted event name.
        event_data: Event payload.
        actor_name: Who caused the event.

    Returns:
        The new ActivityEntry.
    """
    entry = ActivityEntry(
        project_id=project_id,
        event_type=event_type,
        event_data=dict(event_data or {}),
        actor_name=actor_name,
    )
    session.add(entry)
    await session.flush()

    logger.info(
        "activity_entry_created",
        project_id=str(project_id),
        event_type=event_type,
        actor_name=actor_name,
    )
    return entry


async def list_project_activity(
    session: AsyncSession,
    project_id: UUID,
    limit: int = 50,
) -> list[ActivityEntry]:
    """List a project's activity, newest first."""
    stmt = (
        select(ActivityEntry)
        .where(ActivityEntry.project_id == project_id)
        .order_by(ActivityEntry.created_at.desc())
        .limit(limit)
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())
