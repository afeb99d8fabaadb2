"""Production loop and loop task query functions."""

from __future__ import annotations

from typing import Any
from uuid import UUID

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from sitebook.database.models.loop import Loop, LoopTask

logger = structlog.get_logger(__name__)


async def create_loop(
    session: AsyncSession,
    project_id: UUID,
    name: str,
    category_code: str,
    display_order: int,
    budgeted_amount: float = 0,
    task_count: int = 0,
    source: str = "estimate",
) -> Loop:
    """Create a trade loop for a project."""
    loop = Loop(
        project_id=project_id,
        name=name,
        category_code=category_code,
        display_order=display_order,
        budgeted_amount=budgeted_amount,
        task_count=task_count,
        source=source,
    )
    session.add(loop)
    await session.flush()

    logger.debug(
        "loop_created",
        loop_id=str(loop.id),
        project_id=str(project_id),
        category_code=category_code,
    )
    return loop


async def create_loop_task(
    session: AsyncSession,
    loop_id: UUID,
    title: str,
    category_code: str,
    **fields: Any,
) -> LoopTask:
    """Create a task inside a loop.

    Args:
        session: Active async database session.
        loop_id: Parent loop.
        title: Task title.
        category_code: Trade code.
        **fields: Other LoopTask columns (display_order, budgeted_amount, ...).

    Returns:
        The new LoopTask.
    """
    task = LoopTask(loop_id=loop_id, title=title, category_code=category_code, **fields)
    session.add(task)
    await session.flush()
    return task


async def list_loops(
    session: AsyncSession,
    project_id: UUID,
) -> list[Loop]:
    """List a project's loops in display order."""
    stmt = (
        select(Loop)
        .where(Loop.project_id == project_id)
        .order_by(Loop.display_order)
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())
