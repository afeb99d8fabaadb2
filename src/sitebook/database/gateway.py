"""Persistence gateway used by the phase transition orchestrator.

ProjectGateway wraps the query functions in one transaction per call and
converts every storage failure into a PersistenceError at this boundary.
Methods never raise; they return a GatewayResult carrying either data or
an error, mirroring the collaborator contract the orchestrator consumes.

Project snapshots handed across the boundary are plain dicts built by
``project_to_snapshot``.
"""

from __future__ import annotations

import uuid
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from sitebook.database.models.activity import ActivityEntry, ImmutableRecordError
from sitebook.database.models.loop import Loop, LoopTask
from sitebook.database.models.project import Project
from sitebook.database.queries import activity as activity_queries
from sitebook.database.queries import loop as loop_queries
from sitebook.database.queries import project as project_queries
from sitebook.errors import PersistenceError
from sitebook.orchestrator.phase_registry import ProjectPhase, normalize_phase
from sitebook.orchestrator.scope import DEFAULT_TIER, plan_scope

logger = structlog.get_logger(__name__)

CONTRACT_SIGNED_EVENT = "contract.signed"
PROJECT_STARTED_EVENT = "project.started"


@dataclass
class GatewayResult:
    """Outcome of a gateway call: data on success, error on failure."""

    data: Any = None
    error: PersistenceError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def project_to_snapshot(project: Project) -> dict[str, Any]:
    """Render a Project as a plain, JSON-friendly snapshot dict."""
    return {
        "id": str(project.id),
        "name": project.name,
        "phase": project.phase.value,
        "client_name": project.client_name,
        "client_email": project.client_email,
        "client_phone": project.client_phone,
        "address": project.address,
        "estimate_low": project.estimate_low,
        "estimate_high": project.estimate_high,
        "contract_value": project.contract_value,
        "spent": project.spent,
        "progress": project.progress,
        "build_tier": project.build_tier,
        "estimate_line_items": list(project.estimate_line_items or []),
        "intake_data": dict(project.intake_data or {}),
        "dashboard": dict(project.dashboard or {}),
        "created_at": _iso(project.created_at),
        "updated_at": _iso(project.updated_at),
    }


def activity_to_dict(entry: ActivityEntry) -> dict[str, Any]:
    return {
        "id": str(entry.id),
        "project_id": str(entry.project_id),
        "event_type": entry.event_type,
        "event_data": dict(entry.event_data or {}),
        "actor_name": entry.actor_name,
        "created_at": _iso(entry.created_at),
    }


def loop_to_dict(loop: Loop) -> dict[str, Any]:
    return {
        "id": str(loop.id),
        "project_id": str(loop.project_id),
        "name": loop.name,
        "category_code": loop.category_code,
        "status": loop.status,
        "display_order": loop.display_order,
        "budgeted_amount": loop.budgeted_amount,
        "task_count": loop.task_count,
    }


def task_to_dict(task: LoopTask) -> dict[str, Any]:
    return {
        "id": str(task.id),
        "loop_id": str(task.loop_id),
        "title": task.title,
        "category_code": task.category_code,
        "location": task.location,
        "display_order": task.display_order,
        "budgeted_amount": task.budgeted_amount,
        "quantity": task.quantity,
    }


def _as_uuid(project_id: str | uuid.UUID) -> uuid.UUID:
    if isinstance(project_id, uuid.UUID):
        return project_id
    return uuid.UUID(str(project_id))


def _now() -> datetime:
    return datetime.now(timezone.utc)


class ProjectGateway:
    """Transactional persistence collaborator for phase transitions.

    Attributes:
        session_factory: Factory producing AsyncSession instances.
        system_actor_name: Actor recorded on contract and production entries.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        system_actor_name: str = "System",
    ):
        self.session_factory = session_factory
        self.system_actor_name = system_actor_name

    async def _run(
        self,
        operation: str,
        work: Callable[[AsyncSession], Awaitable[Any]],
        **log_fields: Any,
    ) -> GatewayResult:
        try:
            async with self.session_factory() as session:
                async with session.begin():
                    data = await work(session)
        except PersistenceError as exc:
            return self._failed(operation, exc, log_fields)
        except (SQLAlchemyError, ImmutableRecordError, ValueError) as exc:
            return self._failed(
                operation,
                PersistenceError(str(exc), details={"operation": operation}),
                log_fields,
            )
        return GatewayResult(data=data)

    @staticmethod
    def _failed(
        operation: str,
        error: PersistenceError,
        log_fields: dict[str, Any],
    ) -> GatewayResult:
        logger.warning(
            "gateway_operation_failed",
            operation=operation,
            error=error.message,
            **log_fields,
        )
        return GatewayResult(error=error)

    @staticmethod
    async def _load(session: AsyncSession, project_id: uuid.UUID) -> Project:
        project = await project_queries.get_project(session, project_id)
        if project is None:
            raise PersistenceError(f"Project {project_id} not found", details={"project_id": str(project_id)})
        return project

    async def get_project_snapshot(self, project_id: str | uuid.UUID) -> GatewayResult:
        async def work(session: AsyncSession) -> dict[str, Any]:
            return project_to_snapshot(await self._load(session, _as_uuid(project_id)))

        return await self._run("get_project_snapshot", work, project_id=str(project_id))

    async def update_project_phase(
        self,
        project_id: str | uuid.UUID,
        updates: Mapping[str, Any],
    ) -> GatewayResult:
        """Write a phase change.

        Column keys are written to columns; every other key is merged into
        the ``intake_data`` bag.

        Args:
            project_id: Project to update.
            updates: ``phase`` plus any column or extra-data keys.

        Returns:
            GatewayResult with the new project snapshot.
        """

        async def work(session: AsyncSession) -> dict[str, Any]:
            project = await self._load(session, _as_uuid(project_id))
            columns: dict[str, Any] = {}
            extra: dict[str, Any] = {}
            for key, value in updates.items():
                if key == "intake_data" and isinstance(value, Mapping):
                    extra.update(value)
                elif key in project_queries.UPDATABLE_COLUMNS:
                    columns[key] = value
                else:
                    extra[key] = value
            if "phase" in columns:
                columns["phase"] = normalize_phase(columns["phase"])
            if extra:
                columns["intake_data"] = {**(project.intake_data or {}), **extra}

            updated = await project_queries.update_project(session, project.id, **columns)
            return project_to_snapshot(updated)

        return await self._run("update_project_phase", work, project_id=str(project_id))

    async def _generate_scope(
        self,
        session: AsyncSession,
        project_id: uuid.UUID,
        line_items: list[Mapping[str, Any]] | None,
        tier: str,
    ) -> tuple[list[dict[str, Any]], list[dict[str, Any]]]:
        loops: list[dict[str, Any]] = []
        tasks: list[dict[str, Any]] = []
        for plan in plan_scope(line_items, tier):
            loop = await loop_queries.create_loop(
                session,
                project_id=project_id,
                name=plan.name,
                category_code=plan.trade_code,
                display_order=plan.display_order,
                budgeted_amount=plan.budgeted_amount,
                task_count=len(plan.tasks),
            )
            loops.append(loop_to_dict(loop))
            for task_plan in plan.tasks:
                task = await loop_queries.create_loop_task(
                    session,
                    loop_id=loop.id,
                    title=task_plan.title,
                    category_code=task_plan.trade_code,
                    description=task_plan.description,
                    priority=task_plan.priority,
                    subcategory_code=task_plan.subcategory_code,
                    location=task_plan.location,
                    display_order=task_plan.display_order,
                    budgeted_amount=task_plan.budgeted_amount,
                    quantity=task_plan.quantity,
                    estimate_line_item_id=task_plan.estimate_line_item_id,
                )
                tasks.append(task_to_dict(task))
        if loops:
            logger.info(
                "scope_generated",
                project_id=str(project_id),
                loops=len(loops),
                tasks=len(tasks),
                tier=tier,
            )
        return loops, tasks

    async def sign_contract(
        self,
        project_id: str | uuid.UUID,
        contract_value: float,
        selected_tier: str,
        line_items: list[Mapping[str, Any]],
    ) -> GatewayResult:
        """Move a project to contracted and generate its production scope.

        Args:
            project_id: Project to contract.
            contract_value: Agreed contract value.
            selected_tier: Build tier (good, better, best).
            line_items: Final estimate line items.

        Returns:
            GatewayResult with ``{"project", "loops", "tasks"}``.
        """

        async def work(session: AsyncSession) -> dict[str, Any]:
            project = await self._load(session, _as_uuid(project_id))
            now = _now().isoformat()
            intake_data = {
                **(project.intake_data or {}),
                "phase_changed_at": now,
                "contract_signed_at": now,
                "build_tier": selected_tier,
                "estimate_line_items": list(line_items or []),
            }
            updated = await project_queries.update_project(
                session,
                project.id,
                phase=ProjectPhase.contracted,
                contract_value=contract_value,
                intake_data=intake_data,
            )
            loops, tasks = await self._generate_scope(
                session, project.id, line_items, selected_tier or DEFAULT_TIER
            )
            await activity_queries.create_activity_entry(
                session,
                project_id=project.id,
                event_type=CONTRACT_SIGNED_EVENT,
                event_data={
                    "contract_value": contract_value,
                    "build_tier": selected_tier,
                    "loops_created": len(loops),
                    "tasks_created": len(tasks),
                },
                actor_name=self.system_actor_name,
            )
            return {"project": project_to_snapshot(updated), "loops": loops, "tasks": tasks}

        return await self._run("sign_contract", work, project_id=str(project_id))

    async def start_production(
        self,
        project_id: str | uuid.UUID,
        project: Mapping[str, Any] | None,
        wall_sections: Any = None,
    ) -> GatewayResult:
        """Move a project to active, scaffolding scope if none exists yet.

        Args:
            project_id: Project to start.
            project: Caller's snapshot, consulted for line items and tier.
            wall_sections: Optional wall sections captured at start.

        Returns:
            GatewayResult with ``{"project", "loops", "tasks"}``.
        """
        snapshot = dict(project or {})

        async def work(session: AsyncSession) -> dict[str, Any]:
            stored = await self._load(session, _as_uuid(project_id))
            stored_data = dict(stored.intake_data or {})
            now = _now()
            intake_data = {
                **stored_data,
                "phase_changed_at": now.isoformat(),
                "actual_start": now.date().isoformat(),
            }
            if wall_sections is not None:
                intake_data["wall_sections"] = wall_sections

            updated = await project_queries.update_project(
                session,
                stored.id,
                phase=ProjectPhase.active,
                intake_data=intake_data,
            )

            existing = await loop_queries.list_loops(session, stored.id)
            snapshot_data = snapshot.get("intake_data") or {}
            line_items = (
                snapshot_data.get("estimate_line_items")
                or stored_data.get("estimate_line_items")
                or snapshot.get("estimate_line_items")
                or stored.estimate_line_items
            )
            tier = (
                snapshot_data.get("build_tier")
                or stored_data.get("build_tier")
                or snapshot.get("build_tier")
                or stored.build_tier
                or DEFAULT_TIER
            )

            loops = [loop_to_dict(loop) for loop in existing]
            tasks: list[dict[str, Any]] = []
            if not existing and line_items:
                loops, tasks = await self._generate_scope(session, stored.id, line_items, tier)

            await activity_queries.create_activity_entry(
                session,
                project_id=stored.id,
                event_type=PROJECT_STARTED_EVENT,
                event_data={"loops_created": len(loops), "tasks_created": len(tasks)},
                actor_name=self.system_actor_name,
            )
            return {"project": project_to_snapshot(updated), "loops": loops, "tasks": tasks}

        return await self._run("start_production", work, project_id=str(project_id))

    async def create_activity_entry(
        self,
        event_type: str,
        event_data: dict[str, Any],
        project_id: str | uuid.UUID,
        actor_name: str,
    ) -> GatewayResult:
        async def work(session: AsyncSession) -> dict[str, Any]:
            entry = await activity_queries.create_activity_entry(
                session,
                project_id=_as_uuid(project_id),
                event_type=event_type,
                event_data=event_data,
                actor_name=actor_name,
            )
            return activity_to_dict(entry)

        return await self._run(
            "create_activity_entry", work, project_id=str(project_id), event_type=event_type
        )

    async def list_activity(
        self,
        project_id: str | uuid.UUID,
        limit: int = 50,
    ) -> GatewayResult:
        async def work(session: AsyncSession) -> list[dict[str, Any]]:
            entries = await activity_queries.list_project_activity(
                session, _as_uuid(project_id), limit=limit
            )
            return [activity_to_dict(entry) for entry in entries]

        return await self._run("list_activity", work, project_id=str(project_id))
