"""Project endpoints for Sitebook.

CRUD for projects plus the phase transition surface:
- GET /projects/{id}/transitions lists the moves out of the current phase
  with a live validation of each
- POST /projects/{id}/transitions/validate evaluates one move
- POST /projects/{id}/transitions runs the transition orchestrator
- GET /projects/{id}/activity reads the append-only activity log

Phase changes only happen through the transition endpoints; PUT cannot
write ``phase``.

Example:
    >>> from fastapi import FastAPI
    >>> from sitebook.web.routes.projects import create_projects_router
    >>>
    >>> app = FastAPI()
    >>> app.include_router(create_projects_router())
"""

from __future__ import annotations

from datetime import date as Date
from typing import TYPE_CHECKING, Any
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Response
from fastapi import status as http_status
from pydantic import BaseModel, Field

from sitebook.config import SitebookConfig
from sitebook.database.gateway import ProjectGateway, activity_to_dict, project_to_snapshot
from sitebook.database.queries import activity as activity_queries
from sitebook.database.queries import project as project_queries
from sitebook.errors import UnknownPhaseError
from sitebook.logging import bind_project_context, get_logger
from sitebook.orchestrator.phase_registry import ProjectPhase, normalize_phase
from sitebook.orchestrator.state_machine import (
    InvalidTransitionError,
    get_available_transitions,
    require_valid_transition,
    validate_transition,
)
from sitebook.orchestrator.transition import PhaseTransitionOrchestrator
from sitebook.web.dependencies import get_config, get_gateway, get_session_factory

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

logger = get_logger(__name__)


class ProjectCreate(BaseModel):
    """Request schema for creating a new project."""

    name: str = Field(..., min_length=1, max_length=255)
    phase: str = "intake"
    client_name: str | None = None
    client_email: str | None = None
    client_phone: str | None = None
    address: str | None = None
    estimate_low: float | None = None
    estimate_high: float | None = None
    contract_value: float | None = None
    spent: float = 0
    progress: float = Field(default=0, ge=0, le=100)
    build_tier: str | None = None
    estimate_line_items: list[dict[str, Any]] | None = None
    intake_data: dict[str, Any] = Field(default_factory=dict)
    dashboard: dict[str, Any] | None = None


class ProjectUpdate(BaseModel):
    """Request schema for updating a project. Only provided fields change."""

    name: str | None = Field(default=None, min_length=1, max_length=255)
    client_name: str | None = None
    client_email: str | None = None
    client_phone: str | None = None
    address: str | None = None
    estimate_low: float | None = None
    estimate_high: float | None = None
    contract_value: float | None = None
    spent: float | None = None
    progress: float | None = Field(default=None, ge=0, le=100)
    build_tier: str | None = None
    estimate_line_items: list[dict[str, Any]] | None = None
    intake_data: dict[str, Any] | None = None
    dashboard: dict[str, Any] | None = None


class ProjectResponse(BaseModel):
    """Response schema for a project snapshot."""

    id: UUID
    name: str
    phase: str
    client_name: str | None = None
    client_email: str | None = None
    client_phone: str | None = None
    address: str | None = None
    estimate_low: float | None = None
    estimate_high: float | None = None
    contract_value: float | None = None
    spent: float = 0
    progress: float = 0
    build_tier: str | None = None
    estimate_line_items: list[dict[str, Any]] = Field(default_factory=list)
    intake_data: dict[str, Any] = Field(default_factory=dict)
    dashboard: dict[str, Any] = Field(default_factory=dict)
    created_at: Any = None
    updated_at: Any = None


class TransitionOption(BaseModel):
    """An available transition with its live validation."""

    key: str
    to_phase: str
    label: str
    action: str
    action_description: str
    is_backward: bool
    requires_reason: bool
    requires_date: str | None
    sets_date: str | None
    generates_scope: bool
    prompts_for_wall_sections: bool
    can_proceed: bool
    warnings: list[str]
    blockers: list[str]


class ValidateRequest(BaseModel):
    to_phase: str


class ValidationResponse(BaseModel):
    from_phase: str
    to_phase: str
    can_proceed: bool
    warnings: list[str]
    blockers: list[str]
    action: str | None = None


class TransitionRequest(BaseModel):
    """Request schema for performing a phase transition.

    Attributes:
        to_phase: Target phase (aliases accepted)
        notes: Notes for the activity log; mandatory for cancellations
        date: User-supplied date for gates that require one
        wall_sections: Optional wall sections captured at production start
    """

    to_phase: str
    notes: str | None = None
    date: Date | None = None
    wall_sections: list[dict[str, Any]] | None = None


class TransitionResponse(BaseModel):
    from_phase: str
    to_phase: str
    warnings: list[str]
    project: ProjectResponse


class ActivityResponse(BaseModel):
    id: UUID
    project_id: UUID
    event_type: str
    event_data: dict[str, Any]
    actor_name: str
    created_at: Any = None


def _parse_phase(value: str) -> ProjectPhase:
    try:
        return normalize_phase(value)
    except UnknownPhaseError:
        logger.warning(
            "invalid_phase_value",
            phase=value,
            valid_values=[p.value for p in ProjectPhase],
        )
        raise HTTPException(
            status_code=http_status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid phase: {value}. Valid values: {[p.value for p in ProjectPhase]}",
        ) from None


async def _load_snapshot(
    session_factory: async_sessionmaker[AsyncSession],
    project_id: UUID,
) -> dict[str, Any]:
    async with session_factory() as session:
        project = await project_queries.get_project(session, project_id)
        snapshot = project_to_snapshot(project) if project is not None else None

    if snapshot is None:
        logger.warning("project_not_found", project_id=str(project_id))
        raise HTTPException(
            status_code=http_status.HTTP_404_NOT_FOUND,
            detail=f"Project {project_id} not found",
        )
    return snapshot


def create_projects_router() -> APIRouter:
    """Create projects router with CRUD and transition endpoints.

    Returns:
        Configured APIRouter.

    Routes:
        GET /projects/ - List projects with optional phase filter
        POST /projects/ - Create project
        GET /projects/{project_id} - Get project
        PUT /projects/{project_id} - Update project fields
        DELETE /projects/{project_id} - Soft-delete project
        GET /projects/{project_id}/transitions - Available transitions
        POST /projects/{project_id}/transitions/validate - Validate a move
        POST /projects/{project_id}/transitions - Perform a move
        GET /projects/{project_id}/activity - Activity log, newest first
    """
    router = APIRouter(prefix="/projects", tags=["projects"])

    @router.get("/", response_model=list[ProjectResponse])
    async def list_projects(
        phase: str | None = None,
        session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
            get_session_factory
        ),
    ) -> list[dict[str, Any]]:
        """List projects, optionally filtered by phase (aliases accepted)."""
        phase_filter = _parse_phase(phase) if phase is not None else None

        async with session_factory() as session:
            projects = await project_queries.list_projects(session, phase_filter=phase_filter)
            snapshots = [project_to_snapshot(p) for p in projects]

        logger.info("projects_listed", count=len(snapshots), phase_filter=phase)
        return snapshots

    @router.get("/{project_id}", response_model=ProjectResponse)
    async def get_project(
        project_id: UUID,
        session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
            get_session_factory
        ),
    ) -> dict[str, Any]:
        return await _load_snapshot(session_factory, project_id)

    @router.post("/", response_model=ProjectResponse, status_code=http_status.HTTP_201_CREATED)
    async def create_project(
        project_data: ProjectCreate,
        session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
            get_session_factory
        ),
    ) -> dict[str, Any]:
        """Create a new project.

        Raises:
            HTTPException: 400 if the phase is unknown
        """
        fields = project_data.model_dump(exclude={"name", "phase"})
        phase = _parse_phase(project_data.phase)

        async with session_factory() as session:
            async with session.begin():
                project = await project_queries.create_project(
                    session, name=project_data.name, phase=phase, **fields
                )
                snapshot = project_to_snapshot(project)

        logger.info("project_created_via_api", project_id=snapshot["id"])
        return snapshot

    @router.put("/{project_id}", response_model=ProjectResponse)
    async def update_project(
        project_id: UUID,
        project_data: ProjectUpdate,
        session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
            get_session_factory
        ),
    ) -> dict[str, Any]:
        """Update project fields.

        Raises:
            HTTPException: 404 if project not found
        """
        updates = project_data.model_dump(exclude_unset=True)

        async with session_factory() as session:
            async with session.begin():
                existing = await project_queries.get_project(session, project_id)
                if existing is None:
                    logger.warning("project_not_found", project_id=str(project_id))
                    raise HTTPException(
                        status_code=http_status.HTTP_404_NOT_FOUND,
                        detail=f"Project {project_id} not found",
                    )
                project = await project_queries.update_project(session, project_id, **updates)
                snapshot = project_to_snapshot(project)

        logger.info("project_updated_via_api", project_id=str(project_id), fields=list(updates))
        return snapshot

    @router.delete("/{project_id}", status_code=http_status.HTTP_204_NO_CONTENT)
    async def delete_project(
        project_id: UUID,
        session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
            get_session_factory
        ),
    ) -> Response:
        """Soft-delete a project.

        Raises:
            HTTPException: 404 if project not found
        """
        async with session_factory() as session:
            async with session.begin():
                deleted = await project_queries.delete_project(session, project_id)

        if not deleted:
            raise HTTPException(
                status_code=http_status.HTTP_404_NOT_FOUND,
                detail=f"Project {project_id} not found",
            )
        return Response(status_code=http_status.HTTP_204_NO_CONTENT)

    @router.get("/{project_id}/transitions", response_model=list[TransitionOption])
    async def list_transitions(
        project_id: UUID,
        session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
            get_session_factory
        ),
    ) -> list[dict[str, Any]]:
        """List transitions out of the project's current phase."""
        snapshot = await _load_snapshot(session_factory, project_id)
        options = []
        for descriptor in get_available_transitions(snapshot["phase"]):
            validation = validate_transition(snapshot, descriptor.from_phase, descriptor.to_phase)
            options.append({
                "key": descriptor.key,
                "to_phase": descriptor.to_phase.value,
                "label": descriptor.label,
                "action": descriptor.action,
                "action_description": descriptor.action_description,
                "is_backward": descriptor.is_backward,
                "requires_reason": descriptor.requires_reason,
                "requires_date": descriptor.requires_date,
                "sets_date": descriptor.sets_date,
                "generates_scope": descriptor.generates_scope,
                "prompts_for_wall_sections": descriptor.prompts_for_wall_sections,
                "can_proceed": validation.can_proceed,
                "warnings": validation.warnings,
                "blockers": validation.blockers,
            })
        return options

    @router.post("/{project_id}/transitions/validate", response_model=ValidationResponse)
    async def validate_project_transition(
        project_id: UUID,
        request: ValidateRequest,
        session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
            get_session_factory
        ),
    ) -> dict[str, Any]:
        target = _parse_phase(request.to_phase)
        snapshot = await _load_snapshot(session_factory, project_id)
        validation = validate_transition(snapshot, snapshot["phase"], target)
        return {
            "from_phase": snapshot["phase"],
            "to_phase": target.value,
            "can_proceed": validation.can_proceed,
            "warnings": validation.warnings,
            "blockers": validation.blockers,
            "action": validation.gate.action if validation.gate else None,
        }

    @router.post("/{project_id}/transitions", response_model=TransitionResponse)
    async def perform_transition(
        project_id: UUID,
        request: TransitionRequest,
        session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
            get_session_factory
        ),
        gateway: ProjectGateway = Depends(get_gateway),  # noqa: B008
        config: SitebookConfig = Depends(get_config),  # noqa: B008
    ) -> dict[str, Any]:
        """Move a project to another phase.

        Raises:
            HTTPException: 404 unknown project, 400 illegal transition,
                422 missing reason, 409 blocked, 502 persistence failure
        """
        target = _parse_phase(request.to_phase)
        snapshot = await _load_snapshot(session_factory, project_id)
        bind_project_context(str(project_id), phase=snapshot["phase"])

        try:
            source, target = require_valid_transition(snapshot["phase"], target, str(project_id))
        except InvalidTransitionError as exc:
            raise HTTPException(
                status_code=http_status.HTTP_400_BAD_REQUEST,
                detail=str(exc),
            ) from None

        validation = validate_transition(snapshot, source, target)
        gate = validation.gate
        if gate is not None and gate.requires_reason and not (request.notes or "").strip():
            raise HTTPException(
                status_code=http_status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail=f"A reason is required to {gate.action.lower()}",
            )
        if not validation.can_proceed:
            raise HTTPException(
                status_code=http_status.HTTP_409_CONFLICT,
                detail={
                    "message": ", ".join(validation.blockers),
                    "blockers": validation.blockers,
                    "warnings": validation.warnings,
                },
            )

        updated: list[Any] = []
        orchestrator = PhaseTransitionOrchestrator(
            snapshot,
            gateway,
            on_update=updated.append,
            actor_name=config.phases.actor_name,
        )
        orchestrator.initiate_transition(target)
        outcome = await orchestrator.confirm_transition(
            from_phase=source,
            to_phase=target,
            notes=request.notes,
            date=request.date,
            wall_sections=request.wall_sections,
        )
        if not outcome.success:
            raise HTTPException(
                status_code=http_status.HTTP_502_BAD_GATEWAY,
                detail=outcome.error,
            )

        project = updated[-1] if updated else await _load_snapshot(session_factory, project_id)
        return {
            "from_phase": source.value,
            "to_phase": target.value,
            "warnings": validation.warnings,
            "project": project,
        }

    @router.get("/{project_id}/activity", response_model=list[ActivityResponse])
    async def list_activity(
        project_id: UUID,
        limit: int = 50,
        session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
            get_session_factory
        ),
    ) -> list[dict[str, Any]]:
        await _load_snapshot(session_factory, project_id)
        async with session_factory() as session:
            entries = await activity_queries.list_project_activity(
                session, project_id, limit=max(1, min(limit, 500))
            )
            return [activity_to_dict(entry) for entry in entries]

    return router
