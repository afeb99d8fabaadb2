"""Phase transition orchestrator.

Sequences one user-driven phase change: legality check, confirmation,
re-validation, the commit path chosen by the transition's effect, activity
logging, and handing the new project snapshot back to the caller.

Controller state (not the project's phase):

    idle --initiate--> confirming --confirm--> submitting --ok--> idle
                                                   |
                                                   +--failure--> confirming (with error)

Only one transition can be in flight per orchestrator instance. The project
snapshot is owned by the caller; the orchestrator reads it and returns new
snapshots through ``on_update`` without mutating it.

Example:
    >>> orchestrator = PhaseTransitionOrchestrator(project, gateway, on_update=store)
    >>> if orchestrator.initiate_transition("quoted"):
    ...     outcome = await orchestrator.confirm_transition(date="2026-03-02")
"""

from __future__ import annotations

import enum
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from datetime import date as date_type
from datetime import datetime, timezone
from typing import Any, Protocol

import structlog

from sitebook.errors import PersistenceError, TransitionBlockedError, normalize_error
from sitebook.logging import bind_project_context
from sitebook.orchestrator.phase_registry import (
    PHASES,
    ProjectPhase,
    TransitionEffect,
    TransitionGate,
    normalize_phase,
    project_field,
    resolve_effect,
)
from sitebook.orchestrator.scope import DEFAULT_TIER
from sitebook.orchestrator.state_machine import (
    TransitionValidation,
    is_valid_transition,
    validate_transition,
)

logger = structlog.get_logger(__name__)

# Stamped as calendar dates rather than timestamps
DATE_ONLY_FIELDS = frozenset({"actual_start", "actual_completion"})

PHASE_CHANGED_EVENT = "phase.changed"


class GatewayResultLike(Protocol):
    data: Any
    error: Any


class ProjectGatewayProtocol(Protocol):
    """Persistence collaborator consumed by the orchestrator."""

    async def update_project_phase(
        self, project_id: str, updates: dict[str, Any]
    ) -> GatewayResultLike: ...

    async def sign_contract(
        self,
        project_id: str,
        contract_value: float,
        selected_tier: str,
        line_items: list[dict[str, Any]],
    ) -> GatewayResultLike: ...

    async def start_production(
        self,
        project_id: str,
        project: Mapping[str, Any],
        wall_sections: Any = None,
    ) -> GatewayResultLike: ...

    async def create_activity_entry(
        self,
        event_type: str,
        event_data: dict[str, Any],
        project_id: str,
        actor_name: str,
    ) -> GatewayResultLike: ...


class OrchestratorState(enum.Enum):
    """Confirmation flow state.

    States:
        idle: No transition pending.
        confirming: Waiting for the user to confirm (or retry after an error).
        submitting: Commit in flight.
    """

    idle = "idle"
    confirming = "confirming"
    submitting = "submitting"


@dataclass
class TransitionOutcome:
    """Result of confirm_transition."""

    success: bool
    data: Any = None
    error: str | None = None


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _date_text(value: str | date_type | datetime) -> str:
    if isinstance(value, (date_type, datetime)):
        return value.isoformat()
    return str(value)


class PhaseTransitionOrchestrator:
    """Stateful controller for one project's phase transitions.

    Attributes:
        project: Current project snapshot (caller-owned).
        gateway: Persistence collaborator.
        on_update: Called with the new snapshot after a successful commit.
        actor_name: Actor recorded on phase.changed activity entries.
        state: Current OrchestratorState.
        target_phase: Phase awaiting confirmation, if any.
        transition_error: Last error message, if any.
    """

    def __init__(
        self,
        project: Mapping[str, Any] | None,
        gateway: ProjectGatewayProtocol,
        on_update: Callable[[Mapping[str, Any]], Any] | None = None,
        actor_name: str = "You",
    ):
        self.project = project
        self.gateway = gateway
        self.on_update = on_update
        self.actor_name = actor_name
        self.state = OrchestratorState.idle
        self.target_phase: ProjectPhase | None = None
        self.transition_error: str | None = None
        self._commit_paths: dict[
            TransitionEffect,
            Callable[..., Awaitable[Mapping[str, Any] | None]],
        ] = {
            TransitionEffect.standard: self._commit_standard,
            TransitionEffect.generates_scope: self._commit_contract,
            TransitionEffect.starts_production: self._commit_production,
        }

    @property
    def show_modal(self) -> bool:
        return self.state != OrchestratorState.idle

    @property
    def is_transitioning(self) -> bool:
        return self.state == OrchestratorState.submitting

    @property
    def current_phase(self) -> str | None:
        return project_field(self.project, "phase")

    @property
    def current_phase_label(self) -> str | None:
        try:
            return PHASES[normalize_phase(self.current_phase)].label
        except (TypeError, ValueError):
            return None

    @property
    def project_id(self) -> str | None:
        value = project_field(self.project, "id")
        return str(value) if value is not None else None

    def initiate_transition(self, to_phase: ProjectPhase | str) -> bool:
        """Open the confirmation flow for a legal target phase.

        An illegal target records an error and leaves the flow closed.

        Returns:
            True when the confirmation flow was opened.
        """
        if not self.project:
            return False

        from_phase = self.current_phase
        if not is_valid_transition(from_phase, to_phase):
            to_text = to_phase.value if isinstance(to_phase, ProjectPhase) else to_phase
            self.transition_error = f"Cannot transition from {from_phase} to {to_text}"
            logger.warning(
                "phase_transition_rejected",
                project_id=self.project_id,
                from_phase=from_phase,
                to_phase=to_text,
            )
            return False

        self.target_phase = normalize_phase(to_phase)
        self.transition_error = None
        self.state = OrchestratorState.confirming
        logger.info(
            "phase_transition_initiated",
            project_id=self.project_id,
            from_phase=from_phase,
            to_phase=self.target_phase.value,
        )
        return True

    def cancel_transition(self) -> None:
        """Close the confirmation flow without persisting anything."""
        self.state = OrchestratorState.idle
        self.target_phase = None
        self.transition_error = None

    def get_validation(self, to_phase: ProjectPhase | str) -> TransitionValidation | None:
        if not self.project:
            return None
        return validate_transition(self.project, self.current_phase, to_phase)

    async def confirm_transition(
        self,
        from_phase: ProjectPhase | str | None = None,
        to_phase: ProjectPhase | str | None = None,
        notes: str | None = None,
        date: str | date_type | None = None,
        wall_sections: Any = None,
    ) -> TransitionOutcome:
        """Re-validate and commit the pending transition.

        Args:
            from_phase: Phase the user saw; defaults to the snapshot's phase.
            to_phase: Target phase; defaults to the initiated target.
            notes: Optional notes recorded on the activity entry.
            date: User-supplied date, honoured only for gates with
                requires_date.
            wall_sections: Optional wall sections for production start.

        Returns:
            TransitionOutcome. On failure the confirmation flow stays open
            with transition_error set.
        """
        if not self.project:
            return TransitionOutcome(success=False, error="No project loaded")
        if self.state == OrchestratorState.submitting:
            return TransitionOutcome(success=False, error="A transition is already in progress")

        source_value = from_phase if from_phase is not None else self.current_phase
        target_value = to_phase if to_phase is not None else self.target_phase

        self.state = OrchestratorState.submitting
        self.transition_error = None

        try:
            source = normalize_phase(source_value)
            target = normalize_phase(target_value)
            bind_project_context(self.project_id or "", phase=source.value)

            validation = validate_transition(self.project, source, target)
            if not validation.can_proceed:
                logger.warning(
                    "phase_transition_blocked",
                    project_id=self.project_id,
                    from_phase=source.value,
                    to_phase=target.value,
                    blockers=validation.blockers,
                )
                raise TransitionBlockedError(validation.blockers, validation.warnings)

            effect = resolve_effect(source, target, validation.gate)
            commit = self._commit_paths[effect]
            snapshot = await commit(
                source=source,
                target=target,
                gate=validation.gate,
                notes=notes,
                date=date,
                wall_sections=wall_sections,
            )
        except (TransitionBlockedError, PersistenceError, ValueError) as exc:
            return self._fail(exc)
        except Exception as exc:
            logger.error(
                "phase_transition_error",
                project_id=self.project_id,
                error=str(exc),
                exc_info=True,
            )
            return self._fail(exc)

        if self.on_update is not None and snapshot is not None:
            self.on_update(snapshot)
        elif snapshot is None:
            logger.warning(
                "phase_transition_no_snapshot",
                project_id=self.project_id,
                to_phase=target.value,
            )

        self.state = OrchestratorState.idle
        self.target_phase = None
        self.transition_error = None

        logger.info(
            "phase_transition_confirmed",
            project_id=self.project_id,
            from_phase=source.value,
            to_phase=target.value,
            effect=effect.value,
        )
        return TransitionOutcome(success=True, data=snapshot)

    def _fail(self, exc: Exception) -> TransitionOutcome:
        message = normalize_error(exc)
        self.transition_error = message
        self.state = OrchestratorState.confirming
        logger.warning(
            "phase_transition_failed",
            project_id=self.project_id,
            error=message,
        )
        return TransitionOutcome(success=False, error=message)

    def _raise_on_error(self, result: GatewayResultLike, operation: str) -> None:
        if result.error is None:
            return
        message = normalize_error(result.error)
        logger.warning(
            "persistence_call_failed",
            project_id=self.project_id,
            operation=operation,
            error=message,
        )
        raise PersistenceError(message, details=result.error)

    async def _commit_standard(
        self,
        source: ProjectPhase,
        target: ProjectPhase,
        gate: TransitionGate | None,
        notes: str | None,
        date: str | date_type | None,
        wall_sections: Any,
    ) -> Mapping[str, Any] | None:
        now = _now()
        updates: dict[str, Any] = {
            "phase": target.value,
            "phase_changed_at": now.isoformat(),
        }
        if gate is not None and gate.sets_date:
            if gate.sets_date in DATE_ONLY_FIELDS:
                updates[gate.sets_date] = now.date().isoformat()
            else:
                updates[gate.sets_date] = now.isoformat()
        if date and gate is not None and gate.requires_date:
            updates[gate.requires_date] = _date_text(date)

        result = await self.gateway.update_project_phase(self.project_id, updates)
        self._raise_on_error(result, "update_project_phase")

        # Only committed state is recorded
        event_data: dict[str, Any] = {
            "from_phase": source.value,
            "to_phase": target.value,
            "from_label": PHASES[source].label,
            "to_label": PHASES[target].label,
        }
        if notes:
            event_data["notes"] = notes

        activity = await self.gateway.create_activity_entry(
            event_type=PHASE_CHANGED_EVENT,
            event_data=event_data,
            project_id=self.project_id,
            actor_name=self.actor_name,
        )
        if activity.error is not None:
            logger.warning(
                "activity_entry_failed",
                project_id=self.project_id,
                event_type=PHASE_CHANGED_EVENT,
                error=normalize_error(activity.error),
            )

        return result.data

    def contract_data(self) -> dict[str, Any]:
        """Contract terms read from the project's stored estimate."""
        project = self.project or {}
        intake_data = project.get("intake_data") or {}
        return {
            "contract_value": (
                project_field(project, "estimate_high")
                or project_field(project, "estimate_low")
                or 0
            ),
            "selected_tier": (
                intake_data.get("build_tier") or project.get("build_tier") or DEFAULT_TIER
            ),
            "line_items": (
                intake_data.get("estimate_line_items")
                or project.get("estimate_line_items")
                or []
            ),
        }

    async def _commit_contract(
        self,
        source: ProjectPhase,
        target: ProjectPhase,
        gate: TransitionGate | None,
        notes: str | None,
        date: str | date_type | None,
        wall_sections: Any,
    ) -> Mapping[str, Any] | None:
        terms = self.contract_data()
        result = await self.gateway.sign_contract(self.project_id, **terms)
        self._raise_on_error(result, "sign_contract")

        data = result.data or {}
        loops = data.get("loops") or []
        if loops:
            logger.info(
                "production_scope_generated",
                project_id=self.project_id,
                loops=len(loops),
                tasks=len(data.get("tasks") or []),
            )
        return data.get("project")

    async def _commit_production(
        self,
        source: ProjectPhase,
        target: ProjectPhase,
        gate: TransitionGate | None,
        notes: str | None,
        date: str | date_type | None,
        wall_sections: Any,
    ) -> Mapping[str, Any] | None:
        result = await self.gateway.start_production(
            self.project_id, self.project, wall_sections=wall_sections
        )
        self._raise_on_error(result, "start_production")
        return (result.data or {}).get("project")
