"""Project phase transition validator.

Pure functions that decide whether a phase change is legal and evaluate the
transition gate's checks against a project snapshot. Nothing here touches
the database; the orchestrator and the web/CLI layers call into it.

Severity is strictly two-tier: soft checks add warnings and never block,
hard checks add blockers and always block.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

import structlog

from sitebook.orchestrator.phase_registry import (
    PHASES,
    VALID_TRANSITIONS,
    ProjectPhase,
    TransitionGate,
    get_gate,
    normalize_phase,
    transition_key,
)

logger = structlog.get_logger(__name__)

INVALID_TRANSITION_BLOCKER = "Invalid phase transition"


class InvalidTransitionError(Exception):
    """Raised when an illegal phase transition is requested.

    Attributes:
        current: The current project phase.
        target: The requested target phase.
        project_id: The project that failed to transition.
    """

    def __init__(
        self,
        current: ProjectPhase,
        target: ProjectPhase,
        project_id: str | None = None,
    ):
        self.current = current
        self.target = target
        self.project_id = project_id
        msg = f"Cannot transition from {current.value} to {target.value}"
        if project_id:
            msg += f" for project {project_id}"
        super().__init__(msg)


@dataclass
class TransitionValidation:
    """Outcome of evaluating a gate against a project.

    Attributes:
        can_proceed: True when no hard check fired.
        warnings: Soft-check messages in gate order.
        blockers: Hard-check messages in gate order.
        gate: The gate evaluated, or None for an unknown pair.
    """

    can_proceed: bool
    warnings: list[str] = field(default_factory=list)
    blockers: list[str] = field(default_factory=list)
    gate: TransitionGate | None = None


@dataclass
class TransitionDescriptor:
    """One available transition, enriched with registry metadata."""

    from_phase: ProjectPhase
    to_phase: ProjectPhase
    key: str
    label: str
    description: str
    color: str
    order: int
    action: str
    action_description: str
    is_backward: bool = False
    requires_reason: bool = False
    requires_date: str | None = None
    sets_date: str | None = None
    generates_scope: bool = False
    prompts_for_wall_sections: bool = False


def is_valid_transition(
    from_phase: ProjectPhase | str, to_phase: ProjectPhase | str
) -> bool:
    """Check whether a transition is in the adjacency list.

    Unknown phase values are simply not valid; this never raises.
    """
    try:
        source = normalize_phase(from_phase)
        target = normalize_phase(to_phase)
    except ValueError:
        return False
    return target in VALID_TRANSITIONS.get(source, ())


def require_valid_transition(
    from_phase: ProjectPhase | str,
    to_phase: ProjectPhase | str,
    project_id: str | None = None,
) -> tuple[ProjectPhase, ProjectPhase]:
    """Normalise a phase pair and reject it when illegal.

    Returns:
        The normalised (from, to) pair.

    Raises:
        UnknownPhaseError: If either phase is not recognised.
        InvalidTransitionError: If the pair is not in the adjacency list.
    """
    source = normalize_phase(from_phase)
    target = normalize_phase(to_phase)
    if target not in VALID_TRANSITIONS.get(source, ()):
        logger.warning(
            "invalid_phase_transition",
            project_id=project_id,
            from_phase=source.value,
            to_phase=target.value,
        )
        raise InvalidTransitionError(source, target, project_id)
    return source, target


def validate_transition(
    project: Mapping[str, Any] | None,
    from_phase: ProjectPhase | str,
    to_phase: ProjectPhase | str,
) -> TransitionValidation:
    """Evaluate the gate for a transition against a project snapshot.

    Args:
        project: Project snapshot the checks read from.
        from_phase: Current phase.
        to_phase: Target phase.

    Returns:
        TransitionValidation. A pair with no gate yields a single generic
        blocker and no gate.
    """
    try:
        gate = get_gate(from_phase, to_phase)
    except ValueError:
        gate = None
    if gate is None:
        return TransitionValidation(
            can_proceed=False, blockers=[INVALID_TRANSITION_BLOCKER], gate=None
        )

    snapshot = project or {}
    warnings = [check.message for check in gate.soft if check.check(snapshot)]
    blockers = [check.message for check in gate.hard if check.check(snapshot)]

    return TransitionValidation(
        can_proceed=not blockers,
        warnings=warnings,
        blockers=blockers,
        gate=gate,
    )


def get_available_transitions(
    current_phase: ProjectPhase | str,
) -> list[TransitionDescriptor]:
    """List the transitions out of a phase with display metadata."""
    source = normalize_phase(current_phase)
    descriptors = []
    for target in VALID_TRANSITIONS.get(source, ()):
        info = PHASES[target]
        gate = get_gate(source, target)
        descriptors.append(
            TransitionDescriptor(
                from_phase=source,
                to_phase=target,
                key=transition_key(source, target),
                label=info.label,
                description=info.description,
                color=info.color,
                order=info.order,
                action=gate.action if gate else f"Move to {info.label}",
                action_description=gate.description if gate else "",
                is_backward=gate.is_backward if gate else False,
                requires_reason=gate.requires_reason if gate else False,
                requires_date=gate.requires_date if gate else None,
                sets_date=gate.sets_date if gate else None,
                generates_scope=gate.generates_scope if gate else False,
                prompts_for_wall_sections=gate.prompts_for_wall_sections if gate else False,
            )
        )
    return descriptors
