"""Project lifecycle registry: phases, legal transitions, and gates.

This module is the declarative description of the project lifecycle:

    intake -> estimating -> quoted -> contracted -> active -> punch_list -> complete

plus an out-of-band ``cancelled`` phase reachable from every non-complete
phase and revivable back to ``intake``. ``complete`` can be reopened to
``punch_list``.

Every legal transition has a TransitionGate holding ordered soft checks
(warnings), ordered hard checks (blockers), the action label shown to the
user, and the side-effect flags the orchestrator acts on. Gates are keyed by
the ``(from, to)`` phase pair; ``transition_key`` renders the
``"from→to"`` display key.
"""

from __future__ import annotations

import enum
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

from sitebook.errors import UnknownPhaseError


class ProjectPhase(enum.Enum):
    """Lifecycle phase of a construction project.

    States:
        intake: New lead, details being gathered.
        estimating: Estimate in preparation.
        quoted: Estimate sent to the client.
        contracted: Contract signed, scope generated.
        active: Construction under way.
        punch_list: Substantial completion, final walkthrough.
        complete: Project finished (reopenable).
        cancelled: Out-of-band; revivable to intake.
    """

    intake = "intake"
    estimating = "estimating"
    quoted = "quoted"
    contracted = "contracted"
    active = "active"
    punch_list = "punch_list"
    complete = "complete"
    cancelled = "cancelled"


PHASE_ALIASES: Mapping[str, ProjectPhase] = MappingProxyType({
    "estimate": ProjectPhase.estimating,
    "contract": ProjectPhase.contracted,
    "quote": ProjectPhase.quoted,
})


def normalize_phase(value: ProjectPhase | str) -> ProjectPhase:
    """Resolve a phase value, accepting historical aliases.

    Args:
        value: A ProjectPhase, an exact phase string, or one of the aliases
            "estimate", "contract", "quote".

    Returns:
        The matching ProjectPhase.

    Raises:
        UnknownPhaseError: If the value is not a known phase or alias.
    """
    if isinstance(value, ProjectPhase):
        return value
    text = str(value).strip().lower()
    if text in PHASE_ALIASES:
        return PHASE_ALIASES[text]
    try:
        return ProjectPhase(text)
    except ValueError:
        raise UnknownPhaseError(value) from None


@dataclass(frozen=True)
class PhaseInfo:
    """Display metadata for a phase."""

    id: ProjectPhase
    label: str
    description: str
    order: int
    color: str


PHASES: Mapping[ProjectPhase, PhaseInfo] = MappingProxyType({
    ProjectPhase.intake: PhaseInfo(
        ProjectPhase.intake, "New Lead", "New lead - reviewing intake form", 1, "purple"
    ),
    ProjectPhase.estimating: PhaseInfo(
        ProjectPhase.estimating, "Estimating", "Preparing detailed estimate", 2, "blue"
    ),
    ProjectPhase.quoted: PhaseInfo(
        ProjectPhase.quoted, "Quoted", "Quote sent - awaiting client response", 3, "cyan"
    ),
    ProjectPhase.contracted: PhaseInfo(
        ProjectPhase.contracted, "Contracted", "Contract signed - ready to start", 4, "indigo"
    ),
    ProjectPhase.active: PhaseInfo(
        ProjectPhase.active, "In Progress", "Construction in progress", 5, "emerald"
    ),
    ProjectPhase.punch_list: PhaseInfo(
        ProjectPhase.punch_list, "Punch List", "Final items and walkthrough", 6, "amber"
    ),
    ProjectPhase.complete: PhaseInfo(
        ProjectPhase.complete, "Complete", "Project finished", 7, "gray"
    ),
    ProjectPhase.cancelled: PhaseInfo(
        ProjectPhase.cancelled, "Cancelled", "Project cancelled", 99, "red"
    ),
})

# Authoritative adjacency list; order is the order shown to the user
VALID_TRANSITIONS: Mapping[ProjectPhase, tuple[ProjectPhase, ...]] = MappingProxyType({
    ProjectPhase.intake: (ProjectPhase.estimating, ProjectPhase.cancelled),
    ProjectPhase.estimating: (
        ProjectPhase.intake, ProjectPhase.quoted, ProjectPhase.cancelled,
    ),
    ProjectPhase.quoted: (
        ProjectPhase.estimating, ProjectPhase.contracted, ProjectPhase.cancelled,
    ),
    ProjectPhase.contracted: (
        ProjectPhase.quoted, ProjectPhase.active, ProjectPhase.cancelled,
    ),
    ProjectPhase.active: (
        ProjectPhase.contracted, ProjectPhase.punch_list, ProjectPhase.cancelled,
    ),
    ProjectPhase.punch_list: (
        ProjectPhase.active, ProjectPhase.complete, ProjectPhase.cancelled,
    ),
    ProjectPhase.complete: (ProjectPhase.punch_list,),
    ProjectPhase.cancelled: (ProjectPhase.intake,),
})


def project_field(project: Mapping[str, Any] | None, key: str) -> Any:
    """Read a field from a project snapshot.

    Top-level keys win; otherwise the value is looked up in the
    ``intake_data`` bag, where non-column fields such as date stamps live.
    """
    if not project:
        return None
    value = project.get(key)
    if value is not None:
        return value
    intake_data = project.get("intake_data") or {}
    if isinstance(intake_data, Mapping):
        return intake_data.get(key)
    return None


def _number(project: Mapping[str, Any], key: str) -> float:
    value = project_field(project, key)
    try:
        return float(value) if value is not None else 0.0
    except (TypeError, ValueError):
        return 0.0


@dataclass(frozen=True)
class GateCheck:
    """Named predicate evaluated against a project snapshot.

    The message is reported when ``check(project)`` returns True.
    """

    name: str
    message: str
    check: Callable[[Mapping[str, Any]], bool]


@dataclass(frozen=True)
class TransitionGate:
    """Guard conditions and side-effect flags for one transition.

    Attributes:
        action: Button label for the transition.
        description: What the transition means for the project.
        soft: Checks that produce warnings but never block.
        hard: Checks that block the transition.
        sets_date: Date field stamped on the project when it commits.
        requires_date: Date field the user supplies when the transition commits.
        generates_scope: Commit through contract signing and scope generation.
        prompts_for_wall_sections: Offer the optional wall-sections prompt.
        requires_reason: Notes are mandatory.
        is_backward: The transition moves the project back a phase.
    """

    action: str
    description: str
    soft: tuple[GateCheck, ...] = ()
    hard: tuple[GateCheck, ...] = ()
    sets_date: str | None = None
    requires_date: str | None = None
    generates_scope: bool = False
    prompts_for_wall_sections: bool = False
    requires_reason: bool = False
    is_backward: bool = False


def _always(name: str, message: str) -> GateCheck:
    return GateCheck(name, message, lambda project: True)


def _has_no_contact(project: Mapping[str, Any]) -> bool:
    return not project_field(project, "client_phone") and not project_field(
        project, "client_email"
    )


def _has_undecided_selections(project: Mapping[str, Any]) -> bool:
    selections = project_field(project, "selections") or {}
    if not isinstance(selections, Mapping):
        return False
    # {category: {item: choice}}; a bare choice still counts
    for choice in selections.values():
        if isinstance(choice, Mapping):
            if any(item == "undecided" for item in choice.values()):
                return True
        elif choice == "undecided":
            return True
    return False


def _has_no_estimate(project: Mapping[str, Any]) -> bool:
    return not project_field(project, "estimate_high") and not project_field(
        project, "estimate_low"
    )


def _has_no_contract_value(project: Mapping[str, Any]) -> bool:
    return not project_field(project, "contract_value") and not project_field(
        project, "estimate_high"
    )


def _has_open_blockers(project: Mapping[str, Any]) -> bool:
    dashboard = project_field(project, "dashboard") or {}
    return bool(isinstance(dashboard, Mapping) and dashboard.get("blockers"))


def _has_outstanding_balance(project: Mapping[str, Any]) -> bool:
    return _number(project, "contract_value") - _number(project, "spent") > OUTSTANDING_BALANCE_LIMIT


def _contract_signed(project: Mapping[str, Any]) -> bool:
    return bool(project_field(project, "contract_signed_at"))


OUTSTANDING_BALANCE_LIMIT = 1000
PUNCH_LIST_PROGRESS_THRESHOLD = 90

_P = ProjectPhase

TRANSITION_GATES: Mapping[tuple[ProjectPhase, ProjectPhase], TransitionGate] = MappingProxyType({
    # Forward
    (_P.intake, _P.estimating): TransitionGate(
        action="Start Estimate",
        description="Begin preparing a detailed estimate for this project.",
        soft=(
            GateCheck("no_contact", "No contact information on file", _has_no_contact),
            GateCheck(
                "no_address",
                "Project address not specified",
                lambda project: not project_field(project, "address"),
            ),
        ),
    ),
    (_P.estimating, _P.quoted): TransitionGate(
        action="Send Estimate",
        description="Send the estimate to the client for review.",
        soft=(
            GateCheck(
                "undecided_selections",
                "Some selections are still marked as undecided",
                _has_undecided_selections,
            ),
        ),
        hard=(
            GateCheck(
                "no_estimate",
                "No estimate value set - cannot send estimate without pricing",
                _has_no_estimate,
            ),
        ),
        requires_date="quote_sent_at",
    ),
    (_P.quoted, _P.contracted): TransitionGate(
        action="Sign Contract",
        description="Client has approved the quote. Sign the contract and generate production scope.",
        hard=(
            GateCheck("no_estimate", "No estimate value to convert to contract", _has_no_estimate),
        ),
        sets_date="contract_signed_at",
        generates_scope=True,
    ),
    (_P.contracted, _P.active): TransitionGate(
        action="Start Construction",
        description="Begin active construction. This will set the actual start date.",
        hard=(
            GateCheck("no_contract_value", "No contract value set", _has_no_contract_value),
        ),
        sets_date="actual_start",
        prompts_for_wall_sections=True,
    ),
    (_P.active, _P.punch_list): TransitionGate(
        action="Begin Punch List",
        description="Substantial completion reached. Begin final walkthrough and punch list.",
        soft=(
            GateCheck("open_blockers", "There are unresolved blockers", _has_open_blockers),
            GateCheck(
                "low_progress",
                "Project progress is under 90%",
                lambda project: _number(project, "progress") < PUNCH_LIST_PROGRESS_THRESHOLD,
            ),
        ),
    ),
    (_P.punch_list, _P.complete): TransitionGate(
        action="Mark Complete",
        description="Project is finished. This will set the completion date.",
        hard=(
            GateCheck(
                "outstanding_balance",
                "Outstanding balance remains - ensure final payment received",
                _has_outstanding_balance,
            ),
        ),
        sets_date="actual_completion",
    ),
    # Backward
    (_P.estimating, _P.intake): TransitionGate(
        action="Return to Intake",
        description="Return project to intake phase for re-evaluation.",
        soft=(
            _always(
                "backward_move",
                "Moving backward to Intake phase - estimate work will be preserved",
            ),
        ),
        is_backward=True,
    ),
    (_P.quoted, _P.estimating): TransitionGate(
        action="Revise Estimate",
        description="Return to estimating phase to revise the quote.",
        soft=(_always("quote_resend", "Quote may need to be re-sent after changes"),),
        is_backward=True,
    ),
    (_P.contracted, _P.quoted): TransitionGate(
        action="Revert to Quoted",
        description="Return to quoted phase. Contract terms may need renegotiation.",
        soft=(
            GateCheck(
                "contract_signed",
                "Contract was already signed - this requires client agreement",
                _contract_signed,
            ),
        ),
        is_backward=True,
    ),
    (_P.active, _P.contracted): TransitionGate(
        action="Pause Construction",
        description="Return to contracted phase. Construction will be paused.",
        soft=(
            _always("unusual_backward", "Moving backward from active construction - this is unusual"),
        ),
        is_backward=True,
    ),
    (_P.punch_list, _P.active): TransitionGate(
        action="Return to Active",
        description="Return to active construction for additional work.",
        is_backward=True,
    ),
    (_P.complete, _P.punch_list): TransitionGate(
        action="Reopen Project",
        description="Reopen for additional punch list items.",
        soft=(
            _always("reopen", "Reopening completed project - warranty issue or callback?"),
        ),
        is_backward=True,
    ),
    # Cancellation
    (_P.intake, _P.cancelled): TransitionGate(
        action="Cancel Project",
        description="Cancel this project. It can be revived later if needed.",
        requires_reason=True,
    ),
    (_P.estimating, _P.cancelled): TransitionGate(
        action="Cancel Project",
        description="Cancel this project. Estimate work will be preserved.",
        requires_reason=True,
    ),
    (_P.quoted, _P.cancelled): TransitionGate(
        action="Cancel Project",
        description="Cancel this project. Quote has not been accepted.",
        requires_reason=True,
    ),
    (_P.contracted, _P.cancelled): TransitionGate(
        action="Cancel Project",
        description="Cancel this project after contract signing.",
        soft=(
            GateCheck(
                "contract_signed",
                "Contract was signed - ensure proper cancellation documentation",
                _contract_signed,
            ),
        ),
        requires_reason=True,
    ),
    (_P.active, _P.cancelled): TransitionGate(
        action="Cancel Project",
        description="Cancel active construction. This is a significant action.",
        soft=(
            _always(
                "active_cancel",
                "Cancelling active construction - ensure all subs are notified",
            ),
        ),
        requires_reason=True,
    ),
    (_P.punch_list, _P.cancelled): TransitionGate(
        action="Cancel Project",
        description="Cancel project during punch list phase.",
        soft=(
            _always("late_cancel", "Cancelling near completion - unusual circumstance"),
        ),
        requires_reason=True,
    ),
    # Revival
    (_P.cancelled, _P.intake): TransitionGate(
        action="Revive Project",
        description="Restore this cancelled project to intake phase.",
    ),
})


def transition_key(from_phase: ProjectPhase | str, to_phase: ProjectPhase | str) -> str:
    """Render the display key for a transition, e.g. ``"quoted→contracted"``."""
    return f"{normalize_phase(from_phase).value}→{normalize_phase(to_phase).value}"


def get_gate(
    from_phase: ProjectPhase | str, to_phase: ProjectPhase | str
) -> TransitionGate | None:
    return TRANSITION_GATES.get((normalize_phase(from_phase), normalize_phase(to_phase)))


class TransitionEffect(enum.Enum):
    """How a confirmed transition is committed.

    States:
        standard: Phase update plus one phase.changed activity entry.
        generates_scope: Contract signing with scope generation.
        starts_production: Production start with lazy scope scaffolding.
    """

    standard = "standard"
    generates_scope = "generates_scope"
    starts_production = "starts_production"


def resolve_effect(
    from_phase: ProjectPhase | str,
    to_phase: ProjectPhase | str,
    gate: TransitionGate | None = None,
) -> TransitionEffect:
    """Resolve the commit path for a transition once, from its gate.

    Args:
        from_phase: Current phase.
        to_phase: Target phase.
        gate: Gate for the pair; looked up when not supplied.

    Returns:
        The TransitionEffect to dispatch on.
    """
    source = normalize_phase(from_phase)
    target = normalize_phase(to_phase)
    if gate is None:
        gate = TRANSITION_GATES.get((source, target))
    if gate is not None and gate.generates_scope:
        return TransitionEffect.generates_scope
    if source == ProjectPhase.contracted and target == ProjectPhase.active:
        return TransitionEffect.starts_production
    return TransitionEffect.standard


def _ordered_lifecycle() -> list[ProjectPhase]:
    return sorted(
        (phase for phase in ProjectPhase if phase != ProjectPhase.cancelled),
        key=lambda phase: PHASES[phase].order,
    )


def get_next_phase(phase: ProjectPhase | str) -> ProjectPhase | None:
    """Next phase in the forward lifecycle; never ``cancelled``."""
    current = normalize_phase(phase)
    lifecycle = _ordered_lifecycle()
    if current not in lifecycle:
        return None
    index = lifecycle.index(current)
    return lifecycle[index + 1] if index + 1 < len(lifecycle) else None


def get_previous_phase(phase: ProjectPhase | str) -> ProjectPhase | None:
    current = normalize_phase(phase)
    lifecycle = _ordered_lifecycle()
    if current not in lifecycle:
        return None
    index = lifecycle.index(current)
    return lifecycle[index - 1] if index > 0 else None


def is_backward_transition(
    from_phase: ProjectPhase | str, to_phase: ProjectPhase | str
) -> bool:
    """True when the target comes earlier in the lifecycle (cancel excluded)."""
    source = normalize_phase(from_phase)
    target = normalize_phase(to_phase)
    if target == ProjectPhase.cancelled:
        return False
    return PHASES[target].order < PHASES[source].order


def get_phase_label(phase: ProjectPhase | str | None) -> str:
    if phase is None:
        return ""
    try:
        return PHASES[normalize_phase(phase)].label
    except UnknownPhaseError:
        return str(phase)
