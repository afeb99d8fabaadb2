"""Project phase lifecycle: registry, validation, and transition orchestration."""

from sitebook.orchestrator.phase_registry import (
    PHASES,
    TRANSITION_GATES,
    VALID_TRANSITIONS,
    ProjectPhase,
    TransitionEffect,
    TransitionGate,
    normalize_phase,
)
from sitebook.orchestrator.state_machine import (
    InvalidTransitionError,
    TransitionValidation,
    get_available_transitions,
    is_valid_transition,
    validate_transition,
)
from sitebook.orchestrator.transition import (
    OrchestratorState,
    PhaseTransitionOrchestrator,
    TransitionOutcome,
)

__all__ = [
    "PHASES",
    "TRANSITION_GATES",
    "VALID_TRANSITIONS",
    "InvalidTransitionError",
    "OrchestratorState",
    "PhaseTransitionOrchestrator",
    "ProjectPhase",
    "TransitionEffect",
    "TransitionGate",
    "TransitionOutcome",
    "TransitionValidation",
    "get_available_transitions",
    "is_valid_transition",
    "normalize_phase",
    "validate_transition",
]
