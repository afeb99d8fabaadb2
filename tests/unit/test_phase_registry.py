"""Unit tests for the phase registry.

Tests cover:
- Phase metadata and alias normalisation
- Adjacency list shape
- Gate definitions and effect resolution
- Lifecycle navigation helpers
"""

from __future__ import annotations

import pytest

from sitebook.errors import UnknownPhaseError
from sitebook.orchestrator.phase_registry import (
    PHASES,
    TRANSITION_GATES,
    VALID_TRANSITIONS,
    ProjectPhase,
    TransitionEffect,
    get_gate,
    get_next_phase,
    get_phase_label,
    get_previous_phase,
    is_backward_transition,
    normalize_phase,
    project_field,
    resolve_effect,
    transition_key,
)

P = ProjectPhase


class TestNormalizePhase:
    @pytest.mark.parametrize(
        "alias,expected",
        [
            ("estimate", P.estimating),
            ("contract", P.contracted),
            ("quote", P.quoted),
            ("Punch_List", P.punch_list),
            (P.active, P.active),
        ],
    )
    def test_aliases_and_values(self, alias, expected) -> None:
        assert normalize_phase(alias) == expected

    def test_unknown_phase_raises(self) -> None:
        with pytest.raises(UnknownPhaseError) as exc_info:
            normalize_phase("demolition")
        assert exc_info.value.value == "demolition"
        assert isinstance(exc_info.value, ValueError)


class TestPhases:
    def test_every_phase_has_metadata(self) -> None:
        assert set(PHASES) == set(ProjectPhase)

    def test_lifecycle_order(self) -> None:
        ordered = sorted(PHASES.values(), key=lambda info: info.order)
        assert [info.id for info in ordered] == [
            P.intake, P.estimating, P.quoted, P.contracted,
            P.active, P.punch_list, P.complete, P.cancelled,
        ]
        assert PHASES[P.cancelled].order == 99

    def test_labels(self) -> None:
        assert get_phase_label("intake") == "New Lead"
        assert get_phase_label("estimate") == "Estimating"
        assert get_phase_label("mystery") == "mystery"
        assert get_phase_label(None) == ""


class TestValidTransitions:
    def test_every_phase_has_entry(self) -> None:
        assert set(VALID_TRANSITIONS) == set(ProjectPhase)

    def test_every_edge_has_gate(self) -> None:
        edges = {(src, dst) for src, targets in VALID_TRANSITIONS.items() for dst in targets}
        assert edges == set(TRANSITION_GATES)

    def test_complete_only_reopens(self) -> None:
        assert VALID_TRANSITIONS[P.complete] == (P.punch_list,)

    def test_cancelled_only_revives(self) -> None:
        assert VALID_TRANSITIONS[P.cancelled] == (P.intake,)

    def test_cancel_reachable_from_open_phases(self) -> None:
        for phase in (P.intake, P.estimating, P.quoted, P.contracted, P.active, P.punch_list):
            assert P.cancelled in VALID_TRANSITIONS[phase]


class TestGates:
    def test_cancellations_require_reason(self) -> None:
        for (src, dst), gate in TRANSITION_GATES.items():
            if dst == P.cancelled:
                assert gate.requires_reason, f"{src.value} cancel must require a reason"
                assert gate.action == "Cancel Project"

    def test_backward_flags(self) -> None:
        for (src, dst), gate in TRANSITION_GATES.items():
            if dst == P.cancelled or src == P.cancelled:
                continue
            assert gate.is_backward == is_backward_transition(src, dst)

    def test_contract_gate(self) -> None:
        gate = get_gate("quote", "contract")
        assert gate.generates_scope is True
        assert gate.sets_date == "contract_signed_at"

    def test_production_gate(self) -> None:
        gate = get_gate(P.contracted, P.active)
        assert gate.sets_date == "actual_start"
        assert gate.prompts_for_wall_sections is True

    def test_quote_requires_date(self) -> None:
        assert get_gate(P.estimating, P.quoted).requires_date == "quote_sent_at"

    def test_no_gate_for_illegal_pair(self) -> None:
        assert get_gate(P.intake, P.complete) is None

    def test_transition_key(self) -> None:
        assert transition_key("quote", P.contracted) == "quoted→contracted"


class TestResolveEffect:
    def test_contract_generates_scope(self) -> None:
        assert resolve_effect(P.quoted, P.contracted) == TransitionEffect.generates_scope

    def test_start_production(self) -> None:
        assert resolve_effect(P.contracted, P.active) == TransitionEffect.starts_production

    @pytest.mark.parametrize(
        "src,dst",
        [
            (P.intake, P.estimating),
            (P.active, P.punch_list),
            (P.active, P.contracted),
            (P.quoted, P.cancelled),
        ],
    )
    def test_everything_else_is_standard(self, src, dst) -> None:
        assert resolve_effect(src, dst) == TransitionEffect.standard


class TestNavigation:
    def test_next_phase(self) -> None:
        assert get_next_phase(P.intake) == P.estimating
        assert get_next_phase(P.punch_list) == P.complete
        assert get_next_phase(P.complete) is None
        assert get_next_phase(P.cancelled) is None

    def test_previous_phase(self) -> None:
        assert get_previous_phase(P.estimating) == P.intake
        assert get_previous_phase(P.intake) is None

    def test_cancel_is_never_backward(self) -> None:
        assert is_backward_transition(P.active, P.cancelled) is False


class TestProjectField:
    def test_top_level_wins(self) -> None:
        project = {"address": "1 Main", "intake_data": {"address": "2 Oak"}}
        assert project_field(project, "address") == "1 Main"

    def test_falls_back_to_intake_data(self) -> None:
        project = {"address": None, "intake_data": {"address": "2 Oak"}}
        assert project_field(project, "address") == "2 Oak"

    def test_missing_project(self) -> None:
        assert project_field(None, "address") is None
