"""Unit tests for the phase state machine.

Tests cover:
- Legal and illegal transitions
- InvalidTransitionError messages
- Gate evaluation into warnings and blockers
- Available transitions with display metadata
"""

from __future__ import annotations

import pytest

from sitebook.errors import UnknownPhaseError
from sitebook.orchestrator.phase_registry import (
    TRANSITION_GATES,
    ProjectPhase,
    is_backward_transition,
)
from sitebook.orchestrator.state_machine import (
    InvalidTransitionError,
    get_available_transitions,
    is_valid_transition,
    require_valid_transition,
    validate_transition,
)

P = ProjectPhase


class TestIsValidTransition:
    @pytest.mark.parametrize(
        "current,target,expected",
        [
            # Forward
            (P.intake, P.estimating, True),
            (P.estimating, P.quoted, True),
            (P.quoted, P.contracted, True),
            (P.contracted, P.active, True),
            (P.active, P.punch_list, True),
            (P.punch_list, P.complete, True),
            # Backward
            (P.complete, P.punch_list, True),
            (P.quoted, P.estimating, True),
            # Cancel and revive
            (P.active, P.cancelled, True),
            (P.cancelled, P.intake, True),
            # Illegal
            (P.intake, P.quoted, False),
            (P.intake, P.complete, False),
            (P.complete, P.cancelled, False),
            (P.cancelled, P.estimating, False),
            (P.intake, P.intake, False),
        ],
    )
    def test_adjacency(self, current, target, expected) -> None:
        assert is_valid_transition(current, target) == expected

    def test_accepts_aliases(self) -> None:
        assert is_valid_transition("quote", "contract") is True

    def test_unknown_phase_is_never_valid(self) -> None:
        assert is_valid_transition("intake", "demolition") is False
        assert is_valid_transition(None, "intake") is False


class TestRequireValidTransition:
    def test_returns_normalised_pair(self) -> None:
        assert require_valid_transition("estimate", "quoted") == (P.estimating, P.quoted)

    def test_illegal_pair_raises(self) -> None:
        with pytest.raises(InvalidTransitionError) as exc_info:
            require_valid_transition(P.intake, P.complete, "p-1")

        error = exc_info.value
        assert error.current == P.intake
        assert error.target == P.complete
        assert error.project_id == "p-1"
        assert str(error) == "Cannot transition from intake to complete for project p-1"

    def test_message_without_project(self) -> None:
        error = InvalidTransitionError(P.intake, P.complete)
        assert str(error) == "Cannot transition from intake to complete"

    def test_unknown_phase_raises(self) -> None:
        with pytest.raises(UnknownPhaseError):
            require_valid_transition("intake", "demolition")


class TestValidateTransition:
    def test_intake_without_contact_warns_twice(self) -> None:
        result = validate_transition({"name": "Kitchen"}, P.intake, P.estimating)

        assert result.can_proceed is True
        assert result.warnings == [
            "No contact information on file",
            "Project address not specified",
        ]
        assert result.blockers == []
        assert result.gate.action == "Start Estimate"

    def test_contact_info_in_intake_data_counts(self) -> None:
        project = {"intake_data": {"client_email": "a@b.c", "address": "1 Main"}}
        result = validate_transition(project, P.intake, P.estimating)
        assert result.warnings == []

    def test_quote_without_estimate_is_blocked(self) -> None:
        project = {"intake_data": {"selections": {"tile": "undecided"}}}
        result = validate_transition(project, P.estimating, P.quoted)

        assert result.can_proceed is False
        assert result.blockers == [
            "No estimate value set - cannot send estimate without pricing"
        ]
        assert result.warnings == ["Some selections are still marked as undecided"]

    def test_quote_with_estimate_proceeds(self) -> None:
        result = validate_transition({"estimate_low": 40000}, P.estimating, P.quoted)
        assert result.can_proceed is True

    def test_undecided_item_within_a_category_warns(self) -> None:
        project = {
            "estimate_high": 50000,
            "intake_data": {
                "selections": {
                    "kitchen": {"countertops": "undecided", "sink": "undermount"},
                    "bath": {"vanity": "floating"},
                }
            },
        }
        result = validate_transition(project, P.estimating, P.quoted)

        assert result.can_proceed is True
        assert result.warnings == ["Some selections are still marked as undecided"]

    def test_decided_categories_do_not_warn(self) -> None:
        project = {
            "estimate_high": 50000,
            "intake_data": {"selections": {"kitchen": {"countertops": "quartz"}, "notes": None}},
        }
        assert validate_transition(project, P.estimating, P.quoted).warnings == []


    def test_start_needs_contract_value(self) -> None:
        blocked = validate_transition({}, P.contracted, P.active)
        ok = validate_transition({"estimate_high": 52000}, P.contracted, P.active)

        assert blocked.blockers == ["No contract value set"]
        assert ok.can_proceed is True

    def test_punch_list_soft_checks(self) -> None:
        project = {"progress": 75, "dashboard": {"blockers": [{"id": 1}]}}
        result = validate_transition(project, P.active, P.punch_list)

        assert result.can_proceed is True
        assert result.warnings == [
            "There are unresolved blockers",
            "Project progress is under 90%",
        ]

    def test_outstanding_balance_blocks_completion(self) -> None:
        owing = {"contract_value": 50000, "spent": 48000}
        settled = {"contract_value": 50000, "spent": 49000}

        assert validate_transition(owing, P.punch_list, P.complete).blockers == [
            "Outstanding balance remains - ensure final payment received"
        ]
        # Exactly the limit is not outstanding
        assert validate_transition(settled, P.punch_list, P.complete).can_proceed is True

    def test_signed_contract_revert_warns(self) -> None:
        project = {"intake_data": {"contract_signed_at": "2026-01-05T10:00:00+00:00"}}
        result = validate_transition(project, P.contracted, P.quoted)
        assert result.warnings == [
            "Contract was already signed - this requires client agreement"
        ]

    def test_backward_always_warns(self) -> None:
        result = validate_transition({}, P.active, P.contracted)
        assert result.warnings == [
            "Moving backward from active construction - this is unusual"
        ]

    def test_revival_has_no_checks(self) -> None:
        result = validate_transition({}, P.cancelled, P.intake)
        assert result.can_proceed is True
        assert result.warnings == []

    def test_illegal_pair_yields_generic_blocker(self) -> None:
        result = validate_transition({}, P.intake, P.complete)

        assert result.can_proceed is False
        assert result.blockers == ["Invalid phase transition"]
        assert result.gate is None

    def test_unknown_phase_yields_generic_blocker(self) -> None:
        result = validate_transition({}, "intake", "demolition")
        assert result.blockers == ["Invalid phase transition"]


class TestGetAvailableTransitions:
    def test_order_follows_adjacency(self) -> None:
        options = get_available_transitions(P.quoted)
        assert [o.to_phase for o in options] == [P.estimating, P.contracted, P.cancelled]

    def test_descriptor_metadata(self) -> None:
        contract = get_available_transitions("quote")[1]

        assert contract.key == "quoted→contracted"
        assert contract.label == "Contracted"
        assert contract.action == "Sign Contract"
        assert contract.generates_scope is True
        assert contract.is_backward is False

    def test_backward_and_cancel_flags(self) -> None:
        estimating, _, cancel = get_available_transitions(P.quoted)

        assert estimating.is_backward is True
        assert cancel.requires_reason is True

    def test_complete_offers_reopen_only(self) -> None:
        options = get_available_transitions(P.complete)
        assert [o.action for o in options] == ["Reopen Project"]


BACKWARD_PAIRS = [pair for pair in TRANSITION_GATES if is_backward_transition(*pair)]

# Trips every hard and soft check that reads these fields
WORST_CASE_PROJECT = {
    "estimate_low": 0,
    "estimate_high": 0,
    "contract_value": 50000,
    "spent": 0,
    "progress": 0,
    "dashboard": {"blockers": [{"id": 1}]},
    "intake_data": {
        "selections": {"kitchen": {"countertops": "undecided"}},
        "contract_signed_at": "2026-01-05T10:00:00+00:00",
    },
}


class TestBackwardTransitions:
    def test_lifecycle_has_backward_pairs(self) -> None:
        assert (P.active, P.contracted) in BACKWARD_PAIRS
        assert all(target != P.cancelled for _, target in BACKWARD_PAIRS)

    @pytest.mark.parametrize("project", [None, {}, WORST_CASE_PROJECT])
    def test_never_blocked(self, project) -> None:
        for source, target in BACKWARD_PAIRS:
            result = validate_transition(project, source, target)
            assert result.blockers == [], (source, target)
            assert result.can_proceed is True

    def test_hard_checks_always_block(self) -> None:
        for (source, target), gate in TRANSITION_GATES.items():
            result = validate_transition(WORST_CASE_PROJECT, source, target)
            tripped = [c.message for c in gate.hard if c.check(WORST_CASE_PROJECT)]
            assert result.blockers == tripped
            assert result.can_proceed is (not tripped)
