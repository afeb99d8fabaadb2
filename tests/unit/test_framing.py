"""Unit tests for the window and door framing calculator.

Tests cover:
- Lumber dimension lookups
- Member lengths for windows and doors
- Jack stud count by span and the king stud clamp
- Top cripples versus header filler
- Advisories for unknown sizes, long spans, and header-tight savings
- Cut-list projection and the plain-text report
- Building a spec from raw form input
"""

from __future__ import annotations

import pytest

from sitebook.calculators.framing import (
    OpeningSpec,
    build_cut_list,
    calculate_framing,
    jacks_per_side,
    render_cut_list_text,
    spec_from_inputs,
)
from sitebook.calculators.lumber import (
    LUMBER_DIMENSIONS,
    WALL_HEIGHTS,
    get_lumber_dimension,
    is_known_size,
)


class TestLumber:
    """Test nominal to actual lumber lookups."""

    def test_stud_dimensions(self) -> None:
        assert get_lumber_dimension("2x4", "height") == 3.5
        assert get_lumber_dimension("2x4", "width") == 1.5

    def test_header_depth(self) -> None:
        assert get_lumber_dimension("2x10") == 9.25
        assert get_lumber_dimension("LVL-11.875") == 11.875

    def test_unknown_size_is_zero(self) -> None:
        assert get_lumber_dimension("3x5") == 0
        assert is_known_size("3x5") is False

    @pytest.mark.parametrize("dimension", ["count", "index", "depth", "_fields"])
    def test_unknown_dimension_is_zero(self, dimension: str) -> None:
        assert get_lumber_dimension("2x4", dimension) == 0


    def test_wall_heights_include_double_plate(self) -> None:
        assert WALL_HEIGHTS["8ft"] == 97.125
        assert "2x12" in LUMBER_DIMENSIONS


class TestJacksPerSide:
    @pytest.mark.parametrize(
        "width,expected",
        [(36, 1), (72, 1), (72.5, 2), (96, 2), (96.5, 3)],
    )
    def test_span_thresholds(self, width: float, expected: int) -> None:
        assert jacks_per_side(width) == expected


class TestCalculateFraming:
    """Test member lengths derived from an OpeningSpec."""

    def test_default_window(self) -> None:
        """36x48 window, 36" sill, 8' wall with a double top plate."""
        result = calculate_framing(OpeningSpec())

        assert result is not None
        assert result.king_stud_length == pytest.approx(92.625)
        assert result.jack_stud_length == pytest.approx(84.0)
        assert result.header_length == pytest.approx(43.0)
        assert result.header_depth == 9.25
        assert result.sill_length == 36
        assert result.bottom_cripple_length == pytest.approx(33.0)
        assert result.bottom_cripple_qty == 2
        assert result.jacks_per_side == 1
        # Header sits on the jacks with no room above for cripples
        assert result.header_gap < 0
        assert result.top_cripple_qty == 0
        assert result.header_filler_length == 0
        assert result.warnings == ()

    def test_single_top_plate_lengthens_king(self) -> None:
        result = calculate_framing(OpeningSpec(top_plate_config="single"))
        assert result.king_stud_length == pytest.approx(94.125)

    def test_door_has_no_sill(self) -> None:
        result = calculate_framing(
            OpeningSpec(opening_type="door", ro_width=36, ro_height=80)
        )

        assert result.jack_stud_length == 80
        assert result.sill_length == 0
        assert result.bottom_cripple_qty == 0
        assert result.header_gap == pytest.approx(3.375)
        assert result.top_cripple_length == pytest.approx(3.375)
        assert result.top_cripple_qty == 2

    def test_door_adds_finish_floor(self) -> None:
        result = calculate_framing(
            OpeningSpec(opening_type="door", ro_width=36, ro_height=80, finish_floor=0.75)
        )
        assert result.jack_stud_length == pytest.approx(80.75)

    def test_jack_clamped_to_king(self) -> None:
        result = calculate_framing(
            OpeningSpec(opening_type="door", ro_width=36, ro_height=100)
        )
        assert result.jack_stud_length == result.king_stud_length

    def test_header_tight_replaces_top_cripples(self) -> None:
        """Filler and top cripples are mutually exclusive."""
        result = calculate_framing(
            OpeningSpec(opening_type="door", ro_width=36, ro_height=80, header_tight=True)
        )

        assert result.header_filler_length == result.header_length
        assert result.top_cripple_qty == 0
        assert result.top_cripple_length == 0

    def test_header_tight_savings_note(self) -> None:
        result = calculate_framing(
            OpeningSpec(opening_type="door", ro_width=60, ro_height=80, header_tight=True)
        )

        infos = [w for w in result.warnings if w.type == "info"]
        assert len(infos) == 1
        assert infos[0].message == 'Running header tight saves 3 cripples (3 3/8" each).'

    def test_no_savings_note_for_two_cripples(self) -> None:
        result = calculate_framing(
            OpeningSpec(opening_type="door", ro_width=36, ro_height=80, header_tight=True)
        )
        assert result.warnings == ()

    def test_wide_span_uses_more_jacks_and_warns(self) -> None:
        result = calculate_framing(OpeningSpec(ro_width=100))

        assert result.jacks_per_side == 3
        assert result.header_length == pytest.approx(100 + 3.5 * 6)
        assert any(
            w.type == "warning" and "Engineering may be required" in w.message
            for w in result.warnings
        )

    def test_double_sill(self) -> None:
        result = calculate_framing(OpeningSpec(sill_style="double"))
        assert result.sill_thickness == 3.0
        assert result.jack_stud_length == pytest.approx(85.5)
        assert result.bottom_cripple_length == pytest.approx(31.5)

    def test_sloped_sill_thickness(self) -> None:
        result = calculate_framing(OpeningSpec(sill_style="sloped", sloped_sill_thickness=2.5))
        assert result.sill_thickness == 2.5

    def test_low_sill_has_no_bottom_cripples(self) -> None:
        result = calculate_framing(OpeningSpec(sill_height=2))
        assert result.bottom_cripple_length == 0
        assert result.bottom_cripple_qty == 0

    def test_unknown_sizes_warn(self) -> None:
        result = calculate_framing(OpeningSpec(header_size="2x9"))

        assert result.header_depth == 0
        assert result.warnings[0].message == "Unknown header size '2x9' - dimension treated as 0."

    def test_negative_dimension_warns_but_computes(self) -> None:
        result = calculate_framing(OpeningSpec(sill_height=-2))

        assert result is not None
        assert any(
            w.message == "Sill height is negative; results are not buildable."
            for w in result.warnings
        )

    def test_zero_spacing_means_no_cripples(self) -> None:
        result = calculate_framing(OpeningSpec(stud_spacing=0))
        assert result.bottom_cripple_qty == 0

    @pytest.mark.parametrize(
        "field",
        ["ro_width", "ro_height", "wall_height"],
    )
    def test_missing_required_dimension(self, field: str) -> None:
        assert calculate_framing(OpeningSpec(**{field: 0})) is None

    def test_results_are_memoised(self) -> None:
        spec = OpeningSpec(ro_width=30)
        assert calculate_framing(spec) is calculate_framing(OpeningSpec(ro_width=30))


class TestBuildCutList:
    """Test projecting a result into cut-list entries."""

    def test_window_entries(self) -> None:
        entries = build_cut_list(calculate_framing(OpeningSpec()))

        assert [(e.name, e.length, e.qty) for e in entries] == [
            ("King Studs", "7' 8 5/8\"", 2),
            ("Jack Studs", "7' 0\"", 2),
            ("Header", "3' 7\"", 2),
            ("Sill", "3' 0\"", 1),
            ("Bottom Cripples", "2' 9\"", 2),
        ]
        header = entries[2]
        assert header.material == '2x10 + 1/2" ply'
        assert header.highlight is True

    def test_door_with_filler(self) -> None:
        entries = build_cut_list(
            calculate_framing(
                OpeningSpec(opening_type="door", ro_width=36, ro_height=80, header_tight=True)
            )
        )
        names = [e.name for e in entries]

        assert "Header Filler" in names
        assert "Top Cripples" not in names
        assert "Sill" not in names

    def test_solid_and_lvl_headers_are_single(self) -> None:
        solid = build_cut_list(calculate_framing(OpeningSpec(header_type="solid")))
        lvl = build_cut_list(calculate_framing(OpeningSpec(header_type="lvl")))

        assert solid[2].qty == 1
        assert solid[2].material == "2x10"
        assert lvl[2].material == "LVL 2x10"

    def test_sloped_sill_entry(self) -> None:
        entries = build_cut_list(calculate_framing(OpeningSpec(sill_style="sloped")))
        sill = next(e for e in entries if e.name == "Sloped Sill")
        cripples = next(e for e in entries if e.name == "Bottom Cripples")

        assert sill.material == "Custom"
        assert sill.note == 'Sloped 2" thick'
        assert cripples.note == "Cut to fit under low point of slope"

    def test_none_result_is_empty(self) -> None:
        assert build_cut_list(None) == []


class TestRenderCutListText:
    def test_report_layout(self) -> None:
        spec = OpeningSpec(opening_tag="W-101")
        entries = build_cut_list(calculate_framing(spec))

        text = render_cut_list_text(spec, entries)
        lines = text.split("\n")

        assert lines[0] == "W-101 - WINDOW FRAMING CUT LIST"
        assert lines[1] == "═" * 50
        assert lines[2] == "Type: WINDOW  |  RO: 3' 0\" × 4' 0\"  |  Sill: 3' 0\""
        assert lines[3] == "Wall: 8' 1 1/8\"  |  Header: 2x10  |  Studs: 2x4 @ 16\" OC"
        assert lines[4] == ""
        assert lines[5] == "MEMBER".ljust(20) + "LENGTH".ljust(16) + "QTY".ljust(8) + "MATERIAL"
        assert lines[6] == "─" * 50
        assert lines[7] == "King Studs".ljust(20) + "7' 8 5/8\"".ljust(16) + "2".ljust(8) + "2x4"
        assert text.endswith("\n")

    def test_door_report_has_no_sill(self) -> None:
        spec = OpeningSpec(opening_type="door", ro_width=36, ro_height=80)
        text = render_cut_list_text(spec, build_cut_list(calculate_framing(spec)))

        assert text.startswith("DOOR FRAMING CUT LIST\n")
        assert "Sill:" not in text.split("\n")[2]


class TestSpecFromInputs:
    def test_parses_fractional_strings(self) -> None:
        spec, partial = spec_from_inputs(
            opening_type="door", ro_width="3' 0", ro_height="80 1/2", stud_spacing=24
        )

        assert spec.opening_type == "door"
        assert spec.ro_width == 36
        assert spec.ro_height == 80.5
        assert spec.stud_spacing == 24
        assert partial == []

    def test_reports_partial_fields(self) -> None:
        spec, partial = spec_from_inputs(ro_width="36", ro_height="4' x")
        assert partial == ["ro_height"]
        assert spec.ro_height == 48

    def test_empty_measurement_is_zero(self) -> None:
        spec, _ = spec_from_inputs(ro_width="")
        assert spec.ro_width == 0
        assert calculate_framing(spec) is None

    def test_none_keeps_default(self) -> None:
        spec, _ = spec_from_inputs(ro_width=None)
        assert spec.ro_width == OpeningSpec().ro_width


def _opening_grid() -> list[OpeningSpec]:
    specs = []
    for opening_type in ("window", "door"):
        for header_tight in (False, True):
            for width in (0.5, 24, 36, 71.75, 72, 84, 96, 96.25, 144):
                for height in (1, 24, 48, 80, 82.5, 96, 120):
                    for sill in (0, 2, 36, 60):
                        specs.append(
                            OpeningSpec(
                                opening_type=opening_type,
                                ro_width=width,
                                ro_height=height,
                                sill_height=sill,
                                header_tight=header_tight,
                                top_plate_config="single" if sill == 60 else "double",
                            )
                        )
    return specs


OPENING_GRID = _opening_grid()


class TestFramingInvariants:
    """Checks that hold for every opening, swept over a grid of inputs."""

    def test_jack_never_exceeds_king(self) -> None:
        for spec in OPENING_GRID:
            result = calculate_framing(spec)
            assert result.jack_stud_length <= result.king_stud_length, spec

    def test_filler_and_top_cripples_are_exclusive(self) -> None:
        for spec in OPENING_GRID:
            names = {entry.name for entry in build_cut_list(calculate_framing(spec))}
            assert not {"Header Filler", "Top Cripples"} <= names, spec

    def test_filler_only_when_header_tight(self) -> None:
        for spec in OPENING_GRID:
            names = {entry.name for entry in build_cut_list(calculate_framing(spec))}
            if not spec.header_tight:
                assert "Header Filler" not in names, spec
            else:
                assert "Top Cripples" not in names, spec

    def test_jack_count_follows_span(self) -> None:
        for spec in OPENING_GRID:
            expected = 1 if spec.ro_width <= 72 else 2 if spec.ro_width <= 96 else 3
            assert calculate_framing(spec).jacks_per_side == expected, spec

    @pytest.mark.parametrize("header_size", ["2x6", "2x12", "LVL-11.875", "4x9"])
    def test_clamp_holds_for_every_header(self, header_size: str) -> None:
        for height in range(1, 200, 7):
            result = calculate_framing(
                OpeningSpec(opening_type="door", ro_height=height, header_size=header_size)
            )
            assert result.jack_stud_length <= result.king_stud_length
