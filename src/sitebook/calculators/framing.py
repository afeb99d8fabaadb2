"""Window and door rough-opening framing calculator.

Derives a complete cut list for framing a rough opening:
- King studs
- Jack studs (trimmers)
- Header
- Header filler or top cripples
- Sill and bottom cripples (windows only)

The calculation is a pure function of an OpeningSpec. Results are memoised
on the spec, and the cut list is rebuilt from scratch on every call, so
nothing is patched in place. Lengths stay in decimal inches until the cut
list is assembled.

Example:
    >>> spec = OpeningSpec(opening_type="window", ro_width=36, ro_height=48)
    >>> result = calculate_framing(spec)
    >>> [entry.name for entry in build_cut_list(result)]
    ['King Studs', 'Jack Studs', 'Header', 'Sill', 'Bottom Cripples']
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any, Literal

from sitebook.calculators.fractions import (
    DEFAULT_PRECISION,
    parse_measurement,
    to_fraction_string,
)
from sitebook.calculators.lumber import get_lumber_dimension, is_known_size
from sitebook.logging import get_logger

logger = get_logger(__name__)

OpeningType = Literal["window", "door", "pass-through"]
HeaderType = Literal["built-up", "solid", "lvl"]
TopPlateConfig = Literal["single", "double"]
SillStyle = Literal["flat", "double", "sloped"]

BOTTOM_PLATE_THICKNESS = 1.5
SINGLE_JACK_MAX_SPAN = 72
DOUBLE_JACK_MAX_SPAN = 96
REPORT_RULE_WIDTH = 50


@dataclass(frozen=True)
class OpeningSpec:
    """Inputs for one rough opening, all lengths in decimal inches.

    Attributes:
        opening_type: window, door, or pass-through.
        ro_width: Rough opening width.
        ro_height: Rough opening height.
        sill_height: Floor to bottom of the rough opening (windows).
        wall_height: Floor to top of the top plate(s).
        header_size: Nominal header size key into the lumber table.
        header_type: built-up (two boards plus 1/2" ply), solid, or lvl.
        top_plate_config: single or double top plate.
        stud_spacing: Layout spacing on center, 16 or 24.
        sill_style: flat, double, or sloped.
        sloped_sill_thickness: Thickness of a sloped sill.
        stud_material: Nominal stud size key into the lumber table.
        header_tight: Run the header tight to the top plate with a flat filler.
        finish_floor: Finish floor thickness added to door jacks.
        opening_tag: Mark from the plans, e.g. "W-101".
    """

    opening_type: OpeningType = "window"
    ro_width: float = 36
    ro_height: float = 48
    sill_height: float = 36
    wall_height: float = 97.125
    header_size: str = "2x10"
    header_type: HeaderType = "built-up"
    top_plate_config: TopPlateConfig = "double"
    stud_spacing: int = 16
    sill_style: SillStyle = "flat"
    sloped_sill_thickness: float = 2
    stud_material: str = "2x4"
    header_tight: bool = False
    finish_floor: float = 0
    opening_tag: str = ""


@dataclass(frozen=True)
class FramingWarning:
    """Advisory produced alongside a calculation ("warning" or "info")."""

    type: Literal["warning", "info"]
    message: str


@dataclass(frozen=True)
class FramingResult:
    """Every derived member dimension for one opening, in decimal inches."""

    spec: OpeningSpec
    king_stud_length: float
    jack_stud_length: float
    header_length: float
    header_depth: float
    header_gap: float
    header_filler_length: float
    top_cripple_length: float
    top_cripple_qty: int
    sill_length: float
    sill_thickness: float
    bottom_cripple_length: float
    bottom_cripple_qty: int
    jacks_per_side: int
    warnings: tuple[FramingWarning, ...] = ()


@dataclass(frozen=True)
class CutListEntry:
    """One line of a cut list. Lengths are already formatted for the saw."""

    name: str
    length: str
    qty: int
    material: str
    note: str | None = None
    highlight: bool = False


@dataclass
class _Advisories:
    items: list[FramingWarning] = field(default_factory=list)

    def warn(self, message: str) -> None:
        self.items.append(FramingWarning("warning", message))

    def info(self, message: str) -> None:
        self.items.append(FramingWarning("info", message))


def jacks_per_side(ro_width: float) -> int:
    """Number of jack studs on each side for a given span."""
    if ro_width > DOUBLE_JACK_MAX_SPAN:
        return 3
    if ro_width > SINGLE_JACK_MAX_SPAN:
        return 2
    return 1


def _sill_thickness(spec: OpeningSpec) -> float:
    if spec.sill_style == "double":
        return 3.0
    if spec.sill_style == "sloped":
        return spec.sloped_sill_thickness or 2
    return 1.5


def _cripple_qty(ro_width: float, stud_width: float, stud_spacing: float) -> int:
    if stud_spacing <= 0:
        return 0
    return max(0, math.floor((ro_width - stud_width) / stud_spacing))


@lru_cache(maxsize=256)
def calculate_framing(spec: OpeningSpec) -> FramingResult | None:
    """Derive every framing member for a rough opening.

    Args:
        spec: Immutable opening specification.

    Returns:
        The full set of member dimensions and advisories, or None when the
        rough opening width, height, or wall height is missing or zero.
    """
    if not spec.ro_width or not spec.ro_height or not spec.wall_height:
        return None

    advisories = _Advisories()
    is_window = spec.opening_type == "window"

    for label, nominal in (("header", spec.header_size), ("stud", spec.stud_material)):
        if not is_known_size(nominal):
            advisories.warn(f"Unknown {label} size '{nominal}' - dimension treated as 0.")

    for label, value in (
        ("Rough opening width", spec.ro_width),
        ("Rough opening height", spec.ro_height),
        ("Sill height", spec.sill_height),
        ("Wall height", spec.wall_height),
        ("Finish floor", spec.finish_floor),
    ):
        if value < 0:
            advisories.warn(f"{label} is negative; results are not buildable.")

    top_plate_thickness = 3.0 if spec.top_plate_config == "double" else 1.5
    header_depth = get_lumber_dimension(spec.header_size, "height")
    sill_thickness = _sill_thickness(spec)
    # Stud depth sets how far each jack pushes the header past the opening
    stud_width = get_lumber_dimension(spec.stud_material, "height")
    jacks = jacks_per_side(spec.ro_width)

    king_stud_length = spec.wall_height - BOTTOM_PLATE_THICKNESS - top_plate_thickness

    if is_window:
        jack_stud_length = (
            spec.sill_height + spec.ro_height + sill_thickness - BOTTOM_PLATE_THICKNESS
        )
    else:
        jack_stud_length = spec.ro_height + spec.finish_floor
    jack_stud_length = min(jack_stud_length, king_stud_length)

    header_length = spec.ro_width + stud_width * 2 * jacks
    header_gap = king_stud_length - jack_stud_length - header_depth
    gap_cripple_qty = _cripple_qty(spec.ro_width, stud_width, spec.stud_spacing)

    top_cripple_length = 0.0
    top_cripple_qty = 0
    header_filler_length = 0.0
    if header_gap > 0:
        if spec.header_tight:
            header_filler_length = header_length
        else:
            top_cripple_length = header_gap
            top_cripple_qty = gap_cripple_qty

    sill_length = spec.ro_width if is_window else 0.0
    bottom_cripple_length = 0.0
    bottom_cripple_qty = 0
    if is_window:
        bottom_cripple_length = max(
            0.0, spec.sill_height - BOTTOM_PLATE_THICKNESS - sill_thickness
        )
        if bottom_cripple_length > 0:
            bottom_cripple_qty = gap_cripple_qty

    if spec.ro_width > DOUBLE_JACK_MAX_SPAN:
        advisories.warn("Span exceeds 8'. Engineering may be required for header sizing.")
    if spec.header_tight and header_gap > 0 and gap_cripple_qty > 2:
        advisories.info(
            f"Running header tight saves {gap_cripple_qty} cripples "
            f"({to_fraction_string(header_gap)} each)."
        )

    result = FramingResult(
        spec=spec,
        king_stud_length=king_stud_length,
        jack_stud_length=jack_stud_length,
        header_length=header_length,
        header_depth=header_depth,
        header_gap=header_gap,
        header_filler_length=header_filler_length,
        top_cripple_length=top_cripple_length,
        top_cripple_qty=top_cripple_qty,
        sill_length=sill_length,
        sill_thickness=sill_thickness,
        bottom_cripple_length=bottom_cripple_length,
        bottom_cripple_qty=bottom_cripple_qty,
        jacks_per_side=jacks,
        warnings=tuple(advisories.items),
    )

    logger.debug(
        "framing_calculated",
        opening_type=spec.opening_type,
        ro_width=spec.ro_width,
        ro_height=spec.ro_height,
        jacks_per_side=jacks,
        warning_count=len(result.warnings),
    )
    return result


def _header_material(spec: OpeningSpec) -> str:
    if spec.header_type == "built-up":
        return f'{spec.header_size} + 1/2" ply'
    if spec.header_type == "lvl":
        return f"LVL {spec.header_size}"
    return spec.header_size


def build_cut_list(
    result: FramingResult | None,
    precision: int = DEFAULT_PRECISION,
) -> list[CutListEntry]:
    """Project a framing result into cut-list entries.

    Args:
        result: Output of calculate_framing. None yields an empty list.
        precision: Fraction denominator for formatted lengths.

    Returns:
        Cut-list entries in framing order.
    """
    if result is None:
        return []

    spec = result.spec

    def fmt(value: float) -> str:
        return to_fraction_string(value, precision=precision)

    entries = [
        CutListEntry("King Studs", fmt(result.king_stud_length), 2, spec.stud_material),
        CutListEntry(
            "Jack Studs",
            fmt(result.jack_stud_length),
            result.jacks_per_side * 2,
            spec.stud_material,
        ),
        CutListEntry(
            "Header",
            fmt(result.header_length),
            2 if spec.header_type == "built-up" else 1,
            _header_material(spec),
            highlight=True,
        ),
    ]

    if spec.header_tight and result.header_filler_length > 0:
        entries.append(
            CutListEntry(
                "Header Filler",
                fmt(result.header_filler_length),
                1,
                spec.stud_material,
                note="Flat on top of header",
            )
        )

    if result.top_cripple_qty > 0 and result.top_cripple_length > 0:
        entries.append(
            CutListEntry(
                "Top Cripples",
                fmt(result.top_cripple_length),
                result.top_cripple_qty,
                spec.stud_material,
            )
        )

    if spec.opening_type == "window" and result.sill_length > 0:
        sloped = spec.sill_style == "sloped"
        entries.append(
            CutListEntry(
                "Sloped Sill" if sloped else "Sill",
                fmt(result.sill_length),
                2 if spec.sill_style == "double" else 1,
                "Custom" if sloped else spec.stud_material,
                note=f"Sloped {fmt(spec.sloped_sill_thickness)} thick" if sloped else None,
            )
        )

    if (
        spec.opening_type == "window"
        and result.bottom_cripple_qty > 0
        and result.bottom_cripple_length > 0
    ):
        entries.append(
            CutListEntry(
                "Bottom Cripples",
                fmt(result.bottom_cripple_length),
                result.bottom_cripple_qty,
                spec.stud_material,
                note="Cut to fit under low point of slope" if spec.sill_style == "sloped" else None,
            )
        )

    return entries


def _plain_number(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


def render_cut_list_text(
    spec: OpeningSpec,
    entries: list[CutListEntry],
    precision: int = DEFAULT_PRECISION,
) -> str:
    """Render the fixed-width plain-text cut list used for copy and paste.

    Args:
        spec: Opening the cut list belongs to.
        entries: Cut-list entries from build_cut_list.
        precision: Fraction denominator for the summary lines.

    Returns:
        The report text, one row per entry, newline terminated.
    """

    def fmt(value: float) -> str:
        return to_fraction_string(value, precision=precision)

    opening = spec.opening_type.upper()
    tag = f"{spec.opening_tag} - " if spec.opening_tag else ""

    text = f"{tag}{opening} FRAMING CUT LIST\n"
    text += "═" * REPORT_RULE_WIDTH + "\n"
    text += f"Type: {opening}  |  RO: {fmt(spec.ro_width)} × {fmt(spec.ro_height)}"
    if spec.opening_type == "window":
        text += f"  |  Sill: {fmt(spec.sill_height)}"
    text += (
        f"\nWall: {fmt(spec.wall_height)}  |  Header: {spec.header_size}"
        f'  |  Studs: {spec.stud_material} @ {_plain_number(spec.stud_spacing)}" OC\n\n'
    )
    text += "MEMBER".ljust(20) + "LENGTH".ljust(16) + "QTY".ljust(8) + "MATERIAL\n"
    text += "─" * REPORT_RULE_WIDTH + "\n"
    for entry in entries:
        text += (
            f"{entry.name.ljust(20)}{entry.length.ljust(16)}"
            f"{str(entry.qty).ljust(8)}{entry.material}\n"
        )
    return text


_MEASUREMENT_FIELDS = (
    "ro_width",
    "ro_height",
    "sill_height",
    "wall_height",
    "sloped_sill_thickness",
    "finish_floor",
)


def spec_from_inputs(**inputs: Any) -> tuple[OpeningSpec, list[str]]:
    """Build an OpeningSpec from raw form input.

    Measurement fields accept numbers or fractional strings. An empty
    measurement field parses to 0, which calculate_framing treats as
    missing for the required dimensions. Keys left out keep their defaults.

    Args:
        **inputs: OpeningSpec field names mapped to raw values.

    Returns:
        The spec and the names of measurement fields that only parsed
        partially (some fragment was unreadable and counted as 0).
    """
    values: dict[str, Any] = {}
    partial_fields: list[str] = []
    for name, raw in inputs.items():
        if raw is None:
            continue
        if name in _MEASUREMENT_FIELDS:
            parsed = parse_measurement(raw)
            if parsed.partial:
                partial_fields.append(name)
            values[name] = parsed.value if parsed.value is not None else 0.0
        else:
            values[name] = raw
    if partial_fields:
        logger.debug("framing_inputs_partially_parsed", fields=partial_fields)
    return OpeningSpec(**values), partial_fields
