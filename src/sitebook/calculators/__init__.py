"""Imperial-measurement construction calculators.

This package provides the measurement engine, lumber tables, the window and
door framing calculator, and the saved-openings store.
"""

from sitebook.calculators.fractions import (
    ParsedMeasurement,
    parse_measurement,
    parse_to_decimal,
    to_fraction_string,
)
from sitebook.calculators.framing import (
    CutListEntry,
    FramingResult,
    FramingWarning,
    OpeningSpec,
    build_cut_list,
    calculate_framing,
    render_cut_list_text,
)
from sitebook.calculators.lumber import LUMBER_DIMENSIONS, WALL_HEIGHTS, get_lumber_dimension

__all__ = [
    "CutListEntry",
    "FramingResult",
    "FramingWarning",
    "LUMBER_DIMENSIONS",
    "OpeningSpec",
    "ParsedMeasurement",
    "WALL_HEIGHTS",
    "build_cut_list",
    "calculate_framing",
    "get_lumber_dimension",
    "parse_measurement",
    "parse_to_decimal",
    "render_cut_list_text",
    "to_fraction_string",
]
