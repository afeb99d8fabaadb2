"""Lumber dimension lookups for the framing calculators.

Nominal sizes map to actual (dressed) dimensions in inches. Every framing
calculation resolves member sizes through LUMBER_DIMENSIONS.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Literal, Mapping, NamedTuple


class LumberSize(NamedTuple):
    """Actual cross-section of a nominal lumber size, in inches."""

    width: float
    height: float


LUMBER_DIMENSIONS: Mapping[str, LumberSize] = MappingProxyType({
    "2x2": LumberSize(1.5, 1.5),
    "2x3": LumberSize(1.5, 2.5),
    "2x4": LumberSize(1.5, 3.5),
    "2x6": LumberSize(1.5, 5.5),
    "2x8": LumberSize(1.5, 7.25),
    "2x10": LumberSize(1.5, 9.25),
    "2x12": LumberSize(1.5, 11.25),
    "1x2": LumberSize(0.75, 1.5),
    "1x3": LumberSize(0.75, 2.5),
    "1x4": LumberSize(0.75, 3.5),
    "1x6": LumberSize(0.75, 5.5),
    "1x8": LumberSize(0.75, 7.25),
    "1x10": LumberSize(0.75, 9.25),
    "1x12": LumberSize(0.75, 11.25),
    "LVL-9.25": LumberSize(1.75, 9.25),
    "LVL-11.25": LumberSize(1.75, 11.25),
    "LVL-11.875": LumberSize(1.75, 11.875),
    "LVL-14": LumberSize(1.75, 14.0),
    "LVL-16": LumberSize(1.75, 16.0),
})

# Wall heights measured to the top of a double top plate
WALL_HEIGHTS: Mapping[str, float] = MappingProxyType({
    "8ft": 97.125,
    "9ft": 109.125,
    "10ft": 121.125,
})


def get_lumber_dimension(
    nominal: str,
    dimension: Literal["width", "height"] = "height",
) -> float:
    """Look up the actual dimension of a nominal lumber size.

    Args:
        nominal: Nominal size key such as "2x4" or "LVL-9.25".
        dimension: Which side of the cross-section to return.

    Returns:
        The actual dimension in inches, or 0 when the size is not in the
        table. Callers treat 0 as unresolvable.
    """
    lumber = LUMBER_DIMENSIONS.get(nominal)
    if lumber is None:
        return 0
    return {"width": lumber.width, "height": lumber.height}.get(dimension, 0)


def is_known_size(nominal: str) -> bool:
    """Return True when the nominal size resolves through the table."""
    return nominal in LUMBER_DIMENSIONS
