"""Imperial measurement parsing, formatting, and arithmetic.

Decimal inches are the canonical unit for every calculation. Fractional
strings such as ``3' 6 1/2"`` are only ever a projection of that value,
parsed on the way in and formatted on the way out.

Parsing is total: no input raises. Empty input yields None so callers can
tell "no value" apart from zero, and unparseable numeric fragments fall
back to 0 for that fragment. ``parse_measurement`` reports when such a
fallback happened so calculators can warn instead of silently computing
with zero.

Example:
    >>> parse_to_decimal("3' 6 1/2\\"")
    42.5
    >>> to_fraction_string(42.5)
    '3\\' 6 1/2"'
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Union

Measurement = Union[str, int, float, None]

DEFAULT_PRECISION = 16

_FEET_MARKER = re.compile(r"['’]|ft")
_FRACTION = re.compile(r"(\d+)\s*/\s*(\d+)")
_LEADING_NUMBER = re.compile(r"^\s*([-+]?(?:\d+\.?\d*|\.\d+))")
_INCH_SUFFIX = re.compile(r'\s*(?:"|in(?:ch(?:es)?)?)?\s*$')


@dataclass(frozen=True)
class ParsedMeasurement:
    """Result of parsing a measurement with a confidence flag.

    Attributes:
        value: Decimal inches, or None for empty input.
        partial: True when at least one fragment could not be read and
            was treated as 0.
    """

    value: float | None
    partial: bool = False


def _leading_float(text: str) -> tuple[float | None, bool]:
    """Read the numeric prefix of a fragment.

    Returns the number (None if there is none) and whether the whole
    fragment was consumed apart from an optional inch suffix.
    """
    match = _LEADING_NUMBER.match(text)
    if match is None:
        return None, False
    rest = text[match.end():]
    number = float(match.group(1))
    if not math.isfinite(number):
        return None, False
    return number, _INCH_SUFFIX.fullmatch(rest) is not None


def _read_fraction(numerator: str, denominator: str) -> float | None:
    """Divide two digit runs; None when the quotient is not a usable number."""
    # float() has no digit limit; overlong runs become inf
    top, bottom = float(numerator), float(denominator)
    if bottom == 0 or not math.isfinite(top) or not math.isfinite(bottom):
        return None
    quotient = top / bottom
    return quotient if math.isfinite(quotient) else None


def _parse_inches(text: str) -> tuple[float, float, bool]:
    """Parse an inches fragment that may contain a simple fraction.

    Returns (whole, fraction, clean).
    """
    text = text.strip()
    if not text:
        return 0.0, 0.0, True

    fraction_match = _FRACTION.search(text)
    if fraction_match:
        fraction = _read_fraction(fraction_match.group(1), fraction_match.group(2))

        whole_text = text[:fraction_match.start()].strip().rstrip("- \t")
        tail = text[fraction_match.end():]
        clean = fraction is not None and _INCH_SUFFIX.fullmatch(tail) is not None
        if not whole_text:
            return 0.0, fraction or 0.0, clean
        whole, whole_clean = _leading_float(whole_text)
        return whole or 0.0, fraction or 0.0, clean and whole_clean and whole is not None

    whole, clean = _leading_float(text)
    return whole or 0.0, 0.0, clean and whole is not None


def parse_measurement(value: Measurement) -> ParsedMeasurement:
    """Parse a measurement and report whether any fragment fell back to 0.

    Accepts numbers (returned as-is) and strings in feet/inch/fraction
    notation: ``36``, ``36 1/2``, ``36-1/2``, ``3'``, ``3' 6``, ``3'-6``,
    ``3ft 6in``, ``3' 6 1/2"``, ``1/2``, ``3.5``.

    Args:
        value: Raw user input.

    Returns:
        ParsedMeasurement with the decimal inches (None for empty input).
    """
    if value is None:
        return ParsedMeasurement(None)
    if isinstance(value, bool):
        return ParsedMeasurement(float(value), partial=True)
    if isinstance(value, (int, float)):
        return ParsedMeasurement(value)

    text = str(value).strip().lower()
    if not text:
        return ParsedMeasurement(None)

    if text.endswith('"'):
        text = text[:-1].rstrip()

    negative = text.startswith("-")
    if negative:
        text = text[1:].lstrip()
        if not text:
            return ParsedMeasurement(0.0, partial=True)

    if _FEET_MARKER.search(text):
        parts = _FEET_MARKER.split(text, maxsplit=1)
        feet, feet_clean = _leading_float(parts[0])
        feet_clean = feet_clean and feet is not None
        inch_text = parts[1].strip().lstrip("-").strip() if len(parts) > 1 else ""
        inches, fraction, inches_clean = _parse_inches(inch_text)
        total = (feet or 0.0) * 12 + inches + fraction
        partial = not (feet_clean and inches_clean)
    else:
        inches, fraction, clean = _parse_inches(text)
        total = inches + fraction
        partial = not clean

    if not math.isfinite(total):
        return ParsedMeasurement(0.0, partial=True)
    return ParsedMeasurement(-total if negative else total, partial)


def parse_to_decimal(value: Measurement) -> float | None:
    """Parse user input to decimal inches.

    Never raises. Returns None for empty or whitespace-only input; any
    unreadable numeric fragment counts as 0.

    Args:
        value: Number or fractional string.

    Returns:
        Decimal inches, or None when there is no value.
    """
    return parse_measurement(value).value


def round_to_fraction(decimal: float, precision: int = DEFAULT_PRECISION) -> float:
    """Round a decimal to the nearest 1/precision, halves rounding up."""
    return math.floor(decimal * precision + 0.5) / precision


def to_fraction_string(
    decimal: float | None,
    show_feet: bool = False,
    auto_feet: bool = True,
    precision: int = DEFAULT_PRECISION,
) -> str:
    """Format decimal inches as a feet-inch-fraction string.

    Args:
        decimal: Decimal inches. None, NaN or infinity formats as an empty string.
        show_feet: Force feet notation.
        auto_feet: Use feet notation for magnitudes of 12 inches or more.
        precision: Fraction denominator (16 rounds to the nearest 1/16").

    Returns:
        A string such as ``3' 6 1/2"``, ``42 1/2"``, ``3' 0"`` or ``0"``.

    Raises:
        ValueError: If precision is not a positive integer.
    """
    if precision < 1:
        raise ValueError(f"precision must be a positive integer, got {precision}")
    if decimal is None or not math.isfinite(decimal):
        return ""

    negative = decimal < 0
    magnitude = abs(decimal)
    use_feet = show_feet or (auto_feet and magnitude >= 12)

    feet = 0
    inches = magnitude
    if use_feet:
        feet = math.floor(magnitude / 12)
        inches = magnitude - feet * 12

    units = math.floor(inches * precision + 0.5)
    whole_inches, numerator = divmod(units, precision)
    if use_feet and whole_inches >= 12:
        feet += whole_inches // 12
        whole_inches %= 12

    result = "-" if negative else ""

    if use_feet and feet > 0:
        result += f"{feet}'"
        if whole_inches > 0 or numerator > 0:
            result += " "

    if whole_inches > 0:
        result += str(whole_inches)

    if numerator > 0:
        divisor = math.gcd(numerator, precision)
        fraction = f"{numerator // divisor}/{precision // divisor}"
        result += f" {fraction}" if whole_inches > 0 else fraction

    if whole_inches > 0 or numerator > 0:
        result += '"'
    elif use_feet and feet > 0:
        result += ' 0"'
    else:
        result = '0"'

    return result.strip()


def add_measurements(a: Measurement, b: Measurement) -> float:
    """Sum two measurements in decimal inches; absent values count as 0."""
    return (parse_to_decimal(a) or 0) + (parse_to_decimal(b) or 0)


def subtract_measurements(a: Measurement, b: Measurement) -> float:
    """Subtract b from a in decimal inches; absent values count as 0."""
    return (parse_to_decimal(a) or 0) - (parse_to_decimal(b) or 0)


def multiply_measurement(measurement: Measurement, multiplier: float) -> float:
    """Scale a measurement; an absent value counts as 0."""
    return (parse_to_decimal(measurement) or 0) * multiplier


def inches_to_feet(inches: float) -> float:
    return inches / 12


def feet_to_inches(feet: float) -> float:
    return feet * 12


def format_number(value: float | None, decimals: int = 2, unit: str = "") -> str:
    """Format a number with trailing fractional zeros removed.

    Args:
        value: Number to format. None or NaN formats as an empty string.
        decimals: Maximum decimal places.
        unit: Optional unit appended after a space.
    """
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return ""
    formatted = f"{value:.{decimals}f}"
    if "." in formatted:
        formatted = formatted.rstrip("0").rstrip(".")
    return f"{formatted} {unit}" if unit else formatted
