"""Unit tests for the imperial measurement engine.

Tests cover:
- Parsing every supported feet/inch/fraction notation
- Partial-parse reporting for unreadable fragments
- Fraction formatting with feet carry and precision
- Measurement arithmetic and number formatting
"""

from __future__ import annotations

import math
import random

import pytest

from sitebook.calculators.fractions import (
    add_measurements,
    feet_to_inches,
    format_number,
    inches_to_feet,
    multiply_measurement,
    parse_measurement,
    parse_to_decimal,
    round_to_fraction,
    subtract_measurements,
    to_fraction_string,
)


class TestParseToDecimal:
    """Test parse_to_decimal across notations."""

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("36", 36.0),
            ("36 1/2", 36.5),
            ("36-1/2", 36.5),
            ("3'", 36.0),
            ("3' 6", 42.0),
            ("3'-6", 42.0),
            ("3ft 6in", 42.0),
            ("3' 6 1/2\"", 42.5),
            ("1/2", 0.5),
            ("3.5", 3.5),
            ('36"', 36.0),
            ("  36  ", 36.0),
            ("-3' 6", -42.0),
        ],
    )
    def test_notations(self, text: str, expected: float) -> None:
        assert parse_to_decimal(text) == pytest.approx(expected)

    def test_numbers_pass_through(self) -> None:
        assert parse_to_decimal(42) == 42
        assert parse_to_decimal(97.125) == 97.125

    @pytest.mark.parametrize("empty", [None, "", "   "])
    def test_empty_input_is_none(self, empty: str | None) -> None:
        """Empty input is distinguishable from zero."""
        assert parse_to_decimal(empty) is None

    def test_zero_is_not_empty(self) -> None:
        assert parse_to_decimal("0") == 0.0

    def test_garbage_falls_back_to_zero(self) -> None:
        assert parse_to_decimal("abc") == 0.0

    def test_zero_denominator_counts_as_zero(self) -> None:
        assert parse_to_decimal("1/0") == 0.0


class TestParseMeasurement:
    """Test the partial flag on parse_measurement."""

    def test_clean_parse_is_not_partial(self) -> None:
        parsed = parse_measurement("3' 6 1/2\"")
        assert parsed.value == pytest.approx(42.5)
        assert parsed.partial is False

    def test_unreadable_string_is_partial(self) -> None:
        parsed = parse_measurement("abc")
        assert parsed.value == 0.0
        assert parsed.partial is True

    def test_unreadable_inches_keep_feet(self) -> None:
        parsed = parse_measurement("3' x")
        assert parsed.value == 36.0
        assert parsed.partial is True

    def test_zero_denominator_is_partial(self) -> None:
        assert parse_measurement("1/0").partial is True

    def test_empty_is_not_partial(self) -> None:
        parsed = parse_measurement("")
        assert parsed.value is None
        assert parsed.partial is False


class TestToFractionString:
    """Test formatting decimal inches for the tape measure."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            (42.5, "3' 6 1/2\""),
            (36, "3' 0\""),
            (0, '0"'),
            (0.5, '1/2"'),
            (4.25, '4 1/4"'),
            (92.625, "7' 8 5/8\""),
            (11.5, '11 1/2"'),
        ],
    )
    def test_default_formatting(self, value: float, expected: str) -> None:
        assert to_fraction_string(value) == expected

    def test_auto_feet_disabled(self) -> None:
        assert to_fraction_string(42.5, auto_feet=False) == '42 1/2"'

    def test_show_feet_below_a_foot(self) -> None:
        assert to_fraction_string(3, show_feet=True) == '3"'

    def test_rounding_carries_into_feet(self) -> None:
        """11.999 inches past two feet rounds up to a whole three feet."""
        assert to_fraction_string(35.999) == "3' 0\""

    def test_negative_values_keep_sign(self) -> None:
        assert to_fraction_string(-6.25) == '-6 1/4"'

    def test_fraction_is_reduced(self) -> None:
        assert to_fraction_string(2.5, precision=16) == '2 1/2"'

    def test_precision_controls_rounding(self) -> None:
        assert to_fraction_string(0.0625, precision=8) == '1/8"'
        assert to_fraction_string(0.0625, precision=16) == '1/16"'

    @pytest.mark.parametrize("value", [None, math.nan])
    def test_missing_value_is_empty(self, value: float | None) -> None:
        assert to_fraction_string(value) == ""

    def test_invalid_precision_raises(self) -> None:
        with pytest.raises(ValueError):
            to_fraction_string(1.0, precision=0)


class TestArithmetic:
    """Test measurement arithmetic helpers."""

    def test_round_to_fraction(self) -> None:
        assert round_to_fraction(1.03, 16) == 1.0
        # Halves round up
        assert round_to_fraction(0.03125, 16) == 0.0625

    def test_add_measurements(self) -> None:
        assert add_measurements("1' 2", "3 1/2") == pytest.approx(17.5)

    def test_subtract_treats_missing_as_zero(self) -> None:
        assert subtract_measurements(None, "2") == -2

    def test_multiply_measurement(self) -> None:
        assert multiply_measurement("1/2", 4) == 2

    def test_unit_conversions(self) -> None:
        assert inches_to_feet(18) == 1.5
        assert feet_to_inches(1.5) == 18

    @pytest.mark.parametrize(
        "value,kwargs,expected",
        [
            (3.5, {}, "3.5"),
            (2.0, {}, "2"),
            (1.234, {"unit": "ft"}, "1.23 ft"),
            (1.23456, {"decimals": 3}, "1.235"),
            (None, {}, ""),
        ],
    )
    def test_format_number(self, value, kwargs, expected) -> None:
        assert format_number(value, **kwargs) == expected


class TestParsingIsTotal:
    """parse_to_decimal never raises and never returns a non-finite number."""

    @pytest.mark.parametrize(
        "text",
        [
            "1" + "0" * 400 + "/1",
            "1/" + "9" * 5000,
            "9" * 5000,
            "9" * 400 + "'",
            "9" * 400 + "' 6",
            "3' " + "7" * 400 + " 1/2",
            "1/0",
            "0/0",
            "''''",
            "-",
            "--3",
            "3'/'",
            "1/2/3",
            "ft in",
            "3 ft 6 in 1/2 extra",
            "\x00\t\n",
            "½",
            "３６",
        ],
    )
    def test_malformed_input(self, text: str) -> None:
        parsed = parse_measurement(text)

        assert parsed.value is not None
        assert math.isfinite(parsed.value)
        to_fraction_string(parsed.value)

    def test_overlong_digits_are_partial_zero(self) -> None:
        assert parse_measurement("1/" + "9" * 5000) == parse_measurement("x")
        assert parse_measurement("9" * 400).value == 0.0
        assert parse_measurement("9" * 400).partial is True

    def test_random_fragments(self) -> None:
        rng = random.Random(20260117)
        alphabet = "0123456789 '\"/-.+ftinchesx’\t"

        for _ in range(3000):
            text = "".join(rng.choice(alphabet) for _ in range(rng.randint(0, 24)))
            value = parse_to_decimal(text)
            if text.strip():
                assert value is not None and math.isfinite(value), text
            else:
                assert value is None

    @pytest.mark.parametrize("value", [math.inf, -math.inf])
    def test_infinity_formats_as_empty(self, value: float) -> None:
        assert to_fraction_string(value) == ""


class TestRoundTrip:
    """Formatting to sixteenths and parsing back lands within 1/16"."""

    def test_every_sixteenth_up_to_300(self) -> None:
        for units in range(300 * 16 + 1):
            decimal = units / 16
            assert parse_to_decimal(to_fraction_string(decimal)) == decimal, decimal

    def test_arbitrary_decimals_up_to_300(self) -> None:
        rng = random.Random(7)
        samples = [0.0, 0.03, 11.97, 11.999, 35.999, 299.99, 300.0]
        samples += [rng.uniform(0, 300) for _ in range(2000)]

        for decimal in samples:
            text = to_fraction_string(decimal)
            assert abs(parse_to_decimal(text) - decimal) <= 1 / 16, (decimal, text)

    @pytest.mark.parametrize("auto_feet", [True, False])
    def test_with_and_without_feet(self, auto_feet: bool) -> None:
        for units in range(0, 300 * 16 + 1, 5):
            decimal = units / 16
            text = to_fraction_string(decimal, auto_feet=auto_feet)
            assert parse_to_decimal(text) == decimal, text
