"""Tests for number and time rendering helpers."""
from decimal import Decimal

import pytest

from broadcastbot.services.formatting import to_fixed, locale_number, to_exponential, utc_clock_time

from conftest import NOW_MS


class TestToFixed:
    def test_rounds_half_up(self):
        assert to_fixed(1.25, 1) == "1.3"
        assert to_fixed(2, 2) == "2.00"
        assert to_fixed(Decimal("2.5"), 0) == "3"

    @pytest.mark.parametrize("value, places, expected", [
        (0.15, 1, "0.1"),
        (1.005, 2, "1.00"),
        (0.35, 1, "0.3"),
        (0.45, 1, "0.5"),
    ])
    def test_rounds_the_stored_double_not_the_literal(self, value, places, expected):
        assert to_fixed(value, places) == expected

    def test_negative_values_keep_their_sign(self):
        assert to_fixed(-1.25, 1) == "-1.3"
        assert to_fixed(-0.01, 1) == "-0.0"
        assert to_fixed(0.01, 1) == "0.0"

    def test_large_values_use_exponent_form(self):
        assert to_fixed(1e21, 1) == "1e+21"
        assert to_fixed(1e34, 1) == "1e+34"
        assert to_fixed(1e20, 1) == "100000000000000000000.0"

    def test_non_finite(self):
        assert to_fixed(float("inf"), 1) == "Infinity"
        assert to_fixed(float("nan"), 1) == "NaN"


class TestLocaleNumber:
    @pytest.mark.parametrize("value, expected", [
        (1500000, "1,500,000"),
        ("1500000", "1,500,000"),
        (45000.5, "45,000.5"),
        (1234567.8915, "1,234,567.892"),
        (0.1, "0.1"),
        (12, "12"),
        (None, "0"),
        ("", "0"),
        ("abc", "NaN"),
        (float("inf"), "∞"),
    ])
    def test_grouping_and_fraction_digits(self, value, expected):
        assert locale_number(value) == expected


class TestToExponential:
    @pytest.mark.parametrize("value, expected", [
        (0.0000123, "1.23e-5"),
        (1500000, "1.50e+6"),
        (0, "0.00e+0"),
        (None, "0.00e+0"),
        ("abc", "NaN"),
    ])
    def test_unpadded_exponent(self, value, expected):
        assert to_exponential(value, 2) == expected


class TestUtcClockTime:
    def test_hours_minutes_seconds(self):
        assert utc_clock_time(NOW_MS) == "22:13:20"
        assert utc_clock_time(0) == "00:00:00"
