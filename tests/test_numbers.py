from __future__ import annotations

import math

import pytest

from homeplan.utils.formatting import format_money, format_percent, format_rate_date, format_ratio_percent
from homeplan.utils.numbers import is_complete_zip, parse_number, sanitize_numeric, sanitize_zip


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("95,000", 95000.0),
        ("$1,250.50", 1250.5),
        ("7.0%", 7.0),
        ("1.2.3", 1.2),
        ("", 0.0),
        ("abc", 0.0),
        (".", 0.0),
        (None, 0.0),
        (12, 12.0),
        (float("nan"), 0.0),
        (float("inf"), 0.0),
    ],
)
def test_parse_number(raw, expected):
    assert parse_number(raw) == expected


def test_parse_number_ignores_sign():
    # Only digits and dots survive cleaning, so a leading minus is dropped.
    assert parse_number("-500") == 500.0


def test_sanitize_numeric_keeps_first_decimal_point():
    assert sanitize_numeric("1,234.5.6") == "1234.56"
    assert sanitize_numeric("$95k") == "95"
    assert sanitize_numeric("") == ""


def test_sanitize_zip_and_completeness():
    assert sanitize_zip("30309-1234") == "30309"
    assert sanitize_zip("a1b2") == "12"
    assert is_complete_zip("30309")
    assert not is_complete_zip("3030")
    assert not is_complete_zip("3030a")


def test_format_money():
    assert format_money(1234.5) == "$1,235"
    assert format_money(0.4) == "$0"
    assert format_money(-50.2) == "-$50"
    assert format_money(float("nan")) == "$0"
    assert format_money("12") == "$0"


def test_format_percent_and_ratio():
    assert format_percent(6.1234) == "6.12%"
    assert format_percent(7) == "7.00%"
    assert format_percent(math.inf) == "0.00%"
    assert format_ratio_percent(0.28) == "28.00%"


def test_format_rate_date():
    assert format_rate_date("2026-10-09") == "Oct 9, 2026"
    assert format_rate_date("2026-10-09T00:00:00Z") == "Oct 9, 2026"
    assert format_rate_date("not a date") == "Unknown"
    assert format_rate_date(None) == "Unknown"
