from __future__ import annotations

import math

import pytest

from homeplan.calculators.amortization import monthly_payment, solve_rate_for_break_even


def test_monthly_payment_known_value():
    assert monthly_payment(320_000, 7.1, 30) == pytest.approx(2150.50, abs=0.05)
    assert monthly_payment(320_000, 6.2, 30) == pytest.approx(1959.90, abs=0.05)


@pytest.mark.parametrize("principal,years", [(120_000, 30), (50_000, 15), (0, 10)])
def test_zero_rate_is_straight_line(principal, years):
    assert monthly_payment(principal, 0, years) == pytest.approx(principal / (years * 12))


@pytest.mark.parametrize("principal", [0, 1, 250_000])
@pytest.mark.parametrize("rate", [0, 0.001, 3.5, 12, 40])
def test_monthly_payment_non_negative(principal, rate):
    assert monthly_payment(principal, rate, 30) >= 0


def test_monthly_payment_is_total():
    assert monthly_payment(100_000, 5, 0) == 0.0
    assert monthly_payment(100_000, float("nan"), 30) == 0.0
    # Absurd rate: growth factor overflows, payment tends to interest-only.
    assert math.isfinite(monthly_payment(100_000, 1e9, 30))


def test_break_even_rate_meets_target():
    balance, current, closing, months = 320_000, 7.1, 6_500, 24
    rate = solve_rate_for_break_even(balance, current, closing, months)
    assert rate is not None
    assert 0.1 <= rate <= current
    savings = monthly_payment(balance, current) - monthly_payment(balance, rate)
    assert savings >= closing / months - 1e-6


def test_break_even_rate_unreachable():
    # Tiny balance: even the floor rate can't recoup the costs in one month.
    assert solve_rate_for_break_even(10_000, 7.0, 50_000, 1) is None


@pytest.mark.parametrize(
    "args",
    [(0, 7, 5000, 24), (300_000, 0, 5000, 24), (300_000, 7, 0, 24), (300_000, 7, 5000, 0)],
)
def test_break_even_rate_needs_positive_inputs(args):
    assert solve_rate_for_break_even(*args) is None
