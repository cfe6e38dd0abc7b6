from __future__ import annotations

import math

import pytest

from homeplan.calculators.refinance import (
    RefiParams,
    calculate_refinance,
    refi_recommendation,
    savings_timeline,
)


def test_refi_scenario():
    r = calculate_refinance(RefiParams(balance=320_000, current_rate=7.1, new_rate=6.2, closing_costs=6_500))

    assert r.current_payment == pytest.approx(2152, abs=3)
    assert r.new_payment == pytest.approx(1960, abs=3)
    assert r.monthly_savings == pytest.approx(192, abs=3)
    assert r.break_even_months == math.ceil(6_500 / r.monthly_savings)
    assert r.achievable


def test_higher_rate_means_no_savings():
    r = calculate_refinance(RefiParams(balance=300_000, current_rate=5.0, new_rate=6.5, closing_costs=4_000))
    assert r.monthly_savings == 0
    assert r.break_even_months == 0


def test_target_mode_solves_rate():
    r = calculate_refinance(
        RefiParams(
            balance=320_000,
            current_rate=7.1,
            new_rate=99.0,
            closing_costs=6_500,
            target_mode=True,
            target_months=24,
        )
    )
    assert r.target_rate is not None
    assert r.new_rate == r.target_rate
    assert r.monthly_savings >= 6_500 / 24 - 1e-6
    assert r.break_even_months == math.ceil(6_500 / r.monthly_savings)
    assert 0 < r.break_even_months <= 25


def test_target_mode_not_achievable_reports_zeros():
    r = calculate_refinance(
        RefiParams(
            balance=10_000,
            current_rate=7.0,
            new_rate=3.0,
            closing_costs=50_000,
            target_mode=True,
            target_months=1,
        )
    )
    assert not r.achievable
    assert r.new_rate == 0
    assert r.new_payment == 0
    assert r.monthly_savings == 0
    assert r.break_even_months == 0
    assert r.current_payment > 0


def test_non_finite_inputs_do_not_raise():
    r = calculate_refinance(RefiParams(balance=float("nan"), current_rate=7, new_rate=6, closing_costs=float("inf")))
    assert r.balance == 0
    assert r.break_even_months == 0


def test_savings_timeline():
    points = savings_timeline(200, 5_000)
    assert [p.months for p in points] == [12, 24, 36, 60]
    assert points[0].gross == 2_400
    assert points[0].net == -2_600
    assert points[-1].net == 7_000


@pytest.mark.parametrize(
    "months,label",
    [(0, "Wait"), (12, "Strong candidate"), (24, "Strong candidate"), (36, "Moderate"), (48, "Moderate"), (60, "Long horizon")],
)
def test_refi_recommendation(months, label):
    balance = 300_000
    # Closing costs chosen so break-even rounds up to `months`.
    base = calculate_refinance(RefiParams(balance=balance, current_rate=7.0, new_rate=6.0, closing_costs=1))
    closing = base.monthly_savings * (months - 0.5) if months else 0
    r = calculate_refinance(RefiParams(balance=balance, current_rate=7.0, new_rate=6.0, closing_costs=closing))
    assert refi_recommendation(r).label == label
