from __future__ import annotations

import math

BREAK_EVEN_SOLVER_ITERATIONS = 30
BREAK_EVEN_RATE_FLOOR = 0.1
BREAK_EVEN_RATE_CEILING = 15.0


def monthly_payment(principal: float, annual_rate_pct: float, years: float = 30) -> float:
    """Fully amortizing monthly payment.

    ``annual_rate_pct`` is a nominal percent (``6.5`` for 6.5%). A monthly rate
    of exactly zero degrades to straight-line ``principal / months``. The
    function is total over finite inputs: a non-positive term yields ``0.0``
    and a growth factor too large for a float yields the interest-only limit.
    """
    if not all(math.isfinite(x) for x in (principal, annual_rate_pct, years)):
        return 0.0
    n = years * 12
    if n <= 0:
        return 0.0
    r = annual_rate_pct / 100 / 12
    if r == 0:
        return principal / n
    try:
        factor = math.pow(1 + r, n)
    except (OverflowError, ValueError):
        return principal * r
    if not math.isfinite(factor):
        return principal * r
    if factor == 1.0:
        # Rate too small to register in float precision.
        return principal / n
    return principal * ((r * factor) / (factor - 1))


def solve_rate_for_break_even(
    balance: float,
    current_rate: float,
    closing_costs: float,
    target_months: float,
    years: float = 30,
) -> float | None:
    """
    Highest annual rate (percent) whose payment savings recoup ``closing_costs``
    within ``target_months``.

    Bisection over ``[0.1, min(current_rate, 15)]`` for a fixed number of
    iterations. Returns the last midpoint that met the target payment, or
    ``None`` when inputs are non-positive or no midpoint qualified.
    """
    if balance <= 0 or current_rate <= 0 or closing_costs <= 0 or target_months <= 0:
        return None
    current_payment = monthly_payment(balance, current_rate, years)
    required_savings = closing_costs / target_months
    target_payment = current_payment - required_savings
    if target_payment <= 0:
        return None

    low = BREAK_EVEN_RATE_FLOOR
    high = min(current_rate, BREAK_EVEN_RATE_CEILING)
    best: float | None = None
    for _ in range(BREAK_EVEN_SOLVER_ITERATIONS):
        mid = (low + high) / 2
        if monthly_payment(balance, mid, years) > target_payment:
            high = mid
        else:
            best = mid
            low = mid
    return best
