from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Optional

from homeplan.calculators.amortization import monthly_payment, solve_rate_for_break_even

SAVINGS_HORIZONS = (12, 24, 36, 60)


@dataclass(frozen=True)
class RefiParams:
    balance: float
    current_rate: float  # annual percent
    new_rate: float  # resolved new rate; ignored in target mode
    closing_costs: float
    amortization_years: int = 30
    target_mode: bool = False
    target_months: float = 0.0


@dataclass(frozen=True)
class RefiResult:
    balance: float
    current_rate: float
    new_rate: float
    closing_costs: float
    amortization_years: int
    target_mode: bool
    target_months: float
    target_rate: Optional[float]
    current_payment: float
    new_payment: float
    monthly_savings: float
    break_even_months: int

    @property
    def achievable(self) -> bool:
        """False only for a target-mode request with no feasible rate."""
        return not self.target_mode or self.target_rate is not None


def _finite(x: float) -> float:
    return float(x) if isinstance(x, (int, float)) and math.isfinite(x) else 0.0


def calculate_refinance(params: RefiParams) -> RefiResult:
    balance = _finite(params.balance)
    current_rate = _finite(params.current_rate)
    closing_costs = _finite(params.closing_costs)
    target_months = _finite(params.target_months)
    years = int(params.amortization_years) if params.amortization_years else 30

    target_rate = solve_rate_for_break_even(balance, current_rate, closing_costs, target_months, years)
    current_payment = monthly_payment(balance, current_rate, years)

    if params.target_mode and target_rate is None:
        # Not achievable: report zeros rather than negative or undefined savings.
        new_rate, new_payment, monthly_savings, break_even = 0.0, 0.0, 0.0, 0
    else:
        new_rate = target_rate if params.target_mode else _finite(params.new_rate)
        new_payment = monthly_payment(balance, new_rate, years)
        monthly_savings = max(0.0, current_payment - new_payment)
        months = closing_costs / monthly_savings if monthly_savings > 0 else 0.0
        break_even = math.ceil(months) if math.isfinite(months) else 0

    return RefiResult(
        balance=balance,
        current_rate=current_rate,
        new_rate=new_rate,
        closing_costs=closing_costs,
        amortization_years=years,
        target_mode=bool(params.target_mode),
        target_months=target_months,
        target_rate=target_rate,
        current_payment=current_payment,
        new_payment=new_payment,
        monthly_savings=monthly_savings,
        break_even_months=int(break_even),
    )


@dataclass(frozen=True)
class SavingsPoint:
    months: int
    gross: float
    net: float


def savings_timeline(monthly_savings: float, closing_costs: float) -> List[SavingsPoint]:
    return [
        SavingsPoint(months=m, gross=monthly_savings * m, net=monthly_savings * m - closing_costs)
        for m in SAVINGS_HORIZONS
    ]


@dataclass(frozen=True)
class RefiRecommendation:
    label: str
    note: str


def refi_recommendation(result: RefiResult) -> RefiRecommendation:
    if result.monthly_savings <= 0 or result.break_even_months <= 0:
        return RefiRecommendation("Wait", "No projected savings with the current assumptions.")
    if result.break_even_months <= 24:
        return RefiRecommendation("Strong candidate", "Break-even is under 24 months.")
    if result.break_even_months <= 48:
        return RefiRecommendation("Moderate", "Savings are real, but recovery takes longer.")
    return RefiRecommendation("Long horizon", "Only attractive if you expect to keep the loan for years.")
