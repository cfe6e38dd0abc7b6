"""
Home affordability from income, debts and housing costs.

PMI and property tax both depend on the price the budget supports, which in
turn depends on PMI and tax. The calculator does exactly two refinement
passes over that loop (tax from a first-pass price, PMI from a second-pass
loan) and accepts the small residual instead of iterating to a fixed point.
"""
from __future__ import annotations

import math
from dataclasses import dataclass, replace
from typing import Iterable, List, Mapping, Optional

from homeplan.calculators.amortization import monthly_payment
from homeplan.catalog import LOAN_TYPES, LoanType

INSURANCE_MONTHLY_DEFAULT = 120.0
PMI_RATE_DEFAULT = 0.006  # annual, fraction of the loan
PMI_LTV_THRESHOLD = 0.8
CLOSING_COST_RATE_DEFAULT = 0.025
RANGE_LOW_FACTOR = 0.95
RANGE_HIGH_FACTOR = 1.05


@dataclass(frozen=True)
class AffordabilityParams:
    annual_income: float
    expenses: float  # monthly, non-housing
    down_payment: float
    hoa_annual: float
    rate: float  # annual percent
    amortization_years: int = 30
    ratio: float = 0.28  # share of gross monthly income for housing
    closing_costs: float = 0.0  # explicit amount; > 0 wins
    closing_cost_rate: float = 0.0  # fraction of price; > 0 used when no amount
    insurance_monthly: Optional[float] = None  # None -> default
    pmi_rate: float = 0.0  # annual fraction; > 0 overrides the default
    tax_rate_override: float = 0.0  # annual fraction; > 0 overrides the ZIP rate
    zip_tax_rate: float = 0.0  # annual fraction from the ZIP lookup


@dataclass(frozen=True)
class AffordabilityResult:
    annual_income: float
    gross_monthly: float
    expenses: float
    down_payment: float
    rate: float
    amortization_years: int
    ratio: float
    max_housing_budget: float

    insurance_monthly: float
    insurance_monthly_default: float
    hoa_annual: float
    hoa_monthly: float
    pmi_annual_rate: float
    tax_rate: float
    tax_rate_source: str  # "override" | "zip"

    # first pass (no tax, no PMI)
    base_principal: float
    base_loan_amount: float
    base_home_price: float
    property_tax_monthly: float

    # second pass (tax, provisional PMI)
    principal_payment_pre: float
    loan_amount_pre: float
    home_price_pre: float
    ltv_pre: float
    pmi_monthly_pre: float

    # final
    principal_payment: float
    loan_amount: float
    estimated_home_price: float
    ltv: float
    pmi_monthly: float
    total_monthly: float

    closing_costs: float
    closing_costs_auto: float
    closing_cost_rate_used: float

    conservative: float
    optimistic: float


def _finite(x: float) -> float:
    return float(x) if isinstance(x, (int, float)) and math.isfinite(x) else 0.0


def payment_factor(rate: float, years: float) -> float:
    """Monthly payment per dollar borrowed; 1 when the formula degenerates to 0."""
    return monthly_payment(1, rate, years) or 1.0


def _invert(principal_budget: float, factor: float) -> float:
    return principal_budget / factor if principal_budget > 0 else 0.0


def _pmi(loan_amount: float, home_price: float, pmi_rate: float) -> tuple[float, float]:
    ltv = loan_amount / home_price if home_price > 0 else 0.0
    pmi = loan_amount * pmi_rate / 12 if ltv > PMI_LTV_THRESHOLD else 0.0
    return ltv, pmi


def calculate_affordability(params: AffordabilityParams) -> AffordabilityResult:
    p = params
    annual_income = _finite(p.annual_income)
    expenses = _finite(p.expenses)
    down_payment = _finite(p.down_payment)
    hoa_annual = _finite(p.hoa_annual)
    rate = _finite(p.rate)
    years = int(p.amortization_years) if p.amortization_years else 30

    gross_monthly = annual_income / 12
    max_housing_budget = max(0.0, gross_monthly * _finite(p.ratio) - expenses)
    hoa_monthly = hoa_annual / 12
    insurance_monthly = INSURANCE_MONTHLY_DEFAULT if p.insurance_monthly is None else _finite(p.insurance_monthly)
    pmi_annual_rate = p.pmi_rate if _finite(p.pmi_rate) > 0 else PMI_RATE_DEFAULT
    tax_override = _finite(p.tax_rate_override)
    tax_rate = tax_override if tax_override > 0 else max(0.0, _finite(p.zip_tax_rate))
    factor = payment_factor(rate, years)

    base_principal = max(0.0, max_housing_budget - insurance_monthly - hoa_monthly)
    base_loan_amount = _invert(base_principal, factor)
    base_home_price = base_loan_amount + down_payment
    property_tax_monthly = base_home_price * tax_rate / 12 if tax_rate > 0 else 0.0

    principal_payment_pre = max(0.0, max_housing_budget - insurance_monthly - hoa_monthly - property_tax_monthly)
    loan_amount_pre = _invert(principal_payment_pre, factor)
    home_price_pre = loan_amount_pre + down_payment
    ltv_pre, pmi_monthly_pre = _pmi(loan_amount_pre, home_price_pre, pmi_annual_rate)

    principal_payment = max(
        0.0,
        max_housing_budget - insurance_monthly - hoa_monthly - property_tax_monthly - pmi_monthly_pre,
    )
    loan_amount = _invert(principal_payment, factor)
    estimated_home_price = loan_amount + down_payment
    ltv, pmi_monthly = _pmi(loan_amount, estimated_home_price, pmi_annual_rate)

    closing_cost_amount = _finite(p.closing_costs)
    closing_cost_rate = _finite(p.closing_cost_rate)
    closing_cost_rate_used = closing_cost_rate or CLOSING_COST_RATE_DEFAULT
    closing_costs_auto = estimated_home_price * closing_cost_rate_used
    if closing_cost_amount > 0:
        closing_costs = closing_cost_amount
    elif closing_cost_rate > 0:
        closing_costs = closing_costs_auto
    else:
        closing_costs = estimated_home_price * CLOSING_COST_RATE_DEFAULT

    total_monthly = principal_payment + insurance_monthly + hoa_monthly + property_tax_monthly + pmi_monthly

    return AffordabilityResult(
        annual_income=annual_income,
        gross_monthly=gross_monthly,
        expenses=expenses,
        down_payment=down_payment,
        rate=rate,
        amortization_years=years,
        ratio=_finite(p.ratio),
        max_housing_budget=max_housing_budget,
        insurance_monthly=insurance_monthly,
        insurance_monthly_default=INSURANCE_MONTHLY_DEFAULT,
        hoa_annual=hoa_annual,
        hoa_monthly=hoa_monthly,
        pmi_annual_rate=pmi_annual_rate,
        tax_rate=tax_rate,
        tax_rate_source="override" if tax_override > 0 else "zip",
        base_principal=base_principal,
        base_loan_amount=base_loan_amount,
        base_home_price=base_home_price,
        property_tax_monthly=property_tax_monthly,
        principal_payment_pre=principal_payment_pre,
        loan_amount_pre=loan_amount_pre,
        home_price_pre=home_price_pre,
        ltv_pre=ltv_pre,
        pmi_monthly_pre=pmi_monthly_pre,
        principal_payment=principal_payment,
        loan_amount=loan_amount,
        estimated_home_price=estimated_home_price,
        ltv=ltv,
        pmi_monthly=pmi_monthly,
        total_monthly=total_monthly,
        closing_costs=closing_costs,
        closing_costs_auto=closing_costs_auto,
        closing_cost_rate_used=closing_cost_rate_used,
        conservative=loan_amount * RANGE_LOW_FACTOR + down_payment,
        optimistic=loan_amount * RANGE_HIGH_FACTOR + down_payment,
    )


# ---------------------------------------------------------------------------
# Loan type comparison
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class LoanOption:
    id: str
    label: str
    rate: float
    amortization_years: int
    loan_amount: float
    home_price: float
    pmi_monthly: float
    monthly_pi: float
    total_monthly: float
    total_interest: float
    closing_costs: float
    comparable_total_monthly: Optional[float] = None


def build_loan_options(
    params: AffordabilityParams,
    rates_by_loan_type: Mapping[str, float],
    loan_types: Iterable[LoanType] | None = None,
) -> List[LoanOption]:
    """
    One row per loan type at its own resolved rate. Single pass: tax from the
    first-pass price, PMI reported but not taken out of the budget.
    """
    p = params
    gross_monthly = _finite(p.annual_income) / 12
    budget = max(0.0, gross_monthly * _finite(p.ratio) - _finite(p.expenses))
    hoa_monthly = _finite(p.hoa_annual) / 12
    insurance_monthly = INSURANCE_MONTHLY_DEFAULT if p.insurance_monthly is None else _finite(p.insurance_monthly)
    pmi_rate = p.pmi_rate if _finite(p.pmi_rate) > 0 else PMI_RATE_DEFAULT
    tax_rate = _finite(p.tax_rate_override) if _finite(p.tax_rate_override) > 0 else max(0.0, _finite(p.zip_tax_rate))
    down = _finite(p.down_payment)

    out: List[LoanOption] = []
    for loan in loan_types or LOAN_TYPES:
        rate = _finite(rates_by_loan_type.get(loan.id, p.rate))
        factor = payment_factor(rate, loan.amortization_years)
        base_loan = _invert(max(0.0, budget - insurance_monthly - hoa_monthly), factor)
        tax_monthly = (base_loan + down) * tax_rate / 12 if tax_rate > 0 else 0.0
        loan_amount = _invert(max(0.0, budget - insurance_monthly - hoa_monthly - tax_monthly), factor)
        home_price = loan_amount + down
        _, pmi_monthly = _pmi(loan_amount, home_price, pmi_rate)
        monthly_pi = monthly_payment(loan_amount, rate, loan.amortization_years)
        out.append(
            LoanOption(
                id=loan.id,
                label=loan.label,
                rate=rate,
                amortization_years=loan.amortization_years,
                loan_amount=loan_amount,
                home_price=home_price,
                pmi_monthly=pmi_monthly,
                monthly_pi=monthly_pi,
                total_monthly=monthly_pi + insurance_monthly + pmi_monthly + hoa_monthly + tax_monthly,
                total_interest=monthly_pi * loan.amortization_years * 12 - loan_amount,
                closing_costs=_finite(p.closing_costs),
            )
        )
    return out


def sort_loan_options(options: Iterable[LoanOption]) -> List[LoanOption]:
    """Lowest rate first, then lowest total monthly, then the larger home price."""
    return sorted(options, key=lambda o: (o.rate, o.total_monthly, -o.home_price))


def top_loan_fits(result: AffordabilityResult, options: Iterable[LoanOption], limit: int = 3) -> List[LoanOption]:
    """
    Re-price every loan type at the primary result's home price and keep the
    cheapest by comparable total monthly cost.
    """
    ranked = sort_loan_options(options)
    target_price = result.estimated_home_price
    if not math.isfinite(target_price) or target_price <= 0:
        return [replace(o, comparable_total_monthly=o.total_monthly) for o in ranked[:limit]]

    loan_amount = max(0.0, target_price - result.down_payment)
    _, pmi_monthly = _pmi(loan_amount, target_price, result.pmi_annual_rate)
    tax_monthly = target_price * result.tax_rate / 12 if result.tax_rate > 0 else 0.0
    repriced = [
        replace(
            o,
            comparable_total_monthly=monthly_payment(loan_amount, o.rate, o.amortization_years or 30)
            + result.insurance_monthly
            + result.hoa_monthly
            + tax_monthly
            + pmi_monthly,
        )
        for o in ranked
    ]
    repriced.sort(key=lambda o: (o.comparable_total_monthly, o.rate, -o.home_price))
    return repriced[:limit]


@dataclass(frozen=True)
class HealthAssessment:
    label: str
    note: str
    ratio: float


def affordability_health(gross_monthly: float, total_monthly: float) -> HealthAssessment:
    ratio = total_monthly / gross_monthly if gross_monthly > 0 else 0.0
    if ratio <= 0.28:
        return HealthAssessment("Healthy", "Payment ratio is inside common underwriting comfort zones.", ratio)
    if ratio <= 0.36:
        return HealthAssessment("Watchlist", "Budget is workable, but less flexible against shocks.", ratio)
    return HealthAssessment("High risk", "Payment ratio is stretched and may be hard to sustain.", ratio)
