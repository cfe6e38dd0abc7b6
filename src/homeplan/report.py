"""
Printable summaries as ordered sections.

A section is either a list of label/value items or a table (columns + rows).
Values are already formatted strings, so any printer can render them.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from homeplan.catalog import get_credit_bucket, get_loan_type, get_strategy
from homeplan.context import AffordabilityView, RefiView
from homeplan.rates.models import RateObservation
from homeplan.rates.resolve import RateMode
from homeplan.state.models import AffordabilityInputs, CalculatorSettings, RefiInputs
from homeplan.utils.formatting import format_money, format_percent, format_rate_date, format_ratio_percent

NOT_A_QUOTE = "Planning estimate only; not a lender offer."


@dataclass(frozen=True)
class ReportSection:
    title: str
    items: List[Tuple[str, str]] = field(default_factory=list)
    columns: List[str] = field(default_factory=list)
    rows: List[List[str]] = field(default_factory=list)

    @property
    def is_table(self) -> bool:
        return bool(self.columns)


def rate_source_text(mode: RateMode, obs: Optional[RateObservation]) -> str:
    if mode is RateMode.MANUAL:
        return "Manual entry"
    if mode is RateMode.TARGET:
        return "Target break-even"
    if obs is None:
        return "Manual entry (no benchmark loaded)"
    stale = " (stale)" if obs.is_stale else ""
    return f"{obs.label or obs.source_series_id} ({format_rate_date(obs.date)}){stale}"


def _tax_rate_text(rate: float) -> str:
    return format_ratio_percent(rate) if rate > 0 else "Not available"


def build_affordability_report(
    view: AffordabilityView,
    inputs: AffordabilityInputs,
    settings: CalculatorSettings,
) -> List[ReportSection]:
    r = view.result
    loan = get_loan_type(settings.loan_type_id)
    strategy = get_strategy(settings.strategy_index)
    mode = settings.rate_mode

    return [
        ReportSection(
            "Inputs",
            items=[
                ("Annual income (before taxes)", format_money(r.annual_income)),
                ("Monthly expenses", format_money(r.expenses)),
                ("Down payment", format_money(r.down_payment)),
                ("Closing costs", format_money(r.closing_costs)),
                ("HOA (annual)", format_money(r.hoa_annual)),
                ("ZIP code", inputs.zip_code or "Not provided"),
                ("Property tax rate (annual)", _tax_rate_text(r.tax_rate)),
                ("Loan type", loan.label),
                ("Rate mode", mode.value),
                (
                    "Credit score range",
                    get_credit_bucket(settings.credit_score_id).label if mode is RateMode.CREDIT else "Not used",
                ),
                ("Estimated rate", format_percent(view.resolved.rate)),
                ("Rate source", rate_source_text(mode, view.resolved.observation)),
            ],
        ),
        ReportSection(
            "Assessment",
            items=[
                ("Affordability stance", strategy.label),
                ("Health", f"{view.health.label} ({format_ratio_percent(view.health.ratio)} of gross)"),
                ("Total cash to close", format_money(r.down_payment + r.closing_costs)),
                ("Loan term", f"{r.amortization_years} years"),
                ("Closing cost basis", "Manual amount" if view.params.closing_costs > 0 else "Estimated % of price"),
            ],
        ),
        ReportSection(
            "Assumptions",
            items=[
                ("Housing ratio (gross income)", format_ratio_percent(r.ratio)),
                ("Home insurance (monthly)", format_money(r.insurance_monthly)),
                ("PMI (monthly)", format_money(r.pmi_monthly) if r.pmi_monthly > 0 else "Not required"),
                (
                    "PMI rate (annual)",
                    format_ratio_percent(r.pmi_annual_rate) if r.pmi_monthly > 0 else "Not required",
                ),
                ("Loan-to-value (LTV)", format_ratio_percent(r.ltv) if r.ltv > 0 else "Not available"),
                ("Property tax (monthly)", format_money(r.property_tax_monthly)),
                ("Property tax source", r.tax_rate_source if r.tax_rate > 0 else "None"),
                ("HOA (monthly)", format_money(r.hoa_monthly)),
                ("Closing cost estimate", f"{format_ratio_percent(r.closing_cost_rate_used)} of price"),
            ],
        ),
        ReportSection(
            "Results",
            items=[
                ("Monthly housing budget", format_money(r.max_housing_budget)),
                ("Principal + interest", format_money(r.principal_payment)),
                ("Estimated loan amount", format_money(r.loan_amount)),
                ("Estimated home price", format_money(r.estimated_home_price)),
                ("Estimated home price range", f"{format_money(r.conservative)} - {format_money(r.optimistic)}"),
                ("Total monthly", format_money(r.total_monthly)),
            ],
        ),
        ReportSection(
            "Loan option comparison",
            columns=["Loan type", "Rate", "Home price", "Loan amount", "P&I", "PMI", "Total monthly", "Total interest"],
            rows=[
                [
                    o.label,
                    format_percent(o.rate),
                    format_money(o.home_price),
                    format_money(o.loan_amount),
                    format_money(o.monthly_pi),
                    format_money(o.pmi_monthly),
                    format_money(o.total_monthly),
                    format_money(o.total_interest),
                ]
                for o in view.options
            ],
        ),
    ]


def _break_even_text(months: int) -> str:
    return f"Month {months}" if months > 0 else "Not in range"


def build_refi_report(view: RefiView, inputs: RefiInputs, settings: CalculatorSettings) -> List[ReportSection]:
    r = view.result
    mode = settings.refi_rate_mode
    target_text = "Not used"
    if mode is RateMode.TARGET:
        target_text = f"{inputs.target_months or 'Not set'} months"
        if not r.achievable:
            target_text += " (not achievable)"

    return [
        ReportSection(
            "Inputs",
            items=[
                ("Current balance", format_money(r.balance)),
                ("Current rate", format_percent(r.current_rate)),
                ("New rate", format_percent(r.new_rate)),
                ("Closing costs", format_money(r.closing_costs)),
                ("Refi loan type", get_loan_type(settings.refi_loan_type_id).label),
                ("Rate mode", mode.value),
                ("Rate source", rate_source_text(mode, view.resolved.observation)),
                (
                    "Credit score range",
                    get_credit_bucket(settings.refi_credit_score_id).label if mode is RateMode.CREDIT else "Not used",
                ),
                ("Target break-even", target_text),
            ],
        ),
        ReportSection(
            "Assessment",
            items=[
                ("Rate change", f"{format_percent(r.current_rate)} -> {format_percent(r.new_rate)}"),
                ("Recommendation", f"{view.recommendation.label}: {view.recommendation.note}"),
                ("Break-even timeline", _break_even_text(r.break_even_months)),
                (
                    "Break-even year",
                    f"Year {r.break_even_months / 12:.1f}" if r.break_even_months > 0 else "Not in range",
                ),
                ("Annual savings", format_money(r.monthly_savings * 12)),
            ],
        ),
        ReportSection(
            "Payment comparison",
            items=[
                ("Current payment", format_money(r.current_payment)),
                ("New payment", format_money(r.new_payment)),
                ("Monthly savings", format_money(r.monthly_savings)),
            ],
        ),
        ReportSection(
            "Savings timeline",
            columns=["Months", "Gross savings", "Net of closing costs"],
            rows=[[str(p.months), format_money(p.gross), format_money(p.net)] for p in view.timeline],
        ),
    ]
