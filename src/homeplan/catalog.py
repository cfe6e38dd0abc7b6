"""
Fixed catalogs: benchmark series, loan types, credit score bands, budget
strategies and input presets.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List

from homeplan.rates.models import RateSeries


RATE_SOURCES: Dict[str, RateSeries] = {
    "MORTGAGE30US": RateSeries(
        series_id="MORTGAGE30US",
        label="Freddie Mac 30Y fixed (PMMS via FRED)",
        bucket="30Y fixed",
    ),
    "MORTGAGE15US": RateSeries(
        series_id="MORTGAGE15US",
        label="Freddie Mac 15Y fixed (PMMS via FRED)",
        bucket="15Y fixed",
    ),
    # PMMS stopped publishing the 5/1 ARM in late 2022; the alias keeps older archives reachable.
    "MORTGAGE5US": RateSeries(
        series_id="MORTGAGE5US",
        label="Freddie Mac 5/1 ARM (PMMS via FRED)",
        bucket="5/1 ARM",
        aliases=("MORTGAGEARMSUS",),
    ),
}

DEFAULT_LIVE_RATE_SERIES = "MORTGAGE30US"


@dataclass(frozen=True)
class MarketRateCard:
    series_id: str
    label: str


MARKET_RATE_CARDS: List[MarketRateCard] = [
    MarketRateCard("MORTGAGE15US", "15Y fixed benchmark"),
    MarketRateCard("MORTGAGE30US", "30Y fixed benchmark"),
    MarketRateCard("MORTGAGE5US", "5/1 ARM benchmark"),
]


@dataclass(frozen=True)
class LoanType:
    id: str
    label: str
    rate_series: str
    amortization_years: int
    rate_adjust: float  # percentage points added to the benchmark


LOAN_TYPES: List[LoanType] = [
    LoanType("conventional-30", "Conventional 30-year fixed", "MORTGAGE30US", 30, 0.0),
    LoanType("conventional-15", "Conventional 15-year fixed", "MORTGAGE15US", 15, 0.0),
    LoanType("arm-5-1", "ARM 5/1 (30-year amortization)", "MORTGAGE5US", 30, 0.0),
    LoanType("fha-30", "FHA 30-year fixed", "MORTGAGE30US", 30, -0.15),
    LoanType("va-30", "VA 30-year fixed", "MORTGAGE30US", 30, -0.2),
    LoanType("usda-30", "USDA 30-year fixed", "MORTGAGE30US", 30, -0.1),
    LoanType("jumbo-30", "Jumbo 30-year fixed", "MORTGAGE30US", 30, 0.25),
]


@dataclass(frozen=True)
class CreditScoreBucket:
    id: str
    label: str
    adjust: float


# Ordered best to worst; the adjustment grows as the band worsens.
CREDIT_SCORE_BUCKETS: List[CreditScoreBucket] = [
    CreditScoreBucket("760plus", "760+", 0.0),
    CreditScoreBucket("740-759", "740-759", 0.125),
    CreditScoreBucket("720-739", "720-739", 0.25),
    CreditScoreBucket("700-719", "700-719", 0.375),
    CreditScoreBucket("680-699", "680-699", 0.5),
    CreditScoreBucket("660-679", "660-679", 0.75),
    CreditScoreBucket("640-659", "640-659", 1.0),
    CreditScoreBucket("620-639", "620-639", 1.5),
]


@dataclass(frozen=True)
class AffordStrategy:
    id: str
    label: str
    ratio: float


AFFORD_STRATEGIES: List[AffordStrategy] = [
    AffordStrategy("conservative", "Conservative (25% of gross income)", 0.25),
    AffordStrategy("standard", "Standard (28% of gross income)", 0.28),
    AffordStrategy("stretch", "Stretch (33% of gross income)", 0.33),
]
DEFAULT_STRATEGY_INDEX = 1


@dataclass(frozen=True)
class InputPreset:
    id: str
    label: str
    inputs: Dict[str, str] = field(default_factory=dict)


AFFORD_PRESETS: List[InputPreset] = [
    InputPreset(
        "starter",
        "Starter buyer",
        {"annualIncome": "95000", "expenses": "900", "downPayment": "20000", "hoaAnnual": "1200", "zipCode": "30309"},
    ),
    InputPreset(
        "family-upgrade",
        "Family upgrade",
        {"annualIncome": "165000", "expenses": "1600", "downPayment": "65000", "hoaAnnual": "2400", "zipCode": "30024"},
    ),
    InputPreset(
        "aggressive",
        "Aggressive saver",
        {"annualIncome": "220000", "expenses": "2300", "downPayment": "120000", "hoaAnnual": "3000", "zipCode": "10001"},
    ),
]

REFI_PRESETS: List[InputPreset] = [
    InputPreset(
        "mild-savings",
        "Moderate savings",
        {"balance": "320000", "currentRate": "7.1", "closingCosts": "6500", "targetMonths": "24"},
    ),
    InputPreset(
        "fast-breakeven",
        "Fast break-even",
        {"balance": "460000", "currentRate": "7.5", "closingCosts": "9000", "targetMonths": "18"},
    ),
]


def get_loan_type(loan_type_id: str | None) -> LoanType:
    """Unknown ids fall back to the first catalog entry."""
    for loan in LOAN_TYPES:
        if loan.id == loan_type_id:
            return loan
    return LOAN_TYPES[0]


def get_credit_bucket(bucket_id: str | None) -> CreditScoreBucket:
    for bucket in CREDIT_SCORE_BUCKETS:
        if bucket.id == bucket_id:
            return bucket
    return CREDIT_SCORE_BUCKETS[0]


def get_strategy(index: int | None) -> AffordStrategy:
    if index is None:
        index = DEFAULT_STRATEGY_INDEX
    clamped = min(max(int(index), 0), len(AFFORD_STRATEGIES) - 1)
    return AFFORD_STRATEGIES[clamped]


def get_preset(presets: List[InputPreset], preset_id: str) -> InputPreset | None:
    return next((p for p in presets if p.id == preset_id), None)


def is_known_loan_type(loan_type_id: str) -> bool:
    return any(loan.id == loan_type_id for loan in LOAN_TYPES)


def is_known_credit_bucket(bucket_id: str) -> bool:
    return any(bucket.id == bucket_id for bucket in CREDIT_SCORE_BUCKETS)
