"""
Effective annual rate for a loan type under a rate mode.

Modes:
- live: latest benchmark for the loan's series (+ loan type adjustment)
- credit: live + credit score band adjustment
- manual: whatever the user typed
- target: refinance only; the refinance calculator replaces the rate with
  the solved break-even rate, resolution itself behaves like live
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Mapping, Optional

from homeplan.catalog import DEFAULT_LIVE_RATE_SERIES, LOAN_TYPES, CreditScoreBucket, LoanType
from homeplan.rates.models import RateObservation, RatesPayload
from homeplan.utils.numbers import parse_number

logger = logging.getLogger(__name__)


class RateMode(str, Enum):
    LIVE = "live"
    CREDIT = "credit"
    MANUAL = "manual"
    TARGET = "target"


AFFORD_RATE_MODES = (RateMode.LIVE, RateMode.CREDIT, RateMode.MANUAL)
REFI_RATE_MODES = (RateMode.LIVE, RateMode.CREDIT, RateMode.MANUAL, RateMode.TARGET)


def coerce_rate_mode(value: object, allowed=REFI_RATE_MODES) -> Optional[RateMode]:
    if isinstance(value, RateMode):
        mode = value
    else:
        try:
            mode = RateMode(value)
        except ValueError:
            return None
    return mode if mode in allowed else None


@dataclass(frozen=True)
class ResolvedRate:
    rate: float
    base_rate: float
    loan_adjust: float
    score_adjust: float
    observation: Optional[RateObservation] = None  # the benchmark used, None for manual/fallback


def _usable(obs: Optional[RateObservation]) -> bool:
    return obs is not None and math.isfinite(obs.rate)


# Ordered fallbacks for the benchmark behind a loan type. Each takes the payload
# data and the loan's series id and returns an observation or None.
ObservationProvider = Callable[[Mapping[str, RateObservation], str], Optional[RateObservation]]


def _fresh_series(data: Mapping[str, RateObservation], series_id: str) -> Optional[RateObservation]:
    obs = data.get(series_id)
    return obs if _usable(obs) and not obs.is_stale else None  # type: ignore[union-attr]


def _default_series(data: Mapping[str, RateObservation], series_id: str) -> Optional[RateObservation]:
    obs = data.get(DEFAULT_LIVE_RATE_SERIES)
    return obs if _usable(obs) else None


def _any_series(data: Mapping[str, RateObservation], series_id: str) -> Optional[RateObservation]:
    obs = data.get(series_id)
    return obs if _usable(obs) else None


BENCHMARK_PROVIDERS: List[ObservationProvider] = [_fresh_series, _default_series, _any_series]


def select_benchmark(rates: RatesPayload | None, series_id: str) -> Optional[RateObservation]:
    """
    Benchmark observation for ``series_id``: the series itself when fresh, else
    the default 30Y series, else the (stale) series itself. None when nothing
    usable is loaded.
    """
    data: Mapping[str, RateObservation] = rates.data if rates is not None else {}
    for provider in BENCHMARK_PROVIDERS:
        obs = provider(data, series_id)
        if obs is not None:
            return obs
    return None


def resolve_rate(
    mode: RateMode | str,
    loan_type: LoanType,
    rates: RatesPayload | None,
    manual_text: str | None,
    credit_bucket: CreditScoreBucket | None = None,
    *,
    adjust_manual: bool = False,
) -> ResolvedRate:
    """
    Never raises. Without any usable benchmark the manual entry stands in as
    the base rate, whatever the mode.

    In manual mode the typed value is returned untouched unless
    ``adjust_manual`` is set (the refinance calculator adds the loan type
    adjustment on top of a manual entry).
    """
    mode = coerce_rate_mode(mode) or RateMode.LIVE
    manual_rate = parse_number(manual_text)

    if mode is RateMode.MANUAL:
        if not adjust_manual:
            return ResolvedRate(rate=manual_rate, base_rate=manual_rate, loan_adjust=0.0, score_adjust=0.0)
        return ResolvedRate(
            rate=manual_rate + loan_type.rate_adjust,
            base_rate=manual_rate,
            loan_adjust=loan_type.rate_adjust,
            score_adjust=0.0,
        )

    obs = select_benchmark(rates, loan_type.rate_series)
    if obs is None:
        logger.debug("No benchmark for %s; using manual entry %.3f", loan_type.id, manual_rate)
    base_rate = obs.rate if obs is not None else manual_rate
    score_adjust = credit_bucket.adjust if (mode is RateMode.CREDIT and credit_bucket is not None) else 0.0
    return ResolvedRate(
        rate=base_rate + loan_type.rate_adjust + score_adjust,
        base_rate=base_rate,
        loan_adjust=loan_type.rate_adjust,
        score_adjust=score_adjust,
        observation=obs,
    )


def resolve_rates_by_loan_type(
    mode: RateMode | str,
    rates: RatesPayload | None,
    manual_text: str | None,
    credit_bucket: CreditScoreBucket | None = None,
    *,
    loan_types: List[LoanType] | None = None,
    adjust_manual: bool = False,
) -> Dict[str, ResolvedRate]:
    """Same rule as `resolve_rate`, once per loan type."""
    return {
        loan.id: resolve_rate(mode, loan, rates, manual_text, credit_bucket, adjust_manual=adjust_manual)
        for loan in (loan_types or LOAN_TYPES)
    }
