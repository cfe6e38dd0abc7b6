"""
Calculation context: the persisted session, the loaded benchmark rates and
the ZIP tax lookup, wired to the two calculators.

Nothing here is module-level state; each `PlannerContext` owns its cache,
payload and tax watcher.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Dict, List, Optional

import requests

from homeplan.calculators.affordability import (
    AffordabilityParams,
    AffordabilityResult,
    HealthAssessment,
    LoanOption,
    affordability_health,
    build_loan_options,
    calculate_affordability,
    sort_loan_options,
    top_loan_fits,
)
from homeplan.calculators.refinance import (
    RefiParams,
    RefiRecommendation,
    RefiResult,
    SavingsPoint,
    calculate_refinance,
    refi_recommendation,
    savings_timeline,
)
from homeplan.catalog import get_credit_bucket, get_loan_type, get_strategy
from homeplan.config import Settings, load_settings
from homeplan.data.census import CensusClient, ZipTaxWatcher
from homeplan.data.fred import FredClient
from homeplan.rates.cache import RateCache, RateLoader, RateLoadResult, RateStatus, build_rate_loader
from homeplan.rates.models import RatesPayload
from homeplan.rates.resolve import RateMode, ResolvedRate, resolve_rate, resolve_rates_by_loan_type
from homeplan.state.models import (
    AffordabilityInputs,
    CalculatorSettings,
    RefiInputs,
    merge_afford_inputs,
    merge_refi_inputs,
    merge_settings,
)
from homeplan.state.scenarios import Scenario, ScenarioQuickStats, dump_scenarios, load_scenarios
from homeplan.state.store import (
    AFFORD_INPUTS_KEY,
    REFI_INPUTS_KEY,
    SCENARIO_STORAGE_KEY,
    SETTINGS_KEY,
    LocalStore,
)
from homeplan.utils.numbers import parse_number, sanitize_zip

logger = logging.getLogger(__name__)


@dataclass
class PlannerSession:
    afford: AffordabilityInputs = field(default_factory=AffordabilityInputs)
    refi: RefiInputs = field(default_factory=RefiInputs)
    settings: CalculatorSettings = field(default_factory=CalculatorSettings)
    scenarios: List[Scenario] = field(default_factory=list)


def load_session(store: LocalStore) -> PlannerSession:
    """Each stored key is optional and merged over the defaults independently."""
    return PlannerSession(
        afford=merge_afford_inputs(AffordabilityInputs(), store.get(AFFORD_INPUTS_KEY)),
        refi=merge_refi_inputs(RefiInputs(), store.get(REFI_INPUTS_KEY)),
        settings=merge_settings(CalculatorSettings(), store.get(SETTINGS_KEY)),
        scenarios=load_scenarios(store.get(SCENARIO_STORAGE_KEY)),
    )


def save_session(store: LocalStore, session: PlannerSession) -> None:
    store.set(AFFORD_INPUTS_KEY, session.afford.to_json_dict())
    store.set(REFI_INPUTS_KEY, session.refi.to_json_dict())
    store.set(SETTINGS_KEY, session.settings.to_json_dict())
    store.set(SCENARIO_STORAGE_KEY, dump_scenarios(session.scenarios))


@dataclass(frozen=True)
class AffordabilityView:
    params: AffordabilityParams
    resolved: ResolvedRate
    result: AffordabilityResult
    options: List[LoanOption]
    top_fits: List[LoanOption]
    health: HealthAssessment


@dataclass(frozen=True)
class RefiView:
    params: RefiParams
    resolved: ResolvedRate
    result: RefiResult
    timeline: List[SavingsPoint]
    recommendation: RefiRecommendation


def _override(text: str) -> float:
    """Percent string -> annual fraction; blank or non-positive reads as 0 (no override)."""
    value = parse_number(text) / 100
    return value if value > 0 else 0.0


class PlannerContext:
    def __init__(
        self,
        settings: Settings | None = None,
        *,
        store: LocalStore | None = None,
        http: requests.Session | None = None,
        fred: FredClient | None = None,
        census: CensusClient | None = None,
        loader: RateLoader | None = None,
    ):
        self.settings = settings or load_settings()
        self.store = store or LocalStore(self.settings.data_dir)
        self.fred = fred or FredClient(self.settings, session=http)
        self.census = census or CensusClient(self.settings, session=http)
        self.rate_cache = RateCache(self.store, ttl=timedelta(hours=self.settings.rate_cache_ttl_hours))
        self.loader = loader or build_rate_loader(
            client=self.fred,
            cache=self.rate_cache,
            snapshot_path=self.settings.snapshot_path,
        )
        self.tax = ZipTaxWatcher(self.census.lookup_tax_rate)
        self.session = load_session(self.store)
        self.rates: Optional[RatesPayload] = None
        self.rate_status = RateStatus.IDLE
        self.rate_provider: Optional[str] = None

    # ------------------------------------------------------------------
    # Rates / tax
    # ------------------------------------------------------------------

    def _apply_load(self, result: RateLoadResult) -> RateLoadResult:
        self.rate_status = result.status
        if result.payload is not None:
            self.rates = result.payload
            self.rate_provider = result.provider
        return result

    def load_rates(self, now: datetime | None = None) -> RateLoadResult:
        self.rate_status = RateStatus.LOADING
        return self._apply_load(self.loader.load(now))

    def refresh_rates(self, now: datetime | None = None) -> RateLoadResult:
        """Live fetch only. A failed refresh keeps the previously loaded rates."""
        self.rate_status = RateStatus.LOADING
        result = self.loader.refresh(now)
        if result.status is RateStatus.ERROR and self.rates is not None:
            logger.warning("Rate refresh failed; keeping rates from %s", self.rate_provider)
            self.rate_status = RateStatus.READY
            return RateLoadResult(status=RateStatus.READY, payload=self.rates, provider=self.rate_provider)
        return self._apply_load(result)

    def lookup_zip_tax(self) -> None:
        """Run the tax lookup for the current ZIP input (inline)."""
        fut = self.tax.update(self.session.afford.zip_code)
        if fut is not None:
            fut.result()

    def _tax_resolved(self) -> bool:
        zip5 = sanitize_zip(self.session.afford.zip_code)
        return self.tax.zip_code == zip5 and self.tax.status in ("ready", "error")

    # ------------------------------------------------------------------
    # Calculators
    # ------------------------------------------------------------------

    def affordability_params(self, rate: float) -> AffordabilityParams:
        a = self.session.afford
        s = self.session.settings
        loan = get_loan_type(s.loan_type_id)
        return AffordabilityParams(
            annual_income=parse_number(a.annual_income),
            expenses=parse_number(a.expenses),
            down_payment=parse_number(a.down_payment),
            hoa_annual=parse_number(a.hoa_annual),
            rate=rate,
            amortization_years=loan.amortization_years,
            ratio=get_strategy(s.strategy_index).ratio,
            closing_costs=parse_number(a.closing_costs),
            closing_cost_rate=_override(a.closing_cost_rate),
            insurance_monthly=parse_number(s.insurance_override) if s.insurance_override.strip() else None,
            pmi_rate=_override(s.pmi_rate_override),
            tax_rate_override=_override(s.tax_rate_override),
            zip_tax_rate=self.tax.rate,
        )

    def affordability(self) -> AffordabilityView:
        s = self.session.settings
        mode = s.rate_mode if s.rate_mode is not RateMode.TARGET else RateMode.LIVE
        bucket = get_credit_bucket(s.credit_score_id)
        manual = self.session.afford.rate
        resolved = resolve_rate(mode, get_loan_type(s.loan_type_id), self.rates, manual, bucket)
        params = self.affordability_params(resolved.rate)
        result = calculate_affordability(params)

        by_type: Dict[str, ResolvedRate] = resolve_rates_by_loan_type(mode, self.rates, manual, bucket)
        options = sort_loan_options(build_loan_options(params, {k: v.rate for k, v in by_type.items()}))
        return AffordabilityView(
            params=params,
            resolved=resolved,
            result=result,
            options=options,
            top_fits=top_loan_fits(result, options),
            health=affordability_health(result.gross_monthly, result.total_monthly),
        )

    def refi_params(self, new_rate: float) -> RefiParams:
        r = self.session.refi
        s = self.session.settings
        return RefiParams(
            balance=parse_number(r.balance),
            current_rate=parse_number(r.current_rate),
            new_rate=new_rate,
            closing_costs=parse_number(r.closing_costs),
            amortization_years=get_loan_type(s.refi_loan_type_id).amortization_years,
            target_mode=s.refi_rate_mode is RateMode.TARGET,
            target_months=parse_number(r.target_months),
        )

    def refinance(self) -> RefiView:
        s = self.session.settings
        resolved = resolve_rate(
            s.refi_rate_mode,
            get_loan_type(s.refi_loan_type_id),
            self.rates,
            self.session.refi.new_rate,
            get_credit_bucket(s.refi_credit_score_id),
            adjust_manual=True,
        )
        # A typed rate is priced as entered; the adjusted figure is display-only.
        if s.refi_rate_mode is RateMode.MANUAL:
            params = self.refi_params(parse_number(self.session.refi.new_rate))
        else:
            params = self.refi_params(resolved.rate)
        result = calculate_refinance(params)
        return RefiView(
            params=params,
            resolved=resolved,
            result=result,
            timeline=savings_timeline(result.monthly_savings, result.closing_costs),
            recommendation=refi_recommendation(result),
        )

    def quick_stats(self, *, lookup_tax: bool = True) -> ScenarioQuickStats:
        """Headline figures stored with a scenario. Resolves the ZIP tax rate first unless told not to."""
        if lookup_tax and not self._tax_resolved():
            self.lookup_zip_tax()
        afford = self.affordability()
        refi = self.refinance()
        best = self.rates.summary.best_rates.lowest if self.rates is not None else None
        return ScenarioQuickStats(
            home_price=afford.result.estimated_home_price,
            total_monthly=afford.result.total_monthly,
            break_even_months=refi.result.break_even_months,
            monthly_savings=refi.result.monthly_savings,
            market_best_rate=best.rate if best is not None else None,
            best_loan_label=afford.top_fits[0].label if afford.top_fits else None,
        )

    def save(self) -> None:
        save_session(self.store, self.session)
