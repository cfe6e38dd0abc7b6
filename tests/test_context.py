from __future__ import annotations

import math

import pytest
from conftest import FakeResponse, FakeSession, days_ago, fred_csv

from homeplan.context import PlannerContext, load_session, save_session
from homeplan.data.census import CensusClient
from homeplan.data.fred import FredClient
from homeplan.rates.cache import RateStatus, write_snapshot
from homeplan.rates.resolve import RateMode
from homeplan.report import build_affordability_report, build_refi_report
from homeplan.state.models import AffordabilityInputs, CalculatorSettings, RefiInputs


@pytest.fixture
def offline(settings, fred_session):
    """Context whose FRED and Census calls all fail."""
    census_session = FakeSession(lambda url, params: FakeResponse(status_code=503))
    return PlannerContext(
        settings,
        fred=FredClient(settings, session=fred_session({})),
        census=CensusClient(settings, session=census_session),
    )


def _starter_inputs(ctx: PlannerContext, mode: RateMode = RateMode.MANUAL) -> None:
    ctx.session.afford = AffordabilityInputs(
        annual_income="95000", expenses="900", down_payment="20000", hoa_annual="1200", rate="7.0"
    )
    ctx.session.refi = RefiInputs(balance="320000", current_rate="7.1", new_rate="6.2", closing_costs="6500")
    ctx.session.settings = CalculatorSettings(rate_mode=mode, refi_rate_mode=mode)


def test_session_defaults_and_persistence(settings, store):
    session = load_session(store)
    assert session.afford == AffordabilityInputs()
    assert session.scenarios == []

    session.afford = AffordabilityInputs(annual_income="100000")
    session.settings = CalculatorSettings(active_calc="refi", strategy_index=0)
    save_session(store, session)

    again = load_session(store)
    assert again.afford.annual_income == "100000"
    assert again.settings.active_calc == "refi"
    assert again.settings.strategy_index == 0


def test_no_rates_manual_mode_still_calculates(offline, now):
    result = offline.load_rates(now)
    assert result.status is RateStatus.ERROR
    assert offline.rates is None

    _starter_inputs(offline)
    afford = offline.affordability()
    refi = offline.refinance()

    assert afford.resolved.rate == 7.0
    assert afford.result.max_housing_budget == pytest.approx(1316.67, abs=0.01)
    assert math.isfinite(afford.result.estimated_home_price)
    assert len(afford.options) == 7
    assert refi.result.new_rate == 6.2
    assert refi.result.break_even_months == math.ceil(6500 / refi.result.monthly_savings)


def test_refi_manual_rate_is_priced_as_typed(offline, now):
    offline.load_rates(now)
    _starter_inputs(offline)
    offline.session.settings = offline.session.settings.model_copy(update={"refi_loan_type_id": "fha-30"})
    view = offline.refinance()

    assert view.resolved.rate == pytest.approx(6.2 - 0.15)
    assert view.result.new_rate == 6.2
    assert view.result.break_even_months == math.ceil(6500 / view.result.monthly_savings)
    assert view.result.break_even_months == 35


def test_live_mode_without_rates_degrades_to_manual(offline, now):
    offline.load_rates(now)
    _starter_inputs(offline, RateMode.LIVE)
    assert offline.affordability().resolved.rate == 7.0


def test_snapshot_rates_drive_live_mode(settings, fred_session, sample_payload, now):
    write_snapshot(sample_payload, settings.snapshot_path)
    ctx = PlannerContext(settings, fred=FredClient(settings, session=fred_session({})))
    ctx.load_rates(now)
    assert ctx.rate_provider == "snapshot"

    _starter_inputs(ctx, RateMode.LIVE)
    ctx.session.settings = ctx.session.settings.model_copy(update={"loan_type_id": "fha-30"})
    view = ctx.affordability()
    assert view.resolved.rate == pytest.approx(6.3 - 0.15)
    assert view.params.amortization_years == 30

    stats = ctx.quick_stats()
    assert stats.market_best_rate == 5.5
    assert stats.home_price == view.result.estimated_home_price
    assert stats.best_loan_label == view.top_fits[0].label


def test_refresh_failure_keeps_loaded_rates(settings, fred_session, sample_payload, now):
    write_snapshot(sample_payload, settings.snapshot_path)
    ctx = PlannerContext(settings, fred=FredClient(settings, session=fred_session({})))
    ctx.load_rates(now)

    result = ctx.refresh_rates(now)
    assert result.status is RateStatus.READY
    assert ctx.rates.data == sample_payload.data


def test_refresh_success_replaces_rates(settings, fred_session, now):
    session = fred_session({"MORTGAGE30US": fred_csv([(days_ago(1, now), "6.05")])})
    ctx = PlannerContext(settings, fred=FredClient(settings, session=session))
    result = ctx.refresh_rates(now)
    assert result.provider == "live"
    assert ctx.rates.data["MORTGAGE30US"].rate == 6.05


def test_overrides_are_percent_strings(offline):
    _starter_inputs(offline)
    offline.session.afford = offline.session.afford.model_copy(update={"closing_cost_rate": "3"})
    offline.session.settings = offline.session.settings.model_copy(
        update={"insurance_override": "0", "pmi_rate_override": "0.5", "tax_rate_override": "1.2"}
    )
    params = offline.affordability_params(7.0)
    assert params.closing_cost_rate == pytest.approx(0.03)
    assert params.insurance_monthly == 0
    assert params.pmi_rate == pytest.approx(0.005)
    assert params.tax_rate_override == pytest.approx(0.012)


def test_zip_tax_lookup_feeds_calculator(settings, fred_session):
    rows = [["NAME", "B25077_001E", "B25103_001E"], ["ZCTA5 30309", "400000", "4000"]]
    census = CensusClient(settings, session=FakeSession(lambda url, params: FakeResponse(json_data=rows)))
    ctx = PlannerContext(settings, fred=FredClient(settings, session=fred_session({})), census=census)
    _starter_inputs(ctx)
    ctx.session.afford = ctx.session.afford.model_copy(update={"zip_code": "30309"})

    ctx.lookup_zip_tax()
    view = ctx.affordability()
    assert ctx.tax.status == "ready"
    assert view.result.tax_rate == pytest.approx(0.01)
    assert view.result.tax_rate_source == "zip"


def test_reports_have_expected_sections(offline):
    _starter_inputs(offline)
    s = offline.session
    afford_sections = build_affordability_report(offline.affordability(), s.afford, s.settings)
    assert [sec.title for sec in afford_sections] == [
        "Inputs",
        "Assessment",
        "Assumptions",
        "Results",
        "Loan option comparison",
    ]
    assert afford_sections[-1].is_table
    assert len(afford_sections[-1].rows) == 7
    assert dict(afford_sections[0].items)["Rate source"] == "Manual entry"

    refi_sections = build_refi_report(offline.refinance(), s.refi, s.settings)
    assert refi_sections[-1].title == "Savings timeline"
    assert dict(refi_sections[2].items)["Current payment"].startswith("$2,15")


def test_quick_stats_resolves_zip_tax_first(settings, fred_session):
    rows = [["NAME", "B25077_001E", "B25103_001E"], ["ZCTA5 30309", "400000", "4000"]]
    census_session = FakeSession(lambda url, params: FakeResponse(json_data=rows))
    census = CensusClient(settings, session=census_session)
    ctx = PlannerContext(settings, fred=FredClient(settings, session=fred_session({})), census=census)
    _starter_inputs(ctx)
    ctx.session.afford = ctx.session.afford.model_copy(update={"zip_code": "30309"})
    untaxed = ctx.affordability().result.estimated_home_price

    stats = ctx.quick_stats()
    assert ctx.tax.status == "ready"
    assert stats.home_price == ctx.affordability().result.estimated_home_price
    assert stats.home_price < untaxed

    # Already resolved for this ZIP: no second request.
    ctx.quick_stats()
    assert len(census_session.calls) == 1


def test_quick_stats_can_skip_tax_lookup(settings, fred_session):
    census_session = FakeSession(lambda url, params: FakeResponse(status_code=503))
    census = CensusClient(settings, session=census_session)
    ctx = PlannerContext(settings, fred=FredClient(settings, session=fred_session({})), census=census)
    _starter_inputs(ctx)
    ctx.session.afford = ctx.session.afford.model_copy(update={"zip_code": "30309"})

    ctx.quick_stats(lookup_tax=False)
    assert census_session.calls == []
    assert ctx.tax.status == "idle"
