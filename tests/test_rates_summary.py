from __future__ import annotations

from datetime import timedelta

from conftest import days_ago, make_payload_dict

from homeplan.rates.models import RateObservation
from homeplan.rates.summary import (
    annotate_staleness,
    build_best_rates_summary,
    days_since,
    market_rate_cards,
    normalize_rates_payload,
    rate_freshness,
)


def _obs(rate: float, date: str, stale: bool = False, label: str = "") -> RateObservation:
    return RateObservation(date=date, rate=rate, label=label, is_stale=stale)


def test_staleness_boundary(now):
    assert annotate_staleness(_obs(6.0, days_ago(35, now)), now).is_stale is False
    assert annotate_staleness(_obs(6.0, days_ago(36, now)), now).is_stale is True


def test_staleness_ignores_time_of_day(now):
    # Calendar days in UTC: late "now" on the 35th day is still fresh.
    late = now.replace(hour=23, minute=59)
    obs = annotate_staleness(_obs(6.0, days_ago(35, now)), late)
    assert obs.stale_days == 35
    assert obs.is_stale is False


def test_unparseable_date_is_stale(now):
    obs = annotate_staleness(_obs(6.0, "sometime"), now)
    assert obs.is_stale is True
    assert obs.stale_days is None


def test_days_since_clamps_future_dates(now):
    assert days_since((now + timedelta(days=3)).strftime("%Y-%m-%d"), now) == 0


def test_best_rates_spread_and_order(now):
    data = {
        "MORTGAGE30US": _obs(6.31, days_ago(2, now)),
        "MORTGAGE15US": _obs(5.49, days_ago(2, now)),
        "MORTGAGE5US": _obs(6.02, days_ago(2, now)),
    }
    best = build_best_rates_summary(data)
    rates = [e.rate for e in best.available]
    assert rates == sorted(rates)
    assert best.lowest.series_id == "MORTGAGE15US"
    assert best.highest.series_id == "MORTGAGE30US"
    assert best.spread_bps == round((6.31 - 5.49) * 100)
    # Catalog metadata fills in missing labels.
    assert best.lowest.bucket == "15Y fixed"


def test_best_rates_prefer_fresh_entries(now):
    data = {
        "MORTGAGE30US": _obs(6.3, days_ago(2, now)),
        "MORTGAGE5US": _obs(5.1, days_ago(400, now), stale=True),
    }
    best = build_best_rates_summary(data)
    assert [e.series_id for e in best.available] == ["MORTGAGE30US"]
    assert best.spread_bps == 0


def test_best_rates_all_stale_still_ranked(now):
    data = {
        "MORTGAGE30US": _obs(6.3, days_ago(90, now), stale=True),
        "MORTGAGE15US": _obs(5.6, days_ago(90, now), stale=True),
    }
    best = build_best_rates_summary(data)
    assert len(best.available) == 2
    assert best.lowest.rate == 5.6


def test_best_rates_empty():
    best = build_best_rates_summary({})
    assert best.available == []
    assert best.lowest is None
    assert best.spread_bps is None


def test_normalize_fills_metadata_and_drops_bad_rows(now):
    raw = make_payload_dict(now)
    raw["data"]["BROKEN"] = {"date": days_ago(1, now)}
    raw["data"]["NOTAMAPPING"] = 5
    payload = normalize_rates_payload(raw, now=now)

    assert set(payload.data) == {"MORTGAGE30US", "MORTGAGE15US", "MORTGAGE5US"}
    obs = payload.data["MORTGAGE30US"]
    assert obs.label.startswith("Freddie Mac 30Y")
    assert obs.source_series_id == "MORTGAGE30US"
    assert payload.data["MORTGAGE5US"].source_series_id == "MORTGAGEARMSUS"
    assert payload.summary.best_rates.lowest.series_id == "MORTGAGE15US"


def test_normalize_recomputes_staleness_and_summary(now):
    raw = make_payload_dict(now)
    raw["data"]["MORTGAGE15US"] = {"date": days_ago(60, now), "rate": 5.5, "isStale": False}
    raw["summary"] = {"bestRates": {"available": [], "spreadBps": 999}}
    payload = normalize_rates_payload(raw, now=now)

    assert payload.data["MORTGAGE15US"].is_stale is True
    assert payload.summary.best_rates.spread_bps != 999
    assert payload.summary.best_rates.lowest.series_id == "MORTGAGE5US"


def test_normalize_rejects_non_mapping(now):
    assert normalize_rates_payload(None, now=now) is None
    assert normalize_rates_payload([1, 2], now=now) is None


def test_normalize_out_of_range_fetched_at_falls_back_to_now(now):
    raw = make_payload_dict(now)
    raw["fetchedAt"] = 1e20
    raw.pop("fetchedAtIso", None)
    payload = normalize_rates_payload(raw, now=now)

    assert payload.fetched_at == int(now.timestamp() * 1000)
    assert days_since(payload.fetched_at_iso, now) == 0
    assert payload.data["MORTGAGE30US"].rate == 6.3


def test_payload_json_uses_camel_case(sample_payload):
    out = sample_payload.to_json_dict()
    assert "fetchedAtIso" in out
    assert "bestRates" in out["summary"]
    assert "sourceSeriesId" in out["data"]["MORTGAGE30US"]


def test_rate_freshness(now):
    fresh = normalize_rates_payload(make_payload_dict(now), now=now)
    assert rate_freshness(fresh, now).refresh_suggested is False

    old_now = now - timedelta(days=5)
    old = normalize_rates_payload(
        make_payload_dict(now, fetchedAt=int(old_now.timestamp() * 1000), fetchedAtIso=old_now.isoformat()),
        now=now,
    )
    f = rate_freshness(old, now)
    assert f.age_days == 5
    assert f.refresh_suggested is True
    assert rate_freshness(None, now).refresh_suggested is False

    unreadable = fresh.model_copy(update={"fetched_at": 10**20, "fetched_at_iso": ""})
    assert rate_freshness(unreadable, now).age_days is None
    assert rate_freshness(unreadable, now).refresh_suggested is False


def test_market_rate_cards(sample_payload):
    cards = {c.series_id: c for c in market_rate_cards(sample_payload)}
    assert cards["MORTGAGE30US"].rate == 6.3
    assert cards["MORTGAGE15US"].label == "15Y fixed benchmark"
    empty = market_rate_cards(None)
    assert all(c.rate is None for c in empty)
