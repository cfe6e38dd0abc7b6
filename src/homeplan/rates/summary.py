"""
Normalization, staleness and ranking for benchmark rate payloads.

Payloads come from three places (the prebuilt snapshot file, the local cache
and a live fetch). All of them pass through `normalize_rates_payload` so the
rest of the code sees one shape, with staleness recomputed against "now".
"""
from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Any, List, Mapping, Optional

import pandas as pd
from pydantic import ValidationError

from homeplan.catalog import MARKET_RATE_CARDS, RATE_SOURCES
from homeplan.rates.models import (
    PAYLOAD_STALE_AFTER_DAYS,
    RATES_PAYLOAD_VERSION,
    REFRESH_SUGGESTED_AFTER_DAYS,
    BestRateEntry,
    BestRatesSummary,
    RateObservation,
    RatesPayload,
    RatesSummary,
)

logger = logging.getLogger(__name__)

_ISO_DATE = re.compile(r"^(\d{4}-\d{2}-\d{2})(?:$|T|\s)")


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(now: datetime | None) -> datetime:
    now = now or _utc_now()
    return now.astimezone(timezone.utc) if now.tzinfo else now.replace(tzinfo=timezone.utc)


def _from_epoch_ms(ms: float) -> Optional[datetime]:
    try:
        return datetime.fromtimestamp(ms / 1000, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None


def parse_calendar_date(value: Any) -> Optional[date]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return _as_utc(value).date()
    if isinstance(value, date):
        return value
    raw = str(value).strip()
    if not raw:
        return None
    m = _ISO_DATE.match(raw)
    if m:
        try:
            return date.fromisoformat(m.group(1))
        except ValueError:
            return None
    ts = pd.to_datetime(raw, errors="coerce", utc=True)
    if pd.isna(ts):
        return None
    return ts.date()


def days_since(value: Any, now: datetime | None = None) -> Optional[int]:
    """Whole calendar days from ``value`` to ``now`` (UTC), clamped at 0; None if unparseable."""
    d = parse_calendar_date(value)
    if d is None:
        return None
    return max(0, (_as_utc(now).date() - d).days)


def annotate_staleness(obs: RateObservation, now: datetime | None = None) -> RateObservation:
    stale_days = days_since(obs.date, now)
    is_stale = stale_days is None or stale_days > PAYLOAD_STALE_AFTER_DAYS
    return obs.model_copy(update={"stale_days": stale_days, "is_stale": is_stale})


def build_best_rates_summary(data: Mapping[str, RateObservation]) -> BestRatesSummary:
    entries = [
        BestRateEntry(
            series_id=series_id,
            bucket=obs.bucket or (RATE_SOURCES[series_id].bucket if series_id in RATE_SOURCES else series_id),
            label=obs.label or (RATE_SOURCES[series_id].label if series_id in RATE_SOURCES else series_id),
            rate=obs.rate,
            date=obs.date,
            is_stale=obs.is_stale,
        )
        for series_id, obs in (data or {}).items()
        if obs is not None and math.isfinite(obs.rate)
    ]
    fresh = [e for e in entries if not e.is_stale]
    # Rank fresh entries only, unless everything is stale.
    available = sorted(fresh or entries, key=lambda e: e.rate)
    if not available:
        return BestRatesSummary()

    lowest = available[0]
    highest = available[-1]
    return BestRatesSummary(
        available=available,
        lowest=lowest,
        highest=highest,
        spread_bps=int(round((highest.rate - lowest.rate) * 100)),
    )


def _coerce_observation(series_id: str, value: Any) -> Optional[RateObservation]:
    if isinstance(value, RateObservation):
        obs = value
    elif isinstance(value, Mapping):
        try:
            obs = RateObservation.model_validate(dict(value))
        except ValidationError:
            logger.debug("Dropping malformed rate observation for %s", series_id)
            return None
    else:
        return None
    if not math.isfinite(obs.rate):
        return None
    source = RATE_SOURCES.get(series_id)
    update = {}
    if not obs.label and source:
        update["label"] = source.label
    if not obs.bucket and source:
        update["bucket"] = source.bucket
    if not obs.source_series_id:
        update["source_series_id"] = series_id
    return obs.model_copy(update=update) if update else obs


def normalize_rates_payload(raw: Any, now: datetime | None = None) -> Optional[RatesPayload]:
    """
    Coerce a snapshot / cached / freshly built payload into a `RatesPayload`.

    Unknown or malformed observations are dropped individually. Staleness and
    the best-rate summary are always recomputed relative to ``now``.
    Returns None when ``raw`` is not a mapping at all.
    """
    if isinstance(raw, RatesPayload):
        raw = raw.model_dump(by_alias=True)
    if not isinstance(raw, Mapping):
        return None
    now = _as_utc(now)

    raw_data = raw.get("data")
    data: dict[str, RateObservation] = {}
    if isinstance(raw_data, Mapping):
        for series_id, value in raw_data.items():
            obs = _coerce_observation(str(series_id), value)
            if obs is not None:
                data[str(series_id)] = annotate_staleness(obs, now)

    fetched_at = raw.get("fetchedAt")
    if (
        isinstance(fetched_at, bool)
        or not isinstance(fetched_at, (int, float))
        or not math.isfinite(fetched_at)
        or _from_epoch_ms(fetched_at) is None
    ):
        fetched_at = int(now.timestamp() * 1000)
    fetched_at_iso = raw.get("fetchedAtIso")
    if not isinstance(fetched_at_iso, str) or not fetched_at_iso:
        fetched_at_iso = _from_epoch_ms(fetched_at).isoformat()
    version = raw.get("version")
    if isinstance(version, bool) or not isinstance(version, int):
        version = RATES_PAYLOAD_VERSION
    source = raw.get("source")

    return RatesPayload(
        version=version,
        fetched_at=int(fetched_at),
        fetched_at_iso=fetched_at_iso,
        source=source if isinstance(source, str) and source else "FRED",
        data=data,
        summary=RatesSummary(best_rates=build_best_rates_summary(data)),
    )


@dataclass(frozen=True)
class RateFreshness:
    age_days: Optional[int]
    refresh_suggested: bool


def rate_freshness(payload: RatesPayload | None, now: datetime | None = None) -> RateFreshness:
    if payload is None:
        return RateFreshness(age_days=None, refresh_suggested=False)
    age = days_since(payload.fetched_at_iso, now)
    if age is None:
        age = days_since(_from_epoch_ms(payload.fetched_at), now)
    return RateFreshness(
        age_days=age,
        refresh_suggested=age is not None and age >= REFRESH_SUGGESTED_AFTER_DAYS,
    )


@dataclass(frozen=True)
class MarketRateCardView:
    series_id: str
    label: str
    label_full: str
    rate: Optional[float]
    date: Optional[str]


def market_rate_cards(payload: RatesPayload | None) -> List[MarketRateCardView]:
    data = payload.data if payload is not None else {}
    out: List[MarketRateCardView] = []
    for card in MARKET_RATE_CARDS:
        obs = data.get(card.series_id)
        out.append(
            MarketRateCardView(
                series_id=card.series_id,
                label=card.label,
                label_full=(obs.label if obs and obs.label else card.label),
                rate=obs.rate if obs else None,
                date=obs.date if obs else None,
            )
        )
    return out
