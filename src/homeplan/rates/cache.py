"""
Where benchmark rates come from, in order of precedence.

1. the prebuilt snapshot file (authoritative when present with data)
2. the local cache, while younger than its TTL
3. a live FRED fetch, written back to the local cache

Each source is a provider with the same ``load(now) -> RatesPayload | None``
shape, so the precedence is just the order of a list.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from pathlib import Path
from typing import Optional, Protocol, Sequence

from homeplan.data.fred import FredClient
from homeplan.errors import FetchError, NoRatesAvailableError
from homeplan.rates.models import RatesPayload
from homeplan.rates.summary import normalize_rates_payload
from homeplan.state.store import RATE_CACHE_KEY, LocalStore

logger = logging.getLogger(__name__)

RATE_CACHE_TTL = timedelta(hours=24)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class RateStatus(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    ERROR = "error"


class RateCache:
    """Rate payload persisted in the local store with a TTL on ``fetchedAt``."""

    def __init__(self, store: LocalStore, ttl: timedelta = RATE_CACHE_TTL):
        self.store = store
        self.ttl = ttl

    def get(self, now: datetime | None = None) -> Optional[RatesPayload]:
        now = now or _utc_now()
        payload = normalize_rates_payload(self.store.get(RATE_CACHE_KEY), now=now)
        if payload is None or not payload.has_data:
            return None
        age_ms = now.timestamp() * 1000 - payload.fetched_at
        if age_ms >= self.ttl.total_seconds() * 1000:
            logger.debug("Local rate cache expired (%.1fh old)", age_ms / 3_600_000)
            return None
        return payload

    def put(self, payload: RatesPayload) -> None:
        self.store.set(RATE_CACHE_KEY, payload.to_json_dict())

    def invalidate(self) -> None:
        self.store.remove(RATE_CACHE_KEY)


class RateProvider(Protocol):
    name: str

    def load(self, now: datetime) -> Optional[RatesPayload]:
        ...


class StaticSnapshotProvider:
    name = "snapshot"

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def load(self, now: datetime) -> Optional[RatesPayload]:
        try:
            if not self.path.exists():
                return None
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.debug("Rate snapshot %s unreadable: %s", self.path, e)
            return None
        payload = normalize_rates_payload(raw, now=now)
        return payload if payload is not None and payload.has_data else None


class LocalCacheProvider:
    name = "local-cache"

    def __init__(self, cache: RateCache):
        self.cache = cache

    def load(self, now: datetime) -> Optional[RatesPayload]:
        return self.cache.get(now)


class LiveFetchProvider:
    name = "live"

    def __init__(self, client: FredClient, cache: RateCache | None = None):
        self.client = client
        self.cache = cache

    def load(self, now: datetime) -> Optional[RatesPayload]:
        try:
            payload = self.client.fetch_all_rates(now=now)
        except (NoRatesAvailableError, FetchError) as e:
            logger.warning("Live rate fetch failed: %s", e)
            return None
        if self.cache is not None:
            self.cache.put(payload)
        return payload


@dataclass(frozen=True)
class RateLoadResult:
    status: RateStatus
    payload: Optional[RatesPayload] = None
    provider: Optional[str] = None


class RateLoader:
    def __init__(self, providers: Sequence[RateProvider]):
        self.providers = list(providers)

    def load(self, now: datetime | None = None) -> RateLoadResult:
        """First provider with data wins; running out of providers is a non-fatal error state."""
        now = now or _utc_now()
        for provider in self.providers:
            payload = provider.load(now)
            if payload is not None and payload.has_data:
                logger.debug("Rates loaded from %s", provider.name)
                return RateLoadResult(status=RateStatus.READY, payload=payload, provider=provider.name)
        return RateLoadResult(status=RateStatus.ERROR)

    def refresh(self, now: datetime | None = None) -> RateLoadResult:
        """Live providers only, skipping snapshot and cache."""
        now = now or _utc_now()
        live = [p for p in self.providers if isinstance(p, LiveFetchProvider)]
        return RateLoader(live).load(now)


def build_rate_loader(
    *,
    client: FredClient,
    cache: RateCache,
    snapshot_path: str | Path | None,
) -> RateLoader:
    providers: list[RateProvider] = []
    if snapshot_path is not None:
        providers.append(StaticSnapshotProvider(snapshot_path))
    providers.append(LocalCacheProvider(cache))
    providers.append(LiveFetchProvider(client, cache))
    return RateLoader(providers)


def write_snapshot(payload: RatesPayload, path: str | Path) -> Path:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(json.dumps(payload.to_json_dict(), indent=2), encoding="utf-8")
    return p
