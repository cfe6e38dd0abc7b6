from __future__ import annotations

import io
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional

import pandas as pd
import requests
from requests.exceptions import RequestException

from homeplan.catalog import RATE_SOURCES
from homeplan.config import Settings
from homeplan.errors import FetchError, NoRatesAvailableError
from homeplan.rates.models import RateObservation, RateSeries, RatesPayload
from homeplan.rates.summary import normalize_rates_payload, parse_calendar_date

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FredPoint:
    date: str
    rate: float
    source_series_id: str = ""


def parse_fred_csv(text: str) -> Optional[FredPoint]:
    """
    Newest usable row of a fredgraph.csv download.

    The file has a date column and a value column (header names vary between
    ``DATE`` and ``observation_date``); FRED writes ``.`` for missing weeks.
    Rows are scanned from the bottom up.
    """
    if not text or not text.strip():
        return None
    try:
        df = pd.read_csv(io.StringIO(text.strip()), dtype=str, header=0)
    except (pd.errors.ParserError, pd.errors.EmptyDataError, ValueError):
        return None
    if df.shape[1] < 2 or df.empty:
        return None

    dates = df.iloc[:, 0].astype(str).str.strip()
    values = pd.to_numeric(df.iloc[:, 1].astype(str).str.strip(), errors="coerce")
    for i in range(len(df) - 1, -1, -1):
        v = values.iloc[i]
        if pd.isna(v) or v in (float("inf"), float("-inf")):
            continue
        return FredPoint(date=dates.iloc[i], rate=float(v))
    return None


class FredClient:
    """Benchmark mortgage rates from the public fredgraph CSV endpoint (no API key)."""

    def __init__(self, settings: Settings, session: requests.Session | None = None):
        self.settings = settings
        self.session = session or requests.Session()

    def _start_date(self, now: datetime) -> str:
        return (now - timedelta(days=self.settings.rate_lookback_days)).strftime("%Y-%m-%d")

    def fetch_series(self, series_id: str, now: datetime | None = None) -> FredPoint:
        now = now or datetime.now(timezone.utc)
        params = {"id": series_id, "cosd": self._start_date(now)}
        last_err: Exception | None = None
        text: str | None = None
        for _attempt in range(3):
            try:
                r = self.session.get(
                    self.settings.fred_graph_url,
                    params=params,
                    headers={"User-Agent": "Mozilla/5.0"},
                    timeout=self.settings.http_timeout_s,
                )
                r.raise_for_status()
                text = r.text
                break
            except RequestException as e:
                # 4xx means the id is wrong; retrying won't help.
                status = getattr(getattr(e, "response", None), "status_code", None)
                last_err = e
                if status is not None and 400 <= int(status) < 500:
                    break
        if text is None:
            raise FetchError(f"FRED {series_id} request failed: {last_err}", series_id=series_id)

        point = parse_fred_csv(text)
        if point is None:
            raise FetchError(f"FRED {series_id} has no parsable rows", series_id=series_id)
        return FredPoint(date=point.date, rate=point.rate, source_series_id=series_id)

    def fetch_series_with_aliases(self, series: RateSeries, now: datetime | None = None) -> Optional[RateObservation]:
        """
        Try the primary id and every alias; keep the newest observation.

        The result always carries the primary series' label and bucket.
        Returns None when every candidate failed.
        """
        results: list[FredPoint] = []
        for candidate in series.candidates:
            try:
                results.append(self.fetch_series(candidate, now=now))
            except FetchError as e:
                logger.debug("Rate series %s unavailable: %s", candidate, e)
        if not results:
            logger.warning("No data for rate series %s (tried %s)", series.series_id, ", ".join(series.candidates))
            return None

        def _key(p: FredPoint) -> float:
            d = parse_calendar_date(p.date)
            return float(d.toordinal()) if d is not None else 0.0

        best = max(results, key=_key)
        return RateObservation(
            date=best.date,
            rate=best.rate,
            label=series.label,
            bucket=series.bucket,
            source_series_id=best.source_series_id,
        )

    def fetch_all_rates(
        self,
        series: Iterable[RateSeries] | None = None,
        now: datetime | None = None,
    ) -> RatesPayload:
        """
        Fetch every configured series concurrently into a normalized payload.

        Raises `NoRatesAvailableError` only when no series produced data.
        """
        now = now or datetime.now(timezone.utc)
        configs = list(series) if series is not None else list(RATE_SOURCES.values())
        data: dict[str, RateObservation] = {}
        if configs:
            with ThreadPoolExecutor(max_workers=len(configs)) as ex:
                for cfg, obs in zip(configs, ex.map(lambda c: self.fetch_series_with_aliases(c, now=now), configs)):
                    if obs is not None:
                        data[cfg.series_id] = obs
        if not data:
            raise NoRatesAvailableError("No rate series could be fetched from FRED.")

        payload = normalize_rates_payload(
            {
                "fetchedAt": int(now.timestamp() * 1000),
                "fetchedAtIso": now.isoformat(),
                "source": "FRED",
                "data": {sid: obs.model_dump(by_alias=True) for sid, obs in data.items()},
            },
            now=now,
        )
        return payload  # type: ignore[return-value]
