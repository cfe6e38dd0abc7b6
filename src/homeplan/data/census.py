"""ZIP-level property tax estimates from the Census ACS 5-year tables.

Effective rate = median real estate taxes paid (B25103) / median home value
(B25077) for the ZIP Code Tabulation Area.
"""
from __future__ import annotations

import logging
import math
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Callable, Optional

import requests
from requests.exceptions import RequestException

from homeplan.config import Settings
from homeplan.utils.numbers import is_complete_zip, sanitize_zip

logger = logging.getLogger(__name__)

ACS_YEAR_LABEL = "2022 ACS 5-year"
NAME_FIELD = "NAME"
HOME_VALUE_FIELD = "B25077_001E"
ANNUAL_TAX_FIELD = "B25103_001E"


@dataclass(frozen=True)
class TaxLookupResult:
    zip_name: str
    home_value: float
    annual_tax: float
    rate: float
    year: str = ACS_YEAR_LABEL


def _to_float(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return float("nan")


def parse_census_tax_rate(rows: Any) -> Optional[TaxLookupResult]:
    """Header row + one data row; anything else is treated as no data."""
    if not isinstance(rows, list) or len(rows) != 2:
        return None
    header, data = rows
    if not isinstance(header, list) or not isinstance(data, list):
        return None
    if HOME_VALUE_FIELD not in header or ANNUAL_TAX_FIELD not in header:
        return None
    value_idx = header.index(HOME_VALUE_FIELD)
    tax_idx = header.index(ANNUAL_TAX_FIELD)
    if max(value_idx, tax_idx) >= len(data):
        return None
    home_value = _to_float(data[value_idx])
    annual_tax = _to_float(data[tax_idx])
    # ACS uses large negative sentinels (e.g. -666666666) for suppressed cells.
    if not math.isfinite(home_value) or not math.isfinite(annual_tax) or home_value <= 0:
        return None
    name = "ZCTA"
    if NAME_FIELD in header:
        name_idx = header.index(NAME_FIELD)
        if name_idx < len(data) and data[name_idx]:
            name = str(data[name_idx])
    return TaxLookupResult(zip_name=name, home_value=home_value, annual_tax=annual_tax, rate=annual_tax / home_value)


class CensusClient:
    def __init__(self, settings: Settings, session: requests.Session | None = None):
        self.settings = settings
        self.session = session or requests.Session()

    def lookup_tax_rate(self, zip5: str) -> Optional[TaxLookupResult]:
        """Never raises; None for incomplete ZIPs, upstream errors and unusable rows."""
        if not is_complete_zip(zip5):
            return None
        params = {
            "get": f"{NAME_FIELD},{HOME_VALUE_FIELD},{ANNUAL_TAX_FIELD}",
            "for": f"zip code tabulation area:{zip5}",
        }
        if self.settings.census_api_key:
            params["key"] = self.settings.census_api_key
        try:
            r = self.session.get(self.settings.census_api_url, params=params, timeout=self.settings.http_timeout_s)
            r.raise_for_status()
            rows = r.json()
        except (RequestException, ValueError) as e:
            logger.debug("Census tax lookup failed for %s: %s", zip5, e)
            return None
        parsed = parse_census_tax_rate(rows)
        if parsed is None:
            logger.debug("Census tax lookup for %s returned no usable row", zip5)
        return parsed


class ZipTaxWatcher:
    """
    Tracks the tax lookup for the ZIP field.

    Each accepted ZIP bumps a generation counter; a lookup may only publish its
    result while its generation is still current, so a slow response for an
    abandoned ZIP can't overwrite a newer one.
    """

    def __init__(
        self,
        lookup: Callable[[str], Optional[TaxLookupResult]],
        executor: ThreadPoolExecutor | None = None,
    ):
        self._lookup = lookup
        self._executor = executor
        self._lock = threading.Lock()
        self._generation = 0
        self.zip_code = ""
        self.status = "idle"
        self.result: Optional[TaxLookupResult] = None

    @property
    def rate(self) -> float:
        return self.result.rate if self.result is not None else 0.0

    def begin(self, zip_text: str) -> Optional[int]:
        """Start tracking ``zip_text``; returns the generation token, or None when the ZIP is incomplete."""
        zip5 = sanitize_zip(zip_text)
        with self._lock:
            self._generation += 1
            self.zip_code = zip5
            if not is_complete_zip(zip5):
                self.status = "idle"
                self.result = None
                return None
            self.status = "loading"
            return self._generation

    def complete(self, token: int, result: Optional[TaxLookupResult]) -> bool:
        """Publish ``result`` if ``token`` is still current; returns whether it was applied."""
        with self._lock:
            if token != self._generation:
                logger.debug("Discarding superseded tax lookup (generation %s)", token)
                return False
            self.result = result
            self.status = "ready" if result is not None else "error"
            return True

    def update(self, zip_text: str) -> Optional[Future]:
        """
        React to a ZIP edit. Runs the lookup on the executor when one was given,
        otherwise inline. Returns the future (or None when nothing was started).
        """
        token = self.begin(zip_text)
        if token is None:
            return None
        zip5 = self.zip_code

        def _run() -> bool:
            return self.complete(token, self._lookup(zip5))

        if self._executor is None:
            fut: Future = Future()
            fut.set_result(_run())
            return fut
        return self._executor.submit(_run)
