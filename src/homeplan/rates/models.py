from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


# Payload-level staleness: older observations drop out of best-rate ranking and live resolution.
PAYLOAD_STALE_AFTER_DAYS = 35
# UI-level nudge: a payload this old suggests a manual refresh. Independent of the threshold above.
REFRESH_SUGGESTED_AFTER_DAYS = 5

RATES_PAYLOAD_VERSION = 2


@dataclass(frozen=True)
class RateSeries:
    series_id: str
    label: str
    bucket: str
    aliases: tuple[str, ...] = ()

    @property
    def candidates(self) -> tuple[str, ...]:
        return (self.series_id, *self.aliases)


class _CamelModel(BaseModel):
    # Snapshot/cache JSON uses camelCase keys; Python code uses snake_case.
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class RateObservation(_CamelModel):
    date: str
    rate: float
    label: str = ""
    bucket: str = ""
    source_series_id: str = ""
    is_stale: bool = False
    stale_days: Optional[int] = None


class BestRateEntry(_CamelModel):
    series_id: str
    bucket: str
    label: str
    rate: float
    date: str
    is_stale: bool = False


class BestRatesSummary(_CamelModel):
    available: List[BestRateEntry] = Field(default_factory=list)
    lowest: Optional[BestRateEntry] = None
    highest: Optional[BestRateEntry] = None
    spread_bps: Optional[int] = None


class RatesSummary(_CamelModel):
    best_rates: BestRatesSummary = Field(default_factory=BestRatesSummary)


class RatesPayload(_CamelModel):
    version: int = RATES_PAYLOAD_VERSION
    fetched_at: int  # epoch milliseconds
    fetched_at_iso: str
    source: str = "FRED"
    data: Dict[str, RateObservation] = Field(default_factory=dict)
    summary: RatesSummary = Field(default_factory=RatesSummary)

    @property
    def has_data(self) -> bool:
        return bool(self.data)

    def to_json_dict(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)
