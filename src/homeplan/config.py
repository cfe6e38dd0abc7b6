from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Local persisted state (inputs, settings, rate cache, scenarios): one JSON file per key.
    HOMEPLAN_DATA_DIR: str = "data/homeplan"
    # Prebuilt rate snapshot written by `homeplan rates fetch` and read before any live fetch.
    HOMEPLAN_SNAPSHOT_PATH: str = "public/rates.json"

    FRED_GRAPH_URL: str = "https://fred.stlouisfed.org/graph/fredgraph.csv"
    CENSUS_API_URL: str = "https://api.census.gov/data/2022/acs/acs5"
    # The ACS endpoint answers small volumes without a key.
    CENSUS_API_KEY: str | None = None

    HTTP_TIMEOUT_S: float = 30.0
    RATE_LOOKBACK_DAYS: int = 30
    RATE_CACHE_TTL_HOURS: float = 24.0

    @property
    def data_dir(self) -> Path:
        return Path(self.HOMEPLAN_DATA_DIR)

    @property
    def snapshot_path(self) -> Path:
        return Path(self.HOMEPLAN_SNAPSHOT_PATH)

    @property
    def fred_graph_url(self) -> str:
        return self.FRED_GRAPH_URL

    @property
    def census_api_url(self) -> str:
        return self.CENSUS_API_URL

    @property
    def census_api_key(self) -> str | None:
        return self.CENSUS_API_KEY

    @property
    def http_timeout_s(self) -> float:
        return float(self.HTTP_TIMEOUT_S)

    @property
    def rate_lookback_days(self) -> int:
        return max(30, int(self.RATE_LOOKBACK_DAYS))

    @property
    def rate_cache_ttl_hours(self) -> float:
        return float(self.RATE_CACHE_TTL_HOURS)


def load_settings() -> Settings:
    return Settings()
