"""
Pytest configuration and shared fixtures for homeplan tests.

Usage:
    @pytest.fixture functions are automatically available to all tests.
    Import helpers from conftest when needed.
"""
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Callable, Dict, Optional

import pytest
import requests


def pytest_configure():
    """
    Ensure `src/` is on sys.path for the src-layout package import (`homeplan`).
    This keeps tests runnable without requiring an editable install.
    """
    root = Path(__file__).resolve().parents[1]
    src = root / "src"
    if src.exists():
        sys.path.insert(0, str(src))


# =============================================================================
# Clock
# =============================================================================

NOW = datetime(2026, 10, 19, 15, 30, tzinfo=timezone.utc)


@pytest.fixture
def now() -> datetime:
    """Fixed "now" so staleness and TTL checks are deterministic."""
    return NOW


def days_ago(days: int, now: datetime = NOW) -> str:
    return (now - timedelta(days=days)).strftime("%Y-%m-%d")


# =============================================================================
# Fake HTTP
# =============================================================================

class FakeResponse:
    def __init__(self, text: str = "", status_code: int = 200, json_data: Any = None):
        self.text = text
        self.status_code = status_code
        self._json = json_data

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error", response=self)

    def json(self) -> Any:
        if self._json is None:
            raise ValueError("no json body")
        return self._json


class FakeSession:
    """
    Stand-in for `requests.Session`. ``handler(url, params)`` returns a
    FakeResponse or raises; every call is recorded.
    """

    def __init__(self, handler: Callable[[str, Dict[str, Any]], FakeResponse]):
        self.handler = handler
        self.calls: list[tuple[str, Dict[str, Any]]] = []

    def get(self, url: str, params: Optional[Dict[str, Any]] = None, **kwargs) -> FakeResponse:
        params = dict(params or {})
        self.calls.append((url, params))
        return self.handler(url, params)


def fred_csv(rows: list[tuple[str, str]], header: str = "observation_date,VALUE") -> str:
    return "\n".join([header, *[f"{d},{v}" for d, v in rows]]) + "\n"


@pytest.fixture
def fred_session() -> Callable[[Dict[str, Any]], FakeSession]:
    """
    Build a FakeSession from ``{series_id: csv_text | status_code}``; unknown
    ids answer 404.
    """

    def _build(answers: Dict[str, Any]) -> FakeSession:
        def handler(url: str, params: Dict[str, Any]) -> FakeResponse:
            answer = answers.get(params.get("id"), 404)
            if isinstance(answer, int):
                return FakeResponse(status_code=answer)
            if isinstance(answer, Exception):
                raise answer
            return FakeResponse(text=answer)

        return FakeSession(handler)

    return _build


# =============================================================================
# Settings / store
# =============================================================================

@pytest.fixture
def settings(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    """Settings pointed at a temporary data dir and snapshot path (no .env influence)."""
    from homeplan.config import Settings

    for key in ("HOMEPLAN_DATA_DIR", "HOMEPLAN_SNAPSHOT_PATH", "CENSUS_API_KEY"):
        monkeypatch.delenv(key, raising=False)
    return Settings(
        _env_file=None,
        HOMEPLAN_DATA_DIR=str(tmp_path / "state"),
        HOMEPLAN_SNAPSHOT_PATH=str(tmp_path / "public" / "rates.json"),
    )


@pytest.fixture
def store(tmp_path: Path):
    from homeplan.state.store import LocalStore

    return LocalStore(tmp_path / "state")


# =============================================================================
# Sample data
# =============================================================================

def make_payload_dict(now: datetime = NOW, **overrides: Any) -> dict:
    """Raw camelCase payload as found in the snapshot file or the local cache."""
    data = {
        "MORTGAGE30US": {"date": days_ago(4, now), "rate": 6.3},
        "MORTGAGE15US": {"date": days_ago(4, now), "rate": 5.5},
        "MORTGAGE5US": {"date": days_ago(4, now), "rate": 6.1, "sourceSeriesId": "MORTGAGEARMSUS"},
    }
    raw = {
        "version": 2,
        "fetchedAt": int(now.timestamp() * 1000),
        "fetchedAtIso": now.isoformat(),
        "source": "FRED",
        "data": data,
    }
    raw.update(overrides)
    return raw


@pytest.fixture
def sample_payload_dict(now: datetime) -> dict:
    return make_payload_dict(now)


@pytest.fixture
def sample_payload(now: datetime):
    from homeplan.rates.summary import normalize_rates_payload

    return normalize_rates_payload(make_payload_dict(now), now=now)
