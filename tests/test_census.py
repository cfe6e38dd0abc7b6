from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor

import pytest
import requests
from conftest import FakeResponse, FakeSession

from homeplan.data.census import CensusClient, TaxLookupResult, ZipTaxWatcher, parse_census_tax_rate

HEADER = ["NAME", "B25077_001E", "B25103_001E", "zip code tabulation area"]


def test_parse_census_tax_rate():
    rows = [HEADER, ["ZCTA5 30309", "500000", "5000", "30309"]]
    result = parse_census_tax_rate(rows)
    assert result.zip_name == "ZCTA5 30309"
    assert result.rate == pytest.approx(0.01)
    assert result.year == "2022 ACS 5-year"


def test_parse_census_column_order_does_not_matter():
    rows = [["B25103_001E", "NAME", "B25077_001E"], ["3000", "ZCTA5 10001", "600000"]]
    assert parse_census_tax_rate(rows).rate == pytest.approx(0.005)


@pytest.mark.parametrize(
    "rows",
    [
        None,
        [],
        [HEADER],
        [HEADER, ["a", "1", "2", "z"], ["b", "1", "2", "z"]],
        [["NAME", "OTHER"], ["x", "1"]],
        [HEADER, ["ZCTA5 00000", "-666666666", "1000", "00000"]],
        [HEADER, ["ZCTA5 00000", "0", "1000", "00000"]],
        [HEADER, ["ZCTA5 00000", None, "1000", "00000"]],
    ],
)
def test_parse_census_rejects_unusable_rows(rows):
    assert parse_census_tax_rate(rows) is None


def test_lookup_builds_query(settings):
    session = FakeSession(lambda url, params: FakeResponse(json_data=[HEADER, ["ZCTA5 30309", "400000", "4400", "30309"]]))
    result = CensusClient(settings, session=session).lookup_tax_rate("30309")

    assert result.rate == pytest.approx(0.011)
    url, params = session.calls[0]
    assert url == settings.census_api_url
    assert params["get"] == "NAME,B25077_001E,B25103_001E"
    assert params["for"] == "zip code tabulation area:30309"
    assert "key" not in params


def test_lookup_never_raises(settings):
    def boom(url, params):
        raise requests.ConnectionError("offline")

    client = CensusClient(settings, session=FakeSession(boom))
    assert client.lookup_tax_rate("30309") is None
    assert CensusClient(settings, session=FakeSession(lambda u, p: FakeResponse(status_code=500))).lookup_tax_rate("30309") is None
    assert CensusClient(settings, session=FakeSession(lambda u, p: FakeResponse(text="<html>"))).lookup_tax_rate("30309") is None


def test_lookup_skips_incomplete_zip(settings):
    session = FakeSession(lambda url, params: FakeResponse(json_data=[]))
    assert CensusClient(settings, session=session).lookup_tax_rate("3030") is None
    assert session.calls == []


def _result(rate: float) -> TaxLookupResult:
    return TaxLookupResult(zip_name="z", home_value=100.0, annual_tax=rate * 100, rate=rate)


def test_watcher_incomplete_zip_resets():
    watcher = ZipTaxWatcher(lambda z: _result(0.01))
    watcher.update("30309").result()
    assert watcher.status == "ready"
    assert watcher.rate == 0.01

    assert watcher.update("303") is None
    assert watcher.status == "idle"
    assert watcher.rate == 0.0


def test_watcher_error_status():
    watcher = ZipTaxWatcher(lambda z: None)
    watcher.update("99999").result()
    assert watcher.status == "error"
    assert watcher.rate == 0.0


def test_watcher_last_write_wins():
    watcher = ZipTaxWatcher(lambda z: None)
    first = watcher.begin("11111")
    second = watcher.begin("22222")

    assert watcher.complete(second, _result(0.02)) is True
    # The slower, superseded lookup arrives afterwards and is discarded.
    assert watcher.complete(first, _result(0.01)) is False
    assert watcher.zip_code == "22222"
    assert watcher.rate == 0.02


def test_watcher_on_executor():
    with ThreadPoolExecutor(max_workers=1) as ex:
        watcher = ZipTaxWatcher(lambda z: _result(0.015), executor=ex)
        fut = watcher.update("30309")
        assert fut.result() is True
    assert watcher.status == "ready"
    assert watcher.rate == 0.015
