"""
Unit tests for pipeline/boe.py — BOE reference-data fetch and cache.

All HTTP traffic goes through a MagicMock session; no network access.
"""
import sys
from pathlib import Path
from unittest.mock import MagicMock

import pytest
import requests

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from pipeline.boe import BOEClient, build_city_maps, build_tax_map
from pipeline.errors import ExternalFetchError

CITY_RECORDS = [
    {"City": "San Jose", "County": "Santa Clara", "LocallyAssessedValue": 300,
     "AssessmentYearTo": 2023},
    {"City": "SAN JOSE", "County": "Wrong", "LocallyAssessedValue": 1,
     "AssessmentYearTo": 2021},
    {"City": "Pasadena", "County": "Los Angeles", "LocallyAssessedValue": 200},
    {"City": None, "County": "Ignored"},
]

TAX_RECORDS = [
    {"County": "Santa Clara", "AverageTaxRate": 1.18, "NetTaxableAssessedValue": 600,
     "TotalPropertyTaxAllocationsandLevies": 7, "AssessmentYearFrom": 2022,
     "AssessmentYearTo": 2023},
    {"County": "SANTA CLARA", "AverageTaxRate": 9.99, "AssessmentYearFrom": 2020,
     "AssessmentYearTo": 2021},
]


class FakeClock:
    def __init__(self, now=1_000_000.0):
        self.now = now

    def __call__(self):
        return self.now


def _response(payload):
    resp = MagicMock()
    resp.status_code = 200
    resp.url = "https://boe.test/odata"
    resp.json.return_value = payload
    return resp


def _session(city=CITY_RECORDS, tax=TAX_RECORDS):
    """Session mock serving one page per entity set."""
    session = MagicMock()

    def get(url, params=None, timeout=None):
        records = city if url.endswith("Assessed_Property_Values_by_City") else tax
        skip = params["$skip"]
        return _response({"value": records[skip:skip + params["$top"]]})

    session.get.side_effect = get
    return session


def _client(session, clock=None, **kw):
    return BOEClient("https://boe.test/odata/", session=session,
                     clock=clock or FakeClock(), **kw)


class TestMaps:
    def test_city_map_first_record_wins(self):
        city_to_county, values = build_city_maps(CITY_RECORDS)
        assert city_to_county == {"SAN JOSE": "Santa Clara", "PASADENA": "Los Angeles"}
        assert values["SAN JOSE"] == 300

    def test_tax_map_first_record_wins(self):
        rates = build_tax_map(TAX_RECORDS)
        assert list(rates) == ["SANTA CLARA"]
        assert rates["SANTA CLARA"].avg_tax_rate == 1.18
        assert rates["SANTA CLARA"].year == "2022-2023"


class TestFetch:
    def test_fetch_builds_lookups(self):
        data = _client(_session()).fetch()
        assert data.county_for_city(" san jose") == "Santa Clara"
        assert data.tax_for_county("Santa Clara").net_assessed_value == 600
        assert data.county_for_city(None) is None

    def test_request_params(self):
        session = _session()
        _client(session, timeout=5).fetch()
        url = session.get.call_args_list[0].args[0]
        kwargs = session.get.call_args_list[0].kwargs
        assert url == "https://boe.test/odata/Assessed_Property_Values_by_City"
        assert kwargs["params"]["$orderby"] == "AssessmentYearTo desc"
        assert kwargs["params"]["$skip"] == 0
        assert kwargs["timeout"] == 5

    def test_pagination(self):
        many = [{"City": f"City{i}", "County": "Kern"} for i in range(5)]
        session = _session(city=many)
        data = _client(session, page_size=2).fetch()
        assert len(data.city_to_county) == 5
        city_calls = [c for c in session.get.call_args_list
                      if c.args[0].endswith("by_City")]
        assert [c.kwargs["params"]["$skip"] for c in city_calls] == [0, 2, 4]

    def test_limit_respected(self):
        many = [{"City": f"City{i}", "County": "Kern"} for i in range(10)]
        data = _client(_session(city=many), city_limit=3, page_size=2).fetch()
        assert len(data.city_to_county) == 3


class TestCaching:
    def test_second_fetch_served_from_cache(self):
        session = _session()
        client = _client(session)
        first = client.fetch()
        calls = session.get.call_count
        assert client.fetch() is first
        assert session.get.call_count == calls
        assert client.is_fresh()

    def test_refetch_after_ttl(self):
        clock = FakeClock()
        session = _session()
        client = _client(session, clock=clock, ttl_hours=24)
        first = client.fetch()
        clock.now += 25 * 3600
        assert not client.is_fresh()
        assert client.fetch() is not first

    def test_force_refetches(self):
        client = _client(_session())
        first = client.fetch()
        assert client.fetch(force=True) is not first

    def test_invalidate(self):
        client = _client(_session())
        client.fetch()
        client.invalidate()
        assert not client.is_fresh()


class TestFailures:
    def test_error_without_cache(self):
        session = MagicMock()
        session.get.side_effect = requests.ConnectionError("down")
        with pytest.raises(ExternalFetchError):
            _client(session).fetch()

    def test_stale_data_served_on_failure(self, caplog):
        clock = FakeClock()
        session = _session()
        client = _client(session, clock=clock)
        first = client.fetch()
        clock.now += 48 * 3600
        session.get.side_effect = requests.Timeout("slow")
        with caplog.at_level("WARNING", logger="pipeline.boe"):
            assert client.fetch() is first
        assert "serving cached data" in caplog.text

    def test_http_error_status(self):
        session = MagicMock()
        resp = _response({})
        resp.raise_for_status.side_effect = requests.HTTPError("500 Server Error")
        session.get.return_value = resp
        with pytest.raises(ExternalFetchError):
            _client(session).fetch()

    def test_non_json_body(self):
        session = MagicMock()
        resp = _response(None)
        resp.json.side_effect = ValueError("no json")
        session.get.return_value = resp
        with pytest.raises(ExternalFetchError):
            _client(session).fetch()

    def test_unexpected_shape(self):
        session = MagicMock()
        session.get.return_value = _response({"error": "nope"})
        with pytest.raises(ExternalFetchError):
            _client(session).fetch()
