"""
Unit tests for pipeline/enrichment.py — carrier, geocode, timezone,
property-tax and property-links passes and the pass registry.
"""
import sys
from pathlib import Path
from unittest.mock import MagicMock

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from pipeline.boe import BOEData, CountyTaxInfo
from pipeline.enrichment import (
    ENRICHMENT_PASSES,
    build_zillow_url,
    enrich_carrier,
    enrich_geocode,
    enrich_property_links,
    enrich_property_tax,
    enrich_timezone,
    has_value,
    run_pass,
)
from pipeline.errors import NotFoundError, ValidationError


def _row(**kw):
    base = {"CallerID": None, "CallerState": None, "_sourceFile": "a.csv", "_sourceFileId": 1}
    base.update(kw)
    return base


@pytest.fixture()
def boe():
    return BOEData(
        city_to_county={"SAN JOSE": "Santa Clara", "PASADENA": "Los Angeles",
                        "NOWHERE": "Atlantis"},
        city_values={"SAN JOSE": 123},
        county_tax_rates={
            "SANTA CLARA": CountyTaxInfo(avg_tax_rate=1.18, net_assessed_value=600000000,
                                         total_levies=7000000, year="2022-2023"),
        },
        fetched_at=0.0,
    )


class TestHasValue:
    @pytest.mark.parametrize("value", [None, "", "   ", "Not Found"])
    def test_empty(self, value):
        assert has_value(value) is False

    def test_present(self):
        assert has_value("AT&T") is True


class TestCarrier:
    def test_fills_from_area_code(self):
        result = enrich_carrier([_row(CallerID="(408) 555-1234")])
        assert result.rows[0]["CallerCarrier"] == "AT&T"
        assert result.enriched_count == 1
        assert result.message == "Enriched carrier for 1 records"
        assert result.added_columns == ["CallerCarrier"]

    def test_unknown_area_code(self):
        result = enrich_carrier([_row(CallerID="9995551234")])
        assert result.rows[0]["CallerCarrier"] == "Unknown Carrier"
        assert result.enriched_count == 0

    def test_existing_value_kept(self):
        result = enrich_carrier([_row(CallerID="4085551234", CallerCarrier="T-Mobile")])
        assert result.rows[0]["CallerCarrier"] == "T-Mobile"
        assert result.enriched_count == 0

    def test_not_found_placeholder_replaced(self):
        result = enrich_carrier([_row(CallerID="2125551234", CallerCarrier="Not Found")])
        assert result.rows[0]["CallerCarrier"] == "Verizon"

    def test_short_caller_id_left_empty(self):
        result = enrich_carrier([_row(CallerID="12")])
        assert "CallerCarrier" not in result.columns

    def test_idempotent(self):
        once = enrich_carrier([_row(CallerID="4085551234")])
        twice = enrich_carrier(once.rows, once.columns)
        assert twice.rows == once.rows
        assert twice.enriched_count == 0
        assert twice.added_columns == []

    def test_input_not_mutated(self):
        rows = [_row(CallerID="4085551234")]
        enrich_carrier(rows)
        assert "CallerCarrier" not in rows[0]


class TestGeocode:
    def test_ca_and_ny(self):
        result = enrich_geocode([_row(CallerState="CA"), _row(CallerState="NY")])
        ca, ny = result.rows
        assert ca["Latitude"] == pytest.approx(36.12, abs=0.01)
        assert ca["Longitude"] == pytest.approx(-119.68, abs=0.01)
        assert ny["Latitude"] == pytest.approx(42.17, abs=0.01)
        assert result.message == "Added coordinates for 2 records"

    def test_unmatched_state_is_null(self):
        result = enrich_geocode([_row(CallerState="ZZ"), _row(CallerState=None)])
        for row in result.rows:
            assert row["Latitude"] is None
            assert row["Longitude"] is None
        assert result.enriched_count == 0

    def test_column_order_keeps_provenance_last(self):
        result = enrich_geocode([_row(CallerState="CA")])
        assert result.columns == ["CallerID", "CallerState", "Latitude", "Longitude",
                                  "_sourceFile", "_sourceFileId"]
        assert list(result.rows[0]) == result.columns

    def test_rerun_is_stable(self):
        once = enrich_geocode([_row(CallerState="CA"), _row(CallerState="ZZ")])
        twice = enrich_geocode(once.rows, once.columns)
        assert twice.rows == once.rows
        assert twice.columns == once.columns


class TestTimezone:
    def test_timezones(self):
        result = enrich_timezone([_row(CallerState="CA"), _row(CallerState="NY"),
                                  _row(CallerState="ZZ")])
        assert [r["CallerTimezone"] for r in result.rows] == [
            "America/Los_Angeles", "America/New_York", None,
        ]
        assert result.message == "Added timezone for 2 records"


class TestPropertyTax:
    def test_ca_row_enriched(self, boe):
        result = enrich_property_tax([_row(CallerState="CA", CallerCity="san jose ")], boe)
        row = result.rows[0]
        assert row["CallerCounty"] == "Santa Clara"
        assert row["PropertyTaxRate"] == 1.18
        assert row["CountyAssessedValue"] == 600000000
        assert row["TaxDataYear"] == "2022-2023"
        assert result.enriched_count == 1
        assert result.message == "Added CA property tax data for 1 records (CA callers only)"

    def test_non_ca_rows_get_null_columns(self, boe):
        result = enrich_property_tax([_row(CallerState="NY", CallerCity="San Jose")], boe)
        row = result.rows[0]
        for col in ("CallerCounty", "PropertyTaxRate", "CountyAssessedValue", "TaxDataYear"):
            assert row[col] is None
        assert result.enriched_count == 0

    def test_county_without_tax_data(self, boe):
        result = enrich_property_tax([_row(CallerState="CA", CallerCity="Pasadena")], boe)
        assert result.rows[0]["CallerCounty"] == "Los Angeles"
        assert result.rows[0]["PropertyTaxRate"] is None
        assert result.enriched_count == 0

    def test_unknown_city(self, boe):
        result = enrich_property_tax([_row(CallerState="CA", CallerCity="Gotham")], boe)
        assert result.rows[0]["CallerCounty"] is None


class TestPropertyLinks:
    def test_zillow_url_encoding(self):
        url = build_zillow_url("123 Main St", "San Jose", "CA", "95112")
        assert url == ("https://www.zillow.com/homes/"
                       "123%20Main%20St%2C%20San%20Jose%2C%20CA%2095112_rb/")

    @pytest.mark.parametrize("address", [None, "", "Not Found"])
    def test_no_address_no_url(self, address):
        assert build_zillow_url(address, "San Jose", "CA", "95112") is None

    def test_links_from_city_lookup(self, boe):
        result = enrich_property_links([_row(
            CallerState="CA", CallerCity="San Jose", CallerAddress="1 First St",
            CallerZip="95112",
        )], boe)
        row = result.rows[0]
        assert row["ZillowLink"].startswith("https://www.zillow.com/homes/1%20First%20St")
        assert row["CallerCounty"] == "Santa Clara"
        assert row["CountyAssessorLink"] == "https://www.sccassessor.org/"
        assert result.message == "Added property links for 1 records with addresses"

    def test_existing_county_preferred(self, boe):
        result = enrich_property_links([_row(
            CallerState="CA", CallerCity="San Jose", CallerCounty="Los Angeles",
        )], boe)
        assert result.rows[0]["CountyAssessorLink"] == "https://portal.assessor.lacounty.gov/"
        assert result.rows[0]["ZillowLink"] is None
        assert result.enriched_count == 0

    def test_county_outside_table_not_linked(self, boe):
        result = enrich_property_links([_row(CallerState="CA", CallerCity="Nowhere")], boe)
        assert result.rows[0]["CountyAssessorLink"] is None

    def test_non_ca_gets_no_assessor(self, boe):
        result = enrich_property_links([_row(
            CallerState="NY", CallerCity="San Jose", CallerAddress="5 Elm St",
        )], boe)
        assert result.rows[0]["ZillowLink"] is not None
        assert result.rows[0]["CountyAssessorLink"] is None


class TestRunPass:
    def test_registry_names(self):
        assert list(ENRICHMENT_PASSES) == [
            "carrier", "geocode", "timezone", "property-tax", "property-links",
        ]

    def test_unknown_pass(self):
        with pytest.raises(NotFoundError):
            run_pass("weather", [])

    def test_boe_pass_without_client(self):
        with pytest.raises(ValidationError):
            run_pass("property-tax", [_row(CallerState="CA")])

    def test_boe_pass_fetches(self, boe):
        client = MagicMock()
        client.fetch.return_value = boe
        result = run_pass("property-tax", [_row(CallerState="CA", CallerCity="San Jose")],
                          boe_client=client)
        client.fetch.assert_called_once_with()
        assert result.enriched_count == 1

    def test_static_pass_ignores_client(self):
        client = MagicMock()
        run_pass("geocode", [_row(CallerState="CA")], boe_client=client)
        client.fetch.assert_not_called()

    def test_explicit_columns_respected(self):
        rows = [{"CallerState": "CA", "Extra": None}]
        result = run_pass("timezone", rows, columns=["CallerState", "Extra"])
        assert result.columns == ["CallerState", "Extra", "CallerTimezone"]
