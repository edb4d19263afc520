"""
Enrichment Pipeline — independent row-transform passes over a call dataset.

Each pass copies the incoming rows, adds or overwrites the columns it owns
and returns an EnrichmentResult.  The column union is recomputed after every
pass (provenance columns stay last) and every row is re-keyed to it, so the
output is rectangular even when a pass only touched some rows.

Passes:
    carrier         CallerCarrier from the caller's area code
    geocode         Latitude / Longitude from CallerState
    timezone        CallerTimezone from CallerState
    property-tax    CallerCounty, PropertyTaxRate, CountyAssessedValue,
                    TaxDataYear for CA callers (BOE data)
    property-links  ZillowLink, CountyAssessorLink (+ CallerCounty) (BOE data)

Passes may run in any order.  property-links reuses a CallerCounty already
resolved by property-tax and falls back to the BOE city map otherwise.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from itertools import chain
from typing import Any, Callable
from urllib.parse import quote

from pipeline.boe import BOEClient, BOEData
from pipeline.errors import NotFoundError, ValidationError
from pipeline.schema import normalize_rows, rows_column_union
from utils.config import NOT_FOUND, PROVENANCE_COLUMNS
from utils.reference_tables import (
    AREA_CODE_CARRIERS,
    CA_COUNTY_ASSESSORS,
    STATE_COORDINATES,
    STATE_TIMEZONES,
    UNKNOWN_CARRIER,
    ZILLOW_SEARCH_URL,
)
from utils.strings import digits_only

logger = logging.getLogger(__name__)

Row = dict[str, Any]


@dataclass
class EnrichmentResult:
    """Output of one pass; adopted by the caller as its new working set."""

    rows: list[Row] = field(default_factory=list)
    columns: list[str] = field(default_factory=list)
    added_columns: list[str] = field(default_factory=list)
    enriched_count: int = 0
    message: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "data": self.rows,
            "columns": list(self.columns),
            "message": self.message,
            "enrichedCount": self.enriched_count,
            "addedColumns": list(self.added_columns),
        }


def _finish(
    input_columns: list[str], rows: list[Row], enriched_count: int, message: str
) -> EnrichmentResult:
    columns = rows_column_union(
        chain([dict.fromkeys(input_columns)], rows), trailing=PROVENANCE_COLUMNS
    )
    known = set(input_columns)
    return EnrichmentResult(
        rows=normalize_rows(rows, columns),
        columns=columns,
        added_columns=[c for c in columns if c not in known],
        enriched_count=enriched_count,
        message=message,
    )


def _input_columns(rows: list[Row], columns: list[str] | None) -> list[str]:
    if columns is not None:
        return list(columns)
    return rows_column_union(rows, trailing=PROVENANCE_COLUMNS)


def _text(value: Any) -> str:
    return "" if value is None else str(value).strip()


def has_value(value: Any) -> bool:
    """True unless the cell is empty or the export's "Not Found" placeholder."""
    text = _text(value)
    return bool(text) and text != NOT_FOUND


# ── Static-table passes ──────────────────────────────────────────────────────


def enrich_carrier(rows: list[Row], columns: list[str] | None = None) -> EnrichmentResult:
    """Fill CallerCarrier from the first three digits of CallerID.

    Only rows whose carrier is empty or "Not Found" are touched, so running
    the pass twice leaves resolved values alone.  A three-digit code missing
    from the table becomes "Unknown Carrier".
    """
    input_columns = _input_columns(rows, columns)
    enriched = 0
    out: list[Row] = []
    for row in rows:
        new = dict(row)
        if not has_value(row.get("CallerCarrier")):
            area_code = digits_only(row.get("CallerID"))[:3]
            carrier = AREA_CODE_CARRIERS.get(area_code)
            if carrier:
                new["CallerCarrier"] = carrier
                enriched += 1
            elif len(area_code) == 3:
                new["CallerCarrier"] = UNKNOWN_CARRIER
        out.append(new)
    return _finish(input_columns, out, enriched, f"Enriched carrier for {enriched} records")


def enrich_geocode(rows: list[Row], columns: list[str] | None = None) -> EnrichmentResult:
    """Set Latitude/Longitude from CallerState; unmatched states get None."""
    input_columns = _input_columns(rows, columns)
    enriched = 0
    out: list[Row] = []
    for row in rows:
        new = dict(row)
        coords = STATE_COORDINATES.get(_text(row.get("CallerState")))
        if coords:
            new["Latitude"], new["Longitude"] = coords
            enriched += 1
        else:
            new["Latitude"] = new["Longitude"] = None
        out.append(new)
    return _finish(input_columns, out, enriched, f"Added coordinates for {enriched} records")


def enrich_timezone(rows: list[Row], columns: list[str] | None = None) -> EnrichmentResult:
    """Set CallerTimezone (IANA name) from CallerState; unmatched get None."""
    input_columns = _input_columns(rows, columns)
    enriched = 0
    out: list[Row] = []
    for row in rows:
        new = dict(row)
        tz = STATE_TIMEZONES.get(_text(row.get("CallerState")))
        new["CallerTimezone"] = tz
        if tz:
            enriched += 1
        out.append(new)
    return _finish(input_columns, out, enriched, f"Added timezone for {enriched} records")


# ── BOE-backed passes ────────────────────────────────────────────────────────

_TAX_COLUMNS = ("CallerCounty", "PropertyTaxRate", "CountyAssessedValue", "TaxDataYear")


def enrich_property_tax(
    rows: list[Row], boe: BOEData, columns: list[str] | None = None
) -> EnrichmentResult:
    """Attach county and county tax figures to CA callers.

    The county comes from the uppercased CallerCity via the BOE city map;
    tax figures from the uppercased county.  Every row carries the four
    columns afterwards; values already present in a row are kept when they
    cannot be resolved.
    """
    input_columns = _input_columns(rows, columns)
    enriched = 0
    out: list[Row] = []
    for row in rows:
        new = dict(row)
        for col in _TAX_COLUMNS:
            new.setdefault(col, None)
        if _text(row.get("CallerState")) == "CA":
            county = boe.county_for_city(row.get("CallerCity"))
            if county:
                new["CallerCounty"] = county
                tax = boe.tax_for_county(county)
                if tax:
                    new["PropertyTaxRate"] = tax.avg_tax_rate
                    new["CountyAssessedValue"] = tax.net_assessed_value
                    new["TaxDataYear"] = tax.year
                    enriched += 1
        out.append(new)
    return _finish(
        input_columns, out, enriched,
        f"Added CA property tax data for {enriched} records (CA callers only)",
    )


def build_zillow_url(address: Any, city: Any, state: Any, zip_code: Any) -> str | None:
    """Address-search URL, or None for an empty/placeholder address."""
    if not has_value(address):
        return None
    query = f"{_text(address)}, {_text(city)}, {_text(state)} {_text(zip_code)}".strip()
    return ZILLOW_SEARCH_URL.format(query=quote(query, safe="!'()*~"))


def enrich_property_links(
    rows: list[Row], boe: BOEData, columns: list[str] | None = None
) -> EnrichmentResult:
    """Add ZillowLink for rows with an address and CountyAssessorLink for CA.

    The CA county is the row's CallerCounty when set, else the BOE county of
    the uppercased CallerCity; only counties in the assessor table link.
    """
    input_columns = _input_columns(rows, columns)
    enriched = 0
    out: list[Row] = []
    for row in rows:
        new = dict(row)
        new.setdefault("ZillowLink", None)
        new.setdefault("CountyAssessorLink", None)
        link = build_zillow_url(
            row.get("CallerAddress"), row.get("CallerCity"),
            row.get("CallerState"), row.get("CallerZip"),
        )
        if link:
            new["ZillowLink"] = link
            enriched += 1
        if _text(row.get("CallerState")) == "CA":
            county = _text(row.get("CallerCounty")) or boe.county_for_city(row.get("CallerCity"))
            if county and county in CA_COUNTY_ASSESSORS:
                new["CallerCounty"] = county
                new["CountyAssessorLink"] = CA_COUNTY_ASSESSORS[county]
        out.append(new)
    return _finish(
        input_columns, out, enriched,
        f"Added property links for {enriched} records with addresses",
    )


# ── Registry ─────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class EnrichmentPass:
    name: str
    func: Callable[..., EnrichmentResult]
    needs_boe: bool = False


ENRICHMENT_PASSES: dict[str, EnrichmentPass] = {
    p.name: p
    for p in (
        EnrichmentPass("carrier", enrich_carrier),
        EnrichmentPass("geocode", enrich_geocode),
        EnrichmentPass("timezone", enrich_timezone),
        EnrichmentPass("property-tax", enrich_property_tax, needs_boe=True),
        EnrichmentPass("property-links", enrich_property_links, needs_boe=True),
    )
}


def run_pass(
    name: str,
    rows: list[Row],
    columns: list[str] | None = None,
    boe_client: BOEClient | None = None,
) -> EnrichmentResult:
    """Run one named pass, fetching BOE data first when the pass needs it.

    Raises:
        NotFoundError: Unknown pass name.
        ExternalFetchError: BOE data needed but unavailable.
    """
    enrichment = ENRICHMENT_PASSES.get(name)
    if enrichment is None:
        raise NotFoundError(
            f"Unknown enrichment '{name}'. Available: {', '.join(ENRICHMENT_PASSES)}"
        )
    if enrichment.needs_boe:
        if boe_client is None:
            raise ValidationError(f"Enrichment '{name}' requires BOE reference data")
        result = enrichment.func(rows, boe_client.fetch(), columns=columns)
    else:
        result = enrichment.func(rows, columns=columns)
    logger.info("Enrichment %s: %s (%d rows, added %s)",
                name, result.message, len(result.rows), result.added_columns or "none")
    return result
