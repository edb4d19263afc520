"""
BOE reference data — California city→county and county→tax-rate lookups.

Fetched from the CA Board of Equalization OData portal and kept in memory
for ``ttl_hours`` (24 h by default).  Two entity sets are read, newest
assessment year first:

    Assessed_Property_Values_by_City   City, County, LocallyAssessedValue
    Property_Tax_Allocations           County, AverageTaxRate,
                                       NetTaxableAssessedValue,
                                       TotalPropertyTaxAllocationsandLevies,
                                       AssessmentYearFrom, AssessmentYearTo

Maps are keyed by the whitespace-normalised, uppercased city / county name
and keep the first
record seen per key, which is the most recent year given the ordering.

Failure policy:
  - No cached data yet and the fetch fails → ExternalFetchError propagates.
  - Cached data exists (even expired) and the refresh fails → the stale copy
    is served and a WARNING is logged; the next call retries the fetch.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Callable

import requests

from pipeline.errors import ExternalFetchError
from utils.http import SessionManager, get_json
from utils.strings import normalize_whitespace

logger = logging.getLogger(__name__)

CITY_ENTITY = "Assessed_Property_Values_by_City"
TAX_ENTITY = "Property_Tax_Allocations"
ORDER_BY = "AssessmentYearTo desc"


def _key(name: Any) -> str:
    """Lookup key for a city or county name: "  san   jose" -> "SAN JOSE"."""
    return normalize_whitespace(str(name)).upper()


@dataclass
class CountyTaxInfo:
    avg_tax_rate: Any = None
    net_assessed_value: Any = None
    total_levies: Any = None
    year: str | None = None


@dataclass
class BOEData:
    """One snapshot of the BOE reference maps."""

    city_to_county: dict[str, str] = field(default_factory=dict)
    city_values: dict[str, Any] = field(default_factory=dict)
    county_tax_rates: dict[str, CountyTaxInfo] = field(default_factory=dict)
    fetched_at: float = 0.0

    def county_for_city(self, city: str | None) -> str | None:
        if not city:
            return None
        return self.city_to_county.get(_key(city))

    def tax_for_county(self, county: str | None) -> CountyTaxInfo | None:
        if not county:
            return None
        return self.county_tax_rates.get(_key(county))


def build_city_maps(records: list[dict]) -> tuple[dict[str, str], dict[str, Any]]:
    """City→county and city→assessed-value maps, first record per city wins."""
    city_to_county: dict[str, str] = {}
    city_values: dict[str, Any] = {}
    for rec in records:
        city, county = rec.get("City"), rec.get("County")
        if not city or not county:
            continue
        key = _key(city)
        if key not in city_to_county:
            city_to_county[key] = str(county).strip()
            city_values[key] = rec.get("LocallyAssessedValue")
    return city_to_county, city_values


def build_tax_map(records: list[dict]) -> dict[str, CountyTaxInfo]:
    """County→tax info map, first record per county wins."""
    rates: dict[str, CountyTaxInfo] = {}
    for rec in records:
        county = rec.get("County")
        if not county:
            continue
        key = _key(county)
        if key in rates:
            continue
        rates[key] = CountyTaxInfo(
            avg_tax_rate=rec.get("AverageTaxRate"),
            net_assessed_value=rec.get("NetTaxableAssessedValue"),
            total_levies=rec.get("TotalPropertyTaxAllocationsandLevies"),
            year=f"{rec.get('AssessmentYearFrom')}-{rec.get('AssessmentYearTo')}",
        )
    return rates


class BOEClient:
    """Lazily fetched, time-cached BOE reference data.

    Args:
        base_url: OData root, e.g. ``https://boe.ca.gov/DataPortal/api/odata``.
        timeout: Per-request timeout in seconds.
        ttl_hours: Lifetime of a successful fetch.
        session: Optional requests.Session (tests pass a mock).
        city_limit / tax_limit: Maximum records read per entity set.
        page_size: ``$top`` of each page request.
        clock: Wall-clock source, ``time.time`` by default.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        ttl_hours: float = 24.0,
        session: requests.Session | None = None,
        city_limit: int = 5000,
        tax_limit: int = 200,
        page_size: int = 1000,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.ttl_seconds = ttl_hours * 3600
        self.city_limit = city_limit
        self.tax_limit = tax_limit
        self.page_size = page_size
        self._clock = clock
        self._session_manager = None if session is not None else SessionManager()
        self._session = session
        self._data: BOEData | None = None
        self._lock = threading.Lock()

    @property
    def session(self) -> requests.Session:
        if self._session is None:
            self._session = self._session_manager.session
        return self._session

    def is_fresh(self) -> bool:
        return (
            self._data is not None
            and self._clock() - self._data.fetched_at < self.ttl_seconds
        )

    def fetch(self, force: bool = False) -> BOEData:
        """Return cached data if fresh, else refetch both entity sets.

        Raises:
            ExternalFetchError: If the fetch fails and nothing is cached.
        """
        with self._lock:
            if not force and self.is_fresh():
                return self._data
            try:
                data = self._download()
            except ExternalFetchError:
                if self._data is None:
                    raise
                logger.warning(
                    "BOE refresh failed; serving cached data from %.1f h ago",
                    (self._clock() - self._data.fetched_at) / 3600,
                )
                return self._data
            self._data = data
            return data

    def invalidate(self) -> None:
        with self._lock:
            self._data = None

    def close(self) -> None:
        if self._session_manager is not None:
            self._session_manager.close()

    # ── Internals ────────────────────────────────────────────────────────────

    def _download(self) -> BOEData:
        logger.info("Fetching CA BOE reference data from %s", self.base_url)
        city_records = self._fetch_records(CITY_ENTITY, self.city_limit)
        tax_records = self._fetch_records(TAX_ENTITY, self.tax_limit)
        city_to_county, city_values = build_city_maps(city_records)
        data = BOEData(
            city_to_county=city_to_county,
            city_values=city_values,
            county_tax_rates=build_tax_map(tax_records),
            fetched_at=self._clock(),
        )
        logger.info("Cached %d cities, %d counties",
                    len(data.city_to_county), len(data.county_tax_rates))
        return data

    def _fetch_records(self, entity: str, limit: int) -> list[dict]:
        """Page through one entity set until ``limit`` records or a short page."""
        url = f"{self.base_url}/{entity}"
        records: list[dict] = []
        while len(records) < limit:
            top = min(self.page_size, limit - len(records))
            try:
                doc = get_json(
                    self.session, url,
                    params={"$orderby": ORDER_BY, "$top": top, "$skip": len(records)},
                    timeout=self.timeout,
                )
            except requests.RequestException as e:
                logger.error("BOE request for %s failed: %s", entity, e)
                raise ExternalFetchError(f"BOE {entity} request failed: {e}") from e
            except ValueError as e:
                raise ExternalFetchError(f"BOE {entity} returned a non-JSON body") from e
            page = doc.get("value") if isinstance(doc, dict) else None
            if not isinstance(page, list):
                raise ExternalFetchError(f"Unexpected response shape from {entity}")
            records.extend(r for r in page if isinstance(r, dict))
            if len(page) < top:
                break
        logger.debug("Fetched %d %s records", len(records), entity)
        return records[:limit]
