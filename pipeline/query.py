"""
Ad-hoc Query Engine — filter / sort / aggregate over a merged dataset.

A query specification is a plain mapping, usually produced by a
natural-language translator::

    {
        "filters": {"CallerState": "CA"},
        "sort": {"column": "Duration", "direction": "desc"},
        "aggregation": {"type": "count", "groupBy": "CallerState"},
        "explanation": "Calls from California"          # optional
    }

Semantics:
  - A row matches a filter when the cell, case-insensitively, contains or
    equals the target.  All filters must match.
  - Sort is numeric when a value parses as a number, otherwise by string;
    numbers order before strings and empty cells always come last.
  - Aggregation needs ``groupBy``; without it no aggregation is returned.
    Missing group keys fall into "Unknown".  Groups are ordered by the
    statistic, largest first.
  - ``results`` is capped at ``limit``; ``resultCount`` is the uncapped
    number of matches.

Sort keys and aggregation inputs come from MergedDataset.numeric_values(),
which parses each column at most once per dataset.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from pipeline.errors import QuerySpecError
from pipeline.ingest import MergedDataset

AGGREGATION_TYPES = ("count", "sum", "avg", "max", "min")
SORT_DIRECTIONS = ("asc", "desc")
UNKNOWN_GROUP = "Unknown"


@dataclass
class SortSpec:
    column: str
    direction: str = "asc"


@dataclass
class AggregationSpec:
    type: str
    column: str | None = None
    group_by: str | None = None


@dataclass
class QuerySpec:
    """Validated query specification."""

    filters: dict[str, str] = field(default_factory=dict)
    sort: SortSpec | None = None
    aggregation: AggregationSpec | None = None
    explanation: str | None = None

    @classmethod
    def from_dict(cls, data: Any) -> "QuerySpec":
        """Validate a raw specification mapping.

        Raises:
            QuerySpecError: If the mapping cannot be interpreted.
        """
        if not isinstance(data, dict):
            raise QuerySpecError("Query specification must be a JSON object")

        raw_filters = data.get("filters") or {}
        if not isinstance(raw_filters, dict):
            raise QuerySpecError("'filters' must be an object of column → value")
        filters: dict[str, str] = {}
        for col, val in raw_filters.items():
            if val is None:
                continue
            if isinstance(val, (dict, list)):
                raise QuerySpecError(f"Filter value for '{col}' must be a scalar")
            filters[str(col)] = str(val)

        sort = None
        raw_sort = data.get("sort")
        if raw_sort:
            if not isinstance(raw_sort, dict) or not raw_sort.get("column"):
                raise QuerySpecError("'sort' must be an object with a 'column'")
            direction = str(raw_sort.get("direction") or "asc").lower()
            if direction not in SORT_DIRECTIONS:
                raise QuerySpecError(f"Sort direction must be one of {SORT_DIRECTIONS}")
            sort = SortSpec(column=str(raw_sort["column"]), direction=direction)

        aggregation = None
        raw_agg = data.get("aggregation")
        if raw_agg:
            if not isinstance(raw_agg, dict):
                raise QuerySpecError("'aggregation' must be an object")
            agg_type = str(raw_agg.get("type") or "").lower()
            if agg_type not in AGGREGATION_TYPES:
                raise QuerySpecError(
                    f"Aggregation type must be one of {', '.join(AGGREGATION_TYPES)}"
                )
            column = raw_agg.get("column")
            if agg_type != "count" and not column:
                raise QuerySpecError(f"Aggregation '{agg_type}' requires a 'column'")
            group_by = raw_agg.get("groupBy")
            aggregation = AggregationSpec(
                type=agg_type,
                column=str(column) if column else None,
                group_by=str(group_by) if group_by else None,
            )

        explanation = data.get("explanation")
        return cls(
            filters=filters,
            sort=sort,
            aggregation=aggregation,
            explanation=str(explanation) if explanation else None,
        )


@dataclass
class QueryResult:
    result_count: int
    results: list[dict[str, Any]]
    aggregation: list[dict[str, Any]] | None
    explanation: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "resultCount": self.result_count,
            "results": self.results,
            "aggregation": self.aggregation,
            "explanation": self.explanation,
        }


# ── Filtering ────────────────────────────────────────────────────────────────


def _cell_text(value: Any) -> str:
    return "" if value is None else str(value).lower()


def row_matches(row: dict[str, Any], filters: dict[str, str]) -> bool:
    for col, target in filters.items():
        cell = _cell_text(row.get(col))
        needle = target.lower()
        if not (cell == needle or needle in cell):
            return False
    return True


# ── Sorting ──────────────────────────────────────────────────────────────────


def _sort_indexes(dataset: MergedDataset, indexes: list[int], sort: SortSpec) -> list[int]:
    numbers = dataset.numeric_values(sort.column)
    keyed: list[tuple[tuple, int]] = []
    empty: list[int] = []
    for i in indexes:
        raw = dataset.rows[i].get(sort.column)
        if raw is None or raw == "":
            empty.append(i)
        elif numbers[i] is not None:
            keyed.append(((0, numbers[i], ""), i))
        else:
            keyed.append(((1, 0.0, str(raw)), i))
    keyed.sort(key=lambda k: k[0], reverse=sort.direction == "desc")
    return [i for _, i in keyed] + empty


# ── Aggregation ──────────────────────────────────────────────────────────────


def _statistic(agg_type: str, count: int, values: list[float]) -> float | int | None:
    if agg_type == "count":
        return count
    if agg_type == "sum":
        return sum(values)
    if not values:
        return None
    if agg_type == "avg":
        return sum(values) / len(values)
    if agg_type == "max":
        return max(values)
    return min(values)


def aggregate(
    dataset: MergedDataset, indexes: list[int], agg: AggregationSpec
) -> list[dict[str, Any]] | None:
    """Grouped statistic over the matching rows, largest first."""
    if not agg.group_by:
        return None
    numbers = dataset.numeric_values(agg.column) if agg.column else None
    groups: dict[Any, tuple[int, list[float]]] = {}
    for i in indexes:
        key = dataset.rows[i].get(agg.group_by)
        if key is None or key == "":
            key = UNKNOWN_GROUP
        count, values = groups.get(key, (0, []))
        if numbers is not None and numbers[i] is not None:
            values.append(numbers[i])
        groups[key] = (count + 1, values)

    buckets = [
        {agg.group_by: key, agg.type: _statistic(agg.type, count, values)}
        for key, (count, values) in groups.items()
    ]
    buckets.sort(
        key=lambda b: (b[agg.type] is not None, b[agg.type] or 0), reverse=True
    )
    return buckets


# ── Explanation ──────────────────────────────────────────────────────────────


def describe_query(spec: QuerySpec, result_count: int) -> str:
    """Plain-English summary of what a specification did."""
    parts = [f"Found {result_count} record{'s' if result_count != 1 else ''}"]
    if spec.filters:
        conds = [f'{col} matches "{val}"' for col, val in spec.filters.items()]
        parts.append("where " + " and ".join(conds))
    text = " ".join(parts)
    if spec.sort:
        direction = "descending" if spec.sort.direction == "desc" else "ascending"
        text += f", sorted by {spec.sort.column} {direction}"
    if spec.aggregation and spec.aggregation.group_by:
        agg = spec.aggregation
        what = agg.type if agg.type == "count" else f"{agg.type} of {agg.column}"
        text += f", {what} grouped by {agg.group_by}"
    return text + "."


# ── Entry point ──────────────────────────────────────────────────────────────


def run_query(dataset: MergedDataset, spec: QuerySpec | dict, limit: int = 100) -> QueryResult:
    """Apply ``spec`` to ``dataset``.

    Args:
        dataset: Merged (or working) dataset to query.
        spec: QuerySpec or raw mapping (validated here).
        limit: Maximum number of result rows returned.

    Raises:
        QuerySpecError: If ``spec`` is malformed.
    """
    if not isinstance(spec, QuerySpec):
        spec = QuerySpec.from_dict(spec)
    if limit < 0:
        raise QuerySpecError("limit must be non-negative")

    indexes = [i for i, row in enumerate(dataset.rows) if row_matches(row, spec.filters)]
    aggregation = aggregate(dataset, indexes, spec.aggregation) if spec.aggregation else None
    if spec.sort:
        indexes = _sort_indexes(dataset, indexes, spec.sort)

    return QueryResult(
        result_count=len(indexes),
        results=[dataset.rows[i] for i in indexes[:limit]],
        aggregation=aggregation,
        explanation=spec.explanation or describe_query(spec, len(indexes)),
    )
