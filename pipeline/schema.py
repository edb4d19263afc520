"""
Schema Reconciler — column unions and schema-drift diffs.

Order policy: the union keeps first-seen order across files processed in
ascending upload order.  Columns introduced by a later file are appended at
the end; existing columns are never reordered.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable


@dataclass
class SchemaDiff:
    """Drift of one file's columns against an existing union (informational)."""

    new_columns: list[str] = field(default_factory=list)
    missing_columns: list[str] = field(default_factory=list)

    @property
    def has_changes(self) -> bool:
        return bool(self.new_columns or self.missing_columns)

    def to_dict(self) -> dict:
        return {
            "newColumns": list(self.new_columns),
            "missingColumns": list(self.missing_columns),
            "hasChanges": self.has_changes,
        }


def diff_columns(existing: Iterable[str], incoming: Iterable[str]) -> SchemaDiff:
    """Compute added = N − E and missing = E − N.

    ``new_columns`` keeps the incoming file's order; ``missing_columns`` keeps
    the existing union's order.
    """
    existing = list(existing)
    incoming = list(incoming)
    existing_set = set(existing)
    incoming_set = set(incoming)
    return SchemaDiff(
        new_columns=[c for c in incoming if c not in existing_set],
        missing_columns=[c for c in existing if c not in incoming_set],
    )


def merge_columns(union: list[str], incoming: Iterable[str]) -> list[str]:
    """Return ``union`` with unseen columns of ``incoming`` appended in order."""
    merged = list(union)
    seen = set(merged)
    for col in incoming:
        if col not in seen:
            merged.append(col)
            seen.add(col)
    return merged


def column_union(column_lists: Iterable[Iterable[str]]) -> list[str]:
    """Union of several column lists in first-seen order."""
    union: list[str] = []
    for cols in column_lists:
        union = merge_columns(union, cols)
    return union


def rows_column_union(rows: Iterable[dict], trailing: Iterable[str] = ()) -> list[str]:
    """Union of every row's keys in first-seen order.

    Keys named in ``trailing`` are moved to the end (in the given order) when
    present, so provenance columns stay last after an enrichment pass adds
    new columns.
    """
    trailing = list(trailing)
    trailing_set = set(trailing)
    union: list[str] = []
    seen: set[str] = set()
    present_trailing: set[str] = set()
    for row in rows:
        for key in row:
            if key in trailing_set:
                present_trailing.add(key)
            elif key not in seen:
                seen.add(key)
                union.append(key)
    return union + [c for c in trailing if c in present_trailing]


def normalize_rows(rows: list[dict], columns: list[str]) -> list[dict]:
    """Re-key every row to exactly ``columns``; absent keys become None.

    Produces new dicts in ``columns`` order; keys outside ``columns`` are
    dropped.
    """
    return [{col: row.get(col) for col in columns} for row in rows]
