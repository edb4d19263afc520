"""
Ingestion Orchestrator — merge every active call-log file into one dataset.

Steps for one rebuild (``build_merged_dataset``):

  1. List active DataFiles oldest first; fall back to the configured default
     file when none are active.
  2. Parse each file.  A file that cannot be read is logged, recorded in
     ``skipped_files`` and left out; the rest still load.
  3. Accumulate the column union in first-seen order.
  4. Tag every row with ``_sourceFile`` / ``_sourceFileId``.
  5. Re-key every row to the full union (absent columns become None).
  6. Classify each column once as number, date or string.

``load_all`` wraps the rebuild in the MergeCache so that files are re-parsed
at most once per cache epoch.

Usage::

    from pipeline.ingest import load_all

    dataset = load_all(cache, FileRegistry(conn), default_file=None)
    print(len(dataset), dataset.columns)
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable

from pipeline.errors import ParseError
from pipeline.parsing import parse_file
from pipeline.registry import DataFile, FileRegistry
from pipeline.report import MergeReport, SkipRecord
from pipeline.schema import merge_columns, normalize_rows, rows_column_union
from utils.cache import MergeCache
from utils.common import elapsed_ms
from utils.config import (
    DATE_RANGE_COLUMNS,
    PROVENANCE_COLUMNS,
    SOURCE_FILE_COLUMN,
    SOURCE_FILE_ID_COLUMN,
)
from utils.strings import parse_date, parse_number

logger = logging.getLogger(__name__)

COLUMN_TYPE_NUMBER = "number"
COLUMN_TYPE_DATE = "date"
COLUMN_TYPE_STRING = "string"


@dataclass
class MergedDataset:
    """Rectangular, provenance-tagged union of the active files.

    Every row has exactly the keys in ``columns``.  Instances are treated as
    immutable: enrichment produces a new dataset rather than patching rows.
    """

    rows: list[dict[str, Any]] = field(default_factory=list)
    columns: list[str] = field(default_factory=list)
    column_types: dict[str, str] = field(default_factory=dict)
    source_files: list[DataFile] = field(default_factory=list)
    skipped_files: list[SkipRecord] = field(default_factory=list)
    _numeric: dict[str, list[float | None]] = field(
        default_factory=dict, repr=False, compare=False
    )

    def __len__(self) -> int:
        return len(self.rows)

    @classmethod
    def from_rows(
        cls,
        rows: list[dict[str, Any]],
        columns: list[str] | None = None,
        source_files: list[DataFile] | None = None,
    ) -> "MergedDataset":
        """Build a rectangular dataset from arbitrary row mappings.

        When ``columns`` is omitted the union of the rows' keys is used, with
        provenance columns kept last.
        """
        if columns is None:
            columns = rows_column_union(rows, trailing=PROVENANCE_COLUMNS)
        rows = normalize_rows(rows, columns)
        return cls(
            rows=rows,
            columns=list(columns),
            column_types=infer_column_types(rows, columns),
            source_files=list(source_files or []),
        )

    def numeric_values(self, column: str) -> list[float | None]:
        """Parsed numeric value of ``column`` for every row (computed once)."""
        values = self._numeric.get(column)
        if values is None:
            values = [parse_number(row.get(column)) for row in self.rows]
            self._numeric[column] = values
        return values

    def to_dict(self) -> dict[str, Any]:
        return {
            "rows": self.rows,
            "columns": list(self.columns),
            "columnTypes": dict(self.column_types),
            "files": [f.to_dict() for f in self.source_files],
            "skippedFiles": [s.to_dict() for s in self.skipped_files],
        }


# ── Column typing ────────────────────────────────────────────────────────────


def _present(values: Iterable[Any]) -> Iterable[Any]:
    for v in values:
        if v is None or (isinstance(v, str) and not v.strip()):
            continue
        yield v


def infer_column_type(values: Iterable[Any]) -> str:
    """Classify a column from its non-empty values.

    number — every value parses as a number
    date   — every value has a recognisable leading date
    string — anything else, including an all-empty column
    """
    is_number = True
    is_date = True
    seen = False
    for v in _present(values):
        seen = True
        if is_number and parse_number(v) is None:
            is_number = False
        if is_date and (isinstance(v, (int, float)) or parse_date(v) is None):
            is_date = False
        if not (is_number or is_date):
            break
    if not seen:
        return COLUMN_TYPE_STRING
    if is_number:
        return COLUMN_TYPE_NUMBER
    if is_date:
        return COLUMN_TYPE_DATE
    return COLUMN_TYPE_STRING


def infer_column_types(rows: list[dict[str, Any]], columns: list[str]) -> dict[str, str]:
    return {col: infer_column_type(row.get(col) for row in rows) for col in columns}


def compute_date_range(
    rows: list[dict[str, Any]], columns: list[str]
) -> tuple[str | None, str | None]:
    """Earliest and latest call date of one file as ISO date strings.

    Uses the first of DATE_RANGE_COLUMNS present in ``columns``; returns
    (None, None) when no such column exists or no value parses.
    """
    date_col = next((c for c in DATE_RANGE_COLUMNS if c in columns), None)
    if date_col is None:
        return None, None
    dates = [d for d in (parse_date(r.get(date_col)) for r in rows) if d is not None]
    if not dates:
        return None, None
    return min(dates).isoformat(), max(dates).isoformat()


# ── Merge ────────────────────────────────────────────────────────────────────


def _sources(
    registry: FileRegistry, default_file: Path | None
) -> tuple[list[DataFile], list[tuple[int | None, str, Path]]]:
    files = registry.list_active()
    if files:
        return files, [(f.id, f.original_name, Path(f.stored_path)) for f in files]
    if default_file is not None:
        if Path(default_file).is_file():
            logger.info("No active files; using default data file %s", default_file)
            return [], [(None, Path(default_file).name, Path(default_file))]
        logger.warning("Default data file %s does not exist", default_file)
    return [], []


def build_merged_dataset(
    registry: FileRegistry, default_file: Path | None = None
) -> MergedDataset:
    """Parse every active file and merge them into one rectangular dataset.

    Raises:
        IngestionError: If the registry itself cannot be read.
    """
    start = time.monotonic()
    report = MergeReport()
    files, sources = _sources(registry, default_file)
    loaded_ids: set[int | None] = set()

    union: list[str] = []
    tagged: list[dict[str, Any]] = []
    for file_id, name, path in sources:
        if not path.exists():
            logger.error("Stored file for %s (id=%s) is missing: %s", name, file_id, path)
            report.add_skip("missing_skip", f"Stored file not found: {path.name}", name)
            continue
        try:
            rows, columns = parse_file(path)
        except ParseError as e:
            logger.error("Skipping %s (id=%s): %s", name, file_id, e)
            report.add_skip("error_skip", str(e), name)
            continue

        union = merge_columns(union, columns)
        for row in rows:
            row[SOURCE_FILE_COLUMN] = name
            row[SOURCE_FILE_ID_COLUMN] = file_id
        tagged.extend(rows)
        loaded_ids.add(file_id)
        report.files_loaded += 1
        logger.debug("Loaded %d rows from %s", len(rows), name)

    columns = union + list(PROVENANCE_COLUMNS) if loaded_ids else []
    rows = normalize_rows(tagged, columns)

    dataset = MergedDataset(
        rows=rows,
        columns=columns,
        column_types=infer_column_types(rows, columns),
        source_files=[f for f in files if f.id in loaded_ids],
        skipped_files=list(report.skips),
    )
    report.rows, report.columns = len(rows), len(columns)
    logger.info("Merged dataset: %s (%.1f ms)", report.summary(), elapsed_ms(start))
    return dataset


def load_all(
    cache: MergeCache,
    registry: FileRegistry,
    default_file: Path | None = None,
    force_refresh: bool = False,
) -> MergedDataset:
    """Return the cached merged dataset, rebuilding it when invalidated."""
    return cache.get_or_build(
        lambda: build_merged_dataset(registry, default_file), force=force_refresh
    )
