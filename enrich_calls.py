"""
Call Log Enrichment Runner

Loads the merged dataset of every active file in the registry, runs the
requested enrichment passes in order and writes the result as CSV:
  - carrier         — CallerCarrier from the caller's area code
  - geocode         — Latitude / Longitude from CallerState
  - timezone        — CallerTimezone from CallerState
  - property-tax    — CA county + tax figures (fetches BOE data)
  - property-links  — Zillow and county-assessor links (fetches BOE data)

Usage:
    python enrich_calls.py --output enriched.csv                    # all passes
    python enrich_calls.py --passes carrier,geocode --output out.csv
    python enrich_calls.py --db path/to/registry.sqlite --output out.csv
    python enrich_calls.py --default-file "data sample.txt" --output out.csv
"""

from __future__ import annotations

import argparse
import csv
import sqlite3
import sys
import time
from pathlib import Path

from pipeline.boe import BOEClient
from pipeline.enrichment import ENRICHMENT_PASSES, run_pass
from pipeline.errors import CallDataError
from pipeline.ingest import MergedDataset, build_merged_dataset
from pipeline.registry import FileRegistry, init_registry
from utils.config import AppConfig

DEFAULT_PASSES = ",".join(ENRICHMENT_PASSES)


def enrich(
    db_path: Path,
    passes: list[str],
    output: Path,
    default_file: Path | None = None,
    boe_client: BOEClient | None = None,
) -> MergedDataset:
    """Merge, enrich and write ``output``; returns the final dataset."""
    conn = sqlite3.connect(str(db_path))
    try:
        init_registry(conn)
        dataset = build_merged_dataset(FileRegistry(conn), default_file)
    finally:
        conn.close()

    t0 = time.time()
    print(f"\nEnriching {len(dataset):,} rows from {len(dataset.source_files)} file(s)")
    for skip in dataset.skipped_files:
        print(f"  WARNING: skipped {skip.item}: {skip.detail}")
    print(f"Passes: {', '.join(passes)}")

    rows, columns = dataset.rows, dataset.columns
    for name in passes:
        result = run_pass(name, rows, columns=columns, boe_client=boe_client)
        rows, columns = result.rows, result.columns
        added = f" (+{', '.join(result.added_columns)})" if result.added_columns else ""
        print(f"  [{name}] {result.message}{added}")

    final = MergedDataset.from_rows(rows, columns, source_files=dataset.source_files)
    write_csv(final, output)
    print(f"\nEnrichment complete in {time.time() - t0:.1f}s")
    print(f"  {output}: {len(final):,} rows, {len(final.columns)} columns")
    return final


def write_csv(dataset: MergedDataset, output: Path) -> None:
    output.parent.mkdir(parents=True, exist_ok=True)
    with open(output, "w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=dataset.columns)
        writer.writeheader()
        for row in dataset.rows:
            writer.writerow({k: "" if v is None else v for k, v in row.items()})


def main(argv: list[str] | None = None) -> None:
    cfg = AppConfig.from_env()
    parser = argparse.ArgumentParser(
        description="Merge registered call logs, run enrichment passes and export CSV."
    )
    parser.add_argument("--db", type=Path, default=cfg.db_path,
                        help=f"Path to the file registry database (default: {cfg.db_path})")
    parser.add_argument("--default-file", type=Path, default=cfg.default_data_file,
                        help="Call log to use when no file is active")
    parser.add_argument("--passes", default=DEFAULT_PASSES,
                        help=f"Comma-separated passes to run in order (default: {DEFAULT_PASSES})")
    parser.add_argument("--output", type=Path, required=True,
                        help="CSV file to write")
    parser.add_argument("--boe-url", default=cfg.boe_base_url,
                        help="CA BOE OData root used by property passes")
    args = parser.parse_args(argv)

    passes = [p.strip() for p in args.passes.split(",") if p.strip()]
    unknown = [p for p in passes if p not in ENRICHMENT_PASSES]
    if unknown:
        print(f"ERROR: unknown pass(es) {', '.join(unknown)}; "
              f"choose from {DEFAULT_PASSES}")
        sys.exit(1)

    boe_client = None
    if any(ENRICHMENT_PASSES[p].needs_boe for p in passes):
        boe_client = BOEClient(args.boe_url, timeout=cfg.boe_timeout,
                               ttl_hours=cfg.boe_ttl_hours)
    try:
        enrich(args.db, passes, args.output, args.default_file, boe_client)
    except CallDataError as e:
        print(f"ERROR: {e}")
        sys.exit(1)
    finally:
        if boe_client is not None:
            boe_client.close()


if __name__ == "__main__":
    main()
