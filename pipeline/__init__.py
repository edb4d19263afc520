"""
Pipeline package -- call-record ingestion, enrichment and query.

Re-exports key entry points so callers can do::

    from pipeline import load_all, run_pass, run_query
"""

from pipeline.ingest import MergedDataset, build_merged_dataset, load_all
from pipeline.enrichment import run_pass
from pipeline.query import run_query

__all__ = [
    "MergedDataset",
    "build_merged_dataset",
    "load_all",
    "run_pass",
    "run_query",
]
