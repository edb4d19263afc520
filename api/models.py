"""
Pydantic request/response models for the API.

Response field names are camel-cased to match what the dashboard frontend
reads.  Row payloads stay ``dict[str, Any]`` because the column set is only
known per dataset.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


# ── File registry models ─────────────────────────────────────────────────────

class DataFileOut(BaseModel):
    """Registry record for one uploaded call-log file."""
    id: int = Field(..., description="Registry id", examples=[3])
    storedPath: str = Field(..., description="Server-side path of the stored bytes")
    originalName: str = Field(..., description="File name as uploaded", examples=["march_calls.csv"])
    sizeBytes: int = Field(..., description="Upload size in bytes", examples=[48213])
    rowCount: int = Field(..., description="Data rows parsed at upload", examples=[412])
    columns: list[str] = Field(..., description="Columns detected at upload, in file order")
    dateRangeStart: str | None = Field(None, description="Earliest call date (ISO)", examples=["2024-03-01"])
    dateRangeEnd: str | None = Field(None, description="Latest call date (ISO)", examples=["2024-03-31"])
    uploadedBy: str | None = Field(None, description="Uploader identity", examples=["analyst1"])
    createdAt: str = Field(..., description="Upload timestamp (ISO-8601 UTC)")
    active: bool = Field(..., description="False once soft-deleted")


class SchemaDiffOut(BaseModel):
    """Column drift of an upload against the dataset as it stood before."""
    newColumns: list[str] = Field(..., description="Columns not seen in any active file", examples=[["CallerCity"]])
    missingColumns: list[str] = Field(..., description="Existing columns absent from this file", examples=[[]])
    hasChanges: bool = Field(..., description="True if either list is non-empty")


class UploadOut(BaseModel):
    file: DataFileOut
    schemaDiff: SchemaDiffOut


class FileOut(BaseModel):
    file: DataFileOut


# ── Dataset models ───────────────────────────────────────────────────────────

class SkippedFileOut(BaseModel):
    category: str = Field(..., description="error_skip | missing_skip")
    detail: str = Field(..., description="Why the file was skipped")
    item: str | None = Field(None, description="Original file name")


class DatasetOut(BaseModel):
    """Merged (or working) dataset: rectangular rows plus metadata."""
    rows: list[dict[str, Any]] = Field(..., description="One mapping per call record, keyed by every column")
    columns: list[str] = Field(..., description="Column union; provenance columns last")
    columnTypes: dict[str, str] = Field(..., description="number | date | string per column")
    files: list[DataFileOut] = Field(..., description="Files contributing rows")
    skippedFiles: list[SkippedFileOut] = Field(default_factory=list, description="Active files that failed to load")


# ── Enrichment models ────────────────────────────────────────────────────────

class EnrichRequest(BaseModel):
    """Rows to enrich; omit ``data`` to enrich the caller's current working set."""
    data: list[dict[str, Any]] | None = Field(None, description="Row set to enrich")


class EnrichOut(BaseModel):
    data: list[dict[str, Any]] = Field(..., description="Enriched rows")
    columns: list[str] = Field(..., description="Column union after the pass")
    message: str = Field(..., examples=["Added coordinates for 2 records"])
    enrichedCount: int = Field(..., description="Rows the pass resolved")
    addedColumns: list[str] = Field(..., description="Columns the pass introduced")


# ── Query models ─────────────────────────────────────────────────────────────

class QueryRequest(BaseModel):
    """Natural-language ``message`` or a ready-made ``spec``."""
    message: str | None = Field(None, description="Free-text question", examples=["How many calls came from CA?"])
    spec: dict[str, Any] | None = Field(
        None,
        description="Query specification: filters / sort / aggregation",
        examples=[{"filters": {"CallerState": "CA"},
                   "aggregation": {"type": "count", "groupBy": "CallerState"}}],
    )


class QueryOut(BaseModel):
    resultCount: int = Field(..., description="Matches before the result cap")
    results: list[dict[str, Any]] = Field(..., description="Matching rows, capped")
    aggregation: list[dict[str, Any]] | None = Field(None, description="Grouped statistic buckets")
    explanation: str = Field(..., description="What the query did")


# ── Error model ──────────────────────────────────────────────────────────────

class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str = Field(..., description="Error category", examples=["Bad request"])
    detail: str | None = Field(None, description="Human-readable detail")
    status_code: int = Field(..., examples=[400])
