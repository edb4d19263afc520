"""
File Registry — persistent metadata for every uploaded call-log file.

One row per upload in the ``data_files`` table.  ``columns`` is stored as a
JSON array captured at upload time and never rewritten.  Removal is a soft
delete (``active = 0``); the stored bytes may optionally be unlinked, which
is a separate step from deactivation.

Timestamps are ISO-8601 UTC strings with microseconds so that ordering by
``created_at`` follows upload order even for uploads in the same second.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from pipeline.errors import IngestionError, NotFoundError
from pipeline.schema import column_union

logger = logging.getLogger(__name__)

_SCHEMA = """
    CREATE TABLE IF NOT EXISTS data_files (
        id              INTEGER PRIMARY KEY AUTOINCREMENT,
        stored_path     TEXT NOT NULL,
        original_name   TEXT NOT NULL,
        size_bytes      INTEGER NOT NULL DEFAULT 0,
        row_count       INTEGER NOT NULL DEFAULT 0,
        columns         TEXT NOT NULL DEFAULT '[]',
        date_range_start TEXT,
        date_range_end  TEXT,
        uploaded_by     TEXT,
        created_at      TEXT NOT NULL,
        active          INTEGER NOT NULL DEFAULT 1
    );
    CREATE INDEX IF NOT EXISTS idx_data_files_active
        ON data_files (active, created_at);
"""

_SELECT = """
    SELECT id, stored_path, original_name, size_bytes, row_count, columns,
           date_range_start, date_range_end, uploaded_by, created_at, active
    FROM data_files
"""


@dataclass
class DataFile:
    """Registry record for one uploaded file."""

    id: int
    stored_path: str
    original_name: str
    size_bytes: int = 0
    row_count: int = 0
    columns: list[str] = field(default_factory=list)
    date_range_start: str | None = None
    date_range_end: str | None = None
    uploaded_by: str | None = None
    created_at: str = ""
    active: bool = True

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> "DataFile":
        return cls(
            id=row["id"],
            stored_path=row["stored_path"],
            original_name=row["original_name"],
            size_bytes=row["size_bytes"],
            row_count=row["row_count"],
            columns=json.loads(row["columns"] or "[]"),
            date_range_start=row["date_range_start"],
            date_range_end=row["date_range_end"],
            uploaded_by=row["uploaded_by"],
            created_at=row["created_at"],
            active=bool(row["active"]),
        )

    def to_dict(self) -> dict[str, Any]:
        """Camel-cased public representation used by the API."""
        return {
            "id": self.id,
            "storedPath": self.stored_path,
            "originalName": self.original_name,
            "sizeBytes": self.size_bytes,
            "rowCount": self.row_count,
            "columns": list(self.columns),
            "dateRangeStart": self.date_range_start,
            "dateRangeEnd": self.date_range_end,
            "uploadedBy": self.uploaded_by,
            "createdAt": self.created_at,
            "active": self.active,
        }


def _utcnow() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="microseconds")


def init_registry(conn: sqlite3.Connection) -> None:
    """Create the data_files table if it does not exist."""
    conn.executescript(_SCHEMA)
    conn.commit()


class FileRegistry:
    """CRUD over the ``data_files`` table for one SQLite connection."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self.conn = conn
        self.conn.row_factory = sqlite3.Row

    def create(
        self,
        stored_path: Path | str,
        original_name: str,
        size_bytes: int,
        row_count: int,
        columns: list[str],
        date_range_start: str | None = None,
        date_range_end: str | None = None,
        uploaded_by: str | None = None,
    ) -> DataFile:
        """Insert a new active DataFile and return it."""
        cur = self.conn.execute(
            """
            INSERT INTO data_files
                (stored_path, original_name, size_bytes, row_count, columns,
                 date_range_start, date_range_end, uploaded_by, created_at, active)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, 1)
            """,
            (
                str(stored_path), original_name, size_bytes, row_count,
                json.dumps(list(columns)), date_range_start, date_range_end,
                uploaded_by, _utcnow(),
            ),
        )
        self.conn.commit()
        logger.info("Registered file id=%d name=%s rows=%d",
                    cur.lastrowid, original_name, row_count)
        return self.get(cur.lastrowid)

    def get(self, file_id: int) -> DataFile:
        """Return one DataFile by id.

        Raises:
            NotFoundError: If no such id exists.
        """
        row = self.conn.execute(f"{_SELECT} WHERE id = ?", (file_id,)).fetchone()
        if row is None:
            raise NotFoundError(f"Data file {file_id} not found")
        return DataFile.from_row(row)

    def list_files(self, include_inactive: bool = False) -> list[DataFile]:
        """Return files ordered by upload time (oldest first)."""
        where = "" if include_inactive else "WHERE active = 1"
        rows = self.conn.execute(
            f"{_SELECT} {where} ORDER BY created_at ASC, id ASC"
        ).fetchall()
        return [DataFile.from_row(r) for r in rows]

    def list_active(self) -> list[DataFile]:
        """Active files ordered by created_at ascending.

        Raises:
            IngestionError: If the registry database cannot be queried.
        """
        try:
            return self.list_files(include_inactive=False)
        except sqlite3.Error as e:
            raise IngestionError(f"File registry unavailable: {e}") from e

    def deactivate(self, file_id: int, delete_file: bool = False) -> DataFile:
        """Soft-delete a file; optionally unlink its stored bytes too."""
        data_file = self.get(file_id)
        self.conn.execute("UPDATE data_files SET active = 0 WHERE id = ?", (file_id,))
        self.conn.commit()
        if delete_file:
            path = Path(data_file.stored_path)
            try:
                path.unlink()
                logger.info("Deleted stored bytes for file id=%d (%s)", file_id, path)
            except FileNotFoundError:
                logger.warning("Stored bytes already missing for file id=%d (%s)",
                               file_id, path)
        return self.get(file_id)

    def restore(self, file_id: int) -> DataFile:
        """Re-activate a soft-deleted file."""
        self.get(file_id)
        self.conn.execute("UPDATE data_files SET active = 1 WHERE id = ?", (file_id,))
        self.conn.commit()
        return self.get(file_id)

    def column_union(self) -> list[str]:
        """First-seen-order union of the active files' recorded columns."""
        return column_union(f.columns for f in self.list_active())
