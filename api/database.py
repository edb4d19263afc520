"""
Database connection management for the API.

Provides a get_db() dependency that opens a per-request SQLite connection to
the file registry and closes it after the response is sent.  The database
path comes from the AppConfig stored on ``app.state.config`` so tests can
point each app instance at its own temporary database.
"""

import logging
import sqlite3
from collections.abc import Generator
from pathlib import Path

from fastapi import Request

from pipeline.errors import IngestionError
from pipeline.registry import init_registry

logger = logging.getLogger(__name__)


def connect(db_path: Path) -> sqlite3.Connection:
    """Open a read-write SQLite connection with standard pragmas."""
    conn = sqlite3.connect(str(db_path), check_same_thread=False, timeout=10)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute("PRAGMA synchronous=NORMAL")
    conn.execute("PRAGMA busy_timeout=5000")
    return conn


def init_database(db_path: Path) -> None:
    """Create the database file and registry schema if missing."""
    db_path.parent.mkdir(parents=True, exist_ok=True)
    conn = connect(db_path)
    try:
        init_registry(conn)
    finally:
        conn.close()
    logger.info("File registry ready at %s", db_path)


def get_db(request: Request) -> Generator[sqlite3.Connection, None, None]:
    """FastAPI dependency: yield a SQLite connection, close on exit.

    Raises IngestionError (503) if the registry database cannot be opened.

    Usage in a route::

        from api.database import get_db
        from fastapi import Depends

        @router.get("/example")
        def example(conn=Depends(get_db)):
            ...
    """
    db_path: Path = request.app.state.config.db_path
    try:
        conn = connect(db_path)
    except sqlite3.Error as e:
        raise IngestionError(f"File registry database unavailable at '{db_path}': {e}") from e
    try:
        yield conn
    finally:
        conn.close()
