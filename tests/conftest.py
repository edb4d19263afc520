"""
Pytest fixtures for the call dashboard tests.

Provides reusable fixtures: a file-registry database in a temporary
directory, a helper for writing small call-log files, an AppConfig pointed
at temporary paths, and a FastAPI TestClient authenticated as a test user.
"""

import sqlite3
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from pipeline.registry import FileRegistry, init_registry  # noqa: E402
from utils.config import AppConfig  # noqa: E402

TEST_USER = "analyst"


# ── Helpers ───────────────────────────────────────────────────────────────────

def write_call_log(directory: Path, name: str, header: list[str],
                   rows: list[list[str]], delimiter: str = ",") -> Path:
    """Write a small delimited call log and return its path."""
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / name
    lines = [delimiter.join(header)] + [delimiter.join(r) for r in rows]
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path


def register(registry: FileRegistry, path: Path, columns: list[str],
             row_count: int, original_name: str | None = None):
    """Register an already-written file the way the upload route does."""
    return registry.create(
        stored_path=path,
        original_name=original_name or path.name,
        size_bytes=path.stat().st_size if path.exists() else 0,
        row_count=row_count,
        columns=columns,
        uploaded_by=TEST_USER,
    )


# ── Fixtures ──────────────────────────────────────────────────────────────────

@pytest.fixture()
def db_conn(tmp_path):
    """Connection to an initialised, empty file-registry database."""
    conn = sqlite3.connect(str(tmp_path / "registry.sqlite"))
    init_registry(conn)
    yield conn
    conn.close()


@pytest.fixture()
def registry(db_conn):
    return FileRegistry(db_conn)


@pytest.fixture()
def data_dir(tmp_path):
    path = tmp_path / "uploads"
    path.mkdir()
    return path


@pytest.fixture()
def app_config(tmp_path):
    """AppConfig with every path inside tmp_path and no translator."""
    cfg = AppConfig()
    cfg.db_path = tmp_path / "call_dashboard.sqlite"
    cfg.data_dir = tmp_path / "uploads"
    cfg.default_data_file = None
    cfg.max_upload_bytes = 1024 * 1024
    cfg.log_format = "text"
    cfg.cors_origins = ["*"]
    cfg.query_result_limit = 100
    cfg.anthropic_api_key = ""
    return cfg


@pytest.fixture()
def client(app_config):
    """TestClient sending X-Remote-User on every request."""
    pytest.importorskip("fastapi")
    pytest.importorskip("httpx")
    from fastapi.testclient import TestClient

    from api.app import create_app
    app = create_app(app_config)
    with TestClient(app, raise_server_exceptions=False,
                    headers={"X-Remote-User": TEST_USER}) as c:
        yield c
