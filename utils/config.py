"""Configuration management utilities for the call-data tools.

Provides:
- A Config base class with dict round-tripping and secret redaction
- AppConfig, populated from environment variables with working defaults
- Column-name constants shared by ingestion and enrichment
"""

import os as _os
from pathlib import Path
from typing import Any, Dict


# ── Column name constants ────────────────────────────────────────────────────
# Provenance fields are appended after the user columns of every merged row.

SOURCE_FILE_COLUMN = "_sourceFile"
SOURCE_FILE_ID_COLUMN = "_sourceFileId"
PROVENANCE_COLUMNS = (SOURCE_FILE_COLUMN, SOURCE_FILE_ID_COLUMN)

# Columns tried, in order, when computing a DataFile's date range
DATE_RANGE_COLUMNS = ("CallStart", "CallDate", "Date", "Timestamp")

# Value call-log exports use for an unresolved lookup
NOT_FOUND = "Not Found"


class Config:
    """Base configuration class for organizing application settings."""

    # Attribute-name fragments whose values are masked by to_dict(redact=True)
    SECRET_FRAGMENTS = ("key", "token", "password")

    def to_dict(self, redact: bool = False) -> Dict[str, Any]:
        """Public attributes as a dict; Paths are rendered as strings.

        Args:
            redact: Replace non-empty secret values with "***" (for logging)
        """
        out: Dict[str, Any] = {}
        for k, v in self.__dict__.items():
            if k.startswith("_"):
                continue
            if isinstance(v, Path):
                v = str(v)
            if redact and v and any(s in k.lower() for s in self.SECRET_FRAGMENTS):
                v = "***"
            out[k] = v
        return out

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Config":
        """Create a config with the given attributes set over the defaults."""
        config = cls()
        for key, value in data.items():
            setattr(config, key, value)
        return config


class AppConfig(Config):
    """Application-level configuration loaded from environment variables.

    All env vars have sensible defaults so the application works out of the
    box without any configuration.

    Environment variables:
        APP_DB_PATH: File registry SQLite database (default: call_dashboard.sqlite)
        APP_DATA_DIR: Directory for stored upload bytes (default: data/uploads)
        APP_DEFAULT_DATA_FILE: Fallback call log used when no file is active
        APP_MAX_UPLOAD_MB: Upload size cap in megabytes (default: 100)
        APP_PORT: API server port (default: 8000)
        APP_HOST: API server bind address (default: 127.0.0.1)
        APP_LOG_FORMAT: Logging format — "text" or "json" (default: text)
        APP_CORS_ORIGINS: Comma-separated allowed origins (default: *)
        QUERY_RESULT_LIMIT: Max rows returned by the query surface (default: 100)
        BOE_BASE_URL: CA Board of Equalization OData root
        BOE_TIMEOUT: Per-request timeout in seconds for BOE fetches (default: 30)
        BOE_TTL_HOURS: Lifetime of the BOE reference cache (default: 24)
        ANTHROPIC_API_KEY: Enables the natural-language query translator
        QUERY_MODEL: Model used by the translator
    """

    def __init__(self) -> None:
        super().__init__()
        self.db_path = Path(_os.getenv("APP_DB_PATH", "call_dashboard.sqlite"))
        self.data_dir = Path(_os.getenv("APP_DATA_DIR", "data/uploads"))
        raw_default = _os.getenv("APP_DEFAULT_DATA_FILE", "")
        self.default_data_file: Path | None = Path(raw_default) if raw_default else None
        self.max_upload_bytes = int(_os.getenv("APP_MAX_UPLOAD_MB", "100")) * 1024 * 1024
        self.api_port = int(_os.getenv("APP_PORT", "8000"))
        self.api_host = _os.getenv("APP_HOST", "127.0.0.1")
        self.log_format = _os.getenv("APP_LOG_FORMAT", "text")
        raw_origins = _os.getenv("APP_CORS_ORIGINS", "*")
        self.cors_origins: list[str] = (
            ["*"] if raw_origins == "*"
            else [o.strip() for o in raw_origins.split(",") if o.strip()]
        )
        self.query_result_limit = int(_os.getenv("QUERY_RESULT_LIMIT", "100"))
        self.boe_base_url = _os.getenv(
            "BOE_BASE_URL", "https://boe.ca.gov/DataPortal/api/odata"
        ).rstrip("/")
        self.boe_timeout = float(_os.getenv("BOE_TIMEOUT", "30"))
        self.boe_ttl_hours = float(_os.getenv("BOE_TTL_HOURS", "24"))
        self.anthropic_api_key = _os.getenv("ANTHROPIC_API_KEY", "")
        self.query_model = _os.getenv("QUERY_MODEL", "claude-haiku-4-5-20251001")

    @classmethod
    def from_env(cls) -> "AppConfig":
        """Create an AppConfig instance populated from environment variables."""
        return cls()
