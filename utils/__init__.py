"""Shared utilities for the call-data tools."""

# Common utilities
from utils.common import format_bytes, elapsed_ms, sanitize_filename, stored_filename

# Pattern definitions
from utils.patterns import (
    UPLOAD_EXTENSIONS,
    NON_DIGITS,
    WHITESPACE,
    CURRENCY_SYMBOLS,
    DATE_PART,
    JSON_OBJECT,
)

# String utilities
from utils.strings import parse_number, parse_date, digits_only, normalize_whitespace

# HTTP utilities
from utils.http import RetryStrategy, SessionManager, get_json

# Configuration
from utils.config import (
    Config,
    AppConfig,
    SOURCE_FILE_COLUMN,
    SOURCE_FILE_ID_COLUMN,
    PROVENANCE_COLUMNS,
    DATE_RANGE_COLUMNS,
    NOT_FOUND,
)

# Merge cache
from utils.cache import MergeCache

__all__ = [
    # Common
    "format_bytes", "elapsed_ms", "sanitize_filename", "stored_filename",
    # Patterns
    "UPLOAD_EXTENSIONS", "NON_DIGITS", "WHITESPACE", "CURRENCY_SYMBOLS",
    "DATE_PART", "JSON_OBJECT",
    # Strings
    "parse_number", "parse_date", "digits_only", "normalize_whitespace",
    # HTTP
    "RetryStrategy", "SessionManager", "get_json",
    # Config
    "Config", "AppConfig", "SOURCE_FILE_COLUMN", "SOURCE_FILE_ID_COLUMN",
    "PROVENANCE_COLUMNS", "DATE_RANGE_COLUMNS", "NOT_FOUND",
    # Cache
    "MergeCache",
]
