"""Common utility functions used across the call-data tools."""

import time
import uuid
from pathlib import Path


def format_bytes(b: int) -> str:
    """Format bytes into human-readable size string.

    Examples:
        512 KB, 1.5 MB, 2.34 GB
    """
    if b < 1024 * 1024:
        return f"{b / 1024:.0f} KB"
    if b < 1024 * 1024 * 1024:
        return f"{b / (1024 * 1024):.1f} MB"
    return f"{b / (1024 * 1024 * 1024):.2f} GB"


def elapsed_ms(start: float) -> float:
    """Milliseconds since a time.monotonic() start mark, one decimal."""
    return round((time.monotonic() - start) * 1000, 1)


def sanitize_filename(name: str) -> str:
    """Remove invalid filesystem characters and any directory part from a filename."""
    name = name.replace("\\", "/").rsplit("/", 1)[-1]
    for ch in '<>:"|?*':
        name = name.replace(ch, "_")
    return name or "upload"


def stored_filename(original_name: str) -> str:
    """Return a random, collision-resistant storage name keeping the extension.

    Example:
        "calls March.csv" -> "3f2b9c0e5d8a4e0f9a1b2c3d4e5f6a7b.csv"
    """
    suffix = Path(sanitize_filename(original_name)).suffix.lower()
    return f"{uuid.uuid4().hex}{suffix}"
