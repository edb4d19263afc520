"""
Merge reports — which files made it into a merged dataset and which did not.

Skip categories (for SkipRecord.category):
    error_skip      — file could not be decoded or parsed
    missing_skip    — stored bytes for an active file are no longer on disk
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field


@dataclass
class SkipRecord:
    """One file left out of the merge, with a machine-readable category."""

    category: str
    detail: str
    item: str = ""         # original file name

    def to_dict(self) -> dict[str, str]:
        d: dict[str, str] = {"category": self.category, "detail": self.detail}
        if self.item:
            d["item"] = self.item
        return d


@dataclass
class MergeReport:
    """Outcome of one merge: files loaded, files skipped, resulting shape."""

    files_loaded: int = 0
    rows: int = 0
    columns: int = 0
    skips: list[SkipRecord] = field(default_factory=list)

    def add_skip(self, category: str, detail: str, item: str = "") -> None:
        self.skips.append(SkipRecord(category=category, detail=detail, item=item))

    def summary(self) -> str:
        """One-line summary for the merge log line."""
        parts = [f"{self.files_loaded} files", f"{self.rows:,} rows",
                 f"{self.columns} columns"]
        if self.skips:
            cats = Counter(s.category for s in self.skips)
            detail = ", ".join(f"{n} {c.replace('_', ' ')}" for c, n in sorted(cats.items()))
            parts.append(f"{len(self.skips)} skipped ({detail})")
        return " | ".join(parts)
