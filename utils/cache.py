"""In-memory merge cache for the call-data tools.

Holds two kinds of entry:

- the *merged* slot: the dataset derived solely from the active files in
  the registry; rebuilt lazily after every invalidation.
- *working views*: one per caller, holding whatever that caller last
  produced through an enrichment pass.

Any registry mutation calls ``invalidate()``, which clears both, so a stale
enrichment snapshot can never outlive the file set it was derived from.
"""

import threading
from typing import Any, Callable


class MergeCache:
    """Thread-safe holder for the merged dataset and per-caller working views.

    The cache never builds anything by itself; ``get_or_build`` runs the
    supplied loader outside the lock and only stores the result if no
    invalidation happened while it was running.

    Usage::

        cache = MergeCache()
        dataset = cache.get_or_build(lambda: load_all(registry))
        cache.invalidate()          # after upload / delete / restore
    """

    def __init__(self) -> None:
        self._merged: Any | None = None
        self._working: dict[str, Any] = {}
        self._epoch = 0
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0
        self._rebuilds = 0

    # ── Merged slot ──────────────────────────────────────────────────────────

    def get(self) -> Any | None:
        """Return the cached merged dataset, or ``None`` if invalidated."""
        with self._lock:
            if self._merged is None:
                self._misses += 1
                return None
            self._hits += 1
            return self._merged

    def rebuild(self, loader: Callable[[], Any]) -> Any:
        """Run ``loader`` unconditionally and store its result.

        The result is returned even when a concurrent ``invalidate()`` makes
        it ineligible for caching; the next reader rebuilds again.
        """
        with self._lock:
            epoch = self._epoch
        dataset = loader()
        with self._lock:
            self._rebuilds += 1
            if epoch == self._epoch:
                self._merged = dataset
        return dataset

    def get_or_build(self, loader: Callable[[], Any], force: bool = False) -> Any:
        """Return the cached dataset, building it with ``loader`` on a miss."""
        if not force:
            cached = self.get()
            if cached is not None:
                return cached
        return self.rebuild(loader)

    def invalidate(self) -> None:
        """Drop the merged dataset and every working view."""
        with self._lock:
            self._epoch += 1
            self._merged = None
            self._working.clear()

    # ── Working views ────────────────────────────────────────────────────────

    def get_working(self, user: str) -> Any | None:
        with self._lock:
            return self._working.get(user)

    def epoch(self) -> int:
        """Current invalidation counter; pass it back to ``set_working``."""
        with self._lock:
            return self._epoch

    def set_working(self, user: str, dataset: Any, epoch: int | None = None) -> bool:
        """Store ``dataset`` as the caller's working view.

        When ``epoch`` is given and an invalidation has happened since it was
        read, the view is derived from a retired file set and is dropped.
        Returns whether the view was stored.
        """
        with self._lock:
            if epoch is not None and epoch != self._epoch:
                return False
            self._working[user] = dataset
            return True

    def clear_working(self, user: str) -> None:
        with self._lock:
            self._working.pop(user, None)

    def stats(self) -> dict[str, int]:
        """Return cache statistics.

        Returns:
            Dict with keys ``hits``, ``misses``, ``rebuilds``, ``epoch``,
            ``cached`` (0/1) and ``working_views``.
        """
        with self._lock:
            return {
                "hits": self._hits,
                "misses": self._misses,
                "rebuilds": self._rebuilds,
                "epoch": self._epoch,
                "cached": int(self._merged is not None),
                "working_views": len(self._working),
            }
