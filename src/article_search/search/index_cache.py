"""Owned cache for the current ``SearchIndex`` snapshot.

One ``IndexCache`` is constructed per process and handed to whoever runs
queries. ``get()`` compares the store's signature with the one the cached
index was built from and rebuilds only when they differ or after
``invalidate()``.

Concurrency: the check-and-rebuild runs under a single lock. Callers that
arrive while a rebuild is in flight wait for it and then receive the freshly
built index, so each corpus change costs exactly one rebuild.

Failure: if the store cannot be read, or the build itself raises, the previous
index keeps being served (or an empty one when nothing was ever built). The
failed signature is not recorded, so the next ``get()`` tries again.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
import threading
import time

from article_search.adapters.article_store import AbstractArticleStore, CorpusUnavailableError
from article_search.search.indexer import IndexBuildOptions, build_search_index
from article_search.search.models import SearchIndex, empty_search_index


logger = logging.getLogger(__name__)


@dataclass
class IndexCacheMetrics:
    """Lightweight counters for cache instrumentation."""

    hits: int = 0
    misses: int = 0
    builds: int = 0
    failures: int = 0
    last_build_seconds: float = 0.0
    last_built_at: float = 0.0
    last_failure: str | None = None

    def snapshot(self) -> dict[str, float | int | str | None]:
        return {
            "hits": self.hits,
            "misses": self.misses,
            "builds": self.builds,
            "failures": self.failures,
            "last_build_seconds": round(self.last_build_seconds, 4),
            "last_built_at": round(self.last_built_at, 6),
            "last_failure": self.last_failure,
        }


class IndexCache:
    """Get-or-build access to the search index of one article store."""

    def __init__(self, store: AbstractArticleStore, options: IndexBuildOptions | None = None) -> None:
        self._store = store
        self._options = options or IndexBuildOptions()
        self._lock = threading.Lock()
        self._index: SearchIndex | None = None
        self._signature: object = None
        self._stale = True
        self._metrics = IndexCacheMetrics()

    def get(self) -> SearchIndex:
        """Return the index for the current corpus, rebuilding if stale."""

        with self._lock:
            try:
                signature = self._store.signature()
            except Exception as exc:
                return self._serve_degraded(exc)

            if self._index is not None and not self._stale and signature == self._signature:
                self._metrics.hits += 1
                return self._index

            self._metrics.misses += 1
            return self._rebuild(signature)

    def invalidate(self) -> None:
        """Force the next ``get()`` to rebuild even if the corpus is unchanged."""

        with self._lock:
            self._stale = True
        logger.info("Search index invalidated")

    def peek(self) -> SearchIndex | None:
        """Return the cached index without checking staleness."""

        with self._lock:
            return self._index

    def metrics(self) -> dict[str, float | int | str | None]:
        with self._lock:
            return self._metrics.snapshot()

    def _rebuild(self, signature: object) -> SearchIndex:
        start = time.perf_counter()
        try:
            raw_articles = self._store.load()
            result = build_search_index(raw_articles, self._options, signature=signature)
        except Exception as exc:
            return self._serve_degraded(exc)
        elapsed = time.perf_counter() - start

        self._index = result.index
        self._signature = signature
        self._stale = False
        self._metrics.builds += 1
        self._metrics.last_build_seconds = elapsed
        self._metrics.last_built_at = time.time()
        logger.info(
            "Search index built: %d articles, %d terms, %d skipped in %.3fs",
            result.documents_indexed,
            result.index.metadata.counts.total_terms,
            result.documents_skipped,
            elapsed,
        )
        return result.index

    def _serve_degraded(self, exc: Exception) -> SearchIndex:
        self._metrics.failures += 1
        self._metrics.last_failure = str(exc)
        # Store outages are expected; anything else gets a traceback.
        exc_info = not isinstance(exc, CorpusUnavailableError)
        if self._index is not None:
            logger.warning("Search index rebuild failed, serving previous snapshot: %s", exc, exc_info=exc_info)
            return self._index
        logger.warning("Search index rebuild failed, serving empty index: %s", exc, exc_info=exc_info)
        return empty_search_index()
