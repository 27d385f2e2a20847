"""Unit tests for the signature-checked index cache."""

from concurrent.futures import ThreadPoolExecutor
import threading
import time

import pytest

from article_search.adapters.article_store import (
    AbstractArticleStore,
    CorpusUnavailableError,
    InMemoryArticleStore,
)
from article_search.search.index_cache import IndexCache


class FlakyStore(AbstractArticleStore):
    """Store whose reads can be switched to fail."""

    def __init__(self, articles):
        self.articles = list(articles)
        self.version = 0
        self.fail_load = False
        self.fail_signature = False

    def signature(self):
        if self.fail_signature:
            raise CorpusUnavailableError("corpus offline")
        return self.version

    def load(self):
        if self.fail_load:
            raise CorpusUnavailableError("corpus unreadable")
        return list(self.articles)


class SlowStore(InMemoryArticleStore):
    """Counts loads and holds each one long enough for callers to pile up."""

    def __init__(self, articles):
        super().__init__(articles)
        self.loads = 0
        self._count_lock = threading.Lock()

    def load(self):
        with self._count_lock:
            self.loads += 1
        time.sleep(0.05)
        return super().load()


@pytest.mark.unit
class TestIndexCache:
    def test_unchanged_corpus_returns_same_snapshot(self, index_cache):
        first = index_cache.get()
        second = index_cache.get()

        assert first is second
        metrics = index_cache.metrics()
        assert metrics["builds"] == 1
        assert metrics["misses"] == 1
        assert metrics["hits"] == 1

    def test_corpus_change_triggers_rebuild(self, memory_store, index_cache, sample_articles):
        first = index_cache.get()
        memory_store.replace([*sample_articles, {"id": "a7", "title": "Quantum computing", "body": "qubits"}])

        second = index_cache.get()

        assert second is not first
        assert "a7" in second.articles
        assert second.postings("qubits") == frozenset({"a7"})
        assert "a7" not in first.articles
        assert index_cache.metrics()["builds"] == 2

    def test_snapshots_of_same_corpus_have_identical_content(self, memory_store, index_cache):
        first = index_cache.get()
        index_cache.invalidate()
        second = index_cache.get()

        assert second is not first
        assert dict(second.term_index) == dict(first.term_index)
        assert second.metadata == first.metadata

    def test_invalidate_forces_rebuild(self, index_cache):
        index_cache.get()
        index_cache.invalidate()
        index_cache.get()
        assert index_cache.metrics()["builds"] == 2

    def test_peek_does_not_build(self, index_cache):
        assert index_cache.peek() is None
        built = index_cache.get()
        assert index_cache.peek() is built

    def test_concurrent_callers_share_one_rebuild(self, sample_articles):
        store = SlowStore(sample_articles)
        cache = IndexCache(store)

        with ThreadPoolExecutor(max_workers=8) as pool:
            snapshots = list(pool.map(lambda _: cache.get(), range(16)))

        assert store.loads == 1
        assert all(snapshot is snapshots[0] for snapshot in snapshots)
        assert cache.metrics()["builds"] == 1

    def test_failed_first_build_serves_empty_index(self, sample_articles, caplog):
        store = FlakyStore(sample_articles)
        store.fail_load = True
        cache = IndexCache(store)

        index = cache.get()

        assert index.is_empty()
        assert cache.peek() is None
        assert cache.metrics()["failures"] == 1
        assert "serving empty index" in caplog.text

    def test_failed_build_is_retried(self, sample_articles):
        store = FlakyStore(sample_articles)
        store.fail_load = True
        cache = IndexCache(store)
        cache.get()

        store.fail_load = False
        index = cache.get()

        assert len(index.articles) == len(sample_articles)
        assert cache.metrics()["builds"] == 1

    def test_failed_rebuild_serves_previous_snapshot(self, sample_articles, caplog):
        store = FlakyStore(sample_articles)
        cache = IndexCache(store)
        previous = cache.get()

        store.version += 1
        store.fail_load = True
        assert cache.get() is previous

        store.fail_load = False
        store.fail_signature = True
        assert cache.get() is previous

        assert cache.metrics()["failures"] == 2
        assert cache.metrics()["last_failure"] == "corpus offline"
        assert "serving previous snapshot" in caplog.text

    def test_unexpected_store_errors_are_contained(self, sample_articles, caplog):
        store = FlakyStore(sample_articles)
        cache = IndexCache(store)
        previous = cache.get()

        def broken_load():
            raise RuntimeError("disk exploded")

        def broken_signature():
            raise KeyError("mtime")

        store.version += 1
        store.load = broken_load
        assert cache.get() is previous

        store.signature = broken_signature
        assert cache.get() is previous
        assert cache.metrics()["failures"] == 2
        assert "disk exploded" in caplog.text
        assert "Traceback" in caplog.text

    def test_build_errors_serve_empty_index(self, sample_articles, monkeypatch):
        def failing_build(*args, **kwargs):
            raise ValueError("index too large")

        monkeypatch.setattr("article_search.search.index_cache.build_search_index", failing_build)
        cache = IndexCache(InMemoryArticleStore(sample_articles))

        assert cache.get().is_empty()
        assert cache.peek() is None
        assert cache.metrics()["last_failure"] == "index too large"
