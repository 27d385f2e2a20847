"""Search service orchestration layer.

Combines the index cache, query planner, suggestion generator and excerpt
builder behind one API for whatever transport sits on top.
"""

from __future__ import annotations

import asyncio
from collections.abc import Mapping, Sequence
import logging
import time
from typing import Any

from article_search.adapters.article_store import JsonFileArticleStore
from article_search.config import SearchSettings
from article_search.domain.search import (
    AdvancedDiagnostics,
    CorpusInsights,
    FilterOptions,
    Pagination,
    SearchHit,
    SearchQuery,
    SearchResponse,
)
from article_search.observability.context import bind_trace_context
from article_search.search.analyzers import normalize_terms
from article_search.search.index_cache import IndexCache
from article_search.search.insights import build_corpus_insights
from article_search.search.models import ArticleRecord, SearchIndex
from article_search.search.query_planner import search as plan_search
from article_search.search.snippet import build_excerpt, highlight_terms
from article_search.search.suggestions import suggest
from article_search.service_layer.query_parser import parse_search_params


logger = logging.getLogger(__name__)


class SearchService:
    """High-level search orchestration service.

    Every call reads the current index snapshot from the cache once and works
    on that snapshot only, so a concurrent rebuild never mixes two corpus
    versions into one response.
    """

    def __init__(self, cache: IndexCache, settings: SearchSettings | None = None):
        """Initialize search service with dependencies.

        Args:
            cache: Index cache for the article store (required)
            settings: Tuning values; defaults come from the environment
        """
        self.cache = cache
        self.settings = settings or SearchSettings()
        self._advanced_options = self.settings.advanced_search_options()
        self._suggestion_options = self.settings.suggestion_options()

    @classmethod
    def from_settings(cls, settings: SearchSettings | None = None) -> SearchService:
        """Build a service reading the JSON corpus at ``settings.articles_path``."""

        settings = settings or SearchSettings()
        store = JsonFileArticleStore(settings.articles_path)
        return cls(IndexCache(store, settings.index_build_options()), settings)

    def search(self, query: SearchQuery) -> SearchResponse:
        """Execute ``query`` against the current corpus snapshot."""

        with bind_trace_context(query=query.text or None):
            start = time.perf_counter()
            index = self.cache.get()
            page = plan_search(index, query, advanced_options=self._advanced_options)

            terms = self._highlight_terms(query, page.advanced)
            hits = [
                self._to_hit(index.articles[article_id], terms, page.scores)
                for article_id in page.ids
                if article_id in index.articles
            ]

            suggestions = None
            if query.text and (query.include_suggestions or query.advanced):
                suggestions = suggest(query.text, index, self._suggestion_options)

            response = SearchResponse(
                hits=hits,
                pagination=Pagination(
                    total_count=page.total_count,
                    current_page=page.current_page,
                    total_pages=page.total_pages,
                    page_size=query.page_size,
                    has_next_page=page.has_next_page,
                    has_prev_page=page.has_prev_page,
                ),
                filters=self._filter_options(index),
                query=query,
                suggestions=suggestions,
                advanced=page.advanced,
            )

            logger.debug(
                "Search completed: %d of %d results (page %d/%d, sort=%s, advanced=%s) in %.3fs",
                len(hits),
                page.total_count,
                page.current_page,
                page.total_pages,
                query.sort,
                query.advanced,
                time.perf_counter() - start,
            )
            return response

    def search_params(self, params: Mapping[str, Any]) -> SearchResponse:
        """Validate raw request parameters and run the search.

        Raises:
            QueryValidationError: When ``params`` violates the request contract.
        """
        query = parse_search_params(
            params,
            default_page_size=self.settings.default_page_size,
            max_page_size=self.settings.max_page_size,
        )
        return self.search(query)

    async def search_async(self, query: SearchQuery) -> SearchResponse:
        """Run ``search`` on a worker thread so the event loop stays free."""

        return await asyncio.to_thread(self.search, query)

    def metadata(self) -> FilterOptions:
        """Authors, sources and date bounds of the current corpus."""

        return self._filter_options(self.cache.get())

    def insights(self) -> CorpusInsights:
        return build_corpus_insights(self.cache.get())

    def invalidate(self) -> None:
        """Force the next call to rebuild the index."""

        self.cache.invalidate()

    def cache_metrics(self) -> dict[str, float | int | str | None]:
        return self.cache.metrics()

    @staticmethod
    def _highlight_terms(query: SearchQuery, advanced: AdvancedDiagnostics | None) -> list[str]:
        if not query.text:
            return []
        terms = normalize_terms(query.text)
        if advanced is not None:
            terms += advanced.expanded_terms
            terms += [match.fuzzy for match in advanced.fuzzy_matches]
        return list(dict.fromkeys(terms))

    def _to_hit(
        self,
        record: ArticleRecord,
        terms: Sequence[str],
        scores: Mapping[str, float] | None,
    ) -> SearchHit:
        excerpt = build_excerpt(record.searchable_content, terms, self.settings.excerpt_length)
        return SearchHit(
            id=record.id,
            title=record.title,
            author=record.author,
            source=record.source,
            published_at=record.published_at,
            keywords=list(record.keywords),
            word_count=record.word_count,
            reading_time=record.reading_time,
            excerpt=excerpt,
            highlighted_excerpt=highlight_terms(excerpt, terms),
            score=scores.get(record.id) if scores is not None else None,
        )

    @staticmethod
    def _filter_options(index: SearchIndex) -> FilterOptions:
        metadata = index.metadata
        return FilterOptions(
            authors=list(metadata.authors),
            sources=list(metadata.sources),
            earliest=metadata.date_range.earliest,
            latest=metadata.date_range.latest,
            total_articles=metadata.counts.total_articles,
        )
