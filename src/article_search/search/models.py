"""Search data models.

Everything here is produced by one index build and shared read-only by every
query that follows, so records are frozen and mappings are exposed through
``MappingProxyType`` views.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from functools import cached_property
from types import MappingProxyType
from typing import Any

from article_search.search.fuzzy import bucket_by_length
from article_search.search.stats import FieldLengthStats


TITLE_FIELD = "title"
CONTENT_FIELD = "content"


@dataclass(frozen=True)
class ArticleRecord:
    """Search-enhanced view of one raw article."""

    id: str
    title: str
    searchable_content: str
    author: str | None = None
    source: str | None = None
    published_at: datetime | None = None
    keywords: tuple[str, ...] = ()
    word_count: int = 0
    reading_time: int = 0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "title": self.title,
            "searchableContent": self.searchable_content,
            "author": self.author,
            "source": self.source,
            "publishedAt": self.published_at.isoformat() if self.published_at else None,
            "keywords": list(self.keywords),
            "wordCount": self.word_count,
            "readingTime": self.reading_time,
        }


@dataclass(frozen=True)
class DateRange:
    earliest: datetime | None = None
    latest: datetime | None = None

    def to_dict(self) -> dict[str, str | None]:
        return {
            "earliest": self.earliest.isoformat() if self.earliest else None,
            "latest": self.latest.isoformat() if self.latest else None,
        }


@dataclass(frozen=True)
class IndexCounts:
    total_articles: int = 0
    total_terms: int = 0


@dataclass(frozen=True)
class IndexMetadata:
    """Values for populating filter controls."""

    authors: tuple[str, ...] = ()
    sources: tuple[str, ...] = ()
    date_range: DateRange = field(default_factory=DateRange)
    counts: IndexCounts = field(default_factory=IndexCounts)

    def to_dict(self) -> dict[str, Any]:
        return {
            "authors": list(self.authors),
            "sources": list(self.sources),
            "dateRange": self.date_range.to_dict(),
            "counts": {
                "totalArticles": self.counts.total_articles,
                "totalTerms": self.counts.total_terms,
            },
        }


@dataclass(frozen=True)
class SearchIndex:
    """One immutable snapshot of the corpus.

    ``term_index`` maps each term to the ids of the articles containing it.
    Postings are frozensets because result order is decided later by an
    explicit sort, never by insertion order.
    """

    articles: Mapping[str, ArticleRecord] = field(default_factory=lambda: MappingProxyType({}))
    term_index: Mapping[str, frozenset[str]] = field(default_factory=lambda: MappingProxyType({}))
    metadata: IndexMetadata = field(default_factory=IndexMetadata)
    field_stats: Mapping[str, FieldLengthStats] = field(default_factory=lambda: MappingProxyType({}))
    built_at: datetime | None = None
    signature: Any = None

    @cached_property
    def vocabulary(self) -> tuple[str, ...]:
        """Index terms in sorted order."""
        return tuple(sorted(self.term_index))

    @cached_property
    def terms_by_length(self) -> Mapping[int, tuple[str, ...]]:
        """Index terms grouped by length, for fuzzy lookups."""
        return MappingProxyType(bucket_by_length(self.term_index))

    def postings(self, term: str) -> frozenset[str]:
        return self.term_index.get(term, frozenset())

    def average_length(self, field_name: str) -> float:
        stats = self.field_stats.get(field_name)
        return stats.average_length if stats else 0.0

    def is_empty(self) -> bool:
        return not self.articles


def empty_search_index(signature: Any = None) -> SearchIndex:
    """Return the index served when no corpus could be read."""

    return SearchIndex(signature=signature)
