"""Corpus-wide statistics derived from an index snapshot."""

from __future__ import annotations

from collections import Counter, defaultdict
from collections.abc import Callable

from article_search.domain.search import (
    ArticleSummary,
    CorpusInsights,
    FacetInsight,
    KeywordCount,
    MonthlyCount,
)
from article_search.search.models import ArticleRecord, SearchIndex
from article_search.search.query_planner import sort_records


DEFAULT_RECENT_LIMIT = 3
DEFAULT_KEYWORD_LIMIT = 20


def _facets(
    records: list[ArticleRecord],
    key: Callable[[ArticleRecord], str | None],
    recent_limit: int,
) -> list[FacetInsight]:
    grouped: dict[str, list[ArticleRecord]] = defaultdict(list)
    for record in records:
        name = key(record)
        if name:
            grouped[name].append(record)

    facets = []
    for name, members in grouped.items():
        recent = sort_records(members, "newest")[:recent_limit]
        facets.append(
            FacetInsight(
                name=name,
                article_count=len(members),
                recent_articles=[
                    ArticleSummary(id=record.id, title=record.title, published_at=record.published_at)
                    for record in recent
                ],
            )
        )
    facets.sort(key=lambda facet: (-facet.article_count, facet.name))
    return facets


def build_corpus_insights(
    index: SearchIndex,
    *,
    recent_limit: int = DEFAULT_RECENT_LIMIT,
    keyword_limit: int = DEFAULT_KEYWORD_LIMIT,
) -> CorpusInsights:
    """Summarize ``index`` by author, source, month and keyword.

    Months are ``YYYY-MM`` in ascending order; undated articles are left out of
    the monthly series but still counted everywhere else.
    """
    records = list(index.articles.values())
    if not records:
        return CorpusInsights()

    monthly = Counter(
        record.published_at.strftime("%Y-%m") for record in records if record.published_at is not None
    )
    keywords = Counter(keyword for record in records for keyword in record.keywords)
    total_words = sum(record.word_count for record in records)

    authors = _facets(records, lambda record: record.author, recent_limit)
    sources = _facets(records, lambda record: record.source, recent_limit)

    return CorpusInsights(
        total_articles=len(records),
        total_words=total_words,
        average_words_per_article=round(total_words / len(records)),
        total_authors=len(authors),
        total_sources=len(sources),
        total_terms=len(index.term_index),
        authors=authors,
        sources=sources,
        monthly=[MonthlyCount(month=month, count=count) for month, count in sorted(monthly.items())],
        popular_keywords=[
            KeywordCount(keyword=keyword, count=count)
            for keyword, count in sorted(keywords.items(), key=lambda item: (-item[1], item[0]))[:keyword_limit]
        ],
    )
