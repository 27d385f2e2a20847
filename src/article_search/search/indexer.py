"""Index building for the article corpus.

The indexer turns raw article records (title, HTML body, author, source,
publish date) into ``ArticleRecord`` objects, builds the inverted index over
their title, content and keyword terms, and derives the metadata used by the
filter controls. One malformed record never fails the whole build: it is
logged, counted and skipped.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from datetime import date, datetime, timezone
import logging
from types import MappingProxyType
from typing import Any

from article_search.search.analyzers import (
    DEFAULT_MAX_KEYWORDS,
    DEFAULT_WORDS_PER_MINUTE,
    calculate_reading_time,
    extract_keywords,
    normalize_and_tokenize,
    normalize_terms,
    strip_html,
)
from article_search.search.models import (
    CONTENT_FIELD,
    TITLE_FIELD,
    ArticleRecord,
    DateRange,
    IndexCounts,
    IndexMetadata,
    SearchIndex,
)
from article_search.search.stats import compute_field_length_stats


logger = logging.getLogger(__name__)

_ID_FIELDS = ("id", "slug")
_BODY_FIELDS = ("body", "contentHTML")
_DATE_FIELDS = ("publishDate", "publishedAt", "date", "generatedAt")


class ArticleLoadError(ValueError):
    """Raised when a raw article cannot be turned into an ``ArticleRecord``."""


@dataclass(frozen=True)
class IndexBuildOptions:
    max_keywords: int = DEFAULT_MAX_KEYWORDS
    words_per_minute: int = DEFAULT_WORDS_PER_MINUTE


@dataclass(frozen=True)
class IndexBuildResult:
    """Outcome of one index build."""

    index: SearchIndex
    documents_indexed: int
    documents_skipped: int
    errors: tuple[str, ...]


def parse_publish_date(value: Any) -> datetime | None:
    """Parse an ISO-8601 date or datetime; anything unparsable yields ``None``.

    Naive values are taken as UTC so that every date in one index compares.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.strip())
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _first_present(raw: Mapping[str, Any], names: Sequence[str]) -> Any:
    for name in names:
        value = raw.get(name)
        if value is not None and value != "":
            return value
    return None


def _optional_text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def enhance_article(raw: Any, options: IndexBuildOptions | None = None) -> ArticleRecord:
    """Convert one raw article into its searchable form.

    Raises:
        ArticleLoadError: if ``raw`` is not a mapping, has no identifier, or
            carries a body that is not a string.
    """
    opts = options or IndexBuildOptions()
    if not isinstance(raw, Mapping):
        raise ArticleLoadError(f"Article is not an object: {type(raw).__name__}")

    article_id = _first_present(raw, _ID_FIELDS)
    if article_id is None:
        raise ArticleLoadError("Article has no identifier")
    article_id = str(article_id)

    body = _first_present(raw, _BODY_FIELDS)
    if body is None:
        body = ""
    if not isinstance(body, str):
        raise ArticleLoadError(f"Article {article_id} body is not a string: {type(body).__name__}")

    title = raw.get("title")
    title = title if isinstance(title, str) else ("" if title is None else str(title))

    searchable_content = strip_html(body)
    keywords = extract_keywords(f"{title} {searchable_content}".strip(), opts.max_keywords)
    word_count = len(normalize_and_tokenize(searchable_content))

    return ArticleRecord(
        id=article_id,
        title=title,
        searchable_content=searchable_content,
        author=_optional_text(raw.get("author")),
        source=_optional_text(raw.get("source")),
        published_at=parse_publish_date(_first_present(raw, _DATE_FIELDS)),
        keywords=tuple(keywords),
        word_count=word_count,
        reading_time=calculate_reading_time(word_count, opts.words_per_minute),
    )


def article_terms(record: ArticleRecord) -> set[str]:
    """All distinct terms an article is indexed under."""

    terms = set(normalize_terms(record.title))
    terms.update(normalize_terms(record.searchable_content))
    for keyword in record.keywords:
        terms.update(normalize_terms(keyword))
    return terms


def create_inverted_index(records: Iterable[ArticleRecord]) -> dict[str, frozenset[str]]:
    """Map each term to the ids of the articles containing it."""

    postings: dict[str, set[str]] = {}
    for record in records:
        for term in article_terms(record):
            postings.setdefault(term, set()).add(record.id)
    return {term: frozenset(ids) for term, ids in postings.items() if ids}


def collect_metadata(records: Sequence[ArticleRecord], term_count: int) -> IndexMetadata:
    authors = sorted({record.author for record in records if record.author})
    sources = sorted({record.source for record in records if record.source})
    dates = sorted(record.published_at for record in records if record.published_at is not None)
    date_range = DateRange(earliest=dates[0], latest=dates[-1]) if dates else DateRange()
    return IndexMetadata(
        authors=tuple(authors),
        sources=tuple(sources),
        date_range=date_range,
        counts=IndexCounts(total_articles=len(records), total_terms=term_count),
    )


def build_search_index(
    raw_articles: Any,
    options: IndexBuildOptions | None = None,
    *,
    signature: Any = None,
) -> IndexBuildResult:
    """Build a complete ``SearchIndex`` from the raw corpus.

    Args:
        raw_articles: Sequence of raw article mappings. Anything that is not a
            list or tuple is treated as an empty corpus.
        options: Keyword cap and reading speed.
        signature: Corpus signature recorded on the index for staleness checks.
    """
    opts = options or IndexBuildOptions()
    if not isinstance(raw_articles, (list, tuple)):
        logger.warning("Corpus is not a list (%s); building an empty index", type(raw_articles).__name__)
        raw_articles = []

    records: dict[str, ArticleRecord] = {}
    errors: list[str] = []
    skipped = 0

    for position, raw in enumerate(raw_articles):
        try:
            record = enhance_article(raw, opts)
        except ArticleLoadError as exc:
            logger.debug("Skipping article at position %d: %s", position, exc)
            errors.append(f"#{position}: {exc}")
            skipped += 1
            continue
        if record.id in records:
            logger.warning("Duplicate article id %s; keeping the later record", record.id)
        records[record.id] = record

    ordered = list(records.values())
    term_index = create_inverted_index(ordered)
    field_stats = compute_field_length_stats(
        {
            TITLE_FIELD: {record.id: len(normalize_and_tokenize(record.title)) for record in ordered},
            CONTENT_FIELD: {record.id: record.word_count for record in ordered},
        }
    )

    index = SearchIndex(
        articles=MappingProxyType(records),
        term_index=MappingProxyType(term_index),
        metadata=collect_metadata(ordered, len(term_index)),
        field_stats=MappingProxyType(field_stats),
        built_at=datetime.now(timezone.utc),
        signature=signature,
    )
    return IndexBuildResult(
        index=index,
        documents_indexed=len(records),
        documents_skipped=skipped,
        errors=tuple(errors),
    )
