"""Query planning: candidates, filters, scoring, sorting and pagination.

``search()`` expects a validated ``SearchQuery``. It never raises for a valid
query against a well-formed index; a posting that points at a missing article
is logged and dropped from the results.

Candidate selection uses OR semantics: an article matching any query term is
a candidate and ranking separates strong matches from weak ones.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from datetime import datetime, timezone
import logging
import math

from article_search.domain.search import SearchFilters, SearchPage, SearchQuery
from article_search.search.advanced import EXACT_WEIGHT, AdvancedSearchOptions, advanced_search
from article_search.search.analyzers import normalize_and_tokenize, normalize_terms
from article_search.search.models import CONTENT_FIELD, TITLE_FIELD, ArticleRecord, SearchIndex
from article_search.search.stats import normalized_tf


logger = logging.getLogger(__name__)

_OLDEST = datetime.min.replace(tzinfo=timezone.utc)


@dataclass(frozen=True)
class ScoringWeights:
    """Field weights for relevance scoring.

    ``title + keywords + content`` sums to 1 so a single-term score stays in
    ``[0, 1]`` before the title phrase bonus is added.
    """

    title: float = 0.5
    keywords: float = 0.3
    content: float = 0.2
    title_phrase_bonus: float = 0.25


DEFAULT_WEIGHTS = ScoringWeights()


@dataclass(frozen=True)
class ScoredCandidate:
    id: str
    score: float


# --- candidate selection ----------------------------------------------------


def select_candidates(index: SearchIndex, terms: Iterable[str]) -> set[str]:
    """Union of the postings of every term."""

    candidates: set[str] = set()
    for term in terms:
        candidates.update(index.postings(term))
    return candidates


def resolve_records(index: SearchIndex, ids: Iterable[str]) -> list[ArticleRecord]:
    """Look up article records, dropping ids with no backing article."""

    records: list[ArticleRecord] = []
    for article_id in ids:
        record = index.articles.get(article_id)
        if record is None:
            logger.warning("Index posting references missing article %s; dropping it", article_id)
            continue
        records.append(record)
    return records


# --- filters ----------------------------------------------------------------


def apply_filters(records: Sequence[ArticleRecord], filters: SearchFilters | None) -> list[ArticleRecord]:
    """Keep records matching every active filter kind."""

    if filters is None or filters.is_empty():
        return list(records)

    date_range = filters.date_range if filters.date_range is not None and filters.date_range.is_active() else None
    sources = frozenset(filters.sources) if filters.sources else None
    authors = frozenset(filters.authors) if filters.authors else None

    kept: list[ArticleRecord] = []
    for record in records:
        if date_range is not None and (record.published_at is None or not date_range.contains(record.published_at)):
            continue
        if sources is not None and record.source not in sources:
            continue
        if authors is not None and record.author not in authors:
            continue
        kept.append(record)
    return kept


# --- scoring ----------------------------------------------------------------


def score_article(
    record: ArticleRecord,
    term_weights: Mapping[str, float],
    query_text: str,
    index: SearchIndex,
    *,
    query_term_count: int | None = None,
    weights: ScoringWeights = DEFAULT_WEIGHTS,
) -> float:
    """Weighted, length-normalized term frequency score for one article.

    Term frequencies are recomputed from the article text; the index itself
    only stores membership.
    """
    if not term_weights:
        return 0.0

    title_tokens = normalize_and_tokenize(record.title)
    content_tokens = normalize_and_tokenize(record.searchable_content)
    title_counts = Counter(title_tokens)
    content_counts = Counter(content_tokens)
    keywords = frozenset(record.keywords)
    avg_title = index.average_length(TITLE_FIELD)
    avg_content = index.average_length(CONTENT_FIELD)

    total = 0.0
    for term, term_weight in term_weights.items():
        term_score = 0.0
        if title_counts[term]:
            term_score += weights.title * normalized_tf(title_counts[term], len(title_tokens), avg_title)
        if term in keywords:
            term_score += weights.keywords
        if content_counts[term]:
            term_score += weights.content * normalized_tf(content_counts[term], len(content_tokens), avg_content)
        total += term_weight * term_score

    divisor = query_term_count or len(term_weights)
    score = total / max(divisor, 1)

    phrase = query_text.strip().lower()
    if phrase and phrase in record.title.lower():
        score += weights.title_phrase_bonus
    return score


def score_candidates(
    records: Sequence[ArticleRecord],
    term_weights: Mapping[str, float],
    query_text: str,
    index: SearchIndex,
    *,
    query_term_count: int | None = None,
    weights: ScoringWeights = DEFAULT_WEIGHTS,
) -> dict[str, float]:
    return {
        record.id: score_article(
            record, term_weights, query_text, index, query_term_count=query_term_count, weights=weights
        )
        for record in records
    }


# --- sorting ----------------------------------------------------------------


def _date_key(record: ArticleRecord) -> datetime:
    return record.published_at or _OLDEST


def sort_records(
    records: Sequence[ArticleRecord],
    sort: str,
    scores: Mapping[str, float] | None = None,
) -> list[ArticleRecord]:
    """Order records for ``sort``; ties always fall back to the article id.

    Articles without a publish date sort as the oldest. An unknown sort mode
    leaves the records in id order.
    """
    by_id = sorted(records, key=lambda record: record.id)
    if sort == "newest":
        return sorted(by_id, key=_date_key, reverse=True)
    if sort == "oldest":
        return sorted(by_id, key=_date_key)
    if sort == "title":
        return sorted(by_id, key=lambda record: record.title.casefold())
    if sort == "relevance":
        if scores is None:
            return sorted(by_id, key=_date_key, reverse=True)
        newest_first = sorted(by_id, key=_date_key, reverse=True)
        return sorted(newest_first, key=lambda record: scores.get(record.id, 0.0), reverse=True)
    logger.warning("Unknown sort mode %r; returning results in id order", sort)
    return by_id


# --- pagination -------------------------------------------------------------


def paginate(ids: Sequence[str], page: int, page_size: int) -> tuple[list[str], int]:
    """Return the ids of ``page`` and the total page count."""

    total_pages = math.ceil(len(ids) / page_size) if page_size > 0 else 0
    start = (page - 1) * page_size
    return list(ids[start : start + page_size]), total_pages


# --- entry point ------------------------------------------------------------


def search(
    index: SearchIndex,
    query: SearchQuery,
    *,
    advanced_options: AdvancedSearchOptions | None = None,
    scoring: ScoringWeights | None = None,
) -> SearchPage:
    """Run ``query`` against ``index`` and return one page of article ids."""

    diagnostics = None
    term_weights: dict[str, float] = {}
    query_term_count = 0

    if not query.text:
        candidate_ids: Iterable[str] = index.articles.keys()
    elif query.advanced:
        result = advanced_search(index, query.text, advanced_options)
        candidate_ids = result.matches
        term_weights = dict(result.expansion.term_weights)
        query_term_count = len(result.expansion.query_terms)
        diagnostics = result.diagnostics()
    else:
        terms = normalize_terms(query.text)
        term_weights = dict.fromkeys(terms, EXACT_WEIGHT)
        query_term_count = len(terms)
        candidate_ids = select_candidates(index, terms)

    records = apply_filters(resolve_records(index, candidate_ids), query.filters)

    scores: dict[str, float] | None = None
    if query.sort == "relevance" and query.text:
        scores = score_candidates(
            records,
            term_weights,
            query.text,
            index,
            query_term_count=query_term_count,
            weights=scoring or DEFAULT_WEIGHTS,
        )

    ordered_ids = [record.id for record in sort_records(records, query.sort, scores)]
    page_ids, total_pages = paginate(ordered_ids, query.page, query.page_size)

    return SearchPage(
        ids=page_ids,
        total_count=len(ordered_ids),
        current_page=query.page,
        total_pages=total_pages,
        has_next_page=query.page < total_pages,
        has_prev_page=query.page > 1,
        scores={article_id: round(scores[article_id], 6) for article_id in page_ids} if scores is not None else None,
        advanced=diagnostics,
    )
