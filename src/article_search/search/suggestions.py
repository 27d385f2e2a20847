"""Spelling corrections and related terms for a query.

Suggestions are advisory: they never change the result set, and an empty
vocabulary or empty query simply yields empty lists.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass

from article_search.domain.search import Correction, Suggestions
from article_search.search.analyzers import normalize_terms
from article_search.search.fuzzy import find_similar_terms
from article_search.search.models import SearchIndex
from article_search.search.synonyms import SynonymExpander


@dataclass(frozen=True)
class SuggestionOptions:
    threshold: float = 0.6
    max_corrections_per_term: int = 3
    max_suggestions: int = 5
    vocabulary_sample_size: int = 5000
    synonyms: Mapping[str, Sequence[str]] | None = None


def suggest(query_text: str, index: SearchIndex, options: SuggestionOptions | None = None) -> Suggestions:
    """Propose corrections for unknown query terms and related terms for known ones."""

    opts = options or SuggestionOptions()
    query_terms = normalize_terms(query_text)
    vocabulary = index.vocabulary
    if not query_terms or not vocabulary:
        return Suggestions()

    corrections: list[Correction] = []
    for term in query_terms:
        if term in index.term_index:
            continue
        similar = find_similar_terms(
            term,
            vocabulary,
            opts.threshold,
            limit=opts.max_corrections_per_term,
            sample_size=opts.vocabulary_sample_size,
            by_length=index.terms_by_length,
        )
        candidates = [candidate for candidate, _score in similar if candidate != term]
        if candidates:
            corrections.append(Correction(original=term, suggestions=candidates))

    expander = SynonymExpander(opts.synonyms)
    excluded = set(query_terms)
    related: dict[str, None] = {}
    for term in query_terms:
        for synonym in expander.related(term):
            if synonym not in excluded:
                related.setdefault(synonym, None)

    return Suggestions(
        corrections=corrections[: opts.max_suggestions],
        related=list(related)[: opts.max_suggestions],
    )
