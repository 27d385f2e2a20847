"""Advanced query expansion: synonyms plus typo-tolerant fuzzy terms.

Advanced mode widens a query in two ways before candidate selection:

- every query term is expanded through the synonym table;
- every query term that is not an index term is compared with a bounded
  sample of the vocabulary, and close terms are accepted as substitutes.

Each resulting term carries a weight used by the scorer. Original query
terms weigh 1.0, synonyms ``SYNONYM_WEIGHT`` and fuzzy substitutes
``FUZZY_WEIGHT`` times their similarity, so an article reached only through a
fuzzy term never outranks one matching the exact term at equal frequency.
"""

from __future__ import annotations

from collections.abc import Collection, Mapping, Sequence, Set
from dataclasses import dataclass, field
import logging

from article_search.domain.search import AdvancedDiagnostics, FuzzySubstitution
from article_search.search.analyzers import normalize_terms
from article_search.search.fuzzy import bucket_by_length, find_similar_terms
from article_search.search.models import SearchIndex
from article_search.search.synonyms import expand_query_terms


logger = logging.getLogger(__name__)

EXACT_WEIGHT = 1.0
SYNONYM_WEIGHT = 0.75
FUZZY_WEIGHT = 0.5


@dataclass(frozen=True)
class AdvancedSearchOptions:
    fuzzy_threshold: float = 0.8
    include_synonyms: bool = True
    max_fuzzy_matches: int = 5
    vocabulary_sample_size: int = 5000
    synonyms: Mapping[str, Sequence[str]] | None = None


@dataclass(frozen=True)
class QueryExpansion:
    """The widened term set for one query."""

    query_terms: tuple[str, ...]
    expanded_terms: tuple[str, ...]
    fuzzy_matches: tuple[FuzzySubstitution, ...]
    term_weights: Mapping[str, float] = field(default_factory=dict)

    @property
    def fuzzy_terms(self) -> tuple[str, ...]:
        return tuple(dict.fromkeys(match.fuzzy for match in self.fuzzy_matches))


@dataclass(frozen=True)
class AdvancedSearchResult:
    """Candidate ids from an expanded query plus diagnostic counts.

    ``matches`` lists ids reached through exact or synonym terms first, then
    ids reached only through fuzzy terms. ``fuzzy_match_count`` counts every
    id reachable through a fuzzy term, including ones also matched exactly.
    """

    matches: tuple[str, ...]
    expansion: QueryExpansion
    exact_match_count: int
    fuzzy_match_count: int

    @property
    def expanded_terms(self) -> tuple[str, ...]:
        return self.expansion.expanded_terms

    @property
    def fuzzy_matches(self) -> tuple[FuzzySubstitution, ...]:
        return self.expansion.fuzzy_matches

    @property
    def term_weights(self) -> Mapping[str, float]:
        return self.expansion.term_weights

    def diagnostics(self) -> AdvancedDiagnostics:
        return AdvancedDiagnostics(
            expanded_terms=list(self.expanded_terms),
            fuzzy_matches=list(self.fuzzy_matches),
            exact_match_count=self.exact_match_count,
            fuzzy_match_count=self.fuzzy_match_count,
        )


def expand_query(
    query_text: str,
    vocabulary: Collection[str],
    options: AdvancedSearchOptions | None = None,
    *,
    terms_by_length: Mapping[int, Sequence[str]] | None = None,
) -> QueryExpansion:
    """Expand ``query_text`` with synonyms and fuzzy substitutes from ``vocabulary``.

    ``vocabulary`` may be any collection of index terms; a set or mapping keeps
    the known-term check constant time. ``terms_by_length`` reuses length
    buckets computed once per index instead of regrouping on every call.
    """

    opts = options or AdvancedSearchOptions()
    query_terms = normalize_terms(query_text)
    weights: dict[str, float] = dict.fromkeys(query_terms, EXACT_WEIGHT)

    if opts.include_synonyms:
        for term in expand_query_terms(query_terms, opts.synonyms):
            weights.setdefault(term, SYNONYM_WEIGHT)

    expanded_terms = tuple(weights)

    substitutions: list[FuzzySubstitution] = []
    if vocabulary and opts.max_fuzzy_matches > 0:
        known = vocabulary if isinstance(vocabulary, (Set, Mapping)) else frozenset(vocabulary)
        buckets = terms_by_length
        for term in query_terms:
            if term in known:
                continue
            if buckets is None:
                buckets = bucket_by_length(vocabulary)
            candidates = find_similar_terms(
                term,
                vocabulary,
                opts.fuzzy_threshold,
                sample_size=opts.vocabulary_sample_size,
                by_length=buckets,
            )
            accepted = 0
            for candidate, score in candidates:
                if accepted >= opts.max_fuzzy_matches:
                    break
                if candidate in expanded_terms:
                    continue
                substitutions.append(FuzzySubstitution(original=term, fuzzy=candidate, similarity=round(score, 4)))
                accepted += 1
                fuzzy_weight = FUZZY_WEIGHT * score
                if weights.get(candidate, 0.0) < fuzzy_weight:
                    weights[candidate] = fuzzy_weight

    return QueryExpansion(
        query_terms=tuple(query_terms),
        expanded_terms=expanded_terms,
        fuzzy_matches=tuple(substitutions),
        term_weights=weights,
    )


def advanced_search(
    index: SearchIndex,
    query_text: str,
    options: AdvancedSearchOptions | None = None,
) -> AdvancedSearchResult:
    """Select candidates for ``query_text`` using the expanded term set."""

    expansion = expand_query(query_text, index.term_index, options, terms_by_length=index.terms_by_length)

    exact_ids: set[str] = set()
    for term in expansion.expanded_terms:
        exact_ids.update(index.postings(term))

    fuzzy_ids: set[str] = set()
    for term in expansion.fuzzy_terms:
        fuzzy_ids.update(index.postings(term))

    matches = sorted(exact_ids) + sorted(fuzzy_ids - exact_ids)
    if expansion.fuzzy_matches:
        logger.debug(
            "Advanced search for %r: %d exact, %d fuzzy via %s",
            query_text,
            len(exact_ids),
            len(fuzzy_ids),
            [f"{m.original}->{m.fuzzy}" for m in expansion.fuzzy_matches],
        )
    return AdvancedSearchResult(
        matches=tuple(matches),
        expansion=expansion,
        exact_match_count=len(exact_ids),
        fuzzy_match_count=len(fuzzy_ids),
    )
