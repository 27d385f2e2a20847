"""Synonym expansion for search queries.

A small fixed table of Korean/English equivalents broadens recall for the
topics the site covers most (AI, technology, markets, policy, research).

Example:
    - "ai" expands to {"ai", "인공지능", "머신러닝", "딥러닝"}
    - "기업" expands to {"기업", "회사", "company", "비즈니스", "business"}

Entries are directional: "ai" lists "인공지능" and "인공지능" lists "ai", but
"머신러닝" has no entry of its own. Multi-word entries such as
"machine learning" can never be an index term, so they only show up as
related-term suggestions.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence


DEFAULT_SYNONYMS: dict[str, tuple[str, ...]] = {
    "ai": ("인공지능", "머신러닝", "딥러닝", "artificial intelligence", "machine learning"),
    "인공지능": ("ai", "artificial intelligence", "머신러닝", "딥러닝"),
    "기술": ("테크", "tech", "technology", "테크놀로지"),
    "개발": ("development", "개발자", "developer", "프로그래밍"),
    "시장": ("market", "마켓", "경제", "economy"),
    "기업": ("회사", "company", "비즈니스", "business"),
    "정부": ("government", "행정", "정책", "policy"),
    "연구": ("research", "조사", "study", "분석"),
    "투자": ("investment", "자금", "funding", "펀딩"),
    "성장": ("growth", "발전", "development", "확장"),
}


def is_single_term(synonym: str) -> bool:
    """True when ``synonym`` could be an index term (no internal whitespace)."""

    return bool(synonym) and len(synonym.split()) == 1


class SynonymExpander:
    """Expands terms to include their synonyms."""

    def __init__(self, synonyms: Mapping[str, Sequence[str]] | None = None) -> None:
        """Initialize with synonym mappings.

        Args:
            synonyms: Custom synonym mappings. If None, uses DEFAULT_SYNONYMS.
        """
        source = synonyms if synonyms is not None else DEFAULT_SYNONYMS
        self._synonyms = {key.lower(): tuple(value.lower() for value in values) for key, values in source.items()}

    def __contains__(self, term: str) -> bool:
        return term.lower() in self._synonyms

    def related(self, term: str) -> list[str]:
        """Return the table entry for ``term`` in table order (may be empty)."""

        return list(self._synonyms.get(term.lower(), ()))

    def expand(self, term: str) -> set[str]:
        """Expand a single term to itself plus its single-word synonyms.

        Args:
            term: The term to expand.

        Returns:
            Set containing the term and every synonym usable as an index term.
        """
        normalized = term.lower()
        result = {synonym for synonym in self._synonyms.get(normalized, ()) if is_single_term(synonym)}
        result.add(normalized)
        return result


def expand_query_terms(
    terms: Sequence[str],
    synonyms: Mapping[str, Sequence[str]] | None = None,
) -> list[str]:
    """Expand all query terms to include synonyms.

    Args:
        terms: Normalized query terms.
        synonyms: Optional custom synonym mappings.

    Returns:
        The original terms first, then each added synonym once, in table order.
    """
    if not terms:
        return []

    expander = SynonymExpander(synonyms)
    expanded: dict[str, None] = dict.fromkeys(term.lower() for term in terms)
    for term in terms:
        for synonym in expander.related(term):
            if is_single_term(synonym):
                expanded.setdefault(synonym, None)
    return list(expanded)
