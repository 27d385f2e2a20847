"""Domain layer - request and response value objects with no infrastructure dependencies.

Search queries are validated once at the boundary with Pydantic and are
immutable afterwards.
"""

from article_search.domain.search import (
    DateRangeFilter,
    SearchFilters,
    SearchHit,
    SearchPage,
    SearchQuery,
    SearchResponse,
    Suggestions,
)


__all__ = [
    "DateRangeFilter",
    "SearchFilters",
    "SearchHit",
    "SearchPage",
    "SearchQuery",
    "SearchResponse",
    "Suggestions",
]
