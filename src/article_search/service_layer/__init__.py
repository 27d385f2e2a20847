"""Service layer - request parsing and search orchestration."""

from .query_parser import QueryValidationError, parse_search_params
from .search_service import SearchService


__all__ = [
    "QueryValidationError",
    "SearchService",
    "parse_search_params",
]
