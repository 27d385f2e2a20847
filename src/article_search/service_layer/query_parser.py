"""Boundary parsing of raw search parameters into a validated ``SearchQuery``.

Raw parameters arrive as a flat mapping (query-string style): every value may
be a string. ``filters`` may be a JSON string or an already decoded mapping.
Each contract violation raises ``QueryValidationError`` with a stable code.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import orjson
from pydantic import ValidationError

from article_search.domain.search import (
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    SORT_MODES,
    DateRangeFilter,
    SearchFilters,
    SearchQuery,
)


INVALID_QUERY = "INVALID_QUERY"
INVALID_FILTERS = "INVALID_FILTERS"
INVALID_SORT = "INVALID_SORT"
INVALID_PAGE = "INVALID_PAGE"
INVALID_PAGE_SIZE = "INVALID_PAGE_SIZE"


class QueryValidationError(ValueError):
    """A search parameter violates the request contract."""

    def __init__(self, code: str, message: str, details: Mapping[str, Any] | None = None) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = dict(details) if details else None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


def parse_boolean_flag(value: Any) -> bool | None:
    """``True``/``"true"`` and ``False``/``"false"``; anything else is ``None``."""
    if value is True or value == "true":
        return True
    if value is False or value == "false":
        return False
    return None


def _clean_strings(values: Any) -> list[str]:
    if not isinstance(values, list):
        return []
    return [value for value in values if isinstance(value, str) and value.strip()]


def _parse_positive_int(value: Any, code: str, name: str) -> int:
    if isinstance(value, bool):
        raise QueryValidationError(code, f"{name} must be an integer of at least 1")
    if isinstance(value, float):
        if not value.is_integer():
            raise QueryValidationError(code, f"{name} must be an integer of at least 1")
        value = int(value)
    try:
        number = int(str(value).strip())
    except ValueError:
        raise QueryValidationError(code, f"{name} must be an integer of at least 1") from None
    if number < 1:
        raise QueryValidationError(code, f"{name} must be an integer of at least 1")
    return number


def _decode_filters(raw: Any) -> Mapping[str, Any]:
    if isinstance(raw, (str, bytes)):
        try:
            decoded = orjson.loads(raw)
        except orjson.JSONDecodeError:
            raise QueryValidationError(INVALID_FILTERS, "filters must be valid JSON", {"raw": raw}) from None
    else:
        decoded = raw
    if not isinstance(decoded, Mapping):
        raise QueryValidationError(INVALID_FILTERS, "filters must be a JSON object")
    return decoded


def _parse_date_range(raw: Any) -> DateRangeFilter | None:
    if not raw:
        return None
    if not isinstance(raw, Mapping):
        raise QueryValidationError(INVALID_FILTERS, "dateRange must be an object")

    bounds = {key: raw.get(key) or None for key in ("start", "end")}
    for key, value in bounds.items():
        if value is not None and not isinstance(value, str):
            raise QueryValidationError(INVALID_FILTERS, f"dateRange.{key} is not a valid date")
    try:
        date_range = DateRangeFilter(**bounds)
    except ValidationError as exc:
        failed = {".".join(str(part) for part in error["loc"]) for error in exc.errors()}
        if any(field in failed for field in ("start", "end")):
            field = "start" if "start" in failed else "end"
            raise QueryValidationError(INVALID_FILTERS, f"dateRange.{field} is not a valid date") from None
        raise QueryValidationError(INVALID_FILTERS, "dateRange.start must not be later than dateRange.end") from None
    return date_range if date_range.is_active() else None


def parse_filters(raw: Any) -> SearchFilters:
    """Decode and validate the ``filters`` parameter.

    ``aiModels`` is an alias for sources and is merged into them. Blank and
    non-string entries are dropped; duplicates keep their first position.
    """
    filters = _decode_filters(raw)

    date_range = _parse_date_range(filters.get("dateRange"))
    sources = list(dict.fromkeys(_clean_strings(filters.get("sources")) + _clean_strings(filters.get("aiModels"))))
    authors = list(dict.fromkeys(_clean_strings(filters.get("authors"))))

    return SearchFilters(
        date_range=date_range,
        sources=tuple(sources) or None,
        authors=tuple(authors) or None,
    )


def parse_search_params(
    params: Mapping[str, Any],
    *,
    default_page_size: int = DEFAULT_PAGE_SIZE,
    max_page_size: int = MAX_PAGE_SIZE,
) -> SearchQuery:
    """Validate raw request parameters.

    Args:
        params: Raw parameters: ``q``, ``filters``, ``sort``, ``page``,
            ``pageSize``, ``advanced`` and ``suggestions``.
        default_page_size: Page size used when ``pageSize`` is absent.
        max_page_size: Largest accepted ``pageSize``.

    Raises:
        QueryValidationError: When a parameter has the wrong type or range.
    """
    text = ""
    if params.get("q") is not None:
        if not isinstance(params["q"], str):
            raise QueryValidationError(INVALID_QUERY, "q must be a string")
        text = params["q"].strip()

    filters = parse_filters(params["filters"]) if params.get("filters") is not None else SearchFilters()

    sort = "newest"
    if params.get("sort") is not None:
        if params["sort"] not in SORT_MODES:
            raise QueryValidationError(INVALID_SORT, f"sort must be one of {', '.join(SORT_MODES)}")
        sort = params["sort"]

    page = 1
    if params.get("page") is not None:
        page = _parse_positive_int(params["page"], INVALID_PAGE, "page")

    page_size = default_page_size
    if params.get("pageSize") is not None:
        page_size = _parse_positive_int(params["pageSize"], INVALID_PAGE_SIZE, "pageSize")
        limit = min(max_page_size, MAX_PAGE_SIZE)
        if page_size > limit:
            raise QueryValidationError(
                INVALID_PAGE_SIZE, f"pageSize must not exceed {limit}", {"maxPageSize": limit}
            )

    return SearchQuery(
        text=text,
        filters=filters,
        sort=sort,
        page=page,
        page_size=page_size,
        advanced=parse_boolean_flag(params.get("advanced")) or False,
        include_suggestions=parse_boolean_flag(params.get("suggestions")) or False,
    )
