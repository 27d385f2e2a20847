"""Unit tests for request parameter validation."""

from datetime import datetime, timezone

import orjson
import pytest

from article_search.service_layer.query_parser import (
    INVALID_FILTERS,
    INVALID_PAGE,
    INVALID_PAGE_SIZE,
    INVALID_QUERY,
    INVALID_SORT,
    QueryValidationError,
    parse_boolean_flag,
    parse_filters,
    parse_search_params,
)


def expect_error(params, code):
    with pytest.raises(QueryValidationError) as excinfo:
        parse_search_params(params)
    assert excinfo.value.code == code
    return excinfo.value


@pytest.mark.unit
class TestDefaults:
    def test_empty_params(self):
        query = parse_search_params({})

        assert query.text == ""
        assert query.sort == "newest"
        assert query.page == 1
        assert query.page_size == 20
        assert query.advanced is False
        assert query.include_suggestions is False
        assert query.filters.is_empty()

    def test_configured_default_page_size(self):
        assert parse_search_params({}, default_page_size=50).page_size == 50


@pytest.mark.unit
class TestTextAndFlags:
    def test_text_is_trimmed(self):
        assert parse_search_params({"q": "  climate  "}).text == "climate"

    def test_non_string_query(self):
        expect_error({"q": ["a", "b"]}, INVALID_QUERY)

    @pytest.mark.parametrize(("raw", "expected"), [("true", True), (True, True), ("false", False), ("yes", None)])
    def test_boolean_flags(self, raw, expected):
        assert parse_boolean_flag(raw) is expected

    def test_flags(self):
        query = parse_search_params({"advanced": "true", "suggestions": "true"})
        assert query.advanced is True
        assert query.include_suggestions is True

    def test_unrecognized_flag_is_false(self):
        assert parse_search_params({"advanced": "1"}).advanced is False


@pytest.mark.unit
class TestSortAndPaging:
    @pytest.mark.parametrize("sort", ["newest", "oldest", "title", "relevance"])
    def test_valid_sort(self, sort):
        assert parse_search_params({"sort": sort}).sort == sort

    def test_invalid_sort(self):
        expect_error({"sort": "popular"}, INVALID_SORT)

    def test_page_from_string(self):
        assert parse_search_params({"page": "3", "pageSize": "10"}).page == 3

    @pytest.mark.parametrize("page", ["0", "-1", "abc", "1.5", True, 2.5])
    def test_invalid_page(self, page):
        expect_error({"page": page}, INVALID_PAGE)

    @pytest.mark.parametrize("page_size", ["0", "x"])
    def test_invalid_page_size(self, page_size):
        expect_error({"pageSize": page_size}, INVALID_PAGE_SIZE)

    def test_page_size_limit(self):
        error = expect_error({"pageSize": "101"}, INVALID_PAGE_SIZE)
        assert error.details == {"maxPageSize": 100}
        assert parse_search_params({"pageSize": 100}).page_size == 100

    def test_configured_max_page_size(self):
        with pytest.raises(QueryValidationError):
            parse_search_params({"pageSize": "60"}, max_page_size=50)


@pytest.mark.unit
class TestFilters:
    def test_json_string(self):
        raw = orjson.dumps({"sources": ["gpt-4"], "authors": ["Jane Doe"]}).decode()
        filters = parse_search_params({"filters": raw}).filters

        assert filters.sources == ("gpt-4",)
        assert filters.authors == ("Jane Doe",)

    def test_ai_models_merge_into_sources(self):
        filters = parse_filters({"sources": ["gpt-4", " "], "aiModels": ["claude", "gpt-4", 3]})
        assert filters.sources == ("gpt-4", "claude")

    def test_empty_lists_are_dropped(self):
        filters = parse_filters({"sources": [], "authors": [""]})
        assert filters.sources is None
        assert filters.authors is None
        assert filters.is_empty()

    def test_date_range(self):
        filters = parse_filters({"dateRange": {"start": "2025-01-01", "end": "2025-12-31"}})

        assert filters.date_range.start == datetime(2025, 1, 1, tzinfo=timezone.utc)
        assert filters.date_range.end == datetime(2025, 12, 31, 23, 59, 59, 999999, tzinfo=timezone.utc)

    def test_datetime_bounds(self):
        filters = parse_filters({"dateRange": {"start": "2025-01-01T10:00:00Z"}})
        assert filters.date_range.start == datetime(2025, 1, 1, 10, tzinfo=timezone.utc)
        assert filters.date_range.end is None

    def test_empty_date_range_is_dropped(self):
        assert parse_filters({"dateRange": {"start": "", "end": None}}).date_range is None

    def test_malformed_json(self):
        error = expect_error({"filters": "{not json"}, INVALID_FILTERS)
        assert error.details == {"raw": "{not json"}

    @pytest.mark.parametrize(
        "filters",
        [
            "[1, 2]",
            {"dateRange": "2025"},
            {"dateRange": {"start": "someday"}},
            {"dateRange": {"end": "2025-02-30"}},
            {"dateRange": {"start": 20250101}},
            {"dateRange": {"start": "2025-12-31", "end": "2025-01-01"}},
        ],
    )
    def test_invalid_filters(self, filters):
        expect_error({"filters": filters}, INVALID_FILTERS)

    def test_reversed_range_message(self):
        error = expect_error({"filters": {"dateRange": {"start": "2025-12-31", "end": "2025-01-01"}}}, INVALID_FILTERS)
        assert "later than" in error.message

    def test_error_payload(self):
        error = expect_error({"sort": "bogus"}, INVALID_SORT)
        assert error.to_dict()["code"] == INVALID_SORT
        assert "details" not in error.to_dict()
