"""Unit tests for candidate selection, filtering, scoring, sorting and pagination."""

from datetime import datetime, timezone
from types import MappingProxyType

import pytest

from article_search.domain.search import DateRangeFilter, SearchFilters, SearchQuery
from article_search.search.indexer import build_search_index
from article_search.search.models import SearchIndex
from article_search.search.query_planner import (
    ScoringWeights,
    apply_filters,
    paginate,
    score_article,
    search,
    select_candidates,
    sort_records,
)
from tests.fixtures.sample_corpus import NEWEST_FIRST, make_article, numbered_articles


def run(index, **kwargs):
    return search(index, SearchQuery(**kwargs))


@pytest.mark.unit
class TestScenarios:
    def test_exact_match(self):
        index = build_search_index(
            [make_article("a1", "AI 기술 혁신", "<p>새로운 AI 서비스가 출시되었다.</p>")]
        ).index

        page = run(index, text="AI", sort="relevance")

        assert "a1" in page.ids
        assert page.scores["a1"] > 0

    def test_empty_query_returns_everything(self, sample_articles):
        index = build_search_index(sample_articles[:3]).index

        page = run(index, text="", page_size=5)

        assert sorted(page.ids) == ["a1", "a2", "a3"]
        assert page.total_pages == 1
        assert page.has_next_page is False
        assert page.has_prev_page is False

    def test_date_filter_excludes_out_of_range(self, sample_index):
        filters = SearchFilters(date_range=DateRangeFilter(start="2025-01-01", end="2025-12-31"))

        page = run(sample_index, text="startup investment", filters=filters)

        assert "a3" not in page.ids
        assert page.total_count == 0

    def test_out_of_range_page(self):
        index = build_search_index(numbered_articles(6)).index

        page = run(index, page=999, page_size=2)

        assert page.ids == []
        assert page.total_pages == 3
        assert page.total_count == 6
        assert page.has_next_page is False
        assert page.has_prev_page is True


@pytest.mark.unit
class TestCandidates:
    def test_or_semantics(self, sample_index):
        assert select_candidates(sample_index, ["climate", "database"]) == {"a2", "a5", "a6"}

    def test_unknown_terms(self, sample_index):
        assert select_candidates(sample_index, ["zzzz"]) == set()

    def test_query_is_normalized(self, sample_index):
        assert sorted(run(sample_index, text="  CLIMATE!! ").ids) == ["a2", "a6"]

    def test_dangling_posting_is_dropped(self, caplog):
        index = SearchIndex(term_index=MappingProxyType({"ghost": frozenset({"missing"})}))

        page = run(index, text="ghost")

        assert page.ids == []
        assert page.total_count == 0
        assert "missing article missing" in caplog.text


@pytest.mark.unit
class TestFilters:
    def test_sources(self, sample_index):
        page = run(sample_index, filters=SearchFilters(sources=("gpt-4",)))
        assert sorted(page.ids) == ["a1", "a3"]

    def test_authors(self, sample_index):
        page = run(sample_index, filters=SearchFilters(authors=("Jane Doe",)))
        assert sorted(page.ids) == ["a2", "a3"]

    def test_kinds_are_conjunctive(self, sample_index):
        page = run(sample_index, filters=SearchFilters(sources=("gpt-4",), authors=("Jane Doe",)))
        assert page.ids == ["a3"]

    def test_values_are_disjunctive(self, sample_index):
        page = run(sample_index, filters=SearchFilters(sources=("gpt-4", "gemini")))
        assert sorted(page.ids) == ["a1", "a3", "a5", "a6"]

    def test_date_filter_excludes_undated_articles(self, sample_index):
        filters = SearchFilters(date_range=DateRangeFilter(start="2000-01-01"))
        page = run(sample_index, filters=filters)
        assert "a5" not in page.ids
        assert page.total_count == 5

    def test_date_end_covers_whole_day(self, sample_index):
        filters = SearchFilters(date_range=DateRangeFilter(end="2025-06-01"))
        page = run(sample_index, filters=filters, sort="oldest")
        assert page.ids == ["a3", "a1", "a2"]

    def test_open_date_range_is_inactive(self, sample_index):
        records = list(sample_index.articles.values())
        assert apply_filters(records, SearchFilters(date_range=DateRangeFilter())) == records

    @pytest.mark.parametrize(
        "filters",
        [
            SearchFilters(sources=("claude",)),
            SearchFilters(authors=("Alex Kim", "김민수")),
            SearchFilters(date_range=DateRangeFilter(start="2025-05-01")),
            SearchFilters(sources=("gpt-4",), date_range=DateRangeFilter(end="2025-12-31")),
            SearchFilters(sources=("nobody",)),
        ],
    )
    @pytest.mark.parametrize("text", ["", "ai", "climate research"])
    def test_filters_never_increase_results(self, sample_index, filters, text):
        unfiltered = run(sample_index, text=text)
        filtered = run(sample_index, text=text, filters=filters)
        assert filtered.total_count <= unfiltered.total_count
        assert set(filtered.ids) <= set(run(sample_index, text=text, page_size=100).ids)


@pytest.mark.unit
class TestSorting:
    def test_newest(self, sample_index):
        assert run(sample_index, sort="newest").ids == NEWEST_FIRST

    def test_oldest_puts_undated_first(self, sample_index):
        assert run(sample_index, sort="oldest").ids == ["a5", "a3", "a1", "a2", "a4", "a6"]

    def test_title_is_case_insensitive(self, sample_index):
        assert run(sample_index, sort="title").ids == ["a1", "a2", "a5", "a6", "a3", "a4"]

    def test_relevance_prefers_title_matches(self, sample_index):
        page = run(sample_index, text="climate", sort="relevance")
        assert page.ids == ["a2", "a6"]
        assert page.scores["a2"] > page.scores["a6"]

    def test_relevance_without_text_falls_back_to_newest(self, sample_index):
        page = run(sample_index, sort="relevance")
        assert page.ids == NEWEST_FIRST
        assert page.scores is None

    def test_scores_only_for_relevance(self, sample_index):
        assert run(sample_index, text="climate", sort="newest").scores is None

    def test_ties_break_on_id(self):
        records = build_search_index(
            [make_article(article_id, "Same", "same text", publishDate="2025-01-01") for article_id in ("c", "a", "b")]
        ).index.articles.values()
        assert [record.id for record in sort_records(list(records), "newest")] == ["a", "b", "c"]
        assert [record.id for record in sort_records(list(records), "title")] == ["a", "b", "c"]

    def test_unknown_mode_returns_id_order(self, sample_index, caplog):
        ordered = sort_records(list(sample_index.articles.values()), "bogus")
        assert [record.id for record in ordered] == sorted(sample_index.articles)
        assert "Unknown sort mode" in caplog.text


@pytest.mark.unit
class TestScoring:
    def test_title_phrase_bonus(self):
        index = build_search_index(
            [
                make_article("p1", "Climate policy update", "<p>Notes.</p>"),
                make_article("p2", "Policy about climate", "<p>Notes.</p>"),
            ]
        ).index
        weights = {"climate": 1.0, "policy": 1.0}

        with_phrase = score_article(index.articles["p1"], weights, "climate policy", index)
        without_phrase = score_article(index.articles["p2"], weights, "climate policy", index)

        assert with_phrase - without_phrase == pytest.approx(ScoringWeights().title_phrase_bonus)

    def test_single_term_score_is_bounded(self, sample_index):
        for record in sample_index.articles.values():
            score = score_article(record, {"climate": 1.0}, "zz", sample_index)
            assert 0.0 <= score <= 1.0

    def test_no_terms_scores_zero(self, sample_index):
        assert score_article(sample_index.articles["a1"], {}, "", sample_index) == 0.0

    def test_custom_weights(self, sample_index):
        content_only = ScoringWeights(title=0.0, keywords=0.0, content=1.0, title_phrase_bonus=0.0)
        page = search(sample_index, SearchQuery(text="climate", sort="relevance"), scoring=content_only)
        assert page.scores["a2"] > 0
        assert page.scores["a6"] > 0

    def test_exact_term_outranks_fuzzy_substitute(self):
        index = build_search_index(
            [
                make_article("exact", "Network design", "<p>Network design notes for teams.</p>"),
                make_article("fuzzy", "Netwerk design", "<p>Netwerk design notes for teams.</p>"),
            ]
        ).index

        page = run(index, text="network netwrk", sort="relevance", advanced=True)

        assert page.ids == ["exact", "fuzzy"]
        assert page.scores["exact"] >= page.scores["fuzzy"]
        assert [match.fuzzy for match in page.advanced.fuzzy_matches] == ["netwerk"]


@pytest.mark.unit
class TestPagination:
    def test_paginate(self):
        assert paginate(["a", "b", "c", "d", "e"], 2, 2) == (["c", "d"], 3)
        assert paginate([], 1, 20) == ([], 0)

    @pytest.mark.parametrize("page_size", [1, 2, 4, 7])
    @pytest.mark.parametrize("sort", ["newest", "oldest", "title", "relevance"])
    def test_pages_concatenate_to_full_result(self, page_size, sort):
        index = build_search_index(numbered_articles(13)).index
        full = run(index, text="shared topic", sort=sort, page_size=100)

        first = run(index, text="shared topic", sort=sort, page_size=page_size)
        collected = list(first.ids)
        for page_number in range(2, first.total_pages + 1):
            collected.extend(run(index, text="shared topic", sort=sort, page=page_number, page_size=page_size).ids)

        assert collected == full.ids
        assert len(set(collected)) == full.total_count == 13

    def test_page_flags(self):
        index = build_search_index(numbered_articles(5)).index
        middle = run(index, page=2, page_size=2)
        assert middle.has_prev_page is True
        assert middle.has_next_page is True
        last = run(index, page=3, page_size=2)
        assert last.ids and last.has_next_page is False

    def test_scores_cover_page_ids_only(self, sample_index):
        page = run(sample_index, text="ai climate", sort="relevance", page_size=2)
        assert set(page.scores) == set(page.ids)


@pytest.mark.unit
def test_advanced_mode_reports_diagnostics(sample_index):
    page = run(sample_index, text="ai", advanced=True)
    assert page.advanced is not None
    assert "인공지능" in page.advanced.expanded_terms
    assert "a4" in page.ids


@pytest.mark.unit
def test_published_dates_are_utc_aware(sample_index):
    assert sample_index.articles["a2"].published_at == datetime(2025, 6, 1, tzinfo=timezone.utc)
