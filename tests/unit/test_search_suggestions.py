"""Unit tests for spelling corrections and related-term suggestions."""

import pytest

from article_search.search.indexer import build_search_index
from article_search.search.models import empty_search_index
from article_search.search.suggestions import SuggestionOptions, suggest


@pytest.mark.unit
class TestCorrections:
    def test_misspelled_term_gets_correction(self, sample_index):
        suggestions = suggest("인공지늠", sample_index)

        assert suggestions.corrections[0].original == "인공지늠"
        assert suggestions.corrections[0].suggestions[0] == "인공지능"

    def test_known_terms_get_no_correction(self, sample_index):
        assert suggest("climate", sample_index).corrections == []

    def test_corrections_per_term_are_capped(self):
        index = build_search_index(
            [{"id": str(i), "body": word} for i, word in enumerate(["cart", "card", "care", "carp", "cars"])]
        ).index

        suggestions = suggest("carx", index, SuggestionOptions(max_corrections_per_term=2))

        assert suggestions.corrections[0].suggestions == ["card", "care"]


@pytest.mark.unit
class TestRelated:
    def test_related_terms_from_synonym_table(self, sample_index):
        assert suggest("ai", sample_index).related == [
            "인공지능",
            "머신러닝",
            "딥러닝",
            "artificial intelligence",
            "machine learning",
        ]

    def test_query_terms_are_excluded(self, sample_index):
        assert suggest("ai 인공지능", sample_index).related == [
            "머신러닝",
            "딥러닝",
            "artificial intelligence",
            "machine learning",
        ]

    def test_cap(self, sample_index):
        assert len(suggest("ai 기업 시장", sample_index).related) == 5
        assert suggest("ai", sample_index, SuggestionOptions(max_suggestions=2)).related == ["인공지능", "머신러닝"]


@pytest.mark.unit
class TestEmptyInputs:
    def test_empty_query(self, sample_index):
        assert suggest("", sample_index).is_empty()

    def test_empty_vocabulary(self):
        assert suggest("ai", empty_search_index()).is_empty()
