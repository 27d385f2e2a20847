"""Centralized configuration for article-search using Pydantic Settings."""

from pathlib import Path

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from article_search.domain.search import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from article_search.observability.logging import configure_logging
from article_search.search.advanced import AdvancedSearchOptions
from article_search.search.indexer import IndexBuildOptions
from article_search.search.suggestions import SuggestionOptions


class SearchSettings(BaseSettings):
    """Strictly typed configuration loaded from ``ARTICLE_SEARCH_*`` environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="ARTICLE_SEARCH_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        validate_default=True,
        extra="ignore",
    )

    articles_path: Path = Field(default=Path("data/articles.json"), description="JSON file holding the article list")

    # Indexing
    max_keywords: int = Field(default=10, ge=1, description="Keywords extracted per article")
    words_per_minute: int = Field(default=200, ge=1, description="Reading speed used for reading-time estimates")

    # Advanced search
    fuzzy_threshold: float = Field(default=0.8, gt=0.0, le=1.0, description="Minimum similarity for fuzzy terms")
    max_fuzzy_matches: int = Field(default=5, ge=0, description="Fuzzy substitutes accepted per query term")
    vocabulary_sample_size: int = Field(
        default=5000, ge=1, description="Vocabulary terms compared per query term during fuzzy matching"
    )
    include_synonyms: bool = Field(default=True, description="Expand advanced queries through the synonym table")

    # Suggestions
    suggestion_threshold: float = Field(default=0.6, gt=0.0, le=1.0, description="Minimum similarity for corrections")
    max_corrections_per_term: int = Field(default=3, ge=1, description="Corrections offered per unknown term")
    max_suggestions: int = Field(default=5, ge=1, description="Cap on corrections and related terms")

    # Results
    default_page_size: int = Field(default=DEFAULT_PAGE_SIZE, ge=1, description="Page size when the request gives none")
    max_page_size: int = Field(default=MAX_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE, description="Largest accepted page size")
    excerpt_length: int = Field(default=200, ge=40, description="Maximum excerpt length in characters")

    # Logging
    log_level: str = Field(default="info", description="Logging level")
    log_json: bool = Field(default=True, description="Emit structured JSON logs")

    @model_validator(mode="after")
    def _check_page_sizes(self) -> "SearchSettings":
        if self.default_page_size > self.max_page_size:
            raise ValueError("default_page_size must not exceed max_page_size")
        return self

    def index_build_options(self) -> IndexBuildOptions:
        return IndexBuildOptions(max_keywords=self.max_keywords, words_per_minute=self.words_per_minute)

    def advanced_search_options(self) -> AdvancedSearchOptions:
        return AdvancedSearchOptions(
            fuzzy_threshold=self.fuzzy_threshold,
            include_synonyms=self.include_synonyms,
            max_fuzzy_matches=self.max_fuzzy_matches,
            vocabulary_sample_size=self.vocabulary_sample_size,
        )

    def suggestion_options(self) -> SuggestionOptions:
        return SuggestionOptions(
            threshold=self.suggestion_threshold,
            max_corrections_per_term=self.max_corrections_per_term,
            max_suggestions=self.max_suggestions,
            vocabulary_sample_size=self.vocabulary_sample_size,
        )

    def setup_logging(self) -> None:
        """Install the root log handler described by ``log_level`` and ``log_json``."""
        configure_logging(self.log_level, json_output=self.log_json)
