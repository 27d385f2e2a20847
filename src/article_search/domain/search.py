"""Domain models for search requests and responses.

Value objects are immutable (frozen=True): a ``SearchQuery`` is built once at
the boundary and never changes while the query runs.
"""

from datetime import date, datetime, time, timezone
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator, model_validator


SortMode = Literal["newest", "oldest", "title", "relevance"]
SORT_MODES: tuple[str, ...] = ("newest", "oldest", "title", "relevance")

MAX_PAGE_SIZE = 100
DEFAULT_PAGE_SIZE = 20


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class DateRangeFilter(BaseModel):
    """Inclusive publish-date window; either bound may be open.

    A date-only ``end`` ("2025-12-31") covers the whole of that day.
    """

    model_config = ConfigDict(frozen=True)

    start: datetime | None = None
    end: datetime | None = None

    @field_validator("start", "end", mode="before")
    @classmethod
    def _expand_plain_dates(cls, value: Any, info: ValidationInfo) -> Any:
        if isinstance(value, date) and not isinstance(value, datetime):
            day = value
        elif isinstance(value, str) and len(value.strip()) == 10:
            day = date.fromisoformat(value.strip())
        else:
            return value
        return datetime.combine(day, time.max if info.field_name == "end" else time.min)

    @field_validator("start", "end")
    @classmethod
    def _to_utc(cls, value: datetime | None) -> datetime | None:
        return _as_utc(value) if value is not None else None

    @model_validator(mode="after")
    def _check_order(self) -> "DateRangeFilter":
        if self.start is not None and self.end is not None and self.start > self.end:
            raise ValueError("dateRange.start must not be later than dateRange.end")
        return self

    def is_active(self) -> bool:
        return self.start is not None or self.end is not None

    def contains(self, value: datetime) -> bool:
        if self.start is not None and value < self.start:
            return False
        if self.end is not None and value > self.end:
            return False
        return True


class SearchFilters(BaseModel):
    """Optional narrowing; conjunctive across kinds, disjunctive within one."""

    model_config = ConfigDict(frozen=True)

    date_range: DateRangeFilter | None = None
    sources: tuple[str, ...] | None = None
    authors: tuple[str, ...] | None = None

    def is_empty(self) -> bool:
        return not (
            (self.date_range is not None and self.date_range.is_active()) or self.sources or self.authors
        )


class SearchQuery(BaseModel):
    """Validated search request."""

    model_config = ConfigDict(frozen=True)

    text: str = ""
    filters: SearchFilters = Field(default_factory=SearchFilters)
    sort: SortMode = "newest"
    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE)
    advanced: bool = False
    include_suggestions: bool = False

    @field_validator("text")
    @classmethod
    def _strip_text(cls, value: str) -> str:
        return value.strip()


class FuzzySubstitution(BaseModel):
    """A vocabulary term accepted in place of a (probably misspelled) query term."""

    model_config = ConfigDict(frozen=True)

    original: str
    fuzzy: str
    similarity: float


class AdvancedDiagnostics(BaseModel):
    """How advanced mode widened the query."""

    model_config = ConfigDict(frozen=True)

    expanded_terms: list[str] = Field(default_factory=list)
    fuzzy_matches: list[FuzzySubstitution] = Field(default_factory=list)
    exact_match_count: int = 0
    fuzzy_match_count: int = 0


class SearchPage(BaseModel):
    """One page of ranked article ids plus pagination state."""

    model_config = ConfigDict(frozen=True)

    ids: list[str] = Field(default_factory=list)
    total_count: int = 0
    current_page: int = 1
    total_pages: int = 0
    has_next_page: bool = False
    has_prev_page: bool = False
    scores: dict[str, float] | None = None
    advanced: AdvancedDiagnostics | None = None


class Correction(BaseModel):
    model_config = ConfigDict(frozen=True)

    original: str
    suggestions: list[str]


class Suggestions(BaseModel):
    """Advisory spelling corrections and related terms."""

    model_config = ConfigDict(frozen=True)

    corrections: list[Correction] = Field(default_factory=list)
    related: list[str] = Field(default_factory=list)

    def is_empty(self) -> bool:
        return not self.corrections and not self.related


class SearchHit(BaseModel):
    """An article resolved from a result id."""

    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    author: str | None = None
    source: str | None = None
    published_at: datetime | None = None
    keywords: list[str] = Field(default_factory=list)
    word_count: int = 0
    reading_time: int = 0
    excerpt: str = ""
    highlighted_excerpt: str = ""
    score: float | None = None


class Pagination(BaseModel):
    model_config = ConfigDict(frozen=True)

    total_count: int
    current_page: int
    total_pages: int
    page_size: int
    has_next_page: bool
    has_prev_page: bool


class FilterOptions(BaseModel):
    """Values for populating filter controls."""

    model_config = ConfigDict(frozen=True)

    authors: list[str] = Field(default_factory=list)
    sources: list[str] = Field(default_factory=list)
    earliest: datetime | None = None
    latest: datetime | None = None
    total_articles: int = 0


class SearchResponse(BaseModel):
    """Complete answer to one ``SearchQuery``."""

    model_config = ConfigDict(frozen=True)

    hits: list[SearchHit]
    pagination: Pagination
    filters: FilterOptions
    query: SearchQuery
    suggestions: Suggestions | None = None
    advanced: AdvancedDiagnostics | None = None


class ArticleSummary(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    published_at: datetime | None = None


class FacetInsight(BaseModel):
    """Article count and most recent articles for one author or source."""

    model_config = ConfigDict(frozen=True)

    name: str
    article_count: int
    recent_articles: list[ArticleSummary] = Field(default_factory=list)


class MonthlyCount(BaseModel):
    model_config = ConfigDict(frozen=True)

    month: str
    count: int


class KeywordCount(BaseModel):
    model_config = ConfigDict(frozen=True)

    keyword: str
    count: int


class CorpusInsights(BaseModel):
    """Corpus-wide statistics for dashboards and filter UIs."""

    model_config = ConfigDict(frozen=True)

    total_articles: int = 0
    total_words: int = 0
    average_words_per_article: int = 0
    total_authors: int = 0
    total_sources: int = 0
    total_terms: int = 0
    authors: list[FacetInsight] = Field(default_factory=list)
    sources: list[FacetInsight] = Field(default_factory=list)
    monthly: list[MonthlyCount] = Field(default_factory=list)
    popular_keywords: list[KeywordCount] = Field(default_factory=list)
