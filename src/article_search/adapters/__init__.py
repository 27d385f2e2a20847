"""Adapters - boundaries to where raw articles are stored."""

from article_search.adapters.article_store import (
    AbstractArticleStore,
    CorpusUnavailableError,
    InMemoryArticleStore,
    JsonFileArticleStore,
)


__all__ = [
    "AbstractArticleStore",
    "CorpusUnavailableError",
    "InMemoryArticleStore",
    "JsonFileArticleStore",
]
