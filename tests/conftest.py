"""Shared test fixtures and configuration."""

import copy
import os
from pathlib import Path
import sys

import pytest


REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from article_search.adapters.article_store import InMemoryArticleStore
from article_search.config import SearchSettings
from article_search.search.index_cache import IndexCache
from article_search.search.indexer import build_search_index
from article_search.search.models import SearchIndex
from article_search.service_layer.search_service import SearchService
from tests.fixtures.sample_corpus import SAMPLE_ARTICLES


ENV_PREFIX = "ARTICLE_SEARCH_"


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch, tmp_path):
    """Drop ARTICLE_SEARCH_* variables and run from an empty directory so no .env leaks in."""
    for key in list(os.environ):
        if key.upper().startswith(ENV_PREFIX):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def sample_articles() -> list[dict]:
    return copy.deepcopy(SAMPLE_ARTICLES)


@pytest.fixture
def sample_index(sample_articles) -> SearchIndex:
    return build_search_index(sample_articles).index


@pytest.fixture
def memory_store(sample_articles) -> InMemoryArticleStore:
    return InMemoryArticleStore(sample_articles)


@pytest.fixture
def index_cache(memory_store) -> IndexCache:
    return IndexCache(memory_store)


@pytest.fixture
def settings() -> SearchSettings:
    return SearchSettings(_env_file=None)


@pytest.fixture
def search_service(index_cache, settings) -> SearchService:
    return SearchService(index_cache, settings)
