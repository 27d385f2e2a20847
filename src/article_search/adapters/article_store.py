"""Read-only access to the persisted article corpus.

The search engine never writes to the store. It asks for a cheap
``signature()`` on every query to detect staleness and only calls ``load()``
when the signature changed.
"""

from __future__ import annotations

import abc
from collections.abc import Sequence
import logging
from pathlib import Path
import threading
from typing import Any

import orjson


logger = logging.getLogger(__name__)


class CorpusUnavailableError(RuntimeError):
    """Raised when the article corpus cannot be read or decoded."""

    def __init__(self, message: str, *, source: str | None = None) -> None:
        super().__init__(message)
        self.source = source


class AbstractArticleStore(abc.ABC):
    """Boundary to wherever raw articles live."""

    @abc.abstractmethod
    def signature(self) -> Any:
        """Return a value that changes whenever the corpus changes.

        Raises:
            CorpusUnavailableError: if the corpus cannot be inspected.
        """
        raise NotImplementedError

    @abc.abstractmethod
    def load(self) -> list[Any]:
        """Return every raw article record.

        Raises:
            CorpusUnavailableError: if the corpus cannot be read.
        """
        raise NotImplementedError


class JsonFileArticleStore(AbstractArticleStore):
    """Corpus stored as one JSON array of article objects."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)

    def signature(self) -> tuple[int, int]:
        try:
            stat = self.path.stat()
        except OSError as exc:
            raise CorpusUnavailableError(f"Cannot stat corpus file: {exc}", source=str(self.path)) from exc
        return (stat.st_mtime_ns, stat.st_size)

    def load(self) -> list[Any]:
        try:
            payload = orjson.loads(self.path.read_bytes())
        except OSError as exc:
            raise CorpusUnavailableError(f"Cannot read corpus file: {exc}", source=str(self.path)) from exc
        except orjson.JSONDecodeError as exc:
            raise CorpusUnavailableError(f"Corpus file is not valid JSON: {exc}", source=str(self.path)) from exc

        if not isinstance(payload, list):
            logger.warning("Corpus file %s does not hold a JSON array; treating it as empty", self.path)
            return []
        return payload


class InMemoryArticleStore(AbstractArticleStore):
    """Corpus held in memory; every ``replace()`` bumps the signature."""

    def __init__(self, articles: Sequence[Any] | None = None) -> None:
        self._lock = threading.Lock()
        self._articles = list(articles or [])
        self._version = 0

    def replace(self, articles: Sequence[Any]) -> None:
        with self._lock:
            self._articles = list(articles)
            self._version += 1

    def signature(self) -> int:
        with self._lock:
            return self._version

    def load(self) -> list[Any]:
        with self._lock:
            return list(self._articles)
