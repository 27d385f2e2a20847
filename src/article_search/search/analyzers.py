"""Analyzer utilities for article text.

Articles arrive as HTML bodies written in Korean and English. The analyzers
here strip markup, lowercase, drop punctuation, and filter out stop-words and
single-character tokens so that the indexer and the query planner see the
same canonical terms.

The pipeline keeps the composable tokenizer/filter layout: a tokenizer yields
``Token`` objects and each filter transforms the stream.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable, Iterator, MutableMapping, Sequence
from dataclasses import dataclass, field
import math
import re
from typing import Any, Protocol

from bs4 import BeautifulSoup


MIN_TERM_LENGTH = 2
DEFAULT_MAX_KEYWORDS = 10
DEFAULT_WORDS_PER_MINUTE = 200

_WHITESPACE = re.compile(r"\s+")


@dataclass
class Token:
    """Represents a token emitted by analyzers."""

    text: str
    position: int
    start_char: int
    end_char: int
    attributes: MutableMapping[str, Any] = field(default_factory=dict)

    def copy_with(self, **updates: Any) -> Token:
        data = {
            "text": self.text,
            "position": self.position,
            "start_char": self.start_char,
            "end_char": self.end_char,
            "attributes": dict(self.attributes),
        }
        data.update(updates)
        return Token(**data)


class Tokenizer(Protocol):
    """Protocol implemented by tokenizers."""

    def __call__(self, text: str) -> Iterator[Token]:  # pragma: no cover - interface definition
        ...


class TokenFilter(Protocol):
    """Protocol implemented by token filters."""

    def __call__(self, tokens: Iterable[Token]) -> Iterator[Token]:  # pragma: no cover - interface definition
        ...


class RegexTokenizer:
    """Yields runs of letters and digits; everything else separates tokens.

    ``[^\\W_]`` matches any Unicode letter or digit (Hangul included) while
    excluding the underscore that ``\\w`` would otherwise keep.
    """

    def __init__(self, pattern: str = r"[^\W_]+", flags: int = re.UNICODE) -> None:
        self.pattern = re.compile(pattern, flags)

    def __call__(self, text: str) -> Iterator[Token]:
        for position, match in enumerate(self.pattern.finditer(text)):
            yield Token(
                text=match.group(0),
                position=position,
                start_char=match.start(),
                end_char=match.end(),
            )


class LowercaseFilter:
    """Filter that lowercases token text."""

    def __call__(self, tokens: Iterable[Token]) -> Iterator[Token]:
        for token in tokens:
            if token.text.islower():
                yield token
            else:
                yield token.copy_with(text=token.text.lower())


DEFAULT_STOPWORDS = [
    # Korean function words
    "이",
    "그",
    "저",
    "것",
    "들",
    "의",
    "가",
    "을",
    "를",
    "에",
    "와",
    "과",
    "도",
    "는",
    "은",
    "이다",
    "있다",
    "없다",
    "하다",
    "되다",
    "같다",
    "다른",
    "새로운",
    "많은",
    "작은",
    "큰",
    "좋은",
    "나쁜",
    "첫",
    "마지막",
    "전체",
    "일부",
    "그리고",
    "또는",
    "하지만",
    "그러나",
    "따라서",
    "그래서",
    "왜냐하면",
    "만약",
    "비록",
    "아직",
    "이미",
    "항상",
    "때문에",
    "위해",
    "통해",
    "대해",
    "관해",
    "에서",
    "으로",
    "부터",
    "까지",
    "동안",
    "이후",
    "이전",
    "중에",
    # English function words
    "the",
    "a",
    "an",
    "and",
    "or",
    "but",
    "in",
    "on",
    "at",
    "to",
    "for",
    "of",
    "with",
    "by",
    "is",
    "are",
    "was",
    "were",
    "be",
    "been",
    "have",
    "has",
    "had",
    "do",
    "does",
    "did",
    "will",
    "would",
    "could",
    "should",
    "may",
    "might",
    "can",
    "this",
    "that",
    "these",
    "those",
    "i",
    "you",
    "he",
    "she",
    "it",
    "we",
    "they",
    "me",
    "him",
    "her",
    "us",
    "them",
]


class StopFilter:
    """Removes stopwords from the stream."""

    def __init__(self, stopwords: Sequence[str] | None = None) -> None:
        vocab = stopwords if stopwords is not None else DEFAULT_STOPWORDS
        self.stopwords = frozenset(word.lower() for word in vocab)

    def __call__(self, tokens: Iterable[Token]) -> Iterator[Token]:
        for token in tokens:
            if token.text not in self.stopwords:
                yield token


class MinLengthFilter:
    """Drops tokens shorter than ``min_length`` characters."""

    def __init__(self, min_length: int = MIN_TERM_LENGTH) -> None:
        self.min_length = min_length

    def __call__(self, tokens: Iterable[Token]) -> Iterator[Token]:
        for token in tokens:
            if len(token.text) >= self.min_length:
                yield token


class AnalyzerPipeline:
    """Composable analyzer pipeline (tokenizer + filters)."""

    def __init__(self, tokenizer: Tokenizer, filters: Sequence[TokenFilter] | None = None) -> None:
        self.tokenizer = tokenizer
        self.filters = list(filters or [])

    def __call__(self, text: str) -> list[Token]:
        stream: Iterable[Token] = self.tokenizer(text)
        for token_filter in self.filters:
            stream = token_filter(stream)
        tokens = list(stream)
        for idx, token in enumerate(tokens):  # normalize positions post-filtering
            token.position = idx
        return tokens


class ArticleAnalyzer:
    """Default analyzer shared by the indexer, the planner and suggestions.

    Lowercasing runs first so the length and stop-word filters see the final
    term text.
    """

    def __init__(
        self,
        *,
        stopwords: Sequence[str] | None = None,
        min_length: int = MIN_TERM_LENGTH,
    ) -> None:
        self.pipeline = AnalyzerPipeline(
            RegexTokenizer(),
            [LowercaseFilter(), MinLengthFilter(min_length), StopFilter(stopwords)],
        )

    def __call__(self, text: str) -> list[Token]:
        if not text:
            return []
        return self.pipeline(text)


_DEFAULT_ANALYZER = ArticleAnalyzer()


def strip_html(html: str | None) -> str:
    """Return the visible text of an HTML fragment with whitespace collapsed.

    BeautifulSoup's ``html.parser`` walks the markup once and decodes entities,
    so large bodies never hit regex backtracking.
    """
    if not html:
        return ""
    text = BeautifulSoup(html, "html.parser").get_text(" ")
    return _WHITESPACE.sub(" ", text).strip()


def normalize_and_tokenize(text: str | None) -> list[str]:
    """Return every canonical term in ``text``, duplicates included.

    Frequency-sensitive callers (keyword extraction, word counts, scoring)
    count over this stream.
    """
    if not text:
        return []
    return [token.text for token in _DEFAULT_ANALYZER(text)]


def normalize_terms(text: str | None) -> list[str]:
    """Return the distinct canonical terms of ``text`` in first-seen order."""

    return list(dict.fromkeys(normalize_and_tokenize(text)))


def extract_keywords(text: str | None, max_keywords: int = DEFAULT_MAX_KEYWORDS) -> list[str]:
    """Return the ``max_keywords`` most frequent terms, most frequent first.

    Ties keep the order in which the terms first appear in the text.
    """
    if max_keywords <= 0:
        return []
    frequency = Counter(normalize_and_tokenize(text))
    return [term for term, _count in frequency.most_common(max_keywords)]


def count_words(text: str | None) -> int:
    return len(normalize_and_tokenize(text))


def calculate_reading_time(word_count: int, words_per_minute: int = DEFAULT_WORDS_PER_MINUTE) -> int:
    """Estimated reading time in whole minutes, rounded up."""

    if word_count <= 0 or words_per_minute <= 0:
        return 0
    return math.ceil(word_count / words_per_minute)
