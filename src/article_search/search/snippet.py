"""Result excerpts and query-term highlighting.

Excerpts start and end on sentence boundaries where possible and fall back to
word boundaries. Highlighting is case-insensitive and keeps the original
casing of the matched text.
"""

from __future__ import annotations

from collections.abc import Sequence
from html import escape
import re

from article_search.search.analyzers import normalize_terms


SENTENCE_END_PATTERN = re.compile(r"[.!?。]\s+")
WORD_BOUNDARY_PATTERN = re.compile(r"\s+")


def find_sentence_start(text: str, position: int, max_lookback: int = 200) -> int:
    """Index where the sentence containing ``position`` starts (bounded lookback)."""
    if position == 0:
        return 0

    start_search = max(0, position - max_lookback)
    search_text = text[start_search:position]

    matches = list(SENTENCE_END_PATTERN.finditer(search_text))
    if matches:
        return start_search + matches[-1].end()

    quarter_pos = len(search_text) // 4
    for match in WORD_BOUNDARY_PATTERN.finditer(search_text):
        if match.start() >= quarter_pos:
            return start_search + match.end()

    return start_search


def find_sentence_end(text: str, position: int, max_lookahead: int = 200) -> int:
    """Index where the sentence containing ``position`` ends (bounded lookahead)."""
    if position >= len(text):
        return len(text)

    end_search = min(len(text), position + max_lookahead)
    search_text = text[position:end_search]

    match = SENTENCE_END_PATTERN.search(search_text)
    if match:
        return position + match.end()

    three_quarter_pos = (len(search_text) * 3) // 4
    for word in reversed(list(WORD_BOUNDARY_PATTERN.finditer(search_text))):
        if word.start() <= three_quarter_pos:
            return position + word.start()

    return end_search


def _find_term_spans(text: str, terms: Sequence[str]) -> list[tuple[int, int]]:
    """Non-overlapping spans of ``terms`` in ``text``, longest match first at each start."""
    spans: list[tuple[int, int]] = []
    for term in terms:
        if not term or len(term) < 2:
            continue
        pattern = re.compile(re.escape(term), re.IGNORECASE)
        spans.extend((match.start(), match.end()) for match in pattern.finditer(text))

    spans.sort(key=lambda span: (span[0], -(span[1] - span[0])))
    selected: list[tuple[int, int]] = []
    for start, end in spans:
        if selected and start < selected[-1][1]:
            continue
        selected.append((start, end))
    return selected


def highlight_terms(
    text: str,
    terms: Sequence[str],
    *,
    style: str = "html",
    highlight_class: str = "highlight",
    max_highlights: int | None = None,
) -> str:
    """Wrap each occurrence of ``terms`` in ``text``.

    Args:
        text: Plain text to highlight.
        terms: Terms to highlight; matching ignores case.
        style: ``"html"`` escapes the text and wraps matches in
            ``<span class="...">``; ``"plain"`` wraps them in ``[[...]]``.
        highlight_class: CSS class used by the html style.
        max_highlights: Stop after this many highlights (``None`` for all).
    """
    if not text or not terms:
        return escape(text) if style == "html" and text else text

    spans = _find_term_spans(text, terms)
    if max_highlights is not None:
        spans = spans[:max_highlights]

    pieces: list[str] = []
    cursor = 0
    for start, end in spans:
        before, matched = text[cursor:start], text[start:end]
        if style == "html":
            pieces.append(escape(before))
            pieces.append(f'<span class="{escape(highlight_class)}">{escape(matched)}</span>')
        else:
            pieces.append(before)
            pieces.append(f"[[{matched}]]")
        cursor = end
    tail = text[cursor:]
    pieces.append(escape(tail) if style == "html" else tail)
    return "".join(pieces)


def highlight_search_terms(text: str, query: str, *, style: str = "html", highlight_class: str = "highlight") -> str:
    """Highlight the normalized terms of ``query`` inside ``text``."""

    terms = normalize_terms(query) if query else []
    return highlight_terms(text, terms, style=style, highlight_class=highlight_class)


def build_excerpt(text: str, terms: Sequence[str], max_chars: int = 200, surrounding_context: int = 80) -> str:
    """Plain-text excerpt around the first occurrence of any term.

    Without terms, or when none occurs, the excerpt is the start of the text.
    """
    if not text:
        return ""

    spans = _find_term_spans(text, terms) if terms else []
    if not spans:
        return _trim_to_word(text, max_chars)

    match_start, match_end = spans[0]
    start = find_sentence_start(text, max(0, match_start - surrounding_context), max_lookback=surrounding_context)
    end = find_sentence_end(text, min(len(text), match_end + surrounding_context), max_lookahead=surrounding_context)

    if end - start > max_chars:
        center = (match_start + match_end) // 2
        start = max(0, center - max_chars // 2)
        end = min(len(text), start + max_chars)

    excerpt = text[start:end].strip()
    if start > 0:
        excerpt = "…" + excerpt
    if end < len(text):
        excerpt = excerpt + "…"
    return excerpt


def _trim_to_word(text: str, max_chars: int) -> str:
    if len(text) <= max_chars:
        return text.strip()
    cut = text[:max_chars]
    boundary = cut.rfind(" ")
    if boundary > max_chars // 2:
        cut = cut[:boundary]
    return cut.strip() + "…"
