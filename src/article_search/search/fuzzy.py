"""Fuzzy matching for typo-tolerant search.

Edit distance drives both the advanced search layer (accepting near-matches
as extra query terms) and the suggestion generator (proposing corrections).
Similarity is the edit distance normalized by the longer string's length, so
a threshold means the same thing for short Hangul terms and long English ones.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
import math


def levenshtein_distance(s1: str, s2: str, max_distance: int | None = None) -> int:
    """Calculate the Levenshtein (edit) distance between two strings.

    Uses dynamic programming for O(m*n) time complexity, with optional
    early termination when distance exceeds max_distance.

    Args:
        s1: First string.
        s2: Second string.
        max_distance: If provided, return max_distance+1 early when
            distance is guaranteed to exceed this threshold.

    Returns:
        The minimum number of single-character edits (insertions,
        deletions, substitutions) needed to change s1 into s2.
        If max_distance is set and exceeded, returns max_distance+1.

    Examples:
        >>> levenshtein_distance("kitten", "sitting")
        3
        >>> levenshtein_distance("인공지늠", "인공지능")
        1
        >>> levenshtein_distance("", "abc")
        3
    """
    if not s1:
        return len(s2)
    if not s2:
        return len(s1)

    # Use shorter string as columns for space efficiency
    if len(s1) > len(s2):
        s1, s2 = s2, s1

    m, n = len(s1), len(s2)

    if max_distance is not None and n - m > max_distance:
        return max_distance + 1

    # Only need two rows at a time
    prev_row = list(range(m + 1))
    curr_row = [0] * (m + 1)

    for j in range(1, n + 1):
        curr_row[0] = j
        row_min = curr_row[0]
        for i in range(1, m + 1):
            cost = 0 if s1[i - 1] == s2[j - 1] else 1
            curr_row[i] = min(
                prev_row[i] + 1,  # deletion
                curr_row[i - 1] + 1,  # insertion
                prev_row[i - 1] + cost,  # substitution
            )
            row_min = min(row_min, curr_row[i])

        if max_distance is not None and row_min > max_distance:
            return max_distance + 1

        prev_row, curr_row = curr_row, prev_row

    return prev_row[m]


def similarity(s1: str, s2: str) -> float:
    """Return ``(max_len - distance) / max_len`` in ``[0, 1]``.

    Empty input on either side scores 0; identical strings score 1.

    Examples:
        >>> similarity("인공지늠", "인공지능")
        0.75
    """
    if not s1 or not s2:
        return 0.0
    if s1 == s2:
        return 1.0
    max_length = max(len(s1), len(s2))
    return (max_length - levenshtein_distance(s1, s2)) / max_length


def max_distance_for(term_length: int, threshold: float) -> int:
    """Largest edit distance that can still reach ``threshold`` similarity.

    The comparison partner may be longer than the term itself, so the bound is
    computed for the longest partner that can still qualify.
    """
    if threshold <= 0:
        return term_length
    if threshold >= 1:
        return 0
    longest_partner = math.floor(term_length / threshold + 1e-9)
    return math.floor(longest_partner * (1 - threshold) + 1e-9)


def bucket_by_length(vocabulary: Iterable[str]) -> dict[int, tuple[str, ...]]:
    """Group terms by length, each bucket sorted."""
    buckets: dict[int, list[str]] = {}
    for word in vocabulary:
        if word:
            buckets.setdefault(len(word), []).append(word)
    return {length: tuple(sorted(words)) for length, words in buckets.items()}


def sample_vocabulary(
    term: str,
    vocabulary: Iterable[str],
    threshold: float,
    limit: int | None,
    *,
    by_length: Mapping[int, Sequence[str]] | None = None,
) -> list[str]:
    """Pick at most ``limit`` vocabulary terms worth comparing with ``term``.

    Only terms whose length difference leaves the threshold reachable are kept.
    Terms sharing the first character come first because single typos rarely
    land on the first letter; the rest follow alphabetically so the sample is
    deterministic. With ``by_length`` (see ``bucket_by_length``) only the
    buckets inside the length window are read and ``vocabulary`` is ignored.
    """
    if not term or (limit is not None and limit <= 0):
        return []
    window = max_distance_for(len(term), threshold)
    first = term[0]
    if by_length is not None:
        lengths = range(max(1, len(term) - window), len(term) + window + 1)
        candidates = [word for length in lengths for word in by_length.get(length, ())]
    else:
        candidates = [word for word in vocabulary if word and abs(len(word) - len(term)) <= window]
    candidates.sort(key=lambda word: (word[0] != first, word))
    return candidates[:limit]


def find_similar_terms(
    query_term: str,
    vocabulary: Iterable[str],
    threshold: float,
    *,
    limit: int | None = None,
    sample_size: int | None = None,
    by_length: Mapping[int, Sequence[str]] | None = None,
) -> list[tuple[str, float]]:
    """Find vocabulary terms whose similarity to ``query_term`` reaches ``threshold``.

    Args:
        query_term: The term to match (may contain a typo).
        vocabulary: Known index terms.
        threshold: Minimum similarity in ``[0, 1]``.
        limit: Maximum number of matches to return.
        sample_size: When set, compare against a bounded sample of the
            vocabulary instead of every term.
        by_length: Length buckets of the vocabulary; when given, only terms
            in the reachable length window are compared.

    Returns:
        ``(term, similarity)`` pairs, most similar first, ties alphabetical.
        The query term itself is returned with similarity 1.0 when present.
    """
    if not query_term or not (vocabulary or by_length):
        return []

    query_lower = query_term.lower()
    if sample_size is not None or by_length is not None:
        pool: Iterable[str] = sample_vocabulary(query_lower, vocabulary, threshold, sample_size, by_length=by_length)
    else:
        pool = vocabulary

    max_distance = max_distance_for(len(query_lower), threshold)
    matches: list[tuple[str, float]] = []
    for term in pool:
        term_lower = term.lower()
        if abs(len(term_lower) - len(query_lower)) > max_distance:
            continue
        distance = levenshtein_distance(query_lower, term_lower, max_distance)
        if distance > max_distance:
            continue
        max_length = max(len(term_lower), len(query_lower))
        score = (max_length - distance) / max_length
        if score >= threshold:
            matches.append((term, score))

    matches.sort(key=lambda item: (-item[1], item[0]))
    if limit is not None:
        return matches[:limit]
    return matches
