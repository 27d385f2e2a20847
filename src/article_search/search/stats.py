"""Statistical helpers for relevance scoring.

Field length averages are computed once per index build and feed a
length-normalized, saturating term-frequency weight so that long articles do
not win simply by repeating a term more often.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass


DEFAULT_K1 = 1.2
DEFAULT_B = 0.75
MAX_LENGTH_RATIO = 4.0


@dataclass(frozen=True)
class FieldLengthStats:
    """Aggregated term statistics for a field."""

    field: str
    total_terms: int
    document_count: int

    @property
    def average_length(self) -> float:
        if self.document_count == 0:
            return 0.0
        return self.total_terms / self.document_count


def compute_field_length_stats(field_lengths: Mapping[str, Mapping[str, int]]) -> dict[str, FieldLengthStats]:
    """Return aggregate stats for each field given per-document lengths."""

    stats: dict[str, FieldLengthStats] = {}
    for field_name, lengths in field_lengths.items():
        doc_count = len(lengths)
        total_terms = sum(max(length, 0) for length in lengths.values())
        stats[field_name] = FieldLengthStats(
            field=field_name,
            total_terms=total_terms,
            document_count=doc_count,
        )
    return stats


def bm25(tf: int, doc_length: int, avg_doc_length: float, *, k1: float = DEFAULT_K1, b: float = DEFAULT_B) -> float:
    """Compute the BM25 term weight without IDF.

    The length ratio is capped at 4x so very long articles are treated as 4x
    average rather than penalized without bound.
    """

    if tf <= 0:
        return 0.0
    raw_ratio = doc_length / max(avg_doc_length, 1e-9)
    normalized_length = min(raw_ratio, MAX_LENGTH_RATIO)
    denominator = tf + k1 * (1 - b + b * normalized_length)
    return (tf * (k1 + 1)) / denominator


def normalized_tf(tf: int, doc_length: int, avg_doc_length: float, *, k1: float = DEFAULT_K1, b: float = DEFAULT_B) -> float:
    """BM25 term weight rescaled into ``[0, 1)``.

    ``bm25`` saturates below ``k1 + 1``; dividing by that bound lets title and
    content weights be combined as plain fractions.
    """

    return bm25(tf, doc_length, avg_doc_length, k1=k1, b=b) / (k1 + 1)
