# src/opkpi/normalization/scoring.py
from __future__ import annotations

from typing import Iterable

from opkpi.core.types import KPIPatternDescriptor, RawMatch

BASE_CONFIDENCE = 0.7
CONTEXT_BOOST = 0.2
EXCLUDE_PENALTY = 0.15
MIN_CONFIDENCE = 0.1
MAX_CONFIDENCE = 1.0


def count_keyword_hits(span: str, keywords: Iterable[str]) -> int:
    """Number of distinct keywords present in `span`, case-insensitive."""
    lowered = span.lower()
    return sum(1 for kw in keywords if kw.lower() in lowered)


def compute_confidence(
    match: RawMatch,
    descriptor: KPIPatternDescriptor,
    *,
    base_confidence: float = BASE_CONFIDENCE,
) -> float:
    """
    Confidence of one match, judged only on the matched span:

        base + 0.2 * context_hits / |context_keywords| - 0.15 * exclude_hits

    clamped to [0.1, 1.0]. A descriptor without context keywords gets no boost.
    """
    span = match.full_matched_text

    score = base_confidence

    if descriptor.context_keywords:
        hits = count_keyword_hits(span, descriptor.context_keywords)
        score += CONTEXT_BOOST * hits / len(descriptor.context_keywords)

    score -= EXCLUDE_PENALTY * count_keyword_hits(span, descriptor.exclude_keywords)

    return max(MIN_CONFIDENCE, min(MAX_CONFIDENCE, score))
