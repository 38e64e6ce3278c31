"""Lexicon-weighted sentiment classification (label, 1–100 score, confidence)."""

from __future__ import annotations

import math

from mentionwatch.models import Classification, Label, MatchSet, ScoringPolicy

_DEFAULT_POLICY = ScoringPolicy()


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def label_for(score: int, policy: ScoringPolicy = _DEFAULT_POLICY) -> Label:
    """Map a score to its band; the boundary scores themselves are neutral."""
    if score < policy.negative_below:
        return "negative"
    if score > policy.positive_above:
        return "positive"
    return "neutral"


def classify(matches: MatchSet, policy: ScoringPolicy = _DEFAULT_POLICY) -> Classification:
    """Score a match set.

    ``score = clamp(round(midpoint - span * net / max(total, 1)), 1, 100)``
    where ``net`` is the polarity-signed weight sum and ``total`` the plain
    weight sum. Confidence grows with ``total`` and saturates at 1.
    No matches gives score 50, neutral, confidence 0.
    """
    buckets = matches.weight_by_polarity
    net = buckets.get(1, 0.0) - buckets.get(-1, 0.0)
    total = sum(buckets.values())

    raw = policy.midpoint - policy.span * net / max(total, 1.0)
    score = min(100, max(1, _round_half_up(raw)))
    confidence = min(1.0, total / policy.confidence_saturation)

    return Classification(
        label=label_for(score, policy),
        score=score,
        confidence=confidence,
        keywords_matched=matches.keywords,
    )
