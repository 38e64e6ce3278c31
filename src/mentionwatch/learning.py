"""Agreement statistics between the classifier and human corrections.

Always recomputed from a full scan so partial updates can never drift the
numbers; the returned :class:`LearningStats` is a throwaway snapshot.
"""

from __future__ import annotations

import logging
from collections import Counter, defaultdict
from collections.abc import Iterable

from mentionwatch.models import Correction, LearningStats, Mention

logger = logging.getLogger(__name__)

_RECENT_CORRECTIONS = 10


def _rate(agreed: int, tagged: int) -> float | None:
    return agreed / tagged if tagged else None


def compute_learning_stats(mentions: Iterable[Mention]) -> LearningStats:
    total = 0
    tagged = 0
    agreed = 0
    kw_tagged: dict[str, int] = defaultdict(int)
    kw_agreed: dict[str, int] = defaultdict(int)
    keywords_seen: set[str] = set()
    transitions: Counter[str] = Counter()
    corrections: list[Correction] = []

    for mention in mentions:
        total += 1
        keywords_seen.update(mention.keywords_matched)
        # Only a manual label counts as a tag; a bare manual_score has nothing
        # to agree or disagree with.
        if mention.manual_label is None:
            continue

        tagged += 1
        agrees = mention.manual_label == mention.label
        if agrees:
            agreed += 1
        else:
            transitions[f"{mention.label}→{mention.manual_label}"] += 1
            corrections.append(
                Correction(
                    mention_id=mention.id,
                    original_label=mention.label,
                    corrected_label=mention.manual_label,
                    tagged_at=mention.tagged_at,
                )
            )

        for keyword in set(mention.keywords_matched):
            kw_tagged[keyword] += 1
            if agrees:
                kw_agreed[keyword] += 1

    corrections.sort(
        key=lambda c: c.tagged_at.timestamp() if c.tagged_at else float("-inf"),
        reverse=True,
    )

    stats = LearningStats(
        total_mentions=total,
        tagged_count=tagged,
        overall_agreement=_rate(agreed, tagged),
        per_keyword_agreement={
            kw: _rate(kw_agreed[kw], kw_tagged[kw]) for kw in sorted(keywords_seen)
        },
        corrections=dict(transitions),
        recent_corrections=corrections[:_RECENT_CORRECTIONS],
    )
    logger.info(
        "Learning stats: %d mentions, %d tagged, agreement=%s",
        total,
        tagged,
        "n/a" if stats.overall_agreement is None else f"{stats.overall_agreement:.2f}",
    )
    return stats
