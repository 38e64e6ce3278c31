"""Mention summary for the dashboard: label and subreddit counts, worst offenders."""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Iterable

from mentionwatch.models import Mention, MentionStats

logger = logging.getLogger(__name__)

TOP_NEGATIVE_LIMIT = 5


def compute_mention_stats(mentions: Iterable[Mention]) -> MentionStats:
    """Summarise *mentions*, leaving ignored ones out of everything but their count.

    Human overrides win: labels and scores are the effective ones.
    """
    active: list[Mention] = []
    ignored = 0
    for mention in mentions:
        if mention.ignored:
            ignored += 1
        else:
            active.append(mention)

    by_label = Counter(m.effective_label for m in active)
    by_subreddit = Counter(m.subreddit for m in active)
    negative = sorted(
        (m for m in active if m.effective_label == "negative"),
        key=lambda m: (m.effective_score, m.id),
    )

    return MentionStats(
        total_mentions=len(active),
        total_ignored=ignored,
        counts_by_label=dict(sorted(by_label.items())),
        # most_common keeps first-seen order for ties
        counts_by_subreddit=dict(by_subreddit.most_common()),
        average_score=(
            round(sum(m.effective_score for m in active) / len(active), 1) if active else None
        ),
        top_negative=negative[:TOP_NEGATIVE_LIMIT],
    )
