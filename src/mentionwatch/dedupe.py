"""Deduplication logic: decide new vs. update-in-place vs. no-op per identity."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime

from mentionwatch.models import (
    Classification,
    DedupeAction,
    DedupeDecision,
    Mention,
    RawCandidate,
)
from mentionwatch.override import ManualOverrideResolver

logger = logging.getLogger(__name__)

Lookup = Callable[[str], Mention | None]


class Deduplicator:
    """Reconcile a classified candidate with the stored record for its id.

    Only the automated judgment and ``num_comments`` move on re-ingestion;
    ``ingested_at``, content, workflow flags and manual fields stay as stored.
    """

    def __init__(
        self,
        lookup: Lookup,
        resolver: ManualOverrideResolver | None = None,
    ) -> None:
        self._lookup = lookup
        self._resolver = resolver or ManualOverrideResolver()

    def decide(
        self,
        candidate: RawCandidate,
        classification: Classification,
        now: datetime | None = None,
    ) -> DedupeDecision:
        existing = self._lookup(candidate.id)
        judgment = self._resolver.resolve(classification, existing)

        if existing is None:
            mention = Mention(
                id=candidate.id,
                type=candidate.type,
                subreddit=candidate.subreddit,
                permalink=candidate.permalink,
                author=candidate.author,
                title=candidate.title,
                body=candidate.body,
                created_utc=candidate.created_utc,
                ingested_at=now or datetime.now(UTC),
                num_comments=candidate.num_comments,
                **judgment.model_dump(),
            )
            return DedupeDecision(action=DedupeAction.NEW, mention=mention)

        update = judgment.model_dump()
        if candidate.num_comments != existing.num_comments:
            update["num_comments"] = candidate.num_comments
        merged = existing.model_copy(update=update)

        unchanged = merged.model_dump() == existing.model_dump()
        action = DedupeAction.NOOP if unchanged else DedupeAction.UPDATE
        logger.debug("Dedupe %s → %s", candidate.id, action.value)
        return DedupeDecision(action=action, mention=merged, previous=existing)

