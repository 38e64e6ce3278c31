"""Exception hierarchy shared across the ingestion pipeline."""

from __future__ import annotations


class MentionWatchError(Exception):
    """Base class for mentionwatch failures."""


class ConfigurationError(MentionWatchError):
    """Raised when a profile cannot drive a run (e.g. empty lexicon)."""


class FetchError(MentionWatchError):
    """A fetched record could not be turned into a candidate."""

    def __init__(self, candidate_id: str, reason: str) -> None:
        super().__init__(f"{candidate_id}: {reason}")
        self.candidate_id = candidate_id
        self.reason = reason


class ClassificationError(MentionWatchError):
    """Raised when a candidate carries no text to classify."""


class PersistenceError(MentionWatchError):
    """A write to the mention store failed."""


class PersistenceConflict(PersistenceError):
    """Another writer created the same mention id first."""

    def __init__(self, mention_id: str) -> None:
        super().__init__(f"Mention {mention_id} already exists")
        self.mention_id = mention_id
