"""Keyword matching of mention text against the weighted lexicon."""

from __future__ import annotations

import logging

from mentionwatch.errors import ClassificationError
from mentionwatch.models import KeywordMatch, LexiconEntry, MatchSet

logger = logging.getLogger(__name__)


def compose_text(title: str | None, body: str | None) -> str:
    """Join title and body into the lower-cased text the matcher scans.

    Raises :class:`ClassificationError` when neither carries any text.
    """
    parts = [p.strip() for p in (title, body) if p and p.strip()]
    if not parts:
        raise ClassificationError("Mention has neither title nor body")
    return " ".join(parts).lower()


class KeywordMatcher:
    """Exact phrase (substring) matcher; no stemming, no overlap suppression."""

    def __init__(self, lexicon: dict[str, LexiconEntry]) -> None:
        self._lexicon = {kw.lower(): entry for kw, entry in lexicon.items()}

    def match(self, text: str) -> MatchSet:
        text_lower = text.lower()
        result = MatchSet()
        for keyword, entry in self._lexicon.items():
            if keyword not in text_lower:
                continue
            result.matches.append(
                KeywordMatch(keyword=keyword, polarity=entry.polarity, weight=entry.weight)
            )
            result.weight_by_polarity[entry.polarity] += entry.weight

        logger.debug("Matched %d keywords: %s", len(result.matches), result.keywords)
        return result
