"""Manual-override precedence: human tags always outrank the classifier.

Ingestion goes through :class:`ManualOverrideResolver`, which only ever
carries manual fields forward. Tags are written by :func:`apply_tag` /
:func:`clear_tag`, which the store's tagging operations call.
"""

from __future__ import annotations

import logging
from datetime import datetime

from mentionwatch.models import Classification, Judgment, Label, Mention

logger = logging.getLogger(__name__)

_MANUAL_FIELDS = ("manual_label", "manual_score", "tagged_by", "tagged_at")

# Label → base score for a human tag; shifted by a full-confidence step
_TAG_BASE: dict[str, int] = {"negative": 10, "neutral": 50, "positive": 90}
_TAG_DIRECTION: dict[str, int] = {"negative": -1, "neutral": 0, "positive": 1}
_TAG_STEP = 10


class ManualOverrideResolver:
    """Merge a fresh classification with whatever a human already decided."""

    def resolve(self, fresh: Classification, prior: Mention | None) -> Judgment:
        judgment = Judgment(**fresh.model_dump())
        if prior is None or not prior.has_manual_override:
            return judgment

        carried = {field: getattr(prior, field) for field in _MANUAL_FIELDS}
        logger.debug(
            "Carrying manual override for %s (manual=%s, auto=%s)",
            prior.id,
            prior.manual_label,
            fresh.label,
        )
        return judgment.model_copy(update=carried)


def manual_score_for(label: Label) -> int:
    """Score recorded alongside a human label (negative=1, neutral=50, positive=100)."""
    raw = _TAG_BASE[label] + _TAG_STEP * _TAG_DIRECTION[label]
    return max(1, min(100, raw))


def apply_tag(
    mention: Mention,
    label: Label,
    tagged_by: str,
    tagged_at: datetime,
    score: int | None = None,
) -> Mention:
    """Return *mention* with a human tag; the automated judgment is untouched."""
    return mention.model_copy(
        update={
            "manual_label": label,
            "manual_score": score if score is not None else manual_score_for(label),
            "tagged_by": tagged_by,
            "tagged_at": tagged_at,
        }
    )


def clear_tag(mention: Mention) -> Mention:
    """Drop the human tag so the automated judgment is effective again."""
    return mention.model_copy(update={field: None for field in _MANUAL_FIELDS})
