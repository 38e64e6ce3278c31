"""Domain models used across the pipeline."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Literal

from pydantic import BaseModel, Field

Label = Literal["negative", "neutral", "positive"]
MentionType = Literal["post", "comment"]


class RawCandidate(BaseModel):
    """A post or comment as returned by the fetch collaborator."""

    id: str = Field(min_length=1)
    type: MentionType
    subreddit: str = Field(min_length=1)
    permalink: str = Field(min_length=1)
    author: str | None = None
    title: str | None = None
    body: str | None = None
    created_utc: datetime
    num_comments: int = Field(default=0, ge=0)


class LexiconEntry(BaseModel):
    polarity: Literal[-1, 0, 1]
    weight: float = Field(gt=0)


class KeywordMatch(BaseModel):
    keyword: str
    polarity: Literal[-1, 0, 1]
    weight: float


class MatchSet(BaseModel):
    matches: list[KeywordMatch] = Field(default_factory=list)
    # polarity bucket → summed weight
    weight_by_polarity: dict[int, float] = Field(
        default_factory=lambda: {-1: 0.0, 0: 0.0, 1: 0.0}
    )

    @property
    def keywords(self) -> list[str]:
        return sorted({m.keyword for m in self.matches})


class ScoringPolicy(BaseModel):
    """Tuneable constants for the classifier and the run summary."""

    midpoint: float = 50.0
    span: float = 49.0
    negative_below: int = 40
    positive_above: int = 60
    confidence_saturation: float = Field(default=10.0, gt=0)
    top_negative_below: int = 40
    top_negative_limit: int = Field(default=10, ge=0)


class Classification(BaseModel):
    label: Label
    score: int = Field(ge=1, le=100)
    confidence: float = Field(ge=0.0, le=1.0)
    keywords_matched: list[str] = Field(default_factory=list)


class Judgment(BaseModel):
    """Automated judgment merged with any carried-forward manual override."""

    label: Label
    score: int = Field(ge=1, le=100)
    confidence: float = Field(ge=0.0, le=1.0)
    keywords_matched: list[str] = Field(default_factory=list)
    manual_label: Label | None = None
    manual_score: int | None = Field(default=None, ge=1, le=100)
    tagged_by: str | None = None
    tagged_at: datetime | None = None


class Mention(BaseModel):
    id: str
    type: MentionType
    subreddit: str
    permalink: str
    author: str | None = None
    title: str | None = None
    body: str | None = None
    created_utc: datetime
    ingested_at: datetime

    # Automated judgment (kept for audit even when overridden)
    label: Label
    confidence: float = Field(ge=0.0, le=1.0)
    score: int = Field(ge=1, le=100)
    keywords_matched: list[str] = Field(default_factory=list)

    # Manual override layer
    manual_label: Label | None = None
    manual_score: int | None = Field(default=None, ge=1, le=100)
    tagged_by: str | None = None
    tagged_at: datetime | None = None

    # Workflow flags
    ignored: bool = False
    ignored_at: datetime | None = None
    urgent: bool = False
    num_comments: int = 0

    @property
    def has_manual_override(self) -> bool:
        return any(
            v is not None
            for v in (self.manual_label, self.manual_score, self.tagged_by, self.tagged_at)
        )

    @property
    def effective_label(self) -> Label:
        """Label every consumer should display: manual first, then automated."""
        return self.manual_label if self.manual_label is not None else self.label

    @property
    def effective_score(self) -> int:
        return self.manual_score if self.manual_score is not None else self.score


class BrandMention(BaseModel):
    """Raw sighting of the brand's own name; no sentiment attached."""

    id: str
    type: MentionType
    subreddit: str
    permalink: str
    author: str | None = None
    title: str | None = None
    body: str | None = None
    created_utc: datetime
    found_at: datetime


class FetchConfig(BaseModel):
    query: str
    subreddits: list[str] = Field(default_factory=list)
    since_utc: datetime | None = None


class CandidateError(BaseModel):
    candidate_id: str
    reason: str


class RunSummary(BaseModel):
    new_mentions: int = 0
    updated_mentions: int = 0
    total_processed: int = 0
    top_negative: list[Mention] = Field(default_factory=list)
    errors: list[CandidateError] = Field(default_factory=list)


class DedupeAction(str, Enum):
    NEW = "new"
    UPDATE = "update"
    NOOP = "noop"


class DedupeDecision(BaseModel):
    action: DedupeAction
    mention: Mention
    previous: Mention | None = None


class Correction(BaseModel):
    mention_id: str
    original_label: Label
    corrected_label: Label
    tagged_at: datetime | None = None


class LearningStats(BaseModel):
    total_mentions: int = 0
    tagged_count: int = 0
    overall_agreement: float | None = None
    per_keyword_agreement: dict[str, float | None] = Field(default_factory=dict)
    corrections: dict[str, int] = Field(default_factory=dict)
    recent_corrections: list[Correction] = Field(default_factory=list)


class MentionStats(BaseModel):
    """Dashboard summary over non-ignored mentions, by effective label/score."""

    total_mentions: int = 0
    total_ignored: int = 0
    counts_by_label: dict[str, int] = Field(default_factory=dict)
    counts_by_subreddit: dict[str, int] = Field(default_factory=dict)
    average_score: float | None = None
    top_negative: list[Mention] = Field(default_factory=list)
