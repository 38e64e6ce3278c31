"""Shared factories for the test suite."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from mentionwatch.models import FetchConfig, Mention

T0 = datetime(2024, 3, 1, 12, 0, tzinfo=UTC)


def make_mention(mention_id: str = "t3_abc", **overrides: Any) -> Mention:
    fields: dict[str, Any] = {
        "id": mention_id,
        "type": "post",
        "subreddit": "longevity",
        "permalink": f"/r/longevity/comments/{mention_id}/",
        "author": "someone",
        "title": "LifeX thoughts",
        "body": "",
        "created_utc": T0,
        "ingested_at": T0,
        "label": "neutral",
        "confidence": 0.0,
        "score": 50,
        "keywords_matched": [],
    }
    fields.update(overrides)
    return Mention(**fields)


def make_raw(
    mention_id: str,
    title: str | None = "",
    body: str | None = "",
    num_comments: int = 0,
    **overrides: Any,
) -> dict[str, Any]:
    record: dict[str, Any] = {
        "id": mention_id,
        "type": "post",
        "subreddit": "longevity",
        "permalink": f"/r/longevity/comments/{mention_id}/",
        "author": "someone",
        "title": title,
        "body": body,
        "created_utc": 1_709_294_400,
        "num_comments": num_comments,
    }
    record.update(overrides)
    return record


class FakeFetcher:
    """In-memory fetch collaborator returning copies of *records*."""

    def __init__(self, records: list[Any]) -> None:
        self.records = records
        self.calls = 0

    def fetch_candidates(self, fetch_config: FetchConfig) -> list[Any]:
        self.calls += 1
        return [dict(r) if isinstance(r, dict) else r for r in self.records]
