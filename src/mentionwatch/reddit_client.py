"""Minimal Reddit public search client (read-only)."""

from __future__ import annotations

import logging
import time
from collections.abc import Mapping
from typing import Any

import requests
from pydantic import ValidationError

from mentionwatch.errors import FetchError
from mentionwatch.models import FetchConfig, RawCandidate

logger = logging.getLogger(__name__)

_SEARCH_URL = "https://www.reddit.com/search.json"
_SUBREDDIT_SEARCH_URL = "https://www.reddit.com/r/{subreddit}/search.json"

# Reddit search type → (fullname prefix, mention type)
_KINDS: dict[str, tuple[str, str]] = {
    "link": ("t3_", "post"),
    "comment": ("t1_", "comment"),
}


class RedditClientError(Exception):
    """Raised when Reddit returns an unexpected response."""


def parse_listing(data: dict[str, Any], kind: str) -> list[dict[str, Any]]:
    """Flatten a search listing into raw candidate records.

    Records are left loosely shaped; :func:`to_candidate` enforces the contract.
    """
    prefix, mention_type = _KINDS[kind]
    children: list[dict[str, Any]] = (data.get("data") or {}).get("children") or []
    records: list[dict[str, Any]] = []
    for child in children:
        raw = child.get("data") or {}
        native_id = raw.get("id")
        records.append(
            {
                "id": f"{prefix}{native_id}" if native_id else None,
                "type": mention_type,
                "subreddit": raw.get("subreddit"),
                "permalink": raw.get("permalink"),
                "author": raw.get("author"),
                "title": raw.get("title") if mention_type == "post" else None,
                "body": raw.get("selftext") if mention_type == "post" else raw.get("body"),
                "created_utc": raw.get("created_utc"),
                "num_comments": raw.get("num_comments") or 0,
            }
        )
    return records


def to_candidate(raw: Any) -> RawCandidate:
    """Validate a raw record against the fetch contract."""
    if not isinstance(raw, Mapping):
        raise FetchError("<unknown>", f"record is not a mapping ({type(raw).__name__})")
    try:
        return RawCandidate.model_validate(raw)
    except ValidationError as exc:
        candidate_id = str(raw.get("id") or "<unknown>")
        fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in exc.errors())
        raise FetchError(candidate_id, f"invalid record ({fields})") from exc


class RedditClient:
    """Thin wrapper around Reddit's ``search.json`` endpoints."""

    def __init__(self, user_agent: str, limit: int = 100) -> None:
        if not user_agent:
            raise ValueError("REDDIT_USER_AGENT is required but was empty.")
        self._limit = min(max(limit, 1), 100)
        self._session = requests.Session()
        self._session.headers.update({"User-Agent": user_agent})

    # ── public ──────────────────────────────────────────────────────────
    def search(self, query: str, kind: str, subreddit: str | None = None) -> list[dict[str, Any]]:
        """Run one search (``kind`` is ``link`` or ``comment``), newest first."""
        params: dict[str, Any] = {
            "q": query,
            "sort": "new",
            "limit": self._limit,
            "type": kind,
        }
        if subreddit:
            url = _SUBREDDIT_SEARCH_URL.format(subreddit=subreddit)
            params["restrict_sr"] = "on"
        else:
            url = _SEARCH_URL

        records = parse_listing(self._get(url, params), kind)
        logger.info(
            "Fetched %d %s records for query: %s%s",
            len(records),
            kind,
            query,
            f" (r/{subreddit})" if subreddit else "",
        )
        return records

    def fetch_candidates(self, fetch_config: FetchConfig) -> list[dict[str, Any]]:
        """Fetch posts then comments newer than ``since_utc``, one entry per id."""
        scopes: list[str | None] = list(fetch_config.subreddits) or [None]
        since = fetch_config.since_utc.timestamp() if fetch_config.since_utc else None

        seen: set[str] = set()
        results: list[dict[str, Any]] = []
        for kind in _KINDS:
            for subreddit in scopes:
                for record in self.search(fetch_config.query, kind, subreddit):
                    created = record.get("created_utc")
                    if since is not None and isinstance(created, (int, float)) and created <= since:
                        continue
                    record_id = record.get("id")
                    if record_id and record_id in seen:
                        continue
                    if record_id:
                        seen.add(record_id)
                    results.append(record)
                # Polite back-off between requests
                time.sleep(1)
        return results

    # ── private ─────────────────────────────────────────────────────────
    def _get(self, url: str, params: dict[str, Any]) -> dict[str, Any]:
        resp = self._session.get(url, params=params, timeout=30)
        if resp.status_code == 429:
            retry_after = int(resp.headers.get("Retry-After", "60"))
            logger.warning("Rate-limited; sleeping %ds", retry_after)
            time.sleep(retry_after)
            resp = self._session.get(url, params=params, timeout=30)
        if resp.status_code != 200:
            raise RedditClientError(
                f"Reddit returned {resp.status_code}: {resp.text[:500]}"
            )
        return resp.json()  # type: ignore[no-any-return]
