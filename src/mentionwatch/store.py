"""SQLite-backed mention store: identity lookup, upserts and human workflow."""

from __future__ import annotations

import json
import logging
import sqlite3
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from mentionwatch.errors import PersistenceConflict, PersistenceError
from mentionwatch.models import BrandMention, Label, Mention
from mentionwatch.override import apply_tag, clear_tag

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS mentions (
    id               TEXT PRIMARY KEY,
    type             TEXT NOT NULL,
    subreddit        TEXT NOT NULL,
    permalink        TEXT NOT NULL,
    author           TEXT,
    title            TEXT,
    body             TEXT,
    created_utc      TEXT NOT NULL,
    ingested_at      TEXT NOT NULL,
    label            TEXT NOT NULL,
    confidence       REAL NOT NULL,
    score            INTEGER NOT NULL,
    keywords_matched TEXT NOT NULL DEFAULT '[]',
    manual_label     TEXT,
    manual_score     INTEGER,
    tagged_by        TEXT,
    tagged_at        TEXT,
    ignored          INTEGER NOT NULL DEFAULT 0,
    ignored_at       TEXT,
    urgent           INTEGER NOT NULL DEFAULT 0,
    num_comments     INTEGER NOT NULL DEFAULT 0
);
CREATE INDEX IF NOT EXISTS idx_mentions_created ON mentions (created_utc);

CREATE TABLE IF NOT EXISTS brand_mentions (
    id          TEXT PRIMARY KEY,
    type        TEXT NOT NULL,
    subreddit   TEXT NOT NULL,
    permalink   TEXT NOT NULL,
    author      TEXT,
    title       TEXT,
    body        TEXT,
    created_utc TEXT NOT NULL,
    found_at    TEXT NOT NULL
);
"""

_COLUMNS = (
    "id", "type", "subreddit", "permalink", "author", "title", "body",
    "created_utc", "ingested_at", "label", "confidence", "score",
    "keywords_matched", "manual_label", "manual_score", "tagged_by",
    "tagged_at", "ignored", "ignored_at", "urgent", "num_comments",
)

_DATETIME_COLUMNS = {"created_utc", "ingested_at", "tagged_at", "ignored_at"}


def _to_db(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, list):
        return json.dumps(value)
    return value


def _row_to_mention(row: sqlite3.Row) -> Mention:
    data: dict[str, Any] = dict(row)
    for col in _DATETIME_COLUMNS:
        if data[col] is not None:
            data[col] = datetime.fromisoformat(data[col])
    data["keywords_matched"] = json.loads(data["keywords_matched"] or "[]")
    data["ignored"] = bool(data["ignored"])
    data["urgent"] = bool(data["urgent"])
    return Mention.model_validate(data)


class MentionStore:
    """Mention archive keyed by the platform id (the uniqueness constraint)."""

    def __init__(self, db_path: Path) -> None:
        db_path.parent.mkdir(parents=True, exist_ok=True)
        self._db_path = db_path
        self._init_db()

    # ── identity / ingestion ───────────────────────────────────────────

    def lookup(self, mention_id: str) -> Mention | None:
        rows = self._read("SELECT * FROM mentions WHERE id = ?", (mention_id,))
        return self._to_mention(rows[0]) if rows else None

    def insert(self, mention: Mention) -> None:
        """Create a mention; raise :class:`PersistenceConflict` if the id exists."""
        record = mention.model_dump()
        placeholders = ", ".join("?" for _ in _COLUMNS)
        sql = f"INSERT INTO mentions ({', '.join(_COLUMNS)}) VALUES ({placeholders})"
        self._write(sql, tuple(_to_db(record[c]) for c in _COLUMNS), conflict_id=mention.id)

    def update(self, mention: Mention) -> None:
        """Refresh the automated judgment and volatile counters of a known mention.

        Manual and workflow columns are never written here, so a human action
        landing between lookup and write is not clobbered by ingestion.
        """
        self._write(
            """
            UPDATE mentions
               SET label = ?, confidence = ?, score = ?, keywords_matched = ?,
                   num_comments = ?
             WHERE id = ?
            """,
            (
                mention.label,
                mention.confidence,
                mention.score,
                _to_db(mention.keywords_matched),
                mention.num_comments,
                mention.id,
            ),
        )

    def scan_all(self) -> list[Mention]:
        rows = self._read("SELECT * FROM mentions ORDER BY created_utc")
        return [self._to_mention(row) for row in rows]

    def count(self) -> int:
        return self._read("SELECT COUNT(*) FROM mentions")[0][0]  # type: ignore[no-any-return]

    def latest_created_utc(self) -> datetime | None:
        """Platform timestamp of the newest stored mention (fetch watermark)."""
        rows = self._read("SELECT MAX(created_utc) FROM mentions")
        return datetime.fromisoformat(rows[0][0]) if rows and rows[0][0] else None

    # ── human actions ──────────────────────────────────────────────────
    # Each action writes only the columns it owns, so concurrent tagging,
    # flagging and ingestion never overwrite one another.

    def tag(
        self,
        mention_id: str,
        label: Label,
        tagged_by: str = "user",
        score: int | None = None,
    ) -> Mention:
        mention = self._require(mention_id)
        tagged = apply_tag(mention, label, tagged_by, datetime.now(UTC), score=score)
        self._save_override(tagged)
        logger.info(
            "Tagged %s as %s (auto=%s) by %s", mention_id, label, mention.label, tagged_by
        )
        return self._require(mention_id)

    def untag(self, mention_id: str) -> Mention:
        self._save_override(clear_tag(self._require(mention_id)))
        logger.info("Removed manual tag from %s", mention_id)
        return self._require(mention_id)

    def set_ignored(self, mention_id: str, ignored: bool = True) -> Mention:
        self._update_one(
            mention_id,
            "UPDATE mentions SET ignored = ?, ignored_at = ? WHERE id = ?",
            (int(ignored), datetime.now(UTC).isoformat() if ignored else None, mention_id),
        )
        return self._require(mention_id)

    def set_urgent(self, mention_id: str, urgent: bool = True) -> Mention:
        self._update_one(
            mention_id,
            "UPDATE mentions SET urgent = ? WHERE id = ?",
            (int(urgent), mention_id),
        )
        return self._require(mention_id)

    def clear_ignored(self, mention_id: str) -> bool:
        """Un-ignore one mention; False if it was not ignored (or is unknown)."""
        return self._write(
            "UPDATE mentions SET ignored = 0, ignored_at = NULL WHERE id = ? AND ignored = 1",
            (mention_id,),
        ) > 0

    # ── brand sightings ────────────────────────────────────────────────

    def insert_brand_mention(self, item: BrandMention) -> bool:
        """Insert a brand sighting; return True if it was new (not a duplicate)."""
        return self._write(
            """
            INSERT OR IGNORE INTO brand_mentions
                (id, type, subreddit, permalink, author, title, body,
                 created_utc, found_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                item.id,
                item.type,
                item.subreddit,
                item.permalink,
                item.author,
                item.title,
                item.body,
                item.created_utc.isoformat(),
                item.found_at.isoformat(),
            ),
        ) > 0

    # ── private ────────────────────────────────────────────────────────

    def _save_override(self, mention: Mention) -> None:
        self._update_one(
            mention.id,
            """
            UPDATE mentions
               SET manual_label = ?, manual_score = ?, tagged_by = ?, tagged_at = ?
             WHERE id = ?
            """,
            (
                mention.manual_label,
                mention.manual_score,
                mention.tagged_by,
                _to_db(mention.tagged_at),
                mention.id,
            ),
        )

    def _update_one(self, mention_id: str, sql: str, params: tuple[Any, ...]) -> None:
        if self._write(sql, params) == 0:
            raise KeyError(f"Mention not found: {mention_id}")

    def _require(self, mention_id: str) -> Mention:
        mention = self.lookup(mention_id)
        if mention is None:
            raise KeyError(f"Mention not found: {mention_id}")
        return mention

    @staticmethod
    def _to_mention(row: sqlite3.Row) -> Mention:
        try:
            return _row_to_mention(row)
        except (ValueError, ValidationError) as exc:
            raise PersistenceError(f"Unreadable row {row['id']}: {exc}") from exc

    def _read(self, sql: str, params: tuple[Any, ...] = ()) -> list[sqlite3.Row]:
        con = self._connect()
        try:
            return con.execute(sql, params).fetchall()
        except sqlite3.Error as exc:
            raise PersistenceError(str(exc)) from exc
        finally:
            con.close()

    def _write(
        self, sql: str, params: tuple[Any, ...], conflict_id: str | None = None
    ) -> int:
        """Execute one statement; return the affected row count."""
        con = self._connect()
        try:
            cur = con.execute(sql, params)
            con.commit()
            return cur.rowcount
        except sqlite3.IntegrityError as exc:
            con.rollback()
            if conflict_id is not None:
                raise PersistenceConflict(conflict_id) from exc
            raise PersistenceError(str(exc)) from exc
        except sqlite3.Error as exc:
            con.rollback()
            raise PersistenceError(str(exc)) from exc
        finally:
            con.close()

    def _connect(self) -> sqlite3.Connection:
        con = sqlite3.connect(str(self._db_path))
        con.row_factory = sqlite3.Row
        return con

    def _init_db(self) -> None:
        con = self._connect()
        con.executescript(_SCHEMA)
        con.close()
