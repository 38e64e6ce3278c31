"""Unit tests for the SQLite mention store."""

import sqlite3
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest

from mentionwatch.errors import PersistenceConflict, PersistenceError
from mentionwatch.models import BrandMention
from mentionwatch.store import MentionStore
from tests.helpers import T0, make_mention


def _store(tmp_path: Path) -> MentionStore:
    return MentionStore(db_path=tmp_path / "db" / "test.sqlite3")


class TestMentionStore:
    def test_round_trip(self, tmp_path: Path) -> None:
        store = _store(tmp_path)
        mention = make_mention(keywords_matched=["love", "scam"], confidence=0.4, score=63, label="positive")
        store.insert(mention)
        assert store.lookup(mention.id) == mention
        assert store.count() == 1

    def test_lookup_missing(self, tmp_path: Path) -> None:
        assert _store(tmp_path).lookup("t3_nope") is None

    def test_duplicate_insert_conflicts(self, tmp_path: Path) -> None:
        store = _store(tmp_path)
        store.insert(make_mention())
        with pytest.raises(PersistenceConflict):
            store.insert(make_mention(title="another writer"))
        assert store.count() == 1

    def test_update_leaves_human_columns_alone(self, tmp_path: Path) -> None:
        store = _store(tmp_path)
        store.insert(make_mention())
        store.tag("t3_abc", "negative", tagged_by="alice")
        store.set_urgent("t3_abc")

        # an ingestion copy that never saw the tag
        stale = make_mention(label="positive", score=80, confidence=0.5, num_comments=7)
        store.update(stale)

        stored = store.lookup("t3_abc")
        assert stored is not None
        assert stored.label == "positive"
        assert stored.num_comments == 7
        assert stored.manual_label == "negative"
        assert stored.tagged_by == "alice"
        assert stored.urgent is True

    def test_tag_and_untag(self, tmp_path: Path) -> None:
        store = _store(tmp_path)
        store.insert(make_mention(label="positive", score=75))
        tagged = store.tag("t3_abc", "negative", tagged_by="bob")
        assert tagged.manual_score == 1
        assert tagged.tagged_at is not None
        assert store.lookup("t3_abc").effective_label == "negative"

        store.untag("t3_abc")
        stored = store.lookup("t3_abc")
        assert stored.manual_label is None
        assert stored.effective_label == "positive"

    def test_missing_mention_raises_key_error(self, tmp_path: Path) -> None:
        with pytest.raises(KeyError):
            _store(tmp_path).tag("t3_nope", "neutral")

    def test_set_ignored_tracks_timestamp(self, tmp_path: Path) -> None:
        store = _store(tmp_path)
        store.insert(make_mention())
        assert store.set_ignored("t3_abc").ignored_at is not None
        cleared = store.set_ignored("t3_abc", False)
        assert cleared.ignored is False
        assert store.lookup("t3_abc").ignored_at is None

    def test_latest_created_utc(self, tmp_path: Path) -> None:
        store = _store(tmp_path)
        assert store.latest_created_utc() is None
        store.insert(make_mention("t3_a", created_utc=T0))
        store.insert(make_mention("t3_b", created_utc=T0 + timedelta(days=2)))
        assert store.latest_created_utc() == T0 + timedelta(days=2)

    def test_scan_all(self, tmp_path: Path) -> None:
        store = _store(tmp_path)
        for i in range(3):
            store.insert(make_mention(f"t3_{i}", created_utc=T0 + timedelta(hours=i)))
        assert [m.id for m in store.scan_all()] == ["t3_0", "t3_1", "t3_2"]

    def test_brand_mentions_insert_or_ignore(self, tmp_path: Path) -> None:
        store = _store(tmp_path)
        sighting = BrandMention(
            id="t1_x",
            type="comment",
            subreddit="longevity",
            permalink="/r/longevity/comments/x/",
            body="tried lifex last month",
            created_utc=T0,
            found_at=datetime.now(UTC),
        )
        assert store.insert_brand_mention(sighting) is True
        assert store.insert_brand_mention(sighting) is False


class TestHumanActionsAreNarrow:
    def test_flags_keep_tag(self, tmp_path: Path) -> None:
        store = _store(tmp_path)
        store.insert(make_mention())
        store.tag("t3_abc", "negative", tagged_by="alice")
        store.set_ignored("t3_abc")
        store.set_urgent("t3_abc")

        stored = store.lookup("t3_abc")
        assert stored.manual_label == "negative"
        assert stored.tagged_by == "alice"
        assert stored.ignored is True
        assert stored.urgent is True

    def test_tag_keeps_flags(self, tmp_path: Path) -> None:
        store = _store(tmp_path)
        store.insert(make_mention())
        store.set_ignored("t3_abc")
        store.set_urgent("t3_abc")
        tagged = store.tag("t3_abc", "positive")
        assert tagged.ignored is True
        assert tagged.urgent is True

    def test_clear_ignored_only_touches_ignored_rows(self, tmp_path: Path) -> None:
        store = _store(tmp_path)
        store.insert(make_mention("t3_a"))
        store.insert(make_mention("t3_b"))
        store.set_ignored("t3_a")
        assert store.clear_ignored("t3_a") is True
        assert store.clear_ignored("t3_a") is False
        assert store.clear_ignored("t3_b") is False
        assert store.clear_ignored("t3_nope") is False
        assert store.lookup("t3_a").ignored_at is None

    def test_flag_on_missing_mention_raises_key_error(self, tmp_path: Path) -> None:
        with pytest.raises(KeyError):
            _store(tmp_path).set_urgent("t3_nope")


class TestStoreErrors:
    def test_read_failure_is_persistence_error(self, tmp_path: Path) -> None:
        store = _store(tmp_path)
        con = sqlite3.connect(str(tmp_path / "db" / "test.sqlite3"))
        con.execute("DROP TABLE mentions")
        con.close()
        with pytest.raises(PersistenceError):
            store.lookup("t3_abc")
        with pytest.raises(PersistenceError):
            store.scan_all()

    def test_unreadable_row_is_persistence_error(self, tmp_path: Path) -> None:
        store = _store(tmp_path)
        store.insert(make_mention())
        con = sqlite3.connect(str(tmp_path / "db" / "test.sqlite3"))
        con.execute("UPDATE mentions SET label = 'furious' WHERE id = 't3_abc'")
        con.commit()
        con.close()
        with pytest.raises(PersistenceError):
            store.lookup("t3_abc")

    def test_constraint_violation_on_update_is_persistence_error(self, tmp_path: Path) -> None:
        store = _store(tmp_path)
        store.insert(make_mention())
        with pytest.raises(PersistenceError) as exc:
            store._write("UPDATE mentions SET type = NULL WHERE id = ?", ("t3_abc",))
        assert not isinstance(exc.value, PersistenceConflict)
