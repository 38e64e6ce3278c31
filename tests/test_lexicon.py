"""Unit tests for profile/lexicon loading."""

from pathlib import Path

import pytest

from mentionwatch.classify import classify
from mentionwatch.errors import ConfigurationError
from mentionwatch.lexicon import build_lexicon, load_profile
from mentionwatch.matcher import KeywordMatcher

SHIPPED_PROFILE = Path(__file__).resolve().parents[1] / "config" / "profiles" / "lifex" / "lexicon.yml"


def _write(tmp_path: Path, text: str) -> Path:
    profile_dir = tmp_path / "acme"
    profile_dir.mkdir()
    path = profile_dir / "lexicon.yml"
    path.write_text(text)
    return path


class TestLoadProfile:
    def test_full_profile(self, tmp_path: Path) -> None:
        path = _write(
            tmp_path,
            """
search:
  keywords: [acme, acme research]
  subreddits: [longevity]
brand_terms: [ACME]
lexicon:
  Terrible: {polarity: -1, weight: 5}
  love: [1, 3]
policy:
  confidence_saturation: 12
""",
        )
        profile = load_profile(path)
        assert profile.name == "acme"
        assert profile.query == 'acme OR "acme research"'
        assert profile.subreddits == ["longevity"]
        assert profile.brand_terms == ["acme"]
        assert set(profile.lexicon) == {"terrible", "love"}
        assert profile.lexicon["love"].polarity == 1
        assert profile.lexicon["love"].weight == 3
        assert profile.policy.confidence_saturation == 12
        assert profile.policy.negative_below == 40

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigurationError):
            load_profile(tmp_path / "nope" / "lexicon.yml")

    def test_empty_lexicon_is_fatal(self, tmp_path: Path) -> None:
        path = _write(tmp_path, "search:\n  keywords: [acme]\nlexicon: {}\n")
        with pytest.raises(ConfigurationError):
            load_profile(path)

    def test_missing_keywords_is_fatal(self, tmp_path: Path) -> None:
        path = _write(tmp_path, "lexicon:\n  love: [1, 3]\n")
        with pytest.raises(ConfigurationError):
            load_profile(path)


class TestBuildLexicon:
    def test_rejects_bad_polarity(self) -> None:
        with pytest.raises(ConfigurationError):
            build_lexicon({"meh": {"polarity": 2, "weight": 1}})

    def test_rejects_non_positive_weight(self) -> None:
        with pytest.raises(ConfigurationError):
            build_lexicon({"meh": [-1, 0]})

    def test_rejects_malformed_pair(self) -> None:
        with pytest.raises(ConfigurationError):
            build_lexicon({"meh": [-1]})

    def test_none_is_empty(self) -> None:
        with pytest.raises(ConfigurationError):
            build_lexicon(None)


class TestShippedProfile:
    def _classify(self, text: str):
        profile = load_profile(SHIPPED_PROFILE)
        return classify(KeywordMatcher(profile.lexicon).match(text), profile.policy)

    def test_complaint_scores_negative(self) -> None:
        result = self._classify("lifex is a scam, total waste of money")
        assert result.score < 40
        assert result.label == "negative"

    def test_praise_scores_positive(self) -> None:
        result = self._classify("i love lifex, works great, recommend")
        assert result.score > 60
        assert result.label == "positive"

    def test_every_complaint_term_pulls_down(self) -> None:
        profile = load_profile(SHIPPED_PROFILE)
        for term in ("scam", "terrible", "refund", "overpriced"):
            assert classify(KeywordMatcher(profile.lexicon).match(term)).score < 40, term
