"""Load a monitoring profile (search terms + sentiment lexicon) from YAML."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError

from mentionwatch.errors import ConfigurationError
from mentionwatch.models import LexiconEntry, ScoringPolicy

logger = logging.getLogger(__name__)


class Profile(BaseModel):
    name: str
    query: str
    subreddits: list[str] = Field(default_factory=list)
    brand_terms: list[str] = Field(default_factory=list)
    lexicon: dict[str, LexiconEntry]
    policy: ScoringPolicy = Field(default_factory=ScoringPolicy)


def _kw_clause(keywords: list[str]) -> str:
    return " OR ".join(f'"{kw}"' if " " in kw else kw for kw in keywords)


def _parse_entry(keyword: str, raw: Any) -> LexiconEntry:
    """Accept ``{polarity, weight}`` mappings or ``[polarity, weight]`` pairs."""
    if isinstance(raw, (list, tuple)):
        if len(raw) != 2:
            raise ConfigurationError(
                f"Lexicon entry '{keyword}' must be [polarity, weight], got {raw!r}"
            )
        raw = {"polarity": raw[0], "weight": raw[1]}
    try:
        return LexiconEntry.model_validate(raw)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid lexicon entry '{keyword}': {exc}") from exc


def build_lexicon(raw: dict[str, Any] | None) -> dict[str, LexiconEntry]:
    """Normalise keys (lower-case, stripped) and validate every entry.

    An empty lexicon is a configuration error: nothing could be scored.
    """
    lexicon: dict[str, LexiconEntry] = {}
    for keyword, entry in (raw or {}).items():
        key = str(keyword).strip().lower()
        if not key:
            logger.warning("Skipping blank lexicon keyword")
            continue
        lexicon[key] = _parse_entry(key, entry)
    if not lexicon:
        raise ConfigurationError("Lexicon is empty; refusing to classify.")
    return lexicon


def load_profile(path: Path) -> Profile:
    """Parse ``lexicon.yml`` into a :class:`Profile`.

    Layout::

        search:
          keywords: [lifex, "lifex research"]
          subreddits: [longevity]
        brand_terms: [lifex]
        lexicon:
          terrible: {polarity: -1, weight: 5}
          love: [1, 3]
        policy:
          confidence_saturation: 12
    """
    if not path.exists():
        raise ConfigurationError(f"Profile file not found: {path}")

    with open(path, encoding="utf-8") as fh:
        cfg: dict[str, Any] = yaml.safe_load(fh) or {}

    search: dict[str, Any] = cfg.get("search", {}) or {}
    keywords: list[str] = [str(k) for k in (search.get("keywords") or [])]
    if not keywords:
        raise ConfigurationError(f"No search keywords in {path}")

    try:
        policy = ScoringPolicy.model_validate(cfg.get("policy") or {})
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid scoring policy in {path}: {exc}") from exc

    profile = Profile(
        name=path.parent.name,
        query=_kw_clause(keywords),
        subreddits=[str(s) for s in (search.get("subreddits") or [])],
        brand_terms=[str(t).lower() for t in (cfg.get("brand_terms") or [])],
        lexicon=build_lexicon(cfg.get("lexicon")),
        policy=policy,
    )
    logger.debug("Profile [%s] query: %s", profile.name, profile.query)
    logger.info(
        "Loaded profile '%s': %d lexicon entries", profile.name, len(profile.lexicon)
    )
    return profile
