"""Centralised configuration loaded from environment variables and dotenv."""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

# ── Paths ──────────────────────────────────────────────────────────────────
PROJECT_ROOT = Path(__file__).resolve().parents[2]

# ── Reddit ─────────────────────────────────────────────────────────────────
REDDIT_USER_AGENT: str = os.getenv("REDDIT_USER_AGENT", "mentionwatch/0.1")
FETCH_LIMIT: int = int(os.getenv("MENTIONWATCH_FETCH_LIMIT", "100"))
# Lower bound for the first run against an empty store
START_FROM_ISO: str = os.getenv("MENTIONWATCH_START_FROM", "2023-01-01T00:00:00+00:00")
# Re-fetch window behind the newest stored mention so comment counts refresh
LOOKBACK_HOURS: int = int(os.getenv("MENTIONWATCH_LOOKBACK_HOURS", "72"))

# ── Profile defaults (overridden at runtime by CLI) ───────────────────────
DEFAULT_PROFILE: str = os.getenv("MENTIONWATCH_PROFILE", "lifex")
PROFILES_DIR: Path = Path(
    os.getenv("MENTIONWATCH_PROFILES_DIR", str(PROJECT_ROOT / "config" / "profiles"))
)
DB_BASE: Path = Path(os.getenv("MENTIONWATCH_DB_DIR", str(PROJECT_ROOT / "var")))

# ── Email report ───────────────────────────────────────────────────────────
SMTP_HOST: str = os.getenv("SMTP_HOST", "smtp.gmail.com")
SMTP_PORT: int = int(os.getenv("SMTP_PORT", "587"))
SMTP_USERNAME: str = os.getenv("SMTP_USERNAME", "")
SMTP_PASSWORD: str = os.getenv("SMTP_PASSWORD", "")
EMAIL_TO: list[str] = [
    addr.strip() for addr in os.getenv("EMAIL_TO", "").split(",") if addr.strip()
]


def email_enabled() -> bool:
    """True when every SMTP setting needed to send the run report is present."""
    return bool(SMTP_USERNAME and SMTP_PASSWORD and EMAIL_TO)


def profile_paths(profile: str) -> dict[str, Path]:
    """Return resolved paths for a given profile name.

    Keys: ``profile_dir``, ``lexicon``, ``db``.
    """
    profile_dir = PROFILES_DIR / profile
    return {
        "profile_dir": profile_dir,
        "lexicon": profile_dir / "lexicon.yml",
        "db": DB_BASE / f"{profile}.sqlite3",
    }
