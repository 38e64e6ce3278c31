"""Pipeline orchestration: fetch → match → classify → dedupe → resolve → persist → report."""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterable, Mapping
from datetime import UTC, datetime, timedelta
from typing import Any, Protocol

from mentionwatch import config
from mentionwatch.classify import classify
from mentionwatch.dedupe import Deduplicator
from mentionwatch.emailer import send_report
from mentionwatch.errors import (
    ClassificationError,
    ConfigurationError,
    FetchError,
    PersistenceConflict,
    PersistenceError,
)
from mentionwatch.learning import compute_learning_stats
from mentionwatch.lexicon import load_profile
from mentionwatch.matcher import KeywordMatcher, compose_text
from mentionwatch.models import (
    BrandMention,
    CandidateError,
    Classification,
    DedupeAction,
    DedupeDecision,
    FetchConfig,
    LearningStats,
    LexiconEntry,
    Mention,
    MentionStats,
    RawCandidate,
    RunSummary,
    ScoringPolicy,
)
from mentionwatch.override import ManualOverrideResolver
from mentionwatch.reddit_client import RedditClient, to_candidate
from mentionwatch.report import render_report
from mentionwatch.stats import compute_mention_stats
from mentionwatch.store import MentionStore

logger = logging.getLogger(__name__)


class CandidateFetcher(Protocol):
    def fetch_candidates(self, fetch_config: FetchConfig) -> Iterable[Any]: ...


def _record_id(raw: Any) -> str:
    if isinstance(raw, Mapping) and raw.get("id"):
        return str(raw["id"])
    return "<unknown>"


def _setup_logging() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        stream=sys.stderr,
    )


class IngestionOrchestrator:
    """Run one ingestion batch end-to-end.

    Candidates are handled one at a time in fetch order. A bad candidate is
    recorded in the summary's ``errors`` and skipped; only configuration
    problems (raised before anything is fetched or written) abort the batch.
    """

    def __init__(
        self,
        fetcher: CandidateFetcher,
        store: MentionStore,
        lexicon: dict[str, LexiconEntry],
        policy: ScoringPolicy | None = None,
        brand_terms: list[str] | None = None,
    ) -> None:
        if not lexicon:
            raise ConfigurationError("Lexicon is empty; refusing to classify.")
        self._fetcher = fetcher
        self._store = store
        self._matcher = KeywordMatcher(lexicon)
        self._policy = policy or ScoringPolicy()
        self._dedupe = Deduplicator(store.lookup, ManualOverrideResolver())
        self._brand_terms = [t.lower() for t in (brand_terms or []) if t.strip()]

    # ── public ──────────────────────────────────────────────────────────

    def classify_candidate(self, candidate: RawCandidate) -> Classification:
        try:
            text = compose_text(candidate.title, candidate.body)
        except ClassificationError as exc:
            logger.warning("%s: %s; scoring as empty text", candidate.id, exc)
            text = ""
        return classify(self._matcher.match(text), self._policy)

    def run(self, fetch_config: FetchConfig, now: datetime | None = None) -> RunSummary:
        summary = RunSummary()
        seen: list[Mention] = []

        for raw in self._fetcher.fetch_candidates(fetch_config):
            summary.total_processed += 1
            candidate_id = _record_id(raw)
            try:
                candidate = to_candidate(raw)
                decision = self._process(candidate, now)
            except FetchError as exc:
                logger.warning("Skipping malformed record %s: %s", exc.candidate_id, exc.reason)
                summary.errors.append(
                    CandidateError(candidate_id=exc.candidate_id, reason=exc.reason)
                )
                continue
            except PersistenceError as exc:
                logger.error("Failed to persist %s: %s", candidate_id, exc)
                summary.errors.append(CandidateError(candidate_id=candidate_id, reason=str(exc)))
                continue

            if decision.action is DedupeAction.NEW:
                summary.new_mentions += 1
            elif decision.action is DedupeAction.UPDATE:
                summary.updated_mentions += 1
            seen.append(decision.mention)
            self._record_brand_sighting(candidate, now)

        summary.top_negative = self._top_negative(seen)
        logger.info(
            "Ingestion done: %d processed, %d new, %d updated, %d errors",
            summary.total_processed,
            summary.new_mentions,
            summary.updated_mentions,
            len(summary.errors),
        )
        return summary

    # ── private ─────────────────────────────────────────────────────────

    def _process(self, candidate: RawCandidate, now: datetime | None) -> DedupeDecision:
        classification = self.classify_candidate(candidate)
        decision = self._dedupe.decide(candidate, classification, now)
        try:
            self._persist(decision)
        except PersistenceConflict:
            # Another writer created this id between lookup and insert;
            # merge once more against what it stored. A second conflict propagates.
            logger.warning("Conflict creating %s; retrying against stored record", candidate.id)
            decision = self._dedupe.decide(candidate, classification, now)
            self._persist(decision)
        return decision

    def _persist(self, decision: DedupeDecision) -> None:
        if decision.action is DedupeAction.NEW:
            self._store.insert(decision.mention)
        elif decision.action is DedupeAction.UPDATE:
            self._store.update(decision.mention)

    def _record_brand_sighting(self, candidate: RawCandidate, now: datetime | None) -> None:
        if not self._brand_terms:
            return
        text = " ".join(p for p in (candidate.title, candidate.body) if p).lower()
        if not any(term in text for term in self._brand_terms):
            return
        sighting = BrandMention(
            **candidate.model_dump(exclude={"num_comments"}),
            found_at=now or datetime.now(UTC),
        )
        try:
            if self._store.insert_brand_mention(sighting):
                logger.debug("New brand sighting %s", candidate.id)
        except PersistenceError as exc:
            logger.warning("Could not record brand sighting %s: %s", candidate.id, exc)

    def _top_negative(self, mentions: list[Mention]) -> list[Mention]:
        below = [m for m in mentions if m.effective_score < self._policy.top_negative_below]
        below.sort(key=lambda m: (m.effective_score, m.id))
        return below[: self._policy.top_negative_limit]


# ── bulk workflow ──────────────────────────────────────────────────────────


def clear_ignored(mentions: Iterable[Mention]) -> tuple[list[Mention], int]:
    """Un-ignore every ignored mention; all other fields stay as they are."""
    result: list[Mention] = []
    reset = 0
    for mention in mentions:
        if mention.ignored:
            mention = mention.model_copy(update={"ignored": False, "ignored_at": None})
            reset += 1
        result.append(mention)
    return result, reset


def reset_ignored(store: MentionStore) -> int:
    """Un-ignore every ignored mention in *store*; return how many were reset.

    Same outcome as :func:`clear_ignored` over a full scan, but each row is
    cleared with its own conditional update, so a tag or flag set while the
    reset runs is kept.
    """
    current = store.scan_all()
    reset = sum(1 for m in current if m.ignored and store.clear_ignored(m.id))
    logger.info("Reset %d of %d mentions to not ignored", reset, len(current))
    return reset


def get_learning_stats(store: MentionStore) -> LearningStats:
    return compute_learning_stats(store.scan_all())


def get_mention_stats(store: MentionStore) -> MentionStats:
    return compute_mention_stats(store.scan_all())


# ── entry points ───────────────────────────────────────────────────────────


def open_store(profile: str) -> MentionStore:
    return MentionStore(db_path=config.profile_paths(profile)["db"])


def _fetch_since(store: MentionStore) -> datetime:
    """Newest stored mention minus the lookback window, or the configured start."""
    latest = store.latest_created_utc()
    if latest is None:
        return datetime.fromisoformat(config.START_FROM_ISO)
    return latest - timedelta(hours=config.LOOKBACK_HOURS)


def run_ingestion(profile: str = config.DEFAULT_PROFILE, dry_run: bool = False) -> RunSummary:
    """Execute one ingestion run for *profile*; *dry_run* skips the email report."""
    _setup_logging()
    logger.info("=== mentionwatch ingestion start [profile=%s] ===", profile)

    paths = config.profile_paths(profile)
    prof = load_profile(paths["lexicon"])

    store = MentionStore(db_path=paths["db"])
    fetch_config = FetchConfig(
        query=prof.query,
        subreddits=prof.subreddits,
        since_utc=_fetch_since(store),
    )
    logger.info("Fetching mentions since %s", fetch_config.since_utc)

    client = RedditClient(user_agent=config.REDDIT_USER_AGENT, limit=config.FETCH_LIMIT)
    orchestrator = IngestionOrchestrator(
        fetcher=client,
        store=store,
        lexicon=prof.lexicon,
        policy=prof.policy,
        brand_terms=prof.brand_terms,
    )
    summary = orchestrator.run(fetch_config)

    for mention in summary.top_negative:
        logger.info(
            "  [%d] r/%s %s", mention.effective_score, mention.subreddit, mention.permalink
        )

    if dry_run:
        logger.info("Dry-run mode; skipping email report.")
    elif summary.new_mentions == 0:
        logger.info("No new mentions; skipping email report.")
    elif config.email_enabled():
        now = datetime.now(UTC).strftime("%Y-%m-%d %H:%M UTC")
        try:
            send_report(
                smtp_host=config.SMTP_HOST,
                smtp_port=config.SMTP_PORT,
                username=config.SMTP_USERNAME,
                password=config.SMTP_PASSWORD,
                to_addrs=config.EMAIL_TO,
                subject=f"{prof.name.upper()} MENTIONS: {summary.new_mentions} new, {now}",
                body_text=render_report(summary, prof.name),
            )
        except Exception:
            logger.exception("Failed to send report email")
    else:
        logger.info(
            "Email not configured; skipping send. "
            "Set SMTP_USERNAME, SMTP_PASSWORD, EMAIL_TO to enable."
        )

    logger.info("=== mentionwatch ingestion done [profile=%s] ===", profile)
    return summary
