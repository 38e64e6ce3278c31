"""CLI entry-point: ``python -m mentionwatch run`` / ``stats`` / ``summary`` / ``tag`` …"""

from __future__ import annotations

import argparse
import json
import logging
import sys

from mentionwatch import config
from mentionwatch.errors import ConfigurationError, PersistenceError
from mentionwatch.pipeline import (
    get_learning_stats,
    get_mention_stats,
    open_store,
    reset_ignored,
    run_ingestion,
)

logger = logging.getLogger(__name__)


def _print_json(payload: dict) -> None:
    print(json.dumps(payload, indent=2, default=str))


def _add_profile(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--profile",
        default=config.DEFAULT_PROFILE,
        help=f"Which monitoring profile to use (default: {config.DEFAULT_PROFILE}).",
    )


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="mentionwatch",
        description="Reddit brand-mention monitoring with sentiment scoring.",
    )
    sub = parser.add_subparsers(dest="command")

    # ── run ────────────────────────────────────────────────────────────
    run_parser = sub.add_parser("run", help="Execute one ingestion batch.")
    _add_profile(run_parser)
    run_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Ingest and persist but skip the email report.",
    )

    # ── stats ──────────────────────────────────────────────────────────
    stats_parser = sub.add_parser("stats", help="Classifier/human agreement statistics.")
    _add_profile(stats_parser)

    summary_parser = sub.add_parser("summary", help="Mention counts, average score, worst offenders.")
    _add_profile(summary_parser)

    # ── reset-ignored ──────────────────────────────────────────────────
    reset_parser = sub.add_parser("reset-ignored", help="Un-ignore every ignored mention.")
    _add_profile(reset_parser)

    # ── tag / untag ────────────────────────────────────────────────────
    tag_parser = sub.add_parser("tag", help="Manually label a mention.")
    _add_profile(tag_parser)
    tag_parser.add_argument("mention_id")
    tag_parser.add_argument("label", choices=["negative", "neutral", "positive"])
    tag_parser.add_argument("--by", default="user", help="Who is tagging (default: user).")

    untag_parser = sub.add_parser("untag", help="Remove a manual label.")
    _add_profile(untag_parser)
    untag_parser.add_argument("mention_id")

    # ── ignore / urgent ────────────────────────────────────────────────
    for name, help_text in (("ignore", "Mark a mention ignored."), ("urgent", "Mark a mention urgent.")):
        flag_parser = sub.add_parser(name, help=help_text)
        _add_profile(flag_parser)
        flag_parser.add_argument("mention_id")
        flag_parser.add_argument("--off", action="store_true", help="Clear the flag instead.")

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        if args.command == "run":
            summary = run_ingestion(profile=args.profile, dry_run=args.dry_run)
            _print_json(summary.model_dump(exclude={"top_negative"}))
            return

        store = open_store(args.profile)
        if args.command == "stats":
            _print_json(get_learning_stats(store).model_dump())
        elif args.command == "summary":
            _print_json(get_mention_stats(store).model_dump())
        elif args.command == "reset-ignored":
            _print_json({"reset_count": reset_ignored(store)})
        elif args.command == "tag":
            _print_json(store.tag(args.mention_id, args.label, tagged_by=args.by).model_dump())
        elif args.command == "untag":
            _print_json(store.untag(args.mention_id).model_dump())
        elif args.command == "ignore":
            _print_json(store.set_ignored(args.mention_id, not args.off).model_dump())
        elif args.command == "urgent":
            _print_json(store.set_urgent(args.mention_id, not args.off).model_dump())
    except ConfigurationError as exc:
        logger.error("Configuration error: %s", exc)
        sys.exit(2)
    except KeyError as exc:
        logger.error("%s", exc.args[0])
        sys.exit(1)
    except PersistenceError as exc:
        logger.error("Store error: %s", exc)
        sys.exit(1)


if __name__ == "__main__":
    main()
