"""Render a run summary as a Markdown digest for the email report."""

from __future__ import annotations

from datetime import UTC, datetime

from mentionwatch.models import Mention, RunSummary

_SNIPPET_CHARS = 200


def _snippet(mention: Mention) -> str:
    text = " ".join(p for p in (mention.title, mention.body) if p).strip()
    text = " ".join(text.split())
    if len(text) > _SNIPPET_CHARS:
        text = text[:_SNIPPET_CHARS].rstrip() + "…"
    return text or "_(no text)_"


def render_report(summary: RunSummary, profile: str, now: datetime | None = None) -> str:
    now = now or datetime.now(UTC)
    lines: list[str] = [
        f"# Mention report: {profile}",
        "",
        f"_Generated {now.strftime('%Y-%m-%d %H:%M UTC')}_",
        "",
        f"- **New mentions:** {summary.new_mentions}",
        f"- **Updated mentions:** {summary.updated_mentions}",
        f"- **Processed:** {summary.total_processed}",
        f"- **Errors:** {len(summary.errors)}",
        "",
    ]

    lines.append("## Most negative")
    lines.append("")
    if not summary.top_negative:
        lines.append("_Nothing below the negative threshold this run._")
    for mention in summary.top_negative:
        url = f"https://www.reddit.com{mention.permalink}"
        lines.append(
            f"- **{mention.effective_score}** ({mention.effective_label}) "
            f"[r/{mention.subreddit}]({url}) by u/{mention.author or '[deleted]'}: "
            f"{_snippet(mention)}"
        )
    lines.append("")

    if summary.errors:
        lines.append("## Errors")
        lines.append("")
        for err in summary.errors:
            lines.append(f"- `{err.candidate_id}`: {err.reason}")
        lines.append("")

    return "\n".join(lines)
