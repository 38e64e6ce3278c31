"""Unit tests for the Markdown run report and its HTML conversion."""

from datetime import UTC, datetime

from mentionwatch.emailer import md_to_html
from mentionwatch.models import CandidateError, RunSummary
from mentionwatch.override import apply_tag
from mentionwatch.report import render_report
from tests.helpers import make_mention

NOW = datetime(2024, 3, 5, 8, 0, tzinfo=UTC)


class TestRenderReport:
    def test_counts_and_top_negative(self) -> None:
        low = make_mention("t3_low", score=5, label="negative", body="lifex is a scam")
        tagged = apply_tag(make_mention("t3_tag", score=50), "negative", "alice", NOW)
        summary = RunSummary(
            new_mentions=2,
            updated_mentions=1,
            total_processed=4,
            top_negative=[tagged, low],
            errors=[CandidateError(candidate_id="t3_bad", reason="invalid record (permalink)")],
        )
        text = render_report(summary, "lifex", now=NOW)

        assert "# Mention report: lifex" in text
        assert "2024-03-05 08:00 UTC" in text
        assert "**New mentions:** 2" in text
        assert "**1** (negative)" in text
        assert "**5** (negative)" in text
        assert "https://www.reddit.com/r/longevity/comments/t3_low/" in text
        assert "`t3_bad`" in text

    def test_empty_run(self) -> None:
        text = render_report(RunSummary(), "lifex", now=NOW)
        assert "Nothing below the negative threshold" in text
        assert "## Errors" not in text

    def test_html_conversion_styles_headings(self) -> None:
        html = md_to_html(render_report(RunSummary(), "lifex", now=NOW))
        assert '<h1 style="' in html
        assert "Mention report: lifex" in html
