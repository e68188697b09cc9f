"""Audit Report Builder -- scoring, summaries, best-effort remediation."""

import pytest
from conftest import FakeAssistant, raw_violation

from allycheck.audit.enricher import enrich_violations
from allycheck.audit.models import ScanSnapshot
from allycheck.audit.report_builder import ReportBuilder, compute_score, fallback_summary


def _snapshot(violations, url="https://example.com"):
    return ScanSnapshot(
        url=url,
        violations=enrich_violations(violations),
        timestamp="2026-01-01T00:00:00+00:00",
        request_id="scan-1-abc",
    )


class TestScore:
    """Flat 8-point penalty per violation, clamped to [0, 100]."""

    def test_score_values(self):
        assert compute_score(0) == 100
        assert compute_score(1) == 92
        assert compute_score(3) == 76
        assert compute_score(12) == 4
        assert compute_score(13) == 0
        assert compute_score(50) == 0


class TestBuildWithoutAi:
    @pytest.mark.asyncio
    async def test_three_violations(self, sample_violations):
        report = await ReportBuilder().build(_snapshot(sample_violations))
        assert report.accessibility_score == 76
        assert report.url == "https://example.com"
        assert [i.id for i in report.detailed_issues] == ["image-alt", "region", "label"]
        assert all(i.remediation is None for i in report.detailed_issues)
        assert report.summary == "Found 3 accessibility issue(s)."
        assert report.meta.request_id == "scan-1-abc"
        assert report.meta.scanned_at == "2026-01-01T00:00:00+00:00"

    @pytest.mark.asyncio
    async def test_no_violations(self):
        report = await ReportBuilder().build(_snapshot([]))
        assert report.accessibility_score == 100
        assert report.detailed_issues == []
        assert report.summary == fallback_summary(0) == "Found 0 accessibility issue(s)."

    @pytest.mark.asyncio
    async def test_wcag_only_tags_on_issues(self):
        report = await ReportBuilder().build(
            _snapshot([raw_violation("label", tags=["cat.forms", "wcag2a", "wcag412"])])
        )
        assert report.detailed_issues[0].wcag == ["wcag2a", "wcag412"]


class TestBuildWithAi:
    @pytest.mark.asyncio
    async def test_remediation_and_summary_from_assistant(self, sample_violations):
        assistant = FakeAssistant()
        builder = ReportBuilder(remediation=assistant, summarizer=assistant)
        report = await builder.build(_snapshot(sample_violations))
        assert report.detailed_issues[0].remediation["summary"] == "Fix image-alt"
        assert report.summary == "https://example.com has 3 issues."
        assert report.accessibility_score == 76

    @pytest.mark.asyncio
    async def test_failing_remediation_degrades_per_item(self, sample_violations):
        assistant = FakeAssistant(fail_plans=True)
        builder = ReportBuilder(remediation=assistant, summarizer=assistant)
        report = await builder.build(_snapshot(sample_violations))
        assert all(i.remediation is None for i in report.detailed_issues)
        assert report.summary == "https://example.com has 3 issues."

    @pytest.mark.asyncio
    async def test_failing_summary_falls_back_to_template(self, sample_violations):
        assistant = FakeAssistant(fail_summary=True)
        builder = ReportBuilder(remediation=assistant, summarizer=assistant)
        report = await builder.build(_snapshot(sample_violations))
        assert report.summary == "Found 3 accessibility issue(s)."
        assert report.detailed_issues[1].remediation is not None

    @pytest.mark.asyncio
    async def test_blank_summary_falls_back_to_template(self):
        class BlankSummary:
            async def summarize(self, url, issues):
                return "   "

        report = await ReportBuilder(summarizer=BlankSummary()).build(_snapshot([{"id": "x"}]))
        assert report.summary == "Found 1 accessibility issue(s)."
