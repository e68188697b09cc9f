"""
Audit Report Builder -- turns an enriched scan into an AuditReport.

Scoring is a flat per-violation penalty: 100 - 8 * count, clamped to [0, 100].
Severity only affects ordering (see prioritizer), never the score.

Remediation suggestions and the narrative summary come from optional
collaborators. Missing or failing collaborators degrade the report
(remediation=None, templated summary); they never fail it.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Protocol, runtime_checkable

from .models import (
    AuditReport,
    DetailedIssue,
    EnrichedViolation,
    Outcome,
    ReportMeta,
    ScanSnapshot,
)

logger = logging.getLogger(__name__)

PENALTY_PER_VIOLATION = 8
DEFAULT_MAX_CONCURRENCY = 4


@runtime_checkable
class RemediationSource(Protocol):
    """Produces a structured fix suggestion for one issue."""

    async def improvement_plan(self, issue: DetailedIssue) -> dict: ...


@runtime_checkable
class SummarySource(Protocol):
    """Produces the narrative summary for a whole report."""

    async def summarize(self, url: str, issues: list[DetailedIssue]) -> str: ...


def clamp_score(value: float) -> int:
    return int(max(0, min(100, value)))


def compute_score(violation_count: int) -> int:
    return clamp_score(100 - PENALTY_PER_VIOLATION * violation_count)


def fallback_summary(issue_count: int) -> str:
    return f"Found {issue_count} accessibility issue(s)."


def _to_issue(violation: EnrichedViolation) -> DetailedIssue:
    return DetailedIssue(
        id=violation.id,
        position=violation.position,
        description=violation.description,
        impact=violation.impact or "moderate",
        wcag=list(violation.wcag),
        nodes=list(violation.nodes),
        remediation=None,
        raw=violation.raw,
    )


class ReportBuilder:
    """
    Builds the scored report for one scan.

    Usage:
        builder = ReportBuilder(remediation=assistant, summarizer=assistant)
        report = await builder.build(snapshot)
    """

    def __init__(
        self,
        remediation: RemediationSource | None = None,
        summarizer: SummarySource | None = None,
        max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
    ):
        self._remediation = remediation
        self._summarizer = summarizer
        self._max_concurrency = max(1, max_concurrency)

    async def build(self, snapshot: ScanSnapshot) -> AuditReport:
        issues = [_to_issue(v) for v in snapshot.violations]

        plans = await self._remediation_outcomes(issues, snapshot.request_id)
        for issue, plan in zip(issues, plans):
            issue.remediation = plan.value_or(None)

        summary = await self._summary_outcome(snapshot.url, issues, snapshot.request_id)

        return AuditReport(
            url=snapshot.url,
            accessibility_score=compute_score(len(snapshot.violations)),
            detailed_issues=issues,
            summary=summary.value_or(fallback_summary(len(issues))),
            meta=ReportMeta(
                scanned_at=snapshot.timestamp
                or datetime.now(timezone.utc).isoformat(),
                request_id=snapshot.request_id,
            ),
        )

    async def _remediation_outcomes(
        self, issues: list[DetailedIssue], request_id: str
    ) -> list[Outcome[dict]]:
        if self._remediation is None:
            return [Outcome.unavailable("no remediation source") for _ in issues]

        semaphore = asyncio.Semaphore(self._max_concurrency)

        async def plan_for(issue: DetailedIssue) -> dict:
            async with semaphore:
                return await self._remediation.improvement_plan(issue)

        results = await asyncio.gather(
            *[plan_for(issue) for issue in issues], return_exceptions=True
        )
        outcomes: list[Outcome[dict]] = []
        for issue, result in zip(issues, results):
            if isinstance(result, BaseException):
                logger.debug(
                    f"[ReportBuilder] {request_id}: remediation unavailable "
                    f"for {issue.id}: {type(result).__name__}"
                )
                outcomes.append(Outcome.unavailable(type(result).__name__))
            else:
                outcomes.append(Outcome.ok(result))
        return outcomes

    async def _summary_outcome(
        self, url: str, issues: list[DetailedIssue], request_id: str
    ) -> Outcome[str]:
        if self._summarizer is None:
            return Outcome.unavailable("no summary source")
        try:
            text = await self._summarizer.summarize(url, issues)
        except Exception as e:
            logger.warning(f"[ReportBuilder] {request_id}: summary unavailable: {e}")
            return Outcome.unavailable(type(e).__name__)
        if not text or not text.strip():
            return Outcome.unavailable("empty summary")
        return Outcome.ok(text.strip())
