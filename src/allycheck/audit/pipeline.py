"""
Audit pipeline -- one accessibility audit, scan to assembled outcome.

Phase 1: SCAN       -- scanner produces raw violations (request-fatal on failure)
Phase 2: ENRICH     -- normalize records, then prioritize by severity
Phase 3: REPORT     -- score, per-issue remediation, summary (from the ENRICHED
                       list in scan order, not the prioritized one)
Phase 4: VALIDATE   -- validation score, sanity check, comparison guidance
Phase 5: ANNOTATE   -- optional AI explanations for the top prioritized issues

Only the scan can fail the request. Phases 3 and 5 degrade per item.
"""

import logging
import time
import uuid
from datetime import datetime, timezone
from typing import Any, Protocol, runtime_checkable

from ..config import AuditSettings
from ..errors import ScanFailure
from .annotator import Annotator
from .comparison import compare
from .enricher import enrich_violations
from .models import AuditOutcome, ScanResult, ScanSnapshot
from .prioritizer import prioritize
from .report_builder import ReportBuilder
from .validator import sanity_check, validate_report

logger = logging.getLogger(__name__)


@runtime_checkable
class Scanner(Protocol):
    """Anything that can scan a URL for accessibility violations."""

    async def scan(self, url: str) -> ScanResult: ...


def new_request_id() -> str:
    return f"scan-{int(time.time() * 1000)}-{uuid.uuid4().hex[:9]}"


class AuditPipeline:
    """
    Usage:
        pipeline = AuditPipeline(scanner=AxeScanner(), assistant=create_assistant())
        outcome = await pipeline.run("https://example.com")
        outcome.report.accessibility_score

    `assistant` may be None (no AI key): remediation is then None per issue,
    the summary is templated and annotation is skipped.
    """

    def __init__(
        self,
        scanner: Scanner | None = None,
        assistant: Any = None,
        settings: AuditSettings | None = None,
    ):
        self.settings = settings or AuditSettings()
        self.scanner = scanner
        self.assistant = assistant
        self.builder = ReportBuilder(
            remediation=assistant,
            summarizer=assistant,
            max_concurrency=self.settings.llm_max_concurrency,
        )
        self.annotator = Annotator(
            explainer=assistant, limit=self.settings.ai_annotation_limit
        )

    @property
    def ai_enabled(self) -> bool:
        return self.annotator.enabled

    async def run(self, url: str, request_id: str | None = None) -> AuditOutcome:
        """Scan url and audit the result. Raises ScanFailure if the scan fails."""
        if self.scanner is None:
            raise ScanFailure("No scanner configured", url=url)

        request_id = request_id or new_request_id()
        start = time.time()

        logger.info(f"[Pipeline] {request_id}: Phase 1: scanning {url}")
        try:
            scan = await self.scanner.scan(url)
        except ScanFailure:
            raise
        except Exception as e:
            raise ScanFailure(str(e) or type(e).__name__, url=url) from e

        if not isinstance(scan, ScanResult):
            scan = ScanResult.from_mapping(scan)
        return await self.analyze(url, scan, request_id=request_id, started_at=start)

    async def analyze(
        self,
        url: str,
        scan: ScanResult,
        request_id: str | None = None,
        started_at: float | None = None,
    ) -> AuditOutcome:
        """Run phases 2-5 over an existing scan result."""
        request_id = request_id or new_request_id()
        start = started_at or time.time()

        logger.info(
            f"[Pipeline] {request_id}: Phase 2: enriching {len(scan.violations)} violations"
        )
        enriched = enrich_violations(scan.violations)
        prioritized = prioritize(enriched)

        logger.info(f"[Pipeline] {request_id}: Phase 3: building report")
        snapshot = ScanSnapshot(
            url=url,
            violations=enriched,
            passes=scan.passes,
            incomplete=scan.incomplete,
            timestamp=datetime.now(timezone.utc).isoformat(),
            request_id=request_id,
        )
        report = await self.builder.build(snapshot)

        logger.info(f"[Pipeline] {request_id}: Phase 4: validating report")
        validation = validate_report(report)
        sanity = sanity_check(report)
        comparison = compare(report)
        if validation.overall_quality == "poor":
            logger.warning(
                f"[Pipeline] {request_id}: audit validation quality is poor "
                f"(score={validation.validation_score})"
            )

        if self.annotator.enabled and prioritized:
            logger.info(f"[Pipeline] {request_id}: Phase 5: AI annotation")
        annotations = await self.annotator.annotate(prioritized, request_id=request_id)

        duration_ms = (time.time() - start) * 1000
        logger.info(
            f"[Pipeline] {request_id}: complete: {len(enriched)} violations, "
            f"score={report.accessibility_score}, {duration_ms:.0f}ms"
        )
        return AuditOutcome(
            request_id=request_id,
            report=report,
            prioritized=prioritized,
            annotations=annotations,
            validation=validation,
            sanity=sanity,
            comparison=comparison,
            scan=scan,
            duration_ms=duration_ms,
        )
