"""
Scan API -- audit a URL for accessibility.

  POST /api/scan  -- Run a full audit: { "url": "example.com", "options": {} }
  GET  /api/scan  -- 405 with a usage hint

Security:
  - Admission (rate limiting) runs before any scan work
  - The URL is normalized and vetted (anti-SSRF) before the scanner sees it
  - Scanner error text is never returned; clients get a sanitized message
"""

import logging
import time
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from ...audit import AuditOutcome, AuditPipeline, new_request_id
from ...errors import (
    INVALID_URL_MESSAGE,
    MISSING_URL_MESSAGE,
    AuditError,
    InputInvalid,
    ScanFailure,
    describe_scan_error,
)
from ...security import ValidationError, normalize_target_url
from ..middleware.rate_limit import check_rate_limit
from ..models.requests import ScanRequest
from ..models.responses import (
    AuditReportResponse,
    IndustryComparisonResponse,
    IssueResponse,
    PerformanceResponse,
    ReportMetaResponse,
    SanityCheckResponse,
    ScanResponse,
    ValidationResponse,
)

logger = logging.getLogger(__name__)
router = APIRouter()


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def to_scan_response(outcome: AuditOutcome, total_duration_ms: float | None = None) -> ScanResponse:
    """Merge report, validation, guidance and AI text into the response payload.

    Explanations are joined onto detailed issues by scan position, so the
    prioritized order used for annotation cannot misattribute them.
    """
    report = outcome.report
    explanations = outcome.explanations()
    total = outcome.duration_ms if total_duration_ms is None else total_duration_ms

    return ScanResponse(
        request_id=outcome.request_id,
        success=True,
        audit_report=AuditReportResponse(
            url=report.url,
            accessibility_score=report.accessibility_score,
            detailed_issues=[
                IssueResponse(
                    id=issue.id,
                    description=issue.description,
                    impact=issue.impact,
                    wcag=issue.wcag,
                    nodes=issue.nodes,
                    remediation=issue.remediation,
                    raw=issue.raw,
                    ai_explanation=explanations.get(issue.position),
                )
                for issue in report.detailed_issues
            ],
            summary=report.summary,
            meta=ReportMetaResponse(
                scanned_at=report.meta.scanned_at,
                request_id=report.meta.request_id,
            ),
        ),
        validation=ValidationResponse(
            quality=outcome.validation.overall_quality,
            score=outcome.validation.validation_score,
            sanity_check=SanityCheckResponse(
                passed=outcome.sanity.passed, notes=outcome.sanity.notes
            ),
            validation_issues=outcome.validation.issues,
            validation_warnings=outcome.validation.warnings,
        ),
        industry_comparison=IndustryComparisonResponse(
            url=outcome.comparison.url,
            tools_to_compare_against=outcome.comparison.recommendations,
            expected_variances=outcome.comparison.expected_variances,
            interpretation_guide=outcome.comparison.interpretation_guide,
        ),
        performance=PerformanceResponse(
            total_duration=round(total),
            unit="ms",
            scans={"axeCoreTime": round(outcome.scan.duration_ms)},
        ),
        timestamp=_now(),
    )


@router.post("/scan", response_model=ScanResponse)
async def scan_url(
    scan_request: ScanRequest,
    request: Request,
    client_id: str = Depends(check_rate_limit),
) -> ScanResponse:
    """
    Audit a URL: scan, enrich, score, validate, and (with an AI key) explain
    the top issues.
    """
    start = time.time()
    request_id = new_request_id()
    settings = request.app.state.settings
    pipeline: AuditPipeline = request.app.state.pipeline
    metrics = request.app.state.metrics

    if not scan_request.url or not scan_request.url.strip():
        logger.warning(f"[ScanAPI] {request_id}: missing URL")
        raise InputInvalid(MISSING_URL_MESSAGE)

    try:
        url = normalize_target_url(
            scan_request.url, allow_private=settings.allow_private_targets
        )
    except ValidationError as e:
        logger.warning(f"[ScanAPI] {request_id}: invalid URL {scan_request.url!r}: {e}")
        raise InputInvalid(INVALID_URL_MESSAGE) from e

    logger.info(f"[ScanAPI] {request_id}: starting audit of {url} for {client_id}")

    try:
        outcome = await pipeline.run(url, request_id=request_id)
    except ScanFailure as e:
        metrics["scans_failed"] += 1
        logger.error(
            f"[ScanAPI] {request_id}: scan failed after "
            f"{(time.time() - start) * 1000:.0f}ms: {e.detail}"
        )
        e.request_id = request_id
        raise
    except Exception as e:
        metrics["scans_failed"] += 1
        logger.error(f"[ScanAPI] {request_id}: audit error: {e}", exc_info=True)
        error = AuditError(describe_scan_error(str(e)))
        error.request_id = request_id
        raise error from e

    total_ms = (time.time() - start) * 1000
    metrics["scans_completed"] += 1
    metrics["total_duration_ms"] += total_ms
    return to_scan_response(outcome, total_duration_ms=total_ms)


@router.get("/scan")
async def scan_usage() -> JSONResponse:
    """Scans are POST-only; answer GET with a usage hint."""
    return JSONResponse(
        status_code=405,
        content={
            "error": "Use POST method with { url: '...' }",
            "example": 'POST /api/scan with body: { "url": "https://example.com" }',
            "description": "Performs comprehensive WCAG 2.1 accessibility audit",
        },
        headers={"Allow": "POST"},
    )
