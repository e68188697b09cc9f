"""
Result Validator and Sanity Check -- second-pass checks on a built report.

validate_report() re-scores the report with a small volume penalty
(one point per two issues), so a long list of minor issues reads as lower
quality even when the raw score looks fine. sanity_check() is an independent
structural gate run just before responding.
"""

import logging
import math
from typing import Any

from .models import AuditReport, SanityCheck, ValidationResult

logger = logging.getLogger(__name__)

GOOD_THRESHOLD = 80
FAIR_THRESHOLD = 50


def _numeric_score(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def quality_band(score: int) -> str:
    if score >= GOOD_THRESHOLD:
        return "good"
    if score >= FAIR_THRESHOLD:
        return "fair"
    return "poor"


def validate_report(report: AuditReport) -> ValidationResult:
    issues = list(getattr(report, "detailed_issues", None) or [])
    score = getattr(report, "accessibility_score", None)

    warnings = []
    if not _numeric_score(score) or not math.isfinite(score):
        warnings.append("Missing score")
        score = 0

    validation_score = int(max(0, min(100, int(score) - len(issues) // 2)))

    return ValidationResult(
        overall_quality=quality_band(validation_score),
        validation_score=validation_score,
        issues=[{"id": i.id, "impact": i.impact} for i in issues],
        warnings=warnings,
    )


def sanity_check(report: AuditReport) -> SanityCheck:
    score = getattr(report, "accessibility_score", None)
    passed = _numeric_score(score) and 0 <= score <= 100
    if not passed:
        logger.warning(f"[Validator] Sanity check failed (score={score!r})")
    return SanityCheck(
        passed=passed,
        notes=[] if passed else ["accessibilityScore missing or out of range"],
    )
