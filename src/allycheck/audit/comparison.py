"""Comparison Advisor -- static guidance on reading the score next to other tools."""

from .models import AuditReport, ComparisonGuidance

CROSS_CHECK_TOOLS = ["axe-core", "WAVE", "Lighthouse"]

EXPECTED_VARIANCES = (
    "Different tools may surface additional or fewer issues; "
    "use multiple tools for coverage."
)

INTERPRETATION_GUIDE = (
    "Higher score = better accessibility. Focus on 'critical/serious' items first."
)


def compare(report: AuditReport) -> ComparisonGuidance:
    return ComparisonGuidance(
        url=getattr(report, "url", "") or "",
        recommendations=list(CROSS_CHECK_TOOLS),
        expected_variances=EXPECTED_VARIANCES,
        interpretation_guide=INTERPRETATION_GUIDE,
    )
