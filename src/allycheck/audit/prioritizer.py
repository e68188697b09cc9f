"""Remediation Prioritizer -- most severe violations first."""

from .models import EnrichedViolation

SEVERITY_WEIGHTS = {
    "critical": 5,
    "serious": 4,
    "high": 4,
    "moderate": 3,
    "low": 2,
    "minor": 1,
}
DEFAULT_WEIGHT = 2


def severity_weight(impact: str | None) -> int:
    return SEVERITY_WEIGHTS.get((impact or "").lower(), DEFAULT_WEIGHT)


def prioritize(enriched: list[EnrichedViolation]) -> list[EnrichedViolation]:
    """Return a new list sorted by descending severity weight.

    sorted() is stable, so equal-weight violations keep their scan order.
    That order decides which items get AI annotation.
    """
    return sorted(enriched, key=lambda v: severity_weight(v.impact), reverse=True)
