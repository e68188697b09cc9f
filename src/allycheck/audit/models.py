"""
Audit data models -- everything the pipeline passes between stages.

All of these live for one request and are discarded after the response.
Raw scanner records are kept untouched on `raw` for traceability.
"""

from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

T = TypeVar("T")


# =============================================================================
# BEST-EFFORT RESULTS
# =============================================================================


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """Result of an optional collaborator call: a value, or unavailable.

    Merging code switches on `available` instead of catching exceptions.
    """

    value: T | None = None
    available: bool = False
    reason: str = ""

    @classmethod
    def ok(cls, value: T) -> "Outcome[T]":
        return cls(value=value, available=True)

    @classmethod
    def unavailable(cls, reason: str) -> "Outcome[T]":
        return cls(value=None, available=False, reason=reason)

    def value_or(self, default: Any) -> Any:
        return self.value if self.available else default


# =============================================================================
# SCAN INPUT
# =============================================================================


@dataclass
class ScanResult:
    """What the scan collaborator produced, missing parts defaulted to []."""

    violations: list[Any] = field(default_factory=list)
    passes: list[Any] = field(default_factory=list)
    incomplete: list[Any] = field(default_factory=list)
    duration_ms: float = 0.0

    @classmethod
    def from_mapping(cls, data: Any, duration_ms: float = 0.0) -> "ScanResult":
        data = data if isinstance(data, dict) else {}
        return cls(
            violations=list(data.get("violations") or []),
            passes=list(data.get("passes") or []),
            incomplete=list(data.get("incomplete") or []),
            duration_ms=duration_ms,
        )


@dataclass
class EnrichedViolation:
    """A raw violation normalized to one canonical shape."""

    id: str
    position: int  # index in the scanner's violation list; join key for assembly
    description: str = ""
    impact: str = "moderate"
    nodes: list[Any] = field(default_factory=list)
    wcag: list[str] = field(default_factory=list)
    raw: Any = None


@dataclass
class ScanSnapshot:
    """Input to the report builder: the enriched scan of one URL."""

    url: str
    violations: list[EnrichedViolation] = field(default_factory=list)
    passes: list[Any] = field(default_factory=list)
    incomplete: list[Any] = field(default_factory=list)
    timestamp: str = ""
    request_id: str = ""


# =============================================================================
# REPORT
# =============================================================================


@dataclass
class DetailedIssue:
    """One report line, derived 1:1 from an enriched violation."""

    id: str
    position: int
    description: str
    impact: str
    wcag: list[str] = field(default_factory=list)
    nodes: list[Any] = field(default_factory=list)
    remediation: dict | None = None  # None when no remediation source answered
    raw: Any = None


@dataclass
class ReportMeta:
    scanned_at: str = ""
    request_id: str = ""


@dataclass
class AuditReport:
    url: str
    accessibility_score: Any  # int in [0, 100] when built here; checked downstream
    detailed_issues: list[DetailedIssue] = field(default_factory=list)
    summary: str = ""
    meta: ReportMeta = field(default_factory=ReportMeta)


# =============================================================================
# QUALITY CHECKS
# =============================================================================


@dataclass
class ValidationResult:
    overall_quality: str
    validation_score: int
    issues: list[dict] = field(default_factory=list)
    # Each: {"id": str, "impact": str}
    warnings: list[str] = field(default_factory=list)


@dataclass
class SanityCheck:
    passed: bool
    notes: list[str] = field(default_factory=list)


@dataclass
class ComparisonGuidance:
    url: str
    recommendations: list[str] = field(default_factory=list)
    expected_variances: str = ""
    interpretation_guide: str = ""


# =============================================================================
# AI ANNOTATION
# =============================================================================


@dataclass
class Annotation:
    """A prioritized violation plus the outcome of its explanation call."""

    violation: EnrichedViolation
    explanation: Outcome[str] = field(
        default_factory=lambda: Outcome.unavailable("not requested")
    )


# =============================================================================
# PIPELINE OUTPUT
# =============================================================================


@dataclass
class AuditOutcome:
    """Everything response assembly needs for one audited URL."""

    request_id: str
    report: AuditReport
    prioritized: list[EnrichedViolation]
    annotations: list[Annotation]
    validation: ValidationResult
    sanity: SanityCheck
    comparison: ComparisonGuidance
    scan: ScanResult
    duration_ms: float = 0.0

    def explanations(self) -> dict[int, str]:
        """Available AI explanations keyed by scan position."""
        return {
            a.violation.position: a.explanation.value
            for a in self.annotations
            if a.explanation.available
        }

    def explanation_for(self, issue: DetailedIssue) -> str | None:
        return self.explanations().get(issue.position)
