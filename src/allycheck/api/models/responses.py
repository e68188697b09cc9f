"""
Pydantic response models -- what the API returns.

Field names are snake_case in Python and camelCase on the wire
(alias_generator); FastAPI serializes response models by alias.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# =============================================================================
# AUDIT REPORT
# =============================================================================


class IssueResponse(ApiModel):
    """One detailed issue, with its AI explanation merged in when available."""

    id: str
    description: str = ""
    impact: str = "moderate"
    wcag: list[str] = Field(default_factory=list)
    nodes: list[Any] = Field(default_factory=list)
    remediation: dict[str, Any] | None = None
    raw: Any = None
    ai_explanation: str | None = None


class ReportMetaResponse(ApiModel):
    scanned_at: str = ""
    request_id: str = ""


class AuditReportResponse(ApiModel):
    url: str
    accessibility_score: int
    detailed_issues: list[IssueResponse] = Field(default_factory=list)
    summary: str = ""
    meta: ReportMetaResponse = Field(default_factory=ReportMetaResponse)


# =============================================================================
# VALIDATION & GUIDANCE
# =============================================================================


class SanityCheckResponse(ApiModel):
    passed: bool
    notes: list[str] = Field(default_factory=list)


class ValidationResponse(ApiModel):
    quality: str
    score: int
    sanity_check: SanityCheckResponse
    validation_issues: list[dict[str, Any]] = Field(default_factory=list)
    validation_warnings: list[str] = Field(default_factory=list)


class IndustryComparisonResponse(ApiModel):
    url: str = ""
    tools_to_compare_against: list[str] = Field(default_factory=list)
    expected_variances: str = ""
    interpretation_guide: str = ""


class PerformanceResponse(ApiModel):
    total_duration: int = 0
    unit: str = "ms"
    scans: dict[str, int] = Field(default_factory=dict)


# =============================================================================
# SCAN RESULT
# =============================================================================


class ScanResponse(ApiModel):
    """Complete audit returned to the client."""

    request_id: str
    success: bool = True
    audit_report: AuditReportResponse
    validation: ValidationResponse
    industry_comparison: IndustryComparisonResponse
    performance: PerformanceResponse
    timestamp: str


# =============================================================================
# HEALTH
# =============================================================================


class HealthResponse(ApiModel):
    status: str = "healthy"
    version: str = "0.1.0"
    ai_enabled: bool = False
    uptime_seconds: float = 0.0


class MetricsResponse(ApiModel):
    scans_completed: int = 0
    scans_failed: int = 0
    requests_rejected: int = 0
    average_duration_ms: float = 0.0
    tracked_clients: int = 0


# =============================================================================
# COMMON
# =============================================================================


class ErrorResponse(ApiModel):
    """Standard error body. retry_after_seconds is only set on 429."""

    success: bool = False
    error: str
    request_id: str | None = None
    retry_after_seconds: int | None = None
    timestamp: str = ""
