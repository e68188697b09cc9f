"""Pydantic models for API request/response contracts."""
from .requests import ScanRequest
from .responses import (
    AuditReportResponse,
    ErrorResponse,
    HealthResponse,
    IndustryComparisonResponse,
    IssueResponse,
    MetricsResponse,
    PerformanceResponse,
    ReportMetaResponse,
    SanityCheckResponse,
    ScanResponse,
    ValidationResponse,
)
