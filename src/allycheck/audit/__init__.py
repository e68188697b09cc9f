"""
Audit core -- enrichment, prioritization, scoring and validation of scan output.

Components:
  - enrich_violations: raw scanner records -> EnrichedViolation (total)
  - prioritize: stable severity ordering
  - ReportBuilder: score, per-issue remediation, summary
  - validate_report / sanity_check: second-pass quality gates
  - compare: static cross-tool guidance
  - Annotator: optional AI explanations for the top issues
  - AuditPipeline: runs all of the above for one URL
"""

from .annotator import Annotator
from .comparison import compare
from .enricher import enrich_violations
from .models import AuditOutcome, AuditReport, EnrichedViolation, Outcome, ScanResult
from .pipeline import AuditPipeline, new_request_id
from .prioritizer import prioritize
from .report_builder import ReportBuilder, compute_score
from .validator import sanity_check, validate_report

__all__ = [
    "Annotator",
    "AuditOutcome",
    "AuditPipeline",
    "AuditReport",
    "EnrichedViolation",
    "Outcome",
    "ReportBuilder",
    "ScanResult",
    "compare",
    "compute_score",
    "enrich_violations",
    "new_request_id",
    "prioritize",
    "sanity_check",
    "validate_report",
]
