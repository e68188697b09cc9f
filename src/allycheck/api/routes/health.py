"""
Health and metrics endpoints.

  GET /health  -- Liveness probe (always 200 while the process is alive)
  GET /metrics -- Basic operational metrics
"""

import logging
import time

from fastapi import APIRouter, Request

from ... import __version__
from ..models.responses import HealthResponse, MetricsResponse

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def liveness(request: Request) -> HealthResponse:
    """Liveness probe -- returns 200 if the process is running."""
    start_time = getattr(request.app.state, "start_time", time.time())
    return HealthResponse(
        status="healthy",
        version=__version__,
        ai_enabled=request.app.state.pipeline.ai_enabled,
        uptime_seconds=round(time.time() - start_time, 1),
    )


@router.get("/metrics", response_model=MetricsResponse)
async def metrics(request: Request) -> MetricsResponse:
    """Scan counts, rejections and average audit duration since startup."""
    m = request.app.state.metrics
    completed = m["scans_completed"]
    avg_duration = m["total_duration_ms"] / completed if completed > 0 else 0.0
    return MetricsResponse(
        scans_completed=completed,
        scans_failed=m["scans_failed"],
        requests_rejected=m["requests_rejected"],
        average_duration_ms=round(avg_duration, 1),
        tracked_clients=request.app.state.admission.tracked_clients,
    )
