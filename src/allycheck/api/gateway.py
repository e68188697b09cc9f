"""
API Gateway -- FastAPI application factory.

Creates the FastAPI app with routes, error handlers and the per-process
state (settings, admission controller, audit pipeline, metrics).
This is the entrypoint for uvicorn:

    uvicorn allycheck.api.gateway:create_app --factory --host 0.0.0.0 --port 8000

Or for development:

    uvicorn allycheck.api.gateway:app --reload

Security:
  - CORS restricted to configured origins (default: localhost only)
  - Rate limiting on every scan request
  - Target URLs validated at the boundary (anti-SSRF)
"""

import logging
import os
import time
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .. import __version__
from ..audit import AuditPipeline
from ..config import AuditSettings
from ..llm import create_assistant
from ..scanner import AxeScanner, Scanner
from .middleware.errors import register_error_handlers
from .middleware.rate_limit import AdmissionController
from .routes import health, scan

logger = logging.getLogger(__name__)

DEFAULT_CORS_ORIGINS = [
    "http://localhost:3000",
    "http://localhost:8000",
]


def _get_cors_origins() -> list[str]:
    """Load CORS origins from environment or use safe defaults."""
    origins_env = os.environ.get("CORS_ORIGINS", "")
    if origins_env.strip():
        return [o.strip() for o in origins_env.split(",") if o.strip()]
    return DEFAULT_CORS_ORIGINS


def create_app(
    settings: AuditSettings | None = None,
    scanner: Scanner | None = None,
    assistant: Any = None,
    admission: AdmissionController | None = None,
) -> FastAPI:
    """
    Application factory -- creates and configures the FastAPI app.

    Args:
        settings: Runtime settings (read from the environment if None).
        scanner: Violation producer (headless-Chromium AxeScanner if None).
        assistant: AI collaborator (auto-created when an AI key is set).
        admission: Admission controller (built from settings if None).
    """
    settings = settings or AuditSettings.from_env()

    application = FastAPI(
        title="AllyCheck API",
        description="Accessibility audits with scoring, validation and AI explanations",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    application.add_middleware(
        CORSMiddleware,
        allow_origins=_get_cors_origins(),
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["Content-Type"],
        expose_headers=["Retry-After"],
    )

    if scanner is None:
        scanner = AxeScanner(settings)
    if assistant is None:
        assistant = create_assistant()
    if admission is None:
        admission = AdmissionController(
            max_requests=settings.rate_limit_max_requests,
            window_seconds=settings.rate_limit_window_seconds,
        )

    application.state.settings = settings
    application.state.admission = admission
    application.state.pipeline = AuditPipeline(
        scanner=scanner, assistant=assistant, settings=settings
    )
    application.state.start_time = time.time()
    application.state.metrics = {
        "scans_completed": 0,
        "scans_failed": 0,
        "requests_rejected": 0,
        "total_duration_ms": 0.0,
    }

    register_error_handlers(application)
    application.include_router(health.router, tags=["Health"])
    application.include_router(scan.router, prefix="/api", tags=["Scan"])

    logger.info(
        f"[Gateway] API gateway initialized "
        f"(rate limit {settings.rate_limit_max_requests}/"
        f"{settings.rate_limit_window_seconds}s, "
        f"AI {'on' if application.state.pipeline.ai_enabled else 'off'})"
    )
    return application


app = create_app()
