"""
Error responses -- maps request-fatal AuditErrors onto JSON bodies.

  AdmissionRejected -> 429 + Retry-After header + retryAfterSeconds
  InputInvalid      -> 400 with the user-facing message
  ScanFailure       -> 500 with the sanitized message (never raw scanner text)

Scan bodies that fail schema validation (no body, bad JSON, non-string url)
become InputInvalid too, so clients never see the 422 schema dump.
"""

import logging
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ...audit import new_request_id
from ...errors import (
    INVALID_URL_MESSAGE,
    MISSING_URL_MESSAGE,
    AdmissionRejected,
    AuditError,
    InputInvalid,
)
from ..models.responses import ErrorResponse

logger = logging.getLogger(__name__)


def error_response(exc: AuditError) -> JSONResponse:
    headers = {}
    retry_after = None
    if isinstance(exc, AdmissionRejected):
        retry_after = exc.retry_after_seconds
        headers["Retry-After"] = str(retry_after)

    body = ErrorResponse(
        success=False,
        error=exc.public_message,
        request_id=getattr(exc, "request_id", None),
        retry_after_seconds=retry_after,
        timestamp=datetime.now(timezone.utc).isoformat(),
    )
    return JSONResponse(
        status_code=exc.status_code,
        content=body.model_dump(by_alias=True, exclude_none=True),
        headers=headers,
    )


def register_error_handlers(application: FastAPI) -> None:
    @application.exception_handler(AuditError)
    async def handle_audit_error(request: Request, exc: AuditError) -> JSONResponse:
        if isinstance(exc, AdmissionRejected):
            metrics = getattr(request.app.state, "metrics", None)
            if metrics is not None:
                metrics["requests_rejected"] += 1
        return error_response(exc)

    @application.exception_handler(RequestValidationError)
    async def handle_validation_error(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        if not request.url.path.endswith("/scan"):
            return await request_validation_exception_handler(request, exc)

        error = InputInvalid(scan_body_message(exc.errors()))
        error.request_id = new_request_id()
        logger.warning(
            f"[ScanAPI] {error.request_id}: rejected request body: "
            f"{[e.get('type') for e in exc.errors()]}"
        )
        return error_response(error)


def scan_body_message(errors) -> str:
    """A url that is present but not a string is invalid; anything else is missing."""
    for error in errors:
        loc = tuple(error.get("loc") or ())
        if loc[:2] == ("body", "url") and error.get("type") != "missing":
            return INVALID_URL_MESSAGE
    return MISSING_URL_MESSAGE
