"""
Request-fatal errors and their user-facing messages.

Only these reach the client. Degraded enrichment and skipped AI annotations
are absorbed where they happen and never raised.

  AdmissionRejected -- 429, client retries after retry_after_seconds
  InputInvalid      -- 400, client fixes the URL and resubmits
  ScanFailure       -- 500, target could not be reached or rendered

Scanner error text is never returned verbatim: describe_scan_error() maps it
onto a fixed set of messages by substring signature.
"""

import re

from .security.validators import ValidationError

GENERIC_FAILURE_MESSAGE = "Failed to complete accessibility audit"
MISSING_URL_MESSAGE = "URL is required"
INVALID_URL_MESSAGE = (
    "Invalid URL format. Please enter a valid URL like example.com or https://example.com"
)

# Playwright appends the target URL ("... at https://host/"); hosts must not match signatures.
_URL_RE = re.compile(r"[a-z][a-z0-9+.-]*://\S+", re.IGNORECASE)

# Checked in order; first matching signature wins.
SCAN_ERROR_SIGNATURES: list[tuple[tuple[str, ...], str]] = [
    (
        ("timeout", "timed out"),
        "The website took too long to load. Please try a different URL or a faster website.",
    ),
    (
        ("ERR_NAME_NOT_RESOLVED", "ENOTFOUND"),
        "Could not find that website. Please check the URL and try again.",
    ),
    (
        ("ERR_CONNECTION_REFUSED",),
        "Connection refused. The website may be down or blocked.",
    ),
    (
        ("net::ERR", "ERR::"),
        "Network error. Please check the URL and your internet connection.",
    ),
]


def describe_scan_error(message: str | None) -> str:
    """Map raw error text to a sanitized, user-facing message."""
    text = _URL_RE.sub(" ", message or "").lower()
    for signatures, public_message in SCAN_ERROR_SIGNATURES:
        if any(sig.lower() in text for sig in signatures):
            return public_message
    return GENERIC_FAILURE_MESSAGE


class AuditError(Exception):
    """Base class for errors that end a request with an error response."""

    status_code = 500
    request_id: str | None = None

    @property
    def public_message(self) -> str:
        return str(self)


class AdmissionRejected(AuditError):
    """Client exceeded its admission window."""

    status_code = 429

    def __init__(self, client_id: str, retry_after_seconds: int):
        self.client_id = client_id
        self.retry_after_seconds = retry_after_seconds
        super().__init__(
            f"Too many requests. Please try again in {retry_after_seconds} seconds."
        )


class InputInvalid(AuditError, ValidationError):
    """Missing or unparsable target URL."""

    status_code = 400


class ScanFailure(AuditError):
    """The scan collaborator could not reach or render the target."""

    status_code = 500

    def __init__(self, detail: str, url: str = ""):
        self.detail = detail
        self.url = url
        super().__init__(detail)

    @property
    def public_message(self) -> str:
        return describe_scan_error(self.detail)
