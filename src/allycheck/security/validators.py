"""
Input Validators - checks applied to the scan target before any work starts.

Parse at the boundary: the URL a client submits is trimmed, given a scheme,
parsed and vetted here. Nothing downstream sees the raw string.
"""

import ipaddress
import logging
import re
from urllib.parse import urlparse

logger = logging.getLogger(__name__)

ALLOWED_URL_SCHEMES = {"http", "https"}
BLOCKED_HOSTNAMES = {"localhost", "metadata.google.internal"}
MAX_URL_LENGTH = 2048

_HOSTNAME_RE = re.compile(r"^[a-z0-9_]([a-z0-9_-]*[a-z0-9_])?(\.[a-z0-9_]([a-z0-9_-]*[a-z0-9_])?)*\.?$")
_SCHEME_RE = re.compile(r"^[a-z][a-z0-9+.-]*://", re.IGNORECASE)


class ValidationError(ValueError):
    """Raised when input validation fails. Contains a user-friendly message."""

    pass


def validate_not_empty(value: str | None, field_name: str = "input") -> str:
    """Validate that a string is present and not whitespace-only."""
    if not value or not value.strip():
        raise ValidationError(f"{field_name} cannot be empty")
    return value.strip()


def validate_length(
    value: str,
    field_name: str = "input",
    min_length: int = 0,
    max_length: int = 100_000,
) -> str:
    """Validate string length is within bounds."""
    if len(value) < min_length:
        raise ValidationError(f"{field_name} must be at least {min_length} characters")
    if len(value) > max_length:
        raise ValidationError(f"{field_name} must be at most {max_length} characters")
    return value


def _is_private_ip(hostname: str) -> bool:
    """Check if a hostname is a literal private/loopback/link-local address."""
    try:
        addr = ipaddress.ip_address(hostname)
        return addr.is_private or addr.is_loopback or addr.is_link_local
    except ValueError:
        return False


def _is_valid_hostname(hostname: str) -> bool:
    try:
        ipaddress.ip_address(hostname)
        return True
    except ValueError:
        pass
    return len(hostname) <= 253 and bool(_HOSTNAME_RE.match(hostname))


def ensure_scheme(url: str) -> str:
    """Trim the input and prepend https:// when no scheme is given.

    An explicit non-http scheme (ftp://, file://) is left alone so that
    validate_url() rejects it.
    """
    url = url.strip()
    if not _SCHEME_RE.match(url):
        url = "https://" + url
    return url


def validate_url(
    url: str,
    field_name: str = "url",
    allow_private: bool = False,
) -> str:
    """
    Validate a URL for a safe outbound scan (anti-SSRF).

    Blocks:
      - Non-http/https schemes
      - Missing or syntactically invalid hostnames, bad ports
      - Private IPs, loopback and link-local addresses (cloud metadata)
      - Known dangerous hostnames (localhost, metadata.google.internal)

    Args:
        url: The URL to validate.
        field_name: Field name for error messages.
        allow_private: If True, skip private address checks (local dev only).

    Returns:
        The validated URL string.

    Raises:
        ValidationError: If the URL is malformed or unsafe.
    """
    if not url or not url.strip():
        raise ValidationError(f"{field_name} cannot be empty")
    url = url.strip()
    validate_length(url, field_name, max_length=MAX_URL_LENGTH)

    try:
        parsed = urlparse(url)
        hostname = parsed.hostname
        _ = parsed.port  # raises on a non-numeric or out-of-range port
    except ValueError as e:
        raise ValidationError(f"{field_name} could not be parsed: {e}") from e

    if parsed.scheme.lower() not in ALLOWED_URL_SCHEMES:
        raise ValidationError(
            f"{field_name} must use http or https (got '{parsed.scheme}')"
        )

    if not hostname:
        raise ValidationError(f"{field_name} must include a hostname")

    hostname_lower = hostname.lower()
    if not _is_valid_hostname(hostname_lower):
        raise ValidationError(f"{field_name} has an invalid hostname")

    if not allow_private:
        if hostname_lower in BLOCKED_HOSTNAMES:
            raise ValidationError(f"{field_name} cannot point to {hostname_lower}")
        if _is_private_ip(hostname_lower):
            raise ValidationError(
                f"{field_name} cannot point to private/internal addresses"
            )
        if hostname_lower.endswith(".internal"):
            raise ValidationError(f"{field_name} cannot point to internal hostnames")

    logger.debug(f"[Validators] URL validated: {parsed.scheme}://{hostname_lower}")
    return url


def normalize_target_url(raw: str | None, allow_private: bool = False) -> str:
    """Turn user input like ' example.com ' into a vetted 'https://example.com'."""
    value = validate_not_empty(raw, "url")
    return validate_url(ensure_scheme(value), "url", allow_private=allow_private)
