"""
Pydantic request models -- the API contract for scan submissions.

  POST /api/scan -> ScanRequest

The URL is deliberately optional and untyped here: a missing or malformed
URL must produce our own 400 messages, not a schema-validation 422.
"""

from typing import Any

from pydantic import BaseModel, Field


class ScanRequest(BaseModel):
    """Submit a URL for an accessibility audit."""

    url: str | None = Field(None, description="Target URL, e.g. example.com or https://example.com")
    options: dict[str, Any] = Field(
        default_factory=dict, description="Reserved for future scan options"
    )
