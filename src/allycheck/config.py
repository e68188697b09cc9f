"""
Runtime settings -- read once from the environment at app/CLI startup.

Every value has a safe default. Malformed values are logged and replaced by
the default instead of failing startup.

Environment:
  RATE_LIMIT_MAX_REQUESTS=10     admissions per client per window
  RATE_LIMIT_WINDOW_SECONDS=60   admission window length
  AI_ANNOTATION_LIMIT=5          top-N prioritized issues sent for explanation
  LLM_MAX_CONCURRENCY=4          parallel remediation calls per request
  SCAN_TIMEOUT_MS=30000          page navigation timeout for the scanner
  AXE_SCRIPT_URL=...             axe-core build injected into scanned pages
  ALLOW_PRIVATE_TARGETS=false    allow scanning private/loopback hosts (dev only)
"""

import logging
import os
from dataclasses import dataclass

logger = logging.getLogger(__name__)

DEFAULT_AXE_SCRIPT_URL = "https://cdn.jsdelivr.net/npm/axe-core@4.10.2/axe.min.js"

AI_KEY_VARS = ("GOOGLE_API_KEY", "GEMINI_API_KEY", "ANTHROPIC_API_KEY", "OPENAI_API_KEY")


def _env_int(name: str, default: int, minimum: int = 1) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning(f"[Config] {name}={raw!r} is not an integer, using {default}")
        return default
    if value < minimum:
        logger.warning(f"[Config] {name}={value} is below {minimum}, using {default}")
        return default
    return value


def _env_flag(name: str) -> bool:
    return os.environ.get(name, "").strip().lower() in ("true", "1", "yes")


def ai_credentials_present() -> bool:
    """True when any supported AI provider key is set."""
    return any(os.environ.get(var, "").strip() for var in AI_KEY_VARS)


@dataclass
class AuditSettings:
    """Tunables for admission, scanning and AI enrichment."""

    rate_limit_max_requests: int = 10
    rate_limit_window_seconds: int = 60
    ai_annotation_limit: int = 5
    llm_max_concurrency: int = 4
    scan_timeout_ms: int = 30_000
    axe_script_url: str = DEFAULT_AXE_SCRIPT_URL
    allow_private_targets: bool = False

    @classmethod
    def from_env(cls) -> "AuditSettings":
        return cls(
            rate_limit_max_requests=_env_int("RATE_LIMIT_MAX_REQUESTS", 10),
            rate_limit_window_seconds=_env_int("RATE_LIMIT_WINDOW_SECONDS", 60),
            ai_annotation_limit=_env_int("AI_ANNOTATION_LIMIT", 5, minimum=0),
            llm_max_concurrency=_env_int("LLM_MAX_CONCURRENCY", 4),
            scan_timeout_ms=_env_int("SCAN_TIMEOUT_MS", 30_000),
            axe_script_url=os.environ.get("AXE_SCRIPT_URL", "").strip()
            or DEFAULT_AXE_SCRIPT_URL,
            allow_private_targets=_env_flag("ALLOW_PRIVATE_TARGETS"),
        )
