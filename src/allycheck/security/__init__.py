"""Security utilities -- target URL validation and prompt injection defense."""
from .prompt_guard import wrap_user_content, detect_injection_attempt, sanitize_for_prompt
from .validators import (
    ValidationError,
    ensure_scheme,
    normalize_target_url,
    validate_length,
    validate_not_empty,
    validate_url,
)
