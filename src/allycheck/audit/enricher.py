"""
Violation Enricher -- adapts raw scanner records to EnrichedViolation.

Scanners disagree on field names (axe-core says `impact`, others `severity`;
`nodes` vs `targets`), so every field is read through one ordered fallback
table: the first non-empty source wins, otherwise the default applies.

enrich_violations() is total. A record that cannot be normalized becomes a
minimal {id, raw} violation instead of failing the batch.
"""

import logging
import re
from collections.abc import Mapping, Sequence
from typing import Any

from .models import EnrichedViolation

logger = logging.getLogger(__name__)

DEFAULT_IMPACT = "moderate"
KNOWN_IMPACTS = {"critical", "serious", "high", "moderate", "low", "minor"}
WCAG_TAG_RE = re.compile(r"^wcag", re.IGNORECASE)

# field -> source keys, in priority order
FIELD_SOURCES: dict[str, tuple[str, ...]] = {
    "id": ("id", "ruleId"),
    "description": ("description", "help", "message"),
    "impact": ("impact", "severity"),
    "nodes": ("nodes", "targets"),
    "tags": ("tags",),
}


def _first_text(raw: Mapping, keys: Sequence[str]) -> str:
    for key in keys:
        value = raw.get(key)
        if value is None or isinstance(value, (dict, list, tuple, bool)):
            continue
        text = str(value).strip()
        if text:
            return text
    return ""


def _first_list(raw: Mapping, keys: Sequence[str]) -> list:
    for key in keys:
        value = raw.get(key)
        if isinstance(value, (list, tuple)) and value:
            return list(value)
    return []


def normalize_impact(value: str) -> str:
    impact = value.strip().lower()
    return impact if impact in KNOWN_IMPACTS else DEFAULT_IMPACT


def extract_wcag_tags(tags: Sequence[Any]) -> list[str]:
    """Keep only WCAG reference tags, in source order, without duplicates."""
    seen: list[str] = []
    for tag in tags:
        if isinstance(tag, str) and WCAG_TAG_RE.match(tag) and tag not in seen:
            seen.append(tag)
    return seen


def enrich_violation(raw: Any, index: int) -> EnrichedViolation:
    """Normalize one raw record. Raises on records that are not mappings."""
    if not isinstance(raw, Mapping):
        raise TypeError(f"expected a mapping, got {type(raw).__name__}")

    return EnrichedViolation(
        id=_first_text(raw, FIELD_SOURCES["id"]) or f"violation-{index}",
        position=index,
        description=_first_text(raw, FIELD_SOURCES["description"]),
        impact=normalize_impact(_first_text(raw, FIELD_SOURCES["impact"])),
        nodes=_first_list(raw, FIELD_SOURCES["nodes"]),
        wcag=extract_wcag_tags(_first_list(raw, FIELD_SOURCES["tags"])),
        raw=raw,
    )


def _minimal(raw: Any, index: int) -> EnrichedViolation:
    rule_id = ""
    if isinstance(raw, Mapping):
        try:
            rule_id = _first_text(raw, FIELD_SOURCES["id"])
        except Exception:
            rule_id = ""
    return EnrichedViolation(id=rule_id or f"violation-{index}", position=index, raw=raw)


def enrich_violations(raw_violations: Sequence[Any] | None) -> list[EnrichedViolation]:
    """Enrich every record; same length and order as the input."""
    enriched = []
    for index, raw in enumerate(raw_violations or []):
        try:
            enriched.append(enrich_violation(raw, index))
        except Exception as e:
            logger.debug(f"[Enricher] Record {index} degraded to minimal form: {e}")
            enriched.append(_minimal(raw, index))
    return enriched
