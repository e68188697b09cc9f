"""
Accessibility assistant -- the AI collaborator behind remediation plans,
report summaries and per-issue explanations.

Implements the RemediationSource, SummarySource and Explainer protocols
used by the audit pipeline. Every method raises on failure; the pipeline
decides how to degrade.

Scanned pages are untrusted input: node markup is sanitized, checked for
injection patterns, and wrapped before it reaches a prompt.
"""

import json
import logging
from typing import Any

from ..audit.models import DetailedIssue, EnrichedViolation
from ..config import ai_credentials_present
from ..security.prompt_guard import detect_injection_attempt, sanitize_for_prompt, wrap_user_content
from .client import LLMCallError, LLMClient, Prompt, create_client
from .json_parser import extract_json

logger = logging.getLogger(__name__)

MAX_NODES_IN_PROMPT = 3
MAX_SNIPPET_LENGTH = 2_000
MAX_ISSUES_IN_SUMMARY = 25

SYSTEM_PROMPT = (
    "You are a web accessibility consultant. You explain WCAG failures to "
    "developers and site owners in plain language and give concrete, "
    "code-level fixes. Be brief and specific. Never invent page content."
)


def _node_snippets(nodes: list[Any]) -> str:
    lines = []
    for node in nodes[:MAX_NODES_IN_PROMPT]:
        if isinstance(node, dict):
            html = node.get("html") or ""
            target = node.get("target") or ""
            lines.append(f"- target={target} html={html}")
        else:
            lines.append(f"- {node}")
    text = sanitize_for_prompt("\n".join(lines), max_length=MAX_SNIPPET_LENGTH)
    if detect_injection_attempt(text):
        logger.warning("[Assistant] Page markup contains injection patterns; wrapped as data")
    return wrap_user_content(text) if text else "(no element details)"


def _describe(rule_id: str, impact: str, description: str, wcag: list[str], nodes: list[Any]) -> str:
    return (
        f"Rule: {rule_id}\n"
        f"Impact: {impact}\n"
        f"WCAG: {', '.join(wcag) or 'n/a'}\n"
        f"Description: {sanitize_for_prompt(description, max_length=1_000)}\n"
        f"Affected elements:\n{_node_snippets(nodes)}"
    )


class AccessibilityAssistant:
    """
    Usage:
        assistant = create_assistant()          # None without an AI key
        text = await assistant.explain_issue(violation)
        plan = await assistant.improvement_plan(issue)
        summary = await assistant.summarize(url, issues)
    """

    def __init__(self, llm_client: LLMClient):
        self._llm = llm_client

    @property
    def llm(self) -> LLMClient:
        return self._llm

    async def explain_issue(self, violation: EnrichedViolation) -> str:
        prompt = Prompt(
            system=SYSTEM_PROMPT,
            user_message=(
                _describe(
                    violation.id,
                    violation.impact,
                    violation.description,
                    violation.wcag,
                    violation.nodes,
                )
                + "\n\nExplain in 2-4 sentences who this affects and why it matters, "
                "then give the single most important fix."
            ),
        )
        response = await self._llm.call(prompt, role="explain", temperature=0.4, max_tokens=400)
        text = response.content.strip()
        if not text:
            raise LLMCallError("empty explanation")
        return text

    async def improvement_plan(self, issue: DetailedIssue) -> dict:
        prompt = Prompt(
            system=SYSTEM_PROMPT,
            user_message=(
                _describe(issue.id, issue.impact, issue.description, issue.wcag, issue.nodes)
                + '\n\nReturn JSON only: {"summary": str, "steps": [str, ...], '
                '"priority": "critical|serious|moderate|minor"}'
            ),
        )
        response = await self._llm.call(prompt, role="remediation", temperature=0.2, max_tokens=600)
        data = extract_json(response.content)
        if not isinstance(data, dict):
            logger.debug(f"[Assistant] Non-JSON remediation for {issue.id}, keeping text")
            return {"summary": response.content.strip(), "steps": [], "priority": issue.impact}

        steps = data.get("steps") or []
        return {
            "summary": str(data.get("summary") or "").strip(),
            "steps": [str(s) for s in steps] if isinstance(steps, list) else [str(steps)],
            "priority": str(data.get("priority") or issue.impact),
        }

    async def summarize(self, url: str, issues: list[DetailedIssue]) -> str:
        listed = [
            {"id": i.id, "impact": i.impact, "description": i.description[:200]}
            for i in issues[:MAX_ISSUES_IN_SUMMARY]
        ]
        prompt = Prompt(
            system=SYSTEM_PROMPT,
            user_message=(
                f"Site: {url}\n"
                f"Total issues: {len(issues)}\n"
                f"Issues:\n{wrap_user_content(json.dumps(listed, indent=1), label='ISSUES')}\n\n"
                "Write a 3-5 sentence executive summary of this site's accessibility, "
                "naming the most urgent problems first."
            ),
        )
        response = await self._llm.call(prompt, role="summary", temperature=0.3, max_tokens=500)
        return response.content.strip()


def create_assistant(llm_client: LLMClient | None = None) -> AccessibilityAssistant | None:
    """Build the assistant, or return None when no AI credential is configured."""
    if llm_client is None:
        if not ai_credentials_present():
            logger.info("[Assistant] No AI credential set; AI enrichment disabled")
            return None
        try:
            llm_client = create_client()
        except Exception as e:
            logger.warning(f"[Assistant] LLM client init failed (non-fatal): {e}")
            return None
    return AccessibilityAssistant(llm_client)
