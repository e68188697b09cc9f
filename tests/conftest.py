"""Test fixtures -- fake scanner, fake AI assistant, fake clock, API client."""

import asyncio

import pytest

from allycheck.audit.models import ScanResult
from allycheck.config import AI_KEY_VARS, AuditSettings


def raw_violation(rule_id, impact="moderate", tags=None, nodes=None, **extra):
    record = {
        "id": rule_id,
        "impact": impact,
        "description": f"{rule_id} description",
        "tags": tags if tags is not None else ["wcag2a", "cat.text"],
        "nodes": nodes if nodes is not None else [{"html": "<img src='x.png'>", "target": ["img"]}],
    }
    record.update(extra)
    return record


class FakeClock:
    """Manually advanced clock for the admission controller."""

    def __init__(self, start: float = 1_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeScanner:
    """Returns canned violations and records every URL it was asked to scan."""

    def __init__(self, violations=None, error: Exception | None = None):
        self.violations = violations or []
        self.error = error
        self.urls: list[str] = []

    async def scan(self, url: str) -> ScanResult:
        self.urls.append(url)
        if self.error is not None:
            raise self.error
        return ScanResult(violations=list(self.violations), passes=[{"id": "html-lang"}], duration_ms=12.0)


class FakeAssistant:
    """AI collaborator double. Items listed in fail_ids raise on explain."""

    def __init__(self, fail_ids=(), delays=None, fail_summary=False, fail_plans=False):
        self.fail_ids = set(fail_ids)
        self.delays = delays or {}
        self.fail_summary = fail_summary
        self.fail_plans = fail_plans
        self.explained: list[str] = []

    async def explain_issue(self, violation) -> str:
        await asyncio.sleep(self.delays.get(violation.id, 0))
        self.explained.append(violation.id)
        if violation.id in self.fail_ids:
            raise RuntimeError(f"explanation backend down for {violation.id}")
        return f"Why {violation.id} matters"

    async def improvement_plan(self, issue) -> dict:
        if self.fail_plans:
            raise RuntimeError("remediation backend down")
        return {"summary": f"Fix {issue.id}", "steps": ["step one"], "priority": issue.impact}

    async def summarize(self, url, issues) -> str:
        if self.fail_summary:
            raise RuntimeError("summary backend down")
        return f"{url} has {len(issues)} issues."


@pytest.fixture(autouse=True)
def no_ai_keys(monkeypatch):
    """Keep real provider keys out of tests; AI is opt-in per test."""
    for var in AI_KEY_VARS:
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def settings():
    return AuditSettings(rate_limit_max_requests=10, rate_limit_window_seconds=60)


@pytest.fixture
def sample_violations():
    return [
        raw_violation("image-alt", "critical", tags=["wcag2a", "wcag111", "section508"]),
        raw_violation("region", "minor", tags=["best-practice"]),
        raw_violation("label", "critical", tags=["WCAG2A", "wcag412"]),
    ]


@pytest.fixture
def make_client(settings, clock):
    """Build a TestClient around create_app with injected fakes."""
    from fastapi.testclient import TestClient

    from allycheck.api.gateway import create_app
    from allycheck.api.middleware.rate_limit import AdmissionController

    def _make(scanner=None, assistant=None, max_requests=None):
        admission = AdmissionController(
            max_requests=max_requests or settings.rate_limit_max_requests,
            window_seconds=settings.rate_limit_window_seconds,
            clock=clock,
        )
        app = create_app(
            settings=settings,
            scanner=scanner or FakeScanner(),
            assistant=assistant,
            admission=admission,
        )
        return TestClient(app)

    return _make
