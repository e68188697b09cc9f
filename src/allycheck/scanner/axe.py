"""
AxeScanner -- runs axe-core in headless Chromium via Playwright.

Opens the page, injects axe-core, runs it against the WCAG rule tags and
hands back the untouched violations/passes/incomplete lists. Every failure
(navigation timeout, DNS, refused connection, script injection) surfaces as
ScanFailure carrying the underlying error text; the HTTP layer decides what
the client gets to see.
"""

import asyncio
import logging
import time

from ..config import AuditSettings
from ..errors import ScanFailure
from ..audit.models import ScanResult

logger = logging.getLogger(__name__)

WCAG_RULE_TAGS = ["wcag2a", "wcag2aa", "wcag21a", "wcag21aa", "wcag22aa", "best-practice"]

AXE_RUN_SCRIPT = """
async (tags) => {
  if (!window.axe || !window.axe.run) {
    return { error: 'axe-core failed to load' };
  }
  const res = await window.axe.run(document, {
    resultTypes: ['violations', 'passes', 'incomplete'],
    runOnly: { type: 'tag', values: tags },
  });
  return { violations: res.violations, passes: res.passes, incomplete: res.incomplete };
}
"""


class AxeScanner:
    """
    Usage:
        scanner = AxeScanner(settings)
        result = await scanner.scan("https://example.com")
    """

    def __init__(self, settings: AuditSettings | None = None):
        settings = settings or AuditSettings()
        self._timeout_ms = settings.scan_timeout_ms
        self._axe_url = settings.axe_script_url

    async def scan(self, url: str) -> ScanResult:
        from playwright.async_api import async_playwright

        start = time.time()
        try:
            async with async_playwright() as p:
                browser = await p.chromium.launch(headless=True, args=["--no-sandbox"])
                try:
                    page = await browser.new_page()
                    page.set_default_timeout(self._timeout_ms)
                    await page.goto(url, wait_until="load", timeout=self._timeout_ms)
                    await page.add_script_tag(url=self._axe_url)
                    # evaluate() ignores the page default timeout
                    try:
                        raw = await asyncio.wait_for(
                            page.evaluate(AXE_RUN_SCRIPT, WCAG_RULE_TAGS),
                            timeout=self._timeout_ms / 1000,
                        )
                    except asyncio.TimeoutError:
                        raise ScanFailure(
                            f"axe-core run timed out after {self._timeout_ms}ms", url=url
                        )
                finally:
                    try:
                        await browser.close()
                    except Exception as e:
                        logger.debug(f"[Scanner] Error closing browser: {e}")
        except ScanFailure:
            raise
        except Exception as e:
            logger.warning(f"[Scanner] Scan of {url} failed: {type(e).__name__}: {e}")
            raise ScanFailure(str(e) or type(e).__name__, url=url) from e

        if isinstance(raw, dict) and raw.get("error"):
            raise ScanFailure(str(raw["error"]), url=url)

        duration_ms = (time.time() - start) * 1000
        result = ScanResult.from_mapping(raw, duration_ms=duration_ms)
        logger.info(
            f"[Scanner] {url}: {len(result.violations)} violations, "
            f"{len(result.passes)} passes ({duration_ms:.0f}ms)"
        )
        return result
