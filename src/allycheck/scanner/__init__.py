"""
Scanner -- the browser-side producer of raw accessibility violations.

Anything with `async scan(url) -> ScanResult` can stand in for AxeScanner
(tests pass fakes; other engines can be plugged into create_app()).
"""

from ..audit.models import ScanResult
from ..audit.pipeline import Scanner
from .axe import AxeScanner

__all__ = ["AxeScanner", "Scanner", "ScanResult"]
