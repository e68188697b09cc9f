"""
Rate limiting -- per-client sliding-window admission for scan requests.

Each client id keeps a deque of admission timestamps. A check purges
timestamps older than the window, then admits (recording `now`) or rejects
with the seconds until the oldest in-window timestamp expires.

The AdmissionController is owned by the app (created in create_app, stored on
app.state.admission). It holds one lock per client id; the registry lock is
only taken to create or drop per-client entries, so clients never wait on
each other's checks. Idle clients are swept out at most once per window.

For production with multiple replicas, replace with a Redis-backed limiter.

Configuration via environment (see config.AuditSettings):
  RATE_LIMIT_MAX_REQUESTS=10
  RATE_LIMIT_WINDOW_SECONDS=60
"""

import logging
import math
import threading
import time
from collections import deque
from dataclasses import dataclass, field
from typing import Callable

from fastapi import Request

from ...errors import AdmissionRejected

logger = logging.getLogger(__name__)

DEFAULT_MAX_REQUESTS = 10
DEFAULT_WINDOW_SECONDS = 60.0

CLIENT_ID_HEADERS = ("x-forwarded-for", "x-client-ip", "cf-connecting-ip")


@dataclass
class AdmissionDecision:
    allowed: bool
    retry_after_seconds: int = 0


@dataclass
class _ClientWindow:
    lock: threading.Lock = field(default_factory=threading.Lock)
    timestamps: deque = field(default_factory=deque)
    evicted: bool = False


class AdmissionController:
    """
    Usage:
        admission = AdmissionController(max_requests=10, window_seconds=60)
        decision = admission.check("203.0.113.7")
        if not decision.allowed:
            ...  # reply 429 with decision.retry_after_seconds

    `clock` returns seconds (monotonic by default); tests inject a fake.
    """

    def __init__(
        self,
        max_requests: int = DEFAULT_MAX_REQUESTS,
        window_seconds: float = DEFAULT_WINDOW_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_requests < 1:
            raise ValueError("max_requests must be at least 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")
        self.max_requests = max_requests
        self.window_seconds = float(window_seconds)
        self._clock = clock
        self._clients: dict[str, _ClientWindow] = {}
        self._registry_lock = threading.Lock()
        self._last_sweep = clock()

    def check(self, client_id: str) -> AdmissionDecision:
        now = self._clock()
        self._maybe_sweep(now)
        while True:
            window = self._window_for(client_id)
            with window.lock:
                if window.evicted:
                    continue  # swept between lookup and lock; fetch a fresh entry
                self._purge(window.timestamps, now)
                if len(window.timestamps) >= self.max_requests:
                    oldest = window.timestamps[0]
                    retry_after = max(1, math.ceil(oldest + self.window_seconds - now))
                    return AdmissionDecision(allowed=False, retry_after_seconds=retry_after)
                window.timestamps.append(now)
                return AdmissionDecision(allowed=True)

    @property
    def tracked_clients(self) -> int:
        return len(self._clients)

    def sweep(self) -> int:
        """Drop clients with no admissions inside the window. Returns the count."""
        return self._sweep(self._clock())

    def _window_for(self, client_id: str) -> _ClientWindow:
        window = self._clients.get(client_id)
        if window is None:
            with self._registry_lock:
                window = self._clients.setdefault(client_id, _ClientWindow())
        return window

    def _purge(self, timestamps: deque, now: float) -> None:
        cutoff = now - self.window_seconds
        while timestamps and timestamps[0] <= cutoff:
            timestamps.popleft()

    def _maybe_sweep(self, now: float) -> None:
        if now - self._last_sweep >= self.window_seconds:
            self._sweep(now)

    def _sweep(self, now: float) -> int:
        with self._registry_lock:
            self._last_sweep = now
            idle = []
            for client_id, window in self._clients.items():
                with window.lock:
                    self._purge(window.timestamps, now)
                    if not window.timestamps:
                        window.evicted = True
                        idle.append(client_id)
            for client_id in idle:
                del self._clients[client_id]
        if idle:
            logger.debug(f"[RateLimit] Evicted {len(idle)} idle client(s)")
        return len(idle)


def client_id_from_headers(headers) -> str:
    """First non-empty origin header wins; X-Forwarded-For uses its first hop."""
    for name in CLIENT_ID_HEADERS:
        value = (headers.get(name) or "").strip()
        if value:
            return value.split(",")[0].strip() or value
    return "unknown"


async def check_rate_limit(request: Request) -> str:
    """
    Admission dependency for scan routes.

    Returns the client id when admitted. Raises AdmissionRejected (429) when
    the client has used up its window.
    """
    admission: AdmissionController = request.app.state.admission
    client_id = client_id_from_headers(request.headers)

    decision = admission.check(client_id)
    if not decision.allowed:
        logger.warning(
            f"[RateLimit] Client {client_id} exceeded "
            f"{admission.max_requests}/{admission.window_seconds:.0f}s"
        )
        raise AdmissionRejected(client_id, decision.retry_after_seconds)
    return client_id
