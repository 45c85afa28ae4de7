"""Per-client attempt limits for the login and register endpoints."""
from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict

from fastapi import HTTPException, Request

logger = logging.getLogger(__name__)

MSG_RATE_LIMITED = "Too many attempts. Please try again shortly."


@dataclass
class _Window:
    hits: int
    closes_at: float


class RateLimiter:
    """
    Fixed-window attempt counter keyed by ``scope:client``.

    Windows that have closed are dropped on every check, so the table only
    holds clients seen within the longest active window.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self.clock = clock
        self._windows: Dict[str, _Window] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._windows)

    def _sweep(self, now: float) -> None:
        closed = [key for key, window in self._windows.items() if window.closes_at <= now]
        for key in closed:
            del self._windows[key]

    def check(self, key: str, limit: int, window_seconds: int) -> None:
        now = self.clock()
        with self._lock:
            self._sweep(now)
            window = self._windows.get(key)
            if window is None:
                window = self._windows[key] = _Window(hits=0, closes_at=now + window_seconds)
            window.hits += 1
            hits = window.hits
        if hits > limit:
            logger.warning("Rate limit exceeded for %s", key)
            raise HTTPException(429, MSG_RATE_LIMITED)


def client_address(request: Request, *, trust_forwarded: bool = False) -> str:
    """Peer address, or the first X-Forwarded-For hop when a proxy is trusted."""
    if trust_forwarded:
        forwarded = request.headers.get("x-forwarded-for", "").split(",")[0].strip()
        if forwarded:
            return forwarded
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


def rate_limit_ip(request: Request, scope: str, *, limit: int, window_seconds: int) -> None:
    limiter = getattr(request.app.state, "rate_limiter", None)
    if limiter is None:
        return
    settings = getattr(request.app.state, "settings", None)
    trust_forwarded = bool(settings and settings.trust_forwarded_for)
    limiter.check(f"{scope}:{client_address(request, trust_forwarded=trust_forwarded)}", limit, window_seconds)
