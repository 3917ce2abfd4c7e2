"""Fixed-window request quotas exposed as FastAPI dependencies."""
from __future__ import annotations

import logging
import math
import threading
import time
from typing import Callable

from fastapi import Request

from ..config import get_settings
from ..errors import TooManyRequests

logger = logging.getLogger(__name__)


class FixedWindowRateLimiter:
    """Count hits per key inside consecutive windows of ``window_seconds``.

    State is process-local; every worker enforces its own quota.
    """

    def __init__(
        self,
        *,
        max_requests: int,
        window_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._windows: dict[str, tuple[float, int]] = {}

    def hit(self, key: str) -> float | None:
        """Record a request for ``key``; return seconds to wait when over quota, else ``None``."""

        now = self._clock()
        with self._lock:
            started, count = self._windows.get(key, (now, 0))
            if now - started >= self.window_seconds:
                started, count = now, 0
            if count >= self.max_requests:
                return max(self.window_seconds - (now - started), 0.0)
            self._windows[key] = (started, count + 1)
            self._prune(now)
        return None

    def _prune(self, now: float) -> None:
        if len(self._windows) < 10_000:
            return
        expired = [key for key, (started, _) in self._windows.items() if now - started >= self.window_seconds]
        for key in expired:
            del self._windows[key]

    def reset(self) -> None:
        with self._lock:
            self._windows.clear()


def client_key(request: Request) -> str:
    """Key quotas on the socket address; forwarded headers only count from a trusted proxy."""

    if get_settings().trust_proxy_headers:
        forwarded = (request.headers.get("x-forwarded-for") or "").split(",")[0].strip()
        if forwarded:
            return forwarded
    client = request.client
    return client.host if client else "unknown"


def rate_limit(limiter: FixedWindowRateLimiter, message: str, *, scope: str):
    """Build a dependency enforcing ``limiter`` for the calling client."""

    async def _dependency(request: Request) -> None:
        if not get_settings().rate_limit_enabled:
            return
        retry_after = limiter.hit(f"{scope}:{client_key(request)}")
        if retry_after is not None:
            logger.warning("Rate limit %s exceeded by %s", scope, client_key(request))
            raise TooManyRequests(message, headers={"Retry-After": str(max(1, math.ceil(retry_after)))})

    return _dependency


_settings = get_settings()

general_limiter = FixedWindowRateLimiter(
    max_requests=_settings.rate_limit_max_requests,
    window_seconds=_settings.rate_limit_window_seconds,
)
auth_limiter = FixedWindowRateLimiter(max_requests=5, window_seconds=15 * 60)
report_creation_limiter = FixedWindowRateLimiter(max_requests=10, window_seconds=60 * 60)
vote_limiter = FixedWindowRateLimiter(max_requests=30, window_seconds=60)

limit_api = rate_limit(
    general_limiter, "Too many requests from this IP, please try again later.", scope="api"
)
limit_auth = rate_limit(
    auth_limiter, "Too many authentication attempts, please try again later.", scope="auth"
)
limit_report_creation = rate_limit(
    report_creation_limiter, "Too many reports created, please try again later.", scope="reports"
)
limit_votes = rate_limit(vote_limiter, "Too many votes, please slow down.", scope="votes")


__all__ = [
    "FixedWindowRateLimiter",
    "client_key",
    "rate_limit",
    "general_limiter",
    "auth_limiter",
    "report_creation_limiter",
    "vote_limiter",
    "limit_api",
    "limit_auth",
    "limit_report_creation",
    "limit_votes",
]
