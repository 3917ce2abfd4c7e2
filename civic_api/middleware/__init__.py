"""Middleware exports."""
from __future__ import annotations

from .rate_limit import (
    FixedWindowRateLimiter,
    limit_api,
    limit_auth,
    limit_report_creation,
    limit_votes,
)

__all__ = [
    "FixedWindowRateLimiter",
    "limit_api",
    "limit_auth",
    "limit_report_creation",
    "limit_votes",
]
