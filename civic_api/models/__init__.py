"""Convenience exports for ORM models."""
from .report import Report
from .user import User
from .vote import Vote

__all__ = [
    "Report",
    "User",
    "Vote",
]
