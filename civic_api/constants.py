"""Project-wide constant values."""
from __future__ import annotations

from enum import Enum


class ReportCategory(str, Enum):
    ROADS = "roads"
    LIGHTING = "lighting"
    WASTE = "waste"
    WATER = "water"
    VANDALISM = "vandalism"
    OTHER = "other"


class ReportStatus(str, Enum):
    """Operational lifecycle of a report, moved along by administrators."""

    SUBMITTED = "submitted"
    APPROVED = "approved"
    IN_PROGRESS = "in-progress"
    RESOLVED = "resolved"
    REJECTED = "rejected"


class ApprovalStatus(str, Enum):
    """Moderation state of a report; only approved reports are public."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class VoteType(str, Enum):
    UP = "up"
    DOWN = "down"


class AdminAction(str, Enum):
    APPROVE = "approve"
    REJECT = "reject"


GOOGLE_SIGN_IN_REQUIRED = "This account uses Google sign-in. Please use Google to log in."
INVALID_CREDENTIALS = "Invalid email or password"

__all__ = [
    "ReportCategory",
    "ReportStatus",
    "ApprovalStatus",
    "VoteType",
    "AdminAction",
    "GOOGLE_SIGN_IN_REQUIRED",
    "INVALID_CREDENTIALS",
]
