"""Vote ledger: one vote per user per report, counts recomputed from the ledger."""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..constants import VoteType
from ..models import Report, User, Vote
from .report_service import get_visible_report, serialize_report
from .user_service import commit_changes

logger = logging.getLogger(__name__)


def recount_votes(db: Session, report: Report) -> tuple[int, int]:
    """Count every ledger row for ``report`` and overwrite its cached totals."""

    vote_types = db.scalars(select(Vote.vote_type).where(Vote.report_id == report.id)).all()
    upvotes = sum(1 for vote_type in vote_types if vote_type == VoteType.UP.value)
    downvotes = sum(1 for vote_type in vote_types if vote_type == VoteType.DOWN.value)

    report.upvotes = upvotes
    report.downvotes = downvotes
    report.updated_at = datetime.now(timezone.utc)
    commit_changes(db, failure="Failed to update vote counts")
    return upvotes, downvotes


def cast_vote(db: Session, report_id: UUID, *, user: User, vote_type: VoteType) -> dict[str, Any]:
    """Toggle, flip or record ``user``'s vote on a report and return the refreshed report.

    Repeating the same vote removes it; the opposite vote replaces it.
    """

    report = get_visible_report(db, report_id, user)

    existing = db.scalar(select(Vote).where(Vote.report_id == report.id, Vote.user_id == user.id))
    current_vote: str | None
    if existing is None:
        db.add(Vote(report_id=report.id, user_id=user.id, vote_type=vote_type.value))
        current_vote = vote_type.value
    elif existing.vote_type == vote_type.value:
        db.delete(existing)
        current_vote = None
    else:
        existing.vote_type = vote_type.value
        current_vote = vote_type.value

    commit_changes(db, failure="Failed to record vote", conflict="Vote already recorded, please retry")

    upvotes, downvotes = recount_votes(db, report)
    db.refresh(report)
    logger.debug("Report %s now at %d up / %d down", report.id, upvotes, downvotes)
    return serialize_report(report, user_vote=current_vote)


__all__ = ["cast_vote", "recount_votes"]
