"""User directory backed by PostgreSQL."""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..constants import ApprovalStatus, ReportStatus
from ..errors import Conflict, InternalError, NotFound
from ..models import Report, User, Vote
from .storage_service import delete_stored_file

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    return email.strip().lower()


def commit_changes(db: Session, *, failure: str, conflict: str | None = None) -> None:
    """Commit the session, translating database failures into API errors."""

    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        if conflict:
            raise Conflict(conflict) from exc
        logger.exception("%s", failure)
        raise InternalError(failure) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("%s", failure)
        raise InternalError(failure) from exc


def serialize_user(user: User) -> dict[str, Any]:
    return {
        "id": user.id,
        "email": user.email,
        "name": user.name,
        "avatar": user.avatar_url,
        "city": user.city,
        "country": user.country,
        "google_id": user.google_id,
        "is_admin": bool(user.is_admin),
        "created_at": user.created_at,
        "updated_at": user.updated_at,
    }


def serialize_public_user(user: User) -> dict[str, Any]:
    return {
        "id": user.id,
        "name": user.name,
        "avatar": user.avatar_url,
        "city": user.city,
        "created_at": user.created_at,
    }


def get_user_by_id(db: Session, user_id: UUID) -> User:
    user = db.get(User, user_id)
    if user is None:
        raise NotFound("User not found")
    return user


def find_user_by_email(db: Session, email: str) -> User | None:
    return db.scalar(select(User).where(User.email == normalize_email(email)))


def find_user_by_google_id(db: Session, google_id: str) -> User | None:
    return db.scalar(select(User).where(User.google_id == google_id))


def create_user(
    db: Session,
    *,
    email: str,
    name: str,
    password_hash: str | None = None,
    google_id: str | None = None,
    avatar_url: str | None = None,
) -> User:
    user = User(
        email=normalize_email(email),
        name=name.strip(),
        password_hash=password_hash,
        google_id=google_id,
        avatar_url=avatar_url,
        is_admin=False,
    )
    db.add(user)
    commit_changes(db, failure="Failed to create user", conflict="User with this email already exists")
    db.refresh(user)
    return user


def update_user(db: Session, user_id: UUID, updates: dict[str, Any]) -> User:
    """Apply profile changes; ``updates`` holds only the fields the caller sent."""

    user = get_user_by_id(db, user_id)
    previous_avatar = user.avatar_url

    if updates.get("name"):
        user.name = str(updates["name"]).strip()
    if "avatar" in updates:
        user.avatar_url = str(updates["avatar"]) if updates["avatar"] is not None else None
    if "city" in updates:
        user.city = updates["city"]
    if "country" in updates:
        user.country = updates["country"]
    user.updated_at = datetime.now(timezone.utc)

    commit_changes(db, failure="Failed to update user")
    db.refresh(user)

    if previous_avatar and previous_avatar != user.avatar_url:
        delete_stored_file(previous_avatar)
    return user


def link_google_identity(db: Session, user: User, *, google_id: str, picture: str | None) -> User:
    user.google_id = google_id
    if picture:
        user.avatar_url = picture
    user.updated_at = datetime.now(timezone.utc)
    commit_changes(db, failure="Failed to link Google account", conflict="Google account already linked to another user")
    db.refresh(user)
    return user


def set_avatar(db: Session, user: User, avatar_url: str) -> User:
    user.avatar_url = avatar_url
    user.updated_at = datetime.now(timezone.utc)
    commit_changes(db, failure="Failed to update user")
    db.refresh(user)
    return user


def list_users(db: Session, *, page: int, limit: int) -> tuple[list[User], int]:
    total = int(db.scalar(select(func.count(User.id))) or 0)
    users = db.scalars(
        select(User).order_by(User.created_at.desc()).offset((page - 1) * limit).limit(limit)
    ).all()
    return list(users), total


def delete_user(db: Session, user_id: UUID) -> None:
    """Delete a user with their reports and votes, then recount the reports they voted on."""

    from .vote_service import recount_votes  # vote_service depends on this module

    user = get_user_by_id(db, user_id)
    voted_report_ids = db.scalars(
        select(Vote.report_id)
        .join(Report, Vote.report_id == Report.id)
        .where(Vote.user_id == user_id, Report.user_id != user_id)
        .distinct()
    ).all()

    db.delete(user)
    commit_changes(db, failure="Failed to delete user")
    logger.info("Deleted user %s", user_id)

    for report_id in voted_report_ids:
        report = db.get(Report, report_id)
        if report is not None:
            recount_votes(db, report)


def set_admin(db: Session, user_id: UUID, *, is_admin: bool) -> User:
    user = get_user_by_id(db, user_id)
    user.is_admin = is_admin
    user.updated_at = datetime.now(timezone.utc)
    failure = "Failed to make user admin" if is_admin else "Failed to remove admin privileges"
    commit_changes(db, failure=failure)
    db.refresh(user)
    logger.info("Admin flag for user %s set to %s", user_id, is_admin)
    return user


def get_user_stats(db: Session, user_id: UUID) -> dict[str, int]:
    get_user_by_id(db, user_id)

    rows = db.execute(select(Report.status, Report.approval_status).where(Report.user_id == user_id)).all()
    votes_received = db.scalar(
        select(func.count(Vote.id)).join(Report, Vote.report_id == Report.id).where(Report.user_id == user_id)
    )

    return {
        "submitted": len(rows),
        "approved": sum(1 for _, approval in rows if approval == ApprovalStatus.APPROVED.value),
        "in_progress": sum(1 for work, _ in rows if work == ReportStatus.IN_PROGRESS.value),
        "resolved": sum(1 for work, _ in rows if work == ReportStatus.RESOLVED.value),
        "votes_received": int(votes_received or 0),
    }


__all__ = [
    "normalize_email",
    "commit_changes",
    "serialize_user",
    "serialize_public_user",
    "get_user_by_id",
    "find_user_by_email",
    "find_user_by_google_id",
    "create_user",
    "update_user",
    "link_google_identity",
    "set_avatar",
    "list_users",
    "delete_user",
    "set_admin",
    "get_user_stats",
]
