"""Services for submitting, listing and moderating civic issue reports."""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any
from uuid import UUID

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session, joinedload
from sqlalchemy.sql.elements import ColumnElement

from ..constants import AdminAction, ApprovalStatus, ReportCategory, ReportStatus
from ..errors import Forbidden, NotFound
from ..models import Report, User, Vote
from ..schemas import ReportCreateRequest, ReportUpdateRequest
from .storage_service import delete_stored_file
from .user_service import commit_changes

logger = logging.getLogger(__name__)

_IMAGE_PREFIXES = ("http://", "https://", "data:image/")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _sanitize_image(value: str | None) -> str | None:
    """Drop blank, stringified-null and non-URL image values."""

    if not isinstance(value, str):
        return None
    cleaned = value.strip()
    if not cleaned or cleaned in {"null", "undefined"}:
        return None
    if not cleaned.startswith(_IMAGE_PREFIXES):
        return None
    return cleaned


def visibility_clause(viewer: User | None) -> ColumnElement[bool] | None:
    """Anonymous: approved only. Members: approved plus their own. Admins: everything."""

    approved = Report.approval_status == ApprovalStatus.APPROVED.value
    if viewer is None:
        return approved
    if viewer.is_admin:
        return None
    return or_(approved, Report.user_id == viewer.id)


def get_visible_report(db: Session, report_id: UUID, viewer: User | None) -> Report:
    stmt = select(Report).options(joinedload(Report.author)).where(Report.id == report_id)
    clause = visibility_clause(viewer)
    if clause is not None:
        stmt = stmt.where(clause)
    report = db.scalar(stmt)
    if report is None:
        raise NotFound("Report not found")
    return report


def _viewer_votes(db: Session, report_ids: list[UUID], viewer: User | None) -> dict[UUID, str]:
    if viewer is None or not report_ids:
        return {}
    rows = db.execute(
        select(Vote.report_id, Vote.vote_type).where(Vote.user_id == viewer.id, Vote.report_id.in_(report_ids))
    ).all()
    return {report_id: vote_type for report_id, vote_type in rows}


def serialize_report(report: Report, *, user_vote: str | None = None) -> dict[str, Any]:
    author = report.author
    return {
        "id": report.id,
        "title": report.title,
        "description": report.description,
        "category": report.category,
        "image": _sanitize_image(report.image_url),
        "location": {"latitude": report.latitude, "longitude": report.longitude},
        "address": report.address,
        "status": report.status,
        "approval_status": report.approval_status,
        "approved_by": report.approved_by,
        "approved_at": report.approved_at,
        "rejected_by": report.rejected_by,
        "rejected_at": report.rejected_at,
        "rejection_reason": report.rejection_reason,
        "upvotes": report.upvotes or 0,
        "downvotes": report.downvotes or 0,
        "user_vote": user_vote,
        "user_id": report.user_id,
        "user_name": author.name if author is not None else None,
        "user_avatar": author.avatar_url if author is not None else None,
        "user_city": author.city if author is not None else None,
        "created_at": report.created_at,
        "updated_at": report.updated_at,
    }


def report_view(db: Session, report: Report, viewer: User | None) -> dict[str, Any]:
    votes = _viewer_votes(db, [report.id], viewer)
    return serialize_report(report, user_vote=votes.get(report.id))


def _paginate(
    db: Session,
    *,
    conditions: list[Any],
    viewer: User | None,
    page: int,
    limit: int,
) -> tuple[list[dict[str, Any]], int]:
    total = int(db.scalar(select(func.count(Report.id)).where(*conditions)) or 0)
    reports = db.scalars(
        select(Report)
        .options(joinedload(Report.author))
        .where(*conditions)
        .order_by(Report.created_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    ).all()
    votes = _viewer_votes(db, [report.id for report in reports], viewer)
    return [serialize_report(report, user_vote=votes.get(report.id)) for report in reports], total


def list_reports(
    db: Session,
    *,
    viewer: User | None,
    page: int = 1,
    limit: int = 20,
    status: ReportStatus | None = None,
    category: ReportCategory | None = None,
    user_id: UUID | None = None,
    search: str | None = None,
) -> tuple[list[dict[str, Any]], int]:
    conditions: list[Any] = []
    clause = visibility_clause(viewer)
    if clause is not None:
        conditions.append(clause)
    if status is not None:
        conditions.append(Report.status == status.value)
    if category is not None:
        conditions.append(Report.category == category.value)
    if user_id is not None:
        conditions.append(Report.user_id == user_id)
    if search and search.strip():
        pattern = f"%{search.strip()}%"
        conditions.append(
            or_(
                Report.title.ilike(pattern),
                Report.description.ilike(pattern),
                Report.address.ilike(pattern),
            )
        )
    return _paginate(db, conditions=conditions, viewer=viewer, page=page, limit=limit)


def list_pending_reports(db: Session, *, viewer: User, page: int = 1, limit: int = 20) -> tuple[list[dict[str, Any]], int]:
    conditions = [or_(Report.approval_status == ApprovalStatus.PENDING.value, Report.approval_status.is_(None))]
    return _paginate(db, conditions=conditions, viewer=viewer, page=page, limit=limit)


def get_report(db: Session, report_id: UUID, viewer: User | None) -> dict[str, Any]:
    return report_view(db, get_visible_report(db, report_id, viewer), viewer)


def create_report(db: Session, *, author: User, payload: ReportCreateRequest) -> dict[str, Any]:
    report = Report(
        user_id=author.id,
        title=payload.title.strip(),
        description=payload.description.strip(),
        category=payload.category.value,
        image_url=str(payload.image) if payload.image else None,
        latitude=payload.location.latitude,
        longitude=payload.location.longitude,
        address=payload.address.strip(),
        status=ReportStatus.SUBMITTED.value,
        approval_status=ApprovalStatus.PENDING.value,
        upvotes=0,
        downvotes=0,
    )
    db.add(report)
    commit_changes(db, failure="Failed to create report")
    db.refresh(report)
    logger.info("User %s submitted report %s", author.id, report.id)
    return serialize_report(report)


def update_report(db: Session, report_id: UUID, *, actor: User, payload: ReportUpdateRequest) -> dict[str, Any]:
    report = get_visible_report(db, report_id, actor)
    if not actor.is_admin and report.user_id != actor.id:
        raise Forbidden("You can only update your own reports")

    changes = payload.model_dump(exclude_unset=True)
    if changes.get("status") is not None and not actor.is_admin:
        raise Forbidden("Only administrators can change report status")

    previous_image = report.image_url
    if changes.get("title"):
        report.title = payload.title.strip()
    if changes.get("description"):
        report.description = payload.description.strip()
    if payload.category is not None:
        report.category = payload.category.value
    if "image" in changes:
        report.image_url = str(payload.image) if payload.image else None
    if payload.location is not None:
        report.latitude = payload.location.latitude
        report.longitude = payload.location.longitude
    if changes.get("address"):
        report.address = payload.address.strip()
    if payload.status is not None:
        report.status = payload.status.value
    report.updated_at = _utcnow()

    commit_changes(db, failure="Failed to update report")
    db.refresh(report)

    if previous_image and previous_image != report.image_url:
        delete_stored_file(previous_image)
    return report_view(db, report, actor)


def delete_report(db: Session, report_id: UUID, *, actor: User) -> None:
    report = get_visible_report(db, report_id, actor)
    if not actor.is_admin and report.user_id != actor.id:
        raise Forbidden("You can only delete your own reports")

    image_url = report.image_url
    db.delete(report)
    commit_changes(db, failure="Failed to delete report")
    logger.info("Report %s deleted by %s", report_id, actor.id)

    if image_url:
        delete_stored_file(image_url)


def apply_admin_action(
    db: Session,
    report_id: UUID,
    *,
    admin: User,
    action: AdminAction,
    reason: str | None = None,
) -> dict[str, Any]:
    report = get_visible_report(db, report_id, admin)
    now = _utcnow()

    if action == AdminAction.APPROVE:
        report.approval_status = ApprovalStatus.APPROVED.value
        report.approved_by = admin.id
        report.approved_at = now
        report.rejected_by = None
        report.rejected_at = None
        report.rejection_reason = None
        if report.status in (ReportStatus.SUBMITTED.value, ReportStatus.REJECTED.value):
            report.status = ReportStatus.APPROVED.value
    else:
        report.approval_status = ApprovalStatus.REJECTED.value
        report.status = ReportStatus.REJECTED.value
        report.rejected_by = admin.id
        report.rejected_at = now
        report.rejection_reason = reason.strip() if reason and reason.strip() else None
        report.approved_by = None
        report.approved_at = None
    report.updated_at = now

    commit_changes(db, failure=f"Failed to {action.value} report")
    db.refresh(report)
    logger.info("Admin %s applied %s to report %s", admin.id, action.value, report.id)
    return report_view(db, report, admin)


def _as_utc(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def get_report_stats(db: Session) -> dict[str, Any]:
    rows = db.execute(select(Report.status, Report.category, Report.created_at, Report.approval_status)).all()
    now = _utcnow()

    by_status = {
        ReportStatus.SUBMITTED.value: sum(
            1 for status, _, _, approval in rows
            if status == ReportStatus.SUBMITTED.value or approval == ApprovalStatus.PENDING.value
        ),
        ReportStatus.APPROVED.value: sum(
            1 for status, _, _, approval in rows
            if approval == ApprovalStatus.APPROVED.value
            and status not in (ReportStatus.IN_PROGRESS.value, ReportStatus.RESOLVED.value)
        ),
        ReportStatus.IN_PROGRESS.value: sum(1 for status, *_ in rows if status == ReportStatus.IN_PROGRESS.value),
        ReportStatus.RESOLVED.value: sum(1 for status, *_ in rows if status == ReportStatus.RESOLVED.value),
        ReportStatus.REJECTED.value: sum(1 for *_, approval in rows if approval == ApprovalStatus.REJECTED.value),
    }
    by_category = {category.value: 0 for category in ReportCategory}
    for _, category, _, _ in rows:
        if category in by_category:
            by_category[category] += 1

    this_month = 0
    for _, _, created_at, _ in rows:
        created = _as_utc(created_at)
        if created is not None and created.year == now.year and created.month == now.month:
            this_month += 1

    return {"total": len(rows), "by_status": by_status, "by_category": by_category, "this_month": this_month}


__all__ = [
    "visibility_clause",
    "get_visible_report",
    "serialize_report",
    "report_view",
    "list_reports",
    "list_pending_reports",
    "get_report",
    "create_report",
    "update_report",
    "delete_report",
    "apply_admin_action",
    "get_report_stats",
]
