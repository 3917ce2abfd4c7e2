"""Routes for civic issue reports, voting and moderation."""
from __future__ import annotations

from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ..constants import AdminAction, ReportCategory, ReportStatus
from ..database import get_session
from ..middleware import limit_report_creation, limit_votes
from ..models import User
from ..schemas import (
    AdminActionRequest,
    ApiResponse,
    MessageResponse,
    PaginatedResponse,
    Pagination,
    ReportCreateRequest,
    ReportResponse,
    ReportStatsResponse,
    ReportUpdateRequest,
    VoteRequest,
)
from ..services import (
    apply_admin_action,
    cast_vote,
    create_report,
    delete_report,
    get_current_user,
    get_optional_user,
    get_report,
    get_report_stats,
    list_pending_reports,
    list_reports,
    require_admin,
    update_report,
)

router = APIRouter(prefix="/reports", tags=["reports"])


def _page(items: list[dict[str, Any]], total: int, *, page: int, limit: int) -> PaginatedResponse[ReportResponse]:
    return PaginatedResponse(
        data=[ReportResponse.model_validate(item) for item in items],
        pagination=Pagination.build(page=page, limit=limit, total=total),
    )


@router.get("", response_model=PaginatedResponse[ReportResponse])
async def list_reports_endpoint(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    status_filter: ReportStatus | None = Query(None, alias="status"),
    category: ReportCategory | None = Query(None),
    user_id: UUID | None = Query(None, alias="userId"),
    search: str | None = Query(None, max_length=100),
    viewer: User | None = Depends(get_optional_user),
    db: Session = Depends(get_session),
) -> PaginatedResponse[ReportResponse]:
    items, total = list_reports(
        db,
        viewer=viewer,
        page=page,
        limit=limit,
        status=status_filter,
        category=category,
        user_id=user_id,
        search=search,
    )
    return _page(items, total, page=page, limit=limit)


@router.get("/stats/overview", response_model=ApiResponse[ReportStatsResponse])
async def report_stats_endpoint(db: Session = Depends(get_session)) -> ApiResponse[ReportStatsResponse]:
    return ApiResponse(data=ReportStatsResponse.model_validate(get_report_stats(db)))


@router.get("/admin/pending", response_model=PaginatedResponse[ReportResponse])
async def pending_reports_endpoint(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    admin: User = Depends(require_admin),
    db: Session = Depends(get_session),
) -> PaginatedResponse[ReportResponse]:
    items, total = list_pending_reports(db, viewer=admin, page=page, limit=limit)
    return _page(items, total, page=page, limit=limit)


@router.get("/user/my-reports", response_model=PaginatedResponse[ReportResponse])
async def my_reports_endpoint(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> PaginatedResponse[ReportResponse]:
    items, total = list_reports(db, viewer=current_user, page=page, limit=limit, user_id=current_user.id)
    return _page(items, total, page=page, limit=limit)


@router.get("/user/{user_id}", response_model=PaginatedResponse[ReportResponse])
async def user_reports_endpoint(
    user_id: UUID,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    viewer: User | None = Depends(get_optional_user),
    db: Session = Depends(get_session),
) -> PaginatedResponse[ReportResponse]:
    items, total = list_reports(db, viewer=viewer, page=page, limit=limit, user_id=user_id)
    return _page(items, total, page=page, limit=limit)


@router.get("/{report_id}", response_model=ApiResponse[ReportResponse])
async def get_report_endpoint(
    report_id: UUID,
    viewer: User | None = Depends(get_optional_user),
    db: Session = Depends(get_session),
) -> ApiResponse[ReportResponse]:
    return ApiResponse(data=ReportResponse.model_validate(get_report(db, report_id, viewer)))


@router.post(
    "",
    response_model=ApiResponse[ReportResponse],
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(limit_report_creation)],
)
async def create_report_endpoint(
    payload: ReportCreateRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> ApiResponse[ReportResponse]:
    report = create_report(db, author=current_user, payload=payload)
    return ApiResponse(data=ReportResponse.model_validate(report), message="Report created successfully")


@router.put("/{report_id}", response_model=ApiResponse[ReportResponse])
async def update_report_endpoint(
    report_id: UUID,
    payload: ReportUpdateRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> ApiResponse[ReportResponse]:
    report = update_report(db, report_id, actor=current_user, payload=payload)
    return ApiResponse(data=ReportResponse.model_validate(report), message="Report updated successfully")


@router.delete("/{report_id}", response_model=MessageResponse)
async def delete_report_endpoint(
    report_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> MessageResponse:
    delete_report(db, report_id, actor=current_user)
    return MessageResponse(message="Report deleted successfully")


@router.post("/{report_id}/vote", response_model=ApiResponse[ReportResponse], dependencies=[Depends(limit_votes)])
async def vote_endpoint(
    report_id: UUID,
    payload: VoteRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> ApiResponse[ReportResponse]:
    report = cast_vote(db, report_id, user=current_user, vote_type=payload.type)
    message = "Vote removed" if report["user_vote"] is None else "Vote recorded"
    return ApiResponse(data=ReportResponse.model_validate(report), message=message)


@router.post("/{report_id}/admin-action", response_model=ApiResponse[ReportResponse])
async def admin_action_endpoint(
    report_id: UUID,
    payload: AdminActionRequest,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_session),
) -> ApiResponse[ReportResponse]:
    report = apply_admin_action(db, report_id, admin=admin, action=payload.action, reason=payload.reason)
    verb = "approved" if payload.action == AdminAction.APPROVE else "rejected"
    return ApiResponse(data=ReportResponse.model_validate(report), message=f"Report {verb} successfully")
