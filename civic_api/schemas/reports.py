"""Schemas for civic issue reports, votes and moderation actions."""
from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import AnyHttpUrl, Field

from ..constants import AdminAction, ReportCategory, ReportStatus, VoteType
from .common import CamelModel


class Location(CamelModel):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)


class ReportCreateRequest(CamelModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1, max_length=2000)
    category: ReportCategory
    location: Location
    address: str = Field(..., min_length=1, max_length=500)
    image: AnyHttpUrl | None = None


class ReportUpdateRequest(CamelModel):
    title: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = Field(default=None, min_length=1, max_length=2000)
    category: ReportCategory | None = None
    location: Location | None = None
    address: str | None = Field(default=None, min_length=1, max_length=500)
    image: AnyHttpUrl | None = None
    status: ReportStatus | None = None


class VoteRequest(CamelModel):
    type: VoteType


class AdminActionRequest(CamelModel):
    action: AdminAction
    reason: str | None = Field(default=None, max_length=500)


class ReportResponse(CamelModel):
    id: UUID
    title: str
    description: str
    category: str
    image: str | None = None
    location: Location
    address: str
    status: str
    approval_status: str | None = None
    approved_by: UUID | None = None
    approved_at: datetime | None = None
    rejected_by: UUID | None = None
    rejected_at: datetime | None = None
    rejection_reason: str | None = None
    upvotes: int = 0
    downvotes: int = 0
    user_vote: VoteType | None = None
    user_id: UUID
    user_name: str | None = None
    user_avatar: str | None = None
    user_city: str | None = None
    created_at: datetime
    updated_at: datetime | None = None


class ReportStatsResponse(CamelModel):
    total: int
    by_status: dict[str, int]
    by_category: dict[str, int]
    this_month: int


__all__ = [
    "Location",
    "ReportCreateRequest",
    "ReportUpdateRequest",
    "VoteRequest",
    "AdminActionRequest",
    "ReportResponse",
    "ReportStatsResponse",
]
