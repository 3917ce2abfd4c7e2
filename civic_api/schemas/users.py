"""Pydantic schemas for user directory endpoints."""
from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import AnyHttpUrl, Field

from .common import CamelModel


class UserResponse(CamelModel):
    id: UUID
    email: str
    name: str
    avatar: str | None = None
    city: str | None = None
    country: str | None = None
    google_id: str | None = None
    is_admin: bool = False
    created_at: datetime
    updated_at: datetime | None = None


class PublicUserResponse(CamelModel):
    id: UUID
    name: str
    avatar: str | None = None
    city: str | None = None
    created_at: datetime


class UserUpdateRequest(CamelModel):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    avatar: AnyHttpUrl | None = None
    city: str | None = Field(default=None, max_length=100)
    country: str | None = Field(default=None, max_length=100)


class UserStatsResponse(CamelModel):
    submitted: int
    approved: int
    in_progress: int
    resolved: int
    votes_received: int


__all__ = ["UserResponse", "PublicUserResponse", "UserUpdateRequest", "UserStatsResponse"]
