"""Convenience exports for schema layer."""
from .auth import (
    AuthPayload,
    GoogleAuthPayload,
    GoogleAuthRequest,
    LoginRequest,
    RegisterRequest,
    TokenPayload,
    TokenUser,
    VerifyPayload,
)
from .common import ApiResponse, CamelModel, MessageResponse, PaginatedResponse, Pagination
from .reports import (
    AdminActionRequest,
    Location,
    ReportCreateRequest,
    ReportResponse,
    ReportStatsResponse,
    ReportUpdateRequest,
    VoteRequest,
)
from .uploads import MultipleUploadResponse, UploadedFileResponse
from .users import PublicUserResponse, UserResponse, UserStatsResponse, UserUpdateRequest

__all__ = [
    "ApiResponse",
    "CamelModel",
    "MessageResponse",
    "PaginatedResponse",
    "Pagination",
    "AuthPayload",
    "GoogleAuthPayload",
    "GoogleAuthRequest",
    "LoginRequest",
    "RegisterRequest",
    "TokenPayload",
    "TokenUser",
    "VerifyPayload",
    "AdminActionRequest",
    "Location",
    "ReportCreateRequest",
    "ReportResponse",
    "ReportStatsResponse",
    "ReportUpdateRequest",
    "VoteRequest",
    "MultipleUploadResponse",
    "UploadedFileResponse",
    "PublicUserResponse",
    "UserResponse",
    "UserStatsResponse",
    "UserUpdateRequest",
]
