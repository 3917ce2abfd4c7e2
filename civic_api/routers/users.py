"""User directory routes: own profile, public profiles and admin management."""
from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..database import get_session
from ..models import User
from ..schemas import (
    ApiResponse,
    MessageResponse,
    PaginatedResponse,
    Pagination,
    PublicUserResponse,
    UserResponse,
    UserStatsResponse,
    UserUpdateRequest,
)
from ..services import (
    delete_user,
    get_current_user,
    get_user_by_id,
    get_user_stats,
    list_users,
    require_admin,
    serialize_public_user,
    serialize_user,
    set_admin,
    update_user,
)

router = APIRouter(prefix="/users", tags=["users"])


def _user_response(user: User) -> UserResponse:
    return UserResponse.model_validate(serialize_user(user))


@router.get("/me", response_model=ApiResponse[UserResponse])
async def get_me_endpoint(current_user: User = Depends(get_current_user)) -> ApiResponse[UserResponse]:
    return ApiResponse(data=_user_response(current_user))


@router.put("/me", response_model=ApiResponse[UserResponse])
async def update_me_endpoint(
    payload: UserUpdateRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> ApiResponse[UserResponse]:
    user = update_user(db, current_user.id, payload.model_dump(exclude_unset=True))
    return ApiResponse(data=_user_response(user), message="Profile updated successfully")


@router.get("", response_model=PaginatedResponse[UserResponse])
async def list_users_endpoint(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    _: User = Depends(require_admin),
    db: Session = Depends(get_session),
) -> PaginatedResponse[UserResponse]:
    users, total = list_users(db, page=page, limit=limit)
    return PaginatedResponse(
        data=[_user_response(user) for user in users],
        pagination=Pagination.build(page=page, limit=limit, total=total),
    )


@router.get("/{user_id}", response_model=ApiResponse[PublicUserResponse])
async def get_user_endpoint(user_id: UUID, db: Session = Depends(get_session)) -> ApiResponse[PublicUserResponse]:
    user = get_user_by_id(db, user_id)
    return ApiResponse(data=PublicUserResponse.model_validate(serialize_public_user(user)))


@router.get("/{user_id}/stats", response_model=ApiResponse[UserStatsResponse])
async def user_stats_endpoint(user_id: UUID, db: Session = Depends(get_session)) -> ApiResponse[UserStatsResponse]:
    return ApiResponse(data=UserStatsResponse.model_validate(get_user_stats(db, user_id)))


@router.put("/{user_id}", response_model=ApiResponse[UserResponse])
async def admin_update_user_endpoint(
    user_id: UUID,
    payload: UserUpdateRequest,
    _: User = Depends(require_admin),
    db: Session = Depends(get_session),
) -> ApiResponse[UserResponse]:
    user = update_user(db, user_id, payload.model_dump(exclude_unset=True))
    return ApiResponse(data=_user_response(user), message="User updated successfully")


@router.delete("/{user_id}", response_model=MessageResponse)
async def delete_user_endpoint(
    user_id: UUID,
    _: User = Depends(require_admin),
    db: Session = Depends(get_session),
) -> MessageResponse:
    delete_user(db, user_id)
    return MessageResponse(message="User deleted successfully")


@router.post("/{user_id}/make-admin", response_model=ApiResponse[UserResponse])
async def make_admin_endpoint(
    user_id: UUID,
    _: User = Depends(require_admin),
    db: Session = Depends(get_session),
) -> ApiResponse[UserResponse]:
    user = set_admin(db, user_id, is_admin=True)
    return ApiResponse(data=_user_response(user), message="User promoted to admin successfully")


@router.post("/{user_id}/remove-admin", response_model=ApiResponse[UserResponse])
async def remove_admin_endpoint(
    user_id: UUID,
    _: User = Depends(require_admin),
    db: Session = Depends(get_session),
) -> ApiResponse[UserResponse]:
    user = set_admin(db, user_id, is_admin=False)
    return ApiResponse(data=_user_response(user), message="Admin privileges removed successfully")
