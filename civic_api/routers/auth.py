"""Authentication related API routes backed by PostgreSQL."""
from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ..database import get_session
from ..middleware import limit_auth
from ..models import User
from ..schemas import (
    ApiResponse,
    AuthPayload,
    GoogleAuthPayload,
    GoogleAuthRequest,
    LoginRequest,
    MessageResponse,
    RegisterRequest,
    TokenPayload,
    TokenUser,
    UserResponse,
    VerifyPayload,
)
from ..services import (
    GoogleIdentityVerifier,
    authenticate_with_google,
    get_bearer_token,
    get_current_user,
    get_identity_verifier,
    login_user,
    refresh_token,
    register_user,
    serialize_user,
)

router = APIRouter(prefix="/auth", tags=["auth"])


def _auth_payload(user: User, token: str) -> AuthPayload:
    return AuthPayload(user=serialize_user(user), token=token)


@router.post(
    "/register",
    response_model=ApiResponse[AuthPayload],
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(limit_auth)],
)
async def register_endpoint(
    payload: RegisterRequest,
    db: Session = Depends(get_session),
) -> ApiResponse[AuthPayload]:
    user, token = register_user(db, payload)
    return ApiResponse(data=_auth_payload(user, token), message="User registered successfully")


@router.post("/login", response_model=ApiResponse[AuthPayload], dependencies=[Depends(limit_auth)])
async def login_endpoint(
    payload: LoginRequest,
    db: Session = Depends(get_session),
) -> ApiResponse[AuthPayload]:
    user, token = login_user(db, str(payload.email), payload.password)
    return ApiResponse(data=_auth_payload(user, token), message="Login successful")


@router.post("/google", response_model=ApiResponse[GoogleAuthPayload], dependencies=[Depends(limit_auth)])
async def google_endpoint(
    payload: GoogleAuthRequest,
    db: Session = Depends(get_session),
    verifier: GoogleIdentityVerifier = Depends(get_identity_verifier),
) -> ApiResponse[GoogleAuthPayload]:
    user, token, is_new_user = await authenticate_with_google(db, verifier, payload.id_token)
    message = "Account created with Google" if is_new_user else "Google login successful"
    return ApiResponse(
        data=GoogleAuthPayload(user=serialize_user(user), token=token, is_new_user=is_new_user),
        message=message,
    )


@router.post("/refresh", response_model=ApiResponse[TokenPayload])
async def refresh_endpoint(
    token: str = Depends(get_bearer_token),
    db: Session = Depends(get_session),
) -> ApiResponse[TokenPayload]:
    return ApiResponse(data=TokenPayload(token=refresh_token(db, token)), message="Token refreshed successfully")


@router.get("/me", response_model=ApiResponse[UserResponse])
async def me_endpoint(current_user: User = Depends(get_current_user)) -> ApiResponse[UserResponse]:
    return ApiResponse(data=UserResponse.model_validate(serialize_user(current_user)))


@router.post("/logout", response_model=MessageResponse)
async def logout_endpoint(current_user: User = Depends(get_current_user)) -> MessageResponse:
    # Tokens are stateless; the client discards its copy.
    return MessageResponse(message="Logged out successfully")


@router.post("/verify", response_model=ApiResponse[VerifyPayload])
async def verify_endpoint(current_user: User = Depends(get_current_user)) -> ApiResponse[VerifyPayload]:
    user = TokenUser(id=current_user.id, email=current_user.email, is_admin=bool(current_user.is_admin))
    return ApiResponse(data=VerifyPayload(valid=True, user=user), message="Token is valid")
