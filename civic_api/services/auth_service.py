"""Business logic for authentication and authorization backed by PostgreSQL."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Any, Optional, Tuple
from uuid import UUID

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from ..config import get_settings
from ..constants import GOOGLE_SIGN_IN_REQUIRED, INVALID_CREDENTIALS
from ..database import get_session
from ..errors import Conflict, Forbidden, InternalError, Unauthorized
from ..models import User
from ..schemas import RegisterRequest
from ..security.secrets import MissingSecretError, require_secret
from . import user_service
from .identity_service import GoogleIdentityVerifier

logger = logging.getLogger(__name__)

_security = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class TokenClaims:
    user_id: UUID
    email: str
    is_admin: bool


@lru_cache(maxsize=1)
def _get_jwt_secret() -> str:
    try:
        return require_secret("JWT_SECRET_KEY")
    except MissingSecretError as exc:
        raise RuntimeError(str(exc)) from exc


@lru_cache(maxsize=1)
def _password_context() -> CryptContext:
    return CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=get_settings().bcrypt_rounds)


def hash_password(password: str) -> str:
    """Hash a plain-text password using bcrypt."""

    try:
        return _password_context().hash(password)
    except Exception as exc:  # passlib raises ValueError, TypeError or backend RuntimeErrors
        logger.exception("Password hashing failed")
        raise InternalError("Failed to hash password") from exc


def verify_password(password: str, hashed_password: str) -> bool:
    """Verify that ``password`` matches ``hashed_password``.

    A corrupt hash or a backend failure is an internal error, not a mismatch.
    """

    try:
        return _password_context().verify(password, hashed_password)
    except Exception as exc:  # passlib raises ValueError, TypeError or backend RuntimeErrors
        logger.exception("Password verification failed due to an unexpected error")
        raise InternalError("Failed to verify password") from exc


def create_access_token(user: User, *, expires_delta: Optional[timedelta] = None) -> str:
    """Create a signed JWT carrying the user's id, email and admin flag."""

    settings = get_settings()
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user.id),
        "email": user.email,
        "is_admin": bool(user.is_admin),
        "iat": now,
        "exp": now + (expires_delta or timedelta(minutes=settings.jwt_expires_minutes)),
    }
    return jwt.encode(payload, _get_jwt_secret(), algorithm=settings.jwt_algorithm)


def _claims_from_payload(payload: dict[str, Any]) -> TokenClaims:
    subject = payload.get("sub")
    email = payload.get("email")
    if not subject or not email:
        raise Unauthorized("Invalid token payload")
    try:
        user_id = UUID(str(subject))
    except ValueError as exc:
        raise Unauthorized("Invalid token payload") from exc
    return TokenClaims(user_id=user_id, email=str(email), is_admin=bool(payload.get("is_admin", False)))


def verify_token(token: str) -> TokenClaims:
    """Decode and validate a JWT, rejecting bad signatures and expired tokens."""

    try:
        payload = jwt.decode(token, _get_jwt_secret(), algorithms=[get_settings().jwt_algorithm])
    except ExpiredSignatureError as exc:
        raise Unauthorized("Token expired") from exc
    except JWTError as exc:
        raise Unauthorized("Invalid token") from exc
    return _claims_from_payload(payload)


def refresh_token(db: Session, token: str) -> str:
    """Issue a fresh token for ``token``'s user; expiry is ignored, the signature is not."""

    try:
        payload = jwt.decode(
            token,
            _get_jwt_secret(),
            algorithms=[get_settings().jwt_algorithm],
            options={"verify_exp": False},
        )
    except JWTError as exc:
        raise Unauthorized("Invalid token") from exc

    claims = _claims_from_payload(payload)
    user = db.get(User, claims.user_id)
    if user is None:
        raise Unauthorized("User not found")
    return create_access_token(user)


def register_user(db: Session, payload: RegisterRequest) -> Tuple[User, str]:
    """Persist a new password account and return it with an access token."""

    if user_service.find_user_by_email(db, str(payload.email)):
        raise Conflict("User with this email already exists")

    user = user_service.create_user(
        db,
        email=str(payload.email),
        name=payload.name,
        password_hash=hash_password(payload.password),
    )
    logger.info("Registered user %s", user.id)
    return user, create_access_token(user)


def login_user(db: Session, email: str, password: str) -> Tuple[User, str]:
    user = user_service.find_user_by_email(db, email)
    if user is None:
        raise Unauthorized(INVALID_CREDENTIALS)
    if not user.password_hash:
        raise Unauthorized(GOOGLE_SIGN_IN_REQUIRED)
    if not verify_password(password, user.password_hash):
        raise Unauthorized(INVALID_CREDENTIALS)
    return user, create_access_token(user)


async def authenticate_with_google(
    db: Session,
    verifier: GoogleIdentityVerifier,
    provider_token: str,
) -> Tuple[User, str, bool]:
    """Sign in with a Google ID token, linking or creating the account.

    Accounts are matched by Google subject first, then by email. An email
    match links Google sign-in to an existing password account.
    """

    identity = await verifier.verify(provider_token)
    is_new_user = False

    user = user_service.find_user_by_google_id(db, identity.subject)
    if user is not None:
        if identity.picture and user.avatar_url != identity.picture:
            user = user_service.set_avatar(db, user, identity.picture)
    else:
        user = user_service.find_user_by_email(db, identity.email)
        if user is not None:
            user = user_service.link_google_identity(
                db, user, google_id=identity.subject, picture=identity.picture
            )
            logger.info("Linked Google identity to existing user %s", user.id)
        else:
            user = user_service.create_user(
                db,
                email=identity.email,
                name=identity.name,
                google_id=identity.subject,
                avatar_url=identity.picture,
            )
            is_new_user = True
            logger.info("Created user %s from Google sign-in", user.id)

    return user, create_access_token(user), is_new_user


def bearer_token(credentials: HTTPAuthorizationCredentials | None) -> str:
    if not credentials or credentials.scheme.lower() != "bearer" or not credentials.credentials:
        raise Unauthorized("Access token required")
    return credentials.credentials


async def get_bearer_token(
    credentials: HTTPAuthorizationCredentials | None = Depends(_security),
) -> str:
    return bearer_token(credentials)


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(_security),
    db: Session = Depends(get_session),
) -> User:
    """Resolve the authenticated user from the provided bearer token.

    The user is always re-read so that admin demotions and deletions apply to
    tokens issued before the change.
    """

    claims = verify_token(bearer_token(credentials))
    user = db.get(User, claims.user_id)
    if user is None:
        raise Unauthorized("User not found")
    return user


async def get_optional_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(_security),
    db: Session = Depends(get_session),
) -> User | None:
    """Return the authenticated user when a valid bearer token is provided."""

    if not credentials or credentials.scheme.lower() != "bearer":
        return None

    try:
        claims = verify_token(credentials.credentials)
    except Unauthorized:
        return None

    return db.get(User, claims.user_id)


async def require_admin(user: User = Depends(get_current_user)) -> User:
    if not user.is_admin:
        raise Forbidden("Admin access required")
    return user


__all__ = [
    "TokenClaims",
    "hash_password",
    "verify_password",
    "create_access_token",
    "verify_token",
    "refresh_token",
    "register_user",
    "login_user",
    "authenticate_with_google",
    "bearer_token",
    "get_bearer_token",
    "get_current_user",
    "get_optional_user",
    "require_admin",
]
