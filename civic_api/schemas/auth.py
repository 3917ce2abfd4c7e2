"""Pydantic schemas for authentication endpoints."""
from __future__ import annotations

from uuid import UUID

from pydantic import EmailStr, Field

from .common import CamelModel
from .users import UserResponse


class RegisterRequest(CamelModel):
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=128)
    name: str = Field(..., min_length=1, max_length=100)


class LoginRequest(CamelModel):
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=128)


class GoogleAuthRequest(CamelModel):
    id_token: str = Field(..., min_length=1)


class AuthPayload(CamelModel):
    user: UserResponse
    token: str


class GoogleAuthPayload(AuthPayload):
    is_new_user: bool


class TokenPayload(CamelModel):
    token: str


class TokenUser(CamelModel):
    id: UUID
    email: str
    is_admin: bool


class VerifyPayload(CamelModel):
    valid: bool = True
    user: TokenUser


__all__ = [
    "RegisterRequest",
    "LoginRequest",
    "GoogleAuthRequest",
    "AuthPayload",
    "GoogleAuthPayload",
    "TokenPayload",
    "TokenUser",
    "VerifyPayload",
]
