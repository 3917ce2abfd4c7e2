"""Error taxonomy and the terminal handlers that shape failure envelopes."""
from __future__ import annotations

import logging
from typing import Any, Iterable

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import get_settings

logger = logging.getLogger(__name__)


class ApiError(HTTPException):
    """Base class for errors raised by the service layer."""

    status_code_default: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail: str = "Internal server error"

    def __init__(
        self,
        detail: str | None = None,
        *,
        message: str | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        super().__init__(status_code=self.status_code_default, detail=detail or self.default_detail, headers=headers)
        self.message = message


class ValidationError(ApiError):
    status_code_default = status.HTTP_400_BAD_REQUEST
    default_detail = "Validation failed"

    def __init__(self, detail: str | None = None, *, details: list[dict[str, str]] | None = None, **kwargs: Any) -> None:
        super().__init__(detail, **kwargs)
        self.details = details or []


class Unauthorized(ApiError):
    status_code_default = status.HTTP_401_UNAUTHORIZED
    default_detail = "Unauthorized"

    def __init__(self, detail: str | None = None, **kwargs: Any) -> None:
        kwargs.setdefault("headers", {"WWW-Authenticate": "Bearer"})
        super().__init__(detail, **kwargs)


class Forbidden(ApiError):
    status_code_default = status.HTTP_403_FORBIDDEN
    default_detail = "Forbidden"


class NotFound(ApiError):
    status_code_default = status.HTTP_404_NOT_FOUND
    default_detail = "Resource not found"


class Conflict(ApiError):
    status_code_default = status.HTTP_409_CONFLICT
    default_detail = "Conflict"


class TooManyRequests(ApiError):
    status_code_default = status.HTTP_429_TOO_MANY_REQUESTS
    default_detail = "Too many requests, please try again later"


class InternalError(ApiError):
    status_code_default = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "Internal server error"


class UpstreamError(ApiError):
    status_code_default = status.HTTP_502_BAD_GATEWAY
    default_detail = "Upstream service failed"


def _field_path(location: Iterable[Any]) -> str:
    parts = [str(part) for part in location]
    # Drop the "body"/"query"/"path" source marker FastAPI prepends.
    if parts and parts[0] in {"body", "query", "path", "header", "form", "cookie"}:
        parts = parts[1:]
    return ".".join(parts)


def _envelope(error: str, *, message: str | None = None, details: list[dict[str, str]] | None = None) -> dict[str, Any]:
    content: dict[str, Any] = {"success": False, "error": error}
    if message:
        content["message"] = message
    if details:
        content["details"] = details
    return content


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    detail = exc.detail if isinstance(exc.detail, str) else "Request failed"
    if exc.status_code == status.HTTP_404_NOT_FOUND and not isinstance(exc, ApiError):
        detail = f"Route {request.method} {request.url.path} not found"

    if exc.status_code >= 500:
        logger.error("%s %s failed with %d: %s", request.method, request.url.path, exc.status_code, detail)
        if get_settings().is_production and exc.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR:
            detail = "Internal server error"

    content = _envelope(
        detail,
        message=getattr(exc, "message", None),
        details=getattr(exc, "details", None),
    )
    return JSONResponse(status_code=exc.status_code, content=content, headers=getattr(exc, "headers", None))


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = [{"field": _field_path(item.get("loc", ())), "message": str(item.get("msg", ""))} for item in exc.errors()]
    summary = ", ".join(f"{item['field']}: {item['message']}" for item in details)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=_envelope("Validation failed", message=summary or None, details=details),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Unhandled error processing %s %s", request.method, request.url, exc_info=exc)
    message = "Internal server error" if get_settings().is_production else str(exc) or "Internal server error"
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_envelope(message),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)


__all__ = [
    "ApiError",
    "ValidationError",
    "Unauthorized",
    "Forbidden",
    "NotFound",
    "Conflict",
    "TooManyRequests",
    "InternalError",
    "UpstreamError",
    "register_exception_handlers",
]
