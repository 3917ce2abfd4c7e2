"""Aggregate router exports."""
from .auth import router as auth_router
from .reports import router as reports_router
from .uploads import router as uploads_router
from .users import router as users_router

__all__ = [
    "auth_router",
    "reports_router",
    "uploads_router",
    "users_router",
]
