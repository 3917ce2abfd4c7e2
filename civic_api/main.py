"""Application entry point for the FastAPI backend."""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import get_settings
from .database import init_db
from .errors import register_exception_handlers
from .middleware import limit_api
from .routers import auth_router, reports_router, uploads_router, users_router

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

APP_NAME = settings.app_name
API_VERSION = settings.api_version
API_PREFIX = settings.api_prefix.rstrip("/")

app = FastAPI(title=APP_NAME, version=API_VERSION)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

for router in (auth_router, reports_router, users_router, uploads_router):
    app.include_router(router, prefix=API_PREFIX, dependencies=[Depends(limit_api)])


@app.on_event("startup")
async def _startup() -> None:
    """Ensure the database schema exists before serving."""

    try:
        init_db()
    except Exception:  # pragma: no cover - best effort logging
        logger.exception("Database initialisation failed")
        raise

    logger.info("%s %s started (environment=%s, prefix=%s)", APP_NAME, API_VERSION, settings.environment, API_PREFIX)


@app.get("/health", tags=["system"])
async def healthcheck() -> dict[str, Any]:
    return {
        "success": True,
        "message": f"{APP_NAME} is running",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": settings.environment,
    }


@app.get("/", tags=["system"])
async def root() -> dict[str, Any]:
    return {
        "success": True,
        "message": f"Welcome to the {APP_NAME}",
        "version": API_VERSION,
        "baseUrl": settings.api_base_url,
        "endpoints": {
            "health": "/health",
            "auth": f"{API_PREFIX}/auth",
            "reports": f"{API_PREFIX}/reports",
            "users": f"{API_PREFIX}/users",
            "upload": f"{API_PREFIX}/upload",
        },
    }
