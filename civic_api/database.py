"""SQLAlchemy engine, session factory and declarative base for the API."""
from __future__ import annotations

from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from .config import get_settings

settings = get_settings()

# SQLite (tests) shares one connection across the TestClient threads.
_connect_args = {"check_same_thread": False} if settings.database_url.startswith("sqlite") else {}

engine: Engine = create_engine(settings.database_url, pool_pre_ping=True, connect_args=_connect_args)

SessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)

Base = declarative_base()


def get_session() -> Generator[Session, None, None]:
    """Yield one session per request and always close it."""
    with SessionLocal() as session:
        yield session


def init_db() -> None:
    """Create missing civic tables; Alembic owns real schema changes."""
    from . import models  # noqa: F401  registers users, reports and votes on Base.metadata

    Base.metadata.create_all(bind=engine)


__all__ = ["Base", "SessionLocal", "engine", "get_session", "init_db"]
