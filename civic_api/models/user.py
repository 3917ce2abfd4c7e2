"""SQLAlchemy ORM model for application users."""
from __future__ import annotations

import uuid

from sqlalchemy import Boolean, Column, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import expression

from civic_api.database import Base
from .base import TimestampMixin


class User(TimestampMixin, Base):
    __tablename__ = "users"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    email = Column(String(255), unique=True, nullable=False, index=True)
    name = Column(String(100), nullable=False)
    # Null for accounts that only ever signed in through Google.
    password_hash = Column(String(255), nullable=True)
    google_id = Column(String(255), unique=True, nullable=True, index=True)
    avatar_url = Column(String(1024), nullable=True)
    city = Column(String(100), nullable=True)
    country = Column(String(100), nullable=True)
    is_admin = Column(Boolean, nullable=False, server_default=expression.false(), default=False)

    reports = relationship(
        "Report",
        back_populates="author",
        cascade="all, delete-orphan",
        foreign_keys="Report.user_id",
    )
    votes = relationship("Vote", back_populates="user", cascade="all, delete-orphan")


__all__ = ["User"]
