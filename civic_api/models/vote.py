"""SQLAlchemy ORM model for the per-user report vote ledger."""
from __future__ import annotations

import uuid

from sqlalchemy import Column, DateTime, ForeignKey, String, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from civic_api.database import Base
from .base import utcnow


class Vote(Base):
    __tablename__ = "votes"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    report_id = Column(UUID(as_uuid=True), ForeignKey("reports.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    # "up" | "down"
    vote_type = Column(String(8), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)

    report = relationship("Report", back_populates="votes")
    user = relationship("User", back_populates="votes")

    __table_args__ = (UniqueConstraint("report_id", "user_id", name="uq_votes_report_user"),)


__all__ = ["Vote"]
