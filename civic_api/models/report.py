"""SQLAlchemy ORM model for citizen-submitted issue reports."""
from __future__ import annotations

import uuid

from sqlalchemy import Column, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from civic_api.constants import ApprovalStatus, ReportStatus
from civic_api.database import Base
from .base import TimestampMixin


class Report(TimestampMixin, Base):
    __tablename__ = "reports"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=False)
    category = Column(String(32), nullable=False, index=True)
    image_url = Column(String(1024), nullable=True)
    latitude = Column(Float, nullable=False)
    longitude = Column(Float, nullable=False)
    address = Column(String(500), nullable=False)

    # Work status and approval status are independent axes.
    status = Column(String(32), nullable=False, default=ReportStatus.SUBMITTED.value, index=True)
    approval_status = Column(String(32), nullable=True, default=ApprovalStatus.PENDING.value, index=True)

    # Cached aggregates of the votes table; recomputed on every vote.
    upvotes = Column(Integer, nullable=False, default=0, server_default="0")
    downvotes = Column(Integer, nullable=False, default=0, server_default="0")

    approved_by = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    approved_at = Column(DateTime(timezone=True), nullable=True)
    rejected_by = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    rejected_at = Column(DateTime(timezone=True), nullable=True)
    rejection_reason = Column(String(500), nullable=True)

    author = relationship("User", back_populates="reports", foreign_keys=[user_id])
    votes = relationship("Vote", back_populates="report", cascade="all, delete-orphan")


__all__ = ["Report"]
