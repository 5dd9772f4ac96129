"""ORM models backing the portfolio profile store."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.types import JSON

from .base import Base, TimestampMixin, utcnow

JSONType = JSON


class ProfileModel(TimestampMixin, Base):
    __tablename__ = "profiles"

    # Always the singleton key; see portfolio_profile.PROFILE_KEY.
    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(256), nullable=False)
    email: Mapped[str] = mapped_column(String(320), nullable=False)
    education: Mapped[list[dict]] = mapped_column(JSONType, default=list, nullable=False)
    skills: Mapped[list[str]] = mapped_column(JSONType, default=list, nullable=False)
    projects: Mapped[list[dict]] = mapped_column(JSONType, default=list, nullable=False)
    work: Mapped[list[dict]] = mapped_column(JSONType, default=list, nullable=False)
    links: Mapped[dict | None] = mapped_column(JSONType, nullable=True)


class ProfileAuditEventModel(Base):
    __tablename__ = "profile_audit_events"
    __table_args__ = (Index("ix_profile_audit_events_created", "created_at"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    profile_id: Mapped[Optional[str]] = mapped_column(
        String(64), ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True
    )
    event_type: Mapped[str] = mapped_column(String(64), nullable=False)
    payload: Mapped[dict] = mapped_column(JSONType, default=dict, nullable=False)
    actor: Mapped[str | None] = mapped_column(String(128))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)


__all__ = ["ProfileAuditEventModel", "ProfileModel"]
