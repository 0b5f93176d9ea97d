"""Club and membership projections."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, ProjectionMixin
from app.models.types import JSONType


class Club(ProjectionMixin, Base):
    """Running club."""

    __tablename__ = "club"
    __table_args__ = (Index("ix_club_invite_token", "invite_token"),)

    id: Mapped[str] = mapped_column(String(length=36), primary_key=True)
    name: Mapped[str] = mapped_column(String(length=255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    invite_token: Mapped[str] = mapped_column(String(length=255), nullable=False)
    logo_url: Mapped[Optional[str]] = mapped_column(String(length=1024), nullable=True)
    welcome_text: Mapped[Optional[dict]] = mapped_column(JSONType, nullable=True)
    short_description: Mapped[Optional[dict]] = mapped_column(JSONType, nullable=True)


class ClubMembership(ProjectionMixin, Base):
    """A user's membership in a club."""

    __tablename__ = "club_membership"
    __table_args__ = (
        Index("ix_club_membership_club", "club_id"),
        Index("ix_club_membership_club_user", "club_id", "user_id"),
    )

    id: Mapped[str] = mapped_column(String(length=36), primary_key=True)
    club_id: Mapped[str] = mapped_column(String(length=36), nullable=False)
    user_id: Mapped[str] = mapped_column(String(length=128), nullable=False)
    user_name: Mapped[Optional[str]] = mapped_column(String(length=255), nullable=True)
    role: Mapped[str] = mapped_column(String(length=16), nullable=False, default="member")
    joined_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
