"""Challenge instance and template projections."""

from __future__ import annotations

from datetime import date, datetime
from typing import List, Optional

from sqlalchemy import Boolean, Date, DateTime, Float, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, ProjectionMixin
from app.models.types import JSONType


class ChallengeTemplate(ProjectionMixin, Base):
    """A monthly challenge definition users can join."""

    __tablename__ = "challenge_template"

    id: Mapped[str] = mapped_column(String(length=36), primary_key=True)
    name: Mapped[str] = mapped_column(String(length=255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    days: Mapped[int] = mapped_column(Integer, nullable=False)
    required_distances_km: Mapped[List[float]] = mapped_column(JSONType, nullable=False, default=list)
    full_distance_total_km: Mapped[float] = mapped_column(Float, nullable=False)
    half_distance_total_km: Mapped[float] = mapped_column(Float, nullable=False)
    theme_key: Mapped[str] = mapped_column(String(length=64), nullable=False)


class ChallengeInstance(ProjectionMixin, Base):
    """A user's participation in a challenge template."""

    __tablename__ = "challenge_instance"
    __table_args__ = (
        Index("ix_challenge_instance_user", "user_id"),
        Index("ix_challenge_instance_template", "template_id"),
    )

    id: Mapped[str] = mapped_column(String(length=36), primary_key=True)
    # No foreign key: the template event may arrive after the instance event.
    template_id: Mapped[str] = mapped_column(String(length=36), nullable=False)
    user_id: Mapped[str] = mapped_column(String(length=128), nullable=False)
    variant: Mapped[str] = mapped_column(String(length=8), nullable=False)
    theme_key: Mapped[str] = mapped_column(String(length=64), nullable=False)
    status: Mapped[str] = mapped_column(String(length=16), nullable=False, default="active")
    joined_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    total_completed_km: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    succeeded: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True)
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
