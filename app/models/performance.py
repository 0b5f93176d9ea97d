"""Run projection, stored as one row per logged performance."""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Optional

from sqlalchemy import Date, DateTime, Float, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, ProjectionMixin
from app.models.types import JSONType


class Performance(ProjectionMixin, Base):
    """A single run logged against a challenge instance."""

    __tablename__ = "performance"
    __table_args__ = (
        Index("ix_performance_instance", "instance_id"),
        Index("ix_performance_user_run_date", "user_id", "run_date"),
    )

    id: Mapped[str] = mapped_column(String(length=36), primary_key=True)
    instance_id: Mapped[str] = mapped_column(String(length=36), nullable=False)
    user_id: Mapped[str] = mapped_column(String(length=128), nullable=False)
    runner_name: Mapped[Optional[str]] = mapped_column(String(length=255), nullable=True)
    run_date: Mapped[date] = mapped_column(Date, nullable=False)
    actual_run_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    distance_km: Mapped[float] = mapped_column(Float, nullable=False)
    time_minutes: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String(length=16), nullable=False, default="completed")
    recorded_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    change_log: Mapped[Optional[Any]] = mapped_column(JSONType, nullable=True)
