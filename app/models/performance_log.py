"""Append-only audit trail of run events."""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Optional

from sqlalchemy import Date, DateTime, Float, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, ProjectionMixin
from app.models.types import JSONType


class PerformanceLog(ProjectionMixin, Base):
    """Snapshot of a performance as seen by one run event.

    Rows are keyed by the event that produced them and are never updated.
    """

    __tablename__ = "performance_log"
    __table_args__ = (
        UniqueConstraint("last_applied_event_id", name="uq_performance_log_event_id"),
        Index("ix_performance_log_performance", "performance_id"),
        Index("ix_performance_log_user", "user_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    event_type: Mapped[str] = mapped_column(String(length=128), nullable=False)
    performance_id: Mapped[str] = mapped_column(String(length=36), nullable=False)
    instance_id: Mapped[str] = mapped_column(String(length=36), nullable=False)
    user_id: Mapped[str] = mapped_column(String(length=128), nullable=False)
    runner_name: Mapped[Optional[str]] = mapped_column(String(length=255), nullable=True)
    run_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    actual_run_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    distance_km: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    time_minutes: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[Optional[str]] = mapped_column(String(length=16), nullable=True)
    recorded_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    change_log: Mapped[Optional[Any]] = mapped_column(JSONType, nullable=True)
    event_payload: Mapped[dict] = mapped_column(JSONType, nullable=False, default=dict)
