"""Declarative base and mixins."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Declarative base class for all ORM models."""


class TimestampMixin:
    """Adds created_at/updated_at columns."""

    created_at: Mapped[datetime] = mapped_column(
        default=None,
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        default=None,
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )


class ProjectionMixin(TimestampMixin):
    """Columns shared by every row derived from upstream events.

    ``last_applied_event_id`` holds the id of the event the row's attributes
    reflect. Writes are conditioned on it differing from the incoming event id.
    """

    last_applied_event_id: Mapped[str] = mapped_column(String(length=128), nullable=False)
