"""User projection keyed by the identity provider's user id."""

from __future__ import annotations

from typing import Optional

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, ProjectionMixin


class User(ProjectionMixin, Base):
    __tablename__ = "user"

    id: Mapped[str] = mapped_column(String(length=128), primary_key=True)
    name: Mapped[Optional[str]] = mapped_column(String(length=255), nullable=True)
    email: Mapped[Optional[str]] = mapped_column(String(length=320), nullable=True)
