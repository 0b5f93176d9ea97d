"""Contracts for the ``user.0`` flow."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr

from app.schemas.common import EventContract


class UserCreated(EventContract):
    # Identity provider id, not necessarily a UUID.
    id: str
    name: Optional[str] = None
    email: Optional[EmailStr] = None


class UserUpdated(EventContract):
    id: str
    name: Optional[str] = None
    email: Optional[EmailStr] = None


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: Optional[str]
    email: Optional[str]
    last_applied_event_id: str
    created_at: datetime
    updated_at: datetime
