"""Contracts for the ``challenge.0`` and ``challenge.template.0`` flows."""

from __future__ import annotations

from datetime import date, datetime
from typing import List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, NonNegativeFloat, PositiveInt

from app.schemas.common import DateOnly, EventContract, UtcDateTime

Variant = Literal[
    "full",
    "half",
    "1/8",
    "2/8",
    "3/8",
    "4/8",
    "5/8",
    "6/8",
    "7/8",
    "8/8",
    "1/7",
    "2/7",
    "3/7",
    "4/7",
    "5/7",
    "6/7",
    "7/7",
    "1/5",
    "2/5",
    "3/5",
    "4/5",
    "5/5",
]
ChallengeStatus = Literal["active", "completed"]


class ChallengeStarted(EventContract):
    id: UUID
    template_id: UUID
    user_id: str
    variant: Variant
    theme_key: str
    status: ChallengeStatus = "active"
    joined_at: UtcDateTime


class ChallengeUpdated(EventContract):
    id: UUID
    template_id: Optional[UUID] = None
    user_id: Optional[str] = None
    variant: Optional[Variant] = None
    theme_key: Optional[str] = None
    status: Optional[ChallengeStatus] = None
    total_completed_km: Optional[float] = None
    succeeded: Optional[bool] = None
    completed_at: Optional[UtcDateTime] = None


class ChallengeCompleted(EventContract):
    id: UUID
    user_id: str
    total_completed_km: float
    succeeded: bool
    completed_at: UtcDateTime


class ChallengeTemplateCreated(EventContract):
    id: UUID
    name: str
    description: str
    start_date: DateOnly
    end_date: DateOnly
    days: PositiveInt
    required_distances_km: List[NonNegativeFloat]
    full_distance_total_km: NonNegativeFloat
    half_distance_total_km: NonNegativeFloat
    theme_key: str


class ChallengeTemplateUpdated(EventContract):
    id: UUID
    name: Optional[str] = None
    description: Optional[str] = None
    start_date: Optional[DateOnly] = None
    end_date: Optional[DateOnly] = None
    days: Optional[PositiveInt] = None
    required_distances_km: Optional[List[NonNegativeFloat]] = None
    full_distance_total_km: Optional[NonNegativeFloat] = None
    half_distance_total_km: Optional[NonNegativeFloat] = None
    theme_key: Optional[str] = None


class ChallengeTemplateDeleted(EventContract):
    id: UUID


class ChallengeInstanceResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    template_id: str
    user_id: str
    variant: str
    theme_key: str
    status: str
    joined_at: datetime
    total_completed_km: Optional[float]
    succeeded: Optional[bool]
    completed_at: Optional[datetime]
    last_applied_event_id: str
    created_at: datetime
    updated_at: datetime


class ChallengeTemplateResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    description: str
    start_date: date
    end_date: date
    days: int
    required_distances_km: List[float]
    full_distance_total_km: float
    half_distance_total_km: float
    theme_key: str
    last_applied_event_id: str
    created_at: datetime
    updated_at: datetime
