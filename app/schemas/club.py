"""Contracts for the ``club.0`` flow and club read-model responses."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional
from uuid import UUID

from pydantic import AnyHttpUrl, BaseModel, ConfigDict

from app.schemas.common import EventContract, UtcDateTime
from app.schemas.run import RunResponse

MemberRole = Literal["admin", "member"]


class ClubCreated(EventContract):
    id: UUID
    name: str
    description: Optional[str] = None
    invite_token: str
    logo_url: Optional[AnyHttpUrl] = None
    welcome_text: Optional[Dict[str, Any]] = None
    short_description: Optional[Dict[str, Any]] = None


class ClubUpdated(EventContract):
    id: UUID
    name: Optional[str] = None
    description: Optional[str] = None
    invite_token: Optional[str] = None
    logo_url: Optional[AnyHttpUrl] = None
    welcome_text: Optional[Dict[str, Any]] = None
    short_description: Optional[Dict[str, Any]] = None


class ClubMemberJoined(EventContract):
    id: UUID
    club_id: UUID
    user_id: str
    user_name: Optional[str] = None
    role: MemberRole = "member"
    joined_at: UtcDateTime


class ClubMemberLeft(EventContract):
    id: UUID
    club_id: UUID
    user_id: str


class ClubResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    description: Optional[str]
    invite_token: str
    logo_url: Optional[str]
    welcome_text: Optional[Dict[str, Any]]
    short_description: Optional[Dict[str, Any]]
    last_applied_event_id: str
    created_at: datetime
    updated_at: datetime


class ClubMembershipResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    club_id: str
    user_id: str
    user_name: Optional[str]
    role: str
    joined_at: datetime
    last_applied_event_id: str
    created_at: datetime
    updated_at: datetime


class LeaderboardEntry(BaseModel):
    """Monthly distance total for one club member."""

    user_id: str
    user_name: Optional[str]
    total_distance_km: Optional[float]
    run_count: int


class ClubRunsResponse(BaseModel):
    """Most recent runs recorded by members of a club."""

    runs: List[RunResponse]
    count: int
    limit: int
