"""Contracts for the ``run.0`` flow and run read-model responses."""

from __future__ import annotations

import json
from datetime import date, datetime
from typing import Any, Dict, List, Literal, Optional, Union
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, PositiveFloat, PositiveInt, field_validator

from app.schemas.common import DateOnly, EventContract

RunStatus = Literal["planned", "completed", "skipped", "deleted"]
ChangeLog = Union[Dict[str, Any], List[Any]]


class _RunFields(EventContract):
    @field_validator("notes", mode="before", check_fields=False)
    @classmethod
    def _notes_to_string(cls, value: Any) -> Any:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("change_log", mode="before", check_fields=False)
    @classmethod
    def _parse_change_log(cls, value: Any) -> Any:
        if isinstance(value, str):
            try:
                return json.loads(value)
            except ValueError:
                return {"raw": value}
        return value


class RunLogged(_RunFields):
    id: UUID
    instance_id: UUID
    user_id: str
    runner_name: Optional[str] = None
    run_date: DateOnly
    actual_run_date: Optional[DateOnly] = None
    distance_km: PositiveFloat
    time_minutes: Optional[PositiveInt] = None
    notes: Optional[str] = None
    status: RunStatus = "completed"
    recorded_at: Optional[datetime] = None
    change_log: Optional[ChangeLog] = None


class RunUpdated(_RunFields):
    id: UUID
    instance_id: UUID
    user_id: str
    runner_name: Optional[str] = None
    run_date: Optional[DateOnly] = None
    actual_run_date: Optional[DateOnly] = None
    distance_km: Optional[PositiveFloat] = None
    time_minutes: Optional[PositiveInt] = None
    notes: Optional[str] = None
    status: Optional[RunStatus] = None
    recorded_at: Optional[datetime] = None
    change_log: Optional[ChangeLog] = None


class RunDeleted(EventContract):
    id: UUID
    instance_id: UUID
    user_id: str


class RunResponse(BaseModel):
    """API response describing a projected run."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    instance_id: str
    user_id: str
    runner_name: Optional[str]
    run_date: date
    actual_run_date: Optional[date]
    distance_km: float
    time_minutes: Optional[int]
    notes: Optional[str]
    status: str
    recorded_at: Optional[datetime]
    change_log: Optional[Any]
    last_applied_event_id: str
    created_at: datetime
    updated_at: datetime


class PerformanceLogResponse(BaseModel):
    """API response describing one entry of the run audit trail."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    event_id: str = Field(validation_alias="last_applied_event_id")
    event_type: str
    performance_id: str
    instance_id: str
    user_id: str
    runner_name: Optional[str]
    run_date: Optional[date]
    actual_run_date: Optional[date]
    distance_km: Optional[float]
    time_minutes: Optional[int]
    notes: Optional[str]
    status: Optional[str]
    recorded_at: Optional[datetime]
    change_log: Optional[Any]
    event_payload: Dict[str, Any]
    created_at: datetime


class PerformanceLogList(BaseModel):
    logs: List[PerformanceLogResponse]
    count: int
    limit: Optional[int] = None
    offset: Optional[int] = None
