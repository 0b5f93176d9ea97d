"""Run audit trail endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query

from app.api.dependencies import get_run_service
from app.schemas.run import PerformanceLogList, PerformanceLogResponse
from app.services.runs import RunService

router = APIRouter()


@router.get("", response_model=PerformanceLogList)
def list_performance_logs(
    user_id: str = Query(..., alias="userId"),
    start_date: Optional[datetime] = Query(default=None, alias="startDate"),
    end_date: Optional[datetime] = Query(default=None, alias="endDate"),
    event_type: Optional[Literal["run.logged.0", "run.updated.0", "run.deleted.0"]] = Query(
        default=None, alias="eventType"
    ),
    limit: int = Query(default=100, ge=1, le=1000),
    offset: int = Query(default=0, ge=0),
    service: RunService = Depends(get_run_service),
) -> PerformanceLogList:
    logs = service.list_logs(
        user_id=user_id,
        start=start_date,
        end=end_date,
        event_type=event_type,
        limit=limit,
        offset=offset,
    )
    return PerformanceLogList(
        logs=[PerformanceLogResponse.model_validate(log, from_attributes=True) for log in logs],
        count=len(logs),
        limit=limit,
        offset=offset,
    )


@router.get("/{performance_id}", response_model=PerformanceLogList)
def get_performance_logs(performance_id: str, service: RunService = Depends(get_run_service)) -> PerformanceLogList:
    logs = service.logs_for_performance(performance_id)
    return PerformanceLogList(
        logs=[PerformanceLogResponse.model_validate(log, from_attributes=True) for log in logs],
        count=len(logs),
    )
