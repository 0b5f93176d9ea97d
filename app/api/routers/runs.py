"""Run read endpoints."""

from __future__ import annotations

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from app.api.dependencies import get_run_service
from app.schemas.run import RunResponse
from app.services.runs import RunService

router = APIRouter()


@router.get("", response_model=List[RunResponse])
def list_runs(
    instance_id: Optional[str] = Query(default=None, alias="instanceId"),
    user_id: Optional[str] = Query(default=None, alias="userId"),
    run_date: Optional[date] = Query(default=None, alias="runDate"),
    status: Optional[str] = Query(default=None),
    service: RunService = Depends(get_run_service),
) -> List[RunResponse]:
    runs = service.list(instance_id=instance_id, user_id=user_id, run_date=run_date, status=status)
    return [RunResponse.model_validate(run, from_attributes=True) for run in runs]


@router.get("/{run_id}", response_model=RunResponse)
def get_run(run_id: str, service: RunService = Depends(get_run_service)) -> RunResponse:
    return RunResponse.model_validate(service.get(run_id), from_attributes=True)
