"""Challenge template and instance endpoints."""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.api.dependencies import get_challenge_service, get_run_service
from app.schemas.challenge import ChallengeInstanceResponse, ChallengeTemplateResponse
from app.schemas.run import RunResponse
from app.services.challenges import ChallengeService
from app.services.runs import RunService

router = APIRouter()


@router.get("/templates", response_model=List[ChallengeTemplateResponse])
def list_templates(service: ChallengeService = Depends(get_challenge_service)) -> List[ChallengeTemplateResponse]:
    return [ChallengeTemplateResponse.model_validate(t, from_attributes=True) for t in service.list_templates()]


@router.get("/templates/{template_id}", response_model=ChallengeTemplateResponse)
def get_template(
    template_id: str,
    service: ChallengeService = Depends(get_challenge_service),
) -> ChallengeTemplateResponse:
    return ChallengeTemplateResponse.model_validate(service.get_template(template_id), from_attributes=True)


@router.get("/instances", response_model=List[ChallengeInstanceResponse])
def list_instances(
    user_id: Optional[str] = Query(default=None, alias="userId"),
    template_id: Optional[str] = Query(default=None, alias="templateId"),
    service: ChallengeService = Depends(get_challenge_service),
) -> List[ChallengeInstanceResponse]:
    if not user_id and not template_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="userId or templateId query parameter is required",
        )
    instances = service.list_instances(user_id=user_id, template_id=template_id)
    return [ChallengeInstanceResponse.model_validate(instance, from_attributes=True) for instance in instances]


@router.get("/instances/{instance_id}", response_model=ChallengeInstanceResponse)
def get_instance(
    instance_id: str,
    service: ChallengeService = Depends(get_challenge_service),
) -> ChallengeInstanceResponse:
    return ChallengeInstanceResponse.model_validate(service.get_instance(instance_id), from_attributes=True)


@router.get("/instances/{instance_id}/runs", response_model=List[RunResponse])
def list_instance_runs(instance_id: str, service: RunService = Depends(get_run_service)) -> List[RunResponse]:
    return [RunResponse.model_validate(run, from_attributes=True) for run in service.list_for_instance(instance_id)]
