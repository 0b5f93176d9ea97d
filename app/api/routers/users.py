"""User endpoints."""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from app.api.dependencies import get_user_service
from app.schemas.user import UserResponse
from app.services.users import UserService

router = APIRouter()


@router.get("", response_model=List[UserResponse])
def list_users(
    user_ids: Optional[str] = Query(default=None, alias="userIds", description="Comma-separated user ids"),
    service: UserService = Depends(get_user_service),
) -> List[UserResponse]:
    ids = [part.strip() for part in user_ids.split(",")] if user_ids is not None else None
    return [UserResponse.model_validate(user, from_attributes=True) for user in service.list(user_ids=ids)]


@router.get("/{user_id}", response_model=UserResponse)
def get_user(user_id: str, service: UserService = Depends(get_user_service)) -> UserResponse:
    return UserResponse.model_validate(service.get(user_id), from_attributes=True)
