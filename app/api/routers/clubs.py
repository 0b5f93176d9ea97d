"""Club endpoints."""

from __future__ import annotations

from typing import List, Optional, Union

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.api.dependencies import get_club_service
from app.schemas.club import ClubMembershipResponse, ClubResponse, ClubRunsResponse, LeaderboardEntry
from app.schemas.run import RunResponse
from app.services.clubs import ClubService

router = APIRouter()


@router.get("", response_model=Union[ClubResponse, List[ClubResponse]])
def list_clubs(
    user_id: Optional[str] = Query(default=None, alias="userId"),
    invite_token: Optional[str] = Query(default=None, alias="inviteToken"),
    service: ClubService = Depends(get_club_service),
) -> Union[ClubResponse, List[ClubResponse]]:
    if invite_token:
        return ClubResponse.model_validate(service.get_by_invite_token(invite_token), from_attributes=True)
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="userId or inviteToken query parameter is required",
        )
    return [ClubResponse.model_validate(club, from_attributes=True) for club in service.list_for_user(user_id)]


@router.get("/{club_id}", response_model=ClubResponse)
def get_club(club_id: str, service: ClubService = Depends(get_club_service)) -> ClubResponse:
    return ClubResponse.model_validate(service.get(club_id), from_attributes=True)


@router.get("/{club_id}/leaderboard", response_model=List[LeaderboardEntry])
def get_leaderboard(
    club_id: str,
    year: int = Query(..., ge=2000, le=9999),
    month: int = Query(..., ge=1, le=12),
    service: ClubService = Depends(get_club_service),
) -> List[LeaderboardEntry]:
    return service.leaderboard(club_id, year=year, month=month)


@router.get("/{club_id}/members", response_model=List[ClubMembershipResponse])
def list_members(club_id: str, service: ClubService = Depends(get_club_service)) -> List[ClubMembershipResponse]:
    return [ClubMembershipResponse.model_validate(member, from_attributes=True) for member in service.members(club_id)]


@router.get("/{club_id}/members/{user_id}", response_model=ClubMembershipResponse)
def get_member(
    club_id: str,
    user_id: str,
    service: ClubService = Depends(get_club_service),
) -> ClubMembershipResponse:
    return ClubMembershipResponse.model_validate(service.membership(club_id, user_id), from_attributes=True)


@router.get("/{club_id}/runs", response_model=ClubRunsResponse)
def list_club_runs(
    club_id: str,
    limit: int = Query(default=50, ge=1, le=500),
    run_status: Optional[str] = Query(default=None, alias="status"),
    service: ClubService = Depends(get_club_service),
) -> ClubRunsResponse:
    runs = service.recent_runs(club_id, limit=limit, status=run_status)
    return ClubRunsResponse(
        runs=[RunResponse.model_validate(run, from_attributes=True) for run in runs],
        count=len(runs),
        limit=limit,
    )
