"""Read-side queries over clubs, memberships and the monthly leaderboard."""

from __future__ import annotations

from datetime import date
from typing import Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models.challenge import ChallengeInstance
from app.models.club import Club, ClubMembership
from app.models.performance import Performance
from app.models.user import User
from app.schemas.club import LeaderboardEntry
from app.services.runs import latest_per_day


class ClubNotFoundError(ValueError):
    """Raised when the requested club does not exist."""


class MembershipNotFoundError(ValueError):
    """Raised when a user is not a member of the requested club."""


def month_bounds(year: int, month: int) -> tuple[date, date]:
    """Return ``[first day, first day of next month)`` for a calendar month."""

    if not 1 <= month <= 12:
        raise ValueError("month must be between 1 and 12")
    start = date(year, month, 1)
    end = date(year + 1, 1, 1) if month == 12 else date(year, month + 1, 1)
    return start, end


class ClubService:
    """Queries clubs and their members."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def get(self, club_id: str) -> Club:
        club = self._session.get(Club, club_id)
        if not club:
            raise ClubNotFoundError(f"Club {club_id} not found")
        return club

    def get_by_invite_token(self, invite_token: str) -> Club:
        club = self._session.scalar(select(Club).filter(Club.invite_token == invite_token).limit(1))
        if not club:
            raise ClubNotFoundError("Club not found for invite token")
        return club

    def list_for_user(self, user_id: str) -> List[Club]:
        stmt = (
            select(Club)
            .join(ClubMembership, ClubMembership.club_id == Club.id)
            .filter(ClubMembership.user_id == user_id)
            .order_by(Club.created_at.desc())
        )
        return list(self._session.scalars(stmt).unique().all())

    def members(self, club_id: str) -> List[ClubMembership]:
        stmt = select(ClubMembership).filter(ClubMembership.club_id == club_id).order_by(ClubMembership.joined_at.asc())
        return list(self._session.scalars(stmt).all())

    def membership(self, club_id: str, user_id: str) -> ClubMembership:
        membership = self._session.scalar(
            select(ClubMembership)
            .filter(ClubMembership.club_id == club_id, ClubMembership.user_id == user_id)
            .limit(1)
        )
        if not membership:
            raise MembershipNotFoundError(f"User {user_id} is not a member of club {club_id}")
        return membership

    def leaderboard(self, club_id: str, *, year: int, month: int) -> List[LeaderboardEntry]:
        """Sum completed run distance per member for one month.

        Runs are counted once per user and run date (the most recently
        updated record wins). Members without runs are listed last with a
        null total.
        """

        start, end = month_bounds(year, month)
        rows = self._session.execute(
            select(ClubMembership.user_id, ClubMembership.user_name, User.name)
            .outerjoin(User, User.id == ClubMembership.user_id)
            .filter(ClubMembership.club_id == club_id)
        ).all()
        if not rows:
            return []

        names: Dict[str, Optional[str]] = {}
        for user_id, member_name, user_name in rows:
            names.setdefault(user_id, user_name or member_name)

        runs_stmt = (
            select(Performance)
            .join(ChallengeInstance, ChallengeInstance.id == Performance.instance_id)
            .filter(
                ChallengeInstance.user_id.in_(list(names)),
                Performance.status == "completed",
                Performance.run_date >= start,
                Performance.run_date < end,
            )
            .order_by(Performance.updated_at.desc(), Performance.id)
        )
        runs = latest_per_day(self._session.scalars(runs_stmt).all())

        totals: Dict[str, float] = {}
        counts: Dict[str, int] = {}
        for run in runs:
            totals[run.user_id] = totals.get(run.user_id, 0.0) + run.distance_km
            counts[run.user_id] = counts.get(run.user_id, 0) + 1

        entries = [
            LeaderboardEntry(
                user_id=user_id,
                user_name=name,
                total_distance_km=totals.get(user_id),
                run_count=counts.get(user_id, 0),
            )
            for user_id, name in names.items()
        ]
        entries.sort(key=lambda entry: (entry.total_distance_km is None, -(entry.total_distance_km or 0.0)))
        return entries

    def recent_runs(self, club_id: str, *, limit: int = 50, status: Optional[str] = None) -> List[Performance]:
        self.get(club_id)
        stmt = (
            select(Performance)
            .join(ClubMembership, ClubMembership.user_id == Performance.user_id)
            .filter(ClubMembership.club_id == club_id, Performance.status != "deleted")
        )
        if status:
            stmt = stmt.filter(Performance.status == status)
        stmt = stmt.order_by(Performance.updated_at.desc(), Performance.id)
        runs = latest_per_day(self._session.scalars(stmt).unique().all())
        return runs[:limit]
