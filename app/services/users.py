"""Read-side queries over user projections."""

from __future__ import annotations

from typing import Iterable, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models.user import User


class UserNotFoundError(ValueError):
    """Raised when the requested user does not exist."""


class UserService:
    def __init__(self, session: Session) -> None:
        self._session = session

    def get(self, user_id: str) -> User:
        user = self._session.get(User, user_id)
        if not user:
            raise UserNotFoundError(f"User {user_id} not found")
        return user

    def list(self, *, user_ids: Optional[Iterable[str]] = None) -> List[User]:
        stmt = select(User)
        if user_ids is not None:
            ids = [user_id for user_id in user_ids if user_id]
            if not ids:
                return []
            stmt = stmt.filter(User.id.in_(ids))
        stmt = stmt.order_by(User.name.is_(None), User.name.asc(), User.id.asc())
        return list(self._session.scalars(stmt).all())
