"""Dependency injection helpers for FastAPI routes."""

from __future__ import annotations

import hmac
import logging
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import APIKeyHeader, HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.core.config import get_settings
from app.core.database import get_session
from app.services.challenges import ChallengeService
from app.services.clubs import ClubService
from app.services.runs import RunService
from app.services.users import UserService

LOGGER = logging.getLogger("app.api.auth")

_bearer = HTTPBearer(auto_error=False)
_api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)


def require_api_key(
    bearer: Optional[HTTPAuthorizationCredentials] = Depends(_bearer),
    api_key: Optional[str] = Depends(_api_key_header),
) -> None:
    """Accept ``Authorization: Bearer <key>`` or ``X-API-Key: <key>``.

    When no backend key is configured every request is allowed.
    """

    expected = get_settings().backend_api_key
    if not expected:
        LOGGER.warning("api_key_auth_disabled")
        return

    provided = bearer.credentials if bearer else api_key
    if not provided:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="API key required. Provide via Authorization: Bearer <key> or X-API-Key header",
        )
    if not hmac.compare_digest(provided.encode(), expected.encode()):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid API key")


def get_db_session() -> Session:
    yield from get_session()


def get_run_service(session: Session = Depends(get_db_session)) -> RunService:
    return RunService(session)


def get_challenge_service(session: Session = Depends(get_db_session)) -> ChallengeService:
    return ChallengeService(session)


def get_club_service(session: Session = Depends(get_db_session)) -> ClubService:
    return ClubService(session)


def get_user_service(session: Session = Depends(get_db_session)) -> UserService:
    return UserService(session)
