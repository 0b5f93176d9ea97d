"""Exception handlers for the FastAPI app."""

from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.services.challenges import ChallengeInstanceNotFoundError, ChallengeTemplateNotFoundError
from app.services.clubs import ClubNotFoundError, MembershipNotFoundError
from app.services.runs import RunNotFoundError
from app.services.users import UserNotFoundError

_NOT_FOUND_ERRORS = (
    RunNotFoundError,
    ChallengeTemplateNotFoundError,
    ChallengeInstanceNotFoundError,
    ClubNotFoundError,
    MembershipNotFoundError,
    UserNotFoundError,
)


def register_exception_handlers(app: FastAPI) -> None:
    async def not_found_handler(request: Request, exc: Exception) -> JSONResponse:  # noqa: WPS430
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    for error in _NOT_FOUND_ERRORS:
        app.add_exception_handler(error, not_found_handler)
