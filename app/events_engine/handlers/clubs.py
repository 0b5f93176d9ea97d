"""Projection handlers for the ``club.0`` flow."""

from __future__ import annotations

import logging
from typing import Any, Dict

from sqlalchemy import select

from app.core.database import session_scope
from app.events_engine.handlers.base import (
    guarded_delete,
    guarded_update,
    guarded_upsert,
    projection_handler,
)
from app.models.club import Club, ClubMembership
from app.models.user import User
from app.schemas.club import ClubCreated, ClubMemberJoined, ClubMemberLeft, ClubUpdated

LOGGER = logging.getLogger("app.events_engine.handlers.clubs")


def _club_columns(fields: Dict[str, Any]) -> Dict[str, Any]:
    if fields.get("logo_url") is not None:
        fields["logo_url"] = str(fields["logo_url"])
    return fields


@projection_handler("club.created.0")
def handle_club_created(payload: Any, event_id: str) -> None:
    club = ClubCreated.model_validate(payload)
    values = _club_columns(club.model_dump(exclude={"id"}))
    values.update(id=str(club.id), last_applied_event_id=event_id)
    with session_scope() as session:
        guarded_upsert(session, Club, values)


@projection_handler("club.updated.0")
def handle_club_updated(payload: Any, event_id: str) -> None:
    club = ClubUpdated.model_validate(payload)
    fields = _club_columns(club.provided("id"))
    if not fields:
        LOGGER.warning("club_update_without_fields", extra={"club_id": str(club.id), "event_id": event_id})
        return
    with session_scope() as session:
        guarded_update(session, Club, str(club.id), event_id, fields)


@projection_handler("club.member.joined.0")
def handle_club_member_joined(payload: Any, event_id: str) -> None:
    member = ClubMemberJoined.model_validate(payload)
    with session_scope() as session:
        user_name = member.user_name
        if not user_name:
            # The user projection may not exist yet; the name stays null until a later event.
            user_name = session.scalar(select(User.name).where(User.id == member.user_id).limit(1))

        guarded_upsert(
            session,
            ClubMembership,
            {
                "id": str(member.id),
                "last_applied_event_id": event_id,
                "club_id": str(member.club_id),
                "user_id": member.user_id,
                "user_name": user_name,
                "role": member.role,
                "joined_at": member.joined_at,
            },
        )


@projection_handler("club.member.left.0")
def handle_club_member_left(payload: Any, event_id: str) -> None:
    member = ClubMemberLeft.model_validate(payload)
    table = ClubMembership.__table__
    with session_scope() as session:
        guarded_delete(
            session,
            ClubMembership,
            event_id,
            table.c.club_id == str(member.club_id),
            table.c.user_id == member.user_id,
        )
