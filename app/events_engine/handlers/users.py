"""Projection handlers for the ``user.0`` flow."""

from __future__ import annotations

import logging
from typing import Any

from app.core.database import session_scope
from app.events_engine.handlers.base import guarded_update, guarded_upsert, projection_handler
from app.models.user import User
from app.schemas.user import UserCreated, UserUpdated

LOGGER = logging.getLogger("app.events_engine.handlers.users")


@projection_handler("user.created.0")
def handle_user_created(payload: Any, event_id: str) -> None:
    """Create the user, or refresh an existing one without blanking known fields."""

    user = UserCreated.model_validate(payload)
    with session_scope() as session:
        guarded_upsert(
            session,
            User,
            {
                "id": user.id,
                "last_applied_event_id": event_id,
                "name": user.name,
                "email": user.email,
            },
            keep_existing=("name", "email"),
        )


@projection_handler("user.updated.0")
def handle_user_updated(payload: Any, event_id: str) -> None:
    user = UserUpdated.model_validate(payload)
    fields = user.provided("id")
    if not fields:
        LOGGER.warning("user_update_without_fields", extra={"user_id": user.id, "event_id": event_id})
        return
    with session_scope() as session:
        guarded_update(session, User, user.id, event_id, fields)
