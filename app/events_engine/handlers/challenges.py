"""Projection handlers for the ``challenge.0`` flow."""

from __future__ import annotations

import logging
from typing import Any

from app.core.database import session_scope
from app.events_engine.handlers.base import guarded_update, guarded_upsert, projection_handler
from app.models.challenge import ChallengeInstance
from app.schemas.challenge import ChallengeCompleted, ChallengeStarted, ChallengeUpdated

LOGGER = logging.getLogger("app.events_engine.handlers.challenges")


@projection_handler("challenge.started.0")
def handle_challenge_started(payload: Any, event_id: str) -> None:
    challenge = ChallengeStarted.model_validate(payload)
    with session_scope() as session:
        guarded_upsert(
            session,
            ChallengeInstance,
            {
                "id": str(challenge.id),
                "last_applied_event_id": event_id,
                "template_id": str(challenge.template_id),
                "user_id": challenge.user_id,
                "variant": challenge.variant,
                "theme_key": challenge.theme_key,
                "status": challenge.status,
                "joined_at": challenge.joined_at,
            },
        )


@projection_handler("challenge.updated.0")
def handle_challenge_updated(payload: Any, event_id: str) -> None:
    challenge = ChallengeUpdated.model_validate(payload)
    fields = challenge.provided("id")
    if not fields:
        LOGGER.warning("challenge_update_without_fields", extra={"instance_id": str(challenge.id), "event_id": event_id})
        return
    if fields.get("template_id") is not None:
        fields["template_id"] = str(fields["template_id"])

    with session_scope() as session:
        guarded_update(session, ChallengeInstance, str(challenge.id), event_id, fields)


@projection_handler("challenge.completed.0")
def handle_challenge_completed(payload: Any, event_id: str) -> None:
    challenge = ChallengeCompleted.model_validate(payload)
    with session_scope() as session:
        guarded_update(
            session,
            ChallengeInstance,
            str(challenge.id),
            event_id,
            {
                "status": "completed",
                "total_completed_km": challenge.total_completed_km,
                "succeeded": challenge.succeeded,
                "completed_at": challenge.completed_at,
            },
            ChallengeInstance.__table__.c.user_id == challenge.user_id,
        )
