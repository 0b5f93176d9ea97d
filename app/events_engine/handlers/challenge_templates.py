"""Projection handlers for the ``challenge.template.0`` flow."""

from __future__ import annotations

import logging
from typing import Any

from app.core.database import session_scope
from app.events_engine.handlers.base import (
    guarded_delete,
    guarded_update,
    guarded_upsert,
    projection_handler,
)
from app.models.challenge import ChallengeTemplate
from app.schemas.challenge import (
    ChallengeTemplateCreated,
    ChallengeTemplateDeleted,
    ChallengeTemplateUpdated,
)

LOGGER = logging.getLogger("app.events_engine.handlers.challenge_templates")


@projection_handler("challenge.template.created.0")
def handle_challenge_template_created(payload: Any, event_id: str) -> None:
    template = ChallengeTemplateCreated.model_validate(payload)
    values = template.model_dump(exclude={"id"})
    values.update(id=str(template.id), last_applied_event_id=event_id)
    with session_scope() as session:
        guarded_upsert(session, ChallengeTemplate, values)


@projection_handler("challenge.template.updated.0")
def handle_challenge_template_updated(payload: Any, event_id: str) -> None:
    template = ChallengeTemplateUpdated.model_validate(payload)
    fields = template.provided("id")
    if not fields:
        LOGGER.warning(
            "challenge_template_update_without_fields",
            extra={"template_id": str(template.id), "event_id": event_id},
        )
        return
    with session_scope() as session:
        guarded_update(session, ChallengeTemplate, str(template.id), event_id, fields)


@projection_handler("challenge.template.deleted.0")
def handle_challenge_template_deleted(payload: Any, event_id: str) -> None:
    template = ChallengeTemplateDeleted.model_validate(payload)
    with session_scope() as session:
        guarded_delete(
            session,
            ChallengeTemplate,
            event_id,
            ChallengeTemplate.__table__.c.id == str(template.id),
        )
