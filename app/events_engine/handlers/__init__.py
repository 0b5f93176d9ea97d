"""Projection handlers and the default registration table."""

from __future__ import annotations

from typing import List, Tuple

from app.events_engine.dispatcher import ProjectionHandler
from app.events_engine.handlers.challenge_templates import (
    handle_challenge_template_created,
    handle_challenge_template_deleted,
    handle_challenge_template_updated,
)
from app.events_engine.handlers.challenges import (
    handle_challenge_completed,
    handle_challenge_started,
    handle_challenge_updated,
)
from app.events_engine.handlers.clubs import (
    handle_club_created,
    handle_club_member_joined,
    handle_club_member_left,
    handle_club_updated,
)
from app.events_engine.handlers.runs import handle_run_deleted, handle_run_logged, handle_run_updated
from app.events_engine.handlers.users import handle_user_created, handle_user_updated
from app.events_engine.schemas import EventTypeKey

# Iteration order is the order events of different types are applied within a bucket.
DEFAULT_HANDLERS: List[Tuple[EventTypeKey, ProjectionHandler]] = [
    (EventTypeKey("run.0", "run.logged.0"), handle_run_logged),
    (EventTypeKey("run.0", "run.updated.0"), handle_run_updated),
    (EventTypeKey("run.0", "run.deleted.0"), handle_run_deleted),
    (EventTypeKey("challenge.0", "challenge.started.0"), handle_challenge_started),
    (EventTypeKey("challenge.0", "challenge.updated.0"), handle_challenge_updated),
    (EventTypeKey("challenge.0", "challenge.completed.0"), handle_challenge_completed),
    (EventTypeKey("challenge.template.0", "challenge.template.created.0"), handle_challenge_template_created),
    (EventTypeKey("challenge.template.0", "challenge.template.updated.0"), handle_challenge_template_updated),
    (EventTypeKey("challenge.template.0", "challenge.template.deleted.0"), handle_challenge_template_deleted),
    (EventTypeKey("club.0", "club.created.0"), handle_club_created),
    (EventTypeKey("club.0", "club.updated.0"), handle_club_updated),
    (EventTypeKey("club.0", "club.member.joined.0"), handle_club_member_joined),
    (EventTypeKey("club.0", "club.member.left.0"), handle_club_member_left),
    (EventTypeKey("user.0", "user.created.0"), handle_user_created),
    (EventTypeKey("user.0", "user.updated.0"), handle_user_updated),
]
