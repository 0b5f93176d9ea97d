from __future__ import annotations

import logging
from datetime import date

import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from app.core.database import session_scope
from app.events_engine.errors import HandlerError
from app.events_engine.handlers import runs as runs_module
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
from app.models import (
    ChallengeInstance,
    ChallengeTemplate,
    Club,
    ClubMembership,
    Performance,
    PerformanceLog,
    User,
)

RUN_ID = "8c2f6f4e-6b1a-4d53-9f0e-2f1c3a4b5d60"
INSTANCE_ID = "1b7e0c2a-0d8f-4a8e-b6f1-3e9d2c7a5b41"
TEMPLATE_ID = "5a0e7d1c-2b3f-4c9a-8e6d-7f1a2b3c4d5e"
CLUB_ID = "9d8c7b6a-5f4e-4d3c-8b2a-1f0e9d8c7b6a"
MEMBERSHIP_ID = "3c2b1a09-8f7e-4d6c-9b5a-4f3e2d1c0b9a"


def run_payload(**overrides):
    payload = {
        "id": RUN_ID,
        "instanceId": INSTANCE_ID,
        "userId": "user-1",
        "runnerName": "Ada",
        "runDate": "2025-01-05T00:00:00.000Z",
        "distanceKm": 5,
        "timeMinutes": 30,
        "status": "completed",
    }
    payload.update(overrides)
    return payload


def load(model, row_id):
    with session_scope() as session:
        row = session.get(model, row_id)
        if row is not None:
            session.expunge(row)
        return row


def audit_rows():
    with session_scope() as session:
        rows = session.scalars(select(PerformanceLog).order_by(PerformanceLog.id)).all()
        for row in rows:
            session.expunge(row)
        return rows


def test_run_logged_projects_performance_and_audit_row() -> None:
    handle_run_logged(run_payload(), "e1")

    performance = load(Performance, RUN_ID)
    assert performance.distance_km == 5
    assert performance.run_date == date(2025, 1, 5)
    assert performance.actual_run_date is not None
    assert performance.last_applied_event_id == "e1"

    logs = audit_rows()
    assert len(logs) == 1
    assert logs[0].event_type == "run.logged.0"
    assert logs[0].last_applied_event_id == "e1"
    assert logs[0].distance_km == 5


def test_run_logged_is_idempotent() -> None:
    handle_run_logged(run_payload(), "e1")
    first = load(Performance, RUN_ID)

    handle_run_logged(run_payload(), "e1")
    second = load(Performance, RUN_ID)

    assert second.distance_km == first.distance_km
    assert second.last_applied_event_id == "e1"
    assert second.updated_at == first.updated_at
    assert len(audit_rows()) == 1


def test_run_logged_with_new_event_overwrites_row() -> None:
    handle_run_logged(run_payload(), "e1")
    handle_run_logged(run_payload(distanceKm=7.5), "e2")

    performance = load(Performance, RUN_ID)
    assert performance.distance_km == 7.5
    assert performance.last_applied_event_id == "e2"
    assert len(audit_rows()) == 2


def test_run_updated_touches_only_provided_fields() -> None:
    handle_run_logged(run_payload(notes="easy"), "e1")
    handle_run_updated({"id": RUN_ID, "instanceId": INSTANCE_ID, "userId": "user-1", "distanceKm": 10}, "e2")

    performance = load(Performance, RUN_ID)
    assert performance.distance_km == 10
    assert performance.notes == "easy"
    assert performance.time_minutes == 30
    assert performance.last_applied_event_id == "e2"

    logs = audit_rows()
    assert [log.event_type for log in logs] == ["run.logged.0", "run.updated.0"]
    assert logs[1].distance_km == 10


def test_run_updated_redelivery_is_a_no_op() -> None:
    handle_run_logged(run_payload(), "e1")
    update = {"id": RUN_ID, "instanceId": INSTANCE_ID, "userId": "user-1", "distanceKm": 10}
    handle_run_updated(update, "e2")
    handle_run_updated(update, "e2")

    assert load(Performance, RUN_ID).distance_km == 10
    assert len(audit_rows()) == 2


def test_run_updated_for_unknown_run_is_ignored() -> None:
    handle_run_updated({"id": RUN_ID, "instanceId": INSTANCE_ID, "userId": "user-1", "distanceKm": 10}, "e2")
    assert load(Performance, RUN_ID) is None
    assert audit_rows() == []


def test_run_deleted_removes_row_and_logs_snapshot() -> None:
    handle_run_logged(run_payload(), "e1")
    handle_run_deleted({"id": RUN_ID, "instanceId": INSTANCE_ID, "userId": "user-1"}, "e2")

    assert load(Performance, RUN_ID) is None
    logs = audit_rows()
    assert logs[-1].event_type == "run.deleted.0"
    assert logs[-1].distance_km == 5


def test_run_deleted_for_missing_run_still_logs() -> None:
    handle_run_deleted({"id": RUN_ID, "instanceId": INSTANCE_ID, "userId": "user-1"}, "e9")

    logs = audit_rows()
    assert len(logs) == 1
    assert logs[0].event_type == "run.deleted.0"
    assert logs[0].distance_km is None


def test_stale_delete_does_not_remove_row_written_by_same_event() -> None:
    handle_run_logged(run_payload(), "e1")
    handle_run_deleted({"id": RUN_ID, "instanceId": INSTANCE_ID, "userId": "user-1"}, "e1")
    assert load(Performance, RUN_ID) is not None


def test_invalid_payload_raises_handler_error() -> None:
    with pytest.raises(HandlerError) as excinfo:
        handle_run_logged(run_payload(distanceKm=-1), "bad")

    assert excinfo.value.reason == "invalid_payload"
    assert excinfo.value.event_id == "bad"
    assert load(Performance, RUN_ID) is None


def test_audit_failure_does_not_undo_primary_write(monkeypatch) -> None:
    def failing_insert(session, model, values, *, key):
        raise OperationalError("INSERT INTO performance_log", {}, Exception("disk full"))

    monkeypatch.setattr(runs_module, "insert_once", failing_insert)

    handle_run_logged(run_payload(), "e1")

    assert load(Performance, RUN_ID).last_applied_event_id == "e1"
    assert audit_rows() == []


def test_challenge_lifecycle() -> None:
    started = {
        "id": INSTANCE_ID,
        "templateId": TEMPLATE_ID,
        "userId": "user-1",
        "variant": "full",
        "themeKey": "january",
        "status": "active",
        "joinedAt": "2025-01-01T08:00:00Z",
    }
    handle_challenge_started(started, "c1")
    handle_challenge_updated({"id": INSTANCE_ID, "variant": "half"}, "c2")
    handle_challenge_completed(
        {
            "id": INSTANCE_ID,
            "userId": "user-1",
            "totalCompletedKm": 120.5,
            "succeeded": True,
            "completedAt": "2025-02-01T00:00:00Z",
        },
        "c3",
    )

    instance = load(ChallengeInstance, INSTANCE_ID)
    assert instance.variant == "half"
    assert instance.status == "completed"
    assert instance.total_completed_km == 120.5
    assert instance.succeeded is True
    assert instance.last_applied_event_id == "c3"


def test_challenge_completed_requires_matching_user() -> None:
    handle_challenge_started(
        {
            "id": INSTANCE_ID,
            "templateId": TEMPLATE_ID,
            "userId": "user-1",
            "variant": "full",
            "themeKey": "january",
            "joinedAt": "2025-01-01T08:00:00Z",
        },
        "c1",
    )
    handle_challenge_completed(
        {
            "id": INSTANCE_ID,
            "userId": "someone-else",
            "totalCompletedKm": 1,
            "succeeded": False,
            "completedAt": "2025-02-01T00:00:00Z",
        },
        "c2",
    )
    assert load(ChallengeInstance, INSTANCE_ID).status == "active"


def test_challenge_template_dates_are_normalized_and_delete_is_guarded() -> None:
    template = {
        "id": TEMPLATE_ID,
        "name": "January",
        "description": "Run every day",
        "startDate": "2025-01-01T00:00:00.000Z",
        "endDate": "2025-01-31",
        "days": 31,
        "requiredDistancesKm": [1, 2, 3],
        "fullDistanceTotalKm": 496,
        "halfDistanceTotalKm": 248,
        "themeKey": "january",
    }
    handle_challenge_template_created(template, "t1")

    stored = load(ChallengeTemplate, TEMPLATE_ID)
    assert stored.start_date == date(2025, 1, 1)
    assert stored.required_distances_km == [1, 2, 3]

    handle_challenge_template_deleted({"id": TEMPLATE_ID}, "t1")
    assert load(ChallengeTemplate, TEMPLATE_ID) is not None

    handle_challenge_template_deleted({"id": TEMPLATE_ID}, "t2")
    assert load(ChallengeTemplate, TEMPLATE_ID) is None


def test_challenge_template_update_without_fields_is_logged(caplog) -> None:
    handle_challenge_template_created(
        {
            "id": TEMPLATE_ID,
            "name": "January",
            "description": "Run every day",
            "startDate": "2025-01-01",
            "endDate": "2025-01-31",
            "days": 31,
            "requiredDistancesKm": [1, 2, 3],
            "fullDistanceTotalKm": 496,
            "halfDistanceTotalKm": 248,
            "themeKey": "january",
        },
        "t1",
    )

    with caplog.at_level(logging.WARNING, logger="app.events_engine.handlers.challenge_templates"):
        handle_challenge_template_updated({"id": TEMPLATE_ID}, "t2")
    handle_challenge_template_updated({"id": TEMPLATE_ID, "name": "Winter"}, "t3")

    assert any(record.getMessage() == "challenge_template_update_without_fields" for record in caplog.records)
    stored = load(ChallengeTemplate, TEMPLATE_ID)
    assert stored.name == "Winter"
    assert stored.last_applied_event_id == "t3"


def test_club_membership_backfills_user_name() -> None:
    handle_user_created({"id": "user-1", "name": "Ada Lovelace", "email": "ada@example.com"}, "u1")
    handle_club_created(
        {"id": CLUB_ID, "name": "Morning Milers", "inviteToken": "tok", "logoUrl": "https://cdn.example.com/logo.png"},
        "k1",
    )
    handle_club_member_joined(
        {"id": MEMBERSHIP_ID, "clubId": CLUB_ID, "userId": "user-1", "joinedAt": "2025-01-02T09:00:00Z"},
        "k2",
    )

    club = load(Club, CLUB_ID)
    assert club.logo_url == "https://cdn.example.com/logo.png"
    membership = load(ClubMembership, MEMBERSHIP_ID)
    assert membership.user_name == "Ada Lovelace"
    assert membership.role == "member"


def test_club_member_joined_before_user_exists() -> None:
    handle_club_member_joined(
        {"id": MEMBERSHIP_ID, "clubId": CLUB_ID, "userId": "ghost", "joinedAt": "2025-01-02T09:00:00Z"},
        "k2",
    )
    assert load(ClubMembership, MEMBERSHIP_ID).user_name is None


def test_club_update_and_member_left() -> None:
    handle_club_created({"id": CLUB_ID, "name": "Morning Milers", "inviteToken": "tok"}, "k1")
    handle_club_updated({"id": CLUB_ID, "description": "Dawn runs"}, "k2")
    handle_club_member_joined(
        {
            "id": MEMBERSHIP_ID,
            "clubId": CLUB_ID,
            "userId": "user-1",
            "userName": "Ada",
            "role": "admin",
            "joinedAt": "2025-01-02T09:00:00Z",
        },
        "k3",
    )
    handle_club_member_left({"id": MEMBERSHIP_ID, "clubId": CLUB_ID, "userId": "user-1"}, "k4")

    club = load(Club, CLUB_ID)
    assert club.name == "Morning Milers"
    assert club.description == "Dawn runs"
    assert load(ClubMembership, MEMBERSHIP_ID) is None


def test_user_created_keeps_known_fields() -> None:
    handle_user_created({"id": "user-1", "name": "Ada", "email": "ada@example.com"}, "u1")
    handle_user_created({"id": "user-1"}, "u2")

    user = load(User, "user-1")
    assert user.name == "Ada"
    assert user.email == "ada@example.com"
    assert user.last_applied_event_id == "u2"


def test_user_updated_partial() -> None:
    handle_user_created({"id": "user-1", "name": "Ada", "email": "ada@example.com"}, "u1")
    handle_user_updated({"id": "user-1", "name": "Ada L."}, "u2")
    handle_user_updated({"id": "user-1"}, "u3")

    user = load(User, "user-1")
    assert user.name == "Ada L."
    assert user.email == "ada@example.com"
    assert user.last_applied_event_id == "u2"
