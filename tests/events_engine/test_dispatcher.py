from __future__ import annotations

from datetime import datetime, timezone

import pytest

from app.events_engine.dispatcher import EventDispatcher, get_event_dispatcher
from app.events_engine.schemas import EventTypeKey, RawEvent


def make_event(flow: str, event_type: str, event_id: str = "e1") -> RawEvent:
    return RawEvent(
        event_id=event_id,
        flow=flow,
        event_type=event_type,
        payload={"value": 1},
        time_bucket="20250101100000",
        created_at=datetime(2025, 1, 1, 10, tzinfo=timezone.utc),
    )


def test_dispatch_routes_payload_and_event_id() -> None:
    calls = []
    dispatcher = EventDispatcher([(EventTypeKey("run.0", "run.logged.0"), lambda payload, event_id: calls.append((payload, event_id)))])

    assert dispatcher.dispatch(make_event("run.0", "run.logged.0")) is True
    assert calls == [({"value": 1}, "e1")]


def test_unregistered_pairs_are_skipped(caplog) -> None:
    dispatcher = EventDispatcher([])
    assert dispatcher.dispatch(make_event("discount.code.0", "discount.code.created.0")) is False
    assert any(record.getMessage() == "events_engine_unhandled_event_type" for record in caplog.records)


def test_duplicate_registration_is_rejected() -> None:
    handler = lambda payload, event_id: None  # noqa: E731
    with pytest.raises(ValueError):
        EventDispatcher([(("run.0", "run.logged.0"), handler), (("run.0", "run.logged.0"), handler)])


def test_default_registry_order() -> None:
    registered = [str(key) for key in get_event_dispatcher().registered]

    assert registered == [
        "run.0/run.logged.0",
        "run.0/run.updated.0",
        "run.0/run.deleted.0",
        "challenge.0/challenge.started.0",
        "challenge.0/challenge.updated.0",
        "challenge.0/challenge.completed.0",
        "challenge.template.0/challenge.template.created.0",
        "challenge.template.0/challenge.template.updated.0",
        "challenge.template.0/challenge.template.deleted.0",
        "club.0/club.created.0",
        "club.0/club.updated.0",
        "club.0/club.member.joined.0",
        "club.0/club.member.left.0",
        "user.0/user.created.0",
        "user.0/user.updated.0",
    ]
