from __future__ import annotations

from datetime import datetime, timezone

import pytest

from app.events_engine.errors import TransientSourceError
from app.events_engine.schemas import (
    EventTypeKey,
    normalize_data_core_id,
    normalize_event_page,
    normalize_time_buckets,
)
from app.events_engine.time_buckets import TimeBucket

KEY = EventTypeKey("run.0", "run.logged.0")
BUCKET = TimeBucket("20250101100000")


def test_page_prefers_events_and_next_cursor() -> None:
    body = {
        "events": [{"eventId": "e1", "payload": {"distanceKm": 5}, "createdAt": "2025-01-01T10:01:00Z"}],
        "data": [{"eventId": "ignored"}],
        "nextCursor": "c2",
        "cursor": "c1",
    }
    page = normalize_event_page(body, key=KEY, bucket=BUCKET)

    assert [event.event_id for event in page.events] == ["e1"]
    assert page.events[0].payload == {"distanceKm": 5}
    assert page.events[0].flow == "run.0"
    assert page.events[0].time_bucket == "20250101100000"
    assert page.next_cursor == "c2"


def test_page_falls_back_to_alternate_field_names() -> None:
    body = {"data": [{"id": "e1", "data": {"distanceKm": 3}, "validTime": "2025-01-01T10:00:00"}], "cursor": "c1"}
    page = normalize_event_page(body, key=KEY, bucket=BUCKET)

    event = page.events[0]
    assert event.event_id == "e1"
    assert event.payload == {"distanceKm": 3}
    assert event.created_at.tzinfo is not None
    assert page.next_cursor == "c1"


def test_events_without_id_are_dropped() -> None:
    body = {"events": [{"payload": {}}, {"eventId": "e2", "payload": {}}, "not-an-object"]}
    page = normalize_event_page(body, key=KEY, bucket=BUCKET)
    assert [event.event_id for event in page.events] == ["e2"]
    assert page.next_cursor is None


def test_unreadable_timestamp_keeps_the_event() -> None:
    body = {"events": [{"eventId": "e1", "payload": {"distanceKm": 5}, "createdAt": "not-a-date"}]}
    before = datetime.now(timezone.utc)

    page = normalize_event_page(body, key=KEY, bucket=BUCKET)

    assert [event.event_id for event in page.events] == ["e1"]
    assert page.events[0].payload == {"distanceKm": 5}
    assert page.events[0].created_at >= before


def test_page_size_counts_dropped_entries() -> None:
    body = {"events": [{"eventId": "e1"}, {"payload": {}}, "not-an-object"], "nextCursor": "c1"}
    page = normalize_event_page(body, key=KEY, bucket=BUCKET)

    assert len(page.events) == 1
    assert page.size == 3


def test_bare_list_body_is_a_final_page() -> None:
    page = normalize_event_page([{"eventId": "e1", "payload": {}}], key=KEY, bucket=BUCKET)
    assert len(page.events) == 1
    assert page.next_cursor is None


@pytest.mark.parametrize("body", ["oops", 42, {"events": "nope"}])
def test_malformed_page_is_transient(body) -> None:
    with pytest.raises(TransientSourceError):
        normalize_event_page(body, key=KEY, bucket=BUCKET)


def test_time_buckets_accept_mixed_entry_shapes() -> None:
    body = {
        "timeBuckets": [
            "20250101120000",
            {"timeBucket": "20250101100000"},
            {"name": "20250101110000"},
            {"value": "bogus"},
            "20250101120000",
        ]
    }
    assert [bucket.key for bucket in normalize_time_buckets(body)] == [
        "20250101100000",
        "20250101110000",
        "20250101120000",
    ]


def test_time_buckets_from_bare_list_and_alternate_key() -> None:
    assert normalize_time_buckets(["20250101100000"])[0].key == "20250101100000"
    assert normalize_time_buckets({"buckets": [{"bucket": "20250101100000"}]})[0].key == "20250101100000"
    assert normalize_time_buckets({}) == []


def test_data_core_id_precedence() -> None:
    assert normalize_data_core_id({"id": "dc-1", "dataCoreId": "dc-2"}) == "dc-1"
    assert normalize_data_core_id({"dataCoreId": "dc-2"}) == "dc-2"
    assert normalize_data_core_id(["dc-1"]) is None
