"""Normalized event models and upstream response normalization.

The event source has returned the same information under different field
names across API versions. Every lookup below goes through an explicit
precedence list so call sites only ever see the normalized shape.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, NamedTuple, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator

from app.events_engine.errors import TransientSourceError
from app.events_engine.time_buckets import TimeBucket

LOGGER = logging.getLogger("app.events_engine.schemas")

PAGE_EVENTS_FIELDS = ("events", "data")
PAGE_CURSOR_FIELDS = ("nextCursor", "cursor")
EVENT_ID_FIELDS = ("eventId", "id")
EVENT_PAYLOAD_FIELDS = ("payload", "data")
EVENT_CREATED_AT_FIELDS = ("createdAt", "validTime")
BUCKET_LIST_FIELDS = ("timeBuckets", "buckets", "data")
BUCKET_ENTRY_FIELDS = ("timeBucket", "bucket", "name", "value")
DATA_CORE_ID_FIELDS = ("id", "dataCoreId")

_MISSING = object()
_DATETIME = TypeAdapter(datetime)


class EventTypeKey(NamedTuple):
    """A ``(flow type, event type)`` pair."""

    flow: str
    event_type: str

    def __str__(self) -> str:
        return f"{self.flow}/{self.event_type}"


class RawEvent(BaseModel):
    """An event as observed in the upstream log. Immutable once fetched."""

    model_config = ConfigDict(frozen=True)

    event_id: str = Field(..., min_length=1)
    flow: str
    event_type: str
    payload: Any
    time_bucket: str
    created_at: datetime

    @field_validator("created_at")
    @classmethod
    def _ensure_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


class EventPage(BaseModel):
    """One page of events for a single flow, event type and bucket."""

    model_config = ConfigDict(frozen=True)

    events: List[RawEvent] = Field(default_factory=list)
    next_cursor: Optional[str] = None
    # Items on the upstream page before malformed entries were dropped.
    raw_count: Optional[int] = None

    @property
    def size(self) -> int:
        """Upstream page length, used to detect the final page of a bucket."""

        return self.raw_count if self.raw_count is not None else len(self.events)


def first_present(source: Mapping[str, Any], fields: Sequence[str], default: Any = None) -> Any:
    """Return the value of the first field in ``fields`` that is present and not null."""

    for field in fields:
        value = source.get(field, _MISSING)
        if value is not _MISSING and value is not None:
            return value
    return default


def _parse_created_at(value: Any, *, event_id: str, key: EventTypeKey) -> datetime:
    """Parse the upstream timestamp, falling back to now when it is absent or unreadable."""

    if not value:
        return datetime.now(timezone.utc)
    try:
        return _DATETIME.validate_python(value)
    except ValidationError:
        LOGGER.warning(
            "event_source_event_invalid_created_at",
            extra={"event_id": event_id, "flow": key.flow, "event_type": key.event_type, "created_at": repr(value)[:100]},
        )
        return datetime.now(timezone.utc)


def normalize_event(
    raw: Mapping[str, Any],
    *,
    key: EventTypeKey,
    bucket: TimeBucket,
) -> Optional[RawEvent]:
    """Build a ``RawEvent`` from an upstream event object.

    Returns ``None`` (and logs) when the event carries no usable id or timestamp.
    """

    event_id = first_present(raw, EVENT_ID_FIELDS)
    if not event_id:
        LOGGER.warning(
            "event_source_event_missing_id",
            extra={"flow": key.flow, "event_type": key.event_type, "time_bucket": str(bucket)},
        )
        return None

    payload = first_present(raw, EVENT_PAYLOAD_FIELDS, default=dict(raw))
    created_at = _parse_created_at(first_present(raw, EVENT_CREATED_AT_FIELDS), event_id=str(event_id), key=key)
    try:
        return RawEvent(
            event_id=str(event_id),
            flow=key.flow,
            event_type=key.event_type,
            payload=payload,
            time_bucket=str(bucket),
            created_at=created_at,
        )
    except ValidationError as exc:
        LOGGER.warning(
            "event_source_event_malformed",
            extra={"event_id": str(event_id), "flow": key.flow, "event_type": key.event_type, "error": str(exc)},
        )
        return None


def normalize_event_page(body: Any, *, key: EventTypeKey, bucket: TimeBucket) -> EventPage:
    """Normalize a fetch-events response body into an ``EventPage``."""

    if isinstance(body, list):
        raw_events: Any = body
        cursor = None
    elif isinstance(body, Mapping):
        raw_events = first_present(body, PAGE_EVENTS_FIELDS, default=[])
        cursor = first_present(body, PAGE_CURSOR_FIELDS)
    else:
        raise TransientSourceError(f"Unexpected events response type: {type(body).__name__}")

    if not isinstance(raw_events, list):
        raise TransientSourceError("Events response does not contain a list of events")

    events: List[RawEvent] = []
    for item in raw_events:
        if not isinstance(item, Mapping):
            LOGGER.warning(
                "event_source_event_not_object",
                extra={"flow": key.flow, "event_type": key.event_type, "time_bucket": str(bucket)},
            )
            continue
        event = normalize_event(item, key=key, bucket=bucket)
        if event is not None:
            events.append(event)

    return EventPage(events=events, next_cursor=str(cursor) if cursor else None, raw_count=len(raw_events))


def normalize_time_buckets(body: Any) -> List[TimeBucket]:
    """Extract bucket keys from a list-time-buckets response, ascending and de-duplicated."""

    if isinstance(body, list):
        entries: Any = body
    elif isinstance(body, Mapping):
        entries = first_present(body, BUCKET_LIST_FIELDS, default=[])
    else:
        raise TransientSourceError(f"Unexpected time buckets response type: {type(body).__name__}")

    if not isinstance(entries, list):
        raise TransientSourceError("Time buckets response does not contain a list")

    buckets: Dict[str, TimeBucket] = {}
    for entry in entries:
        value = entry
        if isinstance(entry, Mapping):
            value = first_present(entry, BUCKET_ENTRY_FIELDS)
        bucket = TimeBucket.parse(value) if isinstance(value, str) else None
        if bucket is None:
            LOGGER.warning("event_source_invalid_time_bucket", extra={"entry": repr(entry)[:200]})
            continue
        buckets[bucket.key] = bucket

    return sorted(buckets.values())


def normalize_data_core_id(body: Any) -> Optional[str]:
    if isinstance(body, Mapping):
        value = first_present(body, DATA_CORE_ID_FIELDS)
        return str(value) if value else None
    return None
