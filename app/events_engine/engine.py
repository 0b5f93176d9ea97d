"""Polling projection engine.

The engine walks the registered ``(flow, event type)`` pairs for a time
bucket, pages through the upstream events of each pair and hands every
event to its projection handler. All work is strictly sequential; the only
state carried between ticks is the last observed current bucket and the two
in-memory caches.
"""

from __future__ import annotations

import logging
import threading
from collections import deque
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Deque, List, Optional, Set, Tuple

from app.events_engine.caches import DedupCache, EmptyBucketCache
from app.events_engine.config import EventEngineConfig, get_event_engine_config
from app.events_engine.dispatcher import EventDispatcher
from app.events_engine.errors import EventSourceError, FailureClass, HandlerError, classify_failure
from app.events_engine.schemas import EventTypeKey, RawEvent
from app.events_engine.source import EventSource
from app.events_engine.time_buckets import TimeBucket

LOGGER = logging.getLogger("app.events_engine.engine")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UnitOutcome(str, Enum):
    """How a single ``(flow, event type, bucket)`` unit ended."""

    COMPLETED = "completed"
    SKIPPED = "skipped"
    INAPPLICABLE = "inapplicable"
    TRANSIENT_FAILURE = "transient_failure"


@dataclass
class UnitResult:
    key: EventTypeKey
    bucket: TimeBucket
    outcome: UnitOutcome = UnitOutcome.COMPLETED
    processed: int = 0
    skipped: int = 0
    failed: int = 0


class ProjectionEngine:
    """Applies upstream events to the read model, one processing unit at a time."""

    def __init__(
        self,
        source: EventSource,
        dispatcher: EventDispatcher,
        config: Optional[EventEngineConfig] = None,
        *,
        dedup_cache: Optional[DedupCache] = None,
        empty_cache: Optional[EmptyBucketCache] = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._source = source
        self._dispatcher = dispatcher
        self._config = config or get_event_engine_config()
        self.dedup_cache = dedup_cache or DedupCache(max_size=self._config.dedup_max_size)
        self.empty_cache = empty_cache or EmptyBucketCache(ttl_seconds=self._config.empty_bucket_ttl)
        self._clock = clock
        self._last_bucket: Optional[TimeBucket] = None
        self._inapplicable_seen: Set[Tuple[str, str, str]] = set()

    @property
    def last_bucket(self) -> Optional[TimeBucket]:
        """The current bucket observed by the most recent poll tick."""

        return self._last_bucket

    def process_unit(self, key: EventTypeKey, bucket: TimeBucket, *, force: bool = False) -> UnitResult:
        """Fetch and apply every event of one pair in one bucket.

        With ``force`` the unit is fetched even if it was recently found empty.
        """

        key = EventTypeKey(*key)
        result = UnitResult(key=key, bucket=bucket)
        unit = (key.flow, key.event_type, str(bucket))

        if not force and self.empty_cache.is_recently_empty(*unit):
            result.outcome = UnitOutcome.SKIPPED
            return result

        cursor: Optional[str] = None
        while True:
            try:
                page = self._source.fetch_page(
                    key.flow,
                    key.event_type,
                    bucket,
                    cursor=cursor,
                    page_size=self._config.page_size,
                )
            except EventSourceError as exc:
                self._handle_source_failure(result, exc)
                break

            for event in page.events:
                self._apply(event, result)

            if not page.size or not page.next_cursor or page.size < self._config.page_size:
                break
            if page.next_cursor == cursor:
                LOGGER.warning(
                    "projection_unit_cursor_stalled",
                    extra={"flow": key.flow, "event_type": key.event_type, "time_bucket": str(bucket)},
                )
                break
            cursor = page.next_cursor

        if result.processed:
            self.empty_cache.clear(*unit)
        elif result.outcome is not UnitOutcome.TRANSIENT_FAILURE:
            self.empty_cache.mark_empty(*unit)

        if result.processed or result.failed:
            LOGGER.info(
                "projection_unit_processed",
                extra={
                    "flow": key.flow,
                    "event_type": key.event_type,
                    "time_bucket": str(bucket),
                    "processed": result.processed,
                    "skipped": result.skipped,
                    "failed": result.failed,
                    "outcome": result.outcome.value,
                },
            )
        return result

    def _apply(self, event: RawEvent, result: UnitResult) -> None:
        if event.event_id in self.dedup_cache:
            result.skipped += 1
            return

        try:
            handled = self._dispatcher.dispatch(event)
        except HandlerError as exc:
            result.failed += 1
            LOGGER.error(
                "projection_event_failed",
                extra={
                    "event_id": event.event_id,
                    "flow": event.flow,
                    "event_type": event.event_type,
                    "time_bucket": event.time_bucket,
                    "reason": exc.reason,
                    "error": str(exc),
                    "cause": repr(exc.__cause__) if exc.__cause__ else None,
                },
            )
            return
        except Exception as exc:  # noqa: BLE001 - intentionally broad for worker safety
            result.failed += 1
            LOGGER.exception(
                "projection_event_failed",
                extra={
                    "event_id": event.event_id,
                    "flow": event.flow,
                    "event_type": event.event_type,
                    "time_bucket": event.time_bucket,
                    "reason": "unexpected",
                    "error": str(exc),
                },
            )
            return

        if not handled:
            result.skipped += 1
            return

        self.dedup_cache.add(event.event_id)
        result.processed += 1

    def _handle_source_failure(self, result: UnitResult, exc: EventSourceError) -> None:
        key, bucket = result.key, result.bucket
        context = {
            "flow": key.flow,
            "event_type": key.event_type,
            "time_bucket": str(bucket),
            "status_code": exc.status_code,
            "error": str(exc),
        }
        if classify_failure(exc) is FailureClass.PERMANENTLY_INAPPLICABLE:
            result.outcome = UnitOutcome.INAPPLICABLE
            unit = (key.flow, key.event_type, str(bucket))
            if unit in self._inapplicable_seen:
                LOGGER.debug("projection_unit_inapplicable", extra=context)
            else:
                self._inapplicable_seen.add(unit)
                LOGGER.info("projection_unit_inapplicable", extra=context)
            return

        result.outcome = UnitOutcome.TRANSIENT_FAILURE
        LOGGER.warning("projection_unit_transient_failure", extra=context)

    def process_bucket(self, bucket: TimeBucket, *, force: bool = False) -> bool:
        """Run every registered pair against ``bucket``; return whether anything new was applied."""

        self.empty_cache.sweep()
        found_new = False
        for key in self._dispatcher.registered:
            try:
                result = self.process_unit(key, bucket, force=force)
            except Exception as exc:  # noqa: BLE001 - intentionally broad for worker safety
                LOGGER.exception(
                    "projection_unit_failed",
                    extra={"flow": key.flow, "event_type": key.event_type, "time_bucket": str(bucket), "error": str(exc)},
                )
                continue
            if result.processed:
                found_new = True
        return found_new

    def catch_up(self, count: Optional[int] = None) -> List[TimeBucket]:
        """Replay the newest ``count`` buckets that contain events, oldest first.

        Buckets are listed for the first registered pair only; the other
        pairs are assumed to share roughly the same range. Without an
        explicit ``count`` nothing happens unless backlog replay is enabled.
        """

        if count is None:
            if not self._config.backlog_enabled:
                LOGGER.info("projection_catch_up_disabled")
                return []
            count = self._config.backlog_buckets
        registered = self._dispatcher.registered
        if count <= 0 or not registered:
            return []

        representative = registered[0]
        current = TimeBucket.current(self._clock())
        try:
            buckets = self._newest_buckets(representative, current, count)
        except EventSourceError as exc:
            LOGGER.error(
                "projection_catch_up_failed",
                extra={"flow": representative.flow, "event_type": representative.event_type, "error": str(exc)},
            )
            return []

        if not buckets:
            LOGGER.info("projection_catch_up_no_buckets", extra={"pair": str(representative)})
            return []

        LOGGER.info(
            "projection_catch_up_started",
            extra={"buckets": [str(bucket) for bucket in buckets], "pair": str(representative)},
        )
        for bucket in buckets:
            self.process_bucket(bucket)
        LOGGER.info("projection_catch_up_finished", extra={"bucket_count": len(buckets)})
        return buckets

    def _newest_buckets(self, key: EventTypeKey, current: TimeBucket, count: int) -> List[TimeBucket]:
        """Page through the ascending bucket listing up to ``current`` and keep the last ``count``."""

        page_size = self._config.backlog_list_page_size
        newest: Deque[TimeBucket] = deque(maxlen=count)
        from_bucket: Optional[TimeBucket] = None
        while True:
            listed = sorted(
                self._source.list_time_buckets(
                    key.flow,
                    key.event_type,
                    from_bucket=from_bucket,
                    to_bucket=current,
                    page_size=page_size,
                )
            )
            if from_bucket is not None:
                listed = [bucket for bucket in listed if bucket >= from_bucket]
            newest.extend(bucket for bucket in listed if bucket <= current)
            if len(listed) < page_size or listed[-1] >= current:
                return list(newest)
            from_bucket = listed[-1].next()

    def replay(self, buckets: List[TimeBucket], keys: Optional[List[EventTypeKey]] = None) -> int:
        """Run the per-unit loop for ``keys`` (default: all registered) over explicit buckets.

        Returns the number of events applied.
        """

        selected = list(keys) if keys is not None else self._dispatcher.registered
        applied = 0
        for bucket in sorted(buckets):
            for key in selected:
                applied += self.process_unit(key, bucket).processed
        return applied

    def poll_once(self, now: Optional[datetime] = None) -> None:
        """One poll tick: finalize a rolled-over bucket, then process current and maybe previous.

        Finalizing ignores the empty-bucket cache, since events may have landed
        in the old bucket after it was last seen empty.
        """

        now = now or self._clock()
        current = TimeBucket.current(now)
        finalized: Optional[TimeBucket] = None

        if self._last_bucket is not None and self._last_bucket != current:
            finalized = self._last_bucket
            LOGGER.info(
                "projection_bucket_rollover",
                extra={"previous_bucket": str(finalized), "current_bucket": str(current)},
            )
            self.process_bucket(finalized, force=True)
            # Units from older buckets are never polled again.
            oldest = str(current.previous())
            self._inapplicable_seen = {unit for unit in self._inapplicable_seen if unit[2] >= oldest}

        found_new = self.process_bucket(current)

        previous = current.previous()
        if (found_new or finalized is not None) and previous != finalized:
            self.process_bucket(previous)

        self._last_bucket = current

    def run_forever(self, stop_event: Optional[threading.Event] = None) -> None:
        """Poll at the configured interval until ``stop_event`` is set."""

        stop_event = stop_event or threading.Event()
        LOGGER.info("projection_engine_started", extra={"poll_interval": self._config.poll_interval})
        while not stop_event.is_set():
            try:
                self.poll_once()
            except Exception as exc:  # noqa: BLE001 - intentionally broad for worker safety
                LOGGER.exception("projection_poll_failed", extra={"error": str(exc)})
            stop_event.wait(self._config.poll_interval)
        LOGGER.info("projection_engine_stopped")


def build_engine(
    source: Optional[EventSource] = None,
    dispatcher: Optional[EventDispatcher] = None,
    config: Optional[EventEngineConfig] = None,
) -> ProjectionEngine:
    """Wire an engine from the process-wide adapter, registry and settings."""

    if source is None:
        from app.events_engine.source import get_event_source

        source = get_event_source()
    if dispatcher is None:
        from app.events_engine.dispatcher import get_event_dispatcher

        dispatcher = get_event_dispatcher()
    return ProjectionEngine(source, dispatcher, config)
