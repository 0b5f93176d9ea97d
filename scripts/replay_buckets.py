#!/usr/bin/env python
"""CLI utility to replay an explicit range of hourly time buckets into the read model."""

from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional

from app.core.database import init_schema
from app.events_engine.dispatcher import get_event_dispatcher
from app.events_engine.engine import build_engine
from app.events_engine.errors import StartupError
from app.events_engine.schemas import EventTypeKey
from app.events_engine.time_buckets import TimeBucket, iter_buckets


def _bucket(value: str) -> TimeBucket:
    bucket = TimeBucket.parse(value)
    if bucket is None:
        raise argparse.ArgumentTypeError(f"{value!r} is not a time bucket (expected YYYYMMDDHH0000)")
    return bucket


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Replay hourly time buckets through the projection handlers.")
    parser.add_argument("--from", dest="first", type=_bucket, required=True, help="First bucket (inclusive).")
    parser.add_argument("--to", dest="last", type=_bucket, required=True, help="Last bucket (inclusive).")
    parser.add_argument("--flow", action="append", default=None, help="Only replay this flow type (repeatable).")
    parser.add_argument(
        "--event-type",
        action="append",
        default=None,
        help="Only replay this event type (repeatable).",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable verbose logging.")
    return parser.parse_args(argv)


def select_keys(
    registered: List[EventTypeKey],
    flows: Optional[List[str]],
    event_types: Optional[List[str]],
) -> List[EventTypeKey]:
    return [
        key
        for key in registered
        if (not flows or key.flow in flows) and (not event_types or key.event_type in event_types)
    ]


def main(argv: Optional[list[str]] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.first > args.last:
        logging.error("--from %s is after --to %s", args.first, args.last)
        return 2

    keys = select_keys(get_event_dispatcher().registered, args.flow, args.event_type)
    if not keys:
        logging.error("No registered event types match the given filters")
        return 2

    init_schema()
    engine = build_engine()
    buckets = list(iter_buckets(args.first, args.last))
    try:
        applied = engine.replay(buckets, keys)
    except StartupError as exc:
        logging.error("Replay aborted: %s", exc)
        return 1

    logging.info("Replayed %d bucket(s) for %d event type(s); %d event(s) applied", len(buckets), len(keys), applied)
    return 0


if __name__ == "__main__":
    sys.exit(main())
