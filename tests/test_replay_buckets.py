from __future__ import annotations

import pytest

from app.events_engine.schemas import EventTypeKey
from scripts.replay_buckets import parse_args, select_keys

REGISTERED = [
    EventTypeKey("run.0", "run.logged.0"),
    EventTypeKey("run.0", "run.updated.0"),
    EventTypeKey("user.0", "user.created.0"),
]


def test_parse_args_validates_bucket_keys() -> None:
    args = parse_args(["--from", "20250101100000", "--to", "20250101120000", "--flow", "run.0"])
    assert args.first.key == "20250101100000"
    assert args.last.key == "20250101120000"
    assert args.flow == ["run.0"]

    with pytest.raises(SystemExit):
        parse_args(["--from", "2025-01-01", "--to", "20250101120000"])


def test_select_keys_filters_by_flow_and_event_type() -> None:
    assert select_keys(REGISTERED, None, None) == REGISTERED
    assert select_keys(REGISTERED, ["run.0"], None) == REGISTERED[:2]
    assert select_keys(REGISTERED, ["run.0"], ["run.updated.0"]) == [REGISTERED[1]]
    assert select_keys(REGISTERED, ["club.0"], None) == []
