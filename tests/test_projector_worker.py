from __future__ import annotations

import threading

from app.core.config import get_settings
from app.events_engine.errors import StartupError
from app.workers import projector


class StubSource:
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.closed = False

    def resolve_data_core_id(self) -> str:
        if self.fail:
            raise StartupError("data core not found")
        return "dc-1"

    def fetch_page(self, *args, **kwargs):
        raise AssertionError("polling should not start")

    def list_time_buckets(self, *args, **kwargs):
        return []

    def close(self) -> None:
        self.closed = True


def test_worker_exits_when_data_core_cannot_be_resolved(monkeypatch) -> None:
    monkeypatch.setattr(projector, "get_event_source", lambda: StubSource(fail=True))
    assert projector.main(get_settings(), stop_event=threading.Event()) == 1


def test_worker_stops_when_stop_event_is_set(monkeypatch) -> None:
    source = StubSource()
    monkeypatch.setattr(projector, "get_event_source", lambda: source)
    stop_event = threading.Event()
    stop_event.set()

    assert projector.main(get_settings(), stop_event=stop_event) == 0
    assert source.closed
