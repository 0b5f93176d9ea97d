from __future__ import annotations

from typing import Callable, List

import httpx
import pytest

from app.events_engine.config import EventSourceConfig
from app.events_engine.errors import (
    FailureClass,
    StartupError,
    TransientSourceError,
    UnauthenticatedError,
    UnauthorizedError,
    UnprocessableRequestError,
    classify_failure,
)
from app.events_engine.source import FlowcoreEventSource
from app.events_engine.time_buckets import TimeBucket

BASE_URL = "https://events.test"
DATA_CORE_PATH = "/api/v1/tenants/flowcore-saas/data-cores/calendrun"


def make_config(**overrides) -> EventSourceConfig:
    values = dict(
        base_url=BASE_URL,
        tenant="flowcore-saas",
        data_core="calendrun",
        api_key="secret",
        retry_delay=0.0,
        max_retries=3,
    )
    values.update(overrides)
    return EventSourceConfig(**values)


def make_source(
    handler: Callable[[httpx.Request], httpx.Response],
    sleeps: List[float] | None = None,
    **overrides,
) -> FlowcoreEventSource:
    config = make_config(**overrides)
    client = httpx.Client(
        base_url=BASE_URL,
        transport=httpx.MockTransport(handler),
        headers=FlowcoreEventSource._auth_headers(config.api_key),
    )
    record = sleeps if sleeps is not None else []
    return FlowcoreEventSource(config, client=client, sleep=record.append)


def test_fetch_page_sends_expected_request() -> None:
    seen: List[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        if request.url.path == DATA_CORE_PATH:
            return httpx.Response(200, json={"id": "dc-1"})
        return httpx.Response(
            200,
            json={"events": [{"eventId": "e1", "payload": {"distanceKm": 5}}], "nextCursor": "c2"},
        )

    source = make_source(handler)
    page = source.fetch_page("run.0", "run.logged.0", TimeBucket("20250101100000"), cursor="c1", page_size=500)

    assert [event.event_id for event in page.events] == ["e1"]
    assert page.next_cursor == "c2"

    request = seen[-1]
    assert request.url.path == "/api/v1/events"
    assert request.headers["Authorization"] == "ApiKey secret"
    params = request.url.params
    assert params["dataCoreId"] == "dc-1"
    assert params["flowType"] == "run.0"
    assert params.get_list("eventTypes") == ["run.logged.0"]
    assert params["timeBucket"] == "20250101100000"
    assert params["cursor"] == "c1"
    assert params["pageSize"] == "500"


def test_data_core_is_resolved_once() -> None:
    calls = {"data_core": 0}

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == DATA_CORE_PATH:
            calls["data_core"] += 1
            return httpx.Response(200, json={"dataCoreId": "dc-9"})
        return httpx.Response(200, json={"events": []})

    source = make_source(handler)
    for _ in range(3):
        source.fetch_page("run.0", "run.logged.0", TimeBucket("20250101100000"))

    assert source.resolve_data_core_id() == "dc-9"
    assert calls["data_core"] == 1


def test_dev_mode_refuses_production_data_core() -> None:
    source = make_source(lambda request: httpx.Response(200, json={"id": "dc-1"}), dev_mode=True)
    with pytest.raises(StartupError):
        source.resolve_data_core_id()


def test_data_core_resolution_failure_is_fatal() -> None:
    source = make_source(lambda request: httpx.Response(401, json={"error": "nope"}))
    with pytest.raises(StartupError):
        source.resolve_data_core_id()


@pytest.mark.parametrize(
    ("status_code", "error_type", "failure_class"),
    [
        (400, UnprocessableRequestError, FailureClass.PERMANENTLY_INAPPLICABLE),
        (401, UnauthenticatedError, FailureClass.PERMANENTLY_INAPPLICABLE),
        (403, UnauthorizedError, FailureClass.PERMANENTLY_INAPPLICABLE),
        (422, UnprocessableRequestError, FailureClass.PERMANENTLY_INAPPLICABLE),
        (503, TransientSourceError, FailureClass.TRANSIENT),
    ],
)
def test_status_codes_map_to_failure_classes(status_code, error_type, failure_class) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == DATA_CORE_PATH:
            return httpx.Response(200, json={"id": "dc-1"})
        return httpx.Response(status_code, text="failure")

    source = make_source(handler)
    with pytest.raises(error_type) as excinfo:
        source.fetch_page("run.0", "run.logged.0", TimeBucket("20250101100000"))

    assert excinfo.value.status_code == status_code
    assert classify_failure(excinfo.value) is failure_class


def test_transient_failures_are_retried_with_fixed_delay() -> None:
    attempts = {"events": 0}
    sleeps: List[float] = []

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == DATA_CORE_PATH:
            return httpx.Response(200, json={"id": "dc-1"})
        attempts["events"] += 1
        if attempts["events"] < 3:
            return httpx.Response(502, text="bad gateway")
        return httpx.Response(200, json={"events": [{"eventId": "e1", "payload": {}}]})

    source = make_source(handler, sleeps=sleeps, retry_delay=0.25)
    page = source.fetch_page("run.0", "run.logged.0", TimeBucket("20250101100000"))

    assert [event.event_id for event in page.events] == ["e1"]
    assert attempts["events"] == 3
    assert sleeps == [0.25, 0.25]


def test_retries_are_bounded() -> None:
    attempts = {"events": 0}

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == DATA_CORE_PATH:
            return httpx.Response(200, json={"id": "dc-1"})
        attempts["events"] += 1
        raise httpx.ConnectError("connection refused", request=request)

    source = make_source(handler, max_retries=2)
    with pytest.raises(TransientSourceError):
        source.fetch_page("run.0", "run.logged.0", TimeBucket("20250101100000"))
    assert attempts["events"] == 3


def test_permanent_failures_are_not_retried() -> None:
    attempts = {"events": 0}

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == DATA_CORE_PATH:
            return httpx.Response(200, json={"id": "dc-1"})
        attempts["events"] += 1
        return httpx.Response(403, text="forbidden")

    source = make_source(handler)
    with pytest.raises(UnauthorizedError):
        source.fetch_page("run.0", "run.logged.0", TimeBucket("20250101100000"))
    assert attempts["events"] == 1


def test_non_json_body_is_transient() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == DATA_CORE_PATH:
            return httpx.Response(200, json={"id": "dc-1"})
        return httpx.Response(200, text="<html>")

    source = make_source(handler, max_retries=0)
    with pytest.raises(TransientSourceError):
        source.fetch_page("run.0", "run.logged.0", TimeBucket("20250101100000"))


def test_list_time_buckets_passes_range_and_normalizes() -> None:
    seen: List[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == DATA_CORE_PATH:
            return httpx.Response(200, json={"id": "dc-1"})
        seen.append(request)
        return httpx.Response(200, json={"timeBuckets": ["20250101110000", {"timeBucket": "20250101100000"}]})

    source = make_source(handler)
    buckets = source.list_time_buckets(
        "run.0",
        "run.logged.0",
        from_bucket=TimeBucket("20250101000000"),
        to_bucket=TimeBucket("20250101120000"),
        page_size=50,
    )

    assert [bucket.key for bucket in buckets] == ["20250101100000", "20250101110000"]
    params = seen[0].url.params
    assert seen[0].url.path == "/api/v1/time-buckets/by-names"
    assert params["fromTimeBucket"] == "20250101000000"
    assert params["toTimeBucket"] == "20250101120000"
    assert params["pageSize"] == "50"
