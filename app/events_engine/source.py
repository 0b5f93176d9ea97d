"""Event source adapter for the remote, time-partitioned event log."""

from __future__ import annotations

import logging
import threading
import time
from typing import Any, Callable, Dict, List, Optional, Protocol, TypeVar

import httpx

from app.events_engine.config import EventSourceConfig, get_event_source_config
from app.events_engine.errors import (
    EventSourceError,
    StartupError,
    TransientSourceError,
    error_for_status,
)
from app.events_engine.schemas import (
    EventPage,
    EventTypeKey,
    normalize_data_core_id,
    normalize_event_page,
    normalize_time_buckets,
)
from app.events_engine.time_buckets import TimeBucket

LOGGER = logging.getLogger("app.events_engine.source")

T = TypeVar("T")

DATA_CORE_PATH = "/api/v1/tenants/{tenant}/data-cores/{data_core}"
EVENTS_PATH = "/api/v1/events"
TIME_BUCKETS_PATH = "/api/v1/time-buckets/by-names"


class EventSource(Protocol):
    """Read-only view of the upstream event log."""

    def list_time_buckets(
        self,
        flow: str,
        event_type: str,
        *,
        from_bucket: Optional[TimeBucket] = None,
        to_bucket: Optional[TimeBucket] = None,
        page_size: int = 100,
    ) -> List[TimeBucket]:
        ...

    def fetch_page(
        self,
        flow: str,
        event_type: str,
        bucket: TimeBucket,
        *,
        cursor: Optional[str] = None,
        page_size: int = 500,
    ) -> EventPage:
        ...


class FlowcoreEventSource(EventSource):
    """HTTP adapter for the Flowcore event source API.

    The data core is addressed by name in configuration and by id in every
    request; the id is resolved once and cached for the life of the process.
    Transient failures are retried with a fixed delay, up to ``max_retries``
    additional attempts.
    """

    def __init__(
        self,
        config: Optional[EventSourceConfig] = None,
        *,
        client: Optional[httpx.Client] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._config = config or get_event_source_config()
        self._client = client or httpx.Client(
            base_url=self._config.base_url,
            headers=self._auth_headers(self._config.api_key),
            timeout=self._config.timeout,
        )
        self._sleep = sleep
        self._data_core_id: Optional[str] = None
        self._resolve_lock = threading.Lock()

    @staticmethod
    def _auth_headers(api_key: Optional[str]) -> Dict[str, str]:
        if not api_key:
            return {}
        return {"Authorization": f"ApiKey {api_key}"}

    def close(self) -> None:
        self._client.close()

    def resolve_data_core_id(self) -> str:
        """Resolve the configured data core name to its id, once per process.

        Raises ``StartupError`` on any failure; polling cannot start without it.
        """

        if self._data_core_id is not None:
            return self._data_core_id

        with self._resolve_lock:
            if self._data_core_id is not None:
                return self._data_core_id

            config = self._config
            mode = "dev" if config.dev_mode else "production"
            if config.dev_mode and config.data_core == config.production_data_core:
                raise StartupError(
                    f"dev mode is enabled but the configured data core is the production "
                    f"data core {config.production_data_core!r}"
                )

            path = DATA_CORE_PATH.format(tenant=config.tenant, data_core=config.data_core)
            try:
                body = self._with_retries("resolve_data_core", lambda: self._get_json(path))
            except EventSourceError as exc:
                LOGGER.error(
                    "event_source_data_core_resolution_failed",
                    extra={"data_core": config.data_core, "tenant": config.tenant, "mode": mode},
                )
                raise StartupError(f"Failed to resolve data core {config.data_core!r}: {exc}") from exc

            data_core_id = normalize_data_core_id(body)
            if not data_core_id:
                raise StartupError(f"Data core {config.data_core!r} response did not include an id")

            self._data_core_id = data_core_id
            LOGGER.info(
                "event_source_data_core_resolved",
                extra={"data_core": config.data_core, "data_core_id": data_core_id, "mode": mode},
            )
            return data_core_id

    def list_time_buckets(
        self,
        flow: str,
        event_type: str,
        *,
        from_bucket: Optional[TimeBucket] = None,
        to_bucket: Optional[TimeBucket] = None,
        page_size: int = 100,
    ) -> List[TimeBucket]:
        params: Dict[str, Any] = {
            "tenant": self._config.tenant,
            "dataCoreId": self.resolve_data_core_id(),
            "flowType": flow,
            "eventTypes": [event_type],
            "pageSize": page_size,
        }
        if from_bucket is not None:
            params["fromTimeBucket"] = str(from_bucket)
        if to_bucket is not None:
            params["toTimeBucket"] = str(to_bucket)

        body = self._with_retries(
            "list_time_buckets",
            lambda: self._get_json(TIME_BUCKETS_PATH, params=params),
        )
        return normalize_time_buckets(body)

    def fetch_page(
        self,
        flow: str,
        event_type: str,
        bucket: TimeBucket,
        *,
        cursor: Optional[str] = None,
        page_size: int = 500,
    ) -> EventPage:
        params: Dict[str, Any] = {
            "tenant": self._config.tenant,
            "dataCoreId": self.resolve_data_core_id(),
            "flowType": flow,
            "eventTypes": [event_type],
            "timeBucket": str(bucket),
            "pageSize": page_size,
        }
        if cursor:
            params["cursor"] = cursor

        body = self._with_retries("fetch_page", lambda: self._get_json(EVENTS_PATH, params=params))
        return normalize_event_page(body, key=EventTypeKey(flow, event_type), bucket=bucket)

    def _get_json(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        try:
            response = self._client.get(path, params=params)
        except httpx.RequestError as exc:
            raise TransientSourceError(f"Request to event source failed: {exc}") from exc

        if response.is_error:
            raise error_for_status(
                response.status_code,
                f"Event source returned {response.status_code} for {path}: {response.text[:200]}",
            )

        try:
            return response.json()
        except ValueError as exc:
            raise TransientSourceError(f"Event source returned a non-JSON body for {path}") from exc

    def _with_retries(self, operation: str, call: Callable[[], T]) -> T:
        attempt = 0
        while True:
            try:
                return call()
            except TransientSourceError as exc:
                if attempt >= self._config.max_retries:
                    raise
                attempt += 1
                LOGGER.debug(
                    "event_source_retrying",
                    extra={
                        "operation": operation,
                        "attempt": attempt,
                        "max_retries": self._config.max_retries,
                        "error": str(exc),
                    },
                )
                self._sleep(self._config.retry_delay)


_source: Optional[FlowcoreEventSource] = None


def get_event_source() -> FlowcoreEventSource:
    """Return the process-wide event source adapter."""

    global _source
    if _source is None:
        _source = FlowcoreEventSource()
    return _source


def set_event_source(source: Optional[FlowcoreEventSource]) -> None:
    """Override the cached adapter (primarily for tests)."""

    global _source
    _source = source
