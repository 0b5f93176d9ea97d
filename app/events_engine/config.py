"""Configuration helpers for the events engine."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from app.core.config import AppSettings, get_settings


@dataclass(frozen=True)
class EventSourceConfig:
    """Connection settings for the upstream event log."""

    base_url: str
    tenant: str
    data_core: str
    api_key: Optional[str]
    timeout: float = 30.0
    retry_delay: float = 0.25
    max_retries: int = 3
    dev_mode: bool = False
    production_data_core: str = "calendrun"


@dataclass(frozen=True)
class EventEngineConfig:
    """Resolved tuning values for the projection engine."""

    poll_interval: float = 30.0
    backlog_enabled: bool = True
    backlog_buckets: int = 3
    backlog_list_page_size: int = 100
    page_size: int = 500
    dedup_max_size: int = 10_000
    empty_bucket_ttl: float = 300.0


def get_event_source_config(settings: Optional[AppSettings] = None) -> EventSourceConfig:
    """Materialize event source configuration from application settings."""

    settings = settings or get_settings()
    return EventSourceConfig(
        base_url=settings.flowcore_base_url,
        tenant=settings.flowcore_tenant,
        data_core=settings.flowcore_data_core,
        api_key=settings.flowcore_api_key,
        timeout=settings.flowcore_timeout,
        retry_delay=settings.flowcore_retry_delay,
        max_retries=settings.flowcore_max_retries,
        dev_mode=settings.dev_mode,
        production_data_core=settings.production_data_core,
    )


def get_event_engine_config(settings: Optional[AppSettings] = None) -> EventEngineConfig:
    """Materialize engine configuration from application settings."""

    settings = settings or get_settings()
    return EventEngineConfig(
        poll_interval=float(settings.poll_interval),
        backlog_enabled=settings.process_backlog_on_startup,
        backlog_buckets=settings.backlog_time_buckets,
        backlog_list_page_size=max(100, settings.backlog_time_buckets),
        page_size=settings.fetch_page_size,
        dedup_max_size=settings.dedup_max_size,
        empty_bucket_ttl=float(settings.empty_bucket_ttl),
    )
