"""Application configuration using Pydantic settings."""

from __future__ import annotations

from functools import lru_cache
from typing import List, Literal

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    """Service configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="CRP_",
        extra="ignore",
    )

    environment: Literal["local", "test", "staging", "production"] = Field(
        default="local",
        validation_alias=AliasChoices("CRP_ENVIRONMENT", "env"),
    )
    service_name: str = Field(default="calendrun-projections")
    database_url: str = Field(default="sqlite:///./data/projections.db")
    sql_echo: bool = Field(default=False)
    log_level: str = Field(default="INFO")
    log_json: bool = Field(default=True)
    cors_origins: List[str] | str = Field(default_factory=list)
    backend_api_key: str | None = Field(default=None)

    flowcore_base_url: str = Field(default="https://event-source.api.flowcore.io")
    flowcore_tenant: str = Field(default="flowcore-saas")
    flowcore_data_core: str = Field(default="calendrun")
    flowcore_api_key: str | None = Field(default=None)
    flowcore_timeout: float = Field(default=30.0)
    flowcore_retry_delay: float = Field(default=0.25)
    flowcore_max_retries: int = Field(default=3)
    dev_mode: bool = Field(default=False)
    production_data_core: str = Field(default="calendrun")

    poll_interval: int = Field(default=30, ge=1)
    process_backlog_on_startup: bool = Field(default=True)
    backlog_time_buckets: int = Field(default=3, ge=1)
    fetch_page_size: int = Field(default=500, ge=1)
    dedup_max_size: int = Field(default=10_000, ge=2)
    empty_bucket_ttl: int = Field(default=300, ge=0)
    run_projector_in_app: bool = Field(default=False)

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, value: str) -> str:
        return value.upper()

    @field_validator("cors_origins")
    @classmethod
    def parse_cors_origins(cls, value: str | List[str] | None) -> List[str]:
        if value is None or value == "":
            return []
        if isinstance(value, str):
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return value

    @field_validator(
        "backend_api_key",
        "flowcore_api_key",
        mode="before",
    )
    @classmethod
    def empty_string_to_none(cls, value: str | None) -> str | None:
        if value == "":
            return None
        return value

    @field_validator("flowcore_base_url")
    @classmethod
    def strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")


@lru_cache
def get_settings() -> AppSettings:
    """Return cached application settings instance."""

    return AppSettings()
