"""Shared building blocks for event payload contracts."""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Annotated, Any

from pydantic import AfterValidator, BaseModel, BeforeValidator, ConfigDict
from pydantic.alias_generators import to_camel


class EventContract(BaseModel):
    """Base for upstream payloads, which use camelCase keys."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        frozen=True,
    )

    def provided(self, *exclude: str) -> dict[str, Any]:
        """Return the fields present in the payload, keyed by attribute name."""

        return {
            name: getattr(self, name)
            for name in self.model_fields_set
            if name not in exclude
        }


def _coerce_date_only(value: Any) -> Any:
    """Accept ``YYYY-MM-DD`` or a full ISO timestamp and keep only the date."""

    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, str) and "T" in value:
        return value.split("T", 1)[0]
    return value


def _ensure_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


DateOnly = Annotated[date, BeforeValidator(_coerce_date_only)]
UtcDateTime = Annotated[datetime, AfterValidator(_ensure_utc)]
