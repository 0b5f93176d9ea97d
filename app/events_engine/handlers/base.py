"""Guarded-write helpers shared by projection handlers.

Every write is a single statement conditioned on the row's stored
``last_applied_event_id`` differing from the incoming event id, so a
redelivered event never re-applies and no application-level lock is needed.
"""

from __future__ import annotations

import functools
import logging
from typing import Any, Callable, Dict, Iterable, Mapping, Type

from pydantic import ValidationError
from sqlalchemy import ColumnElement, delete, func, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.database import session_scope
from app.events_engine.errors import HandlerError
from app.models.base import Base

LOGGER = logging.getLogger("app.events_engine.handlers")


def _dialect_insert(session: Session) -> Callable[..., Any]:
    dialect = session.get_bind().dialect.name
    if dialect == "postgresql":
        return postgresql.insert
    if dialect == "sqlite":
        return sqlite.insert
    raise NotImplementedError(f"Guarded upserts are not supported on {dialect!r}")


def guarded_upsert(
    session: Session,
    model: Type[Base],
    values: Mapping[str, Any],
    *,
    keep_existing: Iterable[str] = (),
) -> None:
    """Insert a row, or update it when its stored event id differs from the incoming one.

    Columns named in ``keep_existing`` keep their stored value when the
    incoming value is null.
    """

    table = model.__table__
    primary_key = [column.name for column in table.primary_key.columns]
    keep = set(keep_existing)

    stmt = _dialect_insert(session)(table).values(**values)
    excluded = stmt.excluded
    assignments: Dict[str, Any] = {}
    for name in values:
        if name in primary_key:
            continue
        if name in keep:
            assignments[name] = func.coalesce(excluded[name], table.c[name])
        else:
            assignments[name] = excluded[name]
    assignments["updated_at"] = func.now()

    stmt = stmt.on_conflict_do_update(
        index_elements=primary_key,
        set_=assignments,
        where=table.c.last_applied_event_id != excluded.last_applied_event_id,
    )
    session.execute(stmt)


def guarded_update(
    session: Session,
    model: Type[Base],
    row_id: str,
    event_id: str,
    fields: Mapping[str, Any],
    *criteria: ColumnElement[bool],
) -> int:
    """Apply ``fields`` to an existing row unless it already reflects ``event_id``.

    Returns the number of rows changed. A missing row is not an error.
    """

    table = model.__table__
    stmt = (
        update(table)
        .where(table.c.id == row_id, table.c.last_applied_event_id != event_id, *criteria)
        .values(**fields, last_applied_event_id=event_id, updated_at=func.now())
    )
    return session.execute(stmt).rowcount


def guarded_delete(
    session: Session,
    model: Type[Base],
    event_id: str,
    *criteria: ColumnElement[bool],
) -> int:
    """Delete rows matching ``criteria`` unless they were written by ``event_id``."""

    table = model.__table__
    stmt = delete(table).where(*criteria, table.c.last_applied_event_id != event_id)
    return session.execute(stmt).rowcount


def insert_once(session: Session, model: Type[Base], values: Mapping[str, Any], *, key: str) -> None:
    """Insert a row, ignoring it when a row with the same ``key`` already exists."""

    stmt = _dialect_insert(session)(model.__table__).values(**values)
    session.execute(stmt.on_conflict_do_nothing(index_elements=[key]))


def write_best_effort(operation: str, event_id: str, write: Callable[[Session], None]) -> bool:
    """Run ``write`` in its own transaction; failures are logged, never raised."""

    try:
        with session_scope() as session:
            write(session)
    except SQLAlchemyError:
        LOGGER.exception("projection_secondary_write_failed", extra={"operation": operation, "event_id": event_id})
        return False
    return True


def projection_handler(event_type: str) -> Callable[[Callable[[Any, str], None]], Callable[[Any, str], None]]:
    """Wrap a handler so validation and storage failures surface as ``HandlerError``."""

    def decorator(apply: Callable[[Any, str], None]) -> Callable[[Any, str], None]:
        @functools.wraps(apply)
        def wrapper(payload: Any, event_id: str) -> None:
            try:
                apply(payload, event_id)
            except ValidationError as exc:
                raise HandlerError(
                    f"Invalid {event_type} payload: {exc.error_count()} validation error(s)",
                    event_id=event_id,
                    reason="invalid_payload",
                ) from exc
            except SQLAlchemyError as exc:
                raise HandlerError(
                    f"Failed to apply {event_type}: {exc.__class__.__name__}",
                    event_id=event_id,
                    reason="write_failed",
                ) from exc

        wrapper.event_type = event_type  # type: ignore[attr-defined]
        return wrapper

    return decorator
