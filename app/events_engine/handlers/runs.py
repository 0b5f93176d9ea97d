"""Projection handlers for the ``run.0`` flow.

Each run event writes the ``performance`` row and then, in a separate
transaction, an entry in ``performance_log``. The log write is best-effort:
if it fails the performance row stays applied.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.database import session_scope
from app.events_engine.handlers.base import (
    guarded_delete,
    guarded_update,
    guarded_upsert,
    insert_once,
    projection_handler,
    write_best_effort,
)
from app.models.performance import Performance
from app.models.performance_log import PerformanceLog
from app.schemas.run import RunDeleted, RunLogged, RunUpdated

LOGGER = logging.getLogger("app.events_engine.handlers.runs")

RUN_LOGGED = "run.logged.0"
RUN_UPDATED = "run.updated.0"
RUN_DELETED = "run.deleted.0"

_SNAPSHOT_COLUMNS = (
    "runner_name",
    "run_date",
    "actual_run_date",
    "distance_km",
    "time_minutes",
    "notes",
    "status",
    "recorded_at",
    "change_log",
)


def _snapshot(performance: Optional[Performance]) -> Dict[str, Any]:
    if performance is None:
        return {column: None for column in _SNAPSHOT_COLUMNS}
    return {column: getattr(performance, column) for column in _SNAPSHOT_COLUMNS}


def _log_run_event(
    *,
    event_id: str,
    event_type: str,
    performance_id: str,
    instance_id: str,
    user_id: str,
    snapshot: Dict[str, Any],
    payload: Dict[str, Any],
) -> None:
    values = {
        "last_applied_event_id": event_id,
        "event_type": event_type,
        "performance_id": performance_id,
        "instance_id": instance_id,
        "user_id": user_id,
        "event_payload": payload,
        **snapshot,
    }
    write_best_effort(
        f"{event_type}:performance_log",
        event_id,
        lambda session: insert_once(session, PerformanceLog, values, key="last_applied_event_id"),
    )


def _load_performance(session: Session, performance_id: str) -> Optional[Performance]:
    return session.scalar(select(Performance).where(Performance.id == performance_id).limit(1))


@projection_handler(RUN_LOGGED)
def handle_run_logged(payload: Any, event_id: str) -> None:
    run = RunLogged.model_validate(payload)
    # Runs logged without an actual run date are attributed to the day they were recorded.
    actual_run_date = run.actual_run_date or datetime.now(timezone.utc).date()

    values = {
        "id": str(run.id),
        "last_applied_event_id": event_id,
        "instance_id": str(run.instance_id),
        "user_id": run.user_id,
        "runner_name": run.runner_name,
        "run_date": run.run_date,
        "actual_run_date": actual_run_date,
        "distance_km": run.distance_km,
        "time_minutes": run.time_minutes,
        "notes": run.notes,
        "status": run.status,
        "recorded_at": run.recorded_at,
        "change_log": run.change_log,
    }
    with session_scope() as session:
        guarded_upsert(session, Performance, values)

    _log_run_event(
        event_id=event_id,
        event_type=RUN_LOGGED,
        performance_id=values["id"],
        instance_id=values["instance_id"],
        user_id=run.user_id,
        snapshot={column: values[column] for column in _SNAPSHOT_COLUMNS},
        payload=run.model_dump(mode="json", by_alias=True),
    )


@projection_handler(RUN_UPDATED)
def handle_run_updated(payload: Any, event_id: str) -> None:
    run = RunUpdated.model_validate(payload)
    fields = run.provided("id", "instance_id", "user_id")
    if not fields:
        LOGGER.warning("run_update_without_fields", extra={"performance_id": str(run.id), "event_id": event_id})
        return

    performance_id = str(run.id)
    with session_scope() as session:
        guarded_update(session, Performance, performance_id, event_id, fields)
        current = _load_performance(session, performance_id)
        snapshot = _snapshot(current)

    if current is None:
        LOGGER.info(
            "run_update_for_unknown_performance",
            extra={"performance_id": performance_id, "event_id": event_id},
        )
        return

    _log_run_event(
        event_id=event_id,
        event_type=RUN_UPDATED,
        performance_id=performance_id,
        instance_id=str(run.instance_id),
        user_id=run.user_id,
        snapshot=snapshot,
        payload=run.model_dump(mode="json", by_alias=True, exclude_unset=True),
    )


@projection_handler(RUN_DELETED)
def handle_run_deleted(payload: Any, event_id: str) -> None:
    """Hard-delete a run; a deleted run never happened.

    The deletion is logged even when the performance did not exist.
    """

    run = RunDeleted.model_validate(payload)
    performance_id = str(run.id)
    instance_id = str(run.instance_id)

    with session_scope() as session:
        existing = session.scalar(
            select(Performance)
            .where(Performance.id == performance_id)
            .where(Performance.instance_id == instance_id)
            .where(Performance.user_id == run.user_id)
            .limit(1)
        )
        snapshot = _snapshot(existing)
        guarded_delete(
            session,
            Performance,
            event_id,
            Performance.__table__.c.id == performance_id,
            Performance.__table__.c.instance_id == instance_id,
            Performance.__table__.c.user_id == run.user_id,
        )

    _log_run_event(
        event_id=event_id,
        event_type=RUN_DELETED,
        performance_id=performance_id,
        instance_id=instance_id,
        user_id=run.user_id,
        snapshot=snapshot,
        payload=run.model_dump(mode="json", by_alias=True),
    )
