"""Read-side queries over run projections and their audit trail."""

from __future__ import annotations

from datetime import date, datetime
from typing import Dict, Iterable, List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models.performance import Performance
from app.models.performance_log import PerformanceLog

RUN_EVENT_TYPES = ("run.logged.0", "run.updated.0", "run.deleted.0")


class RunNotFoundError(ValueError):
    """Raised when the requested run does not exist."""


def latest_per_day(performances: Iterable[Performance], *, per_instance: bool = False) -> List[Performance]:
    """Keep the most recently updated run per user and run date.

    Input must be ordered by ``updated_at`` descending. With ``per_instance``
    the key also includes the challenge instance.
    """

    seen: Dict[Tuple[str, ...], Performance] = {}
    for performance in performances:
        key: Tuple[str, ...] = (performance.user_id, performance.run_date.isoformat())
        if per_instance:
            key = (performance.instance_id,) + key
        seen.setdefault(key, performance)
    return list(seen.values())


class RunService:
    """Queries runs and performance logs."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def get(self, run_id: str) -> Performance:
        performance = self._session.get(Performance, run_id)
        if not performance:
            raise RunNotFoundError(f"Run {run_id} not found")
        return performance

    def list(
        self,
        *,
        instance_id: Optional[str] = None,
        user_id: Optional[str] = None,
        run_date: Optional[date] = None,
        status: Optional[str] = None,
    ) -> List[Performance]:
        stmt = select(Performance)
        if instance_id:
            stmt = stmt.filter(Performance.instance_id == instance_id)
        if user_id:
            stmt = stmt.filter(Performance.user_id == user_id)
        if run_date:
            stmt = stmt.filter(Performance.run_date == run_date)
        if status:
            stmt = stmt.filter(Performance.status == status)
        stmt = stmt.order_by(Performance.updated_at.desc(), Performance.id)
        runs = latest_per_day(self._session.scalars(stmt).all(), per_instance=bool(instance_id))
        return sorted(runs, key=lambda run: run.run_date, reverse=True)

    def list_for_instance(self, instance_id: str) -> List[Performance]:
        stmt = (
            select(Performance)
            .filter(Performance.instance_id == instance_id)
            .order_by(Performance.run_date.asc(), Performance.created_at.asc())
        )
        return list(self._session.scalars(stmt).all())

    def list_logs(
        self,
        *,
        user_id: str,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        event_type: Optional[str] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> List[PerformanceLog]:
        stmt = select(PerformanceLog).filter(PerformanceLog.user_id == user_id)
        if start:
            stmt = stmt.filter(PerformanceLog.created_at >= start)
        if end:
            stmt = stmt.filter(PerformanceLog.created_at <= end)
        if event_type:
            stmt = stmt.filter(PerformanceLog.event_type == event_type)
        stmt = stmt.order_by(PerformanceLog.created_at.desc(), PerformanceLog.id.desc()).limit(limit).offset(offset)
        return list(self._session.scalars(stmt).all())

    def logs_for_performance(self, performance_id: str) -> List[PerformanceLog]:
        stmt = (
            select(PerformanceLog)
            .filter(PerformanceLog.performance_id == performance_id)
            .order_by(PerformanceLog.created_at.asc(), PerformanceLog.id.asc())
        )
        return list(self._session.scalars(stmt).all())
