"""Read-side queries over challenge templates and instances."""

from __future__ import annotations

from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models.challenge import ChallengeInstance, ChallengeTemplate


class ChallengeTemplateNotFoundError(ValueError):
    """Raised when the requested challenge template does not exist."""


class ChallengeInstanceNotFoundError(ValueError):
    """Raised when the requested challenge instance does not exist."""


class ChallengeService:
    def __init__(self, session: Session) -> None:
        self._session = session

    def list_templates(self) -> List[ChallengeTemplate]:
        stmt = select(ChallengeTemplate).order_by(ChallengeTemplate.start_date.desc())
        return list(self._session.scalars(stmt).all())

    def get_template(self, template_id: str) -> ChallengeTemplate:
        template = self._session.get(ChallengeTemplate, template_id)
        if not template:
            raise ChallengeTemplateNotFoundError(f"Challenge template {template_id} not found")
        return template

    def list_instances(
        self,
        *,
        user_id: Optional[str] = None,
        template_id: Optional[str] = None,
    ) -> List[ChallengeInstance]:
        stmt = select(ChallengeInstance)
        if template_id:
            stmt = stmt.filter(ChallengeInstance.template_id == template_id)
        if user_id:
            stmt = stmt.filter(ChallengeInstance.user_id == user_id)
        return list(self._session.scalars(stmt.order_by(ChallengeInstance.joined_at.desc())).all())

    def get_instance(self, instance_id: str) -> ChallengeInstance:
        instance = self._session.get(ChallengeInstance, instance_id)
        if not instance:
            raise ChallengeInstanceNotFoundError(f"Challenge instance {instance_id} not found")
        return instance
