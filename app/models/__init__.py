"""SQLAlchemy ORM models for the read model projections."""

from app.models.base import Base  # noqa: F401
from app.models.challenge import ChallengeInstance, ChallengeTemplate  # noqa: F401
from app.models.club import Club, ClubMembership  # noqa: F401
from app.models.performance import Performance  # noqa: F401
from app.models.performance_log import PerformanceLog  # noqa: F401
from app.models.user import User  # noqa: F401
