"""Read-side query services used by the API."""

from app.services.challenges import ChallengeService  # noqa: F401
from app.services.clubs import ClubService  # noqa: F401
from app.services.runs import RunService  # noqa: F401
from app.services.users import UserService  # noqa: F401
