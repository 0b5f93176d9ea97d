"""Router registrations."""

from fastapi import APIRouter, Depends

from app.api.dependencies import require_api_key
from app.api.routers import challenges, clubs, health, performance_logs, runs, users


def get_api_router() -> APIRouter:
    router = APIRouter()
    router.include_router(health.router, tags=["health"])

    protected = [Depends(require_api_key)]
    router.include_router(runs.router, prefix="/api/v1/runs", tags=["runs"], dependencies=protected)
    router.include_router(
        performance_logs.router,
        prefix="/api/v1/performance-logs",
        tags=["performance-logs"],
        dependencies=protected,
    )
    router.include_router(challenges.router, prefix="/api/v1/challenges", tags=["challenges"], dependencies=protected)
    router.include_router(clubs.router, prefix="/api/v1/clubs", tags=["clubs"], dependencies=protected)
    router.include_router(users.router, prefix="/api/v1/users", tags=["users"], dependencies=protected)
    return router
