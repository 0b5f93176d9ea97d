"""FastAPI application factory."""

from __future__ import annotations

import logging
import threading
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app import __version__
from app.api.error_handlers import register_exception_handlers
from app.api.routers import get_api_router
from app.core.config import AppSettings, get_settings
from app.core.database import init_schema
from app.core.logging import configure_logging

LOGGER = logging.getLogger("app.main")


def _start_projector(stop_event: threading.Event) -> threading.Thread:
    from app.events_engine import build_engine
    from app.events_engine.errors import StartupError
    from app.events_engine.source import get_event_source

    def run() -> None:
        source = get_event_source()
        try:
            source.resolve_data_core_id()
        except StartupError as exc:
            LOGGER.error("projector_startup_failed", extra={"error": str(exc)})
            return
        engine = build_engine(source=source)
        engine.catch_up()
        engine.run_forever(stop_event)

    thread = threading.Thread(target=run, name="projector", daemon=True)
    thread.start()
    return thread


@asynccontextmanager
async def lifespan(app: FastAPI):  # noqa: D401
    """Application lifespan context for startup/shutdown hooks."""

    settings = get_settings()
    init_schema()

    stop_event = threading.Event()
    projector = None
    if settings.run_projector_in_app:
        LOGGER.info("projector_thread_starting")
        projector = _start_projector(stop_event)

    yield

    stop_event.set()
    if projector is not None:
        projector.join(timeout=10)


def create_app(settings: AppSettings | None = None) -> FastAPI:
    """Application factory."""

    settings = settings or get_settings()
    configure_logging(settings)

    app = FastAPI(
        title="CalendRun Projections",
        version=__version__,
        lifespan=lifespan,
    )
    if settings.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_origins,
            allow_methods=["GET"],
            allow_headers=["Authorization", "X-API-Key", "Content-Type"],
        )

    register_exception_handlers(app)
    app.include_router(get_api_router())
    return app


app = create_app()
