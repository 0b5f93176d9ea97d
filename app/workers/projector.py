"""Standalone projector process: ``python -m app.workers.projector``."""

from __future__ import annotations

import logging
import signal
import sys
import threading
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from app.core.config import AppSettings, get_settings
from app.core.database import init_schema
from app.core.logging import configure_logging
from app.events_engine.config import get_event_engine_config
from app.events_engine.engine import build_engine
from app.events_engine.errors import StartupError
from app.events_engine.source import FlowcoreEventSource, get_event_source

LOGGER = logging.getLogger("app.workers.projector")


def _install_signal_handlers(stop_event: threading.Event) -> None:
    def _stop(signum, frame) -> None:  # noqa: ARG001
        LOGGER.info("projector_stop_requested", extra={"signal": signal.Signals(signum).name})
        stop_event.set()

    signal.signal(signal.SIGINT, _stop)
    signal.signal(signal.SIGTERM, _stop)


def main(settings: Optional[AppSettings] = None, stop_event: Optional[threading.Event] = None) -> int:
    settings = settings or get_settings()
    configure_logging(settings)

    try:
        init_schema()
    except SQLAlchemyError:
        LOGGER.exception("projector_schema_bootstrap_failed")
        return 1

    source: FlowcoreEventSource = get_event_source()
    try:
        source.resolve_data_core_id()
    except StartupError as exc:
        LOGGER.error("projector_startup_failed", extra={"error": str(exc)})
        return 1

    engine = build_engine(source=source, config=get_event_engine_config(settings))
    if stop_event is None:
        stop_event = threading.Event()
        _install_signal_handlers(stop_event)

    engine.catch_up()

    try:
        engine.run_forever(stop_event)
    finally:
        source.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
