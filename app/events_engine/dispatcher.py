"""Static dispatch registry routing events to projection handlers."""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Protocol, Tuple

from app.events_engine.schemas import EventTypeKey, RawEvent

_dispatcher: Optional["EventDispatcher"] = None

LOGGER = logging.getLogger("app.events_engine.dispatcher")


class ProjectionHandler(Protocol):
    """Applies one event to the read model.

    Implementations must be idempotent for a given ``(payload, event_id)``
    pair and must only touch the relational store.
    """

    def __call__(self, payload: object, event_id: str) -> None:
        ...


class EventDispatcher:
    """Maps ``(flow, event type)`` pairs to handlers, preserving registration order."""

    def __init__(self, handlers: Iterable[Tuple[EventTypeKey, ProjectionHandler]]) -> None:
        self._handlers: Dict[EventTypeKey, ProjectionHandler] = {}
        for key, handler in handlers:
            key = EventTypeKey(*key)
            if key in self._handlers:
                raise ValueError(f"Handler already registered for {key}")
            self._handlers[key] = handler

    def __len__(self) -> int:
        return len(self._handlers)

    def __contains__(self, key: object) -> bool:
        return key in self._handlers

    @property
    def registered(self) -> List[EventTypeKey]:
        """Registered pairs in iteration order."""

        return list(self._handlers)

    def handler_for(self, flow: str, event_type: str) -> Optional[ProjectionHandler]:
        return self._handlers.get(EventTypeKey(flow, event_type))

    def dispatch(self, event: RawEvent) -> bool:
        """Invoke the handler for ``event``.

        Returns ``False`` when no handler is registered. Handler exceptions
        propagate to the caller.
        """

        handler = self.handler_for(event.flow, event.event_type)
        if handler is None:
            LOGGER.warning(
                "events_engine_unhandled_event_type",
                extra={"flow": event.flow, "event_type": event.event_type, "event_id": event.event_id},
            )
            return False

        handler(event.payload, event.event_id)
        return True


def get_event_dispatcher() -> EventDispatcher:
    """Return the singleton dispatcher wired with the default handlers."""

    global _dispatcher
    if _dispatcher is not None:
        return _dispatcher

    from app.events_engine.handlers import DEFAULT_HANDLERS

    _dispatcher = EventDispatcher(DEFAULT_HANDLERS)
    return _dispatcher


def set_event_dispatcher(dispatcher: Optional[EventDispatcher]) -> None:
    """Override the cached dispatcher (primarily for tests)."""

    global _dispatcher
    _dispatcher = dispatcher
