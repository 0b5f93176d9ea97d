"""Events Engine package exposing the event source adapter and projection engine."""

from .dispatcher import EventDispatcher, get_event_dispatcher  # noqa: F401
from .engine import ProjectionEngine, build_engine  # noqa: F401
from .schemas import EventTypeKey, RawEvent  # noqa: F401
