"""CalendRun read-model projection service package."""

__version__ = "1.6.1"


def __getattr__(name):
    """Lazy import so the projector worker does not load FastAPI."""
    if name == "create_app":
        from .main import create_app
        return create_app
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
