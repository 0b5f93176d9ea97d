"""Failure taxonomy for the projection engine."""

from __future__ import annotations

from enum import Enum
from typing import Optional


class FailureClass(str, Enum):
    """How the engine reacts to an event source failure."""

    PERMANENTLY_INAPPLICABLE = "permanently_inapplicable"
    TRANSIENT = "transient"


class EventSourceError(RuntimeError):
    """Base class for failures reported by the event source adapter."""

    failure_class: FailureClass = FailureClass.TRANSIENT

    def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class UnauthenticatedError(EventSourceError):
    """The credential was rejected (HTTP 401)."""

    failure_class = FailureClass.PERMANENTLY_INAPPLICABLE


class UnauthorizedError(EventSourceError):
    """The credential lacks access to the requested flow or event type (HTTP 403)."""

    failure_class = FailureClass.PERMANENTLY_INAPPLICABLE


class UnprocessableRequestError(EventSourceError):
    """The request was rejected as malformed (HTTP 400/422)."""

    failure_class = FailureClass.PERMANENTLY_INAPPLICABLE


class TransientSourceError(EventSourceError):
    """Network failure, 5xx, or a response body that could not be understood."""

    failure_class = FailureClass.TRANSIENT


class HandlerError(RuntimeError):
    """A projection handler could not apply an event."""

    def __init__(self, message: str, *, event_id: str, reason: str) -> None:
        super().__init__(message)
        self.event_id = event_id
        self.reason = reason


class StartupError(RuntimeError):
    """Unrecoverable misconfiguration detected before polling starts."""


def classify_failure(exc: BaseException) -> FailureClass:
    """Map an exception raised while fetching to the engine's failure class."""

    if isinstance(exc, EventSourceError):
        return exc.failure_class
    return FailureClass.TRANSIENT


def error_for_status(status_code: int, message: str) -> EventSourceError:
    """Build the adapter exception that corresponds to an HTTP status code."""

    if status_code == 401:
        return UnauthenticatedError(message, status_code=status_code)
    if status_code == 403:
        return UnauthorizedError(message, status_code=status_code)
    if status_code in (400, 422):
        return UnprocessableRequestError(message, status_code=status_code)
    return TransientSourceError(message, status_code=status_code)
