"""Error taxonomy for the control-plane and orchestration client boundary.

Concrete clients raise ``ClientError`` subclasses. Refresh tasks catch any
exception at the boundary and convert it with ``classify_error`` so the
engine above only ever sees an ``ErrorInfo``.
"""

from __future__ import annotations

import asyncio

from talosdeck.constants.enums import ErrorKind
from talosdeck.models.state.error_info import ErrorInfo


class ClientError(Exception):
    """Base exception for client boundary failures."""

    kind: ErrorKind = ErrorKind.INTERNAL


class NotFoundError(ClientError):
    """Requested resource, file or member does not exist."""

    kind = ErrorKind.NOT_FOUND


class PermissionDeniedError(ClientError):
    """Credentials do not allow the requested call."""

    kind = ErrorKind.PERMISSION_DENIED


class ClientTimeoutError(ClientError):
    """Call did not complete within its deadline."""

    kind = ErrorKind.TIMEOUT


class ClientConnectionError(ClientError):
    """Endpoint could not be reached."""

    kind = ErrorKind.CONNECTION_ERROR


class InternalError(ClientError):
    """Unexpected failure inside the client or the remote API."""

    kind = ErrorKind.INTERNAL


def error_kind_for(error: BaseException) -> ErrorKind:
    """Map any exception raised at the boundary onto the taxonomy."""
    if isinstance(error, ClientError):
        return error.kind
    if isinstance(error, (asyncio.TimeoutError, TimeoutError)):
        return ErrorKind.TIMEOUT
    if isinstance(error, FileNotFoundError):
        return ErrorKind.NOT_FOUND
    if isinstance(error, PermissionError):
        return ErrorKind.PERMISSION_DENIED
    if isinstance(error, (ConnectionError, OSError)):
        return ErrorKind.CONNECTION_ERROR
    return ErrorKind.INTERNAL


def classify_error(error: BaseException, source: str | None = None) -> ErrorInfo:
    """Convert a raw boundary exception into a user-facing ``ErrorInfo``."""
    kind = error_kind_for(error)
    message = str(error).strip() or type(error).__name__
    return ErrorInfo(kind=kind, message=message, source=source)


__all__ = [
    "ClientConnectionError",
    "ClientError",
    "ClientTimeoutError",
    "InternalError",
    "NotFoundError",
    "PermissionDeniedError",
    "classify_error",
    "error_kind_for",
]
