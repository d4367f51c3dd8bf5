"""Client boundary for TalosDeck."""

from talosdeck.clients.base import (
    ClusterClient,
    ControlPlaneClient,
    OrchestrationClient,
)
from talosdeck.clients.errors import (
    ClientConnectionError,
    ClientError,
    ClientTimeoutError,
    InternalError,
    NotFoundError,
    PermissionDeniedError,
    classify_error,
)

__all__ = [
    "ClientConnectionError",
    "ClientError",
    "ClientTimeoutError",
    "ClusterClient",
    "ControlPlaneClient",
    "InternalError",
    "NotFoundError",
    "OrchestrationClient",
    "PermissionDeniedError",
    "classify_error",
]
