"""Abstract client boundary consumed by the core.

The core never distinguishes concrete transports (gRPC, HTTP, subprocess).
Implementations raise the ``talosdeck.clients.errors`` taxonomy.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from datetime import datetime

from talosdeck.constants.enums import OperationKind
from talosdeck.models.core.boundary import (
    KubeResource,
    MemberInfo,
    Metric,
    OperationOutcome,
)
from talosdeck.models.logs.log_line import LogLine


class ClusterClient(ABC):
    """Capability shared by every client the core talks to."""

    @property
    def endpoint(self) -> str:
        """Human-readable endpoint name for logging."""
        return type(self).__name__


class ControlPlaneClient(ClusterClient):
    """Talos machine API boundary for one node (or one node group)."""

    @abstractmethod
    async def get_metric(self, kind: str) -> Metric:
        """Fetch one metric payload (memory, load_avg, services, ...)."""
        ...

    @abstractmethod
    async def read_file(self, path: str) -> bytes:
        """Read an on-node file.

        Raises:
            NotFoundError, PermissionDeniedError, ClientTimeoutError
        """
        ...

    @abstractmethod
    def stream_logs(self, service: str, since: datetime | None) -> AsyncIterator[LogLine]:
        """Yield log lines for ``service`` newer than ``since``.

        Each call is finite; callers restart it from the last timestamp seen.
        """
        ...

    @abstractmethod
    async def list_members(self) -> list[MemberInfo]:
        """List control-plane (etcd) membership."""
        ...

    @abstractmethod
    async def apply_operation(self, node: str, kind: OperationKind) -> OperationOutcome:
        """Issue a destructive operation against one node."""
        ...


class OrchestrationClient(ClusterClient):
    """Kubernetes API boundary."""

    @abstractmethod
    async def list_resources(
        self, kind: str, namespace: str | None = None
    ) -> list[KubeResource]:
        """List resources of ``kind``, optionally scoped to ``namespace``."""
        ...


__all__ = [
    "ClusterClient",
    "ControlPlaneClient",
    "OrchestrationClient",
]
