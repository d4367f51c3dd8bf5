"""Read-only evidence bundle passed into diagnostic checks.

A ``DiagnosticContext`` is assembled at the refresh-task edge from data that
has already been fetched. Checks read from it and never perform I/O. A field
left as ``None`` means the source was unavailable; the reason is recorded in
``unavailable`` under the same source name.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from types import MappingProxyType
from typing import TypeVar

from talosdeck.constants.enums import ErrorKind
from talosdeck.models.core.boundary import KubeResource, MemberInfo
from talosdeck.models.logs.log_line import LogLine
from talosdeck.models.state.app_settings import TalosDeckSettings
from talosdeck.models.state.error_info import ErrorInfo

V = TypeVar("V")

# Source names used as keys in ``DiagnosticContext.unavailable``.
SOURCE_MEMORY = "memory"
SOURCE_LOAD_AVG = "load_avg"
SOURCE_CPU_INFO = "cpu_info"
SOURCE_SERVICES = "services"
SOURCE_VERSION = "version"
SOURCE_CERTIFICATES = "certificates"
SOURCE_MEMBERS = "members"
SOURCE_K8S = "k8s"


def file_source(path: str) -> str:
    return f"file:{path}"


def log_source(service: str) -> str:
    return f"logs:{service}"


def resource_key(kind: str, namespace: str | None) -> str:
    return f"{kind}/{namespace or '*'}"


class EvidenceUnavailable(Exception):
    """Raised inside a check when a source it depends on is missing."""

    def __init__(self, source: str, reason: ErrorInfo | None = None) -> None:
        self.source = source
        self.reason = reason
        detail = reason.describe() if reason else "no data"
        super().__init__(f"{source} unavailable ({detail})")


@dataclass(frozen=True)
class MemoryInfo:
    total_bytes: int
    available_bytes: int

    @property
    def used_bytes(self) -> int:
        return max(0, self.total_bytes - self.available_bytes)

    @property
    def usage_percent(self) -> float:
        if self.total_bytes <= 0:
            return 0.0
        return self.used_bytes / self.total_bytes * 100


@dataclass(frozen=True)
class LoadAverage:
    load1: float
    load5: float
    load15: float


@dataclass(frozen=True)
class ServiceStatus:
    service_id: str
    state: str
    healthy: bool | None = None
    message: str = ""


@dataclass(frozen=True)
class CertificateInfo:
    name: str
    not_after: datetime


@dataclass(frozen=True)
class LogEvidence:
    """Recent log lines for one service, plus when they were fetched."""

    service: str
    fetched_at: datetime
    lines: tuple[LogLine, ...] = ()

    def fresh_lines(self, now: datetime, max_age_seconds: float) -> tuple[LogLine, ...]:
        """Lines with a timestamp inside the freshness window.

        Lines without a parseable timestamp are never treated as current.
        """
        cutoff = now - timedelta(seconds=max_age_seconds)
        return tuple(
            line
            for line in self.lines
            if line.timestamp is not None and cutoff <= line.timestamp <= now
        )

    def mentions(
        self, needles: tuple[str, ...], now: datetime, max_age_seconds: float
    ) -> tuple[LogLine, ...]:
        lowered = tuple(needle.lower() for needle in needles)
        return tuple(
            line
            for line in self.fresh_lines(now, max_age_seconds)
            if any(needle in line.message.lower() for needle in lowered)
        )


@dataclass(frozen=True)
class DiagnosticContext:
    """Everything a check may look at for one node."""

    hostname: str
    node_role: str
    built_at: datetime
    settings: TalosDeckSettings = field(default_factory=TalosDeckSettings)
    platform: str = ""
    cpu_count: int | None = None
    memory: MemoryInfo | None = None
    load_avg: LoadAverage | None = None
    services: tuple[ServiceStatus, ...] | None = None
    certificates: tuple[CertificateInfo, ...] | None = None
    members: tuple[MemberInfo, ...] | None = None
    files: Mapping[str, str] = field(default_factory=dict)
    resources: Mapping[str, tuple[KubeResource, ...]] = field(default_factory=dict)
    logs: Mapping[str, LogEvidence] = field(default_factory=dict)
    unavailable: Mapping[str, ErrorInfo] = field(default_factory=dict)

    def __post_init__(self) -> None:
        for name in ("files", "resources", "logs", "unavailable"):
            value = getattr(self, name)
            if not isinstance(value, MappingProxyType):
                object.__setattr__(self, name, MappingProxyType(dict(value)))

    @classmethod
    def empty(cls, hostname: str = "", node_role: str = "", *, built_at: datetime) -> DiagnosticContext:
        """Context in which no source produced any evidence."""
        return cls(hostname=hostname, node_role=node_role, built_at=built_at)

    @property
    def is_control_plane(self) -> bool:
        role = self.node_role.lower()
        return "controlplane" in role or "control" in role

    @property
    def api_available(self) -> bool:
        return SOURCE_K8S not in self.unavailable and bool(self.resources)

    def need(self, value: V | None, source: str) -> V:
        """Return ``value`` or raise ``EvidenceUnavailable`` for ``source``."""
        if value is None:
            raise EvidenceUnavailable(source, self.unavailable.get(source))
        return value

    def file(self, path: str) -> str | None:
        return self.files.get(path)

    def file_state(self, path: str) -> bool | None:
        """True if the file was read, False if known absent, None if unknown."""
        if path in self.files:
            return True
        reason = self.unavailable.get(file_source(path))
        if reason is not None and reason.kind == ErrorKind.NOT_FOUND:
            return False
        return None

    def resources_of(self, kind: str, namespace: str | None = None) -> tuple[KubeResource, ...] | None:
        """Fetched resources of ``kind``; None when that query was not available."""
        exact = self.resources.get(resource_key(kind, namespace))
        if exact is not None:
            return exact
        if namespace is not None:
            cluster_wide = self.resources.get(resource_key(kind, None))
            if cluster_wide is not None:
                return tuple(r for r in cluster_wide if r.namespace == namespace)
        return None

    def log_evidence(self, service: str) -> LogEvidence | None:
        return self.logs.get(service)


__all__ = [
    "CertificateInfo",
    "DiagnosticContext",
    "EvidenceUnavailable",
    "LoadAverage",
    "LogEvidence",
    "MemoryInfo",
    "SOURCE_CERTIFICATES",
    "SOURCE_CPU_INFO",
    "SOURCE_K8S",
    "SOURCE_LOAD_AVG",
    "SOURCE_MEMBERS",
    "SOURCE_MEMORY",
    "SOURCE_SERVICES",
    "SOURCE_VERSION",
    "ServiceStatus",
    "file_source",
    "log_source",
    "resource_key",
]
