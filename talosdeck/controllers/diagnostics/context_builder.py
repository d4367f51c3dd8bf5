"""Builds a ``DiagnosticContext`` from the client boundary.

This is the refresh-task edge for diagnostics: every external call is bounded
by ``client_call_timeout`` and every failure is classified and recorded in
``DiagnosticContext.unavailable`` instead of propagating. Checks downstream
then see missing evidence and degrade to Unknown on their own.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from datetime import datetime, timedelta
from typing import TypeVar

from talosdeck.clients.base import ControlPlaneClient, OrchestrationClient
from talosdeck.clients.errors import classify_error
from talosdeck.constants.defaults import (
    BR_NETFILTER_PATH,
    KUBELET_SERVICE,
    MEMINFO_PATH,
    SYSTEM_NAMESPACE,
)
from talosdeck.constants.enums import ErrorKind
from talosdeck.controllers.diagnostics.parsers import MetricParser
from talosdeck.models.core.boundary import KubeResource, Metric
from talosdeck.models.diagnostics.context import (
    SOURCE_CERTIFICATES,
    SOURCE_CPU_INFO,
    SOURCE_K8S,
    SOURCE_LOAD_AVG,
    SOURCE_MEMBERS,
    SOURCE_MEMORY,
    SOURCE_SERVICES,
    SOURCE_VERSION,
    DiagnosticContext,
    LogEvidence,
    file_source,
    log_source,
    resource_key,
)
from talosdeck.models.logs.log_line import LogLine
from talosdeck.models.state.app_settings import TalosDeckSettings
from talosdeck.models.state.async_state import utc_now
from talosdeck.models.state.error_info import ErrorInfo

logger = logging.getLogger(__name__)

T = TypeVar("T")

# (kind, namespace) queries issued against the Kubernetes API.
RESOURCE_QUERIES: tuple[tuple[str, str | None], ...] = (
    ("Pod", None),
    ("DaemonSet", SYSTEM_NAMESPACE),
    ("Namespace", None),
    ("CustomResourceDefinition", None),
    ("Certificate", None),
)


class ContextBuilder:
    """Fetches evidence for one node and freezes it into a context."""

    def __init__(
        self,
        control: ControlPlaneClient,
        orchestration: OrchestrationClient | None = None,
        settings: TalosDeckSettings | None = None,
        *,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._control = control
        self._orchestration = orchestration
        self._settings = settings or TalosDeckSettings()
        self._clock = clock

    def _file_paths(self) -> tuple[str, ...]:
        paths = [MEMINFO_PATH, BR_NETFILTER_PATH]
        for fabric_paths in self._settings.fabric_file_evidence.values():
            paths.extend(fabric_paths)
        return tuple(dict.fromkeys(paths))

    async def _fetch(
        self,
        source: str,
        call: Callable[[], Awaitable[T]],
        unavailable: dict[str, ErrorInfo],
    ) -> T | None:
        """Run one bounded boundary call; record and swallow its failure."""
        try:
            return await asyncio.wait_for(call(), timeout=self._settings.client_call_timeout)
        except Exception as exc:
            info = classify_error(exc, source)
            unavailable[source] = info
            if info.kind == ErrorKind.NOT_FOUND:
                logger.debug("%s not found on %s", source, self._control.endpoint)
            else:
                logger.warning("Failed to fetch %s: %s", source, info.describe())
            return None

    async def _metric(
        self,
        kind: str,
        parse: Callable[[Metric], T | None],
        unavailable: dict[str, ErrorInfo],
    ) -> T | None:
        metric = await self._fetch(kind, lambda: self._control.get_metric(kind), unavailable)
        if metric is None:
            return None
        value = parse(metric)
        if value is None:
            unavailable[kind] = ErrorInfo(
                kind=ErrorKind.INTERNAL, message="Unexpected metric payload", source=kind
            )
        return value

    async def _read_file(self, path: str, unavailable: dict[str, ErrorInfo]) -> str | None:
        raw = await self._fetch(
            file_source(path), lambda: self._control.read_file(path), unavailable
        )
        if raw is None:
            return None
        return raw.decode("utf-8", errors="replace")

    async def _resources(
        self, kind: str, namespace: str | None, unavailable: dict[str, ErrorInfo]
    ) -> tuple[KubeResource, ...] | None:
        orchestration = self._orchestration
        if orchestration is None:
            return None
        items = await self._fetch(
            resource_key(kind, namespace),
            lambda: orchestration.list_resources(kind, namespace),
            unavailable,
        )
        return tuple(items) if items is not None else None

    async def _kubelet_logs(
        self, since: datetime, unavailable: dict[str, ErrorInfo]
    ) -> tuple[LogLine, ...] | None:
        async def collect() -> list[LogLine]:
            return [line async for line in self._control.stream_logs(KUBELET_SERVICE, since)]

        lines = await self._fetch(log_source(KUBELET_SERVICE), collect, unavailable)
        return tuple(lines) if lines is not None else None

    async def build(self, hostname: str, node_role: str) -> DiagnosticContext:
        """Fetch every source concurrently and return a frozen context."""
        unavailable: dict[str, ErrorInfo] = {}
        now = self._clock()
        log_since = now - timedelta(seconds=self._settings.log_freshness_window)
        paths = self._file_paths()

        wants_members = not node_role or "control" in node_role.lower()
        members_call = (
            self._fetch(SOURCE_MEMBERS, self._control.list_members, unavailable)
            if wants_members
            else _none()
        )

        (
            memory,
            load_avg,
            cpu_count,
            services,
            platform,
            certificates,
            members,
            kubelet_lines,
            *rest,
        ) = await asyncio.gather(
            self._metric(SOURCE_MEMORY, MetricParser.parse_memory, unavailable),
            self._metric(SOURCE_LOAD_AVG, MetricParser.parse_load_avg, unavailable),
            self._metric(SOURCE_CPU_INFO, MetricParser.parse_cpu_count, unavailable),
            self._metric(SOURCE_SERVICES, MetricParser.parse_services, unavailable),
            self._metric(SOURCE_VERSION, MetricParser.parse_platform, unavailable),
            self._metric(SOURCE_CERTIFICATES, MetricParser.parse_certificates, unavailable),
            members_call,
            self._kubelet_logs(log_since, unavailable),
            *(self._read_file(path, unavailable) for path in paths),
            *(self._resources(kind, ns, unavailable) for kind, ns in RESOURCE_QUERIES),
        )

        built_at = self._clock()
        file_results = rest[: len(paths)]
        resource_results = rest[len(paths):]
        files = {path: text for path, text in zip(paths, file_results) if text is not None}
        resources = {
            resource_key(kind, ns): items
            for (kind, ns), items in zip(RESOURCE_QUERIES, resource_results)
            if items is not None
        }

        if self._orchestration is None:
            unavailable[SOURCE_K8S] = ErrorInfo(
                kind=ErrorKind.CONNECTION_ERROR,
                message="No Kubernetes API client configured",
                source=SOURCE_K8S,
            )
        elif resource_key("Pod", None) not in resources:
            unavailable[SOURCE_K8S] = unavailable[resource_key("Pod", None)]

        logs = {}
        if kubelet_lines is not None:
            logs[KUBELET_SERVICE] = LogEvidence(
                service=KUBELET_SERVICE, fetched_at=built_at, lines=kubelet_lines
            )

        if unavailable:
            logger.info(
                "Diagnostics context for %s built with %d unavailable sources",
                hostname,
                len(unavailable),
            )

        return DiagnosticContext(
            hostname=hostname,
            node_role=node_role,
            built_at=built_at,
            settings=self._settings,
            platform=platform or "",
            cpu_count=cpu_count,
            memory=memory,
            load_avg=load_avg,
            services=services,
            certificates=certificates,
            members=tuple(members) if members is not None else None,
            files=files,
            resources=resources,
            logs=logs,
            unavailable=unavailable,
        )


async def _none() -> None:
    return None


__all__ = ["ContextBuilder", "RESOURCE_QUERIES"]
