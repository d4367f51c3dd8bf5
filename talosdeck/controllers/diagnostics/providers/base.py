"""Provider capability shared by network fabrics and cluster addons.

Every provider offers the same three operations:

- ``detect(ctx, source)`` reports what evidence of the provider exists;
- ``describe()`` names it for display;
- ``checks(ctx)`` runs the provider's own check set.

Providers never do I/O; detection reads the same ``DiagnosticContext``
the checks do.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from talosdeck.constants.defaults import SYSTEM_NAMESPACE
from talosdeck.constants.enums import (
    DetectionSource,
    ProviderFamily,
    ProviderKind,
    SourceTier,
)
from talosdeck.controllers.diagnostics.engine import CheckSpec, run_check
from talosdeck.controllers.diagnostics.parsers import (
    PodParser,
    pod_health_summary,
    rollup_pods,
)
from talosdeck.models.core.boundary import KubeResource
from talosdeck.models.diagnostics.check import DiagnosticCheck
from talosdeck.models.diagnostics.context import SOURCE_K8S, DiagnosticContext
from talosdeck.models.health.indicator import HealthIndicator, check_status_of


@dataclass(frozen=True)
class Evidence:
    """What one detection pass found for one provider.

    ``available`` is False when none of the sources consulted returned data,
    which is different from a source that answered and found nothing.
    """

    kind: ProviderKind
    source: DetectionSource
    matches: tuple[str, ...] = ()
    available: bool = True

    @property
    def present(self) -> bool:
        return bool(self.matches)

    @classmethod
    def unavailable(cls, kind: ProviderKind) -> Evidence:
        return cls(kind=kind, source=DetectionSource.NONE, available=False)


class Provider(ABC):
    """One entry in the provider dispatch table."""

    kind: ProviderKind
    family: ProviderFamily
    display_name: str

    def describe(self) -> str:
        return self.display_name

    def detect(
        self, ctx: DiagnosticContext, source: DetectionSource | None = None
    ) -> Evidence:
        """Detect from ``source``, or from the API then files when None."""
        if source == DetectionSource.API:
            return self.detect_from_api(ctx)
        if source == DetectionSource.FILE:
            return self.detect_from_files(ctx)

        api = self.detect_from_api(ctx)
        if api.present:
            return api
        files = self.detect_from_files(ctx)
        if files.present or not api.available:
            return files
        return api

    @abstractmethod
    def detect_from_api(self, ctx: DiagnosticContext) -> Evidence:
        ...

    def detect_from_files(self, ctx: DiagnosticContext) -> Evidence:
        return Evidence(kind=self.kind, source=DetectionSource.FILE, available=False)

    @abstractmethod
    def check_specs(self) -> tuple[CheckSpec, ...]:
        ...

    def checks(self, ctx: DiagnosticContext) -> list[DiagnosticCheck]:
        return [run_check(spec, ctx) for spec in self.check_specs() if spec.applies_to(ctx)]


def names_with_prefix(
    resources: tuple[KubeResource, ...], prefixes: tuple[str, ...]
) -> tuple[str, ...]:
    lowered = tuple(prefix.lower() for prefix in prefixes)
    return tuple(
        resource.name for resource in resources if resource.name.lower().startswith(lowered)
    )


def system_workloads(ctx: DiagnosticContext) -> tuple[KubeResource, ...] | None:
    """kube-system pods and DaemonSets, or None if neither query succeeded."""
    pods = ctx.resources_of("Pod", SYSTEM_NAMESPACE)
    daemonsets = ctx.resources_of("DaemonSet", SYSTEM_NAMESPACE)
    if pods is None and daemonsets is None:
        return None
    return (pods or ()) + (daemonsets or ())


def pod_rollup_check(
    check_id: str,
    label: str,
    ctx: DiagnosticContext,
    namespace: str,
    prefixes: tuple[str, ...] | None = None,
) -> DiagnosticCheck:
    """Per-pod health rolled up with the shared aggregation rule."""
    pods = ctx.need(ctx.resources_of("Pod", namespace), SOURCE_K8S)
    if prefixes is not None:
        matching = set(names_with_prefix(pods, prefixes))
        pods = tuple(pod for pod in pods if pod.name in matching)
    if not pods:
        return DiagnosticCheck.warn(check_id, label, "No pods found").with_details(
            f"Could not find pods in the {namespace} namespace."
        )

    parsed = PodParser.parse_all(pods)
    restart_warn = ctx.settings.pod_restart_warn
    health = rollup_pods(parsed, restart_warn)
    result = DiagnosticCheck(
        id=check_id,
        label=label,
        status=check_status_of(health),
        detail=pod_health_summary(parsed),
        tier=SourceTier.API,
    )
    if health != HealthIndicator.HEALTHY:
        unhealthy = [
            pod.describe()
            for pod in parsed
            if pod.health(restart_warn) != HealthIndicator.HEALTHY
        ]
        result = result.with_details("Unhealthy pods:\n" + "\n".join(unhealthy))
    return result


__all__ = [
    "Evidence",
    "Provider",
    "names_with_prefix",
    "pod_rollup_check",
    "system_workloads",
]
