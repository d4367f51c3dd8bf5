"""Pod parser - reduces Kubernetes pod objects into health rollup inputs."""

from __future__ import annotations

from dataclasses import dataclass

from talosdeck.models.core.boundary import KubeResource
from talosdeck.models.health.indicator import (
    HealthIndicator,
    aggregate_health,
    health_of_pod,
)

# Container waiting reasons that mean the pod cannot start on its own.
CRASH_REASONS = ("CrashLoopBackOff",)
IMAGE_PULL_REASONS = ("ImagePullBackOff", "ErrImagePull", "InvalidImageName")


@dataclass(frozen=True)
class PodStatusInfo:
    """Status fields of one pod that matter for health rollups."""

    name: str
    namespace: str | None
    phase: str
    ready: bool
    restart_count: int = 0
    waiting_reasons: tuple[str, ...] = ()

    @property
    def is_up(self) -> bool:
        return self.phase == "Succeeded" or (self.phase == "Running" and self.ready)

    @property
    def is_crashlooping(self) -> bool:
        return any(reason in CRASH_REASONS for reason in self.waiting_reasons)

    @property
    def has_image_pull_error(self) -> bool:
        return any(reason in IMAGE_PULL_REASONS for reason in self.waiting_reasons)

    def health(self, restart_warn: int) -> HealthIndicator:
        if self.is_crashlooping or self.has_image_pull_error:
            return HealthIndicator.ERROR
        return health_of_pod(self.phase, self.ready, self.restart_count, restart_warn)

    def describe(self) -> str:
        reasons = f", {', '.join(self.waiting_reasons)}" if self.waiting_reasons else ""
        return f"  {self.name} - {self.phase} (ready: {self.ready}, restarts: {self.restart_count}{reasons})"


class PodParser:
    """Parses pod resources into ``PodStatusInfo`` records."""

    @staticmethod
    def parse(pod: KubeResource) -> PodStatusInfo:
        status = pod.status
        conditions = status.get("conditions") or []
        ready = any(
            isinstance(condition, dict)
            and condition.get("type") == "Ready"
            and condition.get("status") == "True"
            for condition in conditions
        )

        restart_count = 0
        waiting_reasons: list[str] = []
        for container in status.get("containerStatuses") or []:
            if not isinstance(container, dict):
                continue
            restarts = container.get("restartCount", 0)
            if isinstance(restarts, int):
                restart_count += restarts
            waiting = (container.get("state") or {}).get("waiting") or {}
            reason = waiting.get("reason")
            if reason and reason not in waiting_reasons:
                waiting_reasons.append(str(reason))

        return PodStatusInfo(
            name=pod.name,
            namespace=pod.namespace,
            phase=str(status.get("phase") or "Unknown"),
            ready=ready,
            restart_count=restart_count,
            waiting_reasons=tuple(waiting_reasons),
        )

    @classmethod
    def parse_all(cls, pods: tuple[KubeResource, ...]) -> tuple[PodStatusInfo, ...]:
        return tuple(cls.parse(pod) for pod in pods)


def rollup_pods(pods: tuple[PodStatusInfo, ...], restart_warn: int) -> HealthIndicator:
    """Aggregate per-pod health with the shared rule."""
    return aggregate_health(pod.health(restart_warn) for pod in pods)


def pod_health_summary(pods: tuple[PodStatusInfo, ...]) -> str:
    if not pods:
        return "No pods found"
    total = len(pods)
    healthy = sum(1 for pod in pods if pod.is_up)
    restarts = sum(pod.restart_count for pod in pods)
    if healthy == total and restarts:
        return f"{healthy}/{total} pods healthy ({restarts} restarts)"
    return f"{healthy}/{total} pods healthy"


__all__ = [
    "CRASH_REASONS",
    "IMAGE_PULL_REASONS",
    "PodParser",
    "PodStatusInfo",
    "pod_health_summary",
    "rollup_pods",
]
