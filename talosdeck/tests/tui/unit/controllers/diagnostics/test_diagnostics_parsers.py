"""Unit tests for the metric and pod parsers."""

from __future__ import annotations

import pytest

from talosdeck.controllers.diagnostics.parsers import (
    MetricParser,
    PodParser,
    pod_health_summary,
    rollup_pods,
)
from talosdeck.models.core.boundary import KubeResource, Metric
from talosdeck.models.health.indicator import HealthIndicator


def _pod(name: str, phase: str = "Running", ready: bool = True, restarts: int = 0, reason: str | None = None) -> KubeResource:
    state = {"waiting": {"reason": reason}} if reason else {"running": {}}
    return KubeResource(
        kind="Pod",
        name=name,
        namespace="default",
        status={
            "phase": phase,
            "conditions": [{"type": "Ready", "status": "True" if ready else "False"}],
            "containerStatuses": [{"restartCount": restarts, "state": state}],
        },
    )


@pytest.mark.unit
@pytest.mark.fast
class TestMetricParser:
    """Tests for MetricParser."""

    def test_meminfo_without_available(self) -> None:
        """Test older kernels approximate available memory."""
        info = MetricParser.parse_meminfo(
            "MemTotal: 1000 kB\nMemFree: 100 kB\nBuffers: 50 kB\nCached: 50 kB\n"
        )
        assert info is not None
        assert info.available_bytes == 200 * 1024

    def test_meminfo_missing_total(self) -> None:
        """Test unusable meminfo returns None."""
        assert MetricParser.parse_meminfo("garbage") is None

    def test_load_avg(self) -> None:
        """Test load average decoding."""
        load = MetricParser.parse_load_avg(
            Metric(kind="load_avg", values={"load1": "0.5", "load5": 1, "load15": 2.5})
        )
        assert load is not None
        assert (load.load1, load.load5, load.load15) == (0.5, 1.0, 2.5)

    def test_load_avg_malformed(self) -> None:
        """Test a payload missing fields returns None."""
        assert MetricParser.parse_load_avg(Metric(kind="load_avg", values={"load1": 1})) is None

    def test_cpu_count_from_list(self) -> None:
        """Test the CPU count is the length of the cpu list."""
        metric = Metric(kind="cpu_info", values={"cpus": [{}, {}, {}, {}]})
        assert MetricParser.parse_cpu_count(metric) == 4

    def test_services(self) -> None:
        """Test service entries are decoded and malformed ones skipped."""
        metric = Metric(
            kind="services",
            values={
                "services": [
                    {"id": "apid", "state": "Running", "health": {"healthy": True}},
                    {"state": "Running"},
                    {"id": "etcd", "state": "Failed", "health": {"healthy": False, "last_message": "boom"}},
                ]
            },
        )
        services = MetricParser.parse_services(metric)
        assert services is not None
        assert [svc.service_id for svc in services] == ["apid", "etcd"]
        assert services[1].healthy is False
        assert services[1].message == "boom"

    def test_certificates_skip_missing_expiry(self) -> None:
        """Test certificates without an expiry are skipped."""
        metric = Metric(
            kind="certificates",
            values={
                "certificates": [
                    {"name": "apiserver", "not_after": "2025-01-01T00:00:00Z"},
                    {"name": "broken"},
                ]
            },
        )
        certs = MetricParser.parse_certificates(metric)
        assert certs is not None
        assert [cert.name for cert in certs] == ["apiserver"]


@pytest.mark.unit
@pytest.mark.fast
class TestPodParser:
    """Tests for PodParser and the pod rollup."""

    def test_parse_waiting_reason(self) -> None:
        """Test waiting reasons and restarts are collected."""
        info = PodParser.parse(_pod("web", ready=False, restarts=7, reason="CrashLoopBackOff"))
        assert info.is_crashlooping
        assert info.restart_count == 7
        assert not info.is_up

    def test_rollup_worst_wins(self) -> None:
        """Test a crash looping pod makes the rollup an error."""
        pods = PodParser.parse_all(
            (_pod("a"), _pod("b", phase="Pending", ready=False), _pod("c", ready=False, reason="ErrImagePull"))
        )
        assert rollup_pods(pods, restart_warn=5) == HealthIndicator.ERROR

    def test_pending_warns(self) -> None:
        """Test a pending pod is a warning."""
        pods = PodParser.parse_all((_pod("a"), _pod("b", phase="Pending", ready=False)))
        assert rollup_pods(pods, restart_warn=5) == HealthIndicator.WARNING

    def test_summary(self) -> None:
        """Test the summary counts healthy pods and restarts."""
        pods = PodParser.parse_all((_pod("a", restarts=2), _pod("b")))
        assert pod_health_summary(pods) == "2/2 pods healthy (2 restarts)"
        assert pod_health_summary(()) == "No pods found"
