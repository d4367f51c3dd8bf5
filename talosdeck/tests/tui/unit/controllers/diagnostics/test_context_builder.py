"""Unit tests for ContextBuilder."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from datetime import datetime, timedelta, timezone

import pytest

from talosdeck.clients.base import ControlPlaneClient, OrchestrationClient
from talosdeck.clients.errors import NotFoundError, PermissionDeniedError
from talosdeck.constants.defaults import BR_NETFILTER_PATH, KUBELET_SERVICE, MEMINFO_PATH
from talosdeck.constants.enums import ErrorKind, OperationKind
from talosdeck.controllers.diagnostics.context_builder import ContextBuilder
from talosdeck.models.core.boundary import KubeResource, MemberInfo, Metric, OperationOutcome
from talosdeck.models.diagnostics.context import SOURCE_K8S, file_source
from talosdeck.models.logs.log_line import LogLine
from talosdeck.models.state.app_settings import TalosDeckSettings

NOW = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


class MockControlPlane(ControlPlaneClient):
    """In-memory control-plane client."""

    def __init__(self) -> None:
        self.metrics: dict[str, Metric | Exception] = {
            "memory": Metric(kind="memory", values={"mem_total": 100, "mem_available": 60}),
            "load_avg": Metric(kind="load_avg", values={"load1": 0.1, "load5": 0.2, "load15": 0.3}),
            "cpu_info": Metric(kind="cpu_info", values={"cpu_count": 4}),
            "services": Metric(
                kind="services",
                values={"services": [{"id": "apid", "state": "Running", "health": {"healthy": True}}]},
            ),
            "version": Metric(kind="version", values={"platform": "metal"}),
            "certificates": Metric(kind="certificates", values={"certificates": []}),
        }
        self.files: dict[str, bytes] = {BR_NETFILTER_PATH: b"1\n"}
        self.members = [MemberInfo(member_id="1", hostname="cp1", is_leader=True, last_seen=NOW)]
        self.log_lines = [
            LogLine(timestamp=NOW - timedelta(seconds=1), service=KUBELET_SERVICE, message="ok")
        ]
        self.member_calls = 0
        self.metric_delay = 0.0

    async def get_metric(self, kind: str) -> Metric:
        if self.metric_delay:
            await asyncio.sleep(self.metric_delay)
        value = self.metrics[kind]
        if isinstance(value, Exception):
            raise value
        return value

    async def read_file(self, path: str) -> bytes:
        if path not in self.files:
            raise NotFoundError(f"{path}: no such file")
        return self.files[path]

    async def stream_logs(self, service: str, since: datetime | None) -> AsyncIterator[LogLine]:
        for line in self.log_lines:
            yield line

    async def list_members(self) -> list[MemberInfo]:
        self.member_calls += 1
        return self.members

    async def apply_operation(self, node: str, kind: OperationKind) -> OperationOutcome:
        return OperationOutcome(node=node, kind=kind, success=True)


class MockOrchestration(OrchestrationClient):
    """In-memory Kubernetes API client."""

    def __init__(self, fail: Exception | None = None) -> None:
        self.fail = fail
        self.queries: list[tuple[str, str | None]] = []

    async def list_resources(self, kind: str, namespace: str | None = None) -> list[KubeResource]:
        self.queries.append((kind, namespace))
        if self.fail is not None:
            raise self.fail
        if kind == "Pod":
            return [KubeResource(kind="Pod", name="coredns-1", namespace="kube-system")]
        return []


@pytest.fixture
def control() -> MockControlPlane:
    return MockControlPlane()


@pytest.mark.unit
class TestContextBuilder:
    """Tests for evidence collection."""

    @pytest.mark.asyncio
    async def test_collects_every_source(self, control: MockControlPlane) -> None:
        """Test a healthy node yields a fully populated context."""
        builder = ContextBuilder(control, MockOrchestration(), clock=lambda: NOW)
        ctx = await builder.build("cp1", "controlplane")

        assert ctx.memory is not None
        assert ctx.memory.total_bytes == 100
        assert ctx.cpu_count == 4
        assert ctx.platform == "metal"
        assert ctx.members is not None and len(ctx.members) == 1
        assert ctx.file(BR_NETFILTER_PATH) == "1\n"
        assert ctx.resources_of("Pod") is not None
        assert ctx.log_evidence(KUBELET_SERVICE) is not None
        assert ctx.built_at == NOW

    @pytest.mark.asyncio
    async def test_missing_files_are_recorded(self, control: MockControlPlane) -> None:
        """Test absent files are recorded as not found."""
        ctx = await ContextBuilder(control, MockOrchestration(), clock=lambda: NOW).build("cp1", "")
        assert MEMINFO_PATH not in ctx.files
        assert ctx.unavailable[file_source(MEMINFO_PATH)].kind == ErrorKind.NOT_FOUND
        assert ctx.file_state(MEMINFO_PATH) is False

    @pytest.mark.asyncio
    async def test_no_orchestration_client(self, control: MockControlPlane) -> None:
        """Test a missing Kubernetes client marks the API unavailable."""
        ctx = await ContextBuilder(control, clock=lambda: NOW).build("cp1", "controlplane")
        assert len(ctx.resources) == 0
        assert ctx.unavailable[SOURCE_K8S].kind == ErrorKind.CONNECTION_ERROR
        assert not ctx.api_available

    @pytest.mark.asyncio
    async def test_api_failure_is_classified(self, control: MockControlPlane) -> None:
        """Test a failing API records its error under the k8s source."""
        orchestration = MockOrchestration(fail=PermissionDeniedError("forbidden"))
        ctx = await ContextBuilder(control, orchestration, clock=lambda: NOW).build("cp1", "")
        assert ctx.unavailable[SOURCE_K8S].kind == ErrorKind.PERMISSION_DENIED

    @pytest.mark.asyncio
    async def test_metric_failure_does_not_fail_build(self, control: MockControlPlane) -> None:
        """Test one failing metric leaves the others intact."""
        control.metrics["memory"] = PermissionDeniedError("denied")
        ctx = await ContextBuilder(control, clock=lambda: NOW).build("cp1", "")
        assert ctx.memory is None
        assert ctx.unavailable["memory"].kind == ErrorKind.PERMISSION_DENIED
        assert ctx.load_avg is not None

    @pytest.mark.asyncio
    async def test_malformed_metric(self, control: MockControlPlane) -> None:
        """Test an unexpected payload is recorded as an internal error."""
        control.metrics["load_avg"] = Metric(kind="load_avg", values={})
        ctx = await ContextBuilder(control, clock=lambda: NOW).build("cp1", "")
        assert ctx.load_avg is None
        assert ctx.unavailable["load_avg"].kind == ErrorKind.INTERNAL

    @pytest.mark.asyncio
    async def test_calls_are_bounded(self, control: MockControlPlane) -> None:
        """Test a slow call times out instead of blocking the build."""
        control.metric_delay = 1.0
        settings = TalosDeckSettings(client_call_timeout=0.01)
        ctx = await ContextBuilder(control, settings=settings, clock=lambda: NOW).build("cp1", "")
        assert ctx.memory is None
        assert ctx.unavailable["memory"].kind == ErrorKind.TIMEOUT

    @pytest.mark.asyncio
    async def test_members_skipped_on_workers(self, control: MockControlPlane) -> None:
        """Test worker nodes do not query membership."""
        ctx = await ContextBuilder(control, clock=lambda: NOW).build("w1", "worker")
        assert control.member_calls == 0
        assert ctx.members is None
