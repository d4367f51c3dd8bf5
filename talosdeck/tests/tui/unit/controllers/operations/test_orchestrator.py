"""Unit tests for RollingOrchestrator."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Callable
from datetime import datetime, timedelta, timezone

import pytest

from talosdeck.clients.base import ControlPlaneClient
from talosdeck.constants.enums import FailurePolicy, OperationKind, PlanState, StepOutcome
from talosdeck.controllers.operations import RollingOrchestrator
from talosdeck.controllers.safety import SafetyGate
from talosdeck.models.core.boundary import MemberInfo, Metric, OperationOutcome
from talosdeck.models.logs.log_line import LogLine
from talosdeck.models.state.app_settings import TalosDeckSettings

T0 = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


def _clock() -> datetime:
    return T0


def _members(alive: int) -> list[MemberInfo]:
    return [
        MemberInfo(
            member_id=str(index),
            hostname=f"cp{index + 1}",
            is_leader=index == 0,
            last_seen=T0 if index < alive else T0 - timedelta(minutes=5),
        )
        for index in range(3)
    ]


class MockClient(ControlPlaneClient):
    """Records apply_operation calls; nodes can fail or block."""

    def __init__(self) -> None:
        self.applied: list[str] = []
        self.failing: set[str] = set()
        self.blocking: dict[str, asyncio.Event] = {}
        self.started = asyncio.Event()
        self.after_apply: Callable[[str], None] | None = None

    async def get_metric(self, kind: str) -> Metric:
        return Metric(kind=kind)

    async def read_file(self, path: str) -> bytes:
        return b""

    async def stream_logs(self, service: str, since: datetime | None) -> AsyncIterator[LogLine]:
        for line in ():
            yield line

    async def list_members(self) -> list[MemberInfo]:
        return _members(3)

    async def apply_operation(self, node: str, kind: OperationKind) -> OperationOutcome:
        self.applied.append(node)
        self.started.set()
        if node in self.blocking:
            await self.blocking[node].wait()
        if self.after_apply is not None:
            self.after_apply(node)
        success = node not in self.failing
        return OperationOutcome(
            node=node, kind=kind, success=success, message="" if success else "exit status 1"
        )


async def _wait_until(predicate: Callable[[], bool]) -> None:
    for _ in range(200):
        if predicate():
            return
        await asyncio.sleep(0)
    raise AssertionError("condition not reached")


@pytest.fixture
def gate() -> SafetyGate:
    gate = SafetyGate(clock=_clock)
    gate.update(_members(3))
    return gate


@pytest.fixture
def client() -> MockClient:
    return MockClient()


def _orchestrator(
    client: MockClient,
    gate: SafetyGate,
    policy: FailurePolicy = FailurePolicy.CONTINUE,
    settings: TalosDeckSettings | None = None,
) -> RollingOrchestrator:
    return RollingOrchestrator(
        client,
        gate,
        OperationKind.REBOOT,
        ["n1", "n2", "n3"],
        policy=policy,
        plan_id="reboot-test",
        settings=settings,
        refresh_gate=False,
        clock=_clock,
    )


@pytest.mark.unit
class TestRollingOrchestrator:
    """Tests for the rolling plan state machine."""

    @pytest.mark.fast
    def test_generated_plan_id(self, client: MockClient, gate: SafetyGate) -> None:
        """Test plan ids are prefixed with the operation kind."""
        orchestrator = RollingOrchestrator(client, gate, OperationKind.DRAIN, ["n1"])
        assert orchestrator.plan_id.startswith("drain-")
        assert orchestrator.state == PlanState.PENDING

    @pytest.mark.asyncio
    async def test_all_steps_succeed(self, client: MockClient, gate: SafetyGate) -> None:
        """Test a healthy cluster completes the plan in order."""
        plan = await _orchestrator(client, gate).run()
        assert plan.state == PlanState.COMPLETED
        assert client.applied == ["n1", "n2", "n3"]
        assert plan.progress() == "3/3"
        assert not gate.ledger.is_running("reboot-test")

    @pytest.mark.asyncio
    async def test_continue_policy_records_failure(self, client: MockClient, gate: SafetyGate) -> None:
        """Test CONTINUE moves past a failed node."""
        client.failing = {"n2"}
        plan = await _orchestrator(client, gate).run()
        assert plan.state == PlanState.COMPLETED
        assert client.applied == ["n1", "n2", "n3"]
        assert plan.results["n2"].outcome == StepOutcome.FAILURE
        assert plan.failed_nodes == ("n2",)

    @pytest.mark.asyncio
    async def test_halt_policy_stops(self, client: MockClient, gate: SafetyGate) -> None:
        """Test HALT fails the plan and keeps earlier results."""
        client.failing = {"n2"}
        plan = await _orchestrator(client, gate, FailurePolicy.HALT).run()
        assert plan.state == PlanState.FAILED
        assert client.applied == ["n1", "n2"]
        assert plan.results["n1"].outcome == StepOutcome.SUCCESS
        assert plan.failure_reason == "Step failed on n2: exit status 1"

    @pytest.mark.asyncio
    async def test_gate_flip_between_steps(self, client: MockClient, gate: SafetyGate) -> None:
        """Test losing quorum mid-plan stops before the next node."""

        def lose_quorum(node: str) -> None:
            if node == "n1":
                gate.update(_members(1))

        client.after_apply = lose_quorum
        plan = await _orchestrator(client, gate).run()
        assert plan.state == PlanState.FAILED
        assert client.applied == ["n1"]
        assert plan.failure_reason is not None
        assert plan.failure_reason.startswith("Safety gate unsafe: No quorum")

    @pytest.mark.asyncio
    async def test_unknown_verdict_fails_closed(self, client: MockClient) -> None:
        """Test no membership data blocks the first step."""
        plan = await _orchestrator(client, SafetyGate(clock=_clock)).run()
        assert plan.state == PlanState.FAILED
        assert client.applied == []
        assert plan.failure_reason == "Safety gate unknown: No membership data"

    @pytest.mark.asyncio
    async def test_step_timeout(self, client: MockClient, gate: SafetyGate) -> None:
        """Test a step that never returns is recorded as a timeout."""
        client.blocking["n1"] = asyncio.Event()
        settings = TalosDeckSettings(operation_step_timeout=0.01)
        plan = await _orchestrator(client, gate, FailurePolicy.HALT, settings).run()
        assert plan.results["n1"].outcome == StepOutcome.TIMEOUT
        assert plan.state == PlanState.FAILED

    @pytest.mark.asyncio
    async def test_pause_and_resume(self, client: MockClient, gate: SafetyGate) -> None:
        """Test pause takes effect at the next step boundary."""
        release = asyncio.Event()
        client.blocking["n1"] = release
        orchestrator = _orchestrator(client, gate)
        task = asyncio.create_task(orchestrator.run())
        await client.started.wait()

        assert orchestrator.pause()
        release.set()
        await _wait_until(lambda: orchestrator.state == PlanState.PAUSED)
        assert client.applied == ["n1"]
        assert not gate.ledger.is_running("reboot-test")

        assert orchestrator.resume()
        plan = await task
        assert plan.state == PlanState.COMPLETED
        assert client.applied == ["n1", "n2", "n3"]

    @pytest.mark.asyncio
    async def test_abort_while_paused(self, client: MockClient, gate: SafetyGate) -> None:
        """Test abort ends a paused plan without further steps."""
        release = asyncio.Event()
        client.blocking["n1"] = release
        orchestrator = _orchestrator(client, gate)
        task = asyncio.create_task(orchestrator.run())
        await client.started.wait()
        orchestrator.pause()
        release.set()
        await _wait_until(lambda: orchestrator.state == PlanState.PAUSED)

        assert orchestrator.abort()
        plan = await task
        assert plan.state == PlanState.ABORTED
        assert plan.failure_reason == "Aborted by operator"
        assert client.applied == ["n1"]

    @pytest.mark.asyncio
    async def test_abort_pending(self, client: MockClient, gate: SafetyGate) -> None:
        """Test a plan aborted before start never runs."""
        orchestrator = _orchestrator(client, gate)
        assert orchestrator.abort()
        plan = await orchestrator.run()
        assert plan.state == PlanState.ABORTED
        assert client.applied == []
        assert not orchestrator.abort()

    @pytest.mark.asyncio
    async def test_cancel_waits_for_dispatched_step(self, client: MockClient, gate: SafetyGate) -> None:
        """Test cancelling the run task still records the in-flight step."""
        release = asyncio.Event()
        client.blocking["n1"] = release
        orchestrator = _orchestrator(client, gate)
        task = asyncio.create_task(orchestrator.run())
        await client.started.wait()

        task.cancel()
        await asyncio.sleep(0)
        release.set()
        with pytest.raises(asyncio.CancelledError):
            await task

        plan = orchestrator.snapshot()
        assert plan.state == PlanState.ABORTED
        assert plan.failure_reason == "Run task cancelled"
        assert plan.results["n1"].outcome == StepOutcome.SUCCESS
        assert client.applied == ["n1"]

    @pytest.mark.asyncio
    async def test_dismiss_only_terminal(self, client: MockClient, gate: SafetyGate) -> None:
        """Test only terminal plans can be dismissed."""
        orchestrator = _orchestrator(client, gate)
        assert not orchestrator.dismiss()
        await orchestrator.run()
        assert orchestrator.dismiss()
        assert orchestrator.is_dismissed


@pytest.mark.unit
class TestConcurrentPlans:
    """Tests for two plans sharing one gate."""

    @staticmethod
    def _plan(
        client: MockClient, gate: SafetyGate, plan_id: str, targets: list[str]
    ) -> RollingOrchestrator:
        return RollingOrchestrator(
            client,
            gate,
            OperationKind.REBOOT,
            targets,
            plan_id=plan_id,
            refresh_gate=False,
            clock=_clock,
        )

    @pytest.mark.asyncio
    async def test_second_plan_is_refused(self, client: MockClient, gate: SafetyGate) -> None:
        """Test a plan started while another runs fails without dispatching."""
        release = asyncio.Event()
        client.blocking["n1"] = release
        first = self._plan(client, gate, "reboot-a", ["n1", "n2", "n3"])
        second = self._plan(client, gate, "reboot-b", ["n4"])
        first_task = asyncio.create_task(first.run())
        second_task = asyncio.create_task(second.run())

        refused = await second_task
        assert refused.state == PlanState.FAILED
        assert refused.failure_reason == (
            "Safety gate unsafe: Conflicting operation running: reboot-a"
        )
        assert "n4" not in client.applied

        release.set()
        plan = await first_task
        assert plan.state == PlanState.COMPLETED
        assert client.applied == ["n1", "n2", "n3"]
        assert gate.ledger.running == {}

    @pytest.mark.asyncio
    async def test_first_plan_wins_with_shared_refresh(self, client: MockClient) -> None:
        """Test plans that refresh the gate together still admit only the first."""
        gate = SafetyGate(clock=_clock)
        first = RollingOrchestrator(
            client, gate, OperationKind.REBOOT, ["n1"], plan_id="reboot-a", clock=_clock
        )
        second = RollingOrchestrator(
            client, gate, OperationKind.REBOOT, ["n2"], plan_id="reboot-b", clock=_clock
        )
        plans = await asyncio.gather(first.run(), second.run())
        assert [plan.state for plan in plans] == [PlanState.COMPLETED, PlanState.FAILED]
        assert client.applied == ["n1"]

    @pytest.mark.asyncio
    async def test_ledger_entry_after_safe_verdict(self, client: MockClient) -> None:
        """Test a plan refused by the gate never enters the ledger."""
        gate = SafetyGate(clock=_clock)
        seen: list[tuple[str, ...]] = []
        orchestrator = self._plan(client, gate, "reboot-a", ["n1"])
        client.after_apply = lambda node: seen.append(tuple(gate.ledger.running))
        plan = await orchestrator.run()
        assert plan.state == PlanState.FAILED
        assert seen == []
        assert gate.ledger.running == {}

        gate.update(_members(3))
        plan = await self._plan(client, gate, "reboot-b", ["n1"]).run()
        assert plan.state == PlanState.COMPLETED
        assert client.applied == ["n1"]
        assert seen == [("reboot-b",)]


@pytest.mark.unit
class TestDispatchCancellation:
    """Tests for steps outliving their run task."""

    @pytest.mark.asyncio
    async def test_repeated_cancel_still_records_step(self, client: MockClient, gate: SafetyGate) -> None:
        """Test a second cancel does not lose the dispatched step's result."""
        release = asyncio.Event()
        client.blocking["n1"] = release
        orchestrator = _orchestrator(client, gate)
        task = asyncio.create_task(orchestrator.run())
        await client.started.wait()

        task.cancel()
        await asyncio.sleep(0)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        assert orchestrator.state == PlanState.ABORTED

        release.set()
        await _wait_until(lambda: "n1" in orchestrator.snapshot().results)
        assert orchestrator.snapshot().results["n1"].outcome == StepOutcome.SUCCESS
        assert client.applied == ["n1"]
