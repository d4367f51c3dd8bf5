"""Unit tests for OperationsController."""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from talosdeck.constants.enums import FailurePolicy, OperationKind, PlanState
from talosdeck.controllers.operations import OperationsController
from talosdeck.controllers.safety import SafetyGate
from talosdeck.models.core.boundary import MemberInfo, OperationOutcome


def _healthy_members() -> list[MemberInfo]:
    now = datetime.now(timezone.utc)
    return [
        MemberInfo(member_id=str(index), hostname=f"cp{index}", is_leader=index == 0, last_seen=now)
        for index in range(3)
    ]


def _client() -> MagicMock:
    client = MagicMock()
    client.list_members = AsyncMock(side_effect=lambda: _healthy_members())

    async def apply(node: str, kind: OperationKind) -> OperationOutcome:
        return OperationOutcome(node=node, kind=kind, success=True)

    client.apply_operation = AsyncMock(side_effect=apply)
    return client


@pytest.mark.unit
class TestOperationsController:
    """Tests for plan ownership."""

    @pytest.mark.asyncio
    async def test_start_and_wait(self) -> None:
        """Test a started plan runs to completion."""
        controller = OperationsController(_client(), SafetyGate())
        plan_id = controller.start(OperationKind.REBOOT, ["n1", "n2"])
        plan = await controller.wait(plan_id)
        assert plan is not None
        assert plan.state == PlanState.COMPLETED
        assert [p.plan_id for p in controller.snapshots()] == [plan_id]

    @pytest.mark.asyncio
    async def test_dismiss_removes_terminal_plan(self) -> None:
        """Test dismissed plans are dropped from the snapshots."""
        controller = OperationsController(_client(), SafetyGate())
        plan_id = controller.start(OperationKind.DRAIN, ["n1"], FailurePolicy.HALT)
        await controller.wait(plan_id)
        assert controller.dismiss(plan_id)
        assert controller.snapshots() == []
        assert controller.get(plan_id) is None

    @pytest.mark.asyncio
    async def test_unknown_plan_requests(self) -> None:
        """Test requests for unknown plans are rejected."""
        controller = OperationsController(_client(), SafetyGate())
        assert not controller.pause("missing")
        assert not controller.resume("missing")
        assert not controller.abort("missing")
        assert not controller.dismiss("missing")
        assert await controller.wait("missing") is None

    @pytest.mark.asyncio
    async def test_cancel_all_aborts_running_plans(self) -> None:
        """Test cancel_all lets the in-flight step finish and aborts."""
        client = _client()
        release = asyncio.Event()

        async def slow_apply(node: str, kind: OperationKind) -> OperationOutcome:
            await release.wait()
            return OperationOutcome(node=node, kind=kind, success=True)

        client.apply_operation = AsyncMock(side_effect=slow_apply)
        controller = OperationsController(client, SafetyGate())
        plan_id = controller.start(OperationKind.UPGRADE, ["n1", "n2"])
        for _ in range(200):
            if client.apply_operation.await_count:
                break
            await asyncio.sleep(0)

        asyncio.get_running_loop().call_later(0.01, release.set)
        await controller.cancel_all()

        orchestrator = controller.get(plan_id)
        assert orchestrator is not None
        plan = orchestrator.snapshot()
        assert plan.state == PlanState.ABORTED
        assert plan.cursor == 1

    @pytest.mark.asyncio
    async def test_check_connection(self) -> None:
        """Test the connection check refreshes membership."""
        controller = OperationsController(_client(), SafetyGate())
        assert await controller.check_connection() is True
