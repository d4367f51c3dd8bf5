"""Operations controller: owns every rolling-operation plan and its task."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from contextlib import suppress
from typing import Any

from talosdeck.clients.base import ControlPlaneClient
from talosdeck.constants.enums import FailurePolicy, OperationKind
from talosdeck.controllers.base import BaseController
from talosdeck.controllers.operations.orchestrator import RollingOrchestrator
from talosdeck.controllers.safety.gate import SafetyGate
from talosdeck.models.operations.plan import RollingOperationPlan
from talosdeck.models.state.app_settings import TalosDeckSettings

logger = logging.getLogger(__name__)


class OperationsController(BaseController):
    """Starts plans, forwards operator requests and drops dismissed plans."""

    def __init__(
        self,
        client: ControlPlaneClient,
        gate: SafetyGate,
        settings: TalosDeckSettings | None = None,
    ) -> None:
        super().__init__()
        self._client = client
        self._gate = gate
        self._settings = settings or TalosDeckSettings()
        self._plans: dict[str, RollingOrchestrator] = {}
        self._tasks: dict[str, asyncio.Task[RollingOperationPlan]] = {}

    async def check_connection(self) -> bool:
        snapshot = await self._gate.refresh(self._client)
        return not snapshot.is_failed

    async def fetch_all(self) -> dict[str, Any]:
        return {"plans": self.snapshots(), "safety": self._gate.assess()}

    def start(
        self,
        kind: OperationKind,
        targets: Iterable[str],
        policy: FailurePolicy = FailurePolicy.CONTINUE,
    ) -> str:
        """Create a plan and schedule its run task; returns the plan id."""
        orchestrator = RollingOrchestrator(
            self._client, self._gate, kind, targets, policy=policy, settings=self._settings
        )
        plan_id = orchestrator.plan_id
        self._plans[plan_id] = orchestrator
        self._tasks[plan_id] = asyncio.create_task(
            orchestrator.run(), name=f"rolling-{plan_id}"
        )
        logger.info(
            "Started plan %s: %s on %d nodes (%s)",
            plan_id,
            kind.value,
            len(orchestrator.snapshot().targets),
            policy.value,
        )
        return plan_id

    def get(self, plan_id: str) -> RollingOrchestrator | None:
        return self._plans.get(plan_id)

    def snapshots(self) -> list[RollingOperationPlan]:
        return [orchestrator.snapshot() for orchestrator in self._plans.values()]

    def pause(self, plan_id: str) -> bool:
        orchestrator = self._plans.get(plan_id)
        return orchestrator.pause() if orchestrator else False

    def resume(self, plan_id: str) -> bool:
        orchestrator = self._plans.get(plan_id)
        return orchestrator.resume() if orchestrator else False

    def abort(self, plan_id: str) -> bool:
        orchestrator = self._plans.get(plan_id)
        return orchestrator.abort() if orchestrator else False

    def dismiss(self, plan_id: str) -> bool:
        """Drop a terminal plan; running plans cannot be dismissed."""
        orchestrator = self._plans.get(plan_id)
        if orchestrator is None or not orchestrator.dismiss():
            return False
        del self._plans[plan_id]
        self._tasks.pop(plan_id, None)
        return True

    async def wait(self, plan_id: str) -> RollingOperationPlan | None:
        task = self._tasks.get(plan_id)
        if task is None:
            orchestrator = self._plans.get(plan_id)
            return orchestrator.snapshot() if orchestrator else None
        return await task

    async def cancel_all(self) -> None:
        """Cancel run tasks; in-flight steps still finish first."""
        tasks = [task for task in self._tasks.values() if not task.done()]
        for task in tasks:
            task.cancel()
        for task in tasks:
            with suppress(asyncio.CancelledError):
                await task


__all__ = ["OperationsController"]
