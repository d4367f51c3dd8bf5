"""Rolling operation orchestrator.

Applies one destructive operation to a list of nodes, one node at a time,
asking the ``SafetyGate`` before every step:

    PENDING -> RUNNING -> COMPLETED | ABORTED | FAILED
               RUNNING <-> PAUSED

A verdict other than SAFE fails the plan (UNKNOWN fails closed). A plan enters
the shared ledger only once its first verdict is SAFE, so a plan started
while another is running fails before dispatching anything. Steps that
were already applied are never rolled back. Pause and abort are honoured
between steps only; a dispatched step runs to completion or timeout even if
the run task is cancelled.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from collections.abc import Callable, Iterable
from datetime import datetime

from talosdeck.clients.base import ControlPlaneClient
from talosdeck.clients.errors import classify_error
from talosdeck.constants.enums import (
    ErrorKind,
    FailurePolicy,
    OperationKind,
    PlanState,
    StepOutcome,
)
from talosdeck.controllers.safety.gate import SafetyGate
from talosdeck.models.operations.plan import RollingOperationPlan, StepResult
from talosdeck.models.quorum.quorum_state import SafetyAssessment
from talosdeck.models.state.app_settings import TalosDeckSettings
from talosdeck.models.state.async_state import utc_now

logger = logging.getLogger(__name__)


class RollingOrchestrator:
    """Owns one ``RollingOperationPlan`` and drives it to a terminal state."""

    def __init__(
        self,
        client: ControlPlaneClient,
        gate: SafetyGate,
        kind: OperationKind,
        targets: Iterable[str],
        *,
        policy: FailurePolicy = FailurePolicy.CONTINUE,
        plan_id: str | None = None,
        settings: TalosDeckSettings | None = None,
        refresh_gate: bool = True,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._client = client
        self._gate = gate
        self._kind = kind
        self._targets = tuple(targets)
        self._policy = policy
        self._plan_id = plan_id or f"{kind.value}-{uuid.uuid4().hex[:8]}"
        self._settings = settings or TalosDeckSettings()
        self._refresh_gate = refresh_gate
        self._clock = clock

        self._state = PlanState.PENDING
        self._cursor = 0
        self._results: dict[str, StepResult] = {}
        self._failure_reason: str | None = None
        self._pause_requested = False
        self._abort_requested = False
        self._resume = asyncio.Event()
        self._dismissed = False

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def plan_id(self) -> str:
        return self._plan_id

    @property
    def state(self) -> PlanState:
        return self._state

    @property
    def is_dismissed(self) -> bool:
        return self._dismissed

    def snapshot(self) -> RollingOperationPlan:
        return RollingOperationPlan(
            plan_id=self._plan_id,
            kind=self._kind,
            targets=self._targets,
            cursor=self._cursor,
            results=dict(self._results),
            state=self._state,
            policy=self._policy,
            failure_reason=self._failure_reason,
        )

    # =========================================================================
    # Operator requests
    # =========================================================================

    def pause(self) -> bool:
        """Request a pause at the next step boundary."""
        if self._state != PlanState.RUNNING:
            return False
        self._pause_requested = True
        self._resume.clear()
        logger.info("Plan %s: pause requested", self._plan_id)
        return True

    def resume(self) -> bool:
        if self._state != PlanState.PAUSED and not self._pause_requested:
            return False
        self._pause_requested = False
        self._resume.set()
        logger.info("Plan %s: resume requested", self._plan_id)
        return True

    def abort(self) -> bool:
        """Request an abort; a PENDING plan is aborted immediately."""
        if self._state.is_terminal:
            return False
        if self._state == PlanState.PENDING:
            self._transition(PlanState.ABORTED, "Aborted before start")
            return True
        self._abort_requested = True
        self._resume.set()
        logger.info("Plan %s: abort requested", self._plan_id)
        return True

    def dismiss(self) -> bool:
        """Release a terminal plan so its owner can drop it."""
        if not self._state.is_terminal:
            return False
        self._dismissed = True
        logger.info("Plan %s dismissed in state %s", self._plan_id, self._state.value)
        return True

    # =========================================================================
    # Run loop
    # =========================================================================

    def _transition(self, state: PlanState, reason: str | None = None) -> None:
        previous = self._state
        self._state = state
        if reason is not None and state in (PlanState.FAILED, PlanState.ABORTED):
            self._failure_reason = reason
        if state != PlanState.RUNNING:
            self._gate.ledger.release(self._plan_id)
        logger.info(
            "Plan %s: %s -> %s%s",
            self._plan_id,
            previous.value,
            state.value,
            f" ({reason})" if reason else "",
        )

    async def _assess(self) -> SafetyAssessment:
        if self._refresh_gate:
            await self._gate.refresh(self._client, self._settings.membership_fetch_timeout)
        return self._gate.assess(self._plan_id, self._clock())

    async def _apply(self, node: str) -> StepResult:
        try:
            outcome = await asyncio.wait_for(
                self._client.apply_operation(node, self._kind),
                timeout=self._settings.operation_step_timeout,
            )
        except Exception as exc:
            info = classify_error(exc, node)
            result_outcome = (
                StepOutcome.TIMEOUT if info.kind == ErrorKind.TIMEOUT else StepOutcome.FAILURE
            )
            return StepResult(
                node=node,
                outcome=result_outcome,
                detail=info.describe(),
                finished_at=self._clock(),
            )
        return StepResult(
            node=node,
            outcome=StepOutcome.SUCCESS if outcome.success else StepOutcome.FAILURE,
            detail=outcome.message,
            finished_at=self._clock(),
        )

    def _record(self, result: StepResult) -> None:
        self._results[result.node] = result
        self._cursor += 1
        log = logger.info if result.succeeded else logger.warning
        log(
            "Plan %s: %s %s on %s (%s)",
            self._plan_id,
            self._kind.value,
            result.outcome.value,
            result.node,
            result.detail or "no detail",
        )

    def _record_step(self, step: asyncio.Future[StepResult]) -> None:
        if not step.cancelled() and step.exception() is None:
            self._record(step.result())

    async def _dispatch(self, node: str) -> StepResult:
        """Run one step; cancellation waits for the step before propagating.

        The result is recorded by a done callback, so a step finishing after
        the run task is gone still lands in ``results``.
        """
        step = asyncio.ensure_future(self._apply(node))
        step.add_done_callback(self._record_step)
        try:
            return await asyncio.shield(step)
        except asyncio.CancelledError:
            await asyncio.shield(step)
            raise

    async def run(self) -> RollingOperationPlan:
        """Drive the plan until it reaches a terminal state."""
        if self._state != PlanState.PENDING:
            logger.warning("Plan %s already started (%s)", self._plan_id, self._state.value)
            return self.snapshot()

        self._transition(PlanState.RUNNING)
        try:
            while not self._state.is_terminal:
                if self._abort_requested:
                    self._transition(PlanState.ABORTED, "Aborted by operator")
                    break
                if self._pause_requested:
                    self._transition(PlanState.PAUSED)
                    await self._resume.wait()
                    if not self._abort_requested:
                        self._transition(PlanState.RUNNING)
                    continue
                if self._cursor >= len(self._targets):
                    self._transition(PlanState.COMPLETED)
                    break

                verdict = await self._assess()
                if not verdict.is_safe:
                    self._transition(
                        PlanState.FAILED,
                        f"Safety gate {verdict.status.value}: {verdict.reason}",
                    )
                    break

                # No await between the verdict and registration.
                self._gate.ledger.mark_running(self._plan_id, self._kind)
                node = self._targets[self._cursor]
                result = await self._dispatch(node)
                if not result.succeeded and self._policy == FailurePolicy.HALT:
                    self._transition(
                        PlanState.FAILED, f"Step failed on {node}: {result.detail}"
                    )
        except asyncio.CancelledError:
            if not self._state.is_terminal:
                self._transition(PlanState.ABORTED, "Run task cancelled")
            raise
        return self.snapshot()


__all__ = ["RollingOrchestrator"]
