"""Rolling operation plan snapshot models."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from talosdeck.constants.enums import FailurePolicy, OperationKind, PlanState, StepOutcome
from talosdeck.models.health.indicator import HealthIndicator, health_of_plan, health_of_step


class StepResult(BaseModel):
    """Outcome of one dispatched step."""

    model_config = ConfigDict(frozen=True)

    node: str
    outcome: StepOutcome
    detail: str = ""
    finished_at: datetime

    @property
    def succeeded(self) -> bool:
        return self.outcome == StepOutcome.SUCCESS

    @property
    def health(self) -> HealthIndicator:
        return health_of_step(self.outcome)


class RollingOperationPlan(BaseModel):
    """Frozen view of an orchestrator's plan at one instant."""

    model_config = ConfigDict(frozen=True)

    plan_id: str
    kind: OperationKind
    targets: tuple[str, ...]
    cursor: int = 0
    results: dict[str, StepResult] = Field(default_factory=dict)
    state: PlanState = PlanState.PENDING
    policy: FailurePolicy = FailurePolicy.CONTINUE
    failure_reason: str | None = None

    @property
    def is_terminal(self) -> bool:
        return self.state.is_terminal

    @property
    def current_target(self) -> str | None:
        if self.cursor < len(self.targets):
            return self.targets[self.cursor]
        return None

    @property
    def failed_nodes(self) -> tuple[str, ...]:
        return tuple(node for node, result in self.results.items() if not result.succeeded)

    @property
    def health(self) -> HealthIndicator:
        return health_of_plan(self.state)

    def progress(self) -> str:
        return f"{self.cursor}/{len(self.targets)}"


__all__ = ["RollingOperationPlan", "StepResult"]
