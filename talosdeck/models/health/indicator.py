"""Shared health scale and aggregation rule.

Every status type in TalosDeck converts into ``HealthIndicator`` through one
conversion function, and every rollup goes through ``aggregate_health``.

Aggregation rule: the worst determinate value wins. ``UNKNOWN`` is returned
only when the input is empty or contains nothing but ``UNKNOWN``. The same
rule is used by every component.
"""

from __future__ import annotations

from collections.abc import Iterable
from enum import Enum

from talosdeck.constants.enums import (
    CheckStatus,
    LoadPhase,
    PlanState,
    SafetyStatus,
    StepOutcome,
)


class HealthIndicator(Enum):
    """Ordered health scale: HEALTHY < WARNING < ERROR, UNKNOWN out of band."""

    HEALTHY = "healthy"
    WARNING = "warning"
    ERROR = "error"
    UNKNOWN = "unknown"

    @property
    def is_determinate(self) -> bool:
        return self is not HealthIndicator.UNKNOWN

    @property
    def severity(self) -> int | None:
        """Rank for ordering; None for UNKNOWN, which is not comparable."""
        return _SEVERITY.get(self)

    def worse_than(self, other: HealthIndicator) -> bool:
        """Strict ordering over determinate values only."""
        if not (self.is_determinate and other.is_determinate):
            return False
        return _SEVERITY[self] > _SEVERITY[other]


_SEVERITY = {
    HealthIndicator.HEALTHY: 0,
    HealthIndicator.WARNING: 1,
    HealthIndicator.ERROR: 2,
}


def aggregate_health(indicators: Iterable[HealthIndicator]) -> HealthIndicator:
    """Reduce many indicators into one (worst determinate wins)."""
    worst: HealthIndicator | None = None
    for indicator in indicators:
        if not indicator.is_determinate:
            continue
        if worst is None or indicator.worse_than(worst):
            worst = indicator
    return worst if worst is not None else HealthIndicator.UNKNOWN


# =============================================================================
# Conversions (one per status type)
# =============================================================================

_CHECK_STATUS_HEALTH = {
    CheckStatus.PASS: HealthIndicator.HEALTHY,
    CheckStatus.WARN: HealthIndicator.WARNING,
    CheckStatus.FAIL: HealthIndicator.ERROR,
    CheckStatus.UNKNOWN: HealthIndicator.UNKNOWN,
}

_HEALTH_CHECK_STATUS = {value: key for key, value in _CHECK_STATUS_HEALTH.items()}

_SAFETY_HEALTH = {
    SafetyStatus.SAFE: HealthIndicator.HEALTHY,
    SafetyStatus.UNSAFE: HealthIndicator.ERROR,
    SafetyStatus.UNKNOWN: HealthIndicator.UNKNOWN,
}

_PLAN_STATE_HEALTH = {
    PlanState.PENDING: HealthIndicator.HEALTHY,
    PlanState.RUNNING: HealthIndicator.HEALTHY,
    PlanState.COMPLETED: HealthIndicator.HEALTHY,
    PlanState.PAUSED: HealthIndicator.WARNING,
    PlanState.ABORTED: HealthIndicator.WARNING,
    PlanState.FAILED: HealthIndicator.ERROR,
}

_STEP_OUTCOME_HEALTH = {
    StepOutcome.SUCCESS: HealthIndicator.HEALTHY,
    StepOutcome.FAILURE: HealthIndicator.ERROR,
    StepOutcome.TIMEOUT: HealthIndicator.ERROR,
}

_LOAD_PHASE_HEALTH = {
    LoadPhase.IDLE: HealthIndicator.UNKNOWN,
    LoadPhase.LOADING: HealthIndicator.UNKNOWN,
    LoadPhase.LOADED: HealthIndicator.HEALTHY,
    LoadPhase.STALE: HealthIndicator.WARNING,
    LoadPhase.FAILED: HealthIndicator.ERROR,
}


def health_of_check(status: CheckStatus) -> HealthIndicator:
    return _CHECK_STATUS_HEALTH[status]


def check_status_of(health: HealthIndicator) -> CheckStatus:
    """Inverse of ``health_of_check``, used to turn rollups into checks."""
    return _HEALTH_CHECK_STATUS[health]


def health_of_safety(status: SafetyStatus) -> HealthIndicator:
    return _SAFETY_HEALTH[status]


def health_of_plan(state: PlanState) -> HealthIndicator:
    return _PLAN_STATE_HEALTH[state]


def health_of_step(outcome: StepOutcome) -> HealthIndicator:
    return _STEP_OUTCOME_HEALTH[outcome]


def health_of_phase(phase: LoadPhase) -> HealthIndicator:
    return _LOAD_PHASE_HEALTH[phase]


def health_of_pod(phase: str, ready: bool, restart_count: int = 0, restart_warn: int = 5) -> HealthIndicator:
    """Per-pod rollup input from Kubernetes pod status fields."""
    if phase in ("Failed", "Unknown"):
        return HealthIndicator.ERROR
    if phase == "Succeeded":
        return HealthIndicator.HEALTHY
    if phase != "Running" or not ready:
        return HealthIndicator.WARNING if phase == "Pending" else HealthIndicator.ERROR
    if restart_count >= restart_warn:
        return HealthIndicator.WARNING
    return HealthIndicator.HEALTHY


__all__ = [
    "HealthIndicator",
    "aggregate_health",
    "check_status_of",
    "health_of_check",
    "health_of_phase",
    "health_of_plan",
    "health_of_pod",
    "health_of_safety",
    "health_of_step",
]
