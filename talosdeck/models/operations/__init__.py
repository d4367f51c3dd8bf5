"""Rolling operation models."""

from talosdeck.models.operations.plan import RollingOperationPlan, StepResult

__all__ = ["RollingOperationPlan", "StepResult"]
