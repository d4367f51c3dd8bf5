from talosdeck.models.health.indicator import (
    HealthIndicator,
    aggregate_health,
    check_status_of,
    health_of_check,
    health_of_phase,
    health_of_plan,
    health_of_pod,
    health_of_safety,
    health_of_step,
)

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
