"""Unit tests for HealthIndicator conversions and aggregation."""

from __future__ import annotations

import pytest

from talosdeck.constants.enums import (
    CheckStatus,
    LoadPhase,
    PlanState,
    SafetyStatus,
    StepOutcome,
)
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

H = HealthIndicator


@pytest.mark.unit
@pytest.mark.fast
class TestAggregateHealth:
    """Tests for the worst-determinate-wins rule."""

    def test_empty_is_unknown(self) -> None:
        """Test an empty input aggregates to UNKNOWN."""
        assert aggregate_health([]) == H.UNKNOWN

    def test_all_unknown_is_unknown(self) -> None:
        """Test only-unknown input stays UNKNOWN."""
        assert aggregate_health([H.UNKNOWN, H.UNKNOWN]) == H.UNKNOWN

    def test_unknown_does_not_mask_determinate(self) -> None:
        """Test UNKNOWN members are ignored when any value is determinate."""
        assert aggregate_health([H.UNKNOWN, H.HEALTHY]) == H.HEALTHY
        assert aggregate_health([H.WARNING, H.UNKNOWN]) == H.WARNING

    def test_worst_wins(self) -> None:
        """Test the worst determinate value is returned."""
        assert aggregate_health([H.HEALTHY, H.ERROR, H.WARNING]) == H.ERROR
        assert aggregate_health([H.HEALTHY, H.WARNING]) == H.WARNING

    def test_order_independent(self) -> None:
        """Test aggregation does not depend on input order."""
        values = [H.WARNING, H.UNKNOWN, H.HEALTHY, H.ERROR]
        assert aggregate_health(values) == aggregate_health(reversed(values))

    def test_accepts_generator(self) -> None:
        """Test any iterable can be aggregated."""
        assert aggregate_health(h for h in (H.HEALTHY, H.HEALTHY)) == H.HEALTHY

    def test_unknown_is_not_ordered(self) -> None:
        """Test UNKNOWN is neither better nor worse than other values."""
        assert H.UNKNOWN.severity is None
        assert not H.UNKNOWN.worse_than(H.HEALTHY)
        assert not H.ERROR.worse_than(H.UNKNOWN)
        assert H.ERROR.worse_than(H.WARNING)


@pytest.mark.unit
@pytest.mark.fast
class TestConversions:
    """Tests for the per-status-type conversion functions."""

    def test_check_status_round_trip(self) -> None:
        """Test check_status_of inverts health_of_check."""
        for status in CheckStatus:
            assert check_status_of(health_of_check(status)) == status

    def test_safety(self) -> None:
        """Test safety verdict conversion."""
        assert health_of_safety(SafetyStatus.SAFE) == H.HEALTHY
        assert health_of_safety(SafetyStatus.UNSAFE) == H.ERROR
        assert health_of_safety(SafetyStatus.UNKNOWN) == H.UNKNOWN

    def test_plan_state(self) -> None:
        """Test every plan state has a conversion."""
        for state in PlanState:
            assert isinstance(health_of_plan(state), HealthIndicator)
        assert health_of_plan(PlanState.FAILED) == H.ERROR
        assert health_of_plan(PlanState.PAUSED) == H.WARNING

    def test_step_outcome(self) -> None:
        """Test timeouts count as errors."""
        assert health_of_step(StepOutcome.SUCCESS) == H.HEALTHY
        assert health_of_step(StepOutcome.TIMEOUT) == H.ERROR

    def test_load_phase(self) -> None:
        """Test stale data is a warning and loading is unknown."""
        assert health_of_phase(LoadPhase.STALE) == H.WARNING
        assert health_of_phase(LoadPhase.LOADING) == H.UNKNOWN
        assert health_of_phase(LoadPhase.FAILED) == H.ERROR


@pytest.mark.unit
@pytest.mark.fast
class TestPodHealth:
    """Tests for health_of_pod."""

    def test_running_ready_is_healthy(self) -> None:
        """Test a ready running pod is healthy."""
        assert health_of_pod("Running", True) == H.HEALTHY

    def test_running_not_ready_is_error(self) -> None:
        """Test a running pod that is not ready is an error."""
        assert health_of_pod("Running", False) == H.ERROR

    def test_pending_is_warning(self) -> None:
        """Test pending pods are warnings."""
        assert health_of_pod("Pending", False) == H.WARNING

    def test_failed_is_error(self) -> None:
        """Test failed pods are errors."""
        assert health_of_pod("Failed", False) == H.ERROR

    def test_succeeded_is_healthy(self) -> None:
        """Test completed job pods are healthy."""
        assert health_of_pod("Succeeded", False) == H.HEALTHY

    def test_restarts_warn(self) -> None:
        """Test restart count at the threshold is a warning."""
        assert health_of_pod("Running", True, restart_count=5, restart_warn=5) == H.WARNING
        assert health_of_pod("Running", True, restart_count=4, restart_warn=5) == H.HEALTHY
