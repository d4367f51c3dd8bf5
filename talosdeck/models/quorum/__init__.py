"""Quorum and safety models."""

from talosdeck.models.quorum.quorum_state import (
    QuorumState,
    SafetyAssessment,
    compute_quorum,
    is_member_alive,
)

__all__ = ["QuorumState", "SafetyAssessment", "compute_quorum", "is_member_alive"]
