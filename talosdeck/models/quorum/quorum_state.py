"""Quorum and safety verdict models."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime, timedelta

from pydantic import BaseModel, ConfigDict

from talosdeck.constants.enums import SafetyStatus
from talosdeck.models.core.boundary import MemberInfo
from talosdeck.models.health.indicator import HealthIndicator, health_of_safety


class QuorumState(BaseModel):
    """Membership summary derived from one ``list_members`` result."""

    model_config = ConfigDict(frozen=True)

    total_members: int
    healthy_members: int
    leader_present: bool
    computed_at: datetime | None = None

    @property
    def has_quorum(self) -> bool:
        return self.total_members > 0 and self.healthy_members * 2 > self.total_members

    def describe(self) -> str:
        leader = "leader present" if self.leader_present else "no leader"
        return f"{self.healthy_members}/{self.total_members} members healthy, {leader}"


def is_member_alive(member: MemberInfo, now: datetime, freshness_seconds: float) -> bool:
    if member.last_seen is None:
        return False
    return now - member.last_seen <= timedelta(seconds=freshness_seconds)


def compute_quorum(
    members: Iterable[MemberInfo],
    now: datetime,
    freshness_seconds: float,
) -> QuorumState:
    """Derive ``QuorumState`` from a membership list.

    Learners are non-voting and are left out of both counts. A member is
    healthy when it was last seen inside the freshness window.
    """
    voters = [member for member in members if not member.is_learner]
    alive = [member for member in voters if is_member_alive(member, now, freshness_seconds)]
    return QuorumState(
        total_members=len(voters),
        healthy_members=len(alive),
        leader_present=any(member.is_leader for member in alive),
        computed_at=now,
    )


class SafetyAssessment(BaseModel):
    """A safety verdict plus the reason an operator sees for it."""

    model_config = ConfigDict(frozen=True)

    status: SafetyStatus
    reason: str
    quorum: QuorumState | None = None

    @property
    def is_safe(self) -> bool:
        return self.status == SafetyStatus.SAFE

    @property
    def health(self) -> HealthIndicator:
        return health_of_safety(self.status)


__all__ = [
    "QuorumState",
    "SafetyAssessment",
    "compute_quorum",
    "is_member_alive",
]
