"""Quorum-derived safety gate for destructive operations.

The gate keeps only the latest membership-derived ``QuorumState`` (inside an
``AsyncState``) and recomputes its verdict on every ``assess`` call:

- SAFE when quorum holds, a leader is present and no other plan is running;
- UNKNOWN when there is no membership data, the data is older than the
  freshness window, or the last fetch failed;
- UNSAFE otherwise.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Iterable
from datetime import datetime

from talosdeck.clients.base import ControlPlaneClient
from talosdeck.clients.errors import classify_error
from talosdeck.constants.enums import LoadPhase, OperationKind, SafetyStatus
from talosdeck.models.core.boundary import MemberInfo
from talosdeck.models.diagnostics.context import SOURCE_MEMBERS
from talosdeck.models.quorum.quorum_state import QuorumState, SafetyAssessment, compute_quorum
from talosdeck.models.state.app_settings import TalosDeckSettings
from talosdeck.models.state.async_state import AsyncSnapshot, AsyncState, utc_now
from talosdeck.models.state.error_info import ErrorInfo

logger = logging.getLogger(__name__)


class OperationLedger:
    """Registry of rolling-operation plans that are currently Running.

    Shared by every orchestrator so that a second destructive plan sees the
    first as a conflict.
    """

    def __init__(self) -> None:
        self._running: dict[str, OperationKind] = {}

    def mark_running(self, plan_id: str, kind: OperationKind) -> None:
        self._running[plan_id] = kind

    def release(self, plan_id: str) -> None:
        self._running.pop(plan_id, None)

    def is_running(self, plan_id: str) -> bool:
        return plan_id in self._running

    @property
    def running(self) -> dict[str, OperationKind]:
        return dict(self._running)

    def conflicts_with(self, plan_id: str | None = None) -> tuple[str, ...]:
        """Running plans other than ``plan_id``."""
        return tuple(pid for pid in self._running if pid != plan_id)


class SafetyGate:
    """Computes ``SafetyStatus`` from the latest quorum snapshot."""

    def __init__(
        self,
        ledger: OperationLedger | None = None,
        settings: TalosDeckSettings | None = None,
        *,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._ledger = ledger if ledger is not None else OperationLedger()
        self._settings = settings or TalosDeckSettings()
        self._clock = clock
        self._state: AsyncState[QuorumState] = AsyncState(clock=clock)
        self._inflight: asyncio.Task[AsyncSnapshot[QuorumState]] | None = None

    @property
    def ledger(self) -> OperationLedger:
        return self._ledger

    def snapshot(self) -> AsyncSnapshot[QuorumState]:
        return self._state.snapshot()

    # =========================================================================
    # Updates (refresh-task edge)
    # =========================================================================

    def update(self, members: Iterable[MemberInfo], now: datetime | None = None) -> QuorumState:
        """Recompute quorum from a fresh membership list."""
        quorum = compute_quorum(
            members, now or self._clock(), self._settings.member_freshness_window
        )
        self._state.set_data(quorum)
        logger.debug("Quorum updated: %s", quorum.describe())
        return quorum

    def record_failure(self, error: ErrorInfo) -> None:
        self._state.set_error(error)
        logger.warning("Membership fetch failed: %s", error.describe())

    async def refresh(
        self, client: ControlPlaneClient, timeout: float | None = None
    ) -> AsyncSnapshot[QuorumState]:
        """Fetch membership with a bounded call and update the snapshot.

        A call made while a fetch is in flight joins that fetch. Cancelling a
        caller does not cancel the shared fetch.
        """
        if self._inflight is None or self._inflight.done():
            self._inflight = asyncio.create_task(
                self._fetch_members(client, timeout), name="quorum-refresh"
            )
        return await asyncio.shield(self._inflight)

    async def _fetch_members(
        self, client: ControlPlaneClient, timeout: float | None
    ) -> AsyncSnapshot[QuorumState]:
        self._state.start_loading()
        try:
            members = await asyncio.wait_for(
                client.list_members(),
                timeout=timeout if timeout is not None else self._settings.membership_fetch_timeout,
            )
        except Exception as exc:
            self.record_failure(classify_error(exc, SOURCE_MEMBERS))
        else:
            self.update(members)
        return self._state.snapshot()

    # =========================================================================
    # Verdict
    # =========================================================================

    def assess(self, plan_id: str | None = None, now: datetime | None = None) -> SafetyAssessment:
        """Current verdict for ``plan_id``; other running plans are conflicts."""
        snapshot = self._state.snapshot()
        quorum = snapshot.data

        if snapshot.phase == LoadPhase.FAILED:
            reason = snapshot.error.describe() if snapshot.error else "unknown error"
            return SafetyAssessment(
                status=SafetyStatus.UNKNOWN,
                reason=f"Membership fetch failed: {reason}",
                quorum=quorum,
            )
        if quorum is None:
            return SafetyAssessment(status=SafetyStatus.UNKNOWN, reason="No membership data")
        window = self._settings.member_freshness_window
        if self._state.is_older_than(window, now):
            self._state.mark_stale()
            return SafetyAssessment(
                status=SafetyStatus.UNKNOWN,
                reason=f"Membership data older than {window:.0f}s",
                quorum=quorum,
            )

        if not quorum.has_quorum:
            return SafetyAssessment(
                status=SafetyStatus.UNSAFE, reason=f"No quorum: {quorum.describe()}", quorum=quorum
            )
        if not quorum.leader_present:
            return SafetyAssessment(
                status=SafetyStatus.UNSAFE, reason=f"No leader: {quorum.describe()}", quorum=quorum
            )
        conflicts = self._ledger.conflicts_with(plan_id)
        if conflicts:
            return SafetyAssessment(
                status=SafetyStatus.UNSAFE,
                reason=f"Conflicting operation running: {', '.join(conflicts)}",
                quorum=quorum,
            )
        return SafetyAssessment(status=SafetyStatus.SAFE, reason=quorum.describe(), quorum=quorum)


__all__ = ["OperationLedger", "SafetyGate"]
