"""Per-entity refresh tasks.

Each monitored entity gets one ``EntityRefresher``: it owns the entity's
``AsyncState``, runs refreshes one at a time with a timeout, and publishes an
immutable ``AsyncSnapshot`` into a ``SnapshotCell`` after every transition.
The render loop only ever reads the cell.

A refresh requested while another is in flight joins the in-flight task.
Failed refreshes are retried automatically with a bounded exponential
backoff; after ``max_auto_retries`` the refresher waits for ``retry()``.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Coroutine
from contextlib import suppress
from datetime import datetime
from typing import Any, Generic, TypeVar

from talosdeck.clients.errors import classify_error
from talosdeck.models.state.app_settings import TalosDeckSettings
from talosdeck.models.state.async_state import AsyncSnapshot, AsyncState, utc_now

logger = logging.getLogger(__name__)

T = TypeVar("T")


def backoff_delay(attempt: int, base: float, maximum: float) -> float:
    """Exponential delay for the ``attempt``-th consecutive failure."""
    return min(maximum, base * (2 ** max(0, attempt - 1)))


class SnapshotCell(Generic[T]):
    """Holds the latest published snapshot; writers replace it whole."""

    def __init__(self, initial: AsyncSnapshot[T]) -> None:
        self._value = initial
        self._version = 0

    def get(self) -> AsyncSnapshot[T]:
        return self._value

    @property
    def version(self) -> int:
        return self._version

    def publish(self, value: AsyncSnapshot[T]) -> None:
        self._value = value
        self._version += 1


class EntityRefresher(Generic[T]):
    """Single-flight, time-bounded refresh loop for one entity."""

    def __init__(
        self,
        name: str,
        fetch: Callable[[], Awaitable[T]],
        *,
        interval: float,
        timeout: float,
        settings: TalosDeckSettings | None = None,
        stale_after: float | None = None,
        on_publish: Callable[[AsyncSnapshot[T]], None] | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        settings = settings or TalosDeckSettings()
        self.name = name
        self._fetch = fetch
        self._interval = interval
        self._timeout = timeout
        self._max_auto_retries = settings.max_auto_retries
        self._backoff_base = settings.retry_backoff_base
        self._backoff_max = settings.retry_backoff_max
        self._stale_after = stale_after
        self._on_publish = on_publish

        self._state: AsyncState[T] = AsyncState(clock=clock)
        self._cell: SnapshotCell[T] = SnapshotCell(self._state.snapshot())
        self._inflight: asyncio.Task[AsyncSnapshot[T]] | None = None
        self._loop_task: asyncio.Task[None] | None = None
        self._retry_event = asyncio.Event()
        self._consecutive_failures = 0

    # =========================================================================
    # Reads
    # =========================================================================

    @property
    def cell(self) -> SnapshotCell[T]:
        return self._cell

    def snapshot(self) -> AsyncSnapshot[T]:
        return self._cell.get()

    @property
    def is_refreshing(self) -> bool:
        return self._inflight is not None and not self._inflight.done()

    @property
    def retries_exhausted(self) -> bool:
        return self._consecutive_failures > self._max_auto_retries

    # =========================================================================
    # Refresh
    # =========================================================================

    def _publish(self) -> None:
        snapshot = self._state.snapshot()
        self._cell.publish(snapshot)
        if self._on_publish is not None:
            self._on_publish(snapshot)

    async def _refresh_once(self) -> AsyncSnapshot[T]:
        self._state.start_loading()
        self._publish()
        try:
            data = await asyncio.wait_for(self._fetch(), timeout=self._timeout)
        except Exception as exc:
            error = classify_error(exc, self.name)
            self._state.set_error(error)
            logger.warning("Refresh of %s failed: %s", self.name, error.describe())
        else:
            self._state.set_data(data)
            logger.debug("Refreshed %s", self.name)
        self._publish()
        return self._state.snapshot()

    def request_refresh(self) -> asyncio.Task[AsyncSnapshot[T]]:
        """Start a refresh, or return the one already in flight."""
        if self._inflight is None or self._inflight.done():
            self._inflight = asyncio.create_task(
                self._refresh_once(), name=f"refresh-{self.name}"
            )
        return self._inflight

    async def refresh(self) -> AsyncSnapshot[T]:
        """Refresh now; concurrent callers share one in-flight call."""
        return await asyncio.shield(self.request_refresh())

    def check_staleness(self, now: datetime | None = None) -> bool:
        """Mark loaded data stale once it is older than ``stale_after``."""
        if self._stale_after is None or not self._state.is_older_than(self._stale_after, now):
            return False
        before = self._state.phase
        self._state.mark_stale()
        if self._state.phase != before:
            self._publish()
        return True

    # =========================================================================
    # Loop
    # =========================================================================

    async def run(self) -> None:
        """Refresh on ``interval``; back off on failure, then wait for retry."""
        while True:
            snapshot = await self.refresh()
            if not snapshot.is_failed:
                self._consecutive_failures = 0
                await asyncio.sleep(self._interval)
                continue

            self._consecutive_failures += 1
            if self.retries_exhausted:
                logger.warning(
                    "%s failed %d times; waiting for manual retry",
                    self.name,
                    self._consecutive_failures,
                )
                self._retry_event.clear()
                await self._retry_event.wait()
                self._consecutive_failures = 0
                continue
            await asyncio.sleep(
                backoff_delay(self._consecutive_failures, self._backoff_base, self._backoff_max)
            )

    def start(self) -> asyncio.Task[None]:
        if self._loop_task is None or self._loop_task.done():
            self._loop_task = asyncio.create_task(self.run(), name=f"refresher-{self.name}")
        return self._loop_task

    @property
    def is_running(self) -> bool:
        return self._loop_task is not None and not self._loop_task.done()

    def retry(self) -> None:
        """Operator-initiated retry; resets the automatic retry budget."""
        logger.info("Manual retry requested for %s", self.name)
        self._consecutive_failures = 0
        if self._loop_task is not None and not self._loop_task.done():
            self._retry_event.set()
        else:
            self.request_refresh()

    async def cancel(self) -> None:
        tasks = [task for task in (self._loop_task, self._inflight) if task and not task.done()]
        for task in tasks:
            task.cancel()
        for task in tasks:
            with suppress(asyncio.CancelledError):
                await task


class RefreshScope:
    """The refreshers and helper tasks that belong to one view."""

    def __init__(self, name: str) -> None:
        self.name = name
        self._refreshers: list[EntityRefresher[Any]] = []
        self._tasks: set[asyncio.Task[Any]] = set()

    def add(self, refresher: EntityRefresher[T]) -> EntityRefresher[T]:
        self._refreshers.append(refresher)
        return refresher

    def spawn(self, coro: Coroutine[Any, Any, Any], name: str | None = None) -> asyncio.Task[Any]:
        task = asyncio.create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def start_all(self) -> None:
        for refresher in self._refreshers:
            refresher.start()

    @property
    def refreshers(self) -> tuple[EntityRefresher[Any], ...]:
        return tuple(self._refreshers)

    @property
    def is_active(self) -> bool:
        """True while any refresher loop or spawned task is still running."""
        return any(r.is_running for r in self._refreshers) or any(
            not task.done() for task in self._tasks
        )

    async def cancel_all(self) -> None:
        """Cancel every refresher and spawned task of this view."""
        for refresher in self._refreshers:
            await refresher.cancel()
        tasks = [task for task in self._tasks if not task.done()]
        for task in tasks:
            task.cancel()
        for task in tasks:
            with suppress(asyncio.CancelledError):
                await task
        logger.debug("Cancelled refresh scope %s", self.name)


__all__ = [
    "EntityRefresher",
    "RefreshScope",
    "SnapshotCell",
    "backoff_delay",
]
