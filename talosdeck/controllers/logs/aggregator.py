"""Multi-stream log aggregator.

Producers push lines into a bounded per-source buffer and never block; when a
buffer is full its oldest line is dropped and counted. ``merge()`` moves the
buffered lines into one store ordered by ``(timestamp, arrival)`` and inserts
an ``"N lines dropped"`` marker wherever a source lost lines. The store
itself keeps at most ``max_log_entries`` lines.

``lines(log_filter)`` is a generator over a copy of the store, so it is lazy,
restartable and never sees a half-merged state.
"""

from __future__ import annotations

import asyncio
import bisect
import itertools
import logging
import re
from collections import deque
from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from talosdeck.clients.base import ControlPlaneClient
from talosdeck.clients.errors import classify_error
from talosdeck.controllers.logs.parser import normalize_log_line
from talosdeck.controllers.refresh.refresher import RefreshScope, backoff_delay
from talosdeck.models.diagnostics.context import log_source
from talosdeck.models.logs.log_line import LogLine, TaggedLogLine
from talosdeck.models.state.app_settings import TalosDeckSettings
from talosdeck.models.state.async_state import AsyncSnapshot, AsyncState, utc_now
from talosdeck.utils.timestamps import ensure_aware

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LogFilter:
    """Read-time filter over the merged view.

    ``text`` is a substring, or a regular expression when ``regex`` is set.
    ``sources`` limits the view to those sources. Drop markers ignore the
    text filter so lost lines stay visible.
    """

    text: str = ""
    regex: bool = False
    case_sensitive: bool = False
    sources: frozenset[str] | None = None
    _pattern: re.Pattern[str] | None = field(default=None, init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if self.text and self.regex:
            flags = 0 if self.case_sensitive else re.IGNORECASE
            try:
                pattern = re.compile(self.text, flags)
            except re.error as exc:
                raise ValueError(f"Invalid log filter pattern {self.text!r}: {exc}") from exc
            object.__setattr__(self, "_pattern", pattern)

    def matches(self, line: TaggedLogLine) -> bool:
        if self.sources is not None and line.source not in self.sources:
            return False
        if not self.text or line.is_drop_marker:
            return True
        if self._pattern is not None:
            return self._pattern.search(line.message) is not None
        if self.case_sensitive:
            return self.text in line.message
        return self.text.lower() in line.message.lower()


class SourceBuffer:
    """Bounded FIFO for one source; overflow drops the oldest line."""

    def __init__(self, source: str, cap: int) -> None:
        self.source = source
        self._cap = max(1, cap)
        self._lines: deque[tuple[int, TaggedLogLine]] = deque()
        self._pending_drops = 0
        self.total_dropped = 0

    def __len__(self) -> int:
        return len(self._lines)

    def push(self, seq: int, line: TaggedLogLine) -> None:
        if len(self._lines) >= self._cap:
            self._lines.popleft()
            self._pending_drops += 1
            self.total_dropped += 1
        self._lines.append((seq, line))

    def drain(self) -> tuple[list[tuple[int, TaggedLogLine]], int]:
        """Take every buffered line plus the number dropped since last drain."""
        lines = list(self._lines)
        dropped = self._pending_drops
        self._lines.clear()
        self._pending_drops = 0
        return lines, dropped


class LogAggregator:
    """Merges per-source log streams into one time-ordered view."""

    def __init__(
        self,
        settings: TalosDeckSettings | None = None,
        *,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._settings = settings or TalosDeckSettings()
        self._clock = clock
        self._seq = itertools.count()
        self._buffers: dict[str, SourceBuffer] = {}
        self._states: dict[str, AsyncState[int]] = {}
        self._received: dict[str, int] = {}
        self._store: list[tuple[datetime, float, TaggedLogLine]] = []
        self._scope = RefreshScope("logs")
        self._tasks: dict[str, asyncio.Task[None]] = {}
        self._retry_events: dict[str, asyncio.Event] = {}
        self._since: dict[str, datetime] = {}
        self._latest: dict[str, datetime] = {}
        self._seen_at_latest: dict[str, set[str]] = {}

    # =========================================================================
    # Sources
    # =========================================================================

    def add_source(self, source: str) -> None:
        if source in self._buffers:
            return
        self._buffers[source] = SourceBuffer(source, self._settings.source_buffer_cap)
        self._states[source] = AsyncState(clock=self._clock)
        self._received[source] = 0

    @property
    def sources(self) -> tuple[str, ...]:
        return tuple(self._buffers)

    @property
    def streaming(self) -> tuple[str, ...]:
        """Sources whose streaming task is still running."""
        return tuple(source for source, task in self._tasks.items() if not task.done())

    def source_snapshot(self, source: str) -> AsyncSnapshot[int]:
        return self._states[source].snapshot()

    def dropped(self, source: str) -> int:
        return self._buffers[source].total_dropped

    # =========================================================================
    # Producer side
    # =========================================================================

    def push(self, source: str, line: LogLine) -> None:
        """Buffer one line; O(1) and never blocks."""
        self.add_source(source)
        timestamp = ensure_aware(line.timestamp) if line.timestamp else self._clock()
        tagged = TaggedLogLine(
            source=source, timestamp=timestamp, level=line.level, message=line.message
        )
        self._buffers[source].push(next(self._seq), tagged)
        self._received[source] += 1

    def push_many(self, source: str, lines: Iterable[LogLine]) -> None:
        for line in lines:
            self.push(source, line)

    # =========================================================================
    # Consumer side
    # =========================================================================

    def merge(self) -> int:
        """Move buffered lines into the ordered store; returns lines merged."""
        merged = 0
        for source, buffer in self._buffers.items():
            lines, dropped = buffer.drain()
            if dropped:
                logger.warning("Log source %s dropped %d lines", source, dropped)
                anchor = lines[0][1].timestamp if lines else self._clock()
                marker = TaggedLogLine.drop_marker(source, anchor, dropped)
                # Sorts just before the oldest retained line of the batch
                marker_seq = lines[0][0] - 0.5 if lines else next(self._seq)
                bisect.insort(self._store, (anchor, marker_seq, marker))
            for seq, line in lines:
                bisect.insort(self._store, (line.timestamp, seq, line))
                merged += 1

        overflow = len(self._store) - self._settings.max_log_entries
        if overflow > 0:
            del self._store[:overflow]
        return merged

    def lines(self, log_filter: LogFilter | None = None) -> Iterator[TaggedLogLine]:
        """Lazily yield merged lines matching ``log_filter``."""
        self.merge()
        store = tuple(self._store)
        for _timestamp, _seq, line in store:
            if log_filter is None or log_filter.matches(line):
                yield line

    def __len__(self) -> int:
        return len(self._store)

    def clear(self) -> None:
        self._store.clear()
        for buffer in self._buffers.values():
            buffer.drain()

    # =========================================================================
    # Streaming tasks
    # =========================================================================

    def _advance(self, source: str, line: LogLine) -> bool:
        """Move the source's resume point; False for a line already consumed.

        A restarted call may replay lines at or after the resume point, so
        lines older than it, or seen before at exactly that instant, are
        skipped.
        """
        if line.timestamp is None:
            return True
        stamp = ensure_aware(line.timestamp)
        latest = self._latest.get(source)
        if latest is not None:
            if stamp < latest:
                return False
            if stamp == latest:
                seen = self._seen_at_latest.setdefault(source, set())
                if line.message in seen:
                    return False
                seen.add(line.message)
                return True
        self._latest[source] = stamp
        self._seen_at_latest[source] = {line.message}
        return True

    async def _consume(self, client: ControlPlaneClient, source: str, service: str) -> None:
        since = self._latest.get(source) or self._since.get(source)
        async for line in client.stream_logs(service, since):
            line = normalize_log_line(line)
            if self._advance(source, line):
                self.push(source, line)

    async def _backoff(self, source: str, service: str, exc: Exception, failures: int) -> int:
        """Record a failed call and wait before the next one; returns the new count."""
        error = classify_error(exc, log_source(service))
        self._states[source].set_error(error)
        failures += 1
        if failures > self._settings.max_auto_retries:
            logger.warning(
                "Log stream %s failed %d times; waiting for manual retry",
                source,
                failures,
            )
            event = self._retry_events.setdefault(source, asyncio.Event())
            event.clear()
            await event.wait()
            return 0
        delay = backoff_delay(
            failures, self._settings.retry_backoff_base, self._settings.retry_backoff_max
        )
        logger.debug("Log stream %s failed (%s); retry in %.1fs", source, error.label, delay)
        await asyncio.sleep(delay)
        return failures

    async def _stream(self, client: ControlPlaneClient, service: str, source: str) -> None:
        """Restart ``stream_logs`` after every finite call, from the last timestamp.

        Each call is bounded by ``client_call_timeout``. A call that times out
        after delivering lines is restarted like a finished one.
        """
        state = self._states[source]
        self._since.setdefault(
            source, self._clock() - timedelta(seconds=self._settings.log_freshness_window)
        )
        failures = 0
        while True:
            state.start_loading()
            received = self._received[source]
            try:
                await asyncio.wait_for(
                    self._consume(client, source, service),
                    timeout=self._settings.client_call_timeout,
                )
            except Exception as exc:
                timed_out = isinstance(exc, (asyncio.TimeoutError, TimeoutError))
                if not timed_out or self._received[source] == received:
                    failures = await self._backoff(source, service, exc, failures)
                    continue
            failures = 0
            state.set_data(self._received[source])
            await asyncio.sleep(self._settings.log_poll_interval)

    def start(
        self, client: ControlPlaneClient, services: Iterable[str], node: str = ""
    ) -> None:
        """Start one streaming task per service."""
        for service in services:
            source = f"{node}/{service}" if node else service
            self.add_source(source)
            task = self._tasks.get(source)
            if task is None or task.done():
                self._tasks[source] = self._scope.spawn(
                    self._stream(client, service, source), name=f"logs-{source}"
                )

    def retry(self, source: str) -> None:
        event = self._retry_events.get(source)
        if event is not None:
            event.set()

    async def stop(self) -> None:
        await self._scope.cancel_all()
        self._tasks.clear()


__all__ = ["LogAggregator", "LogFilter", "SourceBuffer"]
