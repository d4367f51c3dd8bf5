"""Async-loaded entity state.

``AsyncState`` is the mutable holder owned by exactly one component. The
only value shared with readers is the frozen ``AsyncSnapshot`` returned by
``snapshot()``; the render loop never sees the holder itself.

Transitions are total: no method raises, whatever the current phase.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Generic, TypeVar

from talosdeck.constants.enums import LoadPhase
from talosdeck.models.state.error_info import ErrorInfo

T = TypeVar("T")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class AsyncSnapshot(Generic[T]):
    """Immutable published view of an ``AsyncState``."""

    phase: LoadPhase
    data: T | None
    error: ErrorInfo | None
    last_refreshed: datetime | None
    retry_count: int

    @property
    def has_data(self) -> bool:
        return self.data is not None

    @property
    def is_loading(self) -> bool:
        return self.phase == LoadPhase.LOADING

    @property
    def is_failed(self) -> bool:
        return self.phase == LoadPhase.FAILED

    @property
    def shows_stale_data(self) -> bool:
        """True when data is displayed alongside an error or age warning."""
        return self.has_data and self.phase in (LoadPhase.FAILED, LoadPhase.STALE)


class AsyncState(Generic[T]):
    """Latest async-loaded data for one entity plus its loading lifecycle."""

    def __init__(
        self,
        data: T | None = None,
        *,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._clock = clock
        self._phase = LoadPhase.IDLE
        self._data: T | None = data
        self._error: ErrorInfo | None = None
        self._last_refreshed: datetime | None = None
        self._retry_count = 0

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def phase(self) -> LoadPhase:
        return self._phase

    @property
    def data(self) -> T | None:
        return self._data

    @property
    def error(self) -> ErrorInfo | None:
        return self._error

    @property
    def last_refreshed(self) -> datetime | None:
        return self._last_refreshed

    @property
    def retry_count(self) -> int:
        return self._retry_count

    @property
    def has_data(self) -> bool:
        return self._data is not None

    # =========================================================================
    # Transitions
    # =========================================================================

    def start_loading(self) -> None:
        """Move to LOADING, keeping any previously loaded data.

        A FAILED -> LOADING transition counts as one retry.
        """
        if self._phase == LoadPhase.LOADING:
            return
        if self._phase == LoadPhase.FAILED:
            self._retry_count += 1
        self._phase = LoadPhase.LOADING

    def set_data(self, data: T) -> None:
        """Record a successful load."""
        self._phase = LoadPhase.LOADED
        self._data = data
        self._error = None
        self._last_refreshed = self._clock()
        self._retry_count = 0

    def set_error(self, error: ErrorInfo) -> None:
        """Record a failed load; prior data is retained for stale display."""
        self._phase = LoadPhase.FAILED
        self._error = error

    def mark_stale(self) -> None:
        """Flag loaded data as older than its staleness window."""
        if self._phase == LoadPhase.LOADED:
            self._phase = LoadPhase.STALE

    def reset(self) -> None:
        """Return to IDLE, dropping data and error."""
        self._phase = LoadPhase.IDLE
        self._data = None
        self._error = None
        self._last_refreshed = None
        self._retry_count = 0

    # =========================================================================
    # Reads
    # =========================================================================

    def age(self, now: datetime | None = None) -> timedelta | None:
        """Time since the last successful load, or None if never loaded."""
        if self._last_refreshed is None:
            return None
        return (now or self._clock()) - self._last_refreshed

    def is_older_than(self, max_age_seconds: float, now: datetime | None = None) -> bool:
        age = self.age(now)
        return age is not None and age.total_seconds() > max_age_seconds

    def snapshot(self) -> AsyncSnapshot[T]:
        """Return the immutable view published to readers."""
        return AsyncSnapshot(
            phase=self._phase,
            data=self._data,
            error=self._error,
            last_refreshed=self._last_refreshed,
            retry_count=self._retry_count,
        )


__all__ = [
    "AsyncSnapshot",
    "AsyncState",
    "utc_now",
]
