"""WorkerMixin - Textual worker lifecycle for screens that read snapshots.

Screens never block on the control plane: every fetch runs inside a Textual
worker, and the screen only reacts to the resulting ``is_loading`` /
``error`` reactives and to the snapshots its refreshers publish.

Standard Reactive Pattern:
- Workers set is_loading and error
- on_worker_state_changed updates reactives when a worker finishes
- watch_* methods update the loading overlay
- loading_duration_ms tracks the last load time
"""

from __future__ import annotations

import logging
import time
from collections.abc import Awaitable, Callable
from contextlib import suppress
from typing import Any

from textual._context import NoActiveAppError
from textual.containers import Container
from textual.css.query import NoMatches, WrongType
from textual.message import Message
from textual.reactive import reactive
from textual.widgets import Static
from textual.worker import Worker, WorkerState

logger = logging.getLogger(__name__)


# ============================================================================
# Messages
# ============================================================================


class SnapshotPublished(Message):
    """Posted when a refresher publishes a new snapshot for ``name``."""

    def __init__(self, name: str, version: int) -> None:
        super().__init__()
        self.name = name
        self.version = version


# ============================================================================
# WorkerMixin
# ============================================================================


class WorkerMixin:
    """Mixin providing Textual worker management for data screens.

    - `start_worker()`: start a named worker, cancelling others when exclusive
    - `cancel_workers()`: cancel everything this screen started
    - `on_worker_state_changed()`: keep `is_loading` / `error` in sync
    - `show_loading_overlay()` / `hide_loading_overlay()` / `show_error_state()`

    The mixin expects a `#loading-overlay` container with a `#loading-text`
    Static inside it; `LoadingOverlay` provides both.
    """

    is_loading = reactive(False)
    error = reactive[str | None](None)
    loading_duration_ms = reactive(0.0, init=False)

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._load_start_time: float | None = None
        self._active_worker_name: str | None = None

    def watch_is_loading(self, loading: bool) -> None:
        if loading:
            self.show_loading_overlay()
        elif not self.error:
            self.hide_loading_overlay()

    def watch_error(self, error: str | None) -> None:
        if error:
            self.show_error_state(error)

    def start_worker(
        self,
        worker_func: Callable[..., Awaitable[Any]],
        *,
        exclusive: bool = True,
        name: str | None = None,
        exit_on_error: bool = False,
    ) -> Worker[Any]:
        """Start an async worker.

        Args:
            worker_func: Async function to run in the worker
            exclusive: Cancel this screen's other workers first
            name: Worker name, used in logs
            exit_on_error: If False, worker errors do not stop the app

        Returns:
            The Worker instance
        """
        if exclusive:
            with suppress(NoActiveAppError):
                self.workers.cancel_all()  # type: ignore[attr-defined]

        self._load_start_time = time.monotonic()
        self._active_worker_name = name

        return self.run_worker(  # type: ignore[attr-defined]
            worker_func,
            exclusive=exclusive,
            thread=False,
            name=name,
            exit_on_error=exit_on_error,
        )

    def cancel_workers(self) -> None:
        with suppress(NoActiveAppError):
            self.workers.cancel_all()  # type: ignore[attr-defined]

    def on_worker_state_changed(self, event: Worker.StateChanged) -> None:
        """Update is_loading / error and record the load duration."""
        duration_ms = 0.0
        if self._load_start_time is not None and event.state in (
            WorkerState.SUCCESS,
            WorkerState.CANCELLED,
            WorkerState.ERROR,
        ):
            duration_ms = (time.monotonic() - self._load_start_time) * 1000
            self.loading_duration_ms = duration_ms  # type: ignore[attr-defined]
            self._load_start_time = None

        if event.state == WorkerState.CANCELLED:
            logger.debug("Worker '%s' was cancelled (%.2fms)", event.worker.name, duration_ms)
            self.is_loading = False  # type: ignore[attr-defined]
        elif event.state == WorkerState.ERROR:
            logger.error(
                "Worker '%s' error: %s (%.2fms)", event.worker.name, event.worker.error, duration_ms
            )
            self.is_loading = False  # type: ignore[attr-defined]
            self.error = str(event.worker.error)  # type: ignore[attr-defined]
        elif event.state == WorkerState.SUCCESS:
            logger.debug("Worker '%s' completed (%.2fms)", event.worker.name, duration_ms)
            self.is_loading = False  # type: ignore[attr-defined]

    # =========================================================================
    # Loading State Management
    # =========================================================================

    def show_loading_overlay(self, message: str = "Loading...") -> None:
        with suppress(NoMatches, WrongType):
            overlay = self.query_one("#loading-overlay", Container)  # type: ignore[attr-defined]
            overlay.display = True
            with suppress(NoMatches, WrongType):
                text = self.query_one("#loading-text", Static)  # type: ignore[attr-defined]
                text.update(message)
                text.remove_class("error-text")

    def hide_loading_overlay(self) -> None:
        with suppress(NoMatches, WrongType):
            overlay = self.query_one("#loading-overlay", Container)  # type: ignore[attr-defined]
            overlay.display = False

    def update_loading_message(self, message: str) -> None:
        with suppress(NoMatches, WrongType):
            text = self.query_one("#loading-text", Static)  # type: ignore[attr-defined]
            text.update(message)

    def show_error_state(self, message: str) -> None:
        """Show ``message`` in the overlay, styled as an error."""
        with suppress(NoMatches, WrongType):
            overlay = self.query_one("#loading-overlay", Container)  # type: ignore[attr-defined]
            overlay.display = True
            text = self.query_one("#loading-text", Static)  # type: ignore[attr-defined]
            text.update(message)
            text.add_class("error-text")


# ============================================================================
# Composable Loading Overlay Widget
# ============================================================================


class LoadingOverlay(Container):
    """Centered loading indicator with a message line."""

    def __init__(self) -> None:
        super().__init__(Static("Loading...", id="loading-text"), id="loading-overlay")


__all__ = [
    "LoadingOverlay",
    "SnapshotPublished",
    "WorkerMixin",
]
