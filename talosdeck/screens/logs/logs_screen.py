"""Logs screen - merged, filterable view over many service log streams."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from textual.app import ComposeResult
from textual.binding import Binding
from textual.screen import Screen
from textual.timer import Timer
from textual.widgets import DataTable, Footer, Header, Input, Static

from talosdeck.clients.base import ControlPlaneClient
from talosdeck.controllers.logs import LogAggregator, LogFilter
from talosdeck.screens.logs.config import (
    FILTER_INPUT_ID,
    LOG_TABLE_COLUMNS,
    LOG_TABLE_ID,
    RENDER_INTERVAL,
    SOURCES_ID,
)
from talosdeck.screens.logs.presenter import LogsPresenter, parse_filter_query
from talosdeck.screens.mixins.worker_mixin import LoadingOverlay, WorkerMixin

logger = logging.getLogger(__name__)


class LogsScreen(WorkerMixin, Screen[None]):
    """Streams service logs into one time-ordered table."""

    BINDINGS = [
        Binding("escape", "app.pop_screen", "Back"),
        Binding("/", "focus_filter", "Filter"),
        Binding("t", "retry", "Retry"),
        Binding("c", "clear", "Clear"),
    ]

    DEFAULT_CSS = """
    #loading-overlay {
        height: auto;
        padding: 0 1;
    }
    .error-text {
        color: $error;
    }
    #logs-table {
        height: 1fr;
    }
    """

    def __init__(
        self,
        aggregator: LogAggregator,
        client: ControlPlaneClient,
        services: Iterable[str],
        node: str = "",
        max_rows: int | None = None,
    ) -> None:
        super().__init__()
        self._aggregator = aggregator
        self._client = client
        self._services = tuple(services)
        self._node = node
        self._max_rows = max_rows
        self._presenter = LogsPresenter()
        self._filter: LogFilter | None = None
        self._dirty = True
        self._render_timer: Timer | None = None

    def compose(self) -> ComposeResult:
        yield Header()
        yield Input(placeholder="Filter (text or /regex/)", id=FILTER_INPUT_ID)
        yield Static(id=SOURCES_ID)
        yield LoadingOverlay()
        yield DataTable(id=LOG_TABLE_ID, cursor_type="row", zebra_stripes=True)
        yield Footer()

    def on_mount(self) -> None:
        table = self.query_one(f"#{LOG_TABLE_ID}", DataTable)
        for label, width in LOG_TABLE_COLUMNS:
            table.add_column(label, width=width)
        self._aggregator.start(self._client, self._services, self._node)
        self._render_timer = self.set_interval(RENDER_INTERVAL, self._render_lines)
        self.hide_loading_overlay()

    async def on_unmount(self) -> None:
        self.cancel_workers()
        await self._aggregator.stop()

    def on_screen_resume(self) -> None:
        """Reopen the streams; each source resumes from its last line."""
        self._aggregator.start(self._client, self._services, self._node)
        if self._render_timer is not None:
            self._render_timer.resume()

    async def on_screen_suspend(self) -> None:
        if self._render_timer is not None:
            self._render_timer.pause()
        self.cancel_workers()
        await self._aggregator.stop()

    # =========================================================================
    # Filtering
    # =========================================================================

    def on_input_changed(self, event: Input.Changed) -> None:
        if event.input.id != FILTER_INPUT_ID:
            return
        try:
            self._filter = parse_filter_query(event.value) if event.value.strip() else None
        except ValueError as exc:
            self.error = str(exc)
            return
        self.error = None
        self.hide_loading_overlay()
        self._dirty = True
        self._render_lines()

    # =========================================================================
    # Rendering
    # =========================================================================

    def _render_lines(self) -> None:
        merged = self._aggregator.merge()
        statuses = [
            self._presenter.source_status(
                source,
                self._aggregator.source_snapshot(source),
                self._aggregator.dropped(source),
            )
            for source in self._aggregator.sources
        ]
        self.query_one(f"#{SOURCES_ID}", Static).update(self._presenter.sources_line(statuses))
        if not merged and not self._dirty:
            return

        table = self.query_one(f"#{LOG_TABLE_ID}", DataTable)
        table.clear()
        for row in self._presenter.rows(self._aggregator.lines(self._filter), self._max_rows):
            table.add_row(*row)
        table.scroll_end(animate=False)
        self._dirty = False

    # =========================================================================
    # Actions
    # =========================================================================

    def action_focus_filter(self) -> None:
        self.query_one(f"#{FILTER_INPUT_ID}", Input).focus()

    def action_retry(self) -> None:
        for source in self._aggregator.sources:
            self._aggregator.retry(source)

    def action_clear(self) -> None:
        self._aggregator.clear()
        self._dirty = True
        self._render_lines()


__all__ = ["LogsScreen"]
