"""Diagnostics screen - node health checks, safety verdict and rolling plans."""

from __future__ import annotations

import asyncio
import logging

from textual.app import ComposeResult
from textual.binding import Binding
from textual.screen import Screen
from textual.timer import Timer
from textual.widgets import DataTable, Footer, Header, Static
from textual.widgets.data_table import RowKey

from talosdeck.clients.base import ControlPlaneClient
from talosdeck.constants.enums import CheckStatus
from talosdeck.controllers.diagnostics import DiagnosticsController
from talosdeck.controllers.operations import OperationsController
from talosdeck.controllers.refresh import EntityRefresher, RefreshScope
from talosdeck.controllers.safety import SafetyGate
from talosdeck.models.diagnostics.check import DiagnosticCheck
from talosdeck.models.diagnostics.report import DiagnosticsReport
from talosdeck.models.state.app_settings import TalosDeckSettings
from talosdeck.models.state.async_state import AsyncSnapshot, utc_now
from talosdeck.screens.diagnostics.config import (
    CHECK_TABLE_COLUMNS,
    CHECK_TABLE_ID,
    PLAN_TABLE_COLUMNS,
    PLAN_TABLE_ID,
    RENDER_INTERVAL,
    SAFETY_ID,
    SUMMARY_ID,
)
from talosdeck.screens.diagnostics.presenter import DiagnosticsPresenter
from talosdeck.screens.mixins.worker_mixin import LoadingOverlay, SnapshotPublished, WorkerMixin

logger = logging.getLogger(__name__)


class DiagnosticsScreen(WorkerMixin, Screen[None]):
    """Live diagnostics for one node; reads only published snapshots."""

    BINDINGS = [
        Binding("r", "refresh", "Refresh"),
        Binding("t", "retry", "Retry"),
        Binding("l", "show_logs", "Logs"),
        Binding("q", "app.quit", "Quit"),
    ]

    DEFAULT_CSS = """
    #loading-overlay {
        height: auto;
        padding: 0 1;
    }
    .error-text {
        color: $error;
    }
    #diagnostics-checks {
        height: 1fr;
    }
    #diagnostics-plans {
        height: auto;
        max-height: 10;
    }
    """

    def __init__(
        self,
        diagnostics: DiagnosticsController,
        gate: SafetyGate,
        operations: OperationsController,
        client: ControlPlaneClient,
        settings: TalosDeckSettings,
    ) -> None:
        super().__init__()
        self._diagnostics = diagnostics
        self._gate = gate
        self._operations = operations
        self._client = client
        self._settings = settings
        self._presenter = DiagnosticsPresenter()
        self._scope = RefreshScope("diagnostics")
        self._refresher: EntityRefresher[DiagnosticsReport] = self._scope.add(
            EntityRefresher(
                f"diagnostics:{diagnostics.hostname}",
                diagnostics.run,
                interval=settings.diagnostics_refresh_interval,
                timeout=settings.diagnostics_refresh_timeout,
                settings=settings,
                stale_after=settings.diagnostics_refresh_interval * 3,
                on_publish=self._on_publish,
            )
        )
        self._rendered_version = -1
        self._row_checks: dict[RowKey, DiagnosticCheck] = {}
        self._quorum_task: asyncio.Task[None] | None = None
        self._render_timer: Timer | None = None

    def compose(self) -> ComposeResult:
        yield Header()
        yield Static(id=SUMMARY_ID)
        yield LoadingOverlay()
        yield DataTable(id=CHECK_TABLE_ID, cursor_type="row", zebra_stripes=True)
        yield Static(id=SAFETY_ID)
        yield DataTable(id=PLAN_TABLE_ID, cursor_type="row")
        yield Footer()

    def on_mount(self) -> None:
        checks = self.query_one(f"#{CHECK_TABLE_ID}", DataTable)
        for label, width in CHECK_TABLE_COLUMNS:
            checks.add_column(label, width=width)
        plans = self.query_one(f"#{PLAN_TABLE_ID}", DataTable)
        for label, width in PLAN_TABLE_COLUMNS:
            plans.add_column(label, width=width)

        self._start_background()
        self._render_timer = self.set_interval(RENDER_INTERVAL, self._render_snapshots)
        self.hide_loading_overlay()

    async def on_unmount(self) -> None:
        self.cancel_workers()
        await self._scope.cancel_all()

    def on_screen_resume(self) -> None:
        self._start_background()
        if self._render_timer is not None:
            self._render_timer.resume()

    async def on_screen_suspend(self) -> None:
        """Stop polling while another screen is on top."""
        if self._render_timer is not None:
            self._render_timer.pause()
        self.cancel_workers()
        await self._scope.cancel_all()

    def _start_background(self) -> None:
        self._scope.start_all()
        if self._quorum_task is None or self._quorum_task.done():
            self._quorum_task = self._scope.spawn(self._quorum_loop(), name="quorum")

    async def _quorum_loop(self) -> None:
        while True:
            await self._gate.refresh(self._client)
            await asyncio.sleep(self._settings.quorum_refresh_interval)

    # =========================================================================
    # Rendering
    # =========================================================================

    def _on_publish(self, snapshot: AsyncSnapshot[DiagnosticsReport]) -> None:
        self.post_message(SnapshotPublished("diagnostics", self._refresher.cell.version))

    def on_snapshot_published(self, message: SnapshotPublished) -> None:
        self._render_snapshots()

    def _render_snapshots(self) -> None:
        now = utc_now()
        self._refresher.check_staleness(now)
        snapshot = self._refresher.snapshot()
        self.query_one(f"#{SUMMARY_ID}", Static).update(self._presenter.summary(snapshot, now))

        version = self._refresher.cell.version
        if version != self._rendered_version and snapshot.data is not None:
            table = self.query_one(f"#{CHECK_TABLE_ID}", DataTable)
            table.clear()
            self._row_checks.clear()
            for check, row in self._presenter.check_rows(snapshot.data):
                key = table.add_row(*row)
                if check is not None:
                    self._row_checks[key] = check
            self._rendered_version = version

        self.query_one(f"#{SAFETY_ID}", Static).update(
            self._presenter.safety(self._gate.assess(now=now))
        )
        plans = self.query_one(f"#{PLAN_TABLE_ID}", DataTable)
        plans.clear()
        for row in self._presenter.plan_rows(self._operations.snapshots()):
            plans.add_row(*row)

    # =========================================================================
    # Actions
    # =========================================================================

    async def _refresh_worker(self) -> None:
        self.is_loading = True
        self.error = None
        self.update_loading_message(f"Refreshing {self._diagnostics.hostname}...")
        snapshot = await self._refresher.refresh()
        if snapshot.is_failed and snapshot.error is not None:
            self.error = snapshot.error.describe()
        self._render_snapshots()

    def action_refresh(self) -> None:
        self.start_worker(self._refresh_worker, name="diagnostics-refresh")

    def action_retry(self) -> None:
        self.error = None
        self._refresher.retry()

    def on_data_table_row_selected(self, event: DataTable.RowSelected) -> None:
        """Show the selected check's details and suggested fix."""
        check = self._row_checks.get(event.row_key)
        if check is None:
            return
        self.notify(
            "\n".join(self._presenter.detail_lines(check)),
            title=check.label,
            severity="error" if check.status == CheckStatus.FAIL else "information",
            timeout=10,
        )

    def action_show_logs(self) -> None:
        self.app.push_screen("logs")


__all__ = ["DiagnosticsScreen"]
