"""Main application class for the TalosDeck dashboard."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path

from textual.app import App
from textual.binding import Binding
from textual.logging import TextualHandler

from talosdeck.clients.base import ControlPlaneClient, OrchestrationClient
from talosdeck.constants import APP_TITLE
from talosdeck.constants.defaults import DEFAULT_LOG_SERVICES
from talosdeck.controllers.diagnostics import DiagnosticsController
from talosdeck.controllers.logs import LogAggregator
from talosdeck.controllers.operations import OperationsController
from talosdeck.controllers.safety import SafetyGate
from talosdeck.models.state.app_settings import (
    ConfigLoadError,
    TalosDeckSettings,
    load_settings,
)
from talosdeck.screens import DiagnosticsScreen, LogsScreen

logger = logging.getLogger(__name__)

_SCREEN_DIAGNOSTICS_NAME = "diagnostics"
_SCREEN_LOGS_NAME = "logs"


def configure_logging(level: int = logging.INFO) -> None:
    """Route log records to the Textual devtools console."""
    root = logging.getLogger()
    if not any(isinstance(handler, TextualHandler) for handler in root.handlers):
        root.addHandler(TextualHandler())
    root.setLevel(level)


class TalosDeckApp(App[None]):
    """Dashboard for one Talos node: diagnostics, safety verdict and logs.

    Wire clients are injected; the app owns the controllers built on them
    and the settings object they all share.
    """

    TITLE = APP_TITLE
    BINDINGS = [
        Binding("d", "nav_diagnostics", "Diagnostics"),
        Binding("g", "nav_logs", "Logs"),
    ]

    settings: TalosDeckSettings

    def __init__(
        self,
        control: ControlPlaneClient,
        orchestration: OrchestrationClient | None = None,
        *,
        hostname: str,
        node_role: str = "",
        services: Iterable[str] = DEFAULT_LOG_SERVICES,
        settings: TalosDeckSettings | None = None,
        settings_path: str | Path | None = None,
        **kwargs,
    ) -> None:
        super().__init__(**kwargs)
        configure_logging()
        self.settings = settings or self._load_settings(settings_path)
        self.sub_title = hostname

        self.gate = SafetyGate(settings=self.settings)
        self.diagnostics = DiagnosticsController(
            control,
            orchestration,
            hostname=hostname,
            node_role=node_role,
            settings=self.settings,
        )
        self.operations = OperationsController(control, self.gate, self.settings)
        self.aggregator = LogAggregator(self.settings)
        self._control = control
        self._hostname = hostname
        self._services = tuple(services)

    @staticmethod
    def _load_settings(path: str | Path | None) -> TalosDeckSettings:
        try:
            return load_settings(path)
        except ConfigLoadError as exc:
            logger.error("%s; using defaults", exc)
            return TalosDeckSettings()

    def on_mount(self) -> None:
        self.install_screen(
            DiagnosticsScreen(
                self.diagnostics, self.gate, self.operations, self._control, self.settings
            ),
            name=_SCREEN_DIAGNOSTICS_NAME,
        )
        self.install_screen(
            LogsScreen(
                self.aggregator,
                self._control,
                self._services,
                self._hostname,
                max_rows=self.settings.max_log_entries,
            ),
            name=_SCREEN_LOGS_NAME,
        )
        self.push_screen(_SCREEN_DIAGNOSTICS_NAME)

    def action_nav_diagnostics(self) -> None:
        if self.screen is not self.get_screen(_SCREEN_DIAGNOSTICS_NAME):
            self.pop_screen()

    def action_nav_logs(self) -> None:
        if self.screen is not self.get_screen(_SCREEN_LOGS_NAME):
            self.push_screen(_SCREEN_LOGS_NAME)

    async def on_unmount(self) -> None:
        """Stop plan tasks; dispatched steps still finish first."""
        await self.operations.cancel_all()


__all__ = ["TalosDeckApp", "configure_logging"]
