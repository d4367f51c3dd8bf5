"""Diagnostics controller for one Talos node.

Builds a ``DiagnosticContext`` at the client boundary, then runs the core
checks and every active provider's checks against it. Evaluation itself is
pure and can be exercised without clients.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Mapping
from datetime import datetime
from typing import Any

from talosdeck.clients.base import ControlPlaneClient, OrchestrationClient
from talosdeck.constants.enums import CheckCategory, ProviderKind
from talosdeck.controllers.base import BaseController
from talosdeck.controllers.diagnostics.checks import CORE_CHECKS
from talosdeck.controllers.diagnostics.context_builder import ContextBuilder
from talosdeck.controllers.diagnostics.engine import CheckEngine
from talosdeck.controllers.diagnostics.providers import PROVIDERS, Provider, run_providers
from talosdeck.models.diagnostics.context import DiagnosticContext
from talosdeck.models.diagnostics.report import DiagnosticsReport
from talosdeck.models.state.app_settings import TalosDeckSettings
from talosdeck.models.state.async_state import utc_now

logger = logging.getLogger(__name__)


class DiagnosticsController(BaseController):
    """Runs the full diagnostics pass for one node."""

    def __init__(
        self,
        control: ControlPlaneClient,
        orchestration: OrchestrationClient | None = None,
        *,
        hostname: str,
        node_role: str = "",
        settings: TalosDeckSettings | None = None,
        engine: CheckEngine | None = None,
        providers: Mapping[ProviderKind, Provider] = PROVIDERS,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        super().__init__()
        self._control = control
        self._settings = settings or TalosDeckSettings()
        self._hostname = hostname
        self._node_role = node_role
        self._engine = engine or CheckEngine(CORE_CHECKS)
        self._providers = providers
        self._clock = clock
        self._builder = ContextBuilder(
            control, orchestration, self._settings, clock=clock
        )

    @property
    def hostname(self) -> str:
        return self._hostname

    async def check_connection(self) -> bool:
        try:
            await asyncio.wait_for(
                self._control.get_metric("version"),
                timeout=self._settings.client_call_timeout,
            )
            return True
        except Exception as exc:
            logger.warning("Connection check failed for %s: %s", self._hostname, exc)
            return False

    async def fetch_all(self) -> dict[str, Any]:
        return {"report": await self.run()}

    async def run(self) -> DiagnosticsReport:
        """Fetch evidence and evaluate every check."""
        self._start_timer()
        ctx = await self._builder.build(self._hostname, self._node_role)
        report = self.evaluate(ctx)
        logger.info(
            "Diagnostics for %s: %s in %.0fms",
            self._hostname,
            report.health.value,
            self._elapsed_ms(),
        )
        return report

    def evaluate(self, ctx: DiagnosticContext) -> DiagnosticsReport:
        """Run core and provider checks against an already-built context."""
        categories = {
            category: tuple(checks)
            for category, checks in self._engine.run_by_category(ctx).items()
        }
        providers = run_providers(ctx, self._providers)
        if providers.fabric_checks:
            categories[CheckCategory.CNI] = providers.fabric_checks
        if providers.addon_checks:
            categories[CheckCategory.ADDONS] = providers.addon_checks

        return DiagnosticsReport(
            hostname=ctx.hostname,
            generated_at=ctx.built_at,
            categories=categories,
            fabric=providers.fabric.active,
            fabric_summary=providers.fabric.describe(),
            addons=providers.addons,
            unavailable_sources=tuple(sorted(ctx.unavailable)),
        )


__all__ = ["DiagnosticsController"]
