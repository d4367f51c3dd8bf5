"""Diagnostics screen presenter - turns published snapshots into rich rows.

The presenter never touches a client or a refresher; it only formats the
immutable values the screen read from its snapshot cells, so it can be
tested without a running app.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime

from rich.text import Text

from talosdeck.constants.enums import CheckStatus, LoadPhase, SourceTier
from talosdeck.constants.values import (
    INDICATOR_FAIL,
    INDICATOR_PASS,
    INDICATOR_UNKNOWN,
    INDICATOR_WARN,
)
from talosdeck.models.diagnostics.check import DiagnosticCheck
from talosdeck.models.diagnostics.report import CATEGORY_ORDER, DiagnosticsReport
from talosdeck.models.health.indicator import HealthIndicator
from talosdeck.models.operations.plan import RollingOperationPlan
from talosdeck.models.quorum.quorum_state import SafetyAssessment
from talosdeck.models.state.async_state import AsyncSnapshot

HEALTH_STYLES: dict[HealthIndicator, str] = {
    HealthIndicator.HEALTHY: "green",
    HealthIndicator.WARNING: "yellow",
    HealthIndicator.ERROR: "red",
    HealthIndicator.UNKNOWN: "dim",
}

STATUS_GLYPHS: dict[CheckStatus, str] = {
    CheckStatus.PASS: INDICATOR_PASS,
    CheckStatus.WARN: INDICATOR_WARN,
    CheckStatus.FAIL: INDICATOR_FAIL,
    CheckStatus.UNKNOWN: INDICATOR_UNKNOWN,
}

TIER_LABELS: dict[SourceTier, str] = {
    SourceTier.STATE_FILE: "state",
    SourceTier.API: "api",
    SourceTier.LOG: "log",
}

CheckRow = tuple[Text, Text, Text, Text]
KeyedCheckRow = tuple[DiagnosticCheck | None, CheckRow]
PlanRow = tuple[Text, Text, Text, Text, Text]


def health_text(health: HealthIndicator, label: str | None = None) -> Text:
    return Text(label or health.value.upper(), style=HEALTH_STYLES[health])


def format_age(since: datetime | None, now: datetime) -> str:
    if since is None:
        return "never"
    seconds = max(0, int((now - since).total_seconds()))
    if seconds < 60:
        return f"{seconds}s ago"
    if seconds < 3600:
        return f"{seconds // 60}m ago"
    return f"{seconds // 3600}h ago"


class DiagnosticsPresenter:
    """Formats diagnostics, safety and plan snapshots for DiagnosticsScreen."""

    def summary(self, snapshot: AsyncSnapshot[DiagnosticsReport], now: datetime) -> Text:
        """Header line: node, overall health, counts and freshness."""
        report = snapshot.data
        if report is None:
            if snapshot.phase == LoadPhase.FAILED and snapshot.error is not None:
                return Text(snapshot.error.describe(), style="red")
            return Text("Collecting diagnostics...", style="dim")

        text = Text()
        text.append(f"{report.hostname}  ", style="bold")
        text.append_text(health_text(report.health))
        text.append(
            f"  {report.count(CheckStatus.PASS)} pass"
            f" / {report.count(CheckStatus.WARN)} warn"
            f" / {report.count(CheckStatus.FAIL)} fail"
            f" / {report.count(CheckStatus.UNKNOWN)} unknown"
        )
        if report.fabric_summary:
            text.append(f"  CNI: {report.fabric_summary}", style="cyan")
        text.append(f"  updated {format_age(snapshot.last_refreshed, now)}", style="dim")

        if snapshot.shows_stale_data:
            reason = snapshot.error.describe() if snapshot.error else "data is stale"
            text.append(f"  [stale: {reason}]", style="yellow")
        if snapshot.retry_count:
            text.append(f"  retry {snapshot.retry_count}", style="dim")
        return text

    def check_row(self, check: DiagnosticCheck) -> CheckRow:
        style = HEALTH_STYLES[check.health]
        result = Text(check.detail or check.status.value)
        if check.fix is not None:
            result.append(f"  fix: {check.fix.description}", style="italic cyan")
        tier = TIER_LABELS.get(check.tier, "") if check.tier is not None else ""
        return (
            Text(STATUS_GLYPHS[check.status], style=style),
            Text(check.label, style=style),
            result,
            Text(tier, style="dim"),
        )

    def check_rows(self, report: DiagnosticsReport) -> list[KeyedCheckRow]:
        """Category header rows followed by that category's checks.

        Each row is paired with its check; header rows pair with None.
        """
        rows: list[KeyedCheckRow] = []
        for category in CATEGORY_ORDER:
            checks = report.checks_in(category)
            if not checks:
                continue
            health = report.category_health(category)
            header = (
                Text(""),
                Text(report.title_for(category), style=f"bold {HEALTH_STYLES[health]}"),
                Text(""),
                Text(""),
            )
            rows.append((None, header))
            rows.extend((check, self.check_row(check)) for check in checks)
        return rows

    def detail_lines(self, check: DiagnosticCheck) -> list[str]:
        lines = [f"{check.label}: {check.detail}" if check.detail else check.label]
        if check.details:
            lines.extend(check.details.splitlines())
        if check.fix is not None:
            lines.append(f"Fix: {check.fix.description}")
            action = check.fix.suggested_action
            if action.payload:
                lines.extend(action.payload.splitlines())
            if action.requires_reboot:
                lines.append("(requires reboot)")
        return lines

    def safety(self, assessment: SafetyAssessment) -> Text:
        text = Text("Operations: ")
        text.append_text(health_text(assessment.health, assessment.status.value.upper()))
        text.append(f"  {assessment.reason}")
        if assessment.quorum is not None:
            text.append(f"  ({assessment.quorum.describe()})", style="dim")
        return text

    def plan_row(self, plan: RollingOperationPlan) -> PlanRow:
        style = HEALTH_STYLES[plan.health]
        if plan.failure_reason:
            detail = plan.failure_reason
        elif plan.failed_nodes:
            detail = f"failed on {', '.join(plan.failed_nodes)}"
        else:
            detail = f"next: {plan.current_target}" if plan.current_target else ""
        return (
            Text(plan.plan_id),
            Text(plan.kind.value),
            Text(plan.state.value, style=style),
            Text(plan.progress()),
            Text(detail),
        )

    def plan_rows(self, plans: Iterable[RollingOperationPlan]) -> list[PlanRow]:
        return [self.plan_row(plan) for plan in plans]


__all__ = [
    "HEALTH_STYLES",
    "DiagnosticsPresenter",
    "format_age",
    "health_text",
]
