"""Diagnostics report for one node or a merged group of nodes."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from talosdeck.constants.enums import CheckCategory, CheckStatus, ProviderKind
from talosdeck.models.diagnostics.check import DiagnosticCheck
from talosdeck.models.health.indicator import HealthIndicator, aggregate_health

# Display order of categories.
CATEGORY_ORDER: tuple[CheckCategory, ...] = (
    CheckCategory.SYSTEM,
    CheckCategory.KUBERNETES,
    CheckCategory.SERVICES,
    CheckCategory.CERTIFICATES,
    CheckCategory.CNI,
    CheckCategory.ADDONS,
)

CATEGORY_TITLES: dict[CheckCategory, str] = {
    CheckCategory.SYSTEM: "System Health",
    CheckCategory.KUBERNETES: "Kubernetes Components",
    CheckCategory.SERVICES: "Services",
    CheckCategory.CERTIFICATES: "Certificates",
    CheckCategory.CNI: "CNI",
    CheckCategory.ADDONS: "Addons",
}


class DiagnosticsReport(BaseModel):
    """All check results of one diagnostics refresh."""

    model_config = ConfigDict(frozen=True)

    hostname: str
    generated_at: datetime
    categories: dict[CheckCategory, tuple[DiagnosticCheck, ...]] = Field(default_factory=dict)
    fabric: ProviderKind | None = None
    fabric_summary: str = ""
    addons: tuple[ProviderKind, ...] = ()
    unavailable_sources: tuple[str, ...] = ()

    def checks_in(self, category: CheckCategory) -> tuple[DiagnosticCheck, ...]:
        return self.categories.get(category, ())

    @property
    def all_checks(self) -> tuple[DiagnosticCheck, ...]:
        return tuple(
            check for category in CATEGORY_ORDER for check in self.checks_in(category)
        )

    def category_health(self, category: CheckCategory) -> HealthIndicator:
        return aggregate_health(check.health for check in self.checks_in(category))

    @property
    def health(self) -> HealthIndicator:
        return aggregate_health(check.health for check in self.all_checks)

    def count(self, status: CheckStatus) -> int:
        return sum(1 for check in self.all_checks if check.status == status)

    def title_for(self, category: CheckCategory) -> str:
        title = CATEGORY_TITLES[category]
        if category == CheckCategory.CNI and self.fabric is not None:
            return f"{title} ({self.fabric.value.capitalize()})"
        return title


def merge_reports(
    group_name: str, reports: Iterable[DiagnosticsReport], generated_at: datetime
) -> DiagnosticsReport:
    """Merge per-node reports; every label is prefixed with ``[hostname]``."""
    reports = list(reports)
    categories: dict[CheckCategory, tuple[DiagnosticCheck, ...]] = {}
    for category in CATEGORY_ORDER:
        merged = tuple(
            check.with_label_prefix(f"[{report.hostname}] ")
            for report in reports
            for check in report.checks_in(category)
        )
        if merged:
            categories[category] = merged

    fabrics = {report.fabric for report in reports if report.fabric is not None}
    fabric = fabrics.pop() if len(fabrics) == 1 else None
    addons = tuple(dict.fromkeys(kind for report in reports for kind in report.addons))
    unavailable = tuple(
        dict.fromkeys(
            f"[{report.hostname}] {source}"
            for report in reports
            for source in report.unavailable_sources
        )
    )
    summary = ""
    if fabric is not None:
        summary = next(r.fabric_summary for r in reports if r.fabric == fabric)
    return DiagnosticsReport(
        hostname=group_name,
        generated_at=generated_at,
        categories=categories,
        fabric=fabric,
        fabric_summary=summary,
        addons=addons,
        unavailable_sources=unavailable,
    )


__all__ = [
    "CATEGORY_ORDER",
    "CATEGORY_TITLES",
    "DiagnosticsReport",
    "merge_reports",
]
