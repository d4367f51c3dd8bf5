"""Diagnostic check result models."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from talosdeck.constants.enums import CheckStatus, FixKind, SourceTier
from talosdeck.models.health.indicator import HealthIndicator, health_of_check


class FixAction(BaseModel):
    """Concrete remediation the operator can trigger or copy."""

    model_config = ConfigDict(frozen=True)

    kind: FixKind
    target: str = ""
    payload: str = ""
    requires_reboot: bool = False

    @classmethod
    def restart_service(cls, service: str) -> FixAction:
        return cls(kind=FixKind.RESTART_SERVICE, target=service)

    @classmethod
    def add_kernel_module(cls, module: str) -> FixAction:
        return cls(
            kind=FixKind.ADD_KERNEL_MODULE,
            target=module,
            payload=f"machine:\n  kernel:\n    modules:\n      - name: {module}",
            requires_reboot=True,
        )


class DiagnosticFix(BaseModel):
    """Optional remediation attached to a non-passing check."""

    model_config = ConfigDict(frozen=True)

    description: str
    suggested_action: FixAction


class DiagnosticCheck(BaseModel):
    """Result of one check run. Immutable; a new instance per run."""

    model_config = ConfigDict(frozen=True)

    id: str
    label: str
    status: CheckStatus
    detail: str = ""
    fix: DiagnosticFix | None = None
    details: str | None = None
    tier: SourceTier | None = None

    @property
    def health(self) -> HealthIndicator:
        return health_of_check(self.status)

    @classmethod
    def passed(cls, check_id: str, label: str, detail: str = "") -> DiagnosticCheck:
        return cls(id=check_id, label=label, status=CheckStatus.PASS, detail=detail)

    @classmethod
    def warn(
        cls,
        check_id: str,
        label: str,
        detail: str = "",
        fix: DiagnosticFix | None = None,
    ) -> DiagnosticCheck:
        return cls(id=check_id, label=label, status=CheckStatus.WARN, detail=detail, fix=fix)

    @classmethod
    def fail(
        cls,
        check_id: str,
        label: str,
        detail: str = "",
        fix: DiagnosticFix | None = None,
    ) -> DiagnosticCheck:
        return cls(id=check_id, label=label, status=CheckStatus.FAIL, detail=detail, fix=fix)

    @classmethod
    def unknown(cls, check_id: str, label: str, detail: str = "") -> DiagnosticCheck:
        return cls(id=check_id, label=label, status=CheckStatus.UNKNOWN, detail=detail)

    def with_details(self, details: str) -> DiagnosticCheck:
        return self.model_copy(update={"details": details})

    def with_label_prefix(self, prefix: str) -> DiagnosticCheck:
        return self.model_copy(update={"label": f"{prefix}{self.label}"})
