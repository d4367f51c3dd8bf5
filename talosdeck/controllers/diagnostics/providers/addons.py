"""Cluster addon providers.

Addons are detected from the Kubernetes API only: installed CRDs first,
then the addon's namespace. Each detected addon contributes a pod rollup
for its namespace; cert-manager also reports certificate readiness.
"""

from __future__ import annotations

from talosdeck.constants.enums import (
    CheckCategory,
    DetectionSource,
    ProviderFamily,
    ProviderKind,
    SourceTier,
)
from talosdeck.controllers.diagnostics.engine import CheckSpec
from talosdeck.controllers.diagnostics.providers.base import Evidence, Provider, pod_rollup_check
from talosdeck.models.diagnostics.check import DiagnosticCheck
from talosdeck.models.diagnostics.context import SOURCE_K8S, DiagnosticContext


class AddonProvider(Provider):
    """Generic addon: CRD or namespace presence plus a namespace pod rollup."""

    family = ProviderFamily.ADDON

    def __init__(self, kind: ProviderKind, display_name: str) -> None:
        self.kind = kind
        self.display_name = display_name

    def namespace(self, ctx: DiagnosticContext) -> str:
        return ctx.settings.addon_namespaces.get(self.kind.value, self.kind.value)

    def detect_from_api(self, ctx: DiagnosticContext) -> Evidence:
        crds = ctx.resources_of("CustomResourceDefinition")
        namespaces = ctx.resources_of("Namespace")
        if crds is None and namespaces is None:
            return Evidence.unavailable(self.kind)

        wanted = set(ctx.settings.addon_crds.get(self.kind.value, ()))
        matches = [crd.name for crd in crds or () if crd.name in wanted]
        namespace = self.namespace(ctx)
        matches.extend(ns.name for ns in namespaces or () if ns.name == namespace)
        return Evidence(kind=self.kind, source=DetectionSource.API, matches=tuple(matches))

    def _check_pods(self, ctx: DiagnosticContext) -> DiagnosticCheck:
        return pod_rollup_check(
            f"{self.kind.value}_pods",
            f"{self.display_name} Pods",
            ctx,
            self.namespace(ctx),
        )

    def check_specs(self) -> tuple[CheckSpec, ...]:
        return (
            CheckSpec(
                f"{self.kind.value}_pods",
                f"{self.display_name} Pods",
                SourceTier.API,
                self._check_pods,
                CheckCategory.ADDONS,
            ),
        )


class CertManagerProvider(AddonProvider):
    def __init__(self) -> None:
        super().__init__(ProviderKind.CERT_MANAGER, "cert-manager")

    def check_specs(self) -> tuple[CheckSpec, ...]:
        return super().check_specs() + (
            CheckSpec(
                "cert-manager_certificates",
                "Certificates Ready",
                SourceTier.API,
                check_certificates_ready,
                CheckCategory.ADDONS,
            ),
        )


def check_certificates_ready(ctx: DiagnosticContext) -> DiagnosticCheck:
    """cert-manager ``Certificate`` resources whose Ready condition is not True."""
    certificates = ctx.need(ctx.resources_of("Certificate"), SOURCE_K8S)
    if not certificates:
        return DiagnosticCheck.passed(
            "cert-manager_certificates", "Certificates Ready", "No certificates"
        )

    not_ready = []
    for cert in certificates:
        conditions = cert.status.get("conditions") or []
        ready = any(
            isinstance(condition, dict)
            and condition.get("type") == "Ready"
            and condition.get("status") == "True"
            for condition in conditions
        )
        if not ready:
            not_ready.append(cert)

    total = len(certificates)
    if not not_ready:
        return DiagnosticCheck.passed(
            "cert-manager_certificates", "Certificates Ready", f"{total}/{total} ready"
        )
    details = "\n".join(f"  {cert.namespace or '-'}/{cert.name}" for cert in not_ready)
    return DiagnosticCheck.warn(
        "cert-manager_certificates",
        "Certificates Ready",
        f"{total - len(not_ready)}/{total} ready",
    ).with_details("Not ready:\n" + details)


__all__ = [
    "AddonProvider",
    "CertManagerProvider",
    "check_certificates_ready",
]
