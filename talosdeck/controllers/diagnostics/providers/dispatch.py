"""Provider dispatch table and detection order.

The set of providers is closed: ``PROVIDERS`` maps every ``ProviderKind`` to
the one object that handles it. Fabric detection asks the Kubernetes API
first and only falls back to on-node files when the API is unavailable or
shows no fabric at all. More than one fabric with evidence is ambiguous and
yields no fabric checks.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType

from talosdeck.constants.enums import DetectionSource, ProviderFamily, ProviderKind
from talosdeck.controllers.diagnostics.providers.addons import AddonProvider, CertManagerProvider
from talosdeck.controllers.diagnostics.providers.base import Evidence, Provider
from talosdeck.controllers.diagnostics.providers.fabric import (
    CalicoProvider,
    CiliumProvider,
    FlannelProvider,
)
from talosdeck.models.diagnostics.check import DiagnosticCheck
from talosdeck.models.diagnostics.context import DiagnosticContext

logger = logging.getLogger(__name__)

PROVIDERS: Mapping[ProviderKind, Provider] = MappingProxyType(
    {
        ProviderKind.FLANNEL: FlannelProvider(),
        ProviderKind.CILIUM: CiliumProvider(),
        ProviderKind.CALICO: CalicoProvider(),
        ProviderKind.CERT_MANAGER: CertManagerProvider(),
        ProviderKind.EXTERNAL_SECRETS: AddonProvider(
            ProviderKind.EXTERNAL_SECRETS, "External Secrets"
        ),
        ProviderKind.KYVERNO: AddonProvider(ProviderKind.KYVERNO, "Kyverno"),
        ProviderKind.INGRESS_NGINX: AddonProvider(ProviderKind.INGRESS_NGINX, "Ingress NGINX"),
        ProviderKind.TRAEFIK: AddonProvider(ProviderKind.TRAEFIK, "Traefik"),
        ProviderKind.PROMETHEUS: AddonProvider(ProviderKind.PROMETHEUS, "Prometheus"),
        ProviderKind.ARGOCD: AddonProvider(ProviderKind.ARGOCD, "Argo CD"),
        ProviderKind.FLUX: AddonProvider(ProviderKind.FLUX, "Flux"),
    }
)


@dataclass(frozen=True)
class FabricDetection:
    """Outcome of fabric detection.

    ``active`` is set only when exactly one fabric showed evidence.
    ``determined`` is False when no source could answer at all.
    """

    active: ProviderKind | None
    source: DetectionSource
    evidence: tuple[Evidence, ...] = ()
    ambiguous: bool = False
    determined: bool = True

    def describe(self) -> str:
        if self.ambiguous:
            kinds = ", ".join(e.kind.value for e in self.evidence if e.present)
            return f"Ambiguous ({kinds})"
        if self.active is not None:
            return f"{PROVIDERS[self.active].describe()} (via {self.source.value})"
        if not self.determined:
            return "Unknown (no evidence source available)"
        return "None detected"


@dataclass(frozen=True)
class ProviderResult:
    fabric: FabricDetection
    addons: tuple[ProviderKind, ...] = ()
    fabric_checks: tuple[DiagnosticCheck, ...] = ()
    addon_checks: tuple[DiagnosticCheck, ...] = ()


def providers_of(
    family: ProviderFamily, table: Mapping[ProviderKind, Provider] = PROVIDERS
) -> tuple[Provider, ...]:
    return tuple(provider for provider in table.values() if provider.family == family)


def detect_fabric(
    ctx: DiagnosticContext, table: Mapping[ProviderKind, Provider] = PROVIDERS
) -> FabricDetection:
    fabrics = providers_of(ProviderFamily.FABRIC, table)

    api = tuple(provider.detect(ctx, DetectionSource.API) for provider in fabrics)
    hits = [evidence for evidence in api if evidence.present]
    source = DetectionSource.API
    evidence = api
    if not hits:
        files = tuple(provider.detect(ctx, DetectionSource.FILE) for provider in fabrics)
        hits = [e for e in files if e.present]
        source = DetectionSource.FILE
        evidence = api + files

    if len(hits) > 1:
        logger.warning(
            "Ambiguous network fabric on %s: %s",
            ctx.hostname,
            ", ".join(f"{e.kind.value}={list(e.matches)}" for e in hits),
        )
        return FabricDetection(
            active=None, source=source, evidence=tuple(hits), ambiguous=True
        )
    if hits:
        logger.info("Network fabric on %s: %s via %s", ctx.hostname, hits[0].kind.value, source.value)
        return FabricDetection(active=hits[0].kind, source=source, evidence=tuple(hits))

    determined = any(e.available for e in evidence)
    return FabricDetection(
        active=None, source=DetectionSource.NONE, evidence=evidence, determined=determined
    )


def detect_addons(
    ctx: DiagnosticContext, table: Mapping[ProviderKind, Provider] = PROVIDERS
) -> tuple[ProviderKind, ...]:
    return tuple(
        provider.kind
        for provider in providers_of(ProviderFamily.ADDON, table)
        if provider.detect(ctx, DetectionSource.API).present
    )


def run_providers(
    ctx: DiagnosticContext, table: Mapping[ProviderKind, Provider] = PROVIDERS
) -> ProviderResult:
    """Detect providers and run the checks of every active one."""
    fabric = detect_fabric(ctx, table)
    fabric_checks: list[DiagnosticCheck] = []
    if fabric.active is not None:
        fabric_checks = table[fabric.active].checks(ctx)

    addons = detect_addons(ctx, table)
    addon_checks: list[DiagnosticCheck] = []
    for kind in addons:
        addon_checks.extend(table[kind].checks(ctx))

    return ProviderResult(
        fabric=fabric,
        addons=addons,
        fabric_checks=tuple(fabric_checks),
        addon_checks=tuple(addon_checks),
    )


__all__ = [
    "FabricDetection",
    "PROVIDERS",
    "ProviderResult",
    "detect_addons",
    "detect_fabric",
    "providers_of",
    "run_providers",
]
