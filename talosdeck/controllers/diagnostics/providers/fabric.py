"""Network fabric (CNI) providers: Flannel, Cilium and Calico."""

from __future__ import annotations

from talosdeck.constants.defaults import (
    BR_NETFILTER_PATH,
    FLANNEL_SUBNET_PATH,
    SYSTEM_NAMESPACE,
)
from talosdeck.constants.enums import (
    CheckCategory,
    DetectionSource,
    ErrorKind,
    ProviderFamily,
    ProviderKind,
    SourceTier,
)
from talosdeck.controllers.diagnostics.engine import CheckSpec
from talosdeck.controllers.diagnostics.providers.base import (
    Evidence,
    Provider,
    names_with_prefix,
    pod_rollup_check,
    system_workloads,
)
from talosdeck.models.diagnostics.check import DiagnosticCheck, DiagnosticFix, FixAction
from talosdeck.models.diagnostics.context import (
    DiagnosticContext,
    EvidenceUnavailable,
    file_source,
)


class FabricProvider(Provider):
    """Shared detection for network fabrics.

    API evidence is kube-system pods and DaemonSets matching the fabric's
    name prefixes; file evidence is the fabric's CNI conflist or lease file.
    """

    family = ProviderFamily.FABRIC

    def prefixes(self, ctx: DiagnosticContext) -> tuple[str, ...]:
        return tuple(ctx.settings.fabric_pod_prefixes.get(self.kind.value, ()))

    def detect_from_api(self, ctx: DiagnosticContext) -> Evidence:
        workloads = system_workloads(ctx)
        if workloads is None:
            return Evidence.unavailable(self.kind)
        return Evidence(
            kind=self.kind,
            source=DetectionSource.API,
            matches=names_with_prefix(workloads, self.prefixes(ctx)),
        )

    def detect_from_files(self, ctx: DiagnosticContext) -> Evidence:
        paths = ctx.settings.fabric_file_evidence.get(self.kind.value, ())
        states = {path: ctx.file_state(path) for path in paths}
        return Evidence(
            kind=self.kind,
            source=DetectionSource.FILE,
            matches=tuple(path for path, state in states.items() if state),
            available=any(state is not None for state in states.values()),
        )

    def _check_pods(self, ctx: DiagnosticContext) -> DiagnosticCheck:
        return pod_rollup_check(
            "cni_pods",
            f"{self.display_name} Pods",
            ctx,
            SYSTEM_NAMESPACE,
            prefixes=self.prefixes(ctx),
        )

    def _pods_spec(self) -> CheckSpec:
        return CheckSpec(
            "cni_pods",
            f"{self.display_name} Pods",
            SourceTier.API,
            self._check_pods,
            CheckCategory.CNI,
        )


class FlannelProvider(FabricProvider):
    kind = ProviderKind.FLANNEL
    display_name = "Flannel"

    def check_specs(self) -> tuple[CheckSpec, ...]:
        return (
            self._pods_spec(),
            CheckSpec(
                "flannel_subnet",
                "Flannel Subnet",
                SourceTier.STATE_FILE,
                check_flannel_subnet,
                CheckCategory.CNI,
            ),
            CheckSpec(
                "br_netfilter",
                "br_netfilter",
                SourceTier.STATE_FILE,
                check_br_netfilter,
                CheckCategory.CNI,
            ),
        )


class CiliumProvider(FabricProvider):
    """Cilium uses eBPF, so it does not need ``br_netfilter``."""

    kind = ProviderKind.CILIUM
    display_name = "Cilium"

    def check_specs(self) -> tuple[CheckSpec, ...]:
        return (self._pods_spec(),)


class CalicoProvider(FabricProvider):
    kind = ProviderKind.CALICO
    display_name = "Calico"

    def check_specs(self) -> tuple[CheckSpec, ...]:
        return (self._pods_spec(),)


def check_flannel_subnet(ctx: DiagnosticContext) -> DiagnosticCheck:
    """Flannel writes its node lease to ``subnet.env`` once it is up."""
    state = ctx.file_state(FLANNEL_SUBNET_PATH)
    if state is None:
        raise EvidenceUnavailable(
            file_source(FLANNEL_SUBNET_PATH),
            ctx.unavailable.get(file_source(FLANNEL_SUBNET_PATH)),
        )
    if not state:
        return DiagnosticCheck.fail(
            "flannel_subnet", "Flannel Subnet", f"{FLANNEL_SUBNET_PATH} missing"
        ).with_details("Flannel has not written a subnet lease on this node.")

    values = {}
    for line in (ctx.file(FLANNEL_SUBNET_PATH) or "").splitlines():
        key, sep, value = line.partition("=")
        if sep:
            values[key.strip()] = value.strip()
    subnet = values.get("FLANNEL_SUBNET")
    if not subnet:
        return DiagnosticCheck.warn(
            "flannel_subnet", "Flannel Subnet", "subnet.env has no FLANNEL_SUBNET"
        )
    return DiagnosticCheck.passed("flannel_subnet", "Flannel Subnet", subnet)


def check_br_netfilter(ctx: DiagnosticContext) -> DiagnosticCheck:
    """Bridge netfilter must be on for Flannel's iptables rules."""
    fix = DiagnosticFix(
        description="Load the br_netfilter kernel module",
        suggested_action=FixAction.add_kernel_module("br_netfilter"),
    )
    content = ctx.file(BR_NETFILTER_PATH)
    if content is None:
        reason = ctx.unavailable.get(file_source(BR_NETFILTER_PATH))
        if reason is not None and reason.kind == ErrorKind.NOT_FOUND:
            # The sysctl only exists while the module is loaded
            return DiagnosticCheck.fail(
                "br_netfilter", "br_netfilter", "Module not loaded", fix=fix
            )
        raise EvidenceUnavailable(file_source(BR_NETFILTER_PATH), reason)

    if content.strip() == "1":
        return DiagnosticCheck.passed("br_netfilter", "br_netfilter", "Enabled")
    return DiagnosticCheck.fail(
        "br_netfilter", "br_netfilter", "bridge-nf-call-iptables disabled", fix=fix
    )


__all__ = [
    "CalicoProvider",
    "CiliumProvider",
    "FabricProvider",
    "FlannelProvider",
    "check_br_netfilter",
    "check_flannel_subnet",
]
