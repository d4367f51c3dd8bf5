"""Default values for settings.

Paths, name prefixes and resource tables used by the diagnostics engine.
All of these seed ``TalosDeckSettings`` and can be overridden from YAML.
"""

from typing import Final

# ============================================================================
# On-node state files
# ============================================================================

MEMINFO_PATH: Final = "/proc/meminfo"
BR_NETFILTER_PATH: Final = "/proc/sys/net/bridge/bridge-nf-call-iptables"
FLANNEL_SUBNET_PATH: Final = "/run/flannel/subnet.env"
CNI_CONF_DIR: Final = "/etc/cni/net.d"

# Fabric conflist files, checked only when the API cannot decide.
FABRIC_FILE_EVIDENCE: Final[dict[str, tuple[str, ...]]] = {
    "flannel": (
        FLANNEL_SUBNET_PATH,
        f"{CNI_CONF_DIR}/10-flannel.conflist",
    ),
    "cilium": (f"{CNI_CONF_DIR}/05-cilium.conflist",),
    "calico": (f"{CNI_CONF_DIR}/10-calico.conflist",),
}

# ============================================================================
# Kubernetes API evidence
# ============================================================================

SYSTEM_NAMESPACE: Final = "kube-system"

FABRIC_POD_PREFIXES: Final[dict[str, tuple[str, ...]]] = {
    "flannel": ("kube-flannel", "flannel"),
    "cilium": ("cilium",),
    "calico": ("calico-node", "calico"),
}

ADDON_CRDS: Final[dict[str, tuple[str, ...]]] = {
    "cert-manager": ("certificates.cert-manager.io", "issuers.cert-manager.io"),
    "external-secrets": ("externalsecrets.external-secrets.io",),
    "kyverno": ("clusterpolicies.kyverno.io",),
    "ingress-nginx": (),
    "traefik": ("ingressroutes.traefik.io", "ingressroutes.traefik.containo.us"),
    "prometheus": ("prometheuses.monitoring.coreos.com",),
    "argocd": ("applications.argoproj.io",),
    "flux": ("kustomizations.kustomize.toolkit.fluxcd.io",),
}

ADDON_NAMESPACES: Final[dict[str, str]] = {
    "cert-manager": "cert-manager",
    "external-secrets": "external-secrets",
    "kyverno": "kyverno",
    "ingress-nginx": "ingress-nginx",
    "traefik": "traefik",
    "prometheus": "monitoring",
    "argocd": "argocd",
    "flux": "flux-system",
}

# ============================================================================
# Log evidence
# ============================================================================

KUBELET_SERVICE: Final = "kubelet"

# Services streamed by the logs view when none are given.
DEFAULT_LOG_SERVICES: Final[tuple[str, ...]] = (
    "machined",
    "apid",
    "containerd",
    "etcd",
    KUBELET_SERVICE,
)

__all__ = [
    "ADDON_CRDS",
    "ADDON_NAMESPACES",
    "BR_NETFILTER_PATH",
    "CNI_CONF_DIR",
    "DEFAULT_LOG_SERVICES",
    "FABRIC_FILE_EVIDENCE",
    "FABRIC_POD_PREFIXES",
    "FLANNEL_SUBNET_PATH",
    "KUBELET_SERVICE",
    "MEMINFO_PATH",
    "SYSTEM_NAMESPACE",
]
