"""All enum definitions for TalosDeck.

This module consolidates the enumerations shared between the core engine
and the dashboard.
"""

from enum import Enum

# =============================================================================
# Async loading
# =============================================================================

class LoadPhase(Enum):
    """Lifecycle phase of one entity's async-loaded snapshot."""

    IDLE = "idle"
    LOADING = "loading"
    LOADED = "loaded"
    STALE = "stale"
    FAILED = "failed"


class ErrorKind(Enum):
    """Error taxonomy surfaced at the client boundary."""

    NOT_FOUND = "not_found"
    PERMISSION_DENIED = "permission_denied"
    TIMEOUT = "timeout"
    CONNECTION_ERROR = "connection_error"
    INTERNAL = "internal"

    @property
    def label(self) -> str:
        """User-facing category label."""
        return _ERROR_KIND_LABELS[self]


_ERROR_KIND_LABELS = {
    ErrorKind.NOT_FOUND: "Not found",
    ErrorKind.PERMISSION_DENIED: "Permission denied",
    ErrorKind.TIMEOUT: "Timed out",
    ErrorKind.CONNECTION_ERROR: "Connection error",
    ErrorKind.INTERNAL: "Internal error",
}


# =============================================================================
# Diagnostics
# =============================================================================

class CheckStatus(Enum):
    """Outcome of a single diagnostic check."""

    PASS = "pass"
    WARN = "warn"
    FAIL = "fail"
    UNKNOWN = "unknown"


class SourceTier(Enum):
    """Evidence sources ordered by reliability (lower rank is better)."""

    STATE_FILE = 1
    API = 2
    LOG = 3

    @property
    def rank(self) -> int:
        return self.value


class CheckCategory(Enum):
    """Categories shown as separate sections in the diagnostics view."""

    SYSTEM = "system"
    KUBERNETES = "kubernetes"
    SERVICES = "services"
    CERTIFICATES = "certificates"
    CNI = "cni"
    ADDONS = "addons"


class FixKind(Enum):
    """Kinds of remediation a check can suggest."""

    RESTART_SERVICE = "restart_service"
    ADD_KERNEL_MODULE = "add_kernel_module"
    APPLY_CONFIG_PATCH = "apply_config_patch"
    HOST_COMMAND = "host_command"
    SHOW_DETAILS = "show_details"


class ProviderKind(Enum):
    """Closed set of known network-fabric and addon providers."""

    FLANNEL = "flannel"
    CILIUM = "cilium"
    CALICO = "calico"
    CERT_MANAGER = "cert-manager"
    EXTERNAL_SECRETS = "external-secrets"
    KYVERNO = "kyverno"
    INGRESS_NGINX = "ingress-nginx"
    TRAEFIK = "traefik"
    PROMETHEUS = "prometheus"
    ARGOCD = "argocd"
    FLUX = "flux"


class ProviderFamily(Enum):
    """Whether a provider is a network fabric or a cluster addon."""

    FABRIC = "fabric"
    ADDON = "addon"


class DetectionSource(Enum):
    """Where provider evidence was found."""

    API = "api"
    FILE = "file"
    NONE = "none"


# =============================================================================
# Safety and operations
# =============================================================================

class SafetyStatus(Enum):
    """Cluster-wide verdict for destructive operations."""

    SAFE = "safe"
    UNSAFE = "unsafe"
    UNKNOWN = "unknown"


class PlanState(Enum):
    """Rolling operation plan state."""

    PENDING = "pending"
    RUNNING = "running"
    PAUSED = "paused"
    ABORTED = "aborted"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (PlanState.ABORTED, PlanState.COMPLETED, PlanState.FAILED)


class OperationKind(Enum):
    """Destructive node operations issued through the control-plane client."""

    DRAIN = "drain"
    REBOOT = "reboot"
    UPGRADE = "upgrade"


class StepOutcome(Enum):
    """Outcome recorded for one node in a rolling operation."""

    SUCCESS = "success"
    FAILURE = "failure"
    TIMEOUT = "timeout"


class FailurePolicy(Enum):
    """What a rolling operation does after a per-node failure."""

    CONTINUE = "continue"
    HALT = "halt"


# =============================================================================
# Logs
# =============================================================================

class LogLevel(Enum):
    """Log level inferred from a log line."""

    ERROR = "ERR"
    WARN = "WRN"
    INFO = "INF"
    DEBUG = "DBG"
    UNKNOWN = "---"


__all__ = [
    "CheckCategory",
    "CheckStatus",
    "DetectionSource",
    "ErrorKind",
    "FailurePolicy",
    "FixKind",
    "LoadPhase",
    "LogLevel",
    "OperationKind",
    "PlanState",
    "ProviderFamily",
    "ProviderKind",
    "SafetyStatus",
    "SourceTier",
    "StepOutcome",
]
