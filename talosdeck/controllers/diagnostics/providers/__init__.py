"""Network fabric and addon providers."""

from talosdeck.controllers.diagnostics.providers.base import Evidence, Provider
from talosdeck.controllers.diagnostics.providers.dispatch import (
    PROVIDERS,
    FabricDetection,
    ProviderResult,
    detect_addons,
    detect_fabric,
    run_providers,
)

__all__ = [
    "PROVIDERS",
    "Evidence",
    "FabricDetection",
    "Provider",
    "ProviderResult",
    "detect_addons",
    "detect_fabric",
    "run_providers",
]
