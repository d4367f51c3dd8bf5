"""Rolling operations domain."""

from talosdeck.controllers.operations.controller import OperationsController
from talosdeck.controllers.operations.orchestrator import RollingOrchestrator

__all__ = ["OperationsController", "RollingOrchestrator"]
