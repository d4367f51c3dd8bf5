"""Controllers module for TalosDeck.

This module provides domain-driven controllers for diagnosing Talos nodes,
gating destructive operations and aggregating service logs.
"""

from __future__ import annotations

# Base classes
from talosdeck.controllers.base import (
    AsyncControllerMixin,
    BaseController,
)

# Diagnostics domain
from talosdeck.controllers.diagnostics import DiagnosticsController

# Logs domain
from talosdeck.controllers.logs import LogAggregator, LogFilter

# Operations domain
from talosdeck.controllers.operations import OperationsController, RollingOrchestrator

# Refresh substrate
from talosdeck.controllers.refresh import EntityRefresher, RefreshScope

# Safety domain
from talosdeck.controllers.safety import OperationLedger, SafetyGate

__all__ = [
    # Base
    "AsyncControllerMixin",
    "BaseController",
    # Domain Controllers
    "DiagnosticsController",
    "EntityRefresher",
    "LogAggregator",
    "LogFilter",
    "OperationLedger",
    "OperationsController",
    "RefreshScope",
    "RollingOrchestrator",
    "SafetyGate",
]
