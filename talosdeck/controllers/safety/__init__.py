"""Quorum-derived safety gate."""

from talosdeck.controllers.safety.gate import OperationLedger, SafetyGate

__all__ = ["OperationLedger", "SafetyGate"]
