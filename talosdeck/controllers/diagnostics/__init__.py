"""Diagnostics domain: check engine, core checks, providers and controller."""

from talosdeck.controllers.diagnostics.controller import DiagnosticsController
from talosdeck.controllers.diagnostics.engine import CheckEngine, CheckSpec, run_check

__all__ = ["CheckEngine", "CheckSpec", "DiagnosticsController", "run_check"]
