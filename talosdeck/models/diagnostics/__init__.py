"""Diagnostic check, context and report models."""

from talosdeck.models.diagnostics.check import DiagnosticCheck, DiagnosticFix, FixAction
from talosdeck.models.diagnostics.context import DiagnosticContext, EvidenceUnavailable
from talosdeck.models.diagnostics.report import DiagnosticsReport, merge_reports

__all__ = [
    "DiagnosticCheck",
    "DiagnosticContext",
    "DiagnosticFix",
    "DiagnosticsReport",
    "EvidenceUnavailable",
    "FixAction",
    "merge_reports",
]
