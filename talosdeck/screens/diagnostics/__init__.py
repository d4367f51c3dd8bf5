from talosdeck.screens.diagnostics.diagnostics_screen import DiagnosticsScreen
from talosdeck.screens.diagnostics.presenter import DiagnosticsPresenter

__all__ = ["DiagnosticsPresenter", "DiagnosticsScreen"]
