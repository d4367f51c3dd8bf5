"""TalosDeck screens.

Domain Structure:
    - diagnostics/ - Node health checks, safety verdict and rolling plans
    - logs/        - Merged service log streams
    - mixins/      - Reusable screen mixins
"""

from __future__ import annotations

from talosdeck.screens.diagnostics import DiagnosticsScreen
from talosdeck.screens.logs import LogsScreen

__all__ = ["DiagnosticsScreen", "LogsScreen"]
