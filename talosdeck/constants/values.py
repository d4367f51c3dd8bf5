"""Scalar constants for TalosDeck.

All application-level constants with proper type hints using Final.
"""

from typing import Final

# ============================================================================
# Application
# ============================================================================

APP_TITLE: Final = "TalosDeck"

# ============================================================================
# Status indicators
# ============================================================================

INDICATOR_PASS: Final = "●"
INDICATOR_WARN: Final = "◐"
INDICATOR_FAIL: Final = "○"
INDICATOR_UNKNOWN: Final = "?"

# ============================================================================
# Logs
# ============================================================================

DROP_MARKER_TEMPLATE: Final = "{count} lines dropped"

__all__ = [
    "APP_TITLE",
    "DROP_MARKER_TEMPLATE",
    "INDICATOR_FAIL",
    "INDICATOR_PASS",
    "INDICATOR_UNKNOWN",
    "INDICATOR_WARN",
]
