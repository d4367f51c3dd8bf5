"""Limit and threshold constants for TalosDeck.

All limit values, thresholds, and validation ranges.
"""

from typing import Final

# ============================================================================
# Log aggregation limits
# ============================================================================

MAX_LOG_ENTRIES: Final = 5000
SOURCE_BUFFER_CAP: Final = 1000

# ============================================================================
# Retry limits
# ============================================================================

MAX_AUTO_RETRIES: Final = 3

# ============================================================================
# Diagnostic thresholds
# ============================================================================

MEMORY_WARN_PCT: Final = 80.0
MEMORY_FAIL_PCT: Final = 90.0
LOAD_WARN_PER_CPU: Final = 1.0
LOAD_FAIL_PER_CPU: Final = 2.0
CERT_WARN_DAYS: Final = 30
CERT_FAIL_DAYS: Final = 7
POD_RESTART_WARN: Final = 5

# ============================================================================
# Validation limits
# ============================================================================

REFRESH_INTERVAL_MIN: Final = 1.0
SOURCE_BUFFER_CAP_MIN: Final = 1

__all__ = [
    "CERT_FAIL_DAYS",
    "CERT_WARN_DAYS",
    "LOAD_FAIL_PER_CPU",
    "LOAD_WARN_PER_CPU",
    "MAX_AUTO_RETRIES",
    "MAX_LOG_ENTRIES",
    "MEMORY_FAIL_PCT",
    "MEMORY_WARN_PCT",
    "POD_RESTART_WARN",
    "REFRESH_INTERVAL_MIN",
    "SOURCE_BUFFER_CAP",
    "SOURCE_BUFFER_CAP_MIN",
]
