"""Timeout and interval constants for TalosDeck.

All values are in seconds (float) and are the defaults for
``TalosDeckSettings``.
"""

from typing import Final

# ============================================================================
# External call timeouts
# ============================================================================

CLIENT_CALL_TIMEOUT: Final = 10.0
DIAGNOSTICS_REFRESH_TIMEOUT: Final = 15.0
MEMBERSHIP_FETCH_TIMEOUT: Final = 5.0
OPERATION_STEP_TIMEOUT: Final = 600.0

# ============================================================================
# Refresh intervals
# ============================================================================

DIAGNOSTICS_REFRESH_INTERVAL: Final = 10.0
QUORUM_REFRESH_INTERVAL: Final = 5.0
LOG_POLL_INTERVAL: Final = 2.0

# ============================================================================
# Freshness windows
# ============================================================================

MEMBER_FRESHNESS_WINDOW: Final = 30.0
LOG_FRESHNESS_WINDOW: Final = 300.0

# ============================================================================
# Retry backoff
# ============================================================================

RETRY_BACKOFF_BASE: Final = 1.0
RETRY_BACKOFF_MAX: Final = 30.0

__all__ = [
    "CLIENT_CALL_TIMEOUT",
    "DIAGNOSTICS_REFRESH_INTERVAL",
    "DIAGNOSTICS_REFRESH_TIMEOUT",
    "LOG_FRESHNESS_WINDOW",
    "LOG_POLL_INTERVAL",
    "MEMBERSHIP_FETCH_TIMEOUT",
    "MEMBER_FRESHNESS_WINDOW",
    "OPERATION_STEP_TIMEOUT",
    "QUORUM_REFRESH_INTERVAL",
    "RETRY_BACKOFF_BASE",
    "RETRY_BACKOFF_MAX",
]
