"""Constants module for TalosDeck.

Centralized constants organized by domain:
- enums.py: All Enum class definitions
- values.py: Scalar constants (title, glyphs, templates)
- timeouts.py: Timeout, interval and freshness values (seconds)
- limits.py: Limit values and diagnostic thresholds
- defaults.py: Default paths and resource tables for settings
"""

from talosdeck.constants.enums import (
    CheckStatus,
    ErrorKind,
    LoadPhase,
    PlanState,
    SafetyStatus,
    SourceTier,
)
from talosdeck.constants.limits import (
    MAX_AUTO_RETRIES,
    MAX_LOG_ENTRIES,
    SOURCE_BUFFER_CAP,
)
from talosdeck.constants.timeouts import (
    CLIENT_CALL_TIMEOUT,
    MEMBER_FRESHNESS_WINDOW,
)
from talosdeck.constants.values import APP_TITLE

__all__ = [
    # Application
    "APP_TITLE",
    # Timeouts
    "CLIENT_CALL_TIMEOUT",
    # Limits
    "MAX_AUTO_RETRIES",
    "MAX_LOG_ENTRIES",
    "MEMBER_FRESHNESS_WINDOW",
    "SOURCE_BUFFER_CAP",
    # Enums
    "CheckStatus",
    "ErrorKind",
    "LoadPhase",
    "PlanState",
    "SafetyStatus",
    "SourceTier",
]
