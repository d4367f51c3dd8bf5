"""Regex patterns for log parsing."""

import re

# Leading ISO-8601 style timestamp: "2024-01-15T10:30:45.123Z", "2024-01-15 10:30:45+00:00"
LOG_TIMESTAMP_PATTERN = re.compile(
    r"^\s*(?P<ts>\d{4}-\d{2}-\d{2}[T ]\d{2}:\d{2}:\d{2}(?:\.\d+)?(?:Z|[+-]\d{2}:?\d{2})?)\s*"
)

# Short "component: " prefix stripped from messages
LOG_PREFIX_PATTERN = re.compile(r"^[\w.\-\[\]]{1,19}:\s+")

# Level tags at the start of a message ("[INFO]", "WARN", "level=error")
LOG_LEVEL_TAG_PATTERN = re.compile(
    r"^(?:\[(?:INFO|WARN|WARNING|ERROR|DEBUG)\]|(?:INFO|WARN|WARNING|ERROR|DEBUG|OK)\b)\s*"
)

__all__ = [
    "LOG_LEVEL_TAG_PATTERN",
    "LOG_PREFIX_PATTERN",
    "LOG_TIMESTAMP_PATTERN",
]
