"""Logs screen configuration - column definitions and widget IDs."""

from __future__ import annotations

LOG_TABLE_COLUMNS: list[tuple[str, int]] = [
    ("Time", 12),
    ("Source", 18),
    ("Level", 7),
    ("Message", 90),
]

FILTER_INPUT_ID = "logs-filter"
SOURCES_ID = "logs-sources"
LOG_TABLE_ID = "logs-table"

# Filter queries wrapped in slashes are regular expressions: /pattern/
REGEX_DELIMITER = "/"

TIME_FORMAT = "%H:%M:%S"

RENDER_INTERVAL = 0.5
