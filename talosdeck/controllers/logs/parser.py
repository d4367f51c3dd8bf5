"""Log line parser - raw service output into ``LogLine`` records."""

from __future__ import annotations

import re

from talosdeck.constants.enums import LogLevel
from talosdeck.constants.patterns import (
    LOG_LEVEL_TAG_PATTERN,
    LOG_PREFIX_PATTERN,
    LOG_TIMESTAMP_PATTERN,
)
from talosdeck.models.logs.log_line import LogLine
from talosdeck.utils.timestamps import parse_timestamp

# Checked in order; the first match wins.
_LEVEL_KEYWORDS: tuple[tuple[LogLevel, re.Pattern[str]], ...] = (
    (LogLevel.ERROR, re.compile(r"\b(?:error|err|fatal|panic)\b", re.IGNORECASE)),
    (LogLevel.WARN, re.compile(r"\bwarn(?:ing)?\b", re.IGNORECASE)),
    (LogLevel.INFO, re.compile(r"\binfo\b", re.IGNORECASE)),
    (LogLevel.DEBUG, re.compile(r"\b(?:debug|trace)\b", re.IGNORECASE)),
)


def infer_level(text: str) -> LogLevel:
    for level, pattern in _LEVEL_KEYWORDS:
        if pattern.search(text):
            return level
    return LogLevel.UNKNOWN


def clean_message(text: str) -> str:
    """Strip a short component prefix and a leading level tag."""
    text = text.strip()
    text = LOG_PREFIX_PATTERN.sub("", text, count=1)
    return LOG_LEVEL_TAG_PATTERN.sub("", text, count=1).strip() or text


def parse_log_line(raw: str, service: str, node: str = "") -> LogLine:
    """Parse one raw line; a leading timestamp becomes the sort key."""
    line = raw.strip()
    timestamp = None
    rest = line
    match = LOG_TIMESTAMP_PATTERN.match(line)
    if match:
        timestamp = parse_timestamp(match.group("ts"))
        if timestamp is not None:
            rest = line[match.end():]
    return LogLine(
        timestamp=timestamp,
        service=service,
        node=node,
        level=infer_level(rest),
        message=clean_message(rest),
    )


def normalize_log_line(line: LogLine) -> LogLine:
    """Fill a missing timestamp or level by parsing the raw message."""
    if line.timestamp is not None and line.level != LogLevel.UNKNOWN:
        return line
    parsed = parse_log_line(line.message, line.service, line.node)
    return LogLine(
        timestamp=line.timestamp or parsed.timestamp,
        service=line.service,
        node=line.node,
        level=line.level if line.level != LogLevel.UNKNOWN else parsed.level,
        message=parsed.message,
    )


__all__ = ["clean_message", "infer_level", "normalize_log_line", "parse_log_line"]
