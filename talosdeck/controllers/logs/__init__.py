"""Log domain: line parsing and multi-stream aggregation."""

from talosdeck.controllers.logs.aggregator import LogAggregator, LogFilter, SourceBuffer
from talosdeck.controllers.logs.parser import (
    clean_message,
    infer_level,
    normalize_log_line,
    parse_log_line,
)

__all__ = [
    "LogAggregator",
    "LogFilter",
    "SourceBuffer",
    "clean_message",
    "infer_level",
    "normalize_log_line",
    "parse_log_line",
]
