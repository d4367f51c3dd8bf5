"""Logs screen presenter - filter parsing and row formatting."""

from __future__ import annotations

from collections.abc import Iterable

from rich.text import Text

from talosdeck.constants.enums import LoadPhase, LogLevel
from talosdeck.controllers.logs.aggregator import LogFilter
from talosdeck.models.logs.log_line import TaggedLogLine
from talosdeck.models.state.async_state import AsyncSnapshot
from talosdeck.screens.logs.config import REGEX_DELIMITER, TIME_FORMAT

LEVEL_STYLES: dict[LogLevel, str] = {
    LogLevel.ERROR: "red",
    LogLevel.WARN: "yellow",
    LogLevel.INFO: "",
    LogLevel.DEBUG: "dim",
    LogLevel.UNKNOWN: "",
}

PHASE_STYLES: dict[LoadPhase, str] = {
    LoadPhase.IDLE: "dim",
    LoadPhase.LOADING: "cyan",
    LoadPhase.LOADED: "green",
    LoadPhase.STALE: "yellow",
    LoadPhase.FAILED: "red",
}

LogRow = tuple[Text, Text, Text, Text]


def parse_filter_query(query: str, sources: Iterable[str] | None = None) -> LogFilter:
    """Build a ``LogFilter`` from the filter box.

    ``/pattern/`` is a regular expression, anything else a substring. An
    invalid pattern raises ``ValueError``.
    """
    query = query.strip()
    selected = frozenset(sources) if sources is not None else None
    if len(query) > 1 and query.startswith(REGEX_DELIMITER) and query.endswith(REGEX_DELIMITER):
        return LogFilter(text=query[1:-1], regex=True, sources=selected)
    return LogFilter(text=query, sources=selected)


class LogsPresenter:
    """Formats merged log lines and per-source status for LogsScreen."""

    def row(self, line: TaggedLogLine) -> LogRow:
        if line.is_drop_marker:
            style = "bold yellow"
            return (
                Text(line.timestamp.strftime(TIME_FORMAT), style="dim"),
                Text(line.source, style=style),
                Text("", style=style),
                Text(f"--- {line.message} ---", style=style),
            )
        style = LEVEL_STYLES[line.level]
        level = line.level.value.upper() if line.level != LogLevel.UNKNOWN else ""
        return (
            Text(line.timestamp.strftime(TIME_FORMAT), style="dim"),
            Text(line.source, style="cyan"),
            Text(level, style=style),
            Text(line.message, style=style),
        )

    def rows(self, lines: Iterable[TaggedLogLine], limit: int | None = None) -> list[LogRow]:
        """Rows for the newest ``limit`` lines, oldest first."""
        rows = [self.row(line) for line in lines]
        if limit is not None and len(rows) > limit:
            rows = rows[-limit:]
        return rows

    def source_status(self, source: str, snapshot: AsyncSnapshot[int], dropped: int = 0) -> Text:
        text = Text(f"{source} ", style="bold")
        text.append(snapshot.phase.value, style=PHASE_STYLES[snapshot.phase])
        if snapshot.data is not None:
            text.append(f" {snapshot.data} lines")
        if dropped:
            text.append(f" {dropped} dropped", style="yellow")
        if snapshot.is_failed and snapshot.error is not None:
            text.append(f" ({snapshot.error.label})", style="red")
        return text

    def sources_line(self, statuses: Iterable[Text]) -> Text:
        return Text("  |  ").join(statuses)


__all__ = ["LEVEL_STYLES", "LogsPresenter", "parse_filter_query"]
