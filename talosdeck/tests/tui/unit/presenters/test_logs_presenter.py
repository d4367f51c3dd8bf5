"""Unit tests for LogsPresenter and filter parsing."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from talosdeck.constants.enums import ErrorKind, LoadPhase, LogLevel
from talosdeck.models.logs.log_line import TaggedLogLine
from talosdeck.models.state.async_state import AsyncSnapshot
from talosdeck.models.state.error_info import ErrorInfo
from talosdeck.screens.logs.presenter import LogsPresenter, parse_filter_query

T0 = datetime(2024, 1, 1, 12, 30, 15, tzinfo=timezone.utc)


def _line(message: str, level: LogLevel = LogLevel.INFO) -> TaggedLogLine:
    return TaggedLogLine(source="cp1/etcd", timestamp=T0, level=level, message=message)


@pytest.fixture
def presenter() -> LogsPresenter:
    return LogsPresenter()


@pytest.mark.unit
@pytest.mark.fast
class TestParseFilterQuery:
    """Tests for the filter box syntax."""

    def test_substring(self) -> None:
        """Test plain text is a substring filter."""
        log_filter = parse_filter_query("  timeout ")
        assert log_filter.text == "timeout"
        assert not log_filter.regex

    def test_regex(self) -> None:
        """Test slashes mark a regular expression."""
        log_filter = parse_filter_query("/lease .* expired/")
        assert log_filter.regex
        assert log_filter.text == "lease .* expired"

    def test_single_slash_is_text(self) -> None:
        """Test a lone slash is not an empty regex."""
        assert not parse_filter_query("/").regex

    def test_invalid_regex(self) -> None:
        """Test invalid patterns raise ValueError."""
        with pytest.raises(ValueError):
            parse_filter_query("/[unclosed/")

    def test_sources(self) -> None:
        """Test the source selection is carried into the filter."""
        log_filter = parse_filter_query("x", sources=["cp1/etcd"])
        assert log_filter.sources == frozenset({"cp1/etcd"})


@pytest.mark.unit
@pytest.mark.fast
class TestLogRows:
    """Tests for log table rows."""

    def test_row(self, presenter: LogsPresenter) -> None:
        """Test time, source, level and message columns."""
        row = presenter.row(_line("slow apply", LogLevel.WARN))
        assert [cell.plain for cell in row] == ["12:30:15", "cp1/etcd", "WRN", "slow apply"]

    def test_unknown_level_is_blank(self, presenter: LogsPresenter) -> None:
        """Test lines without a level leave the column empty."""
        assert presenter.row(_line("hello", LogLevel.UNKNOWN))[2].plain == ""

    def test_drop_marker(self, presenter: LogsPresenter) -> None:
        """Test drop markers are rendered as a banner row."""
        marker = TaggedLogLine.drop_marker("cp1/etcd", T0, 3)
        row = presenter.row(marker)
        assert row[3].plain == "--- 3 lines dropped ---"
        assert row[2].plain == ""

    def test_rows_limit(self, presenter: LogsPresenter) -> None:
        """Test only the newest rows are kept."""
        rows = presenter.rows([_line(f"m{i}") for i in range(5)], limit=2)
        assert [row[3].plain for row in rows] == ["m3", "m4"]


@pytest.mark.unit
@pytest.mark.fast
class TestSourceStatus:
    """Tests for per-source status text."""

    def test_loaded_with_drops(self, presenter: LogsPresenter) -> None:
        """Test line and drop counts are shown."""
        snapshot = AsyncSnapshot(
            phase=LoadPhase.LOADED, data=42, error=None, last_refreshed=T0, retry_count=0
        )
        text = presenter.source_status("cp1/etcd", snapshot, dropped=7)
        assert text.plain == "cp1/etcd loaded 42 lines 7 dropped"

    def test_failed(self, presenter: LogsPresenter) -> None:
        """Test a failed source shows the error label."""
        snapshot = AsyncSnapshot(
            phase=LoadPhase.FAILED,
            data=None,
            error=ErrorInfo(kind=ErrorKind.PERMISSION_DENIED, message="no"),
            last_refreshed=None,
            retry_count=1,
        )
        text = presenter.source_status("cp1/apid", snapshot)
        assert text.plain == "cp1/apid failed (Permission denied)"

    def test_sources_line(self, presenter: LogsPresenter) -> None:
        """Test statuses are joined with separators."""
        snapshot = AsyncSnapshot(
            phase=LoadPhase.IDLE, data=None, error=None, last_refreshed=None, retry_count=0
        )
        line = presenter.sources_line(
            [presenter.source_status("a", snapshot), presenter.source_status("b", snapshot)]
        )
        assert line.plain == "a idle  |  b idle"
