"""Unit tests for the log line parser."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from talosdeck.constants.enums import LogLevel
from talosdeck.controllers.logs.parser import (
    clean_message,
    infer_level,
    normalize_log_line,
    parse_log_line,
)
from talosdeck.models.logs.log_line import LogLine


@pytest.mark.unit
@pytest.mark.fast
class TestInferLevel:
    """Tests for level inference."""

    @pytest.mark.parametrize(
        ("text", "level"),
        [
            ("error syncing pod", LogLevel.ERROR),
            ("panic: runtime error", LogLevel.ERROR),
            ("warning: slow disk", LogLevel.WARN),
            ("[INFO] started", LogLevel.INFO),
            ("trace: entering loop", LogLevel.DEBUG),
            ("service started", LogLevel.UNKNOWN),
        ],
    )
    def test_levels(self, text: str, level: LogLevel) -> None:
        """Test keyword based level inference."""
        assert infer_level(text) == level

    def test_error_wins_over_warning(self) -> None:
        """Test error keywords take precedence."""
        assert infer_level("warning: error while reading") == LogLevel.ERROR

    def test_word_boundaries(self) -> None:
        """Test substrings inside other words do not match."""
        assert infer_level("terrain information") == LogLevel.UNKNOWN


@pytest.mark.unit
@pytest.mark.fast
class TestParseLogLine:
    """Tests for parse_log_line."""

    def test_leading_timestamp_is_parsed(self) -> None:
        """Test a leading timestamp becomes the sort key."""
        line = parse_log_line("2024-01-15T10:30:45Z [INFO] service started", "machined", "cp1")
        assert line.timestamp == datetime(2024, 1, 15, 10, 30, 45, tzinfo=timezone.utc)
        assert line.level == LogLevel.INFO
        assert line.message == "service started"
        assert line.service == "machined"
        assert line.node == "cp1"

    def test_no_timestamp(self) -> None:
        """Test lines without a timestamp keep timestamp None."""
        line = parse_log_line("no timestamp here, error: disk full", "etcd")
        assert line.timestamp is None
        assert line.level == LogLevel.ERROR
        assert line.message == "no timestamp here, error: disk full"

    def test_component_prefix_stripped(self) -> None:
        """Test a short component prefix and level tag are removed."""
        assert clean_message("etcd: WARN slow request") == "slow request"


@pytest.mark.unit
@pytest.mark.fast
class TestNormalizeLogLine:
    """Tests for normalize_log_line."""

    def test_complete_line_unchanged(self) -> None:
        """Test a line with timestamp and level is returned as is."""
        line = LogLine(
            timestamp=datetime(2024, 1, 15, tzinfo=timezone.utc),
            service="etcd",
            level=LogLevel.INFO,
            message="etcd: WARN kept verbatim",
        )
        assert normalize_log_line(line) is line

    def test_missing_timestamp_parsed_from_text(self) -> None:
        """Test the raw text supplies timestamp, level and message."""
        line = LogLine(
            timestamp=None,
            service="machined",
            node="cp1",
            message="2024-01-15T10:30:45Z [ERROR] mount failed",
        )
        normalized = normalize_log_line(line)
        assert normalized.timestamp == datetime(2024, 1, 15, 10, 30, 45, tzinfo=timezone.utc)
        assert normalized.level == LogLevel.ERROR
        assert normalized.message == "mount failed"
        assert normalized.node == "cp1"

    def test_known_level_is_kept(self) -> None:
        """Test an explicit level is not replaced by the inferred one."""
        line = LogLine(timestamp=None, service="apid", level=LogLevel.DEBUG, message="error budget ok")
        assert normalize_log_line(line).level == LogLevel.DEBUG

    def test_unknown_level_inferred(self) -> None:
        """Test a timestamped line without a level gets one from its text."""
        stamp = datetime(2024, 1, 15, tzinfo=timezone.utc)
        line = LogLine(timestamp=stamp, service="kubelet", message="kubelet: warning eviction soon")
        normalized = normalize_log_line(line)
        assert normalized.timestamp == stamp
        assert normalized.level == LogLevel.WARN
        assert normalized.message == "warning eviction soon"
