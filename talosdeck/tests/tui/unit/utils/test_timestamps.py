"""Unit tests for timestamp helpers."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from talosdeck.utils.timestamps import ensure_aware, parse_timestamp


@pytest.mark.unit
@pytest.mark.fast
class TestParseTimestamp:
    """Tests for parse_timestamp."""

    def test_zulu_suffix(self) -> None:
        """Test a trailing Z is UTC."""
        assert parse_timestamp("2024-01-15T10:30:45Z") == datetime(
            2024, 1, 15, 10, 30, 45, tzinfo=timezone.utc
        )

    def test_nanosecond_fraction_truncated(self) -> None:
        """Test fractions longer than microseconds are truncated."""
        parsed = parse_timestamp("2024-01-15T10:30:45.123456789Z")
        assert parsed is not None
        assert parsed.microsecond == 123456

    def test_compact_offset(self) -> None:
        """Test +HHMM offsets are accepted."""
        parsed = parse_timestamp("2024-01-15T10:30:45+0200")
        assert parsed is not None
        assert parsed.utcoffset() == timedelta(hours=2)

    def test_naive_is_utc(self) -> None:
        """Test naive timestamps are treated as UTC."""
        parsed = parse_timestamp("2024-01-15 10:30:45")
        assert parsed is not None
        assert parsed.tzinfo is not None
        assert parsed.utcoffset() == timedelta(0)

    @pytest.mark.parametrize("value", [None, "", "   ", "not a date", 12345])
    def test_invalid_returns_none(self, value: object) -> None:
        """Test unparseable values return None."""
        assert parse_timestamp(value) is None

    def test_datetime_passthrough(self) -> None:
        """Test datetimes are returned aware."""
        naive = datetime(2024, 1, 1)
        assert parse_timestamp(naive) == naive.replace(tzinfo=timezone.utc)


@pytest.mark.unit
@pytest.mark.fast
class TestEnsureAware:
    """Tests for ensure_aware."""

    def test_keeps_existing_zone(self) -> None:
        """Test aware datetimes are unchanged."""
        value = datetime(2024, 1, 1, tzinfo=timezone(timedelta(hours=3)))
        assert ensure_aware(value) is value
