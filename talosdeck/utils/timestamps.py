"""Timestamp parsing helpers shared by metric and log parsers."""

from __future__ import annotations

import re
from contextlib import suppress
from datetime import datetime, timezone
from typing import Any

_FRACTION = re.compile(r"\.(\d{7,})")
_COMPACT_OFFSET = re.compile(r"([+-]\d{2})(\d{2})$")


def ensure_aware(value: datetime) -> datetime:
    """Treat naive datetimes as UTC."""
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def parse_timestamp(value: Any) -> datetime | None:
    """Parse an ISO-8601 timestamp into an aware datetime.

    Accepts a trailing ``Z``, compact ``+HHMM`` offsets and nanosecond
    fractions (truncated to microseconds).
    """
    if isinstance(value, datetime):
        return ensure_aware(value)
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip().replace("Z", "+00:00")
    text = _FRACTION.sub(lambda m: "." + m.group(1)[:6], text)
    text = _COMPACT_OFFSET.sub(r"\1:\2", text)
    with suppress(ValueError):
        return ensure_aware(datetime.fromisoformat(text))
    return None


__all__ = ["ensure_aware", "parse_timestamp"]
