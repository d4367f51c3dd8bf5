"""Utility helpers for TalosDeck."""

from talosdeck.utils.timestamps import ensure_aware, parse_timestamp

__all__ = ["ensure_aware", "parse_timestamp"]
