"""Diagnostics screen configuration - column definitions and widget IDs."""

from __future__ import annotations

# =============================================================================
# Table Column Definitions: list[tuple[str, int]] = [(name, width), ...]
# =============================================================================

CHECK_TABLE_COLUMNS: list[tuple[str, int]] = [
    ("", 3),
    ("Check", 34),
    ("Result", 48),
    ("Source", 10),
]

PLAN_TABLE_COLUMNS: list[tuple[str, int]] = [
    ("Plan", 22),
    ("Operation", 10),
    ("State", 12),
    ("Progress", 10),
    ("Detail", 40),
]

# =============================================================================
# Widget IDs
# =============================================================================

SUMMARY_ID = "diagnostics-summary"
SAFETY_ID = "diagnostics-safety"
CHECK_TABLE_ID = "diagnostics-checks"
PLAN_TABLE_ID = "diagnostics-plans"

# =============================================================================
# Refresh
# =============================================================================

# Seconds between reads of the published snapshot cells.
RENDER_INTERVAL = 0.5
