"""Refresh tasks and snapshot publishing."""

from talosdeck.controllers.refresh.refresher import (
    EntityRefresher,
    RefreshScope,
    SnapshotCell,
    backoff_delay,
)

__all__ = ["EntityRefresher", "RefreshScope", "SnapshotCell", "backoff_delay"]
