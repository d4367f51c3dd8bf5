"""Screen mixins package for TalosDeck."""

from talosdeck.screens.mixins.worker_mixin import (
    LoadingOverlay,
    SnapshotPublished,
    WorkerMixin,
)

__all__ = ["LoadingOverlay", "SnapshotPublished", "WorkerMixin"]
