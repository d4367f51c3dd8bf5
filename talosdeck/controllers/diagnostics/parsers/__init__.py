"""Parsers for diagnostics evidence."""

from talosdeck.controllers.diagnostics.parsers.metric_parser import MetricParser
from talosdeck.controllers.diagnostics.parsers.pod_parser import (
    PodParser,
    PodStatusInfo,
    pod_health_summary,
    rollup_pods,
)

__all__ = [
    "MetricParser",
    "PodParser",
    "PodStatusInfo",
    "pod_health_summary",
    "rollup_pods",
]
