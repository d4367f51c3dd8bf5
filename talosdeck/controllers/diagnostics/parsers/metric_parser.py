"""Metric parser - decodes control-plane metric payloads and procfs text."""

from __future__ import annotations

import logging
from contextlib import suppress

from talosdeck.models.core.boundary import Metric
from talosdeck.models.diagnostics.context import (
    CertificateInfo,
    LoadAverage,
    MemoryInfo,
    ServiceStatus,
)
from talosdeck.utils.timestamps import parse_timestamp

logger = logging.getLogger(__name__)


class MetricParser:
    """Parses ``Metric.values`` payloads into context records.

    Each parser returns None when the payload does not have the expected
    shape, so the caller can record the source as unavailable.
    """

    _KB = 1024

    @classmethod
    def parse_meminfo(cls, text: str) -> MemoryInfo | None:
        """Parse ``/proc/meminfo`` content."""
        fields: dict[str, int] = {}
        for line in text.splitlines():
            name, _, rest = line.partition(":")
            parts = rest.split()
            if not parts:
                continue
            with suppress(ValueError):
                value = int(parts[0])
                if len(parts) > 1 and parts[1].lower() == "kb":
                    value *= cls._KB
                fields[name.strip()] = value

        total = fields.get("MemTotal")
        available = fields.get("MemAvailable")
        if available is None and total is not None:
            # Kernels without MemAvailable: approximate from free + caches
            free_parts = ("MemFree", "Buffers", "Cached")
            if all(part in fields for part in free_parts):
                available = sum(fields[part] for part in free_parts)
        if total is None or available is None:
            return None
        return MemoryInfo(total_bytes=total, available_bytes=available)

    @staticmethod
    def parse_memory(metric: Metric) -> MemoryInfo | None:
        values = metric.values
        with suppress(KeyError, TypeError, ValueError):
            return MemoryInfo(
                total_bytes=int(values["mem_total"]),
                available_bytes=int(values["mem_available"]),
            )
        return None

    @staticmethod
    def parse_load_avg(metric: Metric) -> LoadAverage | None:
        values = metric.values
        with suppress(KeyError, TypeError, ValueError):
            return LoadAverage(
                load1=float(values["load1"]),
                load5=float(values["load5"]),
                load15=float(values["load15"]),
            )
        return None

    @staticmethod
    def parse_cpu_count(metric: Metric) -> int | None:
        values = metric.values
        cpus = values.get("cpus")
        if isinstance(cpus, list):
            return len(cpus) or None
        with suppress(KeyError, TypeError, ValueError):
            count = int(values["cpu_count"])
            return count if count > 0 else None
        return None

    @staticmethod
    def parse_services(metric: Metric) -> tuple[ServiceStatus, ...] | None:
        raw = metric.values.get("services")
        if not isinstance(raw, list):
            return None
        services: list[ServiceStatus] = []
        for entry in raw:
            if not isinstance(entry, dict) or not entry.get("id"):
                logger.debug("Skipping malformed service entry: %r", entry)
                continue
            health = entry.get("health") or {}
            healthy = health.get("healthy") if isinstance(health, dict) else None
            services.append(
                ServiceStatus(
                    service_id=str(entry["id"]),
                    state=str(entry.get("state", "Unknown")),
                    healthy=healthy if isinstance(healthy, bool) else None,
                    message=str(health.get("last_message", "")) if isinstance(health, dict) else "",
                )
            )
        return tuple(services)

    @staticmethod
    def parse_platform(metric: Metric) -> str:
        return str(metric.values.get("platform", ""))

    @staticmethod
    def parse_certificates(metric: Metric) -> tuple[CertificateInfo, ...] | None:
        raw = metric.values.get("certificates")
        if not isinstance(raw, list):
            return None
        certificates: list[CertificateInfo] = []
        for entry in raw:
            if not isinstance(entry, dict):
                continue
            not_after = parse_timestamp(entry.get("not_after"))
            if not_after is None:
                logger.debug("Skipping certificate without expiry: %r", entry)
                continue
            certificates.append(
                CertificateInfo(name=str(entry.get("name", "certificate")), not_after=not_after)
            )
        return tuple(certificates)


__all__ = ["MetricParser"]
