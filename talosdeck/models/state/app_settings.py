"""Application settings model.

``TalosDeckSettings`` is built once at process start and passed by reference
to every component that needs a threshold, timeout or resource table. It is
frozen so no component can change a global mid-run.
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from talosdeck.constants import defaults, limits, timeouts

logger = logging.getLogger(__name__)


class TalosDeckSettings(BaseModel):
    """Immutable runtime configuration with validation."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    # Timeouts (seconds)
    client_call_timeout: float = timeouts.CLIENT_CALL_TIMEOUT
    diagnostics_refresh_timeout: float = timeouts.DIAGNOSTICS_REFRESH_TIMEOUT
    membership_fetch_timeout: float = timeouts.MEMBERSHIP_FETCH_TIMEOUT
    operation_step_timeout: float = timeouts.OPERATION_STEP_TIMEOUT

    # Refresh intervals (seconds)
    diagnostics_refresh_interval: float = timeouts.DIAGNOSTICS_REFRESH_INTERVAL
    quorum_refresh_interval: float = timeouts.QUORUM_REFRESH_INTERVAL
    log_poll_interval: float = timeouts.LOG_POLL_INTERVAL

    # Freshness windows (seconds)
    member_freshness_window: float = timeouts.MEMBER_FRESHNESS_WINDOW
    log_freshness_window: float = timeouts.LOG_FRESHNESS_WINDOW

    # Retry backoff
    max_auto_retries: int = limits.MAX_AUTO_RETRIES
    retry_backoff_base: float = timeouts.RETRY_BACKOFF_BASE
    retry_backoff_max: float = timeouts.RETRY_BACKOFF_MAX

    # Log aggregation
    max_log_entries: int = limits.MAX_LOG_ENTRIES
    source_buffer_cap: int = limits.SOURCE_BUFFER_CAP

    # Diagnostic thresholds
    memory_warn_pct: float = limits.MEMORY_WARN_PCT
    memory_fail_pct: float = limits.MEMORY_FAIL_PCT
    load_warn_per_cpu: float = limits.LOAD_WARN_PER_CPU
    load_fail_per_cpu: float = limits.LOAD_FAIL_PER_CPU
    cert_warn_days: int = limits.CERT_WARN_DAYS
    cert_fail_days: int = limits.CERT_FAIL_DAYS
    pod_restart_warn: int = limits.POD_RESTART_WARN

    # Resource tables
    fabric_pod_prefixes: dict[str, tuple[str, ...]] = Field(
        default_factory=lambda: dict(defaults.FABRIC_POD_PREFIXES)
    )
    fabric_file_evidence: dict[str, tuple[str, ...]] = Field(
        default_factory=lambda: dict(defaults.FABRIC_FILE_EVIDENCE)
    )
    addon_crds: dict[str, tuple[str, ...]] = Field(
        default_factory=lambda: dict(defaults.ADDON_CRDS)
    )
    addon_namespaces: dict[str, str] = Field(
        default_factory=lambda: dict(defaults.ADDON_NAMESPACES)
    )

    @field_validator(
        "diagnostics_refresh_interval",
        "quorum_refresh_interval",
        "log_poll_interval",
    )
    @classmethod
    def _interval_floor(cls, value: float) -> float:
        return max(limits.REFRESH_INTERVAL_MIN, value)

    @field_validator("source_buffer_cap", "max_log_entries")
    @classmethod
    def _positive_cap(cls, value: int) -> int:
        return max(limits.SOURCE_BUFFER_CAP_MIN, value)

    @field_validator("max_auto_retries")
    @classmethod
    def _non_negative(cls, value: int) -> int:
        return max(0, value)


class ConfigError(Exception):
    """Base exception for configuration errors."""


class ConfigLoadError(ConfigError):
    """Raised when settings fail to load."""


def load_settings(path: str | Path | None = None) -> TalosDeckSettings:
    """Load settings from a YAML file, falling back to defaults.

    A missing ``path`` (None) yields the defaults. A path that cannot be read,
    parsed or validated raises ``ConfigLoadError``.
    """
    if path is None:
        return TalosDeckSettings()

    settings_path = Path(path)
    try:
        raw = yaml.safe_load(settings_path.read_text(encoding="utf-8")) or {}
    except OSError as exc:
        raise ConfigLoadError(f"Cannot read settings file {settings_path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigLoadError(f"Invalid YAML in {settings_path}: {exc}") from exc

    if not isinstance(raw, dict):
        raise ConfigLoadError(f"Settings file {settings_path} must contain a mapping")

    try:
        settings = TalosDeckSettings.model_validate(raw)
    except ValidationError as exc:
        raise ConfigLoadError(f"Invalid settings in {settings_path}: {exc}") from exc

    logger.info("Loaded settings from %s", settings_path)
    return settings


__all__ = [
    "ConfigError",
    "ConfigLoadError",
    "TalosDeckSettings",
    "load_settings",
]
