"""State models: async-loaded entity state, errors and settings."""

from talosdeck.models.state.app_settings import (
    ConfigError,
    ConfigLoadError,
    TalosDeckSettings,
    load_settings,
)
from talosdeck.models.state.async_state import AsyncSnapshot, AsyncState, utc_now
from talosdeck.models.state.error_info import ErrorInfo

__all__ = [
    "AsyncSnapshot",
    "AsyncState",
    "ConfigError",
    "ConfigLoadError",
    "ErrorInfo",
    "TalosDeckSettings",
    "load_settings",
    "utc_now",
]
