"""Base controller classes."""

from talosdeck.controllers.base.base_controller import (
    AsyncControllerMixin,
    BaseController,
)

__all__ = ["AsyncControllerMixin", "BaseController"]
