"""Unit tests for BaseController and AsyncControllerMixin."""

from __future__ import annotations

from typing import Any

import pytest

from talosdeck.controllers.base import AsyncControllerMixin, BaseController


class _Controller(BaseController):
    async def check_connection(self) -> bool:
        return True

    async def fetch_all(self) -> dict[str, Any]:
        return {"value": 1}


@pytest.mark.unit
@pytest.mark.fast
class TestBaseController:
    """Tests for the controller base classes."""

    def test_abstract(self) -> None:
        """Test the base class cannot be instantiated directly."""
        with pytest.raises(TypeError):
            BaseController()  # type: ignore[abstract]

    def test_elapsed_without_timer(self) -> None:
        """Test elapsed time is zero before the timer starts."""
        assert AsyncControllerMixin()._elapsed_ms() == 0.0

    def test_elapsed_after_timer(self) -> None:
        """Test elapsed time is non-negative once started."""
        controller = _Controller()
        controller._start_timer()
        assert controller._elapsed_ms() >= 0.0

    @pytest.mark.asyncio
    async def test_subclass(self) -> None:
        """Test a concrete subclass exposes both operations."""
        controller = _Controller()
        assert await controller.check_connection() is True
        assert await controller.fetch_all() == {"value": 1}
