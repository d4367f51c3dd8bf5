"""Core diagnostic checks."""

from talosdeck.controllers.diagnostics.checks.core import CORE_CHECKS

__all__ = ["CORE_CHECKS"]
