"""Diagnostic check engine.

Checks are pure functions over a ``DiagnosticContext``. The engine owns the
policy around them:

- a check's primary evidence tier is declared at registration and may not be
  ``SourceTier.LOG``; logs only corroborate;
- a check that cannot find its evidence raises ``EvidenceUnavailable`` and is
  reported as ``UNKNOWN``;
- any other exception is logged and reported as ``UNKNOWN`` for that check
  only, so one broken check never fails a refresh cycle.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass

from talosdeck.constants.enums import CheckCategory, CheckStatus, SourceTier
from talosdeck.models.diagnostics.check import DiagnosticCheck
from talosdeck.models.diagnostics.context import DiagnosticContext, EvidenceUnavailable

logger = logging.getLogger(__name__)

CheckFunc = Callable[[DiagnosticContext], DiagnosticCheck]


@dataclass(frozen=True)
class CheckSpec:
    """Registration record for one check."""

    id: str
    label: str
    tier: SourceTier
    func: CheckFunc
    category: CheckCategory = CheckCategory.SYSTEM
    applies: Callable[[DiagnosticContext], bool] | None = None

    def __post_init__(self) -> None:
        if self.tier == SourceTier.LOG:
            raise ValueError(
                f"Check '{self.id}' cannot use log content as its primary evidence"
            )

    def applies_to(self, ctx: DiagnosticContext) -> bool:
        return self.applies is None or self.applies(ctx)


def run_check(spec: CheckSpec, ctx: DiagnosticContext) -> DiagnosticCheck:
    """Run one check and apply the engine's degradation rules."""
    try:
        result = spec.func(ctx)
    except EvidenceUnavailable as exc:
        logger.debug("Check %s has no evidence: %s", spec.id, exc)
        detail = exc.reason.describe() if exc.reason else f"No data from {exc.source}"
        return DiagnosticCheck.unknown(spec.id, spec.label, detail).model_copy(
            update={"tier": spec.tier}
        )
    except Exception as exc:
        logger.exception("Check %s raised", spec.id)
        return DiagnosticCheck.unknown(
            spec.id, spec.label, f"Check error: {type(exc).__name__}: {exc}"
        ).model_copy(update={"tier": spec.tier})

    if not isinstance(result, DiagnosticCheck) or not isinstance(result.status, CheckStatus):
        logger.warning("Check %s returned an invalid result: %r", spec.id, result)
        return DiagnosticCheck.unknown(spec.id, spec.label, "Invalid check result").model_copy(
            update={"tier": spec.tier}
        )

    if result.tier is None:
        result = result.model_copy(update={"tier": spec.tier})
    return result


class CheckEngine:
    """Ordered registry of checks run against one context at a time."""

    def __init__(self, specs: Iterable[CheckSpec] = ()) -> None:
        self._specs: dict[str, CheckSpec] = {}
        for spec in specs:
            self.register(spec)

    @property
    def specs(self) -> tuple[CheckSpec, ...]:
        return tuple(self._specs.values())

    def register(self, spec: CheckSpec) -> None:
        """Add a check. Duplicate ids are rejected."""
        if spec.id in self._specs:
            raise ValueError(f"Check '{spec.id}' is already registered")
        self._specs[spec.id] = spec

    def run_all(self, ctx: DiagnosticContext) -> list[DiagnosticCheck]:
        return [run_check(spec, ctx) for spec in self._specs.values() if spec.applies_to(ctx)]

    def run_by_category(
        self, ctx: DiagnosticContext
    ) -> dict[CheckCategory, list[DiagnosticCheck]]:
        """Run every check, grouped by category in registration order."""
        grouped: dict[CheckCategory, list[DiagnosticCheck]] = {}
        for spec in self._specs.values():
            if not spec.applies_to(ctx):
                continue
            grouped.setdefault(spec.category, []).append(run_check(spec, ctx))
        return grouped


__all__ = [
    "CheckEngine",
    "CheckFunc",
    "CheckSpec",
    "run_check",
]
