"""User-facing error model."""

from pydantic import BaseModel, ConfigDict

from talosdeck.constants.enums import ErrorKind


class ErrorInfo(BaseModel):
    """Typed error category plus message, safe to show in the UI."""

    model_config = ConfigDict(frozen=True)

    kind: ErrorKind
    message: str
    source: str | None = None

    @property
    def label(self) -> str:
        return self.kind.label

    def describe(self) -> str:
        """Single-line description used in error banners."""
        prefix = f"{self.source}: " if self.source else ""
        return f"{prefix}{self.label} - {self.message}"
