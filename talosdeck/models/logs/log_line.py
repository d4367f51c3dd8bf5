"""Log line models."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict

from talosdeck.constants.enums import LogLevel
from talosdeck.constants.values import DROP_MARKER_TEMPLATE


class LogLine(BaseModel):
    """One log line from a single service on a single node."""

    model_config = ConfigDict(frozen=True)

    timestamp: datetime | None
    service: str
    node: str = ""
    level: LogLevel = LogLevel.UNKNOWN
    message: str


class TaggedLogLine(BaseModel):
    """A merged-view line tagged with the source it came from.

    A line with ``dropped > 0`` is a drop marker: it stands in for lines the
    source buffer discarded because the consumer fell behind.
    """

    model_config = ConfigDict(frozen=True)

    source: str
    timestamp: datetime
    level: LogLevel = LogLevel.UNKNOWN
    message: str
    dropped: int = 0

    @property
    def is_drop_marker(self) -> bool:
        return self.dropped > 0

    @classmethod
    def drop_marker(cls, source: str, timestamp: datetime, count: int) -> "TaggedLogLine":
        return cls(
            source=source,
            timestamp=timestamp,
            level=LogLevel.WARN,
            message=DROP_MARKER_TEMPLATE.format(count=count),
            dropped=count,
        )
