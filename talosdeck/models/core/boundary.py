"""Records exchanged with the external client boundary."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from talosdeck.constants.enums import OperationKind


class Metric(BaseModel):
    """One metric payload returned by ``get_metric(kind)``.

    ``values`` is the decoded payload; its shape depends on ``kind``
    (``memory``, ``load_avg``, ``cpu_info``, ``services``, ``version``,
    ``certificates``).
    """

    model_config = ConfigDict(frozen=True)

    kind: str
    node: str | None = None
    values: dict[str, Any] = Field(default_factory=dict)
    collected_at: datetime | None = None


class KubeResource(BaseModel):
    """Generic Kubernetes object returned by ``list_resources``."""

    model_config = ConfigDict(frozen=True)

    kind: str
    name: str
    namespace: str | None = None
    labels: dict[str, str] = Field(default_factory=dict)
    spec: dict[str, Any] = Field(default_factory=dict)
    status: dict[str, Any] = Field(default_factory=dict)


class MemberInfo(BaseModel):
    """One control-plane (etcd) member as reported by ``list_members``."""

    model_config = ConfigDict(frozen=True)

    member_id: str
    hostname: str
    is_leader: bool = False
    is_learner: bool = False
    last_seen: datetime | None = None


class OperationOutcome(BaseModel):
    """Result of ``apply_operation`` for one node."""

    model_config = ConfigDict(frozen=True)

    node: str
    kind: OperationKind
    success: bool
    message: str = ""
