"""Records exchanged with the client boundary."""

from talosdeck.models.core.boundary import KubeResource, MemberInfo, Metric, OperationOutcome

__all__ = ["KubeResource", "MemberInfo", "Metric", "OperationOutcome"]
