"""Event models for rebalancer decisions."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from kube_balance.core.models import Node, Owner, Pod


EVENT_NORMAL = "Normal"
EVENT_WARNING = "Warning"


@dataclass(frozen=True)
class InvolvedObject:
    """Object an event is attached to."""

    kind: str
    name: str
    namespace: Optional[str] = None
    api_version: str = "v1"
    uid: Optional[str] = None

    @staticmethod
    def for_node(node: Node) -> "InvolvedObject":
        return InvolvedObject(kind="Node", name=node.name, uid=node.uid)

    @staticmethod
    def for_pod(pod: Pod) -> "InvolvedObject":
        return InvolvedObject(
            kind="Pod",
            name=pod.name,
            namespace=pod.namespace,
            uid=pod.uid,
        )

    @staticmethod
    def for_owner(owner: Owner) -> "InvolvedObject":
        return InvolvedObject(
            kind=owner.kind.value,
            name=owner.name,
            namespace=owner.namespace,
            api_version="apps/v1",
            uid=owner.uid,
        )


@dataclass
class RebalanceEvent:
    """Record of one significant rebalancer decision."""

    reason: str
    event_type: str
    involved: InvolvedObject
    message: str
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @staticmethod
    def node_degraded(node: Node):
        return RebalanceEvent(
            reason="NodeDegraded",
            event_type=EVENT_NORMAL,
            involved=InvolvedObject.for_node(node),
            message=f"Node {node.name} marked as degraded",
        )

    @staticmethod
    def eviction_skipped(pod: Pod, owner: Owner, cooldown_until: str):
        return RebalanceEvent(
            reason="EvictionSkipped",
            event_type=EVENT_NORMAL,
            involved=InvolvedObject.for_pod(pod),
            message=(
                f"Pod {pod.name} skipped due to owner {owner.name} "
                f"being in cooldown until {cooldown_until}"
            ),
        )

    @staticmethod
    def pdb_violation(pod: Pod, reason: str):
        return RebalanceEvent(
            reason="PDBViolation",
            event_type=EVENT_NORMAL,
            involved=InvolvedObject.for_pod(pod),
            message=f"Pod {pod.name} cannot be evicted due to PDB violation: {reason}",
        )

    @staticmethod
    def pdb_check_failed(pod: Pod, error: str):
        return RebalanceEvent(
            reason="PDBViolation",
            event_type=EVENT_WARNING,
            involved=InvolvedObject.for_pod(pod),
            message=f"Pod {pod.name} not evicted, PDB check failed: {error}",
        )

    @staticmethod
    def pod_evicted(pod: Pod, node_name: str):
        return RebalanceEvent(
            reason="PodEvicted",
            event_type=EVENT_NORMAL,
            involved=InvolvedObject.for_pod(pod),
            message=f"Pod {pod.name} evicted from degraded node {node_name}",
        )

    @staticmethod
    def eviction_rate_limited(pod: Pod):
        return RebalanceEvent(
            reason="EvictionRateLimited",
            event_type=EVENT_WARNING,
            involved=InvolvedObject.for_pod(pod),
            message=f"Eviction of pod {pod.name} rate limited by K8s API server",
        )

    @staticmethod
    def eviction_failed(pod: Pod, error: str):
        return RebalanceEvent(
            reason="EvictionFailed",
            event_type=EVENT_WARNING,
            involved=InvolvedObject.for_pod(pod),
            message=f"Failed to evict pod {pod.name}: {error}",
        )

    @staticmethod
    def cooldown_set(owner: Owner, cooldown_until: str):
        return RebalanceEvent(
            reason="CooldownSet",
            event_type=EVENT_NORMAL,
            involved=InvolvedObject.for_owner(owner),
            message=f"Cooldown set on owner {owner.name} until {cooldown_until}",
        )

    @staticmethod
    def cooldown_failed(owner: Owner, error: str):
        return RebalanceEvent(
            reason="CooldownAnnotationFailed",
            event_type=EVENT_WARNING,
            involved=InvolvedObject.for_owner(owner),
            message=f"Failed to add cooldown annotation to owner {owner.name}: {error}",
        )
