"""Core domain models (cluster snapshots and rebalancer results)."""

from dataclasses import dataclass, field
from datetime import timedelta
from enum import Enum
from typing import Dict, List, Optional, Tuple


# ============================================
# ENUMS
# ============================================

class QoSClass(Enum):
    """Pod quality-of-service class."""
    GUARANTEED = "Guaranteed"
    BURSTABLE = "Burstable"
    BEST_EFFORT = "BestEffort"


class PodPhase(Enum):
    """Pod lifecycle phase."""
    PENDING = "Pending"
    RUNNING = "Running"
    SUCCEEDED = "Succeeded"
    FAILED = "Failed"
    UNKNOWN = "Unknown"

    @classmethod
    def from_value(cls, value: Optional[str]) -> "PodPhase":
        for phase in cls:
            if phase.value == value:
                return phase
        return cls.UNKNOWN


class OwnerKind(Enum):
    """Controllers whose pods may be rebalanced."""
    DEPLOYMENT = "Deployment"
    STATEFUL_SET = "StatefulSet"
    REPLICA_SET = "ReplicaSet"

    @classmethod
    def parse(cls, kind: Optional[str]) -> Optional["OwnerKind"]:
        """Return the matching kind, or None for kinds we do not manage."""
        for owner_kind in cls:
            if owner_kind.value == kind:
                return owner_kind
        return None


class EvictionOutcome(Enum):
    """Classified result of an eviction request."""
    EVICTED = "EVICTED"
    RATE_LIMITED = "RATE_LIMITED"
    FAILED = "FAILED"


# ============================================
# WORKLOAD PROFILE
# ============================================

@dataclass(frozen=True)
class WorkloadProfile:
    """Cached copy of a WorkloadProfile custom resource."""
    name: str
    eviction_priority: int
    cpu_requests: Optional[str] = None
    memory_requests: Optional[str] = None
    resource_version: Optional[str] = None


# ============================================
# CLUSTER OBJECTS
# ============================================

@dataclass
class Node:
    name: str
    annotations: Dict[str, str] = field(default_factory=dict)
    labels: Dict[str, str] = field(default_factory=dict)
    uid: Optional[str] = None

    def has_annotation(self, key: str) -> bool:
        return key in self.annotations


@dataclass
class ContainerResources:
    """Requests/limits declared by one container.

    None means the map was not declared at all.
    """
    name: str
    requests: Optional[Dict[str, str]] = None
    limits: Optional[Dict[str, str]] = None


@dataclass(frozen=True)
class OwnerReference:
    kind: str
    name: str
    controller: bool = False
    api_version: str = ""
    uid: Optional[str] = None


def _controller_of(references: List[OwnerReference]) -> Optional[OwnerReference]:
    for ref in references:
        if ref.controller:
            return ref
    return None


@dataclass
class Pod:
    name: str
    namespace: str
    node_name: Optional[str] = None
    phase: PodPhase = PodPhase.RUNNING
    containers: List[ContainerResources] = field(default_factory=list)
    labels: Dict[str, str] = field(default_factory=dict)
    owner_references: List[OwnerReference] = field(default_factory=list)
    uid: Optional[str] = None

    @property
    def key(self) -> str:
        return f"{self.namespace}/{self.name}"

    def controller_reference(self) -> Optional[OwnerReference]:
        return _controller_of(self.owner_references)

    def is_active(self) -> bool:
        """Running or pending pods are eviction candidates."""
        return self.phase in (PodPhase.RUNNING, PodPhase.PENDING)


@dataclass
class Owner:
    """Controlling object of a pod. Carries the cooldown annotation."""
    kind: OwnerKind
    name: str
    namespace: str
    annotations: Dict[str, str] = field(default_factory=dict)
    owner_references: List[OwnerReference] = field(default_factory=list)
    uid: Optional[str] = None
    resource_version: Optional[str] = None

    @property
    def key(self) -> str:
        return f"{self.kind.value}/{self.namespace}/{self.name}"

    def controller_reference(self) -> Optional[OwnerReference]:
        return _controller_of(self.owner_references)


@dataclass(frozen=True)
class LabelSelectorRequirement:
    key: str
    operator: str
    values: Tuple[str, ...] = ()


@dataclass(frozen=True)
class LabelSelector:
    match_labels: Dict[str, str] = field(default_factory=dict)
    match_expressions: Tuple[LabelSelectorRequirement, ...] = ()


@dataclass
class DisruptionBudget:
    name: str
    namespace: str
    selector: Optional[LabelSelector]
    disruptions_allowed: int = 0


# ============================================
# RECONCILE RESULT
# ============================================

@dataclass(frozen=True)
class ReconcileResult:
    """Outcome of one rebalance cycle: when to run the next one."""
    requeue_after: timedelta
    evicted: Tuple[str, ...] = ()
    rate_limited: bool = False
    cancelled: bool = False
    error: Optional[str] = None
