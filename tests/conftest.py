#tests\conftest.py

"""Pytest configuration and fixtures."""

import pytest
from datetime import datetime, timezone
from typing import Dict, Optional

from kube_balance.config import DEGRADED_ANNOTATION, RebalancerConfig
from kube_balance.core.events import InMemoryEventRecorder
from kube_balance.core.models import (
    ContainerResources,
    DisruptionBudget,
    LabelSelector,
    Node,
    Owner,
    OwnerKind,
    OwnerReference,
    Pod,
    PodPhase,
    WorkloadProfile,
)
from kube_balance.infrastructure.memory.repository import InMemoryClusterRepository
from kube_balance.profiles.store import ProfileStore
from kube_balance.rebalancer.cycle import PodRebalancer
from kube_balance.rebalancer.ranking import WORKLOAD_TYPE_LABEL


NOW = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)


# ============================================
# BUILDERS
# ============================================

def guaranteed(cpu="500m", memory="256Mi"):
    """Container whose requests equal its limits."""
    values = {"cpu": cpu, "memory": memory}
    return ContainerResources(name="app", requests=dict(values), limits=dict(values))


def burstable(cpu="250m", memory="128Mi"):
    """Container with requests but no limits."""
    return ContainerResources(name="app", requests={"cpu": cpu, "memory": memory})


def best_effort():
    """Container without requests or limits."""
    return ContainerResources(name="app")


def make_profile(name, priority=0, **kwargs):
    return WorkloadProfile(name=name, eviction_priority=priority, **kwargs)


def make_pod(
    name,
    namespace="default",
    node="node-1",
    workload_type: Optional[str] = None,
    containers=None,
    labels: Optional[Dict[str, str]] = None,
    owner: Optional[Owner] = None,
    phase=PodPhase.RUNNING,
):
    pod_labels = dict(labels or {})
    if workload_type is not None:
        pod_labels[WORKLOAD_TYPE_LABEL] = workload_type

    refs = []
    if owner is not None:
        refs.append(OwnerReference(kind=owner.kind.value, name=owner.name, controller=True))

    return Pod(
        name=name,
        namespace=namespace,
        node_name=node,
        phase=phase,
        containers=containers if containers is not None else [guaranteed()],
        labels=pod_labels,
        owner_references=refs,
    )


def make_owner(name, kind=OwnerKind.DEPLOYMENT, namespace="default", annotations=None, parent=None):
    refs = []
    if parent is not None:
        refs.append(OwnerReference(kind=parent.kind.value, name=parent.name, controller=True))
    return Owner(
        kind=kind,
        name=name,
        namespace=namespace,
        annotations=dict(annotations or {}),
        owner_references=refs,
    )


def make_node(name="node-1", degraded=False):
    annotations = {DEGRADED_ANNOTATION: "true"} if degraded else {}
    return Node(name=name, annotations=annotations)


def make_budget(name, namespace="default", match_labels=None, disruptions_allowed=0, selector=None):
    if selector is None and match_labels is not None:
        selector = LabelSelector(match_labels=dict(match_labels))
    return DisruptionBudget(
        name=name,
        namespace=namespace,
        selector=selector,
        disruptions_allowed=disruptions_allowed,
    )


# ============================================
# FIXTURES
# ============================================

@pytest.fixture
def now():
    """Fixed check time."""
    return NOW


@pytest.fixture
def repo():
    """Empty in-memory cluster."""
    return InMemoryClusterRepository()


@pytest.fixture
def recorder():
    """Event recorder that keeps events for assertions."""
    return InMemoryEventRecorder()


@pytest.fixture
def store():
    """Empty profile store."""
    return ProfileStore()


@pytest.fixture
def make_rebalancer(repo, store, recorder, now):
    """Factory for a rebalancer wired to the in-memory fixtures."""
    def _make(**overrides):
        config = RebalancerConfig(**overrides)
        return PodRebalancer(
            repository=repo,
            profiles=store,
            recorder=recorder,
            config=config,
            clock=lambda: now,
        )
    return _make


@pytest.fixture
def rebalancer(make_rebalancer):
    """Rebalancer with default configuration."""
    return make_rebalancer()
