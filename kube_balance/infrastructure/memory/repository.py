# kube_balance/infrastructure/memory/repository.py

import copy
from collections import Counter
from threading import Lock
from typing import Dict, List, Optional, Tuple

from kube_balance.core.errors import (
    ClusterListError,
    EvictionError,
    OwnerLookupError,
    OwnerPatchError,
)
from kube_balance.core.models import DisruptionBudget, Node, Owner, OwnerKind, Pod
from kube_balance.core.repository import ClusterRepository

OwnerKey = Tuple[OwnerKind, str, str]


class InMemoryClusterRepository(ClusterRepository):
    """
    Cluster state held in dicts. Failures can be injected per call
    so every error path of the rebalancer can be exercised.
    """

    def __init__(self):
        self._lock = Lock()
        self._nodes: Dict[str, Node] = {}
        self._pods: Dict[str, Pod] = {}
        self._budgets: List[DisruptionBudget] = []
        self._owners: Dict[OwnerKey, Owner] = {}

        # failure injection
        self.list_nodes_error: Optional[Exception] = None
        self.list_pods_error: Optional[Exception] = None
        self.list_budgets_errors: Dict[str, Exception] = {}
        self.owner_errors: Dict[OwnerKey, Exception] = {}
        self.patch_errors: Dict[OwnerKey, Exception] = {}
        self.eviction_errors: Dict[str, EvictionError] = {}

        # observations
        self.calls: Counter = Counter()
        self.evicted: List[Tuple[str, int]] = []
        self.patches: List[Tuple[str, Dict[str, str]]] = []

    # -------------------------
    # SEEDING
    # -------------------------

    def add_node(self, node: Node) -> Node:
        with self._lock:
            self._nodes[node.name] = node
        return node

    def add_pod(self, pod: Pod) -> Pod:
        with self._lock:
            self._pods[pod.key] = pod
        return pod

    def add_budget(self, budget: DisruptionBudget) -> DisruptionBudget:
        with self._lock:
            self._budgets.append(budget)
        return budget

    def add_owner(self, owner: Owner) -> Owner:
        with self._lock:
            self._owners[(owner.kind, owner.namespace, owner.name)] = owner
        return owner

    def owner(self, kind: OwnerKind, namespace: str, name: str) -> Optional[Owner]:
        return self._owners.get((kind, namespace, name))

    # -------------------------
    # ClusterRepository
    # -------------------------

    def list_nodes(self) -> List[Node]:
        self.calls["list_nodes"] += 1
        if self.list_nodes_error is not None:
            raise ClusterListError(f"failed to list nodes: {self.list_nodes_error}")
        with self._lock:
            return [copy.deepcopy(n) for n in self._nodes.values()]

    def list_pods(self) -> List[Pod]:
        self.calls["list_pods"] += 1
        if self.list_pods_error is not None:
            raise ClusterListError(f"failed to list pods: {self.list_pods_error}")
        with self._lock:
            return [copy.deepcopy(p) for p in self._pods.values()]

    def list_disruption_budgets(self, namespace: str) -> List[DisruptionBudget]:
        self.calls["list_disruption_budgets"] += 1
        error = self.list_budgets_errors.get(namespace)
        if error is not None:
            raise ClusterListError(
                f"failed to list PodDisruptionBudgets in namespace {namespace}: {error}"
            )
        with self._lock:
            return [copy.deepcopy(b) for b in self._budgets if b.namespace == namespace]

    def get_owner(self, kind: OwnerKind, namespace: str, name: str) -> Owner:
        self.calls["get_owner"] += 1
        key = (kind, namespace, name)
        error = self.owner_errors.get(key)
        if error is not None:
            raise OwnerLookupError(f"failed to get {kind.value} {name}: {error}")
        with self._lock:
            owner = self._owners.get(key)
            if owner is None:
                raise OwnerLookupError(f"failed to get {kind.value} {name}: not found")
            return copy.deepcopy(owner)

    def patch_owner_annotations(self, owner: Owner, annotations: Dict[str, str]) -> None:
        self.calls["patch_owner_annotations"] += 1
        key = (owner.kind, owner.namespace, owner.name)
        error = self.patch_errors.get(key)
        if error is not None:
            raise OwnerPatchError(f"failed to patch {owner.key}: {error}")
        with self._lock:
            stored = self._owners.get(key)
            if stored is None:
                raise OwnerPatchError(f"failed to patch {owner.key}: not found")
            stored.annotations.update(annotations)
            self.patches.append((owner.key, dict(annotations)))

    def evict_pod(self, pod: Pod, grace_period_seconds: int) -> None:
        self.calls["evict_pod"] += 1
        error = self.eviction_errors.get(pod.key)
        if error is not None:
            raise error
        with self._lock:
            self._pods.pop(pod.key, None)
            self.evicted.append((pod.key, grace_period_seconds))
