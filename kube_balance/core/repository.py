# kube_balance/core/repository.py

from abc import ABC, abstractmethod
from typing import Dict, List

from kube_balance.core.models import DisruptionBudget, Node, Owner, OwnerKind, Pod


class ClusterRepository(ABC):
    """
    Access contract for the cluster state the rebalancer reads and writes.

    Every call is a fresh read; implementations keep no cache.
    """

    @abstractmethod
    def list_nodes(self) -> List[Node]:
        """
        List all nodes.
        Raises ClusterListError on failure.
        """
        raise NotImplementedError

    @abstractmethod
    def list_pods(self) -> List[Pod]:
        """
        List all pods in all namespaces.
        Raises ClusterListError on failure.
        """
        raise NotImplementedError

    @abstractmethod
    def list_disruption_budgets(self, namespace: str) -> List[DisruptionBudget]:
        """
        List PodDisruptionBudgets in a namespace.
        Raises ClusterListError on failure.
        """
        raise NotImplementedError

    @abstractmethod
    def get_owner(self, kind: OwnerKind, namespace: str, name: str) -> Owner:
        """
        Fetch a Deployment, StatefulSet or ReplicaSet.
        Raises OwnerLookupError if it cannot be fetched.
        """
        raise NotImplementedError

    @abstractmethod
    def patch_owner_annotations(self, owner: Owner, annotations: Dict[str, str]) -> None:
        """
        Merge the given annotations into the owner's metadata.
        Other fields are left untouched. Raises OwnerPatchError.
        """
        raise NotImplementedError

    @abstractmethod
    def evict_pod(self, pod: Pod, grace_period_seconds: int) -> None:
        """
        Create an eviction for the pod.
        Raises EvictionRateLimitedError on 429, EvictionFailedError otherwise.
        """
        raise NotImplementedError
