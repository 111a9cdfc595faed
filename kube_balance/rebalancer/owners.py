# kube_balance/rebalancer/owners.py

import logging
from typing import Optional

from kube_balance.core.models import Owner, OwnerKind, Pod
from kube_balance.core.repository import ClusterRepository

logger = logging.getLogger(__name__)


class OwnerResolver:
    """
    Finds the Deployment, StatefulSet or ReplicaSet controlling a pod.

    A ReplicaSet controlled by a Deployment resolves to the Deployment.
    """

    def __init__(self, repository: ClusterRepository):
        self._repo = repository

    def resolve(self, pod: Pod) -> Optional[Owner]:
        """
        Resolve the pod's controlling owner.

        Returns:
            The owner, or None if the pod has no managed controller

        Raises:
            OwnerLookupError: a referenced object could not be fetched
        """
        for ref in pod.owner_references:
            if not ref.controller:
                continue

            kind = OwnerKind.parse(ref.kind)
            if kind is None:
                continue

            owner = self._fetch(kind, pod.namespace, ref.name)

            if kind is OwnerKind.REPLICA_SET:
                parent = owner.controller_reference()
                if parent is not None and parent.kind == OwnerKind.DEPLOYMENT.value:
                    return self._fetch(OwnerKind.DEPLOYMENT, pod.namespace, parent.name)

            return owner

        return None

    def _fetch(self, kind: OwnerKind, namespace: str, name: str) -> Owner:
        logger.debug(f"[owners] Fetching {kind.value} {namespace}/{name}")
        return self._repo.get_owner(kind, namespace, name)
