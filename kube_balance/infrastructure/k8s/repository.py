# kube_balance/infrastructure/k8s/repository.py

import logging
from typing import Dict, List

from kubernetes import client
from kubernetes.client.exceptions import ApiException
from urllib3.exceptions import HTTPError

from kube_balance.core.errors import (
    ClusterListError,
    EvictionFailedError,
    EvictionRateLimitedError,
    OwnerLookupError,
    OwnerPatchError,
)
from kube_balance.core.models import DisruptionBudget, Node, Owner, OwnerKind, Pod
from kube_balance.core.repository import ClusterRepository
from kube_balance.infrastructure.k8s.converters import (
    budget_from_api,
    node_from_api,
    owner_from_api,
    pod_from_api,
)

logger = logging.getLogger(__name__)

HTTP_TOO_MANY_REQUESTS = 429

# transport failures surface as urllib3 errors, API failures as ApiException
CLIENT_ERRORS = (ApiException, HTTPError)


def _describe(error: Exception) -> str:
    if isinstance(error, ApiException):
        return f"{error.status} {error.reason}"
    return str(error)


class KubernetesClusterRepository(ClusterRepository):
    """ClusterRepository backed by the kubernetes API."""

    def __init__(self, core_api, apps_api, policy_api, request_timeout: int = 30):
        self._core = core_api
        self._apps = apps_api
        self._policy = policy_api
        self.request_timeout = request_timeout

        self._readers = {
            OwnerKind.DEPLOYMENT: self._apps.read_namespaced_deployment,
            OwnerKind.STATEFUL_SET: self._apps.read_namespaced_stateful_set,
            OwnerKind.REPLICA_SET: self._apps.read_namespaced_replica_set,
        }
        self._patchers = {
            OwnerKind.DEPLOYMENT: self._apps.patch_namespaced_deployment,
            OwnerKind.STATEFUL_SET: self._apps.patch_namespaced_stateful_set,
            OwnerKind.REPLICA_SET: self._apps.patch_namespaced_replica_set,
        }

    @classmethod
    def from_api_client(cls, api_client, request_timeout: int = 30):
        return cls(
            core_api=client.CoreV1Api(api_client),
            apps_api=client.AppsV1Api(api_client),
            policy_api=client.PolicyV1Api(api_client),
            request_timeout=request_timeout,
        )

    def list_nodes(self) -> List[Node]:
        try:
            response = self._core.list_node(_request_timeout=self.request_timeout)
        except CLIENT_ERRORS as e:
            raise ClusterListError(f"failed to list nodes: {_describe(e)}") from e
        return [node_from_api(n) for n in response.items]

    def list_pods(self) -> List[Pod]:
        try:
            response = self._core.list_pod_for_all_namespaces(
                _request_timeout=self.request_timeout
            )
        except CLIENT_ERRORS as e:
            raise ClusterListError(f"failed to list pods: {_describe(e)}") from e
        return [pod_from_api(p) for p in response.items]

    def list_disruption_budgets(self, namespace: str) -> List[DisruptionBudget]:
        try:
            response = self._policy.list_namespaced_pod_disruption_budget(
                namespace, _request_timeout=self.request_timeout
            )
        except CLIENT_ERRORS as e:
            raise ClusterListError(
                f"failed to list PodDisruptionBudgets in namespace {namespace}: {_describe(e)}"
            ) from e
        return [budget_from_api(b) for b in response.items]

    def get_owner(self, kind: OwnerKind, namespace: str, name: str) -> Owner:
        try:
            obj = self._readers[kind](name, namespace, _request_timeout=self.request_timeout)
        except CLIENT_ERRORS as e:
            raise OwnerLookupError(f"failed to get {kind.value} {name}: {_describe(e)}") from e
        return owner_from_api(kind, obj)

    def patch_owner_annotations(self, owner: Owner, annotations: Dict[str, str]) -> None:
        body = {"metadata": {"annotations": dict(annotations)}}
        try:
            self._patchers[owner.kind](
                owner.name, owner.namespace, body, _request_timeout=self.request_timeout
            )
        except CLIENT_ERRORS as e:
            raise OwnerPatchError(f"failed to patch {owner.key}: {_describe(e)}") from e

    def evict_pod(self, pod: Pod, grace_period_seconds: int) -> None:
        body = client.V1Eviction(
            metadata=client.V1ObjectMeta(name=pod.name, namespace=pod.namespace),
            delete_options=client.V1DeleteOptions(grace_period_seconds=grace_period_seconds),
        )
        try:
            self._core.create_namespaced_pod_eviction(
                name=pod.name,
                namespace=pod.namespace,
                body=body,
                _request_timeout=self.request_timeout,
            )
        except ApiException as e:
            message = f"failed to create eviction for pod {pod.key}: {_describe(e)}"
            if e.status == HTTP_TOO_MANY_REQUESTS:
                raise EvictionRateLimitedError(message) from e
            raise EvictionFailedError(message) from e
        except HTTPError as e:
            raise EvictionFailedError(
                f"failed to create eviction for pod {pod.key}: {e}"
            ) from e
