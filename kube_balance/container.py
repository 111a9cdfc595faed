#kube_balance\container.py

"""Dependency injection container - wires all services together."""

from kubernetes import client

from kube_balance.config import RebalancerSettings
from kube_balance.core.events import LoggingEventRecorder, MultiEventRecorder
from kube_balance.infrastructure.k8s.client import load_api_client
from kube_balance.infrastructure.k8s.events import KubernetesEventRecorder
from kube_balance.infrastructure.k8s.repository import KubernetesClusterRepository
from kube_balance.profiles.consumer import ProfileEventConsumer
from kube_balance.profiles.store import ProfileStore
from kube_balance.profiles.watcher import ProfileWatcher
from kube_balance.rebalancer.cycle import PodRebalancer
from kube_balance.worker import RebalanceWorker


# ============================================
# SETTINGS / CLIENTS
# ============================================

settings = RebalancerSettings()

api_client = load_api_client(settings.kubeconfig, settings.kube_context)
core_api = client.CoreV1Api(api_client)
custom_api = client.CustomObjectsApi(api_client)


# ============================================
# REPOSITORIES
# ============================================

cluster_repository = KubernetesClusterRepository.from_api_client(
    api_client,
    request_timeout=settings.api_timeout_seconds,
)

profile_store = ProfileStore()


# ============================================
# EVENTS
# ============================================

recorder = MultiEventRecorder([
    LoggingEventRecorder(),
    KubernetesEventRecorder(
        core_api,
        source=settings.event_source,
        request_timeout=settings.api_timeout_seconds,
    ),
])


# ============================================
# SERVICES
# ============================================

profile_watcher = ProfileWatcher(
    custom_api,
    ProfileEventConsumer(profile_store),
    watch_timeout_seconds=settings.watch_timeout_seconds,
    api_timeout_seconds=settings.api_timeout_seconds,
)

rebalancer = PodRebalancer(
    repository=cluster_repository,
    profiles=profile_store,
    recorder=recorder,
    config=settings.to_config(),
)

worker = RebalanceWorker(rebalancer, watcher=profile_watcher)
