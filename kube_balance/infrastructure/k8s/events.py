# kube_balance/infrastructure/k8s/events.py

import logging

from kubernetes import client

from kube_balance.core.events import EventRecorder, validate_event
from kube_balance.core.events_model import RebalanceEvent
from kube_balance.infrastructure.k8s.repository import CLIENT_ERRORS

logger = logging.getLogger(__name__)

# events for cluster-scoped objects (nodes) live here
DEFAULT_EVENT_NAMESPACE = "default"


class KubernetesEventRecorder(EventRecorder):
    """Publishes decisions as core/v1 Events on the involved object."""

    def __init__(self, core_api, source: str = "kube-balance-controller", request_timeout: int = 30):
        self._core = core_api
        self.source = source
        self.request_timeout = request_timeout

    def build_event(self, event: RebalanceEvent):
        involved = event.involved
        namespace = involved.namespace or DEFAULT_EVENT_NAMESPACE
        return client.CoreV1Event(
            metadata=client.V1ObjectMeta(
                generate_name=f"{involved.name}.",
                namespace=namespace,
            ),
            involved_object=client.V1ObjectReference(
                api_version=involved.api_version,
                kind=involved.kind,
                name=involved.name,
                namespace=involved.namespace,
                uid=involved.uid,
            ),
            reason=event.reason,
            message=event.message,
            type=event.event_type,
            count=1,
            first_timestamp=event.timestamp,
            last_timestamp=event.timestamp,
            source=client.V1EventSource(component=self.source),
        )

    def record(self, event: RebalanceEvent) -> None:
        validate_event(event)
        body = self.build_event(event)
        try:
            self._core.create_namespaced_event(
                body.metadata.namespace, body, _request_timeout=self.request_timeout
            )
        except CLIENT_ERRORS as e:
            logger.warning(f"[events] Failed to publish {event.reason} event for {event.involved.name}: {e}")
